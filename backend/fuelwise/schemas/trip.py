"""Trip request/response schemas."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


def as_utc(value: datetime) -> datetime:
    # Naive values are taken as UTC; SQLite returns stored values without tzinfo.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TripCreateRequest(BaseModel):
    """Driven distance to subtract from the tank at the given consumption rate (km/l)."""

    start_time: datetime
    end_time: datetime
    distance: Decimal = Field(max_digits=14, decimal_places=5)
    consumption_rate_used: Decimal = Field(max_digits=10, decimal_places=5)
    route_path: list[Any] | None = None
    notes: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def validate_window(self) -> "TripCreateRequest":
        if as_utc(self.end_time) < as_utc(self.start_time):
            raise ValueError("end_time must not be before start_time")
        return self


class TripUpdateRequest(BaseModel):
    """Partial trip update; the ledger moves by the difference only."""

    start_time: datetime | None = None
    end_time: datetime | None = None
    distance: Decimal | None = Field(default=None, max_digits=14, decimal_places=5)
    consumption_rate_used: Decimal | None = Field(default=None, max_digits=10, decimal_places=5)
    route_path: list[Any] | None = None
    notes: str | None = Field(default=None, max_length=2000)


class TripRead(BaseModel):
    """Serialized trip."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    vehicle_id: int
    user_id: int
    start_time: datetime
    end_time: datetime
    distance: Decimal
    consumption_rate_used: Decimal
    fuel_consumed: Decimal
    moment_app_fuel_tank: Decimal
    route_path: list[Any] | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
