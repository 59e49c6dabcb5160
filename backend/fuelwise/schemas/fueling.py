"""Fueling request/response schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FuelingCreateRequest(BaseModel):
    """Fuel purchase. ``price_per_liter`` is required only without a station."""

    cost: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    fuel_type_id: int = Field(ge=1)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    gas_station_id: int | None = Field(default=None, ge=1)
    price_per_liter: Decimal | None = Field(default=None, max_digits=10, decimal_places=3)
    timestamp: datetime | None = None

    @model_validator(mode="after")
    def validate_price_source(self) -> "FuelingCreateRequest":
        if self.gas_station_id is None and self.price_per_liter is None:
            raise ValueError("price_per_liter is required when no gas_station_id is given")
        return self


class FuelingUpdateRequest(BaseModel):
    """Partial fueling update; the tank moves by the volume difference only."""

    cost: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    fuel_type_id: int | None = Field(default=None, ge=1)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    gas_station_id: int | None = Field(default=None, ge=1)
    price_per_liter: Decimal | None = Field(default=None, max_digits=10, decimal_places=3)
    timestamp: datetime | None = None


class FuelingRead(BaseModel):
    """Serialized fueling."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    vehicle_id: int
    user_id: int
    fuel_type_id: int
    gas_station_id: int | None
    cost: Decimal
    price_per_liter: Decimal
    volume: Decimal
    moment_app_fuel_tank: Decimal
    latitude: float
    longitude: float
    timestamp: datetime
    created_at: datetime
    updated_at: datetime
