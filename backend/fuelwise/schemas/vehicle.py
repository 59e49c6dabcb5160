"""Vehicle request/response schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class VehicleCreateRequest(BaseModel):
    """New vehicle owned by the caller, with optional starting ledger values."""

    alias: str = Field(min_length=1, max_length=64)
    plate: str = Field(min_length=1, max_length=16)
    brand: str | None = Field(default=None, max_length=64)
    model: str | None = Field(default=None, max_length=64)
    year_manufacture: int | None = Field(default=None, ge=1900, le=2100)
    tank_capacity: Decimal | None = Field(default=None, gt=0, max_digits=8, decimal_places=2)
    app_odometer: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=5)
    app_fuel_tank: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=5)


class VehicleAccessGrantRequest(BaseModel):
    user_id: int = Field(ge=1)


class VehicleRead(BaseModel):
    """Serialized vehicle including its ledger state."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    alias: str
    plate: str
    brand: str | None
    model: str | None
    year_manufacture: int | None
    tank_capacity: Decimal | None
    app_odometer: Decimal
    app_fuel_tank: Decimal
    created_at: datetime
    updated_at: datetime


class VehicleAuthorizationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    vehicle_id: int
    user_id: int
    created_at: datetime
