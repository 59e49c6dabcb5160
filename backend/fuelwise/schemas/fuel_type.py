"""Fuel type request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FuelTypeCreateRequest(BaseModel):
    """New fuel type payload."""

    name: str = Field(min_length=1, max_length=64)


class FuelTypeRead(BaseModel):
    """Serialized fuel type."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
