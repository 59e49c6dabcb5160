"""Gas station and station price request/response schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fuelwise.schemas.proposal import ProposalRead


class StationAddressFields(BaseModel):
    """Normalized station identity, location and address."""

    name: str = Field(min_length=1, max_length=255)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    street: str = Field(min_length=1, max_length=255)
    number: str = Field(min_length=1, max_length=32)
    complement: str | None = None
    neighborhood: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=255)
    state: str = Field(min_length=2, max_length=2)
    postal_code: str | None = Field(default=None, pattern=r"^((\d{5}-?\d{3})|)$")
    country: str = Field(default="BRASIL", min_length=1, max_length=64)

    @field_validator("state")
    @classmethod
    def normalize_state(cls, value: str) -> str:
        return value.upper()

    @field_validator("postal_code")
    @classmethod
    def normalize_postal_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        digits = "".join(char for char in value if char.isdigit())
        return digits or None


class StationPriceInput(BaseModel):
    """Initial price reported together with a new station."""

    fuel_type_id: int = Field(ge=1)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=3)


class GasStationCreateRequest(StationAddressFields):
    """Propose a new station with its initial prices."""

    station_prices: list[StationPriceInput] = Field(default_factory=list)
    reason: str = Field(min_length=5)


class StationPriceReportRequest(BaseModel):
    """Report a price seen at a station."""

    fuel_type_id: int = Field(ge=1)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=3)
    reason: str | None = None


class StationPriceEdit(BaseModel):
    """Correction to an existing station price."""

    station_price_id: int = Field(ge=1)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=3)


class GasStationEditRequest(StationAddressFields):
    """Full proposed field set for an existing station plus optional price edits."""

    station_prices: list[StationPriceEdit] = Field(default_factory=list)
    reason: str = Field(min_length=5)


class GasStationRead(BaseModel):
    """Serialized gas station."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    latitude: float
    longitude: float
    street: str
    number: str
    complement: str | None
    neighborhood: str
    city: str
    state: str
    postal_code: str | None
    country: str
    status: str
    created_at: datetime
    updated_at: datetime


class StationPriceRead(BaseModel):
    """Serialized station price."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    gas_station_id: int
    fuel_type_id: int
    reported_by_id: int | None
    price: Decimal
    reported_at: datetime
    status: str


class LatestStationPriceRead(StationPriceRead):
    """Most recent usable price for one fuel type at a station."""

    fuel_type_name: str


class StationCreationRead(BaseModel):
    """Everything created by a station creation proposal."""

    station: GasStationRead
    proposal: ProposalRead
    prices: list[StationPriceRead]
    price_proposals: list[ProposalRead]


class StationEditRead(BaseModel):
    """Edit proposals created for a station and its prices."""

    proposal: ProposalRead | None
    price_proposals: list[ProposalRead]


