"""Fuel type ORM model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from fuelwise.models.base import Base, IdMixin, TimestampMixin


class FuelType(Base, IdMixin, TimestampMixin):
    """Fuel grade sold at stations, e.g. gasoline or ethanol."""

    __tablename__ = "fuel_types"

    name: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
