"""Fueling ORM model."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Float, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from fuelwise.models.base import Base, IdMixin, TimestampMixin
from fuelwise.models.vehicle import LEDGER_NUMERIC


class Fueling(Base, IdMixin, TimestampMixin):
    """Fuel purchase that added volume to the vehicle tank."""

    __tablename__ = "fuelings"

    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicles.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    fuel_type_id: Mapped[int] = mapped_column(ForeignKey("fuel_types.id"), index=True, nullable=False)
    gas_station_id: Mapped[int | None] = mapped_column(
        ForeignKey("gas_stations.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    price_per_liter: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    volume: Mapped[Decimal] = mapped_column(LEDGER_NUMERIC, nullable=False)
    moment_app_fuel_tank: Mapped[Decimal] = mapped_column(LEDGER_NUMERIC, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
        nullable=False,
    )
