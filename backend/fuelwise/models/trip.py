"""Trip ORM model."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from fuelwise.models.base import Base, IdMixin, TimestampMixin
from fuelwise.models.vehicle import LEDGER_NUMERIC


class Trip(Base, IdMixin, TimestampMixin):
    """Driven distance that consumed fuel from the vehicle tank."""

    __tablename__ = "trips"

    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicles.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    distance: Mapped[Decimal] = mapped_column(LEDGER_NUMERIC, nullable=False)
    consumption_rate_used: Mapped[Decimal] = mapped_column(Numeric(10, 5), nullable=False)
    fuel_consumed: Mapped[Decimal] = mapped_column(LEDGER_NUMERIC, nullable=False)
    moment_app_fuel_tank: Mapped[Decimal] = mapped_column(LEDGER_NUMERIC, nullable=False)
    route_path: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
