"""Station price ORM model."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from fuelwise.models.base import Base, IdMixin, TimestampMixin


class StationPrice(Base, IdMixin, TimestampMixin):
    """Reported price for one fuel type at one station."""

    __tablename__ = "station_prices"
    __table_args__ = (
        Index("ix_station_prices_station_fuel_reported", "gas_station_id", "fuel_type_id", "reported_at"),
    )

    gas_station_id: Mapped[int] = mapped_column(
        ForeignKey("gas_stations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    fuel_type_id: Mapped[int] = mapped_column(ForeignKey("fuel_types.id"), index=True, nullable=False)
    reported_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    reported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(32), default="UNDER_REVIEW", index=True, nullable=False)
