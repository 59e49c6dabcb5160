"""Vehicle ORM models: the aggregate that owns the fuel/odometer ledger."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fuelwise.models.base import Base, CreatedAtMixin, IdMixin, TimestampMixin

LEDGER_NUMERIC = Numeric(14, 5)


class Vehicle(Base, IdMixin, TimestampMixin):
    """User vehicle with app-tracked odometer and fuel tank level."""

    __tablename__ = "vehicles"

    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    alias: Mapped[str] = mapped_column(String(64), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(64), nullable=True)
    model: Mapped[str | None] = mapped_column(String(64), nullable=True)
    plate: Mapped[str] = mapped_column(String(16), unique=True, index=True, nullable=False)
    year_manufacture: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tank_capacity: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    app_odometer: Mapped[Decimal] = mapped_column(LEDGER_NUMERIC, default=Decimal("0"), nullable=False)
    app_fuel_tank: Mapped[Decimal] = mapped_column(LEDGER_NUMERIC, default=Decimal("0"), nullable=False)


class VehicleAuthorization(Base, IdMixin, CreatedAtMixin):
    """Grant allowing a non-owner to log events against a vehicle."""

    __tablename__ = "vehicle_authorizations"
    __table_args__ = (UniqueConstraint("vehicle_id", "user_id", name="uq_vehicle_authorizations_vehicle_user"),)

    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicles.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
