"""Gas station ORM model."""

from sqlalchemy import Float, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fuelwise.models.base import Base, IdMixin, TimestampMixin


class GasStation(Base, IdMixin, TimestampMixin):
    """Crowdsourced station. Status changes only through proposal resolution."""

    __tablename__ = "gas_stations"
    __table_args__ = (
        UniqueConstraint("name", "street", "number", "city", "state", name="uq_gas_stations_name_address"),
    )

    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    street: Mapped[str] = mapped_column(String(255), nullable=False)
    number: Mapped[str] = mapped_column(String(32), nullable=False)
    complement: Mapped[str | None] = mapped_column(String(255), nullable=True)
    neighborhood: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    postal_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    country: Mapped[str] = mapped_column(String(64), default="BRASIL", nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="UNDER_REVIEW", index=True, nullable=False)
