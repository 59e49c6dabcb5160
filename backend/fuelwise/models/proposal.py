"""Community proposal ORM models.

A proposal governs exactly one target entity. The two target kinds share one
table through single-table inheritance on ``target_kind``; each subclass knows
its target model and how a resolution outcome is applied to that target.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from fuelwise.models.base import Base, IdMixin, TimestampMixin
from fuelwise.models.gas_station import GasStation
from fuelwise.models.station_price import StationPrice

_UNRESOLVED_CLAUSE = "status IN ('PENDING', 'PROTESTED')"

GAS_STATION_EDITABLE_FIELDS: tuple[str, ...] = (
    "name",
    "latitude",
    "longitude",
    "street",
    "number",
    "complement",
    "neighborhood",
    "city",
    "state",
    "postal_code",
    "country",
)
STATION_PRICE_EDITABLE_FIELDS: tuple[str, ...] = ("price",)


class Proposal(Base, IdMixin, TimestampMixin):
    """Pending community decision about one gas station or one station price."""

    __tablename__ = "proposals"
    __table_args__ = (
        CheckConstraint(
            "(gas_station_id IS NULL) <> (station_price_id IS NULL)",
            name="ck_proposals_single_target",
        ),
        Index(
            "uq_proposals_unresolved_gas_station",
            "gas_station_id",
            unique=True,
            postgresql_where=text(_UNRESOLVED_CLAUSE),
            sqlite_where=text(_UNRESOLVED_CLAUSE),
        ),
        Index(
            "uq_proposals_unresolved_station_price",
            "station_price_id",
            unique=True,
            postgresql_where=text(_UNRESOLVED_CLAUSE),
            sqlite_where=text(_UNRESOLVED_CLAUSE),
        ),
    )

    target_kind: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    gas_station_id: Mapped[int | None] = mapped_column(
        ForeignKey("gas_stations.id", ondelete="CASCADE"),
        index=True,
        nullable=True,
    )
    station_price_id: Mapped[int | None] = mapped_column(
        ForeignKey("station_prices.id", ondelete="CASCADE"),
        index=True,
        nullable=True,
    )
    proposer_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="PENDING", index=True, nullable=False)
    reason_type: Mapped[str] = mapped_column(String(32), default="INITIAL_CREATION", nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    proposed_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __mapper_args__ = {
        "polymorphic_on": "target_kind",
        "polymorphic_abstract": True,
    }

    target_model: ClassVar[type[GasStation] | type[StationPrice]]
    editable_fields: ClassVar[tuple[str, ...]] = ()

    @property
    def target_entity_id(self) -> int | None:
        raise NotImplementedError

    def proposed_changes(self) -> dict[str, Any]:
        """Changed-field subset for edits; always empty for initial creation."""

        if self.reason_type != "DATA_UPDATE":
            return {}
        return {
            field: value
            for field, value in (self.proposed_data or {}).items()
            if field in self.editable_fields
        }

    def apply_outcome(self, target: GasStation | StationPrice, outcome: str) -> None:
        """Transition the target entity for a VERIFIED or REJECTED outcome.

        A rejected edit leaves the target untouched; only a rejected initial
        creation rejects the target itself.
        """

        if outcome == "VERIFIED":
            for field, value in self.proposed_changes().items():
                setattr(target, field, self._coerce_value(field, value))
            target.status = "ACTIVE"
        elif outcome == "REJECTED":
            if self.reason_type == "INITIAL_CREATION":
                target.status = "REJECTED"
        else:
            raise ValueError(f"Unsupported resolution outcome: {outcome}")

    def _coerce_value(self, field: str, value: Any) -> Any:
        return value


class GasStationProposal(Proposal):
    """Proposal governing a gas station row."""

    __mapper_args__ = {"polymorphic_identity": "gas_station"}

    target_model = GasStation
    editable_fields = GAS_STATION_EDITABLE_FIELDS

    @property
    def target_entity_id(self) -> int | None:
        return self.gas_station_id


class StationPriceProposal(Proposal):
    """Proposal governing a station price row."""

    __mapper_args__ = {"polymorphic_identity": "station_price"}

    target_model = StationPrice
    editable_fields = STATION_PRICE_EDITABLE_FIELDS

    @property
    def target_entity_id(self) -> int | None:
        return self.station_price_id

    def _coerce_value(self, field: str, value: Any) -> Any:
        if field == "price":
            return Decimal(str(value))
        return value
