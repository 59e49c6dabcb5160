"""Proposal creation and proposal reads.

Every community fact (a gas station or a station price) is created together
with the proposal that governs it, and every suggested change to an existing
fact becomes a ``DATA_UPDATE`` proposal carrying only the changed fields.
Nothing here resolves proposals; that happens after votes are tallied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fuelwise.db.transaction import atomic
from fuelwise.errors import ConflictError, ErrorDetail, NotFoundError, ValidationError
from fuelwise.models.fuel_type import FuelType
from fuelwise.models.gas_station import GasStation
from fuelwise.models.proposal import (
    GAS_STATION_EDITABLE_FIELDS,
    GasStationProposal,
    Proposal,
    StationPriceProposal,
)
from fuelwise.models.review import Review
from fuelwise.models.station_price import StationPrice
from fuelwise.schema.statuses import RESOLVABLE_PROPOSAL_STATUSES
from fuelwise.schemas.station import (
    GasStationCreateRequest,
    GasStationEditRequest,
    StationPriceReportRequest,
)
from fuelwise.services.stations import find_identity_conflict

logger = logging.getLogger(__name__)

PROPOSAL_KINDS: dict[str, type[Proposal]] = {
    "gas-station": GasStationProposal,
    "station-price": StationPriceProposal,
}


@dataclass(slots=True)
class StationCreationResult:
    station: GasStation
    proposal: GasStationProposal
    prices: list[StationPrice] = field(default_factory=list)
    price_proposals: list[StationPriceProposal] = field(default_factory=list)


@dataclass(slots=True)
class StationEditResult:
    proposal: GasStationProposal | None
    price_proposals: list[StationPriceProposal] = field(default_factory=list)


@dataclass(slots=True)
class ProposalPage:
    items: list[tuple[Proposal, int]]
    total: int


def propose_station_creation(
    db: Session,
    payload: GasStationCreateRequest,
    *,
    proposer_id: int,
) -> StationCreationResult:
    """Create a station, its initial prices and one proposal for each, atomically."""

    _validate_initial_prices(db, payload)

    station_fields = payload.model_dump(include=set(GAS_STATION_EDITABLE_FIELDS))
    with atomic(db, conflict_message="A gas station with this name and address already exists."):
        station = GasStation(**station_fields, status="UNDER_REVIEW")
        db.add(station)
        db.flush()

        proposal = GasStationProposal(
            gas_station_id=station.id,
            proposer_id=proposer_id,
            status="PENDING",
            reason_type="INITIAL_CREATION",
            reason=payload.reason,
        )
        db.add(proposal)

        result = StationCreationResult(station=station, proposal=proposal)
        for item in payload.station_prices:
            price, price_proposal = _new_price_with_proposal(
                db,
                station_id=station.id,
                fuel_type_id=item.fuel_type_id,
                price=item.price,
                reporter_id=proposer_id,
                reason=payload.reason,
            )
            result.prices.append(price)
            result.price_proposals.append(price_proposal)
        db.flush()

    logger.info(
        "proposal.station_created station_id=%s proposal_id=%s prices=%s",
        station.id,
        proposal.id,
        len(result.prices),
    )
    return result


def report_station_price(
    db: Session,
    station_id: int,
    payload: StationPriceReportRequest,
    *,
    reporter_id: int,
) -> StationPrice:
    """Record a price seen at a station; the price starts under review."""

    station = db.get(GasStation, station_id)
    if station is None:
        raise NotFoundError(f"Gas station {station_id} not found.")
    if station.status == "REJECTED":
        raise ConflictError(f"Gas station {station_id} was rejected and does not accept prices.")
    if db.get(FuelType, payload.fuel_type_id) is None:
        raise NotFoundError(f"Fuel type {payload.fuel_type_id} not found.")

    with atomic(db):
        price, proposal = _new_price_with_proposal(
            db,
            station_id=station_id,
            fuel_type_id=payload.fuel_type_id,
            price=payload.price,
            reporter_id=reporter_id,
            reason=payload.reason,
        )
        db.flush()

    logger.info(
        "proposal.price_reported station_id=%s price_id=%s proposal_id=%s",
        station_id,
        price.id,
        proposal.id,
    )
    return price


def propose_station_edit(
    db: Session,
    station_id: int,
    payload: GasStationEditRequest,
    *,
    proposer_id: int,
) -> StationEditResult:
    """Propose changes to a station and, optionally, corrections to its prices.

    The station proposal stores only the fields that differ from the current
    row. Unchanged price edits are skipped.
    """

    station = db.get(GasStation, station_id)
    if station is None:
        raise NotFoundError(f"Gas station {station_id} not found.")
    if station.status == "REJECTED":
        raise ConflictError(f"Gas station {station_id} was rejected and cannot be edited.")

    changes = _changed_station_fields(station, payload)
    if changes and _has_unresolved_proposal(db, GasStationProposal.gas_station_id, station_id):
        raise ConflictError(f"Gas station {station_id} already has a pending proposal.")
    clash_id = find_identity_conflict(db, station, changes)
    if clash_id is not None:
        raise ConflictError(f"Gas station {clash_id} already has this name and address.")

    price_changes = _changed_prices(db, station_id, payload)
    if not changes and not price_changes:
        raise ValidationError.for_field("body", "No changes proposed: nothing differs from the current data.")

    with atomic(db, conflict_message="A pending proposal already exists for this entity."):
        result = StationEditResult(proposal=None)
        if changes:
            result.proposal = GasStationProposal(
                gas_station_id=station_id,
                proposer_id=proposer_id,
                status="PENDING",
                reason_type="DATA_UPDATE",
                reason=payload.reason,
                proposed_data=changes,
            )
            db.add(result.proposal)
        for price_row, new_price in price_changes:
            price_proposal = StationPriceProposal(
                station_price_id=price_row.id,
                proposer_id=proposer_id,
                status="PENDING",
                reason_type="DATA_UPDATE",
                reason=payload.reason,
                proposed_data={"price": str(new_price)},
            )
            db.add(price_proposal)
            result.price_proposals.append(price_proposal)
        db.flush()

    logger.info(
        "proposal.edit_created station_id=%s fields=%s price_edits=%s",
        station_id,
        ",".join(sorted(changes)) or "-",
        len(result.price_proposals),
    )
    return result


def list_proposals(
    db: Session,
    kind: str,
    *,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> ProposalPage:
    """List proposals of one kind, newest first, with their review counts."""

    proposal_cls = _proposal_class(kind)

    review_counts = (
        select(Review.proposal_id, func.count(Review.id).label("review_count"))
        .group_by(Review.proposal_id)
        .subquery()
    )
    filters = [proposal_cls.target_kind == proposal_cls.__mapper__.polymorphic_identity]
    if status is not None:
        filters.append(proposal_cls.status == status)

    total = db.scalar(select(func.count(proposal_cls.id)).where(*filters)) or 0
    rows = db.execute(
        select(proposal_cls, func.coalesce(review_counts.c.review_count, 0))
        .outerjoin(review_counts, review_counts.c.proposal_id == proposal_cls.id)
        .where(*filters)
        .order_by(proposal_cls.created_at.desc(), proposal_cls.id.desc())
        .limit(limit)
        .offset(offset)
    ).all()
    return ProposalPage(items=[(proposal, int(count)) for proposal, count in rows], total=int(total))


def get_proposal_detail(
    db: Session,
    proposal_id: int,
    *,
    kind: str | None = None,
) -> tuple[Proposal, list[Review]]:
    """Load a proposal and its reviews, newest vote first."""

    proposal_cls = _proposal_class(kind) if kind is not None else Proposal
    proposal = db.get(Proposal, proposal_id)
    if proposal is None or not isinstance(proposal, proposal_cls):
        raise NotFoundError(f"Proposal {proposal_id} not found.")
    reviews = db.scalars(
        select(Review)
        .where(Review.proposal_id == proposal_id)
        .order_by(Review.updated_at.desc(), Review.id.desc())
    ).all()
    return proposal, list(reviews)


def _proposal_class(kind: str) -> type[Proposal]:
    proposal_cls = PROPOSAL_KINDS.get(kind)
    if proposal_cls is None:
        raise ValidationError.for_field("path.kind", f"Unknown proposal kind: {kind}")
    return proposal_cls


def _new_price_with_proposal(
    db: Session,
    *,
    station_id: int,
    fuel_type_id: int,
    price: Decimal,
    reporter_id: int,
    reason: str | None,
) -> tuple[StationPrice, StationPriceProposal]:
    station_price = StationPrice(
        gas_station_id=station_id,
        fuel_type_id=fuel_type_id,
        reported_by_id=reporter_id,
        price=price,
        status="UNDER_REVIEW",
    )
    db.add(station_price)
    db.flush()

    proposal = StationPriceProposal(
        station_price_id=station_price.id,
        proposer_id=reporter_id,
        status="PENDING",
        reason_type="INITIAL_CREATION",
        reason=reason,
    )
    db.add(proposal)
    return station_price, proposal


def _validate_initial_prices(db: Session, payload: GasStationCreateRequest) -> None:
    requested_ids = [item.fuel_type_id for item in payload.station_prices]
    known_ids: set[int] = set()
    if requested_ids:
        known_ids = set(db.scalars(select(FuelType.id).where(FuelType.id.in_(requested_ids))).all())

    errors: list[ErrorDetail] = []
    seen: set[int] = set()
    for index, fuel_type_id in enumerate(requested_ids):
        path = f"station_prices.{index}.fuel_type_id"
        if fuel_type_id not in known_ids:
            errors.append(ErrorDetail(path=path, message=f"Fuel type {fuel_type_id} does not exist."))
        elif fuel_type_id in seen:
            errors.append(ErrorDetail(path=path, message=f"Fuel type {fuel_type_id} is listed more than once."))
        seen.add(fuel_type_id)
    if errors:
        raise ValidationError("Invalid station prices.", errors=errors)


def _changed_station_fields(station: GasStation, payload: GasStationEditRequest) -> dict[str, Any]:
    proposed = payload.model_dump(include=set(GAS_STATION_EDITABLE_FIELDS))
    return {
        name: value
        for name, value in proposed.items()
        if getattr(station, name) != value
    }


def _changed_prices(
    db: Session,
    station_id: int,
    payload: GasStationEditRequest,
) -> list[tuple[StationPrice, Decimal]]:
    changed: list[tuple[StationPrice, Decimal]] = []
    seen: set[int] = set()
    for index, edit in enumerate(payload.station_prices):
        if edit.station_price_id in seen:
            raise ValidationError.for_field(
                f"station_prices.{index}.station_price_id",
                f"Station price {edit.station_price_id} is listed more than once.",
            )
        seen.add(edit.station_price_id)

        price_row = db.get(StationPrice, edit.station_price_id)
        if price_row is None or price_row.gas_station_id != station_id:
            raise NotFoundError(f"Station price {edit.station_price_id} not found for gas station {station_id}.")
        if price_row.price == edit.price:
            continue
        if _has_unresolved_proposal(db, StationPriceProposal.station_price_id, price_row.id):
            raise ConflictError(f"Station price {price_row.id} already has a pending proposal.")
        changed.append((price_row, edit.price))
    return changed


def _has_unresolved_proposal(db: Session, target_column, target_id: int) -> bool:
    existing = db.scalar(
        select(Proposal.id).where(
            target_column == target_id,
            Proposal.status.in_(sorted(RESOLVABLE_PROPOSAL_STATUSES)),
        )
    )
    return existing is not None
