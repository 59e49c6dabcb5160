"""Apply a final outcome to a proposal and its target entity."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from fuelwise.db.transaction import atomic
from fuelwise.errors import ConflictError, InternalInconsistencyError, NotFoundError
from fuelwise.models.gas_station import GasStation
from fuelwise.models.proposal import Proposal, StationPriceProposal
from fuelwise.models.station_price import StationPrice
from fuelwise.schema.statuses import FINAL_PROPOSAL_STATUSES, RESOLVABLE_PROPOSAL_STATUSES
from fuelwise.services.stations import find_identity_conflict
from fuelwise.services.tally import VoteCounts, count_votes

logger = logging.getLogger(__name__)


def apply_resolution(
    db: Session,
    proposal: Proposal,
    outcome: str,
    *,
    counts: VoteCounts | None = None,
    resolved_by: int | None = None,
    notes: str | None = None,
) -> Proposal:
    """Transition the proposal and its target inside the caller's transaction.

    Raises ``ConflictError`` when the proposal already holds a final status,
    so an outcome is never applied twice.
    """

    if outcome not in FINAL_PROPOSAL_STATUSES:
        raise ValueError(f"Unsupported resolution outcome: {outcome}")
    if proposal.status not in RESOLVABLE_PROPOSAL_STATUSES:
        raise ConflictError(f"Proposal {proposal.id} is already resolved (status: {proposal.status}).")

    target_model = proposal.target_model
    target = db.scalar(
        select(target_model).where(target_model.id == proposal.target_entity_id).with_for_update()
    )
    if target is None:
        logger.error(
            "resolution.missing_target proposal_id=%s target_kind=%s target_id=%s",
            proposal.id,
            proposal.target_kind,
            proposal.target_entity_id,
        )
        raise InternalInconsistencyError(f"Proposal {proposal.id} references a missing target entity.")

    if outcome == "VERIFIED" and isinstance(target, GasStation):
        clash_id = find_identity_conflict(db, target, proposal.proposed_changes())
        if clash_id is not None:
            logger.warning(
                "resolution.identity_conflict proposal_id=%s station_id=%s conflicting_station_id=%s",
                proposal.id,
                target.id,
                clash_id,
            )
            outcome = "REJECTED"
            notes = "; ".join(part for part in (f"merge would duplicate gas station {clash_id}", notes) if part)

    previous_target_status = target.status
    proposal.apply_outcome(target, outcome)
    if isinstance(target, StationPrice) and outcome == "VERIFIED":
        _mark_superseded_prices(db, target)
    if isinstance(target, GasStation) and target.status == "REJECTED" and previous_target_status != "REJECTED":
        _reject_unresolved_station_prices(db, target, proposal)

    tally = counts if counts is not None else count_votes(db, proposal.id)
    note_parts = [tally.as_notes(outcome)]
    if resolved_by is not None:
        note_parts.append(f"resolved_by={resolved_by}")
    if notes:
        note_parts.append(notes.strip())

    proposal.status = outcome
    proposal.resolution_notes = "; ".join(note_parts)
    proposal.resolved_at = datetime.now(timezone.utc)
    db.flush()

    logger.info(
        "resolution.applied proposal_id=%s target_kind=%s target_id=%s outcome=%s target_status=%s->%s "
        "accept=%s reject=%s protest=%s",
        proposal.id,
        proposal.target_kind,
        proposal.target_entity_id,
        outcome,
        previous_target_status,
        target.status,
        tally.accept,
        tally.reject,
        tally.protest,
    )
    return proposal


def resolve_proposal(
    db: Session,
    proposal_id: int,
    outcome: str,
    *,
    resolver_id: int,
    notes: str | None = None,
) -> Proposal:
    """Manually resolve a pending or protested proposal."""

    with atomic(db):
        proposal = db.scalar(select(Proposal).where(Proposal.id == proposal_id).with_for_update())
        if proposal is None:
            raise NotFoundError(f"Proposal {proposal_id} not found.")
        apply_resolution(db, proposal, outcome, resolved_by=resolver_id, notes=notes)
    return proposal


def _mark_superseded_prices(db: Session, verified: StationPrice) -> None:
    result = db.execute(
        update(StationPrice)
        .where(
            StationPrice.gas_station_id == verified.gas_station_id,
            StationPrice.fuel_type_id == verified.fuel_type_id,
            StationPrice.id != verified.id,
            StationPrice.status == "ACTIVE",
            StationPrice.reported_at <= verified.reported_at,
        )
        .values(status="OUTDATED")
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount:
        logger.info(
            "resolution.prices_outdated station_id=%s fuel_type_id=%s count=%s",
            verified.gas_station_id,
            verified.fuel_type_id,
            result.rowcount,
        )


def _reject_unresolved_station_prices(db: Session, station: GasStation, station_proposal: Proposal) -> None:
    """Close out price proposals left open on a station whose creation was rejected."""

    rows = db.execute(
        select(StationPriceProposal, StationPrice)
        .join(StationPrice, StationPrice.id == StationPriceProposal.station_price_id)
        .where(
            StationPrice.gas_station_id == station.id,
            StationPriceProposal.status.in_(sorted(RESOLVABLE_PROPOSAL_STATUSES)),
        )
        .with_for_update()
    ).all()
    resolved_at = datetime.now(timezone.utc)
    for price_proposal, price in rows:
        price_proposal.status = "REJECTED"
        price_proposal.resolution_notes = f"station rejected by proposal {station_proposal.id}"
        price_proposal.resolved_at = resolved_at
        if price.status == "UNDER_REVIEW":
            price.status = "REJECTED"
    if rows:
        logger.info("resolution.station_prices_rejected station_id=%s count=%s", station.id, len(rows))
