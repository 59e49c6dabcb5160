"""Vote recording followed by an immediate tally of the proposal."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from fuelwise.db.transaction import atomic
from fuelwise.errors import ConflictError, NotFoundError
from fuelwise.models.proposal import Proposal
from fuelwise.models.review import Review
from fuelwise.schema.statuses import FINAL_PROPOSAL_STATUSES
from fuelwise.services.resolution import apply_resolution
from fuelwise.services.tally import TallyPolicy, VoteCounts, count_votes, evaluate_tally

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VoteResult:
    """Stored review plus the proposal state after the tally ran."""

    review: Review
    proposal_status: str
    tally_outcome: str
    counts: VoteCounts


def cast_vote(
    db: Session,
    proposal_id: int,
    *,
    reviewer_id: int,
    vote: str,
    comment: str | None = None,
    policy: TallyPolicy | None = None,
) -> VoteResult:
    """Upsert the reviewer's vote, then tally and resolve in the same transaction.

    Re-voting replaces the reviewer's earlier vote and comment. Only PENDING
    proposals accept votes.
    """

    active_policy = policy or TallyPolicy.from_settings()
    with atomic(db, conflict_message="Vote conflicted with a concurrent submission; retry."):
        proposal = db.scalar(select(Proposal).where(Proposal.id == proposal_id).with_for_update())
        if proposal is None:
            raise NotFoundError(f"Proposal {proposal_id} not found.")
        if proposal.status != "PENDING":
            raise ConflictError(f"Proposal {proposal_id} is no longer pending (status: {proposal.status}).")

        review = db.scalar(
            select(Review).where(
                Review.proposal_id == proposal_id,
                Review.reviewer_id == reviewer_id,
            )
        )
        if review is None:
            review = Review(proposal_id=proposal_id, reviewer_id=reviewer_id, vote=vote, comment=comment)
            db.add(review)
        else:
            review.vote = vote
            review.comment = comment
        db.flush()

        counts = count_votes(db, proposal_id)
        outcome = evaluate_tally(counts, active_policy)
        logger.info(
            "review.vote_recorded proposal_id=%s reviewer_id=%s vote=%s total=%s",
            proposal_id,
            reviewer_id,
            vote,
            counts.total,
        )

        if outcome == "PROTESTED":
            proposal.status = "PROTESTED"
            proposal.resolution_notes = counts.as_notes(outcome)
            logger.warning("review.protest_raised proposal_id=%s reviewer_id=%s", proposal_id, reviewer_id)
        elif outcome in FINAL_PROPOSAL_STATUSES:
            apply_resolution(db, proposal, outcome, counts=counts)
        db.flush()

    logger.info("review.tally_outcome proposal_id=%s outcome=%s", proposal_id, outcome)
    return VoteResult(review=review, proposal_status=proposal.status, tally_outcome=outcome, counts=counts)
