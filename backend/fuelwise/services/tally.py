"""Quorum/consensus tally for community proposals."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fuelwise.config import get_settings
from fuelwise.models.review import Review


@dataclass(slots=True, frozen=True)
class VoteCounts:
    """Current votes on one proposal, one per reviewer."""

    accept: int = 0
    reject: int = 0
    protest: int = 0

    @property
    def total(self) -> int:
        return self.accept + self.reject + self.protest

    def as_notes(self, outcome: str) -> str:
        return f"tally ACCEPT={self.accept} REJECT={self.reject} PROTEST={self.protest}; outcome={outcome}"


@dataclass(slots=True, frozen=True)
class TallyPolicy:
    """Quorum ``quorum`` (minimum votes) and consensus ``consensus_threshold``.

    The threshold must lie in (0.5, 1] so that a proposal can never meet the
    VERIFIED and REJECTED conditions at the same time.
    """

    quorum: int = 5
    consensus_threshold: Fraction | float = Fraction(3, 5)

    def __post_init__(self) -> None:
        if self.quorum < 1:
            raise ValueError("quorum must be >= 1")
        threshold = self.threshold
        if not Fraction(1, 2) < threshold <= 1:
            raise ValueError("consensus_threshold must be in (0.5, 1]")

    @property
    def threshold(self) -> Fraction:
        # str() keeps 0.6 as 3/5 instead of its binary float expansion.
        if isinstance(self.consensus_threshold, Fraction):
            return self.consensus_threshold
        return Fraction(str(self.consensus_threshold))

    @classmethod
    def from_settings(cls) -> "TallyPolicy":
        settings = get_settings()
        return cls(
            quorum=settings.review_quorum,
            consensus_threshold=settings.review_consensus_threshold,
        )


def evaluate_tally(counts: VoteCounts, policy: TallyPolicy) -> str:
    """Map vote counts to PENDING, PROTESTED, VERIFIED or REJECTED.

    A single protest wins over everything else, then quorum is checked, then
    the accept ratio among non-protest votes is compared to the threshold in
    both directions.
    """

    if counts.protest > 0:
        return "PROTESTED"
    if counts.total < policy.quorum:
        return "PENDING"

    decisive = counts.accept + counts.reject
    if decisive == 0:
        return "PENDING"
    accept_ratio = Fraction(counts.accept, decisive)
    if accept_ratio >= policy.threshold:
        return "VERIFIED"
    if 1 - accept_ratio >= policy.threshold:
        return "REJECTED"
    return "PENDING"


def count_votes(db: Session, proposal_id: int) -> VoteCounts:
    rows = db.execute(
        select(Review.vote, func.count(Review.id))
        .where(Review.proposal_id == proposal_id)
        .group_by(Review.vote)
    ).all()
    by_vote = {vote: int(count) for vote, count in rows}
    return VoteCounts(
        accept=by_vote.get("ACCEPT", 0),
        reject=by_vote.get("REJECT", 0),
        protest=by_vote.get("PROTEST", 0),
    )
