"""Proposal and review request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fuelwise.schema.statuses import ResolutionOutcome, ReviewVote


class ProposalRead(BaseModel):
    """Serialized proposal."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    target_kind: str
    gas_station_id: int | None
    station_price_id: int | None
    proposer_id: int
    status: str
    reason_type: str
    reason: str | None
    proposed_data: dict[str, Any] | None
    resolution_notes: str | None
    resolved_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ProposalListItem(ProposalRead):
    """Proposal row with its current vote count."""

    review_count: int


class ReviewRead(BaseModel):
    """Serialized review vote."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    proposal_id: int
    reviewer_id: int
    vote: str
    comment: str | None
    created_at: datetime
    updated_at: datetime


class ProposalDetailRead(BaseModel):
    """Proposal with every review, newest first."""

    proposal: ProposalRead
    reviews: list[ReviewRead]


class VoteRequest(BaseModel):
    """Vote submission payload."""

    vote: ReviewVote
    comment: str | None = Field(default=None, max_length=2000)


class VoteResultRead(BaseModel):
    """Stored vote and the proposal status after tallying."""

    review: ReviewRead
    proposal_status: str
    tally_outcome: str
    accept_count: int
    reject_count: int
    protest_count: int


class ResolveRequest(BaseModel):
    """Manual resolution payload for reviewers holding ``proposal:resolve``."""

    outcome: ResolutionOutcome
    notes: str | None = Field(default=None, max_length=2000)
