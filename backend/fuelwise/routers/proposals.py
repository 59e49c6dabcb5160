"""Proposal review routes: listing, detail, voting and manual resolution."""

from typing import Literal

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from fuelwise.db.dependencies import get_db
from fuelwise.models.user import User
from fuelwise.schema.permissions import PROPOSAL_RESOLVE, USER_ANY
from fuelwise.schema.statuses import ProposalStatus
from fuelwise.schemas.common import ApiResponse, Page
from fuelwise.schemas.proposal import (
    ProposalDetailRead,
    ProposalListItem,
    ProposalRead,
    ResolveRequest,
    ReviewRead,
    VoteRequest,
    VoteResultRead,
)
from fuelwise.security import require_permissions
from fuelwise.services.proposals import get_proposal_detail, list_proposals
from fuelwise.services.resolution import resolve_proposal
from fuelwise.services.reviews import cast_vote

router = APIRouter()


@router.get("/proposals/{kind}", response_model=ApiResponse[Page[ProposalListItem]])
def get_proposals(
    kind: Literal["gas-station", "station-price"],
    status: ProposalStatus | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    _: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[Page[ProposalListItem]]:
    """List proposals of one kind, newest first."""

    page = list_proposals(db, kind, status=status, limit=limit, offset=offset)
    items = [
        ProposalListItem(**ProposalRead.model_validate(proposal).model_dump(), review_count=review_count)
        for proposal, review_count in page.items
    ]
    return ApiResponse(data=Page(items=items, total=page.total, limit=limit, offset=offset))


@router.get("/proposals/{kind}/{proposal_id}", response_model=ApiResponse[ProposalDetailRead])
def get_proposal(
    kind: Literal["gas-station", "station-price"],
    proposal_id: int = Path(..., ge=1),
    _: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[ProposalDetailRead]:
    proposal, reviews = get_proposal_detail(db, proposal_id, kind=kind)
    return ApiResponse(
        data=ProposalDetailRead(
            proposal=ProposalRead.model_validate(proposal),
            reviews=[ReviewRead.model_validate(review) for review in reviews],
        )
    )


@router.post("/proposals/{proposal_id}/vote", response_model=ApiResponse[VoteResultRead])
def vote_on_proposal(
    payload: VoteRequest,
    proposal_id: int = Path(..., ge=1),
    user: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[VoteResultRead]:
    """Record or replace the caller's vote, then tally the proposal."""

    result = cast_vote(db, proposal_id, reviewer_id=user.id, vote=payload.vote, comment=payload.comment)
    return ApiResponse(
        data=VoteResultRead(
            review=ReviewRead.model_validate(result.review),
            proposal_status=result.proposal_status,
            tally_outcome=result.tally_outcome,
            accept_count=result.counts.accept,
            reject_count=result.counts.reject,
            protest_count=result.counts.protest,
        )
    )


@router.post("/proposals/{proposal_id}/resolve", response_model=ApiResponse[ProposalRead])
def resolve(
    payload: ResolveRequest,
    proposal_id: int = Path(..., ge=1),
    user: User = Depends(require_permissions(PROPOSAL_RESOLVE)),
    db: Session = Depends(get_db),
) -> ApiResponse[ProposalRead]:
    """Manually resolve a pending or protested proposal."""

    proposal = resolve_proposal(db, proposal_id, payload.outcome, resolver_id=user.id, notes=payload.notes)
    return ApiResponse(data=ProposalRead.model_validate(proposal))
