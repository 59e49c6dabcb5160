"""Controlled vocabularies shared by models, schemas and services."""

from fuelwise.schema.permissions import ROLE_PERMISSIONS
from fuelwise.schema.statuses import (
    FINAL_PROPOSAL_STATUSES,
    PROPOSAL_STATUS_VALUES,
    RESOLVABLE_PROPOSAL_STATUSES,
    REVIEW_VOTE_VALUES,
)

__all__ = [
    "FINAL_PROPOSAL_STATUSES",
    "PROPOSAL_STATUS_VALUES",
    "RESOLVABLE_PROPOSAL_STATUSES",
    "REVIEW_VOTE_VALUES",
    "ROLE_PERMISSIONS",
]
