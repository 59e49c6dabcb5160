"""Controlled status and vote vocabularies for community data and proposals."""

from __future__ import annotations

from typing import Literal

GasStationStatus = Literal["UNDER_REVIEW", "ACTIVE", "INACTIVE", "REJECTED"]
StationPriceStatus = Literal["UNDER_REVIEW", "ACTIVE", "REJECTED", "OUTDATED"]
ProposalStatus = Literal["PENDING", "VERIFIED", "REJECTED", "PROTESTED"]
ProposalReasonType = Literal["INITIAL_CREATION", "DATA_UPDATE"]
ReviewVote = Literal["ACCEPT", "REJECT", "PROTEST"]
TallyOutcome = Literal["PENDING", "VERIFIED", "REJECTED", "PROTESTED"]
ResolutionOutcome = Literal["VERIFIED", "REJECTED"]
ProposalTargetKind = Literal["gas_station", "station_price"]

GAS_STATION_STATUS_VALUES: tuple[str, ...] = ("UNDER_REVIEW", "ACTIVE", "INACTIVE", "REJECTED")
STATION_PRICE_STATUS_VALUES: tuple[str, ...] = ("UNDER_REVIEW", "ACTIVE", "REJECTED", "OUTDATED")
PROPOSAL_STATUS_VALUES: tuple[str, ...] = ("PENDING", "VERIFIED", "REJECTED", "PROTESTED")
REVIEW_VOTE_VALUES: tuple[str, ...] = ("ACCEPT", "REJECT", "PROTEST")

# Proposals in these states can still be resolved; anything else is final.
RESOLVABLE_PROPOSAL_STATUSES = frozenset({"PENDING", "PROTESTED"})
FINAL_PROPOSAL_STATUSES = frozenset({"VERIFIED", "REJECTED"})
