"""Permission names checked by route dependencies."""

from __future__ import annotations

USER_ANY = "user:common:any"
STATION_READ_ANY = "station:read:any"
PROPOSAL_RESOLVE = "proposal:resolve"
FUEL_TYPE_CREATE = "fuel_type:create"

PERMISSION_DESCRIPTIONS: dict[str, str] = {
    USER_ANY: "Baseline community member access (vehicles, trips, fuelings, proposals, votes).",
    STATION_READ_ANY: "Read stations in every status, not only ACTIVE ones.",
    PROPOSAL_RESOLVE: "Manually resolve pending or protested proposals.",
    FUEL_TYPE_CREATE: "Register new fuel types.",
}

BASIC_USER_ROLE = "BASIC_USER"
ADMIN_ROLE = "ADMIN"

ROLE_PERMISSIONS: dict[str, tuple[str, ...]] = {
    BASIC_USER_ROLE: (USER_ANY,),
    ADMIN_ROLE: tuple(PERMISSION_DESCRIPTIONS),
}
