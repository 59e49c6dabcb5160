"""SQLAlchemy metadata registry import for Alembic."""

from fuelwise.models import (
    Fueling,
    FuelType,
    GasStation,
    Permission,
    Proposal,
    Review,
    Role,
    RolePermission,
    StationPrice,
    Trip,
    User,
    Vehicle,
    VehicleAuthorization,
)
from fuelwise.models.base import Base

__all__ = [
    "Base",
    "Role",
    "Permission",
    "RolePermission",
    "User",
    "FuelType",
    "Vehicle",
    "VehicleAuthorization",
    "GasStation",
    "StationPrice",
    "Proposal",
    "Review",
    "Trip",
    "Fueling",
]
