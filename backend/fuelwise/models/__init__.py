"""ORM models package exports."""

from fuelwise.models.fuel_type import FuelType
from fuelwise.models.fueling import Fueling
from fuelwise.models.gas_station import GasStation
from fuelwise.models.proposal import GasStationProposal, Proposal, StationPriceProposal
from fuelwise.models.review import Review
from fuelwise.models.role import Permission, Role, RolePermission
from fuelwise.models.station_price import StationPrice
from fuelwise.models.trip import Trip
from fuelwise.models.user import User
from fuelwise.models.vehicle import Vehicle, VehicleAuthorization

__all__ = [
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
    "GasStationProposal",
    "StationPriceProposal",
    "Review",
    "Trip",
    "Fueling",
]
