"""Vehicle ownership, access grants and ledger row locking."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from fuelwise.db.transaction import atomic
from fuelwise.errors import AccessDeniedError, ConflictError, NotFoundError
from fuelwise.models.user import User
from fuelwise.models.vehicle import Vehicle, VehicleAuthorization

logger = logging.getLogger(__name__)


def _normalize_plate(plate: str) -> str:
    return "".join(plate.split()).upper()


def create_vehicle(
    db: Session,
    *,
    owner_id: int,
    alias: str,
    plate: str,
    brand: str | None = None,
    model: str | None = None,
    year_manufacture: int | None = None,
    tank_capacity: Decimal | None = None,
    app_odometer: Decimal = Decimal("0"),
    app_fuel_tank: Decimal = Decimal("0"),
) -> Vehicle:
    clean_plate = _normalize_plate(plate)
    if db.scalar(select(Vehicle.id).where(Vehicle.plate == clean_plate)) is not None:
        raise ConflictError(f"A vehicle with plate {clean_plate} already exists.")

    with atomic(db, conflict_message=f"A vehicle with plate {clean_plate} already exists."):
        vehicle = Vehicle(
            owner_id=owner_id,
            alias=alias.strip(),
            plate=clean_plate,
            brand=brand,
            model=model,
            year_manufacture=year_manufacture,
            tank_capacity=tank_capacity,
            app_odometer=app_odometer,
            app_fuel_tank=app_fuel_tank,
        )
        db.add(vehicle)
        db.flush()
    logger.info("vehicle.created id=%s owner_id=%s", vehicle.id, owner_id)
    return vehicle


def user_can_access_vehicle(db: Session, vehicle: Vehicle, user_id: int) -> bool:
    if vehicle.owner_id == user_id:
        return True
    grant = db.scalar(
        select(VehicleAuthorization.id).where(
            VehicleAuthorization.vehicle_id == vehicle.id,
            VehicleAuthorization.user_id == user_id,
        )
    )
    return grant is not None


def get_vehicle_for_user(db: Session, vehicle_id: int, user_id: int) -> Vehicle:
    """Load a vehicle the user owns or was granted access to."""

    vehicle = db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError(f"Vehicle {vehicle_id} not found.")
    _ensure_access(db, vehicle, user_id)
    return vehicle


def load_vehicle_for_update(db: Session, vehicle_id: int, user_id: int) -> Vehicle:
    """Lock the vehicle row for the rest of the transaction after checking access.

    ``FOR UPDATE`` serializes concurrent ledger events on one vehicle; SQLite
    ignores the clause and relies on its database-level write lock.
    """

    vehicle = db.scalar(select(Vehicle).where(Vehicle.id == vehicle_id).with_for_update())
    if vehicle is None:
        raise NotFoundError(f"Vehicle {vehicle_id} not found.")
    _ensure_access(db, vehicle, user_id)
    return vehicle


def list_vehicles_for_user(db: Session, user_id: int) -> list[Vehicle]:
    granted = select(VehicleAuthorization.vehicle_id).where(VehicleAuthorization.user_id == user_id)
    return list(
        db.scalars(
            select(Vehicle)
            .where(or_(Vehicle.owner_id == user_id, Vehicle.id.in_(granted)))
            .order_by(Vehicle.id.asc())
        ).all()
    )


def grant_vehicle_access(db: Session, vehicle_id: int, *, owner_id: int, user_id: int) -> VehicleAuthorization:
    """Let another user log trips and fuelings against the owner's vehicle."""

    vehicle = db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError(f"Vehicle {vehicle_id} not found.")
    if vehicle.owner_id != owner_id:
        logger.warning("vehicle.grant_denied vehicle_id=%s user_id=%s", vehicle_id, owner_id)
        raise AccessDeniedError("Only the vehicle owner can grant access.")
    if user_id == owner_id:
        raise ConflictError("The owner already has access to this vehicle.")
    if db.get(User, user_id) is None:
        raise NotFoundError(f"User {user_id} not found.")

    with atomic(db, conflict_message="User already has access to this vehicle."):
        grant = VehicleAuthorization(vehicle_id=vehicle_id, user_id=user_id)
        db.add(grant)
        db.flush()
    logger.info("vehicle.access_granted vehicle_id=%s user_id=%s", vehicle_id, user_id)
    return grant


def _ensure_access(db: Session, vehicle: Vehicle, user_id: int) -> None:
    if not user_can_access_vehicle(db, vehicle, user_id):
        logger.warning("vehicle.access_denied vehicle_id=%s user_id=%s", vehicle.id, user_id)
        raise AccessDeniedError("You do not have access to this vehicle.")
