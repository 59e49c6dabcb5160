"""Vehicle odometer/fuel-tank ledger driven by trips and fuelings.

Each event row and its effect on the vehicle are written in one transaction.
The vehicle row is locked first, its tank level is snapshotted onto the event,
and the vehicle is then moved by a SQL-side increment. Updates apply only the
difference between the old and new effect; deletes apply the inverse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from fuelwise.db.transaction import atomic
from fuelwise.errors import AccessDeniedError, InternalInconsistencyError, NotFoundError, ValidationError
from fuelwise.models.fuel_type import FuelType
from fuelwise.models.fueling import Fueling
from fuelwise.models.gas_station import GasStation
from fuelwise.models.trip import Trip
from fuelwise.models.vehicle import Vehicle
from fuelwise.schemas.fueling import FuelingCreateRequest, FuelingUpdateRequest
from fuelwise.schemas.trip import TripCreateRequest, TripUpdateRequest, as_utc
from fuelwise.services.stations import PUBLIC_STATION_STATUS, latest_station_price
from fuelwise.services.vehicles import get_vehicle_for_user, load_vehicle_for_update

logger = logging.getLogger(__name__)

FUEL_QUANT = Decimal("0.00001")
ZERO = Decimal("0")


@dataclass(slots=True)
class LedgerPage:
    items: list
    total: int


def compute_fuel_consumed(distance: Decimal, consumption_rate: Decimal) -> Decimal:
    """``distance / consumption_rate`` rounded half-up to five places."""

    if not distance.is_finite() or distance <= 0:
        raise ValidationError.for_field("distance", "Distance must be a positive number.")
    if not consumption_rate.is_finite() or consumption_rate <= 0:
        raise ValidationError.for_field("consumption_rate_used", "Consumption rate must be a positive number.")
    fuel_consumed = (distance / consumption_rate).quantize(FUEL_QUANT, rounding=ROUND_HALF_UP)
    if fuel_consumed <= 0:
        raise ValidationError.for_field(
            "consumption_rate_used",
            "Computed fuel consumed rounds to zero; check distance and consumption rate.",
        )
    return fuel_consumed


def compute_fueling_volume(cost: Decimal, price_per_liter: Decimal) -> Decimal:
    if not price_per_liter.is_finite() or price_per_liter <= 0:
        raise ValidationError.for_field("price_per_liter", "Price per liter must be a positive number.")
    if not cost.is_finite() or cost < 0:
        raise ValidationError.for_field("cost", "Cost must be a non-negative number.")
    return (cost / price_per_liter).quantize(FUEL_QUANT, rounding=ROUND_HALF_UP)


def resolve_price_per_liter(
    db: Session,
    *,
    gas_station_id: int | None,
    fuel_type_id: int,
    caller_price: Decimal | None,
) -> Decimal:
    """Pick the price used to turn cost into volume.

    An ACTIVE linked station's latest non-rejected price wins over the
    caller's price. The caller's price is used when there is no station, when
    the station is not ACTIVE, or when it has no usable price for that fuel
    type.
    """

    if gas_station_id is not None:
        station = db.get(GasStation, gas_station_id)
        if station is None:
            raise NotFoundError(f"Gas station {gas_station_id} not found.")
        station_price = None
        if station.status == PUBLIC_STATION_STATUS:
            station_price = latest_station_price(db, gas_station_id, fuel_type_id)
        if station_price is not None:
            if caller_price is not None and caller_price != station_price.price:
                logger.warning(
                    "ledger.price_mismatch station_id=%s fuel_type_id=%s station_price=%s caller_price=%s",
                    gas_station_id,
                    fuel_type_id,
                    station_price.price,
                    caller_price,
                )
            return station_price.price
    if caller_price is None:
        raise ValidationError.for_field(
            "price_per_liter",
            "price_per_liter is required when no station price is available.",
        )
    return caller_price


def create_trip(db: Session, vehicle_id: int, payload: TripCreateRequest, *, user_id: int) -> Trip:
    fuel_consumed = compute_fuel_consumed(payload.distance, payload.consumption_rate_used)
    with atomic(db):
        vehicle = load_vehicle_for_update(db, vehicle_id, user_id)
        trip = Trip(
            vehicle_id=vehicle.id,
            user_id=user_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            distance=payload.distance,
            consumption_rate_used=payload.consumption_rate_used,
            fuel_consumed=fuel_consumed,
            moment_app_fuel_tank=vehicle.app_fuel_tank,
            route_path=payload.route_path,
            notes=payload.notes,
        )
        db.add(trip)
        db.flush()
        _apply_vehicle_delta(db, vehicle, odometer_delta=payload.distance, tank_delta=-fuel_consumed)
    logger.info(
        "ledger.trip_created trip_id=%s vehicle_id=%s distance=%s fuel_consumed=%s",
        trip.id,
        vehicle_id,
        payload.distance,
        fuel_consumed,
    )
    return trip


def update_trip(
    db: Session,
    vehicle_id: int,
    trip_id: int,
    payload: TripUpdateRequest,
    *,
    user_id: int,
) -> Trip:
    with atomic(db):
        vehicle = load_vehicle_for_update(db, vehicle_id, user_id)
        trip = _load_trip_for_change(db, vehicle_id, trip_id, user_id)

        new_distance = payload.distance if payload.distance is not None else trip.distance
        new_rate = (
            payload.consumption_rate_used if payload.consumption_rate_used is not None else trip.consumption_rate_used
        )
        new_fuel_consumed = compute_fuel_consumed(new_distance, new_rate)
        distance_delta = new_distance - trip.distance
        fuel_delta = new_fuel_consumed - trip.fuel_consumed

        start_time = payload.start_time or trip.start_time
        end_time = payload.end_time or trip.end_time
        if as_utc(end_time) < as_utc(start_time):
            raise ValidationError.for_field("end_time", "end_time must not be before start_time.")

        trip.start_time = start_time
        trip.end_time = end_time
        trip.distance = new_distance
        trip.consumption_rate_used = new_rate
        trip.fuel_consumed = new_fuel_consumed
        if "route_path" in payload.model_fields_set:
            trip.route_path = payload.route_path
        if "notes" in payload.model_fields_set:
            trip.notes = payload.notes
        db.flush()
        if distance_delta or fuel_delta:
            _apply_vehicle_delta(db, vehicle, odometer_delta=distance_delta, tank_delta=-fuel_delta)
    logger.info(
        "ledger.trip_updated trip_id=%s vehicle_id=%s distance_delta=%s fuel_delta=%s",
        trip_id,
        vehicle_id,
        distance_delta,
        fuel_delta,
    )
    return trip


def delete_trip(db: Session, vehicle_id: int, trip_id: int, *, user_id: int) -> None:
    with atomic(db):
        vehicle = load_vehicle_for_update(db, vehicle_id, user_id)
        trip = _load_trip_for_change(db, vehicle_id, trip_id, user_id)
        distance = trip.distance
        fuel_consumed = trip.fuel_consumed
        db.delete(trip)
        db.flush()
        _apply_vehicle_delta(db, vehicle, odometer_delta=-distance, tank_delta=fuel_consumed)
    logger.info(
        "ledger.trip_deleted trip_id=%s vehicle_id=%s distance=%s fuel_restored=%s",
        trip_id,
        vehicle_id,
        distance,
        fuel_consumed,
    )


def get_trip(db: Session, vehicle_id: int, trip_id: int, *, user_id: int) -> Trip:
    get_vehicle_for_user(db, vehicle_id, user_id)
    trip = db.get(Trip, trip_id)
    if trip is None or trip.vehicle_id != vehicle_id:
        raise NotFoundError(f"Trip {trip_id} not found for vehicle {vehicle_id}.")
    return trip


def list_trips(
    db: Session,
    vehicle_id: int,
    *,
    user_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 50,
    offset: int = 0,
) -> LedgerPage:
    get_vehicle_for_user(db, vehicle_id, user_id)
    filters = [Trip.vehicle_id == vehicle_id]
    if start is not None:
        filters.append(Trip.start_time >= start)
    if end is not None:
        filters.append(Trip.start_time <= end)
    total = db.scalar(select(func.count(Trip.id)).where(*filters)) or 0
    rows = db.scalars(
        select(Trip).where(*filters).order_by(Trip.start_time.desc(), Trip.id.desc()).limit(limit).offset(offset)
    ).all()
    return LedgerPage(items=list(rows), total=int(total))


def create_fueling(db: Session, vehicle_id: int, payload: FuelingCreateRequest, *, user_id: int) -> Fueling:
    get_vehicle_for_user(db, vehicle_id, user_id)
    if db.get(FuelType, payload.fuel_type_id) is None:
        raise NotFoundError(f"Fuel type {payload.fuel_type_id} not found.")
    price_per_liter = resolve_price_per_liter(
        db,
        gas_station_id=payload.gas_station_id,
        fuel_type_id=payload.fuel_type_id,
        caller_price=payload.price_per_liter,
    )
    volume = compute_fueling_volume(payload.cost, price_per_liter)

    with atomic(db):
        vehicle = load_vehicle_for_update(db, vehicle_id, user_id)
        fueling = Fueling(
            vehicle_id=vehicle.id,
            user_id=user_id,
            fuel_type_id=payload.fuel_type_id,
            gas_station_id=payload.gas_station_id,
            cost=payload.cost,
            price_per_liter=price_per_liter,
            volume=volume,
            moment_app_fuel_tank=vehicle.app_fuel_tank,
            latitude=payload.latitude,
            longitude=payload.longitude,
            timestamp=payload.timestamp or datetime.now(timezone.utc),
        )
        db.add(fueling)
        db.flush()
        _apply_vehicle_delta(db, vehicle, odometer_delta=ZERO, tank_delta=volume)
    logger.info(
        "ledger.fueling_created fueling_id=%s vehicle_id=%s price_per_liter=%s volume=%s",
        fueling.id,
        vehicle_id,
        price_per_liter,
        volume,
    )
    return fueling


def update_fueling(
    db: Session,
    vehicle_id: int,
    fueling_id: int,
    payload: FuelingUpdateRequest,
    *,
    user_id: int,
) -> Fueling:
    """Apply a partial update; the price is re-resolved only if its inputs changed."""

    changed = payload.model_fields_set
    with atomic(db):
        vehicle = load_vehicle_for_update(db, vehicle_id, user_id)
        fueling = _load_fueling_for_change(db, vehicle_id, fueling_id, user_id)

        fuel_type_id = payload.fuel_type_id if payload.fuel_type_id is not None else fueling.fuel_type_id
        if "fuel_type_id" in changed and db.get(FuelType, fuel_type_id) is None:
            raise NotFoundError(f"Fuel type {fuel_type_id} not found.")
        gas_station_id = payload.gas_station_id if "gas_station_id" in changed else fueling.gas_station_id
        cost = payload.cost if payload.cost is not None else fueling.cost

        if changed & {"fuel_type_id", "gas_station_id", "price_per_liter"}:
            caller_price = payload.price_per_liter
            if caller_price is None and gas_station_id is None:
                caller_price = fueling.price_per_liter
            price_per_liter = resolve_price_per_liter(
                db,
                gas_station_id=gas_station_id,
                fuel_type_id=fuel_type_id,
                caller_price=caller_price,
            )
        else:
            price_per_liter = fueling.price_per_liter
        new_volume = compute_fueling_volume(cost, price_per_liter)
        volume_delta = new_volume - fueling.volume

        fueling.fuel_type_id = fuel_type_id
        fueling.gas_station_id = gas_station_id
        fueling.cost = cost
        fueling.price_per_liter = price_per_liter
        fueling.volume = new_volume
        if payload.latitude is not None:
            fueling.latitude = payload.latitude
        if payload.longitude is not None:
            fueling.longitude = payload.longitude
        if payload.timestamp is not None:
            fueling.timestamp = payload.timestamp
        db.flush()
        if volume_delta:
            _apply_vehicle_delta(db, vehicle, odometer_delta=ZERO, tank_delta=volume_delta)
    logger.info(
        "ledger.fueling_updated fueling_id=%s vehicle_id=%s volume_delta=%s",
        fueling_id,
        vehicle_id,
        volume_delta,
    )
    return fueling


def delete_fueling(db: Session, vehicle_id: int, fueling_id: int, *, user_id: int) -> None:
    """Delete a fueling and take its volume back out of the tank."""

    with atomic(db):
        vehicle = load_vehicle_for_update(db, vehicle_id, user_id)
        fueling = _load_fueling_for_change(db, vehicle_id, fueling_id, user_id)
        volume = fueling.volume
        db.delete(fueling)
        db.flush()
        _apply_vehicle_delta(db, vehicle, odometer_delta=ZERO, tank_delta=-volume)
    logger.info("ledger.fueling_deleted fueling_id=%s vehicle_id=%s volume_removed=%s", fueling_id, vehicle_id, volume)


def get_fueling(db: Session, vehicle_id: int, fueling_id: int, *, user_id: int) -> Fueling:
    get_vehicle_for_user(db, vehicle_id, user_id)
    fueling = db.get(Fueling, fueling_id)
    if fueling is None or fueling.vehicle_id != vehicle_id:
        raise NotFoundError(f"Fueling {fueling_id} not found for vehicle {vehicle_id}.")
    return fueling


def list_fuelings(
    db: Session,
    vehicle_id: int,
    *,
    user_id: int,
    limit: int = 50,
    offset: int = 0,
) -> LedgerPage:
    get_vehicle_for_user(db, vehicle_id, user_id)
    total = db.scalar(select(func.count(Fueling.id)).where(Fueling.vehicle_id == vehicle_id)) or 0
    rows = db.scalars(
        select(Fueling)
        .where(Fueling.vehicle_id == vehicle_id)
        .order_by(Fueling.timestamp.desc(), Fueling.id.desc())
        .limit(limit)
        .offset(offset)
    ).all()
    return LedgerPage(items=list(rows), total=int(total))


def _load_trip_for_change(db: Session, vehicle_id: int, trip_id: int, user_id: int) -> Trip:
    trip = db.get(Trip, trip_id)
    if trip is None:
        raise NotFoundError(f"Trip {trip_id} not found.")
    if trip.vehicle_id != vehicle_id:
        raise ValidationError.for_field("path.trip_id", "Trip does not belong to this vehicle.")
    if trip.user_id != user_id:
        raise AccessDeniedError("Only the user who logged this trip can change it.")
    return trip


def _load_fueling_for_change(db: Session, vehicle_id: int, fueling_id: int, user_id: int) -> Fueling:
    fueling = db.get(Fueling, fueling_id)
    if fueling is None:
        raise NotFoundError(f"Fueling {fueling_id} not found.")
    if fueling.vehicle_id != vehicle_id:
        raise ValidationError.for_field("path.fueling_id", "Fueling does not belong to this vehicle.")
    if fueling.user_id != user_id:
        raise AccessDeniedError("Only the user who logged this fueling can change it.")
    return fueling


def _apply_vehicle_delta(
    db: Session,
    vehicle: Vehicle,
    *,
    odometer_delta: Decimal,
    tank_delta: Decimal,
) -> Vehicle:
    """Move the vehicle ledger by the given amounts with a SQL-side increment."""

    result = db.execute(
        update(Vehicle)
        .where(Vehicle.id == vehicle.id)
        .values(
            app_odometer=Vehicle.app_odometer + odometer_delta,
            app_fuel_tank=Vehicle.app_fuel_tank + tank_delta,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.error("ledger.vehicle_update_failed vehicle_id=%s rowcount=%s", vehicle.id, result.rowcount)
        raise InternalInconsistencyError(f"Vehicle {vehicle.id} could not be updated.")

    db.refresh(vehicle)
    if vehicle.app_fuel_tank < 0:
        logger.warning("ledger.negative_tank vehicle_id=%s app_fuel_tank=%s", vehicle.id, vehicle.app_fuel_tank)
    return vehicle
