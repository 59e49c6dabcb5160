"""Fuel type catalogue services."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fuelwise.db.transaction import atomic
from fuelwise.errors import ConflictError, NotFoundError
from fuelwise.models.fuel_type import FuelType

logger = logging.getLogger(__name__)


def list_fuel_types(db: Session) -> list[FuelType]:
    return list(db.scalars(select(FuelType).order_by(FuelType.name.asc())).all())


def get_fuel_type(db: Session, fuel_type_id: int) -> FuelType:
    fuel_type = db.get(FuelType, fuel_type_id)
    if fuel_type is None:
        raise NotFoundError(f"Fuel type {fuel_type_id} not found.")
    return fuel_type


def create_fuel_type(db: Session, name: str) -> FuelType:
    """Register a fuel type; names are unique case-insensitively."""

    clean_name = " ".join(name.split())
    existing = db.scalar(select(FuelType.id).where(func.lower(FuelType.name) == clean_name.lower()))
    if existing is not None:
        raise ConflictError(f"Fuel type '{clean_name}' already exists.")

    with atomic(db, conflict_message=f"Fuel type '{clean_name}' already exists."):
        fuel_type = FuelType(name=clean_name)
        db.add(fuel_type)
        db.flush()
    logger.info("fuel_type.created id=%s name=%s", fuel_type.id, fuel_type.name)
    return fuel_type
