"""Gas station and station price reads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fuelwise.errors import AccessDeniedError, NotFoundError
from fuelwise.models.fuel_type import FuelType
from fuelwise.models.gas_station import GasStation
from fuelwise.models.station_price import StationPrice

PUBLIC_STATION_STATUS = "ACTIVE"


@dataclass(slots=True)
class StationPage:
    items: list[GasStation]
    total: int


def get_station(db: Session, station_id: int, *, include_all: bool = False) -> GasStation:
    """Load one station; callers without ``station:read:any`` only see ACTIVE ones."""

    station = db.get(GasStation, station_id)
    if station is None or (not include_all and station.status != PUBLIC_STATION_STATUS):
        raise NotFoundError(f"Gas station {station_id} not found.")
    return station


def list_stations(
    db: Session,
    *,
    status: str | None = None,
    name: str | None = None,
    include_all: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> StationPage:
    if not include_all:
        if status not in (None, PUBLIC_STATION_STATUS):
            raise AccessDeniedError(f"Listing stations with status {status} requires station:read:any.")
        status = PUBLIC_STATION_STATUS

    filters = []
    if status is not None:
        filters.append(GasStation.status == status)
    clean_name = (name or "").strip()
    if clean_name:
        filters.append(func.lower(GasStation.name).contains(clean_name.lower()))

    total = db.scalar(select(func.count(GasStation.id)).where(*filters)) or 0
    rows = db.scalars(
        select(GasStation)
        .where(*filters)
        .order_by(GasStation.name.asc(), GasStation.id.asc())
        .limit(limit)
        .offset(offset)
    ).all()
    return StationPage(items=list(rows), total=int(total))


def latest_station_price(db: Session, station_id: int, fuel_type_id: int) -> StationPrice | None:
    """Most recently reported, non-rejected price for one fuel type at a station.

    Recency wins over the stored status, so a superseded price whose status
    still says ACTIVE is never returned ahead of a newer report.
    """

    return db.scalar(
        select(StationPrice)
        .where(
            StationPrice.gas_station_id == station_id,
            StationPrice.fuel_type_id == fuel_type_id,
            StationPrice.status != "REJECTED",
        )
        .order_by(StationPrice.reported_at.desc(), StationPrice.id.desc())
        .limit(1)
    )


def latest_prices_for_station(db: Session, station_id: int) -> list[tuple[StationPrice, str]]:
    """Latest usable price per fuel type, paired with the fuel type name."""

    rows = db.execute(
        select(StationPrice, FuelType.name)
        .join(FuelType, FuelType.id == StationPrice.fuel_type_id)
        .where(
            StationPrice.gas_station_id == station_id,
            StationPrice.status != "REJECTED",
        )
        .order_by(
            StationPrice.fuel_type_id.asc(),
            StationPrice.reported_at.desc(),
            StationPrice.id.desc(),
        )
    ).all()

    latest: list[tuple[StationPrice, str]] = []
    seen_fuel_types: set[int] = set()
    for price, fuel_type_name in rows:
        if price.fuel_type_id in seen_fuel_types:
            continue
        seen_fuel_types.add(price.fuel_type_id)
        latest.append((price, fuel_type_name))
    return latest


# Columns covered by uq_gas_stations_name_address.
STATION_IDENTITY_FIELDS: tuple[str, ...] = ("name", "street", "number", "city", "state")


def find_identity_conflict(db: Session, station: GasStation, changes: dict[str, Any]) -> int | None:
    """Id of another station that would share name and address after ``changes``, if any."""

    if not changes.keys() & set(STATION_IDENTITY_FIELDS):
        return None
    merged = {field: changes.get(field, getattr(station, field)) for field in STATION_IDENTITY_FIELDS}
    return db.scalar(
        select(GasStation.id)
        .where(
            GasStation.id != station.id,
            *(getattr(GasStation, field) == value for field, value in merged.items()),
        )
        .limit(1)
    )
