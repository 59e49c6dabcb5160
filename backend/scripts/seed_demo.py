"""Seed roles, demo users, fuel types, a vehicle and a station under review.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal
from pathlib import Path

from sqlalchemy import select

# Make `fuelwise` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from fuelwise.db.session import SessionLocal
from fuelwise.models.fuel_type import FuelType
from fuelwise.models.gas_station import GasStation
from fuelwise.models.user import User
from fuelwise.models.vehicle import Vehicle
from fuelwise.schema.permissions import ADMIN_ROLE, BASIC_USER_ROLE
from fuelwise.schemas.station import GasStationCreateRequest, StationPriceInput
from fuelwise.security import create_access_token
from fuelwise.services.permissions import sync_role_permissions
from fuelwise.services.proposals import propose_station_creation
from fuelwise.services.vehicles import create_vehicle

DEMO_FUEL_TYPES = ("Gasolina Comum", "Etanol", "Diesel S10")
DEMO_REVIEWERS = 5


def ensure_user(db, username: str, role_id: int) -> User:
    user = db.scalar(select(User).where(User.username == username))
    if user is None:
        user = User(username=username, email=f"{username}@example.com", role_id=role_id)
        db.add(user)
        db.commit()
    return user


def ensure_fuel_types(db) -> list[FuelType]:
    rows = []
    for name in DEMO_FUEL_TYPES:
        fuel_type = db.scalar(select(FuelType).where(FuelType.name == name))
        if fuel_type is None:
            fuel_type = FuelType(name=name)
            db.add(fuel_type)
            db.commit()
        rows.append(fuel_type)
    return rows


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo users, catalogue data and a station under review.")
    parser.add_argument(
        "--reviewers",
        type=int,
        default=DEMO_REVIEWERS,
        help=f"Number of basic reviewer accounts to create (default: {DEMO_REVIEWERS})",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print bearer tokens for each account."""

    args = parse_args()
    with SessionLocal() as db:
        roles = sync_role_permissions(db)
        admin = ensure_user(db, "admin", roles[ADMIN_ROLE].id)
        reviewers = [ensure_user(db, f"reviewer{idx}", roles[BASIC_USER_ROLE].id) for idx in range(1, args.reviewers + 1)]
        fuel_types = ensure_fuel_types(db)

        vehicle = db.scalar(select(Vehicle).where(Vehicle.plate == "DEM0A01"))
        if vehicle is None:
            vehicle = create_vehicle(
                db,
                owner_id=admin.id,
                alias="Demo car",
                plate="DEM0A01",
                brand="Fiat",
                model="Uno",
                app_fuel_tank=Decimal("20"),
            )

        station = db.scalar(select(GasStation).where(GasStation.name == "Posto Demo"))
        if station is None:
            result = propose_station_creation(
                db,
                GasStationCreateRequest(
                    name="Posto Demo",
                    latitude=-23.5505,
                    longitude=-46.6333,
                    street="Avenida Paulista",
                    number="1000",
                    neighborhood="Bela Vista",
                    city="Sao Paulo",
                    state="SP",
                    postal_code="01310-100",
                    station_prices=[
                        StationPriceInput(fuel_type_id=fuel_types[0].id, price=Decimal("5.790")),
                        StationPriceInput(fuel_type_id=fuel_types[1].id, price=Decimal("3.890")),
                    ],
                    reason="Seeded demo station",
                ),
                proposer_id=admin.id,
            )
            station = result.station

        print("Seed complete")
        print(f"vehicle_id={vehicle.id}")
        print(f"station_id={station.id} status={station.status}")
        print()
        print("Bearer tokens:")
        for user in (admin, *reviewers):
            print(f"  {user.username}: {create_access_token(user.id, user.role_id)}")
        print()
        print("Try:")
        print("  GET /proposals/gas-station?status=PENDING")
        print("  POST /proposals/{id}/vote  {\"vote\": \"ACCEPT\"}")


if __name__ == "__main__":
    main()
