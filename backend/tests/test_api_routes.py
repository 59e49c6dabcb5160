"""HTTP-level tests for routing, auth and error envelopes."""

from __future__ import annotations

import unittest
from collections.abc import Iterator
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fuelwise.db.dependencies import get_db
from fuelwise.db.session import build_engine
from fuelwise.main import app
from fuelwise.models.base import Base
from fuelwise.models.fuel_type import FuelType
from fuelwise.models.gas_station import GasStation
from fuelwise.models.user import User
from fuelwise.models.vehicle import Vehicle
from fuelwise.schema.permissions import ADMIN_ROLE, BASIC_USER_ROLE
from fuelwise.security import create_access_token
from fuelwise.services.permissions import get_permission_cache, sync_role_permissions

STATION_BODY = {
    "name": "Posto Esquina",
    "latitude": -30.0346,
    "longitude": -51.2177,
    "street": "Rua dos Andradas",
    "number": "1234",
    "neighborhood": "Centro Historico",
    "city": "Porto Alegre",
    "state": "rs",
    "postal_code": "90020-008",
    "reason": "Station on my way to work",
}


class ApiRoutesTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = build_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

        def override_get_db() -> Iterator[Session]:
            db = cls.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls) -> None:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        for table in reversed(Base.metadata.sorted_tables):
            self.db.execute(table.delete())
        self.db.commit()
        get_permission_cache().invalidate()

        roles = sync_role_permissions(self.db)
        self.admin = User(username="admin", role_id=roles[ADMIN_ROLE].id)
        self.members = [User(username=f"member{idx}", role_id=roles[BASIC_USER_ROLE].id) for idx in range(6)]
        self.gasoline = FuelType(name="Gasolina")
        self.db.add_all([self.admin, *self.members, self.gasoline])
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def _auth(self, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role_id)}"}

    def _create_station(self, user: User, **overrides) -> dict:
        body = {**STATION_BODY, "station_prices": [{"fuel_type_id": self.gasoline.id, "price": "5.490"}], **overrides}
        response = self.client.post("/stations", json=body, headers=self._auth(user))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["data"]

    def test_missing_or_invalid_token_is_unauthorized(self) -> None:
        response = self.client.get("/fuel-types")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["status"], "fail")
        self.assertEqual(response.headers.get("www-authenticate"), "Bearer")

        response = self.client.get("/fuel-types", headers={"Authorization": "Bearer not-a-token"})
        self.assertEqual(response.status_code, 401)

    def test_station_creation_envelope_and_duplicate_conflict(self) -> None:
        data = self._create_station(self.members[0])

        self.assertEqual(data["station"]["status"], "UNDER_REVIEW")
        self.assertEqual(data["station"]["state"], "RS")
        self.assertEqual(data["proposal"]["status"], "PENDING")
        self.assertEqual(data["proposal"]["target_kind"], "gas_station")
        self.assertEqual(len(data["price_proposals"]), 1)

        response = self.client.post(
            "/stations",
            json={**STATION_BODY, "station_prices": []},
            headers=self._auth(self.members[1]),
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["status"], "fail")

    def test_invalid_body_reports_field_paths(self) -> None:
        response = self.client.post(
            "/stations",
            json={**STATION_BODY, "station_prices": [{"fuel_type_id": self.gasoline.id, "price": "-1"}]},
            headers=self._auth(self.members[0]),
        )

        self.assertEqual(response.status_code, 400)
        paths = [error["path"] for error in response.json()["errors"]]
        self.assertIn("body.station_prices.0.price", paths)

    def test_unknown_fuel_type_is_validation_error_with_path(self) -> None:
        response = self.client.post(
            "/stations",
            json={**STATION_BODY, "station_prices": [{"fuel_type_id": 999, "price": "5.000"}]},
            headers=self._auth(self.members[0]),
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["path"], "station_prices.0.fuel_type_id")

    def test_votes_reach_consensus_and_then_conflict(self) -> None:
        data = self._create_station(self.members[0])
        proposal_id = data["proposal"]["id"]

        for member in self.members[:5]:
            response = self.client.post(
                f"/proposals/{proposal_id}/vote",
                json={"vote": "ACCEPT"},
                headers=self._auth(member),
            )
            self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["data"]["proposal_status"], "VERIFIED")
        self.assertEqual(response.json()["data"]["accept_count"], 5)

        response = self.client.post(
            f"/proposals/{proposal_id}/vote",
            json={"vote": "REJECT"},
            headers=self._auth(self.members[5]),
        )
        self.assertEqual(response.status_code, 409)

        response = self.client.get(f"/stations/{data['station']['id']}", headers=self._auth(self.members[5]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "ACTIVE")

    def test_manual_resolution_requires_permission(self) -> None:
        data = self._create_station(self.members[0])
        proposal_id = data["proposal"]["id"]
        self.client.post(f"/proposals/{proposal_id}/vote", json={"vote": "PROTEST"}, headers=self._auth(self.members[1]))

        response = self.client.post(
            f"/proposals/{proposal_id}/resolve",
            json={"outcome": "REJECTED"},
            headers=self._auth(self.members[2]),
        )
        self.assertEqual(response.status_code, 403)

        response = self.client.post(
            f"/proposals/{proposal_id}/resolve",
            json={"outcome": "REJECTED", "notes": "Address does not exist"},
            headers=self._auth(self.admin),
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["data"]["status"], "REJECTED")

        response = self.client.post(
            f"/proposals/{proposal_id}/resolve",
            json={"outcome": "VERIFIED"},
            headers=self._auth(self.admin),
        )
        self.assertEqual(response.status_code, 409)

    def test_station_visibility_depends_on_permission(self) -> None:
        data = self._create_station(self.members[0])
        station_id = data["station"]["id"]

        response = self.client.get("/stations", headers=self._auth(self.members[1]))
        self.assertEqual(response.json()["data"]["total"], 0)
        response = self.client.get(f"/stations/{station_id}", headers=self._auth(self.members[1]))
        self.assertEqual(response.status_code, 404)

        response = self.client.get("/stations?status=UNDER_REVIEW", headers=self._auth(self.admin))
        self.assertEqual(response.json()["data"]["total"], 1)
        response = self.client.get(f"/stations/{station_id}/prices", headers=self._auth(self.admin))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"][0]["fuel_type_name"], "Gasolina")

    def test_proposal_listing_includes_review_counts(self) -> None:
        data = self._create_station(self.members[0])
        proposal_id = data["proposal"]["id"]
        self.client.post(f"/proposals/{proposal_id}/vote", json={"vote": "ACCEPT"}, headers=self._auth(self.members[1]))

        response = self.client.get("/proposals/gas-station?status=PENDING", headers=self._auth(self.members[2]))
        self.assertEqual(response.status_code, 200)
        items = response.json()["data"]["items"]
        self.assertEqual([(item["id"], item["review_count"]) for item in items], [(proposal_id, 1)])

        response = self.client.get(f"/proposals/gas-station/{proposal_id}", headers=self._auth(self.members[2]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["data"]["reviews"]), 1)

        response = self.client.get("/proposals/unknown-kind", headers=self._auth(self.members[2]))
        self.assertEqual(response.status_code, 400)

    def test_fuel_type_creation_is_admin_only(self) -> None:
        response = self.client.post("/fuel-types", json={"name": "GNV"}, headers=self._auth(self.members[0]))
        self.assertEqual(response.status_code, 403)

        response = self.client.post("/fuel-types", json={"name": "GNV"}, headers=self._auth(self.admin))
        self.assertEqual(response.status_code, 201)
        response = self.client.post("/fuel-types", json={"name": "gnv"}, headers=self._auth(self.admin))
        self.assertEqual(response.status_code, 409)

    def test_vehicle_ledger_routes(self) -> None:
        owner, stranger = self.members[0], self.members[1]
        response = self.client.post(
            "/vehicles",
            json={"alias": "Daily", "plate": "RST2A34", "app_fuel_tank": "50"},
            headers=self._auth(owner),
        )
        self.assertEqual(response.status_code, 201, response.text)
        vehicle_id = response.json()["data"]["id"]

        trip_body = {
            "start_time": "2026-10-18T08:00:00",
            "end_time": "2026-10-18T09:30:00",
            "distance": "100",
            "consumption_rate_used": "10",
        }
        response = self.client.post(f"/vehicles/{vehicle_id}/trips", json=trip_body, headers=self._auth(stranger))
        self.assertEqual(response.status_code, 403)

        response = self.client.post(f"/vehicles/{vehicle_id}/trips", json=trip_body, headers=self._auth(owner))
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(Decimal(response.json()["data"]["fuel_consumed"]), Decimal("10"))

        response = self.client.post(
            f"/vehicles/{vehicle_id}/trips",
            json={**trip_body, "distance": "0"},
            headers=self._auth(owner),
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            f"/vehicles/{vehicle_id}/fuelings",
            json={"cost": "100", "fuel_type_id": self.gasoline.id, "latitude": -30.0, "longitude": -51.2},
            headers=self._auth(owner),
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            f"/vehicles/{vehicle_id}/fuelings",
            json={
                "cost": "100",
                "fuel_type_id": self.gasoline.id,
                "latitude": -30.0,
                "longitude": -51.2,
                "price_per_liter": "5",
            },
            headers=self._auth(owner),
        )
        self.assertEqual(response.status_code, 201, response.text)
        fueling_id = response.json()["data"]["id"]

        response = self.client.get(f"/vehicles/{vehicle_id}", headers=self._auth(owner))
        self.assertEqual(Decimal(response.json()["data"]["app_fuel_tank"]), Decimal("60"))

        response = self.client.delete(f"/vehicles/{vehicle_id}/fuelings/{fueling_id}", headers=self._auth(owner))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["data"]["deleted"])

        self.db.expire_all()
        vehicle = self.db.scalar(select(Vehicle).where(Vehicle.id == vehicle_id))
        self.assertEqual(vehicle.app_fuel_tank, Decimal("40"))

        response = self.client.get("/vehicles/9999", headers=self._auth(owner))
        self.assertEqual(response.status_code, 404)

    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.json(), {"status": "ok"})

    def test_station_rows_are_not_created_on_validation_failure(self) -> None:
        self.client.post(
            "/stations",
            json={**STATION_BODY, "station_prices": [{"fuel_type_id": 999, "price": "5.000"}]},
            headers=self._auth(self.members[0]),
        )
        self.assertIsNone(self.db.scalar(select(GasStation.id)))


if __name__ == "__main__":
    unittest.main()
