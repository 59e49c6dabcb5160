"""Service-level tests for the vehicle odometer/fuel-tank ledger."""

from __future__ import annotations

import unittest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fuelwise.db.session import build_engine
from fuelwise.errors import AccessDeniedError, InternalInconsistencyError, NotFoundError, ValidationError
from fuelwise.models.base import Base
from fuelwise.models.fuel_type import FuelType
from fuelwise.models.fueling import Fueling
from fuelwise.models.gas_station import GasStation
from fuelwise.models.role import Role
from fuelwise.models.station_price import StationPrice
from fuelwise.models.trip import Trip
from fuelwise.models.user import User
from fuelwise.models.vehicle import Vehicle
from fuelwise.schemas.fueling import FuelingCreateRequest, FuelingUpdateRequest
from fuelwise.schemas.trip import TripCreateRequest, TripUpdateRequest
from fuelwise.services.ledger import (
    compute_fuel_consumed,
    compute_fueling_volume,
    create_fueling,
    create_trip,
    delete_fueling,
    delete_trip,
    list_trips,
    update_fueling,
    update_trip,
)
from fuelwise.services.vehicles import create_vehicle, grant_vehicle_access

START = datetime(2026, 10, 18, 8, 0)
END = datetime(2026, 10, 18, 10, 0)


def _trip(distance: str, rate: str, **extra) -> TripCreateRequest:
    return TripCreateRequest(
        start_time=extra.pop("start_time", START),
        end_time=extra.pop("end_time", END),
        distance=Decimal(distance),
        consumption_rate_used=Decimal(rate),
        **extra,
    )


class LedgerArithmeticTests(unittest.TestCase):
    def test_fuel_consumed_is_rounded_half_up_to_five_places(self) -> None:
        self.assertEqual(compute_fuel_consumed(Decimal("100"), Decimal("10")), Decimal("10.00000"))
        self.assertEqual(compute_fuel_consumed(Decimal("100"), Decimal("3")), Decimal("33.33333"))
        self.assertEqual(compute_fuel_consumed(Decimal("200"), Decimal("3")), Decimal("66.66667"))
        self.assertEqual(compute_fuel_consumed(Decimal("0.00001"), Decimal("0.4")), Decimal("0.00003"))

    def test_non_positive_inputs_fail_validation(self) -> None:
        for distance, rate, path in (
            ("0", "10", "distance"),
            ("-5", "10", "distance"),
            ("10", "0", "consumption_rate_used"),
            ("10", "-1", "consumption_rate_used"),
            ("0.00001", "100", "consumption_rate_used"),
        ):
            with self.subTest(distance=distance, rate=rate):
                with self.assertRaises(ValidationError) as ctx:
                    compute_fuel_consumed(Decimal(distance), Decimal(rate))
                self.assertEqual(ctx.exception.errors[0].path, path)

    def test_fueling_volume(self) -> None:
        self.assertEqual(compute_fueling_volume(Decimal("100"), Decimal("5")), Decimal("20"))
        self.assertEqual(compute_fueling_volume(Decimal("100"), Decimal("4")), Decimal("25"))
        self.assertEqual(compute_fueling_volume(Decimal("50.00"), Decimal("5.790")), Decimal("8.63558"))
        with self.assertRaises(ValidationError):
            compute_fueling_volume(Decimal("100"), Decimal("0"))


class LedgerServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = build_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        for table in reversed(Base.metadata.sorted_tables):
            self.db.execute(table.delete())
        self.db.commit()

        role = Role(name="BASIC_USER")
        self.db.add(role)
        self.db.flush()
        self.owner = User(username="owner", role_id=role.id)
        self.driver = User(username="driver", role_id=role.id)
        self.stranger = User(username="stranger", role_id=role.id)
        self.gasoline = FuelType(name="Gasolina")
        self.station = GasStation(
            name="Posto Bairro",
            latitude=-19.9167,
            longitude=-43.9345,
            street="Rua da Bahia",
            number="12",
            neighborhood="Centro",
            city="Belo Horizonte",
            state="MG",
            status="ACTIVE",
        )
        self.db.add_all([self.owner, self.driver, self.stranger, self.gasoline, self.station])
        self.db.commit()

        self.vehicle = create_vehicle(
            self.db,
            owner_id=self.owner.id,
            alias="Daily",
            plate="abc 1d23",
            app_odometer=Decimal("1000"),
            app_fuel_tank=Decimal("50"),
        )
        self.vehicle_id = self.vehicle.id

    def tearDown(self) -> None:
        self.db.close()

    def _vehicle(self) -> Vehicle:
        self.db.expire_all()
        return self.db.get(Vehicle, self.vehicle_id)

    def test_plate_is_normalized(self) -> None:
        self.assertEqual(self._vehicle().plate, "ABC1D23")

    def test_trip_round_trip_restores_ledger(self) -> None:
        trip = create_trip(self.db, self.vehicle_id, _trip("100", "10"), user_id=self.owner.id)

        self.assertEqual(trip.fuel_consumed, Decimal("10.00000"))
        self.assertEqual(trip.moment_app_fuel_tank, Decimal("50"))
        vehicle = self._vehicle()
        self.assertEqual(vehicle.app_fuel_tank, Decimal("40"))
        self.assertEqual(vehicle.app_odometer, Decimal("1100"))

        delete_trip(self.db, self.vehicle_id, trip.id, user_id=self.owner.id)

        vehicle = self._vehicle()
        self.assertEqual(vehicle.app_fuel_tank, Decimal("50"))
        self.assertEqual(vehicle.app_odometer, Decimal("1000"))
        self.assertIsNone(self.db.get(Trip, trip.id))

    def test_trip_update_applies_only_the_delta(self) -> None:
        trip = create_trip(self.db, self.vehicle_id, _trip("100", "10"), user_id=self.owner.id)

        updated = update_trip(
            self.db,
            self.vehicle_id,
            trip.id,
            TripUpdateRequest(distance=Decimal("50")),
            user_id=self.owner.id,
        )

        self.assertEqual(updated.fuel_consumed, Decimal("5"))
        self.assertEqual(updated.moment_app_fuel_tank, Decimal("50"))
        vehicle = self._vehicle()
        self.assertEqual(vehicle.app_fuel_tank, Decimal("45"))
        self.assertEqual(vehicle.app_odometer, Decimal("1050"))

    def test_invalid_trip_update_changes_nothing(self) -> None:
        trip = create_trip(self.db, self.vehicle_id, _trip("100", "10"), user_id=self.owner.id)

        with self.assertRaises(ValidationError):
            update_trip(
                self.db,
                self.vehicle_id,
                trip.id,
                TripUpdateRequest(consumption_rate_used=Decimal("0")),
                user_id=self.owner.id,
            )

        self.db.expire_all()
        self.assertEqual(self.db.get(Trip, trip.id).distance, Decimal("100"))
        self.assertEqual(self._vehicle().app_fuel_tank, Decimal("40"))

    def test_trip_update_with_aware_times_against_stored_naive_times(self) -> None:
        trip = create_trip(self.db, self.vehicle_id, _trip("100", "10"), user_id=self.owner.id)
        self.db.expire_all()

        updated = update_trip(
            self.db,
            self.vehicle_id,
            trip.id,
            TripUpdateRequest(end_time=datetime(2026, 10, 18, 11, 0, tzinfo=timezone.utc)),
            user_id=self.owner.id,
        )
        self.assertEqual(updated.distance, Decimal("100"))

        with self.assertRaises(ValidationError) as ctx:
            update_trip(
                self.db,
                self.vehicle_id,
                trip.id,
                TripUpdateRequest(end_time=datetime(2026, 10, 18, 7, 0, tzinfo=timezone.utc)),
                user_id=self.owner.id,
            )
        self.assertEqual(ctx.exception.errors[0].path, "end_time")
        self.assertEqual(self._vehicle().app_fuel_tank, Decimal("40"))

    def test_failed_vehicle_update_leaves_no_orphan_event(self) -> None:
        with patch(
            "fuelwise.services.ledger._apply_vehicle_delta",
            side_effect=InternalInconsistencyError("vehicle update failed"),
        ):
            with self.assertRaises(InternalInconsistencyError):
                create_trip(self.db, self.vehicle_id, _trip("100", "10"), user_id=self.owner.id)
            with self.assertRaises(InternalInconsistencyError):
                create_fueling(
                    self.db,
                    self.vehicle_id,
                    FuelingCreateRequest(
                        cost=Decimal("100"),
                        fuel_type_id=self.gasoline.id,
                        latitude=-19.9,
                        longitude=-43.9,
                        price_per_liter=Decimal("5"),
                    ),
                    user_id=self.owner.id,
                )

        self.assertEqual(self.db.scalar(select(func.count(Trip.id))), 0)
        self.assertEqual(self.db.scalar(select(func.count(Fueling.id))), 0)
        vehicle = self._vehicle()
        self.assertEqual(vehicle.app_fuel_tank, Decimal("50"))
        self.assertEqual(vehicle.app_odometer, Decimal("1000"))

    def test_vehicle_access_is_checked(self) -> None:
        with self.assertRaises(AccessDeniedError):
            create_trip(self.db, self.vehicle_id, _trip("10", "10"), user_id=self.stranger.id)
        with self.assertRaises(NotFoundError):
            create_trip(self.db, 404, _trip("10", "10"), user_id=self.owner.id)

        grant_vehicle_access(self.db, self.vehicle_id, owner_id=self.owner.id, user_id=self.driver.id)
        trip = create_trip(self.db, self.vehicle_id, _trip("10", "10"), user_id=self.driver.id)

        self.assertEqual(trip.user_id, self.driver.id)
        with self.assertRaises(AccessDeniedError):
            delete_trip(self.db, self.vehicle_id, trip.id, user_id=self.owner.id)
        self.assertEqual(self._vehicle().app_odometer, Decimal("1010"))

    def test_trip_from_other_vehicle_is_rejected(self) -> None:
        other = create_vehicle(self.db, owner_id=self.owner.id, alias="Weekend", plate="XYZ9K87")
        trip = create_trip(self.db, other.id, _trip("10", "10"), user_id=self.owner.id)

        with self.assertRaises(ValidationError):
            update_trip(
                self.db,
                self.vehicle_id,
                trip.id,
                TripUpdateRequest(distance=Decimal("20")),
                user_id=self.owner.id,
            )

    def test_list_trips_filters_by_window(self) -> None:
        create_trip(self.db, self.vehicle_id, _trip("10", "10"), user_id=self.owner.id)
        create_trip(
            self.db,
            self.vehicle_id,
            _trip("20", "10", start_time=datetime(2026, 9, 1, 8, 0), end_time=datetime(2026, 9, 1, 9, 0)),
            user_id=self.owner.id,
        )

        page = list_trips(self.db, self.vehicle_id, user_id=self.owner.id, start=datetime(2026, 10, 1))

        self.assertEqual(page.total, 1)
        self.assertEqual(page.items[0].distance, Decimal("10"))

    def test_fueling_without_station_uses_caller_price(self) -> None:
        fueling = create_fueling(
            self.db,
            self.vehicle_id,
            FuelingCreateRequest(
                cost=Decimal("100"),
                fuel_type_id=self.gasoline.id,
                latitude=-19.9,
                longitude=-43.9,
                price_per_liter=Decimal("5"),
            ),
            user_id=self.owner.id,
        )

        self.assertEqual(fueling.volume, Decimal("20"))
        self.assertEqual(fueling.moment_app_fuel_tank, Decimal("50"))
        self.assertEqual(self._vehicle().app_fuel_tank, Decimal("70"))

    def test_station_price_wins_over_caller_price(self) -> None:
        self.db.add_all(
            [
                StationPrice(
                    gas_station_id=self.station.id,
                    fuel_type_id=self.gasoline.id,
                    price=Decimal("4.500"),
                    reported_at=datetime(2026, 10, 1, 8, 0),
                    status="ACTIVE",
                ),
                StationPrice(
                    gas_station_id=self.station.id,
                    fuel_type_id=self.gasoline.id,
                    price=Decimal("4.000"),
                    reported_at=datetime(2026, 10, 10, 8, 0),
                    status="ACTIVE",
                ),
                StationPrice(
                    gas_station_id=self.station.id,
                    fuel_type_id=self.gasoline.id,
                    price=Decimal("1.000"),
                    reported_at=datetime(2026, 10, 15, 8, 0),
                    status="REJECTED",
                ),
            ]
        )
        self.db.commit()

        fueling = create_fueling(
            self.db,
            self.vehicle_id,
            FuelingCreateRequest(
                cost=Decimal("100"),
                fuel_type_id=self.gasoline.id,
                latitude=-19.9,
                longitude=-43.9,
                gas_station_id=self.station.id,
                price_per_liter=Decimal("5"),
            ),
            user_id=self.owner.id,
        )

        self.assertEqual(fueling.price_per_liter, Decimal("4"))
        self.assertEqual(fueling.volume, Decimal("25"))
        self.assertEqual(self._vehicle().app_fuel_tank, Decimal("75"))

    def test_price_from_rejected_station_is_ignored(self) -> None:
        self.db.add(
            StationPrice(
                gas_station_id=self.station.id,
                fuel_type_id=self.gasoline.id,
                price=Decimal("6.190"),
                reported_at=datetime(2026, 10, 10, 8, 0),
                status="ACTIVE",
            )
        )
        self.station.status = "REJECTED"
        self.db.commit()

        fueling = create_fueling(
            self.db,
            self.vehicle_id,
            FuelingCreateRequest(
                cost=Decimal("100"),
                fuel_type_id=self.gasoline.id,
                latitude=-19.9,
                longitude=-43.9,
                gas_station_id=self.station.id,
                price_per_liter=Decimal("5"),
            ),
            user_id=self.owner.id,
        )

        self.assertEqual(fueling.price_per_liter, Decimal("5"))
        self.assertEqual(fueling.volume, Decimal("20"))

    def test_fueling_access_is_checked_before_references(self) -> None:
        payload = FuelingCreateRequest(
            cost=Decimal("100"),
            fuel_type_id=9999,
            latitude=-19.9,
            longitude=-43.9,
            gas_station_id=9999,
        )

        with self.assertRaises(AccessDeniedError):
            create_fueling(self.db, self.vehicle_id, payload, user_id=self.stranger.id)

    def test_station_without_price_requires_caller_price(self) -> None:
        payload = FuelingCreateRequest(
            cost=Decimal("100"),
            fuel_type_id=self.gasoline.id,
            latitude=-19.9,
            longitude=-43.9,
            gas_station_id=self.station.id,
        )

        with self.assertRaises(ValidationError) as ctx:
            create_fueling(self.db, self.vehicle_id, payload, user_id=self.owner.id)

        self.assertEqual(ctx.exception.errors[0].path, "price_per_liter")
        self.assertEqual(self._vehicle().app_fuel_tank, Decimal("50"))

    def test_fueling_update_and_delete_move_tank_by_difference(self) -> None:
        fueling = create_fueling(
            self.db,
            self.vehicle_id,
            FuelingCreateRequest(
                cost=Decimal("100"),
                fuel_type_id=self.gasoline.id,
                latitude=-19.9,
                longitude=-43.9,
                price_per_liter=Decimal("5"),
            ),
            user_id=self.owner.id,
        )

        updated = update_fueling(
            self.db,
            self.vehicle_id,
            fueling.id,
            FuelingUpdateRequest(cost=Decimal("150")),
            user_id=self.owner.id,
        )
        self.assertEqual(updated.volume, Decimal("30"))
        self.assertEqual(self._vehicle().app_fuel_tank, Decimal("80"))

        updated = update_fueling(
            self.db,
            self.vehicle_id,
            fueling.id,
            FuelingUpdateRequest(price_per_liter=Decimal("6")),
            user_id=self.owner.id,
        )
        self.assertEqual(updated.volume, Decimal("25"))
        self.assertEqual(self._vehicle().app_fuel_tank, Decimal("75"))

        delete_fueling(self.db, self.vehicle_id, fueling.id, user_id=self.owner.id)
        self.assertEqual(self._vehicle().app_fuel_tank, Decimal("50"))
        self.assertEqual(self.db.scalar(select(func.count(Fueling.id))), 0)

    def test_tank_may_go_negative(self) -> None:
        with self.assertLogs("fuelwise.services.ledger", level="WARNING") as logs:
            create_trip(self.db, self.vehicle_id, _trip("600", "10"), user_id=self.owner.id)

        self.assertEqual(self._vehicle().app_fuel_tank, Decimal("-10"))
        self.assertTrue(any("ledger.negative_tank" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
