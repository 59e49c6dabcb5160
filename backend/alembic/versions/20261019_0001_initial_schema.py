"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

UNRESOLVED_CLAUSE = "status IN ('PENDING', 'PROTESTED')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_roles_name", "roles", ["name"], unique=True)

    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_permissions_name", "permissions", ["name"], unique=True)

    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("permission_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["permission_id"], ["permissions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_role_permission"),
    )
    op.create_index("ix_role_permissions_role_id", "role_permissions", ["role_id"], unique=False)
    op.create_index("ix_role_permissions_permission_id", "role_permissions", ["permission_id"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_role_id", "users", ["role_id"], unique=False)

    op.create_table(
        "fuel_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fuel_types_name", "fuel_types", ["name"], unique=True)

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("alias", sa.String(length=64), nullable=False),
        sa.Column("brand", sa.String(length=64), nullable=True),
        sa.Column("model", sa.String(length=64), nullable=True),
        sa.Column("plate", sa.String(length=16), nullable=False),
        sa.Column("year_manufacture", sa.Integer(), nullable=True),
        sa.Column("tank_capacity", sa.Numeric(precision=8, scale=2), nullable=True),
        sa.Column("app_odometer", sa.Numeric(precision=14, scale=5), nullable=False, server_default=sa.text("0")),
        sa.Column("app_fuel_tank", sa.Numeric(precision=14, scale=5), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vehicles_owner_id", "vehicles", ["owner_id"], unique=False)
    op.create_index("ix_vehicles_plate", "vehicles", ["plate"], unique=True)

    op.create_table(
        "vehicle_authorizations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("vehicle_id", "user_id", name="uq_vehicle_authorizations_vehicle_user"),
    )
    op.create_index("ix_vehicle_authorizations_vehicle_id", "vehicle_authorizations", ["vehicle_id"], unique=False)
    op.create_index("ix_vehicle_authorizations_user_id", "vehicle_authorizations", ["user_id"], unique=False)

    op.create_table(
        "gas_stations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("street", sa.String(length=255), nullable=False),
        sa.Column("number", sa.String(length=32), nullable=False),
        sa.Column("complement", sa.String(length=255), nullable=True),
        sa.Column("neighborhood", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=255), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("postal_code", sa.String(length=16), nullable=True),
        sa.Column("country", sa.String(length=64), nullable=False, server_default="BRASIL"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="UNDER_REVIEW"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "street", "number", "city", "state", name="uq_gas_stations_name_address"),
    )
    op.create_index("ix_gas_stations_name", "gas_stations", ["name"], unique=False)
    op.create_index("ix_gas_stations_city", "gas_stations", ["city"], unique=False)
    op.create_index("ix_gas_stations_status", "gas_stations", ["status"], unique=False)

    op.create_table(
        "station_prices",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("gas_station_id", sa.Integer(), nullable=False),
        sa.Column("fuel_type_id", sa.Integer(), nullable=False),
        sa.Column("reported_by_id", sa.Integer(), nullable=True),
        sa.Column("price", sa.Numeric(precision=10, scale=3), nullable=False),
        sa.Column("reported_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="UNDER_REVIEW"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gas_station_id"], ["gas_stations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["fuel_type_id"], ["fuel_types.id"]),
        sa.ForeignKeyConstraint(["reported_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_station_prices_gas_station_id", "station_prices", ["gas_station_id"], unique=False)
    op.create_index("ix_station_prices_fuel_type_id", "station_prices", ["fuel_type_id"], unique=False)
    op.create_index("ix_station_prices_reported_by_id", "station_prices", ["reported_by_id"], unique=False)
    op.create_index("ix_station_prices_status", "station_prices", ["status"], unique=False)
    op.create_index(
        "ix_station_prices_station_fuel_reported",
        "station_prices",
        ["gas_station_id", "fuel_type_id", "reported_at"],
        unique=False,
    )

    op.create_table(
        "proposals",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("target_kind", sa.String(length=32), nullable=False),
        sa.Column("gas_station_id", sa.Integer(), nullable=True),
        sa.Column("station_price_id", sa.Integer(), nullable=True),
        sa.Column("proposer_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="PENDING"),
        sa.Column("reason_type", sa.String(length=32), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("proposed_data", sa.JSON(), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "(gas_station_id IS NULL) <> (station_price_id IS NULL)",
            name="ck_proposals_single_target",
        ),
        sa.ForeignKeyConstraint(["gas_station_id"], ["gas_stations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["station_price_id"], ["station_prices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["proposer_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_proposals_target_kind", "proposals", ["target_kind"], unique=False)
    op.create_index("ix_proposals_gas_station_id", "proposals", ["gas_station_id"], unique=False)
    op.create_index("ix_proposals_station_price_id", "proposals", ["station_price_id"], unique=False)
    op.create_index("ix_proposals_proposer_id", "proposals", ["proposer_id"], unique=False)
    op.create_index("ix_proposals_status", "proposals", ["status"], unique=False)
    op.create_index(
        "uq_proposals_unresolved_gas_station",
        "proposals",
        ["gas_station_id"],
        unique=True,
        postgresql_where=sa.text(UNRESOLVED_CLAUSE),
        sqlite_where=sa.text(UNRESOLVED_CLAUSE),
    )
    op.create_index(
        "uq_proposals_unresolved_station_price",
        "proposals",
        ["station_price_id"],
        unique=True,
        postgresql_where=sa.text(UNRESOLVED_CLAUSE),
        sqlite_where=sa.text(UNRESOLVED_CLAUSE),
    )

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("proposal_id", sa.Integer(), nullable=False),
        sa.Column("reviewer_id", sa.Integer(), nullable=False),
        sa.Column("vote", sa.String(length=16), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["proposal_id"], ["proposals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reviewer_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("proposal_id", "reviewer_id", name="uq_reviews_proposal_reviewer"),
    )
    op.create_index("ix_reviews_proposal_id", "reviews", ["proposal_id"], unique=False)
    op.create_index("ix_reviews_reviewer_id", "reviews", ["reviewer_id"], unique=False)

    op.create_table(
        "trips",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("distance", sa.Numeric(precision=14, scale=5), nullable=False),
        sa.Column("consumption_rate_used", sa.Numeric(precision=10, scale=5), nullable=False),
        sa.Column("fuel_consumed", sa.Numeric(precision=14, scale=5), nullable=False),
        sa.Column("moment_app_fuel_tank", sa.Numeric(precision=14, scale=5), nullable=False),
        sa.Column("route_path", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_trips_vehicle_id", "trips", ["vehicle_id"], unique=False)
    op.create_index("ix_trips_user_id", "trips", ["user_id"], unique=False)
    op.create_index("ix_trips_start_time", "trips", ["start_time"], unique=False)

    op.create_table(
        "fuelings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("fuel_type_id", sa.Integer(), nullable=False),
        sa.Column("gas_station_id", sa.Integer(), nullable=True),
        sa.Column("cost", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("price_per_liter", sa.Numeric(precision=10, scale=3), nullable=False),
        sa.Column("volume", sa.Numeric(precision=14, scale=5), nullable=False),
        sa.Column("moment_app_fuel_tank", sa.Numeric(precision=14, scale=5), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["fuel_type_id"], ["fuel_types.id"]),
        sa.ForeignKeyConstraint(["gas_station_id"], ["gas_stations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fuelings_vehicle_id", "fuelings", ["vehicle_id"], unique=False)
    op.create_index("ix_fuelings_user_id", "fuelings", ["user_id"], unique=False)
    op.create_index("ix_fuelings_fuel_type_id", "fuelings", ["fuel_type_id"], unique=False)
    op.create_index("ix_fuelings_gas_station_id", "fuelings", ["gas_station_id"], unique=False)
    op.create_index("ix_fuelings_timestamp", "fuelings", ["timestamp"], unique=False)


def downgrade() -> None:
    for index_name in (
        "ix_fuelings_timestamp",
        "ix_fuelings_gas_station_id",
        "ix_fuelings_fuel_type_id",
        "ix_fuelings_user_id",
        "ix_fuelings_vehicle_id",
    ):
        op.drop_index(index_name, table_name="fuelings")
    op.drop_table("fuelings")

    op.drop_index("ix_trips_start_time", table_name="trips")
    op.drop_index("ix_trips_user_id", table_name="trips")
    op.drop_index("ix_trips_vehicle_id", table_name="trips")
    op.drop_table("trips")

    op.drop_index("ix_reviews_reviewer_id", table_name="reviews")
    op.drop_index("ix_reviews_proposal_id", table_name="reviews")
    op.drop_table("reviews")

    for index_name in (
        "uq_proposals_unresolved_station_price",
        "uq_proposals_unresolved_gas_station",
        "ix_proposals_status",
        "ix_proposals_proposer_id",
        "ix_proposals_station_price_id",
        "ix_proposals_gas_station_id",
        "ix_proposals_target_kind",
    ):
        op.drop_index(index_name, table_name="proposals")
    op.drop_table("proposals")

    for index_name in (
        "ix_station_prices_station_fuel_reported",
        "ix_station_prices_status",
        "ix_station_prices_reported_by_id",
        "ix_station_prices_fuel_type_id",
        "ix_station_prices_gas_station_id",
    ):
        op.drop_index(index_name, table_name="station_prices")
    op.drop_table("station_prices")

    op.drop_index("ix_gas_stations_status", table_name="gas_stations")
    op.drop_index("ix_gas_stations_city", table_name="gas_stations")
    op.drop_index("ix_gas_stations_name", table_name="gas_stations")
    op.drop_table("gas_stations")

    op.drop_index("ix_vehicle_authorizations_user_id", table_name="vehicle_authorizations")
    op.drop_index("ix_vehicle_authorizations_vehicle_id", table_name="vehicle_authorizations")
    op.drop_table("vehicle_authorizations")

    op.drop_index("ix_vehicles_plate", table_name="vehicles")
    op.drop_index("ix_vehicles_owner_id", table_name="vehicles")
    op.drop_table("vehicles")

    op.drop_index("ix_fuel_types_name", table_name="fuel_types")
    op.drop_table("fuel_types")

    op.drop_index("ix_users_role_id", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_role_permissions_permission_id", table_name="role_permissions")
    op.drop_index("ix_role_permissions_role_id", table_name="role_permissions")
    op.drop_table("role_permissions")

    op.drop_index("ix_permissions_name", table_name="permissions")
    op.drop_table("permissions")

    op.drop_index("ix_roles_name", table_name="roles")
    op.drop_table("roles")
