"""create dealership tables

Revision ID: 4a7e2c9d1b30
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4a7e2c9d1b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    ]


def _dealer_fk() -> sa.Column:
    return sa.Column(
        "dealer_id",
        sa.String(length=36),
        sa.ForeignKey("dealers.id", ondelete="RESTRICT"),
        nullable=False,
    )


vehicle_status = sa.Enum(
    "available", "reserved", "in_process", "sold", "maintenance", name="enum_vehicle_status"
)
vehicle_condition = sa.Enum("new", "used", name="enum_vehicle_condition")
contract_status = sa.Enum("pending", "active", "completed", "cancelled", name="enum_contract_status")
financing_type = sa.Enum("cash", "financing", name="enum_financing_type")
insurance_status = sa.Enum("active", "expiring_soon", "expired", "cancelled", name="enum_insurance_status")
coverage_type = sa.Enum("motor_transmission", "full", "basic", name="enum_coverage_type")
user_role = sa.Enum("admin", "user", name="user_role")

OPEN_CLAIM_WHERE = sa.text("status IN ('pending', 'active')")


def upgrade() -> None:
    """Create dealers, profiles, concesionarios, clients, vehicles, contracts and insurance."""
    op.create_table(
        "dealers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("business_name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        _dealer_fk(),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_profiles_username", "profiles", ["username"], unique=True)
    op.create_index("ix_profiles_dealer_id", "profiles", ["dealer_id"])

    op.create_table(
        "concesionarios",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _dealer_fk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("contact_name", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_concesionarios_dealer_id", "concesionarios", ["dealer_id"])
    op.create_index("ix_concesionarios_name", "concesionarios", ["name"])

    op.create_table(
        "clients",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _dealer_fk(),
        sa.Column("cedula", sa.String(length=13), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("address", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_clients_dealer_id", "clients", ["dealer_id"])
    op.create_index("ix_clients_cedula", "clients", ["cedula"], unique=True)
    op.create_index("ix_clients_name", "clients", ["name"])
    op.create_index("ix_clients_phone", "clients", ["phone"])

    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _dealer_fk(),
        sa.Column(
            "concesionario_id",
            sa.String(length=36),
            sa.ForeignKey("concesionarios.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("brand", sa.Text(), nullable=False),
        sa.Column("model", sa.Text(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("trim", sa.Text(), nullable=True),
        sa.Column("vehicle_type", sa.Text(), nullable=False),
        sa.Column("color", sa.Text(), nullable=False),
        sa.Column("status", vehicle_status, nullable=False, server_default="available"),
        sa.Column("condition", vehicle_condition, nullable=False, server_default="new"),
        sa.Column("vin", sa.String(length=17), nullable=False),
        sa.Column("plate", sa.String(length=10), nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("has_offer", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("offer_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("mileage", sa.Integer(), nullable=True),
        sa.Column("transmission", sa.Text(), nullable=False),
        sa.Column("fuel_type", sa.Text(), nullable=False),
        sa.Column("engine_size", sa.Text(), nullable=False),
        sa.Column("doors", sa.Integer(), nullable=False),
        sa.Column("seats", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_vehicles_dealer_id", "vehicles", ["dealer_id"])
    op.create_index("ix_vehicles_concesionario_id", "vehicles", ["concesionario_id"])
    op.create_index("ix_vehicles_status", "vehicles", ["status"])
    op.create_index("ix_vehicles_vin", "vehicles", ["vin"], unique=True)
    op.create_index("ix_vehicles_plate", "vehicles", ["plate"], unique=True)

    op.create_table(
        "contracts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("contract_number", sa.String(length=50), nullable=False),
        _dealer_fk(),
        sa.Column(
            "client_id",
            sa.String(length=36),
            sa.ForeignKey("clients.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "vehicle_id",
            sa.String(length=36),
            sa.ForeignKey("vehicles.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("status", contract_status, nullable=False, server_default="pending"),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("financing_type", financing_type, nullable=False),
        sa.Column("down_payment", sa.Numeric(12, 2), nullable=True),
        sa.Column("months", sa.Integer(), nullable=True),
        sa.Column("monthly_payment", sa.Numeric(12, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_contracts_contract_number", "contracts", ["contract_number"], unique=True)
    op.create_index("ix_contracts_dealer_id", "contracts", ["dealer_id"])
    op.create_index("ix_contracts_client_id", "contracts", ["client_id"])
    op.create_index("ix_contracts_vehicle_id", "contracts", ["vehicle_id"])
    op.create_index("ix_contracts_status", "contracts", ["status"])
    op.create_index(
        "uq_contracts_open_vehicle",
        "contracts",
        ["vehicle_id"],
        unique=True,
        sqlite_where=OPEN_CLAIM_WHERE,
        postgresql_where=OPEN_CLAIM_WHERE,
    )

    op.create_table(
        "insurance",
        sa.Column("id", sa.String(length=36), primary_key=True),
        _dealer_fk(),
        sa.Column(
            "vehicle_id",
            sa.String(length=36),
            sa.ForeignKey("vehicles.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "client_id",
            sa.String(length=36),
            sa.ForeignKey("clients.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "contract_id",
            sa.String(length=36),
            sa.ForeignKey("contracts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column("coverage_type", coverage_type, nullable=False),
        sa.Column("coverage_duration", sa.Integer(), nullable=False),
        sa.Column("premium", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", insurance_status, nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_insurance_dealer_id", "insurance", ["dealer_id"])
    op.create_index("ix_insurance_vehicle_id", "insurance", ["vehicle_id"])
    op.create_index("ix_insurance_client_id", "insurance", ["client_id"])
    op.create_index("ix_insurance_contract_id", "insurance", ["contract_id"])
    op.create_index("ix_insurance_expiry_date", "insurance", ["expiry_date"])


def downgrade() -> None:
    """Drop all dealership tables (reverse dependency order) and enum types."""
    op.drop_table("insurance")
    op.drop_table("contracts")
    op.drop_table("vehicles")
    op.drop_table("clients")
    op.drop_table("concesionarios")
    op.drop_table("profiles")
    op.drop_table("dealers")

    bind = op.get_bind()
    for enum_type in (
        coverage_type,
        insurance_status,
        financing_type,
        contract_status,
        vehicle_condition,
        vehicle_status,
        user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
