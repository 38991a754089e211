"""Create booking schema

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # btree_gist lets the exclusion constraint mix equality (uuid, date) with range overlap
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.create_table(
        "businesses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("slug", sa.String, nullable=False),
        sa.Column("owner_name", sa.String, nullable=True),
        sa.Column("owner_email", sa.String, nullable=True),
        sa.Column("timezone", sa.String, nullable=False, server_default="America/Los_Angeles"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_businesses_slug", "businesses", ["slug"], unique=True)

    op.create_table(
        "business_settings",
        sa.Column(
            "business_id", UUID(as_uuid=True),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("business_name", sa.String, nullable=False),
        sa.Column("owner_email", sa.String, nullable=True),
        sa.Column("timezone", sa.String, nullable=False, server_default="America/Los_Angeles"),
        sa.Column("notify_owner_email", sa.Boolean, nullable=False, server_default=sa.text("true")),
    )

    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String, nullable=False),
        sa.Column("hashed_password", sa.String, nullable=False),
        sa.Column(
            "business_id", UUID(as_uuid=True),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("full_name", sa.String, nullable=True),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_business_id", "users", ["business_id"])

    op.create_table(
        "appointment_types",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "business_id", UUID(as_uuid=True),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False, server_default="45"),
        sa.Column("price_cents", sa.Integer, nullable=False, server_default="0"),
        sa.Column("location_mode", sa.String, nullable=False, server_default="hybrid"),
        sa.Column("color", sa.String, nullable=True),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint("duration_minutes > 0", name="ck_appointment_types_duration_positive"),
        sa.CheckConstraint("price_cents >= 0", name="ck_appointment_types_price_nonnegative"),
    )
    op.create_index("ix_appointment_types_business_id", "appointment_types", ["business_id"])
    op.create_index("ix_appointment_types_active", "appointment_types", ["active"])

    op.create_table(
        "appointments",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "business_id", UUID(as_uuid=True),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "type_id", UUID(as_uuid=True),
            sa.ForeignKey("appointment_types.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("title", sa.String, nullable=True),
        sa.Column("client_name", sa.String, nullable=False),
        sa.Column("client_email", sa.String, nullable=True),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("time", sa.Time, nullable=False),
        sa.Column("start_minute", sa.Integer, nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False, server_default="45"),
        sa.Column("location", sa.String, nullable=False, server_default="office"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", sa.String, nullable=False, server_default="confirmed"),
        sa.Column("source", sa.String, nullable=False, server_default="owner"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint("duration_minutes > 0", name="ck_appointments_duration_positive"),
        sa.CheckConstraint("start_minute >= 0 AND start_minute < 1440", name="ck_appointments_start_minute_range"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')", name="ck_appointments_status"
        ),
        sa.CheckConstraint("source IN ('owner', 'public')", name="ck_appointments_source"),
    )
    op.create_index("ix_appointments_business_id", "appointments", ["business_id"])
    op.create_index("ix_appointments_type_id", "appointments", ["type_id"])
    op.create_index("ix_appointments_date", "appointments", ["date"])
    op.create_index("ix_appointments_status", "appointments", ["status"])
    op.create_index("ix_appointments_business_date_time", "appointments", ["business_id", "date", "time"])

    # Storage-level no-overlap: active slots of one tenant/day may not intersect ([) ranges)
    op.execute(
        """
        ALTER TABLE appointments
        ADD CONSTRAINT appointments_no_overlap
        EXCLUDE USING gist (
            business_id WITH =,
            date WITH =,
            int4range(start_minute, start_minute + duration_minutes) WITH &&
        )
        WHERE (status <> 'cancelled')
        """
    )


def downgrade() -> None:
    op.execute("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS appointments_no_overlap")
    op.drop_table("appointments")
    op.drop_table("appointment_types")
    op.drop_index("ix_users_business_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_table("business_settings")
    op.drop_index("ix_businesses_slug", table_name="businesses")
    op.drop_table("businesses")
