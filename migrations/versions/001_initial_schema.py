"""Trip-tracking schema: users and trips.

The ride-matching system owns these tables; this migration exists so the
notification service can run against a local database.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(120), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("driver_status", sa.String(20), nullable=True),
        sa.Column("push_token", sa.String(512), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_users_role_driver_status", "users", ["role", "driver_status"]
    )

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("passenger_id", sa.String(64), nullable=True),
        sa.Column("driver_id", sa.String(64), nullable=True),
        sa.Column("passenger_name", sa.String(120), nullable=True),
        sa.Column("driver_name", sa.String(120), nullable=True),
        sa.Column("pickup_address", sa.String(255), nullable=True),
        sa.Column("destination_address", sa.String(255), nullable=True),
        sa.Column("fare", sa.Float, nullable=True),
        sa.Column("cancellation_reason", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'arrived', 'in_progress', "
            "'completed', 'cancelled')",
            name="ck_trips_status",
        ),
        sa.CheckConstraint("fare IS NULL OR fare >= 0", name="ck_trips_fare"),
    )
    op.create_index("idx_trips_status", "trips", ["status"])
    op.create_index("idx_trips_cursor", "trips", ["updated_at", "id"])
    op.create_index("idx_trips_driver", "trips", ["driver_id"])


def downgrade() -> None:
    op.drop_table("trips")
    op.drop_table("users")
