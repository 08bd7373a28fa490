"""Initial schema: vehicles with versioned seat counters, and bookings.

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
    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False, server_default=""),
        sa.Column(
            "vehicle_type",
            sa.Enum("bus", "others", "taxi", "bike", name="vehicletype"),
            nullable=False,
            server_default="bus",
        ),
        sa.Column("capacity", sa.Integer, nullable=False),
        sa.Column("online_booked_seats", sa.Integer, nullable=False, server_default="0"),
        sa.Column("offline_occupied_seats", sa.Integer, nullable=False, server_default="0"),
        sa.Column("available_seats", sa.Integer, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("last_seat_update", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="0"),
        sa.Column("current_lat", sa.Float, nullable=True),
        sa.Column("current_lng", sa.Float, nullable=True),
        sa.Column("last_location_update", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "online_booked_seats >= 0 AND offline_occupied_seats >= 0 "
            "AND online_booked_seats + offline_occupied_seats <= capacity",
            name="ck_vehicles_seat_bounds",
        ),
    )
    op.create_index("idx_vehicles_active", "vehicles", ["is_active"])

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "vehicle_id", sa.String(64), sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column("passenger_id", sa.String(128), nullable=False),
        sa.Column("passenger_name", sa.String(120), nullable=False, server_default=""),
        sa.Column("phone_number", sa.String(32), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("number_of_passengers", sa.Integer, nullable=False, server_default="1"),
        sa.Column("pickup_lat", sa.Float, nullable=False),
        sa.Column("pickup_lng", sa.Float, nullable=False),
        sa.Column("dropoff_lat", sa.Float, nullable=False),
        sa.Column("dropoff_lng", sa.Float, nullable=False),
        sa.Column("fare", sa.Float, nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "confirmed",
                "cancelled",
                "completed",
                "expired",
                name="bookingstatus",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "payment_method",
            sa.Enum("cash", "digital", name="paymentmethod"),
            nullable=False,
            server_default="cash",
        ),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("reservation_expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_expired", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_bookings_vehicle_status", "bookings", ["vehicle_id", "status"]
    )
    op.create_index("idx_bookings_passenger", "bookings", ["passenger_id"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("vehicles")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS paymentmethod")
    op.execute("DROP TYPE IF EXISTS vehicletype")
