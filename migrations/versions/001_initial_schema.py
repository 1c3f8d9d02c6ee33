"""Initial schema: vehicle and service catalog, drivers, reservations.

Revision ID: 001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

# Enum columns store member names (SQLAlchemy default for Python enums)
vehicle_type = sa.Enum("SEDAN", "SUV", "VAN", "LUXURY", name="vehicletype")
service_category = sa.Enum(
    "CHILD_SEAT", "EXTRA_BAGGAGE", "MEET_GREET", "OTHER", name="servicecategory"
)
direction = sa.Enum("AIRPORT_TO_HOTEL", "HOTEL_TO_AIRPORT", name="direction")
payment_method = sa.Enum("CASH", "BANK_TRANSFER", "CARD", name="paymentmethod")
reservation_status = sa.Enum(
    "PENDING", "ASSIGNED", "STARTED", "COMPLETED", "CANCELLED", name="reservationstatus"
)

money = sa.Numeric(10, 2)


def upgrade() -> None:
    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("vehicle_type", vehicle_type, nullable=False),
        sa.Column("seat_capacity", sa.Integer, nullable=False),
        sa.Column("baggage_capacity", sa.Integer, nullable=False),
        sa.Column("price_per_km", money, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_vehicles_active", "vehicles", ["is_active"])

    # ── services ──────────────────────────────────────────────────────
    op.create_table(
        "services",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("price", money, nullable=False),
        sa.Column("category", service_category, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_services_active", "services", ["is_active"])

    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("license_number", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── reservations ──────────────────────────────────────────────────
    op.create_table(
        "reservations",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("direction", direction, nullable=False),
        sa.Column("origin", sa.String(255), nullable=False),
        sa.Column("destination", sa.String(255), nullable=False),
        sa.Column("travel_date", sa.Date, nullable=False),
        sa.Column("travel_time", sa.Time, nullable=False),
        sa.Column("passenger_count", sa.Integer, nullable=False),
        sa.Column("baggage_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column("duration_minutes", sa.Float, nullable=True),
        sa.Column("vehicle_id", sa.String(64), sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("vehicle_name", sa.String(120), nullable=False),
        sa.Column("price_per_km", money, nullable=False),
        sa.Column("selected_service_ids", sa.JSON, nullable=False),
        sa.Column("base_price", money, nullable=False),
        sa.Column("services_price", money, nullable=False),
        sa.Column("subtotal_price", money, nullable=False),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("total_price", money, nullable=False),
        sa.Column("payment_method", payment_method, nullable=False),
        sa.Column("first_name", sa.String(120), nullable=False),
        sa.Column("last_name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("flight_number", sa.String(16), nullable=True),
        sa.Column("special_requests", sa.Text, nullable=True),
        sa.Column("verification_token", sa.String(512), unique=True, nullable=False),
        sa.Column("status", reservation_status, nullable=False, server_default="PENDING"),
        sa.Column("driver_id", sa.String(64), sa.ForeignKey("drivers.id"), nullable=True),
        sa.Column("driver_share", money, nullable=True),
        sa.Column("company_share", money, nullable=True),
        sa.Column("cancel_reason", sa.String(255), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_reservations_status", "reservations", ["status"])
    op.create_index("idx_reservations_driver", "reservations", ["driver_id"])
    op.create_index("idx_reservations_created", "reservations", ["created_at"])


def downgrade() -> None:
    op.drop_table("reservations")
    op.drop_table("drivers")
    op.drop_table("services")
    op.drop_table("vehicles")
    for enum in (reservation_status, payment_method, direction, service_category, vehicle_type):
        enum.drop(op.get_bind(), checkfirst=True)
