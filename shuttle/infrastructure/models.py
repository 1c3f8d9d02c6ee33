"""
SQLAlchemy ORM models.

Tables
------
* ``vehicles``      -- fleet catalog with capacity and per-km price
* ``services``      -- flat-priced add-ons (child seat, meet & greet, ...)
* ``drivers``       -- drivers that dispatch can assign to trips
* ``reservations``  -- confirmed bookings: frozen wizard snapshot plus
  lifecycle columns (status, driver, settlement shares, timestamps)

Indexes
-------
* **B-Tree** on ``reservations.status`` and ``driver_id`` for the
  dispatch list and the revenue report, on ``is_active`` for catalog
  look-ups.

Money is stored as ``NUMERIC(10, 2)`` and read back as ``Decimal``.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    func,
)

from .database import Base
from shuttle.domain.enums import (
    Direction,
    PaymentMethod,
    ReservationStatus,
    ServiceCategory,
    VehicleType,
)

Money = Numeric(10, 2, asdecimal=True)


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(String(64), primary_key=True)
    name = Column(String(120), nullable=False)
    vehicle_type = Column(Enum(VehicleType), default=VehicleType.SEDAN, nullable=False)
    seat_capacity = Column(Integer, nullable=False)
    baggage_capacity = Column(Integer, nullable=False)
    price_per_km = Column(Money, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_vehicles_active", "is_active"),)


class ServiceModel(Base):
    __tablename__ = "services"

    id = Column(String(64), primary_key=True)
    name = Column(String(120), nullable=False)
    description = Column(String(255), nullable=True)
    price = Column(Money, nullable=False)
    category = Column(Enum(ServiceCategory), default=ServiceCategory.OTHER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_services_active", "is_active"),)


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(String(64), primary_key=True)
    name = Column(String(120), nullable=False)
    phone = Column(String(32), nullable=False)
    license_number = Column(String(32), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ReservationModel(Base):
    __tablename__ = "reservations"

    id = Column(String(64), primary_key=True)

    # Route
    direction = Column(Enum(Direction), nullable=False)
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    travel_date = Column(Date, nullable=False)
    travel_time = Column(Time, nullable=False)
    passenger_count = Column(Integer, nullable=False)
    baggage_count = Column(Integer, default=0, nullable=False)
    distance_km = Column(Float, nullable=False)
    duration_minutes = Column(Float, nullable=True)

    # Vehicle & pricing snapshot
    vehicle_id = Column(String(64), ForeignKey("vehicles.id"), nullable=False)
    vehicle_name = Column(String(120), nullable=False)
    price_per_km = Column(Money, nullable=False)
    selected_service_ids = Column(JSON, nullable=False, default=list)
    base_price = Column(Money, nullable=False)
    services_price = Column(Money, nullable=False)
    subtotal_price = Column(Money, nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    total_price = Column(Money, nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)

    # Customer
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    flight_number = Column(String(16), nullable=True)
    special_requests = Column(Text, nullable=True)

    # Lifecycle
    verification_token = Column(String(512), unique=True, nullable=False)
    status = Column(Enum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False)
    driver_id = Column(String(64), ForeignKey("drivers.id"), nullable=True)
    driver_share = Column(Money, nullable=True)
    company_share = Column(Money, nullable=True)
    cancel_reason = Column(String(255), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_reservations_status", "status"),
        Index("idx_reservations_driver", "driver_id"),
        Index("idx_reservations_created", "created_at"),
    )
