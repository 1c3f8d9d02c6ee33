"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Reservation``: enforces valid lifecycle transitions
  (PENDING -> ASSIGNED -> STARTED -> COMPLETED | CANCELLED).
- ``Vehicle.can_carry`` encapsulates seat & baggage capacity invariants.
- ``ReservationDraft`` is the mutable, single-owner wizard state;
  ``Reservation`` is the frozen record created from it at confirmation.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from .enums import (
    RESERVATION_TRANSITIONS,
    Direction,
    PaymentMethod,
    ReservationStatus,
    ServiceCategory,
    VehicleType,
    WizardStep,
)
from .errors import InvalidTransition


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Customer:
    first_name: str
    last_name: str
    email: str
    phone: str
    flight_number: Optional[str] = None
    special_requests: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# ── Catalog ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Vehicle:
    id: str
    name: str
    vehicle_type: VehicleType
    seat_capacity: int
    baggage_capacity: int
    price_per_km: Decimal
    is_active: bool = True

    def can_carry(self, passengers: int, baggage: int) -> bool:
        return passengers <= self.seat_capacity and baggage <= self.baggage_capacity


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    price: Decimal
    category: ServiceCategory = ServiceCategory.OTHER
    is_active: bool = True


@dataclass(frozen=True)
class Catalog:
    """Vehicles and add-on services offered to the wizard, keyed by id."""

    vehicles: dict[str, Vehicle] = field(default_factory=dict)
    services: dict[str, Service] = field(default_factory=dict)

    @classmethod
    def of(cls, vehicles: list[Vehicle], services: list[Service]) -> "Catalog":
        return cls(
            vehicles={v.id: v for v in vehicles},
            services={s.id: s for s in services},
        )

    def active_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        vehicle = self.vehicles.get(vehicle_id)
        return vehicle if vehicle and vehicle.is_active else None

    def active_service(self, service_id: str) -> Optional[Service]:
        service = self.services.get(service_id)
        return service if service and service.is_active else None


# ── Booking wizard ────────────────────────────────────────────────────


@dataclass
class ReservationDraft:
    direction: Direction = Direction.AIRPORT_TO_HOTEL
    origin: str = ""
    destination: str = ""
    travel_date: Optional[date] = None
    travel_time: Optional[time] = None
    passenger_count: int = 1
    baggage_count: int = 0
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None

    vehicle: Optional[Vehicle] = None
    selected_service_ids: set[str] = field(default_factory=set)
    base_price: Optional[Decimal] = None
    services_price: Decimal = Decimal("0.00")
    total_price: Optional[Decimal] = None

    customer: Optional[Customer] = None

    payment_method: Optional[PaymentMethod] = None
    discount_percent: Decimal = Decimal("0")
    final_price: Optional[Decimal] = None


@dataclass
class WizardSession:
    """One in-progress booking: the active step pointer plus its draft.

    ``id`` doubles as the pending reservation id, so it is also the
    order reference handed to an external card gateway.
    """

    id: str
    step: WizardStep = WizardStep.ROUTE
    draft: ReservationDraft = field(default_factory=ReservationDraft)
    created_at: Optional[datetime] = None


# ── Confirmed reservation ─────────────────────────────────────────────


@dataclass(frozen=True)
class Reservation:
    id: str
    created_at: datetime
    direction: Direction
    origin: str
    destination: str
    travel_date: date
    travel_time: time
    passenger_count: int
    baggage_count: int
    distance_km: float
    vehicle_id: str
    vehicle_name: str
    price_per_km: Decimal
    customer: Customer
    payment_method: PaymentMethod
    base_price: Decimal
    services_price: Decimal
    subtotal_price: Decimal
    discount_percent: Decimal
    total_price: Decimal
    verification_token: str
    selected_service_ids: frozenset[str] = frozenset()
    duration_minutes: Optional[float] = None
    status: ReservationStatus = ReservationStatus.PENDING
    driver_id: Optional[str] = None
    driver_share: Optional[Decimal] = None
    company_share: Optional[Decimal] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return not RESERVATION_TRANSITIONS[self.status]

    def transition_to(self, new_status: ReservationStatus, **changes) -> "Reservation":
        """Return a copy moved to *new_status* if the transition is legal, else raise."""
        allowed = RESERVATION_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidTransition(
                f"Cannot transition reservation {self.id} "
                f"from {self.status.value} to {new_status.value}"
            )
        return replace(self, status=new_status, **changes)
