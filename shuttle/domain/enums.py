"""Domain enumerations and state-transition rules."""

import enum


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# State machine: maps current status -> set of valid next statuses
RESERVATION_TRANSITIONS: dict[ReservationStatus, set[ReservationStatus]] = {
    ReservationStatus.PENDING: {ReservationStatus.ASSIGNED, ReservationStatus.CANCELLED},
    ReservationStatus.ASSIGNED: {ReservationStatus.STARTED, ReservationStatus.CANCELLED},
    ReservationStatus.STARTED: {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED},
    ReservationStatus.COMPLETED: set(),
    ReservationStatus.CANCELLED: set(),
}


class WizardStep(str, enum.Enum):
    ROUTE = "route"
    VEHICLE_AND_SERVICES = "vehicle_and_services"
    PERSONAL_INFO = "personal_info"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


WIZARD_ORDER: list[WizardStep] = list(WizardStep)


class Direction(str, enum.Enum):
    AIRPORT_TO_HOTEL = "airport_to_hotel"
    HOTEL_TO_AIRPORT = "hotel_to_airport"


class VehicleType(str, enum.Enum):
    SEDAN = "sedan"
    SUV = "suv"
    VAN = "van"
    LUXURY = "luxury"


class ServiceCategory(str, enum.Enum):
    CHILD_SEAT = "child_seat"
    EXTRA_BAGGAGE = "extra_baggage"
    MEET_GREET = "meet_greet"
    OTHER = "other"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"


# Display order of the payment step
PAYMENT_METHOD_ORDER: list[PaymentMethod] = [
    PaymentMethod.CASH,
    PaymentMethod.BANK_TRANSFER,
    PaymentMethod.CARD,
]
