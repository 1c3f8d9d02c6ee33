"""
Domain error kinds.

Every recoverable failure derives from ``BookingError`` and carries a
stable machine-readable ``code``.  ``PreconditionViolation`` is kept
outside that hierarchy: it marks a caller breaking the contract (e.g.
advancing a wizard that was already confirmed) and is never mapped to a
client-facing response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class BookingError(Exception):
    code = "booking_error"

    def __init__(self, detail: str, errors: Iterable[FieldError] = ()):
        super().__init__(detail)
        self.detail = detail
        self.errors: tuple[FieldError, ...] = tuple(errors)


class ValidationError(BookingError):
    """One or more fields of a wizard step are invalid."""

    code = "validation_error"

    def __init__(self, errors: Iterable[FieldError], detail: str = "Step data is invalid"):
        super().__init__(detail, errors)


class CapacityExceeded(BookingError):
    code = "capacity_exceeded"


class UnknownService(BookingError):
    code = "unknown_service"

    def __init__(self, service_ids: Iterable[str]):
        self.service_ids = sorted(service_ids)
        super().__init__(
            f"Unknown or inactive services: {', '.join(self.service_ids)}",
            [FieldError("service_ids", f"'{sid}' is not available") for sid in self.service_ids],
        )


class NoPaymentMethodAvailable(BookingError):
    code = "no_payment_method_available"

    def __init__(self, detail: str = "No payment method is currently enabled"):
        super().__init__(detail)


class InvalidTransition(BookingError):
    code = "invalid_transition"


class AlreadyAssigned(BookingError):
    code = "already_assigned"

    def __init__(self, reservation_id: str, driver_id: Optional[str]):
        self.driver_id = driver_id
        super().__init__(
            f"Reservation {reservation_id} is already assigned to driver {driver_id}"
        )


class InvalidInput(BookingError):
    code = "invalid_input"


class InvalidToken(BookingError):
    code = "invalid_token"

    def __init__(self, detail: str = "Verification token is invalid"):
        super().__init__(detail)


class NotFound(BookingError):
    code = "not_found"


class PreconditionViolation(RuntimeError):
    """Raised when a caller breaks an API contract of the core."""
