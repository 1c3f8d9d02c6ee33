"""
Booking Wizard State Machine
============================

Steps
-----
ROUTE -> VEHICLE_AND_SERVICES -> PERSONAL_INFO -> PAYMENT -> CONFIRMATION

* ``advance(step_input)`` validates the input of the *active* step,
  merges it into the draft and moves the pointer one step forward.  A
  rejected step leaves the draft and the pointer untouched; the result
  lists every failing field.
* ``back()`` re-activates the previous step without clearing any data.
* Every merge re-runs pricing, so base / services / total / final
  prices always reflect the current vehicle, distance, add-ons and
  payment method.
* Entering CONFIRMATION freezes the draft into a ``Reservation`` in
  status PENDING and issues its verification token.  The machine is
  closed afterwards.

The machine is not reentrant: callers serialize ``advance`` / ``back``
for one session (see ``services.booking``).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Callable, Optional

from .entities import (
    Catalog,
    Customer,
    Location,
    Reservation,
    ReservationDraft,
    WizardSession,
)
from .distance import resolve_distance_km
from .enums import WIZARD_ORDER, Direction, PaymentMethod, WizardStep
from .errors import (
    BookingError,
    CapacityExceeded,
    FieldError,
    InvalidInput,
    InvalidTransition,
    PreconditionViolation,
    ValidationError,
)
from .fares import FareCalculator
from .payments import PaymentMethodResolver, PaymentQuote, PaymentSettings
from .tokens import VerificationTokenService
from .validation import check_personal_info, check_route


# ── Step inputs ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class RouteInput:
    direction: Direction
    origin: Optional[str]
    destination: Optional[str]
    travel_date: Optional[date]
    travel_time: Optional[time]
    passenger_count: int = 1
    baggage_count: int = 0
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    origin_location: Optional[Location] = None
    destination_location: Optional[Location] = None


@dataclass(frozen=True)
class VehicleSelection:
    vehicle_id: Optional[str]
    service_ids: frozenset[str] = frozenset()


@dataclass(frozen=True)
class PersonalInfo:
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    flight_number: Optional[str] = None
    special_requests: Optional[str] = None


@dataclass(frozen=True)
class PaymentChoice:
    method: Optional[PaymentMethod]


# ── Result ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StepResult:
    step: WizardStep
    draft: ReservationDraft
    error_code: Optional[str] = None
    detail: Optional[str] = None
    errors: tuple[FieldError, ...] = ()
    payment: Optional[PaymentQuote] = None
    reservation: Optional[Reservation] = None

    @property
    def ok(self) -> bool:
        return self.error_code is None


# Fields that must be present on the draft before a step can be entered
_REQUIRED_BEFORE: dict[WizardStep, tuple[str, ...]] = {
    WizardStep.ROUTE: (),
    WizardStep.VEHICLE_AND_SERVICES: (
        "origin", "destination", "travel_date", "travel_time", "distance_km",
    ),
    WizardStep.PERSONAL_INFO: ("vehicle", "base_price", "total_price"),
    WizardStep.PAYMENT: ("customer",),
    WizardStep.CONFIRMATION: ("payment_method", "final_price"),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReservationStateMachine:
    def __init__(
        self,
        session: WizardSession,
        catalog: Catalog,
        payment_settings: PaymentSettings,
        token_service: VerificationTokenService,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session = session
        self.catalog = catalog
        self.payment_settings = payment_settings
        self.token_service = token_service
        self.clock = clock
        self.reservation: Optional[Reservation] = None
        self._steps = {
            WizardStep.ROUTE: (RouteInput, self._route),
            WizardStep.VEHICLE_AND_SERVICES: (VehicleSelection, self._vehicle_and_services),
            WizardStep.PERSONAL_INFO: (PersonalInfo, self._personal_info),
            WizardStep.PAYMENT: (PaymentChoice, self._payment),
        }

    @property
    def step(self) -> WizardStep:
        return self.session.step

    @property
    def draft(self) -> ReservationDraft:
        return self.session.draft

    @property
    def is_confirmed(self) -> bool:
        return self.session.step is WizardStep.CONFIRMATION

    # ── Public API ────────────────────────────────────────────────────

    def advance(self, step_input: object) -> StepResult:
        self._ensure_open("advance")
        step = self.session.step
        input_type, handler = self._steps[step]
        if not isinstance(step_input, input_type):
            return self._reject(
                InvalidTransition(
                    f"Active step is {step.value}; expected {input_type.__name__}, "
                    f"got {type(step_input).__name__}"
                )
            )

        try:
            draft, quote = handler(step_input)
        except BookingError as exc:
            return self._reject(exc)

        next_step = WIZARD_ORDER[WIZARD_ORDER.index(step) + 1]
        self._require_fields(draft, next_step)
        self.session.draft = draft
        self.session.step = next_step

        if next_step is WizardStep.CONFIRMATION:
            self.reservation = self._freeze()
        return StepResult(
            step=next_step, draft=draft, payment=quote, reservation=self.reservation
        )

    def back(self) -> StepResult:
        self._ensure_open("back")
        index = WIZARD_ORDER.index(self.session.step)
        if index == 0:
            return self._reject(InvalidTransition("Cannot go back from the first step"))
        self.session.step = WIZARD_ORDER[index - 1]
        return StepResult(step=self.session.step, draft=self.session.draft)

    def payment_options(self) -> list[PaymentQuote]:
        """Quote every enabled payment method against the current total."""
        total = self.session.draft.total_price
        if total is None:
            raise InvalidTransition("Select a vehicle before choosing a payment method")
        return [
            PaymentMethodResolver.quote(option, total, order_reference=self.session.id)
            for option in PaymentMethodResolver.require_available(self.payment_settings)
        ]

    # ── Step handlers (return the candidate draft, never mutate) ──────

    def _route(self, data: RouteInput) -> tuple[ReservationDraft, None]:
        distance = resolve_distance_km(
            data.distance_km, data.origin_location, data.destination_location
        )
        errors = check_route(
            origin=data.origin,
            destination=data.destination,
            travel_date=data.travel_date,
            travel_time=data.travel_time,
            passenger_count=data.passenger_count,
            baggage_count=data.baggage_count,
            distance_km=distance,
            today=self.clock().date(),
        )
        if errors:
            raise ValidationError(errors)

        draft = replace(
            self.session.draft,
            direction=data.direction,
            origin=data.origin.strip(),
            destination=data.destination.strip(),
            travel_date=data.travel_date,
            travel_time=data.travel_time,
            passenger_count=data.passenger_count,
            baggage_count=data.baggage_count,
            distance_km=distance,
            duration_minutes=data.duration_minutes,
        )
        # Downstream choices are re-validated when their steps are
        # advanced again; here prices are refreshed or cleared.
        try:
            return self._reprice(draft), None
        except BookingError:
            return self._clear_prices(draft), None

    def _vehicle_and_services(self, data: VehicleSelection) -> tuple[ReservationDraft, None]:
        draft = self.session.draft
        if not data.vehicle_id:
            raise ValidationError([FieldError("vehicle_id", "Select a vehicle")])
        vehicle = self.catalog.active_vehicle(data.vehicle_id)
        if vehicle is None:
            raise ValidationError(
                [FieldError("vehicle_id", f"Vehicle '{data.vehicle_id}' is not available")]
            )
        if not vehicle.can_carry(draft.passenger_count, draft.baggage_count):
            errors = []
            if draft.passenger_count > vehicle.seat_capacity:
                errors.append(
                    FieldError(
                        "vehicle_id",
                        f"{vehicle.name} seats {vehicle.seat_capacity}, "
                        f"{draft.passenger_count} passengers requested",
                    )
                )
            if draft.baggage_count > vehicle.baggage_capacity:
                errors.append(
                    FieldError(
                        "vehicle_id",
                        f"{vehicle.name} carries {vehicle.baggage_capacity} bags, "
                        f"{draft.baggage_count} requested",
                    )
                )
            raise CapacityExceeded(f"{vehicle.name} cannot carry this party", errors)

        candidate = replace(
            draft, vehicle=vehicle, selected_service_ids=set(data.service_ids)
        )
        return self._reprice(candidate), None

    def _personal_info(self, data: PersonalInfo) -> tuple[ReservationDraft, None]:
        errors = check_personal_info(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            phone=data.phone,
            flight_number=data.flight_number,
        )
        if errors:
            raise ValidationError(errors)

        customer = Customer(
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=data.email.strip(),
            phone=data.phone.strip(),
            flight_number=(data.flight_number or "").strip() or None,
            special_requests=(data.special_requests or "").strip() or None,
        )
        return self._reprice(replace(self.session.draft, customer=customer)), None

    def _payment(self, data: PaymentChoice) -> tuple[ReservationDraft, PaymentQuote]:
        PaymentMethodResolver.require_available(self.payment_settings)
        if data.method is None:
            raise ValidationError([FieldError("payment_method", "Select a payment method")])
        option = PaymentMethodResolver.find(self.payment_settings, data.method)
        if option is None:
            raise ValidationError(
                [
                    FieldError(
                        "payment_method",
                        f"Payment method '{data.method.value}' is not available",
                    )
                ]
            )

        draft = self._reprice(replace(self.session.draft, payment_method=data.method))
        quote = PaymentMethodResolver.quote(
            option, draft.total_price, order_reference=self.session.id
        )
        return draft, quote

    # ── Internals ─────────────────────────────────────────────────────

    def _reprice(self, draft: ReservationDraft) -> ReservationDraft:
        """Recompute every price the draft currently supports."""
        if draft.vehicle is None or draft.distance_km is None:
            return self._clear_prices(draft)

        # always the live catalog record; the draft only pins the id
        vehicle = self.catalog.active_vehicle(draft.vehicle.id)
        if vehicle is None:
            raise InvalidInput(
                f"Vehicle '{draft.vehicle.id}' is no longer available",
                [FieldError("vehicle_id", "Select another vehicle")],
            )
        base = FareCalculator.compute_base_price(vehicle, draft.distance_km)
        services = FareCalculator.compute_services_price(
            draft.selected_service_ids, self.catalog
        )
        total = base + services

        method, discount, final = draft.payment_method, Decimal("0"), None
        if method is not None:
            option = PaymentMethodResolver.find(self.payment_settings, method)
            if option is None:
                method = None
            else:
                discount = option.discount_percent
                final = PaymentMethodResolver.price_for(option, total)

        return replace(
            draft,
            vehicle=vehicle,
            base_price=base,
            services_price=services,
            total_price=total,
            payment_method=method,
            discount_percent=discount,
            final_price=final,
        )

    @staticmethod
    def _clear_prices(draft: ReservationDraft) -> ReservationDraft:
        return replace(
            draft,
            base_price=None,
            total_price=None,
            final_price=None,
            discount_percent=Decimal("0"),
        )

    def _reject(self, exc: BookingError) -> StepResult:
        return StepResult(
            step=self.session.step,
            draft=self.session.draft,
            error_code=exc.code,
            detail=exc.detail,
            errors=exc.errors,
        )

    def _ensure_open(self, action: str) -> None:
        if self.is_confirmed:
            raise PreconditionViolation(
                f"Cannot {action}: booking {self.session.id} is already confirmed"
            )

    def _require_fields(self, draft: ReservationDraft, step: WizardStep) -> None:
        for index in range(WIZARD_ORDER.index(step) + 1):
            for name in _REQUIRED_BEFORE[WIZARD_ORDER[index]]:
                if getattr(draft, name) in (None, ""):
                    raise PreconditionViolation(
                        f"Draft field '{name}' must be set before entering {step.value}"
                    )
        if step is WizardStep.PAYMENT and not draft.customer.email:
            raise PreconditionViolation("Customer email must be set before payment")

    def _freeze(self) -> Reservation:
        draft = self.session.draft
        return Reservation(
            id=self.session.id,
            created_at=self.clock(),
            direction=draft.direction,
            origin=draft.origin,
            destination=draft.destination,
            travel_date=draft.travel_date,
            travel_time=draft.travel_time,
            passenger_count=draft.passenger_count,
            baggage_count=draft.baggage_count,
            distance_km=draft.distance_km,
            duration_minutes=draft.duration_minutes,
            vehicle_id=draft.vehicle.id,
            vehicle_name=draft.vehicle.name,
            price_per_km=draft.vehicle.price_per_km,
            selected_service_ids=frozenset(draft.selected_service_ids),
            customer=draft.customer,
            payment_method=draft.payment_method,
            base_price=draft.base_price,
            services_price=draft.services_price,
            subtotal_price=draft.total_price,
            discount_percent=draft.discount_percent,
            total_price=draft.final_price,
            verification_token=self.token_service.issue(self.session.id),
        )
