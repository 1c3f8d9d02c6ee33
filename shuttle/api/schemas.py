"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from shuttle.domain.entities import Location, Reservation, ReservationDraft, WizardSession
from shuttle.domain.enums import Direction, PaymentMethod
from shuttle.domain.payments import PaymentQuote
from shuttle.domain.wizard import (
    PaymentChoice,
    PersonalInfo,
    RouteInput,
    StepResult,
    VehicleSelection,
)
from shuttle.infrastructure.repositories import RevenueSummary


# ── Requests ──────────────────────────────────────────────────────────


class LocationSchema(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class RouteRequest(BaseModel):
    direction: Direction = Direction.AIRPORT_TO_HOTEL
    origin: Optional[str] = None
    destination: Optional[str] = None
    travel_date: Optional[date] = None
    travel_time: Optional[time] = None
    passenger_count: int = 1
    baggage_count: int = 0
    distance_km: Optional[float] = Field(
        None, description="Route distance; estimated from coordinates when omitted."
    )
    duration_minutes: Optional[float] = None
    origin_location: Optional[LocationSchema] = None
    destination_location: Optional[LocationSchema] = None

    def to_input(self) -> RouteInput:
        return RouteInput(
            direction=self.direction,
            origin=self.origin,
            destination=self.destination,
            travel_date=self.travel_date,
            travel_time=self.travel_time,
            passenger_count=self.passenger_count,
            baggage_count=self.baggage_count,
            distance_km=self.distance_km,
            duration_minutes=self.duration_minutes,
            origin_location=_location(self.origin_location),
            destination_location=_location(self.destination_location),
        )


class VehicleRequest(BaseModel):
    vehicle_id: Optional[str] = None
    service_ids: list[str] = []

    def to_input(self) -> VehicleSelection:
        return VehicleSelection(
            vehicle_id=self.vehicle_id, service_ids=frozenset(self.service_ids)
        )


class PersonalInfoRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    flight_number: Optional[str] = None
    special_requests: Optional[str] = None

    def to_input(self) -> PersonalInfo:
        return PersonalInfo(**self.model_dump())


class PaymentRequest(BaseModel):
    method: Optional[PaymentMethod] = None

    def to_input(self) -> PaymentChoice:
        return PaymentChoice(method=self.method)


class AssignRequest(BaseModel):
    driver_id: str


class StartRequest(BaseModel):
    verification_token: Optional[str] = Field(
        None, description="Scanned QR token; checked against the reservation when given."
    )


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class VerifyRequest(BaseModel):
    token: str


# ── Responses ─────────────────────────────────────────────────────────


class FieldErrorSchema(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    code: str
    detail: str
    errors: list[FieldErrorSchema] = []


class CustomerSchema(BaseModel):
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str
    flight_number: Optional[str] = None
    special_requests: Optional[str] = None

    model_config = {"from_attributes": True}


class BankDetailsSchema(BaseModel):
    bank_name: str
    account_holder: str
    iban: str
    swift_code: str

    model_config = {"from_attributes": True}


class PaymentQuoteResponse(BaseModel):
    method: PaymentMethod
    base_total: Decimal
    discount_percent: Decimal
    amount: Decimal
    requires_redirect: bool = False
    order_reference: Optional[str] = None
    bank_details: Optional[BankDetailsSchema] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_quote(cls, quote: PaymentQuote) -> "PaymentQuoteResponse":
        return cls.model_validate(quote)


class DraftResponse(BaseModel):
    direction: Direction
    origin: str
    destination: str
    travel_date: Optional[date] = None
    travel_time: Optional[time] = None
    passenger_count: int
    baggage_count: int
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    vehicle_id: Optional[str] = None
    vehicle_name: Optional[str] = None
    selected_service_ids: list[str] = []
    base_price: Optional[Decimal] = None
    services_price: Decimal
    total_price: Optional[Decimal] = None
    customer: Optional[CustomerSchema] = None
    payment_method: Optional[PaymentMethod] = None
    discount_percent: Decimal
    final_price: Optional[Decimal] = None

    @classmethod
    def from_draft(cls, draft: ReservationDraft) -> "DraftResponse":
        return cls(
            direction=draft.direction,
            origin=draft.origin,
            destination=draft.destination,
            travel_date=draft.travel_date,
            travel_time=draft.travel_time,
            passenger_count=draft.passenger_count,
            baggage_count=draft.baggage_count,
            distance_km=draft.distance_km,
            duration_minutes=draft.duration_minutes,
            vehicle_id=draft.vehicle.id if draft.vehicle else None,
            vehicle_name=draft.vehicle.name if draft.vehicle else None,
            selected_service_ids=sorted(draft.selected_service_ids),
            base_price=draft.base_price,
            services_price=draft.services_price,
            total_price=draft.total_price,
            customer=CustomerSchema.model_validate(draft.customer) if draft.customer else None,
            payment_method=draft.payment_method,
            discount_percent=draft.discount_percent,
            final_price=draft.final_price,
        )


class BookingResponse(BaseModel):
    id: str
    step: str
    created_at: Optional[datetime] = None
    draft: DraftResponse

    @classmethod
    def from_session(cls, session: WizardSession) -> "BookingResponse":
        return cls(
            id=session.id,
            step=session.step.value,
            created_at=session.created_at,
            draft=DraftResponse.from_draft(session.draft),
        )


class ReservationResponse(BaseModel):
    id: str
    status: str
    direction: Direction
    origin: str
    destination: str
    travel_date: date
    travel_time: time
    passenger_count: int
    baggage_count: int
    distance_km: float
    duration_minutes: Optional[float] = None
    vehicle_id: str
    vehicle_name: str
    price_per_km: Decimal
    selected_service_ids: list[str] = []
    customer: CustomerSchema
    payment_method: PaymentMethod
    base_price: Decimal
    services_price: Decimal
    subtotal_price: Decimal
    discount_percent: Decimal
    total_price: Decimal
    verification_token: str
    driver_id: Optional[str] = None
    driver_share: Optional[Decimal] = None
    company_share: Optional[Decimal] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "ReservationResponse":
        data = {
            name: getattr(reservation, name)
            for name in cls.model_fields
            if name not in ("status", "selected_service_ids", "customer")
        }
        return cls(
            **data,
            status=reservation.status.value,
            selected_service_ids=sorted(reservation.selected_service_ids),
            customer=CustomerSchema.model_validate(reservation.customer),
        )


class StepResponse(BaseModel):
    step: str
    draft: DraftResponse
    payment: Optional[PaymentQuoteResponse] = None
    reservation: Optional[ReservationResponse] = None

    @classmethod
    def from_result(cls, result: StepResult) -> "StepResponse":
        return cls(
            step=result.step.value,
            draft=DraftResponse.from_draft(result.draft),
            payment=PaymentQuoteResponse.from_quote(result.payment) if result.payment else None,
            reservation=(
                ReservationResponse.from_reservation(result.reservation)
                if result.reservation
                else None
            ),
        )


class TransitionResponse(BaseModel):
    reservation_id: str
    previous_status: str
    status: str
    changed: bool
    driver_id: Optional[str] = None
    driver_share: Optional[Decimal] = None
    company_share: Optional[Decimal] = None


class VerifyResponse(BaseModel):
    reservation_id: str
    status: str
    valid: bool = True


class DriverEarningsResponse(BaseModel):
    driver_id: str
    name: str
    completed_trips: int
    earnings: Decimal

    model_config = {"from_attributes": True}


class RevenueResponse(BaseModel):
    currency: str
    driver_commission_percent: float
    completed_trips: int
    revenue: Decimal
    driver_share: Decimal
    company_share: Decimal
    drivers: list[DriverEarningsResponse] = []
    status_counts: dict[str, int] = {}

    @classmethod
    def from_summary(
        cls,
        summary: RevenueSummary,
        status_counts: dict,
        currency: str,
        driver_commission_percent: float,
    ) -> "RevenueResponse":
        return cls(
            currency=currency,
            driver_commission_percent=driver_commission_percent,
            completed_trips=summary.completed_trips,
            revenue=summary.revenue,
            driver_share=summary.driver_share,
            company_share=summary.company_share,
            drivers=[DriverEarningsResponse.model_validate(d) for d in summary.drivers],
            status_counts={status.value: count for status, count in status_counts.items()},
        )


class HealthResponse(BaseModel):
    status: str = "ok"
    redis: bool = True


def _location(schema: Optional[LocationSchema]) -> Optional[Location]:
    if schema is None:
        return None
    return Location(latitude=schema.latitude, longitude=schema.longitude)
