"""
Booking wizard endpoints
========================

POST /api/v1/bookings                          -- start a wizard session
GET  /api/v1/bookings/{id}                     -- current step and draft
POST /api/v1/bookings/{id}/route               -- step 1: route
POST /api/v1/bookings/{id}/vehicle             -- step 2: vehicle & add-ons
POST /api/v1/bookings/{id}/personal-info       -- step 3: customer details
GET  /api/v1/bookings/{id}/payment-methods     -- enabled methods with amounts
POST /api/v1/bookings/{id}/payment             -- step 4: payment -> confirmation
POST /api/v1/bookings/{id}/back                -- re-open the previous step

A rejected step answers with the error body plus the unchanged ``step``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from shuttle.api.dependencies import get_booking_service
from shuttle.api.errors import error_response
from shuttle.api.middleware import limiter
from shuttle.api.schemas import (
    BookingResponse,
    ErrorResponse,
    PaymentQuoteResponse,
    PaymentRequest,
    PersonalInfoRequest,
    RouteRequest,
    StepResponse,
    VehicleRequest,
)
from shuttle.config import settings
from shuttle.domain.wizard import StepResult
from shuttle.services.booking import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])

_STEP_ERRORS = {
    409: {"model": ErrorResponse, "description": "Step not active or no payment method"},
    422: {"model": ErrorResponse, "description": "Step data rejected"},
}


def _step_response(result: StepResult):
    if result.ok:
        return StepResponse.from_result(result)
    return error_response(
        result.error_code, result.detail, result.errors, step=result.step.value
    )


@router.post(
    "",
    status_code=201,
    response_model=BookingResponse,
    summary="Start a booking wizard session",
)
@limiter.limit(settings.rate_limit)
async def start_booking(
    request: Request,
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse.from_session(await service.start())


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get the active step and draft of a booking",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def get_booking(
    request: Request,
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse.from_session(await service.get(booking_id))


@router.post(
    "/{booking_id}/route",
    response_model=StepResponse,
    summary="Submit the route step",
    responses=_STEP_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def submit_route(
    request: Request,
    booking_id: str,
    body: RouteRequest,
    service: BookingService = Depends(get_booking_service),
):
    return _step_response(await service.submit(booking_id, body.to_input()))


@router.post(
    "/{booking_id}/vehicle",
    response_model=StepResponse,
    summary="Submit the vehicle and add-on services step",
    responses=_STEP_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def submit_vehicle(
    request: Request,
    booking_id: str,
    body: VehicleRequest,
    service: BookingService = Depends(get_booking_service),
):
    return _step_response(await service.submit(booking_id, body.to_input()))


@router.post(
    "/{booking_id}/personal-info",
    response_model=StepResponse,
    summary="Submit the customer details step",
    responses=_STEP_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def submit_personal_info(
    request: Request,
    booking_id: str,
    body: PersonalInfoRequest,
    service: BookingService = Depends(get_booking_service),
):
    return _step_response(await service.submit(booking_id, body.to_input()))


@router.get(
    "/{booking_id}/payment-methods",
    response_model=list[PaymentQuoteResponse],
    summary="List enabled payment methods with the amount due for each",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def list_payment_methods(
    request: Request,
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    quotes = await service.payment_options(booking_id)
    return [PaymentQuoteResponse.from_quote(q) for q in quotes]


@router.post(
    "/{booking_id}/payment",
    response_model=StepResponse,
    summary="Choose the payment method and confirm the reservation",
    description=(
        "On success the booking is frozen into a PENDING reservation whose "
        "verification token is returned for the QR code.  Card payments "
        "carry ``requires_redirect`` and the order reference for the gateway."
    ),
    responses=_STEP_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def submit_payment(
    request: Request,
    booking_id: str,
    body: PaymentRequest,
    service: BookingService = Depends(get_booking_service),
):
    return _step_response(await service.submit(booking_id, body.to_input()))


@router.post(
    "/{booking_id}/back",
    response_model=StepResponse,
    summary="Re-open the previous step without clearing data",
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def go_back(
    request: Request,
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    return _step_response(await service.back(booking_id))
