"""
Reservation endpoints
=====================

GET  /api/v1/reservations/{id}            -- confirmed reservation
POST /api/v1/reservations/verify          -- check a scanned QR token
POST /api/v1/reservations/{id}/assign     -- dispatch a driver
POST /api/v1/reservations/{id}/start      -- driver picked the customer up
POST /api/v1/reservations/{id}/complete   -- trip finished, settle commission
POST /api/v1/reservations/{id}/cancel     -- cancel with a reason
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from shuttle.api.dependencies import get_token_service, get_trip_manager
from shuttle.api.middleware import limiter
from shuttle.api.schemas import (
    AssignRequest,
    CancelRequest,
    ErrorResponse,
    ReservationResponse,
    StartRequest,
    TransitionResponse,
    VerifyRequest,
    VerifyResponse,
)
from shuttle.config import settings
from shuttle.domain.errors import InvalidToken
from shuttle.domain.lifecycle import TransitionOutcome
from shuttle.domain.tokens import VerificationTokenService
from shuttle.services.trips import TripLifecycleManager

router = APIRouter(prefix="/reservations", tags=["reservations"])

_TRANSITION_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse, "description": "Transition not allowed from current status"},
    422: {"model": ErrorResponse},
}


def _transition_response(outcome: TransitionOutcome) -> TransitionResponse:
    reservation = outcome.reservation
    return TransitionResponse(
        reservation_id=reservation.id,
        previous_status=outcome.previous_status.value,
        status=outcome.status.value,
        changed=outcome.changed,
        driver_id=reservation.driver_id,
        driver_share=reservation.driver_share,
        company_share=reservation.company_share,
    )


@router.post(
    "/verify",
    response_model=VerifyResponse,
    summary="Verify a scanned QR token",
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def verify_token(
    request: Request,
    body: VerifyRequest,
    tokens: VerificationTokenService = Depends(get_token_service),
    manager: TripLifecycleManager = Depends(get_trip_manager),
):
    reservation = await manager.get(tokens.verify(body.token))
    return VerifyResponse(reservation_id=reservation.id, status=reservation.status.value)


@router.get(
    "/{reservation_id}",
    response_model=ReservationResponse,
    summary="Get a confirmed reservation",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def get_reservation(
    request: Request,
    reservation_id: str,
    manager: TripLifecycleManager = Depends(get_trip_manager),
):
    return ReservationResponse.from_reservation(await manager.get(reservation_id))


@router.post(
    "/{reservation_id}/assign",
    response_model=TransitionResponse,
    summary="Assign a driver",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def assign_driver(
    request: Request,
    reservation_id: str,
    body: AssignRequest,
    manager: TripLifecycleManager = Depends(get_trip_manager),
):
    return _transition_response(await manager.assign(reservation_id, body.driver_id))


@router.post(
    "/{reservation_id}/start",
    response_model=TransitionResponse,
    summary="Start the trip",
    responses={**_TRANSITION_ERRORS, 401: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def start_trip(
    request: Request,
    reservation_id: str,
    body: Optional[StartRequest] = None,
    tokens: VerificationTokenService = Depends(get_token_service),
    manager: TripLifecycleManager = Depends(get_trip_manager),
):
    if body is not None and body.verification_token:
        if tokens.verify(body.verification_token) != reservation_id:
            raise InvalidToken("Token does not belong to this reservation")
    return _transition_response(await manager.start(reservation_id))


@router.post(
    "/{reservation_id}/complete",
    response_model=TransitionResponse,
    summary="Complete the trip and settle the commission split",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def complete_trip(
    request: Request,
    reservation_id: str,
    manager: TripLifecycleManager = Depends(get_trip_manager),
):
    return _transition_response(await manager.complete(reservation_id))


@router.post(
    "/{reservation_id}/cancel",
    response_model=TransitionResponse,
    summary="Cancel the reservation",
    responses=_TRANSITION_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def cancel_reservation(
    request: Request,
    reservation_id: str,
    body: CancelRequest,
    manager: TripLifecycleManager = Depends(get_trip_manager),
):
    return _transition_response(await manager.cancel(reservation_id, body.reason))
