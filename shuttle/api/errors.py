"""
Maps domain error codes to HTTP responses.

Every error body has the same shape::

    {"code": "...", "detail": "...", "errors": [{"field": "...", "message": "..."}]}
"""

from __future__ import annotations

import logging
from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shuttle.domain.errors import BookingError, FieldError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "validation_error": 422,
    "capacity_exceeded": 422,
    "unknown_service": 422,
    "invalid_input": 422,
    "invalid_transition": 409,
    "already_assigned": 409,
    "no_payment_method_available": 409,
    "invalid_token": 401,
    "not_found": 404,
}


def error_response(
    code: str, detail: str, errors: Iterable[FieldError] = (), **extra
) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CODE.get(code, 400),
        content={
            "code": code,
            "detail": detail,
            "errors": [{"field": e.field, "message": e.message} for e in errors],
            **extra,
        },
    )


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.detail)
    return error_response(exc.code, exc.detail, exc.errors)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        FieldError(".".join(str(part) for part in err["loc"][1:]) or "body", err["msg"])
        for err in exc.errors()
    ]
    return error_response("validation_error", "Request body is invalid", errors)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
