"""
Field rules of the booking wizard steps.

Each ``check_*`` function is pure: it inspects one step's input and
returns every ``FieldError`` found (an empty list means the step is
valid), so a client can highlight all bad fields at once.
"""

from __future__ import annotations

import math
import re
from datetime import date, time
from typing import Optional

from .errors import FieldError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[\d\s\-()]+$")

MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 10
MIN_FLIGHT_NUMBER_LENGTH = 3
# Longest transfer the fleet is dispatched for
MAX_DISTANCE_KM = 1000


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def check_route(
    *,
    origin: Optional[str],
    destination: Optional[str],
    travel_date: Optional[date],
    travel_time: Optional[time],
    passenger_count: int,
    baggage_count: int,
    distance_km: Optional[float],
    today: date,
) -> list[FieldError]:
    errors: list[FieldError] = []
    if _blank(origin):
        errors.append(FieldError("origin", "Origin is required"))
    if _blank(destination):
        errors.append(FieldError("destination", "Destination is required"))
    if travel_date is None:
        errors.append(FieldError("date", "Travel date is required"))
    elif travel_date < today:
        errors.append(FieldError("date", "Travel date cannot be in the past"))
    if travel_time is None:
        errors.append(FieldError("time", "Travel time is required"))
    if passenger_count < 1:
        errors.append(FieldError("passenger_count", "At least one passenger is required"))
    if baggage_count < 0:
        errors.append(FieldError("baggage_count", "Baggage count cannot be negative"))
    if distance_km is None:
        errors.append(FieldError("distance_km", "Route distance could not be resolved"))
    elif not math.isfinite(distance_km) or distance_km <= 0:
        errors.append(FieldError("distance_km", "Route distance must be greater than zero"))
    elif distance_km > MAX_DISTANCE_KM:
        errors.append(
            FieldError("distance_km", f"Route distance cannot exceed {MAX_DISTANCE_KM} km")
        )
    return errors


def check_personal_info(
    *,
    first_name: Optional[str],
    last_name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    flight_number: Optional[str],
) -> list[FieldError]:
    errors: list[FieldError] = []

    for field_name, value, label in (
        ("first_name", first_name, "First name"),
        ("last_name", last_name, "Last name"),
    ):
        if _blank(value):
            errors.append(FieldError(field_name, f"{label} is required"))
        elif len(value.strip()) < MIN_NAME_LENGTH:
            errors.append(
                FieldError(field_name, f"{label} must be at least {MIN_NAME_LENGTH} characters")
            )

    if _blank(email):
        errors.append(FieldError("email", "Email is required"))
    elif not EMAIL_RE.match(email.strip()):
        errors.append(FieldError("email", "Enter a valid email address"))

    if _blank(phone):
        errors.append(FieldError("phone", "Phone number is required"))
    else:
        digits = sum(ch.isdigit() for ch in phone)
        if not PHONE_RE.match(phone.strip()) or digits < MIN_PHONE_DIGITS:
            errors.append(
                FieldError(
                    "phone",
                    f"Enter a valid phone number with at least {MIN_PHONE_DIGITS} digits",
                )
            )

    if not _blank(flight_number) and len(flight_number.strip()) < MIN_FLIGHT_NUMBER_LENGTH:
        errors.append(
            FieldError(
                "flight_number",
                f"Flight number must be at least {MIN_FLIGHT_NUMBER_LENGTH} characters",
            )
        )
    return errors
