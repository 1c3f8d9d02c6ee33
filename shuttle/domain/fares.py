"""
Fare Calculator
===============

Formula
-------
Base     = Vehicle.price_per_km x Distance_km
Services = sum(price of each selected add-on)
Total    = (Base + Services) x (1 - Discount_Percent / 100)

* Every amount is rounded **half-up** to 2 decimals (kuruş / cents).
* The discount is non-zero only for bank transfers (see ``payments``).
* Vehicles are sanity-checked against the bounds of their type before
  they are priced, so a mis-entered fleet record cannot produce a fare.

All functions are pure.  Complexity: O(1) per price, O(k) for k add-ons.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation
from typing import Iterable, Union

from .entities import Catalog, Vehicle
from .enums import VehicleType
from .errors import InvalidInput, UnknownService

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_money(value: Number) -> Decimal:
    """Round *value* half-up to minor-unit precision."""
    if not isinstance(value, Decimal):
        # str() keeps 0.1 as 0.1 instead of its binary expansion
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ── Fleet sanity bounds ───────────────────────────────────────────────


@dataclass(frozen=True)
class VehicleTypeLimits:
    max_seats: int
    max_baggage: int
    min_price_per_km: Decimal


VEHICLE_TYPE_LIMITS: dict[VehicleType, VehicleTypeLimits] = {
    VehicleType.SEDAN: VehicleTypeLimits(4, 3, Decimal("5")),
    VehicleType.SUV: VehicleTypeLimits(7, 5, Decimal("8")),
    VehicleType.VAN: VehicleTypeLimits(15, 10, Decimal("12")),
    VehicleType.LUXURY: VehicleTypeLimits(4, 4, Decimal("25")),
}


def check_vehicle_bounds(vehicle: Vehicle) -> None:
    """Raise ``InvalidInput`` if *vehicle* violates the limits of its type."""
    limits = VEHICLE_TYPE_LIMITS[vehicle.vehicle_type]
    kind = vehicle.vehicle_type.value
    if vehicle.seat_capacity < 1 or vehicle.seat_capacity > limits.max_seats:
        raise InvalidInput(
            f"{kind} vehicles carry 1-{limits.max_seats} passengers, "
            f"vehicle {vehicle.id} declares {vehicle.seat_capacity}"
        )
    if vehicle.baggage_capacity < 0 or vehicle.baggage_capacity > limits.max_baggage:
        raise InvalidInput(
            f"{kind} vehicles carry at most {limits.max_baggage} bags, "
            f"vehicle {vehicle.id} declares {vehicle.baggage_capacity}"
        )
    if Decimal(vehicle.price_per_km) < limits.min_price_per_km:
        raise InvalidInput(
            f"{kind} vehicles cost at least {limits.min_price_per_km}/km, "
            f"vehicle {vehicle.id} declares {vehicle.price_per_km}"
        )


# ── Calculator ────────────────────────────────────────────────────────


class FareCalculator:
    """High-level API used by the booking wizard and the payment resolver."""

    @staticmethod
    def compute_base_price(vehicle: Vehicle, distance_km: Number) -> Decimal:
        try:
            distance = Decimal(str(distance_km))
        except InvalidOperation:
            raise InvalidInput(f"Distance is not a number: {distance_km!r}") from None
        if not distance.is_finite() or distance <= 0:
            raise InvalidInput(f"Distance must be a positive finite number, got {distance_km}")
        if not vehicle.is_active:
            raise InvalidInput(f"Vehicle {vehicle.id} is not active")
        check_vehicle_bounds(vehicle)
        try:
            return to_money(Decimal(vehicle.price_per_km) * distance)
        except DecimalException:
            raise InvalidInput(f"Distance {distance_km} is out of range") from None

    @staticmethod
    def compute_services_price(selected_ids: Iterable[str], catalog: Catalog) -> Decimal:
        """Sum the add-ons; fail closed on anything unknown or inactive."""
        selected = set(selected_ids)
        missing = {sid for sid in selected if catalog.active_service(sid) is None}
        if missing:
            raise UnknownService(missing)
        return to_money(sum((catalog.services[sid].price for sid in selected), Decimal("0")))

    @staticmethod
    def compute_total(
        base_price: Number, services_price: Number, discount_percent: Number = 0
    ) -> Decimal:
        discount = Decimal(str(discount_percent))
        if discount < 0 or discount > HUNDRED:
            raise InvalidInput(f"Discount must be within 0-100%, got {discount_percent}")
        subtotal = Decimal(str(base_price)) + Decimal(str(services_price))
        return to_money(subtotal * (1 - discount / HUNDRED))
