"""Unit tests for the booking wizard state machine."""

import copy
from dataclasses import replace
from decimal import Decimal

import pytest

from shuttle.domain.entities import Catalog, Location, WizardSession
from shuttle.domain.enums import Direction, PaymentMethod, ReservationStatus, WizardStep
from shuttle.domain.errors import PreconditionViolation
from shuttle.domain.payments import PaymentSettings
from shuttle.domain.wizard import (
    PaymentChoice,
    PersonalInfo,
    ReservationStateMachine,
    RouteInput,
    VehicleSelection,
)
from tests.conftest import SEDAN, SERVICES, SUV, TRAVEL_DATE, TRAVEL_TIME, fixed_clock


def route(**overrides) -> RouteInput:
    fields = dict(
        direction=Direction.AIRPORT_TO_HOTEL,
        origin="Antalya Havalimanı Terminal 1",
        destination="Lara Beach Resort & Spa",
        travel_date=TRAVEL_DATE,
        travel_time=TRAVEL_TIME,
        passenger_count=2,
        baggage_count=3,
        distance_km=25,
    )
    fields.update(overrides)
    return RouteInput(**fields)


def person(**overrides) -> PersonalInfo:
    fields = dict(
        first_name="Ahmet",
        last_name="Yılmaz",
        email="ahmet@example.com",
        phone="+90 532 123 4567",
        flight_number="TK1234",
    )
    fields.update(overrides)
    return PersonalInfo(**fields)


SUV_WITH_SEAT_AND_BAGGAGE = VehicleSelection(
    "comfort-suv", frozenset({"baby-seat", "extra-baggage"})
)


@pytest.fixture
def machine(catalog, payment_settings, token_service):
    return ReservationStateMachine(
        WizardSession(id="bk-1", created_at=fixed_clock()),
        catalog,
        payment_settings,
        token_service,
        clock=fixed_clock,
    )


def at_payment(machine):
    for step_input in (route(), SUV_WITH_SEAT_AND_BAGGAGE, person()):
        assert machine.advance(step_input).ok
    assert machine.step is WizardStep.PAYMENT
    return machine


class TestHappyPath:
    def test_route_moves_to_vehicle_step(self, machine):
        result = machine.advance(route())
        assert result.ok
        assert result.step is WizardStep.VEHICLE_AND_SERVICES
        assert machine.draft.distance_km == 25
        assert machine.draft.total_price is None

    def test_vehicle_and_services_pricing(self, machine):
        machine.advance(route())
        result = machine.advance(SUV_WITH_SEAT_AND_BAGGAGE)
        assert result.ok
        assert result.draft.base_price == Decimal("300.00")
        assert result.draft.services_price == Decimal("80.00")
        assert result.draft.total_price == Decimal("380.00")

    def test_bank_transfer_confirms_with_discount(self, machine, token_service):
        at_payment(machine)
        result = machine.advance(PaymentChoice(PaymentMethod.BANK_TRANSFER))

        assert result.ok
        assert result.step is WizardStep.CONFIRMATION
        assert result.draft.final_price == Decimal("361.00")
        assert result.payment.amount == Decimal("361.00")
        assert result.payment.requires_redirect is False

        reservation = result.reservation
        assert reservation.id == "bk-1"
        assert reservation.status is ReservationStatus.PENDING
        assert reservation.subtotal_price == Decimal("380.00")
        assert reservation.total_price == Decimal("361.00")
        assert reservation.discount_percent == Decimal("5")
        assert reservation.selected_service_ids == {"baby-seat", "extra-baggage"}
        assert reservation.customer.email == "ahmet@example.com"
        assert token_service.verify(reservation.verification_token) == "bk-1"

    def test_card_payment_hands_off_to_gateway(self, machine):
        at_payment(machine)
        result = machine.advance(PaymentChoice(PaymentMethod.CARD))
        assert result.payment.requires_redirect is True
        assert result.payment.order_reference == "bk-1"
        assert result.reservation.total_price == Decimal("380.00")

    def test_route_distance_from_coordinates(self, machine):
        result = machine.advance(
            route(
                distance_km=None,
                origin_location=Location(36.8987, 30.8005),
                destination_location=Location(36.8497, 30.8500),
            )
        )
        assert result.ok
        assert 6 < result.draft.distance_km < 8


class TestRejectedSteps:
    def test_capacity_exceeded_keeps_step(self, machine):
        machine.advance(route(passenger_count=5))
        before = copy.deepcopy(machine.draft)

        result = machine.advance(VehicleSelection("economy-sedan"))

        assert not result.ok
        assert result.error_code == "capacity_exceeded"
        assert result.step is WizardStep.VEHICLE_AND_SERVICES
        assert result.errors[0].field == "vehicle_id"
        assert machine.step is WizardStep.VEHICLE_AND_SERVICES
        assert machine.draft == before

    def test_baggage_capacity_exceeded(self, machine):
        machine.advance(route(baggage_count=4))
        result = machine.advance(VehicleSelection("economy-sedan"))
        assert result.error_code == "capacity_exceeded"
        assert "bags" in result.errors[0].message

    def test_route_lists_every_bad_field(self, machine):
        result = machine.advance(
            route(origin=" ", destination=None, travel_time=None, passenger_count=0)
        )
        assert result.error_code == "validation_error"
        assert {e.field for e in result.errors} == {
            "origin", "destination", "time", "passenger_count",
        }
        assert machine.step is WizardStep.ROUTE

    def test_travel_date_in_the_past(self, machine):
        result = machine.advance(route(travel_date=fixed_clock().date().replace(year=2029)))
        assert [e.field for e in result.errors] == ["date"]

    def test_route_without_distance_or_coordinates(self, machine):
        result = machine.advance(route(distance_km=None))
        assert [e.field for e in result.errors] == ["distance_km"]

    @pytest.mark.parametrize("distance", [float("inf"), float("nan"), 1e30])
    def test_unusable_distance_is_a_field_error(self, machine, distance):
        result = machine.advance(route(distance_km=distance))
        assert result.error_code == "validation_error"
        assert [e.field for e in result.errors] == ["distance_km"]
        assert machine.step is WizardStep.ROUTE

    def test_unknown_service(self, machine):
        machine.advance(route())
        result = machine.advance(VehicleSelection("comfort-suv", frozenset({"jetpack"})))
        assert result.error_code == "unknown_service"
        assert machine.draft.vehicle is None

    def test_inactive_vehicle(self, machine):
        machine.advance(route())
        result = machine.advance(VehicleSelection("retired-van"))
        assert result.error_code == "validation_error"
        assert result.errors[0].field == "vehicle_id"

    def test_personal_info_rules(self, machine):
        machine.advance(route())
        machine.advance(SUV_WITH_SEAT_AND_BAGGAGE)
        before = copy.deepcopy(machine.draft)

        result = machine.advance(
            person(first_name="A", email="not-an-email", phone="12345", flight_number="T1")
        )

        assert result.error_code == "validation_error"
        assert {e.field for e in result.errors} == {
            "first_name", "email", "phone", "flight_number",
        }
        assert machine.draft == before

    def test_flight_number_is_optional(self, machine):
        machine.advance(route())
        machine.advance(SUV_WITH_SEAT_AND_BAGGAGE)
        assert machine.advance(person(flight_number=None)).ok

    def test_disabled_payment_method(self, catalog, token_service):
        machine = ReservationStateMachine(
            WizardSession(id="bk-2"),
            catalog,
            PaymentSettings(card_enabled=False),
            token_service,
            clock=fixed_clock,
        )
        at_payment(machine)
        result = machine.advance(PaymentChoice(PaymentMethod.CARD))
        assert result.error_code == "validation_error"
        assert result.errors[0].field == "payment_method"
        assert machine.step is WizardStep.PAYMENT

    def test_no_payment_method_enabled(self, catalog, token_service):
        machine = ReservationStateMachine(
            WizardSession(id="bk-3"),
            catalog,
            PaymentSettings(cash_enabled=False, bank_transfer_enabled=False, card_enabled=False),
            token_service,
            clock=fixed_clock,
        )
        at_payment(machine)
        result = machine.advance(PaymentChoice(PaymentMethod.CASH))
        assert result.error_code == "no_payment_method_available"

    def test_input_for_another_step(self, machine):
        result = machine.advance(PaymentChoice(PaymentMethod.CASH))
        assert result.error_code == "invalid_transition"
        assert machine.step is WizardStep.ROUTE


class TestBackNavigation:
    def test_back_keeps_data(self, machine):
        at_payment(machine)
        result = machine.back()
        assert result.ok
        assert result.step is WizardStep.PERSONAL_INFO
        assert machine.draft.customer.first_name == "Ahmet"
        assert machine.draft.total_price == Decimal("380.00")

    def test_back_from_first_step_fails(self, machine):
        result = machine.back()
        assert result.error_code == "invalid_transition"
        assert machine.step is WizardStep.ROUTE

    def test_changing_distance_reprices(self, machine):
        machine.advance(route())
        machine.advance(SUV_WITH_SEAT_AND_BAGGAGE)
        machine.back()
        machine.back()

        result = machine.advance(route(distance_km=30))

        assert result.step is WizardStep.VEHICLE_AND_SERVICES
        assert result.draft.base_price == Decimal("360.00")
        assert result.draft.total_price == Decimal("440.00")


class TestPaymentOptions:
    def test_quotes_for_every_enabled_method(self, machine):
        at_payment(machine)
        quotes = {q.method: q for q in machine.payment_options()}
        assert quotes[PaymentMethod.CASH].amount == Decimal("380.00")
        assert quotes[PaymentMethod.BANK_TRANSFER].amount == Decimal("361.00")
        assert quotes[PaymentMethod.BANK_TRANSFER].bank_details.iban.startswith("TR12")
        assert quotes[PaymentMethod.CARD].requires_redirect is True

    def test_requires_a_priced_draft(self, machine):
        from shuttle.domain.errors import InvalidTransition

        with pytest.raises(InvalidTransition):
            machine.payment_options()


class TestConfirmedMachine:
    def test_advance_after_confirmation_is_a_contract_violation(self, machine):
        at_payment(machine)
        machine.advance(PaymentChoice(PaymentMethod.CASH))
        with pytest.raises(PreconditionViolation):
            machine.advance(PaymentChoice(PaymentMethod.CASH))
        with pytest.raises(PreconditionViolation):
            machine.back()


class TestCatalogChangesMidBooking:
    """Prices always follow the catalog the machine currently sees."""

    def test_repriced_vehicle_is_charged_at_the_new_rate(self, machine):
        machine.advance(route())
        machine.advance(SUV_WITH_SEAT_AND_BAGGAGE)
        machine.catalog = Catalog.of(
            [replace(SUV, price_per_km=Decimal("14")), SEDAN], SERVICES
        )

        result = machine.advance(person())

        assert result.ok
        assert result.draft.base_price == Decimal("350.00")
        assert result.draft.vehicle.price_per_km == Decimal("14")

    def test_retired_vehicle_blocks_confirmation(self, machine):
        at_payment(machine)
        machine.catalog = Catalog.of(
            [replace(SUV, is_active=False, price_per_km=Decimal("20")), SEDAN], SERVICES
        )

        result = machine.advance(PaymentChoice(PaymentMethod.BANK_TRANSFER))

        assert result.error_code == "invalid_input"
        assert result.errors[0].field == "vehicle_id"
        assert machine.step is WizardStep.PAYMENT
        assert machine.reservation is None
