"""Unit tests for reservation lifecycle transitions (State Pattern)."""

from datetime import timedelta
from decimal import Decimal

import pytest

from shuttle.domain.enums import ReservationStatus
from shuttle.domain.errors import AlreadyAssigned, InvalidInput, InvalidTransition
from tests.conftest import NOW, make_reservation

LATER = NOW + timedelta(hours=2)


class TestReservationTransitions:
    def test_initial_status_is_pending(self):
        assert make_reservation().status is ReservationStatus.PENDING

    def test_transition_returns_new_copy(self):
        reservation = make_reservation()
        assigned = reservation.transition_to(ReservationStatus.ASSIGNED, driver_id="drv-ali")
        assert assigned.status is ReservationStatus.ASSIGNED
        assert reservation.status is ReservationStatus.PENDING

    @pytest.mark.parametrize(
        "status,target",
        [
            (ReservationStatus.PENDING, ReservationStatus.STARTED),
            (ReservationStatus.PENDING, ReservationStatus.COMPLETED),
            (ReservationStatus.ASSIGNED, ReservationStatus.COMPLETED),
            (ReservationStatus.STARTED, ReservationStatus.ASSIGNED),
            (ReservationStatus.COMPLETED, ReservationStatus.CANCELLED),
            (ReservationStatus.CANCELLED, ReservationStatus.PENDING),
        ],
    )
    def test_invalid_transitions(self, status, target):
        with pytest.raises(InvalidTransition):
            make_reservation(status=status).transition_to(target)

    def test_terminal_states(self):
        assert make_reservation(status=ReservationStatus.COMPLETED).is_terminal
        assert make_reservation(status=ReservationStatus.CANCELLED).is_terminal
        assert not make_reservation(status=ReservationStatus.STARTED).is_terminal


class TestTripLifecycle:
    def test_full_trip_settles_commission(self, lifecycle):
        reservation = make_reservation()
        reservation = lifecycle.assign(reservation, "drv-ali").reservation
        reservation = lifecycle.start(reservation, NOW).reservation
        outcome = lifecycle.complete(reservation, LATER)

        done = outcome.reservation
        assert outcome.previous_status is ReservationStatus.STARTED
        assert done.status is ReservationStatus.COMPLETED
        assert done.started_at == NOW
        assert done.completed_at == LATER
        assert done.driver_share == Decimal("270.75")
        assert done.company_share == Decimal("90.25")
        assert done.driver_share + done.company_share == done.total_price

    def test_start_pending_fails_and_leaves_status(self, lifecycle):
        reservation = make_reservation()
        with pytest.raises(InvalidTransition):
            lifecycle.start(reservation, NOW)
        assert reservation.status is ReservationStatus.PENDING

    def test_assign_same_driver_twice_is_a_no_op(self, lifecycle):
        assigned = lifecycle.assign(make_reservation(), "drv-ali").reservation
        outcome = lifecycle.assign(assigned, "drv-ali")
        assert outcome.changed is False
        assert outcome.status is ReservationStatus.ASSIGNED

    def test_assign_other_driver_fails(self, lifecycle):
        assigned = lifecycle.assign(make_reservation(), "drv-ali").reservation
        with pytest.raises(AlreadyAssigned) as exc_info:
            lifecycle.assign(assigned, "drv-mehmet")
        assert exc_info.value.driver_id == "drv-ali"

    def test_assign_requires_driver(self, lifecycle):
        with pytest.raises(InvalidInput):
            lifecycle.assign(make_reservation(), "")

    def test_assign_started_trip_fails(self, lifecycle):
        with pytest.raises(InvalidTransition):
            lifecycle.assign(make_reservation(status=ReservationStatus.STARTED), "drv-ali")

    def test_second_complete_keeps_original_settlement(self, lifecycle):
        started = make_reservation(status=ReservationStatus.STARTED, driver_id="drv-ali")
        done = lifecycle.complete(started, NOW).reservation
        again = lifecycle.complete(done, LATER)
        assert again.changed is False
        assert again.reservation.completed_at == NOW
        assert again.reservation.driver_share == Decimal("270.75")

    def test_cancel_twice_is_a_no_op(self, lifecycle):
        cancelled = lifecycle.cancel(make_reservation(), "Flight cancelled", NOW).reservation
        outcome = lifecycle.cancel(cancelled, "Flight cancelled", LATER)
        assert outcome.changed is False
        assert outcome.status is ReservationStatus.CANCELLED
        assert outcome.reservation.cancelled_at == NOW

    @pytest.mark.parametrize(
        "status", [ReservationStatus.PENDING, ReservationStatus.ASSIGNED, ReservationStatus.STARTED]
    )
    def test_cancel_from_open_states(self, lifecycle, status):
        outcome = lifecycle.cancel(make_reservation(status=status), "  Customer no-show ", NOW)
        assert outcome.status is ReservationStatus.CANCELLED
        assert outcome.reservation.cancel_reason == "Customer no-show"
        assert outcome.reservation.driver_share is None

    def test_cancel_completed_fails(self, lifecycle):
        with pytest.raises(InvalidTransition):
            lifecycle.cancel(make_reservation(status=ReservationStatus.COMPLETED), "late", NOW)

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_cancel_requires_reason(self, lifecycle, reason):
        with pytest.raises(InvalidInput):
            lifecycle.cancel(make_reservation(), reason, NOW)
