"""
Trip lifecycle rules for confirmed reservations.

Each rule takes the current ``Reservation`` and returns a
``TransitionOutcome``: either the reservation moved to its next status,
or the same reservation flagged as unchanged when the call repeats one
that already took effect (assigning the same driver twice, cancelling a
cancelled trip, ...).  Anything else raises ``InvalidTransition`` (or
``AlreadyAssigned``) without producing a new state.

Completing a trip settles it: the configured commission split is applied
to ``total_price`` exactly once, at the moment of the transition.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .commission import CommissionSplitter
from .entities import Reservation
from .enums import ReservationStatus
from .errors import AlreadyAssigned, InvalidInput, InvalidTransition


@dataclass(frozen=True)
class TransitionOutcome:
    reservation: Reservation
    previous_status: ReservationStatus
    changed: bool = True

    @property
    def status(self) -> ReservationStatus:
        return self.reservation.status


def _unchanged(reservation: Reservation) -> TransitionOutcome:
    return TransitionOutcome(reservation, reservation.status, changed=False)


def _moved(before: Reservation, after: Reservation) -> TransitionOutcome:
    return TransitionOutcome(after, before.status)


class TripLifecycle:
    def __init__(self, splitter: CommissionSplitter):
        self.splitter = splitter

    def assign(self, reservation: Reservation, driver_id: str) -> TransitionOutcome:
        if not driver_id:
            raise InvalidInput("A driver id is required")
        if reservation.status is ReservationStatus.ASSIGNED:
            if reservation.driver_id == driver_id:
                return _unchanged(reservation)
            raise AlreadyAssigned(reservation.id, reservation.driver_id)
        if reservation.status is not ReservationStatus.PENDING:
            raise _refused(reservation, "assign")
        return _moved(
            reservation,
            reservation.transition_to(ReservationStatus.ASSIGNED, driver_id=driver_id),
        )

    def start(self, reservation: Reservation, now: datetime) -> TransitionOutcome:
        if reservation.status is ReservationStatus.STARTED:
            return _unchanged(reservation)
        if reservation.status is not ReservationStatus.ASSIGNED:
            raise _refused(reservation, "start")
        return _moved(
            reservation,
            reservation.transition_to(ReservationStatus.STARTED, started_at=now),
        )

    def complete(self, reservation: Reservation, now: datetime) -> TransitionOutcome:
        if reservation.status is ReservationStatus.COMPLETED:
            # shares were settled by the original transition
            return _unchanged(reservation)
        if reservation.status is not ReservationStatus.STARTED:
            raise _refused(reservation, "complete")
        settlement = self.splitter.split(reservation.total_price)
        return _moved(
            reservation,
            reservation.transition_to(
                ReservationStatus.COMPLETED,
                completed_at=now,
                driver_share=settlement.driver_share,
                company_share=settlement.company_share,
            ),
        )

    def cancel(
        self, reservation: Reservation, reason: Optional[str], now: datetime
    ) -> TransitionOutcome:
        if not reason or not reason.strip():
            raise InvalidInput("A cancellation reason is required")
        if reservation.status is ReservationStatus.CANCELLED:
            return _unchanged(reservation)
        if reservation.status is ReservationStatus.COMPLETED:
            raise _refused(reservation, "cancel")
        return _moved(
            reservation,
            reservation.transition_to(
                ReservationStatus.CANCELLED,
                cancelled_at=now,
                cancel_reason=reason.strip(),
            ),
        )


def _refused(reservation: Reservation, action: str) -> InvalidTransition:
    return InvalidTransition(
        f"Cannot {action} reservation {reservation.id} in status {reservation.status.value}"
    )
