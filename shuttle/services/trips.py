"""
Trip lifecycle orchestration for confirmed reservations.

Every transition is a compare-and-swap against the persisted row:

1. read the reservation,
2. let ``TripLifecycle`` plan the next state (or reject / no-op),
3. ``UPDATE ... WHERE id = :id AND status = :expected``.

If step 3 touches no row another writer moved the reservation first; the
manager re-reads and plans again, so a losing call either turns into a
no-op (the winner already reached the same target) or fails with
``InvalidTransition``.  Committed changes are announced with a
``StatusChanged`` event.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shuttle.domain.entities import Reservation
from shuttle.domain.enums import ReservationStatus
from shuttle.domain.errors import InvalidInput, InvalidTransition, NotFound
from shuttle.domain.lifecycle import TransitionOutcome, TripLifecycle
from shuttle.infrastructure.events import RedisEventPublisher, StatusChanged
from shuttle.infrastructure.repositories import DriverRepository, ReservationRepository

logger = logging.getLogger(__name__)

MAX_CAS_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TripLifecycleManager:
    def __init__(
        self,
        db: AsyncSession,
        lifecycle: TripLifecycle,
        publisher: RedisEventPublisher,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.lifecycle = lifecycle
        self.publisher = publisher
        self.clock = clock

    async def get(self, reservation_id: str) -> Reservation:
        reservation = await ReservationRepository(self.db).get(reservation_id)
        if reservation is None:
            raise NotFound(f"Reservation {reservation_id} not found")
        return reservation

    async def assign(self, reservation_id: str, driver_id: str) -> TransitionOutcome:
        current = await self.get(reservation_id)
        # repeating an assignment stays a no-op after the driver is deactivated
        repeat = (
            current.status is ReservationStatus.ASSIGNED and current.driver_id == driver_id
        )
        if not repeat:
            driver = await DriverRepository(self.db).get_by_id(driver_id)
            if driver is None or not driver.is_active:
                raise InvalidInput(f"Driver {driver_id} does not exist or is inactive")
        return await self._transition(
            reservation_id, lambda r, now: self.lifecycle.assign(r, driver_id)
        )

    async def start(self, reservation_id: str) -> TransitionOutcome:
        return await self._transition(reservation_id, self.lifecycle.start)

    async def complete(self, reservation_id: str) -> TransitionOutcome:
        return await self._transition(reservation_id, self.lifecycle.complete)

    async def cancel(self, reservation_id: str, reason: Optional[str]) -> TransitionOutcome:
        return await self._transition(
            reservation_id, lambda r, now: self.lifecycle.cancel(r, reason, now)
        )

    # ── Internals ─────────────────────────────────────────────────────

    async def _transition(
        self,
        reservation_id: str,
        plan: Callable[[Reservation, datetime], TransitionOutcome],
    ) -> TransitionOutcome:
        repo = ReservationRepository(self.db)
        for attempt in range(1, MAX_CAS_ATTEMPTS + 1):
            current = await repo.get(reservation_id)
            if current is None:
                raise NotFound(f"Reservation {reservation_id} not found")

            outcome = plan(current, self.clock())
            if not outcome.changed:
                logger.info(
                    "Reservation %s already %s, nothing to do",
                    reservation_id, outcome.status.value,
                )
                return outcome

            if await repo.compare_and_set(outcome.reservation, outcome.previous_status):
                await self.db.commit()
                logger.info(
                    "Reservation %s: %s -> %s",
                    reservation_id,
                    outcome.previous_status.value,
                    outcome.status.value,
                )
                await self.publisher.publish(
                    StatusChanged(
                        reservation_id=reservation_id,
                        previous_status=outcome.previous_status,
                        status=outcome.status,
                        occurred_at=self.clock(),
                        driver_id=outcome.reservation.driver_id,
                    )
                )
                return outcome

            logger.warning(
                "Reservation %s changed concurrently (attempt %d/%d), re-reading",
                reservation_id, attempt, MAX_CAS_ATTEMPTS,
            )

        raise InvalidTransition(
            f"Reservation {reservation_id} kept changing concurrently; retry"
        )
