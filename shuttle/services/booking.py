"""
Booking wizard orchestration.

Each command loads the session draft from Redis under a per-session
distributed lock, runs one step of ``ReservationStateMachine`` against
the current catalog, and writes the result back:

* rejected step   -> nothing is saved, the ``StepResult`` carries the errors
* accepted step   -> the draft is saved (TTL refreshed)
* confirmation    -> the frozen reservation is committed to the database,
  then the draft is dropped
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from shuttle.domain.entities import WizardSession
from shuttle.domain.errors import InvalidTransition, NotFound
from shuttle.domain.payments import PaymentQuote, PaymentSettings
from shuttle.domain.tokens import VerificationTokenService
from shuttle.domain.wizard import ReservationStateMachine, StepResult
from shuttle.infrastructure.drafts import RedisDraftStore
from shuttle.infrastructure.locks import LockNotAcquired
from shuttle.infrastructure.repositories import CatalogRepository, ReservationRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingService:
    def __init__(
        self,
        db: AsyncSession,
        drafts: RedisDraftStore,
        payment_settings: PaymentSettings,
        token_service: VerificationTokenService,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.drafts = drafts
        self.payment_settings = payment_settings
        self.token_service = token_service
        self.clock = clock

    async def start(self) -> WizardSession:
        session = WizardSession(id=uuid.uuid4().hex, created_at=self.clock())
        await self.drafts.save(session)
        logger.info("Booking session %s started", session.id)
        return session

    async def get(self, session_id: str) -> WizardSession:
        session = await self.drafts.get(session_id)
        if session is None:
            raise NotFound(f"Booking session {session_id} not found or expired")
        return session

    async def submit(self, session_id: str, step_input: object) -> StepResult:
        """Advance the active step of *session_id* with *step_input*."""
        async with self._locked(session_id):
            machine = await self._machine(session_id)
            step = machine.step
            result = machine.advance(step_input)

            if not result.ok:
                logger.info(
                    "Booking %s: step %s rejected (%s)",
                    session_id, step.value, result.error_code,
                )
                return result

            if machine.reservation is not None:
                await ReservationRepository(self.db).add(machine.reservation)
                await self.db.commit()
                await self.drafts.delete(session_id)
                logger.info(
                    "Booking %s confirmed: %s, %s via %s",
                    session_id,
                    machine.reservation.vehicle_id,
                    machine.reservation.total_price,
                    machine.reservation.payment_method.value,
                )
            else:
                await self.drafts.save(machine.session)
                logger.debug("Booking %s: %s -> %s", session_id, step.value, result.step.value)
            return result

    async def back(self, session_id: str) -> StepResult:
        async with self._locked(session_id):
            machine = await self._machine(session_id)
            result = machine.back()
            if result.ok:
                await self.drafts.save(machine.session)
            return result

    async def payment_options(self, session_id: str) -> list[PaymentQuote]:
        machine = await self._machine(session_id)
        return machine.payment_options()

    # ── Internals ─────────────────────────────────────────────────────

    async def _machine(self, session_id: str) -> ReservationStateMachine:
        session = await self.get(session_id)
        catalog = await CatalogRepository(self.db).load()
        return ReservationStateMachine(
            session,
            catalog,
            self.payment_settings,
            self.token_service,
            clock=self.clock,
        )

    @asynccontextmanager
    async def _locked(self, session_id: str):
        try:
            async with self.drafts.lock(session_id):
                yield
        except LockNotAcquired:
            logger.warning("Booking %s is busy, lock not acquired", session_id)
            raise InvalidTransition(
                f"Booking {session_id} is being updated by another request; retry"
            ) from None
