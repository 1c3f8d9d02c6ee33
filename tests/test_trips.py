"""Tests for TripLifecycleManager: compare-and-swap transitions and events."""

import json
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import update

from shuttle.domain.enums import ReservationStatus
from shuttle.domain.errors import (
    AlreadyAssigned,
    InvalidInput,
    InvalidTransition,
    NotFound,
)
from shuttle.infrastructure.events import CHANNEL, RedisEventPublisher
from shuttle.infrastructure.models import DriverModel
from shuttle.infrastructure.repositories import ReservationRepository
from shuttle.services.trips import MAX_CAS_ATTEMPTS, TripLifecycleManager
from tests.conftest import NOW, fixed_clock, make_reservation


@pytest_asyncio.fixture
async def manager(db_session, lifecycle, fake_redis):
    await ReservationRepository(db_session).add(make_reservation("res-1"))
    await db_session.commit()
    return TripLifecycleManager(
        db_session, lifecycle, RedisEventPublisher(fake_redis), clock=fixed_clock
    )


def events(fake_redis):
    return [json.loads(message) for channel, message in fake_redis.published if channel == CHANNEL]


class TestTransitions:
    @pytest.mark.asyncio
    async def test_full_trip(self, manager, db_session, fake_redis):
        await manager.assign("res-1", "drv-ali")
        await manager.start("res-1")
        outcome = await manager.complete("res-1")

        assert outcome.status is ReservationStatus.COMPLETED
        stored = await ReservationRepository(db_session).get("res-1")
        assert stored.status is ReservationStatus.COMPLETED
        assert stored.driver_id == "drv-ali"
        assert stored.driver_share == Decimal("270.75")
        assert stored.company_share == Decimal("90.25")

        assert [(e["previous_status"], e["status"]) for e in events(fake_redis)] == [
            ("pending", "assigned"),
            ("assigned", "started"),
            ("started", "completed"),
        ]
        assert events(fake_redis)[0]["driver_id"] == "drv-ali"
        assert events(fake_redis)[0]["occurred_at"] == NOW.isoformat()

    @pytest.mark.asyncio
    async def test_cancel_twice_is_a_no_op(self, manager, fake_redis):
        first = await manager.cancel("res-1", "Flight cancelled")
        second = await manager.cancel("res-1", "Flight cancelled")

        assert first.changed is True
        assert second.changed is False
        assert second.status is ReservationStatus.CANCELLED
        assert len(events(fake_redis)) == 1

    @pytest.mark.asyncio
    async def test_start_pending_fails_without_side_effects(self, manager, db_session, fake_redis):
        with pytest.raises(InvalidTransition):
            await manager.start("res-1")
        assert (await manager.get("res-1")).status is ReservationStatus.PENDING
        assert fake_redis.published == []

    @pytest.mark.asyncio
    async def test_assign_requires_active_driver(self, manager):
        with pytest.raises(InvalidInput):
            await manager.assign("res-1", "nobody")
        with pytest.raises(InvalidInput):
            await manager.assign("res-1", "drv-osman")

    @pytest.mark.asyncio
    async def test_repeat_assign_after_driver_deactivated_is_a_no_op(self, manager, db_session):
        await manager.assign("res-1", "drv-ali")
        await db_session.execute(
            update(DriverModel).where(DriverModel.id == "drv-ali").values(is_active=False)
        )
        await db_session.commit()

        outcome = await manager.assign("res-1", "drv-ali")

        assert outcome.changed is False
        assert outcome.reservation.driver_id == "drv-ali"
        with pytest.raises(InvalidInput):
            await manager.assign("res-1", "drv-osman")

    @pytest.mark.asyncio
    async def test_reassign_to_other_driver_fails(self, manager):
        await manager.assign("res-1", "drv-ali")
        with pytest.raises(AlreadyAssigned):
            await manager.assign("res-1", "drv-mehmet")

    @pytest.mark.asyncio
    async def test_unknown_reservation(self, manager):
        with pytest.raises(NotFound):
            await manager.complete("missing")

    @pytest.mark.asyncio
    async def test_blank_cancel_reason(self, manager):
        with pytest.raises(InvalidInput):
            await manager.cancel("res-1", " ")

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_undo_transition(self, db_session, lifecycle):
        await ReservationRepository(db_session).add(make_reservation("res-9"))
        broken = AsyncMock()
        broken.publish = AsyncMock(side_effect=RedisConnectionError("down"))
        manager = TripLifecycleManager(
            db_session, lifecycle, RedisEventPublisher(broken), clock=fixed_clock
        )

        outcome = await manager.cancel("res-9", "Duplicate booking")

        assert outcome.status is ReservationStatus.CANCELLED
        assert (await manager.get("res-9")).status is ReservationStatus.CANCELLED


class TestConcurrentTransitions:
    """A competing writer commits between our read and our compare-and-swap."""

    @staticmethod
    def race(monkeypatch, competitor):
        real_cas = ReservationRepository.compare_and_set
        raced = []

        async def racing_cas(self, reservation, expected_status):
            if not raced:
                raced.append(True)
                current = await self.get(reservation.id)
                await real_cas(self, competitor(current), expected_status)
            return await real_cas(self, reservation, expected_status)

        monkeypatch.setattr(ReservationRepository, "compare_and_set", racing_cas)

    @pytest.mark.asyncio
    async def test_loser_with_same_target_becomes_no_op(self, manager, lifecycle, monkeypatch, fake_redis):
        self.race(
            monkeypatch,
            lambda r: lifecycle.cancel(r, "Cancelled by dispatcher", NOW).reservation,
        )

        outcome = await manager.cancel("res-1", "Cancelled by customer")

        assert outcome.changed is False
        assert outcome.status is ReservationStatus.CANCELLED
        assert outcome.reservation.cancel_reason == "Cancelled by dispatcher"
        assert fake_redis.published == []

    @pytest.mark.asyncio
    async def test_loser_with_other_target_fails(self, manager, lifecycle, monkeypatch):
        await manager.assign("res-1", "drv-ali")
        await manager.start("res-1")
        self.race(monkeypatch, lambda r: lifecycle.complete(r, NOW).reservation)

        with pytest.raises(InvalidTransition):
            await manager.cancel("res-1", "Customer changed plans")

        stored = await manager.get("res-1")
        assert stored.status is ReservationStatus.COMPLETED
        assert stored.driver_share == Decimal("270.75")

    @pytest.mark.asyncio
    async def test_gives_up_after_repeated_conflicts(self, manager, monkeypatch):
        attempts = []

        async def always_lose(self, reservation, expected_status):
            attempts.append(expected_status)
            return False

        monkeypatch.setattr(ReservationRepository, "compare_and_set", always_lose)

        with pytest.raises(InvalidTransition, match="concurrently"):
            await manager.assign("res-1", "drv-ali")
        assert len(attempts) == MAX_CAS_ATTEMPTS
