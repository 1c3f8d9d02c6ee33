"""FastAPI dependency injection helpers."""

from decimal import Decimal

import redis.asyncio as aioredis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle.config import settings
from shuttle.domain.commission import CommissionSplitter
from shuttle.domain.lifecycle import TripLifecycle
from shuttle.domain.payments import BankDetails, PaymentSettings
from shuttle.domain.tokens import VerificationTokenService
from shuttle.infrastructure.database import async_session_factory
from shuttle.infrastructure.drafts import RedisDraftStore
from shuttle.infrastructure.events import RedisEventPublisher
from shuttle.infrastructure.redis_client import get_redis
from shuttle.services.booking import BookingService
from shuttle.services.trips import TripLifecycleManager


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_draft_store(redis: aioredis.Redis = Depends(get_redis)) -> RedisDraftStore:
    return RedisDraftStore(redis)


async def get_event_publisher(
    redis: aioredis.Redis = Depends(get_redis),
) -> RedisEventPublisher:
    return RedisEventPublisher(redis)


def get_token_service() -> VerificationTokenService:
    return VerificationTokenService(
        settings.verification_token_secret, settings.verification_token_algorithm
    )


def get_payment_settings() -> PaymentSettings:
    return PaymentSettings(
        cash_enabled=settings.cash_payment_enabled,
        bank_transfer_enabled=settings.bank_transfer_enabled,
        card_enabled=settings.card_payment_enabled,
        bank_transfer_discount_percent=Decimal(str(settings.bank_transfer_discount_percent)),
        bank_details=BankDetails(
            bank_name=settings.bank_name,
            account_holder=settings.bank_account_holder,
            iban=settings.bank_iban,
            swift_code=settings.bank_swift_code,
        ),
    )


def get_trip_lifecycle() -> TripLifecycle:
    return TripLifecycle(CommissionSplitter(settings.driver_commission_percent))


async def get_booking_service(
    db: AsyncSession = Depends(get_db),
    drafts: RedisDraftStore = Depends(get_draft_store),
    payment_settings: PaymentSettings = Depends(get_payment_settings),
    tokens: VerificationTokenService = Depends(get_token_service),
) -> BookingService:
    return BookingService(db, drafts, payment_settings, tokens)


async def get_trip_manager(
    db: AsyncSession = Depends(get_db),
    lifecycle: TripLifecycle = Depends(get_trip_lifecycle),
    publisher: RedisEventPublisher = Depends(get_event_publisher),
) -> TripLifecycleManager:
    return TripLifecycleManager(db, lifecycle, publisher)
