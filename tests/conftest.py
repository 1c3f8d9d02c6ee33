"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) bound to the production
models, and a small in-process stand-in for the handful of Redis commands
the draft store, the lock and the event publisher use, so tests run
without Docker / PostgreSQL / Redis.
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle.domain.commission import CommissionSplitter
from shuttle.domain.entities import Catalog, Customer, Reservation, Service, Vehicle
from shuttle.domain.enums import Direction, PaymentMethod, ServiceCategory, VehicleType
from shuttle.domain.lifecycle import TripLifecycle
from shuttle.domain.payments import BankDetails, PaymentSettings
from shuttle.domain.tokens import VerificationTokenService
from shuttle.infrastructure.database import Base, build_engine, build_session_factory
from shuttle.infrastructure.models import DriverModel, ServiceModel, VehicleModel


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = build_engine(TEST_DB_URL)
TestSessionFactory = build_session_factory(test_engine)

NOW = datetime(2030, 5, 1, 9, 0, tzinfo=timezone.utc)
TRAVEL_DATE = date(2030, 5, 10)
TRAVEL_TIME = time(14, 30)


def fixed_clock() -> datetime:
    return NOW


# ── Redis stand-in ────────────────────────────────────────────────────


class FakeRedis:
    """Implements the subset of ``redis.asyncio.Redis`` used by the app.

    Stateful: a draft saved by one wizard command is read back by the next,
    and ``SET NX`` / owner-checked release really exclude a second holder.
    Single-call checks use ``AsyncMock`` instead.
    """

    def __init__(self):
        self.store: dict[str, object] = {}
        self.expiry: dict[str, int] = {}
        self.published: list[tuple[str, str]] = []

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        if ex is not None:
            self.expiry[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    async def eval(self, script, numkeys, key, token):
        # only the lock-release script is ever evaluated
        if self.store.get(key) == token:
            return await self.delete(key)
        return 0

    async def ping(self):
        return True

    async def publish(self, channel, message):
        self.published.append((channel, message))
        return 1


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


# ── Domain fixtures ───────────────────────────────────────────────────

SUV = Vehicle(
    id="comfort-suv",
    name="Konfor SUV",
    vehicle_type=VehicleType.SUV,
    seat_capacity=6,
    baggage_capacity=4,
    price_per_km=Decimal("12"),
)
SEDAN = Vehicle(
    id="economy-sedan",
    name="Ekonomi Sedan",
    vehicle_type=VehicleType.SEDAN,
    seat_capacity=4,
    baggage_capacity=3,
    price_per_km=Decimal("8"),
)
RETIRED_VAN = Vehicle(
    id="retired-van",
    name="Old Van",
    vehicle_type=VehicleType.VAN,
    seat_capacity=8,
    baggage_capacity=6,
    price_per_km=Decimal("15"),
    is_active=False,
)
SERVICES = [
    Service("baby-seat", "Bebek Koltuğu", Decimal("50"), ServiceCategory.CHILD_SEAT),
    Service("extra-baggage", "Ek Bagaj", Decimal("30"), ServiceCategory.EXTRA_BAGGAGE),
    Service("meet-greet", "Havalimanı Karşılama", Decimal("75"), ServiceCategory.MEET_GREET),
    Service("flowers", "Çiçek Buketi", Decimal("100"), is_active=False),
]
DRIVERS = [
    {"id": "drv-mehmet", "name": "Mehmet Yılmaz", "phone": "+90 532 111 2233", "is_active": True},
    {"id": "drv-ali", "name": "Ali Demir", "phone": "+90 532 444 5566", "is_active": True},
    {"id": "drv-osman", "name": "Osman Şahin", "phone": "+90 532 333 4455", "is_active": False},
]


@pytest.fixture
def catalog() -> Catalog:
    return Catalog.of([SUV, SEDAN, RETIRED_VAN], SERVICES)


@pytest.fixture
def bank_details() -> BankDetails:
    return BankDetails(
        bank_name="Türkiye İş Bankası",
        account_holder="SBS TRAVEL LTD. ŞTİ.",
        iban="TR12 0006 4000 0013 4000 0123 45",
        swift_code="ISBKTRIS",
    )


@pytest.fixture
def payment_settings(bank_details) -> PaymentSettings:
    return PaymentSettings(
        cash_enabled=True,
        bank_transfer_enabled=True,
        card_enabled=True,
        bank_transfer_discount_percent=Decimal("5"),
        bank_details=bank_details,
    )


@pytest.fixture
def token_service() -> VerificationTokenService:
    return VerificationTokenService("test-secret", clock=fixed_clock)


@pytest.fixture
def lifecycle() -> TripLifecycle:
    return TripLifecycle(CommissionSplitter(75))


def make_reservation(reservation_id: str = "res-1", **overrides) -> Reservation:
    """A confirmed, PENDING reservation worth 361.00 (380 less 5 %)."""
    fields = dict(
        id=reservation_id,
        created_at=NOW,
        direction=Direction.AIRPORT_TO_HOTEL,
        origin="Antalya Havalimanı Terminal 1",
        destination="Lara Beach Resort & Spa",
        travel_date=TRAVEL_DATE,
        travel_time=TRAVEL_TIME,
        passenger_count=2,
        baggage_count=3,
        distance_km=25.0,
        vehicle_id=SUV.id,
        vehicle_name=SUV.name,
        price_per_km=SUV.price_per_km,
        selected_service_ids=frozenset({"baby-seat", "extra-baggage"}),
        customer=Customer(
            first_name="Ahmet",
            last_name="Yılmaz",
            email="ahmet@example.com",
            phone="+90 532 123 4567",
            flight_number="TK1234",
        ),
        payment_method=PaymentMethod.BANK_TRANSFER,
        base_price=Decimal("300.00"),
        services_price=Decimal("80.00"),
        subtotal_price=Decimal("380.00"),
        discount_percent=Decimal("5"),
        total_price=Decimal("361.00"),
        verification_token=f"token-{reservation_id}",
    )
    fields.update(overrides)
    return Reservation(**fields)


# ── DB fixtures ───────────────────────────────────────────────────────


async def seed_catalog(session: AsyncSession) -> None:
    for v in (SUV, SEDAN, RETIRED_VAN):
        session.add(
            VehicleModel(
                id=v.id,
                name=v.name,
                vehicle_type=v.vehicle_type,
                seat_capacity=v.seat_capacity,
                baggage_capacity=v.baggage_capacity,
                price_per_km=v.price_per_km,
                is_active=v.is_active,
            )
        )
    for s in SERVICES:
        session.add(
            ServiceModel(
                id=s.id, name=s.name, price=s.price, category=s.category, is_active=s.is_active
            )
        )
    for d in DRIVERS:
        session.add(DriverModel(**d))
    await session.commit()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables and seed the catalog, yield a session, then drop everything."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionFactory() as session:
        await seed_catalog(session)
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


def future_travel_date(days: int = 7) -> date:
    """A travel date that stays valid against the real clock."""
    return date.today() + timedelta(days=days)
