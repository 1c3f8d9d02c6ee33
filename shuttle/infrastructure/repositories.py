"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only, translating rows to and from the frozen
domain entities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DriverModel, ReservationModel, ServiceModel, VehicleModel
from shuttle.domain.entities import Catalog, Customer, Reservation, Service, Vehicle
from shuttle.domain.enums import ReservationStatus

# Columns a lifecycle transition is allowed to write
_LIFECYCLE_COLUMNS = (
    "status",
    "driver_id",
    "driver_share",
    "company_share",
    "started_at",
    "completed_at",
    "cancelled_at",
    "cancel_reason",
)


class ReservationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, reservation: Reservation) -> None:
        self.session.add(ReservationModel(**_to_row(reservation)))
        await self.session.flush()

    async def get(self, reservation_id: str) -> Optional[Reservation]:
        result = await self.session.execute(
            select(ReservationModel)
            .where(ReservationModel.id == reservation_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_entity(row) if row else None

    async def compare_and_set(
        self, reservation: Reservation, expected_status: ReservationStatus
    ) -> bool:
        """Write the lifecycle columns only if the stored status is unchanged.

        ``UPDATE ... WHERE id = :id AND status = :expected``; returns False
        when another writer got there first.
        """
        result = await self.session.execute(
            update(ReservationModel)
            .where(
                ReservationModel.id == reservation.id,
                ReservationModel.status == expected_status,
            )
            .values({name: getattr(reservation, name) for name in _LIFECYCLE_COLUMNS})
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list(
        self, status: Optional[ReservationStatus] = None, limit: int = 100
    ) -> list[Reservation]:
        query = select(ReservationModel).order_by(ReservationModel.created_at.desc())
        if status is not None:
            query = query.where(ReservationModel.status == status)
        result = await self.session.execute(query.limit(limit))
        return [_to_entity(row) for row in result.scalars().all()]

    async def count_by_status(self) -> dict[ReservationStatus, int]:
        result = await self.session.execute(
            select(ReservationModel.status, func.count()).group_by(ReservationModel.status)
        )
        counts = {status: 0 for status in ReservationStatus}
        for status, count in result.all():
            counts[ReservationStatus(status)] = count
        return counts

    async def revenue_summary(self) -> "RevenueSummary":
        completed = ReservationModel.status == ReservationStatus.COMPLETED
        totals = (
            await self.session.execute(
                select(
                    func.count(),
                    func.coalesce(func.sum(ReservationModel.total_price), 0),
                    func.coalesce(func.sum(ReservationModel.driver_share), 0),
                    func.coalesce(func.sum(ReservationModel.company_share), 0),
                ).where(completed)
            )
        ).one()
        per_driver = await self.session.execute(
            select(
                ReservationModel.driver_id,
                DriverModel.name,
                func.count(),
                func.coalesce(func.sum(ReservationModel.driver_share), 0),
            )
            .join(DriverModel, DriverModel.id == ReservationModel.driver_id)
            .where(completed)
            .group_by(ReservationModel.driver_id, DriverModel.name)
            .order_by(ReservationModel.driver_id)
        )
        return RevenueSummary(
            completed_trips=totals[0],
            revenue=_money(totals[1]),
            driver_share=_money(totals[2]),
            company_share=_money(totals[3]),
            drivers=[
                DriverEarnings(
                    driver_id=driver_id,
                    name=name,
                    completed_trips=trips,
                    earnings=_money(earnings),
                )
                for driver_id, name, trips, earnings in per_driver.all()
            ],
        )


class CatalogRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self) -> Catalog:
        """Load every vehicle and service; activity is checked by the domain."""
        vehicles = (await self.session.execute(select(VehicleModel))).scalars().all()
        services = (await self.session.execute(select(ServiceModel))).scalars().all()
        return Catalog.of(
            [
                Vehicle(
                    id=v.id,
                    name=v.name,
                    vehicle_type=v.vehicle_type,
                    seat_capacity=v.seat_capacity,
                    baggage_capacity=v.baggage_capacity,
                    price_per_km=_money(v.price_per_km),
                    is_active=v.is_active,
                )
                for v in vehicles
            ],
            [
                Service(
                    id=s.id,
                    name=s.name,
                    price=_money(s.price),
                    category=s.category,
                    is_active=s.is_active,
                )
                for s in services
            ],
        )


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, driver_id: str) -> Optional[DriverModel]:
        return await self.session.get(DriverModel, driver_id)


# ── Read models ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class DriverEarnings:
    driver_id: str
    name: str
    completed_trips: int
    earnings: Decimal


@dataclass(frozen=True)
class RevenueSummary:
    completed_trips: int
    revenue: Decimal
    driver_share: Decimal
    company_share: Decimal
    drivers: list[DriverEarnings] = field(default_factory=list)


# ── Mapping ───────────────────────────────────────────────────────────


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


def _optional_money(value) -> Optional[Decimal]:
    return None if value is None else _money(value)


def _to_row(reservation: Reservation) -> dict:
    customer = reservation.customer
    return {
        "id": reservation.id,
        "direction": reservation.direction,
        "origin": reservation.origin,
        "destination": reservation.destination,
        "travel_date": reservation.travel_date,
        "travel_time": reservation.travel_time,
        "passenger_count": reservation.passenger_count,
        "baggage_count": reservation.baggage_count,
        "distance_km": reservation.distance_km,
        "duration_minutes": reservation.duration_minutes,
        "vehicle_id": reservation.vehicle_id,
        "vehicle_name": reservation.vehicle_name,
        "price_per_km": reservation.price_per_km,
        "selected_service_ids": sorted(reservation.selected_service_ids),
        "base_price": reservation.base_price,
        "services_price": reservation.services_price,
        "subtotal_price": reservation.subtotal_price,
        "discount_percent": reservation.discount_percent,
        "total_price": reservation.total_price,
        "payment_method": reservation.payment_method,
        "first_name": customer.first_name,
        "last_name": customer.last_name,
        "email": customer.email,
        "phone": customer.phone,
        "flight_number": customer.flight_number,
        "special_requests": customer.special_requests,
        "verification_token": reservation.verification_token,
        "created_at": reservation.created_at,
        **{name: getattr(reservation, name) for name in _LIFECYCLE_COLUMNS},
    }


def _to_entity(row: ReservationModel) -> Reservation:
    return Reservation(
        id=row.id,
        created_at=row.created_at,
        direction=row.direction,
        origin=row.origin,
        destination=row.destination,
        travel_date=row.travel_date,
        travel_time=row.travel_time,
        passenger_count=row.passenger_count,
        baggage_count=row.baggage_count,
        distance_km=row.distance_km,
        duration_minutes=row.duration_minutes,
        vehicle_id=row.vehicle_id,
        vehicle_name=row.vehicle_name,
        price_per_km=_money(row.price_per_km),
        selected_service_ids=frozenset(row.selected_service_ids or ()),
        customer=Customer(
            first_name=row.first_name,
            last_name=row.last_name,
            email=row.email,
            phone=row.phone,
            flight_number=row.flight_number,
            special_requests=row.special_requests,
        ),
        payment_method=row.payment_method,
        base_price=_money(row.base_price),
        services_price=_money(row.services_price),
        subtotal_price=_money(row.subtotal_price),
        discount_percent=Decimal(str(row.discount_percent)),
        total_price=_money(row.total_price),
        verification_token=row.verification_token,
        status=ReservationStatus(row.status),
        driver_id=row.driver_id,
        driver_share=_optional_money(row.driver_share),
        company_share=_optional_money(row.company_share),
        started_at=row.started_at,
        completed_at=row.completed_at,
        cancelled_at=row.cancelled_at,
        cancel_reason=row.cancel_reason,
    )
