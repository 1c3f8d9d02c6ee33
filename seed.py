"""
Seed script -- populates the catalog and the driver roster.

Run after migrations:
    python seed.py

Creates:
  - 5 vehicles (sedan, SUV, two vans, luxury)
  - 8 add-on services (child seats, extra baggage, meet & greet, extras)
  - 5 drivers (one inactive)
"""

import asyncio
import sys
from decimal import Decimal

from sqlalchemy import func, select

from shuttle.domain.entities import Vehicle
from shuttle.domain.enums import ServiceCategory, VehicleType
from shuttle.domain.errors import InvalidInput
from shuttle.domain.fares import check_vehicle_bounds
from shuttle.infrastructure.database import async_session_factory, engine
from shuttle.infrastructure.models import DriverModel, ServiceModel, VehicleModel

VEHICLES = [
    {"id": "economy-sedan", "name": "Ekonomi Sedan", "vehicle_type": VehicleType.SEDAN,
     "seat_capacity": 4, "baggage_capacity": 2, "price_per_km": Decimal("8")},
    {"id": "comfort-suv", "name": "Konfor SUV", "vehicle_type": VehicleType.SUV,
     "seat_capacity": 6, "baggage_capacity": 4, "price_per_km": Decimal("12")},
    {"id": "premium-van", "name": "Premium Van", "vehicle_type": VehicleType.VAN,
     "seat_capacity": 8, "baggage_capacity": 6, "price_per_km": Decimal("15")},
    {"id": "luxury-mercedes", "name": "Lüks Mercedes", "vehicle_type": VehicleType.LUXURY,
     "seat_capacity": 4, "baggage_capacity": 3, "price_per_km": Decimal("25")},
    {"id": "family-minibus", "name": "Aile Minibüsü", "vehicle_type": VehicleType.VAN,
     "seat_capacity": 12, "baggage_capacity": 8, "price_per_km": Decimal("18")},
]

SERVICES = [
    {"id": "baby-seat", "name": "Bebek Koltuğu", "price": Decimal("50"),
     "category": ServiceCategory.CHILD_SEAT, "description": "Ages 0-4"},
    {"id": "child-seat", "name": "Çocuk Koltuğu", "price": Decimal("40"),
     "category": ServiceCategory.CHILD_SEAT, "description": "Ages 4-12"},
    {"id": "extra-baggage", "name": "Ek Bagaj", "price": Decimal("30"),
     "category": ServiceCategory.EXTRA_BAGGAGE, "description": "Beyond standard capacity"},
    {"id": "meet-greet", "name": "Havalimanı Karşılama", "price": Decimal("75"),
     "category": ServiceCategory.MEET_GREET, "description": "Name sign at arrivals"},
    {"id": "vip-greet", "name": "VIP Karşılama", "price": Decimal("150"),
     "category": ServiceCategory.MEET_GREET, "description": "Lounge access and escort"},
    {"id": "champagne", "name": "Şampanya Servisi", "price": Decimal("200"),
     "category": ServiceCategory.OTHER, "description": None},
    {"id": "wifi", "name": "Wi-Fi Hotspot", "price": Decimal("25"),
     "category": ServiceCategory.OTHER, "description": None},
    {"id": "flowers", "name": "Çiçek Buketi", "price": Decimal("100"),
     "category": ServiceCategory.OTHER, "description": None},
]

DRIVERS = [
    {"id": "drv-mehmet", "name": "Mehmet Yılmaz", "phone": "+90 532 111 2233",
     "license_number": "B123456789", "is_active": True},
    {"id": "drv-ali", "name": "Ali Demir", "phone": "+90 532 444 5566",
     "license_number": "B987654321", "is_active": True},
    {"id": "drv-hasan", "name": "Hasan Kaya", "phone": "+90 532 777 8899",
     "license_number": "B456789123", "is_active": True},
    {"id": "drv-mustafa", "name": "Mustafa Özkan", "phone": "+90 532 999 1122",
     "license_number": "B789123456", "is_active": True},
    {"id": "drv-osman", "name": "Osman Şahin", "phone": "+90 532 333 4455",
     "license_number": "B321654987", "is_active": False},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(select(func.count()).select_from(VehicleModel))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Vehicles ──────────────────────────────────────────────────
        for v in VEHICLES:
            check_vehicle_bounds(Vehicle(**v))
            session.add(VehicleModel(**v, is_active=True))
        print(f"  Created {len(VEHICLES)} vehicles")

        # ── Services ──────────────────────────────────────────────────
        for s in SERVICES:
            session.add(ServiceModel(**s, is_active=True))
        print(f"  Created {len(SERVICES)} services")

        # ── Drivers ───────────────────────────────────────────────────
        for d in DRIVERS:
            session.add(DriverModel(**d))
        print(f"  Created {len(DRIVERS)} drivers")

        await session.commit()
        print("Seed complete!")


async def main():
    try:
        await seed()
    except InvalidInput as exc:
        print(f"Invalid catalog entry: {exc.detail}", file=sys.stderr)
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
