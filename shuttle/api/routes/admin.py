"""
Admin / reporting endpoints
===========================

GET /api/v1/admin/reservations  -- dispatch list, optional ?status= filter
GET /api/v1/admin/revenue       -- revenue and driver/company commission report
GET /api/v1/admin/health        -- simple health check
"""

from typing import Optional

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shuttle.api.dependencies import get_db
from shuttle.api.middleware import limiter
from shuttle.api.schemas import HealthResponse, ReservationResponse, RevenueResponse
from shuttle.config import settings
from shuttle.domain.enums import ReservationStatus
from shuttle.infrastructure.redis_client import get_redis, redis_available
from shuttle.infrastructure.repositories import ReservationRepository

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/reservations",
    response_model=list[ReservationResponse],
    summary="List reservations, newest first",
)
@limiter.limit(settings.rate_limit)
async def list_reservations(
    request: Request,
    status: Optional[ReservationStatus] = None,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    reservations = await ReservationRepository(db).list(status=status, limit=limit)
    return [ReservationResponse.from_reservation(r) for r in reservations]


@router.get(
    "/revenue",
    response_model=RevenueResponse,
    summary="Revenue of completed trips with the commission split",
)
@limiter.limit(settings.rate_limit)
async def revenue_report(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    repo = ReservationRepository(db)
    return RevenueResponse.from_summary(
        await repo.revenue_summary(),
        await repo.count_by_status(),
        currency=settings.currency,
        driver_commission_percent=settings.driver_commission_percent,
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(redis: aioredis.Redis = Depends(get_redis)):
    if await redis_available(redis):
        return HealthResponse()
    return HealthResponse(status="degraded", redis=False)
