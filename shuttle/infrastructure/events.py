"""
Reservation status-change notifications.

Every lifecycle transition that actually changes a reservation publishes
one ``StatusChanged`` message on the ``reservation-status`` Redis
channel.  Delivery is best-effort: the database row is the source of
truth, so a publish failure is logged and never undoes a transition.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shuttle.domain.enums import ReservationStatus

logger = logging.getLogger(__name__)

CHANNEL = "reservation-status"


@dataclass(frozen=True)
class StatusChanged:
    reservation_id: str
    previous_status: ReservationStatus
    status: ReservationStatus
    occurred_at: datetime
    driver_id: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(
            {
                "reservation_id": self.reservation_id,
                "previous_status": self.previous_status.value,
                "status": self.status.value,
                "occurred_at": self.occurred_at.isoformat(),
                "driver_id": self.driver_id,
            }
        )


class RedisEventPublisher:
    def __init__(self, client: aioredis.Redis, channel: str = CHANNEL):
        self.redis = client
        self.channel = channel

    async def publish(self, event: StatusChanged) -> None:
        try:
            await self.redis.publish(self.channel, event.to_json())
        except RedisError:
            logger.exception(
                "Failed to publish status change for reservation %s", event.reservation_id
            )
