"""
Redis-backed storage for in-progress booking sessions.

A ``WizardSession`` is serialized to JSON with a pydantic ``TypeAdapter``
and stored under ``draft:{session_id}`` with a sliding TTL: every save
refreshes it, so abandoned drafts expire on their own.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as aioredis
from pydantic import TypeAdapter

from .locks import DistributedLock
from shuttle.config import settings
from shuttle.domain.entities import WizardSession

_session_adapter = TypeAdapter(WizardSession)


class RedisDraftStore:
    def __init__(
        self,
        client: aioredis.Redis,
        ttl_seconds: int = settings.draft_ttl_seconds,
        lock_ttl_seconds: int = settings.draft_lock_ttl_seconds,
        lock_wait_seconds: float = settings.draft_lock_wait_seconds,
    ):
        self.redis = client
        self.ttl = ttl_seconds
        self.lock_ttl = lock_ttl_seconds
        self.lock_wait = lock_wait_seconds

    @staticmethod
    def _key(session_id: str) -> str:
        return f"draft:{session_id}"

    async def get(self, session_id: str) -> Optional[WizardSession]:
        raw = await self.redis.get(self._key(session_id))
        if raw is None:
            return None
        return _session_adapter.validate_json(raw)

    async def save(self, session: WizardSession) -> None:
        await self.redis.set(
            self._key(session.id),
            _session_adapter.dump_json(session),
            ex=self.ttl,
        )

    async def delete(self, session_id: str) -> None:
        await self.redis.delete(self._key(session_id))

    def lock(self, session_id: str) -> DistributedLock:
        """Per-session mutex serializing wizard commands across workers."""
        return DistributedLock(
            self.redis,
            self._key(session_id),
            ttl_seconds=self.lock_ttl,
            wait_seconds=self.lock_wait,
        )
