"""
Redis-based distributed lock.

The urgency monitor runs in every API process; the lock makes sure only one
of them scans orders and publishes late alerts per cycle.

Acquire is ``SET key token NX EX ttl``; release runs a Lua compare-and-delete
so a process never frees a lock that expired and was taken by someone else.
"""

from __future__ import annotations

import logging
import uuid

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class LockNotAcquired(RuntimeError):
    pass


class DistributedLock:
    def __init__(self, client: aioredis.Redis, name: str, ttl_seconds: int = 30):
        self.redis = client
        self.key = f"lock:{name}"
        self.ttl = ttl_seconds
        self.token = uuid.uuid4().hex
        self.held = False

    async def acquire(self) -> bool:
        self.held = bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )
        return self.held

    async def release(self) -> None:
        if not self.held:
            return
        released = await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)
        if not released:
            logger.warning("Lock %s expired before release", self.key)
        self.held = False

    async def __aenter__(self) -> DistributedLock:
        if not await self.acquire():
            raise LockNotAcquired(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.release()
