"""
Background Urgency Monitor
==========================

Runs every ``URGENCY_SCAN_INTERVAL_SECONDS`` (default 30 s).

Urgency flags are never stored on the order.  The monitor only recomputes
them for orders still in the kitchen (``received`` / ``preparing``) and
publishes one ``order_late`` message per order the first time it turns late,
so screens that are not polling can still ring.

Concurrency safety
------------------
* **Redis distributed lock**: only one process scans per cycle.
* **Redis set** ``urgency:late_alerted`` remembers which orders were already
  announced; ids that stop being late are removed from it.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Optional

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config import settings
from src.domain.clock import Clock, SystemClock
from src.domain.enums import FulfillmentType, OrderStatus, UrgencyFlag
from src.infrastructure.database import async_session_factory
from src.infrastructure.locks import DistributedLock
from src.infrastructure.redis_client import OrderEventPublisher, get_redis
from src.infrastructure.repositories import OrderRepository, to_entity

logger = logging.getLogger(__name__)

ALERTED_KEY = "urgency:late_alerted"
KITCHEN_STATUSES = (OrderStatus.RECEIVED, OrderStatus.PREPARING)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


def configured_thresholds() -> dict:
    return {
        "late_thresholds": {
            FulfillmentType.DELIVERY: timedelta(minutes=settings.late_threshold_delivery_minutes),
            FulfillmentType.PICKUP: timedelta(minutes=settings.late_threshold_pickup_minutes),
        },
        "soon_window": timedelta(minutes=settings.soon_window_minutes),
    }


# ── Public API ────────────────────────────────────────────────────────


async def start_urgency_monitor() -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop())
    logger.info(
        "Urgency monitor started (interval=%ds)", settings.urgency_scan_interval_seconds
    )


async def stop_urgency_monitor() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Urgency monitor stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop() -> None:
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_urgency_cycle()
        except Exception:
            logger.exception("Unhandled error in urgency cycle")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.urgency_scan_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass


async def run_urgency_cycle(
    *,
    redis: Optional[aioredis.Redis] = None,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    clock: Clock = SystemClock(),
) -> int:
    """Execute one scan.  Returns the number of late alerts published."""
    redis = redis or await get_redis()
    lock = DistributedLock(redis, "urgency_monitor", ttl_seconds=60)
    if not await lock.acquire():
        logger.debug("Lock held by another worker - skipping cycle")
        return 0

    published = 0
    try:
        async with session_factory() as session:
            rows = await OrderRepository(session).list_by_status(KITCHEN_STATUSES)

        now = clock.now()
        thresholds = configured_thresholds()
        late = [
            order
            for order in map(to_entity, rows)
            if UrgencyFlag.LATE in order.flags(now, **thresholds)
        ]
        late_ids = {str(order.id) for order in late}

        publisher = OrderEventPublisher(redis)
        for order in late:
            if await redis.sadd(ALERTED_KEY, str(order.id)):
                await publisher.order_late(order.restaurant_id, order.id)
                published += 1

        stale = set(await redis.smembers(ALERTED_KEY)) - late_ids
        if stale:
            await redis.srem(ALERTED_KEY, *stale)

        if published:
            logger.info("Urgency cycle: %d orders newly late", published)
    finally:
        await lock.release()

    return published
