"""Redis async connection pool and order change notifications.

Kitchen, delivery and manager screens subscribe to ``orders:{restaurant_id}``
and refetch when a message arrives.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

import redis.asyncio as aioredis

from src.config import settings

logger = logging.getLogger(__name__)

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url, decode_responses=True
)


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_pool)


def order_channel(restaurant_id: int) -> str:
    return f"orders:{restaurant_id}"


class OrderEventPublisher:
    def __init__(self, client: aioredis.Redis):
        self.redis = client

    async def publish(self, restaurant_id: int, event: str, **payload: Any) -> None:
        message = json.dumps({"event": event, **payload}, default=_json_default)
        await self.redis.publish(order_channel(restaurant_id), message)
        logger.debug("Published %s on %s", event, order_channel(restaurant_id))

    async def status_changed(
        self, restaurant_id: int, order_id: int, status: str, previous_status: str
    ) -> None:
        await self.publish(
            restaurant_id,
            "status_changed",
            order_id=order_id,
            status=status,
            previous_status=previous_status,
        )

    async def order_late(self, restaurant_id: int, order_id: int) -> None:
        await self.publish(restaurant_id, "order_late", order_id=order_id)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serialisable")


async def get_publisher() -> OrderEventPublisher:
    """FastAPI dependency."""
    return OrderEventPublisher(await get_redis())
