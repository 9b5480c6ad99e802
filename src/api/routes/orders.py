"""
Order endpoints
===============

GET  /api/v1/orders?restaurant_id=&role=         -- a role's board with urgency flags
GET  /api/v1/orders/history?restaurant_id=&date= -- finished orders of a local day
GET  /api/v1/orders/{order_id}                   -- one order with urgency flags
POST /api/v1/orders/{order_id}/transition        -- request a status change
GET  /api/v1/orders/{order_id}/events            -- status change history

A transition is decided by the state machine against the status currently
stored, then written with a compare-and-set keyed on that status.  A caller
that loses the race gets 409 ``stale_status`` and must refetch.
"""

import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_clock, get_db, get_publisher
from src.api.middleware import RATE_LIMIT, limiter
from src.api.schemas import OrderResponse, StatusEventResponse, TransitionRequest
from src.config import settings
from src.domain.clock import Clock
from src.domain.entities import Order, StatusEvent
from src.domain.enums import Role
from src.domain.order_status import BOARD_STATUSES
from src.domain.results import Rejected
from src.infrastructure.redis_client import OrderEventPublisher
from src.infrastructure.repositories import (
    OrderRepository,
    RestaurantSettingsRepository,
    to_entity,
)
from src.workers.urgency_monitor import configured_thresholds

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

STALE_STATUS = "stale_status"


def _to_response(order: Order, now: datetime, role: Optional[Role]) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        restaurant_id=order.restaurant_id,
        order_number=order.order_number,
        status=order.status,
        fulfillment=order.fulfillment,
        placed_at=order.placed_at,
        scheduled_at=order.scheduled_at,
        status_updated_at=order.status_updated_at,
        completed_at=order.completed_at,
        cancelled_at=order.cancelled_at,
        flags=order.flags(now, **configured_thresholds()),
        next_statuses=order.next_statuses(role) if role else [],
    )


@router.get(
    "",
    response_model=list[OrderResponse],
    summary="List the active orders shown on a role's board",
)
@limiter.limit(RATE_LIMIT)
async def list_board(
    request: Request,
    restaurant_id: int,
    role: Role,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    rows = await OrderRepository(db).list_by_status(
        BOARD_STATUSES[role], restaurant_id=restaurant_id
    )
    now = clock.now()
    return [_to_response(to_entity(row), now, role) for row in rows]


@router.get(
    "/history",
    response_model=list[OrderResponse],
    summary="Completed and cancelled orders placed on a local calendar day",
)
@limiter.limit(RATE_LIMIT)
async def list_history(
    request: Request,
    restaurant_id: int,
    day: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    restaurant = await RestaurantSettingsRepository(db).get(restaurant_id)
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    tz = ZoneInfo(restaurant.timezone or settings.restaurant_timezone)
    rows = await OrderRepository(db).list_by_local_day(restaurant_id, day, tz)
    now = clock.now()
    return [_to_response(to_entity(row), now, None) for row in rows]


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get an order with its urgency flags",
)
@limiter.limit(RATE_LIMIT)
async def get_order(
    request: Request,
    order_id: int,
    role: Optional[Role] = Query(None),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    row = await OrderRepository(db).get_by_id(order_id)
    if not row:
        raise HTTPException(status_code=404, detail="Order not found")
    return _to_response(to_entity(row), clock.now(), role)


@router.post(
    "/{order_id}/transition",
    response_model=OrderResponse,
    summary="Request an order status change",
    responses={409: {"description": "Transition rejected or lost a concurrent write."}},
)
@limiter.limit(RATE_LIMIT)
async def transition_order(
    request: Request,
    order_id: int,
    body: TransitionRequest,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    publisher: OrderEventPublisher = Depends(get_publisher),
):
    repo = OrderRepository(db)
    row = await repo.get_by_id(order_id)
    if not row:
        raise HTTPException(status_code=404, detail="Order not found")

    order = to_entity(row)
    previous = order.status
    now = clock.now()

    result = order.apply_transition(body.requested, body.role, now)
    if isinstance(result, Rejected):
        raise HTTPException(
            status_code=409,
            detail={
                "reason": result.reason.value,
                "status": previous.value,
                "requested": body.requested.value,
            },
        )

    # ── Compare-and-set write ─────────────────────────────────────
    if not await repo.compare_and_set_status(order, expected=previous):
        logger.info(
            "Order %s: %s -> %s lost a concurrent write", order_id, previous.value,
            body.requested.value,
        )
        raise HTTPException(
            status_code=409,
            detail={
                "reason": STALE_STATUS,
                "status": previous.value,
                "requested": body.requested.value,
            },
        )

    await repo.add_event(
        StatusEvent(
            order_id=order.id,
            status=order.status,
            previous_status=previous,
            actor_role=body.role,
            created_at=now,
        )
    )
    await db.commit()
    logger.info(
        "Order %s: %s -> %s by %s", order_id, previous.value, order.status.value,
        body.role.value,
    )

    # The status is already committed; a lost notification only delays refetch
    try:
        await publisher.status_changed(
            order.restaurant_id, order.id, order.status.value, previous.value
        )
    except RedisError:
        logger.exception("Order %s: status change notification failed", order_id)
    return _to_response(order, now, body.role)


@router.get(
    "/{order_id}/events",
    response_model=list[StatusEventResponse],
    summary="Status change history of an order",
)
@limiter.limit(RATE_LIMIT)
async def list_order_events(
    request: Request,
    order_id: int,
    db: AsyncSession = Depends(get_db),
):
    repo = OrderRepository(db)
    if not await repo.get_by_id(order_id):
        raise HTTPException(status_code=404, detail="Order not found")
    return await repo.list_events(order_id)
