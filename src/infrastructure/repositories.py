"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Status writes go through
``OrderRepository.compare_and_set_status`` so two staff members racing on the
same order cannot both win.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import OrderModel, OrderStatusEventModel, RestaurantSettingsModel
from src.domain.entities import Order, StatusEvent
from src.domain.enums import FulfillmentType, OrderStatus
from src.domain.clock import as_utc, local_day_bounds


def to_entity(row: OrderModel) -> Order:
    """Build the domain entity, normalising timestamps to aware UTC."""

    def aware(value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else as_utc(value)

    return Order(
        id=row.id,
        restaurant_id=row.restaurant_id,
        order_number=row.order_number,
        status=row.status,
        fulfillment=row.fulfillment,
        placed_at=aware(row.placed_at),
        scheduled_at=aware(row.scheduled_at),
        status_updated_at=aware(row.status_updated_at),
        completed_at=aware(row.completed_at),
        cancelled_at=aware(row.cancelled_at),
    )


class OrderRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_order(
        self,
        *,
        restaurant_id: int,
        fulfillment: FulfillmentType,
        placed_at: datetime,
        scheduled_at: Optional[datetime] = None,
        order_number: Optional[int] = None,
        subtotal: Optional[Decimal] = None,
        status: OrderStatus = OrderStatus.RECEIVED,
    ) -> OrderModel:
        order = OrderModel(
            restaurant_id=restaurant_id,
            fulfillment=fulfillment,
            placed_at=placed_at,
            scheduled_at=scheduled_at,
            order_number=order_number,
            subtotal=subtotal,
            status=status,
        )
        self.session.add(order)
        await self.session.flush()
        return order

    async def get_by_id(self, order_id: int) -> Optional[OrderModel]:
        return await self.session.get(OrderModel, order_id)

    async def list_by_status(
        self,
        statuses: Iterable[OrderStatus],
        restaurant_id: Optional[int] = None,
    ) -> list[OrderModel]:
        query = (
            select(OrderModel)
            .where(OrderModel.status.in_(list(statuses)))
            .order_by(OrderModel.placed_at)
        )
        if restaurant_id is not None:
            query = query.where(OrderModel.restaurant_id == restaurant_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_by_local_day(
        self,
        restaurant_id: int,
        day: date,
        tz: tzinfo,
        statuses: Iterable[OrderStatus] = (OrderStatus.COMPLETED, OrderStatus.CANCELLED),
    ) -> list[OrderModel]:
        """Orders placed on *day* in the restaurant's timezone, newest first."""
        start, end = local_day_bounds(day, tz)
        query = (
            select(OrderModel)
            .where(
                OrderModel.restaurant_id == restaurant_id,
                OrderModel.status.in_(list(statuses)),
                OrderModel.placed_at >= start,
                OrderModel.placed_at < end,
            )
            .order_by(OrderModel.placed_at.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def compare_and_set_status(
        self, order: Order, expected: OrderStatus
    ) -> bool:
        """Persist *order*'s new status only if the row still holds *expected*.

        Returns ``False`` when another writer got there first.
        """
        result = await self.session.execute(
            update(OrderModel)
            .where(OrderModel.id == order.id, OrderModel.status == expected)
            .values(
                status=order.status,
                status_updated_at=order.status_updated_at,
                completed_at=order.completed_at,
                cancelled_at=order.cancelled_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def add_event(self, event: StatusEvent) -> OrderStatusEventModel:
        row = OrderStatusEventModel(
            order_id=event.order_id,
            event_type=event.event_type,
            status=event.status.value,
            previous_status=event.previous_status.value,
            actor_role=event.actor_role,
            created_at=event.created_at,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def list_events(self, order_id: int) -> list[OrderStatusEventModel]:
        result = await self.session.execute(
            select(OrderStatusEventModel)
            .where(OrderStatusEventModel.order_id == order_id)
            .order_by(OrderStatusEventModel.created_at, OrderStatusEventModel.id)
        )
        return list(result.scalars().all())


class RestaurantSettingsRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, restaurant_id: int) -> Optional[RestaurantSettingsModel]:
        return await self.session.get(RestaurantSettingsModel, restaurant_id)

    async def save_fee_rules(
        self, restaurant_id: int, payload: dict[str, Any]
    ) -> Optional[RestaurantSettingsModel]:
        row = await self.get(restaurant_id)
        if row is None:
            return None
        row.delivery_fee_rules = payload
        await self.session.flush()
        return row

    async def update_info(
        self, restaurant_id: int, *, phone: Optional[str], email: Optional[str]
    ) -> Optional[RestaurantSettingsModel]:
        row = await self.get(restaurant_id)
        if row is None:
            return None
        row.phone = phone
        row.email = email
        await self.session.flush()
        return row

    async def update_delivery_zone(
        self,
        restaurant_id: int,
        *,
        radius_km: Optional[Decimal],
        geojson: Optional[dict[str, Any]],
    ) -> Optional[RestaurantSettingsModel]:
        row = await self.get(restaurant_id)
        if row is None:
            return None
        row.delivery_radius_km = radius_km
        row.delivery_zones_geojson = geojson
        await self.session.flush()
        return row
