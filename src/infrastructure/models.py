"""
SQLAlchemy ORM models.

Tables
------
* ``restaurant_settings``  -- timezone, contact info, delivery zone and the
  delivery fee rules (JSON, camelCase keys, amounts as strings)
* ``orders``               -- orders placed through the ordering channel
* ``order_status_events``  -- append-only log of approved status changes

Indexes
-------
* **B-Tree** on ``orders(restaurant_id, status)`` for board queries and on
  ``order_status_events.order_id`` for history look-ups.
"""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    func,
)

from .database import Base
from src.domain.enums import FulfillmentType, OrderStatus, Role


def _values(enum_cls):
    return [member.value for member in enum_cls]


class RestaurantSettingsModel(Base):
    __tablename__ = "restaurant_settings"

    restaurant_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(120), nullable=False, default="Restaurant")
    timezone = Column(String(64), nullable=True)
    phone = Column(String(32), nullable=True)
    email = Column(String(255), nullable=True)
    delivery_radius_km = Column(Numeric(8, 2), nullable=True)
    delivery_zones_geojson = Column(JSON, nullable=True)
    delivery_fee_rules = Column(JSON, nullable=True)

    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurant_id = Column(
        Integer, ForeignKey("restaurant_settings.restaurant_id"), nullable=False
    )
    order_number = Column(Integer, nullable=True)

    status = Column(
        Enum(OrderStatus, values_callable=_values, native_enum=False, length=20),
        default=OrderStatus.RECEIVED,
        nullable=False,
    )
    fulfillment = Column(
        Enum(FulfillmentType, values_callable=_values, native_enum=False, length=20),
        nullable=False,
    )
    subtotal = Column(Numeric(10, 2), nullable=True)

    placed_at = Column(DateTime(timezone=True), nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    status_updated_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_orders_restaurant_status", "restaurant_id", "status"),
    )


class OrderStatusEventModel(Base):
    __tablename__ = "order_status_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    event_type = Column(String(32), nullable=False, default="status_changed")
    status = Column(String(20), nullable=False)
    previous_status = Column(String(20), nullable=False)
    actor_role = Column(
        Enum(Role, values_callable=_values, native_enum=False, length=20),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("idx_status_events_order", "order_id"),)
