"""Unit tests for the Order entity."""

from datetime import datetime, timedelta, timezone

import pytest

from src.domain.entities import Order
from src.domain.enums import (
    FulfillmentType,
    OrderStatus,
    RejectionReason,
    Role,
    UnknownEnumValue,
    UrgencyFlag,
)
from src.domain.results import Allowed, Rejected

NOW = datetime(2026, 3, 12, 18, 0, tzinfo=timezone.utc)


def make_order(**kwargs):
    defaults = dict(
        id=1,
        restaurant_id=1,
        order_number=101,
        status=OrderStatus.RECEIVED,
        fulfillment=FulfillmentType.DELIVERY,
        placed_at=NOW - timedelta(minutes=5),
    )
    defaults.update(kwargs)
    return Order(**defaults)


class TestApplyTransition:
    def test_allowed_updates_status_and_timestamp(self):
        order = make_order()
        assert order.apply_transition(OrderStatus.PREPARING, Role.COOK, NOW) == Allowed()
        assert order.status is OrderStatus.PREPARING
        assert order.status_updated_at == NOW
        assert order.completed_at is None

    def test_rejected_leaves_order_untouched(self):
        order = make_order()
        result = order.apply_transition("ready", "cook", NOW)
        assert result == Rejected(RejectionReason.INVALID_TRANSITION)
        assert order.status is OrderStatus.RECEIVED
        assert order.status_updated_at is None

    def test_completion_timestamp(self):
        order = make_order(status="enroute")
        order.apply_transition("completed", "delivery", NOW)
        assert order.completed_at == NOW
        assert order.status.is_terminal

    def test_cancellation_timestamp(self):
        order = make_order(status="preparing", fulfillment="pickup")
        order.apply_transition(OrderStatus.CANCELLED, Role.COOK, NOW)
        assert order.cancelled_at == NOW
        assert order.completed_at is None

    def test_terminal_orders_stay_terminal(self):
        order = make_order(status="cancelled")
        assert order.apply_transition("received", "manager", NOW) == Rejected(
            RejectionReason.TERMINAL_STATE
        )

    def test_full_delivery_path(self):
        order = make_order()
        steps = [
            ("preparing", "cook"),
            ("ready", "cook"),
            ("assigned", "delivery"),
            ("enroute", "delivery"),
            ("completed", "delivery"),
        ]
        for requested, role in steps:
            assert order.apply_transition(requested, role, NOW).allowed
        assert order.status is OrderStatus.COMPLETED


class TestOrderViews:
    def test_parses_strings(self):
        order = make_order(status="ready", fulfillment="pickup")
        assert order.status is OrderStatus.READY
        assert order.fulfillment is FulfillmentType.PICKUP

    def test_unknown_status(self):
        with pytest.raises(UnknownEnumValue):
            make_order(status="lost")

    def test_next_statuses(self):
        order = make_order(status="ready")
        assert order.next_statuses(Role.DELIVERY) == [OrderStatus.ASSIGNED]
        assert order.next_statuses(Role.MANAGER) == [
            OrderStatus.ASSIGNED,
            OrderStatus.CANCELLED,
        ]

    def test_flags(self):
        order = make_order(placed_at=NOW - timedelta(minutes=20))
        assert order.flags(NOW) == [UrgencyFlag.LATE]

    def test_flags_without_placed_at(self):
        assert make_order(placed_at=None).flags(NOW) == []
