"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 2 restaurants (one flat-fee, one distance-based with peak hours)
  - 8 orders spread over every board (kitchen, delivery, history)
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from src.domain.enums import FulfillmentType, OrderStatus
from src.domain.fee_rules import validate_rule_set
from src.infrastructure.database import async_session_factory, engine
from src.infrastructure.models import OrderModel, RestaurantSettingsModel

RESTAURANTS = [
    {
        "restaurant_id": 1,
        "name": "Chez Madeleine",
        "timezone": "America/Toronto",
        "phone": "514-555-0134",
        "email": "bonjour@chezmadeleine.example",
        "delivery_radius_km": 6,
        "rules": {"type": "flat", "baseFee": "4,50", "freeDeliveryAbove": "40"},
    },
    {
        "restaurant_id": 2,
        "name": "Pho Saint-Denis",
        "timezone": "America/Toronto",
        "phone": "+15145550199",
        "email": None,
        "delivery_radius_km": 5,
        "rules": {
            "type": "distance_based",
            "baseFee": "3.99",
            "perKmFee": "0.50",
            "maxDistanceKm": "5",
            "peakHours": [
                {"start": "11:00", "end": "13:00", "additionalFee": "1.00"},
                {"start": "17:30", "end": "19:30", "additionalFee": "1.50"},
            ],
            "weekendFee": "1.00",
            "holidayFee": "2.00",
            "minimumOrderSurcharge": {"threshold": "15", "surcharge": "2"},
        },
    },
]

# (restaurant, fulfillment, status, minutes ago, scheduled in minutes)
ORDERS = [
    (1, FulfillmentType.PICKUP, OrderStatus.RECEIVED, 3, None),
    (1, FulfillmentType.PICKUP, OrderStatus.PREPARING, 12, None),  # late
    (1, FulfillmentType.DELIVERY, OrderStatus.READY, 20, None),
    (1, FulfillmentType.PICKUP, OrderStatus.RECEIVED, 1, 10),  # scheduled soon
    (2, FulfillmentType.DELIVERY, OrderStatus.RECEIVED, 16, None),  # late
    (2, FulfillmentType.DELIVERY, OrderStatus.ASSIGNED, 25, None),
    (2, FulfillmentType.DELIVERY, OrderStatus.ENROUTE, 35, None),
    (2, FulfillmentType.PICKUP, OrderStatus.COMPLETED, 90, None),
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM restaurant_settings"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Restaurants ───────────────────────────────────────────────
        for r in RESTAURANTS:
            rules = validate_rule_set(r["rules"])
            if not rules.ok:
                raise SystemExit(f"Invalid sample rules for {r['name']}: {rules.errors}")
            session.add(
                RestaurantSettingsModel(
                    restaurant_id=r["restaurant_id"],
                    name=r["name"],
                    timezone=r["timezone"],
                    phone=r["phone"],
                    email=r["email"],
                    delivery_radius_km=r["delivery_radius_km"],
                    delivery_fee_rules=rules.value.to_payload(numeric=True),
                )
            )
        await session.flush()
        print(f"  Created {len(RESTAURANTS)} restaurants")

        # ── Orders ────────────────────────────────────────────────────
        now = datetime.now(timezone.utc)
        for number, (restaurant_id, fulfillment, status, ago, scheduled_in) in enumerate(
            ORDERS, start=101
        ):
            placed_at = now - timedelta(minutes=ago)
            session.add(
                OrderModel(
                    restaurant_id=restaurant_id,
                    order_number=number,
                    status=status,
                    fulfillment=fulfillment,
                    placed_at=placed_at,
                    scheduled_at=(
                        now + timedelta(minutes=scheduled_in) if scheduled_in else None
                    ),
                    completed_at=now if status is OrderStatus.COMPLETED else None,
                )
            )
        await session.flush()
        print(f"  Created {len(ORDERS)} orders")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
