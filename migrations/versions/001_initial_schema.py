"""Restaurant settings, orders and order status events.

Revision ID: 001
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

ORDER_STATUSES = (
    "received", "preparing", "ready", "assigned", "enroute", "completed", "cancelled",
)


def upgrade() -> None:
    # ── restaurant_settings ───────────────────────────────────────────
    op.create_table(
        "restaurant_settings",
        sa.Column("restaurant_id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("delivery_radius_km", sa.Numeric(8, 2), nullable=True),
        sa.Column("delivery_zones_geojson", sa.JSON, nullable=True),
        sa.Column(
            "delivery_fee_rules",
            sa.JSON,
            nullable=True,
            comment=(
                "camelCase rule set: type, baseFee, perKmFee, maxDistanceKm, "
                "freeDeliveryAbove, peakHours[{start,end,additionalFee}], "
                "weekendFee, holidayFee, minimumOrderSurcharge{threshold,surcharge}"
            ),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── orders ────────────────────────────────────────────────────────
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "restaurant_id",
            sa.Integer,
            sa.ForeignKey("restaurant_settings.restaurant_id"),
            nullable=False,
        ),
        sa.Column("order_number", sa.Integer, nullable=True),
        sa.Column(
            "status",
            sa.Enum(*ORDER_STATUSES, name="orderstatus", native_enum=False, length=20),
            nullable=False,
            server_default="received",
        ),
        sa.Column(
            "fulfillment",
            sa.Enum("pickup", "delivery", name="fulfillmenttype", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=True),
        sa.Column("placed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "idx_orders_restaurant_status", "orders", ["restaurant_id", "status"]
    )

    # ── order_status_events ───────────────────────────────────────────
    op.create_table(
        "order_status_events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Integer, sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("event_type", sa.String(32), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("previous_status", sa.String(20), nullable=False),
        sa.Column(
            "actor_role",
            sa.Enum("cook", "delivery", "manager", name="role", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_status_events_order", "order_status_events", ["order_id"])


def downgrade() -> None:
    op.drop_index("idx_status_events_order", table_name="order_status_events")
    op.drop_table("order_status_events")
    op.drop_index("idx_orders_restaurant_status", table_name="orders")
    op.drop_table("orders")
    op.drop_table("restaurant_settings")
