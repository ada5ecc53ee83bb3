"""
Initial schema - seller inventory, orders, settings, recommendations

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Customers
    op.create_table(
        "customers",
        sa.Column("customer_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('active', 'inactive', 'trial', 'churned')", name="ck_customer_status"),
    )

    # 2. Products
    op.create_table(
        "products",
        sa.Column("product_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("customer_id", UUID(as_uuid=True), sa.ForeignKey("customers.customer_id"), nullable=False),
        sa.Column("sku", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sales_qty", sa.Integer, nullable=False, server_default="0"),
        sa.Column("cost_per_item", sa.Float, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("upload_batch_id", sa.String(64)),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("customer_id", "sku", name="uq_product_sku_per_customer"),
        sa.CheckConstraint("cost_per_item >= 0", name="ck_product_cost_positive"),
        sa.CheckConstraint("status IN ('active', 'low_stock', 'out_of_stock')", name="ck_product_status"),
    )
    op.create_index("ix_products_customer", "products", ["customer_id"])
    op.create_index("ix_products_status", "products", ["customer_id", "status"])

    # 3. Orders
    op.create_table(
        "orders",
        sa.Column("order_id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("customer_id", UUID(as_uuid=True), sa.ForeignKey("customers.customer_id"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.product_id")),
        sa.Column("order_number", sa.String(100)),
        sa.Column("sku", sa.String(100)),
        sa.Column("product_name", sa.String(255)),
        sa.Column("order_date", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("order_quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Float, nullable=False, server_default="0"),
        sa.Column("shipping_fee_per_unit", sa.Float, server_default="0"),
        sa.Column("marketplace_fee", sa.Float, server_default="0"),
        sa.Column("shipping_cost", sa.Float, server_default="0"),
        sa.Column("label_cost", sa.Float, server_default="0"),
        sa.Column("fulfillment_cost", sa.Float, server_default="0"),
        sa.Column("cost_per_unit", sa.Float, server_default="0"),
        sa.Column("total_revenue", sa.Float, nullable=False, server_default="0"),
        sa.Column("net_profit", sa.Float, nullable=False, server_default="0"),
        sa.Column("roi", sa.Float, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="completed"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('completed', 'pending', 'cancelled')", name="ck_order_status"),
    )
    op.create_index("ix_orders_customer_date", "orders", ["customer_id", "order_date"])
    op.create_index("ix_orders_customer_sku", "orders", ["customer_id", "sku"])

    # 4. Canceled orders
    op.create_table(
        "canceled_orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("customer_id", UUID(as_uuid=True), sa.ForeignKey("customers.customer_id"), nullable=False),
        sa.Column("order_number", sa.String(100), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.product_id")),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("canceled_date", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("reason", sa.Text),
        sa.Column("shipping_status", sa.String(20), nullable=False, server_default="before_shipping"),
        sa.Column("refund_amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("shipping_loss", sa.Float),
        sa.CheckConstraint(
            "shipping_status IN ('before_shipping', 'after_shipping')",
            name="ck_canceled_order_shipping_status",
        ),
    )
    op.create_index("ix_canceled_orders_customer", "canceled_orders", ["customer_id", "canceled_date"])

    # 5. App settings (one row per tenant)
    op.create_table(
        "app_settings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "customer_id",
            UUID(as_uuid=True),
            sa.ForeignKey("customers.customer_id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("auto_reorder_enabled", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("minimum_profit_margin", sa.Float),
        sa.Column("shipping_cost", sa.Float),
        sa.Column("label_cost", sa.Float),
        sa.Column("cancellation_shipping_loss", sa.Float),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    # 6. AI recommendations (reorder events)
    op.create_table(
        "ai_recommendations",
        sa.Column(
            "recommendation_id",
            UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("customer_id", UUID(as_uuid=True), sa.ForeignKey("customers.customer_id"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.product_id"), nullable=False),
        sa.Column("type", sa.String(30), nullable=False, server_default="reorder"),
        sa.Column("recommendation", sa.Text, nullable=False),
        sa.Column("explanation", sa.Text, nullable=False),
        sa.Column("suggested_action", sa.String(255), nullable=False),
        sa.Column("impact_analysis", sa.JSON, server_default=sa.text("'{}'")),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("type IN ('reorder', 'pricing')", name="ck_ai_recommendation_type"),
        sa.CheckConstraint("status IN ('open', 'applied', 'dismissed')", name="ck_ai_recommendation_status"),
    )
    op.create_index("ix_ai_recommendations_customer", "ai_recommendations", ["customer_id", "created_at"])


def downgrade() -> None:
    tables = [
        "ai_recommendations",
        "app_settings",
        "canceled_orders",
        "orders",
        "products",
        "customers",
    ]
    for table in tables:
        op.drop_table(table)
