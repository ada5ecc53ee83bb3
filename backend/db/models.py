"""
SellerOps Database Models

Multi-tenant via customer_id on all tables.

Tables:
  1. customers           - Tenant seller accounts
  2. products            - Inventory catalog (purchased qty, sold qty, status)
  3. orders              - Marketplace order lines with computed profit fields
  4. canceled_orders     - Cancellations and the loss they caused
  5. app_settings        - Per-tenant reorder + cost policy (one row per tenant)
  6. ai_recommendations  - Actionable events emitted by the auto-reorder trigger
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
    types,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID


class GUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL UUID when available, stores as CHAR(36) on SQLite.
    """

    impl = types.String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(types.String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == "postgresql":
            return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        return str(value) if isinstance(value, uuid.UUID) else str(uuid.UUID(str(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


from sqlalchemy.orm import relationship

from db.session import Base

# ─── 1. Customers ──────────────────────────────────────────────────────────


class Customer(Base):
    __tablename__ = "customers"

    customer_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive', 'trial', 'churned')", name="ck_customer_status"),
    )

    products = relationship("Product", back_populates="customer")
    settings = relationship("AppSettings", back_populates="customer", uselist=False)


# ─── 2. Products ───────────────────────────────────────────────────────────


class Product(Base):
    __tablename__ = "products"

    product_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    customer_id = Column(GUID(), ForeignKey("customers.customer_id"), nullable=False)
    sku = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)  # units purchased / on hand
    sales_qty = Column(Integer, nullable=False, default=0)  # units sold
    cost_per_item = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default="active")
    upload_batch_id = Column(String(64))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("customer_id", "sku", name="uq_product_sku_per_customer"),
        Index("ix_products_customer", "customer_id"),
        Index("ix_products_status", "customer_id", "status"),
        CheckConstraint("cost_per_item >= 0", name="ck_product_cost_positive"),
        CheckConstraint("status IN ('active', 'low_stock', 'out_of_stock')", name="ck_product_status"),
    )

    customer = relationship("Customer", back_populates="products")

    @property
    def available_qty(self) -> int:
        return (self.quantity or 0) - (self.sales_qty or 0)


# ─── 3. Orders ─────────────────────────────────────────────────────────────


class Order(Base):
    __tablename__ = "orders"

    order_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    customer_id = Column(GUID(), ForeignKey("customers.customer_id"), nullable=False)
    product_id = Column(GUID(), ForeignKey("products.product_id"), nullable=True)
    order_number = Column(String(100))
    sku = Column(String(100))
    product_name = Column(String(255))
    order_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    order_quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Float, nullable=False, default=0.0)
    shipping_fee_per_unit = Column(Float, default=0.0)
    marketplace_fee = Column(Float, default=0.0)
    shipping_cost = Column(Float, default=0.0)
    label_cost = Column(Float, default=0.0)
    fulfillment_cost = Column(Float, default=0.0)
    cost_per_unit = Column(Float, default=0.0)
    total_revenue = Column(Float, nullable=False, default=0.0)
    net_profit = Column(Float, nullable=False, default=0.0)
    roi = Column(Float, default=0.0)
    status = Column(String(20), nullable=False, default="completed")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_orders_customer_date", "customer_id", "order_date"),
        Index("ix_orders_customer_sku", "customer_id", "sku"),
        CheckConstraint("status IN ('completed', 'pending', 'cancelled')", name="ck_order_status"),
    )


# ─── 4. Canceled Orders ────────────────────────────────────────────────────


class CanceledOrder(Base):
    __tablename__ = "canceled_orders"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    customer_id = Column(GUID(), ForeignKey("customers.customer_id"), nullable=False)
    order_number = Column(String(100), nullable=False)
    product_id = Column(GUID(), ForeignKey("products.product_id"), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    canceled_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    reason = Column(Text)
    shipping_status = Column(String(20), nullable=False, default="before_shipping")
    refund_amount = Column(Float, nullable=False, default=0.0)
    shipping_loss = Column(Float)

    __table_args__ = (
        Index("ix_canceled_orders_customer", "customer_id", "canceled_date"),
        CheckConstraint(
            "shipping_status IN ('before_shipping', 'after_shipping')",
            name="ck_canceled_order_shipping_status",
        ),
    )


# ─── 5. App Settings ───────────────────────────────────────────────────────


class AppSettings(Base):
    __tablename__ = "app_settings"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    customer_id = Column(GUID(), ForeignKey("customers.customer_id"), nullable=False, unique=True)
    auto_reorder_enabled = Column(Boolean, nullable=False, default=False)
    minimum_profit_margin = Column(Float)
    shipping_cost = Column(Float)
    label_cost = Column(Float)
    cancellation_shipping_loss = Column(Float)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="settings")


# ─── 6. AI Recommendations ─────────────────────────────────────────────────


class AiRecommendation(Base):
    __tablename__ = "ai_recommendations"

    recommendation_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    customer_id = Column(GUID(), ForeignKey("customers.customer_id"), nullable=False)
    product_id = Column(GUID(), ForeignKey("products.product_id"), nullable=False)
    type = Column(String(30), nullable=False, default="reorder")
    recommendation = Column(Text, nullable=False)
    explanation = Column(Text, nullable=False)
    suggested_action = Column(String(255), nullable=False)
    impact_analysis = Column(JSON, default={})
    status = Column(String(20), nullable=False, default="open")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_ai_recommendations_customer", "customer_id", "created_at"),
        CheckConstraint("type IN ('reorder', 'pricing')", name="ck_ai_recommendation_type"),
        CheckConstraint("status IN ('open', 'applied', 'dismissed')", name="ck_ai_recommendation_status"),
    )
