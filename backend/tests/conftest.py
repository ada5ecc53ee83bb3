"""
Test Configuration — Fixtures for async DB, test client, and seeded tenant data.

Each test gets its own in-memory SQLite database. pysqlite's implicit
transaction handling is switched off so SAVEPOINTs behave like PostgreSQL.
"""

import uuid
from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from api.deps import get_current_user, get_db
from api.main import app
from db.session import Base

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

CUSTOMER_ID = "00000000-0000-0000-0000-000000000001"


def enable_sqlite_savepoints(engine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


async def seed_tenant(db: AsyncSession, customer_id: str = CUSTOMER_ID, now: datetime | None = None) -> dict:
    """
    One tenant with four products covering every reorder path:

      SKU-FAST  available 10, 2 units/day stable, 30% margin   → high, reorder 80, auto-reorders
      SKU-THIN  available 3, 0.5 units/day rising, 18% margin   → high, reorder 24, below margin floor
      SKU-IDLE  available 50, no orders                         → low, nothing to reorder
      SKU-GONE  available 0, last sale 60 days ago              → low, out_of_stock
    """
    from db.models import AppSettings, CanceledOrder, Customer, Order, Product

    now = now or datetime.utcnow()
    tenant = uuid.UUID(customer_id)

    db.add(Customer(customer_id=tenant, name="Test Seller", email=f"{customer_id}@seller.test", status="active"))
    await db.flush()

    products = {
        "SKU-FAST": Product(customer_id=tenant, sku="SKU-FAST", name="Fast Mover", quantity=100, sales_qty=90, cost_per_item=12),
        "SKU-THIN": Product(customer_id=tenant, sku="SKU-THIN", name="Thin Margin", quantity=20, sales_qty=17, cost_per_item=14),
        "SKU-IDLE": Product(customer_id=tenant, sku="SKU-IDLE", name="Idle Stock", quantity=50, sales_qty=0, cost_per_item=5),
        "SKU-GONE": Product(customer_id=tenant, sku="SKU-GONE", name="Sold Out", quantity=5, sales_qty=5, cost_per_item=5),
    }
    db.add_all(products.values())
    await db.flush()

    def _order(number: str, sku: str, days_ago: int, qty: int, price: float, unit_cost: float, fulfillment: float, **extra):
        revenue = price * qty
        profit = revenue - revenue * 0.08 - unit_cost * qty - fulfillment
        return Order(
            customer_id=tenant,
            product_id=products[sku].product_id,
            order_number=number,
            sku=sku,
            product_name=products[sku].name,
            order_date=now - timedelta(days=days_ago),
            order_quantity=qty,
            unit_price=price,
            marketplace_fee=revenue * 0.08,
            cost_per_unit=unit_cost,
            fulfillment_cost=fulfillment,
            total_revenue=revenue,
            net_profit=profit,
            roi=profit / (unit_cost * qty) * 100,
            **extra,
        )

    orders = [
        _order(f"ORD-F{i}", "SKU-FAST", days_ago, 10, 20.0, 12.0, 4.0)
        for i, days_ago in enumerate((1, 5, 10, 16, 20, 25))
    ]
    orders += [
        _order(f"ORD-T{i}", "SKU-THIN", days_ago, 5, 20.0, 14.0, 4.0)
        for i, days_ago in enumerate((2, 12, 20))
    ]
    orders.append(_order("ORD-G0", "SKU-GONE", 60, 2, 10.0, 5.0, 2.0))
    # Cancelled orders never count toward velocity or performance
    orders.append(_order("ORD-X0", "SKU-FAST", 3, 100, 20.0, 12.0, 4.0, status="cancelled"))
    db.add_all(orders)

    settings = AppSettings(customer_id=tenant, auto_reorder_enabled=True, minimum_profit_margin=25.0)
    db.add(settings)

    canceled = [
        CanceledOrder(
            customer_id=tenant,
            order_number="CXL-1",
            product_id=products["SKU-FAST"].product_id,
            canceled_date=now - timedelta(days=4),
            shipping_status="before_shipping",
            refund_amount=20.0,
        ),
        CanceledOrder(
            customer_id=tenant,
            order_number="CXL-2",
            product_id=products["SKU-THIN"].product_id,
            canceled_date=now - timedelta(days=4),
            shipping_status="after_shipping",
            refund_amount=30.0,
        ),
    ]
    db.add_all(canceled)

    await db.commit()
    return {
        "customer_id": tenant,
        "products": products,
        "orders": orders,
        "settings": settings,
        "canceled_orders": canceled,
        "now": now,
    }


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    session = AsyncSession(bind=test_engine, expire_on_commit=False)
    yield session
    await session.close()


@pytest.fixture
def mock_user():
    """Mock authenticated user."""
    return {
        "sub": "test-user-id",
        "email": "test@sellerops.test",
        "customer_id": CUSTOMER_ID,
    }


@pytest.fixture
async def client(test_db, mock_user):
    """Create an async test client with dependency overrides."""

    async def override_get_db():
        yield test_db

    def override_get_current_user():
        return mock_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def seeded_db(test_db):
    """Seed the test DB with one tenant's catalog, orders and settings."""
    return await seed_tenant(test_db)


@pytest.fixture
def tenant_seeder():
    """The seeding coroutine, for tests that manage their own database."""
    return seed_tenant
