"""
Reports Router — profit series and cancellation losses.
"""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_customer_id, get_db
from db.models import CanceledOrder, Order
from inventory.engine import ReorderEngine
from inventory.profit import calculate_profit_breakdown, summarize_cancellation_losses
from inventory.reports import build_profit_timeseries

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


async def _canceled_orders(db: AsyncSession, customer_id: UUID) -> list[CanceledOrder]:
    result = await db.execute(
        select(CanceledOrder).where(CanceledOrder.customer_id == customer_id).order_by(CanceledOrder.canceled_date)
    )
    return list(result.scalars().all())


@router.get("/profit")
async def get_profit_report(
    timeframe: Literal["daily", "monthly"] = "daily",
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    engine = ReorderEngine(db)
    orders = await engine.load_orders(customer_id)
    policy = await engine.load_policy(customer_id)
    canceled = await _canceled_orders(db, customer_id)
    return build_profit_timeseries(orders, canceled, policy, timeframe=timeframe)


@router.get("/profit-breakdown")
async def get_profit_breakdown(
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Fee- and fulfillment-aware rollup computed from raw order lines."""
    result = await db.execute(
        select(Order).where(Order.customer_id == customer_id, Order.status != "cancelled")
    )
    return calculate_profit_breakdown(result.scalars().all()).to_dict()


@router.get("/cancellations")
async def get_cancellation_losses(
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    policy = await ReorderEngine(db).load_policy(customer_id)
    return summarize_cancellation_losses(await _canceled_orders(db, customer_id), policy)
