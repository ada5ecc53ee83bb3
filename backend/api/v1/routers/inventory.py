"""
Inventory Router — product performance, stock health, and reorder recommendations.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_customer_id, get_db
from inventory.engine import ReorderEngine
from inventory.health import build_health_report
from inventory.performance import aggregate_product_performance, summarize_performance
from inventory.pricing import generate_pricing_recommendations

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])

SortField = Literal[
    "total_quantity",
    "total_revenue",
    "total_profit",
    "profit_margin",
    "roi",
    "sales_only_roi",
    "order_count",
    "avg_quantity_per_order",
    "last_order_date",
]


# ─── Schemas ────────────────────────────────────────────────────────────────


class ProductPerformanceResponse(BaseModel):
    sku: str
    name: str
    product_id: str | None
    total_quantity: float
    total_revenue: float
    total_profit: float
    profit_margin: float
    roi: float
    sales_only_roi: float
    order_count: int
    avg_quantity_per_order: float
    last_order_date: datetime | None

    model_config = {"from_attributes": True}


class PerformanceSummary(BaseModel):
    product_count: int
    total_revenue: float
    total_profit: float
    total_quantity: float
    order_count: int
    profit_margin: float


class PricingSuggestion(BaseModel):
    type: str
    title: str
    description: str
    impact: str
    action: str


class HealthReport(BaseModel):
    counts: dict[str, int]
    total: int
    score: int
    label: str
    notes: list[str]


class ReorderRecommendationResponse(BaseModel):
    product_id: str
    product_name: str
    sku: str
    current_quantity: float
    recommended_quantity: int
    reason: str
    priority: str
    estimated_days_until_stockout: float
    daily_velocity: float
    trend: str
    profit_margin: float | None
    below_margin_floor: bool

    model_config = {"from_attributes": True}


class ReorderCycleResponse(BaseModel):
    summary: dict
    recommendations: list[ReorderRecommendationResponse]


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/performance", response_model=list[ProductPerformanceResponse])
async def list_product_performance(
    sort_by: SortField = "total_revenue",
    descending: bool = True,
    limit: int | None = Query(None, ge=1, le=1000),
    strict: bool = False,
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Per-SKU performance, sorted for display. Metrics are computed once.

    Orders with neither SKU nor product id are skipped, or rejected with 422
    when `strict` is set.
    """
    orders = await ReorderEngine(db).load_orders(customer_id)
    performances = aggregate_product_performance(orders, skip_unidentified=not strict)

    dated = [p for p in performances if getattr(p, sort_by) is not None]
    undated = [p for p in performances if getattr(p, sort_by) is None]
    dated.sort(key=lambda p: getattr(p, sort_by), reverse=descending)
    ordered = dated + undated
    return ordered[:limit] if limit else ordered


@router.get("/performance/summary", response_model=PerformanceSummary)
async def get_performance_summary(
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    orders = await ReorderEngine(db).load_orders(customer_id)
    return summarize_performance(aggregate_product_performance(orders, skip_unidentified=True))


@router.get("/performance/{sku}/pricing", response_model=list[PricingSuggestion])
async def get_pricing_suggestions(
    sku: str,
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    orders = await ReorderEngine(db).load_orders(customer_id)
    performances = aggregate_product_performance(orders, skip_unidentified=True)
    match = next((p for p in performances if p.sku == sku), None)
    if match is None:
        raise HTTPException(status_code=404, detail=f"No orders found for SKU {sku}")
    return generate_pricing_recommendations(match)


@router.get("/health", response_model=HealthReport)
async def get_inventory_health(
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    engine = ReorderEngine(db)
    products = await engine.load_products(customer_id)
    return build_health_report(products, engine.stock_thresholds)


@router.get("/reorder-recommendations", response_model=list[ReorderRecommendationResponse])
async def list_reorder_recommendations(
    priority: Literal["high", "medium", "low"] | None = None,
    actionable_only: bool = False,
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Fresh recommendations; nothing is written."""
    *_, recommendations = await ReorderEngine(db).evaluate(customer_id)
    if priority:
        recommendations = [r for r in recommendations if r.priority == priority]
    if actionable_only:
        recommendations = [r for r in recommendations if r.recommended_quantity > 0]
    return recommendations


@router.post("/reorder-cycle", response_model=ReorderCycleResponse)
async def run_reorder_cycle(
    dry_run: bool = False,
    customer_id: UUID = Depends(get_customer_id),
    db: AsyncSession = Depends(get_db),
):
    """Run a full evaluation cycle: status writes + auto-reorder events."""
    result = await ReorderEngine(db).run_cycle(customer_id, dry_run=dry_run)
    return {"summary": result.summary(), "recommendations": result.recommendations}
