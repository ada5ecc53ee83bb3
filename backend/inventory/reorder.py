"""
Reorder Recommendation Generator — ranked, explained restock suggestions.

Combines available stock, trailing sales velocity, demand trend and per-SKU
profit margin into one recommendation per product, including products that
need nothing (recommended_quantity = 0).

Algorithm:
  daily_velocity    = units sold in the trailing window / window days   (30d)
  trend             = last 14d units vs. prior 14d units (±10% band)
  days_to_stockout  = available / daily_velocity
                      (0 when available ≤ 0, NO_STOCKOUT_DAYS when velocity = 0)
  target_stock      = ⌈daily_velocity × cover_days (45) × trend_multiplier⌉
  recommended_qty   = max(0, target_stock − available)
  priority          = high (< 7d) | medium (< 14d) | low

Products below the tenant's minimum margin keep their quantity but are
flagged in the reason; the auto-reorder trigger declines them.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any

import structlog

from inventory.performance import ProductPerformance, aggregate_product_performance, index_performance
from inventory.policy import PRIORITY_RANK, TREND_MULTIPLIERS, ReorderPolicy, TenantPolicy
from inventory.records import ProductSnapshot, field_value, record_date, record_quantity, to_datetime

logger = structlog.get_logger()

# Days-until-stockout reported for products with no recent sales
NO_STOCKOUT_DAYS = 9999.0


@dataclass(frozen=True)
class SalesVelocity:
    daily_average: float
    weekly_average: float
    monthly_average: float
    units_in_window: float
    trend: str  # increasing | stable | decreasing


@dataclass
class ReorderRecommendation:
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

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def calculate_sales_velocity(
    orders: Iterable[Mapping[str, Any] | Any],
    as_of: datetime,
    policy: ReorderPolicy = ReorderPolicy(),
) -> SalesVelocity:
    """
    Trailing-window sales velocity and trend for one product's orders.

    Only records dated in (as_of − window, as_of] count; undated or
    future-dated records are ignored.
    """
    as_of = to_datetime(as_of)
    window_start = as_of - timedelta(days=policy.velocity_window_days)
    recent_start = as_of - timedelta(days=policy.trend_window_days)
    prior_start = recent_start - timedelta(days=policy.trend_window_days)

    in_window = recent = prior = 0.0
    for row in orders:
        when = record_date(row)
        if when is None or when > as_of:
            continue
        qty = record_quantity(row)
        if when > window_start:
            in_window += qty
        if when > recent_start:
            recent += qty
        elif when > prior_start:
            prior += qty

    daily = max(0.0, in_window / policy.velocity_window_days)

    if recent > prior * (1 + policy.trend_threshold):
        trend = "increasing"
    elif recent < prior * (1 - policy.trend_threshold):
        trend = "decreasing"
    else:
        trend = "stable"

    return SalesVelocity(
        daily_average=daily,
        weekly_average=daily * 7,
        monthly_average=daily * 30,
        units_in_window=in_window,
        trend=trend,
    )


def estimate_days_until_stockout(available: float, daily_velocity: float) -> float:
    if daily_velocity <= 0:
        return NO_STOCKOUT_DAYS
    if available <= 0:
        return 0.0
    return available / daily_velocity


def recommend_quantity(available: float, velocity: SalesVelocity, policy: ReorderPolicy = ReorderPolicy()) -> int:
    """Units needed to bring available stock up to `target_cover_days` of demand."""
    if velocity.daily_average <= 0:
        return 0
    multiplier = TREND_MULTIPLIERS.get(velocity.trend, 1.0)
    # Round before ceil so float noise (e.g. 45.000000001) doesn't add a unit
    target = math.ceil(round(velocity.daily_average * policy.target_cover_days * multiplier, 6))
    return max(0, math.ceil(round(target - available, 6)))


def _explain(
    priority: str,
    days: float,
    available: float,
    velocity: SalesVelocity,
    quantity: int,
    policy: ReorderPolicy,
) -> str:
    if velocity.daily_average <= 0:
        return f"No sales in the last {policy.velocity_window_days} days; no reorder needed."

    rate = f"{velocity.daily_average:.1f} units/day"
    if available <= 0:
        reason = f"Out of stock while selling {rate}."
    elif priority == "high":
        reason = f"Critical inventory level: only {math.ceil(days)} days of stock remaining at {rate}."
    elif priority == "medium":
        reason = f"Low inventory: {math.ceil(days)} days of stock remaining at {rate}."
    else:
        reason = f"Adequate inventory: {math.ceil(days)} days of stock remaining at {rate}."

    if quantity > 0:
        reason += f" Reorder {quantity} units for {policy.target_cover_days} days of cover."
    if velocity.trend != "stable":
        reason += f" Demand is {velocity.trend}."
    return reason


def _assign_orders(
    products: list[ProductSnapshot],
    orders: Iterable[Mapping[str, Any] | Any],
) -> dict[str, list[Any]]:
    """Attach each order to one product: by SKU first, then by product id."""
    by_sku = {p.sku: p.key for p in products if p.sku}
    by_id = {p.product_id: p.key for p in products if p.product_id}
    assigned: dict[str, list[Any]] = {p.key: [] for p in products}

    for row in orders:
        sku = field_value(row, "sku")
        product_id = field_value(row, "product_id")
        key = None
        if sku is not None and str(sku).strip() in by_sku:
            key = by_sku[str(sku).strip()]
        elif product_id is not None and str(product_id) in by_id:
            key = by_id[str(product_id)]
        if key is not None:
            assigned[key].append(row)
    return assigned


def generate_reorder_recommendations(
    products: Iterable[ProductSnapshot | Mapping[str, Any] | Any],
    orders: Iterable[Mapping[str, Any] | Any],
    performances: Iterable[ProductPerformance] | None = None,
    tenant_policy: TenantPolicy = TenantPolicy(),
    policy: ReorderPolicy = ReorderPolicy(),
    as_of: datetime | None = None,
) -> list[ReorderRecommendation]:
    """
    Build one ReorderRecommendation per product, sorted by priority then
    days until stockout (ascending), then SKU and product id.

    `performances` defaults to aggregating `orders`. An offset-aware `as_of`
    is converted to UTC; it defaults to now (UTC).
    """
    catalog = [p if isinstance(p, ProductSnapshot) else ProductSnapshot.from_row(p) for p in products]
    if not catalog:
        return []

    order_rows = list(orders)
    as_of = to_datetime(as_of) if as_of else datetime.utcnow()
    if performances is None:
        performances = aggregate_product_performance(order_rows, skip_unidentified=True)
    perf_index = index_performance(performances)
    orders_by_product = _assign_orders(catalog, order_rows)

    recommendations = []
    for product in catalog:
        velocity = calculate_sales_velocity(orders_by_product.get(product.key, []), as_of, policy)
        available = product.available_qty
        days = round(estimate_days_until_stockout(available, velocity.daily_average), 1)
        priority = policy.priorities.classify(days)
        quantity = recommend_quantity(available, velocity, policy)

        perf = perf_index.get(product.sku) or perf_index.get(product.product_id)
        margin = perf.profit_margin if perf is not None else None
        below_floor = margin is not None and margin < tenant_policy.minimum_profit_margin

        reason = _explain(priority, days, available, velocity, quantity, policy)
        if below_floor:
            reason = (
                f"Below minimum profit margin of {tenant_policy.minimum_profit_margin:g}% "
                f"(current {margin:.1f}%). Review pricing before reordering. " + reason
            )

        recommendations.append(
            ReorderRecommendation(
                product_id=product.product_id,
                product_name=product.name,
                sku=product.sku,
                current_quantity=available,
                recommended_quantity=quantity,
                reason=reason,
                priority=priority,
                estimated_days_until_stockout=days,
                daily_velocity=round(velocity.daily_average, 4),
                trend=velocity.trend,
                profit_margin=round(margin, 2) if margin is not None else None,
                below_margin_floor=below_floor,
            )
        )

    recommendations.sort(
        key=lambda r: (PRIORITY_RANK[r.priority], r.estimated_days_until_stockout, r.sku, r.product_id)
    )
    logger.debug(
        "reorder.recommendations_generated",
        products=len(catalog),
        actionable=sum(1 for r in recommendations if r.recommended_quantity > 0),
    )
    return recommendations
