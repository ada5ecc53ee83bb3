"""
Product Performance — per-SKU financial and volume metrics from order records.

Single source of truth for revenue, profit, margin and ROI per product.
Presentation layers sort and filter the output; they do not re-derive it.

Formulas:
  profit_margin  = total_profit / total_revenue × 100          (0 when revenue = 0)
  sales_only_roi = total_profit / (total_revenue − total_profit) × 100
                   (cost of sold units only; 0 when that cost ≤ 0)
  roi            = mean of the per-order reported ROI values
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

import structlog

from core.errors import MissingIdentifierError
from inventory.records import (
    field_value,
    record_date,
    record_key,
    record_quantity,
    to_number,
)

logger = structlog.get_logger()


@dataclass
class ProductPerformance:
    """Aggregated order metrics for one SKU."""

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

    @property
    def unit_profit(self) -> float:
        return self.total_profit / self.total_quantity if self.total_quantity > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class _Accumulator:
    name: str
    product_id: str | None
    quantity: float = 0.0
    revenue: float = 0.0
    profit: float = 0.0
    roi_sum: float = 0.0
    orders: int = 0
    last_date: datetime | None = None


def _percent(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator * 100


def aggregate_product_performance(
    orders: Iterable[Mapping[str, Any] | Any],
    *,
    skip_unidentified: bool = False,
) -> list[ProductPerformance]:
    """
    Reduce order/sale records into one ProductPerformance per SKU.

    Records are grouped by SKU (product id when SKU is absent). A record
    with neither raises MissingIdentifierError, unless `skip_unidentified`
    is set, in which case it is logged and left out.

    Output follows first-seen order of each key.
    """
    groups: dict[str, _Accumulator] = {}
    skipped = 0

    for index, row in enumerate(orders):
        key = record_key(row)
        if key is None:
            if not skip_unidentified:
                raise MissingIdentifierError(index)
            skipped += 1
            logger.warning("performance.unidentified_record", record_index=index)
            continue

        acc = groups.get(key)
        if acc is None:
            product_id = field_value(row, "product_id")
            acc = _Accumulator(
                name=str(field_value(row, "product_name") or key),
                product_id=str(product_id) if product_id is not None else None,
            )
            groups[key] = acc

        acc.quantity += record_quantity(row)
        acc.revenue += to_number(field_value(row, "total_revenue"))
        acc.profit += to_number(field_value(row, "net_profit"))
        acc.roi_sum += to_number(field_value(row, "roi"))
        acc.orders += 1

        when = record_date(row)
        if when is not None and (acc.last_date is None or when > acc.last_date):
            acc.last_date = when

    if skipped:
        logger.info("performance.aggregated_with_skips", skipped=skipped, products=len(groups))

    results = []
    for key, acc in groups.items():
        results.append(
            ProductPerformance(
                sku=key,
                name=acc.name,
                product_id=acc.product_id,
                total_quantity=acc.quantity,
                total_revenue=acc.revenue,
                total_profit=acc.profit,
                profit_margin=_percent(acc.profit, acc.revenue),
                roi=acc.roi_sum / acc.orders,
                sales_only_roi=_percent(acc.profit, acc.revenue - acc.profit),
                order_count=acc.orders,
                avg_quantity_per_order=acc.quantity / acc.orders,
                last_order_date=acc.last_date,
            )
        )
    return results


def index_performance(performances: Iterable[ProductPerformance]) -> dict[str, ProductPerformance]:
    """Lookup by SKU and, where known, by product id."""
    index: dict[str, ProductPerformance] = {}
    for perf in performances:
        index[perf.sku] = perf
        if perf.product_id:
            index.setdefault(perf.product_id, perf)
    return index


def summarize_performance(performances: Iterable[ProductPerformance]) -> dict[str, float | int]:
    """Portfolio totals across all SKUs."""
    revenue = profit = quantity = 0.0
    orders = products = 0
    for perf in performances:
        revenue += perf.total_revenue
        profit += perf.total_profit
        quantity += perf.total_quantity
        orders += perf.order_count
        products += 1
    return {
        "product_count": products,
        "total_revenue": round(revenue, 2),
        "total_profit": round(profit, 2),
        "total_quantity": quantity,
        "order_count": orders,
        "profit_margin": round(_percent(profit, revenue), 2),
    }
