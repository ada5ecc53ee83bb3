"""
Stock Status Classifier — active / low_stock / out_of_stock from available units.

  available = quantity − sales_qty   (negative when oversold)
  available ≤ 0        → out_of_stock
  0 < available < 5    → low_stock
  otherwise            → active

Status writes are only requested when the computed value differs from the
stored one, so re-running on unchanged data is a no-op.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from inventory.policy import StockThresholds
from inventory.records import ProductSnapshot, to_number


class StockStatus(str, Enum):
    ACTIVE = "active"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


@dataclass(frozen=True)
class StatusUpdate:
    product_id: str
    sku: str
    old_status: str
    new_status: StockStatus
    available_qty: float


def classify_stock_status(
    quantity: Any,
    sales_qty: Any,
    thresholds: StockThresholds = StockThresholds(),
) -> StockStatus:
    """Classify a product from its purchased and sold quantities."""
    available = to_number(quantity) - to_number(sales_qty)
    if available <= thresholds.out_of_stock_at:
        return StockStatus.OUT_OF_STOCK
    if available < thresholds.low_stock_below:
        return StockStatus.LOW_STOCK
    return StockStatus.ACTIVE


def plan_status_updates(
    products: Iterable[ProductSnapshot | Mapping[str, Any] | Any],
    thresholds: StockThresholds = StockThresholds(),
) -> list[StatusUpdate]:
    """Return one StatusUpdate per product whose stored status is stale."""
    updates = []
    for row in products:
        product = row if isinstance(row, ProductSnapshot) else ProductSnapshot.from_row(row)
        new_status = classify_stock_status(product.quantity, product.sales_qty, thresholds)
        if new_status.value != product.status:
            updates.append(
                StatusUpdate(
                    product_id=product.product_id,
                    sku=product.sku,
                    old_status=product.status,
                    new_status=new_status,
                    available_qty=product.available_qty,
                )
            )
    return updates


def count_statuses(
    products: Iterable[ProductSnapshot],
    thresholds: StockThresholds = StockThresholds(),
) -> dict[str, int]:
    """Count products per freshly computed status."""
    counts = {status.value: 0 for status in StockStatus}
    for product in products:
        counts[classify_stock_status(product.quantity, product.sales_qty, thresholds).value] += 1
    return counts
