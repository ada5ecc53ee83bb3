"""Inventory health score from stock-status counts."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from inventory.policy import StockThresholds
from inventory.records import ProductSnapshot
from inventory.stock_status import count_statuses

# Weight each status contributes to the score (out_of_stock contributes 0)
STATUS_WEIGHTS = {"active": 1.0, "low_stock": 0.4, "out_of_stock": 0.0}

HEALTH_LABELS = (
    (90, "Excellent"),
    (75, "Good"),
    (60, "Average"),
    (40, "Needs Attention"),
)


def calculate_health_score(counts: dict[str, int]) -> int:
    """(100% × active + 40% × low_stock) / total, rounded. Empty catalog → 0."""
    total = sum(counts.get(status, 0) for status in STATUS_WEIGHTS)
    if total == 0:
        return 0
    weighted = sum(counts.get(status, 0) * weight for status, weight in STATUS_WEIGHTS.items())
    return round(weighted / total * 100)


def health_label(score: int) -> str:
    for floor, label in HEALTH_LABELS:
        if score >= floor:
            return label
    return "Critical"


def build_health_report(
    products: Iterable[ProductSnapshot],
    thresholds: StockThresholds = StockThresholds(),
) -> dict[str, Any]:
    counts = count_statuses(products, thresholds)
    score = calculate_health_score(counts)

    notes = []
    if counts["low_stock"]:
        notes.append(f"{counts['low_stock']} products are running low on stock. Consider restocking soon.")
    if counts["out_of_stock"]:
        notes.append(f"{counts['out_of_stock']} products are out of stock. Review and restock these items.")

    return {
        "counts": counts,
        "total": sum(counts.values()),
        "score": score,
        "label": health_label(score),
        "notes": notes,
    }
