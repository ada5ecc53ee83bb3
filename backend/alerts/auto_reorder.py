"""
Auto-Reorder Trigger — turn qualifying recommendations into reorder events.

A recommendation fires only when ALL hold:
  - tenant has auto_reorder_enabled
  - recommended_quantity > 0
  - product margin is known and ≥ tenant minimum_profit_margin

Each qualifying product emits exactly one event per cycle. A failed emission
is logged and reported; it never stops the rest of the batch and is not
retried (the next cycle recomputes and re-attempts).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from inventory.performance import ProductPerformance
from inventory.policy import TenantPolicy
from inventory.reorder import ReorderRecommendation

logger = structlog.get_logger()

MAX_CONFIDENCE = 0.95

ReorderEmitter = Callable[[dict[str, Any]], Awaitable[Any]]


@dataclass
class AutoReorderReport:
    """
    Outcome of one trigger pass.

    Products are identified by product_id, or by SKU when the row has no id.
    `failed` maps that identifier → error message.
    """

    triggered: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    declined: int = 0
    cancelled: bool = False

    @property
    def partial_failure(self) -> bool:
        return bool(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "triggered": list(self.triggered),
            "failed": dict(self.failed),
            "declined": self.declined,
            "cancelled": self.cancelled,
            "partial_failure": self.partial_failure,
        }


def should_trigger_auto_reorder(recommendation: ReorderRecommendation, policy: TenantPolicy) -> bool:
    """Decide whether a single recommendation qualifies for an automatic reorder."""
    if not policy.auto_reorder_enabled:
        return False
    if recommendation.recommended_quantity <= 0:
        return False
    if recommendation.profit_margin is None:
        return False
    return recommendation.profit_margin >= policy.minimum_profit_margin


def estimate_confidence(performance: ProductPerformance | None) -> float:
    """More order history → more confidence in the velocity estimate."""
    if performance is None:
        return 0.5
    return round(min(MAX_CONFIDENCE, 0.5 + 0.05 * performance.order_count), 2)


def build_reorder_event(
    recommendation: ReorderRecommendation,
    performance: ProductPerformance | None = None,
) -> dict[str, Any]:
    """Event payload persisted as an ai_recommendations row."""
    current_profit = performance.total_profit if performance else 0.0
    projected_profit = (performance.unit_profit if performance else 0.0) * recommendation.recommended_quantity
    return {
        "type": "reorder",
        "product_id": recommendation.product_id,
        "recommendation": (
            f"Reorder {recommendation.recommended_quantity} units of {recommendation.product_name}"
        ),
        "explanation": recommendation.reason,
        "suggested_action": "Place reorder",
        "impact_analysis": {
            "current_profit": round(current_profit, 2),
            "projected_profit": round(projected_profit, 2),
            "confidence_score": estimate_confidence(performance),
        },
    }


async def run_auto_reorder(
    recommendations: Iterable[ReorderRecommendation],
    policy: TenantPolicy,
    emit: ReorderEmitter,
    performances: Mapping[str, ProductPerformance] | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> AutoReorderReport:
    """
    Evaluate a batch and emit one event per qualifying recommendation.

    `performances` is a SKU/product-id index used for impact analysis.
    `should_stop` is polled before each emission; once it returns True no
    further events are emitted.
    """
    report = AutoReorderReport()
    performances = performances or {}
    seen: set[str] = set()

    for rec in recommendations:
        key = rec.product_id or rec.sku
        if not should_trigger_auto_reorder(rec, policy) or key in seen:
            report.declined += 1
            continue

        if should_stop is not None and should_stop():
            report.cancelled = True
            logger.info("auto_reorder.stopped_early", emitted=len(report.triggered))
            break

        seen.add(key)
        perf = performances.get(rec.sku) or performances.get(rec.product_id)
        event = build_reorder_event(rec, perf)
        try:
            await emit(event)
        except Exception as exc:
            report.failed[key] = str(exc)
            logger.error(
                "auto_reorder.emit_failed",
                product_id=rec.product_id,
                sku=rec.sku,
                error=str(exc),
            )
            continue

        report.triggered.append(key)
        logger.info(
            "auto_reorder.triggered",
            product_id=rec.product_id,
            sku=rec.sku,
            quantity=rec.recommended_quantity,
            priority=rec.priority,
        )

    return report
