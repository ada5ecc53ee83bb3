"""
Reorder Engine — one evaluation cycle for one tenant.

Workflow:
  1. Load products, non-cancelled orders, and app_settings for the tenant
  2. Reclassify stock status; write only statuses that changed
  3. Aggregate per-SKU performance, generate ranked recommendations
  4. Run the auto-reorder trigger; each event insert runs in its own
     SAVEPOINT so one failed insert does not poison the batch
  5. Commit and return a CycleResult

The pure steps (classify, aggregate, generate) do no I/O. `should_stop`
lets callers exit before further writes; writes already issued stay.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from alerts.auto_reorder import AutoReorderReport, run_auto_reorder
from core.config import get_settings
from core.errors import InvalidSettingsError, PersistenceError
from db.models import AiRecommendation, AppSettings, Order, Product
from inventory.performance import ProductPerformance, aggregate_product_performance, index_performance
from inventory.policy import ReorderPolicy, StockThresholds, TenantPolicy, stock_thresholds_from_settings
from inventory.records import ProductSnapshot, to_datetime
from inventory.reorder import ReorderRecommendation, generate_reorder_recommendations
from inventory.stock_status import StatusUpdate, plan_status_updates

logger = structlog.get_logger()


@dataclass
class CycleResult:
    customer_id: str
    evaluated_at: datetime
    product_count: int = 0
    order_count: int = 0
    status_updates: list[StatusUpdate] = field(default_factory=list)
    status_updates_applied: int = 0
    recommendations: list[ReorderRecommendation] = field(default_factory=list)
    auto_reorder: AutoReorderReport = field(default_factory=AutoReorderReport)
    dry_run: bool = False
    stopped_early: bool = False

    def summary(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "evaluated_at": self.evaluated_at.isoformat(),
            "product_count": self.product_count,
            "order_count": self.order_count,
            "status_changes": len(self.status_updates),
            "status_updates_applied": self.status_updates_applied,
            "recommendations": len(self.recommendations),
            "actionable": sum(1 for r in self.recommendations if r.recommended_quantity > 0),
            "auto_reorder": self.auto_reorder.to_dict(),
            "dry_run": self.dry_run,
            "stopped_early": self.stopped_early,
        }


def _order_row(order: Order) -> dict[str, Any]:
    return {
        "sku": order.sku,
        "product_id": str(order.product_id) if order.product_id else None,
        "product_name": order.product_name,
        "order_number": order.order_number,
        "quantity": order.order_quantity,
        "total_revenue": order.total_revenue,
        "net_profit": order.net_profit,
        "roi": order.roi,
        "order_date": order.order_date,
    }


class ReorderEngine:
    """Load tenant data, run the reorder pipeline, persist its side effects."""

    def __init__(
        self,
        db: AsyncSession,
        reorder_policy: ReorderPolicy | None = None,
        stock_thresholds: StockThresholds | None = None,
    ):
        self.db = db
        settings = get_settings()
        self.reorder_policy = reorder_policy or ReorderPolicy.from_settings(settings)
        self.stock_thresholds = stock_thresholds or stock_thresholds_from_settings(settings)

    # ── Reads ───────────────────────────────────────────────────────────

    async def load_products(self, customer_id: uuid.UUID) -> list[ProductSnapshot]:
        result = await self.db.execute(
            select(Product)
            .where(Product.customer_id == customer_id)
            .order_by(Product.sku)
            .execution_options(populate_existing=True)
        )
        return [ProductSnapshot.from_row(p) for p in result.scalars().all()]

    async def load_orders(self, customer_id: uuid.UUID) -> list[dict[str, Any]]:
        result = await self.db.execute(
            select(Order)
            .where(Order.customer_id == customer_id, Order.status != "cancelled")
            .order_by(Order.order_date)
        )
        return [_order_row(o) for o in result.scalars().all()]

    async def load_policy(self, customer_id: uuid.UUID) -> TenantPolicy:
        result = await self.db.execute(select(AppSettings).where(AppSettings.customer_id == customer_id))
        try:
            return TenantPolicy.from_row(result.scalar_one_or_none())
        except ValidationError as exc:
            logger.error("settings.invalid_row", customer_id=str(customer_id), errors=exc.error_count())
            raise InvalidSettingsError(str(customer_id), str(exc)) from exc

    # ── Writes ──────────────────────────────────────────────────────────

    async def apply_status_updates(self, updates: list[StatusUpdate]) -> int:
        applied = 0
        for change in updates:
            await self.db.execute(
                update(Product)
                .where(Product.product_id == uuid.UUID(change.product_id))
                .values(status=change.new_status.value, updated_at=datetime.utcnow())
            )
            applied += 1
        return applied

    def _event_writer(self, customer_id: uuid.UUID):
        async def _write(event: dict[str, Any]) -> None:
            try:
                async with self.db.begin_nested():
                    self.db.add(
                        AiRecommendation(
                            customer_id=customer_id,
                            product_id=uuid.UUID(event["product_id"]),
                            type=event["type"],
                            recommendation=event["recommendation"],
                            explanation=event["explanation"],
                            suggested_action=event["suggested_action"],
                            impact_analysis=event["impact_analysis"],
                        )
                    )
            except (SQLAlchemyError, ValueError) as exc:
                raise PersistenceError(str(exc), product_id=event.get("product_id")) from exc

        return _write

    # ── Pipeline ────────────────────────────────────────────────────────

    async def evaluate(
        self,
        customer_id: uuid.UUID,
        as_of: datetime | None = None,
    ) -> tuple[list[ProductSnapshot], list[dict[str, Any]], TenantPolicy, list[ProductPerformance], list[ReorderRecommendation]]:
        """Read-only half of the cycle: load inputs and compute recommendations."""
        products = await self.load_products(customer_id)
        orders = await self.load_orders(customer_id)
        policy = await self.load_policy(customer_id)

        performances = aggregate_product_performance(orders, skip_unidentified=True)
        recommendations = generate_reorder_recommendations(
            products,
            orders,
            performances,
            tenant_policy=policy,
            policy=self.reorder_policy,
            as_of=as_of,
        )
        return products, orders, policy, performances, recommendations

    async def run_cycle(
        self,
        customer_id: uuid.UUID | str,
        as_of: datetime | None = None,
        dry_run: bool = False,
        should_stop: Callable[[], bool] | None = None,
    ) -> CycleResult:
        customer_uuid = customer_id if isinstance(customer_id, uuid.UUID) else uuid.UUID(str(customer_id))
        as_of = to_datetime(as_of) if as_of else datetime.utcnow()
        result = CycleResult(customer_id=str(customer_uuid), evaluated_at=as_of, dry_run=dry_run)

        products, orders, policy, performances, recommendations = await self.evaluate(customer_uuid, as_of)
        result.product_count = len(products)
        result.order_count = len(orders)
        result.recommendations = recommendations
        result.status_updates = plan_status_updates(products, self.stock_thresholds)

        def _stop() -> bool:
            return should_stop is not None and should_stop()

        if dry_run:
            logger.info("reorder.cycle_dry_run", **result.summary())
            return result

        if _stop():
            result.stopped_early = True
            logger.info("reorder.cycle_stopped", customer_id=result.customer_id, stage="status_updates")
            return result

        result.status_updates_applied = await self.apply_status_updates(result.status_updates)

        result.auto_reorder = await run_auto_reorder(
            recommendations,
            policy,
            self._event_writer(customer_uuid),
            performances=index_performance(performances),
            should_stop=_stop,
        )
        result.stopped_early = result.auto_reorder.cancelled

        await self.db.commit()

        if result.auto_reorder.partial_failure:
            logger.warning(
                "reorder.cycle_partial_failure",
                customer_id=result.customer_id,
                failed=list(result.auto_reorder.failed),
            )
        logger.info("reorder.cycle_completed", **result.summary())
        return result
