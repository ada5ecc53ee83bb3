"""
Reorder Cycle Worker — scheduled stock-status + reorder evaluation per tenant.

Schedule: crontab(minute=15) — hourly
  dispatch_reorder_cycles  → one run_reorder_cycle per active/trial tenant
Queue: engine

run_reorder_cycle retries only when the cycle itself cannot run (database
unreachable, invalid settings row). Event-insert failures are reported in
the returned summary and re-attempted by the next scheduled cycle.
"""

import asyncio
from datetime import datetime, timezone

import structlog
from sqlalchemy import select

from workers.celery_app import celery_app

logger = structlog.get_logger()

ACTIVE_TENANT_STATUSES = ("active", "trial")
CYCLE_TASK_NAME = "workers.reorder_cycle.run_reorder_cycle"


@celery_app.task(
    name="workers.reorder_cycle.dispatch_reorder_cycles",
    bind=True,
    max_retries=2,
    default_retry_delay=60,
    acks_late=True,
)
def dispatch_reorder_cycles(self, statuses: list[str] | None = None, dry_run: bool = False):
    """Queue one reorder cycle per tenant whose status is in `statuses`."""
    run_id = self.request.id or "manual"
    selected = tuple(statuses or ACTIVE_TENANT_STATUSES)

    async def _tenants() -> list[str]:
        from core.config import get_settings
        from db.models import Customer
        from db.session import build_engine, session_factory

        engine = build_engine(get_settings().database_url)
        try:
            async with session_factory(engine)() as db:
                result = await db.execute(
                    select(Customer.customer_id).where(Customer.status.in_(selected)).order_by(Customer.created_at)
                )
                return [str(row.customer_id) for row in result.all()]
        finally:
            await engine.dispose()

    try:
        customers = asyncio.run(_tenants())
    except Exception as exc:
        logger.error("reorder_dispatch.failed", run_id=run_id, error=str(exc), exc_info=True)
        raise self.retry(exc=exc)

    for customer_id in customers:
        celery_app.send_task(CYCLE_TASK_NAME, kwargs={"customer_id": customer_id, "dry_run": dry_run})

    summary = {
        "status": "success",
        "run_id": run_id,
        "statuses": list(selected),
        "dispatched_count": len(customers),
        "triggered_at": datetime.now(timezone.utc).isoformat(),
    }
    logger.info("reorder_dispatch.completed", **summary)
    return summary


@celery_app.task(
    name=CYCLE_TASK_NAME,
    bind=True,
    max_retries=2,
    default_retry_delay=120,
    acks_late=True,
)
def run_reorder_cycle(self, customer_id: str, dry_run: bool = False):
    """Run one evaluation cycle for `customer_id` and return its summary."""
    run_id = self.request.id or "manual"
    logger.info("reorder_worker.started", customer_id=customer_id, run_id=run_id, dry_run=dry_run)

    async def _run():
        from core.config import get_settings
        from db.session import build_engine, session_factory
        from inventory.engine import ReorderEngine

        engine = build_engine(get_settings().database_url)
        try:
            async with session_factory(engine)() as db:
                return await ReorderEngine(db).run_cycle(customer_id, dry_run=dry_run)
        finally:
            await engine.dispose()

    try:
        result = asyncio.run(_run())
    except Exception as exc:
        logger.error("reorder_worker.failed", customer_id=customer_id, error=str(exc), exc_info=True)
        raise self.retry(exc=exc)

    summary = {
        "status": "partial_failure" if result.auto_reorder.partial_failure else "success",
        "run_id": run_id,
        **result.summary(),
        "completed_at": datetime.now(timezone.utc).isoformat(),
    }
    logger.info("reorder_worker.completed", **summary)
    return summary
