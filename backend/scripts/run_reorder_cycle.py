#!/usr/bin/env python3
"""
Run one reorder evaluation cycle for a tenant and print its summary as JSON.

  python backend/scripts/run_reorder_cycle.py --customer-id <uuid> --dry-run --pretty
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
import uuid
from datetime import datetime

# Add backend to path so imports work when script is run directly.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import get_settings
from core.logging import configure_logging
from db.session import build_engine, session_factory
from inventory.engine import ReorderEngine


async def _run(database_url: str, customer_id: uuid.UUID, as_of: datetime | None, dry_run: bool) -> dict:
    engine = build_engine(database_url)
    try:
        async with session_factory(engine)() as db:
            result = await ReorderEngine(db).run_cycle(customer_id, as_of=as_of, dry_run=dry_run)
    finally:
        await engine.dispose()

    summary = result.summary()
    summary["recommendations"] = [r.to_dict() for r in result.recommendations]
    return summary


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run a reorder evaluation cycle for one tenant")
    parser.add_argument("--customer-id", required=True, help="Tenant UUID")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    parser.add_argument(
        "--as-of", default=None, help="Evaluation time (ISO 8601, offsets converted to UTC), defaults to now"
    )
    parser.add_argument("--dry-run", action="store_true", help="Compute only; write nothing")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Minimum level for log lines on stderr",
    )
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        customer_id = uuid.UUID(args.customer_id)
        as_of = datetime.fromisoformat(args.as_of) if args.as_of else None
        summary = asyncio.run(
            _run(args.database_url or get_settings().database_url, customer_id, as_of, args.dry_run)
        )
        summary["status"] = "partial_failure" if summary["auto_reorder"]["partial_failure"] else "success"
    except Exception as exc:  # noqa: BLE001
        summary = {"status": "failed", "customer_id": args.customer_id, "error": str(exc)}

    if args.pretty:
        print(json.dumps(summary, indent=2, sort_keys=True, default=str))
    else:
        print(json.dumps(summary, default=str))

    return 0 if summary["status"] == "success" else 1


if __name__ == "__main__":
    raise SystemExit(main())
