"""
Celery Application Configuration
"""

from celery import Celery
from celery.schedules import crontab

from core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "sellerops",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["workers.reorder_cycle"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "workers.reorder_cycle.*": {"queue": "engine"},
    },
    # ── Celery Beat Schedule ─────────────────────────────────────────
    beat_schedule={
        # Fans out one run_reorder_cycle per active/trial tenant
        "reorder-cycle-hourly": {
            "task": "workers.reorder_cycle.dispatch_reorder_cycles",
            "schedule": crontab(minute=15),
            "options": {"queue": "engine"},
        },
    },
)
