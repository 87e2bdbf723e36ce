"""Celery worker configuration and periodic maintenance tasks."""

import asyncio
import logging

from celery import Celery

from mediaboard.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# Create Celery app
celery_app = Celery(
    "mediaboard_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=600,  # 10 minutes max per task
    task_soft_time_limit=540,  # Soft limit at 9 minutes
    worker_prefetch_multiplier=1,  # Fetch one task at a time
    task_acks_late=True,  # Ack after task completes
    task_reject_on_worker_lost=True,
    task_default_queue="default",
    beat_schedule={
        "sweep-upload-sessions": {
            "task": "mediaboard.worker.sweep_upload_sessions",
            "schedule": float(settings.upload_sweep_interval_seconds),
        },
    },
)


async def run_sweep() -> int:
    """Sweep expired upload sessions once, with a fresh DB session."""
    from mediaboard.api.dependencies import get_upload_service
    from mediaboard.db.session import async_session_maker, engine

    try:
        async with async_session_maker() as db:
            return await get_upload_service().sweep_expired(db)
    finally:
        # Pooled connections belong to this event loop only
        await engine.dispose()


@celery_app.task(name="mediaboard.worker.sweep_upload_sessions")
def sweep_upload_sessions() -> int:
    """Periodic task removing expired upload sessions and their chunks."""
    removed = asyncio.run(run_sweep())
    logger.info(f"Upload sweep removed {removed} session(s)")
    return removed
