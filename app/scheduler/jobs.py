"""
app/scheduler/jobs.py

APScheduler-based housekeeping for the processing job controller.

Schedule
--------
  overdue_processing_jobs: every PROCESSING_OVERDUE_CHECK_MINUTES (default 5)

The check is advisory: RUNNING jobs older than PROCESSING_TIMEOUT_MINUTES
are logged at WARNING level and left untouched. Jobs are never cancelled.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from app.config import FactProcessingSettings, get_fact_processing_settings
from db.repositories.processing_job_repository import ProcessingJobRepository
from db.session import session_scope

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Job: overdue processing jobs
# ---------------------------------------------------------------------------


def find_overdue_processing_jobs(
    db: Session,
    *,
    timeout_minutes: int,
    now: datetime | None = None,
) -> list[tuple[str, float]]:
    """
    Return (job_id, running_minutes) for RUNNING jobs past the timeout.
    """

    current = now or datetime.now(tz=timezone.utc)
    cutoff = current - timedelta(minutes=timeout_minutes)
    overdue: list[tuple[str, float]] = []
    for job in ProcessingJobRepository(db).list_running_since(cutoff):
        started_at = job.started_at
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=timezone.utc)
        overdue.append((str(job.id), round((current - started_at).total_seconds() / 60.0, 1)))
    return overdue


def warn_overdue_processing_jobs(settings: FactProcessingSettings | None = None) -> int:
    """
    Log a WARNING for each processing job that has been RUNNING too long.
    """

    settings = settings or get_fact_processing_settings()
    try:
        with session_scope() as db:
            overdue = find_overdue_processing_jobs(db, timeout_minutes=settings.timeout_minutes)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: overdue_processing_jobs check failed: %s", exc)
        return 0

    for job_id, running_minutes in overdue:
        logger.warning(
            "Scheduler: processing job id=%s has been RUNNING for %.1f minutes (timeout=%d)",
            job_id,
            running_minutes,
            settings.timeout_minutes,
        )
    return len(overdue)


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler(settings: FactProcessingSettings | None = None) -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    settings = settings or get_fact_processing_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        warn_overdue_processing_jobs,
        trigger="interval",
        minutes=settings.overdue_check_interval_minutes,
        kwargs={"settings": settings},
        id="overdue_processing_jobs",
        name="Overdue processing job check",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=300,
    )

    return scheduler
