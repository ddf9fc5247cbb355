"""
app/main.py

FastAPI entrypoint for the indicator fact ETL service.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

logger = logging.getLogger(__name__)

_POSITIVE_INT_VARS = (
    "PROCESSING_BATCH_SIZE",
    "PROCESSING_MAX_WORKERS",
    "PROCESSING_TIMEOUT_MINUTES",
    "PROCESSING_OVERDUE_CHECK_MINUTES",
    "DIMENSION_SAMPLE_ROWS",
)
_UNIT_INTERVAL_VARS = (
    "DIMENSION_CONFIDENCE_THRESHOLD",
    "PROCESSING_AGGREGATION_THRESHOLD",
)


def _validate_env() -> None:
    """
    Validate environment variables before any service or connection exists.

    Every problem is collected first so one restart can fix them all.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    if not any(
        os.getenv(name, "").strip()
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    ):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )

    storage_dir = os.getenv("UPLOAD_STORAGE_DIR")
    if storage_dir is not None and not storage_dir.strip():
        errors.append("UPLOAD_STORAGE_DIR is set but empty.")

    for name in _POSITIVE_INT_VARS:
        raw_value = os.getenv(name)
        if raw_value is None:
            continue
        try:
            valid = int(raw_value) >= 1
        except ValueError:
            valid = False
        if not valid:
            errors.append(f"{name}={raw_value!r} must be a positive integer.")

    for name in _UNIT_INTERVAL_VARS:
        raw_value = os.getenv(name)
        if raw_value is None:
            continue
        try:
            valid = 0.0 <= float(raw_value) <= 1.0
        except ValueError:
            valid = False
        if not valid:
            errors.append(f"{name}={raw_value!r} must be a number between 0 and 1.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {error}" for error in errors)
        )


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_database() -> None:
    """
    Confirm the database answers and every ORM table exists.

    Does NOT auto-migrate: a missing table aborts startup until
    `alembic upgrade head` has been run.
    """

    from sqlalchemy import inspect, text

    import db.models  # noqa: F401  registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
            existing = set(inspect(connection).get_table_names())
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc

    missing = sorted(set(Base.metadata.tables) - existing)
    if missing:
        logger.critical(
            "Schema mismatch: %d table(s) absent from the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(missing),
        )
        raise RuntimeError(f"Schema mismatch: missing tables {', '.join(missing)}. Run migrations and restart.")


def _prepare_upload_storage() -> Path:
    from app.config import get_structure_analysis_settings

    root = Path(get_structure_analysis_settings().upload_storage_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Check the database and storage, run the scheduler, drain the worker pool on exit."""
    from app.config import get_fact_processing_settings
    from app.scheduler.jobs import build_scheduler
    from app.services.processing_job_service import get_processing_executor

    _check_database()
    logger.info("Database connectivity and schema confirmed")
    storage_root = _prepare_upload_storage()
    settings = get_fact_processing_settings()
    logger.info(
        "Upload storage at %s; processing workers=%d batch_size=%d",
        storage_root,
        settings.max_workers,
        settings.batch_size,
    )

    scheduler = build_scheduler(settings)
    scheduler.start()
    logger.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler shut down")
        # Running jobs finish; nothing is cancelled mid-batch.
        get_processing_executor().shutdown(wait=True)
        logger.info("Processing worker pool shut down")


def create_app() -> FastAPI:
    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Indicator Fact ETL API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import (
        csv_analysis_router,
        dimension_mapping_router,
        processing_router,
    )

    application.include_router(csv_analysis_router)
    application.include_router(dimension_mapping_router)
    application.include_router(processing_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
