"""
tests/conftest.py

Shared fixtures: a file-backed SQLite database with SAVEPOINT support, a
temporary upload store and fully wired services that never read the
process environment.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

import db.models  # noqa: F401  registers all ORM models on Base.metadata
from app.config import (
    DimensionMappingSettings,
    FactProcessingSettings,
    StructureAnalysisSettings,
)
from app.services.dimension_mapping_service import DimensionMappingService
from app.services.fact_processing_service import FactProcessingService
from app.services.processing_job_service import ProcessingJobService
from app.services.structure_analysis_service import StructureAnalysisService
from db.base import Base
from db.repositories.storage import LocalFileStorage


class InlineExecutor:
    """
    Runs submitted tasks immediately on the calling thread.
    """

    def __init__(self) -> None:
        self.submitted = 0

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self.submitted += 1
        task(*args, **kwargs)


class DeferredExecutor:
    """
    Collects submitted tasks so a test can run them later.
    """

    def __init__(self) -> None:
        self.tasks: list[tuple[Callable[..., None], tuple[Any, ...]]] = []

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self.tasks.append((task, args))

    def run_all(self) -> None:
        tasks, self.tasks = self.tasks, []
        for task, args in tasks:
            task(*args)


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    # File-backed so the caller and the worker each hold their own connection.
    database_path = tmp_path / "etl.db"
    engine = create_engine(
        f"sqlite+pysqlite:///{database_path}",
        connect_args={"check_same_thread": False},
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None
        # Readers must not block the worker's commits.
        dbapi_connection.execute("PRAGMA journal_mode=WAL")

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def structure_settings(storage_dir: Path) -> StructureAnalysisSettings:
    return StructureAnalysisSettings(upload_storage_dir=str(storage_dir))


@pytest.fixture()
def dimension_settings() -> DimensionMappingSettings:
    return DimensionMappingSettings()


@pytest.fixture()
def processing_settings() -> FactProcessingSettings:
    return FactProcessingSettings(batch_size=2, max_errors=50, log_row_errors=False)


@pytest.fixture()
def structure_service(
    structure_settings: StructureAnalysisSettings,
    storage_dir: Path,
) -> StructureAnalysisService:
    return StructureAnalysisService(
        settings=structure_settings,
        storage_backend=LocalFileStorage(storage_dir),
    )


@pytest.fixture()
def mapping_service(
    dimension_settings: DimensionMappingSettings,
    structure_service: StructureAnalysisService,
) -> DimensionMappingService:
    return DimensionMappingService(settings=dimension_settings, structure_service=structure_service)


@pytest.fixture()
def processing_service(
    processing_settings: FactProcessingSettings,
    dimension_settings: DimensionMappingSettings,
    structure_service: StructureAnalysisService,
    mapping_service: DimensionMappingService,
) -> FactProcessingService:
    return FactProcessingService(
        settings=processing_settings,
        dimension_settings=dimension_settings,
        structure_service=structure_service,
        mapping_service=mapping_service,
    )


@pytest.fixture()
def job_service(
    session_factory: sessionmaker[Session],
    processing_service: FactProcessingService,
    mapping_service: DimensionMappingService,
    structure_service: StructureAnalysisService,
) -> ProcessingJobService:
    return ProcessingJobService(
        session_factory=session_factory,
        processing_service=processing_service,
        mapping_service=mapping_service,
        structure_service=structure_service,
    )


@pytest.fixture()
def upload_job_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    def _write(content: str | bytes, name: str = "data.csv") -> Path:
        path = tmp_path / "raw" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def inline_executor() -> InlineExecutor:
    return InlineExecutor()


@pytest.fixture()
def deferred_executor() -> DeferredExecutor:
    return DeferredExecutor()
