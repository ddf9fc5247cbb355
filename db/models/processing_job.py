"""
db/models/processing_job.py

Processing job state machine and its row-level error ledger.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin
from transform.types import Severity


class ProcessingStatus:
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    ACTIVE = frozenset({PENDING, RUNNING})
    TERMINAL = frozenset({COMPLETED, FAILED})


ACTIVE_STATUS_CLAUSE = "status IN ('PENDING', 'RUNNING')"


# status -> statuses it may move to
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    ProcessingStatus.PENDING: frozenset({ProcessingStatus.RUNNING, ProcessingStatus.FAILED}),
    ProcessingStatus.RUNNING: frozenset({ProcessingStatus.COMPLETED, ProcessingStatus.FAILED}),
    ProcessingStatus.COMPLETED: frozenset(),
    ProcessingStatus.FAILED: frozenset(),
}


class InvalidJobTransitionError(RuntimeError):
    """
    Raised when a job is asked to move to a state its current state forbids.
    """

    def __init__(self, *, job_id: uuid.UUID, current: str, target: str) -> None:
        super().__init__(f"Processing job {job_id} cannot move from {current} to {target}.")
        self.job_id = job_id
        self.current = current
        self.target = target


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class ProcessingJob(Base, TimestampMixin):
    __tablename__ = "processing_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    upload_job_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    analysis_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("csv_analyses.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ProcessingStatus.PENDING,
    )
    total_records: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    batch_size: Mapped[int] = mapped_column(Integer, nullable=False, default=1000)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    retry_of_job_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("processing_jobs.id"),
        nullable=True,
        comment="Failed job this run retries",
    )
    result_payload: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="Counts, aggregation outcome and data-quality report",
    )

    __table_args__ = (
        Index("ix_processing_jobs_upload_job_id", "upload_job_id"),
        Index("ix_processing_jobs_analysis_status", "analysis_id", "status"),
        Index("ix_processing_jobs_status", "status"),
        Index("ix_processing_jobs_created_at", "created_at"),
        # at most one PENDING or RUNNING job per analysis
        Index(
            "uq_processing_jobs_active_analysis",
            "analysis_id",
            unique=True,
            postgresql_where=text(ACTIVE_STATUS_CLAUSE),
            sqlite_where=text(ACTIVE_STATUS_CLAUSE),
        ),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in ProcessingStatus.TERMINAL


class ProcessingError(Base, TimestampMixin):
    __tablename__ = "processing_errors"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    processing_job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("processing_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    row_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    column_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error_type: Mapped[str] = mapped_column(String(64), nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    raw_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default=Severity.ERROR)
    is_resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_processing_errors_job_id", "processing_job_id"),
        Index("ix_processing_errors_job_severity", "processing_job_id", "severity"),
    )
