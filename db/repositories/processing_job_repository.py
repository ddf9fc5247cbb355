"""
Repository for processing job lifecycle persistence, status lookup and the
row-level error ledger.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.processing_job import (
    InvalidJobTransitionError,
    ProcessingError,
    ProcessingJob,
    ProcessingStatus,
    can_transition,
)
from transform.types import RowIssue


class ProcessingJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(
        self,
        *,
        upload_job_id: uuid.UUID,
        analysis_id: uuid.UUID,
        batch_size: int,
        retry_of_job_id: uuid.UUID | None = None,
    ) -> ProcessingJob:
        job = ProcessingJob(
            upload_job_id=upload_job_id,
            analysis_id=analysis_id,
            status=ProcessingStatus.PENDING,
            batch_size=batch_size,
            retry_of_job_id=retry_of_job_id,
        )
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> ProcessingJob | None:
        return self._session.get(ProcessingJob, job_id)

    def list_jobs(
        self,
        *,
        limit: int = 100,
        upload_job_id: uuid.UUID | None = None,
        status: str | None = None,
    ) -> list[ProcessingJob]:
        stmt: Select[tuple[ProcessingJob]] = select(ProcessingJob)

        if upload_job_id:
            stmt = stmt.where(ProcessingJob.upload_job_id == upload_job_id)
        if status:
            stmt = stmt.where(ProcessingJob.status == status.strip().upper())

        stmt = stmt.order_by(ProcessingJob.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def find_active_job(self, *, analysis_id: uuid.UUID) -> ProcessingJob | None:
        stmt = select(ProcessingJob).where(
            ProcessingJob.analysis_id == analysis_id,
            ProcessingJob.status.in_(sorted(ProcessingStatus.ACTIVE)),
        )
        return self._session.execute(stmt).scalars().first()

    def list_running_since(self, cutoff: datetime) -> list[ProcessingJob]:
        stmt = select(ProcessingJob).where(
            ProcessingJob.status == ProcessingStatus.RUNNING,
            ProcessingJob.started_at.is_not(None),
            ProcessingJob.started_at < cutoff,
        )
        return list(self._session.scalars(stmt).all())

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _transition(self, job: ProcessingJob, target: str) -> None:
        if not can_transition(job.status, target):
            raise InvalidJobTransitionError(job_id=job.id, current=job.status, target=target)
        job.status = target

    def mark_running(self, *, job_id: uuid.UUID) -> ProcessingJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        self._transition(job, ProcessingStatus.RUNNING)
        job.started_at = datetime.now(timezone.utc)
        job.finished_at = None
        job.error_message = None
        return job

    def mark_completed(
        self,
        *,
        job_id: uuid.UUID,
        result_payload: dict[str, Any] | None = None,
    ) -> ProcessingJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        self._transition(job, ProcessingStatus.COMPLETED)
        job.finished_at = datetime.now(timezone.utc)
        job.progress_percentage = 100.0
        job.result_payload = result_payload
        job.error_message = None
        return job

    def mark_failed(
        self,
        *,
        job_id: uuid.UUID,
        error_message: str,
        result_payload: dict[str, Any] | None = None,
    ) -> ProcessingJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        self._transition(job, ProcessingStatus.FAILED)
        job.finished_at = datetime.now(timezone.utc)
        job.error_message = error_message
        if result_payload is not None:
            job.result_payload = result_payload
        return job

    def update_progress(
        self,
        *,
        job: ProcessingJob,
        progress_percentage: float,
        records_processed: int | None = None,
        total_records: int | None = None,
    ) -> None:
        """
        Counters only move forward.
        """

        job.progress_percentage = max(job.progress_percentage or 0.0, min(100.0, progress_percentage))
        if records_processed is not None:
            job.records_processed = max(job.records_processed or 0, records_processed)
        if total_records is not None:
            job.total_records = max(job.total_records or 0, total_records)

    # ------------------------------------------------------------------
    # Error ledger
    # ------------------------------------------------------------------

    def add_errors(self, *, job_id: uuid.UUID, issues: Sequence[RowIssue]) -> int:
        for issue in issues:
            self._session.add(
                ProcessingError(
                    processing_job_id=job_id,
                    row_number=issue.row_number,
                    column_index=issue.column_index,
                    error_type=issue.error_type,
                    error_message=issue.message[:2000],
                    raw_value=issue.raw_value,
                    severity=issue.severity,
                )
            )
        self._session.flush()
        return len(issues)

    def list_errors(
        self,
        *,
        job_id: uuid.UUID,
        severity: str | None = None,
        limit: int = 1000,
    ) -> list[ProcessingError]:
        stmt = select(ProcessingError).where(ProcessingError.processing_job_id == job_id)
        if severity:
            stmt = stmt.where(ProcessingError.severity == severity.strip().upper())
        stmt = stmt.order_by(ProcessingError.row_number.asc(), ProcessingError.created_at.asc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())
