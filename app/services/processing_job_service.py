"""
app/services/processing_job_service.py

Processing job controller: creates jobs, dispatches the fact pipeline to a
worker pool and records every lifecycle transition.

A job moves PENDING -> RUNNING -> COMPLETED | FAILED. Completing a job
supersedes facts written for the same analysis by earlier jobs; failing a
job removes its own partial facts, so readers only ever see the output of
the latest completed run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Any, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.config import get_fact_processing_settings
from app.repositories.fact_repository import FactRepository
from app.services.dimension_mapping_service import (
    DimensionMappingService,
    get_dimension_mapping_service,
)
from app.services.fact_processing_service import (
    ErrorLedger,
    FactProcessingService,
    get_fact_processing_service,
)
from app.services.structure_analysis_service import (
    StructureAnalysisService,
    get_structure_analysis_service,
)
from db.models.fact_indicator_value import FactIndicatorValue
from db.models.processing_job import ProcessingError, ProcessingJob, ProcessingStatus
from db.repositories.csv_analysis_repository import CsvAnalysisRepository
from db.repositories.processing_job_repository import ProcessingJobRepository
from dimensions import MappingValidationResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Executors
# ---------------------------------------------------------------------------


class ProcessingTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class ThreadPoolTaskExecutor:
    """
    Runs each processing job as one task on a bounded thread pool.
    """

    def __init__(self, max_workers: int) -> None:
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fact-processing")

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._pool.submit(task, *args, **kwargs)

    def shutdown(self, *, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


@lru_cache(maxsize=1)
def get_processing_executor() -> ThreadPoolTaskExecutor:
    return ThreadPoolTaskExecutor(max_workers=get_fact_processing_settings().max_workers)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ProcessingJobNotFoundError(LookupError):
    def __init__(self, job_id: uuid.UUID) -> None:
        super().__init__(f"Processing job not found: {job_id}")
        self.job_id = job_id


class AnalysisNotAvailableError(LookupError):
    """
    Raised when an upload job has no analysed CSV to process.
    """

    def __init__(self, *, upload_job_id: uuid.UUID, analysis_id: uuid.UUID | None = None) -> None:
        if analysis_id is None:
            message = f"No CSV analysis found for upload job {upload_job_id}."
        else:
            message = f"CSV analysis {analysis_id} does not belong to upload job {upload_job_id}."
        super().__init__(message)
        self.upload_job_id = upload_job_id
        self.analysis_id = analysis_id


class MappingsNotReadyError(ValueError):
    """
    Raised when processing is requested before the mapping set validates.
    """

    def __init__(self, *, analysis_id: uuid.UUID, validation: MappingValidationResult) -> None:
        super().__init__(f"Mappings for analysis {analysis_id} are not valid for processing.")
        self.analysis_id = analysis_id
        self.validation = validation

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": str(self),
            "analysis_id": str(self.analysis_id),
            "validation": self.validation.to_dict(),
        }


class ProcessingConflictError(RuntimeError):
    """
    Raised when a job request conflicts with the current job state.
    """

    def __init__(self, *, message: str, job_id: uuid.UUID, status: str) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": str(self),
            "job_id": str(self.job_id),
            "status": self.status,
        }


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class ProcessingJobService:
    """
    Coordinates job creation, background execution, and status persistence.
    """

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session] | None = None,
        processing_service: FactProcessingService | None = None,
        mapping_service: DimensionMappingService | None = None,
        structure_service: StructureAnalysisService | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._processing_service = processing_service or get_fact_processing_service()
        self._mapping_service = mapping_service or get_dimension_mapping_service()
        self._structure_service = structure_service or get_structure_analysis_service()

    def start_processing(
        self,
        *,
        db: Session,
        executor: ProcessingTaskExecutor,
        upload_job_id: uuid.UUID,
        analysis_id: uuid.UUID | None = None,
        batch_size: int | None = None,
        retry_of_job_id: uuid.UUID | None = None,
    ) -> ProcessingJob:
        analyses = CsvAnalysisRepository(db)
        if analysis_id is None:
            analysis = analyses.latest_for_upload_job(upload_job_id)
        else:
            analysis = analyses.get(analysis_id)
            if analysis is not None and analysis.upload_job_id != upload_job_id:
                analysis = None
        if analysis is None:
            raise AnalysisNotAvailableError(upload_job_id=upload_job_id, analysis_id=analysis_id)

        validation = self._mapping_service.validate_mappings(db=db, analysis_id=analysis.id)
        if not validation.is_valid:
            raise MappingsNotReadyError(analysis_id=analysis.id, validation=validation)

        repository = ProcessingJobRepository(db)
        self._raise_if_active(repository, analysis_id=analysis.id)

        try:
            job = repository.create_job(
                upload_job_id=upload_job_id,
                analysis_id=analysis.id,
                batch_size=max(1, batch_size or self._processing_service.settings.batch_size),
                retry_of_job_id=retry_of_job_id,
            )
            db.commit()
        except IntegrityError:
            # A concurrent start won the active-job index.
            db.rollback()
            self._raise_if_active(repository, analysis_id=analysis.id)
            raise
        except Exception:
            db.rollback()
            raise

        logger.info(
            "Processing job created id=%s upload_job_id=%s analysis_id=%s retry_of=%s",
            job.id,
            upload_job_id,
            analysis.id,
            retry_of_job_id,
        )

        try:
            executor.submit(self._run_processing_job, job.id)
        except Exception:
            repository.mark_failed(
                job_id=job.id,
                error_message="Failed to schedule processing job.",
            )
            db.commit()
            raise

        return job

    @staticmethod
    def _raise_if_active(repository: ProcessingJobRepository, *, analysis_id: uuid.UUID) -> None:
        active = repository.find_active_job(analysis_id=analysis_id)
        if active is not None:
            raise ProcessingConflictError(
                message=f"Analysis {analysis_id} already has an active processing job {active.id}.",
                job_id=active.id,
                status=active.status,
            )

    def retry(
        self,
        *,
        db: Session,
        executor: ProcessingTaskExecutor,
        job_id: uuid.UUID,
    ) -> ProcessingJob:
        """
        Start a fresh job for the same analysis as a failed one.
        """

        failed_job = self.get_status(db=db, job_id=job_id)
        if failed_job.status != ProcessingStatus.FAILED:
            raise ProcessingConflictError(
                message=f"Only FAILED jobs can be retried; job {job_id} is {failed_job.status}.",
                job_id=failed_job.id,
                status=failed_job.status,
            )
        return self.start_processing(
            db=db,
            executor=executor,
            upload_job_id=failed_job.upload_job_id,
            analysis_id=failed_job.analysis_id,
            batch_size=failed_job.batch_size,
            retry_of_job_id=failed_job.id,
        )

    def get_status(self, *, db: Session, job_id: uuid.UUID) -> ProcessingJob:
        job = ProcessingJobRepository(db).get_job(job_id)
        if job is None:
            raise ProcessingJobNotFoundError(job_id)
        return job

    def get_errors(
        self,
        *,
        db: Session,
        job_id: uuid.UUID,
        severity: str | None = None,
        limit: int = 1000,
    ) -> list[ProcessingError]:
        self.get_status(db=db, job_id=job_id)
        return ProcessingJobRepository(db).list_errors(job_id=job_id, severity=severity, limit=limit)

    def list_jobs(
        self,
        *,
        db: Session,
        limit: int = 100,
        upload_job_id: uuid.UUID | None = None,
        status: str | None = None,
    ) -> list[ProcessingJob]:
        return ProcessingJobRepository(db).list_jobs(
            limit=limit,
            upload_job_id=upload_job_id,
            status=status,
        )

    def get_quality_report(self, *, db: Session, job_id: uuid.UUID) -> dict[str, Any] | None:
        job = self.get_status(db=db, job_id=job_id)
        return (job.result_payload or {}).get("data_quality")

    def list_indicator_values(
        self,
        *,
        db: Session,
        indicator_id: uuid.UUID,
        include_aggregated: bool = True,
        limit: int = 1000,
    ) -> list[FactIndicatorValue]:
        return FactRepository(db).list_for_indicator(
            indicator_id,
            include_aggregated=include_aggregated,
            limit=limit,
        )

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    def _run_processing_job(self, job_id: uuid.UUID) -> None:
        with self._session_factory() as db:
            repository = ProcessingJobRepository(db)
            ledger = self._processing_service.new_ledger(job_id)
            try:
                running_job = repository.mark_running(job_id=job_id)
                if running_job is None:
                    raise RuntimeError(f"Processing job not found: {job_id}")
                db.commit()

                summary = self._processing_service.process(db=db, job=running_job, ledger=ledger)
                superseded = FactRepository(db).delete_superseded(
                    analysis_id=running_job.analysis_id,
                    keep_job_id=running_job.id,
                )
                completed_job = repository.mark_completed(
                    job_id=job_id,
                    result_payload={**summary.to_payload(), "superseded_records": superseded},
                )
                if completed_job is None:
                    raise RuntimeError(f"Processing job not found: {job_id}")
                db.commit()
                ledger.confirm()
                logger.info(
                    "Processing job completed id=%s records=%d errors=%d quality=%.3f superseded=%d",
                    job_id,
                    summary.records_persisted,
                    ledger.total,
                    summary.quality.quality_score,
                    superseded,
                )
            except Exception as exc:
                self._mark_job_failed(db=db, job_id=job_id, exc=exc, ledger=ledger)

    def _mark_job_failed(
        self,
        *,
        db: Session,
        job_id: uuid.UUID,
        exc: Exception,
        ledger: ErrorLedger,
    ) -> None:
        repository = ProcessingJobRepository(db)
        error_message = f"{type(exc).__name__}: {exc}"
        logger.exception("Processing job failed id=%s error=%s", job_id, error_message)
        try:
            db.rollback()
            ledger.restore()
            ledger.flush(db)
            removed = FactRepository(db).delete_for_job(job_id)
            failed_job = repository.mark_failed(
                job_id=job_id,
                error_message=error_message[:2000],
                result_payload={"error_count": ledger.total, "removed_partial_records": removed},
            )
            if failed_job is None:
                logger.error("Unable to mark processing job as failed because it was not found id=%s", job_id)
            else:
                failed_job.error_count = ledger.total
            db.commit()
            ledger.confirm()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed processing job state id=%s", job_id)


@lru_cache(maxsize=1)
def get_processing_job_service() -> ProcessingJobService:
    return ProcessingJobService()
