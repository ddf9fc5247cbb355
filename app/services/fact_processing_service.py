"""
app/services/fact_processing_service.py

Fact transformation pipeline for one processing job.

Stages:

    1. load the stored CSV with its recorded structure and mappings
    2. transform rows into fact drafts (progress 0-50%)
    3. de-duplicate and score data quality
    4. optionally add per-indicator aggregates
    5. resolve dimensions and persist facts in batches (progress 50-100%)

Row-level problems go to the job's error ledger and never stop the run.
Anything raised out of `process` is an infrastructure failure and is
handled by the job controller.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from sqlalchemy.orm import Session

from app.config import (
    DimensionMappingSettings,
    FactProcessingSettings,
    get_dimension_mapping_settings,
    get_fact_processing_settings,
)
from app.repositories.fact_repository import FactRepository
from app.services.dimension_mapping_service import (
    DimensionMappingService,
    get_dimension_mapping_service,
)
from app.services.structure_analysis_service import (
    StructureAnalysisService,
    get_structure_analysis_service,
)
from db.models.csv_analysis import CsvAnalysis
from db.models.fact_indicator_value import FactIndicatorValue
from db.models.processing_job import ProcessingJob
from db.repositories.dimension_repository import DimensionRepository
from db.repositories.processing_job_repository import ProcessingJobRepository
from transform import (
    DataQualityReport,
    FactDraft,
    FactTransformer,
    RowIssue,
    Severity,
    aggregate_by_indicator,
    resolve_duplicates,
    validate_data_quality,
)

logger = logging.getLogger(__name__)

TRANSFORM_PHASE_SHARE = 50.0


# ---------------------------------------------------------------------------
# Run-scoped helpers
# ---------------------------------------------------------------------------


class ErrorLedger:
    """
    Collects row issues for one job and writes them out on flush.

    Every issue counts towards `total`; only the first `max_stored` are
    persisted. Flushed issues stay in flight until the surrounding commit
    is confirmed, so a rollback can put them back for a later flush.
    """

    def __init__(self, *, job_id: uuid.UUID, max_stored: int, log_errors: bool = True) -> None:
        self._job_id = job_id
        self._max_stored = max_stored
        self._log_errors = log_errors
        self._pending: list[RowIssue] = []
        self._in_flight: list[RowIssue] = []
        self._stored = 0
        self.total = 0
        self.warnings = 0

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def record(self, issue: RowIssue) -> None:
        self.total += 1
        if issue.severity == Severity.WARNING:
            self.warnings += 1
        if self._log_errors and self.total <= self._max_stored:
            logger.warning(
                "Row issue job_id=%s row=%s type=%s message=%s",
                self._job_id,
                issue.row_number,
                issue.error_type,
                issue.message,
            )
        if self._stored + len(self._in_flight) + len(self._pending) < self._max_stored:
            self._pending.append(issue)

    def flush(self, db: Session) -> int:
        if not self._pending:
            return 0
        written = ProcessingJobRepository(db).add_errors(job_id=self._job_id, issues=self._pending)
        self._in_flight.extend(self._pending)
        self._pending = []
        return written

    def confirm(self) -> None:
        self._stored += len(self._in_flight)
        self._in_flight = []

    def restore(self) -> None:
        self._pending = [*self._in_flight, *self._pending]
        self._in_flight = []


class ProgressTracker:
    """
    Single owner of a job's progress; values never decrease.
    """

    def __init__(self) -> None:
        self._value = 0.0

    @property
    def value(self) -> float:
        return self._value

    def advance(self, value: float) -> float:
        self._value = max(self._value, min(100.0, round(value, 2)))
        return self._value


@dataclass(frozen=True)
class ProcessingSummary:
    orientation: str
    total_rows: int
    records_generated: int
    duplicates_removed: int
    records_persisted: int
    aggregated_records: int
    error_count: int
    warning_count: int
    quality: DataQualityReport

    def to_payload(self) -> dict[str, Any]:
        return {
            "orientation": self.orientation,
            "total_rows": self.total_rows,
            "records_generated": self.records_generated,
            "duplicates_removed": self.duplicates_removed,
            "records_persisted": self.records_persisted,
            "aggregated_records": self.aggregated_records,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "data_quality": self.quality.to_dict(),
        }


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class FactProcessingService:
    def __init__(
        self,
        *,
        settings: FactProcessingSettings | None = None,
        dimension_settings: DimensionMappingSettings | None = None,
        structure_service: StructureAnalysisService | None = None,
        mapping_service: DimensionMappingService | None = None,
        transformer: FactTransformer | None = None,
    ) -> None:
        self._settings = settings or get_fact_processing_settings()
        self._dimension_settings = dimension_settings or get_dimension_mapping_settings()
        self._structure_service = structure_service or get_structure_analysis_service()
        self._mapping_service = mapping_service or get_dimension_mapping_service()
        self._transformer = transformer or FactTransformer()

    @property
    def settings(self) -> FactProcessingSettings:
        return self._settings

    def new_ledger(self, job_id: uuid.UUID) -> ErrorLedger:
        return ErrorLedger(
            job_id=job_id,
            max_stored=self._settings.max_errors,
            log_errors=self._settings.log_row_errors,
        )

    def process(self, *, db: Session, job: ProcessingJob, ledger: ErrorLedger) -> ProcessingSummary:
        jobs = ProcessingJobRepository(db)
        tracker = ProgressTracker()

        analysis = self._structure_service.get_analysis(db=db, analysis_id=job.analysis_id)
        table = self._structure_service.load_table(analysis)
        mappings = self._mapping_service.load_mappings(db=db, analysis_id=analysis.id)
        orientation = self._mapping_service.engine.detect_orientation(mappings, table)
        analysis.detected_orientation = orientation

        total_rows = len(table.data_rows)
        jobs.update_progress(job=job, progress_percentage=tracker.value, total_records=total_rows)
        db.commit()
        logger.info(
            "Processing job_id=%s analysis_id=%s rows=%d mappings=%d orientation=%s",
            job.id,
            analysis.id,
            total_rows,
            len(mappings),
            orientation,
        )

        def on_progress(done: int, total: int) -> None:
            share = (done / total) * TRANSFORM_PHASE_SHARE if total else TRANSFORM_PHASE_SHARE
            jobs.update_progress(job=job, progress_percentage=tracker.advance(share))
            ledger.flush(db)
            job.error_count = ledger.total
            db.commit()
            ledger.confirm()

        result = self._transformer.transform(
            table,
            mappings,
            orientation,
            source_file=analysis.file_name,
            on_progress=on_progress,
            on_issue=ledger.record,
        )

        records = resolve_duplicates(result.records)
        quality = validate_data_quality(records)
        valid_records = [record for record in records if record.value is not None and record.indicator_name]

        aggregates: list[FactDraft] = []
        if self._settings.aggregation_enabled and quality.quality_score > self._settings.aggregation_quality_threshold:
            aggregates = aggregate_by_indicator(valid_records, run_key=str(job.id))

        persisted = self._persist(
            db=db,
            job=job,
            analysis=analysis,
            drafts=[*valid_records, *aggregates],
            ledger=ledger,
            tracker=tracker,
        )

        ledger.flush(db)
        job.error_count = ledger.total

        return ProcessingSummary(
            orientation=orientation,
            total_rows=total_rows,
            records_generated=len(result.records),
            duplicates_removed=len(result.records) - len(records),
            records_persisted=persisted,
            aggregated_records=len(aggregates),
            error_count=ledger.total - ledger.warnings,
            warning_count=ledger.warnings,
            quality=quality,
        )

    def _persist(
        self,
        *,
        db: Session,
        job: ProcessingJob,
        analysis: CsvAnalysis,
        drafts: list[FactDraft],
        ledger: ErrorLedger,
        tracker: ProgressTracker,
    ) -> int:
        jobs = ProcessingJobRepository(db)
        facts = FactRepository(db)
        dimensions = DimensionRepository(
            db,
            country_names=frozenset(self._dimension_settings.location_gazetteer),
        )
        batch_size = max(1, job.batch_size or self._settings.batch_size)
        total = len(drafts)
        persisted = 0

        for start in range(0, total, batch_size):
            chunk = drafts[start : start + batch_size]
            rows: list[FactIndicatorValue] = []
            links: list[tuple[uuid.UUID, uuid.UUID]] = []
            for draft in chunk:
                fact = self._build_fact(draft, dimensions=dimensions, analysis=analysis, job=job)
                rows.append(fact)
                generic_ids = dict.fromkeys(
                    dimensions.generic_id(name, value) for name, value in draft.generics
                )
                links.extend((fact.id, generic_id) for generic_id in generic_ids)

            persisted += facts.add_batch(rows, generic_links=links)
            ledger.flush(db)
            job.error_count = ledger.total
            jobs.update_progress(
                job=job,
                progress_percentage=tracker.advance(
                    TRANSFORM_PHASE_SHARE + (persisted / total) * (100.0 - TRANSFORM_PHASE_SHARE)
                ),
                records_processed=persisted,
            )
            db.commit()
            ledger.confirm()
            logger.info(
                "Persisted batch job_id=%s records=%d/%d progress=%.2f",
                job.id,
                persisted,
                total,
                tracker.value,
            )

        return persisted

    @staticmethod
    def _build_fact(
        draft: FactDraft,
        *,
        dimensions: DimensionRepository,
        analysis: CsvAnalysis,
        job: ProcessingJob,
    ) -> FactIndicatorValue:
        return FactIndicatorValue(
            id=uuid.uuid4(),
            indicator_id=dimensions.indicator_id(draft.indicator_name),
            value=draft.value,
            time_id=dimensions.time_id(draft.time_value) if draft.time_value else None,
            location_id=dimensions.location_id(draft.location_value) if draft.location_value else None,
            unit_label=draft.unit_label,
            source_file=draft.source_file,
            source_row_number=draft.source_row_number,
            source_row_hash=draft.source_row_hash,
            confidence_score=draft.confidence_score,
            is_aggregated=draft.is_aggregated,
            analysis_id=analysis.id,
            processing_job_id=job.id,
        )


@lru_cache(maxsize=1)
def get_fact_processing_service() -> FactProcessingService:
    return FactProcessingService()
