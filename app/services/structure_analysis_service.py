"""
app/services/structure_analysis_service.py

Stores uploaded CSV files and persists their structural fingerprint.

Analysis is idempotent per (upload job, file name): when the stored
checksum matches the incoming bytes the cached analysis is returned
untouched. Changed bytes re-run analysis in place and drop mappings that
were made against the old layout.
"""

from __future__ import annotations

import logging
import uuid
from functools import lru_cache
from pathlib import Path

from sqlalchemy.orm import Session

from app.config import StructureAnalysisSettings, get_structure_analysis_settings
from app.repositories.column_mapping_repository import ColumnMappingRepository
from db.models.csv_analysis import CsvAnalysis
from db.repositories.csv_analysis_repository import CsvAnalysisRepository
from db.repositories.storage import FileStorageBackend, LocalFileStorage
from structure import StructuralError, StructureAnalyzer
from structure.types import RawTable, TablePreview

logger = logging.getLogger(__name__)


class AnalysisNotFoundError(LookupError):
    """
    Raised when an analysis id does not exist.
    """

    def __init__(self, analysis_id: uuid.UUID) -> None:
        super().__init__(f"CSV analysis not found: {analysis_id}")
        self.analysis_id = analysis_id


class StructureAnalysisService:
    """
    Persistence-aware wrapper around StructureAnalyzer.
    """

    def __init__(
        self,
        *,
        settings: StructureAnalysisSettings | None = None,
        storage_backend: FileStorageBackend | None = None,
        analyzer: StructureAnalyzer | None = None,
    ) -> None:
        self._settings = settings or get_structure_analysis_settings()
        self._storage = storage_backend or LocalFileStorage(self._settings.upload_storage_dir)
        self._analyzer = analyzer or StructureAnalyzer(
            encoding_probe_lines=self._settings.encoding_probe_lines,
            profile_sample_rows=self._settings.profile_sample_rows,
        )

    @property
    def settings(self) -> StructureAnalysisSettings:
        return self._settings

    def analyze_structure(
        self,
        *,
        db: Session,
        upload_job_id: uuid.UUID,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> tuple[CsvAnalysis, bool]:
        """
        Return (analysis, reused). `reused` is True when the cached analysis
        matched the incoming bytes.
        """

        repository = CsvAnalysisRepository(db)
        stored_file = self._storage.save(
            upload_job_id=upload_job_id,
            file_name=file_name,
            content=content,
            content_type=content_type,
        )

        existing = repository.get_for_file(upload_job_id=upload_job_id, file_name=stored_file.file_name)
        if existing is not None and existing.file_checksum == stored_file.checksum:
            logger.info(
                "Reusing cached CSV analysis id=%s upload_job_id=%s file=%s",
                existing.id,
                upload_job_id,
                stored_file.file_name,
            )
            return existing, True

        try:
            analysis = self._analyzer.analyze(self._storage.resolve(stored_file.storage_path))
        except StructuralError:
            if existing is None or existing.storage_path != stored_file.storage_path:
                self._storage.delete(storage_path=stored_file.storage_path)
            raise

        previous_path = existing.storage_path if existing is not None else None
        try:
            if existing is not None:
                dropped = ColumnMappingRepository(db).delete_for_analysis(existing.id)
                logger.info(
                    "CSV content changed; re-analysing id=%s dropped_mappings=%d",
                    existing.id,
                    dropped,
                )
            record = repository.save_analysis(
                upload_job_id=upload_job_id,
                stored_file=stored_file,
                analysis=analysis,
                existing=existing,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        if previous_path and previous_path != record.storage_path:
            self._storage.delete(storage_path=previous_path)
        db.refresh(record)
        return record, False

    def get_analysis(self, *, db: Session, analysis_id: uuid.UUID) -> CsvAnalysis:
        record = CsvAnalysisRepository(db).get(analysis_id)
        if record is None:
            raise AnalysisNotFoundError(analysis_id)
        return record

    def list_analyses(self, *, db: Session, upload_job_id: uuid.UUID) -> list[CsvAnalysis]:
        return CsvAnalysisRepository(db).list_for_upload_job(upload_job_id)

    def resolve_path(self, record: CsvAnalysis) -> Path:
        return self._storage.resolve(record.storage_path)

    def load_table(self, record: CsvAnalysis) -> RawTable:
        """
        Re-parse the stored file with the recorded encoding, delimiter and
        header flag.
        """

        return self._analyzer.load_table(
            self.resolve_path(record),
            encoding=record.encoding,
            delimiter=record.delimiter,
            has_header=record.has_header,
        )

    def preview(self, *, db: Session, analysis_id: uuid.UUID, limit: int | None = None) -> TablePreview:
        record = self.get_analysis(db=db, analysis_id=analysis_id)
        return self._analyzer.preview(
            self.resolve_path(record),
            limit=limit or self._settings.preview_row_limit,
            encoding=record.encoding,
            delimiter=record.delimiter,
            has_header=record.has_header,
        )


@lru_cache(maxsize=1)
def get_structure_analysis_service() -> StructureAnalysisService:
    return StructureAnalysisService()
