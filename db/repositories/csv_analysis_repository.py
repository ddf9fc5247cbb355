"""
Repository for persisted CSV structure analyses and their column profiles.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.csv_analysis import CsvAnalysis, CsvColumnProfile
from db.repositories.storage import StoredFileMetadata
from structure.types import ColumnProfile, StructureAnalysis


class CsvAnalysisRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, analysis_id: uuid.UUID) -> CsvAnalysis | None:
        return self._session.get(CsvAnalysis, analysis_id)

    def get_for_file(self, *, upload_job_id: uuid.UUID, file_name: str) -> CsvAnalysis | None:
        stmt = select(CsvAnalysis).where(
            CsvAnalysis.upload_job_id == upload_job_id,
            CsvAnalysis.file_name == file_name,
        )
        return self._session.execute(stmt).scalars().first()

    def list_for_upload_job(self, upload_job_id: uuid.UUID) -> list[CsvAnalysis]:
        stmt: Select[tuple[CsvAnalysis]] = (
            select(CsvAnalysis)
            .where(CsvAnalysis.upload_job_id == upload_job_id)
            .order_by(CsvAnalysis.created_at.desc())
        )
        return list(self._session.scalars(stmt).all())

    def latest_for_upload_job(self, upload_job_id: uuid.UUID) -> CsvAnalysis | None:
        analyses = self.list_for_upload_job(upload_job_id)
        return analyses[0] if analyses else None

    def save_analysis(
        self,
        *,
        upload_job_id: uuid.UUID,
        stored_file: StoredFileMetadata,
        analysis: StructureAnalysis,
        existing: CsvAnalysis | None = None,
    ) -> CsvAnalysis:
        """
        Insert a new analysis or overwrite `existing` in place, replacing
        its column profiles.
        """

        record = existing
        if record is None:
            record = CsvAnalysis(upload_job_id=upload_job_id, file_name=stored_file.file_name)
            self._session.add(record)

        record.storage_path = stored_file.storage_path
        record.file_checksum = stored_file.checksum
        record.file_size_bytes = stored_file.file_size_bytes
        record.row_count = analysis.row_count
        record.column_count = analysis.column_count
        record.headers = list(analysis.headers)
        record.delimiter = analysis.delimiter
        record.encoding = analysis.encoding
        record.has_header = analysis.has_header
        record.detected_orientation = None
        record.metadata_json = {"mime_type": stored_file.mime_type}

        record.columns.clear()
        self._session.flush()
        record.columns.extend(self._build_profiles(analysis.columns))
        self._session.flush()
        return record

    @staticmethod
    def _build_profiles(columns: Sequence[ColumnProfile]) -> list[CsvColumnProfile]:
        return [
            CsvColumnProfile(
                column_index=column.index,
                header=column.header,
                inferred_data_type=column.inferred_data_type,
                null_count=column.null_count,
                empty_count=column.empty_count,
                distinct_count=column.distinct_count,
                sample_values=list(column.sample_values),
            )
            for column in columns
        ]


def to_column_profiles(record: CsvAnalysis) -> list[ColumnProfile]:
    return [
        ColumnProfile(
            index=column.column_index,
            header=column.header,
            inferred_data_type=column.inferred_data_type,
            null_count=column.null_count,
            empty_count=column.empty_count,
            distinct_count=column.distinct_count,
            sample_values=tuple(column.sample_values or ()),
        )
        for column in record.columns
    ]
