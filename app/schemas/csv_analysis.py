"""
Schemas for CSV structure analysis endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ColumnProfileResponse(BaseModel):
    index: int
    header: str
    inferred_data_type: str
    null_count: int
    empty_count: int
    distinct_count: int
    sample_values: list[str] = Field(default_factory=list)


class CsvAnalysisResponse(BaseModel):
    analysis_id: UUID
    upload_job_id: UUID
    file_name: str
    file_checksum: str
    file_size_bytes: int
    row_count: int
    column_count: int
    headers: list[str] = Field(default_factory=list)
    delimiter: str
    encoding: str
    has_header: bool
    detected_orientation: str | None = None
    columns: list[ColumnProfileResponse] = Field(default_factory=list)
    reused: bool = False
    created_at: datetime
    updated_at: datetime


class CsvAnalysisListResponse(BaseModel):
    analyses: list[CsvAnalysisResponse] = Field(default_factory=list)


class CsvPreviewResponse(BaseModel):
    analysis_id: UUID
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)
    total_rows: int
