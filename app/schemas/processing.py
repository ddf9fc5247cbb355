"""
Schemas for processing job trigger, status and result endpoints.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class StartProcessingRequest(BaseModel):
    analysis_id: UUID | None = None
    batch_size: int | None = Field(default=None, ge=1, le=100000)


class ProcessingJobAcceptedResponse(BaseModel):
    job_id: UUID
    upload_job_id: UUID
    analysis_id: UUID
    status: str
    retry_of_job_id: UUID | None = None
    created_at: datetime


class ProcessingJobStatusResponse(BaseModel):
    job_id: UUID
    upload_job_id: UUID
    analysis_id: UUID
    status: str
    total_records: int
    records_processed: int
    error_count: int
    progress_percentage: float
    batch_size: int
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error_message: str | None = None
    retry_of_job_id: UUID | None = None
    result_payload: dict[str, Any] | None = None


class ProcessingJobListResponse(BaseModel):
    jobs: list[ProcessingJobStatusResponse] = Field(default_factory=list)


class ProcessingErrorResponse(BaseModel):
    row_number: int | None = None
    column_index: int | None = None
    error_type: str
    error_message: str
    raw_value: str | None = None
    severity: str
    is_resolved: bool


class ProcessingErrorListResponse(BaseModel):
    job_id: UUID
    error_count: int
    errors: list[ProcessingErrorResponse] = Field(default_factory=list)


class QualityReportResponse(BaseModel):
    job_id: UUID
    status: str
    report: dict[str, Any] | None = None


class IndicatorValueResponse(BaseModel):
    fact_id: UUID
    value: Decimal
    time_value: str | None = None
    location_value: str | None = None
    generics: dict[str, str] = Field(default_factory=dict)
    unit_label: str | None = None
    source_file: str
    source_row_number: int | None = None
    confidence_score: float
    is_aggregated: bool
    processing_job_id: UUID


class IndicatorValueListResponse(BaseModel):
    indicator_id: UUID
    values: list[IndicatorValueResponse] = Field(default_factory=list)
