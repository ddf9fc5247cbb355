"""
app/api/routers/processing.py

Processing job trigger, status and result endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.schemas.processing import (
    IndicatorValueListResponse,
    IndicatorValueResponse,
    ProcessingErrorListResponse,
    ProcessingErrorResponse,
    ProcessingJobAcceptedResponse,
    ProcessingJobListResponse,
    ProcessingJobStatusResponse,
    QualityReportResponse,
    StartProcessingRequest,
)
from app.services.processing_job_service import (
    AnalysisNotAvailableError,
    MappingsNotReadyError,
    ProcessingConflictError,
    ProcessingJobNotFoundError,
    ProcessingJobService,
    ThreadPoolTaskExecutor,
    get_processing_executor,
    get_processing_job_service,
)
from db.models.fact_indicator_value import FactIndicatorValue
from db.models.processing_job import ProcessingJob
from db.session import get_db

router = APIRouter(tags=["processing"])


@router.post(
    "/uploads/{upload_job_id}/processing",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ProcessingJobAcceptedResponse,
)
def start_processing(
    upload_job_id: UUID,
    payload: StartProcessingRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    controller: ProcessingJobService = Depends(get_processing_job_service),
    executor: ThreadPoolTaskExecutor = Depends(get_processing_executor),
) -> ProcessingJobAcceptedResponse:
    """
    Queue fact processing for the upload job's analysed CSV.

    Returns immediately; poll the job status endpoint for progress.
    """

    request = payload or StartProcessingRequest()
    try:
        job = controller.start_processing(
            db=db,
            executor=executor,
            upload_job_id=upload_job_id,
            analysis_id=request.analysis_id,
            batch_size=request.batch_size,
        )
    except AnalysisNotAvailableError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except MappingsNotReadyError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.to_dict(),
        ) from exc
    except ProcessingConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.to_dict()) from exc

    return _to_accepted_response(job)


@router.get("/processing-jobs", response_model=ProcessingJobListResponse)
def list_processing_jobs(
    upload_job_id: UUID | None = Query(default=None, description="Optional upload job filter"),
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=100, ge=1, le=500, description="Max jobs returned"),
    db: Session = Depends(get_db),
    controller: ProcessingJobService = Depends(get_processing_job_service),
) -> ProcessingJobListResponse:
    jobs = controller.list_jobs(db=db, limit=limit, upload_job_id=upload_job_id, status=status_filter)
    return ProcessingJobListResponse(jobs=[_to_status_response(job) for job in jobs])


@router.get("/processing-jobs/{job_id}", response_model=ProcessingJobStatusResponse)
def get_processing_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    controller: ProcessingJobService = Depends(get_processing_job_service),
) -> ProcessingJobStatusResponse:
    try:
        job = controller.get_status(db=db, job_id=job_id)
    except ProcessingJobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _to_status_response(job)


@router.get("/processing-jobs/{job_id}/errors", response_model=ProcessingErrorListResponse)
def get_processing_job_errors(
    job_id: UUID,
    severity: str | None = Query(default=None, description="ERROR or WARNING"),
    limit: int = Query(default=1000, ge=1, le=10000, description="Max errors returned"),
    db: Session = Depends(get_db),
    controller: ProcessingJobService = Depends(get_processing_job_service),
) -> ProcessingErrorListResponse:
    try:
        job = controller.get_status(db=db, job_id=job_id)
        errors = controller.get_errors(db=db, job_id=job_id, severity=severity, limit=limit)
    except ProcessingJobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return ProcessingErrorListResponse(
        job_id=job_id,
        error_count=job.error_count,
        errors=[
            ProcessingErrorResponse(
                row_number=error.row_number,
                column_index=error.column_index,
                error_type=error.error_type,
                error_message=error.error_message,
                raw_value=error.raw_value,
                severity=error.severity,
                is_resolved=error.is_resolved,
            )
            for error in errors
        ],
    )


@router.post(
    "/processing-jobs/{job_id}/retry",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ProcessingJobAcceptedResponse,
)
def retry_processing_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    controller: ProcessingJobService = Depends(get_processing_job_service),
    executor: ThreadPoolTaskExecutor = Depends(get_processing_executor),
) -> ProcessingJobAcceptedResponse:
    try:
        job = controller.retry(db=db, executor=executor, job_id=job_id)
    except (ProcessingJobNotFoundError, AnalysisNotAvailableError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except MappingsNotReadyError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.to_dict(),
        ) from exc
    except ProcessingConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.to_dict()) from exc

    return _to_accepted_response(job)


@router.get("/processing-jobs/{job_id}/quality-report", response_model=QualityReportResponse)
def get_quality_report(
    job_id: UUID,
    db: Session = Depends(get_db),
    controller: ProcessingJobService = Depends(get_processing_job_service),
) -> QualityReportResponse:
    try:
        job = controller.get_status(db=db, job_id=job_id)
        report = controller.get_quality_report(db=db, job_id=job_id)
    except ProcessingJobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return QualityReportResponse(job_id=job_id, status=job.status, report=report)


@router.get("/indicators/{indicator_id}/values", response_model=IndicatorValueListResponse)
def list_indicator_values(
    indicator_id: UUID,
    include_aggregated: bool = Query(default=True, description="Include per-indicator aggregate records"),
    limit: int = Query(default=1000, ge=1, le=10000, description="Max values returned"),
    db: Session = Depends(get_db),
    controller: ProcessingJobService = Depends(get_processing_job_service),
) -> IndicatorValueListResponse:
    facts = controller.list_indicator_values(
        db=db,
        indicator_id=indicator_id,
        include_aggregated=include_aggregated,
        limit=limit,
    )
    return IndicatorValueListResponse(
        indicator_id=indicator_id,
        values=[_to_value_response(fact) for fact in facts],
    )


def _to_accepted_response(job: ProcessingJob) -> ProcessingJobAcceptedResponse:
    return ProcessingJobAcceptedResponse(
        job_id=job.id,
        upload_job_id=job.upload_job_id,
        analysis_id=job.analysis_id,
        status=job.status,
        retry_of_job_id=job.retry_of_job_id,
        created_at=job.created_at,
    )


def _to_status_response(job: ProcessingJob) -> ProcessingJobStatusResponse:
    return ProcessingJobStatusResponse(
        job_id=job.id,
        upload_job_id=job.upload_job_id,
        analysis_id=job.analysis_id,
        status=job.status,
        total_records=job.total_records,
        records_processed=job.records_processed,
        error_count=job.error_count,
        progress_percentage=job.progress_percentage,
        batch_size=job.batch_size,
        created_at=job.created_at,
        updated_at=job.updated_at,
        started_at=job.started_at,
        finished_at=job.finished_at,
        error_message=job.error_message,
        retry_of_job_id=job.retry_of_job_id,
        result_payload=job.result_payload,
    )


def _to_value_response(fact: FactIndicatorValue) -> IndicatorValueResponse:
    return IndicatorValueResponse(
        fact_id=fact.id,
        value=fact.value,
        time_value=fact.time.value if fact.time is not None else None,
        location_value=fact.location.value if fact.location is not None else None,
        generics={generic.dimension_name: generic.value for generic in fact.generics},
        unit_label=fact.unit_label,
        source_file=fact.source_file,
        source_row_number=fact.source_row_number,
        confidence_score=fact.confidence_score,
        is_aggregated=fact.is_aggregated,
        processing_job_id=fact.processing_job_id,
    )
