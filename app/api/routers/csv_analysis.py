"""
app/api/routers/csv_analysis.py

CSV structure analysis HTTP endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload
from app.schemas.csv_analysis import (
    ColumnProfileResponse,
    CsvAnalysisListResponse,
    CsvAnalysisResponse,
    CsvPreviewResponse,
)
from app.services.structure_analysis_service import (
    AnalysisNotFoundError,
    StructureAnalysisService,
    get_structure_analysis_service,
)
from db.models.csv_analysis import CsvAnalysis
from db.repositories.errors import FileStorageError
from db.session import get_db
from structure import StructuralError, StructureFileNotFoundError

router = APIRouter(tags=["csv-analysis"])


@router.post(
    "/uploads/{upload_job_id}/csv-analysis",
    response_model=CsvAnalysisResponse,
)
def analyze_csv_structure(
    upload_job_id: UUID,
    file: UploadFile = Depends(get_csv_upload),
    db: Session = Depends(get_db),
    structure_service: StructureAnalysisService = Depends(get_structure_analysis_service),
) -> CsvAnalysisResponse:
    """
    Store one CSV file for an upload job and analyse its structure.

    Re-posting identical bytes returns the cached analysis.
    """

    try:
        content = file.file.read()
        record, reused = structure_service.analyze_structure(
            db=db,
            upload_job_id=upload_job_id,
            file_name=file.filename or "upload.csv",
            content=content,
            content_type=file.content_type,
        )
    except StructuralError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except FileStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to store uploaded CSV file.",
        ) from exc
    finally:
        file.file.close()

    return _to_analysis_response(record, reused=reused)


@router.get(
    "/uploads/{upload_job_id}/csv-analysis",
    response_model=CsvAnalysisListResponse,
)
def list_csv_analyses(
    upload_job_id: UUID,
    db: Session = Depends(get_db),
    structure_service: StructureAnalysisService = Depends(get_structure_analysis_service),
) -> CsvAnalysisListResponse:
    records = structure_service.list_analyses(db=db, upload_job_id=upload_job_id)
    return CsvAnalysisListResponse(analyses=[_to_analysis_response(record) for record in records])


@router.get("/csv-analysis/{analysis_id}", response_model=CsvAnalysisResponse)
def get_csv_analysis(
    analysis_id: UUID,
    db: Session = Depends(get_db),
    structure_service: StructureAnalysisService = Depends(get_structure_analysis_service),
) -> CsvAnalysisResponse:
    try:
        record = structure_service.get_analysis(db=db, analysis_id=analysis_id)
    except AnalysisNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _to_analysis_response(record)


@router.get("/csv-analysis/{analysis_id}/preview", response_model=CsvPreviewResponse)
def preview_csv(
    analysis_id: UUID,
    limit: int | None = Query(default=None, ge=1, le=1000, description="Max data rows returned"),
    db: Session = Depends(get_db),
    structure_service: StructureAnalysisService = Depends(get_structure_analysis_service),
) -> CsvPreviewResponse:
    try:
        preview = structure_service.preview(db=db, analysis_id=analysis_id, limit=limit)
    except AnalysisNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StructureFileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.to_dict()) from exc
    except StructuralError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc

    return CsvPreviewResponse(
        analysis_id=analysis_id,
        headers=list(preview.headers),
        rows=[list(row) for row in preview.rows],
        total_rows=preview.total_rows,
    )


def _to_analysis_response(record: CsvAnalysis, *, reused: bool = False) -> CsvAnalysisResponse:
    return CsvAnalysisResponse(
        analysis_id=record.id,
        upload_job_id=record.upload_job_id,
        file_name=record.file_name,
        file_checksum=record.file_checksum,
        file_size_bytes=record.file_size_bytes,
        row_count=record.row_count,
        column_count=record.column_count,
        headers=list(record.headers or []),
        delimiter=record.delimiter,
        encoding=record.encoding,
        has_header=record.has_header,
        detected_orientation=record.detected_orientation,
        columns=[
            ColumnProfileResponse(
                index=column.column_index,
                header=column.header,
                inferred_data_type=column.inferred_data_type,
                null_count=column.null_count,
                empty_count=column.empty_count,
                distinct_count=column.distinct_count,
                sample_values=list(column.sample_values or []),
            )
            for column in record.columns
        ],
        reused=reused,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
