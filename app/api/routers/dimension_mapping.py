"""
app/api/routers/dimension_mapping.py

Dimension mapping suggestion, override and validation endpoints.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.repositories.column_mapping_repository import to_dimension_mapping
from app.schemas.dimension_mapping import (
    AxisSummaryResponse,
    DimensionMappingResponse,
    DimensionTypeListResponse,
    DimensionTypeResponse,
    MappingListResponse,
    MappingSuggestionsResponse,
    MappingValidationResponse,
    OrientationResponse,
    SaveMappingRequest,
)
from app.services.dimension_mapping_service import (
    DimensionMappingService,
    MappingRequestError,
    get_dimension_mapping_service,
)
from app.services.structure_analysis_service import AnalysisNotFoundError
from db.models.column_mapping import ColumnMapping
from db.session import get_db
from dimensions import DIMENSION_DESCRIPTIONS, DimensionMapping, DimensionType
from structure import StructuralError, StructureFileNotFoundError

router = APIRouter(tags=["dimension-mapping"])

T = TypeVar("T")


@router.get("/dimension-types", response_model=DimensionTypeListResponse)
def list_dimension_types() -> DimensionTypeListResponse:
    return DimensionTypeListResponse(
        dimension_types=[
            DimensionTypeResponse(
                dimension_type=dimension_type,
                description=DIMENSION_DESCRIPTIONS[dimension_type],
                required=dimension_type in DimensionType.REQUIRED,
            )
            for dimension_type in DimensionType.ALL
        ]
    )


@router.get(
    "/csv-analysis/{analysis_id}/mapping-suggestions",
    response_model=MappingSuggestionsResponse,
)
def suggest_mappings(
    analysis_id: UUID,
    db: Session = Depends(get_db),
    mapping_service: DimensionMappingService = Depends(get_dimension_mapping_service),
) -> MappingSuggestionsResponse:
    """
    Score every column against the registered detectors without saving.
    """

    suggestions = _call(lambda: mapping_service.suggest_mappings(db=db, analysis_id=analysis_id))
    return MappingSuggestionsResponse(
        analysis_id=analysis_id,
        suggestions=[_to_mapping_response(mapping) for mapping in suggestions],
    )


@router.post(
    "/csv-analysis/{analysis_id}/mapping-suggestions/apply",
    response_model=MappingListResponse,
)
def apply_mapping_suggestions(
    analysis_id: UUID,
    db: Session = Depends(get_db),
    mapping_service: DimensionMappingService = Depends(get_dimension_mapping_service),
) -> MappingListResponse:
    records = _call(lambda: mapping_service.apply_suggestions(db=db, analysis_id=analysis_id))
    return MappingListResponse(
        analysis_id=analysis_id,
        mappings=[_to_mapping_response(to_dimension_mapping(record)) for record in records],
    )


@router.put(
    "/csv-analysis/{analysis_id}/mappings/{column_index}",
    response_model=DimensionMappingResponse,
)
def save_mapping(
    analysis_id: UUID,
    column_index: int,
    payload: SaveMappingRequest,
    db: Session = Depends(get_db),
    mapping_service: DimensionMappingService = Depends(get_dimension_mapping_service),
) -> DimensionMappingResponse:
    record: ColumnMapping = _call(
        lambda: mapping_service.save_mapping(
            db=db,
            analysis_id=analysis_id,
            column_index=column_index,
            dimension_type=payload.dimension_type,
            mapping_rules=payload.mapping_rules,
        )
    )
    return _to_mapping_response(to_dimension_mapping(record))


@router.get(
    "/csv-analysis/{analysis_id}/mappings",
    response_model=MappingListResponse,
)
def list_mappings(
    analysis_id: UUID,
    db: Session = Depends(get_db),
    mapping_service: DimensionMappingService = Depends(get_dimension_mapping_service),
) -> MappingListResponse:
    records = _call(lambda: mapping_service.list_mappings(db=db, analysis_id=analysis_id))
    return MappingListResponse(
        analysis_id=analysis_id,
        mappings=[_to_mapping_response(to_dimension_mapping(record)) for record in records],
    )


@router.get(
    "/csv-analysis/{analysis_id}/mappings/validation",
    response_model=MappingValidationResponse,
)
def validate_mappings(
    analysis_id: UUID,
    db: Session = Depends(get_db),
    mapping_service: DimensionMappingService = Depends(get_dimension_mapping_service),
) -> MappingValidationResponse:
    result = _call(lambda: mapping_service.validate_mappings(db=db, analysis_id=analysis_id))
    return MappingValidationResponse(**result.to_dict())


@router.get(
    "/csv-analysis/{analysis_id}/orientation",
    response_model=OrientationResponse,
)
def detect_orientation(
    analysis_id: UUID,
    db: Session = Depends(get_db),
    mapping_service: DimensionMappingService = Depends(get_dimension_mapping_service),
) -> OrientationResponse:
    orientation = _call(lambda: mapping_service.detect_orientation(db=db, analysis_id=analysis_id))
    return OrientationResponse(analysis_id=analysis_id, orientation=orientation)


@router.get(
    "/csv-analysis/{analysis_id}/multi-dimensional-analysis",
    response_model=AxisSummaryResponse,
)
def analyze_axes(
    analysis_id: UUID,
    db: Session = Depends(get_db),
    mapping_service: DimensionMappingService = Depends(get_dimension_mapping_service),
) -> AxisSummaryResponse:
    summary = _call(lambda: mapping_service.analyze_axes(db=db, analysis_id=analysis_id))
    return AxisSummaryResponse(analysis_id=analysis_id, **summary.to_dict())


def _call(operation: Callable[[], T]) -> T:
    try:
        return operation()
    except AnalysisNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StructureFileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.to_dict()) from exc
    except StructuralError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    except MappingRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc


def _to_mapping_response(mapping: DimensionMapping) -> DimensionMappingResponse:
    return DimensionMappingResponse(**mapping.to_dict())
