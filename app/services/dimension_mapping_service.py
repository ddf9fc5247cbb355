"""
app/services/dimension_mapping_service.py

Suggests, stores and validates dimension roles for analysed CSV files.
"""

from __future__ import annotations

import logging
import uuid
from functools import lru_cache
from typing import Any

from sqlalchemy.orm import Session

from app.config import DimensionMappingSettings, get_dimension_mapping_settings
from app.repositories.column_mapping_repository import ColumnMappingRepository, to_dimension_mapping
from app.services.structure_analysis_service import (
    StructureAnalysisService,
    get_structure_analysis_service,
)
from db.models.column_mapping import ColumnMapping
from db.models.csv_analysis import CsvAnalysis
from dimensions import (
    AxisSummary,
    DimensionMapping,
    DimensionMappingEngine,
    DimensionType,
    MappingValidationResult,
    build_default_registry,
)
from structure.types import synthesize_header

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class MappingRequestError(ValueError):
    """
    Raised when a mapping request references an unknown column or role.
    """

    def __init__(self, *, message: str, field: str, value: Any) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "field": self.field,
            "value": self.value,
        }


class DimensionMappingService:
    """
    Persistence-aware wrapper around DimensionMappingEngine.
    """

    def __init__(
        self,
        *,
        settings: DimensionMappingSettings | None = None,
        structure_service: StructureAnalysisService | None = None,
        engine: DimensionMappingEngine | None = None,
    ) -> None:
        self._settings = settings or get_dimension_mapping_settings()
        self._structure_service = structure_service or get_structure_analysis_service()
        self._engine = engine or DimensionMappingEngine(
            registry=build_default_registry(gazetteer=self._settings.location_gazetteer),
            confidence_threshold=self._settings.confidence_threshold,
        )

    @property
    def engine(self) -> DimensionMappingEngine:
        return self._engine

    def suggest_mappings(self, *, db: Session, analysis_id: uuid.UUID) -> list[DimensionMapping]:
        """
        Read-only suggestions over the first sample rows of the file.
        """

        analysis = self._structure_service.get_analysis(db=db, analysis_id=analysis_id)
        table = self._structure_service.load_table(analysis)
        sample_rows = table.data_rows[: self._settings.sample_rows]
        suggestions = self._engine.suggest_mappings(table.headers, sample_rows)
        logger.info(
            "Suggested %d mapping(s) for analysis id=%s columns=%d",
            len(suggestions),
            analysis_id,
            table.column_count,
        )
        return suggestions

    def apply_suggestions(self, *, db: Session, analysis_id: uuid.UUID) -> list[ColumnMapping]:
        """
        Persist auto suggestions for columns that have no manual mapping.
        """

        suggestions = self.suggest_mappings(db=db, analysis_id=analysis_id)
        repository = ColumnMappingRepository(db)
        manual_columns = {
            mapping.column_index
            for mapping in repository.list_for_analysis(analysis_id)
            if not mapping.is_auto_detected
        }
        try:
            for suggestion in suggestions:
                if suggestion.column_index in manual_columns:
                    continue
                repository.save(
                    analysis_id=analysis_id,
                    column_index=suggestion.column_index,
                    column_header=suggestion.column_header,
                    dimension_type=suggestion.dimension_type,
                    confidence_score=suggestion.confidence_score,
                    is_auto_detected=True,
                    mapping_rules={"reason": suggestion.reason} if suggestion.reason else None,
                )
            db.commit()
        except Exception:
            db.rollback()
            raise
        return repository.list_for_analysis(analysis_id)

    def save_mapping(
        self,
        *,
        db: Session,
        analysis_id: uuid.UUID,
        column_index: int,
        dimension_type: str,
        mapping_rules: dict[str, Any] | None = None,
    ) -> ColumnMapping:
        """
        Upsert an operator mapping; overrides are never auto-detected.
        """

        analysis = self._structure_service.get_analysis(db=db, analysis_id=analysis_id)
        normalized_type = dimension_type.strip().upper()
        if normalized_type not in DimensionType.ALL:
            raise MappingRequestError(
                message=f"Unknown dimension type '{dimension_type}'. Allowed: {', '.join(DimensionType.ALL)}.",
                field="dimension_type",
                value=dimension_type,
            )
        if column_index < 0 or column_index >= analysis.column_count:
            raise MappingRequestError(
                message=f"Column index {column_index} is outside 0..{analysis.column_count - 1}.",
                field="column_index",
                value=column_index,
            )

        repository = ColumnMappingRepository(db)
        try:
            mapping = repository.save(
                analysis_id=analysis_id,
                column_index=column_index,
                column_header=_header_for(analysis, column_index),
                dimension_type=normalized_type,
                confidence_score=1.0,
                is_auto_detected=False,
                mapping_rules=mapping_rules,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            "Saved mapping analysis_id=%s column=%d dimension_type=%s",
            analysis_id,
            column_index,
            normalized_type,
        )
        return mapping

    def list_mappings(self, *, db: Session, analysis_id: uuid.UUID) -> list[ColumnMapping]:
        self._structure_service.get_analysis(db=db, analysis_id=analysis_id)
        return ColumnMappingRepository(db).list_for_analysis(analysis_id)

    def load_mappings(self, *, db: Session, analysis_id: uuid.UUID) -> list[DimensionMapping]:
        return [
            to_dimension_mapping(record)
            for record in ColumnMappingRepository(db).list_for_analysis(analysis_id)
        ]

    def validate_mappings(self, *, db: Session, analysis_id: uuid.UUID) -> MappingValidationResult:
        self._structure_service.get_analysis(db=db, analysis_id=analysis_id)
        return self._engine.validate(self.load_mappings(db=db, analysis_id=analysis_id))

    def detect_orientation(self, *, db: Session, analysis_id: uuid.UUID) -> str:
        """
        Detect and store the table orientation for the current mappings.
        """

        analysis = self._structure_service.get_analysis(db=db, analysis_id=analysis_id)
        orientation = self._engine.detect_orientation(
            self.load_mappings(db=db, analysis_id=analysis_id),
            self._structure_service.load_table(analysis),
        )
        if analysis.detected_orientation != orientation:
            analysis.detected_orientation = orientation
            db.commit()
        return orientation

    def analyze_axes(self, *, db: Session, analysis_id: uuid.UUID) -> AxisSummary:
        analysis = self._structure_service.get_analysis(db=db, analysis_id=analysis_id)
        return self._engine.analyze_axes(
            self.load_mappings(db=db, analysis_id=analysis_id),
            self._structure_service.load_table(analysis),
        )


def _header_for(analysis: CsvAnalysis, column_index: int) -> str:
    headers = analysis.headers or []
    if column_index < len(headers):
        return headers[column_index]
    return synthesize_header(column_index)


@lru_cache(maxsize=1)
def get_dimension_mapping_service() -> DimensionMappingService:
    return DimensionMappingService()
