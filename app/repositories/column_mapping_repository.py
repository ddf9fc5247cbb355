"""
app/repositories/column_mapping_repository.py

Persistence helpers for per-column dimension mappings.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models.column_mapping import ColumnMapping
from dimensions.types import DimensionMapping


class ColumnMappingRepository:
    """
    Repository for upserting and reading column mappings of one analysis.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_for_analysis(self, analysis_id: uuid.UUID) -> list[ColumnMapping]:
        stmt = (
            select(ColumnMapping)
            .where(ColumnMapping.analysis_id == analysis_id)
            .order_by(ColumnMapping.column_index.asc())
        )
        return list(self._session.execute(stmt).scalars().all())

    def get(self, *, analysis_id: uuid.UUID, column_index: int) -> ColumnMapping | None:
        stmt = select(ColumnMapping).where(
            ColumnMapping.analysis_id == analysis_id,
            ColumnMapping.column_index == column_index,
        )
        return self._session.execute(stmt).scalars().first()

    def save(
        self,
        *,
        analysis_id: uuid.UUID,
        column_index: int,
        column_header: str,
        dimension_type: str,
        confidence_score: float = 1.0,
        is_auto_detected: bool = False,
        mapping_rules: dict[str, Any] | None = None,
    ) -> ColumnMapping:
        """
        Insert or update the mapping keyed by (analysis_id, column_index).
        """

        existing = self.get(analysis_id=analysis_id, column_index=column_index)
        if existing is None:
            existing = ColumnMapping(
                analysis_id=analysis_id,
                column_index=column_index,
                column_header=column_header,
                dimension_type=dimension_type,
                confidence_score=confidence_score,
                is_auto_detected=is_auto_detected,
                mapping_rules=mapping_rules,
            )
            self._session.add(existing)
        else:
            existing.column_header = column_header
            existing.dimension_type = dimension_type
            existing.confidence_score = confidence_score
            existing.is_auto_detected = is_auto_detected
            existing.mapping_rules = mapping_rules

        self._session.flush()
        return existing

    def delete_for_analysis(self, analysis_id: uuid.UUID) -> int:
        result = self._session.execute(delete(ColumnMapping).where(ColumnMapping.analysis_id == analysis_id))
        return result.rowcount or 0


def to_dimension_mapping(record: ColumnMapping) -> DimensionMapping:
    return DimensionMapping(
        column_index=record.column_index,
        column_header=record.column_header,
        dimension_type=record.dimension_type,
        confidence_score=record.confidence_score,
        is_auto_detected=record.is_auto_detected,
        mapping_rules=dict(record.mapping_rules or {}),
    )
