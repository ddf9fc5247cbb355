"""
db/models/column_mapping.py

Dimension role assigned to one column of an analysed CSV file.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Boolean, Float, ForeignKey, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin


class ColumnMapping(Base, TimestampMixin):
    __tablename__ = "column_mappings"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    analysis_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("csv_analyses.id", ondelete="CASCADE"),
        nullable=False,
    )
    column_index: Mapped[int] = mapped_column(Integer, nullable=False)
    column_header: Mapped[str] = mapped_column(String(255), nullable=False)
    dimension_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="TIME, LOCATION, INDICATOR_NAME, INDICATOR_VALUE, UNIT, SOURCE, GOAL, ADDITIONAL",
    )
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    is_auto_detected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    mapping_rules: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    __table_args__ = (
        UniqueConstraint("analysis_id", "column_index", name="uq_column_mappings_analysis_column"),
        Index("ix_column_mappings_analysis_id", "analysis_id"),
        Index("ix_column_mappings_dimension_type", "dimension_type"),
    )
