"""
db/models/fact_indicator_value.py

Normalized indicator observations produced by processing runs.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin
from db.models.dimensions import DimGeneric, DimLocation, DimTime

fact_indicator_value_generics = Table(
    "fact_indicator_value_generics",
    Base.metadata,
    Column(
        "fact_id",
        Uuid(as_uuid=True),
        ForeignKey("fact_indicator_values.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "generic_id",
        Uuid(as_uuid=True),
        ForeignKey("dim_generic.id"),
        primary_key=True,
    ),
)


class FactIndicatorValue(Base, TimestampMixin):
    __tablename__ = "fact_indicator_values"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    indicator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("indicators.id"),
        nullable=False,
    )
    value: Mapped[Decimal] = mapped_column(Numeric(20, 6), nullable=False)
    time_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("dim_time.id"),
        nullable=True,
    )
    location_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("dim_location.id"),
        nullable=True,
    )
    unit_label: Mapped[str | None] = mapped_column(String(120), nullable=True)
    source_file: Mapped[str] = mapped_column(String(255), nullable=False)
    source_row_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source_row_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="base64 SHA-256 of the pipe-joined source row",
    )
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    is_aggregated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    analysis_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("csv_analyses.id", ondelete="CASCADE"),
        nullable=False,
    )
    processing_job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("processing_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )

    time: Mapped[DimTime | None] = relationship(lazy="selectin", viewonly=True)
    location: Mapped[DimLocation | None] = relationship(lazy="selectin", viewonly=True)
    generics: Mapped[list[DimGeneric]] = relationship(
        secondary=fact_indicator_value_generics,
        lazy="selectin",
        viewonly=True,
    )

    __table_args__ = (
        Index("ix_fact_indicator_values_indicator_id", "indicator_id"),
        Index("ix_fact_indicator_values_time_id", "time_id"),
        Index("ix_fact_indicator_values_location_id", "location_id"),
        Index("ix_fact_indicator_values_source_row_hash", "source_row_hash"),
        Index("ix_fact_indicator_values_analysis_id", "analysis_id"),
        Index("ix_fact_indicator_values_processing_job_id", "processing_job_id"),
    )
