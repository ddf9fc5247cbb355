"""
db/models/csv_analysis.py

Persisted structural fingerprint of one uploaded CSV file.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONType, TimestampMixin


class CsvAnalysis(Base, TimestampMixin):
    __tablename__ = "csv_analyses"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    upload_job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        comment="Upload job owning the analysed file",
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        comment="Path relative to UPLOAD_STORAGE_DIR",
    )
    file_checksum: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="SHA-256 hex digest of the analysed bytes",
    )
    file_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    row_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    column_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    headers: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    delimiter: Mapped[str] = mapped_column(String(4), nullable=False, default=",")
    encoding: Mapped[str] = mapped_column(String(32), nullable=False, default="UTF-8")
    has_header: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    detected_orientation: Mapped[str | None] = mapped_column(
        String(16),
        nullable=True,
        comment="ROWS or COLUMNS once mappings are resolved",
    )
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    columns: Mapped[list["CsvColumnProfile"]] = relationship(
        back_populates="analysis",
        cascade="all, delete-orphan",
        order_by="CsvColumnProfile.column_index",
    )

    __table_args__ = (
        UniqueConstraint("upload_job_id", "file_name", name="uq_csv_analyses_upload_job_file"),
        Index("ix_csv_analyses_upload_job_id", "upload_job_id"),
        Index("ix_csv_analyses_created_at", "created_at"),
    )


class CsvColumnProfile(Base):
    __tablename__ = "csv_column_profiles"

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
    header: Mapped[str] = mapped_column(String(255), nullable=False)
    inferred_data_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="number, boolean, date, string",
    )
    null_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    empty_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    distinct_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sample_values: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    analysis: Mapped[CsvAnalysis] = relationship(back_populates="columns")

    __table_args__ = (
        UniqueConstraint("analysis_id", "column_index", name="uq_csv_column_profiles_analysis_column"),
    )
