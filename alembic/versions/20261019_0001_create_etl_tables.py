"""create csv analysis, mapping, dimension, fact and processing tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "csv_analyses",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("upload_job_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("storage_path", sa.String(length=1024), nullable=False),
        sa.Column("file_checksum", sa.String(length=64), nullable=False),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("row_count", sa.Integer(), nullable=False),
        sa.Column("column_count", sa.Integer(), nullable=False),
        sa.Column("headers", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("delimiter", sa.String(length=4), nullable=False),
        sa.Column("encoding", sa.String(length=32), nullable=False),
        sa.Column("has_header", sa.Boolean(), nullable=False),
        sa.Column("detected_orientation", sa.String(length=16), nullable=True),
        sa.Column("metadata_json", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("upload_job_id", "file_name", name="uq_csv_analyses_upload_job_file"),
    )
    op.create_index("ix_csv_analyses_upload_job_id", "csv_analyses", ["upload_job_id"], unique=False)
    op.create_index("ix_csv_analyses_created_at", "csv_analyses", ["created_at"], unique=False)

    op.create_table(
        "csv_column_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("analysis_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("column_index", sa.Integer(), nullable=False),
        sa.Column("header", sa.String(length=255), nullable=False),
        sa.Column("inferred_data_type", sa.String(length=16), nullable=False),
        sa.Column("null_count", sa.Integer(), nullable=False),
        sa.Column("empty_count", sa.Integer(), nullable=False),
        sa.Column("distinct_count", sa.Integer(), nullable=False),
        sa.Column("sample_values", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.ForeignKeyConstraint(["analysis_id"], ["csv_analyses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("analysis_id", "column_index", name="uq_csv_column_profiles_analysis_column"),
    )

    op.create_table(
        "column_mappings",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("analysis_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("column_index", sa.Integer(), nullable=False),
        sa.Column("column_header", sa.String(length=255), nullable=False),
        sa.Column("dimension_type", sa.String(length=32), nullable=False),
        sa.Column("confidence_score", sa.Float(), nullable=False),
        sa.Column("is_auto_detected", sa.Boolean(), nullable=False),
        sa.Column("mapping_rules", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["analysis_id"], ["csv_analyses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("analysis_id", "column_index", name="uq_column_mappings_analysis_column"),
    )
    op.create_index("ix_column_mappings_analysis_id", "column_mappings", ["analysis_id"], unique=False)
    op.create_index("ix_column_mappings_dimension_type", "column_mappings", ["dimension_type"], unique=False)

    op.create_table(
        "indicators",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_indicators_name"),
    )

    op.create_table(
        "dim_time",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("value", sa.String(length=255), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("quarter", sa.Integer(), nullable=True),
        sa.Column("month", sa.Integer(), nullable=True),
        sa.Column("day", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("value", name="uq_dim_time_value"),
    )
    op.create_index("ix_dim_time_year", "dim_time", ["year"], unique=False)

    op.create_table(
        "dim_location",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("value", sa.String(length=255), nullable=False),
        sa.Column("location_type", sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("value", name="uq_dim_location_value"),
    )

    op.create_table(
        "dim_generic",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("dimension_name", sa.String(length=255), nullable=False),
        sa.Column("value", sa.String(length=500), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dimension_name", "value", name="uq_dim_generic_name_value"),
    )
    op.create_index("ix_dim_generic_dimension_name", "dim_generic", ["dimension_name"], unique=False)

    op.create_table(
        "processing_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("upload_job_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("analysis_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("total_records", sa.Integer(), nullable=False),
        sa.Column("records_processed", sa.Integer(), nullable=False),
        sa.Column("error_count", sa.Integer(), nullable=False),
        sa.Column("progress_percentage", sa.Float(), nullable=False),
        sa.Column("batch_size", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("retry_of_job_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("result_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["analysis_id"], ["csv_analyses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["retry_of_job_id"], ["processing_jobs.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_processing_jobs_upload_job_id", "processing_jobs", ["upload_job_id"], unique=False)
    op.create_index(
        "ix_processing_jobs_analysis_status",
        "processing_jobs",
        ["analysis_id", "status"],
        unique=False,
    )
    op.create_index("ix_processing_jobs_status", "processing_jobs", ["status"], unique=False)
    op.create_index("ix_processing_jobs_created_at", "processing_jobs", ["created_at"], unique=False)
    op.create_index(
        "uq_processing_jobs_active_analysis",
        "processing_jobs",
        ["analysis_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('PENDING', 'RUNNING')"),
    )

    op.create_table(
        "processing_errors",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("processing_job_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("row_number", sa.Integer(), nullable=True),
        sa.Column("column_index", sa.Integer(), nullable=True),
        sa.Column("error_type", sa.String(length=64), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("raw_value", sa.Text(), nullable=True),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("is_resolved", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["processing_job_id"], ["processing_jobs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_processing_errors_job_id", "processing_errors", ["processing_job_id"], unique=False)
    op.create_index(
        "ix_processing_errors_job_severity",
        "processing_errors",
        ["processing_job_id", "severity"],
        unique=False,
    )

    op.create_table(
        "fact_indicator_values",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("indicator_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("value", sa.Numeric(precision=20, scale=6), nullable=False),
        sa.Column("time_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("location_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("unit_label", sa.String(length=120), nullable=True),
        sa.Column("source_file", sa.String(length=255), nullable=False),
        sa.Column("source_row_number", sa.Integer(), nullable=True),
        sa.Column("source_row_hash", sa.String(length=64), nullable=False),
        sa.Column("confidence_score", sa.Float(), nullable=False),
        sa.Column("is_aggregated", sa.Boolean(), nullable=False),
        sa.Column("analysis_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("processing_job_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["indicator_id"], ["indicators.id"]),
        sa.ForeignKeyConstraint(["time_id"], ["dim_time.id"]),
        sa.ForeignKeyConstraint(["location_id"], ["dim_location.id"]),
        sa.ForeignKeyConstraint(["analysis_id"], ["csv_analyses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["processing_job_id"], ["processing_jobs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fact_indicator_values_indicator_id", "fact_indicator_values", ["indicator_id"], unique=False)
    op.create_index("ix_fact_indicator_values_time_id", "fact_indicator_values", ["time_id"], unique=False)
    op.create_index("ix_fact_indicator_values_location_id", "fact_indicator_values", ["location_id"], unique=False)
    op.create_index(
        "ix_fact_indicator_values_source_row_hash",
        "fact_indicator_values",
        ["source_row_hash"],
        unique=False,
    )
    op.create_index("ix_fact_indicator_values_analysis_id", "fact_indicator_values", ["analysis_id"], unique=False)
    op.create_index(
        "ix_fact_indicator_values_processing_job_id",
        "fact_indicator_values",
        ["processing_job_id"],
        unique=False,
    )

    op.create_table(
        "fact_indicator_value_generics",
        sa.Column("fact_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("generic_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["fact_id"], ["fact_indicator_values.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["generic_id"], ["dim_generic.id"]),
        sa.PrimaryKeyConstraint("fact_id", "generic_id"),
    )


def downgrade() -> None:
    op.drop_table("fact_indicator_value_generics")
    op.drop_index("ix_fact_indicator_values_processing_job_id", table_name="fact_indicator_values")
    op.drop_index("ix_fact_indicator_values_analysis_id", table_name="fact_indicator_values")
    op.drop_index("ix_fact_indicator_values_source_row_hash", table_name="fact_indicator_values")
    op.drop_index("ix_fact_indicator_values_location_id", table_name="fact_indicator_values")
    op.drop_index("ix_fact_indicator_values_time_id", table_name="fact_indicator_values")
    op.drop_index("ix_fact_indicator_values_indicator_id", table_name="fact_indicator_values")
    op.drop_table("fact_indicator_values")
    op.drop_index("ix_processing_errors_job_severity", table_name="processing_errors")
    op.drop_index("ix_processing_errors_job_id", table_name="processing_errors")
    op.drop_table("processing_errors")
    op.drop_index("uq_processing_jobs_active_analysis", table_name="processing_jobs")
    op.drop_index("ix_processing_jobs_created_at", table_name="processing_jobs")
    op.drop_index("ix_processing_jobs_status", table_name="processing_jobs")
    op.drop_index("ix_processing_jobs_analysis_status", table_name="processing_jobs")
    op.drop_index("ix_processing_jobs_upload_job_id", table_name="processing_jobs")
    op.drop_table("processing_jobs")
    op.drop_index("ix_dim_generic_dimension_name", table_name="dim_generic")
    op.drop_table("dim_generic")
    op.drop_table("dim_location")
    op.drop_index("ix_dim_time_year", table_name="dim_time")
    op.drop_table("dim_time")
    op.drop_table("indicators")
    op.drop_index("ix_column_mappings_dimension_type", table_name="column_mappings")
    op.drop_index("ix_column_mappings_analysis_id", table_name="column_mappings")
    op.drop_table("column_mappings")
    op.drop_table("csv_column_profiles")
    op.drop_index("ix_csv_analyses_created_at", table_name="csv_analyses")
    op.drop_index("ix_csv_analyses_upload_job_id", table_name="csv_analyses")
    op.drop_table("csv_analyses")
