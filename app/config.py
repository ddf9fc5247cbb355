"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files
from dimensions.detectors import DEFAULT_GAZETTEER


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_csv_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list; empty or missing values use the default.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    items = tuple(item.strip() for item in raw_value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class StructureAnalysisSettings:
    """
    Runtime settings for CSV structure analysis and upload storage.
    """

    upload_storage_dir: str = "data/uploads"
    encoding_probe_lines: int = 10
    profile_sample_rows: int = 1000
    preview_row_limit: int = 100


@lru_cache(maxsize=1)
def get_structure_analysis_settings() -> StructureAnalysisSettings:
    return StructureAnalysisSettings(
        upload_storage_dir=_get_str_env("UPLOAD_STORAGE_DIR", "data/uploads"),
        encoding_probe_lines=max(1, _get_int_env("STRUCTURE_ENCODING_PROBE_LINES", 10)),
        profile_sample_rows=max(1, _get_int_env("STRUCTURE_PROFILE_SAMPLE_ROWS", 1000)),
        preview_row_limit=max(1, _get_int_env("STRUCTURE_PREVIEW_ROW_LIMIT", 100)),
    )


@dataclass(frozen=True)
class DimensionMappingSettings:
    """
    Runtime settings for dimension suggestion and validation.
    """

    confidence_threshold: float = 0.7
    sample_rows: int = 10
    location_gazetteer: tuple[str, ...] = DEFAULT_GAZETTEER


@lru_cache(maxsize=1)
def get_dimension_mapping_settings() -> DimensionMappingSettings:
    threshold = _get_float_env("DIMENSION_CONFIDENCE_THRESHOLD", 0.7)
    return DimensionMappingSettings(
        confidence_threshold=min(1.0, max(0.0, threshold)),
        sample_rows=max(1, _get_int_env("DIMENSION_SAMPLE_ROWS", 10)),
        location_gazetteer=_get_csv_list_env("DIMENSION_LOCATION_GAZETTEER", DEFAULT_GAZETTEER),
    )


@dataclass(frozen=True)
class FactProcessingSettings:
    """
    Runtime settings for fact transformation jobs.
    """

    batch_size: int = 1000
    max_errors: int = 1000
    log_row_errors: bool = True
    aggregation_enabled: bool = True
    aggregation_quality_threshold: float = 0.8
    max_workers: int = 4
    timeout_minutes: int = 60
    overdue_check_interval_minutes: int = 5


@lru_cache(maxsize=1)
def get_fact_processing_settings() -> FactProcessingSettings:
    return FactProcessingSettings(
        batch_size=max(1, _get_int_env("PROCESSING_BATCH_SIZE", 1000)),
        max_errors=max(0, _get_int_env("PROCESSING_MAX_ERRORS", 1000)),
        log_row_errors=_get_bool_env("PROCESSING_LOG_ROW_ERRORS", True),
        aggregation_enabled=_get_bool_env("PROCESSING_AGGREGATION_ENABLED", True),
        aggregation_quality_threshold=_get_float_env("PROCESSING_AGGREGATION_THRESHOLD", 0.8),
        max_workers=max(1, _get_int_env("PROCESSING_MAX_WORKERS", 4)),
        timeout_minutes=max(1, _get_int_env("PROCESSING_TIMEOUT_MINUTES", 60)),
        overdue_check_interval_minutes=max(1, _get_int_env("PROCESSING_OVERDUE_CHECK_MINUTES", 5)),
    )
