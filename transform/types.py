"""
transform/types.py

Records and row issues produced while transforming a table into facts.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any


class Severity:
    ERROR = "ERROR"
    WARNING = "WARNING"


class RowIssueType:
    INVALID_NUMERIC_VALUE = "INVALID_NUMERIC_VALUE"
    MISSING_INDICATOR_NAME = "MISSING_INDICATOR_NAME"
    MISSING_TIME_VALUE = "MISSING_TIME_VALUE"
    ROW_PROCESSING = "ROW_PROCESSING"


@dataclass(frozen=True)
class RowIssue:
    """
    One non-fatal problem found in a source row.
    """

    row_number: int | None
    error_type: str
    message: str
    raw_value: str | None = None
    column_index: int | None = None
    severity: str = Severity.ERROR


@dataclass(frozen=True)
class FactDraft:
    """
    A fact observation before its dimensions are resolved to stored ids.

    Coordinates are literal values; `generics` holds (dimension_name, value)
    pairs in column order. `value_column_index` is the source column the
    value was read from, None for aggregates.
    """

    indicator_name: str | None
    value: Decimal | None
    source_file: str
    source_row_hash: str
    source_row_number: int | None = None
    time_value: str | None = None
    location_value: str | None = None
    generics: tuple[tuple[str, str], ...] = ()
    unit_label: str | None = None
    confidence_score: float = 1.0
    is_aggregated: bool = False
    value_column_index: int | None = None

    @property
    def observation_key(self) -> tuple[Any, ...]:
        return (
            self.source_row_hash,
            self.indicator_name,
            self.time_value,
            self.location_value,
            self.generics,
            self.value_column_index,
        )
