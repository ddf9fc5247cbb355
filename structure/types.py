"""
structure/types.py

Immutable value objects produced by structure analysis.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


class DataType:
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    STRING = "string"


def synthesize_header(index: int) -> str:
    """
    Header used for columns of a file without a header row (1-based).
    """

    return f"Column_{index + 1}"


@dataclass(frozen=True)
class RawTable:
    """
    Tokenized CSV content. `rows` includes the header row when `has_header`.
    """

    rows: tuple[tuple[str, ...], ...]
    has_header: bool
    delimiter: str
    encoding: str

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    @property
    def headers(self) -> list[str]:
        width = self.column_count
        first = self.rows[0] if self.has_header and self.rows else ()
        return [
            first[index] if index < len(first) and first[index] else synthesize_header(index)
            for index in range(width)
        ]

    @property
    def header_row(self) -> tuple[str, ...]:
        return self.rows[0] if self.rows else ()

    @property
    def data_rows(self) -> tuple[tuple[str, ...], ...]:
        return self.rows[1:] if self.has_header else self.rows

    @property
    def first_data_line(self) -> int:
        """1-based file line of the first data row."""
        return 2 if self.has_header else 1

    def cell(self, row: tuple[str, ...], index: int) -> str:
        return row[index] if index < len(row) else ""


@dataclass(frozen=True)
class ColumnProfile:
    index: int
    header: str
    inferred_data_type: str
    null_count: int
    empty_count: int
    distinct_count: int
    sample_values: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["sample_values"] = list(self.sample_values)
        return payload


@dataclass(frozen=True)
class StructureAnalysis:
    row_count: int
    column_count: int
    headers: tuple[str, ...]
    columns: tuple[ColumnProfile, ...]
    delimiter: str
    encoding: str
    has_header: bool


@dataclass(frozen=True)
class TablePreview:
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    total_rows: int
