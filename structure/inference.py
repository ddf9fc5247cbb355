"""
structure/inference.py

Column type inference and per-column profiling.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import datetime

from structure.header import is_numeric
from structure.types import ColumnProfile, DataType

BOOLEAN_PATTERN = re.compile(r"^(true|false|yes|no|1|0)$", re.IGNORECASE)

DATE_FORMATS: tuple[str, ...] = (
    "%Y",
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
)

MAX_SAMPLE_VALUES = 5


def is_date(value: str) -> bool:
    for date_format in DATE_FORMATS:
        try:
            datetime.strptime(value, date_format)
        except ValueError:
            continue
        return True
    return False


def infer_column_type(values: Iterable[str]) -> str:
    """
    Infer the narrowest type every non-empty value conforms to.

    Checks run in the order number, boolean, date; one non-conforming value
    rules a type out. Columns with no non-empty value are strings.
    """

    present = [value for value in values if value]
    if not present:
        return DataType.STRING
    if all(is_numeric(value) for value in present):
        return DataType.NUMBER
    if all(BOOLEAN_PATTERN.match(value) for value in present):
        return DataType.BOOLEAN
    if all(is_date(value) for value in present):
        return DataType.DATE
    return DataType.STRING


def profile_column(index: int, header: str, values: Sequence[str]) -> ColumnProfile:
    samples: list[str] = []
    for value in values:
        if value and value not in samples:
            samples.append(value)
            if len(samples) >= MAX_SAMPLE_VALUES:
                break

    return ColumnProfile(
        index=index,
        header=header,
        inferred_data_type=infer_column_type(values),
        null_count=sum(1 for value in values if value.lower() == "null"),
        empty_count=sum(1 for value in values if not value),
        distinct_count=len(set(values)),
        sample_values=tuple(samples),
    )


def profile_columns(
    headers: Sequence[str],
    data_rows: Sequence[Sequence[str]],
    *,
    sample_rows: int | None = None,
) -> list[ColumnProfile]:
    rows = data_rows if sample_rows is None else data_rows[: max(0, sample_rows)]
    profiles: list[ColumnProfile] = []
    for index, header in enumerate(headers):
        values = [row[index] if index < len(row) else "" for row in rows]
        profiles.append(profile_column(index, header, values))
    return profiles
