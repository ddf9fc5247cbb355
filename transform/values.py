"""
transform/values.py

Cell-level value extraction: numbers, time labels and row digests.
"""

from __future__ import annotations

import base64
import hashlib
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

_STRIP_PATTERN = re.compile(r"[$,€£¥%\s]")
_DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class NumericParseError(ValueError):
    """
    Raised when a non-empty cell does not hold a number.
    """

    def __init__(self, raw_value: str) -> None:
        super().__init__(f"Cannot parse numeric value: {raw_value!r}")
        self.raw_value = raw_value


def extract_numeric_value(text: str | None) -> Decimal | None:
    """
    Parse a decimal after stripping currency symbols, %, thousands
    separators and whitespace. Blank cells yield None.
    """

    if text is None:
        return None
    if not text.strip():
        return None

    cleaned = _STRIP_PATTERN.sub("", text)
    if not _DECIMAL_PATTERN.match(cleaned):
        raise NumericParseError(text)
    try:
        value = Decimal(cleaned)
    except InvalidOperation as exc:
        raise NumericParseError(text) from exc
    if not value.is_finite():
        raise NumericParseError(text)
    return value


def source_row_hash(cells: Sequence[str]) -> str:
    """
    base64 SHA-256 digest of the pipe-joined row.
    """

    digest = hashlib.sha256("|".join(cells).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


# ---------------------------------------------------------------------------
# Time labels
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeParts:
    year: int | None = None
    quarter: int | None = None
    month: int | None = None
    day: int | None = None


_TIME_FORMATS: tuple[tuple[str, str], ...] = (
    ("%Y", "year"),
    ("%Y-%m", "month"),
    ("%Y-%m-%d", "day"),
    ("%m/%d/%Y", "day"),
    ("%d/%m/%Y", "day"),
    ("%Y-%m-%d %H:%M:%S", "day"),
    ("%m/%d/%Y %H:%M:%S", "day"),
    ("%d/%m/%Y %H:%M:%S", "day"),
    ("%Y-%m-%dT%H:%M:%S", "day"),
)

_QUARTER_PATTERNS = (
    re.compile(r"^Q(?P<quarter>[1-4])[\s\-/]*(?P<year>\d{4})$", re.IGNORECASE),
    re.compile(r"^(?P<year>\d{4})[\s\-/]*Q(?P<quarter>[1-4])$", re.IGNORECASE),
)
_YEAR_FALLBACK = re.compile(r"\b(?:19|20)\d{2}\b")


def _quarter_of(month: int) -> int:
    return (month - 1) // 3 + 1


def parse_time_value(label: str) -> TimeParts:
    """
    Break a time label into year/quarter/month/day where recognisable.

    Unrecognised labels keep only a year found anywhere in the text, or no
    parts at all.
    """

    candidate = label.strip()
    for time_format, precision in _TIME_FORMATS:
        try:
            parsed = datetime.strptime(candidate, time_format)
        except ValueError:
            continue
        if precision == "year":
            return TimeParts(year=parsed.year)
        if precision == "month":
            return TimeParts(year=parsed.year, quarter=_quarter_of(parsed.month), month=parsed.month)
        return TimeParts(
            year=parsed.year,
            quarter=_quarter_of(parsed.month),
            month=parsed.month,
            day=parsed.day,
        )

    for pattern in _QUARTER_PATTERNS:
        match = pattern.match(candidate)
        if match:
            return TimeParts(year=int(match.group("year")), quarter=int(match.group("quarter")))

    year_match = _YEAR_FALLBACK.search(candidate)
    if year_match:
        return TimeParts(year=int(year_match.group(0)))
    return TimeParts()
