"""
structure/header.py

Header row detection.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")

# Period labels that commonly head the value columns of a wide table.
TIME_LABEL_PATTERN = re.compile(
    r"^(\d{4}|\d{4}-\d{2}(-\d{2})?|Q[1-4][ -]?\d{4}|\d{4}[ -]?Q[1-4])$",
    re.IGNORECASE,
)


def is_numeric(value: str) -> bool:
    return bool(NUMBER_PATTERN.match(value))


def is_time_label(value: str) -> bool:
    return bool(TIME_LABEL_PATTERN.match(value))


def _text_fraction(row: Sequence[str]) -> float:
    """
    Share of non-empty, non-numeric cells. Period labels such as "2020"
    count as text when the row also holds a cell that is neither numeric
    nor a period label, so "Indicator,2020,2021" reads as all text.
    """

    if not row:
        return 0.0
    labels_are_text = any(cell and not is_numeric(cell) and not is_time_label(cell) for cell in row)
    text_cells = sum(
        1
        for cell in row
        if cell and (not is_numeric(cell) or (labels_are_text and is_time_label(cell)))
    )
    return text_cells / len(row)


def detect_header(rows: Sequence[Sequence[str]]) -> bool:
    """
    Treat row 0 as a header when every cell is non-empty text and the next
    row, if any, is less text-heavy.
    """

    if not rows or not rows[0]:
        return False

    first_fraction = _text_fraction(rows[0])
    if first_fraction < 1.0:
        return False

    if len(rows) < 2:
        return True

    return _text_fraction(rows[1]) < first_fraction
