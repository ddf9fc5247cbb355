"""
transform/quality.py

De-duplication, data-quality scoring and per-indicator aggregation over
fact drafts.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from transform.types import FactDraft
from transform.values import source_row_hash

EXTREME_VALUE_LIMIT = Decimal("999999999")
AGGREGATED_SOURCE_FILE = "AGGREGATED"
_MEAN_QUANTUM = Decimal("0.000001")
_MAX_REPORTED_MESSAGES = 100


class QualityIssueType:
    NULL_VALUE = "NULL_VALUE"
    MISSING_INDICATOR = "MISSING_INDICATOR"
    NEGATIVE_VALUE = "NEGATIVE_VALUE"
    EXTREME_VALUE = "EXTREME_VALUE"


def resolve_duplicates(records: Sequence[FactDraft]) -> list[FactDraft]:
    """
    Keep one record per observation key: the highest confidence, the first
    encountered on ties. Survivors keep first-seen key order.
    """

    winners: dict[tuple[Any, ...], FactDraft] = {}
    for record in records:
        key = record.observation_key
        current = winners.get(key)
        if current is None or record.confidence_score > current.confidence_score:
            winners[key] = record
    return list(winners.values())


@dataclass(frozen=True)
class DataQualityReport:
    total_records: int
    valid_records: int
    error_records: int
    warning_records: int
    quality_score: float
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    error_type_counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_records": self.total_records,
            "valid_records": self.valid_records,
            "error_records": self.error_records,
            "warning_records": self.warning_records,
            "quality_score": self.quality_score,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "error_type_counts": dict(self.error_type_counts),
        }


def validate_data_quality(
    records: Sequence[FactDraft],
    *,
    extreme_value_limit: Decimal = EXTREME_VALUE_LIMIT,
) -> DataQualityReport:
    """
    Score records: null values or missing indicators are invalid, negative
    or extreme values are only warnings.
    """

    errors: list[str] = []
    warnings: list[str] = []
    type_counts: Counter[str] = Counter()
    valid = 0
    warned = 0

    for position, record in enumerate(records):
        label = f"row {record.source_row_number}" if record.source_row_number else f"record {position + 1}"
        invalid = False
        if record.value is None:
            invalid = True
            type_counts[QualityIssueType.NULL_VALUE] += 1
            errors.append(f"Null value at {label}")
        if not record.indicator_name:
            invalid = True
            type_counts[QualityIssueType.MISSING_INDICATOR] += 1
            errors.append(f"Missing indicator at {label}")
        if invalid:
            continue

        valid += 1
        if record.value < 0:
            warned += 1
            type_counts[QualityIssueType.NEGATIVE_VALUE] += 1
            warnings.append(f"Negative value {record.value} at {label}")
        elif record.value > extreme_value_limit:
            warned += 1
            type_counts[QualityIssueType.EXTREME_VALUE] += 1
            warnings.append(f"Extreme value {record.value} at {label}")

    total = len(records)
    return DataQualityReport(
        total_records=total,
        valid_records=valid,
        error_records=total - valid,
        warning_records=warned,
        quality_score=(valid / total) if total else 0.0,
        errors=tuple(errors[:_MAX_REPORTED_MESSAGES]),
        warnings=tuple(warnings[:_MAX_REPORTED_MESSAGES]),
        error_type_counts=dict(type_counts),
    )


def aggregate_by_indicator(records: Sequence[FactDraft], *, run_key: str) -> list[FactDraft]:
    """
    One aggregated draft per indicator holding the mean of its values,
    rounded to six decimals half-up.
    """

    grouped: dict[str, list[Decimal]] = {}
    for record in records:
        if record.is_aggregated or record.value is None or not record.indicator_name:
            continue
        grouped.setdefault(record.indicator_name, []).append(record.value)

    aggregates: list[FactDraft] = []
    for indicator_name, values in grouped.items():
        mean = (sum(values, Decimal(0)) / Decimal(len(values))).quantize(_MEAN_QUANTUM, rounding=ROUND_HALF_UP)
        aggregates.append(
            FactDraft(
                indicator_name=indicator_name,
                value=mean,
                source_file=AGGREGATED_SOURCE_FILE,
                source_row_hash=source_row_hash([AGGREGATED_SOURCE_FILE, run_key, indicator_name]),
                confidence_score=1.0,
                is_aggregated=True,
            )
        )
    return aggregates
