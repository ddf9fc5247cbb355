"""
dimensions/types.py

Dimension roles, orientations and the value objects exchanged by the
mapping engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class DimensionType:
    TIME = "TIME"
    LOCATION = "LOCATION"
    INDICATOR_NAME = "INDICATOR_NAME"
    INDICATOR_VALUE = "INDICATOR_VALUE"
    UNIT = "UNIT"
    SOURCE = "SOURCE"
    GOAL = "GOAL"
    ADDITIONAL = "ADDITIONAL"

    ALL: tuple[str, ...] = (
        TIME,
        LOCATION,
        INDICATOR_NAME,
        INDICATOR_VALUE,
        UNIT,
        SOURCE,
        GOAL,
        ADDITIONAL,
    )
    REQUIRED: tuple[str, ...] = (INDICATOR_NAME, INDICATOR_VALUE)


DIMENSION_DESCRIPTIONS: dict[str, str] = {
    DimensionType.TIME: "Time period of the observation (year, quarter, month, date).",
    DimensionType.LOCATION: "Geographic location (country, state, city, region).",
    DimensionType.INDICATOR_NAME: "Name of the measured indicator.",
    DimensionType.INDICATOR_VALUE: "Numeric value of the indicator.",
    DimensionType.UNIT: "Unit of measurement (currency, %, kg, index).",
    DimensionType.SOURCE: "Data source or reference URL.",
    DimensionType.GOAL: "Goal or target the indicator belongs to.",
    DimensionType.ADDITIONAL: "Free-form dimension stored as a generic axis.",
}


class Orientation:
    ROWS = "ROWS"
    COLUMNS = "COLUMNS"


@dataclass(frozen=True)
class DimensionMapping:
    """
    Role assigned to one column. Manual overrides carry confidence 1.0.
    """

    column_index: int
    column_header: str
    dimension_type: str
    confidence_score: float = 1.0
    is_auto_detected: bool = False
    mapping_rules: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "column_index": self.column_index,
            "column_header": self.column_header,
            "dimension_type": self.dimension_type,
            "confidence_score": self.confidence_score,
            "is_auto_detected": self.is_auto_detected,
            "mapping_rules": dict(self.mapping_rules),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class MappingValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()
    total_mappings: int = 0
    required_mappings: int = len(DimensionType.REQUIRED)
    missing_mappings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
            "total_mappings": self.total_mappings,
            "required_mappings": self.required_mappings,
            "missing_mappings": list(self.missing_mappings),
        }


@dataclass(frozen=True)
class AxisSummary:
    orientation: str
    indicator_values: tuple[str, ...]
    time_values: tuple[str, ...]
    location_values: tuple[str, ...]
    additional_axes: tuple[str, ...]
    total_values: int
    is_complete: bool
    missing_dimensions: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "orientation": self.orientation,
            "indicator_values": list(self.indicator_values),
            "time_values": list(self.time_values),
            "location_values": list(self.location_values),
            "additional_axes": list(self.additional_axes),
            "total_values": self.total_values,
            "is_complete": self.is_complete,
            "missing_dimensions": list(self.missing_dimensions),
        }
