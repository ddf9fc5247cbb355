"""
dimensions/engine.py

Dimension mapping engine: suggestion, validation, orientation detection and
multi-dimensional axis summaries over a parsed CSV table.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from dimensions.detectors import DetectorRegistry, build_default_registry, is_numeric_value
from dimensions.types import (
    AxisSummary,
    DimensionMapping,
    DimensionType,
    MappingValidationResult,
    Orientation,
)
from structure.types import RawTable

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.7

_MISSING_ROLE_SUGGESTIONS: dict[str, str] = {
    DimensionType.INDICATOR_NAME: "Map the column that holds indicator names to INDICATOR_NAME.",
    DimensionType.INDICATOR_VALUE: "Map at least one numeric column to INDICATOR_VALUE.",
}


def _distinct_non_empty(values: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return tuple(seen)


class DimensionMappingEngine:
    """
    Pure mapping logic; persistence lives in DimensionMappingService.
    """

    def __init__(
        self,
        *,
        registry: DetectorRegistry | None = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._registry = registry or build_default_registry()
        self._confidence_threshold = confidence_threshold

    @property
    def confidence_threshold(self) -> float:
        return self._confidence_threshold

    # ------------------------------------------------------------------
    # Suggestion
    # ------------------------------------------------------------------

    def suggest_mappings(
        self,
        headers: Sequence[str],
        sample_rows: Sequence[Sequence[str]],
    ) -> list[DimensionMapping]:
        suggestions: list[DimensionMapping] = []
        for column_index, header in enumerate(headers):
            samples = [row[column_index] if column_index < len(row) else "" for row in sample_rows]
            dimension_type, result = self._registry.score(header, samples, column_index)
            if result.confidence < self._confidence_threshold:
                logger.debug(
                    "Column %d (%s) left unmapped confidence=%.2f",
                    column_index,
                    header,
                    result.confidence,
                )
                continue
            suggestions.append(
                DimensionMapping(
                    column_index=column_index,
                    column_header=header,
                    dimension_type=dimension_type,
                    confidence_score=result.confidence,
                    is_auto_detected=True,
                    reason=result.reason,
                )
            )
        return suggestions

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, mappings: Sequence[DimensionMapping]) -> MappingValidationResult:
        counts = Counter(mapping.dimension_type for mapping in mappings)
        errors: list[str] = []
        warnings: list[str] = []
        suggestions: list[str] = []
        missing: list[str] = []

        for required in DimensionType.REQUIRED:
            if counts[required] == 0:
                missing.append(required)
                errors.append(f"Missing required dimension: {required}")
                suggestions.append(_MISSING_ROLE_SUGGESTIONS[required])

        if counts[DimensionType.INDICATOR_NAME] > 1:
            warnings.append("Multiple INDICATOR_NAME mappings detected. Consider consolidating.")

        for mapping in sorted(mappings, key=lambda item: item.column_index):
            if mapping.is_auto_detected and mapping.confidence_score < self._confidence_threshold:
                warnings.append(
                    f"Low confidence mapping for column {mapping.column_index}: {mapping.dimension_type}"
                )

        return MappingValidationResult(
            is_valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            suggestions=tuple(suggestions),
            total_mappings=len(mappings),
            missing_mappings=tuple(missing),
        )

    # ------------------------------------------------------------------
    # Orientation
    # ------------------------------------------------------------------

    def detect_orientation(self, mappings: Sequence[DimensionMapping], table: RawTable) -> str:
        """
        ROWS when indicator names run down column 0, COLUMNS when the first
        row is mostly text (indicator names as headers), ROWS otherwise.
        """

        for mapping in mappings:
            if mapping.column_index == 0 and mapping.dimension_type == DimensionType.INDICATOR_NAME:
                return Orientation.ROWS

        header_row = table.header_row
        if header_row:
            text_cells = sum(1 for cell in header_row if cell and not is_numeric_value(cell))
            if text_cells > len(header_row) / 2:
                return Orientation.COLUMNS

        return Orientation.ROWS

    # ------------------------------------------------------------------
    # Multi-dimensional summary
    # ------------------------------------------------------------------

    def analyze_axes(self, mappings: Sequence[DimensionMapping], table: RawTable) -> AxisSummary:
        orientation = self.detect_orientation(mappings, table)
        by_type: dict[str, list[DimensionMapping]] = {}
        for mapping in mappings:
            by_type.setdefault(mapping.dimension_type, []).append(mapping)

        data_rows = table.data_rows

        def column_values(dimension_type: str) -> tuple[str, ...]:
            return _distinct_non_empty(
                table.cell(row, mapping.column_index)
                for mapping in by_type.get(dimension_type, ())
                for row in data_rows
            )

        if orientation == Orientation.COLUMNS:
            indicator_values = _distinct_non_empty(
                mapping.column_header
                for mapping in mappings
                if mapping.dimension_type in DimensionType.REQUIRED
            )
        else:
            indicator_values = column_values(DimensionType.INDICATOR_NAME)

        validation = self.validate(mappings)
        return AxisSummary(
            orientation=orientation,
            indicator_values=indicator_values,
            time_values=column_values(DimensionType.TIME),
            location_values=column_values(DimensionType.LOCATION),
            additional_axes=tuple(
                mapping.column_header for mapping in by_type.get(DimensionType.ADDITIONAL, ())
            ),
            total_values=max(0, len(table.rows) - 1) * max(0, table.column_count - 1),
            is_complete=validation.is_valid,
            missing_dimensions=validation.missing_mappings,
        )
