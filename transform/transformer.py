"""
transform/transformer.py

Walks a parsed table with its dimension mappings and emits fact drafts.

ROWS orientation lists indicators down a name column; each data row
produces one draft per (time, value) pairing. COLUMNS orientation uses the
headers of indicator columns as indicator names and reads time from a
single TIME column. Cell-level failures become RowIssues and never stop
the walk.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from dimensions.detectors import looks_like_time_label
from dimensions.types import DimensionMapping, DimensionType, Orientation
from structure.types import RawTable
from transform.types import FactDraft, RowIssue, RowIssueType, Severity
from transform.values import NumericParseError, extract_numeric_value, source_row_hash

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
IssueCallback = Callable[[RowIssue], None]

_CONTEXT_TYPES = frozenset(
    {
        DimensionType.LOCATION,
        DimensionType.UNIT,
        DimensionType.SOURCE,
        DimensionType.GOAL,
        DimensionType.ADDITIONAL,
    }
)


@dataclass
class TransformResult:
    records: list[FactDraft] = field(default_factory=list)
    issues: list[RowIssue] = field(default_factory=list)
    rows_seen: int = 0


@dataclass(frozen=True)
class _RowContext:
    location_value: str | None
    generics: tuple[tuple[str, str], ...]
    unit_label: str | None
    confidence: float


def _mapping_confidence(mapping: DimensionMapping | None) -> float:
    if mapping is None:
        return 1.0
    return mapping.confidence_score if mapping.is_auto_detected else 1.0


def _header_is_time(mapping: DimensionMapping) -> bool:
    flag = (mapping.mapping_rules or {}).get("header_as_time")
    if flag is not None:
        return bool(flag)
    return looks_like_time_label(mapping.column_header)


class FactTransformer:
    """
    Stateless table-to-facts transformer.
    """

    def __init__(self, *, progress_every: int = 100) -> None:
        self._progress_every = max(1, progress_every)

    def transform(
        self,
        table: RawTable,
        mappings: Sequence[DimensionMapping],
        orientation: str,
        *,
        source_file: str,
        on_progress: ProgressCallback | None = None,
        on_issue: IssueCallback | None = None,
    ) -> TransformResult:
        ordered = sorted(mappings, key=lambda mapping: mapping.column_index)
        result = TransformResult()
        data_rows = table.data_rows
        total = len(data_rows)

        for offset, row in enumerate(data_rows):
            row_number = table.first_data_line + offset
            issues_before = len(result.issues)
            try:
                if orientation == Orientation.COLUMNS:
                    self._transform_columns_row(table, row, row_number, ordered, source_file, result)
                else:
                    self._transform_rows_row(table, row, row_number, ordered, source_file, result)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Row %d could not be transformed: %s", row_number, exc)
                result.issues.append(
                    RowIssue(
                        row_number=row_number,
                        error_type=RowIssueType.ROW_PROCESSING,
                        message=f"{type(exc).__name__}: {exc}",
                        raw_value=table.delimiter.join(row),
                    )
                )
            if on_issue is not None:
                for issue in result.issues[issues_before:]:
                    on_issue(issue)
            result.rows_seen = offset + 1
            if on_progress is not None and (result.rows_seen % self._progress_every == 0 or result.rows_seen == total):
                on_progress(result.rows_seen, total)

        return result

    # ------------------------------------------------------------------
    # Orientation handlers
    # ------------------------------------------------------------------

    def _transform_rows_row(
        self,
        table: RawTable,
        row: tuple[str, ...],
        row_number: int,
        mappings: Sequence[DimensionMapping],
        source_file: str,
        result: TransformResult,
    ) -> None:
        name_mapping = next(
            (mapping for mapping in mappings if mapping.dimension_type == DimensionType.INDICATOR_NAME),
            None,
        )
        if name_mapping is None:
            return
        indicator_name = table.cell(row, name_mapping.column_index)
        if not indicator_name:
            result.issues.append(
                RowIssue(
                    row_number=row_number,
                    error_type=RowIssueType.MISSING_INDICATOR_NAME,
                    message="Row has no indicator name; skipped.",
                    column_index=name_mapping.column_index,
                    severity=Severity.WARNING,
                )
            )
            return

        time_mappings = [mapping for mapping in mappings if mapping.dimension_type == DimensionType.TIME]
        labelled_columns = [mapping for mapping in time_mappings if _header_is_time(mapping)]
        time_columns = [mapping for mapping in time_mappings if not _header_is_time(mapping)]
        labelled_indexes = {mapping.column_index for mapping in labelled_columns}
        value_columns = [
            mapping
            for mapping in mappings
            if mapping.dimension_type == DimensionType.INDICATOR_VALUE and mapping.column_index not in labelled_indexes
        ]

        context = self._row_context(table, row, mappings)
        row_hash = source_row_hash(row)
        base_confidence = min(context.confidence, _mapping_confidence(name_mapping))

        # (time label, value mapping, confidence) pairings for this row
        pairings: list[tuple[str | None, DimensionMapping, float]] = []
        for labelled in labelled_columns:
            pairings.append((labelled.column_header, labelled, _mapping_confidence(labelled)))
        if time_columns:
            for time_mapping in time_columns:
                time_value = table.cell(row, time_mapping.column_index) or None
                for value_mapping in value_columns:
                    pairings.append(
                        (
                            time_value,
                            value_mapping,
                            min(_mapping_confidence(time_mapping), _mapping_confidence(value_mapping)),
                        )
                    )
        else:
            for value_mapping in value_columns:
                time_value = value_mapping.column_header if _header_is_time(value_mapping) else None
                pairings.append((time_value, value_mapping, _mapping_confidence(value_mapping)))

        for time_value, value_mapping, confidence in pairings:
            self._emit(
                result,
                table=table,
                row=row,
                row_number=row_number,
                row_hash=row_hash,
                source_file=source_file,
                indicator_name=indicator_name,
                time_value=time_value,
                value_mapping=value_mapping,
                context=context,
                confidence=min(base_confidence, confidence),
            )

    def _transform_columns_row(
        self,
        table: RawTable,
        row: tuple[str, ...],
        row_number: int,
        mappings: Sequence[DimensionMapping],
        source_file: str,
        result: TransformResult,
    ) -> None:
        time_mapping = next(
            (mapping for mapping in mappings if mapping.dimension_type == DimensionType.TIME),
            None,
        )
        time_value: str | None = None
        if time_mapping is not None:
            time_value = table.cell(row, time_mapping.column_index)
            if not time_value:
                result.issues.append(
                    RowIssue(
                        row_number=row_number,
                        error_type=RowIssueType.MISSING_TIME_VALUE,
                        message="Row has no time value; skipped.",
                        column_index=time_mapping.column_index,
                        severity=Severity.WARNING,
                    )
                )
                return

        context = self._row_context(table, row, mappings)
        row_hash = source_row_hash(row)
        base_confidence = min(context.confidence, _mapping_confidence(time_mapping))

        for mapping in mappings:
            if mapping.dimension_type not in DimensionType.REQUIRED:
                continue
            self._emit(
                result,
                table=table,
                row=row,
                row_number=row_number,
                row_hash=row_hash,
                source_file=source_file,
                indicator_name=mapping.column_header,
                time_value=time_value,
                value_mapping=mapping,
                context=context,
                confidence=min(base_confidence, _mapping_confidence(mapping)),
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _row_context(
        self,
        table: RawTable,
        row: tuple[str, ...],
        mappings: Sequence[DimensionMapping],
    ) -> _RowContext:
        location_value: str | None = None
        unit_label: str | None = None
        generics: list[tuple[str, str]] = []
        confidences: list[float] = []

        for mapping in mappings:
            if mapping.dimension_type not in _CONTEXT_TYPES:
                continue
            cell = table.cell(row, mapping.column_index)
            if not cell:
                continue
            confidences.append(_mapping_confidence(mapping))
            if mapping.dimension_type == DimensionType.LOCATION and location_value is None:
                location_value = cell
            elif mapping.dimension_type == DimensionType.UNIT and unit_label is None:
                unit_label = cell
            else:
                dimension_name = (mapping.mapping_rules or {}).get("dimension_name") or mapping.column_header
                generics.append((str(dimension_name), cell))

        return _RowContext(
            location_value=location_value,
            generics=tuple(generics),
            unit_label=unit_label,
            confidence=min(confidences, default=1.0),
        )

    def _emit(
        self,
        result: TransformResult,
        *,
        table: RawTable,
        row: tuple[str, ...],
        row_number: int,
        row_hash: str,
        source_file: str,
        indicator_name: str,
        time_value: str | None,
        value_mapping: DimensionMapping,
        context: _RowContext,
        confidence: float,
    ) -> None:
        raw_value = table.cell(row, value_mapping.column_index)
        try:
            value = extract_numeric_value(raw_value)
        except NumericParseError as exc:
            result.issues.append(
                RowIssue(
                    row_number=row_number,
                    error_type=RowIssueType.INVALID_NUMERIC_VALUE,
                    message=str(exc),
                    raw_value=raw_value,
                    column_index=value_mapping.column_index,
                )
            )
            return
        if value is None:
            return

        result.records.append(
            FactDraft(
                indicator_name=indicator_name,
                value=value,
                source_file=source_file,
                source_row_hash=row_hash,
                source_row_number=row_number,
                time_value=time_value,
                location_value=context.location_value,
                generics=context.generics,
                unit_label=context.unit_label,
                confidence_score=confidence,
                value_column_index=value_mapping.column_index,
            )
        )
