"""
tests/test_dimension_engine.py

Detector scoring, suggestion, validation, orientation and axis summaries.
"""

from __future__ import annotations

import pytest

from dimensions import (
    DetectorRegistry,
    DimensionDetector,
    DimensionMapping,
    DimensionMappingEngine,
    DimensionType,
    Orientation,
    build_default_registry,
    looks_like_time_label,
)
from dimensions.detectors import (
    IndicatorNameDetector,
    LocationDetector,
    SourceDetector,
    TimeDetector,
    UnitDetector,
)
from structure.types import RawTable


def _mapping(index: int, header: str, dimension_type: str, **kwargs) -> DimensionMapping:
    return DimensionMapping(column_index=index, column_header=header, dimension_type=dimension_type, **kwargs)


def _table(*rows: tuple[str, ...], has_header: bool = True) -> RawTable:
    return RawTable(rows=tuple(rows), has_header=has_header, delimiter=",", encoding="UTF-8")


# ---------------------------------------------------------------------------
# Detectors
# ---------------------------------------------------------------------------


class TestDetectors:
    @pytest.mark.parametrize("label", ["2020", "Jan", "march", "Q3", "2021-06-30"])
    def test_time_labels(self, label: str) -> None:
        assert looks_like_time_label(label)

    @pytest.mark.parametrize("label", ["GDP", "20201", "Q5", ""])
    def test_non_time_labels(self, label: str) -> None:
        assert not looks_like_time_label(label)

    def test_time_header_keyword(self) -> None:
        result = TimeDetector().detect("Reporting Year", ["abc"], 3)
        assert result.matched
        assert result.confidence == pytest.approx(0.9)

    def test_time_values_threshold_is_inclusive(self) -> None:
        assert TimeDetector().detect("col", ["2020", "x"], 2).matched
        assert not TimeDetector().detect("col", ["2020", "x", "y"], 2).matched

    def test_location_gazetteer(self) -> None:
        detector = LocationDetector(["Kenya", "Peru"])
        assert detector.detect("col", ["kenya", "x", "y"], 1).matched
        assert not detector.detect("col", ["USA", "x", "y"], 1).matched

    def test_indicator_name_always_matches_first_column(self) -> None:
        result = IndicatorNameDetector().detect("anything", ["1", "2"], 0)
        assert result.matched
        assert result.reason == "First column usually lists indicator names"

    def test_unit_and_source_values(self) -> None:
        assert UnitDetector().detect("col", ["USD", "kg"], 4).matched
        assert SourceDetector().detect("col", ["https://data.example.org", "", ""], 5).matched

    def test_unmatched_detector_has_base_confidence(self) -> None:
        result = SourceDetector().detect("col", ["abc"], 5)
        assert not result.matched
        assert result.confidence == pytest.approx(0.5)


class TestDetectorRegistry:
    def test_earlier_registration_wins_ties(self) -> None:
        registry = build_default_registry()
        # Both TIME and INDICATOR_NAME match; TIME is registered first.
        dimension_type, _ = registry.score("Year", ["2020"], 0)
        assert dimension_type == DimensionType.TIME

    def test_nothing_matches_falls_back_to_additional(self) -> None:
        registry = DetectorRegistry([SourceDetector()])
        dimension_type, result = registry.score("Sector", ["Agriculture"], 2)
        assert dimension_type == DimensionType.ADDITIONAL
        assert not result.matched

    def test_custom_detector_can_be_registered(self) -> None:
        class GoalDetector(DimensionDetector):
            dimension_type = DimensionType.GOAL
            header_keywords = ("goal", "target")
            header_reason = "Header names a goal"

            def matches_value(self, value: str) -> bool:
                return value.upper().startswith("SDG")

        registry = DetectorRegistry([GoalDetector()])
        dimension_type, result = registry.score("Goal", [], 2)
        assert dimension_type == DimensionType.GOAL
        assert result.reason == "Header names a goal"

    def test_unknown_dimension_type_is_rejected(self) -> None:
        class BrokenDetector(DimensionDetector):
            dimension_type = "COLOUR"

            def matches_value(self, value: str) -> bool:
                return False

        with pytest.raises(ValueError):
            DetectorRegistry([BrokenDetector()])


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@pytest.fixture()
def engine() -> DimensionMappingEngine:
    return DimensionMappingEngine()


class TestSuggestMappings:
    def test_typical_long_table(self, engine: DimensionMappingEngine) -> None:
        headers = ["Indicator", "Year", "Country", "Value"]
        rows = [
            ("GDP growth", "2020", "Germany", "1.5"),
            ("GDP growth", "2021", "France", "2.25"),
        ]

        suggestions = {mapping.column_index: mapping for mapping in engine.suggest_mappings(headers, rows)}

        assert suggestions[0].dimension_type == DimensionType.INDICATOR_NAME
        assert suggestions[1].dimension_type == DimensionType.TIME
        assert suggestions[2].dimension_type == DimensionType.LOCATION
        assert suggestions[3].dimension_type == DimensionType.INDICATOR_VALUE
        assert all(mapping.is_auto_detected for mapping in suggestions.values())
        assert suggestions[3].confidence_score == pytest.approx(0.9)

    def test_low_confidence_columns_are_left_unmapped(self, engine: DimensionMappingEngine) -> None:
        suggestions = engine.suggest_mappings(["Indicator", "Code"], [("GDP", "12"), ("CPI", "x")])
        assert [mapping.column_index for mapping in suggestions] == [0]

    def test_threshold_is_configurable(self) -> None:
        permissive = DimensionMappingEngine(confidence_threshold=0.5)
        suggestions = permissive.suggest_mappings(["Indicator", "Code"], [("GDP", "12"), ("CPI", "x")])
        assert suggestions[1].dimension_type == DimensionType.ADDITIONAL
        assert suggestions[1].confidence_score == pytest.approx(0.5)


class TestValidate:
    def test_missing_required_dimensions(self, engine: DimensionMappingEngine) -> None:
        result = engine.validate([_mapping(1, "Year", DimensionType.TIME)])

        assert not result.is_valid
        assert "Missing required dimension: INDICATOR_NAME" in result.errors
        assert "Missing required dimension: INDICATOR_VALUE" in result.errors
        assert result.missing_mappings == (DimensionType.INDICATOR_NAME, DimensionType.INDICATOR_VALUE)
        assert result.total_mappings == 1
        assert result.required_mappings == 2

    def test_valid_set_with_warnings(self, engine: DimensionMappingEngine) -> None:
        result = engine.validate(
            [
                _mapping(0, "Indicator", DimensionType.INDICATOR_NAME),
                _mapping(1, "Name", DimensionType.INDICATOR_NAME),
                _mapping(2, "Value", DimensionType.INDICATOR_VALUE, confidence_score=0.5, is_auto_detected=True),
            ]
        )

        assert result.is_valid
        assert result.errors == ()
        assert "Multiple INDICATOR_NAME mappings detected. Consider consolidating." in result.warnings
        assert "Low confidence mapping for column 2: INDICATOR_VALUE" in result.warnings

    def test_to_dict_is_json_ready(self, engine: DimensionMappingEngine) -> None:
        payload = engine.validate([]).to_dict()
        assert payload["is_valid"] is False
        assert payload["missing_mappings"] == ["INDICATOR_NAME", "INDICATOR_VALUE"]


class TestOrientation:
    def test_indicator_names_in_first_column_is_rows(self, engine: DimensionMappingEngine) -> None:
        table = _table(("Indicator", "2020", "2021"), ("GDP", "100", "110"))
        mappings = [_mapping(0, "Indicator", DimensionType.INDICATOR_NAME)]
        assert engine.detect_orientation(mappings, table) == Orientation.ROWS

    def test_text_header_without_name_column_is_columns(self, engine: DimensionMappingEngine) -> None:
        table = _table(("Year", "GDP", "CPI"), ("2020", "100", "2.1"))
        mappings = [_mapping(0, "Year", DimensionType.TIME), _mapping(1, "GDP", DimensionType.INDICATOR_NAME)]
        assert engine.detect_orientation(mappings, table) == Orientation.COLUMNS

    def test_numeric_header_defaults_to_rows(self, engine: DimensionMappingEngine) -> None:
        table = _table(("x", "2020", "2021"), ("GDP", "100", "110"))
        mappings = [_mapping(1, "2020", DimensionType.INDICATOR_VALUE)]
        assert engine.detect_orientation(mappings, table) == Orientation.ROWS


class TestAnalyzeAxes:
    def test_rows_summary(self, engine: DimensionMappingEngine) -> None:
        table = _table(
            ("Indicator", "Year", "Country", "Value", "Sector"),
            ("GDP", "2020", "Kenya", "1", "Agri"),
            ("GDP", "2021", "Kenya", "2", "Agri"),
            ("CPI", "2020", "Peru", "3", "Agri"),
        )
        mappings = [
            _mapping(0, "Indicator", DimensionType.INDICATOR_NAME),
            _mapping(1, "Year", DimensionType.TIME),
            _mapping(2, "Country", DimensionType.LOCATION),
            _mapping(3, "Value", DimensionType.INDICATOR_VALUE),
            _mapping(4, "Sector", DimensionType.ADDITIONAL),
        ]

        summary = engine.analyze_axes(mappings, table)

        assert summary.orientation == Orientation.ROWS
        assert summary.indicator_values == ("GDP", "CPI")
        assert summary.time_values == ("2020", "2021")
        assert summary.location_values == ("Kenya", "Peru")
        assert summary.additional_axes == ("Sector",)
        assert summary.total_values == 12
        assert summary.is_complete
        assert summary.missing_dimensions == ()

    def test_incomplete_summary_lists_missing_roles(self, engine: DimensionMappingEngine) -> None:
        table = _table(("Indicator", "Year"), ("GDP", "2020"))
        summary = engine.analyze_axes([_mapping(0, "Indicator", DimensionType.INDICATOR_NAME)], table)

        assert not summary.is_complete
        assert summary.missing_dimensions == (DimensionType.INDICATOR_VALUE,)
