"""
tests/test_quality.py
"""

from __future__ import annotations

import unittest
from decimal import Decimal

from transform import FactDraft, aggregate_by_indicator, resolve_duplicates, validate_data_quality
from transform.quality import AGGREGATED_SOURCE_FILE, QualityIssueType


def _draft(name: str | None = "GDP", value: str | None = "1", **kwargs) -> FactDraft:
    defaults = {
        "source_file": "data.csv",
        "source_row_hash": "hash-1",
        "source_row_number": 2,
        "time_value": "2020",
    }
    defaults.update(kwargs)
    return FactDraft(
        indicator_name=name,
        value=Decimal(value) if value is not None else None,
        **defaults,
    )


class ResolveDuplicatesTest(unittest.TestCase):
    def test_keeps_highest_confidence(self) -> None:
        low = _draft(value="1", confidence_score=0.6)
        high = _draft(value="2", confidence_score=0.9)

        survivors = resolve_duplicates([low, high])

        self.assertEqual(survivors, [high])

    def test_tie_keeps_first_seen(self) -> None:
        first = _draft(value="1", confidence_score=0.7)
        second = _draft(value="2", confidence_score=0.7)

        self.assertEqual(resolve_duplicates([first, second]), [first])

    def test_distinct_coordinates_are_kept_in_order(self) -> None:
        a = _draft(time_value="2020")
        b = _draft(time_value="2021")
        c = _draft(time_value="2020", location_value="Kenya")

        self.assertEqual(resolve_duplicates([a, b, c]), [a, b, c])

    def test_value_columns_of_one_row_are_distinct(self) -> None:
        low = _draft(value="1", time_value=None, value_column_index=1)
        high = _draft(value="9", time_value=None, value_column_index=2)

        self.assertEqual(resolve_duplicates([low, high]), [low, high])


class ValidateDataQualityTest(unittest.TestCase):
    def test_null_values_lower_the_score(self) -> None:
        records = [_draft(value=str(i), time_value=str(2000 + i)) for i in range(8)]
        records += [_draft(value=None, time_value="1990"), _draft(value=None, time_value="1991")]

        report = validate_data_quality(records)

        self.assertEqual(report.total_records, 10)
        self.assertEqual(report.valid_records, 8)
        self.assertEqual(report.error_records, 2)
        self.assertAlmostEqual(report.quality_score, 0.8)
        self.assertEqual(report.error_type_counts[QualityIssueType.NULL_VALUE], 2)

    def test_missing_indicator_is_an_error(self) -> None:
        report = validate_data_quality([_draft(name=""), _draft()])

        self.assertEqual(report.valid_records, 1)
        self.assertEqual(report.error_type_counts, {QualityIssueType.MISSING_INDICATOR: 1})
        self.assertEqual(report.errors, ("Missing indicator at row 2",))

    def test_negative_and_extreme_values_only_warn(self) -> None:
        report = validate_data_quality([_draft(value="-5"), _draft(value="1000000000"), _draft(value="3")])

        self.assertEqual(report.valid_records, 3)
        self.assertEqual(report.warning_records, 2)
        self.assertEqual(report.quality_score, 1.0)
        self.assertEqual(
            report.error_type_counts,
            {QualityIssueType.NEGATIVE_VALUE: 1, QualityIssueType.EXTREME_VALUE: 1},
        )

    def test_empty_input_scores_zero(self) -> None:
        report = validate_data_quality([])

        self.assertEqual(report.total_records, 0)
        self.assertEqual(report.quality_score, 0.0)
        self.assertEqual(report.to_dict()["errors"], [])


class AggregateByIndicatorTest(unittest.TestCase):
    def test_mean_per_indicator_rounded_half_up(self) -> None:
        records = [
            _draft(name="GDP", value="1"),
            _draft(name="GDP", value="2"),
            _draft(name="GDP", value="2"),
            _draft(name="CPI", value="4"),
        ]

        aggregates = aggregate_by_indicator(records, run_key="job-1")

        self.assertEqual([a.indicator_name for a in aggregates], ["GDP", "CPI"])
        self.assertEqual(aggregates[0].value, Decimal("1.666667"))
        self.assertEqual(aggregates[1].value, Decimal("4.000000"))
        for aggregate in aggregates:
            self.assertTrue(aggregate.is_aggregated)
            self.assertEqual(aggregate.source_file, AGGREGATED_SOURCE_FILE)
            self.assertIsNone(aggregate.time_value)

    def test_skips_nulls_and_existing_aggregates(self) -> None:
        records = [
            _draft(value="10"),
            _draft(value=None),
            _draft(value="99", is_aggregated=True),
        ]

        aggregates = aggregate_by_indicator(records, run_key="job-1")

        self.assertEqual(len(aggregates), 1)
        self.assertEqual(aggregates[0].value, Decimal("10.000000"))

    def test_aggregate_hashes_differ_per_run(self) -> None:
        first = aggregate_by_indicator([_draft()], run_key="job-1")[0]
        second = aggregate_by_indicator([_draft()], run_key="job-2")[0]

        self.assertNotEqual(first.source_row_hash, second.source_row_hash)


if __name__ == "__main__":
    unittest.main()
