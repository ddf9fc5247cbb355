from __future__ import annotations

import base64
import hashlib
import unittest
from decimal import Decimal

from transform import NumericParseError, TimeParts, extract_numeric_value, parse_time_value, source_row_hash


class TestExtractNumericValue(unittest.TestCase):
    def test_strips_currency_and_separators(self) -> None:
        self.assertEqual(extract_numeric_value("$1,234.50"), Decimal("1234.50"))
        self.assertEqual(extract_numeric_value("€ 12"), Decimal("12"))
        self.assertEqual(extract_numeric_value("45%"), Decimal("45"))
        self.assertEqual(extract_numeric_value("-3.5"), Decimal("-3.5"))

    def test_blank_is_none(self) -> None:
        self.assertIsNone(extract_numeric_value(""))
        self.assertIsNone(extract_numeric_value("   "))
        self.assertIsNone(extract_numeric_value(None))

    def test_text_raises(self) -> None:
        with self.assertRaises(NumericParseError) as ctx:
            extract_numeric_value("n/a")
        self.assertEqual(ctx.exception.raw_value, "n/a")

    def test_non_finite_values_raise(self) -> None:
        for raw in ("NaN", "Infinity", "-inf"):
            with self.subTest(raw=raw), self.assertRaises(NumericParseError):
                extract_numeric_value(raw)

    def test_scientific_notation(self) -> None:
        self.assertEqual(extract_numeric_value("1.5e3"), Decimal("1.5e3"))


class TestSourceRowHash(unittest.TestCase):
    def test_is_base64_sha256_of_pipe_joined_cells(self) -> None:
        expected = base64.b64encode(hashlib.sha256(b"GDP|100|110").digest()).decode("ascii")
        self.assertEqual(source_row_hash(("GDP", "100", "110")), expected)

    def test_cell_boundaries_matter(self) -> None:
        self.assertNotEqual(source_row_hash(("a", "bc")), source_row_hash(("ab", "c")))


class TestParseTimeValue(unittest.TestCase):
    def test_year(self) -> None:
        self.assertEqual(parse_time_value("2020"), TimeParts(year=2020))

    def test_iso_date(self) -> None:
        self.assertEqual(parse_time_value("2021-05-17"), TimeParts(year=2021, quarter=2, month=5, day=17))

    def test_year_month(self) -> None:
        self.assertEqual(parse_time_value("2019-11"), TimeParts(year=2019, quarter=4, month=11))

    def test_quarter_labels(self) -> None:
        self.assertEqual(parse_time_value("Q3 2022"), TimeParts(year=2022, quarter=3))
        self.assertEqual(parse_time_value("2022-Q1"), TimeParts(year=2022, quarter=1))

    def test_year_fallback(self) -> None:
        self.assertEqual(parse_time_value("FY 2018/19"), TimeParts(year=2018))

    def test_unrecognised(self) -> None:
        self.assertEqual(parse_time_value("Spring"), TimeParts())


if __name__ == "__main__":
    unittest.main()
