from __future__ import annotations

import unittest

from structure import DataType, detect_header, infer_column_type
from structure.inference import profile_column, profile_columns


class TestDetectHeader(unittest.TestCase):
    def test_text_row_over_mixed_row_is_header(self) -> None:
        self.assertTrue(detect_header([["Name", "Age"], ["John", "25"]]))

    def test_two_data_rows_have_no_header(self) -> None:
        self.assertFalse(detect_header([["John", "25"], ["Jane", "30"]]))

    def test_single_text_row_is_header(self) -> None:
        self.assertTrue(detect_header([["Name", "City"]]))

    def test_empty_cell_in_first_row_rules_out_header(self) -> None:
        self.assertFalse(detect_header([["Name", ""], ["John", "25"]]))

    def test_equally_texty_second_row_rules_out_header(self) -> None:
        self.assertFalse(detect_header([["Name", "City"], ["John", "Paris"]]))

    def test_no_rows(self) -> None:
        self.assertFalse(detect_header([]))

    def test_year_labels_beside_a_text_cell_form_a_header(self) -> None:
        self.assertTrue(detect_header([["Indicator", "2020", "2021"], ["GDP", "100", "110"]]))

    def test_quarter_labels_form_a_header(self) -> None:
        self.assertTrue(detect_header([["Indicator", "2020-Q1", "Q2 2020"], ["GDP", "1", "2"]]))

    def test_years_alone_are_not_a_header(self) -> None:
        self.assertFalse(detect_header([["2020", "2021"], ["100", "110"]]))

    def test_data_row_with_a_year_value_is_not_a_header(self) -> None:
        self.assertFalse(detect_header([["GDP", "2020", "100"], ["CPI", "2021", "3"]]))


class TestInferColumnType(unittest.TestCase):
    def test_numbers(self) -> None:
        self.assertEqual(infer_column_type(["1", "2.5", "-3"]), DataType.NUMBER)

    def test_zero_one_columns_are_numbers(self) -> None:
        self.assertEqual(infer_column_type(["1", "0", "1"]), DataType.NUMBER)

    def test_booleans(self) -> None:
        self.assertEqual(infer_column_type(["true", "No", "YES"]), DataType.BOOLEAN)

    def test_dates(self) -> None:
        self.assertEqual(infer_column_type(["2020-01-31", "15/03/2021"]), DataType.DATE)

    def test_empty_cells_are_ignored(self) -> None:
        self.assertEqual(infer_column_type(["", "4", ""]), DataType.NUMBER)

    def test_all_empty_is_string(self) -> None:
        self.assertEqual(infer_column_type(["", ""]), DataType.STRING)

    def test_one_outlier_makes_string(self) -> None:
        self.assertEqual(infer_column_type(["12", "n/a"]), DataType.STRING)


class TestProfileColumn(unittest.TestCase):
    def test_counts_and_samples(self) -> None:
        profile = profile_column(0, "Label", ["a", "", "NULL", "a", "b"])

        self.assertEqual(profile.null_count, 1)
        self.assertEqual(profile.empty_count, 1)
        self.assertEqual(profile.distinct_count, 4)
        self.assertEqual(profile.sample_values, ("a", "NULL", "b"))
        self.assertEqual(profile.inferred_data_type, DataType.STRING)

    def test_samples_are_capped_at_five(self) -> None:
        profile = profile_column(1, "Value", [str(i) for i in range(10)])
        self.assertEqual(profile.sample_values, ("0", "1", "2", "3", "4"))
        self.assertEqual(profile.to_dict()["sample_values"], ["0", "1", "2", "3", "4"])

    def test_short_rows_profile_as_empty(self) -> None:
        profiles = profile_columns(["A", "B"], [("x",), ("y", "2")])
        self.assertEqual(profiles[1].empty_count, 1)
        self.assertEqual(profiles[1].inferred_data_type, DataType.NUMBER)


if __name__ == "__main__":
    unittest.main()
