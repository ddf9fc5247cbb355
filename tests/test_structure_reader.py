"""
tests/test_structure_reader.py

Encoding, delimiter and tokenization behaviour of the CSV reader.
"""

from __future__ import annotations

import csv

import pytest

from structure import (
    EmptyFileError,
    MalformedFileError,
    StructureAnalyzer,
    StructureFileNotFoundError,
    detect_delimiter,
    detect_encoding,
    parse,
)


class TestDetectEncoding:
    def test_plain_ascii_is_utf8(self, write_csv) -> None:
        path = write_csv("Name,Age\nJohn,25\n")
        assert detect_encoding(path) == "UTF-8"

    def test_latin1_bytes_fall_back(self, write_csv) -> None:
        path = write_csv("City,Value\nSão Paulo,10\n".encode("iso-8859-1"))
        assert detect_encoding(path) == "ISO-8859-1"

    def test_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(StructureFileNotFoundError) as ctx:
            detect_encoding(tmp_path / "nope.csv")
        assert ctx.value.to_dict()["error_type"] == "FILE_NOT_FOUND"


class TestDetectDelimiter:
    @pytest.mark.parametrize(
        ("first_line", "expected"),
        [
            ("a;b;c\n1;2;3\n", ";"),
            ("a\tb\tc\n", "\t"),
            ("a|b|c\n", "|"),
            ("a,b,c\n", ","),
        ],
    )
    def test_picks_most_frequent_candidate(self, write_csv, first_line: str, expected: str) -> None:
        assert detect_delimiter(write_csv(first_line)) == expected

    def test_defaults_to_comma_without_candidates(self, write_csv) -> None:
        assert detect_delimiter(write_csv("single\nvalue\n")) == ","

    def test_tie_prefers_earlier_candidate(self, write_csv) -> None:
        assert detect_delimiter(write_csv("a,b;c\n")) == ","


class TestParse:
    def test_trims_cells_and_skips_blank_lines(self, write_csv) -> None:
        path = write_csv("Name , Age\n\n John ,25\n\n")
        table = parse(path, "UTF-8", ",")

        assert table.rows == (("Name", "Age"), ("John", "25"))
        assert table.has_header is True
        assert table.data_rows == (("John", "25"),)
        assert table.first_data_line == 2

    def test_strips_byte_order_mark(self, write_csv) -> None:
        path = write_csv(b"\xef\xbb\xbfName,Age\nJohn,25\n")
        table = parse(path, "UTF-8", ",")
        assert table.headers == ["Name", "Age"]

    def test_explicit_header_flag_wins(self, write_csv) -> None:
        path = write_csv("Name,Age\nJohn,25\n")
        table = parse(path, "UTF-8", ",", has_header=False)
        assert table.headers == ["Column_1", "Column_2"]
        assert len(table.data_rows) == 2
        assert table.first_data_line == 1

    def test_ragged_rows_widen_the_table(self, write_csv) -> None:
        table = parse(write_csv("Name,Age\nJohn,25,extra\n"), "UTF-8", ",")
        assert table.column_count == 3
        assert table.headers == ["Name", "Age", "Column_3"]
        assert table.cell(table.rows[0], 2) == ""

    def test_empty_file_raises(self, write_csv) -> None:
        with pytest.raises(EmptyFileError):
            parse(write_csv(""), "UTF-8", ",")

    def test_blank_only_file_raises(self, write_csv) -> None:
        with pytest.raises(EmptyFileError):
            parse(write_csv("\n\n\n"), "UTF-8", ",")

    def test_malformed_quoting_raises(self, write_csv) -> None:
        with pytest.raises(MalformedFileError) as ctx:
            parse(write_csv('Name,Age\n"John"x,25\n'), "UTF-8", ",")
        assert ctx.value.error_type == "MALFORMED_FILE"


class TestRoundTrip:
    @pytest.mark.parametrize(
        ("content", "delimiter"),
        [
            ('Name; City ;Note\n  Ana ;"Lyon; FR";" spaced "\nBo;Paris;"say ""hi"""\n', ";"),
            ('Name,Note\nAna,"a, b"\n  Bo  ,  plain  \n', ","),
            ('Name\tNote\nAna\t"tab\there"\n', "\t"),
            ('City;Value\n"São; Paulo";10\n'.encode("iso-8859-1"), ";"),
        ],
    )
    def test_reserialized_rows_parse_back_to_the_same_cells(
        self, write_csv, tmp_path, content: str | bytes, delimiter: str
    ) -> None:
        source = write_csv(content)
        encoding = detect_encoding(source)
        assert detect_delimiter(source, encoding) == delimiter
        original = parse(source, encoding, delimiter)

        copy = tmp_path / "roundtrip.csv"
        with copy.open("w", encoding=encoding, newline="") as handle:
            csv.writer(handle, delimiter=delimiter).writerows(original.rows)

        copy_encoding = detect_encoding(copy)
        reparsed = parse(copy, copy_encoding, detect_delimiter(copy, copy_encoding))

        assert reparsed.rows == original.rows
        assert reparsed.has_header == original.has_header


class TestStructureAnalyzer:
    def test_analyze_reports_fingerprint(self, write_csv) -> None:
        path = write_csv("Name;Age;Active\nJohn;25;yes\nJane;30;no\n")
        analysis = StructureAnalyzer().analyze(path)

        assert analysis.row_count == 2
        assert analysis.column_count == 3
        assert analysis.headers == ("Name", "Age", "Active")
        assert analysis.delimiter == ";"
        assert analysis.encoding == "UTF-8"
        assert analysis.has_header is True
        assert [column.inferred_data_type for column in analysis.columns] == ["string", "number", "boolean"]

    def test_analyze_without_header_synthesizes_names(self, write_csv) -> None:
        analysis = StructureAnalyzer().analyze(write_csv("John,25\nJane,30\n"))

        assert analysis.has_header is False
        assert analysis.headers == ("Column_1", "Column_2")
        assert analysis.row_count == 2

    def test_profile_sample_is_bounded(self, write_csv) -> None:
        content = "Label,Value\n" + "".join(f"row{i},{i}\n" for i in range(20))
        analysis = StructureAnalyzer(profile_sample_rows=5).analyze(write_csv(content))

        assert analysis.row_count == 20
        assert analysis.columns[0].distinct_count == 5

    def test_preview_limits_rows(self, write_csv) -> None:
        path = write_csv("Name,Age\nJohn,25\nJane,30\nJim,41\n")
        preview = StructureAnalyzer().preview(path, limit=2)

        assert preview.headers == ("Name", "Age")
        assert preview.rows == (("John", "25"), ("Jane", "30"))
        assert preview.total_rows == 3
