"""
structure/analyzer.py

Composes encoding, delimiter, header and type detection into one pass
that fingerprints a CSV file without prior knowledge of its layout.
"""

from __future__ import annotations

import logging
from pathlib import Path

from structure.inference import profile_columns
from structure.reader import detect_delimiter, detect_encoding, parse
from structure.types import RawTable, StructureAnalysis, TablePreview

logger = logging.getLogger(__name__)


class StructureAnalyzer:
    """
    Stateless structure detection. Every call re-reads the file.
    """

    def __init__(
        self,
        *,
        encoding_probe_lines: int = 10,
        profile_sample_rows: int | None = 1000,
    ) -> None:
        self._encoding_probe_lines = encoding_probe_lines
        self._profile_sample_rows = profile_sample_rows

    def load_table(
        self,
        path: str | Path,
        *,
        encoding: str | None = None,
        delimiter: str | None = None,
        has_header: bool | None = None,
    ) -> RawTable:
        resolved_encoding = encoding or detect_encoding(path, probe_lines=self._encoding_probe_lines)
        resolved_delimiter = delimiter or detect_delimiter(path, resolved_encoding)
        return parse(path, resolved_encoding, resolved_delimiter, has_header=has_header)

    def analyze(self, path: str | Path) -> StructureAnalysis:
        table = self.load_table(path)
        headers = table.headers
        columns = profile_columns(
            headers,
            table.data_rows,
            sample_rows=self._profile_sample_rows,
        )
        logger.info(
            "Analysed CSV structure path=%s rows=%d columns=%d delimiter=%r encoding=%s has_header=%s",
            path,
            len(table.data_rows),
            table.column_count,
            table.delimiter,
            table.encoding,
            table.has_header,
        )
        return StructureAnalysis(
            row_count=len(table.data_rows),
            column_count=table.column_count,
            headers=tuple(headers),
            columns=tuple(columns),
            delimiter=table.delimiter,
            encoding=table.encoding,
            has_header=table.has_header,
        )

    def preview(
        self,
        path: str | Path,
        *,
        limit: int = 100,
        encoding: str | None = None,
        delimiter: str | None = None,
        has_header: bool | None = None,
    ) -> TablePreview:
        table = self.load_table(path, encoding=encoding, delimiter=delimiter, has_header=has_header)
        data_rows = table.data_rows
        return TablePreview(
            headers=tuple(table.headers),
            rows=tuple(data_rows[: max(0, limit)]),
            total_rows=len(data_rows),
        )
