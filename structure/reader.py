"""
structure/reader.py

Encoding and delimiter detection plus strict CSV tokenization.
"""

from __future__ import annotations

import csv
import logging
from itertools import islice
from pathlib import Path

from structure.errors import EmptyFileError, MalformedFileError, StructureFileNotFoundError
from structure.header import detect_header
from structure.types import RawTable

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "UTF-8"
FALLBACK_ENCODINGS: tuple[str, ...] = ("ISO-8859-1", "windows-1252")
CANDIDATE_DELIMITERS: tuple[str, ...] = (",", ";", "\t", "|")
DEFAULT_DELIMITER = ","


def _require_file(path: str | Path) -> Path:
    file_path = Path(path)
    if not file_path.is_file():
        raise StructureFileNotFoundError(f"CSV file not found: {file_path}", path=file_path)
    return file_path


def _codec_for(encoding: str) -> str:
    # utf-8-sig drops a leading byte-order mark and otherwise reads plain UTF-8.
    if encoding.replace("_", "-").lower() in {"utf-8", "utf8"}:
        return "utf-8-sig"
    return encoding


def _decodes(file_path: Path, encoding: str, probe_lines: int) -> bool:
    try:
        with file_path.open("r", encoding=_codec_for(encoding), newline="") as handle:
            for _ in islice(handle, probe_lines):
                pass
    except (UnicodeDecodeError, LookupError):
        return False
    return True


def detect_encoding(path: str | Path, *, probe_lines: int = 10) -> str:
    """
    Return the first encoding under which the first `probe_lines` lines decode.

    UTF-8 is tried first, then the fallback list. When nothing validates the
    file is still treated as UTF-8.
    """

    file_path = _require_file(path)
    for encoding in (DEFAULT_ENCODING, *FALLBACK_ENCODINGS):
        if _decodes(file_path, encoding, probe_lines):
            return encoding

    logger.warning("No supported encoding decoded %s; defaulting to %s", file_path, DEFAULT_ENCODING)
    return DEFAULT_ENCODING


def detect_delimiter(path: str | Path, encoding: str = DEFAULT_ENCODING) -> str:
    """
    Pick the candidate delimiter occurring most often in the first line.
    """

    file_path = _require_file(path)
    with file_path.open("r", encoding=_codec_for(encoding), errors="replace", newline="") as handle:
        first_line = handle.readline()

    counts = {candidate: first_line.count(candidate) for candidate in CANDIDATE_DELIMITERS}
    best = max(CANDIDATE_DELIMITERS, key=lambda candidate: counts[candidate])
    if counts[best] == 0:
        return DEFAULT_DELIMITER
    return best


def read_rows(path: str | Path, encoding: str, delimiter: str) -> list[tuple[str, ...]]:
    """
    Tokenize the whole file into trimmed rows, skipping blank lines.
    """

    file_path = _require_file(path)
    rows: list[tuple[str, ...]] = []
    try:
        with file_path.open("r", encoding=_codec_for(encoding), errors="replace", newline="") as handle:
            reader = csv.reader(handle, delimiter=delimiter, strict=True)
            for raw_row in reader:
                if not raw_row:
                    continue
                rows.append(tuple(cell.strip() for cell in raw_row))
    except csv.Error as exc:
        raise MalformedFileError(
            f"Unable to tokenize CSV file {file_path.name}: {exc}",
            path=file_path,
        ) from exc
    return rows


def parse(
    path: str | Path,
    encoding: str,
    delimiter: str,
    *,
    has_header: bool | None = None,
) -> RawTable:
    """
    Parse a file into a RawTable. Header presence is detected unless given.
    """

    rows = read_rows(path, encoding, delimiter)
    if not rows:
        raise EmptyFileError(f"CSV file contains no rows: {Path(path).name}", path=path)

    if has_header is None:
        has_header = detect_header(rows)

    return RawTable(
        rows=tuple(rows),
        has_header=has_header,
        delimiter=delimiter,
        encoding=encoding,
    )
