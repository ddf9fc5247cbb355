"""
CSV structure detection: encoding, delimiter, header presence and column types.
"""

from structure.analyzer import StructureAnalyzer
from structure.errors import (
    EmptyFileError,
    MalformedFileError,
    StructuralError,
    StructureFileNotFoundError,
)
from structure.header import detect_header
from structure.inference import infer_column_type, profile_columns
from structure.reader import detect_delimiter, detect_encoding, parse
from structure.types import ColumnProfile, DataType, RawTable, StructureAnalysis, TablePreview

__all__ = [
    "StructureAnalyzer",
    "StructuralError",
    "StructureFileNotFoundError",
    "MalformedFileError",
    "EmptyFileError",
    "detect_encoding",
    "detect_delimiter",
    "parse",
    "detect_header",
    "infer_column_type",
    "profile_columns",
    "ColumnProfile",
    "DataType",
    "RawTable",
    "StructureAnalysis",
    "TablePreview",
]
