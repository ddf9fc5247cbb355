"""
Fact transformation: table walking, value extraction, de-duplication,
quality scoring and aggregation.
"""

from transform.quality import (
    DataQualityReport,
    aggregate_by_indicator,
    resolve_duplicates,
    validate_data_quality,
)
from transform.transformer import FactTransformer, TransformResult
from transform.types import FactDraft, RowIssue, RowIssueType, Severity
from transform.values import (
    NumericParseError,
    TimeParts,
    extract_numeric_value,
    parse_time_value,
    source_row_hash,
)

__all__ = [
    "DataQualityReport",
    "aggregate_by_indicator",
    "resolve_duplicates",
    "validate_data_quality",
    "FactTransformer",
    "TransformResult",
    "FactDraft",
    "RowIssue",
    "RowIssueType",
    "Severity",
    "NumericParseError",
    "TimeParts",
    "extract_numeric_value",
    "parse_time_value",
    "source_row_hash",
]
