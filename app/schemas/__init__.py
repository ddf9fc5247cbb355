"""
app/schemas package marker.
"""

from app.schemas.csv_analysis import (
    ColumnProfileResponse,
    CsvAnalysisListResponse,
    CsvAnalysisResponse,
    CsvPreviewResponse,
)
from app.schemas.dimension_mapping import (
    AxisSummaryResponse,
    DimensionMappingResponse,
    DimensionTypeListResponse,
    MappingListResponse,
    MappingSuggestionsResponse,
    MappingValidationResponse,
    OrientationResponse,
    SaveMappingRequest,
)
from app.schemas.processing import (
    IndicatorValueListResponse,
    ProcessingErrorListResponse,
    ProcessingJobAcceptedResponse,
    ProcessingJobListResponse,
    ProcessingJobStatusResponse,
    QualityReportResponse,
    StartProcessingRequest,
)

__all__ = [
    "AxisSummaryResponse",
    "ColumnProfileResponse",
    "CsvAnalysisListResponse",
    "CsvAnalysisResponse",
    "CsvPreviewResponse",
    "DimensionMappingResponse",
    "DimensionTypeListResponse",
    "IndicatorValueListResponse",
    "MappingListResponse",
    "MappingSuggestionsResponse",
    "MappingValidationResponse",
    "OrientationResponse",
    "ProcessingErrorListResponse",
    "ProcessingJobAcceptedResponse",
    "ProcessingJobListResponse",
    "ProcessingJobStatusResponse",
    "QualityReportResponse",
    "SaveMappingRequest",
]
