"""
app/services package marker.
"""

from app.services.dimension_mapping_service import (
    DimensionMappingService,
    MappingRequestError,
    get_dimension_mapping_service,
)
from app.services.fact_processing_service import (
    FactProcessingService,
    get_fact_processing_service,
)
from app.services.processing_job_service import (
    ProcessingJobService,
    get_processing_executor,
    get_processing_job_service,
)
from app.services.structure_analysis_service import (
    AnalysisNotFoundError,
    StructureAnalysisService,
    get_structure_analysis_service,
)

__all__ = [
    "DimensionMappingService",
    "MappingRequestError",
    "get_dimension_mapping_service",
    "FactProcessingService",
    "get_fact_processing_service",
    "ProcessingJobService",
    "get_processing_executor",
    "get_processing_job_service",
    "AnalysisNotFoundError",
    "StructureAnalysisService",
    "get_structure_analysis_service",
]
