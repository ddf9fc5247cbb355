"""
Dimension role detection and mapping validation for analysed CSV tables.
"""

from dimensions.detectors import (
    DetectorRegistry,
    DetectorResult,
    DimensionDetector,
    build_default_registry,
    looks_like_time_label,
)
from dimensions.engine import DEFAULT_CONFIDENCE_THRESHOLD, DimensionMappingEngine
from dimensions.types import (
    DIMENSION_DESCRIPTIONS,
    AxisSummary,
    DimensionMapping,
    DimensionType,
    MappingValidationResult,
    Orientation,
)

__all__ = [
    "DetectorRegistry",
    "DetectorResult",
    "DimensionDetector",
    "build_default_registry",
    "looks_like_time_label",
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "DimensionMappingEngine",
    "DIMENSION_DESCRIPTIONS",
    "AxisSummary",
    "DimensionMapping",
    "DimensionType",
    "MappingValidationResult",
    "Orientation",
]
