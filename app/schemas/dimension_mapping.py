"""
Schemas for dimension mapping endpoints.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class DimensionMappingResponse(BaseModel):
    column_index: int
    column_header: str
    dimension_type: str
    confidence_score: float
    is_auto_detected: bool
    mapping_rules: dict[str, Any] = Field(default_factory=dict)
    reason: str | None = None


class MappingSuggestionsResponse(BaseModel):
    analysis_id: UUID
    suggestions: list[DimensionMappingResponse] = Field(default_factory=list)


class MappingListResponse(BaseModel):
    analysis_id: UUID
    mappings: list[DimensionMappingResponse] = Field(default_factory=list)


class SaveMappingRequest(BaseModel):
    dimension_type: str = Field(..., min_length=1, description="One of the supported dimension types")
    mapping_rules: dict[str, Any] | None = None


class MappingValidationResponse(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    total_mappings: int
    required_mappings: int
    missing_mappings: list[str] = Field(default_factory=list)


class OrientationResponse(BaseModel):
    analysis_id: UUID
    orientation: str


class AxisSummaryResponse(BaseModel):
    analysis_id: UUID
    orientation: str
    indicator_values: list[str] = Field(default_factory=list)
    time_values: list[str] = Field(default_factory=list)
    location_values: list[str] = Field(default_factory=list)
    additional_axes: list[str] = Field(default_factory=list)
    total_values: int
    is_complete: bool
    missing_dimensions: list[str] = Field(default_factory=list)


class DimensionTypeResponse(BaseModel):
    dimension_type: str
    description: str
    required: bool


class DimensionTypeListResponse(BaseModel):
    dimension_types: list[DimensionTypeResponse] = Field(default_factory=list)
