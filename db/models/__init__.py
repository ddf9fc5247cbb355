"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.column_mapping import ColumnMapping
from db.models.csv_analysis import CsvAnalysis, CsvColumnProfile
from db.models.dimensions import DimGeneric, DimLocation, DimTime, Indicator
from db.models.fact_indicator_value import FactIndicatorValue, fact_indicator_value_generics
from db.models.processing_job import ProcessingError, ProcessingJob

__all__ = [
    "CsvAnalysis",
    "CsvColumnProfile",
    "ColumnMapping",
    "Indicator",
    "DimTime",
    "DimLocation",
    "DimGeneric",
    "FactIndicatorValue",
    "fact_indicator_value_generics",
    "ProcessingJob",
    "ProcessingError",
]
