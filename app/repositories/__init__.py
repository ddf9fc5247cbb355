"""
app/repositories package marker.
"""

from app.repositories.column_mapping_repository import ColumnMappingRepository
from app.repositories.fact_repository import FactRepository

__all__ = [
    "ColumnMappingRepository",
    "FactRepository",
]
