"""
app/api/routers package marker.
"""

from app.api.routers.csv_analysis import router as csv_analysis_router
from app.api.routers.dimension_mapping import router as dimension_mapping_router
from app.api.routers.processing import router as processing_router

__all__ = [
    "csv_analysis_router",
    "dimension_mapping_router",
    "processing_router",
]
