"""
Repository package for file storage, analyses, dimensions and processing jobs.
"""

from db.repositories.csv_analysis_repository import CsvAnalysisRepository
from db.repositories.dimension_repository import DimensionRepository
from db.repositories.errors import DimensionPersistenceError, FileStorageError, RepositoryError
from db.repositories.processing_job_repository import ProcessingJobRepository
from db.repositories.storage import FileStorageBackend, LocalFileStorage, StoredFileMetadata

__all__ = [
    "CsvAnalysisRepository",
    "DimensionRepository",
    "ProcessingJobRepository",
    "FileStorageBackend",
    "LocalFileStorage",
    "StoredFileMetadata",
    "RepositoryError",
    "FileStorageError",
    "DimensionPersistenceError",
]
