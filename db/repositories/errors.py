"""
Repository-layer exceptions for upload storage and persistence flows.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class FileStorageError(RepositoryError):
    """Raised when storing, reading or deleting uploaded files fails."""


class DimensionPersistenceError(RepositoryError):
    """Raised when a dimension value can neither be found nor created."""
