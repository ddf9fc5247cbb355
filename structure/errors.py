"""
structure/errors.py

Structural failures raised while reading a CSV file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class StructuralError(ValueError):
    """
    Base class for files that cannot be read or tokenized.
    """

    error_type = "STRUCTURAL_ERROR"

    def __init__(self, message: str, *, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.error_type,
            "message": self.message,
            "path": self.path,
        }


class StructureFileNotFoundError(StructuralError):
    error_type = "FILE_NOT_FOUND"


class MalformedFileError(StructuralError):
    error_type = "MALFORMED_FILE"


class EmptyFileError(StructuralError):
    error_type = "EMPTY_FILE"
