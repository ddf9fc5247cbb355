"""
db/repositories/storage.py

Where uploaded CSV bytes live between analysis and processing.

Paths are `<upload_job_id>/<sha256 prefix>_<file name>`, so re-uploading
identical bytes lands on the same file and changed bytes on a new one. The
database only ever stores the relative path.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from mimetypes import guess_type
from pathlib import Path
from typing import Protocol

from db.repositories.errors import FileStorageError

logger = logging.getLogger(__name__)

CHECKSUM_PREFIX_LENGTH = 16


@dataclass(frozen=True)
class StoredFileMetadata:
    """
    What a backend reports after persisting one upload.
    """

    file_name: str
    storage_path: str
    mime_type: str | None
    file_size_bytes: int
    checksum: str
    stored_at: datetime


class FileStorageBackend(Protocol):
    def save(
        self,
        *,
        upload_job_id: uuid.UUID,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredFileMetadata:
        ...

    def resolve(self, storage_path: str) -> Path:
        ...

    def delete(self, *, storage_path: str) -> None:
        ...


def _safe_file_name(file_name: str) -> str:
    # Drop any client-supplied directories.
    safe_name = Path(file_name.replace("\\", "/")).name.strip()
    if not safe_name or safe_name in {".", ".."}:
        raise FileStorageError(f"Invalid file name: {file_name!r}")
    return safe_name


def storage_key(*, upload_job_id: uuid.UUID, checksum: str, file_name: str) -> str:
    return f"{upload_job_id}/{checksum[:CHECKSUM_PREFIX_LENGTH]}_{file_name}"


class LocalFileStorage:
    """
    Filesystem backend rooted at UPLOAD_STORAGE_DIR.
    """

    def __init__(self, root_dir: str | Path = "data/uploads") -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def save(
        self,
        *,
        upload_job_id: uuid.UUID,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredFileMetadata:
        safe_name = _safe_file_name(file_name)
        checksum = hashlib.sha256(content).hexdigest()
        key = storage_key(upload_job_id=upload_job_id, checksum=checksum, file_name=safe_name)
        target = self.resolve(key)

        if target.exists():
            logger.debug("Upload already stored path=%s", key)
        else:
            self._write_atomically(target, content)
            logger.info("Stored upload path=%s bytes=%d", key, len(content))

        return StoredFileMetadata(
            file_name=safe_name,
            storage_path=key,
            mime_type=content_type or guess_type(safe_name)[0],
            file_size_bytes=len(content),
            checksum=checksum,
            stored_at=datetime.now(timezone.utc),
        )

    def resolve(self, storage_path: str) -> Path:
        return self._root_dir / Path(storage_path)

    def delete(self, *, storage_path: str) -> None:
        target = self.resolve(storage_path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise FileStorageError(f"Failed to delete stored file: {storage_path}") from exc

    @staticmethod
    def _write_atomically(target: Path, content: bytes) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            handle, tmp_name = tempfile.mkstemp(dir=target.parent, suffix=".part")
            try:
                with os.fdopen(handle, "wb") as stream:
                    stream.write(content)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise FileStorageError(f"Failed to write uploaded file: {target.name}") from exc
