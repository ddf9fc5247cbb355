"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

DELIMITED_TEXT_EXTENSIONS = (".csv", ".tsv", ".txt")
DELIMITED_TEXT_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "text/tab-separated-values",
    "text/plain",
}


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Accept delimited text uploads by extension or MIME type.

    Delimiter and encoding are detected later, so tab and semicolon
    separated exports are allowed alongside plain CSV.
    """

    filename = (file.filename or "").strip()
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file must have a name.",
        )

    content_type = (file.content_type or "").split(";", 1)[0].strip().lower()
    if not filename.lower().endswith(DELIMITED_TEXT_EXTENSIONS) and content_type not in DELIMITED_TEXT_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV or delimited text files are allowed.",
        )

    return file
