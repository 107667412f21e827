"""Upload handling for CNAB files."""

from fastapi import UploadFile

from app.core.exceptions import InvalidUploadError
from app.core.utils import get_logger

logger = get_logger("cnab-store.files")


async def read_upload_file(file: UploadFile | None) -> bytes:
    """Read an uploaded CNAB file fully, rejecting missing or empty uploads."""
    if file is None:
        raise InvalidUploadError("CNAB file is required.")
    data = await file.read()
    if not data:
        logger.warning(f"Rejected empty upload: {file.filename}")
        raise InvalidUploadError("CNAB file is required.", {"filename": file.filename})
    logger.info(f"Received upload: filename={file.filename}, size={len(data)} bytes")
    return data
