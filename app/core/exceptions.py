"""Exception hierarchy for the CNAB Store importer.

Per-line problems are reported as ``ValidationError`` and collected into the
import result. Everything else is fatal to the import that raised it.
"""

from typing import Any


class CnabStoreError(Exception):
    """Base exception for all CNAB Store errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize the exception with a message and optional details."""
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(CnabStoreError):
    """Raised when a CNAB line violates the record layout."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None) -> None:
        """Initialize the error with the offending field name."""
        super().__init__(message, details)
        self.field = field


class InvalidUploadError(CnabStoreError):
    """Raised when an upload is missing or empty."""


class StreamReadError(CnabStoreError):
    """Raised when the input stream cannot be read."""


class StorageError(CnabStoreError):
    """Raised when staged stores and transactions cannot be committed."""


class ImportCancelledError(CnabStoreError):
    """Raised when the caller cancels an import before it is committed."""
