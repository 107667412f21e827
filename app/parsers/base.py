"""Base parser abstraction for line-oriented transaction files.

This module defines the result type every line parser returns and the abstract base class the import service
drives, so alternative layouts (or test doubles) can be swapped in without touching the orchestration.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from app.core.exceptions import ValidationError
from app.core.models import TransactionRecord


class ParseResult(BaseModel):
    """Outcome of parsing one line: either a record or an error message naming the field."""

    record: TransactionRecord | None = None
    error: str | None = None
    field: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the line produced a record."""
        return self.record is not None

    @classmethod
    def success(cls, record: TransactionRecord) -> "ParseResult":
        """Build a successful result."""
        return cls(record=record)

    @classmethod
    def failure(cls, field: str, error: str) -> "ParseResult":
        """Build a failed result for ``field``."""
        return cls(error=error, field=field)


class BaseLineParser(ABC):
    """Abstract base class for all line parsers."""

    @abstractmethod
    def parse(self, line: str) -> ParseResult:
        """Parse and validate a single line."""

    def parse_line(self, line: str) -> TransactionRecord:
        """Parse a line, raising ValidationError when it is invalid."""
        result = self.parse(line)
        if result.record is None:
            raise ValidationError(result.error or "Invalid line.", field=result.field)
        return result.record
