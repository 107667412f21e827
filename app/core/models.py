"""Pydantic models for the CNAB Store importer.

This module defines the records produced by the line parser, the aggregate returned by an import, and the
store summaries served by the read endpoints. All models serialize with camelCase keys.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from app.core.transaction_types import TransactionType


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases while accepting field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TransactionRecord(CamelModel):
    """A single CNAB line after parsing and validation."""

    type: TransactionType
    occurred_at: datetime
    value: Decimal
    cpf: str
    card: str
    store_owner: str
    store_name: str

    @field_serializer("value", when_used="json")
    def serialize_value(self, value: Decimal) -> float:
        return float(value)


class ImportSuccess(CamelModel):
    """A line that was parsed and staged for persistence."""

    line_number: int
    transaction: TransactionRecord


class ImportFailure(CamelModel):
    """A line that failed validation."""

    line_number: int
    error: str
    raw_line: str


class ImportResult(CamelModel):
    """Aggregate outcome of importing one CNAB stream."""

    total_lines: int
    imported_count: int
    failed_count: int
    imported: list[ImportSuccess]
    failed: list[ImportFailure]


class StoreSummary(CamelModel):
    """A store and its balance."""

    store_id: int
    store_name: str
    owner_name: str
    total_balance: Decimal

    @field_serializer("total_balance", when_used="json")
    def serialize_balance(self, value: Decimal) -> float:
        return float(value)


class StoreSummaryPage(CamelModel):
    """One page of store summaries."""

    page: int
    page_size: int
    total_items: int
    total_pages: int
    items: list[StoreSummary]


class StoredTransaction(CamelModel):
    """A persisted transaction as returned by the store detail endpoint."""

    id: int
    type: TransactionType
    description: str
    nature: str
    occurred_at: datetime
    value: Decimal
    cpf: str
    card: str

    @field_serializer("value", when_used="json")
    def serialize_value(self, value: Decimal) -> float:
        return float(value)


class StoreTransactionsPage(CamelModel):
    """A store, its balance and one page of its transactions."""

    store: StoreSummary
    page: int
    page_size: int
    total_items: int
    total_pages: int
    items: list[StoredTransaction]


class TransactionTypeOut(CamelModel):
    """Public view of a transaction type."""

    code: int
    description: str
    nature: str
    sign: int
