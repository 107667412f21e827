"""CNAB transaction types and their income/expense metadata."""

from enum import IntEnum
from types import MappingProxyType
from typing import NamedTuple


class TransactionType(IntEnum):
    """Transaction type code found in the first column of a CNAB line."""

    DEBIT = 1
    BOLETO = 2
    FINANCING = 3
    CREDIT = 4
    LOAN_RECEIPT = 5
    SALES = 6
    TED_RECEIPT = 7
    DOC_RECEIPT = 8
    RENT = 9

    @property
    def info(self) -> "TransactionTypeInfo":
        """Metadata for this type."""
        return TRANSACTION_TYPES[self]

    @property
    def sign(self) -> int:
        """+1 for income, -1 for expense."""
        return TRANSACTION_TYPES[self].sign


class TransactionTypeInfo(NamedTuple):
    """Description, nature and sign of a transaction type."""

    type: TransactionType
    description: str
    nature: str
    sign: int


INCOME = "Income"
EXPENSE = "Expense"

TRANSACTION_TYPES = MappingProxyType(
    {
        TransactionType.DEBIT: TransactionTypeInfo(TransactionType.DEBIT, "Debit", INCOME, 1),
        TransactionType.BOLETO: TransactionTypeInfo(TransactionType.BOLETO, "Boleto", EXPENSE, -1),
        TransactionType.FINANCING: TransactionTypeInfo(TransactionType.FINANCING, "Financing", EXPENSE, -1),
        TransactionType.CREDIT: TransactionTypeInfo(TransactionType.CREDIT, "Credit", INCOME, 1),
        TransactionType.LOAN_RECEIPT: TransactionTypeInfo(TransactionType.LOAN_RECEIPT, "Loan Receipt", INCOME, 1),
        TransactionType.SALES: TransactionTypeInfo(TransactionType.SALES, "Sales", INCOME, 1),
        TransactionType.TED_RECEIPT: TransactionTypeInfo(TransactionType.TED_RECEIPT, "TED Receipt", INCOME, 1),
        TransactionType.DOC_RECEIPT: TransactionTypeInfo(TransactionType.DOC_RECEIPT, "DOC Receipt", INCOME, 1),
        TransactionType.RENT: TransactionTypeInfo(TransactionType.RENT, "Rent", EXPENSE, -1),
    }
)


def lookup_transaction_type(code: int) -> TransactionType | None:
    """Return the type for a numeric code, or None when the code is unknown."""
    try:
        return TransactionType(code)
    except ValueError:
        return None
