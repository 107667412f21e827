"""CnabLineParser: fixed-width parsing and validation of a single CNAB line.

Layout (offset, width):

    type          0   1   transaction type code
    date          1   8   YYYYMMDD
    value         9  10   amount in cents, unsigned
    cpf          19  11   beneficiary CPF
    card         30  12   card number, may be masked
    time         42   6   HHMMSS
    store owner  48  14   free text
    store name   62   -   free text, rest of the line

Lines carrying U+FFFD (bytes the stream decoder could not read) are rejected as a whole.

The parser never raises for bad input. Every violation comes back as a ParseResult naming the field, with a
message the import result shows to the caller verbatim.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import NamedTuple

from app.core.models import TransactionRecord
from app.core.transaction_types import lookup_transaction_type
from app.core.utils import get_logger
from app.parsers.base import BaseLineParser, ParseResult

logger = get_logger("cnab-store.parser")

CENTS = Decimal("0.01")
# What the stream decoder substitutes for bytes it cannot decode
UNDECODABLE = "\ufffd"


class FieldSpec(NamedTuple):
    """Position of a fixed-width field in a CNAB line."""

    name: str
    offset: int
    width: int | None

    def slice(self, line: str) -> str:
        """Cut this field out of ``line``."""
        if self.width is None:
            return line[self.offset :]
        return line[self.offset : self.offset + self.width]


TYPE = FieldSpec("type", 0, 1)
DATE = FieldSpec("date", 1, 8)
VALUE = FieldSpec("value", 9, 10)
CPF = FieldSpec("cpf", 19, 11)
CARD = FieldSpec("card", 30, 12)
TIME = FieldSpec("time", 42, 6)
STORE_OWNER = FieldSpec("store_owner", 48, 14)
STORE_NAME = FieldSpec("store_name", 62, None)

MIN_LINE_LENGTH = STORE_NAME.offset


def _is_digits(text: str, width: int) -> bool:
    # str.isdigit alone accepts non-ASCII digits such as superscripts
    return len(text) == width and text.isascii() and text.isdigit()


class CnabLineParser(BaseLineParser):
    """Parser for the CNAB transaction layout."""

    def parse(self, line: str) -> ParseResult:  # noqa: C901, PLR0911
        """Parse and validate one CNAB line."""
        if line is None or not line.strip():
            return ParseResult.failure("line", "CNAB line cannot be null or whitespace.")
        if UNDECODABLE in line:
            return ParseResult.failure("line", "Line contains undecodable bytes.")
        if len(line) < MIN_LINE_LENGTH:
            return ParseResult.failure(
                "line", f"Line too short: expected at least {MIN_LINE_LENGTH} characters, got {len(line)}."
            )

        type_str = TYPE.slice(line)
        if not _is_digits(type_str, TYPE.width):
            return ParseResult.failure(TYPE.name, f"Invalid transaction type format: '{type_str}'.")
        txn_type = lookup_transaction_type(int(type_str))
        if txn_type is None:
            return ParseResult.failure(TYPE.name, f"Invalid transaction type value: '{type_str}'.")

        date_str = DATE.slice(line)
        if not _is_digits(date_str, DATE.width):
            return ParseResult.failure(DATE.name, f"Invalid date format (non-digit characters): '{date_str}'.")
        try:
            occurred_on = date(int(date_str[0:4]), int(date_str[4:6]), int(date_str[6:8]))
        except ValueError:
            return ParseResult.failure(DATE.name, f"Invalid date value: '{date_str}'.")

        time_str = TIME.slice(line)
        if not _is_digits(time_str, TIME.width):
            return ParseResult.failure(TIME.name, f"Invalid time format (non-digit characters): '{time_str}'.")
        try:
            occurred_time = time(int(time_str[0:2]), int(time_str[2:4]), int(time_str[4:6]))
        except ValueError:
            return ParseResult.failure(TIME.name, f"Invalid time value: '{time_str}'.")

        # Naive on purpose: the source files carry local time without an offset
        occurred_at = datetime.combine(occurred_on, occurred_time)

        value_str = VALUE.slice(line)
        if not _is_digits(value_str, VALUE.width):
            return ParseResult.failure(VALUE.name, f"Invalid transaction value format: '{value_str}'.")
        value = (Decimal(int(value_str)) / 100 * txn_type.sign).quantize(CENTS)
        if value.is_zero():
            # zero-amount expenses come out as -0.00
            value = value.copy_abs()

        cpf = CPF.slice(line)
        if not _is_digits(cpf, CPF.width):
            return ParseResult.failure(CPF.name, f"Invalid CPF format: '{cpf}'. Expected 11 digits.")

        card = CARD.slice(line).strip()
        if not card:
            return ParseResult.failure(CARD.name, "Card field cannot be empty.")

        store_owner = STORE_OWNER.slice(line).strip()
        if not store_owner:
            return ParseResult.failure(STORE_OWNER.name, "Store owner cannot be empty.")

        store_name = STORE_NAME.slice(line).strip()
        if not store_name:
            return ParseResult.failure(STORE_NAME.name, "Store name cannot be empty.")

        record = TransactionRecord(
            type=txn_type,
            occurred_at=occurred_at,
            value=value,
            cpf=cpf,
            card=card,
            store_owner=store_owner,
            store_name=store_name,
        )
        logger.debug(f"Parsed {txn_type.name} of {value} for store '{store_name}'")
        return ParseResult.success(record)


_default_parser = CnabLineParser()


def parse_line(line: str) -> TransactionRecord:
    """Parse one CNAB line with the default parser, raising ValidationError when it is invalid."""
    return _default_parser.parse_line(line)
