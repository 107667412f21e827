"""Core package: provides models, database helpers, settings, exceptions, and shared utilities."""

from .db import DBHelper, Store, Transaction, get_db  # noqa: F401
from .models import ImportResult, TransactionRecord  # noqa: F401
from .settings import Settings  # noqa: F401
from .transaction_types import TransactionType  # noqa: F401
from .utils import get_logger  # noqa: F401
