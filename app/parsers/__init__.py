"""Parsers package: turns raw CNAB lines into validated transaction records."""

from .base import BaseLineParser, ParseResult  # noqa: F401
from .cnab_line_parser import CnabLineParser, parse_line  # noqa: F401
