"""
Statement Ledger Package

Turns the text of printed/scanned bank statements into a sorted ledger of
dated transactions with money in, money out and running balance.
"""

from .converter import StatementConverter
from .errors import (
    ConfigError,
    EmptyTextError,
    LedgerError,
    NoTransactionsFoundError,
    PdfError,
)
from .models import ExtractedStatement, StatementSummary, Transaction
from .rules import DEFAULT_RULES, RuleSet, load_rules

__version__ = "1.0.0"

__all__ = [
    "StatementConverter",
    "ExtractedStatement",
    "StatementSummary",
    "Transaction",
    "RuleSet",
    "DEFAULT_RULES",
    "load_rules",
    "LedgerError",
    "EmptyTextError",
    "NoTransactionsFoundError",
    "PdfError",
    "ConfigError",
]
