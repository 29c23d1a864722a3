"""Data containers passed between the pipeline stages."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TransactionCandidate:
    """Lines believed to describe one transaction, anchored by a date token."""

    text: str
    anchor_date: str
    page: int = 1


@dataclass
class RunningState:
    """Per-statement state carried from one line/candidate to the next.

    Created at the start of a statement and thrown away at the end; never
    shared between statements.
    """

    last_valid_date: Optional[str] = None
    current_balance: Optional[Decimal] = Decimal("0")


@dataclass(frozen=True)
class Transaction:
    """One ledger row.  Amount fields are formatted strings like ``1,234.56``."""

    date: str
    description: str
    money_in: Optional[str]
    money_out: Optional[str]
    balance: str

    def __post_init__(self):
        if self.money_in is not None and self.money_out is not None:
            raise ValueError("A transaction cannot be both money in and money out")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "description": self.description,
            "moneyIn": self.money_in,
            "moneyOut": self.money_out,
            "balance": self.balance,
        }


@dataclass(frozen=True)
class StatementSummary:
    total_credits: str
    total_debits: str
    account_number: Optional[str] = None
    statement_period: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"totalCredits": self.total_credits, "totalDebits": self.total_debits}
        if self.account_number:
            data["accountNumber"] = self.account_number
        if self.statement_period:
            data["statementPeriod"] = self.statement_period
        return data


@dataclass
class ExtractedStatement:
    """The finished ledger plus its summary metadata."""

    transactions: List[Transaction] = field(default_factory=list)
    metadata: Optional[StatementSummary] = None

    def __len__(self) -> int:
        return len(self.transactions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "metadata": self.metadata.to_dict() if self.metadata else {},
        }
