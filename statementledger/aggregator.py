"""Final ordering and totals for the ledger."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from .amounts import format_amount, parse_amount
from .errors import NoTransactionsFoundError
from .models import ExtractedStatement, StatementSummary, Transaction

logger = logging.getLogger(__name__)


class Aggregator:
    """Sort transactions by date and compute the credit/debit totals."""

    def aggregate(
        self,
        transactions: Iterable[Transaction],
        account_number: Optional[str] = None,
        statement_period: Optional[str] = None,
    ) -> ExtractedStatement:
        # sorted() is stable: same-day rows keep statement order
        ledger = sorted(transactions, key=lambda t: t.date)
        if not ledger:
            raise NoTransactionsFoundError()

        credits = sum((parse_amount(t.money_in) for t in ledger if t.money_in), Decimal("0"))
        debits = sum((parse_amount(t.money_out) for t in ledger if t.money_out), Decimal("0"))
        logger.info(f"Ledger holds {len(ledger)} transactions (credits {credits}, debits {debits})")

        return ExtractedStatement(
            transactions=ledger,
            metadata=StatementSummary(
                total_credits=format_amount(credits),
                total_debits=format_amount(debits),
                account_number=account_number,
                statement_period=statement_period,
            ),
        )
