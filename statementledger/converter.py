"""Runs statement text through the full extraction pipeline.

normalize -> segment -> (extract fields, clean description, classify) per
candidate -> aggregate.  Every call works on its own :class:`RunningState`,
so one converter can serve many statements, including concurrently.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .aggregator import Aggregator
from .amounts import format_amount
from .classifier import Direction, DirectionClassifier
from .descriptions import DescriptionCleaner
from .errors import EmptyTextError, LedgerError, NoTransactionsFoundError
from .export import write_ledger
from .fields import FieldExtractor, extract_statement_details
from .models import ExtractedStatement, RunningState, Transaction, TransactionCandidate
from .normalizer import TextNormalizer
from .pdf_text import PdfSource, extract_text
from .rules import ALNUM_RE, DEFAULT_RULES, RuleSet
from .segmenter import TransactionSegmenter

logger = logging.getLogger(__name__)


class StatementConverter:
    def __init__(self, rules: RuleSet = DEFAULT_RULES, default_year: Optional[int] = None):
        self.rules = rules
        self.normalizer = TextNormalizer(rules)
        self.segmenter = TransactionSegmenter(rules)
        self.extractor = FieldExtractor(rules, default_year=default_year)
        self.cleaner = DescriptionCleaner(rules)
        self.classifier = DirectionClassifier(rules)
        self.aggregator = Aggregator()

    # ------------------------------------------------------------------
    # Single statement
    # ------------------------------------------------------------------
    def convert_text(self, text: str, opening_balance: Optional[Decimal] = None) -> ExtractedStatement:
        """Build the ledger for one statement's extracted text."""
        transactions = self.extract_transactions(text, opening_balance)
        details = extract_statement_details(text)
        return self.aggregator.aggregate(transactions, **details)

    def extract_transactions(self, text: str, opening_balance: Optional[Decimal] = None) -> List[Transaction]:
        """Unsorted ledger rows for one statement (no totals, no empty check)."""
        if not text or not ALNUM_RE.search(text):
            raise EmptyTextError()

        lines = self.normalizer.normalize(text)
        logger.info(f"Normalized statement into {len(lines)} lines")

        state = RunningState(current_balance=Decimal("0") if opening_balance is None else opening_balance)
        transactions: List[Transaction] = []
        for candidate in self.segmenter.segment(lines, state):
            txn = self._process_candidate(candidate, state)
            if txn is not None:
                transactions.append(txn)
        logger.info(f"Extracted {len(transactions)} transactions")
        return transactions

    def _process_candidate(self, candidate: TransactionCandidate, state: RunningState) -> Optional[Transaction]:
        fields = self.extractor.extract(candidate.text)
        if fields is None:
            return None

        result = self.classifier.resolve(fields.amounts, candidate.text, state)
        if not result.is_transaction:
            return None

        amount = format_amount(result.amount)
        return Transaction(
            date=fields.date,
            description=self.cleaner.clean(fields.leftover),
            money_in=amount if result.direction is Direction.IN else None,
            money_out=amount if result.direction is Direction.OUT else None,
            balance=format_amount(result.balance),
        )

    def convert_pdf(self, source: PdfSource, password: Optional[str] = None) -> ExtractedStatement:
        return self.convert_text(extract_text(source, password=password))

    # ------------------------------------------------------------------
    # Several statements
    # ------------------------------------------------------------------
    def convert_many(self, sources: Iterable[Union[str, Path]], password: Optional[str] = None) -> ExtractedStatement:
        """Merge several statements into one ledger.

        Each statement keeps its own running state; a statement that fails is
        logged and skipped.  ``.txt`` sources are read as extracted text.
        """
        transactions: List[Transaction] = []
        details = {}
        for source in sources:
            try:
                text = self._load_text(source, password)
                transactions.extend(self.extract_transactions(text))
                for key, value in extract_statement_details(text).items():
                    details.setdefault(key, value)
            except LedgerError as e:
                logger.warning(f"Skipping {source}: {e.user_message}")
                continue
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping {source}: {str(e)}")
                continue

        if not transactions:
            raise NoTransactionsFoundError()
        return self.aggregator.aggregate(transactions, **details)

    def convert(self, paths: Iterable[Union[str, Path]], output_path, fmt: Optional[str] = None,
                password: Optional[str] = None) -> ExtractedStatement:
        """Convert statement files and write the merged ledger to *output_path*."""
        statement = self.convert_many(paths, password=password)
        write_ledger(statement, output_path, fmt)
        return statement

    @staticmethod
    def _load_text(source: Union[str, Path], password: Optional[str]) -> str:
        path = Path(source)
        if path.suffix.lower() == ".txt":
            return path.read_text(encoding="utf-8")
        return extract_text(path, password=password)
