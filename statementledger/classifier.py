# -*- coding: utf-8 -*-
"""classifier.py
Money-in / money-out decision for one candidate.

The amount tokens of a candidate are read right to left: the last one is the
new running balance and the one before it is the transaction amount.  A
candidate with a single amount is a balance-only line ("Balance brought
forward 500.00") and only moves the running balance.

Direction comes from an ordered rule table, first match wins:

1. money-in keyword patterns;
2. the balance-increase rule (new balance above the previous one);
3. money-out keyword patterns;
4. otherwise money out.

Money-out keyword rules never change the direction, only the rule name
recorded on the :class:`Classification`.  The running balance of a statement
starts at zero unless an opening balance is given, so a first row whose
balance is positive reads as money in.

The balance-increase rule is a heuristic.  A run of debits that straddles a
rounding or float adjustment can push the balance up and be read as money
in; keyword rules are checked first so a clear description always wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Pattern, Sequence

from .models import RunningState
from .rules import DEFAULT_RULES, RuleSet

logger = logging.getLogger(__name__)

__all__ = [
    "BalanceIncreaseRule",
    "CandidateKind",
    "Classification",
    "Direction",
    "DirectionClassifier",
    "KeywordRule",
]


class Direction(Enum):
    IN = "in"
    OUT = "out"


class CandidateKind(Enum):
    NO_AMOUNT = "no_amount"
    BALANCE_ONLY = "balance_only"
    TRANSACTION = "transaction"


@dataclass(frozen=True)
class Classification:
    kind: CandidateKind
    balance: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    direction: Optional[Direction] = None
    rule: str = ""

    @property
    def is_transaction(self) -> bool:
        return self.kind is CandidateKind.TRANSACTION


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class KeywordRule:
    pattern: Pattern
    direction: Direction

    @property
    def name(self) -> str:
        return f"{self.direction.value}:{self.pattern.pattern}"

    def matches(self, text: str, new_balance: Decimal, previous_balance: Optional[Decimal]) -> bool:
        return self.pattern.search(text) is not None


@dataclass(frozen=True)
class BalanceIncreaseRule:
    direction: Direction = Direction.IN
    name: str = "balance-increase"

    def matches(self, text: str, new_balance: Decimal, previous_balance: Optional[Decimal]) -> bool:
        # Unknown previous balance gives no evidence either way.
        return previous_balance is not None and new_balance > previous_balance


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------
class DirectionClassifier:
    def __init__(self, rules: RuleSet = DEFAULT_RULES):
        self.rules = rules
        self.rule_table: List = (
            [KeywordRule(p, Direction.IN) for p in rules.money_in_res]
            + [BalanceIncreaseRule()]
            + [KeywordRule(p, Direction.OUT) for p in rules.money_out_res]
        )

    def classify(
        self, amounts: Sequence[Decimal], text: str, previous_balance: Optional[Decimal]
    ) -> Classification:
        """Pure classification of one candidate; no state is touched."""
        if not amounts:
            return Classification(CandidateKind.NO_AMOUNT)
        if len(amounts) == 1:
            return Classification(CandidateKind.BALANCE_ONLY, balance=amounts[0], rule="single-amount")

        balance, amount = amounts[-1], amounts[-2]
        for rule in self.rule_table:
            if rule.matches(text, balance, previous_balance):
                return Classification(CandidateKind.TRANSACTION, balance, abs(amount), rule.direction, rule.name)
        return Classification(CandidateKind.TRANSACTION, balance, abs(amount), Direction.OUT, "default")

    def resolve(self, amounts: Sequence[Decimal], text: str, state: RunningState) -> Classification:
        """Classify and move ``state.current_balance`` to the candidate's balance."""
        result = self.classify(amounts, text, state.current_balance)
        if result.kind is CandidateKind.NO_AMOUNT:
            logger.debug(f"No amounts found in candidate: {text!r}")
            return result

        if result.kind is CandidateKind.BALANCE_ONLY:
            logger.debug(f"Single amount found - treating as balance: {result.balance}")
        else:
            logger.debug(f"Classified as money {result.direction.value} by rule {result.rule}: {text!r}")
        state.current_balance = result.balance
        return result
