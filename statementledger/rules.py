# -*- coding: utf-8 -*-
"""rules.py
Pattern tables used by every stage of the pipeline.

All bank-specific knowledge (boilerplate, keywords, direction hints) lives in
a single immutable :class:`RuleSet` that is handed to each component when it
is built.  The defaults cover the common UK layouts; per-bank tweaks are
loaded from a JSON file with :func:`load_rules` and are *appended* to the
defaults unless the file asks to replace them.

The token grammars (dates and amounts) are not configurable and are exposed
as module constants.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Pattern, Tuple

from .errors import ConfigError

# ---------------------------------------------------------------------------
# Token grammars
# ---------------------------------------------------------------------------
MONTHS_RE = (
    r"Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?"
)

MONTH_NUMBERS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# "6 Aug", "06 August 2017", "6Aug".  Only a 4-digit year is taken so that
# an amount right after the month ("12 Jan 25.00") is never read as a year.
_DATE_BODY = rf"(?<![\d.,])(\d{{1,2}})\s*({MONTHS_RE})\b(?:\s+(\d{{4}})(?![\d.,]))?"

DATE_RE = re.compile(_DATE_BODY, re.IGNORECASE)
LEADING_DATE_RE = re.compile(rf"^\s*{_DATE_BODY}", re.IGNORECASE)

# 1,234.56 / 1234.56 / 1.234,56 - exactly two fractional digits.
AMOUNT_RE = re.compile(r"(?<![\d.,])(?:\d{1,3}(?:[,.]\d{3})+|\d+)[,.]\d{2}(?![.,]?\d)")

ALNUM_RE = re.compile(r"[A-Za-z0-9]")

# ---------------------------------------------------------------------------
# Default tables
# ---------------------------------------------------------------------------
SKIP_PATTERNS = (
    r"page\s+\d+\s+of\s+\d+",
    r"balance brought forward from previous page",
    r"continued",
    r"barclays bank",
    r"authorised by",
    r"regulated by",
    r"financial conduct",
    r"prudential regulation",
    r"register(?:ed)? no",
    r"sort code",
    r"\bdate\b.*\bdescription\b.*(?:debit|credit|balance|amount)",
    r"^\s*$",
    r"^[-=_]+$",
)

PAGE_MARKERS = (
    r"page\s+\d+\s+of\s+\d+",
    r"continued\s+page",
    r"balance\s+brought\s+forward",
)

BOILERPLATE_PATTERNS = (
    r"your business accounts",
    r"statement\s+from\b.*",
    r"important information",
    r"for more information",
    r"if you notice",
    r"any questions\??",
    r"get in touch",
    r"terms and conditions",
)

TRANSACTION_KEYWORDS = (
    "card payment",
    "card purchase",
    "direct debit",
    "direct credit",
    "internet banking",
    "on-line banking",
    "standing order",
    "commission",
    "balance",
    "deposit",
    "refund",
)

TRANSACTION_TYPE_PHRASES = (
    "Direct Debit",
    "Direct Credit",
    "Card Payment",
    "Card Purchase",
    "Standing Order",
    "Bill Payment",
    "Faster Payment",
    "On-line Bill",
    "Refund",
    "Transfer",
    "Payment",
)

TYPE_ABBREVIATIONS = (
    ("DD", "Direct Debit"),
    ("SO", "Standing Order"),
    ("BP", "Bill Payment"),
    ("FP", "Faster Payment"),
    ("TFR", "Transfer"),
    ("CR", "Credit"),
    ("DR", "Debit"),
    ("INT", "Interest"),
    ("FEE", "Fee"),
    ("CHG", "Charge"),
    ("REF", "Refund"),
    ("SAL", "Salary"),
    ("PEN", "Pension"),
    ("DIV", "Dividend"),
    ("ATM", "ATM Withdrawal"),
    ("CSH", "Cash"),
    ("CHQ", "Cheque"),
    ("BGC", "Bank Giro Credit"),
    ("FPI", "Faster Payment In"),
    ("FPO", "Faster Payment Out"),
    ("CHP", "CHAPS Payment"),
)

# Evaluated in order; the first hit decides.
MONEY_IN_PATTERNS = (
    r"(?:refund|credit|deposit|reversal|cashback|repayment)\s+(?:from|by|rcvd|received)",
    r"(?:transfer|payment|bgc|receipt|faster payment)\s+(?:from|by|rcvd|received)",
    r"(?:salary|wages|pension)\s+payment",
    r"(?:tax|vat|hmrc)\s+refund",
    r"(?:credit|payment)\s+received",
    r"^refund",
    r"^credit",
    r"^deposit",
    r"^salary",
    r"^pension",
    r"^reversal",
    r"^receipt",
    r"^bgc",
    r"^fpi",
    r"\bcredit\b",
    r"\brefund\b",
    r"\bdeposit\b",
)

MONEY_OUT_PATTERNS = (
    r"^(?:card\s+(?:payment|purchase)|direct\s+debit|standing\s+order|withdrawal|purchase|bill\s+payment|atm)",
    r"(?:transfer|payment)\s+(?:to|for|at)",
    r"(?:direct\s+debit|dd)\s+(?:to|for)",
    r"(?:card|purchase|payment)\s+(?:to|at|for)",
    r"^(?:commission|charges|fee|fpo|chaps)",
    r"\b(?:debit|bill|fee|charge)\b",
    r"\bwithdrawal\b",
    r"\bpurchase\b",
)

LEGAL_SUFFIXES = ("limited", "ltd", "plc", "inc", "llp", "llc")

SEPARATOR_WORDS = ("on", "at", "for", "from", "via", "by", "ref")

REFERENCE_PATTERNS = (
    r"\bref(?:erence)?\b[.:]?\s*\S+",
    r"\b\d{6,}\b",
)

TABLE_FIELDS = (
    "skip_patterns",
    "page_markers",
    "boilerplate_patterns",
    "transaction_keywords",
    "transaction_type_phrases",
    "type_abbreviations",
    "money_in_patterns",
    "money_out_patterns",
    "legal_suffixes",
    "separator_words",
    "reference_patterns",
)


# An empty table has to match nothing, not the empty string.
NEVER_MATCH = r"(?!)"


def alternation(parts) -> str:
    """Join regex fragments into one non-capturing alternation."""
    return "|".join(f"(?:{p})" for p in parts if p) or NEVER_MATCH


def _compile_all(patterns) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


@dataclass(frozen=True)
class RuleSet:
    """Immutable bundle of every pattern table the pipeline consults."""

    skip_patterns: Tuple[str, ...] = SKIP_PATTERNS
    page_markers: Tuple[str, ...] = PAGE_MARKERS
    boilerplate_patterns: Tuple[str, ...] = BOILERPLATE_PATTERNS
    transaction_keywords: Tuple[str, ...] = TRANSACTION_KEYWORDS
    transaction_type_phrases: Tuple[str, ...] = TRANSACTION_TYPE_PHRASES
    type_abbreviations: Tuple[Tuple[str, str], ...] = TYPE_ABBREVIATIONS
    money_in_patterns: Tuple[str, ...] = MONEY_IN_PATTERNS
    money_out_patterns: Tuple[str, ...] = MONEY_OUT_PATTERNS
    legal_suffixes: Tuple[str, ...] = LEGAL_SUFFIXES
    separator_words: Tuple[str, ...] = SEPARATOR_WORDS
    reference_patterns: Tuple[str, ...] = REFERENCE_PATTERNS

    # ------------------------------------------------------------------
    # Compiled views (computed once per instance)
    # ------------------------------------------------------------------
    @cached_property
    def skip_res(self) -> Tuple[Pattern, ...]:
        return _compile_all(self.skip_patterns)

    @cached_property
    def page_marker_re(self) -> Pattern:
        return re.compile(alternation(self.page_markers), re.IGNORECASE)

    @cached_property
    def boilerplate_res(self) -> Tuple[Pattern, ...]:
        return _compile_all(self.boilerplate_patterns)

    @cached_property
    def money_in_res(self) -> Tuple[Pattern, ...]:
        return _compile_all(self.money_in_patterns)

    @cached_property
    def money_out_res(self) -> Tuple[Pattern, ...]:
        return _compile_all(self.money_out_patterns)

    @cached_property
    def reference_res(self) -> Tuple[Pattern, ...]:
        return _compile_all(self.reference_patterns)

    @cached_property
    def keywords_lower(self) -> Tuple[str, ...]:
        return tuple(k.lower() for k in self.transaction_keywords)

    @cached_property
    def abbreviation_map(self) -> Dict[str, str]:
        return dict(self.type_abbreviations)

    # ------------------------------------------------------------------
    # Line predicates
    # ------------------------------------------------------------------
    def is_skip(self, line: str) -> bool:
        return any(p.search(line) for p in self.skip_res)

    def starts_with_page_marker(self, line: str) -> bool:
        return self.page_marker_re.match(line.lstrip()) is not None

    def has_transaction_keyword(self, line: str) -> bool:
        low = line.lower()
        return any(k in low for k in self.keywords_lower)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    def extend(self, **tables) -> "RuleSet":
        """Return a copy with extra entries appended to the named tables."""
        changes = {}
        for name, values in tables.items():
            if name not in TABLE_FIELDS:
                raise ConfigError(f"Unknown rule table: {name}")
            changes[name] = getattr(self, name) + _as_table(name, values)
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base: Optional["RuleSet"] = None) -> "RuleSet":
        """Build a rule set from a JSON-style mapping.

        Lists extend ``base`` (the defaults when omitted).  With
        ``"replace": true`` they replace the corresponding tables instead.
        """
        base = base or DEFAULT_RULES
        data = dict(data)
        replace_tables = bool(data.pop("replace", False))
        unknown = set(data) - set(TABLE_FIELDS)
        if unknown:
            raise ConfigError(f"Unknown rule table(s): {', '.join(sorted(unknown))}")

        for name, values in data.items():
            for pattern in _as_table(name, values):
                if name.endswith("_patterns") or name == "page_markers":
                    try:
                        re.compile(pattern)
                    except re.error as e:
                        raise ConfigError(f"Invalid pattern in {name}: {pattern!r} ({e})")

        if replace_tables:
            return replace(base, **{name: _as_table(name, values) for name, values in data.items()})
        return base.extend(**data)


def _as_table(name: str, values) -> tuple:
    if name == "type_abbreviations":
        if isinstance(values, Mapping):
            return tuple((str(k), str(v)) for k, v in values.items())
        return tuple((str(k), str(v)) for k, v in values)
    if isinstance(values, str):
        raise ConfigError(f"Rule table {name} must be a list, not a string")
    return tuple(str(v) for v in values)


DEFAULT_RULES = RuleSet()


def load_rules(path, base: Optional[RuleSet] = None) -> RuleSet:
    """Read a JSON rule file (see :meth:`RuleSet.from_dict`)."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load rules from {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Rule file {path} must contain a JSON object")
    return RuleSet.from_dict(data, base=base)


__all__ = [
    "ALNUM_RE",
    "AMOUNT_RE",
    "DATE_RE",
    "DEFAULT_RULES",
    "LEADING_DATE_RE",
    "MONTH_NUMBERS",
    "NEVER_MATCH",
    "RuleSet",
    "alternation",
    "load_rules",
]
