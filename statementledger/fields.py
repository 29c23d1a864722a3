"""Field extraction from a single transaction candidate."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .amounts import parse_amount
from .rules import AMOUNT_RE, DATE_RE, DEFAULT_RULES, MONTH_NUMBERS, RuleSet

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")

ACCOUNT_NUMBER_RE = re.compile(r"account\s*(?:number|no\.?)\s*:?\s*(\d[\d -]{4,}\d)", re.IGNORECASE)
STATEMENT_PERIOD_RE = re.compile(
    r"(?:statement\s+(?:period|from)|period)\s*:?\s*"
    r"(\d{1,2}\s+[A-Za-z]{3,9}\s+\d{4})\s*(?:to|-|–)\s*(\d{1,2}\s+[A-Za-z]{3,9}\s+\d{4})",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ExtractedFields:
    date: str  # ISO-8601
    date_token: str
    amount_tokens: Tuple[str, ...]
    amounts: Tuple[Decimal, ...]
    leftover: str


def format_date_token(token: str, default_year: int) -> Optional[str]:
    """``"6 Aug"`` -> ``"<default_year>-08-06"``; ``None`` for impossible dates."""
    m = DATE_RE.search(token)
    if not m:
        return None
    day, month_name, year = m.groups()
    month = MONTH_NUMBERS[month_name[:3].lower()]
    try:
        return date(int(year) if year else default_year, month, int(day)).isoformat()
    except ValueError:
        return None


class FieldExtractor:
    """Pull the date, the amounts and the leftover text out of a candidate."""

    def __init__(self, rules: RuleSet = DEFAULT_RULES, default_year: Optional[int] = None):
        self.rules = rules
        self.default_year = default_year

    @property
    def year(self) -> int:
        return self.default_year or datetime.now().year

    def extract(self, text: str) -> Optional[ExtractedFields]:
        m_date = DATE_RE.search(text)
        if not m_date:
            logger.debug(f"No date found in candidate: {text!r}")
            return None

        iso = format_date_token(m_date.group(0), self.year)
        if iso is None:
            logger.debug(f"Could not format date: {m_date.group(0)!r}")
            return None

        amount_tokens = tuple(AMOUNT_RE.findall(text))

        leftover = text[: m_date.start()] + " " + text[m_date.end():]
        leftover = AMOUNT_RE.sub(" ", leftover)
        for pattern in self.rules.reference_res:
            leftover = pattern.sub(" ", leftover)
        leftover = _WS_RE.sub(" ", leftover).strip()

        return ExtractedFields(
            date=iso,
            date_token=m_date.group(0),
            amount_tokens=amount_tokens,
            amounts=tuple(parse_amount(t) for t in amount_tokens),
            leftover=leftover,
        )


def extract_statement_details(text: str) -> Dict[str, str]:
    """Account number and statement period, when the raw text states them."""
    details: Dict[str, str] = {}
    if not text:
        return details

    m_acc = ACCOUNT_NUMBER_RE.search(text)
    if m_acc:
        details["account_number"] = re.sub(r"[\s-]", "", m_acc.group(1))

    m_period = STATEMENT_PERIOD_RE.search(text)
    if m_period:
        details["statement_period"] = f"{m_period.group(1)} to {m_period.group(2)}"
    return details
