# -*- coding: utf-8 -*-
"""descriptions.py
Reduce the leftover text of a transaction to a short readable label.

The cleaner is lossy: statement descriptions carry card numbers,
references, location fragments and legal suffixes that nobody wants in a
ledger.  The pipeline is

1. pull off a leading transaction-type phrase ("Direct Debit to", "Refund
   from", or an abbreviation such as ``DD``) and keep it aside;
2. strip date/amount fragments, reference codes, legal suffixes and
   decorative punctuation;
3. split on separator words and keep the first segment that reads like a
   name;
4. title-case it and put the type phrase back in front.

Anything that ends up shorter than three characters, or without two letters
in a row, becomes ``"Unknown Transaction"``.
"""
from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from .rules import AMOUNT_RE, DATE_RE, DEFAULT_RULES, RuleSet, alternation

logger = logging.getLogger(__name__)

UNKNOWN_DESCRIPTION = "Unknown Transaction"

_REF_CODE_RE = re.compile(r"\b(?=[A-Z0-9]*\d)[A-Z0-9]{6,}\b")
_ON_DATE_RE = re.compile(r"\bon\s+\d{1,2}\s+[A-Za-z]{3,}\b", re.IGNORECASE)
_ORPHAN_DECIMAL_RE = re.compile(r"(?<!\d)[.,]\d{2}(?!\d)")
_DECORATION_RE = re.compile(r"[*#|_~£$€@<>\[\]{}()\"]+|\s-+\s|^-+|-+$")
_WS_RE = re.compile(r"\s+")
_VALID_RE = re.compile(r"[A-Za-z]{2,}")


class DescriptionCleaner:
    """Turn raw leftover text into a ledger description."""

    def __init__(self, rules: RuleSet = DEFAULT_RULES):
        self.rules = rules
        phrases = sorted(rules.transaction_type_phrases, key=len, reverse=True)
        self._phrase_re = re.compile(
            r"^\W*(" + alternation(re.escape(p) for p in phrases) + r")\b(?:\s+(to|from)\b)?",
            re.IGNORECASE,
        )
        self._canonical = {p.lower(): p for p in phrases}
        suffixes = alternation(re.escape(s) for s in rules.legal_suffixes)
        self._suffix_re = re.compile(rf"\b(?:{suffixes})\b\.?", re.IGNORECASE)
        separators = alternation(re.escape(w) for w in rules.separator_words)
        self._separator_re = re.compile(rf"\s*(?:,|\b(?:{separators})\b)\s*", re.IGNORECASE)

    def clean(self, text: Optional[str]) -> str:
        if not text or not text.strip():
            return UNKNOWN_DESCRIPTION

        type_phrase, rest = self.split_type_phrase(text.strip())
        name = self._title_case(self._pick_segment(self._strip_noise(rest)))

        if type_phrase:
            description = f"{type_phrase} {name}".strip() if name else self._bare_phrase(type_phrase)
        else:
            description = name

        if len(description) < 3 or not _VALID_RE.search(description):
            logger.debug(f"Unresolvable description {text!r}; using fallback")
            return UNKNOWN_DESCRIPTION
        return description

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def split_type_phrase(self, text: str) -> Tuple[Optional[str], str]:
        """Return ``(type phrase incl. connector, remaining text)``."""
        m = self._phrase_re.match(text)
        if m:
            phrase = self._canonical[m.group(1).lower()]
            if m.group(2):
                phrase = f"{phrase} {m.group(2).lower()}"
            return phrase, text[m.end():].strip()

        head, _, tail = text.partition(" ")
        expansion = self.rules.abbreviation_map.get(head.strip(".:"))
        if expansion:
            return expansion, tail.strip()
        return None, text

    def _strip_noise(self, text: str) -> str:
        text = _ON_DATE_RE.sub(" ", text)
        text = DATE_RE.sub(" ", text)
        text = AMOUNT_RE.sub(" ", text)
        text = _ORPHAN_DECIMAL_RE.sub(" ", text)
        for pattern in self.rules.reference_res:
            text = pattern.sub(" ", text)
        text = _REF_CODE_RE.sub(" ", text)
        text = self._suffix_re.sub(" ", text)
        text = _DECORATION_RE.sub(" ", text)
        return _WS_RE.sub(" ", text).strip(" ,.;:-/")

    def _pick_segment(self, text: str) -> str:
        parts = [p.strip(" ,.;:-/") for p in self._separator_re.split(text)]
        for part in parts:
            if len(part) > 2 and re.search(r"[A-Za-z]", part) and not part.isdigit():
                return part
        return parts[0] if parts else ""

    @staticmethod
    def _title_case(text: str) -> str:
        return " ".join(w[:1].upper() + w[1:].lower() for w in text.split())

    @staticmethod
    def _bare_phrase(phrase: str) -> str:
        # "Direct Debit to" with nothing after it reads better without "to"
        return re.sub(r"\s+(?:to|from)$", "", phrase)
