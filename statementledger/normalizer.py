# -*- coding: utf-8 -*-
"""normalizer.py
Turns raw extracted statement text into clean physical lines.

PDF text extraction hands us page breaks as form feeds, repeated footers and
legal notices, and transaction rows that were soft-wrapped over several
physical lines.  :class:`TextNormalizer` undoes as much of that as it can
without knowing anything about the bank:

* line terminators and form feeds become plain ``\\n``;
* known boilerplate phrases are cut out and boilerplate lines are dropped;
* page markers ("Page 2 of 3", "Balance brought forward") are moved to the
  start of their own line so the segmenter can see the page boundary;
* a line that does not start with a date is glued back onto the previous
  line, unless that line already ends with an amount/balance pair.

The clean-up steps are repeated until nothing changes, so normalizing the
output a second time is a no-op.
"""
from __future__ import annotations

import logging
import re
from typing import List

from .rules import AMOUNT_RE, DEFAULT_RULES, LEADING_DATE_RE, RuleSet

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\f")
_WS_RE = re.compile(r"\s+")


class TextNormalizer:
    """Clean raw statement text into a list of trimmed, non-empty lines."""

    def __init__(self, rules: RuleSet = DEFAULT_RULES):
        self.rules = rules

    def normalize(self, text: str) -> List[str]:
        if not text:
            return []

        lines = self.unify_line_breaks(text).split("\n")
        passes = 0
        while True:
            passes += 1
            cleaned = self.rejoin_wrapped(self._drop_boilerplate(self._split_markers(lines)))
            if cleaned == lines:
                break
            lines = cleaned

        logger.debug(f"Normalized text into {len(lines)} lines after {passes} passes")
        return lines

    # ------------------------------------------------------------------
    # Individual steps
    # ------------------------------------------------------------------
    @staticmethod
    def unify_line_breaks(text: str) -> str:
        return _LINE_BREAK_RE.sub("\n", text)

    def _split_markers(self, lines: List[str]) -> List[str]:
        """Strip boilerplate phrases, break before page markers, collapse spaces."""
        out: List[str] = []
        for line in lines:
            for pattern in self.rules.boilerplate_res:
                line = pattern.sub(" ", line)
            line = self.rules.page_marker_re.sub(lambda m: "\n" + m.group(0), line)
            for piece in line.split("\n"):
                piece = _WS_RE.sub(" ", piece).strip()
                if piece:
                    out.append(piece)
        return out

    def _drop_boilerplate(self, lines: List[str]) -> List[str]:
        # Page-marker lines survive even when they look like boilerplate:
        # they delimit pages for the segmenter.
        return [
            line
            for line in lines
            if self.rules.starts_with_page_marker(line) or not self.rules.is_skip(line)
        ]

    def rejoin_wrapped(self, lines: List[str]) -> List[str]:
        """Glue soft-wrapped continuation lines onto the line they belong to."""
        out: List[str] = []
        for line in lines:
            if (
                out
                and not LEADING_DATE_RE.match(line)
                and not self.rules.starts_with_page_marker(line)
                and not self._is_terminated(out[-1])
            ):
                out[-1] = f"{out[-1]} {line}"
            else:
                out.append(line)
        return out

    def _is_terminated(self, line: str) -> bool:
        """True when *line* already carries a full transaction or is a page marker."""
        if self.rules.starts_with_page_marker(line):
            return True
        toks = line.split()
        if len(toks) < 2:
            return False
        return all(AMOUNT_RE.fullmatch(t.lstrip("£")) for t in toks[-2:])
