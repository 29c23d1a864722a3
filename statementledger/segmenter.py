# -*- coding: utf-8 -*-
"""segmenter.py
Groups normalized lines into per-transaction candidates.

Statements wrap one logical transaction over several physical lines, and the
date is the only reliable boundary between transactions.  The segmenter is a
tiny two-state machine:

``IDLE``
    nothing collected yet (start of statement or of a page).
``ACCUMULATING``
    a buffer of text anchored by a date token.

A dated line always starts a new candidate (flushing the previous one);
amount or keyword lines continue the current candidate, or open a new one
under the last date seen; plain text only continues an existing candidate.

:meth:`TransactionSegmenter.step` is a pure transition function so the state
machine can be tested against literal line sequences; :meth:`segment` is the
streaming driver used by the converter.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

from .models import RunningState, TransactionCandidate
from .rules import AMOUNT_RE, DATE_RE, DEFAULT_RULES, RuleSet

logger = logging.getLogger(__name__)

_LETTER_RE = re.compile(r"[A-Za-z]")

__all__ = [
    "LineKind",
    "ParseState",
    "SegmenterState",
    "TransactionSegmenter",
]


class ParseState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


class LineKind(Enum):
    SKIP = "skip"
    DATED = "dated"
    TRANSACTIONAL = "transactional"
    CONTINUATION = "continuation"
    NOISE = "noise"


@dataclass(frozen=True)
class SegmenterState:
    """Immutable segmenter state; ``last_valid_date`` outlives page resets."""

    state: ParseState = ParseState.IDLE
    buffer: str = ""
    anchor_date: Optional[str] = None
    last_valid_date: Optional[str] = None
    page: int = 1

    @property
    def accumulating(self) -> bool:
        return self.state is ParseState.ACCUMULATING


# ---------------------------------------------------------------------------
# Segmenter
# ---------------------------------------------------------------------------
class TransactionSegmenter:
    """Finite-state scanner from normalized lines to transaction candidates."""

    def __init__(self, rules: RuleSet = DEFAULT_RULES):
        self.rules = rules

    # ------------------------------------------------------------------
    # Line classification
    # ------------------------------------------------------------------
    def classify_line(self, line: str, last_valid_date: Optional[str]) -> Tuple[LineKind, Optional[str]]:
        """Return the line's kind and, for dated lines, its date token."""
        if self.rules.is_skip(line):
            return LineKind.SKIP, None

        m_date = DATE_RE.search(line)
        if m_date:
            return LineKind.DATED, m_date.group(0)

        if last_valid_date and (AMOUNT_RE.search(line) or self.rules.has_transaction_keyword(line)):
            return LineKind.TRANSACTIONAL, None

        if len(line) > 3 and _LETTER_RE.search(line):
            return LineKind.CONTINUATION, None

        return LineKind.NOISE, None

    # ------------------------------------------------------------------
    # Transition function
    # ------------------------------------------------------------------
    def step(self, state: SegmenterState, line: str) -> Tuple[SegmenterState, Optional[TransactionCandidate]]:
        """Feed one line; return the new state and a completed candidate, if any."""
        line = line.strip()
        kind, date_token = self.classify_line(line, state.last_valid_date)

        if kind is LineKind.DATED:
            emitted = self._flush(state)
            return (
                replace(
                    state,
                    state=ParseState.ACCUMULATING,
                    buffer=line,
                    anchor_date=date_token,
                    last_valid_date=date_token,
                ),
                emitted,
            )

        if kind is LineKind.TRANSACTIONAL:
            if state.accumulating:
                return replace(state, buffer=f"{state.buffer} {line}"), None
            return (
                replace(
                    state,
                    state=ParseState.ACCUMULATING,
                    buffer=f"{state.last_valid_date} {line}",
                    anchor_date=state.last_valid_date,
                ),
                None,
            )

        if kind is LineKind.CONTINUATION and state.accumulating:
            return replace(state, buffer=f"{state.buffer} {line}"), None

        # skip / noise / unanchored text
        return state, None

    def finalise(self, state: SegmenterState) -> Tuple[SegmenterState, Optional[TransactionCandidate]]:
        """Flush any open buffer and return to ``IDLE``."""
        emitted = self._flush(state)
        return replace(state, state=ParseState.IDLE, buffer="", anchor_date=None), emitted

    @staticmethod
    def _flush(state: SegmenterState) -> Optional[TransactionCandidate]:
        if not state.accumulating or not state.buffer:
            return None
        return TransactionCandidate(text=state.buffer, anchor_date=state.anchor_date, page=state.page)

    # ------------------------------------------------------------------
    # Streaming driver
    # ------------------------------------------------------------------
    def segment(
        self, lines: Iterable[str], running_state: Optional[RunningState] = None
    ) -> Iterator[TransactionCandidate]:
        """Yield candidates for *lines*, one page chunk at a time.

        A line starting with a page marker closes the current chunk before
        it is processed itself.  When *running_state* is given, its
        ``last_valid_date`` seeds the scan and receives the final value.
        """
        state = SegmenterState(last_valid_date=running_state.last_valid_date if running_state else None)
        count = 0

        for line in lines:
            if self.rules.starts_with_page_marker(line):
                state, emitted = self.finalise(state)
                if emitted:
                    count += 1
                    yield emitted
                state = replace(state, page=state.page + 1)
                logger.debug(f"Page boundary before line: {line!r}")

            state, emitted = self.step(state, line)
            if running_state is not None:
                running_state.last_valid_date = state.last_valid_date
            if emitted:
                count += 1
                yield emitted

        state, emitted = self.finalise(state)
        if emitted:
            count += 1
            yield emitted
        logger.info(f"Segmented {count} transaction candidates over {state.page} page chunk(s)")

    def segment_all(self, lines: Iterable[str]) -> List[TransactionCandidate]:
        return list(self.segment(lines))
