"""Conversion between amount tokens, Decimal values and ledger strings."""
from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

_CENT = Decimal("0.01")


def parse_amount(token: Optional[str]) -> Decimal:
    """Parse an amount token such as ``1,234.56``, ``1.234,56`` or ``(£12.00)``.

    The separator three characters from the end is the decimal separator;
    every other ``,`` / ``.`` is a thousands separator.  Returns ``0`` for an
    empty token and raises ``ValueError`` for anything that is not a number.
    """
    if not token:
        return Decimal("0")

    clean = re.sub(r"[£$€\s]", "", token.strip())
    negative = clean.startswith("-") or (clean.startswith("(") and clean.endswith(")"))
    clean = clean.strip("()+-")

    if len(clean) >= 3 and clean[-3] in ",.":
        whole, frac = clean[:-3], clean[-2:]
    else:
        whole, frac = clean, "00"
    whole = whole.replace(",", "").replace(".", "")

    try:
        value = Decimal(f"{whole or '0'}.{frac}")
    except InvalidOperation:
        raise ValueError(f"Not an amount: {token!r}")
    return -value if negative else value


def format_amount(value: Decimal) -> str:
    """Two-decimal magnitude with thousands grouping: ``-1234.5`` -> ``1,234.50``."""
    return f"{abs(value).quantize(_CENT, rounding=ROUND_HALF_UP):,.2f}"
