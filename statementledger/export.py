"""Serialization of a finished ledger to spreadsheet or CSV files."""
from __future__ import annotations

import csv
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill

from .models import ExtractedStatement

logger = logging.getLogger(__name__)

HeaderList = ["Date", "Description", "Money Out (£)", "Money In (£)", "Balance (£)"]
COLUMN_WIDTHS = [12, 50, 12, 12, 12]
FORMATS = ("xlsx", "csv")


def to_dataframe(statement: ExtractedStatement) -> pd.DataFrame:
    """One row per transaction, in ledger order; missing amounts are NaN."""
    data = [
        {
            "Date": t.date,
            "Description": t.description,
            "Money Out (£)": t.money_out,
            "Money In (£)": t.money_in,
            "Balance (£)": t.balance,
        }
        for t in statement.transactions
    ]
    df = pd.DataFrame(data, columns=HeaderList)
    return df.where(df.notna(), np.nan)


def write_csv(statement: ExtractedStatement, path) -> Path:
    """CSV with every text cell quoted and embedded quotes doubled."""
    path = Path(path)
    to_dataframe(statement).to_csv(
        path, index=False, quoting=csv.QUOTE_NONNUMERIC, na_rep="", encoding="utf-8"
    )
    logger.info(f"CSV saved ➜ {path}")
    return path


def write_xlsx(statement: ExtractedStatement, path) -> Path:
    path = Path(path)
    df = to_dataframe(statement)
    summary = pd.DataFrame(
        [(_summary_label(k), v) for k, v in statement.to_dict()["metadata"].items()],
        columns=["Item", "Value"],
    )

    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Transactions", index=False)
        summary.to_excel(writer, sheet_name="Summary", index=False)

        sheet = writer.sheets["Transactions"]
        for idx, width in enumerate(COLUMN_WIDTHS):
            sheet.column_dimensions[chr(ord("A") + idx)].width = width
        for cell in sheet[1]:
            cell.font = Font(bold=True, name="Arial", size=10)
            cell.fill = PatternFill(fill_type="solid", fgColor="F2F2F2")
            cell.alignment = Alignment(horizontal="center")
        writer.sheets["Summary"].column_dimensions["A"].width = 20
        writer.sheets["Summary"].column_dimensions["B"].width = 30

    logger.info(f"Excel saved ➜ {path}")
    return path


def _summary_label(key: str) -> str:
    return {
        "totalCredits": "Total Credits (£)",
        "totalDebits": "Total Debits (£)",
        "accountNumber": "Account Number",
        "statementPeriod": "Statement Period",
    }.get(key, key)


def write_ledger(statement: ExtractedStatement, path, fmt: Optional[str] = None) -> Path:
    """Write *statement* as ``fmt`` (defaults to the file suffix)."""
    path = Path(path)
    fmt = (fmt or path.suffix.lstrip(".")).lower()
    if fmt == "xlsx":
        return write_xlsx(statement, path)
    if fmt == "csv":
        return write_csv(statement, path)
    raise ValueError(f"Unsupported output format: {fmt!r} (expected one of {', '.join(FORMATS)})")


def output_filename(fmt: str) -> str:
    stamp = datetime.now().strftime("%Y-%m-%d")
    return f"bank_statement_{stamp}_{uuid.uuid4().hex[:8]}.{fmt}"
