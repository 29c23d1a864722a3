"""Plain-text extraction from statement PDFs.

Two strategies are tried in order:

1. PyMuPDF, reading each page in physical order (``sort=True``);
2. pdfplumber, used when PyMuPDF returns nothing readable.

Pages are joined with form feeds so the normalizer sees the page breaks.
"""
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Union

import fitz  # PyMuPDF
import pdfplumber

from .errors import EmptyTextError, PdfError
from .rules import ALNUM_RE

logger = logging.getLogger(__name__)

PdfSource = Union[str, Path, bytes]


def _read_bytes(source: PdfSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    try:
        with open(source, "rb") as f:
            return f.read()
    except OSError as e:
        raise PdfError(f"Could not read {source}: {e}")


def _extract_with_pymupdf(data: bytes, password: Optional[str]) -> str:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise PdfError(f"The file is not a readable PDF: {e}")

    with doc:
        if doc.needs_pass:
            if not password:
                raise PdfError("This PDF is password protected. Please provide a password.")
            if not doc.authenticate(password):
                raise PdfError("Incorrect password provided.")

        pages = [page.get_text("text", sort=True) for page in doc]
    logger.info(f"PyMuPDF extracted {len(pages)} page(s)")
    return "\f".join(pages)


def _extract_with_pdfplumber(data: bytes, password: Optional[str]) -> str:
    with pdfplumber.open(io.BytesIO(data), password=password or "") as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    logger.info(f"pdfplumber extracted {len(pages)} page(s)")
    return "\f".join(pages)


def extract_text(source: PdfSource, password: Optional[str] = None) -> str:
    """Return the statement's text, or raise if nothing readable is inside."""
    data = _read_bytes(source)
    text = _extract_with_pymupdf(data, password)

    if not ALNUM_RE.search(text):
        logger.warning("PyMuPDF found no text, trying pdfplumber")
        try:
            text = _extract_with_pdfplumber(data, password)
        except Exception as e:
            logger.warning(f"pdfplumber extraction failed: {str(e)}")
            text = ""

    if not ALNUM_RE.search(text):
        raise EmptyTextError()
    logger.debug(f"First 500 chars of extracted text: {text[:500]!r}")
    return text
