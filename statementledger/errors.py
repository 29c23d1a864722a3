"""Exception classes for the ledger pipeline.

Only document-level failures are raised to callers; anything that goes wrong
on a single line or candidate is absorbed by the pipeline.
"""


class LedgerError(Exception):
    """Base exception for statement conversion."""

    default_message = "The statement could not be converted."

    def __init__(self, message=None):
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


class EmptyTextError(LedgerError):
    """The source contained no readable text at all."""

    default_message = (
        "PDF appears to be encrypted or contains no extractable text. "
        "Please ensure the PDF is not password protected."
    )


class NoTransactionsFoundError(LedgerError):
    """Processing finished without a single ledger row."""

    default_message = "No transactions found in the PDF. Please check if this is a valid bank statement."


class PdfError(LedgerError):
    """The PDF container could not be opened or unlocked."""

    default_message = "The PDF file could not be read."


class ConfigError(LedgerError):
    """Invalid rule-set configuration."""

    default_message = "Invalid rule configuration."
