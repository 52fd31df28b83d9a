"""Error kinds raised by the statement codecs.

Every codec failure is a :class:`StatementFormatError` (a ``ValueError``) that
names the format, the offending construct (an MT940 tag, a CSV column, an XML
element path) and the underlying cause. I/O failures are not wrapped; the
``OSError`` from the stream propagates as-is.
"""

from __future__ import annotations


class StatementFormatError(ValueError):
    """Base class for decode/encode failures of a single statement document."""

    def __init__(self, format_name: str, construct: str, detail: str) -> None:
        self.format_name = format_name
        self.construct = construct
        self.detail = detail
        super().__init__(f"{format_name}: {construct}: {detail}")


class MalformedRecordError(StatementFormatError):
    """The document does not match the format's grammar or structure."""


class InvalidIndicatorError(StatementFormatError):
    """A debit/credit marker is not one of the recognized literals."""


class InvalidAmountError(StatementFormatError):
    """An amount is not a valid exact decimal."""


class InvalidDateError(StatementFormatError):
    """A date literal can't be parsed."""


__all__ = [
    "InvalidAmountError",
    "InvalidDateError",
    "InvalidIndicatorError",
    "MalformedRecordError",
    "StatementFormatError",
]
