"""Public interface for the ``statement_codecs`` package.

This module exposes the conversion API, the canonical models and the error
types as the stable import surface. There is no runtime logic here, only
symbol re-exports.
"""

from .api import StatementFormat, convert, decode, encode, get_codec
from .errors import (
    InvalidAmountError,
    InvalidDateError,
    InvalidIndicatorError,
    MalformedRecordError,
    StatementFormatError,
)
from .models import Balance, DebitCredit, Entry, Statement

__all__ = [
    # API
    "StatementFormat",
    "convert",
    "decode",
    "encode",
    "get_codec",
    # Models
    "Balance",
    "DebitCredit",
    "Entry",
    "Statement",
    # Errors
    "StatementFormatError",
    "MalformedRecordError",
    "InvalidAmountError",
    "InvalidDateError",
    "InvalidIndicatorError",
]
