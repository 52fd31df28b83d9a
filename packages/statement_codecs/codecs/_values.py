"""Literal parsing/formatting shared by the codecs (dates, decimals, D/C).

Each parser takes the codec's ``format_name`` and the ``construct`` being
parsed (column, tag or element path) so failures point at the offending spot.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from ..errors import InvalidAmountError, InvalidDateError, InvalidIndicatorError
from ..models import DebitCredit

# Plain fixed-point text: optional sign, digits with an optional fraction.
# Exponents, NaN and Infinity are rejected even though ``Decimal`` accepts them.
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")

_INDICATORS: dict[str, DebitCredit] = {
    "d": DebitCredit.DEBIT,
    "debit": DebitCredit.DEBIT,
    "c": DebitCredit.CREDIT,
    "credit": DebitCredit.CREDIT,
}


def parse_decimal(raw: str, *, format_name: str, construct: str) -> Decimal:
    s = raw.strip()
    if not _DECIMAL_RE.fullmatch(s):
        raise InvalidAmountError(format_name, construct, f"invalid decimal {raw!r}")
    try:
        return Decimal(s)
    except InvalidOperation as exc:  # pragma: no cover - regex already guards
        raise InvalidAmountError(format_name, construct, f"invalid decimal {raw!r}") from exc


def parse_unsigned_decimal(raw: str, *, format_name: str, construct: str) -> Decimal:
    d = parse_decimal(raw, format_name=format_name, construct=construct)
    if d < 0:
        raise InvalidAmountError(
            format_name, construct, f"entry amount must be unsigned, got {raw!r}"
        )
    return d


def format_decimal(d: Decimal) -> str:
    # Fixed-point; keeps the stored scale (100.00 stays "100.00").
    return format(d, "f")


def parse_iso_date(raw: str, *, format_name: str, construct: str) -> date:
    s = raw.strip()
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidDateError(
            format_name, construct, f"expected YYYY-MM-DD, got {raw!r}"
        ) from exc


def format_iso_date(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def parse_indicator(raw: str, *, format_name: str, construct: str) -> DebitCredit:
    """Accept ``D``/``debit``/``C``/``credit`` in any case."""

    dc = _INDICATORS.get(raw.strip().lower())
    if dc is None:
        raise InvalidIndicatorError(format_name, construct, f"unknown debit/credit {raw!r}")
    return dc


__all__ = [
    "format_decimal",
    "format_iso_date",
    "parse_decimal",
    "parse_indicator",
    "parse_iso_date",
    "parse_unsigned_decimal",
]
