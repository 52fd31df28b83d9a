"""SWIFT MT940 codec (minimal tag set).

Recognized tags
---------------
- ``:20:``  statement id (trimmed)
- ``:25:``  account id (trimmed)
- ``:60F:`` opening balance, ``:62F:`` closing balance
- ``:61:``  one entry's core fields
- ``:86:``  narrative for the preceding ``:61:``; continues on untagged lines

Other tags are ignored.

Balance body: ``<D|C><YYMMDD><CCY><amount>``, comma as decimal separator. ``D``
negates the stored (signed) balance amount.

``:61:`` body, in order::

    YYMMDD [MMDD] <C|D> [CCY] <digits>,<0-2 digits> [TYPE(3-4 letters)] [reference]

The booking ``MMDD`` takes its year from the value date. The type code is
read and dropped. ``NONREF`` and an empty tail both mean "no reference".
Two-digit years below 70 are 20xx, the rest 19xx (``69`` is 2069, ``70``
is 1970).

On output the type code is always ``NTRF`` and a missing reference is written
as ``NONREF``. Entry lines carry no currency; entry currency only enters the
model on decode (override, else the opening balance's currency, else ``XXX``).
"""

from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal
from typing import BinaryIO

from ..errors import (
    InvalidAmountError,
    InvalidDateError,
    InvalidIndicatorError,
    MalformedRecordError,
)
from ..logging_setup import get_logger
from ..models import Balance, DebitCredit, Entry, Statement
from ._values import parse_decimal, parse_unsigned_decimal
from .base import ENCODING, decode_lines

FORMAT_NAME = "mt940"

TAG_STATEMENT_ID = ":20:"
TAG_ACCOUNT = ":25:"
TAG_OPENING = ":60F:"
TAG_CLOSING = ":62F:"
TAG_ENTRY = ":61:"
TAG_NARRATIVE = ":86:"

NO_REFERENCE = "NONREF"
NO_STATEMENT_ID = "NOTPROVIDED"
TRANSACTION_TYPE = "NTRF"
UNKNOWN_CURRENCY = "XXX"
PIVOT_YEAR = 70

_CENTS = Decimal("0.01")

_logger = get_logger("statement_codecs.codecs.mt940")


# ---------------------------------------------------------------------------
# Dates and amounts
# ---------------------------------------------------------------------------


def _full_year(yy: int) -> int:
    return yy + (2000 if yy < PIVOT_YEAR else 1900)


def _parse_yymmdd(raw: str, construct: str) -> date:
    if len(raw) != 6 or not raw.isdigit():
        raise InvalidDateError(FORMAT_NAME, construct, f"expected YYMMDD, got {raw!r}")
    try:
        return date(_full_year(int(raw[:2])), int(raw[2:4]), int(raw[4:]))
    except ValueError as exc:
        raise InvalidDateError(FORMAT_NAME, construct, f"invalid date {raw!r}") from exc


def _parse_mmdd(year: int, raw: str, construct: str) -> date:
    try:
        return date(year, int(raw[:2]), int(raw[2:]))
    except ValueError as exc:
        raise InvalidDateError(
            FORMAT_NAME, construct, f"invalid booking date {raw!r} in {year}"
        ) from exc


def _comma_amount(raw: str) -> str:
    return raw.replace(",", ".")


def _format_amount(d: Decimal) -> str:
    s = format(abs(d), "f").replace(".", ",")
    # The comma is mandatory in MT940 amounts, even without decimals.
    return s if "," in s else s + ","


# ---------------------------------------------------------------------------
# Balance lines
# ---------------------------------------------------------------------------


def _parse_balance(body: str, tag: str) -> Balance | None:
    """Parse ``<D|C><YYMMDD><CCY><amount>``.

    A body too short to hold sign, date and currency yields ``None`` (the
    balance stays unset) rather than an error.
    """

    if len(body) < 10:
        return None
    sign, yymmdd, currency, amount_raw = body[0], body[1:7], body[7:10], body[10:]
    if sign not in ("C", "D"):
        raise InvalidIndicatorError(FORMAT_NAME, tag, f"balance sign must be C or D, got {sign!r}")
    amount = parse_decimal(_comma_amount(amount_raw), format_name=FORMAT_NAME, construct=tag)
    return Balance(
        date=_parse_yymmdd(yymmdd, tag),
        amount=-amount if sign == "D" else amount,
        currency=currency,
    )


def _format_balance(tag: str, b: Balance) -> str:
    sign = "D" if b.amount.is_signed() else "C"
    return f"{tag}{sign}{b.date.strftime('%y%m%d')}{b.currency}{_format_amount(b.amount)}"


# ---------------------------------------------------------------------------
# :61: transaction line
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class TransactionLine:
    """The fields of one ``:61:`` line, before currency resolution."""

    value_date: date
    booking_date: date
    dc: DebitCredit
    currency: str | None
    amount: Decimal
    transaction_type: str | None
    reference: str | None


class _Cursor:
    """Forward-only reader over a ``:61:`` body."""

    __slots__ = ("pos", "text")

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def fail(self, expected: str) -> MalformedRecordError:
        found = self.text[self.pos : self.pos + 8] or "end of line"
        return MalformedRecordError(
            FORMAT_NAME, TAG_ENTRY, f"expected {expected} at column {self.pos + 1}, found {found!r}"
        )

    def run(self, predicate, limit: int) -> int:
        """Length of the run of chars matching ``predicate`` from here, up to ``limit``."""

        n = 0
        while n < limit and self.pos + n < len(self.text) and predicate(self.text[self.pos + n]):
            n += 1
        return n

    def take(self, n: int) -> str:
        s = self.text[self.pos : self.pos + n]
        self.pos += n
        return s

    def rest(self) -> str:
        return self.take(len(self.text) - self.pos)


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_upper(ch: str) -> bool:
    return "A" <= ch <= "Z"


def parse_transaction_line(body: str) -> TransactionLine:
    """Parse the body of a ``:61:`` line (text after the tag)."""

    cur = _Cursor(body)

    if cur.run(_is_digit, 6) != 6:
        raise cur.fail("6-digit value date YYMMDD")
    value_date = _parse_yymmdd(cur.take(6), TAG_ENTRY)

    booking_date = value_date
    if cur.run(_is_digit, 4) == 4:
        booking_date = _parse_mmdd(value_date.year, cur.take(4), TAG_ENTRY)

    if cur.run(_is_upper, 1) != 1:
        raise cur.fail("debit/credit mark C or D")
    mark = cur.take(1)
    if mark == "C":
        dc = DebitCredit.CREDIT
    elif mark == "D":
        dc = DebitCredit.DEBIT
    else:
        raise InvalidIndicatorError(FORMAT_NAME, TAG_ENTRY, f"unknown debit/credit mark {mark!r}")

    currency = cur.take(3) if cur.run(_is_upper, 3) == 3 else None

    int_len = cur.run(_is_digit, len(body))
    if int_len == 0:
        raise cur.fail("amount")
    int_part = cur.take(int_len)
    if cur.run(lambda ch: ch == ",", 1) != 1:
        raise cur.fail("decimal comma in amount")
    cur.take(1)
    frac_part = cur.take(cur.run(_is_digit, 2))
    amount = parse_unsigned_decimal(
        f"{int_part}.{frac_part}", format_name=FORMAT_NAME, construct=TAG_ENTRY
    )

    type_len = cur.run(_is_upper, 4)
    transaction_type = cur.take(type_len) if type_len >= 3 else None

    tail = cur.rest().strip()
    reference = tail if tail and tail != NO_REFERENCE else None

    return TransactionLine(
        value_date=value_date,
        booking_date=booking_date,
        dc=dc,
        currency=currency,
        amount=amount,
        transaction_type=transaction_type,
        reference=reference,
    )


def _entry_amount(e: Entry, index: int) -> Decimal:
    """Amount as written on a ``:61:`` line: at most two fraction digits.

    Zeros beyond the cents are dropped; a significant third decimal raises
    :class:`InvalidAmountError`.
    """

    amount = e.amount
    if not amount.is_finite():
        raise InvalidAmountError(FORMAT_NAME, f"{TAG_ENTRY} entry {index}", f"not finite: {amount}")
    if amount.as_tuple().exponent < -2:
        cents = amount.quantize(_CENTS)
        if cents != amount:
            raise InvalidAmountError(
                FORMAT_NAME,
                f"{TAG_ENTRY} entry {index}",
                f"more than two decimal places: {amount}",
            )
        amount = cents
    return amount


def _format_transaction_line(e: Entry, index: int) -> str:
    value_date = e.value_date or e.booking_date
    reference = e.reference or NO_REFERENCE
    return (
        f"{TAG_ENTRY}{value_date.strftime('%y%m%d')}{e.booking_date.strftime('%m%d')}"
        f"{e.dc.letter}{_format_amount(_entry_amount(e, index))}{TRANSACTION_TYPE}{reference}"
    )


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


class Mt940Codec:
    """Line/tag MT940 reader and writer."""

    name = FORMAT_NAME

    def decode(self, stream: BinaryIO) -> Statement:
        statement_id: str | None = None
        account_id = ""
        opening: Balance | None = None
        closing: Balance | None = None
        entries: list[Entry] = []
        # Set by :86:, cleared by the next :61:; enables untagged continuations.
        in_narrative = False

        for line in decode_lines(stream, format_name=FORMAT_NAME):
            if line.startswith(TAG_STATEMENT_ID):
                statement_id = line[len(TAG_STATEMENT_ID) :].strip()
            elif line.startswith(TAG_ACCOUNT):
                account_id = line[len(TAG_ACCOUNT) :].strip()
            elif line.startswith(TAG_OPENING):
                opening = _parse_balance(line[len(TAG_OPENING) :], TAG_OPENING)
            elif line.startswith(TAG_CLOSING):
                closing = _parse_balance(line[len(TAG_CLOSING) :], TAG_CLOSING)
            elif line.startswith(TAG_ENTRY):
                tx = parse_transaction_line(line[len(TAG_ENTRY) :])
                if tx.currency is not None:
                    currency = tx.currency
                elif opening is not None:
                    currency = opening.currency
                else:
                    currency = UNKNOWN_CURRENCY
                entries.append(
                    Entry(
                        booking_date=tx.booking_date,
                        value_date=tx.value_date,
                        amount=tx.amount,
                        currency=currency,
                        dc=tx.dc,
                        description="",
                        reference=tx.reference,
                    )
                )
                in_narrative = False
            elif line.startswith(TAG_NARRATIVE):
                if entries:
                    entries[-1] = _append_narrative(entries[-1], line[len(TAG_NARRATIVE) :])
                    in_narrative = True
            elif in_narrative and not line.startswith(":"):
                segment = line.strip()
                if segment:
                    last = entries[-1]
                    entries[-1] = dataclasses.replace(
                        last, description=f"{last.description} {segment}"
                    )

        _logger.debug("decoded %d mt940 entries", len(entries))
        return Statement(
            statement_id=statement_id,
            account_id=account_id,
            opening_balance=opening,
            closing_balance=closing,
            entries=tuple(entries),
        )

    def encode(self, statement: Statement, stream: BinaryIO) -> None:
        lines = [
            f"{TAG_STATEMENT_ID}{statement.statement_id or NO_STATEMENT_ID}",
            f"{TAG_ACCOUNT}{statement.account_id}",
        ]
        if statement.opening_balance is not None:
            lines.append(_format_balance(TAG_OPENING, statement.opening_balance))
        for index, e in enumerate(statement.entries, start=1):
            lines.append(_format_transaction_line(e, index))
            if e.description:
                lines.append(f"{TAG_NARRATIVE}{e.description}")
        if statement.closing_balance is not None:
            lines.append(_format_balance(TAG_CLOSING, statement.closing_balance))

        stream.write(("\n".join(lines) + "\n").encode(ENCODING))
        _logger.debug("encoded %d mt940 entries", len(statement.entries))


def _append_narrative(entry: Entry, text: str) -> Entry:
    if not entry.description:
        return dataclasses.replace(entry, description=text)
    return dataclasses.replace(entry, description=f"{entry.description} {text}")


__all__ = ["FORMAT_NAME", "Mt940Codec", "TransactionLine", "parse_transaction_line"]
