"""Tabular (CSV) codec: one row per entry, statement fields repeated per row.

CSV header (exact keys, in this order when written):
booking_date, value_date, amount, currency, dc, description, reference,
account_id, opening_amount, opening_currency, opening_date, closing_amount,
closing_currency, closing_date

Parsing follows RFC 4180 rules via the stdlib :mod:`csv` module (quoted fields
with embedded commas and newlines, doubled quotes).

Decode policy
-------------
- ``account_id`` comes from the first row; later rows are not checked.
- The opening balance is captured from the first row where all three
  ``opening_*`` cells are non-empty; the closing balance likewise and
  independently. Later occurrences are ignored.
- Rows map 1:1 to entries in row order.
- The tabular form has no statement id column; ``statement_id`` is ``None``.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Mapping
from typing import BinaryIO

from ..errors import MalformedRecordError
from ..logging_setup import get_logger
from ..models import Balance, Entry, Statement
from ._values import (
    format_decimal,
    format_iso_date,
    parse_decimal,
    parse_indicator,
    parse_iso_date,
    parse_unsigned_decimal,
)
from .base import ENCODING, read_text

FORMAT_NAME = "csv"

ENTRY_COLUMNS: tuple[str, ...] = (
    "booking_date",
    "value_date",
    "amount",
    "currency",
    "dc",
    "description",
    "reference",
)

STATEMENT_COLUMNS: tuple[str, ...] = (
    "account_id",
    "opening_amount",
    "opening_currency",
    "opening_date",
    "closing_amount",
    "closing_currency",
    "closing_date",
)

HEADER: tuple[str, ...] = ENTRY_COLUMNS + STATEMENT_COLUMNS

_logger = get_logger("statement_codecs.codecs.tabular")


def _optional(row: Mapping[str, str | None], key: str) -> str | None:
    v = row.get(key)
    if v is None or v == "":
        return None
    return v


def _required(row: Mapping[str, str | None], key: str, rowno: int) -> str:
    v = row.get(key)
    if v is None:
        raise MalformedRecordError(FORMAT_NAME, f"row {rowno}", f"missing column {key!r}")
    return v


def _balance_from_row(row: Mapping[str, str | None], prefix: str, rowno: int) -> Balance | None:
    amount = _optional(row, f"{prefix}_amount")
    currency = _optional(row, f"{prefix}_currency")
    date_raw = _optional(row, f"{prefix}_date")
    if amount is None or currency is None or date_raw is None:
        return None
    where = f"row {rowno} {prefix}"
    return Balance(
        date=parse_iso_date(date_raw, format_name=FORMAT_NAME, construct=f"{where}_date"),
        amount=parse_decimal(amount, format_name=FORMAT_NAME, construct=f"{where}_amount"),
        currency=currency,
    )


def _entry_from_row(row: Mapping[str, str | None], rowno: int) -> Entry:
    def cell(col: str) -> str:
        return _required(row, col, rowno)

    def where(col: str) -> str:
        return f"row {rowno} {col}"

    value_date_raw = _optional(row, "value_date")
    return Entry(
        booking_date=parse_iso_date(
            cell("booking_date"), format_name=FORMAT_NAME, construct=where("booking_date")
        ),
        value_date=(
            parse_iso_date(value_date_raw, format_name=FORMAT_NAME, construct=where("value_date"))
            if value_date_raw is not None
            else None
        ),
        amount=parse_unsigned_decimal(
            cell("amount"), format_name=FORMAT_NAME, construct=where("amount")
        ),
        currency=cell("currency"),
        dc=parse_indicator(cell("dc"), format_name=FORMAT_NAME, construct=where("dc")),
        description=cell("description"),
        reference=_optional(row, "reference"),
    )


class TabularCodec:
    """Row-per-entry CSV with the statement header denormalized onto each row."""

    name = FORMAT_NAME

    def decode(self, stream: BinaryIO) -> Statement:
        reader = csv.DictReader(read_text(stream, format_name=FORMAT_NAME))
        headers = reader.fieldnames
        if headers is None:
            raise MalformedRecordError(FORMAT_NAME, "header", "CSV appears to have no header row")
        missing = [h for h in HEADER if h not in headers]
        if missing:
            raise MalformedRecordError(
                FORMAT_NAME, "header", "missing columns: " + ", ".join(missing)
            )

        account_id: str | None = None
        opening: Balance | None = None
        closing: Balance | None = None
        entries: list[Entry] = []

        # Row numbers count the header as row 1, matching spreadsheet views.
        for rowno, row in enumerate(reader, start=2):
            if account_id is None:
                account_id = _required(row, "account_id", rowno)
            else:
                _required(row, "account_id", rowno)
            if opening is None:
                opening = _balance_from_row(row, "opening", rowno)
            if closing is None:
                closing = _balance_from_row(row, "closing", rowno)
            entries.append(_entry_from_row(row, rowno))

        _logger.debug("decoded %d csv rows", len(entries))
        return Statement(
            statement_id=None,
            account_id=account_id or "",
            opening_balance=opening,
            closing_balance=closing,
            entries=tuple(entries),
        )

    def encode(self, statement: Statement, stream: BinaryIO) -> None:
        buf = io.StringIO(newline="")
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(HEADER)

        # Statement-level cells are identical on every row.
        header_cells = [statement.account_id]
        for bal in (statement.opening_balance, statement.closing_balance):
            if bal is None:
                header_cells.extend(["", "", ""])
            else:
                header_cells.extend(
                    [format_decimal(bal.amount), bal.currency, format_iso_date(bal.date)]
                )

        for e in statement.entries:
            writer.writerow(
                [
                    format_iso_date(e.booking_date),
                    format_iso_date(e.value_date) if e.value_date is not None else "",
                    format_decimal(e.amount),
                    e.currency,
                    e.dc.letter,
                    e.description,
                    e.reference or "",
                    *header_cells,
                ]
            )

        stream.write(buf.getvalue().encode(ENCODING))
        _logger.debug("encoded %d csv rows", len(statement.entries))


__all__ = ["FORMAT_NAME", "HEADER", "TabularCodec"]
