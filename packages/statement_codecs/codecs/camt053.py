"""ISO20022 camt.053 codec (subset, not schema-validated).

Written document::

    Document (xmlns=camt.053.001.02)
      BkToCstmrStmt
        Stmt
          Id?                      statement id (omitted when absent)
          Acct/Id/IBAN             account id
          Bal*                     Tp/CdOrPrtry/Cd (OPBD|CLBD), Amt@Ccy (signed), Dt/Dt
          Ntry*                    NtryRef?, Amt@Ccy, CdtDbtInd, ValDt/Dt?,
                                   BookgDt/Dt, AddtlNtryInf?

Reading is event driven (:class:`xml.etree.ElementTree.XMLPullParser`, fed in
chunks). The reader keeps the current element path and maps its suffix to a
:class:`CamtField` so identically named elements (``Id``, ``Amt``, ``Dt``)
are told apart by position. Namespaces are ignored.

Only the statement id, the account id and the entries are read back; ``Bal``
elements are written but not decoded, so opening/closing balances come back
as ``None``.

Text XML can't carry unchanged (control characters, ``\\r``) fails the encode
with :class:`~statement_codecs.errors.MalformedRecordError`.
"""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import BinaryIO

from ..errors import InvalidDateError, InvalidIndicatorError, MalformedRecordError
from ..logging_setup import get_logger
from ..models import Balance, DebitCredit, Entry, Statement
from ._values import format_decimal, format_iso_date, parse_iso_date, parse_unsigned_decimal
from .base import ENCODING, check_xml_text

FORMAT_NAME = "camt053"
NAMESPACE = "urn:iso:std:iso:20022:tech:xsd:camt.053.001.02"

OPENING_BALANCE_CODE = "OPBD"
CLOSING_BALANCE_CODE = "CLBD"

DEFAULT_BOOKING_DATE = date(1970, 1, 1)
UNKNOWN_CURRENCY = "XXX"

_CHUNK_SIZE = 64 * 1024

_INDICATORS = {"CRDT": DebitCredit.CREDIT, "DBIT": DebitCredit.DEBIT}

_logger = get_logger("statement_codecs.codecs.camt053")


class CamtField(Enum):
    """What the text of the element at the current path populates."""

    STATEMENT_ID = ("Stmt", "Id")
    ACCOUNT_IBAN = ("Acct", "Id", "IBAN")
    ACCOUNT_OTHER = ("Acct", "Id", "Othr", "Id")
    ENTRY_REFERENCE = ("Ntry", "NtryRef")
    ENTRY_AMOUNT = ("Ntry", "Amt")
    ENTRY_INDICATOR = ("Ntry", "CdtDbtInd")
    ENTRY_VALUE_DATE = ("Ntry", "ValDt", "Dt")
    ENTRY_VALUE_DATETIME = ("Ntry", "ValDt", "DtTm")
    ENTRY_BOOKING_DATE = ("Ntry", "BookgDt", "Dt")
    ENTRY_BOOKING_DATETIME = ("Ntry", "BookgDt", "DtTm")
    ENTRY_DESCRIPTION = ("Ntry", "AddtlNtryInf")

    @classmethod
    def for_path(cls, path: list[str]) -> CamtField | None:
        for f in cls:
            n = len(f.value)
            if len(path) >= n and tuple(path[-n:]) == f.value:
                return f
        return None


def _local(tag: str) -> str:
    return tag.rpartition("}")[2]


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _PendingEntry:
    """Fields of the ``<Ntry>`` being read; committed on ``</Ntry>``."""

    booking_date: date = DEFAULT_BOOKING_DATE
    value_date: date | None = None
    amount: Decimal = Decimal(0)
    currency: str = UNKNOWN_CURRENCY
    dc: DebitCredit = DebitCredit.CREDIT
    description: str = ""
    reference: str | None = None

    def to_entry(self) -> Entry:
        return Entry(
            booking_date=self.booking_date,
            value_date=self.value_date,
            amount=self.amount,
            currency=self.currency,
            dc=self.dc,
            description=self.description,
            reference=self.reference,
        )


def _parse_datetime_date(raw: str, construct: str) -> date:
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError as exc:
        raise InvalidDateError(FORMAT_NAME, construct, f"invalid date-time {raw!r}") from exc


class _StatementReader:
    """Per-call parsing state; one instance per ``decode``."""

    def __init__(self) -> None:
        self.path: list[str] = []
        self.statement_id: str | None = None
        self.account_id = ""
        self.iban_seen = False
        self.entries: list[Entry] = []
        self.pending: _PendingEntry | None = None

    def start(self, elem: ET.Element) -> None:
        name = _local(elem.tag)
        self.path.append(name)
        if name == "Ntry":
            self.pending = _PendingEntry()

    def end(self, elem: ET.Element) -> None:
        name = _local(elem.tag)
        field = CamtField.for_path(self.path)
        if field is not None:
            text = (elem.text or "").strip()
            if text:
                self._apply(field, text, elem)
        if name == "Ntry":
            if self.pending is not None:
                self.entries.append(self.pending.to_entry())
                self.pending = None
            elem.clear()
        self.path.pop()

    def _apply(self, field: CamtField, text: str, elem: ET.Element) -> None:
        where = "/".join(self.path)
        if field is CamtField.STATEMENT_ID:
            if self.statement_id is None:
                self.statement_id = text
            return
        if field is CamtField.ACCOUNT_IBAN:
            self.account_id = text
            self.iban_seen = True
            return
        if field is CamtField.ACCOUNT_OTHER:
            if not self.iban_seen:
                self.account_id = text
            return

        e = self.pending
        if e is None:
            return
        if field is CamtField.ENTRY_REFERENCE:
            e.reference = text
        elif field is CamtField.ENTRY_AMOUNT:
            e.amount = parse_unsigned_decimal(text, format_name=FORMAT_NAME, construct=where)
            ccy = elem.get("Ccy")
            if ccy:
                e.currency = ccy
        elif field is CamtField.ENTRY_INDICATOR:
            dc = _INDICATORS.get(text)
            if dc is None:
                raise InvalidIndicatorError(
                    FORMAT_NAME, where, f"expected CRDT or DBIT, got {text!r}"
                )
            e.dc = dc
        elif field is CamtField.ENTRY_VALUE_DATE:
            e.value_date = parse_iso_date(text, format_name=FORMAT_NAME, construct=where)
        elif field is CamtField.ENTRY_VALUE_DATETIME:
            e.value_date = _parse_datetime_date(text, where)
        elif field is CamtField.ENTRY_BOOKING_DATE:
            e.booking_date = parse_iso_date(text, format_name=FORMAT_NAME, construct=where)
        elif field is CamtField.ENTRY_BOOKING_DATETIME:
            e.booking_date = _parse_datetime_date(text, where)
        elif field is CamtField.ENTRY_DESCRIPTION:
            e.description = text

    def statement(self) -> Statement:
        return Statement(
            statement_id=self.statement_id,
            account_id=self.account_id,
            opening_balance=None,
            closing_balance=None,
            entries=tuple(self.entries),
        )


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


def _text(parent: ET.Element, tag: str, text: str, **attrs: str) -> ET.Element:
    el = ET.SubElement(parent, tag, attrs)
    el.text = text
    return el


def _dated(parent: ET.Element, tag: str, d: date) -> None:
    _text(ET.SubElement(parent, tag), "Dt", format_iso_date(d))


def _write_balance(stmt: ET.Element, code: str, b: Balance) -> None:
    bal = ET.SubElement(stmt, "Bal")
    cd_or_prtry = ET.SubElement(ET.SubElement(bal, "Tp"), "CdOrPrtry")
    _text(cd_or_prtry, "Cd", code)
    _text(bal, "Amt", format_decimal(b.amount), Ccy=b.currency)
    _dated(bal, "Dt", b.date)


def _write_entry(stmt: ET.Element, e: Entry) -> None:
    ntry = ET.SubElement(stmt, "Ntry")
    if e.reference:
        _text(ntry, "NtryRef", e.reference)
    _text(ntry, "Amt", format_decimal(e.amount), Ccy=e.currency)
    _text(ntry, "CdtDbtInd", "CRDT" if e.dc is DebitCredit.CREDIT else "DBIT")
    if e.value_date is not None:
        _dated(ntry, "ValDt", e.value_date)
    _dated(ntry, "BookgDt", e.booking_date)
    if e.description:
        _text(ntry, "AddtlNtryInf", e.description)


def _build_document(st: Statement) -> ET.Element:
    doc = ET.Element("Document", {"xmlns": NAMESPACE})
    stmt = ET.SubElement(ET.SubElement(doc, "BkToCstmrStmt"), "Stmt")
    if st.statement_id is not None:
        _text(stmt, "Id", st.statement_id)
    acct_id = ET.SubElement(ET.SubElement(stmt, "Acct"), "Id")
    _text(acct_id, "IBAN", st.account_id)
    if st.opening_balance is not None:
        _write_balance(stmt, OPENING_BALANCE_CODE, st.opening_balance)
    if st.closing_balance is not None:
        _write_balance(stmt, CLOSING_BALANCE_CODE, st.closing_balance)
    for e in st.entries:
        _write_entry(stmt, e)
    return doc


class Camt053Codec:
    """camt.053 subset: streaming reader, indented writer."""

    name = FORMAT_NAME

    def decode(self, stream: BinaryIO) -> Statement:
        parser = ET.XMLPullParser(events=("start", "end"))
        reader = _StatementReader()
        try:
            while True:
                chunk = stream.read(_CHUNK_SIZE)
                if not chunk:
                    break
                parser.feed(chunk)
                self._drain(parser, reader)
            parser.close()
            self._drain(parser, reader)
        except ET.ParseError as exc:
            raise MalformedRecordError(FORMAT_NAME, "document", f"unparsable XML: {exc}") from exc

        statement = reader.statement()
        _logger.debug("decoded %d camt.053 entries", len(statement.entries))
        return statement

    @staticmethod
    def _drain(parser: ET.XMLPullParser, reader: _StatementReader) -> None:
        for event, elem in parser.read_events():
            if event == "start":
                reader.start(elem)
            else:
                reader.end(elem)

    def encode(self, statement: Statement, stream: BinaryIO) -> None:
        doc = _build_document(statement)
        check_xml_text(doc, format_name=FORMAT_NAME)
        ET.indent(doc, space="  ")
        buf = io.BytesIO()
        ET.ElementTree(doc).write(buf, encoding=ENCODING, xml_declaration=True)
        buf.write(b"\n")
        stream.write(buf.getvalue())
        _logger.debug("encoded %d camt.053 entries", len(statement.entries))


__all__ = ["CamtField", "Camt053Codec", "FORMAT_NAME", "NAMESPACE"]
