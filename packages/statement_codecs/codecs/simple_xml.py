"""Simple XML codec: a direct tree mapping of the canonical model.

This is an internal, lossless interchange form, not ISO20022. The root is
named after the wire DTO and the other element names are its field names; the
entry list is written as one repeated ``<entries>`` element per entry::

    <XmlStatement>
      <statement_id/>?  <account_id/>
      <opening_balance><date/><amount/><currency/></opening_balance>?
      <closing_balance>...</closing_balance>?
      <entries>
        <booking_date/> <value_date/>? <amount/> <currency/> <dc/>
        <description/> <reference/>?
      </entries>*
    </XmlStatement>

Decode is a structural bind (tag -> field by name into string-typed pydantic
DTOs) followed by explicit date/decimal/indicator parsing. Amounts travel as
decimal strings so no float ever touches them.

Text XML can't carry unchanged (control characters, ``\\r``) fails the encode.
"""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from typing import Any, BinaryIO

from pydantic import BaseModel, ConfigDict, Field, ValidationError

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
from .base import ENCODING, check_xml_text

FORMAT_NAME = "xml"
ROOT_TAG = "XmlStatement"
# One element per entry, named after the list field.
ENTRY_TAG = "entries"
_BALANCE_TAGS = ("opening_balance", "closing_balance")

_logger = get_logger("statement_codecs.codecs.simple_xml")


# ---------------------------------------------------------------------------
# DTOs (wire shape; every leaf is a string)
# ---------------------------------------------------------------------------


class XmlBalance(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: str
    amount: str
    currency: str


class XmlEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    booking_date: str
    value_date: str | None = None
    amount: str
    currency: str
    dc: str
    description: str = ""
    reference: str | None = None


class XmlStatement(BaseModel):
    """Top-level document; field order is the element order on output."""

    model_config = ConfigDict(extra="ignore")

    statement_id: str | None = None
    account_id: str
    opening_balance: XmlBalance | None = None
    closing_balance: XmlBalance | None = None
    entries: list[XmlEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Element tree <-> plain dict
# ---------------------------------------------------------------------------


def _leaf_fields(elem: ET.Element) -> dict[str, str]:
    return {child.tag: child.text or "" for child in elem}


def _tree_to_dict(root: ET.Element) -> dict[str, Any]:
    out: dict[str, Any] = {"entries": []}
    for child in root:
        if child.tag == ENTRY_TAG:
            out["entries"].append(_leaf_fields(child))
        elif child.tag in _BALANCE_TAGS:
            out[child.tag] = _leaf_fields(child)
        else:
            out[child.tag] = child.text or ""
    return out


def _dict_to_tree(data: dict[str, Any]) -> ET.Element:
    root = ET.Element(ROOT_TAG)
    for key, value in data.items():
        if key == "entries":
            for item in value:
                _append_fields(root, ENTRY_TAG, item)
        elif isinstance(value, dict):
            _append_fields(root, key, value)
        else:
            ET.SubElement(root, key).text = value
    return root


def _append_fields(parent: ET.Element, tag: str, fields: dict[str, str]) -> None:
    elem = ET.SubElement(parent, tag)
    for key, value in fields.items():
        ET.SubElement(elem, key).text = value


def _loc_to_path(loc: tuple[int | str, ...]) -> str:
    parts = [ROOT_TAG]
    it = iter(loc)
    for item in it:
        if item == "entries":
            idx = next(it, None)
            parts.append(f"{ENTRY_TAG}[{idx + 1}]" if isinstance(idx, int) else ENTRY_TAG)
        else:
            parts.append(str(item))
    return "/".join(parts)


# ---------------------------------------------------------------------------
# DTO <-> model
# ---------------------------------------------------------------------------


def _balance_from_dto(dto: XmlBalance, path: str) -> Balance:
    return Balance(
        date=parse_iso_date(dto.date, format_name=FORMAT_NAME, construct=f"{path}/date"),
        amount=parse_decimal(dto.amount, format_name=FORMAT_NAME, construct=f"{path}/amount"),
        currency=dto.currency,
    )


def _entry_from_dto(dto: XmlEntry, path: str) -> Entry:
    return Entry(
        booking_date=parse_iso_date(
            dto.booking_date, format_name=FORMAT_NAME, construct=f"{path}/booking_date"
        ),
        value_date=(
            parse_iso_date(dto.value_date, format_name=FORMAT_NAME, construct=f"{path}/value_date")
            if dto.value_date is not None
            else None
        ),
        amount=parse_unsigned_decimal(
            dto.amount, format_name=FORMAT_NAME, construct=f"{path}/amount"
        ),
        currency=dto.currency,
        dc=parse_indicator(dto.dc, format_name=FORMAT_NAME, construct=f"{path}/dc"),
        description=dto.description,
        reference=dto.reference,
    )


def _balance_to_dto(b: Balance | None) -> XmlBalance | None:
    if b is None:
        return None
    return XmlBalance(
        date=format_iso_date(b.date), amount=format_decimal(b.amount), currency=b.currency
    )


def _statement_to_dto(st: Statement) -> XmlStatement:
    return XmlStatement(
        statement_id=st.statement_id,
        account_id=st.account_id,
        opening_balance=_balance_to_dto(st.opening_balance),
        closing_balance=_balance_to_dto(st.closing_balance),
        entries=[
            XmlEntry(
                booking_date=format_iso_date(e.booking_date),
                value_date=format_iso_date(e.value_date) if e.value_date is not None else None,
                amount=format_decimal(e.amount),
                currency=e.currency,
                dc=e.dc.letter,
                description=e.description,
                reference=e.reference,
            )
            for e in st.entries
        ],
    )


class SimpleXmlCodec:
    """Schema-light XML tree mirroring :class:`~statement_codecs.models.Statement`."""

    name = FORMAT_NAME

    def decode(self, stream: BinaryIO) -> Statement:
        try:
            root = ET.parse(stream).getroot()
        except ET.ParseError as exc:
            raise MalformedRecordError(FORMAT_NAME, "document", f"unparsable XML: {exc}") from exc
        if root.tag != ROOT_TAG:
            raise MalformedRecordError(
                FORMAT_NAME, root.tag, f"expected root element <{ROOT_TAG}>"
            )

        try:
            dto = XmlStatement.model_validate(_tree_to_dict(root))
        except ValidationError as exc:
            first = exc.errors()[0]
            raise MalformedRecordError(
                FORMAT_NAME, _loc_to_path(tuple(first["loc"])), first["msg"]
            ) from exc

        entries = tuple(
            _entry_from_dto(e, f"{ROOT_TAG}/{ENTRY_TAG}[{i}]")
            for i, e in enumerate(dto.entries, start=1)
        )
        statement = Statement(
            statement_id=dto.statement_id,
            account_id=dto.account_id,
            opening_balance=(
                _balance_from_dto(dto.opening_balance, f"{ROOT_TAG}/opening_balance")
                if dto.opening_balance is not None
                else None
            ),
            closing_balance=(
                _balance_from_dto(dto.closing_balance, f"{ROOT_TAG}/closing_balance")
                if dto.closing_balance is not None
                else None
            ),
            entries=entries,
        )
        _logger.debug("decoded %d xml entries", len(entries))
        return statement

    def encode(self, statement: Statement, stream: BinaryIO) -> None:
        dto = _statement_to_dto(statement)
        root = _dict_to_tree(dto.model_dump(exclude_none=True))
        check_xml_text(root, format_name=FORMAT_NAME)
        ET.indent(root, space="  ")

        buf = io.BytesIO()
        ET.ElementTree(root).write(buf, encoding=ENCODING, xml_declaration=True)
        buf.write(b"\n")
        stream.write(buf.getvalue())
        _logger.debug("encoded %d xml entries", len(statement.entries))


__all__ = ["FORMAT_NAME", "SimpleXmlCodec", "XmlBalance", "XmlEntry", "XmlStatement"]
