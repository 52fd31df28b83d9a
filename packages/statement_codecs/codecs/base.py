"""The shape every statement codec implements.

``decode`` reads a binary stream strictly forward and returns a complete
:class:`~statement_codecs.models.Statement` or raises a
:class:`~statement_codecs.errors.StatementFormatError`; it never returns a
partially decoded statement. ``encode`` renders the whole document in memory
and writes it with a single ``write`` call, so a failure leaves nothing
half-written. Codecs hold no state between calls.
"""

from __future__ import annotations

import io
import re
import xml.etree.ElementTree as ET
from collections import Counter
from typing import BinaryIO, Protocol, runtime_checkable

from ..errors import MalformedRecordError
from ..models import Statement

ENCODING = "utf-8"

# Characters XML 1.0 can carry through a parse unchanged. Carriage returns are
# legal but a parser folds them into newlines, so they are excluded too.
_NON_XML_TEXT = re.compile("[^\t\n\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


@runtime_checkable
class StatementCodec(Protocol):
    name: str

    def decode(self, stream: BinaryIO) -> Statement: ...

    def encode(self, statement: Statement, stream: BinaryIO) -> None: ...


def decode_lines(stream: BinaryIO, *, format_name: str):
    """Yield text lines (line endings stripped) from a UTF-8 byte stream."""

    for lineno, raw in enumerate(stream, start=1):
        try:
            line = raw.decode(ENCODING)
        except UnicodeDecodeError as exc:
            raise MalformedRecordError(
                format_name, f"line {lineno}", f"not valid {ENCODING}: {exc.reason}"
            ) from exc
        yield line.rstrip("\r\n")


def read_text(stream: BinaryIO, *, format_name: str) -> io.StringIO:
    """Decode the remaining stream into a text buffer for the stdlib readers."""

    try:
        text = stream.read().decode(ENCODING)
    except UnicodeDecodeError as exc:
        raise MalformedRecordError(
            format_name, "document", f"not valid {ENCODING}: {exc.reason}"
        ) from exc
    return io.StringIO(text, newline="")


def check_xml_text(root: ET.Element, *, format_name: str) -> None:
    """Reject element text or attribute values that would not survive a parse.

    The offending element is named by its path from ``root``; siblings that
    share a tag are numbered from 1 (``Ntry[2]``).
    """

    _check_element(root, root.tag, format_name)


def _check_element(elem: ET.Element, path: str, format_name: str) -> None:
    _check_value(elem.text, path, format_name)
    for name, value in elem.attrib.items():
        _check_value(value, f"{path}@{name}", format_name)

    counts = Counter(child.tag for child in elem)
    seen: Counter[str] = Counter()
    for child in elem:
        seen[child.tag] += 1
        step = child.tag if counts[child.tag] == 1 else f"{child.tag}[{seen[child.tag]}]"
        _check_element(child, f"{path}/{step}", format_name)


def _check_value(value: str | None, path: str, format_name: str) -> None:
    if not value:
        return
    bad = _NON_XML_TEXT.search(value)
    if bad is not None:
        raise MalformedRecordError(
            format_name, path, f"character {bad.group()!r} can't be written to XML"
        )


__all__ = ["ENCODING", "StatementCodec", "check_xml_text", "decode_lines", "read_text"]
