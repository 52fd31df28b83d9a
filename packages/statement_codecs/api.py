"""Format selection and conversion for the ``statement_codecs`` package.

Callers pick a :class:`StatementFormat` and hand over binary streams; the
matching codec does the work. A conversion is decode-then-encode through the
canonical :class:`~statement_codecs.models.Statement`, so any source format
can be written as any target format.
"""

from __future__ import annotations

from enum import StrEnum
from typing import BinaryIO

from .codecs import Camt053Codec, Mt940Codec, SimpleXmlCodec, StatementCodec, TabularCodec
from .logging_setup import get_logger
from .models import Statement

_logger = get_logger("statement_codecs.api")


class StatementFormat(StrEnum):
    """Supported document formats. Values are the canonical CLI names."""

    CSV = "csv"
    XML = "xml"
    MT940 = "mt940"
    CAMT053 = "camt053"

    @classmethod
    def parse(cls, name: str) -> StatementFormat:
        """Resolve a user-supplied format name (case-insensitive, aliases allowed).

        Raises
        ------
        ValueError
            If ``name`` matches no known format or alias.
        """

        key = name.strip().lower()
        fmt = _ALIASES.get(key)
        if fmt is None:
            known = ", ".join(f.value for f in cls)
            raise ValueError(f"unknown statement format {name!r} (expected one of: {known})")
        return fmt


_ALIASES: dict[str, StatementFormat] = {
    "csv": StatementFormat.CSV,
    "tabular": StatementFormat.CSV,
    "xml": StatementFormat.XML,
    "simple-xml": StatementFormat.XML,
    "simple_xml": StatementFormat.XML,
    "mt940": StatementFormat.MT940,
    "swift": StatementFormat.MT940,
    "swift-mt940": StatementFormat.MT940,
    "camt053": StatementFormat.CAMT053,
    "camt.053": StatementFormat.CAMT053,
    "camt": StatementFormat.CAMT053,
}

_CODECS: dict[StatementFormat, StatementCodec] = {
    StatementFormat.CSV: TabularCodec(),
    StatementFormat.XML: SimpleXmlCodec(),
    StatementFormat.MT940: Mt940Codec(),
    StatementFormat.CAMT053: Camt053Codec(),
}


def _coerce(fmt: StatementFormat | str) -> StatementFormat:
    if isinstance(fmt, StatementFormat):
        return fmt
    return StatementFormat.parse(fmt)


def get_codec(fmt: StatementFormat | str) -> StatementCodec:
    """Return the (stateless, shareable) codec for ``fmt``."""

    return _CODECS[_coerce(fmt)]


def decode(fmt: StatementFormat | str, stream: BinaryIO) -> Statement:
    """Decode one statement document of format ``fmt`` from ``stream``."""

    return get_codec(fmt).decode(stream)


def encode(fmt: StatementFormat | str, statement: Statement, stream: BinaryIO) -> None:
    """Write ``statement`` to ``stream`` in format ``fmt``."""

    get_codec(fmt).encode(statement, stream)


def convert(
    source_fmt: StatementFormat | str,
    target_fmt: StatementFormat | str,
    src: BinaryIO,
    dst: BinaryIO,
) -> Statement:
    """Decode ``src`` as ``source_fmt`` and encode it to ``dst`` as ``target_fmt``.

    Returns the intermediate :class:`Statement`. The first error aborts the
    conversion; nothing is written to ``dst`` when decoding fails.
    """

    source = _coerce(source_fmt)
    target = _coerce(target_fmt)
    statement = get_codec(source).decode(src)
    _logger.debug(
        "converting %s -> %s (%d entries, account %s)",
        source.value,
        target.value,
        len(statement.entries),
        statement.account_id or "<none>",
    )
    get_codec(target).encode(statement, dst)
    return statement


__all__ = ["StatementFormat", "convert", "decode", "encode", "get_codec"]
