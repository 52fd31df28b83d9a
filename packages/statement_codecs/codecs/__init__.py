"""Per-format statement codecs.

Each codec is a stateless object with ``decode(stream) -> Statement`` and
``encode(statement, stream)``; see :mod:`statement_codecs.codecs.base`.
"""

from .base import StatementCodec
from .camt053 import Camt053Codec
from .mt940 import Mt940Codec
from .simple_xml import SimpleXmlCodec
from .tabular import TabularCodec

__all__ = [
    "Camt053Codec",
    "Mt940Codec",
    "SimpleXmlCodec",
    "StatementCodec",
    "TabularCodec",
]
