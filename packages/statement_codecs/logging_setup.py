"""Logging for ``statement_codecs``.

Converted documents may be written to stdout, so diagnostics never go there:
the one handler this module installs writes to stderr (or a stream the caller
passes). Codec modules only ask for ``statement_codecs.*`` loggers through
:func:`get_logger` and stay silent until an entrypoint, normally the CLI root
callback, calls :func:`configure_logging`.

The level comes from the ``level`` argument, else ``STATEMENT_CODECS_LOG_LEVEL``
(a name such as ``debug`` or a number), else ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_codecs"
LOG_LEVEL_ENV = "STATEMENT_CODECS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    text = level.strip().upper()
    if text.isdigit():
        return int(text)
    # Unknown names mean INFO.
    resolved = logging.getLevelNamesMapping().get(text)
    return resolved if resolved is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach the package's single stderr handler; later calls are no-ops.

    Parameters
    ----------
    level:
        ``int`` or level name. ``None`` reads ``STATEMENT_CODECS_LOG_LEVEL``.
    fmt:
        Record format, ``DEFAULT_FORMAT`` when omitted.
    stream:
        Handler target. ``None`` means the ``sys.stderr`` current at call time,
        which is what test runners capture.
    """

    global _configured
    if _configured:
        return

    pkg = logging.getLogger(PACKAGE_LOGGER)
    for h in list(pkg.handlers):
        if isinstance(h, logging.NullHandler):
            pkg.removeHandler(h)

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    pkg.setLevel(resolved)
    pkg.addHandler(handler)
    pkg.propagate = False

    _configured = True


def reset_logging() -> None:
    """Undo :func:`configure_logging`; used between tests."""

    global _configured
    pkg = logging.getLogger(PACKAGE_LOGGER)
    for h in list(pkg.handlers):
        pkg.removeHandler(h)
    pkg.setLevel(logging.NOTSET)
    pkg.propagate = True
    _configured = False


def get_logger(name: str) -> logging.Logger:
    """Logger for a ``statement_codecs`` module; a ``NullHandler`` until configured."""

    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not _configured and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LOG_LEVEL_ENV", "configure_logging", "get_logger", "reset_logging"]
