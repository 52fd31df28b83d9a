# ruff: noqa: I001
"""CLI for the ``statement_codecs`` package.

This module exposes a callable command handler (``cmd_convert``) and a
Typer-based console interface. Environment variables (notably the default
formats ``STATEMENT_CODECS_IN_FORMAT`` / ``STATEMENT_CODECS_OUT_FORMAT`` and the
log level) are loaded from a local ``.env`` using ``python-dotenv`` before
delegating to command logic. Conversion logic lives in
``statement_codecs.api``.
"""

from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .api import StatementFormat, convert
from .errors import StatementFormatError
from .logging_setup import configure_logging, get_logger

_logger = get_logger("statement_codecs.cli")


def cmd_convert(
    in_format: StatementFormat,
    out_format: StatementFormat,
    input_path: Path | None = None,
    output_path: Path | None = None,
) -> int:
    """Convert one statement document and write the result.

    Behavior
    --------
    - Reads ``input_path`` (or stdin when ``None``) as raw bytes.
    - Decodes it as ``in_format`` and encodes it as ``out_format`` into an
      in-memory buffer.
    - Only after both steps succeed, writes the buffer to ``output_path`` (or
      stdout when ``None``). A failed conversion never creates or truncates the
      output file.

    Errors are written to stderr and the function returns ``1``. On success,
    returns ``0``.
    """

    try:
        if input_path is None:
            data = typer.get_binary_stream("stdin").read()
        else:
            data = input_path.read_bytes()
    except FileNotFoundError:
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {input_path}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Failed to read input: {e}", file=sys.stderr)
        return 1

    out = io.BytesIO()
    try:
        statement = convert(in_format, out_format, io.BytesIO(data), out)
    except StatementFormatError as e:
        print(f"Error: Failed to convert {in_format} -> {out_format}: {e}", file=sys.stderr)
        return 1

    try:
        if output_path is None:
            stdout = typer.get_binary_stream("stdout")
            stdout.write(out.getvalue())
            stdout.flush()
        else:
            output_path.write_bytes(out.getvalue())
    except OSError as e:
        print(f"Error: Failed to write output: {e}", file=sys.stderr)
        return 1

    _logger.debug("wrote %d bytes for %d entries", len(out.getvalue()), len(statement.entries))
    return 0


def _parse_format(value: str) -> StatementFormat:
    """Typer callback turning a format name into a :class:`StatementFormat`."""

    try:
        return StatementFormat.parse(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Convert bank statements between CSV, simple XML, SWIFT MT940 and "
        "ISO20022 camt.053. Loads defaults from a local .env before running."
    ),
)


# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Typer will inspect these when used as default values below.
IN_FORMAT_OPTION: OptionInfo = typer.Option(
    ...,
    "--in-format",
    envvar="STATEMENT_CODECS_IN_FORMAT",
    help="Source format: csv, xml, mt940 or camt053.",
)
OUT_FORMAT_OPTION: OptionInfo = typer.Option(
    ...,
    "--out-format",
    envvar="STATEMENT_CODECS_OUT_FORMAT",
    help="Target format: csv, xml, mt940 or camt053.",
)
INPUT_OPTION: OptionInfo = typer.Option(
    ...,
    "--input",
    "-i",
    help="Input file (defaults to stdin).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
OUTPUT_OPTION: OptionInfo = typer.Option(
    ...,
    "--output",
    "-o",
    help="Output file (defaults to stdout).",
    dir_okay=False,
    file_okay=True,
)


@app.command("convert")
def convert_cmd(
    in_format: Annotated[str, IN_FORMAT_OPTION],
    out_format: Annotated[str, OUT_FORMAT_OPTION],
    input_path: Annotated[Path | None, INPUT_OPTION] = None,
    output_path: Annotated[Path | None, OUTPUT_OPTION] = None,
) -> None:
    """Convert a statement from one format to another."""

    source = _parse_format(in_format)
    target = _parse_format(out_format)
    code = cmd_convert(source, target, input_path, output_path)
    if code:
        raise typer.Exit(code)


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging before any
    subcommand runs.
    """

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()


if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    # Running as a module: `python -m statement_codecs.cli`
    app()
