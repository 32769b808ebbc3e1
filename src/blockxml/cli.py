"""
Command-line interface for the block designer converters.

Converts TipTap JSON documents to semantic XML and back, and checks either
format for well-formedness.
"""

import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from .config import ConverterOptions, resolve_options
from .converters import parse, serialize, validate_json_syntax, validate_xml_syntax
from .model import dump_document, load_document
from .utils.errors import BlockXmlError, CLIError, ErrorCategory, cli_error_handler
from .utils.logging import LoggerFactory, get_cli_logger

app = typer.Typer(
    name="block-designer",
    help="Convert TipTap JSON documents to semantic XML and back",
    no_args_is_help=True,
)

console = Console()

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@app.callback()
def main_callback(
    ctx: typer.Context,
    mark_type: Optional[List[str]] = typer.Option(
        None,
        "--mark-type",
        "-m",
        help="Extra element name to treat as an inline mark (repeatable)",
    ),
    indent: Optional[int] = typer.Option(
        None,
        "--indent",
        min=0,
        max=8,
        help="Spaces per nesting level in XML output",
    ),
    coerce_scalars: bool = typer.Option(
        False,
        "--coerce-scalars",
        help="Read true/false and numeric attribute values as JSON scalars",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Log level for diagnostics written to stderr",
    ),
):
    """Block designer converters."""
    if log_level.upper() not in _LOG_LEVELS:
        cli_error_handler.handle_error(
            CLIError(
                f"Unknown log level: {log_level}",
                help_text=f"Use one of: {', '.join(_LOG_LEVELS)}",
            ),
            "configure logging",
        )
    LoggerFactory.configure_logging(level=log_level, format_type="console")

    try:
        options = resolve_options(extra_mark_types=mark_type or ())
    except BlockXmlError as e:
        cli_error_handler.handle_error(e, "load configuration")

    if indent is not None:
        options = replace(options, indent=" " * indent)
    if coerce_scalars:
        options = replace(options, coerce_scalars=True)
    ctx.obj = options


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise CLIError(
            f"Cannot read {path}: {e.strerror or e}",
            category=ErrorCategory.FILESYSTEM,
            help_text="Check the path exists and is readable",
        ) from e


def _write_output(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text)
        return
    try:
        output.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        raise CLIError(
            f"Cannot write {output}: {e.strerror or e}",
            category=ErrorCategory.FILESYSTEM,
        ) from e
    console.print(f"[green]✓[/green] Wrote [cyan]{output}[/cyan]", highlight=False)


@app.command("to-xml")
def to_xml_command(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="JSON file to convert, or - for stdin"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write XML here"),
):
    """
    Convert a TipTap JSON document to semantic XML.

    Example:
        block-designer to-xml doc.json
        cat doc.json | block-designer to-xml - -o doc.xml
    """
    options: ConverterOptions = ctx.obj
    logger = get_cli_logger()
    try:
        with logger.operation_context("to_xml", source=source):
            xml = serialize(load_document(_read_source(source)), options)
        _write_output(xml, output)
    except BlockXmlError as e:
        cli_error_handler.handle_error(e.with_context(source=source), "convert JSON to XML")


@app.command("to-json")
def to_json_command(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="XML file to convert, or - for stdin"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here"),
    compact: bool = typer.Option(False, "--compact", help="Emit JSON without indentation"),
):
    """
    Convert semantic XML (with or without a <doc> wrapper) to TipTap JSON.

    Example:
        block-designer to-json doc.xml
    """
    options: ConverterOptions = ctx.obj
    logger = get_cli_logger()
    try:
        with logger.operation_context("to_json", source=source):
            doc = parse(_read_source(source), options)
        _write_output(dump_document(doc, indent=None if compact else 2), output)
    except BlockXmlError as e:
        cli_error_handler.handle_error(e.with_context(source=source), "convert XML to JSON")


def _infer_format(source: str) -> Optional[str]:
    suffix = Path(source).suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix == ".xml":
        return "xml"
    return None


@app.command("check")
def check_command(
    source: str = typer.Argument(..., help="File to check, or - for stdin"),
    format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="json or xml (inferred from the file suffix when omitted)",
    ),
):
    """
    Check a JSON or XML file for well-formedness.

    Example:
        block-designer check doc.xml
        block-designer check - --format json < doc.json
    """
    try:
        fmt = (format or _infer_format(source) or "").lower()
        if fmt not in ("json", "xml"):
            raise CLIError(
                "Cannot tell which format to check",
                help_text="Pass --format json or --format xml",
            )
        text = _read_source(source)
    except BlockXmlError as e:
        cli_error_handler.handle_error(e, "check syntax")

    problem = validate_json_syntax(text) if fmt == "json" else validate_xml_syntax(text)
    if problem:
        typer.echo(f"{fmt.upper()}: {problem}", err=True)
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] {fmt.upper()} valid", highlight=False)


def main() -> None:
    """Entry point for CLI script."""
    app()
