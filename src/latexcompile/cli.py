"""CLI interface for latexcompile."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger

from latexcompile.core import LatexInput, compile_request
from latexcompile.errors import InputError, InvalidRequest
from latexcompile.models import CompileResult, CompilerConfig, Diagnostic

app = typer.Typer(
    name="latexcompile",
    help="Compile LaTeX sources to PDF in a disposable workspace, filling ##key## placeholders",
)


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.enable("latexcompile")
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _parse_values(pairs: list[str]) -> dict[str, str]:
    """Turn ``key=value`` pairs into a placeholder mapping."""
    values: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InputError(f"Expected key=value for --set, got '{pair}'")
        values[key] = value
    return values


def _collect_inputs(paths: list[Path]) -> LatexInput:
    """Add files by name and folders by their relative contents."""
    inputs = LatexInput()
    for path in paths:
        if path.is_dir():
            inputs.add_folder(path)
        else:
            inputs.add_file(path)
    return inputs


def _fail(message: str, code: str, raw: str, json_output: bool) -> None:
    if json_output:
        result = CompileResult(
            success=False,
            error=code,
            diagnostics=[Diagnostic(level="error", code=code, message=message, raw=raw)],
        )
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _print_diagnostics(result: CompileResult) -> None:
    """Print diagnostics in human-readable format."""
    for diag in result.diagnostics:
        location = f" ({diag.file}:{diag.line})" if diag.line is not None else ""
        typer.echo(f"{diag.level.upper()} [{diag.code}]{location}: {diag.message}", err=True)
        if diag.raw:
            typer.echo(f"  ↳ raw: {diag.raw[:200]}", err=True)


@app.command()
def main(
    main_file: Annotated[
        str,
        typer.Argument(help="Name of the main .tex input, as it appears among the inputs"),
    ],
    inputs: Annotated[
        Optional[list[Path]],
        typer.Argument(help="Input files or folders (defaults to the main file itself)"),
    ] = None,
    values: Annotated[
        Optional[list[str]],
        typer.Option("--set", "-s", help="Placeholder value as key=value (repeatable)"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Where to write the PDF (default: <main>.pdf)"),
    ] = None,
    command: Annotated[
        str,
        typer.Option("--command", "-c", envvar="LATEXCOMPILE_COMMAND", help="LaTeX compiler executable"),
    ] = "pdflatex",
    args: Annotated[
        Optional[list[str]],
        typer.Option("--arg", help="Compiler argument, replaces the defaults (repeatable)"),
    ] = None,
    passes: Annotated[
        int,
        typer.Option("--passes", "-p", envvar="LATEXCOMPILE_PASSES", min=1, help="Number of compiler runs"),
    ] = 1,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", "-t", envvar="LATEXCOMPILE_TIMEOUT", help="Maximum seconds per compiler run"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output result as JSON"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log pipeline stages and compiler output"),
    ] = False,
) -> None:
    """Compile a LaTeX document to PDF.

    Examples:
        latexcompile main.tex
        latexcompile main.tex main.tex logo.png --set name=World
        latexcompile main.tex assets/ --passes 2 --json
    """
    _configure_logging(verbose)

    try:
        placeholder_values = _parse_values(values or [])
        collected = _collect_inputs(inputs or [Path(main_file)])
        if not inputs:
            main_file = Path(main_file).name
    except InputError as exc:
        _fail(exc.message, exc.code, str(exc), json_output)

    config = CompilerConfig(command=command, passes=passes, timeout=timeout)
    if args:
        config = config.with_args(*args)

    request = collected.build(main_file, placeholder_values)
    try:
        request.validate()
    except InvalidRequest as exc:
        _fail(exc.message, exc.code, str(exc), json_output)

    result = compile_request(request, config)

    if result.success and result.pdf is not None:
        pdf_path = output or Path(Path(main_file).stem + ".pdf")
        try:
            pdf_path.parent.mkdir(parents=True, exist_ok=True)
            pdf_path.write_bytes(result.pdf)
        except OSError as exc:
            _fail(f"Unable to write {pdf_path}: {exc}", "output-error", str(exc), json_output)

    if json_output:
        payload = result.to_dict()
        payload["pdf_path"] = str(pdf_path.resolve()) if result.success else None
        typer.echo(json.dumps(payload, indent=2))
        sys.exit(0 if result.success else 2)

    if result.success:
        typer.echo(f"OK: {pdf_path.resolve()}")
        sys.exit(0)
    else:
        typer.echo(f"Compilation failed ({result.error}).", err=True)
        _print_diagnostics(result)
        sys.exit(2)


if __name__ == "__main__":
    app()
