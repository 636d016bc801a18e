"""Core compilation logic for latexcompile."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Mapping, Optional, Union

from loguru import logger

from latexcompile.errors import CompileError, InputError, LatexError
from latexcompile.extract import extract
from latexcompile.invoker import CompilerInvoker, Invocation
from latexcompile.materialize import materialize
from latexcompile.models import (
    CompilationRequest,
    CompileResult,
    CompilerConfig,
    Diagnostic,
    NamedInput,
    Stage,
)
from latexcompile.workspace import acquire


class LatexInput:
    """Collects the files of one compilation.

    Strings are added as text inputs (templated), bytes as binary inputs
    (copied verbatim).
    """

    def __init__(self) -> None:
        self.inputs: list[NamedInput] = []

    def __iter__(self) -> Iterator[NamedInput]:
        return iter(self.inputs)

    def __len__(self) -> int:
        return len(self.inputs)

    def add(self, name: str, content: Union[str, bytes]) -> LatexInput:
        if isinstance(content, str):
            self.inputs.append(NamedInput.text(name, content))
        else:
            self.inputs.append(NamedInput.binary(name, content))
        return self

    def add_file(self, path: Path, name: Optional[str] = None) -> LatexInput:
        """Add a file from disk under ``name`` (defaults to its file name).

        Content that decodes as UTF-8 is treated as text, anything else as
        binary.

        Raises:
            InputError: If the file cannot be read
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise InputError(f"Unable to read input file {path}: {exc}") from exc

        name = name or path.name
        try:
            self.inputs.append(NamedInput.text(name, data.decode("utf-8")))
        except UnicodeDecodeError:
            self.inputs.append(NamedInput.binary(name, data))
        return self

    def add_folder(self, folder: Path, prefix: str = "") -> LatexInput:
        """Add every file below ``folder``, named relative to it.

        Raises:
            InputError: If ``folder`` is not a directory
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise InputError(f"Input folder not found: {folder}")

        for path in sorted(p for p in folder.rglob("*") if p.is_file()):
            relative = path.relative_to(folder).as_posix()
            self.add_file(path, name=f"{prefix.rstrip('/')}/{relative}" if prefix else relative)
        return self

    def build(
        self, main_file: str, values: Optional[Mapping[str, str]] = None
    ) -> CompilationRequest:
        return CompilationRequest(
            inputs=tuple(self.inputs), main_file=main_file, values=values or {}
        )


class LatexCompiler:
    """Compiles requests in a fresh temporary workspace each time.

    Instances hold only immutable configuration, so one compiler can serve
    concurrent calls from several threads.
    """

    def __init__(
        self,
        values: Optional[Mapping[str, str]] = None,
        config: Optional[CompilerConfig] = None,
    ) -> None:
        self.values = dict(values or {})
        self.config = config or CompilerConfig()

    def with_command(self, command: str) -> LatexCompiler:
        """Return a compiler that runs ``command`` instead of the default."""
        return LatexCompiler(self.values, self.config.with_command(command))

    def with_args(self, *args: str) -> LatexCompiler:
        """Return a compiler whose arguments are replaced by ``args``."""
        return LatexCompiler(self.values, self.config.with_args(*args))

    def add_arg(self, arg: str) -> LatexCompiler:
        return LatexCompiler(self.values, self.config.add_arg(arg))

    def run(self, main_file: str, inputs: Iterable[NamedInput]) -> bytes:
        """Compile ``main_file`` from ``inputs`` with this compiler's values.

        Returns:
            The PDF bytes

        Raises:
            LatexError: Subclass describing the first failure
        """
        request = CompilationRequest(
            inputs=tuple(inputs), main_file=main_file, values=self.values
        )
        return self.compile(request)

    def compile(self, request: CompilationRequest) -> bytes:
        pdf, _ = self.execute(request)
        return pdf

    def execute(self, request: CompilationRequest) -> tuple[bytes, Invocation]:
        """Run the whole pipeline for ``request``.

        The workspace is removed before this returns or raises.

        Returns:
            Tuple of (pdf_bytes, invocation)

        Raises:
            LatexError: Subclass describing the first failure, with ``stage``
                set to the last stage reached
        """
        stage = Stage.CREATED
        try:
            request.validate()
            with acquire(self.config.workspace_parent) as workspace:
                stage = Stage.WORKSPACE_READY
                materialize(workspace, request.inputs, request.values)
                stage = Stage.INPUTS_WRITTEN
                invocation = CompilerInvoker(self.config).invoke(workspace, request.main_file)
                stage = Stage.COMPILED
                pdf = extract(workspace, request.main_file)
                stage = Stage.ARTIFACT_EXTRACTED
        except LatexError as exc:
            exc.stage = stage
            logger.warning(f"Compilation of {request.main_file} failed after stage {stage.value}: {exc}")
            if isinstance(exc, CompileError) and exc.log:
                logger.opt(raw=True).debug(f"\n{'=' * 80}\nCOMPILER OUTPUT:\n{'=' * 80}\n{exc.log}\n")
            raise

        logger.info(f"Compiled {request.main_file} ({len(pdf)} bytes)")
        return pdf, invocation


def _failure_diagnostics(error: LatexError) -> list[Diagnostic]:
    if isinstance(error, CompileError):
        if error.timed_out:
            return [
                Diagnostic(
                    level="error",
                    code="timeout",
                    message=error.message,
                    raw=error.log[-500:],
                )
            ]
        if error.diagnostics:
            return list(error.diagnostics)
        log = error.log
        return [
            Diagnostic(
                level="error",
                code="compilation-failed",
                message=f"{error.message}. Check the log for details.",
                raw=log[-500:] if len(log) > 500 else log,  # Last 500 chars as sample
            )
        ]

    return [Diagnostic(level="error", code=error.code, message=error.message, raw=str(error))]


def compile_request(
    request: CompilationRequest,
    config: Optional[CompilerConfig] = None,
) -> CompileResult:
    """Compile a request to PDF, reporting failures as a result.

    Args:
        request: Inputs, placeholder values and main file
        config: How to run the compiler (defaults to pdflatex)

    Returns:
        CompileResult with the PDF on success, or the failing stage, error
        kind, captured log and diagnostics on failure
    """
    compiler = LatexCompiler(config=config)
    try:
        pdf, invocation = compiler.execute(request)
    except LatexError as exc:
        return CompileResult(
            success=False,
            log=exc.log if isinstance(exc, CompileError) else str(exc),
            diagnostics=_failure_diagnostics(exc),
            return_code=exc.return_code if isinstance(exc, CompileError) else None,
            stage=Stage.FAILED,
            failed_at=exc.stage,
            error=exc.code,
        )

    log = invocation.stdout + invocation.stderr
    return CompileResult(
        success=True,
        pdf=pdf,
        log=log,
        return_code=invocation.return_code,
        stage=Stage.ARTIFACT_EXTRACTED,
    )
