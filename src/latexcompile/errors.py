"""Error kinds raised by the compilation pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from latexcompile.models import Diagnostic, Stage


class LatexError(Exception):
    """Base class for every failure the pipeline reports."""

    code = "latex-error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        # Last stage reached before the failure, set by the orchestrator
        self.stage: Optional[Stage] = None

    def __str__(self) -> str:
        return self.message


class InvalidRequest(LatexError):
    """The request is inconsistent, e.g. the main file is not an input."""

    code = "invalid-request"


class InputError(LatexError):
    """An input could not be read from disk while building a request."""

    code = "input-error"


class PathViolation(LatexError):
    """An input name would place a file outside the workspace."""

    code = "path-violation"

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Unsafe input name {name!r}: {reason}")
        self.name = name
        self.reason = reason


class WorkspaceError(LatexError, OSError):
    """The temporary workspace could not be created or removed."""

    code = "workspace-error"


class MaterializeError(LatexError):
    """Writing the inputs into the workspace failed."""

    code = "materialize-error"


class CompileError(LatexError):
    """The toolchain exited non-zero, could not run, or produced no PDF."""

    code = "compile-error"

    def __init__(
        self,
        message: str,
        return_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        diagnostics: Optional[list[Diagnostic]] = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.return_code = return_code
        self.stdout = stdout
        self.stderr = stderr
        self.diagnostics = diagnostics or []
        self.timed_out = timed_out

    @property
    def log(self) -> str:
        """Captured stdout followed by stderr."""
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


class ExtractError(LatexError):
    """The produced PDF could not be read back."""

    code = "extract-error"


class ArtifactNotFound(ExtractError):
    code = "artifact-not-found"
