"""latexcompile: compile LaTeX sources to PDF in a disposable workspace, with ##key## templating."""

from __future__ import annotations

from loguru import logger

from latexcompile.core import LatexCompiler, LatexInput, compile_request
from latexcompile.errors import (
    ArtifactNotFound,
    CompileError,
    ExtractError,
    InputError,
    InvalidRequest,
    LatexError,
    MaterializeError,
    PathViolation,
    WorkspaceError,
)
from latexcompile.models import (
    CompilationRequest,
    CompileResult,
    CompilerConfig,
    Diagnostic,
    InputKind,
    NamedInput,
    Stage,
)
from latexcompile.templating import render

# Silent when embedded; the CLI enables its own sink
logger.disable("latexcompile")

__version__ = "0.1.0"
__all__ = [
    "ArtifactNotFound",
    "CompilationRequest",
    "CompileError",
    "CompileResult",
    "CompilerConfig",
    "Diagnostic",
    "ExtractError",
    "InputError",
    "InputKind",
    "InvalidRequest",
    "LatexCompiler",
    "LatexError",
    "LatexInput",
    "MaterializeError",
    "NamedInput",
    "PathViolation",
    "Stage",
    "WorkspaceError",
    "compile_request",
    "render",
]
