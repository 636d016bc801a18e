"""Data models for latexcompile requests, configuration and results."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Literal, Mapping, Optional, Union

from latexcompile.errors import InvalidRequest


class InputKind(str, Enum):
    """How an input is treated when it is written into the workspace."""

    TEXT = "text"
    BINARY = "binary"


class Stage(str, Enum):
    """Stages a single compilation passes through."""

    CREATED = "created"
    WORKSPACE_READY = "workspace-ready"
    INPUTS_WRITTEN = "inputs-written"
    COMPILED = "compiled"
    ARTIFACT_EXTRACTED = "artifact-extracted"
    FAILED = "failed"


@dataclass(frozen=True)
class NamedInput:
    """A file to place in the workspace under ``name``."""

    name: str
    content: Union[str, bytes]
    kind: InputKind = InputKind.TEXT

    @classmethod
    def text(cls, name: str, content: str) -> NamedInput:
        return cls(name=name, content=content, kind=InputKind.TEXT)

    @classmethod
    def binary(cls, name: str, content: bytes) -> NamedInput:
        return cls(name=name, content=bytes(content), kind=InputKind.BINARY)

    @property
    def is_text(self) -> bool:
        return self.kind is InputKind.TEXT


@dataclass(frozen=True)
class CompilationRequest:
    """Everything needed for one compilation.

    Attributes:
        inputs: Files to materialize, in order
        values: Placeholder key to replacement value
        main_file: Name of the input handed to the compiler
    """

    inputs: tuple[NamedInput, ...]
    main_file: str
    values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the caller's containers so later mutation has no effect
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "values", dict(self.values))

    @property
    def names(self) -> list[str]:
        return [item.name for item in self.inputs]

    def validate(self) -> None:
        """Check the request before any workspace or process exists.

        Raises:
            InvalidRequest: If there are no inputs, names repeat, or the main
                file is not among the inputs
        """
        if not self.inputs:
            raise InvalidRequest("No input files provided.")

        # Aliases such as "main.tex" and "./main.tex" name the same file
        seen: set[tuple[str, ...]] = set()
        for name in self.names:
            key = PurePosixPath(name).parts
            if key in seen:
                raise InvalidRequest(f"Duplicate input name: {name}")
            seen.add(key)

        if PurePosixPath(self.main_file).parts not in seen:
            raise InvalidRequest(
                f"Main file '{self.main_file}' is not one of the provided inputs"
            )


@dataclass(frozen=True)
class CompilerConfig:
    """How the external LaTeX toolchain is invoked.

    The executable is taken as given and resolved by the operating system;
    it is never probed for.
    """

    command: str = "pdflatex"
    args: tuple[str, ...] = ("-interaction=nonstopmode",)
    passes: int = 1
    timeout: Optional[float] = None
    workspace_parent: Optional[Path] = None
    env: Optional[Mapping[str, str]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))
        if self.passes < 1:
            raise ValueError(f"passes must be at least 1, got {self.passes}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    def with_command(self, command: str) -> CompilerConfig:
        """Return a copy that runs ``command`` instead."""
        return replace(self, command=command)

    def with_args(self, *args: str) -> CompilerConfig:
        """Return a copy whose argument list is replaced by ``args``."""
        return replace(self, args=tuple(args))

    def add_arg(self, arg: str) -> CompilerConfig:
        """Return a copy with ``arg`` appended to the argument list."""
        return replace(self, args=(*self.args, arg))

    def command_line(self, main_file: str) -> list[str]:
        return [self.command, *self.args, main_file]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> CompilerConfig:
        """Build a config from ``LATEXCOMPILE_*`` environment variables."""
        environ = os.environ if environ is None else environ
        config = cls()
        if environ.get("LATEXCOMPILE_COMMAND"):
            config = config.with_command(environ["LATEXCOMPILE_COMMAND"])
        if environ.get("LATEXCOMPILE_ARGS"):
            config = config.with_args(*environ["LATEXCOMPILE_ARGS"].split())
        if environ.get("LATEXCOMPILE_PASSES"):
            config = replace(config, passes=int(environ["LATEXCOMPILE_PASSES"]))
        if environ.get("LATEXCOMPILE_TIMEOUT"):
            config = replace(config, timeout=float(environ["LATEXCOMPILE_TIMEOUT"]))
        if environ.get("LATEXCOMPILE_WORKSPACE"):
            config = replace(config, workspace_parent=Path(environ["LATEXCOMPILE_WORKSPACE"]))
        return config


@dataclass
class Diagnostic:
    """A diagnostic message extracted from compiler output."""

    level: Literal["error", "warning", "info"]
    code: str
    message: str
    raw: str
    file: Optional[str] = None
    line: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "raw": self.raw,
            "file": self.file,
            "line": self.line,
        }


@dataclass
class CompileResult:
    """Outcome of ``compile_request``: PDF bytes or a failure description."""

    success: bool
    pdf: Optional[bytes] = None
    log: str = ""
    diagnostics: list[Diagnostic] = field(default_factory=list)
    return_code: Optional[int] = None
    stage: Stage = Stage.CREATED
    failed_at: Optional[Stage] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert result to a dictionary for JSON serialization."""
        return {
            "success": self.success,
            "pdf_size": len(self.pdf) if self.pdf is not None else None,
            "log": self.log,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "return_code": self.return_code,
            "stage": self.stage.value,
            "failed_at": self.failed_at.value if self.failed_at else None,
            "error": self.error,
        }
