"""Tests for requests, configuration and results."""

from __future__ import annotations

from pathlib import Path

import pytest

from latexcompile.errors import InvalidRequest
from latexcompile.models import (
    CompilationRequest,
    CompileResult,
    CompilerConfig,
    Diagnostic,
    InputKind,
    NamedInput,
    Stage,
)


def test_named_input_constructors() -> None:
    assert NamedInput.text("a.tex", "x").kind is InputKind.TEXT
    assert NamedInput.binary("a.png", bytearray(b"x")) == NamedInput("a.png", b"x", InputKind.BINARY)


def test_request_validates_main_file() -> None:
    """Test that the main file must name one of the inputs."""
    request = CompilationRequest(inputs=(NamedInput.text("a.tex", "x"),), main_file="b.tex")
    with pytest.raises(InvalidRequest, match="b.tex"):
        request.validate()


def test_request_rejects_empty_inputs() -> None:
    with pytest.raises(InvalidRequest, match="No input files"):
        CompilationRequest(inputs=(), main_file="main.tex").validate()


def test_request_rejects_duplicate_names() -> None:
    request = CompilationRequest(
        inputs=(NamedInput.text("main.tex", "a"), NamedInput.text("main.tex", "b")),
        main_file="main.tex",
    )
    with pytest.raises(InvalidRequest, match="Duplicate"):
        request.validate()


def test_request_is_isolated_from_caller_mutation() -> None:
    """Test that changing the caller's containers does not change the request."""
    inputs = [NamedInput.text("main.tex", "x")]
    values = {"k": "v"}
    request = CompilationRequest(inputs=inputs, main_file="main.tex", values=values)

    inputs.append(NamedInput.text("other.tex", "y"))
    values["k"] = "changed"

    assert request.names == ["main.tex"]
    assert request.values == {"k": "v"}


def test_config_defaults() -> None:
    config = CompilerConfig()
    assert config.command_line("main.tex") == ["pdflatex", "-interaction=nonstopmode", "main.tex"]
    assert config.passes == 1
    assert config.timeout is None


@pytest.mark.parametrize("kwargs", [{"passes": 0}, {"timeout": 0}, {"timeout": -1.5}])
def test_config_rejects_invalid_values(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        CompilerConfig(**kwargs)


def test_config_from_env(tmp_path: Path) -> None:
    """Test reading LATEXCOMPILE_* variables."""
    environ = {
        "LATEXCOMPILE_COMMAND": "xelatex",
        "LATEXCOMPILE_ARGS": "-interaction=batchmode -halt-on-error",
        "LATEXCOMPILE_PASSES": "2",
        "LATEXCOMPILE_TIMEOUT": "30",
        "LATEXCOMPILE_WORKSPACE": str(tmp_path),
    }
    config = CompilerConfig.from_env(environ)

    assert config.command_line("doc.tex") == [
        "xelatex",
        "-interaction=batchmode",
        "-halt-on-error",
        "doc.tex",
    ]
    assert config.passes == 2
    assert config.timeout == 30.0
    assert config.workspace_parent == tmp_path


def test_config_from_empty_env() -> None:
    assert CompilerConfig.from_env({}) == CompilerConfig()


def test_result_to_dict() -> None:
    """Test JSON serialization reports PDF size rather than content."""
    result = CompileResult(
        success=False,
        log="log",
        diagnostics=[Diagnostic(level="error", code="latex-error", message="m", raw="r", line=3)],
        return_code=1,
        stage=Stage.FAILED,
        failed_at=Stage.INPUTS_WRITTEN,
        error="compile-error",
    )
    data = result.to_dict()

    assert data["pdf_size"] is None
    assert data["stage"] == "failed"
    assert data["failed_at"] == "inputs-written"
    assert data["diagnostics"][0]["line"] == 3
    assert CompileResult(success=True, pdf=b"1234").to_dict()["pdf_size"] == 4


@pytest.mark.parametrize(
    "first, second",
    [("main.tex", "./main.tex"), ("a.tex", "a.tex/"), ("sub/a.tex", "sub//a.tex")],
)
def test_request_rejects_aliased_names(first: str, second: str) -> None:
    """Test that two spellings of the same path count as a duplicate."""
    request = CompilationRequest(
        inputs=(NamedInput.text(first, "REAL"), NamedInput.text(second, "CLOBBER")),
        main_file=first,
    )
    with pytest.raises(InvalidRequest, match="Duplicate"):
        request.validate()


def test_request_main_file_matches_normalised_name() -> None:
    """Test that './main.tex' as main file refers to the 'main.tex' input."""
    request = CompilationRequest(inputs=(NamedInput.text("main.tex", "x"),), main_file="./main.tex")
    request.validate()
