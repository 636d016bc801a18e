"""Shared fixtures: stand-in compilers that need no TeX installation."""

from __future__ import annotations

import sys
import textwrap
from dataclasses import replace
from pathlib import Path
from typing import Callable

import pytest
from loguru import logger

from latexcompile.models import CompilerConfig

# Writes <stem>.pdf next to the main file's base name, like pdflatex does
SUCCEEDING_COMPILER = """
import os, pathlib, sys
main = pathlib.Path(sys.argv[-1])
source = main.read_bytes()
pathlib.Path(main.stem + ".pdf").write_bytes(b"%PDF-1.4\\n" + source)
print("cwd=" + os.getcwd())
print("Output written on " + main.stem + ".pdf")
"""

FAILING_COMPILER = r"""
import os, sys
print("cwd=" + os.getcwd())
print("! Undefined control sequence.")
print("l.3 \\foo")
sys.stderr.write("fatal: document broken\n")
sys.exit(1)
"""

SILENT_COMPILER = """
import os
print("cwd=" + os.getcwd())
"""

SLOW_COMPILER = """
import time
time.sleep(30)
"""


@pytest.fixture(autouse=True)
def _reset_logger():
    """Undo sinks and enabling done by the CLI so tests start from the package default."""
    yield
    logger.remove()
    logger.add(sys.stderr)
    logger.disable("latexcompile")


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Directory that holds the workspaces created during a test."""
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def stub_compiler(tmp_path: Path, workspace_root: Path) -> Callable[[str], CompilerConfig]:
    """Build a config that runs a Python script instead of pdflatex."""

    def make(source: str, **overrides) -> CompilerConfig:
        script = tmp_path / f"stub_{len(list(tmp_path.glob('stub_*.py')))}.py"
        script.write_text(textwrap.dedent(source))
        config = CompilerConfig(
            command=sys.executable,
            args=(str(script),),
            workspace_parent=workspace_root,
        )
        return replace(config, **overrides)

    return make


@pytest.fixture
def workspace_of() -> Callable[[str], Path]:
    """Recover the workspace path a stub compiler printed."""

    def find(log: str) -> Path:
        for line in log.splitlines():
            if line.startswith("cwd="):
                return Path(line[len("cwd="):])
        raise AssertionError(f"no cwd line in log: {log!r}")

    return find
