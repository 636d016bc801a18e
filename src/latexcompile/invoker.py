"""Running the external LaTeX toolchain inside a workspace."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

from loguru import logger

from latexcompile.analysis import analyse_log
from latexcompile.errors import CompileError
from latexcompile.models import CompilerConfig
from latexcompile.workspace import Workspace


def expected_pdf(workspace: Workspace, main_file: str) -> Path:
    """Path where the toolchain is expected to write the PDF.

    Compilers write into their working directory, so only the base name of
    the main file matters.
    """
    stem = PurePosixPath(main_file).stem
    return workspace.path / f"{stem}.pdf"


@dataclass
class Invocation:
    """Captured output of a successful toolchain run."""

    command: list[str]
    return_code: int
    pdf_path: Path
    passes: int = 1
    stdout: str = ""
    stderr: str = ""


class CompilerInvoker:
    """Spawns the configured compiler on a main file.

    A run succeeds only when every pass exits with status 0 and the PDF
    exists afterwards. Nothing is retried.
    """

    def __init__(self, config: Optional[CompilerConfig] = None) -> None:
        self.config = config or CompilerConfig()

    def _environment(self) -> Optional[dict[str, str]]:
        if not self.config.env:
            return None
        env = os.environ.copy()
        env.update(self.config.env)
        return env

    def _run_once(self, cmd: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.config.timeout,
                cwd=cwd,
                env=self._environment(),
                stdin=subprocess.DEVNULL,
            )
        except FileNotFoundError as exc:
            raise CompileError(
                f"LaTeX compiler '{self.config.command}' could not be executed: {exc}",
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise CompileError(
                f"Compilation timed out after {self.config.timeout} seconds",
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr),
                timed_out=True,
            ) from exc
        except (OSError, ValueError) as exc:
            raise CompileError(f"Failed to start LaTeX compiler: {exc}") from exc

    def invoke(self, workspace: Workspace, main_file: str) -> Invocation:
        """Compile ``main_file`` inside ``workspace``.

        Args:
            workspace: Workspace holding the materialized inputs
            main_file: Name of the main input, passed as the last argument

        Returns:
            Invocation with the captured output of the last pass

        Raises:
            CompileError: On a non-zero exit, a missing PDF, a timeout, or
                when the executable cannot be started
        """
        cmd = self.config.command_line(main_file)
        pdf_path = expected_pdf(workspace, main_file)

        for number in range(1, self.config.passes + 1):
            logger.debug(f"Pass {number}/{self.config.passes}: {' '.join(cmd)}")
            result = self._run_once(cmd, workspace.path)

            if result.returncode != 0:
                log = result.stdout + result.stderr
                raise CompileError(
                    f"LaTeX compiler exited with status {result.returncode}",
                    return_code=result.returncode,
                    stdout=result.stdout,
                    stderr=result.stderr,
                    diagnostics=analyse_log(log, main_file),
                )

        if not pdf_path.is_file():
            log = result.stdout + result.stderr
            raise CompileError(
                f"LaTeX compiler exited successfully but {pdf_path.name} was not produced",
                return_code=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
                diagnostics=analyse_log(log, main_file),
            )

        return Invocation(
            command=cmd,
            return_code=result.returncode,
            pdf_path=pdf_path,
            passes=self.config.passes,
            stdout=result.stdout,
            stderr=result.stderr,
        )


def _as_text(output: Optional[object]) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return str(output)
