"""Scoped temporary directories, one per compilation."""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType
from typing import Optional, Union

from loguru import logger

from latexcompile.errors import WorkspaceError

WORKSPACE_PREFIX = "latexcompile-"


class Workspace:
    """An exclusively owned temporary directory.

    Use it as a context manager; the directory is removed on exit whether or
    not the body raised.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.released = False

    def __repr__(self) -> str:
        return f"Workspace({str(self.path)!r})"

    def __truediv__(self, name: Union[str, Path]) -> Path:
        return self.path / name

    @property
    def exists(self) -> bool:
        return self.path.is_dir()

    def __enter__(self) -> Workspace:
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        try:
            release(self)
        except WorkspaceError as release_error:
            if exc is None:
                raise
            # Keep the original failure; the leak is still reported
            logger.error(f"{release_error} (while handling: {exc!r})")


def acquire(parent: Optional[Path] = None) -> Workspace:
    """Create a new, empty workspace with a random unique name.

    Args:
        parent: Directory to create the workspace in (system temp dir if None)

    Returns:
        The new Workspace

    Raises:
        WorkspaceError: If the directory cannot be created
    """
    try:
        path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=parent))
    except OSError as exc:
        raise WorkspaceError(f"Failed to create workspace: {exc}") from exc

    logger.debug(f"Acquired workspace {path}")
    return Workspace(path)


def release(workspace: Workspace) -> None:
    """Recursively delete the workspace directory.

    Releasing twice, or releasing a directory someone else already removed,
    is not an error.

    Raises:
        WorkspaceError: If the directory exists but cannot be removed
    """
    if workspace.released and not workspace.exists:
        return

    try:
        shutil.rmtree(workspace.path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise WorkspaceError(f"Failed to remove workspace {workspace.path}: {exc}") from exc

    workspace.released = True
    logger.debug(f"Released workspace {workspace.path}")


@contextmanager
def open_workspace(parent: Optional[Path] = None) -> Iterator[Workspace]:
    """Acquire a workspace for the duration of a ``with`` block."""
    with acquire(parent) as workspace:
        yield workspace
