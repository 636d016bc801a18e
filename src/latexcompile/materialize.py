"""Writing request inputs into a workspace."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Mapping

from loguru import logger

from latexcompile.errors import MaterializeError, PathViolation
from latexcompile.models import NamedInput
from latexcompile.templating import render
from latexcompile.workspace import Workspace


def check_name(root: Path, name: str) -> Path:
    """Validate an input name and return its destination inside ``root``.

    Args:
        root: Workspace directory
        name: Relative file name, '/' separates sub-directories

    Returns:
        Destination path of the file

    Raises:
        PathViolation: If the name is empty, absolute, contains '..' or
            otherwise resolves outside ``root``
    """
    if not name or not name.strip():
        raise PathViolation(name, "empty name")
    if "\x00" in name:
        raise PathViolation(name, "contains a NUL byte")

    posix = PurePosixPath(name)
    windows = PureWindowsPath(name)
    if posix.is_absolute() or windows.anchor:
        raise PathViolation(name, "absolute paths are not allowed")
    if ".." in posix.parts or ".." in windows.parts:
        raise PathViolation(name, "parent directory segments are not allowed")
    if posix.name in ("", "."):
        raise PathViolation(name, "does not name a file")

    destination = root.joinpath(*posix.parts)
    resolved_root = root.resolve()
    try:
        destination.resolve().relative_to(resolved_root)
    except ValueError:
        raise PathViolation(name, "resolves outside the workspace") from None

    return destination


def _write(destination: Path, item: NamedInput, values: Mapping[str, str]) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    if item.is_text:
        content = item.content
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        destination.write_text(render(content, values), encoding="utf-8")
    else:
        content = item.content
        if isinstance(content, str):
            content = content.encode("utf-8")
        destination.write_bytes(content)


def materialize(
    workspace: Workspace,
    inputs: Sequence[NamedInput],
    values: Mapping[str, str],
) -> list[Path]:
    """Write all inputs into the workspace.

    Every name is checked before the first write, so an unsafe name leaves
    the workspace untouched. Text inputs are rendered with ``values``; binary
    inputs are copied byte for byte.

    Returns:
        Paths of the written files, in input order

    Raises:
        PathViolation: If any name is unsafe
        MaterializeError: If a file cannot be written
    """
    planned = [(check_name(workspace.path, item.name), item) for item in inputs]

    written: list[Path] = []
    for destination, item in planned:
        try:
            _write(destination, item, values)
        except (OSError, UnicodeError) as exc:
            raise MaterializeError(f"Failed to write input '{item.name}': {exc}") from exc
        written.append(destination)
        logger.debug(f"Wrote {item.kind.value} input {item.name}")

    return written
