"""Reading the produced PDF back out of a workspace."""

from __future__ import annotations

from loguru import logger

from latexcompile.errors import ArtifactNotFound, ExtractError
from latexcompile.invoker import expected_pdf
from latexcompile.workspace import Workspace


def extract(workspace: Workspace, main_file: str) -> bytes:
    """Return the full contents of the PDF compiled from ``main_file``.

    Raises:
        ArtifactNotFound: If the PDF is not there (anymore)
        ExtractError: If the PDF cannot be read
    """
    pdf_path = expected_pdf(workspace, main_file)
    try:
        data = pdf_path.read_bytes()
    except FileNotFoundError as exc:
        raise ArtifactNotFound(f"Compiled PDF not found: {pdf_path.name}") from exc
    except OSError as exc:
        raise ExtractError(f"Failed to read {pdf_path.name}: {exc}") from exc

    logger.debug(f"Read {len(data)} bytes from {pdf_path.name}")
    return data
