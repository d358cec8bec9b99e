"""Output file management for export runs."""

from __future__ import annotations

import logging
from pathlib import Path

from .types import ExportIOError

logger = logging.getLogger(__name__)


def prepare_output_path(path: Path) -> Path:
    """
    Make an output location ready for a fresh export.

    An existing file is deleted; a missing parent directory is created.

    Args:
        path: Output file path

    Returns:
        The same path

    Raises:
        ExportIOError: If the old file cannot be removed or the directory created
    """
    try:
        if path.exists():
            path.unlink()
            logger.debug(f"Removed previous export: {path}")
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportIOError(path, f"cannot prepare output location: {e}") from e
    return path


def remove_partial_output(path: Path) -> bool:
    """
    Delete a partially written export file.

    Args:
        path: Output file path

    Returns:
        True if a file was removed
    """
    try:
        if path.exists():
            path.unlink()
            logger.debug(f"Removed partial export: {path}")
            return True
    except OSError as e:
        logger.warning(f"Could not remove partial export {path}: {e}")
    return False
