"""
Type definitions shared by the export pipeline.

Holds the per-cell value wrapper, the cancellation flag and the export
exception hierarchy.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Protocol

from .domain.enums import DataType


@dataclass(frozen=True)
class DataWrapper:
    """Resolved cell value with its column type.

    ``value`` is None when the entity has nothing to report; sinks then
    substitute the type-specific default.
    """
    value: Any
    type: DataType

    @property
    def is_empty(self) -> bool:
        return self.value is None

    def value_or_default(self) -> Any:
        """Value with absent integers as -1 and absent floats as 0.0."""
        if self.value is not None:
            return self.value
        if self.type.is_integer:
            return -1
        if self.type.is_floating:
            return 0.0
        return None


class CancelTracker(Protocol):
    """Anything the sinks can poll for cooperative cancellation."""

    @property
    def is_cancelled(self) -> bool:
        ...


class CancelFlag:
    """Thread-safe cancellation flag for a running export."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class ExportOutcome(str, Enum):
    """How an export call ended."""
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Export exception hierarchy
class ExportError(Exception):
    """Base exception for export operations."""
    pass


class UserCancelled(ExportError):
    """The cancellation tracker asked the export to stop."""
    def __init__(self, message: str = "Export cancelled by user"):
        super().__init__(message)


class ExportIOError(ExportError):
    """Output could not be created, written or replaced."""
    def __init__(self, path: Optional[Path], message: str):
        self.path = path
        super().__init__(f"Export output error ({path}): {message}")


class InvariantViolation(ExportError):
    """Schema and resolver disagree (unknown key, missing field or index)."""
    pass


def raise_if_cancelled(tracker: Optional[CancelTracker]) -> None:
    """Raise UserCancelled when the tracker asks the export to stop."""
    if tracker is not None and tracker.is_cancelled:
        raise UserCancelled()
