"""Exception hierarchy for offload.

These are the library's own failures. Faults raised by tasks never surface
as these types directly; the facade converts them into ``Result`` values.
"""

from __future__ import annotations


class OffloadError(Exception):
    """Base exception for all offload errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(OffloadError):
    """Configuration validation or resolution failed."""


class TaskValidationError(OffloadError):
    """A task or handler handed to the facade has the wrong shape."""


HINTS = {
    "worker_kind": "Supported worker kinds: 'process', 'thread'.",
    "max_workers": "Set OFFLOAD_MAX_WORKERS to a positive integer or leave it unset.",
    "trace_limit": "Set OFFLOAD_TRACE_LIMIT to a positive integer or leave it unset.",
    "not_callable": "Pass a function, not the result of calling it.",
}
