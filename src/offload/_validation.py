"""Internal validation helpers for the facade boundary."""

from __future__ import annotations

import typing

from offload.errors import HINTS, TaskValidationError


def _require(
    *,
    condition: bool,
    message: str,
    field_name: str | None = None,
    hint: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            message = f"{field_name}: {message}"
        raise TaskValidationError(message, hint=hint)


def _require_callable(func: typing.Any, field_name: str) -> None:
    """Validate that a task or handler can be invoked."""
    _require(
        condition=callable(func),
        message=f"must be callable, got {type(func).__name__}",
        field_name=field_name,
        hint=HINTS["not_callable"],
    )
