"""Result and error model.

Every task invocation yields a ``Result``: either the task's value or a
``ServiceError`` describing the failure. There is a single error shape; the
``deliberate`` flag records whether it came from a ``ServiceException``
raised on purpose by application code or from an unrelated fault.

``ServiceException`` is the raisable form of the same record. Converting
between the two carries message, trace and data across unchanged.
"""

from __future__ import annotations

import dataclasses
import json
import typing
from typing import Any, Literal, cast

if typing.TYPE_CHECKING:
    from collections.abc import Iterable

ResultKind = Literal["success", "error"]


@dataclasses.dataclass(frozen=True, slots=True)
class ServiceError[E]:
    """Diagnostic record for a failed task.

    Attributes:
        message: Human-readable description. Defaults to the type name of
            the causing fault when synthesized by the facade.
        trace: Diagnostic trace entries in the order they were captured.
        data: Optional payload, typically the original causing value.
        deliberate: True when the error came from a ``ServiceException``.
        type_name: Name of the type that caused the error, if known.
    """

    message: str
    trace: tuple[str, ...] = ()
    data: E | None = None
    deliberate: bool = False
    type_name: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.trace, str):
            raise TypeError("trace must be a sequence of strings, not a string")
        if not isinstance(self.trace, tuple):
            object.__setattr__(self, "trace", tuple(self.trace))

    @classmethod
    def from_fault(cls, fault: BaseException, trace: str) -> ServiceError[Any]:
        """Synthesize an error for an incidental fault."""
        name = type(fault).__name__
        return cls(message=name, trace=(trace,), data=fault, type_name=name)

    def with_additional_trace(self, entries: Iterable[str]) -> ServiceError[E]:
        """Return a copy with ``entries`` appended to the trace."""
        if isinstance(entries, str):
            entries = (entries,)
        return dataclasses.replace(self, trace=(*self.trace, *entries))

    def to_exception(self) -> ServiceException:
        """Return the raisable form of this error."""
        return ServiceException(self.message, data=self.data, trace=self.trace)

    def to_dict(self) -> dict[str, Any]:
        """Render as a JSON-safe mapping for logs and diagnostics."""
        return {
            "message": self.message,
            "trace": list(self.trace),
            "data": None if self.data is None else repr(self.data),
            "deliberate": self.deliberate,
            "type": self.type_name,
        }

    def __str__(self) -> str:
        return json.dumps(self.to_dict())


class ServiceException(Exception):
    """Raised by application code to signal a known error condition.

    When a task raises one, the facade keeps its message and data verbatim
    and only appends the captured trace.

    Example:
        def parse(raw: str) -> int:
            if not raw.isdigit():
                raise ServiceException("bad input", data=raw)
            return int(raw)
    """

    def __init__(
        self,
        message: str,
        *,
        data: Any = None,
        trace: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.data = data
        self.trace: tuple[str, ...] = tuple(trace)

    @classmethod
    def from_error(cls, error: ServiceError[Any]) -> ServiceException:
        """Build the raisable form of ``error``."""
        return cls(error.message, data=error.data, trace=error.trace)

    def to_error(self, *entries: str) -> ServiceError[Any]:
        """Convert to a deliberate ``ServiceError``, appending ``entries``."""
        return ServiceError(
            message=self.message,
            trace=(*self.trace, *entries),
            data=self.data,
            deliberate=True,
            type_name=type(self).__name__,
        )

    def __reduce__(self) -> tuple[Any, ...]:
        # Keyword-only fields are lost by the default Exception pickling.
        return (type(self), (self.message,), {"data": self.data, "trace": self.trace})


@dataclasses.dataclass(frozen=True, slots=True)
class Result[R]:
    """Outcome of a single task invocation.

    Build instances with ``Result.success`` or ``Result.failure``. Exactly one
    of ``has_data`` and ``has_error`` is true. A success may carry ``None``;
    the variant, not the value, decides ``has_data``.
    """

    kind: ResultKind
    data: R | None = None
    error: ServiceError[Any] | None = None

    def __post_init__(self) -> None:
        if self.kind == "success":
            if self.error is not None:
                raise ValueError("a success result cannot carry an error")
        elif self.kind == "error":
            if not isinstance(self.error, ServiceError):
                raise TypeError("an error result requires a ServiceError")
            if self.data is not None:
                raise ValueError("an error result cannot carry data")
        else:
            raise ValueError(f"unknown result kind: {self.kind!r}")

    @classmethod
    def success(cls, data: R) -> Result[R]:
        return cls(kind="success", data=data)

    @classmethod
    def failure(cls, error: ServiceError[Any]) -> Result[R]:
        return cls(kind="error", error=error)

    @property
    def has_data(self) -> bool:
        return self.kind == "success"

    @property
    def has_error(self) -> bool:
        return self.kind == "error"

    def raise_for_error(self) -> R:
        """Return the data, or raise the error as a ``ServiceException``."""
        if self.error is not None:
            raise self.error.to_exception()
        return cast("R", self.data)

    def to_dict(self) -> dict[str, Any]:
        """Render as a mapping with ``data`` and ``error`` keys."""
        return {
            "data": repr(self.data) if self.has_data else None,
            "error": self.error.to_dict() if self.error is not None else None,
        }
