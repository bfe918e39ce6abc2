"""Configuration: pydantic schema wall and a frozen runtime payload.

Resolution precedence is defaults < environment < overrides. Environment
variables use the ``OFFLOAD_`` prefix; a project ``.env`` file is loaded once
through python-dotenv before the environment is read.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cache
import os
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from offload.errors import HINTS, ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

WorkerKind = Literal["process", "thread"]

_ENV_PREFIX = "OFFLOAD_"

_DOTENV_LOADED: bool = False


class Settings(BaseModel):
    """Schema and defaults for every configuration field."""

    worker_kind: WorkerKind = Field(default="process")
    #: ``None`` lets the executor pick its own default.
    max_workers: int | None = Field(default=None, ge=1)
    #: Maximum traceback depth captured per trace entry; ``None`` is unbounded.
    trace_limit: int | None = Field(default=None, ge=1)

    model_config = {"extra": "forbid"}

    @field_validator("worker_kind", mode="before")
    @classmethod
    def normalize_worker_kind(cls, v: Any) -> Any:
        """Accept any casing and surrounding whitespace."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("max_workers", "trace_limit", mode="before")
    @classmethod
    def empty_means_unset(cls, v: Any) -> Any:
        """Treat blank environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


@dataclass(frozen=True)
class Config:
    """Immutable configuration passed to the facade and runners.

    Example:
        config = resolve_config({"worker_kind": "thread", "max_workers": 4})
    """

    worker_kind: WorkerKind = "process"
    max_workers: int | None = None
    trace_limit: int | None = None


def _try_load_dotenv() -> None:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    from dotenv import find_dotenv, load_dotenv

    load_dotenv(find_dotenv(usecwd=True))
    _DOTENV_LOADED = True


def load_env() -> dict[str, Any]:
    """Collect ``OFFLOAD_*`` variables for known settings fields."""
    values: dict[str, Any] = {}
    for name in Settings.model_fields:
        raw = os.environ.get(f"{_ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw
    return values


def resolve_config(overrides: Mapping[str, Any] | None = None) -> Config:
    """Resolve configuration from defaults, environment and overrides.

    Raises:
        ConfigurationError: If a value fails validation.
    """
    _try_load_dotenv()

    merged = {**load_env(), **(overrides or {})}
    try:
        settings = Settings.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        field = str(err["loc"][0]) if err.get("loc") else ""
        msg = err.get("msg", "")
        if msg.startswith("Value error, "):
            msg = msg[13:]
        raise ConfigurationError(
            f"Configuration validation failed for {field or 'config'}: {msg}",
            hint=HINTS.get(field),
        ) from e

    return Config(
        worker_kind=settings.worker_kind,
        max_workers=settings.max_workers,
        trace_limit=settings.trace_limit,
    )


@cache
def default_config() -> Config:
    """Return the configuration resolved once for calls that pass none."""
    return resolve_config()
