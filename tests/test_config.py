"""Configuration boundary tests: defaults, environment, overrides, validation."""

from __future__ import annotations

import pytest

from offload import config as config_module
from offload.config import Config, default_config, load_env, resolve_config
from offload.errors import ConfigurationError

pytestmark = pytest.mark.unit


def test_defaults() -> None:
    cfg = resolve_config()

    assert cfg == Config(worker_kind="process", max_workers=None, trace_limit=None)


def test_environment_values_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OFFLOAD_WORKER_KIND", " Thread ")
    monkeypatch.setenv("OFFLOAD_MAX_WORKERS", "3")
    monkeypatch.setenv("OFFLOAD_TRACE_LIMIT", "5")

    cfg = resolve_config()

    assert cfg.worker_kind == "thread"
    assert cfg.max_workers == 3
    assert cfg.trace_limit == 5


def test_blank_environment_value_means_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OFFLOAD_MAX_WORKERS", "  ")

    assert resolve_config().max_workers is None


def test_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OFFLOAD_WORKER_KIND", "thread")

    cfg = resolve_config({"worker_kind": "process", "max_workers": 2})

    assert cfg.worker_kind == "process"
    assert cfg.max_workers == 2


def test_load_env_ignores_unrelated_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OFFLOAD_UNKNOWN", "x")
    monkeypatch.setenv("OFFLOAD_TRACE_LIMIT", "1")

    assert load_env() == {"trace_limit": "1"}


def test_unknown_worker_kind_raises_with_hint() -> None:
    with pytest.raises(ConfigurationError, match="worker_kind") as exc:
        resolve_config({"worker_kind": "isolate"})

    assert exc.value.hint is not None
    assert "'thread'" in exc.value.hint


@pytest.mark.parametrize("field", ["max_workers", "trace_limit"])
def test_non_positive_counts_are_rejected(field: str) -> None:
    with pytest.raises(ConfigurationError, match=field) as exc:
        resolve_config({field: 0})

    assert exc.value.hint is not None


def test_unknown_override_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        resolve_config({"retries": 3})


def test_config_is_frozen() -> None:
    cfg = Config()
    with pytest.raises(AttributeError):
        cfg.worker_kind = "thread"  # type: ignore[misc]


def test_default_config_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OFFLOAD_WORKER_KIND", "thread")
    first = default_config()
    monkeypatch.setenv("OFFLOAD_WORKER_KIND", "process")

    assert default_config() is first
    assert first.worker_kind == "thread"


def test_dotenv_is_loaded_once(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []
    monkeypatch.setattr(config_module, "_DOTENV_LOADED", False)
    monkeypatch.setattr("dotenv.load_dotenv", lambda *_a, **_k: calls.append(1))

    resolve_config()
    resolve_config()

    assert calls == [1]
