"""Pytest configuration and fixtures.

Provides environment isolation, shared-runner cleanup and small task
helpers. Fixtures here are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os

import pytest

from offload import config as config_module
from offload.config import Config
from offload.execute import close_shared_runners
from offload.runners import ThreadRunner

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_offload_env(request, monkeypatch):
    """Clear OFFLOAD_* variables and the cached default config.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if not request.node.get_closest_marker("allow_env_pollution"):
        for key in list(os.environ.keys()):
            if key.startswith("OFFLOAD_"):
                monkeypatch.delenv(key, raising=False)
    config_module.default_config.cache_clear()
    yield
    config_module.default_config.cache_clear()


@pytest.fixture(scope="session", autouse=True)
def shutdown_pooled_runners():
    """Stop pooled worker runners once the session ends."""
    yield
    close_shared_runners()


@pytest.fixture(scope="session", autouse=True)
def debug_offload_logging():
    """Run the facade's debug logging paths during tests."""
    logging.getLogger("offload").setLevel(logging.DEBUG)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def thread_config() -> Config:
    """Config that routes pooled remote calls to threads."""
    return Config(worker_kind="thread", max_workers=2)


@pytest.fixture
def thread_runner():
    """A thread runner closed after the test."""
    with ThreadRunner(max_workers=2) as runner:
        yield runner
