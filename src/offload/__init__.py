"""offload: run one task inline or on a worker, get a Result back.

Public API:
    - execute_local(): Run a task on the caller's event loop
    - execute_remote(): Run a payload-driven task on a worker context
    - Result / ServiceError / ServiceException: Outcome and error model
    - ThreadRunner / ProcessRunner: Worker collaborators
    - Config / resolve_config(): Configuration
"""

from __future__ import annotations

import logging

from offload.config import Config, resolve_config
from offload.errors import ConfigurationError, OffloadError, TaskValidationError
from offload.execute import close_shared_runners, execute_local, execute_remote
from offload.result import Result, ServiceError, ServiceException
from offload.runners import ExecutorRunner, ProcessRunner, ThreadRunner, WorkerRunner

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("offload")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("offload").addHandler(logging.NullHandler())

__all__ = [
    "Config",
    "ConfigurationError",
    "ExecutorRunner",
    "OffloadError",
    "ProcessRunner",
    "Result",
    "ServiceError",
    "ServiceException",
    "TaskValidationError",
    "ThreadRunner",
    "WorkerRunner",
    "close_shared_runners",
    "execute_local",
    "execute_remote",
    "resolve_config",
]
