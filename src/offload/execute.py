"""Execution facade: run one task and fold its outcome into a ``Result``.

``execute_local`` runs the task on the caller's event loop and
``execute_remote`` hands it to a ``WorkerRunner``. Both share one catch seam,
so faults from the task and from the dispatch machinery are converted the
same way:

- with ``on_error``: the handler's return value is the result, unchanged;
- a ``ServiceException``: kept verbatim, the captured trace appended;
- anything else: a fresh ``ServiceError`` named after the fault's type.

Only ``Exception`` subclasses are caught. Cancellation and interpreter exit
propagate, and so does anything ``on_error`` raises.
"""

from __future__ import annotations

import inspect
import logging
import threading
import traceback
from typing import TYPE_CHECKING

from offload._validation import _require_callable
from offload.config import default_config
from offload.result import Result, ServiceError, ServiceException
from offload.runners import create_runner, task_name

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from offload.config import Config
    from offload.runners import ExecutorRunner, WorkerRunner

    type ErrorHandler[R] = Callable[
        [Exception, str], Result[R] | Awaitable[Result[R]]
    ]

log = logging.getLogger(__name__)

# One pooled runner per distinct configuration, created on first remote call.
_shared_runners: dict[Config, ExecutorRunner] = {}
_shared_runners_lock = threading.Lock()


def format_trace(fault: BaseException, *, limit: int | None = None) -> str:
    """Capture the fault's traceback, including chained causes, as one entry."""
    return "".join(traceback.format_exception(fault, limit=limit))


def shared_runner(config: Config) -> ExecutorRunner:
    """Return the pooled runner used when ``execute_remote`` gets none."""
    with _shared_runners_lock:
        runner = _shared_runners.get(config)
        if runner is None:
            runner = create_runner(config)
            _shared_runners[config] = runner
    return runner


def close_shared_runners(*, wait: bool = True) -> None:
    """Shut down every pooled runner created by ``shared_runner``."""
    with _shared_runners_lock:
        runners = list(_shared_runners.values())
        _shared_runners.clear()
    for runner in runners:
        runner.close(wait=wait)


async def _settle[R](
    fault: Exception,
    *,
    name: str,
    on_error: ErrorHandler[R] | None,
    config: Config | None,
) -> Result[R]:
    # Config resolution itself may be the fault; capture unbounded then.
    limit = config.trace_limit if config is not None else None
    trace = format_trace(fault, limit=limit)
    if on_error is not None:
        log.debug("Task %s raised %s; using on_error", name, type(fault).__name__)
        handled = on_error(fault, trace)
        if inspect.isawaitable(handled):
            handled = await handled
        return handled

    if isinstance(fault, ServiceException):
        error = fault.to_error(trace)
    else:
        error = ServiceError.from_fault(fault, trace)
    log.debug(
        "Task %s failed: %s (deliberate=%s)", name, error.message, error.deliberate
    )
    return Result.failure(error)


async def execute_local[R](
    task: Callable[[], R | Awaitable[R]],
    *,
    on_error: ErrorHandler[R] | None = None,
    config: Config | None = None,
) -> Result[R]:
    """Run ``task`` on the caller's context and return its outcome.

    Args:
        task: Zero-argument callable returning a value or an awaitable.
        on_error: Optional ``(fault, trace) -> Result`` handler. When given it
            fully replaces the default error wrapping.
        config: Trace capture settings; resolved from the environment if
            omitted.

    Returns:
        ``Result.success(value)`` or ``Result.failure(error)``.

    Example:
        result = await execute_local(lambda: 40 + 2)
        assert result.has_data and result.data == 42
    """
    cfg = config
    name = task_name(task)
    try:
        if cfg is None:
            cfg = default_config()
        _require_callable(task, "task")
        value = task()
        if inspect.isawaitable(value):
            value = await value
    except Exception as exc:
        return await _settle(exc, name=name, on_error=on_error, config=cfg)
    return Result.success(value)


async def execute_remote[Q, R](
    task: Callable[[Q], R | Awaitable[R]],
    payload: Q,
    *,
    on_error: ErrorHandler[R] | None = None,
    runner: WorkerRunner | None = None,
    config: Config | None = None,
) -> Result[R]:
    """Run ``task(payload)`` on a worker context and return its outcome.

    Same contract as ``execute_local``. Failures to marshal the task, the
    payload or the return value, and a worker pool that cannot start or has
    died, come back as error results like any other fault.

    The task must depend only on its payload. With the default process
    runner it must also be picklable: a module-level function or a
    ``functools.partial`` of one, never a lambda or closure.

    Args:
        task: Single-argument callable returning a value or an awaitable.
        payload: Argument passed to ``task`` on the worker.
        on_error: Optional ``(fault, trace) -> Result`` handler.
        runner: Worker collaborator; defaults to a pooled runner built from
            ``config``.
        config: Worker and trace settings; resolved from the environment if
            omitted.

    Example:
        result = await execute_remote(math.factorial, 20)
    """
    cfg = config
    name = task_name(task)
    try:
        if cfg is None:
            cfg = default_config()
        _require_callable(task, "task")
        worker = runner if runner is not None else shared_runner(cfg)
        value = await worker.run(task, payload)
    except Exception as exc:
        return await _settle(exc, name=name, on_error=on_error, config=cfg)
    return Result.success(value)
