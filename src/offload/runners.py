"""Worker runners: the collaborator that runs a task on another context.

The facade depends only on the ``WorkerRunner`` protocol. ``ThreadRunner``
and ``ProcessRunner`` adapt the ``concurrent.futures`` pools; hosts with their
own pool can pass it in, or supply any object with a matching ``run``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from concurrent.futures import (
    BrokenExecutor,
    Executor,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
)
import inspect
import logging
from typing import TYPE_CHECKING, Any, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from multiprocessing.context import BaseContext
    from types import TracebackType

    from offload.config import Config

log = logging.getLogger(__name__)


@runtime_checkable
class WorkerRunner(Protocol):
    """Run ``task(payload)`` on a worker context and return its value.

    Faults raised by the task, or by moving the payload and value across the
    boundary, must propagate to the awaiting caller.
    """

    async def run[Q, R](  # noqa: D102
        self, task: Callable[[Q], R | Awaitable[R]], payload: Q
    ) -> R: ...


def task_name(task: Any) -> str:
    """Return a readable name for logging."""
    return getattr(task, "__qualname__", None) or repr(task)


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _call_task(task: Callable[[Any], Any], payload: Any) -> Any:
    """Worker-side entry point; drives awaitable results to completion."""
    value = task(payload)
    if inspect.isawaitable(value):
        return asyncio.run(_await(value))
    return value


class ExecutorRunner(ABC):
    """Runner backed by a ``concurrent.futures.Executor``.

    An executor passed in stays owned by the caller. When none is given the
    runner creates one lazily, shuts it down on ``close()``, and replaces it
    if it breaks.
    """

    def __init__(
        self,
        executor: Executor | None = None,
        *,
        max_workers: int | None = None,
    ) -> None:
        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max_workers

    @abstractmethod
    def _create_executor(self) -> Executor:
        """Build the executor this runner owns."""

    @property
    def executor(self) -> Executor:
        if self._executor is None:
            self._executor = self._create_executor()
        return self._executor

    async def run[Q, R](
        self, task: Callable[[Q], R | Awaitable[R]], payload: Q
    ) -> R:
        loop = asyncio.get_running_loop()
        log.debug("Dispatching %s to %s", task_name(task), type(self).__name__)
        executor = self.executor
        try:
            return await loop.run_in_executor(executor, _call_task, task, payload)
        except BrokenExecutor:
            if self._owns_executor:
                self._discard_executor(executor)
            raise

    def _discard_executor(self, executor: Executor) -> None:
        # Only the pool the failed call used; a replacement must survive.
        if self._executor is not executor:
            return
        log.warning(
            "%s pool is broken; a new one is created on next use",
            type(self).__name__,
        )
        self._executor = None
        executor.shutdown(wait=False, cancel_futures=True)

    def close(self, *, wait: bool = True) -> None:
        """Shut down the executor if this runner created it."""
        executor, self._executor = self._executor, None
        if executor is not None and self._owns_executor:
            executor.shutdown(wait=wait)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        _: type[BaseException] | None,
        __: BaseException | None,
        ___: TracebackType | None,
    ) -> None:
        self.close()


class ThreadRunner(ExecutorRunner):
    """Run tasks on a thread pool. Tasks need not be picklable."""

    def _create_executor(self) -> Executor:
        return ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="offload"
        )


class ProcessRunner(ExecutorRunner):
    """Run tasks in worker processes.

    Task, payload and return value are pickled across the boundary, so the
    task must be a module-level callable (or a ``functools.partial`` of one)
    that depends only on its payload. Lambdas, closures and bound methods of
    unpicklable objects fail at dispatch time.
    """

    def __init__(
        self,
        executor: Executor | None = None,
        *,
        max_workers: int | None = None,
        mp_context: BaseContext | None = None,
    ) -> None:
        super().__init__(executor, max_workers=max_workers)
        self._mp_context = mp_context

    def _create_executor(self) -> Executor:
        return ProcessPoolExecutor(
            max_workers=self._max_workers, mp_context=self._mp_context
        )


def create_runner(config: Config) -> ExecutorRunner:
    """Build the runner named by ``config.worker_kind``."""
    if config.worker_kind == "thread":
        return ThreadRunner(max_workers=config.max_workers)
    return ProcessRunner(max_workers=config.max_workers)
