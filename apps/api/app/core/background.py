"""Fire-and-forget work detached from the request lifecycle.

Welcome emails, first-sign-in bookkeeping, and last-sign-in updates run on
a process-wide thread pool. A task keeps running after the request that
submitted it has finished or been cancelled. Failures are logged with the
task description; nothing is retried.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Awaitable, Callable, TypeVar

import anyio

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_coroutine(
    fn: Callable[..., Awaitable[T]], *args: Any, timeout: float | None = None, **kwargs: Any
) -> T:
    """
    Await fn(*args, **kwargs) on a private event loop in the calling thread.

    Worker threads and the CLI have no loop of their own. Code already
    running inside a loop must await directly.

    Raises:
        TimeoutError: the coroutine exceeded ``timeout`` seconds
        RuntimeError: the calling thread is running an event loop
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise RuntimeError("run_coroutine called inside a running event loop; await instead")

    async def _runner() -> T:
        with anyio.fail_after(timeout):
            return await fn(*args, **kwargs)

    return anyio.run(_runner)


class BackgroundDispatcher:
    """Thread pool wrapper created at startup and shut down in the lifespan."""

    def __init__(self, max_workers: int = 4, *, task_timeout: float | None = None):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="background"
        )
        self._task_timeout = task_timeout
        self._closed = False
        self._lock = threading.Lock()

    def submit(self, description: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future | None:
        """
        Schedule fn(*args, **kwargs). Coroutine functions are awaited on a
        private event loop inside the worker thread.

        Returns None (and logs) if the dispatcher is already shut down.
        """
        with self._lock:
            if self._closed:
                logger.warning("Background dispatcher closed, dropping task: %s", description)
                return None
            future = self._executor.submit(self._run, fn, args, kwargs)
        future.add_done_callback(lambda f: self._log_outcome(description, f))
        return future

    def _run(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        if inspect.iscoroutinefunction(fn):
            return run_coroutine(fn, *args, timeout=self._task_timeout, **kwargs)
        return fn(*args, **kwargs)

    @staticmethod
    def _log_outcome(description: str, future: Future) -> None:
        if future.cancelled():
            logger.warning("Background task cancelled: %s", description)
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Background task failed: %s", description, exc_info=(type(exc), exc, exc.__traceback__)
            )

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)
