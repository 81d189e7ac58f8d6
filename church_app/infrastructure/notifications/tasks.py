"""Fire-and-forget execution of side effects that follow a primary write."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import anyio
from anyio import from_thread

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """Schedule coroutines and callbacks on the event loop and log their failures.

    Callers may live on the event loop or in an AnyIO worker thread (synchronous
    FastAPI endpoints). Nothing scheduled here propagates an exception back to the
    caller.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        name: str | None = None,
    ) -> None:
        """Run ``func(*args)`` in the background."""

        label = name or getattr(func, "__qualname__", repr(func))
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run_sync(self._create_task, func, args, label)
            except RuntimeError:
                logger.debug("No event loop available; running %s inline", label)
                anyio.run(self._guarded, func, args, label)
        else:
            self._create_task(func, args, label)

    def call_soon(self, func: Callable[..., Any], *args: Any) -> None:
        """Run a synchronous ``func`` on the event loop thread, logging failures."""

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run_sync(self._call_guarded, func, args)
            except RuntimeError:
                self._call_guarded(func, args)
        else:
            self._call_guarded(func, args)

    async def drain(self) -> None:
        """Wait until every task spawned so far has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def _create_task(
        self, func: Callable[..., Awaitable[Any]], args: tuple[Any, ...], label: str
    ) -> None:
        task = asyncio.get_running_loop().create_task(
            self._guarded(func, args, label), name=label
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _guarded(
        func: Callable[..., Awaitable[Any]], args: tuple[Any, ...], label: str
    ) -> None:
        try:
            await func(*args)
        except Exception:
            logger.exception("Background task %s failed", label)

    @staticmethod
    def _call_guarded(func: Callable[..., Any], args: tuple[Any, ...]) -> None:
        try:
            func(*args)
        except Exception:
            logger.exception("Background callback %s failed", getattr(func, "__qualname__", func))


__all__ = ["BackgroundTaskRunner"]
