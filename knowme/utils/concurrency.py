"""Background task supervision for fire-and-forget ingestion jobs.

HTTP routes must answer immediately (202 Accepted) while document
processing continues in the event loop.  A bare ``asyncio.create_task``
loses both the task reference (it can be garbage-collected mid-flight)
and any exception it raises.  :class:`TaskSupervisor` keeps a strong
reference to every running task, logs failures from a done-callback, and
can be drained on shutdown so in-flight jobs finish before the process
exits.

One supervisor is created per application in ``main._build_all`` and
handed to whoever needs to spawn work.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

import structlog

from knowme.utils.logging import get_logger


class TaskSupervisor:
    """Owns the set of in-flight background tasks."""

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._logger = logger or get_logger(__name__)

    @property
    def running(self) -> int:
        """Number of tasks that have not finished yet."""
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any]:
        """Schedule *coro* on the running loop and track it until done."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        self._logger.debug("task_spawned", task=task.get_name())
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            self._logger.warning("task_cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error(
                "task_failed",
                task=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for every tracked task; cancel whatever is left after *timeout*."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        self._logger.info("draining_tasks", count=len(pending))
        done, still_pending = await asyncio.wait(pending, timeout=timeout)
        for task in still_pending:
            task.cancel()
        if still_pending:
            # Let the cancellations propagate before the loop closes.
            await asyncio.gather(*still_pending, return_exceptions=True)
            self._logger.warning("tasks_cancelled_on_drain", count=len(still_pending))
