# SPDX-License-Identifier: MIT
"""Background execution for work that must outlive the triggering request."""

import asyncio
from collections.abc import Awaitable
from typing import Any, Protocol, runtime_checkable

from .logging_config import get_detail_logger, get_status_logger


@runtime_checkable
class BackgroundRunner(Protocol):
    """Accepts work that must run to completion after a response is sent.

    Hosting environments with their own "wait until" hook implement this
    protocol; ``TaskBackgroundRunner`` is the plain asyncio version.
    """

    def wait_until(self, work: Awaitable[Any]) -> None: ...


class TaskBackgroundRunner:
    """Runs background work as asyncio tasks on the current event loop.

    The event loop only keeps weak references to tasks, so this runner holds
    a strong reference to each one until it finishes.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Future[Any]] = set()
        self.detail_logger = get_detail_logger()
        self.status_logger = get_status_logger()

    def wait_until(self, work: Awaitable[Any]) -> None:
        """Schedule ``work`` and keep it alive until it completes."""
        task = asyncio.ensure_future(work)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            self.detail_logger.debug("Background task cancelled")
            return
        error = task.exception()
        if error is not None:
            self.status_logger.error(f"Background task failed: {error}")

    async def drain(self) -> None:
        """Wait until every scheduled task, including ones they schedule, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        """Number of background tasks still running."""
        return len(self._tasks)
