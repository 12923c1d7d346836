# SPDX-License-Identifier: MIT
"""Coalesced background flushing of dirty replicas."""

import asyncio
from collections.abc import Awaitable
from typing import TYPE_CHECKING

from .background import BackgroundRunner
from .constants import DEFAULT_COALESCE_DELAY
from .logging_config import get_detail_logger, get_status_logger
from .retry_utils import RetryBackoff


if TYPE_CHECKING:
    from .replica import LocalReplica


class FlushCoordinator:
    """Pushes dirty replicas upstream in coalesced background cycles.

    At most one cycle is scheduled at a time. A scheduled cycle yields before
    snapshotting the pending set, so every replica marked dirty in the
    meantime is pushed by that same cycle. Pushes within a cycle run
    concurrently and fail independently.

    A replica whose push fails is retried with exponential backoff. After
    ``backoff.max_attempts`` consecutive failures it is abandoned: it stays
    dirty, but is not retried until its next write re-arms it.
    """

    def __init__(
        self,
        runner: BackgroundRunner,
        backoff: RetryBackoff | None = None,
        coalesce_delay: float = DEFAULT_COALESCE_DELAY,
    ) -> None:
        self.runner = runner
        self.backoff = backoff or RetryBackoff()
        self.coalesce_delay = coalesce_delay
        self._pending: set["LocalReplica"] = set()
        self._failures: dict["LocalReplica", int] = {}
        self._abandoned: set["LocalReplica"] = set()
        self._outstanding = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._cycle_scheduled = False
        self.detail_logger = get_detail_logger()
        self.status_logger = get_status_logger()

    @property
    def cycle_scheduled(self) -> bool:
        return self._cycle_scheduled

    def pending(self) -> set["LocalReplica"]:
        """Snapshot of the replicas awaiting the next cycle."""
        return set(self._pending)

    def is_pending(self, replica: "LocalReplica") -> bool:
        return replica in self._pending

    def is_abandoned(self, replica: "LocalReplica") -> bool:
        return replica in self._abandoned

    def failure_count(self, replica: "LocalReplica") -> int:
        return self._failures.get(replica, 0)

    def mark_dirty(self, replica: "LocalReplica") -> None:
        """Queue ``replica`` for the next cycle, scheduling one if needed."""
        if replica in self._abandoned:
            self._abandoned.discard(replica)
            self._failures.pop(replica, None)
        self._pending.add(replica)
        self._schedule_cycle()

    def discard(self, replica: "LocalReplica") -> None:
        """Forget ``replica`` after it was pushed successfully."""
        self._pending.discard(replica)
        self._failures.pop(replica, None)
        self._abandoned.discard(replica)

    def _schedule_cycle(self) -> None:
        if self._cycle_scheduled:
            return
        self._cycle_scheduled = True
        self._hand_off(self.run_cycle())

    def _hand_off(self, work: Awaitable[None]) -> None:
        self._outstanding += 1
        self._idle.clear()
        self.runner.wait_until(self._tracked(work))

    async def _tracked(self, work: Awaitable[None]) -> None:
        try:
            await work
        finally:
            self._outstanding -= 1
            if not self._outstanding:
                self._idle.set()

    async def run_cycle(self) -> None:
        """Push every pending replica once.

        Failures are logged per replica and never raised.
        """
        await asyncio.sleep(self.coalesce_delay)
        self._cycle_scheduled = False

        replicas = list(self._pending)
        self._pending.clear()
        if not replicas:
            return

        self.detail_logger.debug(f"Flush cycle pushing {len(replicas)} replica(s)")
        results = await asyncio.gather(
            *(replica.push() for replica in replicas), return_exceptions=True
        )

        for replica, result in zip(replicas, results):
            if isinstance(result, BaseException):
                self._handle_failure(replica, result)

    def _handle_failure(self, replica: "LocalReplica", error: BaseException) -> None:
        failures = self._failures.get(replica, 0) + 1
        self._failures[replica] = failures

        self.status_logger.error(f"Failed to push database {replica.name}: {error}")
        self.detail_logger.debug(
            f"Push failure {failures} for {replica.name}", exc_info=error
        )

        if self.backoff.should_retry(failures):
            delay = self.backoff.delay_for(failures)
            self.detail_logger.debug(f"Retrying push of {replica.name} in {delay:.1f}s")
            self._hand_off(self._retry_later(replica, delay))
        else:
            self._abandoned.add(replica)
            self.status_logger.error(
                f"Giving up on pushing {replica.name} after {failures} attempts; "
                "it stays dirty until its next write"
            )

    async def _retry_later(self, replica: "LocalReplica", delay: float) -> None:
        await asyncio.sleep(delay)
        if replica.is_dirty() and replica not in self._abandoned:
            self._pending.add(replica)
            self._schedule_cycle()

    async def drain(self) -> None:
        """Wait until no cycle or retry handed to the runner is outstanding."""
        await self._idle.wait()
