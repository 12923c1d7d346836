# SPDX-License-Identifier: MIT
"""Synced database connections backing local replicas.

``SyncedConnection`` and ``PreparedStatement`` describe what a replica needs
from the embedded database driver. ``open_libsql_connection`` adapts the
``libsql`` embedded-replica driver to them; tests and other hosts can pass
any other factory with the same shape.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, Protocol, TypeVar, runtime_checkable

from .exceptions import FlushError, ReplicaConnectionError, StatementError
from .logging_config import get_detail_logger
from .models import PrefixBootstrap, QueryBootstrap


detail_logger = get_detail_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class ReplicaOpenRequest:
    """Everything needed to open one synced local replica."""

    local_path: Path
    url: str
    auth_token: str
    bootstrap: PrefixBootstrap | QueryBootstrap | None = None


@runtime_checkable
class PreparedStatement(Protocol):
    """A prepared statement; closed exactly once by its owner."""

    def columns(self) -> list[str]:
        """Column names of the most recent execution, in result order."""
        ...

    async def all(self, params: Sequence[Any]) -> list[tuple[Any, ...]]:
        """Execute and return every row as a tuple in ``columns()`` order."""
        ...

    async def run(self, params: Sequence[Any]) -> None:
        """Execute without fetching rows, committing any write."""
        ...

    def close(self) -> None:
        """Release the statement."""
        ...


@runtime_checkable
class SyncedConnection(Protocol):
    """A local database file kept in sync with a remote database."""

    async def prepare(self, sql: str) -> PreparedStatement: ...

    async def push(self) -> None: ...

    async def pull(self) -> None: ...

    async def close(self) -> None: ...


ConnectionFactory = Callable[[ReplicaOpenRequest], Awaitable[SyncedConnection]]


class LibsqlStatement:
    """``PreparedStatement`` over a libsql cursor."""

    def __init__(self, connection: "LibsqlConnection", sql: str, cursor: Any) -> None:
        self._connection = connection
        self._sql = sql
        self._cursor = cursor
        self._columns: list[str] = []

    def columns(self) -> list[str]:
        return list(self._columns)

    async def all(self, params: Sequence[Any]) -> list[tuple[Any, ...]]:
        return await self._connection.call(self._fetch_all, tuple(params))

    async def run(self, params: Sequence[Any]) -> None:
        await self._connection.call(self._run, tuple(params))

    def close(self) -> None:
        self._connection.submit(self._cursor.close)

    def _execute(self, params: tuple[Any, ...]) -> None:
        try:
            self._cursor.execute(self._sql, params)
        except Exception as e:  # the driver raises untyped errors
            raise StatementError(f"Statement failed: {e}") from e
        self._columns = [column[0] for column in self._cursor.description or ()]

    def _fetch_all(self, params: tuple[Any, ...]) -> list[tuple[Any, ...]]:
        self._execute(params)
        return [tuple(row) for row in self._cursor.fetchall()]

    def _run(self, params: tuple[Any, ...]) -> None:
        self._execute(params)
        self._connection.raw.commit()


class LibsqlConnection:
    """``SyncedConnection`` over a ``libsql`` embedded replica.

    The driver is blocking and its connections must stay on the thread that
    created them, so every call goes through one dedicated worker thread.
    libsql syncs in both directions with a single ``sync()`` call, which
    serves as both push and pull.
    """

    def __init__(self, raw: Any, executor: ThreadPoolExecutor) -> None:
        self.raw = raw
        self._executor = executor

    async def call(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(func, *args))

    def submit(self, func: Callable[[], Any]) -> None:
        self._executor.submit(func)

    async def prepare(self, sql: str) -> LibsqlStatement:
        cursor = await self.call(self.raw.cursor)
        return LibsqlStatement(self, sql, cursor)

    async def push(self) -> None:
        await self._sync("push")

    async def pull(self) -> None:
        await self._sync("pull")

    async def _sync(self, direction: str) -> None:
        try:
            await self.call(self.raw.sync)
        except Exception as e:  # the driver raises untyped errors
            raise FlushError(f"Replica {direction} failed: {e}") from e

    async def close(self) -> None:
        await self.call(self.raw.close)
        self._executor.shutdown(wait=False)


async def open_libsql_connection(request: ReplicaOpenRequest) -> LibsqlConnection:
    """Open a libsql embedded replica for ``request``.

    Raises:
        ReplicaConnectionError: If the driver cannot open the replica
    """
    import libsql

    if request.bootstrap is not None:
        detail_logger.info(
            f"libsql has no partial bootstrap ({request.bootstrap.kind}); "
            f"{request.local_path} will bootstrap fully"
        )

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="libsql")
    loop = asyncio.get_running_loop()
    connect = partial(
        libsql.connect,
        str(request.local_path),
        sync_url=request.url,
        auth_token=request.auth_token,
    )
    try:
        raw = await loop.run_in_executor(executor, connect)
    except Exception as e:  # the driver raises untyped errors
        executor.shutdown(wait=False)
        raise ReplicaConnectionError(
            f"Could not open replica at {request.local_path}: {e}"
        ) from e

    return LibsqlConnection(raw, executor)
