# SPDX-License-Identifier: MIT
"""Local synced replicas with dirty tracking."""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from .connection import (
    ConnectionFactory,
    PreparedStatement,
    ReplicaOpenRequest,
    SyncedConnection,
    open_libsql_connection,
)
from .constants import DEFAULT_BOOTSTRAP_PREFIX_LENGTH
from .flush import FlushCoordinator
from .logging_config import get_detail_logger
from .models import DatabaseOptions, QueryResult


detail_logger = get_detail_logger()


class LocalReplica:
    """A named database session over a local, synced copy.

    ``dirty`` is true iff a local write happened since the last successful
    push. The first write after a push registers the replica with the flush
    coordinator; later writes ride along with that registration.
    """

    def __init__(
        self, name: str, connection: SyncedConnection, coordinator: FlushCoordinator
    ) -> None:
        self.name = name
        self._connection = connection
        self._coordinator = coordinator
        self._dirty = False
        self._writes = 0

    def __repr__(self) -> str:
        return f"LocalReplica(name={self.name!r}, dirty={self._dirty})"

    @classmethod
    async def open(
        cls,
        local_path: Path,
        url: str,
        auth_token: str,
        options: DatabaseOptions | None = None,
        *,
        coordinator: FlushCoordinator,
        name: str | None = None,
        connect: ConnectionFactory = open_libsql_connection,
        prefix_length: int = DEFAULT_BOOTSTRAP_PREFIX_LENGTH,
    ) -> "LocalReplica":
        """Open a replica stored at ``local_path`` and synced with ``url``.

        Args:
            local_path: Local database file
            url: Remote database URL
            auth_token: Access token for ``url``
            options: Partial-sync settings; a full sync when omitted
            coordinator: Flush coordinator the replica reports writes to
            name: Logical name, defaults to the file's stem
            connect: Factory opening the underlying synced connection
            prefix_length: Bytes hydrated by the default prefix bootstrap

        Raises:
            ReplicaConnectionError: If the connection cannot be established
        """
        options = options or DatabaseOptions()
        request = ReplicaOpenRequest(
            local_path=local_path,
            url=url,
            auth_token=auth_token,
            bootstrap=options.resolve_bootstrap(prefix_length),
        )
        detail_logger.debug(
            f"Opening replica {local_path} against {url} "
            f"(bootstrap={request.bootstrap!r})"
        )
        connection = await connect(request)
        return cls(name or local_path.stem, connection, coordinator)

    @asynccontextmanager
    async def _statement(self, sql: str) -> AsyncIterator[PreparedStatement]:
        statement = await self._connection.prepare(sql)
        try:
            yield statement
        finally:
            statement.close()

    async def query(self, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
        """Run a read and return its columns and positional rows.

        Raises:
            StatementError: If the statement fails
        """
        async with self._statement(sql) as statement:
            rows = await statement.all(list(params or ()))
            columns = statement.columns()
            return QueryResult(columns=columns, rows=[list(row) for row in rows])

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        """Run a write and schedule it for pushing.

        Raises:
            StatementError: If the statement fails; dirty state is unchanged
        """
        async with self._statement(sql) as statement:
            await statement.run(list(params or ()))
            self._record_write()

    def _record_write(self) -> None:
        self._writes += 1
        if not self._dirty:
            self._dirty = True
            self._coordinator.mark_dirty(self)
        elif self._coordinator.is_abandoned(self):
            self._coordinator.mark_dirty(self)

    async def push(self) -> None:
        """Send local writes upstream; a no-op when clean.

        Raises:
            FlushError: If the push fails; the replica stays dirty
        """
        if not self._dirty:
            return

        writes_before = self._writes
        await self._connection.push()

        if self._writes == writes_before:
            self._dirty = False
            self._coordinator.discard(self)
        else:
            # Writes landed while the push was in flight
            self._coordinator.mark_dirty(self)

    async def pull(self) -> None:
        """Fetch the latest remote state.

        Raises:
            FlushError: If the pull fails
        """
        await self._connection.pull()

    def is_dirty(self) -> bool:
        return self._dirty

    async def close(self) -> None:
        """Close the underlying connection."""
        await self._connection.close()
