# SPDX-License-Identifier: MIT
"""Process-wide replica registry and the ``acquire_database`` entry point."""

import asyncio
import tempfile
from pathlib import Path
from typing import Any

from .background import BackgroundRunner, TaskBackgroundRunner
from .config import ConfigManager, get_config_manager
from .connection import ConnectionFactory, open_libsql_connection
from .constants import LOCAL_DATABASE_SUFFIX
from .credentials import ClientFactory, CredentialProvider
from .flush import FlushCoordinator
from .logging_config import get_detail_logger
from .models import DatabaseOptions
from .replica import LocalReplica
from .validation import validate_database_name


class SessionRegistry:
    """Maps each logical name to exactly one replica.

    The creation task for a name is stored before the first suspension
    point, so concurrent callers join it instead of provisioning or opening
    a second time. A failed creation removes its entry before the error
    reaches any caller; a successful one stays for the registry's lifetime.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        credential_provider: CredentialProvider,
        coordinator: FlushCoordinator,
        connect: ConnectionFactory = open_libsql_connection,
    ) -> None:
        self.config_manager = config_manager
        self.credential_provider = credential_provider
        self.coordinator = coordinator
        self.connect = connect
        self._entries: dict[str, asyncio.Future[LocalReplica]] = {}
        self.detail_logger = get_detail_logger()

    async def acquire(
        self, name: str, options: DatabaseOptions | None = None
    ) -> LocalReplica:
        """Return the replica for ``name``, creating it on first use.

        Options only take effect for the call that creates the replica.

        Raises:
            ValueError: If ``name`` is not a valid database name
            ConfigurationError, ProvisioningError, RemoteLookupError,
            ReplicaConnectionError: If creation fails
        """
        validate_database_name(name)

        entry = self._entries.get(name)
        if entry is None:
            entry = asyncio.ensure_future(self._create(name, options))
            self._entries[name] = entry

        # Shielded so one caller's cancellation does not cancel the shared creation
        return await asyncio.shield(entry)

    async def _create(self, name: str, options: DatabaseOptions | None) -> LocalReplica:
        config = self.config_manager.load_config()
        options = options or DatabaseOptions()
        if options.partial_sync is None:
            options = options.model_copy(
                update={"partial_sync": config.replica.partial_sync}
            )

        try:
            credentials = await self.credential_provider.resolve(name, options.group)
            replica = await LocalReplica.open(
                self.local_path_for(name),
                credentials.url,
                credentials.auth_token,
                options,
                coordinator=self.coordinator,
                name=name,
                connect=self.connect,
                prefix_length=config.replica.bootstrap_prefix_length,
            )
        except (Exception, asyncio.CancelledError):
            self._entries.pop(name, None)
            self.detail_logger.debug(f"Creation of replica {name} failed, entry cleared")
            raise

        self.detail_logger.debug(f"Replica {name} ready")
        return replica

    def local_path_for(self, name: str) -> Path:
        """Local database file for ``name``; stable for the process lifetime."""
        scratch_dir = self.config_manager.load_config().replica.scratch_dir
        if scratch_dir is None:
            scratch_dir = Path(tempfile.gettempdir())
        else:
            scratch_dir.mkdir(parents=True, exist_ok=True)
        return scratch_dir / f"{name}{LOCAL_DATABASE_SUFFIX}"

    def names(self) -> list[str]:
        """Names whose replica is open."""
        return sorted(
            name
            for name, entry in self._entries.items()
            if entry.done() and not entry.cancelled() and entry.exception() is None
        )

    async def aclose(self) -> None:
        """Close every open replica and forget all entries."""
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            if entry.done() and not entry.cancelled() and entry.exception() is None:
                await entry.result().close()


class ReplicaRuntime:
    """Owns the registry, credential cache and flush coordinator of a process.

    One runtime normally lives for the whole process (see ``get_runtime``).
    Tests build their own runtimes with injected collaborators.
    """

    def __init__(
        self,
        config_manager: ConfigManager | None = None,
        *,
        runner: BackgroundRunner | None = None,
        client_factory: ClientFactory | None = None,
        connect: ConnectionFactory = open_libsql_connection,
    ) -> None:
        self.config_manager = config_manager or get_config_manager()
        flush_config = self.config_manager.load_config().flush

        self.runner = runner or TaskBackgroundRunner()
        self.coordinator = FlushCoordinator(
            self.runner,
            flush_config.retry_backoff(),
            coalesce_delay=flush_config.coalesce_delay,
        )
        self.credentials = CredentialProvider(self.config_manager, client_factory)
        self.registry = SessionRegistry(
            self.config_manager, self.credentials, self.coordinator, connect
        )

    async def acquire(
        self, name: str, options: DatabaseOptions | None = None
    ) -> LocalReplica:
        return await self.registry.acquire(name, options)

    async def flush(self) -> None:
        """Wait for every scheduled flush cycle and retry to finish."""
        await self.coordinator.drain()

    async def aclose(self) -> None:
        """Flush outstanding writes, then close replicas and the API client."""
        await self.flush()
        await self.registry.aclose()
        await self.credentials.aclose()


# Global runtime instance with factory pattern
_runtime_instance: ReplicaRuntime | None = None


def get_runtime() -> ReplicaRuntime:
    """Get or create the process-wide runtime."""
    global _runtime_instance
    if _runtime_instance is None:
        _runtime_instance = ReplicaRuntime()
    return _runtime_instance


def set_runtime(runtime: ReplicaRuntime) -> None:
    """Set the runtime instance (primarily for testing)."""
    global _runtime_instance
    _runtime_instance = runtime


def reset_runtime() -> None:
    """Reset the runtime instance (primarily for testing).

    Open replicas are not closed; use ``ReplicaRuntime.aclose`` for that.
    """
    global _runtime_instance
    _runtime_instance = None


async def acquire_database(
    name: str, options: DatabaseOptions | None = None, **option_fields: Any
) -> LocalReplica:
    """Return the process-wide replica for ``name``.

    Options may be passed as a ``DatabaseOptions`` or as keyword arguments::

        db = await acquire_database("notes", partial_sync=True)
    """
    if option_fields:
        base = options.model_dump() if options else {}
        options = DatabaseOptions.model_validate({**base, **option_fields})
    return await get_runtime().acquire(name, options)
