# SPDX-License-Identifier: MIT
"""edge-replica - Ephemeral synced database replicas with coalesced background pushes."""

from importlib.metadata import PackageNotFoundError, version

from .exceptions import (
    ConfigurationError,
    DatabaseNotFoundError,
    FlushError,
    ProvisioningError,
    RemoteLookupError,
    ReplicaConnectionError,
    ReplicaError,
    StatementError,
)
from .models import (
    Credentials,
    DatabaseOptions,
    PrefixBootstrap,
    QueryBootstrap,
    QueryResult,
)
from .registry import (
    ReplicaRuntime,
    acquire_database,
    get_runtime,
    reset_runtime,
    set_runtime,
)
from .replica import LocalReplica


__all__: list[str] = [
    "ConfigurationError",
    "Credentials",
    "DatabaseNotFoundError",
    "DatabaseOptions",
    "FlushError",
    "LocalReplica",
    "PrefixBootstrap",
    "ProvisioningError",
    "QueryBootstrap",
    "QueryResult",
    "RemoteLookupError",
    "ReplicaConnectionError",
    "ReplicaError",
    "ReplicaRuntime",
    "StatementError",
    "acquire_database",
    "get_runtime",
    "reset_runtime",
    "set_runtime",
    "__version__",
]

# Get version from installed package metadata
__version__: str
try:
    __version__ = version("edge-replica")
except PackageNotFoundError:
    # Package is not installed, use development fallback
    __version__ = "development"
