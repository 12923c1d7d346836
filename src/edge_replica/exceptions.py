# SPDX-License-Identifier: MIT
"""Standard exceptions for edge-replica."""


class ReplicaError(Exception):
    """Base class for all edge-replica exceptions."""

    def __init__(self, message: str, database_name: str | None = None) -> None:
        self.database_name = database_name
        super().__init__(message)


class ConfigurationError(ReplicaError):
    """Raised when a required configuration value is missing."""

    pass


class ProvisioningError(ReplicaError):
    """Raised when a remote database resolves without a connectable host."""

    pass


class RemoteLookupError(ReplicaError):
    """Raised when the control-plane API fails."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        database_name: str | None = None,
    ) -> None:
        self.status = status
        msg = f"{message} (HTTP {status})" if status else message
        super().__init__(msg, database_name)


class DatabaseNotFoundError(RemoteLookupError):
    """Raised when the control plane has no database with the requested name."""

    def __init__(self, database_name: str) -> None:
        super().__init__(f"Database not found: {database_name}", 404, database_name)


class ReplicaConnectionError(ReplicaError):
    """Raised when a local replica connection cannot be established."""

    pass


class StatementError(ReplicaError):
    """Raised when a statement fails to prepare or execute."""

    pass


class FlushError(ReplicaError):
    """Raised when pushing to or pulling from the remote database fails."""

    pass
