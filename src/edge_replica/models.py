# SPDX-License-Identifier: MIT
"""Core data models for edge-replica."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_BOOTSTRAP_PREFIX_LENGTH


class Credentials(BaseModel):
    """Connection URL and access token for one remote database."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Remote database URL, e.g. libsql://host")
    auth_token: str = Field(..., description="Scoped access token")


class DatabaseRecord(BaseModel):
    """A database as reported by the control plane."""

    name: str = Field(..., description="Database name")
    hostname: str | None = Field(None, description="Connectable host, if any")
    group: str | None = Field(None, description="Placement group")

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "DatabaseRecord":
        """Build a record from a Platform API ``database`` object."""
        return cls(
            name=payload.get("Name") or payload.get("name") or "",
            hostname=payload.get("Hostname") or payload.get("hostname"),
            group=payload.get("group"),
        )


class PrefixBootstrap(BaseModel):
    """Hydrate only the first ``length`` bytes of the remote database."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["prefix"] = "prefix"
    length: int = Field(DEFAULT_BOOTSTRAP_PREFIX_LENGTH, gt=0)


class QueryBootstrap(BaseModel):
    """Hydrate the pages touched by ``query``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["query"] = "query"
    query: str = Field(..., min_length=1)


BootstrapStrategy = Annotated[
    PrefixBootstrap | QueryBootstrap, Field(discriminator="kind")
]


class DatabaseOptions(BaseModel):
    """Options accepted by ``acquire_database``."""

    partial_sync: bool | None = Field(
        None,
        description="Bootstrap lazily on cold start; None defers to configuration",
    )
    bootstrap_strategy: BootstrapStrategy | None = Field(
        None, description="Overrides the default prefix bootstrap"
    )
    group: str | None = Field(None, description="Provisioning group for new databases")

    def resolve_bootstrap(
        self, prefix_length: int = DEFAULT_BOOTSTRAP_PREFIX_LENGTH
    ) -> PrefixBootstrap | QueryBootstrap | None:
        """Bootstrap strategy to open with, or None for a full sync."""
        if not self.partial_sync:
            return None
        return self.bootstrap_strategy or PrefixBootstrap(length=prefix_length)


class QueryResult(BaseModel):
    """Column names and positional rows returned by ``LocalReplica.query``."""

    columns: list[str] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)
