# SPDX-License-Identifier: MIT
"""Credential resolution and provisioning for remote databases."""

from collections.abc import Callable

from .config import ConfigManager
from .constants import TOKEN_AUTHORIZATION_FULL_ACCESS
from .exceptions import DatabaseNotFoundError, ProvisioningError
from .logging_config import get_detail_logger, get_status_logger
from .models import Credentials, DatabaseRecord
from .platform_api import PlatformApiClient


ClientFactory = Callable[[str, str], PlatformApiClient]


class CredentialProvider:
    """Resolves and caches connection credentials per logical database name.

    On a cache miss the remote database is looked up, created in the
    requested group if it does not exist, and a full-access token is minted.
    Only complete credentials are cached; any failure leaves the cache
    untouched so the next call starts from scratch.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.config_manager = config_manager
        self._client_factory = client_factory or self._default_client_factory
        self._credentials: dict[str, Credentials] = {}
        self._client: PlatformApiClient | None = None
        self._client_organization: str | None = None
        self.detail_logger = get_detail_logger()
        self.status_logger = get_status_logger()

    def _default_client_factory(
        self, organization: str, api_token: str
    ) -> PlatformApiClient:
        platform = self.config_manager.load_config().platform
        return PlatformApiClient(
            organization,
            api_token,
            base_url=platform.base_url,
            timeout=platform.timeout,
        )

    async def get_client(self) -> PlatformApiClient:
        """Return the shared API client, rebuilding it if the organization changed.

        Raises:
            ConfigurationError: If the organization or API token is not configured
        """
        organization, api_token = self.config_manager.get_platform_identity()

        if self._client is not None and self._client_organization == organization:
            return self._client

        # The new client must be in place before the first await
        old_client, old_organization = self._client, self._client_organization
        client = self._client_factory(organization, api_token)
        self._client, self._client_organization = client, organization

        if old_client is not None:
            self.detail_logger.debug(
                f"Organization changed from {old_organization} "
                f"to {organization}, rebuilt API client"
            )
            await old_client.close()

        return client

    async def resolve(self, name: str, group: str | None = None) -> Credentials:
        """Return credentials for ``name``, provisioning the database if needed.

        Args:
            name: Logical database name
            group: Group to create the database in when it does not exist yet

        Returns:
            Cached or freshly minted credentials

        Raises:
            ProvisioningError: If the database record has no hostname
            RemoteLookupError: If the control plane fails for any reason other
                than the database not existing
        """
        cached = self._credentials.get(name)
        if cached is not None:
            return cached

        client = await self.get_client()
        record = await self._lookup_or_create(client, name, group)

        if not record.hostname:
            raise ProvisioningError(f"missing host for {name}", database_name=name)

        token = await client.create_token(
            name, authorization=TOKEN_AUTHORIZATION_FULL_ACCESS
        )
        scheme = self.config_manager.load_config().platform.url_scheme
        credentials = Credentials(url=f"{scheme}://{record.hostname}", auth_token=token)
        self._credentials[name] = credentials

        self.detail_logger.debug(f"Cached credentials for {name} ({credentials.url})")
        return credentials

    async def _lookup_or_create(
        self, client: PlatformApiClient, name: str, group: str | None
    ) -> DatabaseRecord:
        try:
            return await client.get_database(name)
        except DatabaseNotFoundError:
            platform = self.config_manager.load_config().platform
            target_group = group or platform.default_group
            self.status_logger.info(
                f"Database {name} not found, creating it in group {target_group}"
            )
            return await client.create_database(name, target_group)

    def cached_names(self) -> list[str]:
        """Names with cached credentials."""
        return sorted(self._credentials)

    def clear(self) -> None:
        """Drop all cached credentials (primarily for testing)."""
        self._credentials.clear()

    async def aclose(self) -> None:
        """Close the shared API client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._client_organization = None
