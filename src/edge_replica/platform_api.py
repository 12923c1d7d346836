# SPDX-License-Identifier: MIT
"""Turso Platform API client for database and token provisioning."""

import asyncio
from typing import Any

import aiohttp

from .constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT,
    TOKEN_AUTHORIZATION_FULL_ACCESS,
)
from .exceptions import DatabaseNotFoundError, RemoteLookupError
from .logging_config import get_detail_logger
from .models import DatabaseRecord


detail_logger = get_detail_logger()


class PlatformApiClient:
    """Client for the control-plane endpoints used to provision replicas."""

    def __init__(
        self,
        organization: str,
        api_token: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: int = DEFAULT_API_TIMEOUT,
    ):
        """Initialize the client.

        Args:
            organization: Organization slug owning the databases
            api_token: Platform API token (sent as a bearer token)
            base_url: API base URL
            timeout: Total request timeout in seconds
        """
        self.organization = organization
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {api_token}",
            "User-Agent": "edge-replica/1.0",
        }
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "PlatformApiClient":
        """Async context manager entry."""
        self._ensure_session()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers=self.headers, timeout=self.timeout
            )
        return self.session

    def _databases_url(self, name: str | None = None) -> str:
        url = f"{self.base_url}/v1/organizations/{self.organization}/databases"
        return f"{url}/{name}" if name else url

    async def get_database(self, name: str) -> DatabaseRecord:
        """Look up a database by name.

        Raises:
            DatabaseNotFoundError: If the organization has no such database
            RemoteLookupError: On any other API or transport failure
        """
        payload = await self._request("GET", self._databases_url(name), name)
        return DatabaseRecord.from_api(payload.get("database") or {})

    async def create_database(self, name: str, group: str) -> DatabaseRecord:
        """Create a database in ``group`` and return its record."""
        payload = await self._request(
            "POST",
            self._databases_url(),
            name,
            json={"name": name, "group": group},
        )
        record = DatabaseRecord.from_api(payload.get("database") or {})
        if not record.group:
            record.group = group
        return record

    async def create_token(
        self, name: str, authorization: str = TOKEN_AUTHORIZATION_FULL_ACCESS
    ) -> str:
        """Mint an access token for a database.

        Returns:
            The token's JWT
        """
        payload = await self._request(
            "POST",
            f"{self._databases_url(name)}/auth/tokens",
            name,
            params={"authorization": authorization},
        )
        token = payload.get("jwt")
        if not token:
            raise RemoteLookupError(
                f"Token response for {name} did not contain a jwt",
                database_name=name,
            )
        return str(token)

    async def _request(
        self,
        method: str,
        url: str,
        name: str,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send one request and decode its JSON body.

        A 404 on a GET becomes ``DatabaseNotFoundError``; every other non-2xx
        status and any transport failure becomes ``RemoteLookupError``.
        """
        session = self._ensure_session()
        detail_logger.debug(f"Platform API {method} {url}")

        try:
            if method == "GET":
                request = session.get(url, params=params)
            else:
                request = session.post(url, json=json, params=params)

            async with request as response:
                if response.status == 404 and method == "GET":
                    raise DatabaseNotFoundError(name)
                if response.status >= 400:
                    body = await response.text()
                    detail_logger.debug(
                        f"Platform API {method} {url} returned {response.status}: {body}"
                    )
                    raise RemoteLookupError(
                        f"Platform API {method} failed for {name}",
                        status=response.status,
                        database_name=name,
                    )
                data = await response.json()

        except asyncio.TimeoutError as e:
            raise RemoteLookupError(
                f"Platform API {method} timed out for {name}", database_name=name
            ) from e
        except (aiohttp.ClientError, ValueError) as e:
            raise RemoteLookupError(
                f"Platform API {method} failed for {name}: {e}", database_name=name
            ) from e

        return dict(data) if data else {}
