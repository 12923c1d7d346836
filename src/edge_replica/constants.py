# SPDX-License-Identifier: MIT
"""Constants used throughout edge-replica.

This module centralizes default values for:

- **Control plane**: API location, request timeout, provisioning group and token scope
- **Replicas**: connection URL scheme and the partial-sync bootstrap prefix
- **Flushing**: coalescing delay and the retry backoff for failed pushes
"""

# Control plane
DEFAULT_API_BASE_URL: str = "https://api.turso.tech"
DEFAULT_API_TIMEOUT: int = 30  # seconds
DEFAULT_GROUP: str = "default"
TOKEN_AUTHORIZATION_FULL_ACCESS: str = "full-access"

# Environment variables read at first use
ENV_ORGANIZATION: str = "TURSO_ORG"
ENV_API_TOKEN: str = "TURSO_API_TOKEN"

# Replicas
DEFAULT_URL_SCHEME: str = "libsql"
DEFAULT_BOOTSTRAP_PREFIX_LENGTH: int = 128 * 1024  # bytes
LOCAL_DATABASE_SUFFIX: str = ".db"

# Flushing
DEFAULT_COALESCE_DELAY: float = 0.0  # seconds
DEFAULT_FLUSH_MAX_ATTEMPTS: int = 5
DEFAULT_FLUSH_INITIAL_BACKOFF: float = 1.0  # seconds
DEFAULT_FLUSH_MAX_BACKOFF: float = 60.0  # seconds
DEFAULT_FLUSH_BACKOFF_BASE: float = 2.0
