"""Client configuration for :class:`xero_client.client.XeroClient`.

Environment variables
---------------------
XERO_CLIENT_ID
    OAuth 2.0 client identifier (required).
XERO_CLIENT_SECRET
    Client secret.  Leave unset for PKCE (public) clients.
XERO_REDIRECT_URIS
    Comma separated redirect URIs; the first one is canonical (required).
XERO_SCOPES
    Space or comma separated scopes.  Defaults to ``openid email profile``.
XERO_ISSUER
    Identity provider base URL.  Defaults to ``https://identity.xero.com``.
XERO_HTTP_TIMEOUT
    Timeout in seconds handed to the HTTP transport (default 30).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final

from xero_client.auth.errors import XeroClientError
from xero_client.utils.environment import env_list

logger = logging.getLogger("xero-client.config")

DEFAULT_ISSUER: Final[str] = "https://identity.xero.com"
DEFAULT_CONNECTIONS_URL: Final[str] = "https://api.xero.com/connections"
DEFAULT_API_BASE_URL: Final[str] = "https://api.xero.com/api.xro/2.0"
DEFAULT_SCOPE: Final[str] = "openid email profile"


class ConfigurationError(XeroClientError, ValueError):
    """Raised when a client configuration is incomplete or invalid."""

    error_code = "invalid_configuration"


@dataclass(frozen=True, slots=True)
class ClientConfiguration:
    """Immutable OAuth client settings."""

    client_id: str
    redirect_uris: tuple[str, ...]
    client_secret: str | None = None
    scopes: tuple[str, ...] = ()
    issuer: str = DEFAULT_ISSUER
    connections_url: str = DEFAULT_CONNECTIONS_URL
    api_base_url: str = DEFAULT_API_BASE_URL
    # allowed clock skew when validating id_token claims
    clock_tolerance: int = 5
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.client_id:
            raise ConfigurationError("client_id is required")
        # accept any iterable for convenience but store tuples
        object.__setattr__(self, "redirect_uris", tuple(self.redirect_uris))
        object.__setattr__(self, "scopes", tuple(self.scopes))
        if not self.redirect_uris:
            raise ConfigurationError("at least one redirect URI is required")

    @property
    def redirect_uri(self) -> str:
        """The canonical redirect URI used for consent and token exchange."""
        return self.redirect_uris[0]

    @property
    def scope(self) -> str:
        """Space-joined scopes, or the baseline identity scopes when empty."""
        return " ".join(self.scopes) or DEFAULT_SCOPE

    @property
    def uses_pkce(self) -> bool:
        return not self.client_secret

    @classmethod
    def from_env(cls, prefix: str = "XERO_") -> "ClientConfiguration":
        """Create a configuration from ``{prefix}*`` environment variables."""
        client_id = os.getenv(f"{prefix}CLIENT_ID", "")
        redirect_uris = env_list(f"{prefix}REDIRECT_URIS")
        if not client_id or not redirect_uris:
            raise ConfigurationError(
                f"{prefix}CLIENT_ID and {prefix}REDIRECT_URIS must be set"
            )

        timeout_raw = os.getenv(f"{prefix}HTTP_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else 30.0
        except ValueError:
            raise ConfigurationError(
                f"{prefix}HTTP_TIMEOUT must be a number, got {timeout_raw!r}"
            ) from None

        config = cls(
            client_id=client_id,
            client_secret=os.getenv(f"{prefix}CLIENT_SECRET") or None,
            redirect_uris=redirect_uris,
            scopes=env_list(f"{prefix}SCOPES", separators=", "),
            issuer=(os.getenv(f"{prefix}ISSUER") or DEFAULT_ISSUER).rstrip("/"),
            timeout=timeout,
        )
        logger.debug(
            "Loaded Xero client configuration from environment (pkce=%s, scopes=%d)",
            config.uses_pkce,
            len(config.scopes),
        )
        return config
