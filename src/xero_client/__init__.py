"""Python client for the Xero accounting API.

>>> client = XeroClient(ClientConfiguration(
...     client_id="...", client_secret="...",
...     redirect_uris=("https://example.com/callback",),
...     scopes=("openid", "profile", "email", "accounting.transactions"),
... ))
>>> url = await client.build_consent_url()          # send the user here
>>> await client.complete_authorization(redirect_url)
>>> await client.accounting_api.get_invoices(client.tenant_ids[0])
"""

from __future__ import annotations

from .api import AccountingApi, ApiError  # noqa: F401
from .auth import (  # noqa: F401
    DiscoveryError,
    DiskTokenStore,
    NotAuthenticatedError,
    RedirectCompletion,
    RefreshError,
    TenantDiscoveryError,
    TokenExchangeError,
    TokenSet,
    TokenStore,
    VerifierCodeCompletion,
    XeroClientError,
)
from .client import AuthState, XeroClient  # noqa: F401
from .config import ClientConfiguration, ConfigurationError  # noqa: F401
from .transport import HttpFailure, HttpResult, HttpTransport  # noqa: F401

__all__ = [
    "AccountingApi",
    "ApiError",
    "AuthState",
    "ClientConfiguration",
    "ConfigurationError",
    "DiscoveryError",
    "DiskTokenStore",
    "HttpFailure",
    "HttpResult",
    "HttpTransport",
    "NotAuthenticatedError",
    "RedirectCompletion",
    "RefreshError",
    "TenantDiscoveryError",
    "TokenExchangeError",
    "TokenSet",
    "TokenStore",
    "VerifierCodeCompletion",
    "XeroClient",
    "XeroClientError",
]

__version__ = "0.1.0"
