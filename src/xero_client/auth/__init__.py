"""Authentication core for the Xero client.

This namespace hosts the **HTTP-agnostic** building blocks of the OAuth 2.0 /
OpenID Connect token lifecycle.  The identity provider implementation lives in
:mod:`xero_client.auth.provider` and is imported from there directly.

Sub-modules
-----------
clock
    Test-friendly time abstraction.
pkce
    Proof-Key for Code Exchange helpers for secret-less clients.
models
    Immutable dataclasses for token sets, tenants and consent sessions.
errors
    Exception taxonomy surfaced to callers.
log_utils
    Structured logging helpers (thin wrapper around :pymod:`logging`).
store
    Optional on-disk persistence for exported token sets.

All public objects are re-exported here for convenience.
"""

from __future__ import annotations

from .clock import Clock, default_clock, fixed_clock  # noqa: F401
from .errors import (  # noqa: F401
    DiscoveryError,
    NotAuthenticatedError,
    ProviderError,
    RefreshError,
    TenantDiscoveryError,
    TokenExchangeError,
    XeroClientError,
)
from .log_utils import get_auth_logger  # noqa: F401
from .models import (  # noqa: F401
    AuthorizationCompletion,
    AuthorizationSession,
    Connection,
    ProviderMetadata,
    RedirectCompletion,
    TokenSet,
    VerifierCodeCompletion,
)
from .pkce import code_challenge_s256, generate_code_verifier, generate_pkce_pair  # noqa: F401
from .store import DiskTokenStore, TokenStore  # noqa: F401

__all__ = [
    # clock
    "Clock",
    "default_clock",
    "fixed_clock",
    # errors
    "XeroClientError",
    "DiscoveryError",
    "ProviderError",
    "TokenExchangeError",
    "RefreshError",
    "NotAuthenticatedError",
    "TenantDiscoveryError",
    # logging helpers
    "get_auth_logger",
    # models
    "AuthorizationCompletion",
    "AuthorizationSession",
    "Connection",
    "ProviderMetadata",
    "RedirectCompletion",
    "TokenSet",
    "VerifierCodeCompletion",
    # pkce
    "code_challenge_s256",
    "generate_code_verifier",
    "generate_pkce_pair",
    # store
    "DiskTokenStore",
    "TokenStore",
]
