"""Exception types raised by the Xero authentication core.

Only lightweight, **data-carrying** exceptions live here so that web/CLI layers
can transform them into HTTP responses or user-friendly messages.  None of them
ever carries a token, authorization code or client secret.
"""

from __future__ import annotations

from typing import Any, Literal

NotAuthenticatedReason = Literal["no_token_set", "no_refresh_token"]


class XeroClientError(RuntimeError):
    """Base class for every error surfaced by :mod:`xero_client`."""

    error_code: str = "xero_client_error"

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-serialisable payload **without secrets**."""
        return {"error": self.error_code, "message": str(self)}


class DiscoveryError(XeroClientError):
    """Raised when the provider's OpenID metadata is unreachable or malformed."""

    error_code = "discovery_failed"

    def __init__(self, message: str, *, issuer: str | None = None) -> None:
        super().__init__(message)
        self.issuer: str | None = issuer

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["issuer"] = self.issuer
        return payload


class ProviderError(XeroClientError):
    """Raised by an identity provider when its token endpoint rejects a grant.

    The client translates this into :class:`TokenExchangeError` or
    :class:`RefreshError` depending on the operation that triggered it.
    """

    error_code = "provider_error"

    def __init__(
        self,
        error: str,
        *,
        description: str | None = None,
        status_code: int | None = None,
    ) -> None:
        message = f"{error}: {description}" if description else error
        super().__init__(message)
        self.error: str = error
        self.description: str | None = description
        self.status_code: int | None = status_code

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "provider_error": self.error,
            "description": self.description,
            "status_code": self.status_code,
        }


class TokenExchangeError(XeroClientError):
    """Raised when an authorization response cannot be exchanged for tokens."""

    error_code = "token_exchange_failed"

    def __init__(self, message: str, *, provider_error: str | None = None) -> None:
        super().__init__(message)
        self.provider_error: str | None = provider_error

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["provider_error"] = self.provider_error
        return payload


class RefreshError(XeroClientError):
    """Raised when the refresh token is rejected; a new consent flow is required."""

    error_code = "refresh_failed"

    def __init__(self, message: str, *, provider_error: str | None = None) -> None:
        super().__init__(message)
        self.provider_error: str | None = provider_error

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["provider_error"] = self.provider_error
        return payload


class NotAuthenticatedError(XeroClientError):
    """Raised when an operation needs a token set the client does not have."""

    error_code = "not_authenticated"

    def __init__(
        self,
        *,
        reason: NotAuthenticatedReason = "no_token_set",
        message: str | None = None,
    ) -> None:
        default = (
            "No token set; complete the authorization flow first."
            if reason == "no_token_set"
            else "Token set has no refresh token."
        )
        super().__init__(message or default)
        self.reason: NotAuthenticatedReason = reason

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["reason"] = self.reason
        return payload


class TenantDiscoveryError(XeroClientError):
    """Raised when the connections lookup fails after a successful auth step."""

    error_code = "tenant_discovery_failed"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code: int | None = status_code
        self.body: Any = body

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["status_code"] = self.status_code
        return payload
