"""Identity-provider capability used by :class:`~xero_client.client.XeroClient`.

The client only needs four things from an OpenID Connect provider, captured by
the :class:`IdentityProvider` protocol:

discover
    Fetch (and cache) the provider's discovery document.
authorization_url
    Open an :class:`~xero_client.auth.models.AuthorizationSession` and return
    the consent URL for it.
exchange_code
    Trade an authorization code for a :class:`~xero_client.auth.models.TokenSet`.
refresh
    Trade a refresh token for a new token set.

:class:`OpenIdProvider` is the production implementation; tests substitute a
stub with the same four coroutines.

Token endpoint rejections surface as :class:`~xero_client.auth.errors.ProviderError`
and are translated by the client into exchange/refresh specific errors.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote, urlencode

import jwt
from cachetools import TTLCache

from xero_client.auth.clock import Clock, default_clock
from xero_client.auth.errors import DiscoveryError, ProviderError
from xero_client.auth.models import AuthorizationSession, ProviderMetadata, TokenSet
from xero_client.auth.pkce import generate_pkce_pair
from xero_client.config import ClientConfiguration
from xero_client.transport import HttpFailure, HttpResult, HttpTransport
from xero_client.utils.logging import mask_sensitive

_LOG = logging.getLogger("xero-client.auth.provider")

DISCOVERY_PATH = "/.well-known/openid-configuration"
# Discovery documents change rarely; re-fetch once a day.
_METADATA_TTL_SECONDS = 24 * 60 * 60


@runtime_checkable
class IdentityProvider(Protocol):
    """Narrow OpenID Connect capability needed by the client."""

    async def discover(self) -> ProviderMetadata: ...

    async def authorization_url(
        self, *, redirect_uri: str, scope: str
    ) -> tuple[str, AuthorizationSession]: ...

    async def exchange_code(
        self, *, code: str, redirect_uri: str, session: AuthorizationSession
    ) -> TokenSet: ...

    async def refresh(self, refresh_token: str) -> TokenSet: ...


def _provider_error(result: HttpResult) -> ProviderError:
    body = result.body if isinstance(result.body, dict) else {}
    return ProviderError(
        str(body.get("error") or f"http_{result.status_code}"),
        description=body.get("error_description"),
        status_code=result.status_code,
    )


class OpenIdProvider:
    """OpenID Connect provider backed by :class:`HttpTransport`."""

    def __init__(
        self,
        config: ClientConfiguration,
        transport: HttpTransport,
        *,
        clock: Clock = default_clock,
        metadata_ttl: float = _METADATA_TTL_SECONDS,
    ) -> None:
        self._config = config
        self._transport = transport
        self._clock = clock
        self._metadata_cache: TTLCache[str, ProviderMetadata] = TTLCache(
            maxsize=4, ttl=metadata_ttl
        )

    # ------------------------------------------------------------------ #
    # Discovery                                                          #
    # ------------------------------------------------------------------ #
    async def discover(self) -> ProviderMetadata:
        issuer = self._config.issuer.rstrip("/")
        cached = self._metadata_cache.get(issuer)
        if cached is not None:
            return cached

        url = f"{issuer}{DISCOVERY_PATH}"
        try:
            result = await self._transport.get(url)
        except HttpFailure as exc:
            raise DiscoveryError(
                f"Could not reach discovery endpoint: {exc}", issuer=issuer
            ) from exc

        if not result.ok:
            raise DiscoveryError(
                f"Discovery endpoint returned {result.status_code}", issuer=issuer
            )
        if not isinstance(result.body, dict):
            raise DiscoveryError("Discovery document is not a JSON object", issuer=issuer)
        try:
            metadata = ProviderMetadata.from_document(result.body)
        except ValueError as exc:
            raise DiscoveryError(str(exc), issuer=issuer) from None

        self._metadata_cache[issuer] = metadata
        _LOG.debug("Discovered OpenID metadata for issuer=%s", issuer)
        return metadata

    # ------------------------------------------------------------------ #
    # Authorization URL                                                  #
    # ------------------------------------------------------------------ #
    async def authorization_url(
        self, *, redirect_uri: str, scope: str
    ) -> tuple[str, AuthorizationSession]:
        metadata = await self.discover()

        pkce = generate_pkce_pair() if self._config.uses_pkce else None
        session = AuthorizationSession(
            state=secrets.token_urlsafe(24),
            nonce=secrets.token_urlsafe(24),
            redirect_uri=redirect_uri,
            code_verifier=pkce.verifier if pkce else None,
            created_at=int(self._clock()),
        )

        params: dict[str, str] = {
            "response_type": "code",
            "client_id": self._config.client_id,
            "redirect_uri": redirect_uri,
            "scope": scope,
            "state": session.state,
            "nonce": session.nonce,
        }
        if pkce:
            params["code_challenge"] = pkce.challenge
            params["code_challenge_method"] = pkce.method

        endpoint = metadata.authorization_endpoint
        separator = "&" if "?" in endpoint else "?"
        url = f"{endpoint}{separator}{urlencode(params, quote_via=quote)}"
        _LOG.debug(
            "Built authorization URL state=%s pkce=%s",
            mask_sensitive(session.state, 6),
            bool(pkce),
        )
        return url, session

    # ------------------------------------------------------------------ #
    # Token endpoint                                                     #
    # ------------------------------------------------------------------ #
    async def exchange_code(
        self, *, code: str, redirect_uri: str, session: AuthorizationSession
    ) -> TokenSet:
        payload: dict[str, str] = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        }
        if session.code_verifier:
            payload["code_verifier"] = session.code_verifier
        token_set = await self._token_request(payload)

        if token_set.id_token and token_set.claims.get("nonce") != session.nonce:
            raise ProviderError("invalid_id_token", description="nonce mismatch")
        return token_set

    async def refresh(self, refresh_token: str) -> TokenSet:
        return await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

    async def _token_request(self, payload: dict[str, str]) -> TokenSet:
        metadata = await self.discover()

        auth: tuple[str, str] | None = None
        if self._config.client_secret:
            auth = (self._config.client_id, self._config.client_secret)
        else:
            payload = {**payload, "client_id": self._config.client_id}

        try:
            result = await self._transport.post(
                metadata.token_endpoint, data=payload, auth=auth
            )
        except HttpFailure as exc:
            raise ProviderError("transport_error", description=str(exc)) from exc

        if not result.ok:
            raise _provider_error(result)
        if not isinstance(result.body, dict):
            raise ProviderError(
                "invalid_token_response",
                description="token response is not a JSON object",
                status_code=result.status_code,
            )
        return self._token_set_from_response(result.body)

    def _token_set_from_response(self, body: dict[str, Any]) -> TokenSet:
        try:
            expires_in = int(body.get("expires_in", 0))
        except (TypeError, ValueError):
            expires_in = 0
        if not body.get("access_token") or expires_in <= 0:
            raise ProviderError(
                "invalid_token_response",
                description="access_token and a positive expires_in are required",
            )

        id_token = body.get("id_token")
        claims = self._decode_id_token(id_token) if id_token else {}
        return TokenSet(
            access_token=str(body["access_token"]),
            expires_at=int(self._clock()) + expires_in,
            refresh_token=body.get("refresh_token") or None,
            token_type=body.get("token_type") or "Bearer",
            scope=body.get("scope"),
            id_token=id_token,
            claims=claims,
        )

    def _decode_id_token(self, id_token: str) -> dict[str, Any]:
        """Decode identity claims and validate audience and expiry.

        Signature verification is not performed; the token arrives directly
        from the token endpoint over TLS.
        """
        try:
            claims: dict[str, Any] = jwt.decode(
                id_token,
                options={"verify_signature": False, "verify_aud": True},
                audience=self._config.client_id,
            )
        except jwt.InvalidAudienceError:
            raise ProviderError("invalid_id_token", description="audience mismatch") from None
        except jwt.InvalidTokenError as exc:
            raise ProviderError("invalid_id_token", description=str(exc)) from None

        exp = claims.get("exp")
        if exp is not None and int(exp) + self._config.clock_tolerance < int(self._clock()):
            raise ProviderError("invalid_id_token", description="id_token expired")
        return claims
