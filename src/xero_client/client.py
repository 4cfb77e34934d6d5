"""XeroClient – authenticated entry point to the Xero API.

The client owns exactly one :class:`~xero_client.auth.models.TokenSet`, the
tenants that token set may act on, and the REST facades whose outgoing calls
carry its access token.

Lifecycle::

    UNAUTHENTICATED --build_consent_url--> AWAITING_CONSENT
    AWAITING_CONSENT --complete_authorization--> AUTHENTICATED
    AUTHENTICATED --refresh--> REFRESHING --> AUTHENTICATED | FAILED
    AUTHENTICATED --(expires_at passed)--> EXPIRED

Callers are responsible for refreshing before ``token_set.expires_at`` and for
serializing calls that change authentication state; the client runs no
background tasks and takes no locks.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlsplit

from cachetools import TTLCache

from xero_client.api.accounting import AccountingApi
from xero_client.api.base import BaseApi
from xero_client.auth.clock import Clock, default_clock
from xero_client.auth.errors import (
    NotAuthenticatedError,
    ProviderError,
    RefreshError,
    TenantDiscoveryError,
    TokenExchangeError,
)
from xero_client.auth.log_utils import get_auth_logger
from xero_client.auth.models import (
    AuthorizationCompletion,
    SESSION_TTL_SECONDS,
    AuthorizationSession,
    Connection,
    RedirectCompletion,
    TokenSet,
    VerifierCodeCompletion,
)
from xero_client.auth.provider import IdentityProvider, OpenIdProvider
from xero_client.config import ClientConfiguration
from xero_client.transport import HttpFailure, HttpTransport

_LOG = logging.getLogger("xero-client.client")

_MAX_PENDING_SESSIONS = 16
# expired sessions linger one extra window so late completions get a clear error
_SESSION_RETENTION_SECONDS = 2 * SESSION_TTL_SECONDS


class AuthState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AWAITING_CONSENT = "awaiting_consent"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"
    EXPIRED = "expired"
    FAILED = "failed"


class XeroClient:
    """Token lifecycle, tenant discovery and REST facades for one credential."""

    def __init__(
        self,
        config: ClientConfiguration,
        *,
        provider: IdentityProvider | None = None,
        transport: HttpTransport | None = None,
        clock: Clock = default_clock,
    ) -> None:
        self._config = config
        self._clock = clock
        self._owns_transport = transport is None
        self._transport = transport or HttpTransport(timeout=config.timeout)
        self._provider: IdentityProvider = provider or OpenIdProvider(
            config, self._transport, clock=clock
        )

        # need to set access token before use
        self.accounting_api = AccountingApi(self._transport, config.api_base_url)
        self._apis: tuple[BaseApi, ...] = (self.accounting_api,)

        self._token_set: TokenSet | None = None
        self._connections: tuple[Connection, ...] = ()
        self._sessions: TTLCache[str, AuthorizationSession] = TTLCache(
            maxsize=_MAX_PENDING_SESSIONS,
            ttl=_SESSION_RETENTION_SECONDS,
            timer=clock,
        )
        self._last_state: str | None = None
        self._status = AuthState.UNAUTHENTICATED

    @classmethod
    def from_env(cls, prefix: str = "XERO_", **kwargs: Any) -> "XeroClient":
        """Build a client from ``{prefix}*`` environment variables."""
        return cls(ClientConfiguration.from_env(prefix), **kwargs)

    # ------------------------------------------------------------------ #
    # Read-only state                                                    #
    # ------------------------------------------------------------------ #
    @property
    def config(self) -> ClientConfiguration:
        return self._config

    @property
    def state(self) -> AuthState:
        if (
            self._status is AuthState.AUTHENTICATED
            and self._token_set is not None
            and self._token_set.is_expired(clock=self._clock)
        ):
            return AuthState.EXPIRED
        return self._status

    @property
    def token_set(self) -> TokenSet | None:
        return self._token_set

    @property
    def tenant_ids(self) -> tuple[str, ...]:
        return tuple(c.tenant_id for c in self._connections)

    @property
    def connections(self) -> tuple[Connection, ...]:
        return self._connections

    @property
    def pending_request_token(self) -> str | None:
        """``state`` of the most recent consent URL still awaiting completion.

        This is the ``request_token`` a :class:`VerifierCodeCompletion` needs.
        """
        session = self._sessions.get(self._last_state) if self._last_state else None
        if session is None or session.is_expired(clock=self._clock):
            return None
        return session.state

    # ------------------------------------------------------------------ #
    # Consent                                                            #
    # ------------------------------------------------------------------ #
    async def build_consent_url(self) -> str:
        """Return the provider URL where the user grants access.

        Raises DiscoveryError when the provider metadata cannot be fetched.
        """
        url, session = await self._provider.authorization_url(
            redirect_uri=self._config.redirect_uri,
            scope=self._config.scope,
        )
        self._sessions[session.state] = session
        self._last_state = session.state
        if self._status in (AuthState.UNAUTHENTICATED, AuthState.FAILED):
            self._status = AuthState.AWAITING_CONSENT
        return url

    async def complete_authorization(
        self, completion: AuthorizationCompletion | str
    ) -> TokenSet:
        """Exchange the authorization response for a token set.

        *completion* is either the redirect URL (plain string or
        :class:`RedirectCompletion`) or a :class:`VerifierCodeCompletion`.
        On success the new token set is installed and tenants are discovered.
        """
        log = get_auth_logger(
            base_logger_name="xero-client.client",
            client_id=self._config.client_id,
            operation="exchange",
        )
        if isinstance(completion, str):
            completion = RedirectCompletion(url=completion)

        if isinstance(completion, RedirectCompletion):
            code, session = self._resolve_redirect(completion.url)
        elif isinstance(completion, VerifierCodeCompletion):
            if not completion.code:
                raise TokenExchangeError("verifier code is empty")
            code = completion.code
            session = self._lookup_session(completion.request_token)
        else:
            raise TypeError(f"unsupported authorization completion: {completion!r}")

        try:
            token_set = await self._provider.exchange_code(
                code=code,
                redirect_uri=self._config.redirect_uri,
                session=session,
            )
        except ProviderError as exc:
            log.warning("Authorization code exchange rejected: %s", exc.error)
            raise TokenExchangeError(
                f"Authorization code exchange rejected: {exc}",
                provider_error=exc.error,
            ) from exc

        self._sessions.pop(session.state, None)
        self._install_token_set(token_set, rotated=True)
        log.info(
            "Exchanged authorization code (expires in %ss)",
            token_set.expires_in(clock=self._clock),
        )

        await self.discover_tenants()
        return token_set

    def _resolve_redirect(self, url: str) -> tuple[str, AuthorizationSession]:
        params = dict(parse_qsl(urlsplit(url).query, keep_blank_values=True))

        if params.get("error"):
            description = params.get("error_description")
            raise TokenExchangeError(
                f"Authorization denied: {params['error']}"
                + (f" ({description})" if description else ""),
                provider_error=params["error"],
            )
        code = params.get("code")
        if not code:
            raise TokenExchangeError("Redirect URL carries no authorization code")
        state = params.get("state")
        if not state:
            raise TokenExchangeError("Redirect URL carries no state parameter")
        return code, self._lookup_session(state)

    def _lookup_session(self, state: str) -> AuthorizationSession:
        self._sessions.expire()
        if not self._sessions:
            raise TokenExchangeError(
                "No pending authorization; call build_consent_url() first"
            )
        session = self._sessions.get(state)
        if session is None:
            raise TokenExchangeError("State does not match a pending authorization")
        if session.is_expired(clock=self._clock):
            self._sessions.pop(state, None)
            raise TokenExchangeError("Authorization session expired; start again")
        return session

    # ------------------------------------------------------------------ #
    # Refresh                                                            #
    # ------------------------------------------------------------------ #
    async def refresh(self) -> TokenSet:
        """Exchange the refresh token for a new token set.

        Raises NotAuthenticatedError (without touching state) when there is no
        token set or no refresh token, RefreshError when the provider rejects
        the grant.  The client never retries; after RefreshError the caller
        must run the consent flow again.
        """
        current = self._token_set
        if current is None:
            raise NotAuthenticatedError(reason="no_token_set")
        if not current.refresh_token:
            raise NotAuthenticatedError(reason="no_refresh_token")

        log = get_auth_logger(
            base_logger_name="xero-client.client",
            client_id=self._config.client_id,
            operation="refresh",
        )
        previous_status = self._status
        self._status = AuthState.REFRESHING
        try:
            fresh = await self._provider.refresh(current.refresh_token)
            # Xero rotates refresh tokens, other providers may not; identity
            # claims are only re-issued when the openid scope is refreshed.
            if not fresh.refresh_token:
                fresh = dataclasses.replace(fresh, refresh_token=current.refresh_token)
            if not fresh.id_token and current.id_token:
                fresh = dataclasses.replace(
                    fresh, id_token=current.id_token, claims=current.claims
                )
            self._install_token_set(fresh, rotated=True)
        except ProviderError as exc:
            self._status = AuthState.FAILED
            log.warning("Refresh token rejected: %s", exc.error)
            raise RefreshError(
                f"Refresh token rejected: {exc}", provider_error=exc.error
            ) from exc
        finally:
            if self._status is AuthState.REFRESHING:
                self._status = previous_status

        log.info("Refreshed token set (expires in %ss)", fresh.expires_in(clock=self._clock))
        await self.discover_tenants()
        return fresh

    # ------------------------------------------------------------------ #
    # Export / import                                                    #
    # ------------------------------------------------------------------ #
    def export_token_set(self) -> TokenSet:
        if self._token_set is None:
            raise NotAuthenticatedError(reason="no_token_set")
        return self._token_set

    def import_token_set(self, token_set: TokenSet | Mapping[str, Any]) -> None:
        """Install a previously exported token set.

        Tenants are NOT re-discovered; call :meth:`discover_tenants` or
        :meth:`refresh` when current tenants are needed.
        """
        if not isinstance(token_set, TokenSet):
            token_set = TokenSet.from_dict(token_set, clock=self._clock)
        self._install_token_set(token_set, rotated=False)
        _LOG.debug("Imported token set (expires_at=%s)", token_set.expires_at)

    def read_id_token_claims(self) -> dict[str, Any]:
        if self._token_set is None:
            raise NotAuthenticatedError(reason="no_token_set")
        return dict(self._token_set.claims)

    def _install_token_set(self, token_set: TokenSet, *, rotated: bool) -> None:
        """Replace the token set and propagate it to every facade.

        Must stay free of ``await`` so no other task can observe the new token
        set alongside a stale facade token.
        """
        if not token_set.access_token:
            raise ValueError("Access token is empty")
        self._token_set = token_set
        for api in self._apis:
            api.access_token = token_set.access_token
        if rotated:
            # tenants belong to the previous token until re-discovered
            self._connections = ()
        self._status = AuthState.AUTHENTICATED

    # ------------------------------------------------------------------ #
    # Tenants                                                            #
    # ------------------------------------------------------------------ #
    async def discover_tenants(self) -> tuple[str, ...]:
        """Fetch the tenants the current access token is connected to.

        Order follows the connections endpoint.  On failure the previous
        tenant set is left as it was and the token set stays valid.
        """
        if self._token_set is None:
            raise NotAuthenticatedError(reason="no_token_set")

        url = self._config.connections_url
        try:
            result = await self._transport.get(url, bearer=self._token_set.access_token)
        except HttpFailure as exc:
            raise TenantDiscoveryError(f"Connections request failed: {exc}") from exc

        if not result.ok:
            raise TenantDiscoveryError(
                f"Connections endpoint returned {result.status_code}",
                status_code=result.status_code,
                body=result.body,
            )
        if not isinstance(result.body, list):
            raise TenantDiscoveryError(
                "Connections response is not a JSON array",
                status_code=result.status_code,
                body=result.body,
            )
        try:
            connections = tuple(Connection.from_api(item) for item in result.body)
        except (AttributeError, ValueError) as exc:
            raise TenantDiscoveryError(
                f"Malformed connection record: {exc}",
                status_code=result.status_code,
                body=result.body,
            ) from None

        self._connections = connections
        _LOG.info("Discovered %d connected tenant(s)", len(connections))
        return self.tenant_ids

    # ------------------------------------------------------------------ #
    # Resources                                                          #
    # ------------------------------------------------------------------ #
    async def aclose(self) -> None:
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> "XeroClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
