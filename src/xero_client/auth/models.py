"""Typed, immutable records used by the Xero authentication core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

import jwt

from xero_client.auth.clock import Clock, default_clock

# consent sessions go stale after 15 minutes
SESSION_TTL_SECONDS = 15 * 60


@dataclass(frozen=True, slots=True)
class TokenSet:
    """Snapshot of the tokens issued by the identity provider.

    Replaced wholesale on every exchange or refresh; never mutated in place.
    """

    access_token: str
    expires_at: int
    refresh_token: str | None = None
    token_type: str = "Bearer"
    scope: str | None = None
    id_token: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)

    def expires_in(self, *, clock: Clock = default_clock) -> int:
        """Seconds left until *expires_at* (negative once expired)."""
        return self.expires_at - int(clock())

    def is_expired(self, *, clock: Clock = default_clock, leeway: int = 0) -> bool:
        """Return *True* if the access token expires within *leeway* seconds."""
        return self.expires_in(clock=clock) <= leeway

    def to_dict(self) -> dict[str, Any]:
        """Return the exported state shape (JSON-serialisable)."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "token_type": self.token_type,
            "scope": self.scope,
            "id_token": self.id_token,
            "claims": dict(self.claims),
        }

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], *, clock: Clock = default_clock
    ) -> "TokenSet":
        """Build a TokenSet from exported state or a raw token response.

        Exported state carries ``expires_at``; provider responses carry
        ``expires_in`` which is converted using *clock*.
        """
        access_token = data.get("access_token")
        if not access_token:
            raise ValueError("token set is missing access_token")

        if data.get("expires_at") is not None:
            expires_at = int(data["expires_at"])
        elif data.get("expires_in") is not None:
            expires_at = int(clock()) + int(data["expires_in"])
        else:
            raise ValueError("token set is missing expires_at / expires_in")

        id_token = data.get("id_token")
        if "claims" in data:
            claims = dict(data["claims"] or {})
        elif id_token:
            # raw token responses carry the id_token only
            claims = _unverified_claims(id_token)
        else:
            claims = {}

        return cls(
            access_token=str(access_token),
            expires_at=expires_at,
            refresh_token=data.get("refresh_token") or None,
            token_type=data.get("token_type") or "Bearer",
            scope=data.get("scope"),
            id_token=id_token,
            claims=claims,
        )


def _unverified_claims(id_token: str) -> dict[str, Any]:
    try:
        return jwt.decode(id_token, options={"verify_signature": False})
    except jwt.InvalidTokenError as exc:
        raise ValueError(f"id_token cannot be decoded: {exc}") from None


@dataclass(frozen=True, slots=True)
class Connection:
    """A tenant (organisation or practice) the current token may act on."""

    tenant_id: str
    id: str | None = None
    tenant_type: str | None = None
    tenant_name: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Connection":
        tenant_id = data.get("tenantId")
        if not isinstance(tenant_id, str) or not tenant_id:
            raise ValueError("connection record is missing tenantId")
        return cls(
            tenant_id=tenant_id,
            id=data.get("id"),
            tenant_type=data.get("tenantType"),
            tenant_name=data.get("tenantName"),
            raw=dict(data),
        )


@dataclass(frozen=True, slots=True)
class ProviderMetadata:
    """Endpoints advertised by the provider's OpenID discovery document."""

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    userinfo_endpoint: str | None = None
    jwks_uri: str | None = None
    revocation_endpoint: str | None = None

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> "ProviderMetadata":
        missing = [
            k
            for k in ("issuer", "authorization_endpoint", "token_endpoint")
            if not isinstance(data.get(k), str) or not data.get(k)
        ]
        if missing:
            raise ValueError(f"discovery document missing {', '.join(missing)}")
        return cls(
            issuer=data["issuer"],
            authorization_endpoint=data["authorization_endpoint"],
            token_endpoint=data["token_endpoint"],
            userinfo_endpoint=data.get("userinfo_endpoint"),
            jwks_uri=data.get("jwks_uri"),
            revocation_endpoint=data.get("revocation_endpoint"),
        )


@dataclass(frozen=True, slots=True)
class AuthorizationSession:
    """Metadata captured when building a consent URL."""

    state: str
    nonce: str
    redirect_uri: str
    code_verifier: str | None = None
    created_at: int = field(default_factory=lambda: int(default_clock()))
    ttl_seconds: int = SESSION_TTL_SECONDS

    def is_expired(self, *, clock: Clock = default_clock) -> bool:
        """Return *True* if the session exceeded its TTL."""
        return (clock() - self.created_at) > self.ttl_seconds


@dataclass(frozen=True, slots=True)
class RedirectCompletion:
    """The full URL the user's browser was redirected back to."""

    url: str
    kind: str = field(default="redirect", init=False)


@dataclass(frozen=True, slots=True)
class VerifierCodeCompletion:
    """A code the user copied from a provider-rendered page.

    ``request_token`` is the ``state`` handle returned alongside the consent
    URL; it identifies which pending session the code belongs to.
    """

    request_token: str
    code: str
    kind: str = field(default="verifierCode", init=False)


AuthorizationCompletion = Union[RedirectCompletion, VerifierCodeCompletion]
