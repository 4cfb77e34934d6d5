"""Test doubles: a fake Xero identity/API backend served through
``httpx.MockTransport``, a stub identity provider and a mutable clock.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit

import httpx
import jwt

from xero_client.auth.errors import ProviderError
from xero_client.auth.models import AuthorizationSession, ProviderMetadata, TokenSet

ISSUER = "https://identity.xero.com"
AUTHORIZE_URL = f"{ISSUER}/connect/authorize"
TOKEN_URL = f"{ISSUER}/connect/token"
CONNECTIONS_URL = "https://api.xero.com/connections"
API_BASE = "https://api.xero.com/api.xro/2.0"
# HS256 key long enough for PyJWT's key-length checks
ID_TOKEN_KEY = "test-signing-key-0123456789abcdef0123456789"

DISCOVERY_DOCUMENT = {
    "issuer": ISSUER,
    "authorization_endpoint": AUTHORIZE_URL,
    "token_endpoint": TOKEN_URL,
    "userinfo_endpoint": f"{ISSUER}/connect/userinfo",
    "jwks_uri": f"{ISSUER}/.well-known/openid-configuration/jwks",
    "revocation_endpoint": f"{ISSUER}/connect/revocation",
}


class FakeClock:
    """Mutable clock; call to read, :meth:`advance` to move forward."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeXero:
    """In-memory Xero identity provider, connections endpoint and accounting API."""

    clock: FakeClock
    client_id: str
    expires_in: int = 1800
    discovery_status: int = 200
    connections_status: int = 200
    connections: list[dict[str, Any]] = field(
        default_factory=lambda: [
            {"id": "c-1", "tenantId": "tenant-B", "tenantType": "ORGANISATION", "tenantName": "Beta Ltd"},
            {"id": "c-2", "tenantId": "tenant-A", "tenantType": "ORGANISATION", "tenantName": "Alpha Ltd"},
        ]
    )
    rotate_refresh_tokens: bool = True
    requests: list[httpx.Request] = field(default_factory=list)
    _codes: dict[str, dict[str, str]] = field(default_factory=dict)
    _refresh_tokens: dict[str, bool] = field(default_factory=dict)
    _counter: itertools.count = field(default_factory=lambda: itertools.count(1))

    # ---------------- browser simulation ---------------------------------- #
    def authorize(self, consent_url: str, *, extra: dict[str, str] | None = None) -> str:
        """Simulate the user granting consent; return the redirect-back URL."""
        params = {k: v[0] for k, v in parse_qs(urlsplit(consent_url).query).items()}
        code = f"code-{next(self._counter)}"
        self._codes[code] = params
        query = {"code": code, "scope": params["scope"], "state": params["state"]}
        query.update(extra or {})
        return f"{params['redirect_uri']}?{urlencode(query)}"

    def display_code(self, consent_url: str) -> str:
        """Simulate the no-callback variant: return the code shown to the user."""
        redirect = self.authorize(consent_url)
        return parse_qs(urlsplit(redirect).query)["code"][0]

    def revoke_all(self) -> None:
        for token in self._refresh_tokens:
            self._refresh_tokens[token] = False

    # ---------------- HTTP handler ---------------------------------------- #
    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url).split("?", 1)[0]

        if url == f"{ISSUER}/.well-known/openid-configuration":
            if self.discovery_status != 200:
                return httpx.Response(self.discovery_status, text="unavailable")
            return httpx.Response(200, json=DISCOVERY_DOCUMENT)
        if url == TOKEN_URL and request.method == "POST":
            return self._token(request)
        if url == CONNECTIONS_URL:
            if self.connections_status != 200:
                return httpx.Response(
                    self.connections_status, json={"Title": "Unauthorized"}
                )
            return httpx.Response(200, json=self.connections)
        if url.startswith(API_BASE):
            return httpx.Response(
                200,
                json={
                    "Status": "OK",
                    "Path": url[len(API_BASE):],
                    "Authorization": request.headers.get("authorization"),
                    "TenantId": request.headers.get("xero-tenant-id"),
                },
            )
        return httpx.Response(404, json={"error": "not_found"})

    def _issue(self, *, nonce: str | None) -> dict[str, Any]:
        n = next(self._counter)
        refresh_token = f"rt-{n}"
        self._refresh_tokens[refresh_token] = True
        now = int(self.clock())
        body: dict[str, Any] = {
            "access_token": f"at-{n}",
            "refresh_token": refresh_token,
            "expires_in": self.expires_in,
            "token_type": "Bearer",
            "scope": "openid profile email accounting.transactions offline_access",
        }
        if nonce is not None:
            claims = {
                "iss": ISSUER,
                "aud": self.client_id,
                "sub": "user-123",
                "email": "owner@example.com",
                "nonce": nonce,
                "iat": now,
                "exp": now + 300,
            }
            body["id_token"] = jwt.encode(claims, ID_TOKEN_KEY, algorithm="HS256")
        return body

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = dict(parse_qsl(request.content.decode()))
        grant_type = form.get("grant_type")
        if grant_type == "authorization_code":
            params = self._codes.pop(form.get("code", ""), None)
            if params is None or params["redirect_uri"] != form.get("redirect_uri"):
                return httpx.Response(400, json={"error": "invalid_grant"})
            return httpx.Response(200, json=self._issue(nonce=params.get("nonce")))
        if grant_type == "refresh_token":
            token = form.get("refresh_token", "")
            if not self._refresh_tokens.get(token):
                return httpx.Response(400, json={"error": "invalid_grant"})
            if self.rotate_refresh_tokens:
                self._refresh_tokens[token] = False
            body = self._issue(nonce=None)
            if not self.rotate_refresh_tokens:
                body.pop("refresh_token")
            return httpx.Response(200, json=body)
        return httpx.Response(400, json={"error": "unsupported_grant_type"})

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).split("?", 1)[0] == url]


class StubProvider:
    """Identity provider stand-in recording calls; no HTTP involved."""

    def __init__(self, clock: Callable[[], float]) -> None:
        self.clock = clock
        self.calls: list[str] = []
        self.exchange_error: ProviderError | None = None
        self.refresh_error: ProviderError | None = None
        self.next_refresh_token: str | None = "rt-next"
        self._n = 0

    def _token_set(self, refresh_token: str | None) -> TokenSet:
        self._n += 1
        return TokenSet(
            access_token=f"stub-at-{self._n}",
            refresh_token=refresh_token,
            expires_at=int(self.clock()) + 1800,
            claims={"sub": "user-123"},
            id_token="stub.id.token",
        )

    async def discover(self) -> ProviderMetadata:
        self.calls.append("discover")
        return ProviderMetadata.from_document(DISCOVERY_DOCUMENT)

    async def authorization_url(
        self, *, redirect_uri: str, scope: str
    ) -> tuple[str, AuthorizationSession]:
        self.calls.append("authorization_url")
        session = AuthorizationSession(
            state=f"state-{len(self.calls)}",
            nonce="nonce",
            redirect_uri=redirect_uri,
            created_at=int(self.clock()),
        )
        query = urlencode({"redirect_uri": redirect_uri, "scope": scope, "state": session.state})
        return f"{AUTHORIZE_URL}?{query}", session

    async def exchange_code(
        self, *, code: str, redirect_uri: str, session: AuthorizationSession
    ) -> TokenSet:
        self.calls.append(f"exchange_code:{code}:{redirect_uri}")
        if self.exchange_error:
            raise self.exchange_error
        return self._token_set("rt-initial")

    async def refresh(self, refresh_token: str) -> TokenSet:
        self.calls.append(f"refresh:{refresh_token}")
        if self.refresh_error:
            raise self.refresh_error
        return self._token_set(self.next_refresh_token)
