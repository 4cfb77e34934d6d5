"""XeroClient with an injected identity provider.

The stub stands in for the OpenID layer so these tests pin down what the
client itself does with provider results and failures.
"""

from __future__ import annotations

import httpx
import pytest

from xero_client.auth.errors import ProviderError, RefreshError, TokenExchangeError
from xero_client.auth.models import TokenSet
from xero_client.client import AuthState, XeroClient
from xero_client.config import ClientConfiguration
from xero_client.transport import HttpTransport
from xero_fakes import FakeClock, StubProvider

pytestmark = pytest.mark.anyio


async def _consent_state(client: XeroClient) -> str:
    await client.build_consent_url()
    return client.pending_request_token


async def test_exchange_receives_first_redirect_uri(
    stubbed_client: XeroClient, stub_provider: StubProvider
) -> None:
    state = await _consent_state(stubbed_client)
    await stubbed_client.complete_authorization(
        f"https://elsewhere.example.com/cb?state={state}&code=abc"
    )
    assert "exchange_code:abc:https://app.example.com/callback" in stub_provider.calls
    assert stubbed_client.accounting_api.access_token == "stub-at-1"


async def test_provider_rejection_becomes_token_exchange_error(
    stubbed_client: XeroClient, stub_provider: StubProvider
) -> None:
    stub_provider.exchange_error = ProviderError("invalid_grant", status_code=400)
    state = await _consent_state(stubbed_client)

    with pytest.raises(TokenExchangeError) as info:
        await stubbed_client.complete_authorization(
            f"https://app.example.com/callback?code=abc&state={state}"
        )
    assert isinstance(info.value.__cause__, ProviderError)
    assert stubbed_client.state is AuthState.AWAITING_CONSENT
    assert stubbed_client.accounting_api.access_token is None
    # the session stays pending so the user can retry with a fresh code
    assert stubbed_client.pending_request_token == state


async def test_refresh_sends_current_refresh_token(
    stubbed_client: XeroClient, stub_provider: StubProvider, clock: FakeClock
) -> None:
    stubbed_client.import_token_set(
        TokenSet(access_token="old", refresh_token="rt-saved", expires_at=int(clock()) + 5)
    )
    new = await stubbed_client.refresh()
    assert stub_provider.calls == ["refresh:rt-saved"]
    assert new.refresh_token == "rt-next"


async def test_refresh_keeps_refresh_token_when_provider_omits_it(
    stubbed_client: XeroClient, stub_provider: StubProvider, clock: FakeClock
) -> None:
    stub_provider.next_refresh_token = None
    stubbed_client.import_token_set(
        TokenSet(access_token="old", refresh_token="rt-saved", expires_at=int(clock()) + 5)
    )
    new = await stubbed_client.refresh()
    assert new.refresh_token == "rt-saved"
    assert stubbed_client.token_set.refresh_token == "rt-saved"


async def test_state_is_refreshing_while_provider_works(
    stubbed_client: XeroClient, stub_provider: StubProvider, clock: FakeClock
) -> None:
    observed: list[AuthState] = []
    original_refresh = stub_provider.refresh

    async def _observing_refresh(refresh_token: str) -> TokenSet:
        observed.append(stubbed_client.state)
        return await original_refresh(refresh_token)

    stub_provider.refresh = _observing_refresh  # type: ignore[method-assign]
    stubbed_client.import_token_set(
        TokenSet(access_token="old", refresh_token="rt", expires_at=int(clock()) + 5)
    )
    await stubbed_client.refresh()
    assert observed == [AuthState.REFRESHING]
    assert stubbed_client.state is AuthState.AUTHENTICATED


async def test_refresh_failure_marks_failed_and_keeps_tokens(
    stubbed_client: XeroClient, stub_provider: StubProvider, clock: FakeClock
) -> None:
    stub_provider.refresh_error = ProviderError("invalid_grant")
    saved = TokenSet(access_token="old", refresh_token="rt", expires_at=int(clock()) + 5)
    stubbed_client.import_token_set(saved)

    with pytest.raises(RefreshError):
        await stubbed_client.refresh()
    assert stubbed_client.token_set == saved
    assert stubbed_client.accounting_api.access_token == "old"
    assert stubbed_client.state is AuthState.FAILED


async def test_no_stale_facade_token_during_discovery(
    config: ClientConfiguration, stub_provider: StubProvider, clock: FakeClock
) -> None:
    """The facade already carries the new token by the time anything else runs."""
    client_ref: list[XeroClient] = []
    seen: list[tuple[str, str | None]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(
            (request.headers["authorization"], client_ref[0].accounting_api.access_token)
        )
        return httpx.Response(200, json=[{"tenantId": "T"}])

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = XeroClient(
            config, provider=stub_provider, transport=HttpTransport(http), clock=clock
        )
        client_ref.append(client)
        client.import_token_set(
            TokenSet(access_token="old", refresh_token="rt", expires_at=int(clock()) + 5)
        )
        new = await client.refresh()

    assert seen == [(f"Bearer {new.access_token}", new.access_token)]


async def test_consent_after_failure_awaits_consent_again(
    stubbed_client: XeroClient, stub_provider: StubProvider, clock: FakeClock
) -> None:
    stub_provider.refresh_error = ProviderError("invalid_grant")
    stubbed_client.import_token_set(
        TokenSet(access_token="old", refresh_token="rt", expires_at=int(clock()) + 5)
    )
    with pytest.raises(RefreshError):
        await stubbed_client.refresh()

    await stubbed_client.build_consent_url()
    assert stubbed_client.state is AuthState.AWAITING_CONSENT


async def test_unsupported_completion_type(stubbed_client: XeroClient) -> None:
    await stubbed_client.build_consent_url()
    with pytest.raises(TypeError):
        await stubbed_client.complete_authorization(42)  # type: ignore[arg-type]


async def test_empty_verifier_code(stubbed_client: XeroClient) -> None:
    from xero_client.auth.models import VerifierCodeCompletion

    state = await _consent_state(stubbed_client)
    with pytest.raises(TokenExchangeError):
        await stubbed_client.complete_authorization(
            VerifierCodeCompletion(request_token=state, code="")
        )
