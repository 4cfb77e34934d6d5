"""Shared fixtures wired to the fakes in ``xero_fakes``.

No test in the default run touches the network.  Tests marked
``integration`` only run with ``--integration`` unless also marked
``ci_safe``; ``live`` tests additionally need ``XERO_LIVE=1``.
"""

from __future__ import annotations

import httpx
import pytest

from xero_client.client import XeroClient
from xero_client.config import ClientConfiguration
from xero_client.transport import HttpTransport
from xero_fakes import FakeClock, FakeXero, StubProvider


def pytest_addoption(parser):
    """Add integration option to pytest."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly requested.

    Tests marked with 'ci_safe' are always run because they stub all external
    calls and are safe for CI.
    """
    if not config.getoption("--integration", default=False):
        skip_integration = pytest.mark.skip(reason="Need --integration option to run")
        for item in items:
            if "integration" in item.keywords and "ci_safe" not in item.keywords:
                item.add_marker(skip_integration)


# --------------------------------------------------------------------------- #
# Fixtures                                                                    #
# --------------------------------------------------------------------------- #
@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> ClientConfiguration:
    return ClientConfiguration(
        client_id="CLIENTID0123456789ABCDEF",
        client_secret="client-secret",
        redirect_uris=("https://app.example.com/callback", "https://app.example.com/alt"),
        scopes=("openid", "profile", "email", "accounting.transactions", "offline_access"),
    )


@pytest.fixture
def fake_xero(clock: FakeClock, config: ClientConfiguration) -> FakeXero:
    return FakeXero(clock=clock, client_id=config.client_id)


@pytest.fixture
async def http_client(fake_xero: FakeXero):
    """httpx client routed to the fake Xero backend."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_xero.handler)) as ac:
        yield ac


@pytest.fixture
def transport(http_client: httpx.AsyncClient) -> HttpTransport:
    return HttpTransport(http_client)


@pytest.fixture
def client(
    config: ClientConfiguration, transport: HttpTransport, clock: FakeClock
) -> XeroClient:
    """XeroClient using the real OpenIdProvider against the fake backend."""
    return XeroClient(config, transport=transport, clock=clock)


@pytest.fixture
def stub_provider(clock: FakeClock) -> StubProvider:
    return StubProvider(clock)


@pytest.fixture
def stubbed_client(
    config: ClientConfiguration,
    transport: HttpTransport,
    stub_provider: StubProvider,
    clock: FakeClock,
) -> XeroClient:
    """XeroClient whose identity provider is :class:`StubProvider`."""
    return XeroClient(config, provider=stub_provider, transport=transport, clock=clock)
