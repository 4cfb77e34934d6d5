"""Async HTTP transport shared by the identity provider, tenant discovery and
the REST facade.

Every call is a single awaited request over :class:`httpx.AsyncClient` that
either returns an :class:`HttpResult` (any status code) or raises
:class:`HttpFailure` when no response was received at all.  Callers decide
which status codes are errors for their operation.  Cancellation follows the
caller's task: cancelling the awaiting task aborts the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from xero_client.auth.errors import XeroClientError

_LOG = logging.getLogger("xero-client.transport")

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "xero-client-python"


class HttpFailure(XeroClientError):
    """Raised when a request could not be completed (DNS, connect, timeout…)."""

    error_code = "http_failure"

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url: str | None = url


@dataclass(frozen=True)
class HttpResult:
    """A completed HTTP exchange."""

    status_code: int
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code <= 299


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            _LOG.debug("Response declared JSON but could not be decoded")
    return response.text


class HttpTransport:
    """Thin async wrapper around :class:`httpx.AsyncClient`.

    The transport owns its client unless one is injected, in which case
    :meth:`aclose` leaves it open for the caller to manage.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout, headers={"User-Agent": USER_AGENT}
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        bearer: str | None = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, str] | None = None,
        json: Any = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResult:
        """Send one request and return its :class:`HttpResult`."""
        send_headers: dict[str, str] = {"Accept": "application/json"}
        if headers:
            send_headers.update(headers)
        if bearer:
            send_headers["Authorization"] = f"Bearer {bearer}"

        try:
            response = await self._client.request(
                method,
                url,
                headers=send_headers,
                params=params,
                data=data,
                json=json,
                auth=auth,
            )
        except httpx.HTTPError as exc:
            _LOG.warning("%s %s failed: %s", method, url, type(exc).__name__)
            raise HttpFailure(f"{method} {url} failed: {exc}", url=url) from exc

        _LOG.debug("%s %s -> %s", method, url, response.status_code)
        return HttpResult(
            status_code=response.status_code,
            body=_decode_body(response),
            headers=dict(response.headers),
        )

    async def get(self, url: str, **kwargs: Any) -> HttpResult:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> HttpResult:
        return await self.request("POST", url, **kwargs)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
