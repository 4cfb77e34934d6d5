"""Common plumbing for the REST operation facades."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from xero_client.auth.errors import NotAuthenticatedError, XeroClientError
from xero_client.transport import HttpTransport

_LOG = logging.getLogger("xero-client.api")


class ApiError(XeroClientError):
    """Raised when the accounting API answers with a non-2xx status."""

    error_code = "api_error"

    def __init__(self, message: str, *, status_code: int, body: Any = None) -> None:
        super().__init__(message)
        self.status_code: int = status_code
        self.body: Any = body

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["status_code"] = self.status_code
        return payload


class BaseApi:
    """A REST facade whose calls carry the most recently set access token.

    ``access_token`` is assigned by the owning client whenever its token set
    changes; it is read afresh on every request.
    """

    def __init__(self, transport: HttpTransport, base_url: str) -> None:
        self._transport = transport
        self.base_url = base_url.rstrip("/")
        self.access_token: str | None = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        tenant_id: str,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        if not self.access_token:
            raise NotAuthenticatedError(reason="no_token_set")
        if not tenant_id:
            raise ValueError("tenant_id is required")

        url = f"{self.base_url}/{path.lstrip('/')}"
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        result = await self._transport.request(
            method,
            url,
            bearer=self.access_token,
            headers={"xero-tenant-id": tenant_id},
            params=clean_params or None,
            json=json,
        )
        if not result.ok:
            _LOG.info("%s %s returned %s", method, path, result.status_code)
            raise ApiError(
                f"{method} {path} returned {result.status_code}",
                status_code=result.status_code,
                body=result.body,
            )
        return result.body
