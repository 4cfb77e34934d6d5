"""Context-carrying loggers for the token lifecycle.

Log lines emitted while exchanging or refreshing tokens should say *which*
credential and *which* step they belong to, but must never carry a token,
code or secret.  :func:`get_auth_logger` therefore accepts a fixed set of
keywords only:

- ``client_id``  – OAuth client identifier, cut down to its first 6 chars
- ``tenant_id``  – Xero tenant the call is scoped to, when there is one
- ``operation``  – lifecycle step (``consent``, ``exchange``, ``refresh``…)

The values are attached to each record as attributes *and* rendered as a
``[key=value …]`` prefix so they survive the default formatter::

    >>> log = get_auth_logger(client_id="0123456789ABCDEF", operation="refresh")
    >>> log.info("Refreshed token set")
    INFO xero-client.auth [client_id=012345 operation=refresh] Refreshed token set
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping

_CONTEXT_KEYS = ("client_id", "tenant_id", "operation")
_CLIENT_ID_CHARS = 6


class _AuthContextAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: MutableMapping[str, Any]):
        extra = kwargs.get("extra") or {}
        # call-site extras take precedence over the bound context
        merged = {**self.extra, **extra}
        kwargs["extra"] = merged
        rendered = " ".join(f"{k}={merged[k]}" for k in _CONTEXT_KEYS if k in merged)
        return (f"[{rendered}] {msg}" if rendered else msg), kwargs


def get_auth_logger(
    *,
    base_logger_name: str = "xero-client.auth",
    client_id: str | None = None,
    tenant_id: str | None = None,
    operation: str | None = None,
) -> logging.LoggerAdapter:
    """Return a logger adapter bound to the given (non-secret) context."""
    context: dict[str, Any] = {}
    if client_id:
        context["client_id"] = str(client_id)[:_CLIENT_ID_CHARS]
    if tenant_id:
        context["tenant_id"] = tenant_id
    if operation:
        context["operation"] = operation
    return _AuthContextAdapter(logging.getLogger(base_logger_name), context)
