"""xero_auth.py

Helper to obtain, refresh and inspect Xero tokens from the command line.

Commands
--------
* ``login``   – print the consent URL, wait for the redirect URL (or the code
  shown by Xero when no callback is configured) and store the token set
* ``refresh`` – refresh the stored token set and store the rotated one
* ``tenants`` – list the tenants connected to the stored token set

Configuration comes from ``XERO_*`` environment variables (see
``xero_client.config``).  Token sets are stored with ``DiskTokenStore``;
tokens are **never** printed.

Example
-------
    python scripts/xero_auth.py login --key demo
    python scripts/xero_auth.py tenants --key demo
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from xero_client import (
    DiskTokenStore,
    VerifierCodeCompletion,
    XeroClient,
    XeroClientError,
)
from xero_client.utils.logging import setup_logging


async def _login(client: XeroClient, store: DiskTokenStore, key: str) -> None:
    url = await client.build_consent_url()
    print(f"Open this URL and grant access:\n\n  {url}\n")
    answer = input("Paste the redirect URL (or the code Xero displayed): ").strip()
    if answer.startswith(("http://", "https://")):
        await client.complete_authorization(answer)
    else:
        request_token = client.pending_request_token or ""
        await client.complete_authorization(
            VerifierCodeCompletion(request_token=request_token, code=answer)
        )
    store.save(key, client.export_token_set())


async def _refresh(client: XeroClient, store: DiskTokenStore, key: str) -> None:
    _import_stored(client, store, key)
    await client.refresh()
    store.save(key, client.export_token_set())


async def _tenants(client: XeroClient, store: DiskTokenStore, key: str) -> None:
    _import_stored(client, store, key)
    await client.discover_tenants()


def _import_stored(client: XeroClient, store: DiskTokenStore, key: str) -> None:
    token_set = store.load(key)
    if token_set is None:
        sys.exit(f"No stored token set for key {key!r}; run 'login' first")
    client.import_token_set(token_set)


_COMMANDS = {"login": _login, "refresh": _refresh, "tenants": _tenants}


async def _run(command: str, key: str, storage_dir: str | None) -> None:
    store = DiskTokenStore(storage_dir)
    async with XeroClient.from_env() as client:
        await _COMMANDS[command](client, store, key)
        for connection in client.connections:
            print(f"- {connection.tenant_name or '?'} | tenantId={connection.tenant_id}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Manage Xero OAuth tokens.")
    parser.add_argument("command", choices=sorted(_COMMANDS))
    parser.add_argument("--key", default="default", help="Token store key")
    parser.add_argument("--storage-dir", help="Override XERO_TOKEN_STORAGE_DIR")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    try:
        asyncio.run(_run(args.command, args.key, args.storage_dir))
    except XeroClientError as exc:
        sys.exit(f"{type(exc).__name__}: {exc}")


if __name__ == "__main__":
    main()
