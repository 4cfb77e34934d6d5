"""Concurrency-safe, on-disk persistence for exported token sets.

:class:`XeroClient` never persists anything itself; callers export the token
set and keep it wherever they like.  This module offers a *narrow* persistence
interface (:class:`TokenStore`) and a JSON-file implementation
(:class:`DiskTokenStore`) for callers that do not want to write their own:

* **Atomicity** – writes use *temp-file + os.replace*.
* **Concurrency** – per-key advisory lock files; a second writer fails fast.
* **Filename safety** – caller supplied keys are hashed before hitting the
  filesystem.

Environment variables
---------------------
XERO_TOKEN_STORAGE_DIR
    Base directory for persisted token sets.
    Defaults to ``~/.xero-client/tokens`` when unset.
"""

from __future__ import annotations

import json
import logging
import os
import time
from contextlib import contextmanager
from hashlib import sha256
from pathlib import Path
from typing import Iterator, Protocol, runtime_checkable

from xero_client.auth.models import TokenSet

_LOG = logging.getLogger("xero-client.auth.store")


def _key_filename(key: str) -> str:
    if not key:
        raise ValueError("store key must be a non-empty string")
    return sha256(key.encode()).hexdigest()[:24]


def _atomic_write(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as fh:
        json.dump(data, fh, separators=(",", ":"), sort_keys=True)
    os.replace(tmp, path)  # atomic on POSIX


@contextmanager
def _file_lock(lock_path: Path, retries: int = 25, delay: float = 0.2) -> Iterator[None]:
    """Advisory file lock using ``os.O_EXCL`` lock-file creation."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    for attempt in range(retries + 1):
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_RDWR)
            os.close(fd)
            break
        except FileExistsError:
            if attempt == retries:
                raise TimeoutError(f"Could not acquire lock {lock_path}") from None
            time.sleep(delay)
    try:
        yield
    finally:
        lock_path.unlink(missing_ok=True)


@runtime_checkable
class TokenStore(Protocol):
    """Minimal persistence contract for exported token sets."""

    def save(self, key: str, token_set: TokenSet) -> None: ...

    def load(self, key: str) -> TokenSet | None: ...

    def delete(self, key: str) -> None: ...


class DiskTokenStore(TokenStore):
    """JSON-file implementation of :class:`TokenStore`."""

    def __init__(self, base_dir: str | os.PathLike | None = None) -> None:
        self.base_dir = Path(
            base_dir
            or os.getenv("XERO_TOKEN_STORAGE_DIR")
            or Path.home() / ".xero-client" / "tokens"
        ).expanduser()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{_key_filename(key)}.json"

    def _lock(self, key: str) -> Path:
        return self._path(key).with_suffix(".lock")

    def save(self, key: str, token_set: TokenSet) -> None:
        # Fail fast if another writer holds the lock for this key.
        with _file_lock(self._lock(key), retries=0, delay=0):
            _atomic_write(self._path(key), token_set.to_dict())
        _LOG.debug("Saved token set for key hash=%s", _key_filename(key)[:8])

    def load(self, key: str) -> TokenSet | None:
        path = self._path(key)
        if not path.exists():
            return None
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        return TokenSet.from_dict(data)

    def delete(self, key: str) -> None:
        with _file_lock(self._lock(key)):
            self._path(key).unlink(missing_ok=True)
