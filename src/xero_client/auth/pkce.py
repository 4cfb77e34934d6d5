"""PKCE (Proof Key for Code Exchange) helpers.

Xero lets *public* clients (mobile, desktop, single-page apps) that cannot keep
a client secret complete the authorization-code flow by proving possession of
a *code verifier* instead.  The consent URL carries the S256 *code challenge*
and the token request carries the verifier.

The client switches to PKCE automatically when its configuration has no
client secret.  Verifiers are never logged.
"""

from __future__ import annotations

import base64
import secrets
from dataclasses import dataclass
from hashlib import sha256
from typing import Final

# RFC-7636 §4.1: the verifier is 43-128 characters long.
_MIN_LEN: Final[int] = 43
_MAX_LEN: Final[int] = 128
_DEFAULT_LEN: Final[int] = 64
_ALPHABET: Final[str] = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
)


@dataclass(frozen=True, slots=True)
class PkcePair:
    verifier: str
    challenge: str
    method: str = "S256"


def generate_code_verifier(length: int = _DEFAULT_LEN) -> str:
    """Return a high-entropy code verifier of *length* characters."""
    if not _MIN_LEN <= length <= _MAX_LEN:
        raise ValueError(f"code verifier length must be {_MIN_LEN}-{_MAX_LEN} characters")
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def code_challenge_s256(verifier: str) -> str:
    """Base64url-encoded SHA-256 of *verifier*, without padding."""
    digest = sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_pkce_pair(length: int = _DEFAULT_LEN) -> PkcePair:
    """Generate a fresh verifier together with its S256 challenge."""
    verifier = generate_code_verifier(length)
    return PkcePair(verifier=verifier, challenge=code_challenge_s256(verifier))
