"""Injectable time source.

Token and consent-session expiry are computed against a ``Clock``: any
zero-argument callable returning UNIX seconds.  Production code uses
:func:`default_clock`; tests pass a frozen or advancing callable instead so
expiry can be exercised without sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def __call__(self) -> float: ...


def default_clock() -> float:
    """Wall-clock seconds since the epoch."""
    return time.time()


def fixed_clock(now: float) -> Clock:
    """Return a clock that always reads *now*."""

    def _frozen() -> float:
        return now

    return _frozen
