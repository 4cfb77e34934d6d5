"""Utility functions related to environment variables."""

import logging
import os
import re
from typing import Final, Tuple

logger = logging.getLogger("xero-client.utils.environment")

_TRUTHY: Final[Tuple[str, ...]] = ("true", "1", "yes", "y", "on")


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def env_truthy(name: str) -> bool:
    """Return True if the environment variable *name* is set to a truthy value."""
    return _truthy(os.getenv(name))


def env_list(name: str, *, separators: str = ",") -> tuple[str, ...]:
    """
    Split the environment variable *name* into a tuple of non-empty items.

    Any character in *separators* acts as a delimiter; surrounding whitespace
    is stripped.  Order is preserved because the first redirect URI is the
    canonical one.
    """
    raw = os.getenv(name) or ""
    pattern = "[" + re.escape(separators) + "]"
    items = tuple(part.strip() for part in re.split(pattern, raw) if part.strip())
    if raw and not items:
        logger.debug("Environment variable %s is set but contains no items", name)
    return items
