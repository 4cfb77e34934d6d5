"""Logging helpers shared across xero_client."""

from __future__ import annotations

import logging


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Return *value* truncated to its first ``keep_chars`` characters.

    Used wherever an identifier derived from a secret (state, token prefix)
    is useful in a debug log line.
    """
    if not value:
        return ""
    if len(value) <= keep_chars:
        return "*" * len(value)
    return f"{value[:keep_chars]}{'*' * 4}"


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Configure the ``xero-client`` logger hierarchy with a stderr handler.

    Library code never calls this; it exists for scripts and examples.
    """
    logger = logging.getLogger("xero-client")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logger.addHandler(handler)
    return logger
