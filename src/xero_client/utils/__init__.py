"""Utility helpers for xero_client."""

from .environment import env_list, env_truthy  # noqa: F401
from .logging import mask_sensitive, setup_logging  # noqa: F401

__all__ = ["env_list", "env_truthy", "mask_sensitive", "setup_logging"]
