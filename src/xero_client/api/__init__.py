"""REST operation facades authenticated with the client's current token."""

from .accounting import AccountingApi  # noqa: F401
from .base import ApiError, BaseApi  # noqa: F401

__all__ = ["AccountingApi", "ApiError", "BaseApi"]
