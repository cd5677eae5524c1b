"""Exception types raised by static-csp."""

from __future__ import annotations

from typing import Any


class StaticCSPError(Exception):
    """Base class for all static-csp errors."""
    pass


class ConfigurationError(StaticCSPError):
    """Raised when settings are missing or invalid. Fatal for the run."""
    pass


class CloudflareAPIError(StaticCSPError):
    """Raised when the Cloudflare API rejects a request."""

    def __init__(self, message: str, status_code: int | None = None, errors: list[Any] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []
