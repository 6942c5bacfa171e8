"""Exceptions raised by job source adapters.

The pipeline catches AdapterError, records it against the adapter and moves
on to the next one; subclasses only refine what went wrong.
"""

from typing import Optional


class AdapterError(Exception):
    """Base exception for all adapter errors."""


class AdapterHTTPError(AdapterError):
    """HTTP request failed (4xx/5xx status, or a connection error with status 0)."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    @property
    def is_transient(self) -> bool:
        return self.status_code == 0 or self.status_code >= 500


class AdapterTimeoutError(AdapterError):
    """HTTP request did not complete within the configured timeout."""

    def __init__(self, message: str, url: str, timeout: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.timeout = timeout


class AdapterResponseError(AdapterError):
    """Response could not be parsed or had an unexpected shape."""


class AdapterConfigurationError(AdapterError):
    """Adapter was given an unsupported type or invalid settings."""
