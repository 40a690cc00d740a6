"""
Exception hierarchy for the Binance exporter.

Fatal errors (credentials, status gate) propagate to the caller that
constructs or starts the client. Refresh errors are caught at the refresh
boundary and never reach readers of the cache.
"""

from typing import Any, Optional


class ExporterError(Exception):
    """Base exception for all exporter errors."""
    pass


class CredentialsError(ExporterError, ValueError):
    """Raised when the API key or secret is missing."""
    pass


class RequestBuildError(ExporterError, ValueError):
    """Raised when a request cannot be assembled from the given path."""
    pass


class HttpClientError(ExporterError):
    """Exception for transport failures and non-success HTTP responses."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Any] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class DecodeError(ExporterError):
    """Raised when a response body does not match the expected shape."""
    pass


class StatusCheckError(ExporterError):
    """
    Raised when the system status could not be determined.

    Carries the fail-safe status (MAINTENANCE) so callers that only look
    at the status still fail closed.
    """

    def __init__(self, message: str, status):
        super().__init__(message)
        self.status = status


class ExchangeUnavailableError(ExporterError):
    """Raised by the startup gate when the exchange is not online."""

    def __init__(self, status):
        super().__init__(f"Binance API is not online: {status!s}")
        self.status = status
