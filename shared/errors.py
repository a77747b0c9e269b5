"""
Shared error handling for the Game Explorer services.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class ExplorerException(Exception):
    """Base exception for Game Explorer services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class CatalogFetchError(ExplorerException):
    """Upstream catalog could not be fetched or decoded."""

    def __init__(self, message: str = "Catalog fetch failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("CATALOG_FETCH_ERROR", message, details)


class StreamingUnsupportedError(ExplorerException):
    """The connection cannot carry an incrementally flushed stream."""

    def __init__(self, message: str = "SSE not supported", details: Optional[Dict[str, Any]] = None):
        super().__init__("STREAMING_UNSUPPORTED", message, details)


class ConnectionLimitError(ExplorerException):
    """Too many open stream sessions."""

    def __init__(self, limit: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "SSE_CONNECTION_LIMIT_EXCEEDED",
            f"Maximum SSE connections ({limit}) exceeded",
            details
        )
