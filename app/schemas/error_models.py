"""Error response models and custom exceptions for the generation API."""

from typing import Optional, Any, Dict
from pydantic import BaseModel, Field
from fastapi import HTTPException


class ErrorResponse(BaseModel):
    """Plain JSON error body returned before any streaming begins."""
    error: str = Field(..., description="Human-readable error message")


# Synchronous (pre-stream) exceptions
class GenerationAPIException(HTTPException):
    """Base exception for errors reported as an ordinary HTTP response."""

    def __init__(
        self,
        status_code: int,
        message: str,
        headers: Optional[Dict[str, Any]] = None
    ):
        self.message = message

        error_response = ErrorResponse(error=message)

        super().__init__(
            status_code=status_code,
            detail=error_response.model_dump(),
            headers=headers
        )


class ValidationError(GenerationAPIException):
    """400 Bad Request - A required field is missing or malformed."""

    def __init__(self, message: str, param: Optional[str] = None):
        self.param = param
        super().__init__(status_code=400, message=message)


class ResolutionError(GenerationAPIException):
    """404 Not Found - Referenced platform or template does not exist."""

    def __init__(self, message: str = "Platform or template not found"):
        super().__init__(status_code=404, message=message)


class UpstreamError(GenerationAPIException):
    """500 Internal Server Error - The generation service refused the request."""

    def __init__(
        self,
        message: str = "Failed to generate content",
        upstream_status: Optional[int] = None
    ):
        self.upstream_status = upstream_status
        super().__init__(status_code=500, message=message)


class InternalServerError(GenerationAPIException):
    """500 Internal Server Error - Unexpected failure."""

    def __init__(self, message: str = "Internal server error occurred"):
        super().__init__(status_code=500, message=message)


class ServiceUnavailableError(GenerationAPIException):
    """503 Service Unavailable - Generation service not initialized."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        retry_after: Optional[int] = None
    ):
        headers = {}
        if retry_after:
            headers["Retry-After"] = str(retry_after)

        super().__init__(
            status_code=503,
            message=message,
            headers=headers if headers else None
        )


# In-stream exceptions. Once response headers are committed these can only
# surface as an ``error`` event, never as an HTTP status.
class StreamError(Exception):
    """Base class for failures detected after streaming has begun."""


class FragmentParseError(StreamError):
    """A single delta payload was not valid JSON. Non-fatal."""

    def __init__(self, payload: str, reason: str):
        self.payload = payload
        self.reason = reason
        super().__init__(f"Malformed delta fragment: {reason}")


class FinalizationError(StreamError):
    """The accumulated answer could not be read as the expected document."""

    def __init__(self, buffer: str, reason: str):
        self.buffer = buffer
        self.reason = reason
        super().__init__(f"Failed to finalize generated content: {reason}")


class TransportError(StreamError):
    """Reading the upstream stream failed or stalled."""


def create_error_response(message: str) -> Dict[str, Any]:
    """Create a standardized error response dictionary."""
    return ErrorResponse(error=message).model_dump()
