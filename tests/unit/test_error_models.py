"""Unit tests for error response models and custom exceptions."""

import pytest
from fastapi import HTTPException

from app.schemas.error_models import (
    ErrorResponse,
    GenerationAPIException,
    ValidationError,
    ResolutionError,
    UpstreamError,
    InternalServerError,
    ServiceUnavailableError,
    StreamError,
    FragmentParseError,
    FinalizationError,
    TransportError,
    create_error_response,
)


class TestErrorResponse:
    """Test ErrorResponse model."""

    def test_serialization(self):
        """Test the body is a single error field."""
        assert ErrorResponse(error="boom").model_dump() == {"error": "boom"}

    def test_create_error_response(self):
        """Test the helper builds the same body."""
        assert create_error_response("Platform is required") == {
            "error": "Platform is required"
        }


class TestGenerationAPIExceptions:
    """Test pre-stream exception classes."""

    def test_base_exception(self):
        """Test base exception carries status and body."""
        exc = GenerationAPIException(status_code=418, message="teapot")

        assert isinstance(exc, HTTPException)
        assert exc.status_code == 418
        assert exc.message == "teapot"
        assert exc.detail == {"error": "teapot"}

    def test_validation_error(self):
        exc = ValidationError("Platform is required", param="platform")

        assert exc.status_code == 400
        assert exc.param == "platform"
        assert exc.detail == {"error": "Platform is required"}

    def test_resolution_error_default_message(self):
        exc = ResolutionError()

        assert exc.status_code == 404
        assert exc.detail == {"error": "Platform or template not found"}

    def test_upstream_error(self):
        exc = UpstreamError("Failed to generate listing", upstream_status=502)

        assert exc.status_code == 500
        assert exc.upstream_status == 502
        assert exc.detail == {"error": "Failed to generate listing"}

    def test_internal_server_error(self):
        assert InternalServerError().status_code == 500

    @pytest.mark.parametrize("retry_after,headers", [
        (None, None),
        (30, {"Retry-After": "30"}),
    ])
    def test_service_unavailable(self, retry_after, headers):
        """Test Retry-After header is only set when given."""
        exc = ServiceUnavailableError("Catalog is not open", retry_after=retry_after)

        assert exc.status_code == 503
        assert exc.headers == headers


class TestStreamErrors:
    """Test in-stream exception classes."""

    def test_hierarchy(self):
        """Test stream errors are not HTTP exceptions."""
        for exc in (
            FragmentParseError("{", "bad"),
            FinalizationError("prose", "bad"),
            TransportError("reset"),
        ):
            assert isinstance(exc, StreamError)
            assert not isinstance(exc, HTTPException)

    def test_fragment_parse_error_fields(self):
        exc = FragmentParseError('{"a"', "Expecting ':'")

        assert exc.payload == '{"a"'
        assert exc.reason == "Expecting ':'"
        assert "Expecting ':'" in str(exc)

    def test_finalization_error_fields(self):
        exc = FinalizationError("Sure!", "Expecting value")

        assert exc.buffer == "Sure!"
        assert exc.reason == "Expecting value"
