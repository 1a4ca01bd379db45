"""Unit tests for RequestValidator."""

import pytest

from app.services.request_validator import RequestValidator
from app.schemas.generation_models import (
    GenerationKind,
    ListingRequestBody,
    ResponseRequestBody,
)
from app.schemas.error_models import ValidationError


class TestRequestValidatorListing:
    """Test listing request validation."""

    def setup_method(self):
        """Set up test fixtures."""
        self.validator = RequestValidator()

    def test_valid_platform(self):
        """Test a body with a platform is accepted."""
        request = self.validator.validate_listing(ListingRequestBody(platform="facebook"))

        assert request.kind == GenerationKind.LISTING
        assert request.parameters == {"platform": "facebook"}

    def test_custom_prompt_by_alias(self):
        """Test the camelCase field name is accepted."""
        body = ListingRequestBody.model_validate(
            {"platform": "craigslist", "customPrompt": "  mention solar  "}
        )

        request = self.validator.validate_listing(body)

        assert request.parameters["custom_prompt"] == "mention solar"

    @pytest.mark.parametrize("platform", [None, "", 0, 12, ["facebook"], {"id": "x"}])
    def test_missing_or_invalid_platform(self, platform):
        """Test absent, empty and non-string platforms are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate_listing(ListingRequestBody(platform=platform))

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == {"error": "Platform is required"}
        assert exc_info.value.param == "platform"

    def test_blank_custom_prompt_is_dropped(self):
        """Test whitespace-only customization is ignored."""
        body = ListingRequestBody(platform="offerup", custom_prompt="   ")

        request = self.validator.validate_listing(body)

        assert "custom_prompt" not in request.parameters

    def test_long_custom_prompt_is_truncated(self):
        """Test oversized customization is bounded."""
        body = ListingRequestBody(platform="offerup", custom_prompt="x" * 5000)

        request = self.validator.validate_listing(body)

        assert len(request.parameters["custom_prompt"]) == RequestValidator.MAX_CUSTOM_PROMPT_LENGTH


class TestRequestValidatorResponse:
    """Test auto-response request validation."""

    def setup_method(self):
        """Set up test fixtures."""
        self.validator = RequestValidator()

    def test_valid_trigger_and_category(self):
        """Test a body with both fields is accepted."""
        body = ResponseRequestBody(trigger="is this available", category="availability")

        request = self.validator.validate_response(body)

        assert request.kind == GenerationKind.RESPONSE
        assert request.parameters == {
            "trigger": "is this available",
            "category": "availability",
        }

    @pytest.mark.parametrize("trigger,category,param", [
        (None, "pricing", "trigger"),
        ("", "pricing", "trigger"),
        ("lowest price?", None, "category"),
        ("lowest price?", "", "category"),
        (None, None, "trigger"),
        (5, "pricing", "trigger"),
    ])
    def test_missing_fields(self, trigger, category, param):
        """Test either field missing yields the same message."""
        body = ResponseRequestBody(trigger=trigger, category=category)

        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate_response(body)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Trigger and category are required"
        assert exc_info.value.param == param
