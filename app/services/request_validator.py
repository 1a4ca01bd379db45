"""Request validation for generation requests."""

import logging
from typing import Any, Dict, Optional

from app.schemas.generation_models import (
    GenerationKind,
    GenerationRequest,
    ListingRequestBody,
    ResponseRequestBody,
)
from app.schemas.error_models import ValidationError


logger = logging.getLogger(__name__)


def _is_present(value: Any) -> bool:
    """Return True when value is a non-empty string."""
    return isinstance(value, str) and len(value) > 0


class RequestValidator:
    """Checks required fields and produces typed generation requests."""

    PLATFORM_REQUIRED = "Platform is required"
    TRIGGER_AND_CATEGORY_REQUIRED = "Trigger and category are required"

    MAX_CUSTOM_PROMPT_LENGTH = 2000

    def validate_listing(self, body: ListingRequestBody) -> GenerationRequest:
        """Validate a listing generation body.

        Args:
            body: Parsed request body

        Returns:
            Validated listing request

        Raises:
            ValidationError: If platform is missing
        """
        if not _is_present(body.platform):
            raise ValidationError(self.PLATFORM_REQUIRED, param="platform")

        custom_prompt = self._normalize_custom_prompt(body.custom_prompt)

        parameters: Dict[str, Any] = {"platform": body.platform}
        if custom_prompt:
            parameters["custom_prompt"] = custom_prompt

        logger.debug(f"Listing request validated for platform '{body.platform}'")
        return GenerationRequest(kind=GenerationKind.LISTING, parameters=parameters)

    def validate_response(self, body: ResponseRequestBody) -> GenerationRequest:
        """Validate an auto-response generation body.

        Args:
            body: Parsed request body

        Returns:
            Validated response request

        Raises:
            ValidationError: If trigger or category is missing
        """
        if not _is_present(body.trigger) or not _is_present(body.category):
            missing = "trigger" if not _is_present(body.trigger) else "category"
            raise ValidationError(self.TRIGGER_AND_CATEGORY_REQUIRED, param=missing)

        logger.debug(f"Response request validated for category '{body.category}'")
        return GenerationRequest(
            kind=GenerationKind.RESPONSE,
            parameters={"trigger": body.trigger, "category": body.category}
        )

    def _normalize_custom_prompt(self, custom_prompt: Optional[str]) -> Optional[str]:
        """Strip and bound the optional customization text."""
        if not custom_prompt:
            return None

        custom_prompt = custom_prompt.strip()
        if len(custom_prompt) > self.MAX_CUSTOM_PROMPT_LENGTH:
            logger.warning(
                f"Custom prompt truncated from {len(custom_prompt)} to "
                f"{self.MAX_CUSTOM_PROMPT_LENGTH} characters"
            )
            custom_prompt = custom_prompt[:self.MAX_CUSTOM_PROMPT_LENGTH]

        return custom_prompt or None
