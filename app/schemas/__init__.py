"""Pydantic schemas package for the generation API."""

from .generation_models import (
    GenerationKind,
    ListingRequestBody,
    ResponseRequestBody,
    GenerationRequest,
    ChatMessage,
    ComposedPrompt,
    ListingResult,
    AutoResponseResult,
    ProcessingEvent,
    CompletedEvent,
    ErrorEvent,
    OutboundEvent,
    TERMINAL_STATUSES,
)
from .catalog_models import (
    Platform,
    ListingTemplate,
    ProductProfile,
)
from .error_models import (
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

__all__ = [
    # Generation models
    "GenerationKind",
    "ListingRequestBody",
    "ResponseRequestBody",
    "GenerationRequest",
    "ChatMessage",
    "ComposedPrompt",
    "ListingResult",
    "AutoResponseResult",
    # Outbound events
    "ProcessingEvent",
    "CompletedEvent",
    "ErrorEvent",
    "OutboundEvent",
    "TERMINAL_STATUSES",
    # Catalog records
    "Platform",
    "ListingTemplate",
    "ProductProfile",
    # Error models
    "ErrorResponse",
    # Exception classes
    "GenerationAPIException",
    "ValidationError",
    "ResolutionError",
    "UpstreamError",
    "InternalServerError",
    "ServiceUnavailableError",
    "StreamError",
    "FragmentParseError",
    "FinalizationError",
    "TransportError",
    # Utility functions
    "create_error_response",
]
