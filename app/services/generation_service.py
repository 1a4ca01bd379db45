"""Generation service shared by listing and auto-response generation."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from app.config import Settings
from app.models.aggregator import (
    AggregationProfile,
    StreamAggregator,
    StreamState,
    StreamStats,
)
from app.models.prompt_composer import compose_listing_prompt, compose_response_prompt
from app.schemas.generation_models import (
    AutoResponseResult,
    ComposedPrompt,
    GenerationKind,
    GenerationRequest,
    ListingRequestBody,
    ListingResult,
    ResponseRequestBody,
)
from app.schemas.error_models import (
    GenerationAPIException,
    InternalServerError,
    ResolutionError,
)
from app.services.catalog import Catalog
from app.services.request_validator import RequestValidator
from app.services.upstream_client import UpstreamStreamClient


logger = logging.getLogger(__name__)


PromptBuilder = Callable[[Catalog, GenerationRequest], Awaitable[ComposedPrompt]]


async def build_listing_prompt(catalog: Catalog, request: GenerationRequest) -> ComposedPrompt:
    """Resolve platform data and compose the listing prompt.

    Raises:
        ResolutionError: If the platform or its template is unknown
    """
    platform_id = request.parameters["platform"]
    platform = await catalog.get_platform(platform_id)
    template = await catalog.get_template(platform_id)

    if platform is None or template is None:
        raise ResolutionError("Platform or template not found")

    return compose_listing_prompt(
        catalog.product,
        platform,
        template,
        custom_prompt=request.parameters.get("custom_prompt")
    )


async def build_response_prompt(catalog: Catalog, request: GenerationRequest) -> ComposedPrompt:
    """Compose the auto-response prompt."""
    return compose_response_prompt(
        catalog.product,
        trigger=request.parameters["trigger"],
        category=request.parameters["category"]
    )


@dataclass(frozen=True)
class GenerationStrategy:
    """Everything that differs between the two generation kinds."""
    kind: GenerationKind
    build_prompt: PromptBuilder
    profile: AggregationProfile
    max_tokens: Callable[[Settings], int]


LISTING_STRATEGY = GenerationStrategy(
    kind=GenerationKind.LISTING,
    build_prompt=build_listing_prompt,
    profile=AggregationProfile(
        result_model=ListingResult,
        progress_message="Generating optimized listing...",
        finalize_error_message="Failed to parse generated content",
        failure_message="Failed to generate listing",
    ),
    max_tokens=lambda settings: settings.listing_max_tokens,
)

RESPONSE_STRATEGY = GenerationStrategy(
    kind=GenerationKind.RESPONSE,
    build_prompt=build_response_prompt,
    profile=AggregationProfile(
        result_model=AutoResponseResult,
        progress_message="Generating response...",
        finalize_error_message="Failed to parse generated response",
        failure_message="Failed to generate response",
    ),
    max_tokens=lambda settings: settings.response_max_tokens,
)

STRATEGIES = {
    GenerationKind.LISTING: LISTING_STRATEGY,
    GenerationKind.RESPONSE: RESPONSE_STRATEGY,
}


class GenerationService:
    """Service layer for streamed generation requests."""

    def __init__(
        self,
        catalog: Catalog,
        upstream_client: UpstreamStreamClient,
        settings: Settings,
        request_validator: Optional[RequestValidator] = None
    ):
        """Initialize GenerationService.

        Args:
            catalog: Platform/template/product lookup
            upstream_client: Client for the generation service
            settings: Application settings
            request_validator: RequestValidator instance (optional)
        """
        self.catalog = catalog
        self.upstream_client = upstream_client
        self.settings = settings
        self.request_validator = request_validator or RequestValidator()

        # Service stats
        self._stream_count = 0
        self._outcomes: Dict[str, int] = {"completed": 0, "error": 0, "cancelled": 0}
        self._malformed_fragments = 0

    async def generate_listing(
        self,
        body: ListingRequestBody,
        request_id: str = "unknown",
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None
    ) -> StreamAggregator:
        """Validate, compose and open a listing generation stream."""
        return await self.start_generation(
            GenerationKind.LISTING, body, request_id, is_disconnected
        )

    async def generate_response(
        self,
        body: ResponseRequestBody,
        request_id: str = "unknown",
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None
    ) -> StreamAggregator:
        """Validate, compose and open an auto-response generation stream."""
        return await self.start_generation(
            GenerationKind.RESPONSE, body, request_id, is_disconnected
        )

    async def start_generation(
        self,
        kind: GenerationKind,
        body: Union[ListingRequestBody, ResponseRequestBody],
        request_id: str = "unknown",
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None
    ) -> StreamAggregator:
        """Run every pre-stream step and return a ready aggregator.

        Everything that can fail synchronously happens here, before any
        response headers are sent.

        Args:
            kind: Generation use case
            body: Parsed request body
            request_id: Request ID for logging
            is_disconnected: Callable reporting client disconnection

        Returns:
            Aggregator wrapping the open upstream stream

        Raises:
            ValidationError: If required fields are missing
            ResolutionError: If referenced platform data is unknown
            UpstreamError: If the generation service rejects the request
            InternalServerError: On any unexpected failure
        """
        strategy = STRATEGIES[kind]
        phase = StreamState.VALIDATING

        try:
            request = self.validate(kind, body)

            phase = StreamState.COMPOSING
            prompt = await strategy.build_prompt(self.catalog, request)

            phase = StreamState.STREAMING
            upstream = await self.upstream_client.open_stream(
                prompt,
                max_tokens=strategy.max_tokens(self.settings),
                failure_message=strategy.profile.failure_message,
                request_id=request_id
            )

        except GenerationAPIException as e:
            logger.warning(
                f"Request {request_id}: {kind.value} generation rejected during "
                f"{phase.value} - {e.message}"
            )
            raise
        except Exception as e:
            logger.error(
                f"Request {request_id}: Unexpected error during {phase.value} - {e}",
                exc_info=True
            )
            raise InternalServerError(strategy.profile.failure_message)

        aggregator = StreamAggregator(
            upstream,
            strategy.profile,
            idle_timeout=self.settings.stream_idle_timeout,
            is_disconnected=is_disconnected,
            request_id=request_id
        )
        aggregator.add_close_callback(self._record_outcome)
        self._stream_count += 1

        return aggregator

    def validate(
        self,
        kind: GenerationKind,
        body: Union[ListingRequestBody, ResponseRequestBody]
    ) -> GenerationRequest:
        """Validate a request body for the given kind."""
        if kind is GenerationKind.LISTING:
            return self.request_validator.validate_listing(body)
        return self.request_validator.validate_response(body)

    def _record_outcome(self, stats: StreamStats) -> None:
        if stats.cancelled and stats.terminal_status is None:
            self._outcomes["cancelled"] += 1
        elif stats.terminal_status in self._outcomes:
            self._outcomes[stats.terminal_status] += 1
        self._malformed_fragments += stats.malformed_fragments

    def get_service_stats(self) -> Dict[str, Any]:
        """Get service statistics.

        Returns:
            Dictionary with service statistics
        """
        return {
            "streams_started": self._stream_count,
            "outcomes": dict(self._outcomes),
            "malformed_fragments": self._malformed_fragments,
            "catalog_open": self.catalog.is_open,
        }
