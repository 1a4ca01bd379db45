"""Streaming generation API endpoints."""

import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from app.models.aggregator import StreamAggregator
from app.schemas.generation_models import ListingRequestBody, ResponseRequestBody
from app.schemas.error_models import ServiceUnavailableError
from app.services.generation_service import GenerationService


logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api", tags=["generation"])


def get_generation_service(request: Request) -> GenerationService:
    """Dependency returning the GenerationService opened by the lifespan.

    Raises:
        ServiceUnavailableError: If the application has not started it
    """
    service = getattr(request.app.state, "generation_service", None)
    if service is None:
        raise ServiceUnavailableError("Generation service is not initialized")
    return service


def _count_request(request: Request) -> None:
    request.app.state.request_count = getattr(request.app.state, "request_count", 0) + 1


def _stream_response(aggregator: StreamAggregator, request_id: str) -> StreamingResponse:
    """Wrap an aggregator in the outbound streaming response.

    The background task closes the upstream even if the body is never
    iterated because the client left before the first frame.
    """
    return StreamingResponse(
        aggregator.events(),
        media_type="text/plain",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Request-ID": request_id
        },
        background=BackgroundTask(aggregator.aclose)
    )


@router.post("/generate-listing", response_model=None)
async def generate_listing(
    body: ListingRequestBody,
    request: Request,
    service: GenerationService = Depends(get_generation_service)
) -> StreamingResponse:
    """Stream generated listing copy for a platform.

    Pre-stream failures are returned as plain ``{"error": ...}`` responses
    (400, 404 or 500). After that every outcome arrives as an event frame.
    """
    _count_request(request)
    request_id = getattr(request.state, "request_id", "unknown")

    logger.info(
        f"Request {request_id}: Listing generation - platform={body.platform!r}, "
        f"custom_prompt={'yes' if body.custom_prompt else 'no'}"
    )

    aggregator = await service.generate_listing(
        body,
        request_id=request_id,
        is_disconnected=request.is_disconnected
    )
    return _stream_response(aggregator, request_id)


@router.post("/generate-response", response_model=None)
async def generate_response(
    body: ResponseRequestBody,
    request: Request,
    service: GenerationService = Depends(get_generation_service)
) -> StreamingResponse:
    """Stream a generated auto-response for a buyer trigger."""
    _count_request(request)
    request_id = getattr(request.state, "request_id", "unknown")

    logger.info(
        f"Request {request_id}: Response generation - "
        f"trigger={body.trigger!r}, category={body.category!r}"
    )

    aggregator = await service.generate_response(
        body,
        request_id=request_id,
        is_disconnected=request.is_disconnected
    )
    return _stream_response(aggregator, request_id)


@router.get("/generate/health")
async def generation_health_check(
    request: Request,
    service: GenerationService = Depends(get_generation_service)
) -> dict:
    """Report generation stream statistics."""
    request_id = getattr(request.state, "request_id", "unknown")
    stats = service.get_service_stats()

    logger.info(f"Request {request_id}: Generation health check - {stats['outcomes']}")

    return {
        "status": "healthy" if stats["catalog_open"] else "unhealthy",
        **stats
    }
