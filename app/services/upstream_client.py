"""Streaming client for the upstream chat-completions service."""

import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from app.config import Settings
from app.schemas.generation_models import ComposedPrompt
from app.schemas.error_models import UpstreamError


logger = logging.getLogger(__name__)


class UpstreamStream:
    """An open upstream response exposed as a byte-chunk source."""

    def __init__(self, response: httpx.Response, request_id: str = "unknown"):
        self.response = response
        self.request_id = request_id
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def chunks(self) -> AsyncIterator[bytes]:
        """Iterate raw body chunks as they arrive."""
        return self.response.aiter_bytes()

    async def aclose(self) -> None:
        """Release the upstream connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self.response.aclose()
        logger.debug(f"Request {self.request_id}: Upstream connection released")


class UpstreamStreamClient:
    """Opens streamed generation requests against the upstream service."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        """Initialize UpstreamStreamClient.

        Args:
            client: Shared HTTP client owned by the application lifespan
            settings: Application settings
        """
        self.client = client
        self.settings = settings

    @property
    def endpoint(self) -> str:
        return f"{self.settings.upstream_base_url.rstrip('/')}/chat/completions"

    def build_payload(self, prompt: ComposedPrompt, max_tokens: int) -> Dict[str, Any]:
        """Build the upstream request body.

        Args:
            prompt: System and user prompt
            max_tokens: Generation limit for this request kind

        Returns:
            JSON-serializable request body
        """
        return {
            "model": self.settings.upstream_model,
            "messages": [m.model_dump() for m in prompt.to_messages()],
            "stream": True,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }

    def build_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if self.settings.upstream_api_key:
            headers["Authorization"] = f"Bearer {self.settings.upstream_api_key}"
        return headers

    async def open_stream(
        self,
        prompt: ComposedPrompt,
        max_tokens: int,
        failure_message: str,
        request_id: str = "unknown"
    ) -> UpstreamStream:
        """Send the request and return the response once headers arrive.

        No body bytes are read here. A non-success status closes the response
        immediately and raises.

        Args:
            prompt: System and user prompt
            max_tokens: Generation limit
            failure_message: Client-facing message for a failed request
            request_id: Request ID for logging

        Returns:
            Open upstream stream

        Raises:
            UpstreamError: If the request cannot be sent or is rejected
        """
        request = self.client.build_request(
            "POST",
            self.endpoint,
            json=self.build_payload(prompt, max_tokens),
            headers=self.build_headers(),
        )

        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.error(
                f"Request {request_id}: Failed to reach generation service - "
                f"{e.__class__.__name__}: {e}"
            )
            raise UpstreamError(failure_message)

        if not response.is_success:
            status_code = response.status_code
            await response.aclose()
            logger.error(
                f"Request {request_id}: Generation service returned status {status_code}"
            )
            raise UpstreamError(failure_message, upstream_status=status_code)

        logger.info(f"Request {request_id}: Upstream stream opened ({response.status_code})")
        return UpstreamStream(response, request_id=request_id)


def create_http_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """Create the HTTP client used for upstream calls.

    Read timeouts are left to the stream aggregator's idle timeout.

    Args:
        settings: Application settings
        transport: Optional transport override

    Returns:
        Configured AsyncClient
    """
    timeout = httpx.Timeout(None, connect=settings.upstream_connect_timeout)
    return httpx.AsyncClient(timeout=timeout, transport=transport)
