"""Reassembly of a streamed upstream answer into one structured result."""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import (
    Any,
    AsyncGenerator,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Type,
)

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.models.event_emitter import EventEmitter
from app.models.stream_decoder import FrameDecoder, parse_line
from app.schemas.error_models import (
    FinalizationError,
    FragmentParseError,
    TransportError,
)


logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    """Lifecycle of one generation request."""
    VALIDATING = "validating"
    COMPOSING = "composing"
    STREAMING = "streaming"
    ACCUMULATING = "accumulating"
    EMITTING = "emitting"
    FINALIZING = "finalizing"
    CLOSED = "closed"


class ChunkSource(Protocol):
    """An upstream byte source that must be released exactly once."""

    def chunks(self) -> AsyncIterator[bytes]:
        ...

    async def aclose(self) -> None:
        ...


@dataclass(frozen=True)
class AggregationProfile:
    """What one generation kind expects from the stream and says to the client."""
    result_model: Optional[Type[BaseModel]]
    progress_message: str
    finalize_error_message: str
    failure_message: str


@dataclass
class StreamStats:
    """Per-request counters reported when the stream closes."""
    bytes_received: int = 0
    chunks_received: int = 0
    lines_decoded: int = 0
    delta_fragments: int = 0
    malformed_fragments: int = 0
    processing_events: int = 0
    terminal_status: Optional[str] = None
    cancelled: bool = False
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def extract_delta_text(document: Any) -> str:
    """Return ``choices[0].delta.content`` or an empty string if absent."""
    if not isinstance(document, dict):
        return ""

    choices = document.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""

    choice = choices[0]
    if not isinstance(choice, dict):
        return ""

    delta = choice.get("delta")
    if not isinstance(delta, dict):
        return ""

    content = delta.get("content")
    return content if isinstance(content, str) else ""


class DeltaAccumulator:
    """Append-only answer buffer for one request."""

    def __init__(self):
        self._parts: List[str] = []
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def append(self, payload: str) -> str:
        """Parse a delta payload and append its text fragment.

        Args:
            payload: JSON text of one upstream delta chunk

        Returns:
            The text fragment appended (possibly empty)

        Raises:
            FragmentParseError: If the payload is not valid JSON
        """
        if self._sealed:
            raise RuntimeError("Accumulated answer is sealed")

        try:
            document = json.loads(payload)
        except (ValueError, RecursionError) as e:
            raise FragmentParseError(payload, str(e))

        text = extract_delta_text(document)
        self._parts.append(text)
        return text

    def seal(self) -> str:
        """Freeze the buffer and return its contents."""
        self._sealed = True
        return "".join(self._parts)


class CompletionFinalizer:
    """Interprets the accumulated answer as one structured document."""

    def __init__(self, result_model: Optional[Type[BaseModel]] = None):
        self.result_model = result_model

    def finalize(self, buffer: str) -> Dict[str, Any]:
        """Parse the full buffer.

        Args:
            buffer: Concatenated text of every delta fragment

        Returns:
            The parsed result document

        Raises:
            FinalizationError: If the buffer is not a JSON object of the
                expected shape, or holds text that cannot be sent as UTF-8
        """
        try:
            document = json.loads(buffer)
        except (ValueError, RecursionError) as e:
            raise FinalizationError(buffer, str(e))

        if not isinstance(document, dict):
            raise FinalizationError(buffer, "result is not a JSON object")

        try:
            json.dumps(document, ensure_ascii=False).encode("utf-8")
        except UnicodeEncodeError as e:
            raise FinalizationError(buffer, f"result is not UTF-8 encodable: {e.reason}")

        if self.result_model is not None:
            try:
                self.result_model.model_validate(document)
            except PydanticValidationError as e:
                raise FinalizationError(buffer, f"unexpected result shape: {e}")

        return document


class StreamAggregator:
    """Drives one upstream stream to exactly one terminal outbound event.

    Consumes raw chunks from ``source``, decodes them into lines, accumulates
    delta fragments and, on the terminator, finalizes the answer. Every frame
    sent to the client passes through the emitter. The source is closed once,
    whichever way the loop ends.
    """

    def __init__(
        self,
        source: ChunkSource,
        profile: AggregationProfile,
        idle_timeout: Optional[float] = None,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
        request_id: str = "unknown"
    ):
        self.source = source
        self.profile = profile
        self.idle_timeout = idle_timeout
        self.is_disconnected = is_disconnected
        self.request_id = request_id

        self.decoder = FrameDecoder()
        self.accumulator = DeltaAccumulator()
        self.finalizer = CompletionFinalizer(profile.result_model)
        self.emitter = EventEmitter(request_id)
        self.stats = StreamStats()
        self.state = StreamState.STREAMING

        self._source_closed = False
        self._on_close: List[Callable[[StreamStats], None]] = []

    def add_close_callback(self, callback: Callable[[StreamStats], None]) -> None:
        """Register a callback invoked with the final stats on close."""
        self._on_close.append(callback)

    async def events(self) -> AsyncGenerator[str, None]:
        """Yield outbound frames until the request reaches a terminal state."""
        if self.state is StreamState.CLOSED:
            return

        start_time = time.time()
        chunks = self.source.chunks()
        sentinel_seen = False

        try:
            while not sentinel_seen:
                if await self._client_disconnected():
                    self.stats.cancelled = True
                    logger.info(
                        f"Request {self.request_id}: Client disconnected, "
                        f"aborting upstream read"
                    )
                    break

                chunk = await self._next_chunk(chunks)
                if chunk is None:
                    break

                self.stats.chunks_received += 1
                self.stats.bytes_received += len(chunk)

                for line in self.decoder.feed(chunk):
                    self.stats.lines_decoded += 1
                    event = parse_line(line)
                    if event is None:
                        continue

                    if event.is_sentinel:
                        # lines still buffered from this chunk are not consumed
                        sentinel_seen = True
                        break

                    frame = self._accumulate(event.payload)
                    if frame is not None:
                        yield frame

            if sentinel_seen:
                frame = self._finalize()
                if frame is not None:
                    yield frame
            elif not self.stats.cancelled:
                leftover = self.decoder.discard()
                logger.warning(
                    f"Request {self.request_id}: Upstream stream ended without "
                    f"terminator ({len(leftover)} chars unterminated)"
                )
                frame = self.emitter.error(self.profile.failure_message)
                if frame is not None:
                    yield frame

        except asyncio.CancelledError:
            self.stats.cancelled = True
            logger.info(f"Request {self.request_id}: Stream task cancelled")
            raise
        except Exception as e:
            if isinstance(e, TransportError):
                logger.error(f"Request {self.request_id}: {e}")
            else:
                logger.error(
                    f"Request {self.request_id}: Stream error - {e}", exc_info=True
                )
            frame = self.emitter.error(self.profile.failure_message)
            if frame is not None:
                yield frame
        finally:
            self.stats.duration = time.time() - start_time
            await self.aclose()

    async def _client_disconnected(self) -> bool:
        if self.is_disconnected is None:
            return False
        return await self.is_disconnected()

    async def _next_chunk(self, chunks: AsyncIterator[bytes]) -> Optional[bytes]:
        """Read the next chunk, or None at end of stream.

        Raises:
            TransportError: If the read fails or exceeds the idle timeout
        """
        try:
            if self.idle_timeout:
                return await asyncio.wait_for(chunks.__anext__(), timeout=self.idle_timeout)
            return await chunks.__anext__()
        except StopAsyncIteration:
            return None
        except asyncio.TimeoutError:
            raise TransportError(
                f"No upstream data received for {self.idle_timeout}s"
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise TransportError(f"Upstream read failed: {e}") from e

    def _accumulate(self, payload: str) -> Optional[str]:
        self.state = StreamState.ACCUMULATING
        try:
            self.accumulator.append(payload)
        except FragmentParseError as e:
            self.stats.malformed_fragments += 1
            logger.debug(
                f"Request {self.request_id}: Skipping malformed fragment "
                f"#{self.stats.malformed_fragments} - {e.reason}"
            )
            return None

        self.stats.delta_fragments += 1
        self.state = StreamState.EMITTING
        frame = self.emitter.processing(self.profile.progress_message)
        if frame is not None:
            self.stats.processing_events += 1
        return frame

    def _finalize(self) -> Optional[str]:
        self.state = StreamState.FINALIZING
        buffer = self.accumulator.seal()

        try:
            result = self.finalizer.finalize(buffer)
        except FinalizationError as e:
            logger.error(
                f"Request {self.request_id}: Error parsing final result - "
                f"{e.reason}; raw buffer: {buffer!r}"
            )
            return self.emitter.error(self.profile.finalize_error_message)

        return self.emitter.completed(result)

    async def aclose(self) -> None:
        """Release the upstream source and close the channel, once."""
        if self._source_closed:
            return
        self._source_closed = True

        try:
            await self.source.aclose()
        except Exception as e:
            logger.warning(f"Request {self.request_id}: Error closing upstream - {e}")

        self.emitter.close()
        self.state = StreamState.CLOSED
        self.stats.terminal_status = self.emitter.terminal_status

        logger.info(
            f"Request {self.request_id}: Stream closed - "
            f"status={self.stats.terminal_status}, "
            f"fragments={self.stats.delta_fragments}, "
            f"malformed={self.stats.malformed_fragments}, "
            f"cancelled={self.stats.cancelled}, "
            f"duration={self.stats.duration:.2f}s"
        )

        for callback in self._on_close:
            callback(self.stats)
