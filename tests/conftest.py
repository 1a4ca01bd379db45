"""Global test configuration and fixtures."""

import asyncio
import json
from typing import Iterable, List, Optional

import httpx
import pytest

from app.config import Settings
from app.models.aggregator import AggregationProfile
from app.schemas.generation_models import ListingResult


class FakeChunkSource:
    """In-memory upstream source that records how it was consumed."""

    def __init__(
        self,
        chunks: Iterable[bytes],
        error: Optional[Exception] = None,
        stall_after: Optional[int] = None
    ):
        self._chunks = list(chunks)
        self._error = error
        self._stall_after = stall_after
        self.chunks_read = 0
        self.close_count = 0

    async def _iterate(self):
        for index, chunk in enumerate(self._chunks):
            if self._stall_after is not None and index >= self._stall_after:
                await asyncio.sleep(3600)
            self.chunks_read += 1
            yield chunk
        if self._error is not None:
            raise self._error

    def chunks(self):
        return self._iterate()

    async def aclose(self):
        self.close_count += 1


class ChunkedByteStream(httpx.AsyncByteStream):
    """Response body delivered as the given chunks."""

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks = list(chunks)
        self.closed = False

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk

    async def aclose(self):
        self.closed = True


def delta_frame(content: Optional[str]) -> str:
    """One upstream chat-completion delta frame."""
    delta = {} if content is None else {"content": content}
    payload = {"choices": [{"index": 0, "delta": delta, "finish_reason": None}]}
    return f"data: {json.dumps(payload)}\n\n"


def sse_body(fragments: List[str], terminate: bool = True) -> bytes:
    """Upstream body whose delta fragments concatenate to ''.join(fragments)."""
    body = "".join(delta_frame(fragment) for fragment in fragments)
    if terminate:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


def split_every(data: bytes, size: int) -> List[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


def parse_frames(frames: List[str]) -> List[dict]:
    """Decode outbound frames into their JSON documents."""
    events = []
    for frame in frames:
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        events.append(json.loads(frame[len("data: "):-2]))
    return events


def parse_stream_body(text: str) -> List[dict]:
    """Decode a full outbound response body into event documents."""
    return [
        json.loads(block[len("data: "):])
        for block in text.split("\n\n")
        if block.startswith("data: ")
    ]


@pytest.fixture
def listing_profile():
    return AggregationProfile(
        result_model=ListingResult,
        progress_message="Generating optimized listing...",
        finalize_error_message="Failed to parse generated content",
        failure_message="Failed to generate listing",
    )


@pytest.fixture
def test_settings():
    return Settings(
        upstream_base_url="https://upstream.test/v1",
        upstream_api_key="test-key",
        upstream_model="test-model",
        stream_idle_timeout=5.0,
        cors_enabled=False,
        _env_file=None,
    )


@pytest.fixture
def sse():
    """Helpers for building upstream bodies and reading outbound frames."""
    class Helpers:
        FakeChunkSource = FakeChunkSource
        ChunkedByteStream = ChunkedByteStream
        delta_frame = staticmethod(delta_frame)
        body = staticmethod(sse_body)
        split_every = staticmethod(split_every)
        parse_frames = staticmethod(parse_frames)
        parse_stream_body = staticmethod(parse_stream_body)

    return Helpers
