"""Models layer package for prompt building and stream aggregation."""

from .stream_decoder import (
    FrameDecoder,
    ParsedEvent,
    EventType,
    parse_line,
)
from .aggregator import (
    StreamAggregator,
    StreamState,
    StreamStats,
    AggregationProfile,
    DeltaAccumulator,
    CompletionFinalizer,
    extract_delta_text,
)
from .event_emitter import EventEmitter, SSEFormatter
from .prompt_composer import compose_listing_prompt, compose_response_prompt

__all__ = [
    # Stream decoding
    "FrameDecoder",
    "ParsedEvent",
    "EventType",
    "parse_line",
    # Aggregation
    "StreamAggregator",
    "StreamState",
    "StreamStats",
    "AggregationProfile",
    "DeltaAccumulator",
    "CompletionFinalizer",
    "extract_delta_text",
    # Emission
    "EventEmitter",
    "SSEFormatter",
    # Prompts
    "compose_listing_prompt",
    "compose_response_prompt",
]
