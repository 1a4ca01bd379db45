"""Line framing and event parsing for the upstream event stream."""

import codecs
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


logger = logging.getLogger(__name__)


DATA_PREFIX = "data:"
TERMINATOR = "[DONE]"


class FrameDecoder:
    """Turns arbitrarily fragmented byte chunks into complete text lines.

    The unterminated tail of each chunk is held back as the pending fragment
    and only released once a later chunk terminates it, so the same bytes
    split at any boundary produce the same ordered lines. Bytes are decoded
    incrementally so a multi-byte character split across chunks survives.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        """Unterminated text retained from previous chunks."""
        return self._pending

    def feed(self, chunk: bytes) -> List[str]:
        """Decode a chunk and return every line it completes.

        Args:
            chunk: Raw bytes as delivered by the transport

        Returns:
            Complete lines in arrival order, without line terminators
        """
        text = self._pending + self._decoder.decode(chunk)
        segments = text.split("\n")
        self._pending = segments.pop()
        return [segment[:-1] if segment.endswith("\r") else segment for segment in segments]

    def discard(self) -> str:
        """Drop and return any pending fragment without parsing it."""
        pending = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if pending:
            logger.debug(f"Discarding unterminated fragment ({len(pending)} chars)")
        return pending


class EventType(str, Enum):
    DELTA = "delta"
    SENTINEL = "sentinel"


@dataclass(frozen=True)
class ParsedEvent:
    """A data-line payload tagged as delta or sentinel."""
    type: EventType
    payload: str

    @property
    def is_sentinel(self) -> bool:
        return self.type is EventType.SENTINEL


def parse_line(line: str) -> Optional[ParsedEvent]:
    """Parse one decoded line.

    Lines without the data prefix (blank separators, comments, ``event:`` or
    ``id:`` fields) carry nothing for the aggregator and yield None.

    Args:
        line: One complete line

    Returns:
        Parsed event, or None for framing noise
    """
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]

    if payload == TERMINATOR:
        return ParsedEvent(EventType.SENTINEL, payload)
    return ParsedEvent(EventType.DELTA, payload)
