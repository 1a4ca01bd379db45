"""Downstream event serialization for the generation stream."""

import json
import logging
from typing import Any, Dict, Optional

from app.schemas.generation_models import (
    CompletedEvent,
    ErrorEvent,
    OutboundEvent,
    ProcessingEvent,
    TERMINAL_STATUSES,
)


logger = logging.getLogger(__name__)


class SSEFormatter:
    """Formats outbound events as event-data frames."""

    @staticmethod
    def format_chunk(data: Dict[str, Any]) -> str:
        """Format a data chunk for SSE.

        Args:
            data: Data to format

        Returns:
            SSE formatted string
        """
        json_data = json.dumps(data, ensure_ascii=False)
        return f"data: {json_data}\n\n"

    @staticmethod
    def format_event(event: OutboundEvent) -> str:
        """Format an outbound event for SSE."""
        return SSEFormatter.format_chunk(event.model_dump())


class EventEmitter:
    """Sole writer of outbound frames for one generation request.

    Accepts any number of ``processing`` events followed by exactly one
    terminal ``completed`` or ``error`` event. Once a terminal event has been
    emitted, or the emitter has been closed, every further event is dropped.
    """

    def __init__(self, request_id: str = "unknown"):
        self.request_id = request_id
        self.emitted_count = 0
        self._terminal_status: Optional[str] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def terminal_status(self) -> Optional[str]:
        return self._terminal_status

    def emit(self, event: OutboundEvent) -> Optional[str]:
        """Serialize an event, or return None if the channel is closed.

        Args:
            event: Event to send to the client

        Returns:
            Frame text to write, or None when the event must be dropped
        """
        if self._closed:
            logger.warning(
                f"Request {self.request_id}: Dropping {event.status} event "
                f"after stream closed"
            )
            return None

        if event.status in TERMINAL_STATUSES:
            self._terminal_status = event.status
            self._closed = True

        self.emitted_count += 1
        return SSEFormatter.format_event(event)

    def processing(self, message: str) -> Optional[str]:
        return self.emit(ProcessingEvent(message=message))

    def completed(self, result: Dict[str, Any]) -> Optional[str]:
        return self.emit(CompletedEvent(result=result))

    def error(self, message: str) -> Optional[str]:
        return self.emit(ErrorEvent(message=message))

    def close(self) -> None:
        """Close the channel without a terminal event."""
        self._closed = True
