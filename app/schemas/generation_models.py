"""Request, result and outbound event models for content generation."""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class GenerationKind(str, Enum):
    """The two generation use cases served by the aggregator."""
    LISTING = "listing"
    RESPONSE = "response"


# Inbound request bodies. Every field is optional at the schema level so that
# missing fields reach the request validator and produce its exact messages.
class ListingRequestBody(BaseModel):
    """Body of POST /api/generate-listing."""
    model_config = ConfigDict(populate_by_name=True)

    platform: Optional[Any] = Field(None, description="Platform identifier")
    custom_prompt: Optional[str] = Field(
        None,
        alias="customPrompt",
        description="Additional customization request"
    )


class ResponseRequestBody(BaseModel):
    """Body of POST /api/generate-response."""
    trigger: Optional[Any] = Field(None, description="Buyer message trigger phrase")
    category: Optional[Any] = Field(None, description="Auto-response category")


class GenerationRequest(BaseModel):
    """A validated generation request."""
    model_config = ConfigDict(frozen=True)

    kind: GenerationKind = Field(..., description="Generation use case")
    parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Validated request parameters"
    )


class ChatMessage(BaseModel):
    """A single message sent to the generation service."""
    role: Literal["system", "user"]
    content: str


class ComposedPrompt(BaseModel):
    """System and user prompt text for one generation request."""
    system: str
    user: str

    def to_messages(self) -> List[ChatMessage]:
        """Return the prompt as an upstream message list."""
        return [
            ChatMessage(role="system", content=self.system),
            ChatMessage(role="user", content=self.user),
        ]


# Expected result documents
class ListingResult(BaseModel):
    """Structured answer for listing generation."""
    model_config = ConfigDict(extra="allow")

    title: str
    description: str


class AutoResponseResult(BaseModel):
    """Structured answer for auto-response generation."""
    model_config = ConfigDict(extra="allow")

    response: str


# Outbound stream events
class ProcessingEvent(BaseModel):
    """Liveness signal emitted for each accepted delta fragment."""
    status: Literal["processing"] = "processing"
    message: str


class CompletedEvent(BaseModel):
    """Terminal event carrying the finalized result document."""
    status: Literal["completed"] = "completed"
    result: Dict[str, Any]


class ErrorEvent(BaseModel):
    """Terminal event reporting an in-stream failure."""
    status: Literal["error"] = "error"
    message: str


OutboundEvent = Union[ProcessingEvent, CompletedEvent, ErrorEvent]

TERMINAL_STATUSES = frozenset({"completed", "error"})
