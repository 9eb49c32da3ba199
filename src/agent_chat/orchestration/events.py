"""
Stream event types and server-sent event framing.

Each event is one SSE frame, ``data: <json>\\n\\n``, whose JSON object carries
a ``type`` discriminator. Field names are camelCase on the wire.
"""
from enum import Enum
from typing import Annotated, Any, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class TurnState(str, Enum):
    """Lifecycle of one chat turn."""
    INIT = "init"
    DISPATCHED = "dispatched"
    STREAMING = "streaming"
    TOOL_PENDING = "tool_pending"
    ABORTED = "aborted"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TurnState.ABORTED, TurnState.COMPLETED, TurnState.FAILED)


class BaseEvent(BaseModel):
    """Base class for all stream events."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: str = Field(..., description="Event type")


class ContentDeltaEvent(BaseEvent):
    """Incremental assistant text, forwarded as soon as the model emits it."""
    type: Literal["content-delta"] = "content-delta"
    delta: str = Field(..., description="Content chunk")


class ToolCallEvent(BaseEvent):
    """Emitted before the tool executor runs."""
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str = Field(..., alias="toolCallId")
    tool_name: str = Field(..., alias="toolName")
    input: Any = Field(default=None, description="Arguments as requested by the model")


class ToolResultEvent(BaseEvent):
    """Emitted after the tool executor returns, or when the call is rejected."""
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str = Field(..., alias="toolCallId")
    tool_name: str = Field(..., alias="toolName")
    output: Any = Field(default=None, description="Tool result or structured error payload")
    is_error: bool = Field(default=False, alias="isError")


class DoneEvent(BaseEvent):
    """Terminal event of a completed turn."""
    type: Literal["done"] = "done"
    finish_reason: str = Field(default="stop", alias="finishReason")
    agent_id: str = Field(..., alias="agentId")
    steps: int = Field(..., ge=0, description="Model calls made")
    text: str = Field(default="", description="Full assistant text of the turn")


class ErrorEvent(BaseEvent):
    """Terminal event of a failed turn."""
    type: Literal["error"] = "error"
    error: dict[str, Any] = Field(..., description="Structured error payload")


StreamEvent = Annotated[
    Union[ContentDeltaEvent, ToolCallEvent, ToolResultEvent, DoneEvent, ErrorEvent],
    Field(discriminator="type"),
]

_stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def encode_sse(event: BaseEvent) -> str:
    """Frame an event as one server-sent event."""
    return f"data: {event.model_dump_json(by_alias=True)}\n\n"


def parse_event(data: str | bytes | dict[str, Any]) -> BaseEvent:
    """Decode one frame payload (JSON text or decoded object) into an event."""
    if isinstance(data, dict):
        return _stream_event_adapter.validate_python(data)
    return _stream_event_adapter.validate_json(data)
