"""Canonical wire event streamed to clients.

Everything a frontend needs to follow a run per node and per model call:
routing/correlation ids, either streaming deltas or final aggregates, the
graph metadata payloads and completion flags.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from helixrun.models.events import (
    ChannelUpdateMetadata,
    ModelExecutionMetadata,
    NodeExecutionMetadata,
    PregelStepMetadata,
    StateUpdateMetadata,
)
from helixrun.models.response import ResponseError, ToolCall, Usage


class UIEvent(BaseModel):
    """The projected, transport-ready form of one execution event."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        protected_namespaces=(),
    )

    # event / routing info
    type: str
    object: str
    event_id: str
    author: str | None = None
    timestamp: str
    request_id: str | None = None
    invocation_id: str | None = None
    parent_invocation_id: str | None = None
    filter_key: str | None = None
    runner_completion: bool | None = None
    step_completion: bool | None = None

    # streaming deltas (partial responses only)
    content_delta: str | None = None
    tool_calls_delta: list[ToolCall] | None = None

    # final aggregates (non-partial responses only)
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    usage: Usage | None = None

    # graph metadata
    model_metadata: ModelExecutionMetadata | None = None
    node_metadata: NodeExecutionMetadata | None = None
    pregel_metadata: PregelStepMetadata | None = None
    channel_metadata: ChannelUpdateMetadata | None = None
    state_metadata: StateUpdateMetadata | None = None

    error: ResponseError | None = None

    def to_wire(self) -> dict:
        """JSON-ready dict with unset fields dropped.

        Event fields and graph metadata use camelCase keys; usage, tool calls
        and errors keep the provider's snake_case keys.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
