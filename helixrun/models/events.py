"""Internal execution events.

An ExecutionEvent is one occurrence during a run: a model delta or final
response, a tool result, a graph node/step boundary, a channel or state
update, the run completion marker or a terminal error. Graph metadata rides
in `state_delta` as JSON bytes under the reserved keys below and is decoded
by the event projector.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from helixrun.models.response import ModelResponse, ObjectType, ResponseError
from helixrun.utils.identifiers import generate_event_id, utc_now

# reserved state_delta keys for graph metadata
METADATA_KEY_MODEL = "_model_metadata"
METADATA_KEY_NODE = "_node_metadata"
METADATA_KEY_PREGEL = "_pregel_metadata"
METADATA_KEY_CHANNEL = "_channel_metadata"
METADATA_KEY_STATE = "_state_metadata"


class GraphMetadata(BaseModel):
    """Base for graph metadata payloads.

    Encoded with field names inside `state_delta`; serialized with camelCase
    keys on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


class ModelExecutionMetadata(GraphMetadata):
    """a model call made by a graph node."""

    model_name: str
    node_id: str
    phase: str  # "start" | "complete"
    input: str = ""
    output: str = ""
    start_time: datetime
    end_time: datetime | None = None
    duration_ms: float | None = None
    step_number: int


class NodeExecutionMetadata(GraphMetadata):
    node_id: str
    node_type: str
    phase: str  # "start" | "complete"
    start_time: datetime
    end_time: datetime | None = None
    duration_ms: float | None = None
    step_number: int
    output_keys: list[str] = Field(default_factory=list)


class PregelStepMetadata(GraphMetadata):
    """one superstep of the graph executor."""

    step_number: int
    phase: str  # "planning" | "complete"
    active_nodes: list[str] = Field(default_factory=list)
    updated_channels: list[str] = Field(default_factory=list)
    total_nodes: int


class ChannelUpdateMetadata(GraphMetadata):
    channel_name: str
    channel_type: str  # "topic" (append) | "map" (merge) | "last_value"
    value_count: int
    available: bool = True
    triggered_nodes: list[str] = Field(default_factory=list)


class StateUpdateMetadata(GraphMetadata):
    updated_keys: list[str] = Field(default_factory=list)
    removed_keys: list[str] = Field(default_factory=list)
    state_size: int


class ExecutionEvent(BaseModel):
    """One internal occurrence produced by the execution engine."""

    id: str = Field(default_factory=generate_event_id)
    object: str = ObjectType.chat_completion.value
    author: str
    timestamp: datetime = Field(default_factory=utc_now)

    request_id: str | None = None
    invocation_id: str | None = None
    parent_invocation_id: str | None = None
    filter_key: str | None = None

    response: ModelResponse | None = None
    state_delta: dict[str, bytes] = Field(default_factory=dict)
    error: ResponseError | None = None
    done: bool = False

    @property
    def is_partial(self) -> bool:
        return self.response is not None and self.response.is_partial

    @property
    def is_runner_completion(self) -> bool:
        return self.object == ObjectType.runner_completion.value

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def final_content(self) -> str | None:
        """Content of a final model answer with no pending tool calls."""
        resp = self.response
        if resp is None or resp.is_partial or resp.object != ObjectType.chat_completion.value:
            return None
        if resp.tool_calls or not resp.choices:
            return None
        return resp.content
