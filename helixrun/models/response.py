"""Provider-neutral model response shapes.

A model call yields zero or more partial responses (deltas) followed by one
final response. Only the final response carries aggregated content, complete
tool calls and token usage.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage
from pydantic import BaseModel, Field

from helixrun.utils.identifiers import generate_tool_call_id, utc_now


class ObjectType(str, Enum):
    """Object tags carried by execution events and model responses."""

    chat_completion_chunk = "chat.completion.chunk"
    chat_completion = "chat.completion"
    tool_response = "tool.response"
    graph_execution = "graph.execution"
    graph_node_start = "graph.node.start"
    graph_node_complete = "graph.node.complete"
    graph_model_start = "graph.model.start"
    graph_model_complete = "graph.model.complete"
    graph_pregel_step = "graph.pregel.step"
    graph_channel_update = "graph.channel.update"
    graph_state_update = "graph.state.update"
    runner_completion = "runner.completion"
    error = "error"


class GenerationConfig(BaseModel):
    """Per-call generation settings handed to the model."""

    stream: bool = False
    temperature: float | None = None
    max_tokens: int | None = None

    def call_kwargs(self) -> dict[str, Any]:
        """Sampling settings forwarded to the chat model on each call."""
        return self.model_dump(include={"temperature", "max_tokens"}, exclude_none=True)


class ToolCall(BaseModel):
    """A tool call requested by the model.

    On partial responses `arguments` holds the streamed fragment; on final
    responses it is the complete JSON-encoded argument object.
    """

    id: str | None = None
    type: str = "function"
    name: str = ""
    arguments: str = ""
    index: int | None = None

    def parsed_arguments(self) -> dict[str, Any]:
        if not self.arguments:
            return {}
        return json.loads(self.arguments)


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class Message(BaseModel):
    role: str = "assistant"
    content: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_call_id: str | None = None
    tool_name: str | None = None


class Choice(BaseModel):
    index: int = 0
    message: Message = Field(default_factory=Message)  # final
    delta: Message = Field(default_factory=Message)  # partial
    finish_reason: str | None = None


class ResponseError(BaseModel):
    message: str
    type: str = "flow"
    code: str | None = None


class ModelResponse(BaseModel):
    """One model output increment, or the final aggregated output."""

    id: str = ""
    object: str = ObjectType.chat_completion.value
    model: str = ""
    created: datetime = Field(default_factory=utc_now)
    choices: list[Choice] = Field(default_factory=list)
    usage: Usage | None = None
    is_partial: bool = False
    done: bool = False
    error: ResponseError | None = None

    @property
    def content(self) -> str:
        """Final content of the first choice ("" for partials)."""
        if self.is_partial or not self.choices:
            return ""
        return self.choices[0].message.content

    @property
    def tool_calls(self) -> list[ToolCall]:
        if self.is_partial or not self.choices:
            return []
        return self.choices[0].message.tool_calls

    def to_message(self) -> AIMessage:
        """Convert a final response back into a langchain assistant message."""
        return AIMessage(
            content=self.content,
            tool_calls=[
                {"name": call.name, "args": call.parsed_arguments(), "id": call.id}
                for call in self.tool_calls
            ],
        )


def message_text(message: BaseMessage) -> str:
    """Plain text of a message, flattening provider content blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def usage_from_metadata(usage_metadata: dict | None) -> Usage | None:
    """Map langchain usage_metadata onto our usage shape."""
    if not usage_metadata:
        return None
    prompt = usage_metadata.get("input_tokens", 0)
    completion = usage_metadata.get("output_tokens", 0)
    return Usage(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=usage_metadata.get("total_tokens", prompt + completion),
    )


def final_response(message: BaseMessage, model_name: str, response_id: str = "") -> ModelResponse:
    """Build the final (non-partial) response for a completed model call."""
    tool_calls = [
        ToolCall(
            id=call.get("id") or generate_tool_call_id(),
            name=call["name"],
            arguments=json.dumps(call.get("args", {})),
        )
        for call in getattr(message, "tool_calls", None) or []
    ]
    return ModelResponse(
        id=response_id or message.id or "",
        object=ObjectType.chat_completion.value,
        model=model_name,
        choices=[
            Choice(
                message=Message(content=message_text(message), tool_calls=tool_calls),
                finish_reason="tool_calls" if tool_calls else "stop",
            )
        ],
        usage=usage_from_metadata(getattr(message, "usage_metadata", None)),
        is_partial=False,
        done=True,
    )


def partial_response(chunk: BaseMessage, model_name: str, response_id: str = "") -> ModelResponse:
    """Build a partial response carrying only the chunk's deltas."""
    tool_call_deltas = [
        ToolCall(
            id=piece.get("id"),
            name=piece.get("name") or "",
            arguments=piece.get("args") or "",
            index=piece.get("index"),
        )
        for piece in getattr(chunk, "tool_call_chunks", None) or []
    ]
    return ModelResponse(
        id=response_id or chunk.id or "",
        object=ObjectType.chat_completion_chunk.value,
        model=model_name,
        choices=[Choice(delta=Message(content=message_text(chunk), tool_calls=tool_call_deltas))],
        is_partial=True,
        done=False,
    )
