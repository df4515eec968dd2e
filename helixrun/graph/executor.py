"""Superstep (Pregel-style) execution of a compiled graph.

Each superstep evaluates every active node against the same state snapshot,
merges their outputs into the shared state and activates the successors of
the nodes that ran. The run ends once the finish node has executed and no
node is active.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel

from helixrun.context import InvocationContext
from helixrun.errors import ExecutionError, ModelExecutionError
from helixrun.graph.compiler import CompiledGraph, CompiledNode
from helixrun.llm.model import Model
from helixrun.models.agent_config import NodeType
from helixrun.models.events import (
    METADATA_KEY_CHANNEL,
    METADATA_KEY_MODEL,
    METADATA_KEY_NODE,
    METADATA_KEY_PREGEL,
    METADATA_KEY_STATE,
    ChannelUpdateMetadata,
    ExecutionEvent,
    ModelExecutionMetadata,
    NodeExecutionMetadata,
    PregelStepMetadata,
    StateUpdateMetadata,
)
from helixrun.models.response import (
    Choice,
    GenerationConfig,
    Message,
    ModelResponse,
    ObjectType,
    message_text,
)
from helixrun.utils.identifiers import utc_now

# state channels
USER_INPUT = "user_input"
MESSAGES = "messages"
LAST_RESPONSE = "last_response"
NODE_RESPONSES = "node_responses"

_CHANNEL_TYPES = {MESSAGES: "topic", NODE_RESPONSES: "map"}


@dataclass
class NodeOutput:
    """Incremental state contributed by one node activation."""

    update: dict[str, Any] = field(default_factory=dict)


def _encode(metadata: BaseModel) -> bytes:
    return metadata.model_dump_json().encode("utf-8")


def _duration_ms(start, end) -> float:
    return (end - start).total_seconds() * 1000


def merge_update(state: dict[str, Any], update: dict[str, Any]) -> None:
    """Apply one node's update using each channel's reducer."""
    for key, value in update.items():
        channel_type = _CHANNEL_TYPES.get(key, "last_value")
        if channel_type == "topic":
            state[key] = [*state.get(key, []), *value]
        elif channel_type == "map":
            state[key] = {**state.get(key, {}), **value}
        else:
            state[key] = value


class GraphExecutor:
    def __init__(
        self,
        graph: CompiledGraph,
        model: Model,
        generation_config: GenerationConfig,
        max_steps: int = 100,
        initial_state: dict[str, Any] | None = None,
    ) -> None:
        self.graph = graph
        self.model = model
        self.generation_config = generation_config
        self.max_steps = max_steps
        self.initial_state = initial_state or {}

    async def run(self, ctx: InvocationContext, message: HumanMessage) -> AsyncIterator[ExecutionEvent]:
        graph = self.graph
        state: dict[str, Any] = dict(self.initial_state)
        merge_update(state, {USER_INPUT: message_text(message), MESSAGES: [*ctx.history, message]})

        active: list[int] = [graph.entry]
        finished = False
        step = 0
        while active:
            if step >= self.max_steps:
                raise ExecutionError(f"graph {ctx.agent_name} exceeded {self.max_steps} supersteps")

            yield self._step_event(ctx, step, "planning", active)

            # every node in the superstep reads the same snapshot
            snapshot = {**state, MESSAGES: list(state.get(MESSAGES, []))}
            outputs: list[NodeOutput] = []
            for index in active:
                output = NodeOutput()
                async for event in self._run_node(ctx, graph.nodes[index], snapshot, step, output):
                    yield event
                outputs.append(output)

            next_active: list[int] = []
            for index in active:
                for successor in graph.successors[index]:
                    if successor not in next_active:
                        next_active.append(successor)

            updated: list[str] = []
            for output in outputs:
                merge_update(state, output.update)
                updated.extend(key for key in output.update if key not in updated)

            for key in updated:
                yield self._channel_event(ctx, key, state[key], next_active)
            yield ctx.new_event(
                ObjectType.graph_state_update,
                state_delta={
                    METADATA_KEY_STATE: _encode(
                        StateUpdateMetadata(updated_keys=updated, state_size=len(state))
                    )
                },
            )
            yield self._step_event(ctx, step, "complete", active, updated_channels=updated, done=True)

            if graph.finish in active:
                finished = True
            active = next_active
            step += 1

        if not finished:
            finish_id = graph.nodes[graph.finish].node_id
            raise ExecutionError(f"graph halted before finish node {finish_id!r} executed")

        yield ctx.new_event(
            ObjectType.graph_execution,
            response=ModelResponse(
                object=ObjectType.graph_execution.value,
                model=self.model.name,
                choices=[Choice(message=Message(content=state.get(LAST_RESPONSE, "")))],
                done=True,
            ),
            done=True,
        )

    async def _run_node(
        self,
        ctx: InvocationContext,
        node: CompiledNode,
        snapshot: dict[str, Any],
        step: int,
        output: NodeOutput,
    ) -> AsyncIterator[ExecutionEvent]:
        started = utc_now()
        yield self._node_event(ctx, node, "start", step, started)

        if node.kind == NodeType.llm:
            async for event in self._run_llm_node(ctx, node, snapshot, step, output):
                yield event

        yield self._node_event(
            ctx, node, "complete", step, started, end=utc_now(), output_keys=sorted(output.update)
        )

    async def _run_llm_node(
        self,
        ctx: InvocationContext,
        node: CompiledNode,
        snapshot: dict[str, Any],
        step: int,
        output: NodeOutput,
    ) -> AsyncIterator[ExecutionEvent]:
        messages: list[BaseMessage] = []
        if node.instruction:
            messages.append(SystemMessage(content=node.instruction))
        messages.extend(snapshot.get(MESSAGES, []))

        started = utc_now()
        yield ctx.new_event(
            ObjectType.graph_model_start,
            author=node.node_id,
            state_delta={
                METADATA_KEY_MODEL: _encode(
                    ModelExecutionMetadata(
                        model_name=self.model.name,
                        node_id=node.node_id,
                        phase="start",
                        input=node.instruction,
                        start_time=started,
                        step_number=step,
                    )
                )
            },
        )

        final: ModelResponse | None = None
        async for response in self.model.generate(messages, self.generation_config):
            yield ctx.response_event(response, author=node.node_id)
            if not response.is_partial:
                final = response
        if final is None:
            raise ModelExecutionError(f"model {self.model.name} returned no final response in node {node.node_id}")

        ended = utc_now()
        yield ctx.new_event(
            ObjectType.graph_model_complete,
            author=node.node_id,
            state_delta={
                METADATA_KEY_MODEL: _encode(
                    ModelExecutionMetadata(
                        model_name=self.model.name,
                        node_id=node.node_id,
                        phase="complete",
                        input=node.instruction,
                        output=final.content,
                        start_time=started,
                        end_time=ended,
                        duration_ms=_duration_ms(started, ended),
                        step_number=step,
                    )
                )
            },
            done=True,
        )

        output.update = {
            MESSAGES: [AIMessage(content=final.content, name=node.node_id)],
            LAST_RESPONSE: final.content,
            NODE_RESPONSES: {node.node_id: final.content},
        }

    def _node_event(
        self,
        ctx: InvocationContext,
        node: CompiledNode,
        phase: str,
        step: int,
        start,
        end=None,
        output_keys: list[str] | None = None,
    ) -> ExecutionEvent:
        metadata = NodeExecutionMetadata(
            node_id=node.node_id,
            node_type=node.kind.value,
            phase=phase,
            start_time=start,
            end_time=end,
            duration_ms=_duration_ms(start, end) if end else None,
            step_number=step,
            output_keys=output_keys or [],
        )
        object_type = ObjectType.graph_node_start if phase == "start" else ObjectType.graph_node_complete
        return ctx.new_event(
            object_type,
            author=node.node_id,
            state_delta={METADATA_KEY_NODE: _encode(metadata)},
            done=phase == "complete",
        )

    def _step_event(
        self,
        ctx: InvocationContext,
        step: int,
        phase: str,
        active: list[int],
        updated_channels: list[str] | None = None,
        done: bool = False,
    ) -> ExecutionEvent:
        metadata = PregelStepMetadata(
            step_number=step,
            phase=phase,
            active_nodes=self.graph.names(active),
            updated_channels=updated_channels or [],
            total_nodes=len(self.graph),
        )
        return ctx.new_event(
            ObjectType.graph_pregel_step,
            state_delta={METADATA_KEY_PREGEL: _encode(metadata)},
            done=done,
        )

    def _channel_event(
        self,
        ctx: InvocationContext,
        key: str,
        value: Any,
        triggered: list[int],
    ) -> ExecutionEvent:
        channel_type = _CHANNEL_TYPES.get(key, "last_value")
        count = len(value) if channel_type in ("topic", "map") else 1
        metadata = ChannelUpdateMetadata(
            channel_name=key,
            channel_type=channel_type,
            value_count=count,
            triggered_nodes=self.graph.names(triggered),
        )
        return ctx.new_event(
            ObjectType.graph_channel_update,
            state_delta={METADATA_KEY_CHANNEL: _encode(metadata)},
        )
