"""Tests for projecting execution events onto wire events."""

import json

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk
from pydantic import ValidationError

from helixrun.models import (
    ExecutionEvent,
    ModelResponse,
    NodeExecutionMetadata,
    ObjectType,
    PregelStepMetadata,
    ResponseError,
    UIEvent,
)
from helixrun.models.events import METADATA_KEY_NODE, METADATA_KEY_PREGEL, METADATA_KEY_STATE
from helixrun.models.response import final_response, partial_response
from helixrun.projection import build_ui_event
from helixrun.utils import utc_now


def _event(response: ModelResponse | None = None, **kwargs) -> ExecutionEvent:
    kwargs.setdefault("object", response.object if response else ObjectType.chat_completion.value)
    kwargs.setdefault("done", response.done if response else False)
    return ExecutionEvent(
        author="calc-bot",
        request_id="req-1",
        invocation_id="inv-1",
        parent_invocation_id="inv-0",
        filter_key="calc-bot",
        response=response,
        **kwargs,
    )


def _partial(text: str) -> ExecutionEvent:
    return _event(partial_response(AIMessageChunk(content=text), "fake-model"))


def _final(text: str) -> ExecutionEvent:
    message = AIMessage(
        content=text,
        usage_metadata={"input_tokens": 3, "output_tokens": 2, "total_tokens": 5},
    )
    return _event(final_response(message, "fake-model"))


def _node_metadata() -> bytes:
    return NodeExecutionMetadata(
        node_id="plan", node_type="llm", phase="start", start_time=utc_now(), step_number=1
    ).model_dump_json().encode()


class TestProjectionFields:
    """Field population rules."""

    def test_copies_identity_fields(self):
        source = _final("done")
        ui = build_ui_event(source)
        assert ui.event_id == source.id
        assert ui.author == "calc-bot"
        assert ui.request_id == "req-1"
        assert ui.invocation_id == "inv-1"
        assert ui.parent_invocation_id == "inv-0"
        assert ui.filter_key == "calc-bot"
        assert ui.object == ui.type == "chat.completion"
        assert ui.timestamp == source.timestamp.isoformat()

    def test_partial_carries_only_deltas(self):
        ui = build_ui_event(_partial("hel"))
        assert ui.content_delta == "hel"
        assert ui.content is None
        assert ui.tool_calls is None
        assert ui.usage is None
        assert ui.step_completion is None

    def test_partial_tool_call_delta(self):
        chunk = AIMessageChunk(
            content="",
            tool_call_chunks=[{"name": "calculator", "args": '{"op', "id": "call_1", "index": 0}],
        )
        ui = build_ui_event(_event(partial_response(chunk, "fake-model")))
        assert ui.tool_calls_delta[0].name == "calculator"
        assert ui.tool_calls_delta[0].arguments == '{"op'
        assert ui.tool_calls is None

    def test_final_carries_only_aggregates(self):
        ui = build_ui_event(_final("hello"))
        assert ui.content == "hello"
        assert ui.usage.total_tokens == 5
        assert ui.content_delta is None
        assert ui.tool_calls_delta is None
        assert ui.step_completion is True
        assert ui.runner_completion is None

    def test_final_tool_calls(self):
        message = AIMessage(
            content="",
            tool_calls=[{"name": "calculator", "args": {"operation": "add", "a": 2, "b": 3}, "id": "call_1"}],
        )
        ui = build_ui_event(_event(final_response(message, "fake-model")))
        assert ui.tool_calls[0].id == "call_1"
        assert json.loads(ui.tool_calls[0].arguments) == {"operation": "add", "a": 2, "b": 3}

    def test_runner_completion_flag(self):
        response = ModelResponse(object=ObjectType.runner_completion.value, done=True)
        ui = build_ui_event(_event(response))
        assert ui.runner_completion is True
        assert ui.step_completion is None

    def test_error_event_ends_run(self):
        event = _event(
            object=ObjectType.error.value,
            error=ResponseError(message="tool calculator failed", type="tool"),
            done=True,
        )
        ui = build_ui_event(event)
        assert ui.error.message == "tool calculator failed"
        assert ui.runner_completion is True

    def test_wire_form_uses_camel_case_and_drops_unset(self):
        wire = build_ui_event(_partial("x")).to_wire()
        assert wire["contentDelta"] == "x"
        assert wire["eventId"]
        assert wire["invocationId"] == "inv-1"
        assert "content" not in wire
        assert "usage" not in wire
        assert "runnerCompletion" not in wire

    def test_nested_payloads_keep_provider_casing(self):
        message = AIMessage(
            content="",
            tool_calls=[{"name": "calculator", "args": {"a": 1}, "id": "call_1"}],
            usage_metadata={"input_tokens": 3, "output_tokens": 2, "total_tokens": 5},
        )
        wire = build_ui_event(_event(final_response(message, "fake-model"))).to_wire()
        assert wire["usage"] == {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}
        assert wire["toolCalls"][0]["name"] == "calculator"

        error = build_ui_event(
            _event(object=ObjectType.error.value, error=ResponseError(message="boom", type="tool"), done=True)
        ).to_wire()
        assert error["error"] == {"message": "boom", "type": "tool"}

    def test_ui_event_is_immutable(self):
        ui = build_ui_event(_final("x"))
        assert isinstance(ui, UIEvent)
        with pytest.raises(ValidationError):
            ui.content = "changed"


class TestMetadataDecoding:
    """Best-effort decoding of graph metadata."""

    def test_decodes_each_kind_independently(self):
        pregel = PregelStepMetadata(step_number=0, phase="planning", active_nodes=["start"], total_nodes=2)
        event = _event(
            object=ObjectType.graph_node_start.value,
            state_delta={
                METADATA_KEY_NODE: _node_metadata(),
                METADATA_KEY_PREGEL: pregel.model_dump_json().encode(),
            },
        )
        ui = build_ui_event(event)
        assert ui.node_metadata.node_id == "plan"
        assert ui.pregel_metadata.active_nodes == ["start"]
        assert ui.model_metadata is None
        assert ui.channel_metadata is None

    def test_bad_payload_leaves_only_that_field_unset(self):
        event = _event(
            object=ObjectType.graph_node_start.value,
            state_delta={
                METADATA_KEY_NODE: _node_metadata(),
                METADATA_KEY_PREGEL: b"{not json",
                METADATA_KEY_STATE: b'{"updated_keys": "wrong type"}',
            },
        )
        ui = build_ui_event(event)
        assert ui.node_metadata is not None
        assert ui.pregel_metadata is None
        assert ui.state_metadata is None

    def test_wire_metadata_keys(self):
        event = _event(object=ObjectType.graph_node_start.value, state_delta={METADATA_KEY_NODE: _node_metadata()})
        wire = build_ui_event(event).to_wire()
        assert wire["nodeMetadata"]["nodeId"] == "plan"
        assert wire["nodeMetadata"]["stepNumber"] == 1


class TestProjectionSequence:
    """Count and order are preserved."""

    def test_one_wire_event_per_source_event(self):
        events = [_partial("a"), _partial("b"), _final("ab"), _event(object=ObjectType.graph_pregel_step.value)]
        projected = [build_ui_event(event) for event in events]
        assert len(projected) == len(events)
        assert [ui.event_id for ui in projected] == [event.id for event in events]

    def test_delta_and_aggregate_never_both(self):
        events = [_partial("a"), _final("a"), _partial("b"), _final("b")]
        for ui in map(build_ui_event, events):
            has_delta = ui.content_delta is not None or ui.tool_calls_delta is not None
            has_aggregate = ui.content is not None or ui.tool_calls is not None or ui.usage is not None
            assert has_delta != has_aggregate
