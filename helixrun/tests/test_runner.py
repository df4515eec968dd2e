"""Tests for the runner, its event stream and the session store."""

import asyncio
import gc

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk, HumanMessage

from conftest import (
    CALC_BOT,
    agent_record,
    calculator_responder,
    echo_responder,
    make_registry,
    make_runner,
)
from helixrun.errors import AgentNotFoundError
from helixrun.models import AgentConfig, ObjectType
from helixrun.models.response import partial_response
from helixrun.runner import EventStream, Runner
from helixrun.session import InMemorySessionService


class EndlessModel:
    """Streams partial responses until cancelled."""

    name = "endless"

    def __init__(self) -> None:
        self.produced = 0

    async def generate(self, messages, config, tools=()):
        while True:
            await asyncio.sleep(0)
            self.produced += 1
            yield partial_response(AIMessageChunk(content="x"), self.name)


class TestRunner:
    """Run lifecycle."""

    @pytest.mark.asyncio
    async def test_calc_run_ends_with_runner_completion(self):
        runner = make_runner([AgentConfig.model_validate(CALC_BOT)], calculator_responder("add", 2, 3))
        stream = await runner.run("calc-bot", "alice", None, "add 2 and 3")
        events = await stream.collect()

        completion = events[-1]
        assert completion.object == ObjectType.runner_completion.value
        assert "5" in completion.response.content
        # usage is summed over both model calls
        assert completion.response.usage.total_tokens == 32 + 36
        assert sum(1 for event in events if event.is_runner_completion) == 1
        assert stream.producer_done

    @pytest.mark.asyncio
    async def test_events_share_request_id(self):
        runner = make_runner([agent_record("echo")], echo_responder())
        events = await (await runner.run("echo", "u", None, "hi")).collect()
        assert len({event.request_id for event in events}) == 1
        assert events[0].request_id

    @pytest.mark.asyncio
    async def test_build_error_raised_before_stream(self):
        runner = make_runner([agent_record("echo")], echo_responder())
        with pytest.raises(AgentNotFoundError):
            await runner.run("missing", "u", None, "hi")
        assert len(runner.session_service) == 0

    @pytest.mark.asyncio
    async def test_tool_failure_becomes_single_error_event(self):
        runner = make_runner([AgentConfig.model_validate(CALC_BOT)], calculator_responder("divide", 6, 3))
        events = await (await runner.run("calc-bot", "u", None, "divide 6 by 3")).collect()

        errors = [event for event in events if event.is_error]
        assert len(errors) == 1
        assert errors[0] is events[-1]
        assert "unsupported operation" in errors[0].error.message
        assert errors[0].error.type == "tool"
        assert not any(event.is_runner_completion for event in events)

    @pytest.mark.asyncio
    async def test_model_failure_becomes_error_event(self):
        def respond(messages):
            raise RuntimeError("upstream unavailable")

        runner = make_runner([agent_record("echo")], respond)
        events = await (await runner.run("echo", "u", None, "hi")).collect()
        assert [event.object for event in events] == ["error"]
        assert events[0].error.message == "upstream unavailable"

    @pytest.mark.asyncio
    async def test_close_cancels_producer(self):
        registry = make_registry([agent_record("endless", stream=True)], echo_responder())
        model = EndlessModel()
        registry.builder.model_resolver.register("fake", lambda config, stream: model)
        runner = Runner(registry)

        stream = await runner.run("endless", "u", None, "go")
        received = 0
        async for event in stream:
            received += 1
            if received == 3:
                break
        await stream.aclose()

        assert stream.producer_done
        produced = model.produced
        for _ in range(5):
            await asyncio.sleep(0)
        assert model.produced == produced
        # bounded queue: production never runs far ahead of consumption
        assert produced <= received + 3

    @pytest.mark.asyncio
    async def test_context_manager_closes_stream(self):
        registry = make_registry([agent_record("endless", stream=True)], echo_responder())
        registry.builder.model_resolver.register("fake", lambda config, stream: EndlessModel())
        runner = Runner(registry)

        async with await runner.run("endless", "u", None, "go") as stream:
            await stream.__anext__()
        assert stream.producer_done

    @pytest.mark.asyncio
    async def test_unconsumed_stream_never_runs_the_agent(self):
        registry = make_registry([agent_record("endless", stream=True)], echo_responder())
        model = EndlessModel()
        registry.builder.model_resolver.register("fake", lambda config, stream: model)
        runner = Runner(registry)

        stream = await runner.run("endless", "u", None, "go")
        for _ in range(20):
            await asyncio.sleep(0)
        assert stream.producer_done
        assert model.produced == 0

        await stream.aclose()
        assert await stream.collect() == []

    @pytest.mark.asyncio
    async def test_iteration_after_close_stops(self):
        runner = make_runner([agent_record("echo")], echo_responder())
        stream = await runner.run("echo", "u", None, "hi")
        await stream.aclose()
        assert await stream.collect() == []


class TestSessions:
    """Session creation and history."""

    @pytest.mark.asyncio
    async def test_session_id_generated_when_missing(self):
        runner = make_runner([agent_record("echo")], echo_responder())
        stream = await runner.run("echo", "u", None, "hi")
        await stream.collect()
        assert stream.session.id
        assert runner.session_service.get(runner.app_name, "u", stream.session.id) is stream.session

    @pytest.mark.asyncio
    async def test_turns_are_recorded(self):
        runner = make_runner([agent_record("echo")], echo_responder("bot"))
        stream = await runner.run("echo", "u", "s1", "hello")
        events = await stream.collect()

        session = stream.session
        assert [m.content for m in session.messages] == ["hello", "bot: hello"]
        assert session.events[-1].id == events[-1].id

    @pytest.mark.asyncio
    async def test_second_turn_sees_history(self):
        seen = []

        def respond(messages):
            seen.append([m.content for m in messages])
            return AIMessage(content=f"reply {len(seen)}")

        runner = make_runner([agent_record("echo", instruction="")], respond)
        await (await runner.run("echo", "u", "s1", "first")).collect()
        await (await runner.run("echo", "u", "s1", "second")).collect()

        assert seen[1] == ["first", "reply 1", "second"]

    @pytest.mark.asyncio
    async def test_distinct_sessions_do_not_share_history(self):
        seen = []

        def respond(messages):
            seen.append(len(messages))
            return AIMessage(content="ok")

        runner = make_runner([agent_record("echo", instruction="")], respond)
        await (await runner.run("echo", "u", "a", "one")).collect()
        await (await runner.run("echo", "u", "b", "two")).collect()
        await (await runner.run("echo", "other", "a", "three")).collect()
        assert seen == [1, 1, 1]

    @pytest.mark.asyncio
    async def test_failed_run_records_nothing(self):
        def respond(messages):
            raise RuntimeError("boom")

        runner = make_runner([agent_record("echo")], respond)
        stream = await runner.run("echo", "u", "s1", "hi")
        await stream.collect()
        assert stream.session.messages == []


class TestInMemorySessionService:
    """Store semantics."""

    @pytest.mark.asyncio
    async def test_get_or_create_is_idempotent(self):
        service = InMemorySessionService()
        first = await service.get_or_create("app", "u", "s")
        second = await service.get_or_create("app", "u", "s")
        assert first is second
        assert len(service) == 1

    @pytest.mark.asyncio
    async def test_concurrent_creation_yields_one_session(self):
        service = InMemorySessionService()
        sessions = await asyncio.gather(*(service.get_or_create("app", "u", "s") for _ in range(10)))
        assert all(session is sessions[0] for session in sessions)

    @pytest.mark.asyncio
    async def test_concurrent_appends_are_all_kept(self):
        service = InMemorySessionService()
        session = await service.get_or_create("app", "u", "s")
        await asyncio.gather(
            *(
                service.append_turn(session, HumanMessage(content=str(i)), AIMessage(content="ok"), [])
                for i in range(20)
            )
        )
        assert len(session.messages) == 40

    @pytest.mark.asyncio
    async def test_locks_do_not_outlive_their_use(self):
        service = InMemorySessionService()
        for i in range(50):
            session = await service.get_or_create("app", "u", f"s{i}")
            await service.append_turn(session, HumanMessage(content="hi"), AIMessage(content="ok"), [])
        gc.collect()
        assert len(service) == 50
        assert len(service._locks) == 0

    @pytest.mark.asyncio
    async def test_delete(self):
        service = InMemorySessionService()
        await service.get_or_create("app", "u", "s")
        assert await service.delete("app", "u", "s") is True
        assert service.get("app", "u", "s") is None
        assert await service.delete("app", "u", "s") is False


class TestEventStream:
    """Producer/consumer channel semantics."""

    @pytest.mark.asyncio
    async def test_preserves_order(self):
        async def source():
            for i in range(10):
                yield i

        stream = EventStream(source(), buffer_size=2)
        assert await stream.collect() == list(range(10))

    @pytest.mark.asyncio
    async def test_unexpected_source_error_is_raised_to_consumer(self):
        async def source():
            yield 1
            raise ValueError("broken source")

        stream = EventStream(source())
        received = []
        with pytest.raises(ValueError):
            async for item in stream:
                received.append(item)
        assert received == [1]
