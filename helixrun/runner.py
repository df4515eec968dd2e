"""Run agents against sessions and stream their events.

`Runner.run` builds the agent up front, so build failures surface before any
event exists. Execution happens in a producer task, started when the caller
first iterates the returned `EventStream`, that pushes events into a bounded
queue; the caller drains the stream or closes it, which cancels the producer.
A stream that is never iterated never starts executing.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator, AsyncIterator

from langchain_core.messages import AIMessage, HumanMessage

from helixrun.agents.registry import AgentRegistry
from helixrun.context import InvocationContext
from helixrun.errors import classify_error
from helixrun.models.events import ExecutionEvent
from helixrun.models.response import (
    Choice,
    Message,
    ModelResponse,
    ObjectType,
    ResponseError,
    Usage,
)
from helixrun.session import InMemorySessionService, Session
from helixrun.utils.identifiers import generate_request_id

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "anonymous"

_DONE = object()


class EventStream:
    """Single-pass async iterator over the events of one run.

    The producer blocks once `buffer_size` events are waiting, so a slow
    consumer slows production instead of growing a buffer. Production starts
    on the first `__anext__`.
    """

    def __init__(
        self,
        source: AsyncGenerator[ExecutionEvent, None],
        buffer_size: int = 1,
        session: Session | None = None,
    ) -> None:
        self.session = session
        self._source = source
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, buffer_size))
        self._error: BaseException | None = None
        self._finished = False
        self._task: asyncio.Task | None = None

    async def _produce(self) -> None:
        try:
            async for event in self._source:
                await self._queue.put(event)
        except Exception as exc:
            self._error = exc
        finally:
            await self._source.aclose()
        await self._queue.put(_DONE)

    @property
    def producer_done(self) -> bool:
        """True when no producer is running (never started or exited)."""
        return self._task is None or self._task.done()

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> ExecutionEvent:
        if self._finished:
            raise StopAsyncIteration
        if self._task is None:
            self._task = asyncio.create_task(self._produce())
        item = await self._queue.get()
        if item is _DONE:
            self._finished = True
            await self._task
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item

    async def aclose(self) -> None:
        """Stop production and wait for the producer to exit."""
        self._finished = True
        if self._task is None:
            await self._source.aclose()
            return
        if not self._task.done():
            self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def collect(self) -> list[ExecutionEvent]:
        """Drain the stream into a list."""
        return [event async for event in self]

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class Runner:
    """Execution engine: one agent run per request, bound to a session."""

    def __init__(
        self,
        registry: AgentRegistry,
        session_service: InMemorySessionService | None = None,
        app_name: str = "helixrun-starter",
        buffer_size: int = 1,
    ) -> None:
        self.registry = registry
        self.session_service = session_service or InMemorySessionService()
        self.app_name = app_name
        self.buffer_size = buffer_size

    async def run(
        self,
        agent_id: str,
        user_id: str | None,
        session_id: str | None,
        message: str,
    ) -> EventStream:
        """Start a run and return its event stream.

        Raises a BuildError subclass, before any event is produced, when
        the agent cannot be built.
        """
        agent = self.registry.build_agent(agent_id)
        session = await self.session_service.get_or_create(
            self.app_name, user_id or DEFAULT_USER_ID, session_id
        )
        ctx = InvocationContext(
            agent_name=agent.name,
            request_id=generate_request_id(),
            session=session,
            history=session.history(),
        )
        logger.info("run %s started: agent=%s session=%s", ctx.request_id, agent_id, session.id)
        source = self._execute(agent, ctx, HumanMessage(content=message))
        return EventStream(source, buffer_size=self.buffer_size, session=session)

    async def _execute(self, agent, ctx: InvocationContext, message: HumanMessage) -> AsyncIterator[ExecutionEvent]:
        events: list[ExecutionEvent] = []
        final_content: str | None = None
        usage: Usage | None = None
        model_name = ""

        try:
            async with contextlib.aclosing(agent.run(ctx, message)) as agent_events:
                async for event in agent_events:
                    events.append(event)
                    response = event.response
                    if response is not None and not response.is_partial:
                        if response.object == ObjectType.chat_completion.value:
                            model_name = response.model or model_name
                            if response.usage is not None:
                                usage = response.usage if usage is None else usage + response.usage
                            content = event.final_content()
                            if content is not None:
                                final_content = content
                        elif response.object == ObjectType.graph_execution.value:
                            final_content = response.content
                    yield event
        except Exception as exc:
            logger.exception("run %s failed", ctx.request_id)
            yield ctx.new_event(
                ObjectType.error,
                error=ResponseError(message=str(exc), type=classify_error(exc)),
                done=True,
            )
            return

        completion = ctx.new_event(
            ObjectType.runner_completion,
            response=ModelResponse(
                object=ObjectType.runner_completion.value,
                model=model_name,
                choices=[Choice(message=Message(content=final_content or ""), finish_reason="stop")],
                usage=usage,
                done=True,
            ),
            done=True,
        )
        events.append(completion)
        assistant = AIMessage(content=final_content) if final_content is not None else None
        await self.session_service.append_turn(ctx.session, message, assistant, events)
        logger.info("run %s finished with %d event(s)", ctx.request_id, len(events))
        yield completion
