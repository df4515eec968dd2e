"""Shared fixtures: a scripted model double and registries built on it."""

import json
from collections.abc import Callable, Sequence

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage, ToolMessage

from helixrun.agents import AgentBuilder, AgentRegistry
from helixrun.llm import ModelResolver
from helixrun.models import AgentConfig, GenerationConfig
from helixrun.models.response import final_response, message_text, partial_response
from helixrun.runner import Runner
from helixrun.session import InMemorySessionService

Responder = Callable[[list[BaseMessage]], AIMessage]

FAKE_PROVIDER = "fake"


class ScriptedModel:
    """Model double answering from a responder callable.

    When streaming, the reply content is emitted word by word as partial
    responses before the final one.
    """

    def __init__(self, responder: Responder, name: str = "fake-model") -> None:
        self.name = name
        self.responder = responder
        self.calls: list[list[BaseMessage]] = []
        self.tools_seen: list[list[str]] = []

    async def generate(self, messages: Sequence[BaseMessage], config: GenerationConfig, tools=()):
        self.calls.append(list(messages))
        self.tools_seen.append([tool.name for tool in tools])
        reply = self.responder(list(messages))
        if config.stream and reply.content:
            for word in reply.content.split(" "):
                yield partial_response(AIMessageChunk(content=word + " "), self.name)
        yield final_response(reply, self.name)


def usage(prompt: int = 10, completion: int = 5) -> dict:
    return {"input_tokens": prompt, "output_tokens": completion, "total_tokens": prompt + completion}


def calculator_responder(operation: str = "add", a: float = 2, b: float = 3) -> Responder:
    """First turn requests the calculator, second turn reports its result."""

    def respond(messages: list[BaseMessage]) -> AIMessage:
        last = messages[-1]
        if isinstance(last, ToolMessage):
            result = json.loads(last.content)["result"]
            return AIMessage(content=f"The result is {result:g}", usage_metadata=usage(30, 6))
        return AIMessage(
            content="",
            tool_calls=[
                {"name": "calculator", "args": {"operation": operation, "a": a, "b": b}, "id": "call_calc_1"}
            ],
            usage_metadata=usage(20, 12),
        )

    return respond


def echo_responder(prefix: str = "echo") -> Responder:
    """Replies with the prefix followed by the text of the last message."""

    def respond(messages: list[BaseMessage]) -> AIMessage:
        return AIMessage(content=f"{prefix}: {message_text(messages[-1])}", usage_metadata=usage())

    return respond


def instruction_responder() -> Responder:
    """Replies with the system instruction it was given plus the last input."""

    def respond(messages: list[BaseMessage]) -> AIMessage:
        system = message_text(messages[0]) if messages and messages[0].type == "system" else ""
        return AIMessage(content=f"[{system}] {message_text(messages[-1])}", usage_metadata=usage())

    return respond


def make_resolver(responder: Responder) -> ModelResolver:
    """Resolver whose "fake" provider returns a new ScriptedModel per build."""
    resolver = ModelResolver()
    resolver.register(FAKE_PROVIDER, lambda config, stream: ScriptedModel(responder, name=config.model))
    return resolver


def agent_record(agent_id: str, **overrides) -> AgentConfig:
    data = {
        "id": agent_id,
        "type": "single",
        "instruction": "You are a test agent.",
        "model": {"provider": FAKE_PROVIDER, "model": "fake-model"},
    }
    data.update(overrides)
    return AgentConfig.model_validate(data)


CALC_BOT = {
    "id": "calc-bot",
    "type": "single",
    "instruction": "Use the calculator tool.",
    "stream": True,
    "model": {"provider": FAKE_PROVIDER, "model": "fake-model"},
    "tools": [{"name": "calculator", "type": "calculator"}],
}


@pytest.fixture
def calc_config() -> AgentConfig:
    return AgentConfig.model_validate(CALC_BOT)


def make_registry(configs: list[AgentConfig], responder: Responder, **builder_kwargs) -> AgentRegistry:
    builder = AgentBuilder(model_resolver=make_resolver(responder), **builder_kwargs)
    return AgentRegistry(configs, builder=builder)


def make_runner(configs: list[AgentConfig], responder: Responder, **builder_kwargs) -> Runner:
    return Runner(make_registry(configs, responder, **builder_kwargs), session_service=InMemorySessionService())


@pytest.fixture
def config_dir(tmp_path):
    """Directory holding a valid calc-bot record."""
    (tmp_path / "calc-bot.json").write_text(json.dumps(CALC_BOT))
    return tmp_path
