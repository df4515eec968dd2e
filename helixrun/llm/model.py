"""The Model capability used by every agent variant.

Agents talk to a `Model`: given messages, generation settings and tools it
yields partial responses followed by exactly one final response. Any
langchain-core chat model can be adapted with `ChatModelAdapter`.
"""

from collections.abc import AsyncIterator, Sequence
from typing import Protocol, runtime_checkable

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_core.tools import BaseTool

from helixrun.errors import ModelExecutionError
from helixrun.models.response import (
    GenerationConfig,
    ModelResponse,
    final_response,
    partial_response,
)
from helixrun.utils.identifiers import generate_event_id


@runtime_checkable
class Model(Protocol):
    """Protocol for model handles."""

    name: str

    def generate(
        self,
        messages: Sequence[BaseMessage],
        config: GenerationConfig,
        tools: Sequence[BaseTool] = (),
    ) -> AsyncIterator[ModelResponse]:
        """Yield partial responses (when streaming) and one final response."""
        ...


class ChatModelAdapter:
    """Adapts a langchain-core chat model to the Model protocol."""

    def __init__(self, chat_model: BaseChatModel, name: str) -> None:
        self.chat_model = chat_model
        self.name = name

    def __repr__(self) -> str:
        return f"ChatModelAdapter(name={self.name!r})"

    async def generate(
        self,
        messages: Sequence[BaseMessage],
        config: GenerationConfig,
        tools: Sequence[BaseTool] = (),
    ) -> AsyncIterator[ModelResponse]:
        runnable = self.chat_model.bind_tools(list(tools)) if tools else self.chat_model
        call_kwargs = config.call_kwargs()
        if call_kwargs:
            runnable = runnable.bind(**call_kwargs)
        response_id = generate_event_id()
        try:
            if not config.stream:
                message = await runnable.ainvoke(list(messages))
                yield final_response(message, self.name, response_id)
                return

            aggregate = None
            async for chunk in runnable.astream(list(messages)):
                aggregate = chunk if aggregate is None else aggregate + chunk
                yield partial_response(chunk, self.name, response_id)
        except ModelExecutionError:
            raise
        except Exception as exc:
            raise ModelExecutionError(f"model {self.name} failed: {exc}") from exc

        if aggregate is None:
            raise ModelExecutionError(f"model {self.name} returned an empty stream")
        yield final_response(aggregate, self.name, response_id)
