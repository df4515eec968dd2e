"""Single agent: one instruction, one model, a set of tools."""

import json
from collections.abc import AsyncIterator, Sequence

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool

from helixrun.agents.base import Agent
from helixrun.context import InvocationContext
from helixrun.errors import ExecutionError, ModelExecutionError, ToolExecutionError
from helixrun.llm.model import Model
from helixrun.models.events import ExecutionEvent
from helixrun.models.response import (
    Choice,
    GenerationConfig,
    Message,
    ModelResponse,
    ObjectType,
    ToolCall,
)


class LlmAgent(Agent):
    """Calls the model, runs requested tools and repeats until the model
    answers without pending tool calls."""

    def __init__(
        self,
        name: str,
        model: Model,
        generation_config: GenerationConfig,
        instruction: str = "",
        description: str = "",
        tools: Sequence[BaseTool] = (),
        max_tool_iterations: int = 10,
    ) -> None:
        super().__init__(name, description)
        self.model = model
        self.generation_config = generation_config
        self.instruction = instruction
        self.tools = list(tools)
        self.max_tool_iterations = max_tool_iterations

    def _initial_messages(self, ctx: InvocationContext, message: HumanMessage) -> list[BaseMessage]:
        messages: list[BaseMessage] = []
        if self.instruction:
            messages.append(SystemMessage(content=self.instruction))
        messages.extend(ctx.history)
        messages.append(message)
        return messages

    async def run(self, ctx: InvocationContext, message: HumanMessage) -> AsyncIterator[ExecutionEvent]:
        messages = self._initial_messages(ctx, message)
        tools_by_name = {tool.name: tool for tool in self.tools}

        for _ in range(self.max_tool_iterations):
            final: ModelResponse | None = None
            async for response in self.model.generate(messages, self.generation_config, self.tools):
                yield ctx.response_event(response)
                if not response.is_partial:
                    final = response

            if final is None:
                raise ModelExecutionError(f"model {self.model.name} returned no final response")

            messages.append(final.to_message())
            if not final.tool_calls:
                return

            for call in final.tool_calls:
                content = await self._invoke_tool(tools_by_name, call)
                messages.append(ToolMessage(content=content, tool_call_id=call.id or "", name=call.name))
                yield ctx.response_event(_tool_response(call, content))

        raise ExecutionError(
            f"agent {self.name} made {self.max_tool_iterations} model calls without a final answer"
        )

    async def _invoke_tool(self, tools: dict[str, BaseTool], call: ToolCall) -> str:
        tool = tools.get(call.name)
        if tool is None:
            raise ToolExecutionError(f"model requested unknown tool: {call.name}")
        try:
            result = await tool.ainvoke(call.parsed_arguments())
        except Exception as exc:
            raise ToolExecutionError(f"tool {call.name} failed: {exc}") from exc
        return result if isinstance(result, str) else json.dumps(result)


def _tool_response(call: ToolCall, content: str) -> ModelResponse:
    return ModelResponse(
        id=call.id or "",
        object=ObjectType.tool_response.value,
        choices=[
            Choice(
                message=Message(
                    role="tool",
                    content=content,
                    tool_call_id=call.id,
                    tool_name=call.name,
                )
            )
        ],
        is_partial=False,
        done=True,
    )
