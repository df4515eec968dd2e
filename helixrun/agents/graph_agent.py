from collections.abc import AsyncIterator
from typing import Any

from langchain_core.messages import HumanMessage

from helixrun.agents.base import Agent
from helixrun.context import InvocationContext
from helixrun.graph.compiler import CompiledGraph
from helixrun.graph.executor import GraphExecutor
from helixrun.llm.model import Model
from helixrun.models.events import ExecutionEvent
from helixrun.models.response import GenerationConfig


class GraphAgent(Agent):
    """Wraps a compiled graph plan as an agent."""

    def __init__(
        self,
        name: str,
        graph: CompiledGraph,
        model: Model,
        generation_config: GenerationConfig,
        description: str = "",
        initial_state: dict[str, Any] | None = None,
        max_steps: int = 100,
    ) -> None:
        super().__init__(name, description)
        self.graph = graph
        self.model = model
        self.generation_config = generation_config
        self.initial_state = dict(initial_state or {})
        self.max_steps = max_steps

    async def run(self, ctx: InvocationContext, message: HumanMessage) -> AsyncIterator[ExecutionEvent]:
        # graph state is local to one run
        executor = GraphExecutor(
            self.graph,
            self.model,
            self.generation_config,
            max_steps=self.max_steps,
            initial_state=self.initial_state,
        )
        async for event in executor.run(ctx, message):
            yield event
