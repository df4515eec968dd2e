from collections.abc import AsyncIterator, Sequence

from langchain_core.messages import HumanMessage

from helixrun.agents.base import Agent
from helixrun.context import InvocationContext
from helixrun.errors import ExecutionError
from helixrun.models.events import ExecutionEvent


class ChainAgent(Agent):
    """Runs sub-agents as a strict pipeline.

    Sub-agent i's final answer becomes sub-agent i+1's input message. Any
    failure aborts the whole chain.
    """

    def __init__(self, name: str, sub_agents: Sequence[Agent], description: str = "") -> None:
        if not sub_agents:
            raise ValueError("a chain needs at least one sub-agent")
        super().__init__(name, description)
        self.sub_agents = list(sub_agents)

    async def run(self, ctx: InvocationContext, message: HumanMessage) -> AsyncIterator[ExecutionEvent]:
        current = message
        for sub_agent in self.sub_agents:
            output: str | None = None
            async for event in sub_agent.run(ctx.child(sub_agent.name), current):
                yield event
                content = event.final_content()
                if content is not None:
                    output = content

            if output is None:
                raise ExecutionError(f"sub-agent {sub_agent.name} produced no output")
            current = HumanMessage(content=output)
