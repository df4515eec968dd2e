"""Agent base class."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from langchain_core.messages import HumanMessage

from helixrun.context import InvocationContext
from helixrun.models.events import ExecutionEvent


class Agent(ABC):
    """An execution unit turning a user message into a stream of events."""

    def __init__(self, name: str, description: str = "") -> None:
        self.name = name
        self.description = description

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    @abstractmethod
    def run(self, ctx: InvocationContext, message: HumanMessage) -> AsyncIterator[ExecutionEvent]:
        """Evaluate the agent, yielding events in production order."""
        ...
