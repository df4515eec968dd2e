"""Per-invocation context shared by every agent variant."""

from dataclasses import dataclass, field, replace

from langchain_core.messages import BaseMessage

from helixrun.models.events import ExecutionEvent
from helixrun.models.response import ModelResponse, ObjectType
from helixrun.session import Session
from helixrun.utils.identifiers import generate_invocation_id


@dataclass
class InvocationContext:
    """Identity and inputs of one agent invocation.

    `history` is a snapshot of the session's turns taken when the run
    started; agents never write to the session directly.
    """

    agent_name: str
    request_id: str
    session: Session
    history: list[BaseMessage] = field(default_factory=list)
    invocation_id: str = field(default_factory=generate_invocation_id)
    parent_invocation_id: str | None = None
    filter_key: str = ""

    def __post_init__(self) -> None:
        if not self.filter_key:
            self.filter_key = self.agent_name

    def child(self, agent_name: str) -> "InvocationContext":
        """Context for a nested invocation (e.g. a chain step)."""
        return replace(
            self,
            agent_name=agent_name,
            invocation_id=generate_invocation_id(),
            parent_invocation_id=self.invocation_id,
            filter_key=f"{self.filter_key}/{agent_name}",
        )

    def new_event(
        self,
        object: str | ObjectType,
        author: str | None = None,
        **kwargs,
    ) -> ExecutionEvent:
        """Create an event stamped with this invocation's correlation ids."""
        if isinstance(object, ObjectType):
            object = object.value
        return ExecutionEvent(
            object=object,
            author=author or self.agent_name,
            request_id=self.request_id,
            invocation_id=self.invocation_id,
            parent_invocation_id=self.parent_invocation_id,
            filter_key=self.filter_key,
            **kwargs,
        )

    def response_event(self, response: ModelResponse, author: str | None = None) -> ExecutionEvent:
        return self.new_event(response.object, author=author, response=response, done=response.done)
