"""In-memory conversation sessions.

Sessions are keyed by (app name, user id, session id) and live for the
lifetime of the process. Mutation of one session is serialized with a
per-key lock; distinct keys never contend. Locks are held weakly and only
exist while in use.
"""

import asyncio
import weakref
from dataclasses import dataclass, field
from datetime import datetime

from langchain_core.messages import BaseMessage

from helixrun.models.events import ExecutionEvent
from helixrun.utils.identifiers import generate_session_id, utc_now

SessionKey = tuple[str, str, str]


@dataclass
class Session:
    app_name: str
    user_id: str
    id: str
    messages: list[BaseMessage] = field(default_factory=list)
    events: list[ExecutionEvent] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def key(self) -> SessionKey:
        return (self.app_name, self.user_id, self.id)

    def history(self) -> list[BaseMessage]:
        """Copy of the conversation so far, safe to hand to an agent."""
        return list(self.messages)


class InMemorySessionService:
    """Process-wide session store."""

    def __init__(self) -> None:
        self._sessions: dict[SessionKey, Session] = {}
        self._locks: weakref.WeakValueDictionary[SessionKey, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock(self, key: SessionKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, app_name: str, user_id: str, session_id: str) -> Session | None:
        return self._sessions.get((app_name, user_id, session_id))

    async def get_or_create(self, app_name: str, user_id: str, session_id: str | None = None) -> Session:
        """Return the session for this identity, creating it if needed.

        A missing session id gets a freshly generated one.
        """
        session_id = session_id or generate_session_id()
        key = (app_name, user_id, session_id)
        async with self._lock(key):
            session = self._sessions.get(key)
            if session is None:
                session = Session(app_name=app_name, user_id=user_id, id=session_id)
                self._sessions[key] = session
            return session

    async def append_turn(
        self,
        session: Session,
        user_message: BaseMessage,
        assistant_message: BaseMessage | None,
        events: list[ExecutionEvent],
    ) -> None:
        """Record one finished turn: the user message, the answer and the
        non-partial events that produced it."""
        async with self._lock(session.key):
            session.messages.append(user_message)
            if assistant_message is not None:
                session.messages.append(assistant_message)
            session.events.extend(event for event in events if not event.is_partial)
            session.updated_at = utc_now()

    async def delete(self, app_name: str, user_id: str, session_id: str) -> bool:
        key = (app_name, user_id, session_id)
        async with self._lock(key):
            return self._sessions.pop(key, None) is not None
