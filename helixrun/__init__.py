"""helixrun: declaratively configured agents with streamed execution events."""

__version__ = "0.1.0"

from helixrun.agents import AgentBuilder, AgentRegistry
from helixrun.config import Settings
from helixrun.errors import (
    BuildError,
    ConfigError,
    ExecutionError,
    HelixRunError,
)
from helixrun.projection import build_ui_event
from helixrun.runner import EventStream, Runner
from helixrun.session import InMemorySessionService, Session

__all__ = [
    "__version__",
    "AgentBuilder",
    "AgentRegistry",
    "BuildError",
    "ConfigError",
    "EventStream",
    "ExecutionError",
    "HelixRunError",
    "InMemorySessionService",
    "Runner",
    "Session",
    "Settings",
    "build_ui_event",
]
