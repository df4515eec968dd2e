"""Core data models for helixrun."""

from helixrun.models.agent_config import (
    AgentConfig,
    AgentType,
    GraphConfig,
    GraphEdgeConfig,
    GraphNodeConfig,
    ModelConfig,
    MultiConfig,
    NodeType,
    SubAgentConfig,
    ToolConfig,
)
from helixrun.models.events import (
    ChannelUpdateMetadata,
    ExecutionEvent,
    ModelExecutionMetadata,
    NodeExecutionMetadata,
    PregelStepMetadata,
    StateUpdateMetadata,
)
from helixrun.models.response import (
    Choice,
    GenerationConfig,
    Message,
    ModelResponse,
    ObjectType,
    ResponseError,
    ToolCall,
    Usage,
)
from helixrun.models.ui_event import UIEvent

__all__ = [
    # Agent records
    "AgentConfig",
    "AgentType",
    "GraphConfig",
    "GraphEdgeConfig",
    "GraphNodeConfig",
    "ModelConfig",
    "MultiConfig",
    "NodeType",
    "SubAgentConfig",
    "ToolConfig",
    # Model responses
    "Choice",
    "GenerationConfig",
    "Message",
    "ModelResponse",
    "ObjectType",
    "ResponseError",
    "ToolCall",
    "Usage",
    # Execution events
    "ChannelUpdateMetadata",
    "ExecutionEvent",
    "ModelExecutionMetadata",
    "NodeExecutionMetadata",
    "PregelStepMetadata",
    "StateUpdateMetadata",
    # Wire events
    "UIEvent",
]
