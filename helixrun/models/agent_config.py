"""Declarative agent records.

One JSON object per agent describes which variant to build (single, chain or
graph), the model to call and the tools to expose. Records are validated with
pydantic when the registry loads them.
"""

from enum import Enum
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator


class AgentType(str, Enum):
    """Agent variants that can be built from a record."""

    single = "single"
    multi_chain = "multi_chain"
    graph = "graph"


class NodeType(str, Enum):
    """Node kinds in a graph record."""

    entry = "entry"  # identity pass-through
    llm = "llm"  # one model call per activation


class ModelConfig(BaseModel):
    """How to construct the model handle for an agent."""

    model_config = {"extra": "forbid", "protected_namespaces": ()}

    provider: str  # e.g. "openai"
    model: str  # e.g. "gpt-4o-mini"
    base_url: str | None = None
    api_key_env: str | None = None  # env var name, or a literal "sk-..." key
    temperature: float | None = None
    max_tokens: int | None = None


class ToolConfig(BaseModel):
    """A tool exposed to the agent, looked up by type in the tool catalog."""

    model_config = {"extra": "forbid"}

    name: str
    type: str  # e.g. "calculator"


class SubAgentConfig(BaseModel):
    """A single step in a chain."""

    model_config = {"extra": "forbid"}

    id: str
    instruction: str
    description: str = ""


class MultiConfig(BaseModel):
    """Multi-agent settings; only the chain mode is supported."""

    model_config = {"extra": "forbid"}

    mode: str = "chain"
    agents: list[SubAgentConfig] = Field(min_length=1)

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        if v.lower() != "chain":
            raise ValueError(f"multi-agent config must have mode=chain, got {v!r}")
        return v.lower()


class GraphNodeConfig(BaseModel):
    model_config = {"extra": "forbid"}

    id: str
    type: NodeType
    instruction: str = ""


class GraphEdgeConfig(BaseModel):
    """a directed edge between two nodes."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    source: str = Field(alias="from")
    target: str = Field(alias="to")


class GraphConfig(BaseModel):
    """A small state graph evaluated in supersteps.

    Reference checks (entry, finish and edge endpoints) are left to the graph
    compiler so they surface as build errors.
    """

    model_config = {"extra": "forbid"}

    nodes: list[GraphNodeConfig] = Field(min_length=1)
    edges: list[GraphEdgeConfig] = Field(default_factory=list)
    entry: str
    finish: str

    @model_validator(mode="after")
    def validate_unique_nodes(self) -> Self:
        seen: set[str] = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"duplicate graph node id: {node.id}")
            seen.add(node.id)
        return self


class AgentConfig(BaseModel):
    """The record used to describe one agent."""

    model_config = {"extra": "forbid", "protected_namespaces": ()}

    id: str = ""  # defaults to the file stem when loaded from disk
    type: AgentType
    description: str = ""
    instruction: str = ""
    stream: bool = False
    model: ModelConfig
    tools: list[ToolConfig] = Field(default_factory=list)
    multi: MultiConfig | None = None
    graph: GraphConfig | None = None

    @model_validator(mode="after")
    def validate_variant_payload(self) -> Self:
        """The populated variant field must match the declared type."""
        if self.type == AgentType.single:
            if self.multi is not None or self.graph is not None:
                raise ValueError("type=single must not define 'multi' or 'graph'")
        elif self.type == AgentType.multi_chain:
            if self.multi is None:
                raise ValueError("type=multi_chain requires a 'multi' section")
            if self.graph is not None:
                raise ValueError("type=multi_chain must not define 'graph'")
        elif self.type == AgentType.graph:
            if self.graph is None:
                raise ValueError("graph config is required for type=graph")
            if self.multi is not None:
                raise ValueError("type=graph must not define 'multi'")
        return self
