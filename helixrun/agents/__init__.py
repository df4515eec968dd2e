"""Agent variants, the builder that dispatches over them and the registry."""

from helixrun.agents.base import Agent
from helixrun.agents.builder import AgentBuilder
from helixrun.agents.chain_agent import ChainAgent
from helixrun.agents.graph_agent import GraphAgent
from helixrun.agents.llm_agent import LlmAgent
from helixrun.agents.registry import AgentRegistry, load_agent_config

__all__ = [
    "Agent",
    "AgentBuilder",
    "AgentRegistry",
    "ChainAgent",
    "GraphAgent",
    "LlmAgent",
    "load_agent_config",
]
