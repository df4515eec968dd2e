"""Construct agents from validated records.

The switch over agent types happens here and only here: every other part of
the system talks to the `Agent` interface.
"""

import logging

from langchain_core.tools import BaseTool

from helixrun.agents.base import Agent
from helixrun.agents.chain_agent import ChainAgent
from helixrun.agents.graph_agent import GraphAgent
from helixrun.agents.llm_agent import LlmAgent
from helixrun.errors import UnsupportedAgentTypeError
from helixrun.graph.compiler import GraphCompiler
from helixrun.llm.model import Model
from helixrun.llm.resolver import ModelResolver
from helixrun.models.agent_config import AgentConfig, AgentType
from helixrun.models.response import GenerationConfig
from helixrun.tools.catalog import ToolCatalog, default_catalog

logger = logging.getLogger(__name__)


class AgentBuilder:
    def __init__(
        self,
        model_resolver: ModelResolver | None = None,
        tool_catalog: ToolCatalog | None = None,
        compiler: GraphCompiler | None = None,
        max_tool_iterations: int = 10,
        graph_max_steps: int = 100,
    ) -> None:
        self.model_resolver = model_resolver or ModelResolver()
        self.tool_catalog = tool_catalog or default_catalog()
        self.compiler = compiler or GraphCompiler()
        self.max_tool_iterations = max_tool_iterations
        self.graph_max_steps = graph_max_steps

    def build(self, config: AgentConfig) -> Agent:
        """Build a fresh agent instance for one request.

        Raises a BuildError subclass when the model, a tool or the graph
        cannot be resolved.
        """
        model, generation = self.model_resolver.resolve(config.model, config.stream)
        tools = self.tool_catalog.build_all(config.tools)
        logger.debug("building %s agent %s with %d tool(s)", config.type.value, config.id, len(tools))

        if config.type == AgentType.single:
            return self._single(config, model, generation, tools)
        elif config.type == AgentType.multi_chain:
            return self._chain(config, model, generation, tools)
        elif config.type == AgentType.graph:
            return self._graph(config, model, generation)
        else:
            raise UnsupportedAgentTypeError(f"unsupported agent type: {config.type}")

    def _single(
        self,
        config: AgentConfig,
        model: Model,
        generation: GenerationConfig,
        tools: list[BaseTool],
    ) -> LlmAgent:
        return LlmAgent(
            name=config.id,
            model=model,
            generation_config=generation,
            instruction=config.instruction,
            description=config.description,
            tools=tools,
            max_tool_iterations=self.max_tool_iterations,
        )

    def _chain(
        self,
        config: AgentConfig,
        model: Model,
        generation: GenerationConfig,
        tools: list[BaseTool],
    ) -> ChainAgent:
        sub_agents = [
            LlmAgent(
                name=sub.id,
                model=model,
                generation_config=generation,
                instruction=sub.instruction,
                description=sub.description,
                tools=tools,
                max_tool_iterations=self.max_tool_iterations,
            )
            for sub in config.multi.agents
        ]
        return ChainAgent(config.id, sub_agents, description=config.description)

    def _graph(self, config: AgentConfig, model: Model, generation: GenerationConfig) -> GraphAgent:
        compiled = self.compiler.compile(config.graph)
        return GraphAgent(
            name=config.id,
            graph=compiled,
            model=model,
            generation_config=generation,
            description=config.description,
            max_steps=self.graph_max_steps,
        )
