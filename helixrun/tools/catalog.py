"""Tool catalog: maps a declared tool type to a constructed tool."""

from collections.abc import Callable, Iterable

from langchain_core.tools import BaseTool

from helixrun.errors import UnknownToolError
from helixrun.models.agent_config import ToolConfig
from helixrun.tools.calculator import calculator_tool

ToolFactory = Callable[[ToolConfig], BaseTool]


class ToolCatalog:
    """Registry of tool factories keyed by tool type."""

    def __init__(self) -> None:
        self._factories: dict[str, ToolFactory] = {}

    def register(self, tool_type: str, factory: ToolFactory) -> None:
        self._factories[tool_type] = factory

    def types(self) -> list[str]:
        return sorted(self._factories)

    def build(self, config: ToolConfig) -> BaseTool:
        factory = self._factories.get(config.type)
        if factory is None:
            raise UnknownToolError(f"unsupported tool type: {config.type}")
        return factory(config)

    def build_all(self, configs: Iterable[ToolConfig]) -> list[BaseTool]:
        """Build every declared tool; fails on the first unknown type."""
        return [self.build(config) for config in configs]


def default_catalog() -> ToolCatalog:
    """Catalog with the built-in tools."""
    catalog = ToolCatalog()
    catalog.register("calculator", lambda config: calculator_tool(config.name or "calculator"))
    return catalog
