"""Tools exposed to agents."""

from helixrun.tools.calculator import CalculatorArgs, calculate, calculator_tool
from helixrun.tools.catalog import ToolCatalog, default_catalog

__all__ = [
    "CalculatorArgs",
    "ToolCatalog",
    "calculate",
    "calculator_tool",
    "default_catalog",
]
