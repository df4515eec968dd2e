"""Graph compilation and superstep execution."""

from helixrun.graph.compiler import CompiledGraph, CompiledNode, GraphCompiler
from helixrun.graph.executor import (
    LAST_RESPONSE,
    MESSAGES,
    NODE_RESPONSES,
    USER_INPUT,
    GraphExecutor,
    NodeOutput,
    merge_update,
)

__all__ = [
    "CompiledGraph",
    "CompiledNode",
    "GraphCompiler",
    "GraphExecutor",
    "NodeOutput",
    "merge_update",
    "LAST_RESPONSE",
    "MESSAGES",
    "NODE_RESPONSES",
    "USER_INPUT",
]
