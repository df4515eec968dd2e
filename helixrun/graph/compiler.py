"""Compile a graph record into an index-based execution plan.

Node names are mapped to integer indices here, at the compile boundary.
The executor works on indices only: nodes live in an arena tuple and edges
are stored as successor index tuples.
"""

from dataclasses import dataclass

from helixrun.errors import CompileError
from helixrun.models.agent_config import GraphConfig, NodeType


@dataclass(frozen=True)
class CompiledNode:
    index: int
    node_id: str
    kind: NodeType
    instruction: str = ""


@dataclass(frozen=True)
class CompiledGraph:
    """An immutable, validated graph plan."""

    nodes: tuple[CompiledNode, ...]
    successors: tuple[tuple[int, ...], ...]
    entry: int
    finish: int

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def edges(self) -> list[tuple[int, int]]:
        return [(src, dst) for src, targets in enumerate(self.successors) for dst in targets]

    def index_of(self, node_id: str) -> int:
        """Name lookup for callers outside the execution path."""
        for node in self.nodes:
            if node.node_id == node_id:
                return node.index
        raise KeyError(node_id)

    def names(self, indices) -> list[str]:
        return [self.nodes[i].node_id for i in indices]


class GraphCompiler:
    """Validates node references and builds a CompiledGraph.

    Cycles are allowed; the executor bounds the number of supersteps.
    """

    def compile(self, config: GraphConfig) -> CompiledGraph:
        index: dict[str, int] = {}
        for i, node in enumerate(config.nodes):
            if node.id in index:
                raise CompileError(f"duplicate graph node id: {node.id}")
            index[node.id] = i

        def resolve(node_id: str, role: str) -> int:
            if node_id not in index:
                raise CompileError(f"{role} node {node_id!r} is not declared")
            return index[node_id]

        entry = resolve(config.entry, "entry")
        finish = resolve(config.finish, "finish")

        adjacency: list[list[int]] = [[] for _ in config.nodes]
        for edge in config.edges:
            src = resolve(edge.source, "edge source")
            dst = resolve(edge.target, "edge target")
            if dst not in adjacency[src]:
                adjacency[src].append(dst)

        nodes = tuple(
            CompiledNode(index=i, node_id=node.id, kind=node.type, instruction=node.instruction)
            for i, node in enumerate(config.nodes)
        )
        return CompiledGraph(
            nodes=nodes,
            successors=tuple(tuple(targets) for targets in adjacency),
            entry=entry,
            finish=finish,
        )
