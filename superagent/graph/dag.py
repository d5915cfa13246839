"""
Agent invocation graph.

An append-only DAG recording which phase/agent invocation produced input
for which. Nodes are never mutated after insertion and an edge that would
close a cycle is rejected before it is stored.

The graph is observational: execution order is fixed by the FSM. It is
the audit trail a presentation layer polls, and the place future
branching task graphs plug in.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from superagent.errors import SuperAgentError

NodeId = int


class GraphError(SuperAgentError):
    """Base error for graph operations."""

    pass


class GraphCycleError(GraphError):
    """Raised when an edge would introduce a cycle."""

    def __init__(self, source: NodeId, target: NodeId):
        self.source = source
        self.target = target
        super().__init__(f"Edge {source} -> {target} would create a cycle")


@dataclass(frozen=True, slots=True)
class GraphNode:
    """One recorded phase invocation."""

    id: NodeId
    phase: str
    summary: str = ""
    agent_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "phase": self.phase,
            "summary": self.summary,
            "agent_id": self.agent_id,
            "timestamp": self.timestamp.isoformat(),
        }


class AgentGraph:
    """
    Append-only, cycle-rejecting record of agent invocations.

    Example:
        graph = AgentGraph()
        plan = graph.add_node("planning", "3 steps")
        run = graph.add_node("executing", "3/3 steps ok")
        graph.add_edge(plan, run)
        graph.add_edge(run, plan)  # raises GraphCycleError

        for node in graph.nodes_in_order():
            print(node.phase)
    """

    def __init__(self) -> None:
        self._nodes: list[GraphNode] = []
        self._edges: list[tuple[NodeId, NodeId]] = []
        self._adjacency: dict[NodeId, list[NodeId]] = {}

    def add_node(self, phase: str, summary: str = "", agent_id: str | None = None) -> NodeId:
        """Record a node and return its id."""
        node_id = len(self._nodes)
        self._nodes.append(
            GraphNode(id=node_id, phase=phase, summary=summary, agent_id=agent_id)
        )
        self._adjacency[node_id] = []
        return node_id

    def add_edge(self, source: NodeId, target: NodeId) -> None:
        """
        Record that `source` produced input for `target`.

        Raises:
            GraphError: If either node is unknown
            GraphCycleError: If `target` already reaches `source`.
                The graph is left unchanged.
        """
        for node_id in (source, target):
            if node_id not in self._adjacency:
                raise GraphError(f"Unknown node: {node_id}")

        if source == target or self._reaches(target, source):
            raise GraphCycleError(source, target)

        self._edges.append((source, target))
        self._adjacency[source].append(target)

    def _reaches(self, start: NodeId, goal: NodeId) -> bool:
        """Depth-first reachability search over existing edges."""
        stack = [start]
        seen: set[NodeId] = set()
        while stack:
            current = stack.pop()
            if current == goal:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._adjacency.get(current, ()))
        return False

    def nodes_in_order(self) -> Iterator[GraphNode]:
        """
        Lazily iterate nodes in insertion order.

        Each call returns a new iterator, so the sequence can be walked
        any number of times. Nodes appended during iteration are yielded.
        """
        index = 0
        while index < len(self._nodes):
            yield self._nodes[index]
            index += 1

    def get_node(self, node_id: NodeId) -> GraphNode:
        try:
            return self._nodes[node_id]
        except IndexError:
            raise GraphError(f"Unknown node: {node_id}") from None

    def successors(self, node_id: NodeId) -> tuple[NodeId, ...]:
        return tuple(self._adjacency.get(node_id, ()))

    @property
    def edges(self) -> tuple[tuple[NodeId, NodeId], ...]:
        return tuple(self._edges)

    @property
    def last_node(self) -> GraphNode | None:
        return self._nodes[-1] if self._nodes else None

    def render(self) -> str:
        """Plain-text rendering of nodes and edges."""
        lines = ["AgentGraph:"]
        for node in self._nodes:
            summary = f": {node.summary}" if node.summary else ""
            lines.append(f"- {node.id} ({node.phase}){summary}")
        lines.append("Edges:")
        for source, target in self._edges:
            lines.append(f"{source} -> {target}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self._nodes],
            "edges": [list(e) for e in self._edges],
        }

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[GraphNode]:
        return self.nodes_in_order()

    def __repr__(self) -> str:
        return f"<AgentGraph nodes={len(self._nodes)} edges={len(self._edges)}>"
