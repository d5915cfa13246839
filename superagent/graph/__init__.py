"""
Workflow graph primitives.

- fsm: AgentState and the allowed-transition table
- dag: AgentGraph, the append-only invocation record
"""

from .dag import AgentGraph, GraphCycleError, GraphError, GraphNode, NodeId
from .fsm import (
    TERMINAL_STATES,
    AgentState,
    StateMachine,
    allowed_targets,
    is_terminal,
    transition,
)

__all__ = [
    # FSM
    "AgentState",
    "StateMachine",
    "TERMINAL_STATES",
    "allowed_targets",
    "is_terminal",
    "transition",
    # DAG
    "AgentGraph",
    "GraphCycleError",
    "GraphError",
    "GraphNode",
    "NodeId",
]
