"""
Workflow State Machine.

The allowed-transition table is deny-by-default:

    idle       -> planning
    planning   -> executing
    executing  -> reviewing
    reviewing  -> completed
    (any)      -> failed

`transition()` is a pure check. It never mutates anything; callers apply
the new state only when it returns True. `StateMachine` is the small
holder the orchestrator uses to keep one authoritative current state.
"""

from __future__ import annotations

import logging
from enum import Enum

from superagent.errors import TransitionError

logger = logging.getLogger(__name__)


class AgentState(str, Enum):
    """State of a SuperAgent workflow."""

    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    REVIEWING = "reviewing"
    COMPLETED = "completed"
    FAILED = "failed"


_FORWARD: dict[AgentState, AgentState] = {
    AgentState.IDLE: AgentState.PLANNING,
    AgentState.PLANNING: AgentState.EXECUTING,
    AgentState.EXECUTING: AgentState.REVIEWING,
    AgentState.REVIEWING: AgentState.COMPLETED,
}

TERMINAL_STATES = frozenset({AgentState.COMPLETED, AgentState.FAILED})


def transition(current: AgentState, requested: AgentState) -> bool:
    """Return True if moving from `current` to `requested` is allowed."""
    if requested is AgentState.FAILED:
        return True
    return _FORWARD.get(current) is requested


def allowed_targets(state: AgentState) -> frozenset[AgentState]:
    """All states reachable from `state` in a single step."""
    return frozenset(target for target in AgentState if transition(state, target))


def is_terminal(state: AgentState) -> bool:
    return state in TERMINAL_STATES


class StateMachine:
    """
    Holds the current workflow state and applies guarded transitions.

    Example:
        fsm = StateMachine()
        fsm.advance(AgentState.PLANNING)
        fsm.advance(AgentState.REVIEWING)  # raises TransitionError
        assert fsm.state is AgentState.PLANNING
    """

    def __init__(self) -> None:
        self._state = AgentState.IDLE

    @property
    def state(self) -> AgentState:
        return self._state

    def can_advance(self, target: AgentState) -> bool:
        return transition(self._state, target)

    def advance(self, target: AgentState) -> AgentState:
        """
        Move to `target` if the table allows it.

        Raises:
            TransitionError: If rejected. The stored state is not changed.
        """
        if not transition(self._state, target):
            raise TransitionError(self._state, target)
        logger.debug(f"[fsm] {self._state.value} -> {target.value}")
        self._state = target
        return target

    def reset(self) -> None:
        """Return to idle before a new run."""
        self._state = AgentState.IDLE

    def __repr__(self) -> str:
        return f"StateMachine(state={self._state.value})"
