"""
SuperAgent Agents

Three levels of delegation:

- SuperAgent: owns the FSM and AgentGraph, runs one goal at a time
- SubAgent: role-bound actor (planner, executor, critic), one per phase
- MicroAgent: stateless text -> text unit, one per plan step

Usage:
    from superagent.agents import SuperAgent
    from superagent.providers import StaticProvider

    agent = SuperAgent(StaticProvider("local", response="ship it"))
    result = await agent.run_goal("release 1.2")
"""

from .micro import MicroAgent, ToolMicroAgent, UppercaseAgent
from .orchestrator import FALLBACK_CRITIQUE, CancellationToken, SuperAgent
from .result import RunResult
from .sub import (
    AgentRole,
    ExecutionReport,
    PlanStep,
    StepResult,
    SubAgent,
    split_plan,
)

__all__ = [
    # Orchestrator
    "CancellationToken",
    "FALLBACK_CRITIQUE",
    "RunResult",
    "SuperAgent",
    # Sub agents
    "AgentRole",
    "ExecutionReport",
    "PlanStep",
    "StepResult",
    "SubAgent",
    "split_plan",
    # Micro agents
    "MicroAgent",
    "ToolMicroAgent",
    "UppercaseAgent",
]
