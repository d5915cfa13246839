"""
Run Result.

Produced exactly once per SuperAgent.run_goal(). Phase failures do not
raise out of run_goal; they end up here:

    result = await agent.run_goal("summarise the changelog")

    if result.success:
        print(result.critique)
    else:
        print(f"{result.cause.phase} failed: {result.cause}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from superagent.graph import AgentState

if TYPE_CHECKING:
    from superagent.errors import RunError

    from .sub import StepResult


@dataclass(frozen=True, slots=True)
class RunResult:
    """
    Outcome of one run.

    Attributes:
        goal: The goal the run was started with
        state: Final AgentState (Completed, Failed, or the last phase
            reached when cancelled)
        plan: Planner output
        execution_output: Newline-joined outputs of successful steps
        critique: Critic output, or FALLBACK_CRITIQUE if review failed
        cause: RunError for a failed run
        cancelled: True if the run stopped on its cancellation token
        step_results: Per-step outcomes of the execution phase
        review_error: Provider error replaced by the fallback critique
    """

    goal: str
    state: AgentState
    plan: str = ""
    execution_output: str = ""
    critique: str = ""
    cause: RunError | None = None
    cancelled: bool = False
    step_results: tuple[StepResult, ...] = ()
    review_error: str | None = None
    agent_id: str = ""
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def success(self) -> bool:
        return self.state is AgentState.COMPLETED

    @property
    def duration_ms(self) -> float:
        return (self.completed_at - self.started_at).total_seconds() * 1000

    @property
    def artifact(self) -> str:
        """Text form of the final artifact, as stored in long-term memory."""
        return (
            f"Plan:\n{self.plan}\n\n"
            f"Execution:\n{self.execution_output}\n\n"
            f"Review:\n{self.critique}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal": self.goal,
            "state": self.state.value,
            "plan": self.plan,
            "execution_output": self.execution_output,
            "critique": self.critique,
            "cause": self.cause.to_dict() if self.cause else None,
            "cancelled": self.cancelled,
            "step_results": [s.to_dict() for s in self.step_results],
            "review_error": self.review_error,
            "agent_id": self.agent_id,
            "duration_ms": self.duration_ms,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
        }
