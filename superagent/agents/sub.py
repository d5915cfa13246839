"""
Sub agents.

A SubAgent is a role-bound actor (planner, executor, critic) created for
one phase and discarded after it returns. It holds handles to the shared
MemoryStore, ToolRegistry and Provider; it owns nothing long-lived.

Provider-backed calls (plan, review) follow one discipline:

1. append the outbound prompt to short-term memory
2. call provider.chat() with the recent short-term context, bounded by
   timeout_seconds
3. on success append the reply; on failure append nothing and raise
   ProviderError to the orchestrator

execute() does not call the provider. It splits the plan into steps and
runs them one after another through transient micro agents:

    "1. draft the outline"        -> default tool ("echo")
    "- uppercase: shout this"     -> "uppercase" tool
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from superagent.errors import ProviderError, ProviderTimeoutError, ToolError
from superagent.memory import Message
from superagent.providers.base import DEFAULT_TIMEOUT_SECONDS
from superagent.tools import DEFAULT_TOOL

from .micro import ToolMicroAgent

if TYPE_CHECKING:
    from superagent.memory import MemoryStore
    from superagent.providers import Provider
    from superagent.tools import ToolRegistry

logger = logging.getLogger(__name__)

PLAN_PROMPT = "Plan for goal: {goal}"
REVIEW_PROMPT = "Review the following execution output and point out problems:\n{output}"

DEFAULT_CONTEXT_MESSAGES = 20

_LIST_MARKER = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+")
_TOOL_PREFIX = re.compile(r"^([A-Za-z_][\w-]*)\s*:\s*(.*)$")


class AgentRole(str, Enum):
    """Role a SubAgent plays in the workflow."""

    PLANNER = "planner"
    EXECUTOR = "executor"
    CRITIC = "critic"


# =============================================================================
# Execution Report
# =============================================================================


@dataclass(frozen=True, slots=True)
class PlanStep:
    """One executable line of a plan."""

    index: int
    text: str
    tool: str


@dataclass(frozen=True, slots=True)
class StepResult:
    """Outcome of one plan step."""

    index: int
    step: str
    tool: str
    output: str = ""
    error: str | None = None
    cause: ToolError | None = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "step": self.step,
            "tool": self.tool,
            "output": self.output,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class ExecutionReport:
    """
    Result of the execution phase.

    output is the newline-joined outputs of the successful steps, in plan
    order. Failed steps are kept in `steps` with their error.
    """

    output: str
    steps: tuple[StepResult, ...] = ()

    @property
    def succeeded(self) -> int:
        return sum(1 for s in self.steps if s.ok)

    @property
    def failed(self) -> int:
        return len(self.steps) - self.succeeded

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(s.error for s in self.steps if s.error is not None)

    @property
    def last_failure(self) -> ToolError | None:
        """The exception behind the last failed step, if any."""
        causes = [s.cause for s in self.steps if s.cause is not None]
        return causes[-1] if causes else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "output": self.output,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "steps": [s.to_dict() for s in self.steps],
        }


def split_plan(plan: str, tools: ToolRegistry, default_tool: str = DEFAULT_TOOL) -> list[PlanStep]:
    """
    Split a plan into steps.

    One step per non-empty line with list markers stripped. A step of the
    form "name: text" where `name` is a registered tool is routed to that
    tool; any other step goes to `default_tool` unchanged.
    """
    steps = []
    for line in plan.splitlines():
        text = _LIST_MARKER.sub("", line, count=1).strip()
        if not text:
            continue

        tool = default_tool
        match = _TOOL_PREFIX.match(text)
        if match and match.group(1) in tools:
            tool, text = match.group(1), match.group(2).strip()

        steps.append(PlanStep(index=len(steps), text=text, tool=tool))
    return steps


# =============================================================================
# Sub Agent
# =============================================================================


class SubAgent:
    """
    Role-bound actor for one workflow phase.

    Example:
        planner = SubAgent(AgentRole.PLANNER, memory=memory, tools=tools, provider=provider)
        plan = await planner.plan("write release notes")
    """

    def __init__(
        self,
        role: AgentRole,
        *,
        memory: MemoryStore,
        tools: ToolRegistry,
        provider: Provider,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        context_messages: int = DEFAULT_CONTEXT_MESSAGES,
        default_tool: str = DEFAULT_TOOL,
    ):
        self.id = f"{role.value}-{uuid4().hex[:8]}"
        self.role = role
        self.memory = memory
        self.tools = tools
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.context_messages = context_messages
        self.default_tool = default_tool

    def _metadata(self) -> dict[str, Any]:
        return {"agent_id": self.id, "role": self.role.value}

    async def _chat(self, prompt: str) -> str:
        """Append prompt, chat with recent context, append reply on success."""
        await self.memory.append(Message.user(prompt, **self._metadata()))
        history = await self.memory.snapshot("short_term")
        context = history[-self.context_messages:] if self.context_messages else history

        try:
            reply = await asyncio.wait_for(
                self.provider.chat(context), timeout=self.timeout_seconds
            )
        except TimeoutError as e:
            logger.error(f"[sub_agent] {self.id} timed out after {self.timeout_seconds}s")
            raise ProviderTimeoutError(
                f"No reply within {self.timeout_seconds}s", self.provider.name
            ) from e
        except ProviderError as e:
            logger.error(f"[sub_agent] {self.id} provider error: {e}")
            raise
        except Exception as e:
            # backends outside the taxonomy still surface as provider errors
            logger.error(f"[sub_agent] {self.id} provider raised {type(e).__name__}: {e}", exc_info=True)
            raise ProviderError(str(e), self.provider.name) from e

        await self.memory.append(Message.assistant(reply, **self._metadata()))
        return reply

    async def plan(self, goal: str) -> str:
        """Ask the provider for a plan."""
        return await self._chat(PLAN_PROMPT.format(goal=goal))

    async def review(self, output: str) -> str:
        """Ask the provider to critique the execution output."""
        return await self._chat(REVIEW_PROMPT.format(output=output))

    async def execute(self, plan: str) -> ExecutionReport:
        """
        Run every plan step through a transient micro agent.

        Per-step ToolErrors are captured in the report, never raised.
        """
        results: list[StepResult] = []

        for step in split_plan(plan, self.tools, self.default_tool):
            tool = self.tools.get(step.tool)
            if tool is None:
                error = f"Tool '{step.tool}' is not registered"
                logger.warning(f"[sub_agent] Step {step.index} skipped: {error}")
                results.append(
                    StepResult(
                        step.index,
                        step.text,
                        step.tool,
                        error=error,
                        cause=ToolError(step.tool, "not registered"),
                    )
                )
                continue

            try:
                output = await ToolMicroAgent(tool).invoke(step.text)
            except ToolError as e:
                logger.warning(f"[sub_agent] Step {step.index} failed: {e}")
                results.append(StepResult(step.index, step.text, step.tool, error=str(e), cause=e))
                continue

            results.append(StepResult(step.index, step.text, step.tool, output=output))

        report = ExecutionReport(
            output="\n".join(r.output for r in results if r.ok),
            steps=tuple(results),
        )
        logger.info(
            f"[sub_agent] {self.id} executed {len(results)} step(s): "
            f"{report.succeeded} ok, {report.failed} failed"
        )

        if report.succeeded:
            await self.memory.append(Message.assistant(report.output, **self._metadata()))
        return report

    def __repr__(self) -> str:
        return f"<SubAgent id={self.id} role={self.role.value} provider={self.provider.name!r}>"
