"""
SuperAgent (Orchestrator).

Runs one goal through the fixed workflow:

    idle -> planning -> executing -> reviewing -> completed
                   \\________\\___________\\______-> failed

Every move is checked against the FSM table first. Each phase is an
awaitable run in sequence; a fresh transient SubAgent performs it and
one AgentGraph node records it, with an edge from the previous phase.

Failure policy per phase:
- planning: provider error or timeout is fatal (Failed, RunError cause)
- executing: fatal only if no plan step produced output
- reviewing: provider error is replaced by FALLBACK_CRITIQUE

Cancellation is cooperative: the token is checked between phases, so a
cancelled run finishes the phase in flight and stops there.

Usage:
    agent = SuperAgent(StaticProvider("local", response="ship it"))
    result = await agent.run_goal("release 1.2")
    assert result.state is AgentState.COMPLETED
    print(agent.graph.render())
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from superagent.errors import ProviderError, RunError, RunInProgressError, TransitionError
from superagent.graph import AgentGraph, AgentState, NodeId, StateMachine
from superagent.memory import MemoryStore, Message
from superagent.tools import create_default_registry

from .result import RunResult
from .sub import DEFAULT_TIMEOUT_SECONDS, AgentRole, ExecutionReport, StepResult, SubAgent

if TYPE_CHECKING:
    from superagent.providers import Provider
    from superagent.tools import ToolRegistry

logger = logging.getLogger(__name__)

FALLBACK_CRITIQUE = "No critique available: the reviewer could not be reached."


class CancellationToken:
    """
    Shared flag checked by the orchestrator between phases.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(agent.run_goal("...", cancel_token=token))
        token.cancel()
        result = await task  # result.cancelled is True
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


@dataclass
class _RunContext:
    """Mutable scratch state of one run; frozen into a RunResult at the end."""

    goal: str
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    plan: str = ""
    report: ExecutionReport | None = None
    critique: str = ""
    review_error: str | None = None
    last_node: NodeId | None = None

    @property
    def step_results(self) -> tuple[StepResult, ...]:
        return self.report.steps if self.report else ()

    @property
    def execution_output(self) -> str:
        return self.report.output if self.report else ""


class SuperAgent:
    """
    Top-level orchestrator for one goal at a time.

    A second run_goal() while a run is in progress is rejected with
    RunInProgressError. Each run starts from Idle with a fresh AgentGraph.

    Example:
        agent = SuperAgent(
            provider,
            role_providers={AgentRole.CRITIC: critic_provider},
            timeout_seconds=30,
        )
        result = await agent.run_goal("write release notes")
    """

    def __init__(
        self,
        provider: Provider,
        *,
        memory: MemoryStore | None = None,
        tools: ToolRegistry | None = None,
        role_providers: Mapping[AgentRole, Provider] | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        agent_id: str | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            provider: Default provider for every role
            memory: Shared MemoryStore (a private one if omitted)
            tools: Tool registry for the executor (built-ins if omitted)
            role_providers: Per-role provider overrides
            timeout_seconds: Bound on each provider call
            agent_id: Identifier used in logs and errors
        """
        self.id = agent_id or f"super-{uuid4().hex[:8]}"
        self.provider = provider
        self.memory = memory if memory is not None else MemoryStore()
        self.tools = tools if tools is not None else create_default_registry()
        self.role_providers = dict(role_providers or {})
        self.timeout_seconds = timeout_seconds

        self._fsm = StateMachine()
        self._graph = AgentGraph()
        self._running = False
        self.last_result: RunResult | None = None

    # ==================== Observation ====================

    @property
    def state(self) -> AgentState:
        return self._fsm.state

    @property
    def graph(self) -> AgentGraph:
        return self._graph

    @property
    def running(self) -> bool:
        return self._running

    # ==================== Run ====================

    async def run_goal(
        self,
        goal: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> RunResult:
        """
        Run a goal end to end.

        Raises:
            RunInProgressError: Another run on this agent is not finished
            asyncio.CancelledError: The task running this call was cancelled

        Returns:
            RunResult. Phase failures are reported here, not raised.
        """
        if self._running:
            raise RunInProgressError(self.id)
        self._running = True

        try:
            result = await self._run(goal, cancel_token or CancellationToken())
        except asyncio.CancelledError:
            logger.warning(f"[super_agent] {self.id} run cancelled in state {self.state.value}")
            raise
        finally:
            self._running = False

        self.last_result = result
        return result

    async def _run(self, goal: str, token: CancellationToken) -> RunResult:
        self._fsm.reset()
        self._graph = AgentGraph()
        ctx = _RunContext(goal=goal)
        logger.info(f"[super_agent] {self.id} starting run: {goal!r}")

        phases: list[tuple[AgentState, Callable[[_RunContext], Awaitable[None]]]] = [
            (AgentState.PLANNING, self._plan_phase),
            (AgentState.EXECUTING, self._execute_phase),
            (AgentState.REVIEWING, self._review_phase),
        ]

        for target, phase in phases:
            if token.cancelled:
                logger.info(f"[super_agent] {self.id} cancelled before {target.value}")
                return self._result(ctx, cancelled=True)

            try:
                self._fsm.advance(target)
                await phase(ctx)
            except TransitionError as e:
                return self._fail(ctx, RunError(target.value, e))
            except RunError as e:
                return self._fail(ctx, e)

        if token.cancelled:
            logger.info(f"[super_agent] {self.id} cancelled before completion")
            return self._result(ctx, cancelled=True)

        try:
            self._fsm.advance(AgentState.COMPLETED)
        except TransitionError as e:
            return self._fail(ctx, RunError(AgentState.COMPLETED.value, e))

        result = self._result(ctx)
        self._record(ctx, AgentState.COMPLETED.value, "final artifact", agent_id=self.id)
        await self.memory.append(
            Message.assistant(result.artifact, agent_id=self.id, goal=goal, kind="artifact"),
            buffer="long_term",
        )
        logger.info(f"[super_agent] {self.id} completed in {result.duration_ms:.0f}ms")
        return result

    # ==================== Phases ====================

    def _sub_agent(self, role: AgentRole) -> SubAgent:
        return SubAgent(
            role,
            memory=self.memory,
            tools=self.tools,
            provider=self.role_providers.get(role, self.provider),
            timeout_seconds=self.timeout_seconds,
        )

    async def _plan_phase(self, ctx: _RunContext) -> None:
        planner = self._sub_agent(AgentRole.PLANNER)
        try:
            ctx.plan = await planner.plan(ctx.goal)
        except ProviderError as e:
            raise RunError(AgentState.PLANNING.value, e) from e

        lines = sum(1 for line in ctx.plan.splitlines() if line.strip())
        self._record(ctx, AgentState.PLANNING.value, f"{lines} line plan", agent_id=planner.id)

    async def _execute_phase(self, ctx: _RunContext) -> None:
        executor = self._sub_agent(AgentRole.EXECUTOR)
        ctx.report = await executor.execute(ctx.plan)
        self._record(
            ctx,
            AgentState.EXECUTING.value,
            f"{ctx.report.succeeded}/{len(ctx.report.steps)} steps ok",
            agent_id=executor.id,
        )

        if ctx.report.succeeded == 0:
            errors = ctx.report.errors
            detail = errors[-1] if errors else "plan contained no executable steps"
            raise RunError(
                AgentState.EXECUTING.value,
                ctx.report.last_failure,
                message=f"No step produced output: {detail}",
            )

    async def _review_phase(self, ctx: _RunContext) -> None:
        critic = self._sub_agent(AgentRole.CRITIC)
        try:
            ctx.critique = await critic.review(ctx.execution_output)
        except ProviderError as e:
            logger.warning(f"[super_agent] {self.id} review failed, using fallback critique: {e}")
            ctx.critique = FALLBACK_CRITIQUE
            ctx.review_error = str(e)

        summary = "fallback critique" if ctx.review_error else "critique received"
        self._record(ctx, AgentState.REVIEWING.value, summary, agent_id=critic.id)

    # ==================== Helpers ====================

    def _record(self, ctx: _RunContext, phase: str, summary: str, *, agent_id: str) -> None:
        node = self._graph.add_node(phase, summary, agent_id=agent_id)
        if ctx.last_node is not None:
            self._graph.add_edge(ctx.last_node, node)
        ctx.last_node = node

    def _fail(self, ctx: _RunContext, error: RunError) -> RunResult:
        logger.error(f"[super_agent] {self.id} run failed in {error.phase}: {error}")
        self._fsm.advance(AgentState.FAILED)
        self._record(ctx, AgentState.FAILED.value, str(error), agent_id=self.id)
        return self._result(ctx, cause=error)

    def _result(
        self,
        ctx: _RunContext,
        *,
        cause: RunError | None = None,
        cancelled: bool = False,
    ) -> RunResult:
        return RunResult(
            goal=ctx.goal,
            state=self._fsm.state,
            plan=ctx.plan,
            execution_output=ctx.execution_output,
            critique=ctx.critique,
            cause=cause,
            cancelled=cancelled,
            step_results=ctx.step_results,
            review_error=ctx.review_error,
            agent_id=self.id,
            started_at=ctx.started_at,
            completed_at=datetime.now(UTC),
        )

    def __repr__(self) -> str:
        return f"<SuperAgent id={self.id} state={self.state.value} running={self._running}>"
