"""
Error taxonomy for SuperAgent.

Every failure in the runtime maps onto one of these classes:

- TransitionError: illegal workflow state move (state left unchanged)
- ProviderError: inference backend failure, classified by ProviderErrorKind
- ToolError: a single plan step failed (collected, never fatal on its own)
- RunError: a workflow phase failed; carries the phase and underlying cause

Propagation rules are owned by the orchestrator (see agents.orchestrator).
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .graph.fsm import AgentState


class SuperAgentError(Exception):
    """Base exception for all SuperAgent errors."""

    pass


# =============================================================================
# Workflow
# =============================================================================


class TransitionError(SuperAgentError):
    """Raised when the FSM rejects a requested state change."""

    def __init__(self, current: "AgentState", requested: "AgentState"):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Invalid transition: {current.value} -> {requested.value}"
        )


class RunError(SuperAgentError):
    """
    Aggregate failure of a workflow phase.

    Attributes:
        phase: Name of the phase that failed (planning, executing, ...)
        cause: The underlying exception, if any
    """

    def __init__(self, phase: str, cause: BaseException | None = None, message: str = ""):
        self.phase = phase
        self.cause = cause
        detail = message or (str(cause) if cause is not None else "unknown failure")
        super().__init__(f"[{phase}] {detail}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "message": str(self),
            "cause_type": type(self.cause).__name__ if self.cause else None,
        }


class RunInProgressError(SuperAgentError):
    """Raised when run_goal is called while another run is still active."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"SuperAgent {agent_id} already has a run in progress")


# =============================================================================
# Providers
# =============================================================================


class ProviderErrorKind(str, Enum):
    """Classification of provider failures."""

    NOT_FOUND = "not_found"
    UNHEALTHY = "unhealthy"
    TIMEOUT = "timeout"
    REMOTE_REJECTED = "remote_rejected"


class ProviderError(SuperAgentError):
    """Base exception for provider and model service failures."""

    kind: ProviderErrorKind = ProviderErrorKind.REMOTE_REJECTED

    def __init__(
        self,
        message: str,
        provider: str = "",
        *,
        kind: ProviderErrorKind | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        if kind is not None:
            self.kind = kind
        self.status_code = status_code

    def __str__(self) -> str:
        prefix = f"[{self.provider}] " if self.provider else ""
        suffix = f" (status={self.status_code})" if self.status_code else ""
        return f"{prefix}{self.args[0]}{suffix}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "message": self.args[0],
            "provider": self.provider or None,
        }


class ProviderNotFoundError(ProviderError):
    """No provider is registered for the requested model."""

    kind = ProviderErrorKind.NOT_FOUND


class ProviderUnhealthyError(ProviderError):
    """The provider failed to start or its liveness probe failed."""

    kind = ProviderErrorKind.UNHEALTHY


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the configured timeout."""

    kind = ProviderErrorKind.TIMEOUT


class ProviderRejectedError(ProviderError):
    """The backend answered with an error or an unusable response."""

    kind = ProviderErrorKind.REMOTE_REJECTED


class ProviderAlreadyRegisteredError(SuperAgentError):
    """Raised when a model identifier already has a registered provider."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"A provider is already registered for model '{model}'")


# =============================================================================
# Tools
# =============================================================================


class ToolError(SuperAgentError):
    """A single tool invocation failed."""

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(f"[{tool}] {message}")


__all__ = [
    "ProviderAlreadyRegisteredError",
    "ProviderError",
    "ProviderErrorKind",
    "ProviderNotFoundError",
    "ProviderRejectedError",
    "ProviderTimeoutError",
    "ProviderUnhealthyError",
    "RunError",
    "RunInProgressError",
    "SuperAgentError",
    "ToolError",
    "TransitionError",
]
