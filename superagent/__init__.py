"""
SuperAgent - Local-First Multi-Agent Runtime

A top-level orchestrator drives a fixed plan -> execute -> review
workflow by delegating to role-scoped sub-agents, which call a pluggable
inference provider and a tool registry.

Quick Start:
    from superagent import SuperAgent, StaticProvider

    agent = SuperAgent(StaticProvider("local", response="ship it"))
    result = await agent.run_goal("release 1.2")

    print(result.state, result.critique)
    print(agent.graph.render())

Packages:
    graph      - FSM transition table and AgentGraph
    memory     - short-term / long-term message buffers
    tools      - Tool base, registry and built-ins
    providers  - Provider protocol, variants, retry and health
    service    - ModelService (model id -> provider registry)
    agents     - SuperAgent, SubAgent, MicroAgent
    app        - FastAPI model service
"""

__version__ = "0.1.0"

from .agents import (
    FALLBACK_CRITIQUE,
    AgentRole,
    CancellationToken,
    RunResult,
    SubAgent,
    SuperAgent,
)
from .errors import (
    ProviderAlreadyRegisteredError,
    ProviderError,
    ProviderErrorKind,
    ProviderNotFoundError,
    ProviderRejectedError,
    ProviderTimeoutError,
    ProviderUnhealthyError,
    RunError,
    RunInProgressError,
    SuperAgentError,
    ToolError,
    TransitionError,
)
from .graph import AgentGraph, AgentState, transition
from .memory import MemoryStore, Message
from .providers import (
    LlamaServerProvider,
    ModelDescriptor,
    OpenAICompatibleProvider,
    Provider,
    StaticProvider,
)
from .service import ModelService
from .tools import Tool, ToolRegistry, ToolResult, create_default_registry

__all__ = [
    "__version__",
    # Agents
    "AgentRole",
    "CancellationToken",
    "FALLBACK_CRITIQUE",
    "RunResult",
    "SubAgent",
    "SuperAgent",
    # Graph
    "AgentGraph",
    "AgentState",
    "transition",
    # Memory
    "MemoryStore",
    "Message",
    # Providers
    "LlamaServerProvider",
    "ModelDescriptor",
    "ModelService",
    "OpenAICompatibleProvider",
    "Provider",
    "StaticProvider",
    # Tools
    "Tool",
    "ToolRegistry",
    "ToolResult",
    "create_default_registry",
    # Errors
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
