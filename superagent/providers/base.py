"""
Provider Protocol for SuperAgent.

A Provider is an inference backend with a lifecycle. Every variant
(deterministic in-memory double, already-running HTTP endpoint, managed
llama-server process) exposes the same capability set:

- name: model identifier the provider serves
- start(): bring the backend up (idempotent)
- stop(): release the backend
- is_running(): cheap liveness check
- chat(messages): produce a completion for a conversation
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from superagent.memory import Message

# Upper bound for one chat round trip, per agent call and per routed request
DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class ProviderRecord:
    """
    Snapshot of a provider as reported by the model service.

    Attributes:
        name: Model identifier
        running: Whether the provider answered its liveness check
        endpoint: Backend address, if the provider has one
    """

    name: str
    running: bool
    endpoint: str | None = None

    @property
    def status(self) -> str:
        return "running" if self.running else "stopped"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "status": self.status}


@runtime_checkable
class Provider(Protocol):
    """
    Protocol for inference providers.

    Implementations:
    - StaticProvider (deterministic, in-memory)
    - OpenAICompatibleProvider (existing local endpoint)
    - LlamaServerProvider (managed llama-server process)
    """

    @property
    def name(self) -> str:
        """Model identifier, used for routing."""
        ...

    async def start(self) -> None:
        """Start the backend. Starting a running provider is a no-op."""
        ...

    async def stop(self) -> None:
        """Stop the backend."""
        ...

    async def is_running(self) -> bool:
        """Return True if the backend is ready to serve chats."""
        ...

    async def chat(self, messages: Sequence[Message]) -> str:
        """
        Generate a completion.

        Args:
            messages: Conversation, oldest first

        Returns:
            The assistant's reply text

        Raises:
            ProviderError: On timeout, unhealthy backend or rejection
        """
        ...


class BaseProvider(ABC):
    """
    Base class for provider implementations.

    Provides naming, the endpoint attribute and record() for the model
    service. Subclasses implement the lifecycle and chat.
    """

    def __init__(self, name: str, *, endpoint: str | None = None):
        if not name:
            raise ValueError("Provider name must not be empty")
        self._name = name
        self.endpoint = endpoint

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    async def is_running(self) -> bool:
        pass

    @abstractmethod
    async def chat(self, messages: Sequence[Message]) -> str:
        pass

    async def record(self) -> ProviderRecord:
        """Snapshot of this provider for listings."""
        return ProviderRecord(
            name=self.name,
            running=await self.is_running(),
            endpoint=self.endpoint,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', endpoint='{self.endpoint}')"
