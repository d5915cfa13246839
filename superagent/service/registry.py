"""
Model Service.

Maps model identifiers to active providers and routes chat requests.

Registry mutations take the write side of an AsyncReadWriteLock and do
nothing but touch the mapping. Starting, stopping, probing and chatting
always happen outside the lock, on a provider handle obtained under the
read side.

Conflict policy is reject-if-exists: registering a taken identifier
raises ProviderAlreadyRegisteredError, so of two concurrent
registrations for the same model exactly one wins.

Usage:
    service = ModelService()
    await service.register_provider(StaticProvider("local", response="hi"))

    await service.list_models()                      # [ProviderRecord(...)]
    await service.route_chat("local", [Message.user("hello")])
    await service.stop_all()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from superagent.errors import (
    ProviderAlreadyRegisteredError,
    ProviderNotFoundError,
    ProviderTimeoutError,
    ProviderUnhealthyError,
)
from superagent.providers.base import DEFAULT_TIMEOUT_SECONDS, Provider, ProviderRecord
from superagent.providers.health import HealthCheckResult, ProviderHealthChecker
from superagent.utils.locks import AsyncReadWriteLock

if TYPE_CHECKING:
    from superagent.memory import Message
    from superagent.providers.descriptor import ModelDescriptor

logger = logging.getLogger(__name__)


class ModelService:
    """
    Registry of model id -> Provider with chat routing and lifecycle.

    Example:
        service = ModelService(chat_timeout_seconds=30)
        await service.register_provider(provider, start=True)
        reply = await service.route_chat(provider.name, messages)
    """

    def __init__(
        self,
        *,
        health_checker: ProviderHealthChecker | None = None,
        chat_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize the service.

        Args:
            health_checker: Liveness probing and metrics (a fresh one by default)
            chat_timeout_seconds: Upper bound for every routed chat

        Raises:
            ValueError: chat_timeout_seconds is missing or not positive
        """
        if chat_timeout_seconds is None or chat_timeout_seconds <= 0:
            raise ValueError(f"chat_timeout_seconds must be positive, got {chat_timeout_seconds!r}")

        self._providers: dict[str, Provider] = {}
        self._lock = AsyncReadWriteLock()
        self.health_checker = health_checker or ProviderHealthChecker()
        self.chat_timeout_seconds = chat_timeout_seconds

    # ==================== Registration ====================

    def _validate_provider(self, provider: Provider) -> None:
        if not isinstance(provider, Provider):
            raise TypeError(
                f"{type(provider).__name__} does not implement the Provider interface"
            )
        if not provider.name:
            raise ValueError("Provider must have a non-empty name")

    async def register_provider(
        self,
        provider: Provider,
        *,
        model: str | None = None,
        start: bool = False,
    ) -> str:
        """
        Register a provider under a model identifier.

        Args:
            provider: Provider instance
            model: Identifier to register under (defaults to provider.name)
            start: Start and probe the provider after registering it

        Returns:
            The model identifier

        Raises:
            ProviderAlreadyRegisteredError: The identifier is taken
            ProviderUnhealthyError: start=True and the provider did not come up
        """
        self._validate_provider(provider)
        model_id = model or provider.name

        async with self._lock.write():
            if model_id in self._providers:
                raise ProviderAlreadyRegisteredError(model_id)
            self._providers[model_id] = provider

        logger.info(f"[model_service] Registered provider {provider!r} as '{model_id}'")

        if start:
            await self.start_model(model_id)
        return model_id

    async def register_descriptor(
        self,
        descriptor: ModelDescriptor,
        provider: Provider,
        *,
        start: bool = False,
    ) -> str:
        """Register `provider` under the descriptor's name."""
        return await self.register_provider(provider, model=descriptor.name, start=start)

    async def unregister_provider(self, model: str) -> bool:
        """
        Remove a provider and stop it.

        Returns:
            False if nothing was registered under `model`
        """
        async with self._lock.write():
            provider = self._providers.pop(model, None)

        if provider is None:
            return False

        self.health_checker.forget(model)
        await provider.stop()
        logger.info(f"[model_service] Unregistered and stopped '{model}'")
        return True

    # ==================== Lookup ====================

    async def get_provider(self, model: str) -> Provider:
        """
        Raises:
            ProviderNotFoundError: Nothing is registered under `model`
        """
        async with self._lock.read():
            provider = self._providers.get(model)
        if provider is None:
            raise ProviderNotFoundError(f"Model '{model}' is not registered", model)
        return provider

    async def model_ids(self) -> list[str]:
        async with self._lock.read():
            return list(self._providers)

    async def list_models(self) -> list[ProviderRecord]:
        """Snapshot of every registered model with its liveness."""
        async with self._lock.read():
            snapshot = list(self._providers.items())

        records = []
        for model_id, provider in snapshot:
            try:
                running = await provider.is_running()
            except Exception as e:
                logger.warning(f"[model_service] Liveness check for '{model_id}' failed: {e}")
                running = False
            records.append(
                ProviderRecord(
                    name=model_id,
                    running=running,
                    endpoint=getattr(provider, "endpoint", None),
                )
            )
        return records

    # ==================== Routing ====================

    async def route_chat(self, model: str, messages: Sequence[Message]) -> str:
        """
        Route a chat to the provider registered for `model`.

        Raises:
            ProviderNotFoundError: Unknown model
            ProviderTimeoutError: The chat exceeded chat_timeout_seconds
            ProviderError: Whatever the provider raised
        """
        provider = await self.get_provider(model)
        metrics = self.health_checker.get_metrics(model)
        start_time = time.perf_counter()

        try:
            reply = await asyncio.wait_for(
                provider.chat(messages), timeout=self.chat_timeout_seconds
            )
        except TimeoutError as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            metrics.record(latency_ms, error="timeout")
            logger.error(f"[model_service] Chat to '{model}' timed out after {latency_ms:.0f}ms")
            raise ProviderTimeoutError(
                f"No reply within {self.chat_timeout_seconds}s", model
            ) from e
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            metrics.record(latency_ms, error=str(e))
            logger.error(f"[model_service] Chat to '{model}' failed: {e}")
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000
        metrics.record(latency_ms)
        logger.info(f"[model_service] Chat to '{model}' completed in {latency_ms:.0f}ms")
        return reply

    # ==================== Lifecycle ====================

    async def start_model(self, model: str) -> HealthCheckResult:
        """
        Start a registered provider and probe it.

        Raises:
            ProviderNotFoundError: Unknown model
            ProviderUnhealthyError: The liveness probe gave up
        """
        provider = await self.get_provider(model)
        await provider.start()

        result = await self.health_checker.probe(provider, key=model)
        if not result.healthy:
            raise ProviderUnhealthyError(
                f"Provider did not become healthy: {result.error}", model
            )
        logger.info(f"[model_service] Started '{model}' ({result.status.value})")
        return result

    async def stop_all(self) -> None:
        """Stop every registered provider (registrations are kept)."""
        async with self._lock.read():
            snapshot = list(self._providers.items())

        results = await asyncio.gather(
            *(provider.stop() for _, provider in snapshot),
            return_exceptions=True,
        )
        for (model_id, _), outcome in zip(snapshot, results):
            if isinstance(outcome, BaseException):
                logger.error(f"[model_service] Failed to stop '{model_id}': {outcome}")

    async def health_summary(self) -> dict[str, Any]:
        records = await self.list_models()
        return {
            "models": len(records),
            "running": sum(1 for r in records if r.running),
            "metrics": {m.provider_name: m.to_dict() for m in self.health_checker.get_all_metrics()},
        }

    async def __aenter__(self) -> ModelService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop_all()

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, model: str) -> bool:
        return model in self._providers

    def __repr__(self) -> str:
        return f"<ModelService models={list(self._providers)}>"
