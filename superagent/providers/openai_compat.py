"""
OpenAI-compatible provider.

Talks to an already running local inference server (llama-server,
vLLM, LM Studio, ...) over the chat-completions shape:

    POST {endpoint}/v1/chat/completions
    {"model": ..., "messages": [{"role": ..., "content": ...}]}

Transport failures are classified:

- timeout                  -> ProviderTimeoutError
- connection refused, ...  -> ProviderUnhealthyError
- HTTP >= 400, bad payload -> ProviderRejectedError
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx

from superagent.errors import (
    ProviderRejectedError,
    ProviderTimeoutError,
    ProviderUnhealthyError,
)

from .base import BaseProvider

if TYPE_CHECKING:
    from superagent.memory import Message

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://127.0.0.1:8080"
CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


class OpenAICompatibleProvider(BaseProvider):
    """
    Provider for an existing chat-completions endpoint.

    The httpx client is created lazily on start() (or first use) unless
    one is injected.

    Example:
        provider = OpenAICompatibleProvider("local", endpoint="http://127.0.0.1:8080")
        await provider.start()
        reply = await provider.chat([Message.user("hello")])
        await provider.stop()
    """

    def __init__(
        self,
        name: str,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        model: str | None = None,
        timeout_seconds: float = 60.0,
        health_path: str = "/health",
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the provider.

        Args:
            name: Model identifier used for routing
            endpoint: Base URL of the inference server
            model: Model name sent upstream (defaults to `name`)
            timeout_seconds: HTTP timeout per request
            health_path: Path polled by is_running()
            client: Optional pre-built httpx client (not closed on stop)
        """
        super().__init__(name, endpoint=endpoint.rstrip("/"))
        self.model = model or name
        self.timeout_seconds = timeout_seconds
        self.health_path = health_path
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.endpoint,
                timeout=self.timeout_seconds,
            )
            self._owns_client = True
        return self._client

    async def start(self) -> None:
        self._get_client()

    async def stop(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def is_running(self) -> bool:
        if self._client is None:
            return False
        try:
            response = await self._client.get(self.health_path)
        except httpx.HTTPError as e:
            logger.debug(f"[{self.name}] Health check failed: {e}")
            return False
        return response.status_code == 200

    def _build_payload(self, messages: Sequence[Message]) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [msg.to_llm_format() for msg in messages],
            "stream": False,
        }

    async def chat(self, messages: Sequence[Message]) -> str:
        """
        Send a chat-completions request.

        Raises:
            ProviderTimeoutError: The request timed out
            ProviderUnhealthyError: The endpoint could not be reached
            ProviderRejectedError: Error status or malformed response
        """
        start_time = time.perf_counter()

        try:
            response = await self._get_client().post(
                CHAT_COMPLETIONS_PATH,
                json=self._build_payload(messages),
            )
        except httpx.TimeoutException as e:
            logger.error(f"[{self.name}] Chat timed out after {self.timeout_seconds}s")
            raise ProviderTimeoutError(
                f"Request timed out after {self.timeout_seconds}s", self.name
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"[{self.name}] Chat transport error: {e}")
            raise ProviderUnhealthyError(f"Endpoint unreachable: {e}", self.name) from e

        if response.status_code >= 400:
            logger.error(f"[{self.name}] Chat rejected with status {response.status_code}")
            raise ProviderRejectedError(
                f"Backend rejected request: {response.text[:200]}",
                self.name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"[{self.name}] Malformed chat response: {e}", exc_info=True)
            raise ProviderRejectedError("Malformed chat-completions response", self.name) from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"[{self.name}] Chat completed in {latency_ms:.0f}ms")
        return content or ""
