"""
Tests for provider implementations.
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from superagent.errors import (
    ProviderErrorKind,
    ProviderRejectedError,
    ProviderTimeoutError,
    ProviderUnhealthyError,
)
from superagent.memory import Message
from superagent.providers import (
    LlamaServerProvider,
    ModelDescriptor,
    OpenAICompatibleProvider,
    Provider,
    StaticProvider,
    liveness_policy,
)


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://backend")


def completion(content: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


# =============================================================================
# StaticProvider
# =============================================================================


class TestStaticProvider:
    """Tests for StaticProvider."""

    def test_satisfies_protocol(self):
        assert isinstance(StaticProvider(), Provider)

    @pytest.mark.asyncio
    async def test_fixed_response(self):
        provider = StaticProvider("local", response="T")
        assert await provider.chat([Message.user("anything")]) == "T"

    @pytest.mark.asyncio
    async def test_echoes_last_message(self):
        provider = StaticProvider("local")
        reply = await provider.chat([Message.user("first"), Message.user("second")])
        assert reply == "[static:local] echo: second"

    @pytest.mark.asyncio
    async def test_lifecycle(self):
        provider = StaticProvider("local", auto_start=False)
        assert await provider.is_running() is False
        await provider.start()
        await provider.start()
        assert await provider.is_running() is True
        await provider.stop()
        assert await provider.is_running() is False

    @pytest.mark.asyncio
    async def test_record(self):
        record = await StaticProvider("local").record()
        assert record.to_dict() == {"name": "local", "status": "running"}

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            StaticProvider("")


# =============================================================================
# OpenAICompatibleProvider
# =============================================================================


class TestOpenAICompatibleProvider:
    """Tests for the chat-completions HTTP provider."""

    @pytest.mark.asyncio
    async def test_chat_sends_completions_request(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion("hello back"))

        provider = OpenAICompatibleProvider("qwen", client=make_client(handler))
        reply = await provider.chat([Message.system("be brief"), Message.user("hello")])

        assert reply == "hello back"
        assert seen["path"] == "/v1/chat/completions"
        assert seen["body"]["model"] == "qwen"
        assert seen["body"]["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hello"},
        ]

    @pytest.mark.asyncio
    async def test_error_status_rejected(self):
        provider = OpenAICompatibleProvider(
            "qwen", client=make_client(lambda r: httpx.Response(500, text="boom"))
        )
        with pytest.raises(ProviderRejectedError) as exc_info:
            await provider.chat([Message.user("hi")])
        assert exc_info.value.status_code == 500
        assert exc_info.value.kind is ProviderErrorKind.REMOTE_REJECTED

    @pytest.mark.asyncio
    async def test_malformed_payload_rejected(self):
        provider = OpenAICompatibleProvider(
            "qwen", client=make_client(lambda r: httpx.Response(200, json={"choices": []}))
        )
        with pytest.raises(ProviderRejectedError):
            await provider.chat([Message.user("hi")])

    @pytest.mark.asyncio
    async def test_timeout_classified(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        provider = OpenAICompatibleProvider("qwen", client=make_client(handler))
        with pytest.raises(ProviderTimeoutError):
            await provider.chat([Message.user("hi")])

    @pytest.mark.asyncio
    async def test_connection_error_is_unhealthy(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = OpenAICompatibleProvider("qwen", client=make_client(handler))
        with pytest.raises(ProviderUnhealthyError):
            await provider.chat([Message.user("hi")])

    @pytest.mark.asyncio
    async def test_is_running_uses_health_endpoint(self):
        def handler(request):
            assert request.url.path == "/health"
            return httpx.Response(200, json={"status": "ok"})

        provider = OpenAICompatibleProvider("qwen", client=make_client(handler))
        assert await provider.is_running() is True

    @pytest.mark.asyncio
    async def test_is_running_false_when_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = OpenAICompatibleProvider("qwen", client=make_client(handler))
        assert await provider.is_running() is False

    @pytest.mark.asyncio
    async def test_injected_client_not_closed_on_stop(self):
        client = make_client(lambda r: httpx.Response(200))
        provider = OpenAICompatibleProvider("qwen", client=client)
        await provider.stop()
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_created_lazily(self):
        provider = OpenAICompatibleProvider("qwen", endpoint="http://127.0.0.1:9/")
        assert provider.endpoint == "http://127.0.0.1:9"
        await provider.start()
        assert provider._client is not None
        await provider.stop()
        assert provider._client is None

    @pytest.mark.asyncio
    async def test_not_running_once_stopped(self):
        provider = OpenAICompatibleProvider("qwen", endpoint="http://127.0.0.1:9/")
        assert await provider.is_running() is False
        assert provider._client is None

        await provider.start()
        await provider.stop()

        assert await provider.is_running() is False
        assert provider._client is None


# =============================================================================
# LlamaServerProvider
# =============================================================================


def fake_process(returncode=None):
    process = MagicMock()
    process.pid = 4242
    process.returncode = returncode
    process.wait = AsyncMock(return_value=0)
    return process


FAST_STARTUP = liveness_policy(max_attempts=3, base_delay=0.0, max_delay=0.0)


class TestLlamaServerProvider:
    """Tests for the managed llama-server provider."""

    def make_provider(self, handler, **kwargs):
        return LlamaServerProvider(
            "qwen",
            model_path=Path("/models/qwen.gguf"),
            port=8123,
            startup_policy=FAST_STARTUP,
            client=make_client(handler),
            **kwargs,
        )

    def test_command_line(self):
        provider = self.make_provider(lambda r: httpx.Response(200), ctx_size=4096, n_gpu_layers=0)
        assert provider.build_command() == [
            "llama-server",
            "--model", "/models/qwen.gguf",
            "--host", "127.0.0.1",
            "--port", "8123",
            "--ctx-size", "4096",
            "--n-gpu-layers", "0",
        ]
        assert provider.endpoint == "http://127.0.0.1:8123"

    @pytest.mark.asyncio
    async def test_start_spawns_and_waits_for_health(self):
        provider = self.make_provider(lambda r: httpx.Response(200, json={"status": "ok"}))
        process = fake_process()

        with patch(
            "superagent.providers.llama_server.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ) as spawn:
            await provider.start()
            await provider.start()

        assert spawn.await_count == 1
        assert spawn.await_args.args[0] == "llama-server"
        assert provider.pid == 4242
        assert await provider.is_running() is True

    @pytest.mark.asyncio
    async def test_start_gives_up_when_never_healthy(self):
        provider = self.make_provider(lambda r: httpx.Response(503, json={"status": "loading"}))
        process = fake_process()

        with patch(
            "superagent.providers.llama_server.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            with pytest.raises(ProviderUnhealthyError) as exc_info:
                await provider.start()

        assert "3 health checks" in str(exc_info.value)
        process.terminate.assert_called_once()
        assert provider.pid is None

    @pytest.mark.asyncio
    async def test_missing_binary_is_unhealthy(self):
        provider = self.make_provider(lambda r: httpx.Response(200))

        with patch(
            "superagent.providers.llama_server.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("llama-server")),
        ):
            with pytest.raises(ProviderUnhealthyError):
                await provider.start()

    @pytest.mark.asyncio
    async def test_failed_spawn_releases_client(self):
        provider = LlamaServerProvider(
            "qwen",
            model_path=Path("/models/qwen.gguf"),
            binary="/nonexistent/llama-server",
            startup_policy=FAST_STARTUP,
        )

        with patch(
            "superagent.providers.llama_server.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("/nonexistent/llama-server")),
        ):
            with pytest.raises(ProviderUnhealthyError):
                await provider.start()

        assert provider._client is None
        assert provider.pid is None

    @pytest.mark.asyncio
    async def test_failed_liveness_releases_client(self):
        provider = LlamaServerProvider(
            "qwen",
            model_path=Path("/models/qwen.gguf"),
            startup_policy=FAST_STARTUP,
        )
        process = fake_process()

        with (
            patch(
                "superagent.providers.llama_server.asyncio.create_subprocess_exec",
                AsyncMock(return_value=process),
            ),
            patch(
                "superagent.providers.llama_server.probe_liveness",
                AsyncMock(return_value=False),
            ),
        ):
            with pytest.raises(ProviderUnhealthyError):
                await provider.start()

        process.terminate.assert_called_once()
        assert provider._client is None
        assert await provider.is_running() is False

    @pytest.mark.asyncio
    async def test_stop_terminates_process(self):
        provider = self.make_provider(lambda r: httpx.Response(200, json={"status": "ok"}))
        process = fake_process()

        with patch(
            "superagent.providers.llama_server.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            await provider.start()

        await provider.stop()

        process.terminate.assert_called_once()
        process.wait.assert_awaited()
        assert await provider.is_running() is False

    @pytest.mark.asyncio
    async def test_not_running_without_process(self):
        provider = self.make_provider(lambda r: httpx.Response(200))
        assert await provider.is_running() is False


# =============================================================================
# ModelDescriptor
# =============================================================================


class TestModelDescriptor:
    """Tests for ModelDescriptor.from_path."""

    def test_from_existing_file(self, tmp_path):
        model = tmp_path / "Qwen3-8B.GGUF"
        model.write_bytes(b"x" * 128)

        descriptor = ModelDescriptor.from_path(model)

        assert descriptor.name == "Qwen3-8B"
        assert descriptor.format == "gguf"
        assert descriptor.size == 128
        assert descriptor.path == model

    def test_missing_file_has_zero_size(self):
        descriptor = ModelDescriptor.from_path("models/absent.safetensors")
        assert descriptor.size == 0
        assert descriptor.format == "safetensors"
