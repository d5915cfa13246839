"""
Managed llama-server provider.

Spawns a local `llama-server` process bound to localhost on start(),
waits for `GET /health` with exponential backoff (200ms doubling, capped
at 3s, 12 attempts), proxies chats over the chat-completions shape and
terminates the process on stop().
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from superagent.errors import ProviderUnhealthyError

from .health import probe_liveness
from .openai_compat import OpenAICompatibleProvider
from .retry import LIVENESS_POLICY, RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_BINARY = "llama-server"
STOP_GRACE_SECONDS = 5.0


class LlamaServerProvider(OpenAICompatibleProvider):
    """
    Provider owning a llama-server subprocess.

    Example:
        provider = LlamaServerProvider("qwen3-8b", model_path=Path("models/qwen3-8b.gguf"))
        await provider.start()   # spawns and waits for /health
        reply = await provider.chat([Message.user("hello")])
        await provider.stop()    # terminate, kill after 5s
    """

    def __init__(
        self,
        name: str,
        *,
        model_path: str | Path,
        binary: str = DEFAULT_BINARY,
        host: str = "127.0.0.1",
        port: int = 8080,
        ctx_size: int = 8192,
        n_gpu_layers: int = -1,
        extra_args: tuple[str, ...] = (),
        startup_policy: RetryPolicy = LIVENESS_POLICY,
        timeout_seconds: float = 120.0,
        **kwargs,
    ):
        """
        Initialize the provider. Nothing is spawned until start().

        Args:
            name: Model identifier used for routing
            model_path: GGUF file passed as --model
            binary: llama-server executable (name on PATH or full path)
            host: Bind address
            port: Bind port
            ctx_size: --ctx-size
            n_gpu_layers: --n-gpu-layers (-1 offloads everything)
            extra_args: Additional command-line flags
            startup_policy: Liveness polling after spawn
            timeout_seconds: HTTP timeout per chat request
        """
        super().__init__(
            name,
            endpoint=f"http://{host}:{port}",
            timeout_seconds=timeout_seconds,
            **kwargs,
        )
        self.model_path = Path(model_path)
        self.binary = binary
        self.host = host
        self.port = port
        self.ctx_size = ctx_size
        self.n_gpu_layers = n_gpu_layers
        self.extra_args = tuple(extra_args)
        self.startup_policy = startup_policy
        self._process: asyncio.subprocess.Process | None = None
        self._lifecycle_lock = asyncio.Lock()

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    def _process_alive(self) -> bool:
        return self._process is not None and self._process.returncode is None

    def build_command(self) -> list[str]:
        return [
            self.binary,
            "--model", str(self.model_path),
            "--host", self.host,
            "--port", str(self.port),
            "--ctx-size", str(self.ctx_size),
            "--n-gpu-layers", str(self.n_gpu_layers),
            *self.extra_args,
        ]

    async def is_running(self) -> bool:
        if not self._process_alive():
            return False
        return await super().is_running()

    async def start(self) -> None:
        """
        Spawn llama-server and wait until /health answers.

        Starting an already running provider is a no-op.

        Raises:
            ProviderUnhealthyError: Spawn failed or the server never became ready
        """
        async with self._lifecycle_lock:
            if self._process_alive():
                logger.debug(f"[llama_server] {self.name} already running (pid={self.pid})")
                return

            await super().start()
            command = self.build_command()
            logger.info(f"[llama_server] Spawning {self.name}: {' '.join(command)}")

            try:
                self._process = await asyncio.create_subprocess_exec(
                    *command,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except OSError as e:
                logger.error(f"[llama_server] Failed to spawn {self.binary}: {e}")
                await super().stop()
                raise ProviderUnhealthyError(f"Failed to spawn {self.binary}: {e}", self.name) from e

            if await probe_liveness(self, self.startup_policy):
                logger.info(f"[llama_server] {self.name} ready at {self.endpoint} (pid={self.pid})")
                return

            returncode = self._process.returncode
            await self._terminate()
            await super().stop()

        detail = (
            f"exited with code {returncode}"
            if returncode is not None
            else f"not ready after {self.startup_policy.max_attempts} health checks"
        )
        logger.error(f"[llama_server] {self.name} {detail}")
        raise ProviderUnhealthyError(f"llama-server {detail}", self.name)

    async def stop(self) -> None:
        async with self._lifecycle_lock:
            await self._terminate()
        await super().stop()

    async def _terminate(self) -> None:
        process = self._process
        if process is None:
            return
        self._process = None

        if process.returncode is not None:
            return

        try:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=STOP_GRACE_SECONDS)
            except TimeoutError:
                logger.warning(f"[llama_server] {self.name} ignored SIGTERM, killing")
                process.kill()
                await process.wait()
        except ProcessLookupError:
            pass

        logger.info(f"[llama_server] Stopped {self.name}")
