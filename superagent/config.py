"""
Runtime configuration for SuperAgent.

Settings are read from environment variables with the SUPERAGENT_ prefix.
LLAMA_ENDPOINT and LLAMA_MODEL are honoured as fallbacks for the
inference endpoint and model name.

    SUPERAGENT_PROVIDER=openai_compatible
    LLAMA_ENDPOINT=http://127.0.0.1:8080
    LLAMA_MODEL=qwen3-8b
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from superagent.providers import (
    DEFAULT_TIMEOUT_SECONDS,
    LlamaServerProvider,
    OpenAICompatibleProvider,
    Provider,
    StaticProvider,
    liveness_policy,
)

logger = logging.getLogger(__name__)

ProviderKind = Literal["static", "openai_compatible", "llama_server"]

ENV_PREFIX = "SUPERAGENT_"


class RuntimeSettings(BaseModel):
    """
    Runtime settings.

    Used for type-safe settings access.
    """

    # Inference backend
    provider: ProviderKind = Field("static", description="Provider variant to build")
    llm_endpoint: str = Field("http://127.0.0.1:8080", description="Chat-completions endpoint")
    llm_model: str = Field("local.gguf", description="Model identifier served by the provider")
    static_response: str | None = Field(None, description="Fixed reply for the static provider")
    llama_binary: str = Field("llama-server", description="llama-server executable")
    model_dir: Path = Field(Path("models"), description="Directory holding model files")
    llama_port: int = Field(8080, ge=1, le=65535)
    provider_timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0, description="Bound on each provider call")
    health_max_attempts: int = Field(12, ge=1, description="Liveness probes before giving up")

    # Model service HTTP surface
    server_host: str = "127.0.0.1"
    server_port: int = Field(11400, ge=1, le=65535)

    # Memory
    short_term_limit: int = Field(1000, ge=1, description="Short-term buffer bound")

    # Service
    log_level: str = "INFO"
    debug: bool = False

    @property
    def model_path(self) -> Path:
        path = Path(self.llm_model)
        return path if path.is_absolute() else self.model_dir / path

    @property
    def model_name(self) -> str:
        """Routing identifier: the model file's stem."""
        return Path(self.llm_model).stem or self.llm_model


def _get(env: Mapping[str, str], key: str, fallback: str | None = None) -> str | None:
    value = env.get(f"{ENV_PREFIX}{key}")
    if value is None and fallback is not None:
        value = env.get(fallback)
    return value


def load_settings(env: Mapping[str, str] | None = None) -> RuntimeSettings:
    """
    Build settings from environment variables.

    Unset variables keep the model defaults.

    Raises:
        pydantic.ValidationError: A variable holds an invalid value
    """
    env = os.environ if env is None else env

    raw = {
        "provider": _get(env, "PROVIDER"),
        "llm_endpoint": _get(env, "LLM_ENDPOINT", "LLAMA_ENDPOINT"),
        "llm_model": _get(env, "LLM_MODEL", "LLAMA_MODEL"),
        "static_response": _get(env, "STATIC_RESPONSE"),
        "llama_binary": _get(env, "LLAMA_BINARY"),
        "model_dir": _get(env, "MODEL_DIR"),
        "llama_port": _get(env, "LLAMA_PORT"),
        "provider_timeout_seconds": _get(env, "PROVIDER_TIMEOUT_SECONDS"),
        "health_max_attempts": _get(env, "HEALTH_MAX_ATTEMPTS"),
        "server_host": _get(env, "SERVER_HOST"),
        "server_port": _get(env, "SERVER_PORT"),
        "short_term_limit": _get(env, "SHORT_TERM_LIMIT"),
        "log_level": _get(env, "LOG_LEVEL"),
        "debug": _get(env, "DEBUG"),
    }
    values = {key: value for key, value in raw.items() if value is not None}
    if "debug" in values:
        values["debug"] = values["debug"].lower() == "true"

    return RuntimeSettings(**values)


@lru_cache()
def get_settings() -> RuntimeSettings:
    """
    Get settings from the process environment.

    Uses lru_cache for singleton pattern.
    """
    return load_settings()


def build_provider(settings: RuntimeSettings) -> Provider:
    """Build the provider variant selected by `settings.provider`."""
    name = settings.model_name

    if settings.provider == "static":
        provider: Provider = StaticProvider(name, response=settings.static_response)
    elif settings.provider == "openai_compatible":
        provider = OpenAICompatibleProvider(
            name,
            endpoint=settings.llm_endpoint,
            model=settings.llm_model,
            timeout_seconds=settings.provider_timeout_seconds,
        )
    elif settings.provider == "llama_server":
        provider = LlamaServerProvider(
            name,
            model_path=settings.model_path,
            binary=settings.llama_binary,
            port=settings.llama_port,
            startup_policy=liveness_policy(max_attempts=settings.health_max_attempts),
            timeout_seconds=settings.provider_timeout_seconds,
        )
    else:
        raise ValueError(f"Unknown provider kind: {settings.provider}")

    logger.info(f"[config] Built {settings.provider} provider {provider!r}")
    return provider
