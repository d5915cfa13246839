"""
Tests for runtime settings and provider construction.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from superagent.config import build_provider, load_settings
from superagent.providers import (
    LlamaServerProvider,
    OpenAICompatibleProvider,
    StaticProvider,
)


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self):
        settings = load_settings({})
        assert settings.provider == "static"
        assert settings.llm_endpoint == "http://127.0.0.1:8080"
        assert settings.short_term_limit == 1000
        assert settings.model_name == "local"

    def test_prefixed_variables(self):
        settings = load_settings(
            {
                "SUPERAGENT_PROVIDER": "openai_compatible",
                "SUPERAGENT_LLM_ENDPOINT": "http://10.0.0.5:9000",
                "SUPERAGENT_SERVER_PORT": "12000",
                "SUPERAGENT_DEBUG": "True",
            }
        )
        assert settings.provider == "openai_compatible"
        assert settings.llm_endpoint == "http://10.0.0.5:9000"
        assert settings.server_port == 12000
        assert settings.debug is True

    def test_llama_fallbacks(self):
        settings = load_settings({"LLAMA_ENDPOINT": "http://gpu:8080", "LLAMA_MODEL": "qwen3-8b.gguf"})
        assert settings.llm_endpoint == "http://gpu:8080"
        assert settings.model_name == "qwen3-8b"

    def test_prefixed_wins_over_fallback(self):
        settings = load_settings(
            {"SUPERAGENT_LLM_ENDPOINT": "http://a:1", "LLAMA_ENDPOINT": "http://b:2"}
        )
        assert settings.llm_endpoint == "http://a:1"

    def test_invalid_value(self):
        with pytest.raises(ValidationError):
            load_settings({"SUPERAGENT_PROVIDER": "cloud"})

    def test_model_path_relative_to_model_dir(self):
        settings = load_settings({"SUPERAGENT_MODEL_DIR": "/srv/models", "LLAMA_MODEL": "qwen.gguf"})
        assert settings.model_path == Path("/srv/models/qwen.gguf")


class TestBuildProvider:
    """Tests for build_provider."""

    def test_static(self):
        provider = build_provider(load_settings({"SUPERAGENT_STATIC_RESPONSE": "ok"}))
        assert isinstance(provider, StaticProvider)
        assert provider.response == "ok"

    def test_openai_compatible(self):
        provider = build_provider(
            load_settings(
                {
                    "SUPERAGENT_PROVIDER": "openai_compatible",
                    "LLAMA_ENDPOINT": "http://127.0.0.1:9999",
                    "LLAMA_MODEL": "qwen3-8b",
                }
            )
        )
        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.endpoint == "http://127.0.0.1:9999"
        assert provider.name == "qwen3-8b"

    def test_llama_server(self):
        provider = build_provider(
            load_settings(
                {
                    "SUPERAGENT_PROVIDER": "llama_server",
                    "SUPERAGENT_LLAMA_PORT": "8181",
                    "SUPERAGENT_HEALTH_MAX_ATTEMPTS": "3",
                    "LLAMA_MODEL": "qwen3-8b.gguf",
                }
            )
        )
        assert isinstance(provider, LlamaServerProvider)
        assert provider.port == 8181
        assert provider.startup_policy.max_attempts == 3
        assert provider.model_path == Path("models/qwen3-8b.gguf")
