"""
SuperAgent Providers

Interchangeable inference backends behind one lifecycle + chat interface.

Usage:
    from superagent.providers import StaticProvider, probe_liveness

    provider = StaticProvider("local", response="ok")
    await provider.start()
    assert await probe_liveness(provider)
"""

from .base import DEFAULT_TIMEOUT_SECONDS, BaseProvider, Provider, ProviderRecord
from .descriptor import ModelDescriptor
from .health import (
    HealthCheckResult,
    HealthStatus,
    ProviderHealthChecker,
    ProviderMetrics,
    probe_liveness,
)
from .llama_server import LlamaServerProvider
from .openai_compat import DEFAULT_ENDPOINT, OpenAICompatibleProvider
from .retry import (
    LIVENESS_POLICY,
    BackoffStrategy,
    ConstantBackoff,
    ExponentialBackoff,
    NoBackoff,
    RetryPolicy,
    RetryResult,
    liveness_policy,
    with_retry,
)
from .static import StaticProvider

__all__ = [
    # Protocol
    "DEFAULT_TIMEOUT_SECONDS",
    "BaseProvider",
    "Provider",
    "ProviderRecord",
    "ModelDescriptor",
    # Implementations
    "DEFAULT_ENDPOINT",
    "LlamaServerProvider",
    "OpenAICompatibleProvider",
    "StaticProvider",
    # Health
    "HealthCheckResult",
    "HealthStatus",
    "ProviderHealthChecker",
    "ProviderMetrics",
    "probe_liveness",
    # Retry
    "LIVENESS_POLICY",
    "BackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
    "NoBackoff",
    "RetryPolicy",
    "RetryResult",
    "liveness_policy",
    "with_retry",
]
