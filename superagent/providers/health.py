"""
Provider liveness and chat metrics.

- probe_liveness(): poll is_running() with exponential backoff before a
  provider is declared unhealthy
- ProviderHealthChecker: runs probes, remembers the last verdict per
  provider and keeps the chat metrics the model service records for
  every routed request
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from .retry import LIVENESS_POLICY, RetryPolicy, RetryResult, with_retry

if TYPE_CHECKING:
    from .base import Provider

logger = logging.getLogger(__name__)

SLOW_PROBE_MS = 5000


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # came up, but needed retries or answered slowly
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class HealthCheckResult:
    """Verdict of one liveness probe."""

    provider_name: str
    status: HealthStatus
    attempts: int
    latency_ms: float
    error: str | None = None
    checked_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def healthy(self) -> bool:
        return self.status is not HealthStatus.UNHEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider_name,
            "status": self.status.value,
            "attempts": self.attempts,
            "latency_ms": round(self.latency_ms, 1),
            "error": self.error,
            "checked_at": self.checked_at.isoformat(),
        }


@dataclass
class ProviderMetrics:
    """Counters for chats routed to one provider."""

    provider_name: str
    requests: int = 0
    failures: int = 0
    latency_ms_total: float = 0.0
    last_error: str | None = None
    last_request_at: datetime | None = None

    @property
    def successes(self) -> int:
        return self.requests - self.failures

    @property
    def success_rate(self) -> float:
        return self.successes / self.requests if self.requests else 1.0

    @property
    def avg_latency_ms(self) -> float:
        return self.latency_ms_total / self.requests if self.requests else 0.0

    def record(self, latency_ms: float, error: str | None = None) -> None:
        self.requests += 1
        self.latency_ms_total += latency_ms
        self.last_request_at = datetime.now(UTC)
        if error is not None:
            self.failures += 1
            self.last_error = error

    def to_dict(self) -> dict[str, Any]:
        return {
            "requests": self.requests,
            "failures": self.failures,
            "success_rate": self.success_rate,
            "avg_latency_ms": round(self.avg_latency_ms, 1),
            "last_error": self.last_error,
            "last_request_at": self.last_request_at.isoformat() if self.last_request_at else None,
        }


def _is_up(outcome: RetryResult) -> bool:
    return outcome.success and outcome.result is True


async def _poll(provider: Provider, policy: RetryPolicy) -> RetryResult:
    return await with_retry(provider.is_running, policy, operation_name=f"[health] {provider.name}")


async def probe_liveness(provider: Provider, policy: RetryPolicy = LIVENESS_POLICY) -> bool:
    """
    Poll provider.is_running() until it reports True or the policy gives up.

    An exception from is_running() counts as "not yet".
    """
    return _is_up(await _poll(provider, policy))


class ProviderHealthChecker:
    """
    Liveness verdicts and chat metrics, keyed by model id.

    Example:
        checker = ProviderHealthChecker()
        verdict = await checker.probe(provider)
        if not verdict.healthy:
            ...
    """

    def __init__(self, policy: RetryPolicy | None = None):
        self.policy = policy or LIVENESS_POLICY
        self._verdicts: dict[str, HealthCheckResult] = {}
        self._metrics: dict[str, ProviderMetrics] = {}

    async def probe(self, provider: Provider, *, key: str | None = None) -> HealthCheckResult:
        """Probe `provider` and remember the verdict under `key` (defaults to its name)."""
        started = time.perf_counter()
        outcome = await _poll(provider, self.policy)
        latency_ms = (time.perf_counter() - started) * 1000

        if not _is_up(outcome):
            status = HealthStatus.UNHEALTHY
            error = str(outcome.final_error or "provider reports not running")
        else:
            slow = latency_ms > SLOW_PROBE_MS or outcome.attempts > 1
            status = HealthStatus.DEGRADED if slow else HealthStatus.HEALTHY
            error = None

        verdict = HealthCheckResult(
            provider_name=provider.name,
            status=status,
            attempts=outcome.attempts,
            latency_ms=latency_ms,
            error=error,
        )
        self._verdicts[key or provider.name] = verdict
        logger.debug(f"[health] {provider.name}: {status.value} after {outcome.attempts} attempt(s)")
        return verdict

    def get_last_check(self, model_id: str) -> HealthCheckResult | None:
        return self._verdicts.get(model_id)

    def get_metrics(self, model_id: str) -> ProviderMetrics:
        """Metrics for `model_id`, created on first use."""
        return self._metrics.setdefault(model_id, ProviderMetrics(model_id))

    def get_all_metrics(self) -> list[ProviderMetrics]:
        return list(self._metrics.values())

    def forget(self, model_id: str) -> None:
        """Drop verdict and metrics of an unregistered provider."""
        self._verdicts.pop(model_id, None)
        self._metrics.pop(model_id, None)
