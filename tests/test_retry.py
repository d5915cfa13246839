"""
Tests for retry policies, liveness probing and provider health.
"""

import pytest

from superagent.providers import (
    LIVENESS_POLICY,
    ConstantBackoff,
    ExponentialBackoff,
    HealthStatus,
    NoBackoff,
    ProviderHealthChecker,
    ProviderMetrics,
    RetryPolicy,
    StaticProvider,
    liveness_policy,
    probe_liveness,
    with_retry,
)


class FlakyProvider(StaticProvider):
    """Reports not running for the first `warmup` checks."""

    def __init__(self, warmup: int, fail_with: Exception | None = None):
        super().__init__("flaky")
        self.warmup = warmup
        self.fail_with = fail_with
        self.checks = 0

    async def is_running(self) -> bool:
        self.checks += 1
        if self.checks <= self.warmup:
            if self.fail_with is not None:
                raise self.fail_with
            return False
        return True


def fast_liveness(attempts: int) -> RetryPolicy:
    return liveness_policy(max_attempts=attempts, base_delay=0.0, max_delay=0.0)


# =============================================================================
# Backoff Strategy Tests
# =============================================================================


class TestBackoff:
    """Tests for backoff strategies."""

    def test_no_backoff(self):
        assert NoBackoff().delay_for(5) == 0.0

    def test_constant(self):
        assert ConstantBackoff(delay=2.5).delay_for(7) == 2.5

    def test_exponential_doubles_up_to_cap(self):
        backoff = ExponentialBackoff(base=0.2, cap=3.0)
        delays = [backoff.delay_for(n) for n in range(1, 7)]
        assert delays == pytest.approx([0.2, 0.4, 0.8, 1.6, 3.0, 3.0])

    def test_spread_stays_in_range(self):
        backoff = ExponentialBackoff(base=1.0, factor=1.0, spread=0.25)
        assert all(0.75 <= backoff.delay_for(1) <= 1.25 for _ in range(50))

    def test_liveness_policy_defaults(self):
        assert LIVENESS_POLICY.max_attempts == 12
        assert LIVENESS_POLICY.backoff.delay_for(1) == pytest.approx(0.2)
        assert LIVENESS_POLICY.backoff.delay_for(11) == pytest.approx(3.0)

    def test_policy_needs_an_attempt(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


# =============================================================================
# with_retry Tests
# =============================================================================


class TestWithRetry:
    """Tests for with_retry."""

    @pytest.mark.asyncio
    async def test_succeeds_first_time(self):
        async def op():
            return "ok"

        result = await with_retry(op, RetryPolicy(max_attempts=3))
        assert result.success
        assert result.result == "ok"
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_retries_listed_errors(self):
        calls = []

        async def op():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("not yet")
            return "ok"

        result = await with_retry(op, RetryPolicy(max_attempts=3, retry_on=(ConnectionError,)))
        assert result.success
        assert result.attempts == 3
        assert len(result.errors) == 2

    @pytest.mark.asyncio
    async def test_unlisted_error_stops_immediately(self):
        async def op():
            raise ValueError("bad input")

        result = await with_retry(op, RetryPolicy(max_attempts=5, retry_on=(ConnectionError,)))
        assert not result.success
        assert result.attempts == 1
        assert isinstance(result.final_error, ValueError)

    @pytest.mark.asyncio
    async def test_result_predicate_retries(self):
        values = iter([False, False, True])

        async def op():
            return next(values)

        result = await with_retry(op, fast_liveness(5))
        assert result.success
        assert result.result is True
        assert result.attempts == 3


# =============================================================================
# Liveness / Health Tests
# =============================================================================


class TestProbeLiveness:
    """Tests for probe_liveness."""

    @pytest.mark.asyncio
    async def test_provider_comes_up(self):
        provider = FlakyProvider(warmup=2)
        assert await probe_liveness(provider, fast_liveness(5)) is True
        assert provider.checks == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        provider = FlakyProvider(warmup=100)
        assert await probe_liveness(provider, fast_liveness(4)) is False
        assert provider.checks == 4

    @pytest.mark.asyncio
    async def test_exceptions_count_as_not_ready(self):
        provider = FlakyProvider(warmup=1, fail_with=ConnectionError("refused"))
        assert await probe_liveness(provider, fast_liveness(3)) is True


class TestProviderHealthChecker:
    """Tests for ProviderHealthChecker."""

    @pytest.mark.asyncio
    async def test_healthy_on_first_attempt(self):
        checker = ProviderHealthChecker(policy=fast_liveness(3))
        result = await checker.probe(StaticProvider("local"))

        assert result.status is HealthStatus.HEALTHY
        assert result.attempts == 1
        assert checker.get_last_check("local") is result

    @pytest.mark.asyncio
    async def test_degraded_when_retries_needed(self):
        checker = ProviderHealthChecker(policy=fast_liveness(3))
        result = await checker.probe(FlakyProvider(warmup=1))
        assert result.status is HealthStatus.DEGRADED
        assert result.healthy

    @pytest.mark.asyncio
    async def test_unhealthy_when_never_up(self):
        checker = ProviderHealthChecker(policy=fast_liveness(2))
        result = await checker.probe(FlakyProvider(warmup=10))

        assert result.status is HealthStatus.UNHEALTHY
        assert not result.healthy
        assert result.to_dict()["status"] == "unhealthy"

    def test_metrics_recording(self):
        metrics = ProviderMetrics(provider_name="local")
        metrics.record(100.0)
        metrics.record(300.0, error="timeout")

        assert metrics.requests == 2
        assert metrics.failures == 1
        assert metrics.success_rate == 0.5
        assert metrics.avg_latency_ms == 200.0
        assert metrics.last_error == "timeout"

    @pytest.mark.asyncio
    async def test_verdict_stored_under_given_key(self):
        checker = ProviderHealthChecker(policy=fast_liveness(2))
        result = await checker.probe(StaticProvider("local"), key="qwen3-8b")

        assert checker.get_last_check("qwen3-8b") is result
        assert checker.get_last_check("local") is None
        assert result.provider_name == "local"

        checker.forget("qwen3-8b")
        assert checker.get_last_check("qwen3-8b") is None

    def test_forget_drops_metrics(self):
        checker = ProviderHealthChecker()
        checker.get_metrics("local").record(1.0)
        checker.forget("local")
        assert checker.get_all_metrics() == []
