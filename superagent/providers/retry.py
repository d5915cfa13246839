"""
Retry and backoff for provider operations.

A RetryPolicy says how often an async operation is attempted, how long
to wait between attempts and what counts as "try again": an exception
listed in `retry_on`, or a result rejected by `retry_on_result`.

The liveness probe run before a provider is declared unhealthy is such
a policy, polling until the operation returns True:

    LIVENESS_POLICY  # 200ms doubling, capped at 3s, 12 attempts
"""

from __future__ import annotations

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class BackoffStrategy(ABC):
    """Computes the pause before a retry."""

    @abstractmethod
    def delay_for(self, retry: int) -> float:
        """
        Args:
            retry: 1 for the pause after the first attempt, 2 after the second, ...

        Returns:
            Seconds to sleep
        """


@dataclass(frozen=True)
class NoBackoff(BackoffStrategy):
    """Retry immediately. Useful in tests."""

    def delay_for(self, retry: int) -> float:
        return 0.0


@dataclass(frozen=True)
class ConstantBackoff(BackoffStrategy):
    delay: float = 1.0

    def delay_for(self, retry: int) -> float:
        return self.delay


@dataclass(frozen=True)
class ExponentialBackoff(BackoffStrategy):
    """
    base * factor^(retry - 1), capped at `cap`, optionally spread by
    +/- `spread` of the value.

    Example:
        ExponentialBackoff(base=0.2, cap=3.0)
        # 0.2s, 0.4s, 0.8s, 1.6s, 3.0s, 3.0s, ...
    """

    base: float = 1.0
    factor: float = 2.0
    cap: float = 60.0
    spread: float = 0.0

    def delay_for(self, retry: int) -> float:
        delay = min(self.base * self.factor ** (retry - 1), self.cap)
        if self.spread:
            delay *= 1 + random.uniform(-self.spread, self.spread)
        return max(delay, 0.0)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attempt budget plus the conditions that trigger another attempt.

    Example:
        policy = RetryPolicy(
            max_attempts=3,
            backoff=ConstantBackoff(0.5),
            retry_on=(ConnectionError,),
        )
    """

    max_attempts: int = 1
    backoff: BackoffStrategy = field(default_factory=NoBackoff)
    retry_on: tuple[type[Exception], ...] = (Exception,)
    retry_on_result: Callable[[Any], bool] | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def wants_retry(self, outcome: Any = None, error: Exception | None = None) -> bool:
        """Whether this outcome (ignoring the attempt budget) calls for another try."""
        if error is not None:
            return isinstance(error, self.retry_on)
        return self.retry_on_result is not None and self.retry_on_result(outcome)


def _not_ready(result: Any) -> bool:
    return result is not True


def liveness_policy(
    max_attempts: int = 12,
    base_delay: float = 0.2,
    max_delay: float = 3.0,
) -> RetryPolicy:
    """Policy that polls until an operation returns True. Any exception is a "not yet"."""
    return RetryPolicy(
        max_attempts=max_attempts,
        backoff=ExponentialBackoff(base=base_delay, cap=max_delay),
        retry_on_result=_not_ready,
    )


LIVENESS_POLICY = liveness_policy()


@dataclass
class RetryResult:
    """
    Outcome of with_retry.

    `success` means the last attempt returned instead of raising; a
    result the policy still disliked when the budget ran out is returned
    as is, callers inspect `result`.
    """

    success: bool
    result: Any = None
    attempts: int = 0
    waited: float = 0.0
    errors: list[Exception] = field(default_factory=list)

    @property
    def final_error(self) -> Exception | None:
        return self.errors[-1] if self.errors else None


async def with_retry(
    operation: Callable[[], Awaitable[Any]],
    policy: RetryPolicy,
    operation_name: str = "operation",
) -> RetryResult:
    """
    Run `operation` under `policy`.

    Example:
        outcome = await with_retry(provider.is_running, LIVENESS_POLICY, "[health] qwen")
        ready = outcome.success and outcome.result is True
    """
    outcome = RetryResult(success=False)

    for attempt in range(1, policy.max_attempts + 1):
        outcome.attempts = attempt
        error: Exception | None = None
        try:
            outcome.result = await operation()
            outcome.success = True
        except Exception as e:
            outcome.errors.append(e)
            outcome.success = False
            error = e

        if attempt == policy.max_attempts or not policy.wants_retry(outcome.result, error):
            break

        delay = policy.backoff.delay_for(attempt)
        outcome.waited += delay
        if error is not None:
            logger.warning(
                f"{operation_name}: attempt {attempt}/{policy.max_attempts} raised "
                f"{type(error).__name__}: {error}, retrying in {delay:.2f}s"
            )
        else:
            logger.debug(f"{operation_name}: not ready (attempt {attempt}), waiting {delay:.2f}s")
        await asyncio.sleep(delay)

    if not outcome.success:
        logger.error(
            f"{operation_name}: failed after {outcome.attempts} attempt(s): {outcome.final_error}"
        )
    return outcome
