from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from resume_forge.ai.types import TRANSIENT_CATEGORIES, CompletionServiceError
from resume_forge.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay_s: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay_s: float = 10.0
    retry_on: frozenset[str] = field(default_factory=lambda: TRANSIENT_CATEGORIES)

    def delay_for(self, attempt: int) -> float:
        """Delay before retrying after the given (1-based) failed attempt."""
        delay = self.initial_delay_s * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, self.max_delay_s)

    def should_retry(self, exc: BaseException) -> bool:
        return isinstance(exc, CompletionServiceError) and exc.category in self.retry_on


def default_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.retry_max_attempts,
        initial_delay_s=settings.retry_initial_delay_s,
        backoff_multiplier=settings.retry_backoff_multiplier,
        max_delay_s=settings.retry_max_delay_s,
    )


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy | None = None,
    label: str = "completion",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` and retry allow-listed transient failures.

    Errors outside ``policy.retry_on`` propagate on the first attempt. When the
    attempts run out the last error is re-raised unchanged.
    """
    active = policy or default_retry_policy()
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except CompletionServiceError as exc:
            if not active.should_retry(exc) or attempt >= active.max_attempts:
                if attempt > 1:
                    logger.warning(
                        "retry_exhausted label=%s attempts=%s category=%s",
                        label,
                        attempt,
                        exc.category,
                    )
                raise
            delay = active.delay_for(attempt)
            logger.info(
                "retry_scheduled label=%s attempt=%s category=%s delay_s=%.2f",
                label,
                attempt,
                exc.category,
                delay,
            )
            await sleep(delay)
