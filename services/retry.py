"""
Bounded retry with exponential backoff.

Used for idempotent outbound calls (stop requests). After the last attempt
the final exception is re-raised to the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Tuple, Type, TypeVar

from repositories.client import DISPATCH_MAX_ATTEMPTS, DISPATCH_RETRY_DELAY_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry settings.

    max_attempts: Total attempts including the first one (>= 1)
    base_delay: Delay in seconds before the second attempt
    backoff_factor: Multiplier applied to the delay after each failed attempt
    sleep: Sleep function (injectable for tests)
    """
    max_attempts: int = DISPATCH_MAX_ATTEMPTS
    base_delay: float = DISPATCH_RETRY_DELAY_SECONDS
    backoff_factor: float = 2.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        return self.base_delay * (self.backoff_factor ** (attempt - 1))

    def call(
        self,
        fn: Callable[[], T],
        retry_on: Tuple[Type[BaseException], ...],
        description: str = "operation",
    ) -> T:
        """
        Call fn, retrying on the given exception types.

        Exceptions not listed in retry_on propagate immediately.
        """
        attempt = 1
        while True:
            try:
                return fn()
            except retry_on as e:
                if attempt >= self.max_attempts:
                    logger.error(
                        f"{description} failed after {attempt} attempts: {e}",
                        extra={"attempts": attempt},
                    )
                    raise

                delay = self.delay_for(attempt)
                logger.warning(
                    f"{description} failed (attempt {attempt}/{self.max_attempts}), "
                    f"retrying in {delay:.2f}s: {e}",
                    extra={"attempt": attempt, "retry_delay": delay},
                )
                self.sleep(delay)
                attempt += 1


__all__ = ["RetryPolicy"]
