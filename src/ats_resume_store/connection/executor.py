"""Resilient call executor.

Runs one remote operation with a fresh pooled handle per attempt. Failures
are classified: transient network errors are retried with capped exponential
backoff, anything else is re-raised on the spot.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ats_resume_store.backend.handle import BackendHandle
from ats_resume_store.connection.pool import HandlePool
from ats_resume_store.errors import is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 0.1
DEFAULT_MAX_DELAY = 5.0


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retrying after zero-indexed ``attempt``: ``min(base * 2**attempt, cap)``."""
    return min(base_delay * (2**attempt), max_delay)


class ResilientExecutor:
    """Execute backend operations with classification-driven retry.

    Args:
        pool: Source of handles; one is acquired per attempt.
        max_attempts: Default attempt budget per call.
        base_delay: Default first backoff delay in seconds.
        max_delay: Default backoff ceiling in seconds.
        sleep: Coroutine used for backoff waits (tests pass a recorder).
        retryable: Predicate deciding whether an error is transient.
    """

    def __init__(
        self,
        pool: HandlePool,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        retryable: Callable[[BaseException], bool] = is_retryable,
    ) -> None:
        self._pool = pool
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep
        self._retryable = retryable

    async def execute(
        self,
        operation: Callable[[BackendHandle], Awaitable[T]],
        name: str,
        max_attempts: int | None = None,
        base_delay: float | None = None,
        max_delay: float | None = None,
    ) -> T:
        """Run ``operation(handle)`` until it succeeds or fails for good.

        Args:
            operation: Coroutine function taking a handle.
            name: Operation name used in log messages.
            max_attempts: Attempt budget overriding the executor default.
            base_delay: First backoff delay overriding the default.
            max_delay: Backoff ceiling overriding the default.

        Returns:
            Whatever ``operation`` returns on its first successful attempt.

        Raises:
            Exception: The first non-retryable error, or the last transient
                error once the attempt budget is spent.
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        base = self.base_delay if base_delay is None else base_delay
        cap = self.max_delay if max_delay is None else max_delay
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        for attempt in range(attempts):
            handle = self._pool.acquire()
            try:
                return await operation(handle)
            except Exception as e:
                if not self._retryable(e):
                    logger.debug("%s failed with non-retryable error: %s", name, e)
                    raise
                if attempt == attempts - 1:
                    logger.error("All %d attempts exhausted for %s: %s", attempts, name, e)
                    raise
                delay = backoff_delay(attempt, base, cap)
                logger.warning(
                    "Retry %d/%d for %s after %.2fs: %s", attempt + 1, attempts, name, delay, e
                )
                await self._sleep(delay)

        # Unreachable: the loop either returns or raises.
        raise RuntimeError(f"{name} finished without an outcome")
