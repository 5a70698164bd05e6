"""Bounded retry for transient connectivity failures.

Only the session/role check made when a client loads the application goes
through here; every other collaborator call fails fast.
"""
from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar
import structlog
from sqlalchemy.exc import InterfaceError, OperationalError

log = structlog.get_logger()

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Attributes:
        retries: total number of attempts (not additional retries)
        delay: base delay in seconds; attempt N waits `delay * N` (linear backoff)
        retryable_exceptions: exception types treated as transient
    """

    retries: int = 3
    delay: float = 1.0
    retryable_exceptions: tuple[type[BaseException], ...] = field(
        default_factory=lambda: (ConnectionError, TimeoutError, OSError, OperationalError, InterfaceError)
    )

    def delay_for(self, attempt: int) -> float:
        return self.delay * attempt


async def retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    on_error: Callable[[BaseException, int], None] | None = None,
) -> T:
    """Call `fn` until it succeeds or `policy.retries` attempts are used; re-raise the last error."""
    policy = policy or RetryPolicy()
    attempts = max(1, policy.retries)
    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except policy.retryable_exceptions as e:
            if on_error:
                on_error(e, attempt)
            if attempt == attempts:
                log.error("retry_exhausted", function=getattr(fn, "__name__", "fn"), attempts=attempts, error_type=type(e).__name__)
                raise
            delay = policy.delay_for(attempt)
            log.warning("retry_attempt", function=getattr(fn, "__name__", "fn"), attempt=attempt, delay=delay, error_type=type(e).__name__)
            await asyncio.sleep(delay)
    raise RuntimeError("unreachable")
