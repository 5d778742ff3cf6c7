"""
Retry helpers for generative-model requests.

This module provides two retry policies:

- ``RetryHandler`` retries a single call on transient transport errors
  with exponential backoff.
- ``retry_until`` repeats a whole generation until an acceptance
  predicate passes, for output that parses but is not good enough.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Any, Generic, Optional, Tuple, Type, TypeVar

from ...core.models.errors import LLMError


logger = logging.getLogger(__name__)

T = TypeVar('T')


TRANSIENT_ERROR_TYPES = frozenset({
    "RateLimitError",
    "TimeoutError",
    "Timeout",
    "ConnectionError",
    "APIConnectionError",
    "ServiceUnavailableError",
    "InternalServerError",
})

TRANSIENT_MESSAGE_PATTERNS = (
    "rate limit",
    "timeout",
    "connection",
    "service unavailable",
    "temporary",
    "overloaded",
)


def is_transient(error: Exception) -> bool:
    """Whether a provider error is worth retrying with the same request."""
    if isinstance(error, LLMError):
        return error.retryable
    if type(error).__name__ in TRANSIENT_ERROR_TYPES:
        return True
    message = str(error).lower()
    return any(pattern in message for pattern in TRANSIENT_MESSAGE_PATTERNS)


class RetryHandler:
    """
    Retries one model call on transient provider errors.

    Delays grow by ``backoff_multiplier`` per attempt, capped at
    ``max_delay``, with up to 10% jitter. Permanent errors (bad key,
    invalid request) are raised on the first failure.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        backoff_multiplier: float = 2.0,
        jitter: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff_multiplier = backoff_multiplier
        self.jitter = jitter
        self.sleep = sleep

    async def execute_with_retry(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Await ``func(*args, **kwargs)``, retrying transient failures.

        Raises:
            LLMError: when the error is permanent or retries are exhausted
        """
        for attempt in range(self.max_retries + 1):
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                if not is_transient(e):
                    logger.error(f"Non-retryable model error: {e}")
                    raise
                if attempt >= self.max_retries:
                    logger.error(f"Model call failed after {attempt + 1} attempts: {e}")
                    if isinstance(e, LLMError):
                        raise
                    raise LLMError(f"All retries exhausted. Last error: {e}", retryable=False) from e

                delay = self._calculate_delay(attempt)
                logger.warning(f"Model call attempt {attempt + 1} failed: {e}. Retrying in {delay:.2f}s")
                await self.sleep(delay)
                continue

            if attempt > 0:
                logger.info(f"Model call succeeded after {attempt} retries")
            return result

    def _calculate_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.backoff_multiplier ** attempt), self.max_delay)
        if self.jitter:
            delay += random.uniform(-delay * 0.1, delay * 0.1)
        return max(0.0, delay)


@dataclass
class RetryOutcome(Generic[T]):
    """Result of ``retry_until``."""
    result: T
    attempts: int
    accepted: bool


_NO_RESULT = object()


async def retry_until(
    fn: Callable[[int, Optional[T]], Awaitable[T]],
    predicate: Callable[[T], bool],
    max_attempts: int = 3,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    label: str = "generation",
) -> RetryOutcome[T]:
    """
    Call ``fn`` until ``predicate`` accepts its result.

    ``fn`` receives the 1-based attempt number and the previous rejected
    result (None on the first attempt or after a failed attempt), so it can
    strengthen its request. An exception listed in ``retry_on`` uses up
    the attempt.

    Returns the first accepted result. When no attempt is accepted, returns
    the last successfully produced result with ``accepted=False``.

    Raises:
        The last exception, if no attempt produced a result at all.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_result: Any = _NO_RESULT
    previous: Optional[T] = None
    last_error: Optional[BaseException] = None

    for attempt in range(1, max_attempts + 1):
        try:
            result = await fn(attempt, previous)
        except retry_on as e:
            last_error = e
            previous = None
            logger.warning(f"{label} attempt {attempt}/{max_attempts} failed: {e}")
            continue

        if predicate(result):
            if attempt > 1:
                logger.info(f"{label} accepted on attempt {attempt}/{max_attempts}")
            return RetryOutcome(result=result, attempts=attempt, accepted=True)

        logger.warning(f"{label} attempt {attempt}/{max_attempts} rejected")
        last_result = result
        previous = result

    if last_result is not _NO_RESULT:
        logger.warning(f"{label}: no attempt accepted, using last result")
        return RetryOutcome(result=last_result, attempts=max_attempts, accepted=False)

    raise last_error
