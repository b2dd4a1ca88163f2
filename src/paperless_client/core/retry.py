"""Optional retry with exponential backoff for idempotent requests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Self

from paperless_client.core.errors import ErrorKind, PaperlessError, PaperlessRateLimitError
from paperless_client.observability import get_logger


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from paperless_client.config import RetryConfig


__all__ = [
    "IDEMPOTENT_METHODS",
    "RETRYABLE_KINDS",
    "RetryPolicy",
]

logger = get_logger(__name__)

# Failures worth another attempt; everything else is a client-side problem
RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.TRANSPORT,
        ErrorKind.RATE_LIMITED,
        ErrorKind.SERVER_ERROR,
    }
)

# Methods retried without an explicit idempotency declaration
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class RetryPolicy:
    """Retries transient failures with exponential backoff.

    ``max_attempts`` is the total number of attempts, so the default of 1
    means "no retry". When attempts run out the last error is raised
    unchanged.

    Attributes:
        max_attempts: Total attempt ceiling (>= 1).
        initial_backoff: Delay before the second attempt, in seconds.
        max_backoff: Upper bound for any single delay, in seconds.
        multiplier: Growth factor between consecutive delays.
        respect_retry_after: Whether a 429 ``Retry-After`` hint may lengthen
            the delay (still capped by ``max_backoff``).
    """

    DEFAULT_INITIAL_BACKOFF = 0.5
    DEFAULT_MAX_BACKOFF = 30.0
    DEFAULT_MULTIPLIER = 2.0

    def __init__(  # noqa: PLR0913
        self,
        max_attempts: int = 1,
        *,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
        max_backoff: float = DEFAULT_MAX_BACKOFF,
        multiplier: float = DEFAULT_MULTIPLIER,
        respect_retry_after: bool = True,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize the policy.

        Args:
            max_attempts: Total attempt ceiling; 1 disables retries.
            initial_backoff: First delay in seconds.
            max_backoff: Cap on any delay in seconds.
            multiplier: Factor applied to the delay after each failure.
            respect_retry_after: Honour ``Retry-After`` hints from 429s.
            sleep: Coroutine used to wait (injectable for tests).
        """
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        if initial_backoff < 0 or max_backoff < 0 or multiplier < 1:
            msg = "backoff values must be non-negative and multiplier >= 1"
            raise ValueError(msg)
        self.max_attempts = max_attempts
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self.multiplier = multiplier
        self.respect_retry_after = respect_retry_after
        self._sleep = sleep

    @classmethod
    def disabled(cls) -> Self:
        """A policy making exactly one attempt."""
        return cls(max_attempts=1)

    @classmethod
    def from_config(cls, config: RetryConfig) -> Self:
        """Build a policy from the ``retry`` configuration section."""
        if not config.enabled:
            return cls.disabled()
        return cls(
            max_attempts=config.max_attempts,
            initial_backoff=config.initial_backoff,
            max_backoff=config.max_backoff,
            multiplier=config.multiplier,
            respect_retry_after=config.respect_retry_after,
        )

    @property
    def enabled(self) -> bool:
        return self.max_attempts > 1

    def is_retryable(self, error: PaperlessError) -> bool:
        """Whether ``error`` is transient."""
        return error.kind in RETRYABLE_KINDS

    def backoff(self, attempt: int, error: PaperlessError | None = None) -> float:
        """Delay before attempt ``attempt + 1``.

        Args:
            attempt: The 1-based number of the attempt that just failed.
            error: The failure, to honour rate-limit hints.

        Returns:
            Seconds to wait.
        """
        delay = self.initial_backoff * self.multiplier ** (attempt - 1)
        if (
            self.respect_retry_after
            and isinstance(error, PaperlessRateLimitError)
            and error.retry_after is not None
        ):
            delay = max(delay, error.retry_after)
        return min(delay, self.max_backoff)

    async def run[T](
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        retryable: bool = True,
    ) -> T:
        """Run ``operation``, retrying transient failures.

        Args:
            operation: Coroutine function performing one complete attempt.
            retryable: False forces a single attempt (non-idempotent or
                non-replayable requests).

        Returns:
            The result of the first successful attempt.

        Raises:
            PaperlessError: The last failure, unchanged.
        """
        attempts = self.max_attempts if retryable else 1
        attempt = 1
        while True:
            try:
                return await operation()
            except PaperlessError as exc:
                if attempt >= attempts or not self.is_retryable(exc):
                    raise
                delay = self.backoff(attempt, exc)
                logger.warning(
                    "retrying_request",
                    attempt=attempt,
                    max_attempts=attempts,
                    error_kind=str(exc.kind),
                    delay=delay,
                )
                await self._sleep(delay)
                attempt += 1

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, "
            f"initial_backoff={self.initial_backoff}, "
            f"max_backoff={self.max_backoff}, multiplier={self.multiplier})"
        )
