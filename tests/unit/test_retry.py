"""Unit tests for the retry policy."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from structlog.testing import capture_logs

from paperless_client.config import RetryConfig
from paperless_client.core import (
    PaperlessError,
    PaperlessNotFoundError,
    PaperlessRateLimitError,
    PaperlessServerError,
    PaperlessTransportError,
    PaperlessValidationError,
    RetryPolicy,
)


if TYPE_CHECKING:
    from doubles import RecordingSleep


class FlakyOperation:
    """Fails with the scripted errors, then returns ``"ok"``."""

    def __init__(self, *errors: PaperlessError) -> None:
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


def _server_error(status: int = 503) -> PaperlessServerError:
    return PaperlessServerError("Server error", status_code=status)


# ---------------------------------------------------------------------------
# Running operations
# ---------------------------------------------------------------------------


class TestRun:
    """Tests for RetryPolicy.run."""

    async def test_succeeds_after_transient_failures(self, sleep: RecordingSleep) -> None:
        """Test two failures followed by a success within a ceiling of three."""
        operation = FlakyOperation(_server_error(), PaperlessTransportError())
        policy = RetryPolicy(max_attempts=3, sleep=sleep)

        assert await policy.run(operation) == "ok"
        assert operation.calls == 3
        assert sleep.delays == [0.5, 1.0]

    async def test_ceiling_raises_last_error_unchanged(self, sleep: RecordingSleep) -> None:
        """Test exhausting the attempts re-raises the final failure as is."""
        first, second = _server_error(502), _server_error(503)
        operation = FlakyOperation(first, second)
        policy = RetryPolicy(max_attempts=2, sleep=sleep)

        with pytest.raises(PaperlessServerError) as exc_info:
            await policy.run(operation)

        assert exc_info.value is second
        assert operation.calls == 2
        assert sleep.delays == [0.5]

    @pytest.mark.parametrize(
        "error",
        [
            PaperlessNotFoundError("Resource not found", status_code=404),
            PaperlessValidationError("Validation error", errors={"name": ["required"]}),
        ],
    )
    async def test_non_retryable_errors_are_not_retried(
        self,
        sleep: RecordingSleep,
        error: PaperlessError,
    ) -> None:
        """Test client-side failures fail on the first attempt."""
        operation = FlakyOperation(error)
        policy = RetryPolicy(max_attempts=5, sleep=sleep)

        with pytest.raises(type(error)):
            await policy.run(operation)

        assert operation.calls == 1
        assert sleep.delays == []

    async def test_not_retryable_request(self, sleep: RecordingSleep) -> None:
        """Test retryable=False makes exactly one attempt."""
        operation = FlakyOperation(_server_error())
        policy = RetryPolicy(max_attempts=5, sleep=sleep)

        with pytest.raises(PaperlessServerError):
            await policy.run(operation, retryable=False)

        assert operation.calls == 1

    async def test_disabled_policy(self, sleep: RecordingSleep) -> None:
        """Test the default policy performs one attempt."""
        operation = FlakyOperation(_server_error())
        policy = RetryPolicy(sleep=sleep)

        with pytest.raises(PaperlessServerError):
            await policy.run(operation)

        assert not policy.enabled
        assert operation.calls == 1

    async def test_other_exceptions_pass_through(self, sleep: RecordingSleep) -> None:
        """Test non-client exceptions are never retried."""
        calls = 0

        async def operation() -> None:
            nonlocal calls
            calls += 1
            msg = "bug"
            raise RuntimeError(msg)

        with pytest.raises(RuntimeError, match="bug"):
            await RetryPolicy(max_attempts=3, sleep=sleep).run(operation)

        assert calls == 1

    async def test_logs_each_retry(self, sleep: RecordingSleep) -> None:
        """Test a warning is logged before each new attempt."""
        operation = FlakyOperation(_server_error())
        policy = RetryPolicy(max_attempts=3, sleep=sleep)

        with capture_logs() as logs:
            await policy.run(operation)

        retries = [log for log in logs if log["event"] == "retrying_request"]
        assert len(retries) == 1
        assert retries[0]["attempt"] == 1
        assert retries[0]["max_attempts"] == 3
        assert retries[0]["error_kind"] == "server_error"
        assert retries[0]["delay"] == 0.5


# ---------------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------------


class TestBackoff:
    """Tests for the delay schedule."""

    def test_exponential_growth(self) -> None:
        """Test delays double by default."""
        policy = RetryPolicy(max_attempts=5)

        assert [policy.backoff(n) for n in range(1, 5)] == [0.5, 1.0, 2.0, 4.0]

    def test_capped_at_max(self) -> None:
        """Test no delay exceeds the cap."""
        policy = RetryPolicy(max_attempts=10, initial_backoff=1.0, max_backoff=5.0)

        assert policy.backoff(8) == 5.0

    def test_retry_after_lengthens_delay(self) -> None:
        """Test a rate-limit hint wins over a shorter computed delay."""
        policy = RetryPolicy(max_attempts=3)

        assert policy.backoff(1, PaperlessRateLimitError(retry_after=7.0)) == 7.0

    def test_retry_after_still_capped(self) -> None:
        """Test a huge hint is capped by max_backoff."""
        policy = RetryPolicy(max_attempts=3, max_backoff=10.0)

        assert policy.backoff(1, PaperlessRateLimitError(retry_after=3600.0)) == 10.0

    def test_retry_after_ignored_when_disabled(self) -> None:
        """Test hints can be ignored."""
        policy = RetryPolicy(max_attempts=3, respect_retry_after=False)

        assert policy.backoff(1, PaperlessRateLimitError(retry_after=7.0)) == 0.5

    async def test_run_sleeps_for_retry_after(self, sleep: RecordingSleep) -> None:
        """Test run waits for the server's hint."""
        operation = FlakyOperation(PaperlessRateLimitError(retry_after=4.0))

        await RetryPolicy(max_attempts=2, sleep=sleep).run(operation)

        assert sleep.delays == [4.0]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    """Tests for building policies."""

    def test_from_disabled_config(self) -> None:
        """Test a disabled section yields a single-attempt policy."""
        policy = RetryPolicy.from_config(RetryConfig(enabled=False, max_attempts=5))

        assert policy.max_attempts == 1

    def test_from_enabled_config(self) -> None:
        """Test an enabled section is copied over."""
        config = RetryConfig(
            enabled=True,
            max_attempts=4,
            initial_backoff=1.0,
            max_backoff=8.0,
            multiplier=3.0,
        )

        policy = RetryPolicy.from_config(config)

        assert policy.enabled
        assert policy.max_attempts == 4
        assert [policy.backoff(n) for n in range(1, 4)] == [1.0, 3.0, 8.0]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"max_attempts": 2, "initial_backoff": -1.0},
            {"max_attempts": 2, "multiplier": 0.5},
        ],
    )
    def test_rejects_invalid_arguments(self, kwargs: dict[str, float]) -> None:
        """Test invalid schedules are rejected."""
        with pytest.raises(ValueError):  # noqa: PT011
            RetryPolicy(**kwargs)  # type: ignore[arg-type]

    def test_repr(self) -> None:
        """Test the repr shows the schedule."""
        assert repr(RetryPolicy(max_attempts=3)).startswith("RetryPolicy(max_attempts=3,")
