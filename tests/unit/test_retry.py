"""Unit tests for :class:`~intmax_miner.net.retry.RetryExecutor`.

The sleep primitive is replaced by a recorder so backoff delays can be
asserted without waiting.
"""

from __future__ import annotations

from collections.abc import Awaitable

import pytest

from intmax_miner.core.exceptions import (
    PersistentFailure,
    RemoteRejection,
    TransientNetworkError,
)
from intmax_miner.core.models import BackoffKind, RetryPolicy
from intmax_miner.net.retry import RetryExecutor


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FlakyOperation:
    """Raises ``failures`` transient errors, then returns ``result``."""

    def __init__(self, failures: int, result: object = "ok") -> None:
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.calls <= self.failures:
            raise TransientNetworkError("test", f"failure #{self.calls}")
        return self.result


def _executor(
    max_attempts: int = 3,
    backoff: BackoffKind = BackoffKind.FIXED,
    initial: float = 0.5,
    maximum: float = 30.0,
) -> tuple[RetryExecutor, SleepRecorder]:
    sleep = SleepRecorder()
    policy = RetryPolicy(
        max_attempts=max_attempts,
        backoff=backoff,
        initial_delay_sec=initial,
        max_delay_sec=maximum,
    )
    return RetryExecutor(policy, sleep=sleep), sleep


class TestRetryExecutor:
    @pytest.mark.asyncio
    async def test_success_first_try(self) -> None:
        executor, sleep = _executor()
        op = FlakyOperation(failures=0, result=42)
        assert await executor.execute(op) == 42
        assert op.calls == 1
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_fail_once_then_succeed(self) -> None:
        executor, sleep = _executor(max_attempts=2)
        op = FlakyOperation(failures=1, result="done")
        assert await executor.execute(op) == "done"
        assert op.calls == 2
        assert sleep.calls == [0.5]

    @pytest.mark.asyncio
    async def test_always_failing_attempts_exactly_max_then_persistent_failure(self) -> None:
        executor, sleep = _executor(max_attempts=4)
        op = FlakyOperation(failures=100)

        with pytest.raises(PersistentFailure) as exc_info:
            await executor.execute(op, label="always down")

        assert op.calls == 4
        assert len(sleep.calls) == 3
        assert exc_info.value.attempts == 4
        assert isinstance(exc_info.value.last_error, TransientNetworkError)
        assert "failure #4" in str(exc_info.value.last_error)

    @pytest.mark.asyncio
    async def test_single_attempt_budget_never_sleeps(self) -> None:
        executor, sleep = _executor(max_attempts=1)
        op = FlakyOperation(failures=1)
        with pytest.raises(PersistentFailure):
            await executor.execute(op)
        assert op.calls == 1
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_remote_rejection_is_not_retried(self) -> None:
        executor, sleep = _executor(max_attempts=5)
        calls = 0

        async def rejected() -> None:
            nonlocal calls
            calls += 1
            raise RemoteRejection("test", "invalid request", code="BAD")

        with pytest.raises(RemoteRejection):
            await executor.execute(rejected)

        assert calls == 1
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_unclassified_error_propagates_unchanged(self) -> None:
        executor, sleep = _executor(max_attempts=5)

        async def broken() -> None:
            raise KeyError("bug")

        with pytest.raises(KeyError):
            await executor.execute(broken)
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_exponential_backoff_doubles(self) -> None:
        executor, sleep = _executor(max_attempts=5, backoff=BackoffKind.EXPONENTIAL, initial=1.0)
        with pytest.raises(PersistentFailure):
            await executor.execute(FlakyOperation(failures=100))
        assert sleep.calls == [1.0, 2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_exponential_backoff_is_capped(self) -> None:
        executor, sleep = _executor(
            max_attempts=4, backoff=BackoffKind.EXPONENTIAL, initial=10.0, maximum=15.0
        )
        with pytest.raises(PersistentFailure):
            await executor.execute(FlakyOperation(failures=100))
        assert sleep.calls == [10.0, 15.0, 15.0]

    @pytest.mark.asyncio
    async def test_operation_factory_called_fresh_each_attempt(self) -> None:
        executor, _ = _executor(max_attempts=3)
        created: list[int] = []
        op = FlakyOperation(failures=2)

        def factory() -> Awaitable[object]:
            created.append(len(created))
            return op()

        assert await executor.execute(factory) == "ok"
        assert created == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_lambda_wrapped_coroutine_is_awaited_and_retried(self) -> None:
        executor, sleep = _executor(max_attempts=3)
        op = FlakyOperation(failures=1, result=42)

        result = await executor.execute(lambda: op(), label="lambda")

        assert result == 42
        assert op.calls == 2
        assert sleep.calls == [0.5]

    @pytest.mark.asyncio
    async def test_lambda_wrapped_coroutine_exhausts_budget(self) -> None:
        executor, _ = _executor(max_attempts=3)
        op = FlakyOperation(failures=100)

        with pytest.raises(PersistentFailure) as exc_info:
            await executor.execute(lambda: op())

        assert op.calls == 3
        assert exc_info.value.attempts == 3
