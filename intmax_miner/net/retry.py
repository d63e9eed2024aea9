"""Bounded retry with backoff around outbound network calls.

Every on-chain query and auxiliary HTTP call goes through
:meth:`RetryExecutor.execute`.  Retry decisions are made purely on the
exception type the wrapped operation raises:

* :class:`~intmax_miner.core.exceptions.TransientNetworkError` → wait per the
  configured backoff and try again, up to ``max_attempts`` attempts in total.
  Once the budget is spent a
  :class:`~intmax_miner.core.exceptions.PersistentFailure` carrying the last
  error is raised.
* Anything else (e.g. :class:`~intmax_miner.core.exceptions.RemoteRejection`)
  propagates immediately and consumes no retry budget.

Operations are responsible for classifying their own failures; the executor
treats them opaquely.

Typical usage::

    executor = RetryExecutor(settings.retry_policy)
    status = await executor.execute(lambda: client.fetch(address), label="circulation")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)
from tenacity.wait import wait_base

from intmax_miner.core import events
from intmax_miner.core.exceptions import PersistentFailure, TransientNetworkError
from intmax_miner.core.models import BackoffKind, RetryPolicy

__all__ = ["RetryExecutor"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _wait_strategy(policy: RetryPolicy) -> wait_base:
    """Build the tenacity wait strategy for *policy*.

    Exponential waits are ``initial, 2*initial, 4*initial, ...`` capped at
    ``max_delay_sec``.
    """
    if policy.backoff is BackoffKind.FIXED:
        return wait_fixed(policy.initial_delay_sec)
    return wait_exponential(
        multiplier=policy.initial_delay_sec,
        min=0,
        max=policy.max_delay_sec,
    )


class RetryExecutor:
    """Re-attempts a fallible async operation according to a :class:`RetryPolicy`.

    Args:
        policy: Attempt budget and backoff shape.
        sleep: Awaitable sleep used between attempts.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._policy = policy
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        label: str = "operation",
    ) -> T:
        """Run *operation* until it succeeds, fails terminally, or runs out of attempts.

        Args:
            operation: Zero-argument coroutine factory; called once per attempt.
            label: Short description used in log lines.

        Returns:
            The operation's result.

        Raises:
            PersistentFailure: After ``max_attempts`` transient failures.
            Exception: Any non-transient error raised by *operation*, unchanged.
        """
        max_attempts = self._policy.max_attempts

        def _before_sleep(rs: RetryCallState) -> None:
            exc = rs.outcome.exception() if rs.outcome else None
            logger.warning(
                "%s: attempt %d/%d failed (%s). Retrying in %.1f s…",
                label,
                rs.attempt_number,
                max_attempts,
                exc,
                rs.next_action.sleep if rs.next_action else 0.0,
                extra={"event": events.RETRY_SCHEDULED},
            )

        result: T
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=_wait_strategy(self._policy),
                retry=retry_if_exception_type(TransientNetworkError),
                before_sleep=_before_sleep,
                sleep=self._sleep,
                reraise=False,
            ):
                with attempt:
                    result = await operation()
        except RetryError as exc:
            last_attempt = exc.last_attempt
            last_error = last_attempt.exception()
            assert last_error is not None, "tenacity gave up without an exception"
            logger.error(
                "%s: giving up after %d attempt(s): %s",
                label,
                last_attempt.attempt_number,
                last_error,
                extra={"event": events.RETRY_EXHAUSTED},
            )
            raise PersistentFailure(last_error, attempts=last_attempt.attempt_number) from last_error
        return result
