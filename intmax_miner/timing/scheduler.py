"""Cooldown scheduler: sleep until it is safe to submit the next operation.

Before a deposit the scheduler looks up the counterparty's most recent
*withdrawal*; before a withdrawal, its most recent *deposit*.  The wake time
is ``last_event_time + derive_cooldown(...)``.  Nothing is cached: the
timestamp is re-queried for every decision, so a restarted process derives
the exact same deadline from chain state.

Query failures are never swallowed.  Skipping a wait because the lookup
failed could submit an operation right after its pair and link the two, so
the error propagates and the caller aborts the cycle.

Typical usage::

    scheduler = CooldownScheduler(query_port, settings.cooldown_range)
    await scheduler.wait_before_deposit(settings.withdrawal_address)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime

from intmax_miner.core import events
from intmax_miner.core.models import Address, CooldownRange, EventTimestamp, RoleTag
from intmax_miner.net.chain import ExternalQueryPort
from intmax_miner.timing.oracle import derive_cooldown

__all__ = ["CooldownScheduler"]

logger = logging.getLogger(__name__)

_WAKE_FORMAT = "%Y-%m-%d %H:%M:%S"


class CooldownScheduler:
    """Suspends the calling task until the derived cooldown has elapsed.

    Args:
        query_port: Source of last deposit/withdrawal timestamps.
        cooldown_range: Window the derived cooldown is drawn from.
        clock: Returns the current wall-clock time in epoch seconds.
        sleep: Awaitable sleep primitive; ``asyncio.sleep`` by default.
    """

    def __init__(
        self,
        query_port: ExternalQueryPort,
        cooldown_range: CooldownRange,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._query_port = query_port
        self._cooldown_range = cooldown_range
        self._clock = clock
        self._sleep = sleep

    async def wait_before_deposit(self, withdrawal_counterparty: Address) -> None:
        """Wait out the cooldown that follows the counterparty's last withdrawal."""
        last_withdrawal_time = await self._query_port.get_last_withdrawal_timestamp(
            withdrawal_counterparty
        )
        logger.info("Last withdrawal time for %s: %s", withdrawal_counterparty, last_withdrawal_time)
        await self._wait_after(last_withdrawal_time, withdrawal_counterparty, RoleTag.DEPOSIT)

    async def wait_before_withdrawal(self, deposit_counterparty: Address) -> None:
        """Wait out the cooldown that follows the counterparty's last deposit."""
        last_deposit_time = await self._query_port.get_last_deposit_timestamp(deposit_counterparty)
        logger.info("Last deposit time for %s: %s", deposit_counterparty, last_deposit_time)
        await self._wait_after(last_deposit_time, deposit_counterparty, RoleTag.WITHDRAWAL)

    def target_time(
        self, last_event_time: EventTimestamp, counterparty: Address, role: RoleTag
    ) -> int:
        """Return the epoch second at which the next operation may be submitted."""
        cooldown = derive_cooldown(last_event_time, counterparty, role, self._cooldown_range)
        return last_event_time + cooldown

    async def _wait_after(
        self,
        last_event_time: EventTimestamp | None,
        counterparty: Address,
        role: RoleTag,
    ) -> None:
        if last_event_time is None:
            logger.info(
                "No prior event for %s; nothing to wait for.",
                counterparty,
                extra={"event": events.COOLDOWN_SKIPPED},
            )
            return

        target = self.target_time(last_event_time, counterparty, role)
        await self.sleep_until(target)

    async def sleep_until(self, target: float) -> None:
        """Suspend until the wall clock reaches *target* (epoch seconds)."""
        now = self._clock()
        if now >= target:
            logger.info("No need to sleep", extra={"event": events.COOLDOWN_SKIPPED})
            return

        remaining = target - now
        wake_at = datetime.fromtimestamp(target).astimezone()
        logger.info(
            "Next deposit/withdrawal will start at %s. Sleeping for %d seconds...",
            wake_at.strftime(_WAKE_FORMAT),
            round(remaining),
            extra={"event": events.COOLDOWN_SLEEP, "wake_at": target},
        )
        # The event loop may wake us slightly early; re-check the deadline.
        while remaining > 0:
            await self._sleep(remaining)
            remaining = target - self._clock()
