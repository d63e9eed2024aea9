"""Mining action: repeated deposit/withdrawal pairs separated by cooldowns.

Each repetition runs four strictly sequential steps:

1. ``wait_before_deposit(withdrawal_address)``
2. ``backend.deposit()`` → deposit account
3. ``wait_before_withdrawal(deposit account)``
4. ``backend.withdraw(deposit account)``

Every wait is computed from the *most recent* opposite-direction event, which
only exists once the previous step landed on chain, so the steps are never
reordered or overlapped.  Any exception aborts the action as a whole.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator

from intmax_miner.backends.base import MiningBackend
from intmax_miner.core import events
from intmax_miner.core.logging_config import REPETITION_CTX
from intmax_miner.core.models import Address
from intmax_miner.timing.scheduler import CooldownScheduler

__all__ = ["MiningAction"]

logger = logging.getLogger(__name__)


class MiningAction:
    """Runs ``repetitions`` deposit/withdrawal pairs (forever when ``None``).

    Args:
        scheduler: Cooldown scheduler.
        backend: Submission backend.
        withdrawal_address: Account that receives withdrawals.
        repetitions: Number of pairs, or ``None`` for unbounded.
    """

    def __init__(
        self,
        scheduler: CooldownScheduler,
        backend: MiningBackend,
        withdrawal_address: Address,
        repetitions: int | None,
    ) -> None:
        if repetitions is not None and repetitions < 1:
            raise ValueError(f"repetitions must be ≥ 1 or None, got {repetitions!r}")
        self._scheduler = scheduler
        self._backend = backend
        self._withdrawal_address = withdrawal_address
        self._repetitions = repetitions

    def _indices(self) -> Iterator[int]:
        if self._repetitions is None:
            return itertools.count(1)
        return iter(range(1, self._repetitions + 1))

    async def run(self) -> int:
        """Run the configured repetitions and return how many completed."""
        total = "∞" if self._repetitions is None else str(self._repetitions)
        logger.info(
            "Mining started (%s repetition(s)).", total, extra={"event": events.MINING_START}
        )
        completed = 0
        for index in self._indices():
            token = REPETITION_CTX.set(f"{index}/{total}")
            try:
                await self.run_repetition()
            finally:
                REPETITION_CTX.reset(token)
            completed = index
        logger.info("Mining finished after %d repetition(s).", completed)
        return completed

    async def run_repetition(self) -> None:
        logger.info("Repetition started.", extra={"event": events.REPETITION_START})

        await self._scheduler.wait_before_deposit(self._withdrawal_address)
        deposit_address = await self._backend.deposit()
        logger.info(
            "Deposit submitted from %s.", deposit_address, extra={"event": events.SUBMIT_DEPOSIT}
        )

        await self._scheduler.wait_before_withdrawal(deposit_address)
        await self._backend.withdraw(deposit_address)
        logger.info(
            "Withdrawal submitted for %s.",
            deposit_address,
            extra={"event": events.SUBMIT_WITHDRAWAL},
        )

        logger.info("Repetition complete.", extra={"event": events.REPETITION_COMPLETE})
