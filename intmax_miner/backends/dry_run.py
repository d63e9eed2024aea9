"""Backend that logs every submission instead of sending it.

Deposit accounts are derived deterministically from the withdrawal address
and a running index (keccak of ``"{withdrawal_address}:{index}"``, last 20
bytes), so repeated dry runs log the same addresses.
"""

from __future__ import annotations

import logging

from web3 import Web3

from intmax_miner.backends.base import MiningBackend
from intmax_miner.core import events
from intmax_miner.core.models import Address

__all__ = ["DryRunBackend", "derive_deposit_address"]

logger = logging.getLogger(__name__)


def derive_deposit_address(withdrawal_address: Address, index: int) -> Address:
    digest = Web3.keccak(text=f"{withdrawal_address}:{index}")
    return "0x" + bytes(digest)[-20:].hex()


class DryRunBackend(MiningBackend):
    """Log-only :class:`MiningBackend`.

    Args:
        withdrawal_address: Account withdrawals would be sent to.
    """

    def __init__(self, withdrawal_address: Address) -> None:
        self._withdrawal_address = withdrawal_address
        self._next_index = 0
        self.submissions: list[tuple[str, Address | None]] = []

    async def deposit(self) -> Address:
        deposit_address = derive_deposit_address(self._withdrawal_address, self._next_index)
        self._next_index += 1
        self.submissions.append(("deposit", deposit_address))
        logger.info(
            "[dry-run] Would deposit from %s",
            deposit_address,
            extra={"event": events.SUBMIT_DEPOSIT},
        )
        return deposit_address

    async def withdraw(self, deposit_address: Address) -> None:
        self.submissions.append(("withdrawal", deposit_address))
        logger.info(
            "[dry-run] Would withdraw %s → %s",
            deposit_address,
            self._withdrawal_address,
            extra={"event": events.SUBMIT_WITHDRAWAL},
        )

    async def claim(self) -> None:
        self.submissions.append(("claim", None))
        logger.info("[dry-run] Would claim rewards for %s", self._withdrawal_address)

    async def exit(self) -> None:
        self.submissions.append(("exit", None))
        logger.info("[dry-run] Would withdraw all balances and cancel pending deposits")

    async def export(self) -> None:
        self.submissions.append(("export", None))
        logger.info("[dry-run] Would export %d deposit account key(s)", self._next_index)
