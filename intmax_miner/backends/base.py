"""Submission backend contract.

A backend performs the on-chain side effects the mining core sequences but
never builds: deposits, withdrawals, claims, exits and key export.  Payload
construction, gas and signing live entirely inside the backend.

Typical usage::

    from intmax_miner.backends.base import MiningBackend


    class MyBackend(MiningBackend):
        async def deposit(self) -> Address: ...
        async def withdraw(self, deposit_address: Address) -> None: ...
        async def claim(self) -> None: ...
        async def exit(self) -> None: ...
        async def export(self) -> None: ...

    async with MyBackend() as backend:
        deposit_address = await backend.deposit()

Network failures should be raised as
:class:`~intmax_miner.core.exceptions.TransientNetworkError` from inside a
:class:`~intmax_miner.net.retry.RetryExecutor` so they are retried; anything
else terminates the current action.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from types import TracebackType

from intmax_miner.core.models import Address

__all__ = ["MiningBackend"]

logger = logging.getLogger(__name__)


class MiningBackend(ABC):
    """Abstract base for deposit/withdrawal/claim/exit/export submission."""

    async def close(self) -> None:  # noqa: B027
        """Release held resources.  No-op by default."""

    async def __aenter__(self) -> MiningBackend:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @abstractmethod
    async def deposit(self) -> Address:
        """Submit one deposit and return the deposit account that made it."""

    @abstractmethod
    async def withdraw(self, deposit_address: Address) -> None:
        """Withdraw the funds held by *deposit_address* to the withdrawal account."""

    @abstractmethod
    async def claim(self) -> None:
        """Claim accrued mining rewards."""

    @abstractmethod
    async def exit(self) -> None:
        """Withdraw all balances and cancel pending deposits."""

    @abstractmethod
    async def export(self) -> None:
        """Export the deposit account keys for the operator."""
