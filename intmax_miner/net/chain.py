"""Read-only chain queries used by the cooldown scheduler.

:class:`ExternalQueryPort` is the narrow interface the scheduler depends on:
"when did this address last deposit / withdraw?".  :class:`ChainEventQuery`
implements it against the custody contract's event logs via
:class:`web3.AsyncWeb3`:

1. The chain head is read with ``eth_blockNumber``.
2. ``eth_getLogs`` is called over bounded block windows, walking back from
   the head towards ``from_block``, filtered by contract address, the event's
   keccak topic and the account as first indexed topic.  The walk stops at
   the first window holding a match, so the newest event is found without
   scanning the whole history.
3. The latest matching log (highest block, then log index) is selected and
   its block's ``timestamp`` is returned.

A node that refuses a window as too wide makes the walk halve the window and
try the same range again.  Both lookups are idempotent and are wrapped in the
:class:`~intmax_miner.net.retry.RetryExecutor`.  Connection failures,
timeouts and rate-limit replies are reported as
:class:`~intmax_miner.core.exceptions.TransientNetworkError`; any other
JSON-RPC error reply is a
:class:`~intmax_miner.core.exceptions.RemoteRejection`.

The query owns its provider session; use it as an async context manager (or
call :meth:`ChainEventQuery.aclose`) to release it.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, Final, Protocol

import aiohttp
from web3 import AsyncWeb3, Web3
from web3.exceptions import Web3Exception, Web3RPCError

from intmax_miner.core.exceptions import (
    MinerError,
    RemoteRejection,
    TransientNetworkError,
)
from intmax_miner.core.models import Address, EventTimestamp
from intmax_miner.core.settings import Settings
from intmax_miner.net.retry import RetryExecutor

__all__ = [
    "BlockRangeTooWide",
    "ChainEventQuery",
    "ExternalQueryPort",
    "address_topic",
    "classify_rpc_error",
    "event_topic",
]

logger = logging.getLogger(__name__)

_SOURCE: Final[str] = "rpc"

#: EIP-1474 "limit exceeded"; providers use it for both throttling and oversized queries.
_LIMIT_EXCEEDED_CODE: Final[int] = -32005

_RANGE_NEEDLES: Final[tuple[str, ...]] = (
    "block range",
    "range too large",
    "range is too large",
    "too many blocks",
    "query returned more than",
    "response size exceeded",
    "log response size",
    "max range",
)

_RATE_NEEDLES: Final[tuple[str, ...]] = (
    "rate limit",
    "too many requests",
    "limit exceeded",
    "quota",
    "capacity exceeded",
    "try again later",
)


class BlockRangeTooWide(TransientNetworkError):
    """The node refused an ``eth_getLogs`` window as too wide or too large."""


class ExternalQueryPort(Protocol):
    """Timestamps of the most recent deposit/withdrawal of an address."""

    async def get_last_deposit_timestamp(self, address: Address) -> EventTimestamp | None: ...

    async def get_last_withdrawal_timestamp(self, address: Address) -> EventTimestamp | None: ...


def event_topic(signature: str) -> str:
    """Return the 0x-prefixed keccak topic of an event signature."""
    return Web3.to_hex(Web3.keccak(text=signature))


def address_topic(address: Address) -> str:
    """Left-pad a 20-byte address to a 32-byte indexed topic."""
    return "0x" + "0" * 24 + address.lower().removeprefix("0x")


def _rpc_error_code(exc: Web3Exception) -> int | None:
    if not isinstance(exc, Web3RPCError) or not exc.rpc_response:
        return None
    error = exc.rpc_response.get("error")
    if not isinstance(error, dict):
        return None
    code = error.get("code")
    return code if isinstance(code, int) else None


def classify_rpc_error(exc: Web3Exception) -> MinerError:
    """Map a JSON-RPC error reply onto the retry taxonomy.

    Oversized-query replies become :class:`BlockRangeTooWide`, throttling
    replies :class:`TransientNetworkError`, everything else
    :class:`RemoteRejection`.
    """
    message = str(exc)
    lowered = message.lower()
    code = _rpc_error_code(exc)
    if any(needle in lowered for needle in _RANGE_NEEDLES):
        return BlockRangeTooWide(_SOURCE, message)
    if code in (_LIMIT_EXCEEDED_CODE, 429) or any(needle in lowered for needle in _RATE_NEEDLES):
        return TransientNetworkError(_SOURCE, message)
    return RemoteRejection(_SOURCE, message, code=None if code is None else str(code))


class ChainEventQuery:
    """:class:`ExternalQueryPort` backed by custody-contract event logs.

    Args:
        w3: Connected async web3 instance.
        contract_address: Custody contract emitting the events.
        deposit_signature: Event signature of a deposit.
        withdrawal_signature: Event signature of a withdrawal.
        executor: Retry wrapper applied to every lookup.
        from_block: First block scanned.
        block_window: Blocks covered by one ``eth_getLogs`` request.
        timeout: Per-call timeout in seconds.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        *,
        contract_address: Address,
        deposit_signature: str,
        withdrawal_signature: str,
        executor: RetryExecutor,
        from_block: int = 0,
        block_window: int = 10_000,
        timeout: float = 15.0,
    ) -> None:
        if block_window < 1:
            raise ValueError(f"block_window must be >= 1, got {block_window}")
        self._w3 = w3
        self._contract = Web3.to_checksum_address(contract_address)
        self._deposit_topic = event_topic(deposit_signature)
        self._withdrawal_topic = event_topic(withdrawal_signature)
        self._executor = executor
        self._from_block = from_block
        self._block_window = block_window
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings, executor: RetryExecutor) -> ChainEventQuery:
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(settings.rpc_url))
        return cls(
            w3,
            contract_address=settings.custody_contract_address,
            deposit_signature=settings.deposit_event_signature,
            withdrawal_signature=settings.withdrawal_event_signature,
            executor=executor,
            from_block=settings.event_from_block,
            block_window=settings.event_block_window,
            timeout=settings.http_timeout_sec,
        )

    async def __aenter__(self) -> ChainEventQuery:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the provider's HTTP session."""
        await self._w3.provider.disconnect()

    async def get_last_deposit_timestamp(self, address: Address) -> EventTimestamp | None:
        return await self._executor.execute(
            lambda: self._latest_event_timestamp(self._deposit_topic, address),
            label=f"last deposit of {address}",
        )

    async def get_last_withdrawal_timestamp(self, address: Address) -> EventTimestamp | None:
        return await self._executor.execute(
            lambda: self._latest_event_timestamp(self._withdrawal_topic, address),
            label=f"last withdrawal of {address}",
        )

    async def _latest_event_timestamp(self, topic: str, address: Address) -> EventTimestamp | None:
        head = int(await self._call(self._w3.eth.block_number))
        topics = [topic, address_topic(address)]
        window = self._block_window
        to_block = head
        while to_block >= self._from_block:
            from_block = max(self._from_block, to_block - window + 1)
            try:
                logs = await self._get_logs(from_block, to_block, topics)
            except BlockRangeTooWide:
                if window == 1:
                    raise
                window = max(1, window // 2)
                logger.debug("Block window refused; narrowing to %d blocks.", window)
                continue
            if logs:
                latest = max(logs, key=lambda log: (log["blockNumber"], log["logIndex"]))
                block = await self._call(self._w3.eth.get_block(latest["blockNumber"]))
                return int(block["timestamp"])
            to_block = from_block - 1
        return None

    async def _get_logs(self, from_block: int, to_block: int, topics: list[str]) -> list[Any]:
        logger.debug("eth_getLogs %s..%s", from_block, to_block)
        return await self._call(
            self._w3.eth.get_logs(
                {
                    "address": self._contract,
                    "fromBlock": from_block,
                    "toBlock": to_block,
                    "topics": topics,
                }
            )
        )

    async def _call(self, awaitable: Any) -> Any:
        """Await one RPC call, classifying its failure for the retry layer."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except (aiohttp.ClientError, TimeoutError, OSError) as exc:
            raise TransientNetworkError(_SOURCE, f"{type(exc).__name__}: {exc}") from exc
        except Web3Exception as exc:
            raise classify_rpc_error(exc) from exc
