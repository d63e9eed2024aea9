"""Network access: retry executor, chain event queries and auxiliary HTTP services."""

from intmax_miner.net.chain import ChainEventQuery, ExternalQueryPort
from intmax_miner.net.circulation import CirculationClient, CirculationStatus
from intmax_miner.net.retry import RetryExecutor
from intmax_miner.net.updates import UpdateCheck, check_for_update

__all__ = [
    "RetryExecutor",
    "ExternalQueryPort",
    "ChainEventQuery",
    "CirculationClient",
    "CirculationStatus",
    "UpdateCheck",
    "check_for_update",
]
