"""Core value types, settings, logging configuration and the error taxonomy."""

from intmax_miner.core.exceptions import (
    AddressMismatch,
    BackendError,
    ConfigurationError,
    MinerError,
    PersistentFailure,
    RemoteRejection,
    TransientNetworkError,
)
from intmax_miner.core.logging_config import JsonFormatter, configure_logging
from intmax_miner.core.models import (
    Address,
    BackoffKind,
    CooldownRange,
    EventTimestamp,
    RetryPolicy,
    RoleTag,
    RunMode,
    normalize_address,
)
from intmax_miner.core.run_context import RunContext
from intmax_miner.core.settings import Settings, load_settings

__all__ = [
    # Logging
    "configure_logging",
    "JsonFormatter",
    # Value types
    "Address",
    "EventTimestamp",
    "RoleTag",
    "RunMode",
    "BackoffKind",
    "CooldownRange",
    "RetryPolicy",
    "normalize_address",
    "RunContext",
    # Settings
    "Settings",
    "load_settings",
    # Exceptions
    "MinerError",
    "ConfigurationError",
    "AddressMismatch",
    "TransientNetworkError",
    "PersistentFailure",
    "RemoteRejection",
    "BackendError",
]
