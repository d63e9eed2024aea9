"""Miner exception taxonomy.

Every custom exception inherits from :class:`MinerError`.  The hierarchy
mirrors how each failure is handled at runtime:

    MinerError
    ├── ConfigurationError      fatal at startup, never retried
    ├── AddressMismatch         fatal, checked once before the mode loop
    ├── TransientNetworkError   retried by RetryExecutor
    ├── PersistentFailure       retry budget exhausted
    ├── RemoteRejection         well-formed error from a remote service
    └── BackendError            submission backend failed

Only :class:`TransientNetworkError` is ever retried, and only at the
:class:`~intmax_miner.net.retry.RetryExecutor` boundary.  Everything else
bubbles up to the mode loop and terminates it.

Usage:

    from intmax_miner.core.exceptions import TransientNetworkError

    raise TransientNetworkError("circulation", "Connection refused") from exc
"""

from __future__ import annotations

__all__ = [
    "MinerError",
    "ConfigurationError",
    "AddressMismatch",
    "TransientNetworkError",
    "PersistentFailure",
    "RemoteRejection",
    "BackendError",
]


class MinerError(Exception):
    """Root exception for all miner errors."""


class ConfigurationError(MinerError):
    """Raised when the configuration is invalid or incomplete.

    Examples:
        - ``mining_min_cooldown_in_sec >= mining_max_cooldown_in_sec``.
        - A required environment variable is missing.
    """


class AddressMismatch(MinerError):
    """Raised when the key-derived withdrawal address differs from the configured one.

    Args:
        configured: Address from the configuration.
        derived: Address derived from the withdrawal private key.
    """

    def __init__(self, configured: str, derived: str) -> None:
        self.configured = configured
        self.derived = derived
        super().__init__(
            f"Withdrawal address {configured} does not match the address "
            f"derived from the private key ({derived})"
        )


class TransientNetworkError(MinerError):
    """A timeout, connection failure or server hiccup that is safe to retry.

    Args:
        source: Short name of the remote dependency (e.g. ``"rpc"``).
        message: Human-readable error description.
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"[{source}] {message}")


class PersistentFailure(MinerError):
    """Raised once the retry budget for an operation is exhausted.

    Args:
        last_error: The final underlying error, kept for diagnostics.
        attempts: Number of attempts made before giving up.
    """

    def __init__(self, last_error: BaseException, attempts: int) -> None:
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"Giving up after {attempts} attempt(s): {last_error}")


class RemoteRejection(MinerError):
    """A remote service answered with a well-formed error response.

    The request itself is invalid, so retrying would not help.

    Args:
        source: Short name of the remote service.
        code: Error code reported by the service, if any.
        message: Error message reported by the service.
    """

    def __init__(self, source: str, message: str, code: str | None = None) -> None:
        self.source = source
        self.code = code
        detail = f" ({code})" if code else ""
        super().__init__(f"[{source}] rejected{detail}: {message}")


class BackendError(MinerError):
    """Raised when the submission backend cannot be loaded or fails."""
