"""Core value types shared by the timing, network and orchestration layers.

All types here are immutable.  They are built once (mostly from
:class:`~intmax_miner.core.settings.Settings`) and passed by value into each
component at construction time.

Typical usage::

    from intmax_miner.core.models import CooldownRange, RoleTag, normalize_address

    address = normalize_address("0xFa1A4998136377DB9b09e24567bd6D17Ad78AaE6")
    window = CooldownRange(min_sec=50, max_sec=60)
"""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "Address",
    "EventTimestamp",
    "RoleTag",
    "RunMode",
    "BackoffKind",
    "CooldownRange",
    "RetryPolicy",
    "normalize_address",
]

#: 0x-prefixed, lowercase, 20-byte hex account identifier.
Address = str

#: Seconds since the Unix epoch of an on-chain event.
EventTimestamp = int

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(value: str) -> Address:
    """Validate a 20-byte hex address and return its lowercase form.

    Raises:
        ValueError: If *value* is not a 0x-prefixed 40-hex-digit string.
    """
    candidate = value.strip()
    if not _ADDRESS_RE.match(candidate):
        raise ValueError(f"Not a 20-byte hex address: {value!r}")
    return candidate.lower()


class RoleTag(StrEnum):
    """Operation-role literal mixed into the cooldown seed."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class RunMode(StrEnum):
    """Action selected for one iteration of the mode loop."""

    MINING = "mining"
    CLAIM = "claim"
    EXIT = "exit"
    EXPORT = "export"
    CHECK_UPDATE = "check-update"


class BackoffKind(StrEnum):
    FIXED = "fixed"
    EXPONENTIAL = "exponential"


class CooldownRange(BaseModel):
    """Half-open ``[min_sec, max_sec)`` window for derived cooldowns.

    Ordering of the bounds is *not* enforced here; the timing oracle rejects
    an empty or inverted window with
    :class:`~intmax_miner.core.exceptions.ConfigurationError` at use time.
    """

    model_config = ConfigDict(frozen=True)

    min_sec: int = Field(ge=0)
    max_sec: int = Field(ge=0)


class RetryPolicy(BaseModel):
    """Retry budget and backoff shape applied to every network call."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=5, ge=1)
    backoff: BackoffKind = BackoffKind.EXPONENTIAL
    initial_delay_sec: float = Field(default=1.0, ge=0.0)
    max_delay_sec: float = Field(default=30.0, ge=0.0)
