"""Deterministic, unpredictable cooldown derivation.

The cooldown between an observed on-chain event and the next paired operation
is drawn from a pseudo-random generator whose seed is the keccak-256 hash of
``f"{last_event_time}{address}{role}"``.  Consequences:

* **Reproducible**: identical inputs always give the same cooldown, so an
  operator can audit an expected wait and a restarted process resumes the
  same schedule instead of re-rolling a (possibly shorter) one.
* **Unpredictable**: without the seed inputs an observer cannot tell the
  cooldown apart from uniform noise in ``[min, max)``.

The generator is the ChaCha20 keystream keyed by the hash (zero nonce and
counter), consumed as little-endian 64-bit words.  Words are mapped into the
window with widening-multiply rejection sampling, so the result is uniform
with no modulo bias.

The address enters the seed as the full lowercase ``0x`` hex string.  Miners
that format it in the abbreviated display form (``0xfa1a…aae6``) derive
different cooldowns for the same event, so schedules are only comparable
between installs of this package.

Typical usage::

    from intmax_miner.core.models import CooldownRange, RoleTag
    from intmax_miner.timing.oracle import derive_cooldown

    seconds = derive_cooldown(1_700_000_000, address, RoleTag.DEPOSIT, CooldownRange(min_sec=600, max_sec=3600))
"""

from __future__ import annotations

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms
from web3 import Web3

from intmax_miner.core.exceptions import ConfigurationError
from intmax_miner.core.models import Address, CooldownRange, EventTimestamp, RoleTag

__all__ = ["cooldown_seed", "derive_cooldown", "SeededStream"]

_U64_MASK = (1 << 64) - 1


def cooldown_seed(last_event_time: EventTimestamp, counterparty: Address, role: RoleTag) -> bytes:
    """Return the 32-byte keccak-256 digest of the concatenated seed inputs."""
    seed_str = f"{last_event_time}{counterparty}{role.value}"
    return bytes(Web3.keccak(text=seed_str))


class SeededStream:
    """ChaCha20 keystream used as a reproducible 64-bit word generator."""

    def __init__(self, seed: bytes) -> None:
        if len(seed) != 32:
            raise ValueError(f"seed must be 32 bytes, got {len(seed)}")
        # 16 zero bytes: block counter 0, nonce 0.
        cipher = Cipher(algorithms.ChaCha20(seed, bytes(16)), mode=None)
        self._encryptor = cipher.encryptor()

    def next_u64(self) -> int:
        return int.from_bytes(self._encryptor.update(bytes(8)), "little")

    def uniform(self, low: int, high: int) -> int:
        """Draw one integer uniformly from ``[low, high)``."""
        span = high - low
        if span <= 0 or span > _U64_MASK:
            raise ValueError(f"invalid range [{low}, {high})")
        # Largest accepted low half of the product; anything above it falls in
        # the incomplete final bucket and is redrawn.
        zone = ((span << (64 - span.bit_length())) - 1) & _U64_MASK
        while True:
            product = self.next_u64() * span
            if product & _U64_MASK <= zone:
                return low + (product >> 64)


def derive_cooldown(
    last_event_time: EventTimestamp,
    counterparty: Address,
    role: RoleTag,
    cooldown_range: CooldownRange,
) -> int:
    """Derive the cooldown in seconds for one scheduling decision.

    Args:
        last_event_time: Timestamp of the most recent opposite-direction event.
        counterparty: Address whose event seeds the wait.
        role: Role literal of the call site.
        cooldown_range: Half-open ``[min_sec, max_sec)`` window.

    Returns:
        Seconds ``d`` with ``min_sec <= d < max_sec``.

    Raises:
        ConfigurationError: If ``min_sec >= max_sec``.
    """
    low, high = cooldown_range.min_sec, cooldown_range.max_sec
    if low >= high:
        raise ConfigurationError(
            f"Cooldown window [{low}, {high}) is empty; min must be strictly less than max"
        )
    stream = SeededStream(cooldown_seed(last_event_time, counterparty, role))
    return stream.uniform(low, high)
