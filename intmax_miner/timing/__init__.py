"""Cooldown derivation and the sleep-until-safe scheduler."""

from intmax_miner.timing.oracle import derive_cooldown
from intmax_miner.timing.scheduler import CooldownScheduler

__all__ = ["derive_cooldown", "CooldownScheduler"]
