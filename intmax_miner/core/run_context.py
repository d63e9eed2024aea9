"""Runtime context for a single miner execution.

A single :class:`RunContext` is created once in :mod:`intmax_miner.__main__`
from the CLI arguments and threaded through the orchestrator, so each layer
can inspect the operating flags without access to the raw CLI args.

mode
    The action requested on the command line.  When ``None`` the run is
    *interactive*: the operator picks a mode from a console menu and is
    re-prompted after every completed action.  When set, exactly one action
    runs and the process exits.

dry_run
    Every submission (deposit, withdrawal, claim, exit, export) is logged
    instead of sent.  Timing decisions and chain queries still run for real,
    which makes dry-run useful to audit the expected wait times.

    >>> RunContext().is_interactive
    True
    >>> RunContext(mode=RunMode.CLAIM).is_interactive
    False
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from intmax_miner.core.models import RunMode

__all__ = ["RunContext"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunContext:
    """Immutable container for per-run operating flags.

    Attributes:
        mode: Pre-selected action for a non-interactive run, or ``None``.
        dry_run: When ``True``, submissions are logged rather than sent.
    """

    mode: RunMode | None = field(default=None)
    dry_run: bool = field(default=False)

    @property
    def is_interactive(self) -> bool:
        return self.mode is None

    @property
    def mode_label(self) -> str:
        """Human-readable label used in log lines: ``"interactive"`` or the mode."""
        label = "interactive" if self.mode is None else str(self.mode)
        return f"{label} (dry-run)" if self.dry_run else label

    def __str__(self) -> str:
        return f"RunContext(mode={self.mode_label})"
