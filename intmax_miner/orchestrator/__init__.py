"""Mode loop, mining action and the runner that wires them together.

Public API
----------
* :func:`~intmax_miner.orchestrator.runner.run`: process-level entry-point.
* :class:`~intmax_miner.orchestrator.mode_loop.ModeLoop`: run-mode state machine.
* :class:`~intmax_miner.orchestrator.mining.MiningAction`: deposit/withdrawal
  repetitions separated by derived cooldowns.
"""

from intmax_miner.orchestrator.mining import MiningAction
from intmax_miner.orchestrator.mode_loop import PAUSING_MODES, ModeLoop, ModeSelector
from intmax_miner.orchestrator.runner import build_actions, run

__all__ = [
    "MiningAction",
    "ModeLoop",
    "ModeSelector",
    "PAUSING_MODES",
    "build_actions",
    "run",
]
