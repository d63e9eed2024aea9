"""Structured log event name constants.

Key transitions emit a log record with an ``event`` field passed via
``extra={"event": events.X}``.  In ``LOG_FORMAT=json`` mode the value
surfaces under ``extra.event``; in text mode the message is self-describing
and the event is not printed.

Usage example::

    import logging
    from intmax_miner.core import events

    logger = logging.getLogger(__name__)

    logger.info("Mining started", extra={"event": events.MINING_START})
"""

from __future__ import annotations

__all__ = [
    "MODE_START",
    "MODE_COMPLETE",
    "MODE_ABORT",
    "MINING_START",
    "REPETITION_START",
    "REPETITION_COMPLETE",
    "COOLDOWN_SKIPPED",
    "COOLDOWN_SLEEP",
    "SUBMIT_DEPOSIT",
    "SUBMIT_WITHDRAWAL",
    "RETRY_SCHEDULED",
    "RETRY_EXHAUSTED",
]

# ---------------------------------------------------------------------------
# Mode loop
# ---------------------------------------------------------------------------

#: An action bound to a run mode is about to start.
MODE_START: str = "MODE_START"

#: The action finished successfully.
MODE_COMPLETE: str = "MODE_COMPLETE"

#: The action raised; the mode loop terminates.
MODE_ABORT: str = "MODE_ABORT"

# ---------------------------------------------------------------------------
# Mining
# ---------------------------------------------------------------------------

MINING_START: str = "MINING_START"
REPETITION_START: str = "REPETITION_START"
REPETITION_COMPLETE: str = "REPETITION_COMPLETE"

#: No prior opposite-direction event, or the deadline already passed.
COOLDOWN_SKIPPED: str = "COOLDOWN_SKIPPED"

#: The scheduler is suspending until the derived wake time.
COOLDOWN_SLEEP: str = "COOLDOWN_SLEEP"

SUBMIT_DEPOSIT: str = "SUBMIT_DEPOSIT"
SUBMIT_WITHDRAWAL: str = "SUBMIT_WITHDRAWAL"

# ---------------------------------------------------------------------------
# Retries
# ---------------------------------------------------------------------------

RETRY_SCHEDULED: str = "RETRY_SCHEDULED"
RETRY_EXHAUSTED: str = "RETRY_EXHAUSTED"
