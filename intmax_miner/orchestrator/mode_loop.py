"""Mode loop: dispatch one action per selected :class:`RunMode`.

States are the run modes.  Transitions:

* **non-interactive** run: the action for the supplied mode runs once, then
  the loop ends.
* **interactive** run: after the action completes the operator picks the
  next mode through the injected :class:`ModeSelector`.  Claim, Exit, Export
  and CheckUpdate first wait on the ``pause`` collaborator so their output
  stays on screen; Mining does not.

The loop never retries or swallows errors.  Retries happen only inside
:class:`~intmax_miner.net.retry.RetryExecutor` around individual network
calls; an exception escaping an action ends the loop and reaches the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Protocol

from intmax_miner.core import events
from intmax_miner.core.exceptions import ConfigurationError
from intmax_miner.core.models import RunMode

__all__ = ["Action", "ModeSelector", "ModeLoop", "PAUSING_MODES"]

logger = logging.getLogger(__name__)

#: Zero-argument coroutine factory executing one mode to completion.
Action = Callable[[], Awaitable[object]]

#: Modes followed by a "press any key" pause in interactive runs.
PAUSING_MODES: frozenset[RunMode] = frozenset(
    {RunMode.CLAIM, RunMode.EXIT, RunMode.EXPORT, RunMode.CHECK_UPDATE}
)


class ModeSelector(Protocol):
    """Chooses the next mode, or ``None`` to quit; the presentation layer lives behind this."""

    async def select_next_mode(self) -> RunMode | None: ...


async def _no_pause() -> None:
    return None


class ModeLoop:
    """Finite-state control loop over :class:`RunMode`.

    Args:
        actions: Action bound to each mode.
        selector: Source of the next mode in interactive runs.
        interactive: Re-prompt after each action when ``True``; run once otherwise.
        pause: Awaited after pausing modes in interactive runs.
    """

    def __init__(
        self,
        actions: Mapping[RunMode, Action],
        selector: ModeSelector | None = None,
        *,
        interactive: bool = False,
        pause: Callable[[], Awaitable[None]] = _no_pause,
    ) -> None:
        if interactive and selector is None:
            raise ConfigurationError("An interactive mode loop needs a mode selector")
        self._actions = dict(actions)
        self._selector = selector
        self._interactive = interactive
        self._pause = pause

    async def run(self, initial_mode: RunMode) -> list[RunMode]:
        """Run the loop starting from *initial_mode*.

        Returns:
            The modes executed, in order.  An interactive loop returns once
            the selector answers ``None``.
        """
        executed: list[RunMode] = []
        mode: RunMode | None = initial_mode
        while mode is not None:
            await self._dispatch(mode)
            executed.append(mode)

            if not self._interactive:
                break

            if mode in PAUSING_MODES:
                await self._pause()
            assert self._selector is not None
            mode = await self._selector.select_next_mode()
        return executed

    async def _dispatch(self, mode: RunMode) -> None:
        action = self._actions.get(mode)
        if action is None:
            raise ConfigurationError(f"No action bound to mode {mode!s}")

        logger.info("Starting %s.", mode, extra={"event": events.MODE_START, "mode": str(mode)})
        try:
            await action()
        except BaseException:
            logger.error(
                "%s aborted.", mode, extra={"event": events.MODE_ABORT, "mode": str(mode)}
            )
            raise
        logger.info("%s complete.", mode, extra={"event": events.MODE_COMPLETE, "mode": str(mode)})
