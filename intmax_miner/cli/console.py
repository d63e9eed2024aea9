"""Console collaborators for interactive runs: mode menu and pause prompt.

Both read stdin through :func:`asyncio.to_thread` so the event loop is never
blocked while the operator is thinking.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from intmax_miner.core.models import RunMode

__all__ = ["ConsoleModeSelector", "MENU", "press_any_key_to_continue"]

logger = logging.getLogger(__name__)

#: Menu entries in display order: ``(mode, label, description)``.
MENU: tuple[tuple[RunMode, str, str], ...] = (
    (RunMode.MINING, "Mining", "performs mining by repeatedly executing deposits and withdrawals"),
    (RunMode.CLAIM, "Claim", "claims available ITX tokens"),
    (RunMode.EXIT, "Exit", "withdraws all balances currently and cancels pending deposits"),
    (RunMode.EXPORT, "Export", "export deposit private keys"),
    (RunMode.CHECK_UPDATE, "Check update", "check whether a newer release is available"),
)

_QUIT_KEYS = frozenset({"q", "quit"})


class ConsoleModeSelector:
    """Numbered stdin menu implementing :class:`~intmax_miner.orchestrator.mode_loop.ModeSelector`.

    Args:
        read: Line reader; :func:`input` by default.
        write: Line writer; :func:`print` by default.
    """

    def __init__(
        self,
        read: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        self._read = read
        self._write = write

    def render(self) -> str:
        lines = ["Select mode:"]
        for number, (_, label, description) in enumerate(MENU, start=1):
            lines.append(f"  {number}) {label}: {description}")
        lines.append("  q) Quit")
        return "\n".join(lines)

    def parse(self, answer: str) -> RunMode | None:
        """Map a menu answer to a mode; ``None`` means quit.

        Raises:
            ValueError: The answer is neither a menu number nor a quit key.
        """
        choice = answer.strip().lower()
        if choice in _QUIT_KEYS:
            return None
        if choice.isdigit() and 1 <= int(choice) <= len(MENU):
            return MENU[int(choice) - 1][0]
        raise ValueError(f"Unknown choice {answer!r}")

    async def select_next_mode(self) -> RunMode | None:
        self._write(self.render())
        while True:
            answer = await asyncio.to_thread(self._read, "> ")
            try:
                return self.parse(answer)
            except ValueError:
                self._write(f"Please enter 1-{len(MENU)} or q.")


async def press_any_key_to_continue() -> None:
    print("Press Enter to continue...")  # noqa: T201
    await asyncio.to_thread(input)
