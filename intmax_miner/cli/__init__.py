"""Console presentation for interactive runs."""

from intmax_miner.cli.console import ConsoleModeSelector, press_any_key_to_continue

__all__ = ["ConsoleModeSelector", "press_any_key_to_continue"]
