"""Miner process entry-point.

Usage:
    python -m intmax_miner [--mode MODE] [--dry-run] [--log-level LEVEL] [--log-format FORMAT]

Without ``--mode`` the run is interactive: a console menu picks the mode and
is shown again after every completed action.  With ``--mode`` exactly one
action runs and the process exits; a failed action exits non-zero.

The orchestration logic lives in :mod:`intmax_miner.orchestrator`.  This
module calls ``configure_logging()`` first so every later import already has
a working logger, then hands off to :func:`~intmax_miner.orchestrator.runner.run`.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from intmax_miner.core import configure_logging
from intmax_miner.core.exceptions import (
    AddressMismatch,
    ConfigurationError,
    MinerError,
    PersistentFailure,
    RemoteRejection,
)
from intmax_miner.core.models import RunMode
from intmax_miner.core.run_context import RunContext


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intmax-miner",
        description="Deposit/withdrawal mining with timing-decorrelated cooldowns.",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in RunMode],
        default=None,
        help="Run a single action non-interactively and exit.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log deposits/withdrawals/claims instead of submitting them.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="Override LOG_LEVEL env var (DEBUG|INFO|WARNING|ERROR).",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        metavar="FORMAT",
        help="Override LOG_FORMAT env var (text|json).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry-point registered in ``pyproject.toml``."""
    args = _build_parser().parse_args(argv)

    try:
        configure_logging(level=args.log_level, fmt=args.log_format)
    except ValueError as exc:
        print(f"intmax-miner: configuration error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    logger = logging.getLogger(__name__)

    ctx = RunContext(
        mode=RunMode(args.mode) if args.mode else None,
        dry_run=args.dry_run,
    )

    # Lazy imports keep --help fast.
    from intmax_miner.cli.console import (  # noqa: PLC0415
        ConsoleModeSelector,
        press_any_key_to_continue,
    )
    from intmax_miner.core.settings import load_settings  # noqa: PLC0415
    from intmax_miner.orchestrator.runner import run  # noqa: PLC0415

    try:
        settings = load_settings()
        if ctx.is_interactive:
            print("Press ctrl + c to stop the process")  # noqa: T201
        asyncio.run(
            run(
                ctx,
                settings,
                selector=ConsoleModeSelector() if ctx.is_interactive else None,
                pause=press_any_key_to_continue,
            )
        )
    except (ConfigurationError, AddressMismatch) as exc:
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)
    except PersistentFailure as exc:
        logger.critical("Network failure: %s (last error: %r)", exc, exc.last_error)
        sys.exit(1)
    except RemoteRejection as exc:
        logger.critical("Request rejected: %s", exc)
        sys.exit(1)
    except MinerError as exc:
        logger.critical("Aborted: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted; exiting.")
        sys.exit(0)


if __name__ == "__main__":
    main()
