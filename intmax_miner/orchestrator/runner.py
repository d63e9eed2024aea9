"""Orchestrator entry-point: assemble all components and run the mode loop.

:func:`run` is invoked by :mod:`intmax_miner.__main__`.  Each call:

1. Verifies the configured withdrawal address against its private key
   (:class:`~intmax_miner.core.exceptions.AddressMismatch` if they differ).
2. Builds the shared :class:`~intmax_miner.net.retry.RetryExecutor` from the
   retry policy.
3. Checks the withdrawal address against the circulation service and warns
   when it is excluded.
4. Loads the submission backend and the chain event query, and wires the
   :class:`~intmax_miner.timing.scheduler.CooldownScheduler`.
5. Binds one action per :class:`~intmax_miner.core.models.RunMode` and runs
   the :class:`~intmax_miner.orchestrator.mode_loop.ModeLoop`.
6. Tears every resource down on exit via :class:`contextlib.AsyncExitStack`,
   including on exceptions.

Typical usage::

    import asyncio
    from intmax_miner.core.run_context import RunContext
    from intmax_miner.orchestrator.runner import run

    asyncio.run(run(RunContext(mode=RunMode.MINING, dry_run=True), settings))
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack

from eth_account import Account

from intmax_miner import __version__
from intmax_miner.backends import load_backend
from intmax_miner.backends.base import MiningBackend
from intmax_miner.core.exceptions import AddressMismatch, ConfigurationError
from intmax_miner.core.models import RunMode, normalize_address
from intmax_miner.core.run_context import RunContext
from intmax_miner.core.settings import Settings
from intmax_miner.net.chain import ChainEventQuery, ExternalQueryPort
from intmax_miner.net.circulation import CirculationClient
from intmax_miner.net.retry import RetryExecutor
from intmax_miner.net.updates import check_for_update
from intmax_miner.orchestrator.mining import MiningAction
from intmax_miner.orchestrator.mode_loop import Action, ModeLoop, ModeSelector
from intmax_miner.timing.scheduler import CooldownScheduler

__all__ = ["run", "build_actions", "verify_withdrawal_address", "check_circulation"]

logger = logging.getLogger(__name__)


def verify_withdrawal_address(settings: Settings) -> None:
    """Fail fast if the withdrawal key does not derive to the configured address.

    Does nothing when no key is configured.

    Raises:
        AddressMismatch: The derived address differs.
        ConfigurationError: The key is not a valid private key.
    """
    if settings.withdrawal_private_key is None:
        logger.debug("No withdrawal private key configured; skipping address check.")
        return
    try:
        derived = Account.from_key(settings.withdrawal_private_key.get_secret_value()).address
    except Exception as exc:  # noqa: BLE001
        raise ConfigurationError("WITHDRAWAL_PRIVATE_KEY is not a valid private key") from exc
    if normalize_address(derived) != settings.withdrawal_address:
        raise AddressMismatch(settings.withdrawal_address, normalize_address(derived))


async def check_circulation(client: CirculationClient, settings: Settings) -> bool:
    """Return the exclusion flag of the withdrawal address, warning when excluded."""
    status = await client.get_circulation(settings.withdrawal_address)
    if status.is_excluded:
        logger.warning(
            "Withdrawal address %s is excluded from circulation; "
            "mining from it will not accrue rewards.",
            settings.withdrawal_address,
        )
    return status.is_excluded


def build_actions(
    settings: Settings,
    backend: MiningBackend,
    scheduler: CooldownScheduler,
    executor: RetryExecutor,
) -> dict[RunMode, Action]:
    """Bind one coroutine factory to every :class:`RunMode`."""
    mining = MiningAction(
        scheduler,
        backend,
        settings.withdrawal_address,
        None if settings.mining_unbounded else settings.mining_times,
    )

    async def _check_update() -> object:
        return await check_for_update(
            __version__,
            settings.release_url,
            executor,
            timeout=settings.http_timeout_sec,
        )

    return {
        RunMode.MINING: mining.run,
        RunMode.CLAIM: backend.claim,
        RunMode.EXIT: backend.exit,
        RunMode.EXPORT: backend.export,
        RunMode.CHECK_UPDATE: _check_update,
    }


async def run(
    ctx: RunContext,
    settings: Settings,
    *,
    selector: ModeSelector | None = None,
    pause: Callable[[], Awaitable[None]] | None = None,
    query_port: ExternalQueryPort | None = None,
    backend: MiningBackend | None = None,
) -> list[RunMode]:
    """Run the miner for *ctx* and return the modes executed.

    Args:
        ctx: Operating flags; ``ctx.mode is None`` means interactive.
        settings: Loaded configuration.
        selector: Mode selector, required for interactive runs.
        pause: "Press any key" collaborator for interactive runs.
        query_port: Override of the chain event query; the caller owns its lifetime.
        backend: Override of the submission backend (tests).

    Raises:
        ConfigurationError: Interactive run without a selector, or bad settings.
        AddressMismatch: Withdrawal key and address disagree.
        MinerError: Any error that aborted an action.
    """
    logger.info("Miner starting on %s: %s", settings.network, ctx)
    verify_withdrawal_address(settings)

    if ctx.is_interactive and selector is None:
        raise ConfigurationError("Interactive run requires a mode selector")

    executor = RetryExecutor(settings.retry_policy)

    async with AsyncExitStack() as stack:
        circulation = await stack.enter_async_context(
            CirculationClient(
                settings.circulation_server_url,
                executor,
                timeout=settings.http_timeout_sec,
            )
        )
        await check_circulation(circulation, settings)

        if backend is None:
            backend = load_backend(settings, ctx)
        await stack.enter_async_context(backend)

        if query_port is None:
            query_port = await stack.enter_async_context(
                ChainEventQuery.from_settings(settings, executor)
            )
        scheduler = CooldownScheduler(query_port, settings.cooldown_range)

        loop_kwargs = {"pause": pause} if pause is not None else {}
        mode_loop = ModeLoop(
            build_actions(settings, backend, scheduler, executor),
            selector,
            interactive=ctx.is_interactive,
            **loop_kwargs,
        )

        if ctx.mode is not None:
            initial_mode = ctx.mode
        else:
            assert selector is not None
            selected = await selector.select_next_mode()
            if selected is None:
                logger.info("No mode selected; exiting.")
                return []
            initial_mode = selected

        return await mode_loop.run(initial_mode)
