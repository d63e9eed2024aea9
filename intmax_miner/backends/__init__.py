"""Submission backends and the loader that picks one from settings.

``MINER_BACKEND`` names a ``module:factory`` import path.  The factory is
called with ``(settings)`` and must return a
:class:`~intmax_miner.backends.base.MiningBackend`.  With ``--dry-run`` (or
``DRY_RUN=true``) the :class:`~intmax_miner.backends.dry_run.DryRunBackend`
is used instead.
"""

from __future__ import annotations

import importlib
import logging

from intmax_miner.backends.base import MiningBackend
from intmax_miner.backends.dry_run import DryRunBackend
from intmax_miner.core.exceptions import BackendError, ConfigurationError
from intmax_miner.core.run_context import RunContext
from intmax_miner.core.settings import Settings

__all__ = ["MiningBackend", "DryRunBackend", "load_backend"]

logger = logging.getLogger(__name__)


def load_backend(settings: Settings, ctx: RunContext) -> MiningBackend:
    """Return the backend selected by *ctx* and *settings*.

    Raises:
        ConfigurationError: No backend configured, or a malformed import path.
        BackendError: The factory could not be imported or returned a non-backend.
    """
    if ctx.dry_run or settings.dry_run:
        logger.info("Dry-run: submissions will be logged, not sent.")
        return DryRunBackend(settings.withdrawal_address)

    path = settings.miner_backend.strip()
    if not path:
        raise ConfigurationError("MINER_BACKEND is not set; pass --dry-run to run without one")
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"MINER_BACKEND must look like 'module:factory', got {path!r}")

    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        raise BackendError(f"Cannot load backend {path!r}: {exc}") from exc

    backend = factory(settings)
    if not isinstance(backend, MiningBackend):
        raise BackendError(f"{path!r} returned {type(backend).__name__}, not a MiningBackend")
    logger.info("Using backend %s", path)
    return backend
