"""Shared pytest fixtures and configuration for the miner test suite.

This file is loaded automatically by pytest before any test module.
"""

from __future__ import annotations

import logging
import os

import pytest
from pydantic_settings import SettingsConfigDict

from intmax_miner.core import configure_logging
from intmax_miner.core.settings import Settings

WITHDRAWAL_ADDRESS = "0x2c7536e3605d9c16a7a3d7b1898e529396a65c23"
CONTRACT_ADDRESS = "0xfa1a4998136377db9b09e24567bd6d17ad78aae6"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _configure_test_logging() -> None:
    """Force DEBUG logging in text format for every test."""
    configure_logging(level="DEBUG", fmt="text", force=True)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every miner-related env var and disable ``.env`` loading.

    pydantic-settings reads the ``.env`` file directly rather than through
    ``os.environ``, so the model config is patched as well.
    """
    prefixes = (
        "NETWORK",
        "RPC_URL",
        "CUSTODY_",
        "DEPOSIT_EVENT",
        "WITHDRAWAL_",
        "EVENT_FROM",
        "MINING_",
        "RETRY_",
        "CIRCULATION_",
        "RELEASE_URL",
        "HTTP_TIMEOUT",
        "MINER_BACKEND",
        "DRY_RUN",
        "LOG_LEVEL",
        "LOG_FORMAT",
    )
    for key in list(os.environ):
        if any(key.upper().startswith(prefix) for prefix in prefixes):
            monkeypatch.delenv(key, raising=False)

    monkeypatch.setattr(
        Settings,
        "model_config",
        SettingsConfigDict(
            env_file=None,
            env_file_encoding="utf-8",
            extra="ignore",
            frozen=True,
        ),
    )


@pytest.fixture()
def settings(clean_env: None) -> Settings:
    """Valid settings with a small cooldown window and an instant retry policy."""
    return Settings(
        rpc_url="http://127.0.0.1:8545",
        custody_contract_address=CONTRACT_ADDRESS,
        withdrawal_address=WITHDRAWAL_ADDRESS,
        mining_min_cooldown_in_sec=50,
        mining_max_cooldown_in_sec=60,
        mining_times=1,
        retry_max_attempts=2,
        retry_backoff="fixed",
        retry_initial_delay_sec=0.0,
        retry_max_delay_sec=0.0,
        circulation_server_url="https://circulation.test/v1",
        release_url="https://releases.test/latest",
    )


# ---------------------------------------------------------------------------
# Misc helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def logger() -> logging.Logger:
    return logging.getLogger("tests")
