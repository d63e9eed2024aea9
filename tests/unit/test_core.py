"""Unit tests for settings loading, value types and the run context."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from intmax_miner.core.exceptions import ConfigurationError
from intmax_miner.core.models import (
    BackoffKind,
    CooldownRange,
    RetryPolicy,
    RunMode,
    normalize_address,
)
from intmax_miner.core.run_context import RunContext
from intmax_miner.core.settings import Settings, load_settings

WITHDRAWAL = "0x2C7536E3605D9C16a7a3D7b1898e529396a65c23"
CONTRACT = "0xFa1A4998136377DB9b09e24567bd6D17Ad78AaE6"


def _required(**overrides: object) -> dict[str, object]:
    values: dict[str, object] = {
        "rpc_url": "http://127.0.0.1:8545",
        "custody_contract_address": CONTRACT,
        "withdrawal_address": WITHDRAWAL,
        "mining_min_cooldown_in_sec": 600,
        "mining_max_cooldown_in_sec": 3600,
    }
    values.update(overrides)
    return values


# ---------------------------------------------------------------------------
# normalize_address
# ---------------------------------------------------------------------------


class TestNormalizeAddress:
    def test_lowercases_checksum_address(self) -> None:
        assert normalize_address(WITHDRAWAL) == WITHDRAWAL.lower()

    def test_strips_whitespace(self) -> None:
        assert normalize_address(f"  {CONTRACT}\n") == CONTRACT.lower()

    @pytest.mark.parametrize(
        "value",
        ["", "0x1234", CONTRACT[2:], "0x" + "g" * 40, CONTRACT + "00"],
    )
    def test_rejects_malformed(self, value: str) -> None:
        with pytest.raises(ValueError):
            normalize_address(value)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_loads_from_kwargs(self, clean_env: None) -> None:
        s = Settings(**_required())
        assert s.withdrawal_address == WITHDRAWAL.lower()
        assert s.custody_contract_address == CONTRACT.lower()
        assert s.cooldown_range == CooldownRange(min_sec=600, max_sec=3600)
        assert s.mining_unbounded is True

    def test_loads_from_environment(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RPC_URL", "http://node:8545")
        monkeypatch.setenv("CUSTODY_CONTRACT_ADDRESS", CONTRACT)
        monkeypatch.setenv("WITHDRAWAL_ADDRESS", WITHDRAWAL)
        monkeypatch.setenv("MINING_MIN_COOLDOWN_IN_SEC", "100")
        monkeypatch.setenv("MINING_MAX_COOLDOWN_IN_SEC", "200")
        monkeypatch.setenv("MINING_TIMES", "7")
        monkeypatch.setenv("RETRY_BACKOFF", "fixed")
        s = Settings()
        assert s.rpc_url == "http://node:8545"
        assert s.mining_times == 7
        assert s.mining_unbounded is False
        assert s.retry_backoff is BackoffKind.FIXED

    @pytest.mark.parametrize(("low", "high"), [(60, 60), (61, 60)])
    def test_rejects_empty_cooldown_window(self, clean_env: None, low: int, high: int) -> None:
        with pytest.raises(ValidationError, match="mining_min_cooldown_in_sec"):
            Settings(**_required(mining_min_cooldown_in_sec=low, mining_max_cooldown_in_sec=high))

    def test_rejects_bad_withdrawal_address(self, clean_env: None) -> None:
        with pytest.raises(ValidationError):
            Settings(**_required(withdrawal_address="0xnotanaddress"))

    def test_rejects_initial_delay_above_max(self, clean_env: None) -> None:
        with pytest.raises(ValidationError, match="retry_initial_delay_sec"):
            Settings(**_required(retry_initial_delay_sec=10.0, retry_max_delay_sec=5.0))

    def test_log_level_is_normalised(self, clean_env: None) -> None:
        assert Settings(**_required(log_level="debug")).log_level == "DEBUG"

    def test_settings_are_frozen(self, clean_env: None) -> None:
        s = Settings(**_required())
        with pytest.raises(ValidationError):
            s.mining_times = 3  # type: ignore[misc]

    def test_retry_policy_reflects_fields(self, clean_env: None) -> None:
        s = Settings(
            **_required(
                retry_max_attempts=4,
                retry_backoff="fixed",
                retry_initial_delay_sec=2.0,
                retry_max_delay_sec=8.0,
            )
        )
        assert s.retry_policy == RetryPolicy(
            max_attempts=4,
            backoff=BackoffKind.FIXED,
            initial_delay_sec=2.0,
            max_delay_sec=8.0,
        )


class TestLoadSettings:
    def test_missing_required_raises_configuration_error(self, clean_env: None) -> None:
        with pytest.raises(ConfigurationError, match="mining_min_cooldown_in_sec"):
            load_settings()

    def test_inverted_window_raises_configuration_error(self, clean_env: None) -> None:
        with pytest.raises(ConfigurationError, match="must be <"):
            load_settings(**_required(mining_min_cooldown_in_sec=10, mining_max_cooldown_in_sec=5))

    def test_returns_settings_when_valid(self, clean_env: None) -> None:
        assert isinstance(load_settings(**_required()), Settings)


# ---------------------------------------------------------------------------
# RunContext
# ---------------------------------------------------------------------------


class TestRunContext:
    def test_interactive_when_no_mode(self) -> None:
        assert RunContext().is_interactive is True

    def test_non_interactive_with_mode(self) -> None:
        ctx = RunContext(mode=RunMode.EXPORT)
        assert ctx.is_interactive is False
        assert ctx.mode_label == "export"

    def test_dry_run_label(self) -> None:
        assert RunContext(mode=RunMode.MINING, dry_run=True).mode_label == "mining (dry-run)"

    def test_is_frozen(self) -> None:
        ctx = RunContext()
        with pytest.raises(AttributeError):
            ctx.dry_run = True  # type: ignore[misc]
