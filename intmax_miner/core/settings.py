"""Miner settings loaded from environment and ``.env`` files.

Uses :mod:`pydantic_settings` to parse environment variables (and optionally
an ``.env`` file) into a validated, immutable settings object.  The field
name is the **lowercase** version of the env-var name (e.g.
``MINING_MIN_COOLDOWN_IN_SEC`` → ``mining_min_cooldown_in_sec``).

Settings are loaded exactly once at startup and never mutated afterwards;
components receive the value objects they need (:attr:`Settings.cooldown_range`,
:attr:`Settings.retry_policy`) at construction time.

Typical usage::

    from intmax_miner.core.settings import load_settings

    settings = load_settings()            # raises ConfigurationError on bad input
    print(settings.cooldown_range)
"""

from __future__ import annotations

import logging

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from intmax_miner.core.exceptions import ConfigurationError
from intmax_miner.core.models import (
    Address,
    BackoffKind,
    CooldownRange,
    RetryPolicy,
    normalize_address,
)

__all__ = ["Settings", "load_settings"]

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central application configuration.

    Values are loaded in priority order:

    1. Actual environment variables (highest priority).
    2. ``.env`` file in the working directory.
    3. Field defaults (lowest priority).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------------
    # Chain
    # ------------------------------------------------------------------
    network: str = Field(default="base", description="Network label used in log lines.")
    rpc_url: str = Field(description="JSON-RPC endpoint for event queries.")
    custody_contract_address: Address = Field(
        description="Custody contract whose deposit/withdrawal events are queried.",
    )
    deposit_event_signature: str = Field(
        default="Deposited(address,uint256)",
        description="Event signature of a deposit; first indexed arg is the account.",
    )
    withdrawal_event_signature: str = Field(
        default="Withdrawn(address,uint256)",
        description="Event signature of a withdrawal; first indexed arg is the account.",
    )
    event_from_block: int = Field(
        default=0,
        ge=0,
        description="First block scanned for deposit/withdrawal events.",
    )
    event_block_window: int = Field(
        default=10_000,
        ge=1,
        description="Blocks per eth_getLogs request when walking back from the chain head.",
    )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    withdrawal_address: Address = Field(description="Account receiving withdrawals.")
    withdrawal_private_key: SecretStr | None = Field(
        default=None,
        description="Optional key; when set it must derive to withdrawal_address.",
    )

    # ------------------------------------------------------------------
    # Mining cadence
    # ------------------------------------------------------------------
    mining_min_cooldown_in_sec: int = Field(ge=0, description="Lower cooldown bound.")
    mining_max_cooldown_in_sec: int = Field(ge=0, description="Exclusive upper cooldown bound.")
    mining_times: int = Field(
        default=0,
        ge=0,
        description="Deposit/withdrawal repetitions per Mining action (0 = unbounded).",
    )

    # ------------------------------------------------------------------
    # Retry policy
    # ------------------------------------------------------------------
    retry_max_attempts: int = Field(default=5, ge=1)
    retry_backoff: BackoffKind = Field(default=BackoffKind.EXPONENTIAL)
    retry_initial_delay_sec: float = Field(default=1.0, ge=0.0)
    retry_max_delay_sec: float = Field(default=30.0, ge=0.0)

    # ------------------------------------------------------------------
    # Auxiliary services
    # ------------------------------------------------------------------
    circulation_server_url: str = Field(
        default="https://api.circulation.intmax.io/v1",
        description="Base URL of the circulation/exclusion service.",
    )
    release_url: str = Field(
        default="https://api.github.com/repos/InternetMaximalism/intmax-mining-cli/releases/latest",
        description="Latest-release JSON endpoint used by the update check.",
    )
    http_timeout_sec: float = Field(default=15.0, gt=0.0)

    # ------------------------------------------------------------------
    # Runtime
    # ------------------------------------------------------------------
    miner_backend: str = Field(
        default="",
        description="Import path 'module:factory' of the submission backend.",
    )
    dry_run: bool = Field(default=False, description="Log submissions instead of sending.")
    log_level: str = Field(default="INFO", description="Logging level.")
    log_format: str = Field(default="text", description="Log format: 'text' or 'json'.")

    # ------------------------------------------------------------------
    # Field validators
    # ------------------------------------------------------------------

    @field_validator("withdrawal_address", "custody_contract_address")
    @classmethod
    def _validate_address(cls, v: str) -> str:
        return normalize_address(v)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got {v!r}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, v: str) -> str:
        allowed = {"text", "json"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got {v!r}")
        return v_lower

    # ------------------------------------------------------------------
    # Model validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def _validate_cooldown_window(self) -> Settings:
        """A zero-length or inverted window defeats timing obfuscation."""
        if self.mining_min_cooldown_in_sec >= self.mining_max_cooldown_in_sec:
            raise ValueError(
                f"mining_min_cooldown_in_sec ({self.mining_min_cooldown_in_sec}) "
                f"must be < mining_max_cooldown_in_sec ({self.mining_max_cooldown_in_sec})"
            )
        return self

    @model_validator(mode="after")
    def _validate_retry_delays(self) -> Settings:
        if self.retry_initial_delay_sec > self.retry_max_delay_sec:
            raise ValueError(
                f"retry_initial_delay_sec ({self.retry_initial_delay_sec}) "
                f"> retry_max_delay_sec ({self.retry_max_delay_sec})"
            )
        return self

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    @property
    def cooldown_range(self) -> CooldownRange:
        return CooldownRange(
            min_sec=self.mining_min_cooldown_in_sec,
            max_sec=self.mining_max_cooldown_in_sec,
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            backoff=self.retry_backoff,
            initial_delay_sec=self.retry_initial_delay_sec,
            max_delay_sec=self.retry_max_delay_sec,
        )

    @property
    def mining_unbounded(self) -> bool:
        """``True`` when the Mining action repeats until the process is stopped."""
        return self.mining_times == 0


def load_settings(**overrides: object) -> Settings:
    """Load :class:`Settings`, mapping validation failures to ConfigurationError.

    Args:
        **overrides: Field values that take precedence over the environment.

    Raises:
        ConfigurationError: If a required setting is missing or invalid.
    """
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc
