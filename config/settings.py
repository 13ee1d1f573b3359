"""Simulator global settings — loaded from environment variables via .env file."""

from __future__ import annotations

from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.constants import (
    CONTRACT_SIZE,
    DEFAULT_INITIAL_BALANCE,
    DEFAULT_MAKER_FEE_RATE,
    DEFAULT_TAKER_FEE_RATE,
    MAX_LEVERAGE,
    POSITION_SIZE_LIMIT,
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """All configuration flows through this class. Never read env vars directly."""

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Account ──────────────────────────────────────────────────
    sim_initial_balance: float = DEFAULT_INITIAL_BALANCE

    # ── Fees ─────────────────────────────────────────────────────
    sim_maker_fee_rate: float = DEFAULT_MAKER_FEE_RATE
    sim_taker_fee_rate: float = DEFAULT_TAKER_FEE_RATE

    # ── Contract Rules ───────────────────────────────────────────
    sim_contract_size: int = CONTRACT_SIZE
    sim_position_size_limit: float = POSITION_SIZE_LIMIT
    sim_max_leverage: float = MAX_LEVERAGE

    # ── Logging ──────────────────────────────────────────────────
    sim_log_level: str = "INFO"
    sim_log_json: bool = False

    @model_validator(mode="after")
    def _check_contract_rules(self) -> "Settings":
        """Reject configurations the matching engine cannot operate under."""
        if self.sim_contract_size <= 0:
            msg = f"SIM_CONTRACT_SIZE must be positive, got {self.sim_contract_size}"
            raise ValueError(msg)
        if self.sim_position_size_limit <= 0:
            msg = (
                "SIM_POSITION_SIZE_LIMIT must be positive, "
                f"got {self.sim_position_size_limit}"
            )
            raise ValueError(msg)
        if self.sim_max_leverage <= 0:
            msg = f"SIM_MAX_LEVERAGE must be positive, got {self.sim_max_leverage}"
            raise ValueError(msg)
        if self.sim_initial_balance < 0:
            msg = (
                "SIM_INITIAL_BALANCE cannot be negative, "
                f"got {self.sim_initial_balance}"
            )
            raise ValueError(msg)
        if self.sim_taker_fee_rate < self.sim_maker_fee_rate:
            msg = (
                f"SIM_TAKER_FEE_RATE ({self.sim_taker_fee_rate}) must not be "
                f"below SIM_MAKER_FEE_RATE ({self.sim_maker_fee_rate})"
            )
            raise ValueError(msg)
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Singleton settings loader — reads .env once, reuses thereafter."""
    global _settings_instance  # noqa: PLW0603
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
