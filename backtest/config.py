"""Backtest-specific configuration.

Default exit parameters can be overridden from the environment, e.g.
``BACKTEST_STOP_LOSS_PCT=0.03``.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from core.models.config import BacktestConfig


class BacktestSettings(BaseSettings):
    """Backtest configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BACKTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    stop_loss_pct: float = 0.05
    take_profit_pct: float = 0.08
    max_hold_days: int = 20

    def to_config(self) -> BacktestConfig:
        """Validate into the immutable config used by the engine."""
        return BacktestConfig(
            stop_loss_pct=self.stop_loss_pct,
            take_profit_pct=self.take_profit_pct,
            max_hold_days=self.max_hold_days,
        )


_settings: BacktestSettings | None = None


def get_backtest_settings() -> BacktestSettings:
    """Get cached backtest settings instance."""
    global _settings
    if _settings is None:
        _settings = BacktestSettings()
    return _settings
