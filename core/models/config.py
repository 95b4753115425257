"""Indicator and backtest configuration models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class IndicatorConfig(BaseModel):
    """Indicator periods.

    Moving-average periods (5/10/20/60/120) and RSI periods (6/12/24) are
    fixed by the snapshot shape and are not configurable.
    """

    model_config = ConfigDict(frozen=True)

    # MACD
    macd_fast: int = Field(default=12, ge=1)
    macd_slow: int = Field(default=26, ge=1)
    macd_signal: int = Field(default=9, ge=1)

    # KDJ lookback for RSV
    kdj_period: int = Field(default=9, ge=1)

    # Bollinger Bands
    boll_period: int = Field(default=20, ge=1)
    boll_multiplier: float = Field(default=2.0, ge=0)

    # ATR (Wilder)
    atr_period: int = Field(default=14, ge=1)

    # Volume ratio: latest volume / mean of the previous N volumes
    volume_ratio_period: int = Field(default=5, ge=1)


class BacktestConfig(BaseModel):
    """Exit parameters for the single-position backtest.

    Percentages are fractions: 0.05 = 5%.
    """

    model_config = ConfigDict(frozen=True)

    stop_loss_pct: float = Field(default=0.05, gt=0, le=1)
    take_profit_pct: float = Field(default=0.08, gt=0)
    max_hold_days: int = Field(default=20, ge=1)
