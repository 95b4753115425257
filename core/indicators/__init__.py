"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    sma,
    ema,
    macd,
    rsi,
    kdj,
    boll,
    true_range,
    atr,
    volume_ratio,
    IndicatorCalculator,
    calculate_indicators,
    calculate_indicator_series,
)

__all__ = [
    "sma",
    "ema",
    "macd",
    "rsi",
    "kdj",
    "boll",
    "true_range",
    "atr",
    "volume_ratio",
    "IndicatorCalculator",
    "calculate_indicators",
    "calculate_indicator_series",
]
