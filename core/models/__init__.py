"""Data models shared by the indicator engine, scorer, and backtester."""

from core.models.bar import (
    Bar,
    InvalidBarsError,
    get_closes,
    get_highs,
    get_lows,
    get_volumes,
    validate_bars,
)
from core.models.config import BacktestConfig, IndicatorConfig
from core.models.indicators import (
    BOLLSeries,
    BOLLValues,
    DivergenceHint,
    DivergenceKind,
    IndicatorSeries,
    IndicatorSnapshot,
    KDJSeries,
    KDJValues,
    MACDSeries,
    MACDValues,
    MAValues,
    RSIValues,
    is_available,
)
from core.models.quote import Quote
from core.models.signal import AnalysisResult, RiskLevels, Signal, SignalScore
from core.models.trade import BacktestTrade, ExitReason

__all__ = [
    "Bar",
    "InvalidBarsError",
    "get_closes",
    "get_highs",
    "get_lows",
    "get_volumes",
    "validate_bars",
    "BacktestConfig",
    "IndicatorConfig",
    "BOLLSeries",
    "BOLLValues",
    "DivergenceHint",
    "DivergenceKind",
    "IndicatorSeries",
    "IndicatorSnapshot",
    "KDJSeries",
    "KDJValues",
    "MACDSeries",
    "MACDValues",
    "MAValues",
    "RSIValues",
    "is_available",
    "Quote",
    "AnalysisResult",
    "RiskLevels",
    "Signal",
    "SignalScore",
    "BacktestTrade",
    "ExitReason",
]
