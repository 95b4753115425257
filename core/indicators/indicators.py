"""Technical indicators for signal scoring and charting.

Every function takes plain float sequences (oldest first) and returns a
list of the same length. Positions without enough lookback are NaN;
short histories never raise.

Rounding follows the display convention: moving averages, RSI, KDJ,
BOLL and ATR are rounded to 2 decimals; EMA and the MACD lines keep 4.
Recursive indicators feed the rounded value back into the next step,
so results are reproducible bit-for-bit for the same input.
"""

import logging
import math
from typing import Sequence

import numpy as np

from core.models.bar import (
    Bar,
    get_closes,
    get_highs,
    get_lows,
    get_volumes,
    validate_bars,
)
from core.models.config import IndicatorConfig
from core.models.indicators import (
    BOLLSeries,
    BOLLValues,
    IndicatorSeries,
    IndicatorSnapshot,
    KDJSeries,
    KDJValues,
    MACDSeries,
    MACDValues,
    MAValues,
    RSIValues,
)

logger = logging.getLogger(__name__)

MA_PERIODS = (5, 10, 20, 60, 120)
RSI_PERIODS = (6, 12, 24)

# KDJ seed and smoothing weights
KDJ_SEED = 50.0
KDJ_PREV_WEIGHT = 2 / 3
KDJ_CURR_WEIGHT = 1 / 3


def _to_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


# =============================================================================
# Moving averages
# =============================================================================

def sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Simple Moving Average.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        List of SMA values rounded to 2 decimals (NaN for i < period - 1)
    """
    arr = _to_array(values)
    result = np.full(len(arr), np.nan)
    if period <= 0 or len(arr) < period:
        return result.tolist()

    for i in range(period - 1, len(arr)):
        result[i] = round(float(np.sum(arr[i - period + 1 : i + 1])) / period, 2)

    return result.tolist()


def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average.

    EMA[0] is the first value itself (no warm-up skip), then
    EMA[i] = value[i] * k + EMA[i-1] * (1 - k) with k = 2 / (period + 1).

    Args:
        values: Sequence of values
        period: EMA period

    Returns:
        List of EMA values rounded to 4 decimals
    """
    arr = _to_array(values)
    if len(arr) == 0:
        return []

    k = 2.0 / (period + 1)
    result = np.empty_like(arr)
    result[0] = arr[0]
    for i in range(1, len(arr)):
        result[i] = round(float(arr[i] * k + result[i - 1] * (1 - k)), 4)

    return result.tolist()


# =============================================================================
# MACD
# =============================================================================

def macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> tuple[list[float], list[float], list[float]]:
    """
    Calculate MACD lines.

    DIF = EMA(fast) - EMA(slow), DEA = EMA(DIF, signal),
    histogram = 2 * (DIF - DEA).

    Returns:
        Tuple of (dif, dea, histogram) lists
    """
    ema_fast = ema(closes, fast)
    ema_slow = ema(closes, slow)
    dif = [round(f - s, 4) for f, s in zip(ema_fast, ema_slow)]
    dea = ema(dif, signal)
    histogram = [round((d - e) * 2, 4) for d, e in zip(dif, dea)]
    return dif, dea, histogram


# =============================================================================
# RSI
# =============================================================================

def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return round(100 - 100 / (1 + avg_gain / avg_loss), 2)


def rsi(closes: Sequence[float], period: int) -> list[float]:
    """
    Calculate Relative Strength Index with Wilder smoothing.

    For i <= period the average gain/loss is the running sum divided by
    period (Wilder seed); after that
    avg = (avg * (period - 1) + current) / period.

    Args:
        closes: Sequence of close prices
        period: RSI period

    Returns:
        List of RSI values (NaN for i < period)
    """
    arr = _to_array(closes)
    n = len(arr)
    result = np.full(n, np.nan)
    if period <= 0:
        return result.tolist()

    avg_gain = 0.0
    avg_loss = 0.0
    for i in range(1, n):
        change = float(arr[i] - arr[i - 1])
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0

        if i <= period:
            avg_gain += gain / period
            avg_loss += loss / period
            if i < period:
                continue
        else:
            avg_gain = (avg_gain * (period - 1) + gain) / period
            avg_loss = (avg_loss * (period - 1) + loss) / period

        result[i] = _rsi_value(avg_gain, avg_loss)

    return result.tolist()


# =============================================================================
# KDJ
# =============================================================================

def kdj(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 9,
) -> tuple[list[float], list[float], list[float]]:
    """
    Calculate the KDJ stochastic oscillator.

    RSV uses the trailing ``period`` bars (fewer at the start of the data);
    a flat window gives RSV = 50. K and D start from 50:
    K = 2/3 * prevK + 1/3 * RSV, D = 2/3 * prevD + 1/3 * K, J = 3K - 2D.
    J is not bounded to [0, 100].

    Returns:
        Tuple of (k, d, j) lists, each rounded to 2 decimals
    """
    h = _to_array(highs)
    l = _to_array(lows)
    c = _to_array(closes)

    k_values: list[float] = []
    d_values: list[float] = []
    j_values: list[float] = []
    prev_k = KDJ_SEED
    prev_d = KDJ_SEED

    for i in range(len(c)):
        start = max(0, i - period + 1)
        window_high = float(np.max(h[start : i + 1]))
        window_low = float(np.min(l[start : i + 1]))
        if window_high == window_low:
            rsv = 50.0
        else:
            rsv = (float(c[i]) - window_low) / (window_high - window_low) * 100

        k = round(KDJ_PREV_WEIGHT * prev_k + KDJ_CURR_WEIGHT * rsv, 2)
        d = round(KDJ_PREV_WEIGHT * prev_d + KDJ_CURR_WEIGHT * k, 2)
        j = round(3 * k - 2 * d, 2)

        k_values.append(k)
        d_values.append(d)
        j_values.append(j)
        prev_k, prev_d = k, d

    return k_values, d_values, j_values


# =============================================================================
# Bollinger Bands
# =============================================================================

def boll(
    closes: Sequence[float],
    period: int = 20,
    multiplier: float = 2.0,
) -> tuple[list[float], list[float], list[float]]:
    """
    Calculate Bollinger Bands.

    Middle band is the SMA; the band width uses the population standard
    deviation (divisor = period) around the middle band.

    Returns:
        Tuple of (upper, middle, lower) lists
    """
    arr = _to_array(closes)
    middle = sma(closes, period)
    upper = [math.nan] * len(arr)
    lower = [math.nan] * len(arr)

    for i, mean in enumerate(middle):
        if math.isnan(mean):
            continue
        window = arr[i - period + 1 : i + 1]
        std = math.sqrt(float(np.sum((window - mean) ** 2)) / period)
        upper[i] = round(mean + multiplier * std, 2)
        lower[i] = round(mean - multiplier * std, 2)

    return upper, middle, lower


# =============================================================================
# ATR
# =============================================================================

def true_range(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> list[float]:
    """
    Calculate True Range.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close));
    the first bar has no previous close, so TR[0] = high - low.
    """
    n = len(highs)
    if n == 0:
        return []

    result = [float(highs[0] - lows[0])]
    for i in range(1, n):
        hl = highs[i] - lows[i]
        hc = abs(highs[i] - closes[i - 1])
        lc = abs(lows[i] - closes[i - 1])
        result.append(float(max(hl, hc, lc)))

    return result


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> list[float]:
    """
    Calculate Average True Range.

    Seeded with the simple mean of the first ``period`` true ranges at
    index period - 1, then Wilder-smoothed:
    ATR[i] = (ATR[i-1] * (period - 1) + TR[i]) / period.

    Returns:
        List of ATR values rounded to 2 decimals
    """
    tr = true_range(highs, lows, closes)
    result = [math.nan] * len(tr)
    if period <= 0 or len(tr) < period:
        return result

    result[period - 1] = round(float(np.sum(tr[:period])) / period, 2)
    for i in range(period, len(tr)):
        result[i] = round((result[i - 1] * (period - 1) + tr[i]) / period, 2)

    return result


# =============================================================================
# Volume
# =============================================================================

def volume_ratio(volumes: Sequence[float], period: int = 5) -> float:
    """
    Calculate the volume ratio of the latest bar.

    Latest volume divided by the mean volume of the ``period`` bars before
    it (fewer when history is shorter).

    Returns:
        Ratio rounded to 2 decimals, or NaN with fewer than 2 bars or a
        zero average
    """
    arr = _to_array(volumes)
    n = len(arr)
    if n < 2 or period <= 0:
        return math.nan

    previous = arr[max(0, n - 1 - period) : n - 1]
    avg = float(np.mean(previous))
    if avg <= 0:
        return math.nan

    return round(float(arr[-1]) / avg, 2)


# =============================================================================
# IndicatorCalculator class
# =============================================================================

class IndicatorCalculator:
    """Calculator for every indicator family used by the scorer and charts."""

    def __init__(self, config: IndicatorConfig | None = None):
        self.config = config or IndicatorConfig()

    def calculate_all(self, bars: Sequence[Bar]) -> IndicatorSeries:
        """
        Calculate full indicator series for the given bars.

        Args:
            bars: Bars in ascending date order

        Returns:
            IndicatorSeries with one value per bar for every family

        Raises:
            InvalidBarsError: If bars are empty or out of order
        """
        validate_bars(bars)
        cfg = self.config

        closes = get_closes(bars)
        highs = get_highs(bars)
        lows = get_lows(bars)

        dif, dea, histogram = macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal)
        k, d, j = kdj(highs, lows, closes, cfg.kdj_period)
        upper, middle, lower = boll(closes, cfg.boll_period, cfg.boll_multiplier)

        logger.debug("Calculated indicator series for %d bars", len(bars))

        return IndicatorSeries(
            dates=[b.date for b in bars],
            ma5=sma(closes, 5),
            ma10=sma(closes, 10),
            ma20=sma(closes, 20),
            ma60=sma(closes, 60),
            ma120=sma(closes, 120),
            macd=MACDSeries(dif=dif, dea=dea, histogram=histogram),
            rsi6=rsi(closes, 6),
            rsi12=rsi(closes, 12),
            rsi24=rsi(closes, 24),
            kdj=KDJSeries(k=k, d=d, j=j),
            boll=BOLLSeries(upper=upper, middle=middle, lower=lower),
            atr=atr(highs, lows, closes, cfg.atr_period),
        )

    def calculate_latest(self, bars: Sequence[Bar]) -> IndicatorSnapshot:
        """
        Calculate indicators for the latest bar only.

        Values whose lookback exceeds the available history are NaN.

        Args:
            bars: Bars in ascending date order (need enough history)

        Returns:
            IndicatorSnapshot for the last bar

        Raises:
            InvalidBarsError: If bars are empty or out of order
        """
        series = self.calculate_all(bars)
        vr = volume_ratio(get_volumes(bars), self.config.volume_ratio_period)

        if len(bars) < max(MA_PERIODS[:4]):
            logger.debug(
                "Only %d bars available, long-period indicators are undefined",
                len(bars),
            )

        return IndicatorSnapshot(
            ma=MAValues(
                ma5=series.ma5[-1],
                ma10=series.ma10[-1],
                ma20=series.ma20[-1],
                ma60=series.ma60[-1],
                ma120=series.ma120[-1],
            ),
            macd=MACDValues(
                dif=series.macd.dif[-1],
                dea=series.macd.dea[-1],
                histogram=series.macd.histogram[-1],
            ),
            rsi=RSIValues(
                rsi6=series.rsi6[-1],
                rsi12=series.rsi12[-1],
                rsi24=series.rsi24[-1],
            ),
            kdj=KDJValues(k=series.kdj.k[-1], d=series.kdj.d[-1], j=series.kdj.j[-1]),
            boll=BOLLValues(
                upper=series.boll.upper[-1],
                middle=series.boll.middle[-1],
                lower=series.boll.lower[-1],
            ),
            atr=series.atr[-1],
            volume_ratio=vr,
        )


def calculate_indicators(
    bars: Sequence[Bar], config: IndicatorConfig | None = None
) -> IndicatorSnapshot:
    """Shortcut for ``IndicatorCalculator(config).calculate_latest(bars)``."""
    return IndicatorCalculator(config).calculate_latest(bars)


def calculate_indicator_series(
    bars: Sequence[Bar], config: IndicatorConfig | None = None
) -> IndicatorSeries:
    """Shortcut for ``IndicatorCalculator(config).calculate_all(bars)``."""
    return IndicatorCalculator(config).calculate_all(bars)
