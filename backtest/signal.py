"""Simplified per-bar signal used by the backtester.

This is a separate scoring function from core.analyzer:
it uses a lighter weight set and an edge-triggered MACD condition
(DIF crossing zero on this bar) instead of the DIF/DEA relative position.

Weights:
- MA5 > MA10 > MA20: +20 (mirror: -20)
- Close above MA20: +5, otherwise -5
- DIF crosses above zero: +15 (crosses below: -15)
- RSI6 > 80: -10, RSI6 < 20: +10
- Change > 1% with volume ratio > 1.5: +10
- Change < -1% with volume ratio > 2: -10

score >= 25 -> BUY, score <= -25 -> SELL, otherwise HOLD.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

import numpy as np

# Bars needed before the simplified indicators are meaningful (EMA26)
MIN_SIGNAL_INDEX = 26

BUY_THRESHOLD = 25
SELL_THRESHOLD = -25


class TradeAction(str, Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


def _trailing_mean(data: np.ndarray, end_idx: int, period: int) -> float:
    """Mean of data[end_idx - period + 1 : end_idx + 1], clipped at index 0."""
    start = max(0, end_idx - period + 1)
    window = data[start : end_idx + 1]
    if len(window) == 0:
        return 0.0
    return float(np.mean(window))


def _unrounded_ema(data: np.ndarray, period: int) -> np.ndarray:
    k = 2.0 / (period + 1)
    out = np.empty_like(data)
    if len(data) == 0:
        return out
    out[0] = data[0]
    for i in range(1, len(data)):
        out[i] = data[i] * k + out[i - 1] * (1 - k)
    return out


def _running_rsi(closes: np.ndarray, period: int) -> np.ndarray:
    """RSI at every index using all history up to it.

    Unlike core.indicators.rsi there is no NaN warm-up: early indices use
    the partial Wilder seed.
    """
    out = np.full(len(closes), 100.0)
    avg_gain = 0.0
    avg_loss = 0.0
    for i in range(1, len(closes)):
        change = float(closes[i] - closes[i - 1])
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0
        if i <= period:
            avg_gain += gain / period
            avg_loss += loss / period
        else:
            avg_gain = (avg_gain * (period - 1) + gain) / period
            avg_loss = (avg_loss * (period - 1) + loss) / period
        if avg_loss == 0:
            out[i] = 100.0
        else:
            out[i] = round(100 - 100 / (1 + avg_gain / avg_loss), 2)
    return out


class SimpleSignalScorer:
    """Score any bar index of a fixed close/volume history.

    The recursive EMAs and RSI only depend on the prefix up to each index,
    so they are computed once up front; ``score(idx)`` returns exactly what a
    recomputation over ``closes[:idx + 1]`` would give.
    """

    def __init__(self, closes: Sequence[float], volumes: Sequence[float]):
        if len(closes) != len(volumes):
            raise ValueError(
                f"closes and volumes differ in length: {len(closes)} != {len(volumes)}"
            )
        self._closes = np.asarray(closes, dtype=np.float64)
        self._volumes = np.asarray(volumes, dtype=np.float64)
        self._dif = _unrounded_ema(self._closes, 12) - _unrounded_ema(self._closes, 26)
        self._rsi6 = _running_rsi(self._closes, 6)

    def __len__(self) -> int:
        return len(self._closes)

    def score(self, idx: int) -> float:
        """Composite score at bar ``idx`` (0 before MIN_SIGNAL_INDEX)."""
        if idx < MIN_SIGNAL_INDEX:
            return 0.0

        closes = self._closes
        close = float(closes[idx])
        score = 0.0

        # MA alignment
        ma5 = _trailing_mean(closes, idx, 5)
        ma10 = _trailing_mean(closes, idx, 10)
        ma20 = _trailing_mean(closes, idx, 20)
        if ma5 > ma10 > ma20:
            score += 20
        if ma5 < ma10 < ma20:
            score -= 20

        # Close vs MA20
        score += 5 if close > ma20 else -5

        # DIF zero-line crossing on this bar
        dif = self._dif[idx]
        prev_dif = self._dif[idx - 1]
        if dif > 0 and prev_dif <= 0:
            score += 15
        if dif < 0 and prev_dif >= 0:
            score -= 15

        # RSI6 extremes
        rsi6 = self._rsi6[idx]
        if rsi6 > 80:
            score -= 10
        elif rsi6 < 20:
            score += 10

        # Price/volume confirmation
        vol_avg5 = _trailing_mean(self._volumes, idx - 1, 5)
        vol_ratio = float(self._volumes[idx]) / vol_avg5 if vol_avg5 > 0 else 1.0
        prev_close = float(closes[idx - 1])
        change = (close - prev_close) / prev_close if prev_close > 0 else 0.0
        if change > 0.01 and vol_ratio > 1.5:
            score += 10
        if change < -0.01 and vol_ratio > 2:
            score -= 10

        return score

    def action(self, idx: int) -> TradeAction:
        """Map the score at ``idx`` to BUY/SELL/HOLD."""
        score = self.score(idx)
        if score >= BUY_THRESHOLD:
            return TradeAction.BUY
        if score <= SELL_THRESHOLD:
            return TradeAction.SELL
        return TradeAction.HOLD
