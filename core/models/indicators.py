"""Indicator snapshot and series models.

Undefined values (insufficient lookback) are stored as ``float("nan")``
and must be checked with :func:`is_available` before use.
"""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

NAN = float("nan")


def is_available(value: float | None) -> bool:
    """Return True if an indicator value is defined (not None/NaN)."""
    if value is None:
        return False
    return not math.isnan(value)


class DivergenceKind(str, Enum):
    """Oscillator divergence direction."""

    TOP = "top"  # Price higher high, oscillator lower high
    BOTTOM = "bottom"  # Price lower low, oscillator higher low
    NONE = "none"


class DivergenceHint(BaseModel):
    """Divergence detected by an upstream collaborator, consumed as-is."""

    model_config = ConfigDict(frozen=True)

    macd: DivergenceKind = DivergenceKind.NONE
    rsi: DivergenceKind = DivergenceKind.NONE
    description: list[str] = Field(default_factory=list)


# =============================================================================
# Latest-value snapshot (for scoring)
# =============================================================================

class MAValues(BaseModel):
    model_config = ConfigDict(frozen=True)

    ma5: float = NAN
    ma10: float = NAN
    ma20: float = NAN
    ma60: float = NAN
    ma120: float = NAN


class MACDValues(BaseModel):
    model_config = ConfigDict(frozen=True)

    dif: float = NAN
    dea: float = NAN
    histogram: float = NAN


class RSIValues(BaseModel):
    model_config = ConfigDict(frozen=True)

    rsi6: float = NAN
    rsi12: float = NAN
    rsi24: float = NAN


class KDJValues(BaseModel):
    model_config = ConfigDict(frozen=True)

    k: float = NAN
    d: float = NAN
    j: float = NAN


class BOLLValues(BaseModel):
    model_config = ConfigDict(frozen=True)

    upper: float = NAN
    middle: float = NAN
    lower: float = NAN


class IndicatorSnapshot(BaseModel):
    """Last-bar view of every indicator family."""

    model_config = ConfigDict(frozen=True)

    ma: MAValues = Field(default_factory=MAValues)
    macd: MACDValues = Field(default_factory=MACDValues)
    rsi: RSIValues = Field(default_factory=RSIValues)
    kdj: KDJValues = Field(default_factory=KDJValues)
    boll: BOLLValues = Field(default_factory=BOLLValues)
    atr: float = NAN
    volume_ratio: float = NAN
    divergence: DivergenceHint | None = None

    def with_divergence(self, hint: DivergenceHint | None) -> "IndicatorSnapshot":
        """Return a copy carrying an externally supplied divergence hint."""
        return self.model_copy(update={"divergence": hint})


# =============================================================================
# Full series (for charting)
# =============================================================================

class MACDSeries(BaseModel):
    model_config = ConfigDict(frozen=True)

    dif: list[float] = Field(default_factory=list)
    dea: list[float] = Field(default_factory=list)
    histogram: list[float] = Field(default_factory=list)


class KDJSeries(BaseModel):
    model_config = ConfigDict(frozen=True)

    k: list[float] = Field(default_factory=list)
    d: list[float] = Field(default_factory=list)
    j: list[float] = Field(default_factory=list)


class BOLLSeries(BaseModel):
    model_config = ConfigDict(frozen=True)

    upper: list[float] = Field(default_factory=list)
    middle: list[float] = Field(default_factory=list)
    lower: list[float] = Field(default_factory=list)


class IndicatorSeries(BaseModel):
    """Per-bar indicator arrays, all parallel to ``dates``."""

    model_config = ConfigDict(frozen=True)

    dates: list[str] = Field(default_factory=list)
    ma5: list[float] = Field(default_factory=list)
    ma10: list[float] = Field(default_factory=list)
    ma20: list[float] = Field(default_factory=list)
    ma60: list[float] = Field(default_factory=list)
    ma120: list[float] = Field(default_factory=list)
    macd: MACDSeries = Field(default_factory=MACDSeries)
    rsi6: list[float] = Field(default_factory=list)
    rsi12: list[float] = Field(default_factory=list)
    rsi24: list[float] = Field(default_factory=list)
    kdj: KDJSeries = Field(default_factory=KDJSeries)
    boll: BOLLSeries = Field(default_factory=BOLLSeries)
    atr: list[float] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.dates)
