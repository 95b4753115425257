"""Price bar (K-line) data models."""

from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field


class InvalidBarsError(ValueError):
    """Raised when a bar sequence violates the ordering/non-empty contract."""


class Bar(BaseModel):
    """Daily or intraday OHLCV bar."""

    model_config = ConfigDict(frozen=True)

    date: str
    open: float = Field(ge=0)
    high: float = Field(ge=0)
    low: float = Field(ge=0)
    close: float = Field(ge=0)
    volume: float = Field(default=0.0, ge=0)
    amount: float = Field(default=0.0, ge=0)


def validate_bars(bars: Sequence[Bar]) -> None:
    """Fail fast on an empty or non-monotonic bar sequence.

    Dates must be strictly ascending; duplicates are rejected too.

    Raises:
        InvalidBarsError: If the sequence is empty or out of order.
    """
    if not bars:
        raise InvalidBarsError("bar sequence is empty")

    for i in range(1, len(bars)):
        if bars[i].date <= bars[i - 1].date:
            raise InvalidBarsError(
                f"bar dates must be strictly ascending: "
                f"{bars[i - 1].date!r} at index {i - 1} is followed by {bars[i].date!r}"
            )


def get_closes(bars: Sequence[Bar]) -> list[float]:
    """Get list of close prices."""
    return [b.close for b in bars]


def get_highs(bars: Sequence[Bar]) -> list[float]:
    """Get list of high prices."""
    return [b.high for b in bars]


def get_lows(bars: Sequence[Bar]) -> list[float]:
    """Get list of low prices."""
    return [b.low for b in bars]


def get_volumes(bars: Sequence[Bar]) -> list[float]:
    """Get list of volumes."""
    return [b.volume for b in bars]
