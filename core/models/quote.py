"""Real-time quote snapshot model."""

from __future__ import annotations

from typing import Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from core.models.bar import Bar, validate_bars


class Quote(BaseModel):
    """Current tick snapshot for one instrument.

    ``close`` is the previous session's close, not the current price.
    Volume is in lots and amount in the provider's unit; both are
    passed through untouched.
    """

    model_config = ConfigDict(frozen=True)

    code: str = ""
    name: str = ""
    price: float
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0
    volume: float = 0.0
    amount: float = 0.0
    change: float = 0.0
    change_percent: float = Field(
        default=0.0, validation_alias=AliasChoices("change_percent", "changePercent")
    )
    turnover: float = 0.0
    time: str = ""

    @classmethod
    def from_bars(cls, bars: Sequence[Bar], code: str = "", name: str = "") -> "Quote":
        """Build a quote from the latest bar when no live tick is available.

        The previous bar's close becomes the reference close. With a single
        bar the bar's own open is used instead.
        """
        validate_bars(bars)
        last = bars[-1]
        prev_close = bars[-2].close if len(bars) > 1 else last.open
        change = last.close - prev_close
        change_percent = change / prev_close * 100 if prev_close > 0 else 0.0

        return cls(
            code=code,
            name=name or code,
            price=last.close,
            open=last.open,
            high=last.high,
            low=last.low,
            close=prev_close,
            volume=last.volume,
            amount=last.amount,
            change=round(change, 2),
            change_percent=round(change_percent, 2),
            time=last.date,
        )
