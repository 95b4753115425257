"""Simulated trade records produced by the backtester."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ExitReason(str, Enum):
    """Rule that closed a simulated position."""

    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    MAX_HOLD = "max_hold"  # Held for max_hold_days
    SELL_SIGNAL = "sell_signal"


DEFAULT_ENTRY_SIGNAL = "MA bullish + MACD cross"


class BacktestTrade(BaseModel):
    """A closed round trip: one buy followed by one sell."""

    model_config = ConfigDict(frozen=True)

    buy_date: str
    buy_price: float
    sell_date: str
    sell_price: float
    return_pct: float  # Percent, e.g. 5.0 = +5%
    exit_reason: ExitReason
    entry_signal: str = DEFAULT_ENTRY_SIGNAL

    @property
    def is_win(self) -> bool:
        return self.return_pct > 0

    @property
    def label(self) -> str:
        """Entry rule and exit rule, e.g. 'MA bullish + MACD cross -> stop_loss'."""
        return f"{self.entry_signal} -> {self.exit_reason.value}"
