"""Statistics calculator for backtest results.

All figures are computed over the full trade list before it is truncated
to the most recent MAX_REPORTED_TRADES entries.

Conventions:
- Win = return_pct > 0; a flat trade counts as a loss
- Total return is the plain sum of per-trade returns (not compounded)
- Max drawdown uses a compounding equity curve starting at 1.0
- Sharpe ratio is simplified: mean / sample stddev of per-trade returns
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from statistics import fmean, stdev

from core.models.trade import BacktestTrade

logger = logging.getLogger(__name__)

MAX_REPORTED_TRADES = 10


@dataclass
class BacktestResult:
    """Complete backtest results."""

    total_trades: int = 0
    win_trades: int = 0
    lose_trades: int = 0
    win_rate: float = 0.0  # Percent, 1 decimal
    total_return: float = 0.0  # Percent, sum of trade returns
    avg_return: float = 0.0  # Percent per trade
    max_drawdown: float = 0.0  # Percent
    sharpe_ratio: float = 0.0

    # Most recent trades only
    trades: list[BacktestTrade] = field(default_factory=list)


class StatisticsCalculator:
    """Calculate aggregate backtest statistics."""

    def __init__(self, max_reported_trades: int = MAX_REPORTED_TRADES):
        self.max_reported_trades = max_reported_trades

    def calculate(self, trades: list[BacktestTrade]) -> BacktestResult:
        result = BacktestResult(trades=self._recent(trades))
        if not trades:
            return result

        returns = [t.return_pct for t in trades]
        self._calc_overall(result, trades)
        result.max_drawdown = self._max_drawdown(returns)
        result.sharpe_ratio = self._sharpe_ratio(returns)
        return result

    def _recent(self, trades: list[BacktestTrade]) -> list[BacktestTrade]:
        if self.max_reported_trades <= 0:
            return []
        return list(trades[-self.max_reported_trades :])

    def _calc_overall(self, result: BacktestResult, trades: list[BacktestTrade]) -> None:
        result.total_trades = len(trades)
        result.win_trades = sum(1 for t in trades if t.is_win)
        result.lose_trades = result.total_trades - result.win_trades
        result.win_rate = round(result.win_trades / result.total_trades * 100, 1)

        total = sum(t.return_pct for t in trades)
        result.total_return = round(total, 2)
        result.avg_return = round(total / result.total_trades, 2)

    @staticmethod
    def _max_drawdown(returns: list[float]) -> float:
        """Largest peak-to-trough drop of the compounding equity curve, in percent."""
        equity = 1.0
        peak = 1.0
        max_dd = 0.0
        for r in returns:
            equity *= 1 + r / 100
            if equity > peak:
                peak = equity
            dd = (peak - equity) / peak
            if dd > max_dd:
                max_dd = dd
        return round(max_dd * 100, 2)

    @staticmethod
    def _sharpe_ratio(returns: list[float]) -> float:
        if len(returns) < 2:
            return 0.0
        sd = stdev(returns)
        if sd == 0:
            return 0.0
        return round(fmean(returns) / sd, 2)
