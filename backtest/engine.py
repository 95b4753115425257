"""Single-position backtest engine.

Replays a bar sequence through a two-state machine:

    FLAT --(BUY signal at close)--> LONG
    LONG --(first matching exit rule at close)--> FLAT

Exit rules are checked in fixed priority order on every bar after entry:
1. Stop-loss:   return <= -stop_loss_pct
2. Take-profit: return >= take_profit_pct
3. Max hold:    held for max_hold_days bars
4. Sell signal: simplified score <= -25

Stop-loss and take-profit therefore always win over a simultaneous sell
signal. No pyramiding and no shorting. A position still open when the
data ends is not recorded as a trade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from core.models import (
    BacktestConfig,
    BacktestTrade,
    Bar,
    ExitReason,
    get_closes,
    get_volumes,
    validate_bars,
)
from core.models.trade import DEFAULT_ENTRY_SIGNAL

from backtest.signal import SimpleSignalScorer, TradeAction
from backtest.stats import BacktestResult, StatisticsCalculator

logger = logging.getLogger(__name__)

# First bar index at which entries are considered
WARMUP_BARS = 30


class PositionState(str, Enum):
    FLAT = "flat"
    LONG = "long"


@dataclass
class Position:
    """The open long position."""

    buy_date: str
    buy_price: float
    entry_signal: str = DEFAULT_ENTRY_SIGNAL
    hold_days: int = 0

    def return_at(self, price: float) -> float:
        """Return as a fraction at ``price`` (0.05 = +5%)."""
        return (price - self.buy_price) / self.buy_price


@dataclass(frozen=True)
class ExitContext:
    """Everything an exit rule may look at for one bar."""

    return_pct: float  # Fraction
    hold_days: int
    sell_signal: bool
    config: BacktestConfig


ExitGuard = Callable[[ExitContext], bool]

# Ordered by priority; the first guard that passes names the exit.
EXIT_RULES: tuple[tuple[ExitReason, ExitGuard], ...] = (
    (ExitReason.STOP_LOSS, lambda ctx: ctx.return_pct <= -ctx.config.stop_loss_pct),
    (ExitReason.TAKE_PROFIT, lambda ctx: ctx.return_pct >= ctx.config.take_profit_pct),
    (ExitReason.MAX_HOLD, lambda ctx: ctx.hold_days >= ctx.config.max_hold_days),
    (ExitReason.SELL_SIGNAL, lambda ctx: ctx.sell_signal),
)


def evaluate_exit(ctx: ExitContext) -> ExitReason | None:
    """Return the highest-priority exit rule that fires, or None to keep holding."""
    for reason, guard in EXIT_RULES:
        if guard(ctx):
            return reason
    return None


class BacktestEngine:
    """Replay bars through the simplified signal and the exit rules."""

    def __init__(
        self,
        config: BacktestConfig | None = None,
        stats: StatisticsCalculator | None = None,
    ):
        self.config = config or BacktestConfig()
        self._stats = stats or StatisticsCalculator()

    def run(self, bars: Sequence[Bar]) -> BacktestResult:
        """
        Run a full backtest over ``bars``.

        Args:
            bars: Bars in ascending date order. Histories shorter than the
                warm-up window simply produce no trades.

        Returns:
            BacktestResult with statistics over every closed trade

        Raises:
            InvalidBarsError: If bars are empty or out of order
        """
        trades = self.simulate(bars)
        result = self._stats.calculate(trades)
        logger.info(
            "Backtest finished: %d bars, %d trades, win rate %.1f%%, total return %.2f%%",
            len(bars),
            result.total_trades,
            result.win_rate,
            result.total_return,
        )
        return result

    def simulate(self, bars: Sequence[Bar]) -> list[BacktestTrade]:
        """Run the state machine and return every closed trade in order."""
        validate_bars(bars)
        scorer = SimpleSignalScorer(get_closes(bars), get_volumes(bars))

        state = PositionState.FLAT
        position: Position | None = None
        trades: list[BacktestTrade] = []

        for i in range(WARMUP_BARS, len(bars)):
            bar = bars[i]

            if state == PositionState.FLAT:
                if bar.close > 0 and scorer.action(i) == TradeAction.BUY:
                    position = Position(buy_date=bar.date, buy_price=bar.close)
                    state = PositionState.LONG
                    logger.debug("BUY %s @ %s", bar.date, bar.close)
                continue

            position.hold_days += 1
            ctx = ExitContext(
                return_pct=position.return_at(bar.close),
                hold_days=position.hold_days,
                sell_signal=scorer.action(i) == TradeAction.SELL,
                config=self.config,
            )
            reason = evaluate_exit(ctx)
            if reason is None:
                continue

            trade = self._close_position(position, bar, ctx.return_pct, reason)
            trades.append(trade)
            logger.debug(
                "SELL %s @ %s (%s, %+.2f%%)",
                bar.date,
                bar.close,
                reason.value,
                trade.return_pct,
            )
            position = None
            state = PositionState.FLAT

        if state == PositionState.LONG:
            logger.debug(
                "Position opened %s still open at end of data (not recorded)",
                position.buy_date,
            )

        return trades

    @staticmethod
    def _close_position(
        position: Position, bar: Bar, return_pct: float, reason: ExitReason
    ) -> BacktestTrade:
        return BacktestTrade(
            buy_date=position.buy_date,
            buy_price=round(position.buy_price, 2),
            sell_date=bar.date,
            sell_price=round(bar.close, 2),
            return_pct=round(return_pct * 100, 2),
            exit_reason=reason,
            entry_signal=position.entry_signal,
        )


def run_backtest(
    bars: Sequence[Bar], config: BacktestConfig | None = None
) -> BacktestResult:
    """Shortcut for ``BacktestEngine(config).run(bars)``."""
    return BacktestEngine(config).run(bars)
