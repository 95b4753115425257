"""Backtesting system for the bar-replay trading simulation.

Independent of service/; only depends on core/ for models.

Usage:
    from backtest import run_backtest
    result = run_backtest(bars)
"""

from backtest.engine import BacktestEngine, run_backtest
from backtest.stats import BacktestResult

__all__ = ["BacktestEngine", "BacktestResult", "run_backtest"]
