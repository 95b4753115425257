"""Report formatting for backtest results.

Outputs results to console (formatted tables) and JSON files.
"""

from __future__ import annotations

from pathlib import Path

import orjson

from backtest.stats import BacktestResult


class ReportFormatter:
    """Format backtest results for display and export."""

    @staticmethod
    def print_console(result: BacktestResult, title: str = "") -> None:
        """Print formatted report to console."""
        print("\n" + "=" * 70)
        print(f"  BACKTEST RESULTS{': ' + title if title else ''}")
        print("=" * 70)

        print(f"  Total trades:   {result.total_trades}")
        print(f"  Wins:           {result.win_trades}")
        print(f"  Losses:         {result.lose_trades}")
        print(f"  Win rate:       {result.win_rate:.1f}%")
        print(f"  Total return:   {result.total_return:+.2f}%")
        print(f"  Avg return:     {result.avg_return:+.2f}% per trade")
        print(f"  Max drawdown:   {result.max_drawdown:.2f}%")
        print(f"  Sharpe (simpl): {result.sharpe_ratio:.2f}")

        if result.trades:
            print("\n" + "-" * 70)
            print(f"  RECENT TRADES (last {len(result.trades)})")
            print("-" * 70)
            print(
                f"  {'Buy date':<12} {'Buy':>9} {'Sell date':<12} {'Sell':>9} "
                f"{'Return':>8}  {'Exit':<12}"
            )
            for t in result.trades:
                print(
                    f"  {t.buy_date:<12} {t.buy_price:>9.2f} {t.sell_date:<12} "
                    f"{t.sell_price:>9.2f} {t.return_pct:>+7.2f}%  {t.exit_reason.value:<12}"
                )

        print("\n" + "=" * 70)

    @staticmethod
    def to_dict(result: BacktestResult) -> dict:
        """Convert results to JSON-serializable dict."""
        return {
            "overall": {
                "total_trades": result.total_trades,
                "win_trades": result.win_trades,
                "lose_trades": result.lose_trades,
                "win_rate": result.win_rate,
                "total_return": result.total_return,
                "avg_return": result.avg_return,
                "max_drawdown": result.max_drawdown,
                "sharpe_ratio": result.sharpe_ratio,
            },
            "trades": [
                {
                    "buy_date": t.buy_date,
                    "buy_price": t.buy_price,
                    "sell_date": t.sell_date,
                    "sell_price": t.sell_price,
                    "return_pct": t.return_pct,
                    "exit_reason": t.exit_reason.value,
                    "signal": t.label,
                }
                for t in result.trades
            ],
        }

    @staticmethod
    def save_json(result: BacktestResult, filepath: str | Path) -> None:
        """Save results to JSON file."""
        data = ReportFormatter.to_dict(result)
        Path(filepath).write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        print(f"\nResults saved to {filepath}")
