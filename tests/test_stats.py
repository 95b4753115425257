"""Tests for StatisticsCalculator and report formatting."""

import orjson
import pytest

from backtest.report import ReportFormatter
from backtest.stats import MAX_REPORTED_TRADES, BacktestResult, StatisticsCalculator
from core.models import BacktestTrade, ExitReason


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def make_trade(
    return_pct: float = 5.0,
    exit_reason: ExitReason = ExitReason.TAKE_PROFIT,
    day: int = 1,
) -> BacktestTrade:
    """Build a BacktestTrade with sensible defaults for testing."""
    buy_price = 10.0
    return BacktestTrade(
        buy_date=f"2024-01-{day:02d}",
        buy_price=buy_price,
        sell_date=f"2024-02-{day:02d}",
        sell_price=round(buy_price * (1 + return_pct / 100), 2),
        return_pct=return_pct,
        exit_reason=exit_reason,
    )


class TestOverall:
    """Tests for win/loss counts and returns."""

    def test_empty(self):
        result = StatisticsCalculator().calculate([])

        assert result == BacktestResult()

    def test_counts(self):
        trades = [make_trade(5.0), make_trade(-3.0), make_trade(0.0)]
        result = StatisticsCalculator().calculate(trades)

        assert result.total_trades == 3
        assert result.win_trades == 1
        assert result.lose_trades == 2  # flat trade counts as a loss

    def test_win_rate_rounding(self):
        trades = [make_trade(2.0), make_trade(3.0), make_trade(-1.0)]
        result = StatisticsCalculator().calculate(trades)

        assert result.win_rate == 66.7

    def test_total_and_average(self):
        trades = [make_trade(5.0), make_trade(-2.5), make_trade(1.25)]
        result = StatisticsCalculator().calculate(trades)

        assert result.total_return == 3.75
        assert result.avg_return == 1.25

    def test_total_return_is_not_compounded(self):
        result = StatisticsCalculator().calculate([make_trade(10.0), make_trade(10.0)])
        assert result.total_return == 20.0


class TestMaxDrawdown:
    """Tests for the compounding equity-curve drawdown."""

    def test_no_losses(self):
        result = StatisticsCalculator().calculate([make_trade(1.0), make_trade(2.0)])
        assert result.max_drawdown == 0.0

    def test_peak_to_trough(self):
        # Equity 1.10 -> 0.88 (-20%) -> 0.924
        trades = [make_trade(10.0), make_trade(-20.0), make_trade(5.0)]
        result = StatisticsCalculator().calculate(trades)

        assert result.max_drawdown == 20.0

    def test_consecutive_losses_compound(self):
        # 1.0 -> 0.9 -> 0.81
        trades = [make_trade(-10.0), make_trade(-10.0)]
        result = StatisticsCalculator().calculate(trades)

        assert result.max_drawdown == 19.0


class TestSharpe:
    """Tests for the simplified Sharpe ratio."""

    def test_single_trade(self):
        result = StatisticsCalculator().calculate([make_trade(5.0)])
        assert result.sharpe_ratio == 0.0

    def test_identical_returns(self):
        result = StatisticsCalculator().calculate([make_trade(2.0)] * 3)
        assert result.sharpe_ratio == 0.0

    def test_mean_over_sample_stddev(self):
        # mean 2, sample stddev sqrt(2)
        result = StatisticsCalculator().calculate([make_trade(1.0), make_trade(3.0)])
        assert result.sharpe_ratio == pytest.approx(1.41)

    def test_negative(self):
        result = StatisticsCalculator().calculate([make_trade(-1.0), make_trade(-3.0)])
        assert result.sharpe_ratio == pytest.approx(-1.41)


class TestTruncation:
    """Tests for the reported-trades window."""

    def test_keeps_most_recent(self):
        trades = [make_trade(float(i + 1), day=i + 1) for i in range(15)]
        result = StatisticsCalculator().calculate(trades)

        assert len(result.trades) == MAX_REPORTED_TRADES
        assert result.trades[0].buy_date == "2024-01-06"
        assert result.trades[-1].buy_date == "2024-01-15"

    def test_statistics_cover_all_trades(self):
        trades = [make_trade(1.0, day=i + 1) for i in range(15)]
        result = StatisticsCalculator().calculate(trades)

        assert result.total_trades == 15
        assert result.total_return == 15.0

    def test_custom_window(self):
        trades = [make_trade(1.0, day=i + 1) for i in range(5)]

        assert len(StatisticsCalculator(max_reported_trades=2).calculate(trades).trades) == 2
        assert StatisticsCalculator(max_reported_trades=0).calculate(trades).trades == []


class TestReportFormatter:
    """Tests for console and JSON output."""

    def _result(self) -> BacktestResult:
        trades = [
            make_trade(9.0, ExitReason.TAKE_PROFIT, day=1),
            make_trade(-5.5, ExitReason.STOP_LOSS, day=2),
        ]
        return StatisticsCalculator().calculate(trades)

    def test_to_dict(self):
        data = ReportFormatter.to_dict(self._result())

        assert data["overall"]["total_trades"] == 2
        assert data["overall"]["win_rate"] == 50.0
        assert len(data["trades"]) == 2
        assert data["trades"][1]["exit_reason"] == "stop_loss"
        assert data["trades"][1]["signal"] == "MA bullish + MACD cross -> stop_loss"

    def test_save_json(self, tmp_path, capsys):
        path = tmp_path / "result.json"
        ReportFormatter.save_json(self._result(), path)

        loaded = orjson.loads(path.read_bytes())
        assert loaded["overall"]["total_return"] == 3.5
        assert loaded["trades"][0]["return_pct"] == 9.0
        assert "Results saved" in capsys.readouterr().out

    def test_print_console(self, capsys):
        ReportFormatter.print_console(self._result(), title="sh600519")
        out = capsys.readouterr().out

        assert "BACKTEST RESULTS: sh600519" in out
        assert "Win rate:       50.0%" in out
        assert "stop_loss" in out

    def test_print_console_without_trades(self, capsys):
        ReportFormatter.print_console(BacktestResult())
        out = capsys.readouterr().out

        assert "Total trades:   0" in out
        assert "RECENT TRADES" not in out
