"""CLI entry point for offline analysis and backtesting.

Usage:
    python -m service analyze 600519 --bars data/600519.csv
    python -m service analyze 600519 --bars data/600519.json --quote quote.json -o out.json
    python -m service backtest --bars data/600519.csv --stop-loss 0.03 --take-profit 0.06
    python -m service series --bars data/600519.csv -o series.json
"""

import argparse
import logging
import sys
from pathlib import Path

import orjson

from backtest.config import get_backtest_settings
from backtest.engine import BacktestEngine
from backtest.report import ReportFormatter
from core.indicators import calculate_indicator_series
from core.models import BacktestConfig
from service.analysis import AnalysisService
from service.config import get_settings
from service.loader import load_bars, load_quote

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m service",
        description="Technical analysis signals and backtests from local bar files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m service analyze 600519 --bars 600519.csv
  python -m service backtest --bars 600519.csv --max-hold-days 10
  python -m service series --bars 600519.json -o series.json
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--bars", required=True, help="Bar file (.csv or .json)")
        p.add_argument(
            "--output", "-o",
            type=str,
            default=None,
            help="Output file path for JSON results",
        )

    def add_backtest_params(p: argparse.ArgumentParser) -> None:
        settings = get_backtest_settings()
        p.add_argument(
            "--stop-loss",
            type=float,
            default=settings.stop_loss_pct,
            help=f"Stop-loss fraction (default: {settings.stop_loss_pct})",
        )
        p.add_argument(
            "--take-profit",
            type=float,
            default=settings.take_profit_pct,
            help=f"Take-profit fraction (default: {settings.take_profit_pct})",
        )
        p.add_argument(
            "--max-hold-days",
            type=int,
            default=settings.max_hold_days,
            help=f"Maximum bars to hold (default: {settings.max_hold_days})",
        )

    p_analyze = sub.add_parser("analyze", help="Score the latest bar and backtest history")
    p_analyze.add_argument("code", help="Instrument code, e.g. 600519 or sh600519")
    p_analyze.add_argument("--quote", default=None, help="Quote JSON file (default: derive from bars)")
    add_common(p_analyze)
    add_backtest_params(p_analyze)

    p_backtest = sub.add_parser("backtest", help="Backtest the simplified signal")
    add_common(p_backtest)
    add_backtest_params(p_backtest)

    p_series = sub.add_parser("series", help="Export full indicator series")
    add_common(p_series)

    return parser.parse_args(argv)


def _backtest_config(args: argparse.Namespace) -> BacktestConfig:
    return BacktestConfig(
        stop_loss_pct=args.stop_loss,
        take_profit_pct=args.take_profit,
        max_hold_days=args.max_hold_days,
    )


def _write_or_print(data: bytes, output: str | None) -> None:
    if output:
        Path(output).write_bytes(data)
        print(f"Results saved to {output}")
    else:
        print(data.decode("utf-8"))


def cmd_analyze(args: argparse.Namespace) -> None:
    bars = load_bars(args.bars)
    quote = load_quote(args.quote) if args.quote else None

    service = AnalysisService(backtest_config=_backtest_config(args))
    report = service.analyze(args.code, bars, quote=quote)

    if args.output:
        _write_or_print(report.to_json(), args.output)
        return

    print(report.result.summary)
    print()
    print(report.result.suggestion)
    ReportFormatter.print_console(report.backtest, title=report.code)


def cmd_backtest(args: argparse.Namespace) -> None:
    bars = load_bars(args.bars)
    result = BacktestEngine(_backtest_config(args)).run(bars)

    ReportFormatter.print_console(result, title=Path(args.bars).stem)
    if args.output:
        ReportFormatter.save_json(result, args.output)


def cmd_series(args: argparse.Namespace) -> None:
    bars = load_bars(args.bars)
    series = calculate_indicator_series(bars)
    _write_or_print(
        orjson.dumps(series.model_dump(), option=orjson.OPT_INDENT_2), args.output
    )


COMMANDS = {
    "analyze": cmd_analyze,
    "backtest": cmd_backtest,
    "series": cmd_series,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        COMMANDS[args.command](args)
    except (OSError, ValueError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: insufficient or invalid data: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
