"""Analysis service composing the indicator engine, scorer, and backtester.

Callers hand in bars and a quote fetched elsewhere; results are memoized
for a short TTL keyed by instrument and parameters.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Sequence

import orjson

from backtest.engine import BacktestEngine
from backtest.report import ReportFormatter
from backtest.stats import BacktestResult
from core.analyzer import analyze
from core.indicators import IndicatorCalculator
from core.models import (
    AnalysisResult,
    BacktestConfig,
    Bar,
    DivergenceHint,
    IndicatorConfig,
    IndicatorSeries,
    IndicatorSnapshot,
    Quote,
    validate_bars,
)
from service.cache import MemoryCache
from service.config import get_settings
from service.symbols import normalize_code

logger = logging.getLogger(__name__)


def _digest(payload) -> str:
    return hashlib.sha1(orjson.dumps(payload, option=orjson.OPT_SORT_KEYS)).hexdigest()[:12]


def _divergence_key(hint: DivergenceHint | None) -> str:
    if hint is None:
        return "nodiv"
    return f"{hint.macd.value}/{hint.rsi.value}/{_digest(hint.description)}"


@dataclass(frozen=True)
class AnalysisReport:
    """Everything the presentation layer needs for one instrument."""

    code: str
    quote: Quote
    snapshot: IndicatorSnapshot
    result: AnalysisResult
    series: IndicatorSeries
    backtest: BacktestResult

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "quote": self.quote.model_dump(),
            "indicators": self.snapshot.model_dump(),
            **self.result.model_dump(),
            "indicator_series": self.series.model_dump(),
            "backtest": ReportFormatter.to_dict(self.backtest),
        }

    def to_json(self) -> bytes:
        """Serialize with orjson; undefined indicator values become null."""
        return orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2)


class AnalysisService:
    """Run the full analysis for an instrument, with result caching."""

    def __init__(
        self,
        indicator_config: IndicatorConfig | None = None,
        backtest_config: BacktestConfig | None = None,
        cache: MemoryCache | None = None,
    ):
        self.calculator = IndicatorCalculator(indicator_config)
        self.backtest_config = backtest_config or BacktestConfig()
        self._engine = BacktestEngine(self.backtest_config)

        if cache is None:
            settings = get_settings()
            cache = MemoryCache(
                default_ttl=settings.cache_ttl_seconds,
                max_entries=settings.cache_max_entries,
                low_water=settings.cache_low_water,
            )
        self.cache = cache

    def _cache_key(
        self, code: str, quote: Quote, bars: Sequence[Bar], divergence: DivergenceHint | None
    ) -> str:
        cfg = self.backtest_config
        return ":".join(
            [
                "analysis",
                code,
                bars[-1].date,
                str(len(bars)),
                repr(quote.price),
                repr(quote.change_percent),
                f"{cfg.stop_loss_pct}/{cfg.take_profit_pct}/{cfg.max_hold_days}",
                _digest(self.calculator.config.model_dump()),
                _divergence_key(divergence),
            ]
        )

    def analyze(
        self,
        code: str,
        bars: Sequence[Bar],
        quote: Quote | None = None,
        divergence: DivergenceHint | None = None,
    ) -> AnalysisReport:
        """
        Analyze an instrument.

        Args:
            code: Instrument code (normalized, e.g. "600519" -> "sh600519")
            bars: Daily bars in ascending date order
            quote: Current quote; derived from the last bars when omitted
            divergence: Optional upstream divergence hint

        Raises:
            InvalidBarsError: If bars are empty or out of order
        """
        validate_bars(bars)
        code = normalize_code(code)
        if quote is None:
            quote = Quote.from_bars(bars, code=code)

        key = self._cache_key(code, quote, bars, divergence)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        snapshot = self.calculator.calculate_latest(bars)
        if divergence is not None:
            snapshot = snapshot.with_divergence(divergence)

        report = AnalysisReport(
            code=code,
            quote=quote,
            snapshot=snapshot,
            result=analyze(quote, snapshot),
            series=self.calculator.calculate_all(bars),
            backtest=self._engine.run(bars),
        )
        self.cache.set(key, report)
        logger.info(
            "Analyzed %s over %d bars: %s (score %s)",
            code,
            len(bars),
            report.result.signal.value,
            report.result.score,
        )
        return report
