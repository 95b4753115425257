"""Tests for the multi-factor signal scorer."""

import logging
from datetime import date, timedelta

import pytest

from core.analyzer import (
    analyze,
    analyze_bars,
    analyze_risk,
    analyze_timing,
    analyze_trend,
    analyze_volume,
    derive_signal,
    generate_summary,
)
from core.models import (
    Bar,
    BOLLValues,
    DivergenceHint,
    DivergenceKind,
    IndicatorSnapshot,
    KDJValues,
    MACDValues,
    MAValues,
    Quote,
    RSIValues,
    Signal,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_quote(price: float = 100.0, change_percent: float = 0.0) -> Quote:
    return Quote(code="sh600519", price=price, change_percent=change_percent)


BULLISH_MA = MAValues(ma5=105.0, ma10=104.0, ma20=103.0, ma60=102.0, ma120=101.0)
BEARISH_MA = MAValues(ma5=98.0, ma10=99.0, ma20=100.0, ma60=101.0, ma120=102.0)
GOLDEN_MACD = MACDValues(dif=0.5, dea=0.2, histogram=0.6)
DEATH_MACD = MACDValues(dif=-0.5, dea=-0.2, histogram=-0.6)


def bullish_snapshot(**overrides) -> IndicatorSnapshot:
    """Snapshot scoring +65 trend and +5 timing against a price of 110."""
    fields = dict(
        ma=BULLISH_MA,
        macd=GOLDEN_MACD,
        rsi=RSIValues(rsi6=50.0, rsi12=52.0, rsi24=55.0),
        kdj=KDJValues(k=60.0, d=50.0, j=80.0),
        boll=BOLLValues(upper=120.0, middle=100.0, lower=90.0),
        atr=2.0,
        volume_ratio=1.0,
    )
    fields.update(overrides)
    return IndicatorSnapshot(**fields)


# =============================================================================
# Trend pass
# =============================================================================

class TestTrend:
    """Tests for MA alignment, MACD, and BOLL scoring."""

    def test_bullish_alignment(self):
        ind = IndicatorSnapshot(ma=MAValues(ma5=15.0, ma10=14.0, ma20=13.0, ma60=12.0))
        result = analyze_trend(ind, make_quote(price=16.0))

        assert result.score == 35
        assert any("bullish alignment" in d for d in result.details)
        assert any("above MA20" in d for d in result.details)

    def test_bearish_alignment(self):
        ind = IndicatorSnapshot(ma=MAValues(ma5=12.0, ma10=13.0, ma20=14.0, ma60=15.0))
        result = analyze_trend(ind, make_quote(price=11.0))

        assert result.score == -35

    def test_intertwined_averages_note_only(self):
        ind = IndicatorSnapshot(ma=MAValues(ma5=10.0, ma10=12.0, ma20=11.0, ma60=9.0))
        result = analyze_trend(ind, make_quote(price=12.0))

        assert result.score == 10
        assert any("trend unclear" in d for d in result.details)

    def test_alignment_skipped_without_ma60(self):
        """Short histories leave MA60 undefined; the price/MA20 clause still runs."""
        ind = IndicatorSnapshot(ma=MAValues(ma5=15.0, ma10=14.0, ma20=13.0))
        result = analyze_trend(ind, make_quote(price=16.0))

        assert result.score == 10
        assert len(result.details) == 1

    def test_price_equal_to_ma20_counts_as_below(self):
        ind = IndicatorSnapshot(ma=MAValues(ma20=100.0))
        result = analyze_trend(ind, make_quote(price=100.0))

        assert result.score == -10

    def test_macd_golden_cross_with_momentum(self):
        ind = IndicatorSnapshot(macd=GOLDEN_MACD)
        assert analyze_trend(ind, make_quote()).score == 25

    def test_macd_death_cross_with_momentum(self):
        ind = IndicatorSnapshot(macd=DEATH_MACD)
        assert analyze_trend(ind, make_quote()).score == -25

    def test_macd_cross_below_zero_axis(self):
        """Golden cross under the zero axis: no momentum bonus."""
        ind = IndicatorSnapshot(macd=MACDValues(dif=-0.2, dea=-0.5, histogram=0.6))
        assert analyze_trend(ind, make_quote()).score == 20

    def test_macd_zero_histogram_scores_nothing(self):
        ind = IndicatorSnapshot(macd=MACDValues(dif=0.5, dea=0.2, histogram=0.0))
        assert analyze_trend(ind, make_quote()).score == 0

    @pytest.mark.parametrize(
        "price,expected",
        [
            (110.0, -10),  # above upper
            (105.0, -10),  # touching upper
            (94.0, 10),  # below lower
            (102.0, 5),  # above middle
            (98.0, 0),  # between lower and middle
        ],
    )
    def test_boll_position(self, price, expected):
        ind = IndicatorSnapshot(boll=BOLLValues(upper=105.0, middle=100.0, lower=95.0))
        assert analyze_trend(ind, make_quote(price=price)).score == expected

    def test_all_undefined(self):
        result = analyze_trend(IndicatorSnapshot(), make_quote())

        assert result.score == 0
        assert result.details == []


# =============================================================================
# Timing pass
# =============================================================================

class TestTiming:
    """Tests for RSI, KDJ, volume-ratio notes, and divergence."""

    @pytest.mark.parametrize(
        "rsi6,expected",
        [
            (85.0, -15),
            (80.0, -10),
            (75.0, -10),
            (70.0, 0),
            (50.0, 0),
            (30.0, 0),
            (25.0, 10),
            (20.0, 10),
            (15.0, 15),
        ],
    )
    def test_rsi_zones(self, rsi6, expected):
        ind = IndicatorSnapshot(rsi=RSIValues(rsi6=rsi6))
        result = analyze_timing(ind)

        assert result.score == expected
        assert len(result.details) == 1

    def test_kdj_overbought_with_golden_cross(self):
        ind = IndicatorSnapshot(kdj=KDJValues(k=90.0, d=80.0, j=110.0))
        assert analyze_timing(ind).score == -5

    def test_kdj_oversold_with_death_cross(self):
        ind = IndicatorSnapshot(kdj=KDJValues(k=10.0, d=20.0, j=-10.0))
        assert analyze_timing(ind).score == 5

    def test_kdj_crosses(self):
        golden = IndicatorSnapshot(kdj=KDJValues(k=60.0, d=50.0, j=80.0))
        death = IndicatorSnapshot(kdj=KDJValues(k=40.0, d=50.0, j=20.0))

        assert analyze_timing(golden).score == 5
        assert analyze_timing(death).score == -5

    @pytest.mark.parametrize(
        "ratio,note",
        [
            (3.5, "abnormal volume surge"),
            (2.0, "mild volume increase"),
            (0.4, "clearly shrinking"),
        ],
    )
    def test_volume_ratio_notes_do_not_score(self, ratio, note):
        result = analyze_timing(IndicatorSnapshot(volume_ratio=ratio))

        assert result.score == 0
        assert any(note in d for d in result.details)

    def test_normal_volume_ratio_silent(self):
        result = analyze_timing(IndicatorSnapshot(volume_ratio=1.0))
        assert result.details == []

    def test_divergence_hint(self):
        hint = DivergenceHint(
            macd=DivergenceKind.TOP,
            rsi=DivergenceKind.BOTTOM,
            description=["MACD top divergence", "RSI bottom divergence"],
        )
        result = analyze_timing(IndicatorSnapshot(divergence=hint))

        assert result.score == -5
        assert result.details == ["MACD top divergence", "RSI bottom divergence"]

    def test_divergence_none_kind(self):
        hint = DivergenceHint(macd=DivergenceKind.BOTTOM)
        assert analyze_timing(IndicatorSnapshot(divergence=hint)).score == 15


# =============================================================================
# Volume pass
# =============================================================================

class TestVolume:
    """Tests for price/volume agreement."""

    @pytest.mark.parametrize(
        "change,ratio,expected",
        [
            (2.0, 2.0, 10),
            (2.0, 0.5, -5),
            (-2.0, 2.5, -15),
            (-2.0, 1.8, 0),  # heavy-volume drop needs ratio > 2
            (-2.0, 0.5, 5),
            (0.5, 3.0, 0),
            (-0.5, 0.5, 0),
        ],
    )
    def test_clauses(self, change, ratio, expected):
        ind = IndicatorSnapshot(volume_ratio=ratio)
        result = analyze_volume(ind, make_quote(change_percent=change))

        assert result.score == expected

    def test_undefined_ratio_skips_pass(self):
        result = analyze_volume(IndicatorSnapshot(), make_quote(change_percent=5.0))

        assert result.score == 0
        assert result.details == []


# =============================================================================
# Risk levels
# =============================================================================

class TestRisk:
    """Tests for ATR-based and fallback risk levels."""

    def test_atr_levels(self):
        risk = analyze_risk(IndicatorSnapshot(atr=2.0), make_quote(price=100.0))

        assert risk.stop_loss == 96.0
        assert risk.take_profit == 106.0
        assert "ATR=2.0" in risk.details[0]

    def test_fallback_without_atr(self):
        risk = analyze_risk(IndicatorSnapshot(), make_quote(price=100.0))

        assert risk.stop_loss == 97.0
        assert risk.take_profit == 105.0

    def test_fallback_with_zero_atr(self):
        risk = analyze_risk(IndicatorSnapshot(atr=0.0), make_quote(price=100.0))

        assert risk.stop_loss == 97.0
        assert risk.take_profit == 105.0

    def test_levels_rounded(self):
        risk = analyze_risk(IndicatorSnapshot(atr=0.333), make_quote(price=10.0))

        assert risk.stop_loss == 9.33
        assert risk.take_profit == 11.0


# =============================================================================
# Aggregation
# =============================================================================

class TestDeriveSignal:
    """Tests for classification thresholds."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (50, Signal.BULLISH),
            (20, Signal.BULLISH),
            (19, Signal.NEUTRAL),
            (0, Signal.NEUTRAL),
            (-19, Signal.NEUTRAL),
            (-20, Signal.BEARISH),
            (-50, Signal.BEARISH),
        ],
    )
    def test_thresholds(self, score, expected):
        assert derive_signal(score) == expected


class TestAnalyze:
    """Tests for the full analysis entry point."""

    def test_bullish(self):
        result = analyze(make_quote(price=110.0), bullish_snapshot())

        # trend 25 + 10 + 20 + 5 + 5, timing KDJ golden cross 5
        assert result.score == 70
        assert result.signal == Signal.BULLISH
        assert result.summary.startswith("[BULLISH]")
        assert result.stop_loss == 106.0
        assert result.take_profit == 116.0
        assert "106.0" in result.suggestion
        assert "116.0" in result.suggestion

    def test_bearish(self):
        ind = IndicatorSnapshot(
            ma=BEARISH_MA,
            macd=DEATH_MACD,
            rsi=RSIValues(rsi6=50.0),
            boll=BOLLValues(upper=110.0, middle=100.0, lower=92.0),
        )
        result = analyze(make_quote(price=90.0), ind)

        # -25 - 10 - 20 - 5 + 10 (touching lower band)
        assert result.score == -50
        assert result.signal == Signal.BEARISH
        assert result.summary.startswith("[BEARISH]")
        assert "87.3" in result.suggestion  # 90 * 0.97

    def test_all_undefined_is_neutral(self):
        result = analyze(make_quote(price=100.0), IndicatorSnapshot())

        assert result.score == 0
        assert result.signal == Signal.NEUTRAL
        assert result.summary.startswith("[NEUTRAL]")
        assert result.stop_loss == 97.0
        assert result.take_profit == 105.0

    def test_summary_lists_passes_in_order(self):
        ind = bullish_snapshot(volume_ratio=2.0)
        result = analyze(make_quote(price=110.0, change_percent=2.0), ind)

        summary = result.summary
        trend_pos = summary.index("bullish alignment")
        timing_pos = summary.index("RSI6=")
        volume_pos = summary.index("Rising on expanding volume")
        risk_pos = summary.index("suggested stop-loss")

        assert trend_pos < timing_pos < volume_pos < risk_pos
        assert result.score == 80

    def test_generate_summary_header(self):
        summary = generate_summary(Signal.NEUTRAL, ["a"], [], ["b"])
        assert summary == "[NEUTRAL] Wait and see\n\na\nb"

    def test_deterministic(self):
        quote = make_quote(price=110.0, change_percent=1.5)
        ind = bullish_snapshot(volume_ratio=1.7)

        assert analyze(quote, ind) == analyze(quote, ind)


class TestAnalyzeBars:
    """Tests for scoring straight from bars."""

    @staticmethod
    def _bars(n: int) -> list[Bar]:
        start = date(2024, 3, 1)
        return [
            Bar(
                date=(start + timedelta(days=i)).isoformat(),
                open=10 + i * 0.1,
                high=10.2 + i * 0.1,
                low=9.9 + i * 0.1,
                close=10.1 + i * 0.1,
                volume=1000,
            )
            for i in range(n)
        ]

    def test_short_history_warns(self, caplog):
        bars = self._bars(40)
        quote = Quote.from_bars(bars, code="sz000001")

        with caplog.at_level(logging.WARNING, logger="core.analyzer"):
            snapshot, result = analyze_bars(quote, bars)

        assert "MA60 unavailable" in caplog.text
        assert result.signal in set(Signal)
        assert snapshot.divergence is None

    def test_divergence_attached(self):
        bars = self._bars(80)
        quote = Quote.from_bars(bars)
        hint = DivergenceHint(macd=DivergenceKind.TOP, description=["MACD top divergence"])

        snapshot, result = analyze_bars(quote, bars, divergence=hint)
        _, plain = analyze_bars(quote, bars)

        assert snapshot.divergence == hint
        assert result.score == plain.score - 15
        assert "MACD top divergence" in result.summary
