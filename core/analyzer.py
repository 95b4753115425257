"""Multi-factor signal scorer.

This module is pure business logic with no I/O dependencies.

Scoring runs three independent passes over an indicator snapshot and the
current quote, each returning its own SignalScore:

- Trend: MA stack, price vs MA20, MACD cross and momentum, BOLL position
- Timing: RSI6 zones, KDJ extremes and crosses, volume-ratio notes,
  optional upstream divergence hint
- Volume: day change confirmed or contradicted by the volume ratio

The total is the plain sum of the three pass scores. The risk pass only
derives stop-loss/take-profit levels and never contributes to the total.

Any clause whose inputs are undefined (NaN) is skipped.
"""

import logging
from typing import Sequence

from core.indicators import calculate_indicators
from core.models import (
    AnalysisResult,
    Bar,
    DivergenceHint,
    DivergenceKind,
    IndicatorConfig,
    IndicatorSnapshot,
    Quote,
    RiskLevels,
    Signal,
    SignalScore,
    is_available,
)

logger = logging.getLogger(__name__)

# Classification dead zone: (-20, 20) is neutral
BULLISH_THRESHOLD = 20
BEARISH_THRESHOLD = -20

# ATR multiples for risk levels (2:3 risk/reward)
STOP_LOSS_ATR_MULT = 2
TAKE_PROFIT_ATR_MULT = 3

# Fallback levels when ATR is unavailable
FALLBACK_STOP_LOSS_RATIO = 0.97
FALLBACK_TAKE_PROFIT_RATIO = 1.05

SIGNAL_HEADERS = {
    Signal.BULLISH: "[BULLISH] Bullish bias",
    Signal.BEARISH: "[BEARISH] Bearish bias",
    Signal.NEUTRAL: "[NEUTRAL] Wait and see",
}


def _all_available(*values: float) -> bool:
    return all(is_available(v) for v in values)


# =============================================================================
# Pass 1: trend
# =============================================================================

def analyze_trend(ind: IndicatorSnapshot, quote: Quote) -> SignalScore:
    """Score trend structure: MA alignment, MACD, and Bollinger position."""
    result = SignalScore()
    price = quote.price

    # MA alignment
    ma5, ma10, ma20, ma60 = ind.ma.ma5, ind.ma.ma10, ind.ma.ma20, ind.ma.ma60
    if _all_available(ma5, ma10, ma20, ma60):
        if ma5 > ma10 > ma20 > ma60:
            result.add(25, "MA bullish alignment (MA5>MA10>MA20>MA60), uptrend confirmed")
        elif ma5 < ma10 < ma20 < ma60:
            result.add(-25, "MA bearish alignment (MA5<MA10<MA20<MA60), downtrend confirmed")
        else:
            result.add(0, "MAs intertwined, trend unclear")

    # Price relative to MA20
    if is_available(ma20):
        if price > ma20:
            result.add(10, f"Price above MA20({ma20}), medium term strong")
        else:
            result.add(-10, f"Price below MA20({ma20}), medium term weak")

    # MACD
    dif, dea, histogram = ind.macd.dif, ind.macd.dea, ind.macd.histogram
    if _all_available(dif, dea, histogram):
        if dif > dea and histogram > 0:
            result.add(20, "MACD golden cross, momentum up")
        elif dif < dea and histogram < 0:
            result.add(-20, "MACD death cross, momentum down")

        # Momentum continuation: histogram and DIF on the same side of zero
        if histogram > 0 and dif > 0:
            result.add(5, "MACD above zero axis, bullish momentum continuing")
        elif histogram < 0 and dif < 0:
            result.add(-5, "MACD below zero axis, bearish momentum continuing")

    # Bollinger position
    upper, middle, lower = ind.boll.upper, ind.boll.middle, ind.boll.lower
    if _all_available(upper, middle, lower):
        if price >= upper:
            result.add(-10, f"Touching upper BOLL band({upper}), short-term overheated")
        elif price <= lower:
            result.add(10, f"Touching lower BOLL band({lower}), possibly oversold")
        elif price > middle:
            result.add(5, "Price above BOLL middle band, leaning strong")

    return result


# =============================================================================
# Pass 2: timing
# =============================================================================

def analyze_timing(ind: IndicatorSnapshot) -> SignalScore:
    """Score entry timing: RSI zones, KDJ, volume ratio, divergence."""
    result = SignalScore()

    # RSI6 zones
    rsi6 = ind.rsi.rsi6
    if is_available(rsi6):
        if rsi6 > 80:
            result.add(-15, f"RSI6={rsi6}, severely overbought")
        elif rsi6 > 70:
            result.add(-10, f"RSI6={rsi6}, entering overbought zone")
        elif rsi6 < 20:
            result.add(15, f"RSI6={rsi6}, severely oversold, rebound possible")
        elif rsi6 < 30:
            result.add(10, f"RSI6={rsi6}, entering oversold zone")
        else:
            result.add(0, f"RSI6={rsi6}, in normal range")

    # KDJ
    k, d, j = ind.kdj.k, ind.kdj.d, ind.kdj.j
    if _all_available(k, d, j):
        if j > 100:
            result.add(-10, f"KDJ J={j}, extremely overbought")
        elif j < 0:
            result.add(10, f"KDJ J={j}, extremely oversold")
        if k > d and j > 0:
            result.add(5, "KDJ golden cross")
        elif k < d and j < 100:
            result.add(-5, "KDJ death cross")

    # Volume ratio: annotation only
    vr = ind.volume_ratio
    if is_available(vr):
        if vr > 3:
            result.add(0, f"Volume ratio={vr}, abnormal volume surge")
        elif vr > 1.5:
            result.add(0, f"Volume ratio={vr}, mild volume increase")
        elif vr < 0.5:
            result.add(0, f"Volume ratio={vr}, volume clearly shrinking")

    if ind.divergence is not None:
        _apply_divergence(result, ind.divergence)

    return result


def _apply_divergence(result: SignalScore, hint: DivergenceHint) -> None:
    if hint.macd == DivergenceKind.TOP:
        result.add(-15)
    elif hint.macd == DivergenceKind.BOTTOM:
        result.add(15)

    if hint.rsi == DivergenceKind.TOP:
        result.add(-10)
    elif hint.rsi == DivergenceKind.BOTTOM:
        result.add(10)

    result.details.extend(hint.description)


# =============================================================================
# Pass 3: volume confirmation
# =============================================================================

def analyze_volume(ind: IndicatorSnapshot, quote: Quote) -> SignalScore:
    """Score price/volume agreement. All matching conditions fire."""
    result = SignalScore()
    vr = ind.volume_ratio
    if not is_available(vr):
        return result

    change = quote.change_percent

    if change > 1 and vr > 1.5:
        result.add(10, "Rising on expanding volume, buyers in control")
    if change > 1 and vr < 0.7:
        result.add(-5, "Rising on shrinking volume, be careful chasing")
    if change < -1 and vr > 2:
        result.add(-15, "Falling on heavy volume, panic selling")
    if change < -1 and vr < 0.7:
        result.add(5, "Falling on light volume, selling pressure easing")

    return result


# =============================================================================
# Risk levels
# =============================================================================

def analyze_risk(ind: IndicatorSnapshot, quote: Quote) -> RiskLevels:
    """Derive stop-loss/take-profit from ATR, or fixed ratios without it."""
    price = quote.price
    atr_value = ind.atr

    if is_available(atr_value) and atr_value > 0:
        stop_loss = round(price - STOP_LOSS_ATR_MULT * atr_value, 2)
        take_profit = round(price + TAKE_PROFIT_ATR_MULT * atr_value, 2)
        detail = f"ATR={atr_value}, suggested stop-loss: {stop_loss}, take-profit: {take_profit}"
    else:
        stop_loss = round(price * FALLBACK_STOP_LOSS_RATIO, 2)
        take_profit = round(price * FALLBACK_TAKE_PROFIT_RATIO, 2)
        detail = f"Suggested stop-loss: {stop_loss}(-3%), take-profit: {take_profit}(+5%)"

    return RiskLevels(stop_loss=stop_loss, take_profit=take_profit, details=[detail])


# =============================================================================
# Aggregation and output
# =============================================================================

def derive_signal(total_score: float) -> Signal:
    """Classify a total score; both thresholds are inclusive."""
    if total_score >= BULLISH_THRESHOLD:
        return Signal.BULLISH
    if total_score <= BEARISH_THRESHOLD:
        return Signal.BEARISH
    return Signal.NEUTRAL


def generate_summary(signal: Signal, *detail_groups: Sequence[str]) -> str:
    """Signal header followed by every rationale line in pass order."""
    lines = [line for group in detail_groups for line in group]
    return f"{SIGNAL_HEADERS[signal]}\n\n" + "\n".join(lines)


def generate_suggestion(signal: Signal, stop_loss: float, take_profit: float) -> str:
    if signal == Signal.BULLISH:
        return (
            f"Bullish: consider building a position on dips. Stop-loss: {stop_loss}, "
            f"target: {take_profit}. Keep position size under 30% of the portfolio."
        )
    if signal == Signal.BEARISH:
        return (
            f"Bearish: stay out or reduce exposure. If holding, stop out strictly "
            f"below {stop_loss}. Do not chase rallies now."
        )
    return (
        f"Direction unclear: wait for a clearer signal. Existing holdings can be kept "
        f"with a stop-loss at {stop_loss}. Do not add to positions."
    )


def analyze(quote: Quote, indicators: IndicatorSnapshot) -> AnalysisResult:
    """
    Score an indicator snapshot against the current quote.

    Args:
        quote: Current quote (price and day change are used)
        indicators: Snapshot from the indicator engine

    Returns:
        AnalysisResult with signal, rationale text, and risk levels
    """
    trend = analyze_trend(indicators, quote)
    timing = analyze_timing(indicators)
    volume = analyze_volume(indicators, quote)
    risk = analyze_risk(indicators, quote)

    total_score = trend.score + timing.score + volume.score
    signal = derive_signal(total_score)

    logger.debug(
        "Scored %s: trend=%s timing=%s volume=%s total=%s -> %s",
        quote.code or "quote",
        trend.score,
        timing.score,
        volume.score,
        total_score,
        signal.value,
    )

    return AnalysisResult(
        signal=signal,
        score=total_score,
        summary=generate_summary(
            signal, trend.details, timing.details, volume.details, risk.details
        ),
        suggestion=generate_suggestion(signal, risk.stop_loss, risk.take_profit),
        stop_loss=risk.stop_loss,
        take_profit=risk.take_profit,
    )


def analyze_bars(
    quote: Quote,
    bars: Sequence[Bar],
    divergence: DivergenceHint | None = None,
    config: IndicatorConfig | None = None,
) -> tuple[IndicatorSnapshot, AnalysisResult]:
    """
    Run the indicator engine over ``bars`` and score the latest snapshot.

    Raises:
        InvalidBarsError: If bars are empty or out of order
    """
    snapshot = calculate_indicators(bars, config)
    if divergence is not None:
        snapshot = snapshot.with_divergence(divergence)

    if not is_available(snapshot.ma.ma60):
        logger.warning(
            "%s: only %d bars, MA60 unavailable; trend alignment is skipped",
            quote.code or "quote",
            len(bars),
        )

    return snapshot, analyze(quote, snapshot)
