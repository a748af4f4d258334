"""Trend filter and momentum scoring for the low-frequency policy.

The trend filter compares close against a fast and a slow EMA and confirms
with the fast EMA slope. Momentum is a three-way vote of RSI against its
midline, MACD histogram sign and stochastic %K against %D.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Sequence
from decimal import Decimal

from signalfusion.config import IndicatorSettings
from signalfusion.indicators.core import (
    compute_ema,
    macd_series,
    require_candles,
    rsi_series,
    stochastic,
)
from signalfusion.indicators.models import MomentumReading, TrendReading
from signalfusion.models import Candle, Direction, to_score

_ZERO = Decimal("0")
_FIFTY = Decimal("50")
_HUNDRED = Decimal("100")


def compute_trend_filter(
    candles: Sequence[Candle],
    fast_span: int = 20,
    slow_span: int = 50,
    slope_lookback: int = 5,
    full_strength_spread: Decimal = Decimal("0.02"),
) -> TrendReading:
    """Classify trend direction and strength from two EMAs.

    BULLISH when close > fast EMA > slow EMA, BEARISH when close < fast EMA
    < slow EMA, NEUTRAL otherwise. Strength is the EMA spread relative to the
    slow EMA, where ``full_strength_spread`` maps to 100. The trend is
    ``aligned`` when the fast EMA moved in the trend direction over the last
    ``slope_lookback`` candles.

    Raises:
        InsufficientDataError: If fewer than ``slow_span`` candles are given.
    """
    require_candles("trend filter", slow_span, len(candles))

    closes = [c.close for c in candles]
    fast = compute_ema(closes, fast_span)
    slow = compute_ema(closes, slow_span)
    close, ema_fast, ema_slow = closes[-1], fast[-1], slow[-1]

    if close > ema_fast > ema_slow:
        direction = Direction.BULLISH
    elif close < ema_fast < ema_slow:
        direction = Direction.BEARISH
    else:
        direction = Direction.NEUTRAL

    spread = abs(ema_fast - ema_slow) / ema_slow if ema_slow > _ZERO else _ZERO
    strength = to_score(spread / full_strength_spread * _HUNDRED)

    slope = ema_fast - fast[-1 - min(slope_lookback, len(fast) - 1)]
    aligned = (direction is Direction.BULLISH and slope > _ZERO) or (
        direction is Direction.BEARISH and slope < _ZERO
    )

    return TrendReading(
        direction=direction,
        strength=strength,
        aligned=aligned,
        ema_fast=ema_fast,
        ema_slow=ema_slow,
    )


def compute_momentum(
    candles: Sequence[Candle],
    settings: IndicatorSettings | None = None,
    rsi_scale: Decimal = Decimal("25"),
) -> MomentumReading:
    """Vote RSI, MACD histogram and stochastic into a momentum direction.

    Two or more agreeing votes set the direction. The score gives 60 points
    for the share of agreeing votes plus up to 40 points for RSI distance
    from 50 (only when RSI votes with the direction). NEUTRAL scores 0.

    Raises:
        InsufficientDataError: If the window is shorter than MACD, RSI or
            stochastic lookbacks.
    """
    settings = settings or IndicatorSettings()
    closes = [c.close for c in candles]

    rsi = rsi_series(closes, settings.rsi_period)[-1]
    histogram = macd_series(
        closes, settings.macd_fast, settings.macd_slow, settings.macd_signal
    ).histogram[-1]
    k, d = stochastic(candles, settings.stochastic_k_period, settings.stochastic_d_period)

    bullish_votes = sum((rsi > _FIFTY, histogram > _ZERO, k > d))
    bearish_votes = sum((rsi < _FIFTY, histogram < _ZERO, k < d))

    if bullish_votes >= 2:
        direction, votes, rsi_agrees = Direction.BULLISH, bullish_votes, rsi > _FIFTY
    elif bearish_votes >= 2:
        direction, votes, rsi_agrees = Direction.BEARISH, bearish_votes, rsi < _FIFTY
    else:
        direction, votes, rsi_agrees = Direction.NEUTRAL, 0, False

    score = 0
    if direction is not Direction.NEUTRAL:
        raw = Decimal(60) * Decimal(votes) / Decimal(3)
        if rsi_agrees:
            raw += Decimal(40) * min(Decimal(1), abs(rsi - _FIFTY) / rsi_scale)
        score = to_score(raw)

    return MomentumReading(
        direction=direction,
        score=score,
        votes=votes,
        rsi=rsi,
        histogram=histogram,
        stochastic_k=k,
        stochastic_d=d,
    )
