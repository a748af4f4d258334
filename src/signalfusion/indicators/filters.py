"""Volume, volatility and market regime filters.

These never produce a direction on their own; the fusion engine turns them
into flat bonuses.
"""

from collections.abc import Sequence
from decimal import Decimal

from signalfusion.indicators.core import QUANTUM, adx_series, atr_series, require_candles
from signalfusion.indicators.models import RegimeReading, VolatilityReading, VolumeReading
from signalfusion.models import Candle, MarketRegime, to_score

_ZERO = Decimal("0")


def compute_volume_filter(
    candles: Sequence[Candle],
    period: int = 20,
    ratio_threshold: Decimal = Decimal("1.2"),
) -> VolumeReading:
    """Compare the latest volume with the mean of the last ``period`` volumes.

    Zero mean volume gives ratio 0 (never above average).
    """
    require_candles("volume filter", period, len(candles))

    volumes = [c.volume for c in candles[-period:]]
    average = (sum(volumes, _ZERO) / Decimal(period)).quantize(QUANTUM)
    current = candles[-1].volume
    ratio = (current / average).quantize(QUANTUM) if average > _ZERO else _ZERO
    return VolumeReading(
        current=current,
        average=average,
        ratio=ratio,
        is_above_average=ratio > ratio_threshold,
    )


def compute_volatility(
    candles: Sequence[Candle],
    period: int = 14,
    lookback: int = 20,
    multiplier: Decimal = Decimal("1.2"),
) -> VolatilityReading:
    """ATR with a high-volatility flag against the recent ATR average."""
    atr_values = atr_series(candles, period)
    recent = atr_values[-lookback:]
    average = (sum(recent, _ZERO) / Decimal(len(recent))).quantize(QUANTUM)
    current = atr_values[-1]
    return VolatilityReading(
        atr=current,
        average_atr=average,
        is_high_volatility=current > average * multiplier,
    )


def classify_regime(
    candles: Sequence[Candle],
    period: int = 14,
    trending_threshold: Decimal = Decimal("25"),
) -> RegimeReading:
    """Classify the market as trending or ranging from the latest ADX.

    Trending (ADX above threshold) maps threshold..threshold+50 onto 0-100.
    Ranging maps threshold..0 onto 0-100, so a lower ADX is "more ranging".
    """
    latest = adx_series(candles, period)[-1]
    adx = latest.adx

    if adx > trending_threshold:
        regime = MarketRegime.TRENDING
        strength = to_score((adx - trending_threshold) / Decimal("50") * Decimal("100"))
    else:
        regime = MarketRegime.RANGING
        strength = to_score((trending_threshold - adx) / trending_threshold * Decimal("100"))

    return RegimeReading(
        adx=adx,
        plus_di=latest.plus_di,
        minus_di=latest.minus_di,
        regime=regime,
        strength=strength,
    )
