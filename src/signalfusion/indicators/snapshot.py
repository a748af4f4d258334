"""Feature extraction: one IndicatorSnapshot per candle window."""

from collections.abc import Sequence
from decimal import Decimal

from signalfusion.config import IndicatorSettings
from signalfusion.indicators.core import (
    bollinger_bands,
    macd_series,
    require_candles,
    require_ordered,
    rsi_series,
)
from signalfusion.indicators.divergence import detect_hidden_bullish_divergence
from signalfusion.indicators.filters import (
    classify_regime,
    compute_volatility,
    compute_volume_filter,
)
from signalfusion.indicators.models import (
    BollingerReading,
    IndicatorSnapshot,
    MACDReading,
    RSIReading,
)
from signalfusion.models import Candle

_RSI_DIVERGENCE_SCALE = Decimal("50")


def minimum_candles(settings: IndicatorSettings) -> int:
    """Shortest window for which every snapshot field can be computed."""
    return max(
        settings.rsi_period + 1,
        settings.macd_slow,
        settings.bollinger_period,
        settings.atr_period + 1,
        settings.adx_period + 1,
        settings.volume_period,
    )


def extract_features(
    candles: Sequence[Candle], settings: IndicatorSettings | None = None
) -> IndicatorSnapshot:
    """Compute the full indicator snapshot for the latest candle.

    The window length is checked once up front, so a short window never
    yields a partially populated snapshot.

    Args:
        candles: Candle window, oldest first.
        settings: Indicator periods and thresholds (defaults when omitted).

    Returns:
        IndicatorSnapshot for candles[-1].

    Raises:
        InsufficientDataError: If the window is shorter than the longest
            indicator lookback (26 candles with default settings).
        ValueError: If timestamps do not strictly increase.
    """
    settings = settings or IndicatorSettings()
    require_candles("indicator snapshot", minimum_candles(settings), len(candles))
    require_ordered(candles)

    closes = [c.close for c in candles]
    close = closes[-1]

    rsi_values = rsi_series(closes, settings.rsi_period)
    rsi = rsi_values[-1]

    macd = macd_series(closes, settings.macd_fast, settings.macd_slow, settings.macd_signal)
    histogram = macd.histogram[-1]

    upper, middle, lower = bollinger_bands(
        closes, settings.bollinger_period, settings.bollinger_std_dev
    )
    proximity = settings.bollinger_proximity

    return IndicatorSnapshot(
        rsi=RSIReading(
            value=rsi,
            overbought=rsi > settings.rsi_overbought,
            oversold=rsi < settings.rsi_oversold,
        ),
        macd=MACDReading(
            macd=macd.macd[-1],
            signal=macd.signal[-1],
            histogram=histogram,
            bullish=histogram > 0,
            bearish=histogram < 0,
        ),
        bollinger=BollingerReading(
            upper=upper,
            middle=middle,
            lower=lower,
            close_to_upper=close > upper * (1 - proximity),
            close_to_lower=close < lower * (1 + proximity),
        ),
        volatility=compute_volatility(
            candles,
            settings.atr_period,
            settings.volatility_lookback,
            settings.volatility_multiplier,
        ),
        regime=classify_regime(candles, settings.adx_period, settings.adx_trending_threshold),
        volume=compute_volume_filter(
            candles, settings.volume_period, settings.volume_ratio_threshold
        ),
        rsi_divergence=detect_hidden_bullish_divergence(
            closes,
            rsi_values,
            _RSI_DIVERGENCE_SCALE,
            settings.divergence_lookback,
            settings.divergence_min_values,
        ),
        macd_divergence=detect_hidden_bullish_divergence(
            closes,
            macd.histogram,
            settings.macd_divergence_scale,
            settings.divergence_lookback,
            settings.divergence_min_values,
        ),
    )
