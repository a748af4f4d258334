"""Feature extractor: technical indicators computed from a candle window.

Provides the raw indicator series (RSI, MACD, Bollinger, ATR, ADX,
stochastic), the volume/volatility/regime filters, hidden bullish
divergence, indicator confluence, the EMA trend filter and momentum, and
``extract_features`` which bundles them into one IndicatorSnapshot.
"""

from signalfusion.indicators.confluence import compute_confluence
from signalfusion.indicators.core import (
    adx_series,
    atr_series,
    bollinger_bands,
    compute_ema,
    compute_sma,
    macd_series,
    rsi_series,
    stochastic,
)
from signalfusion.indicators.divergence import detect_hidden_bullish_divergence
from signalfusion.indicators.filters import (
    classify_regime,
    compute_volatility,
    compute_volume_filter,
)
from signalfusion.indicators.models import (
    BollingerReading,
    ConfluenceSignal,
    DivergenceReading,
    IndicatorSnapshot,
    MACDReading,
    MomentumReading,
    RegimeReading,
    RSIReading,
    TrendReading,
    VolatilityReading,
    VolumeReading,
)
from signalfusion.indicators.snapshot import extract_features, minimum_candles
from signalfusion.indicators.trend import compute_momentum, compute_trend_filter

__all__ = [
    "BollingerReading",
    "ConfluenceSignal",
    "DivergenceReading",
    "IndicatorSnapshot",
    "MACDReading",
    "MomentumReading",
    "RSIReading",
    "RegimeReading",
    "TrendReading",
    "VolatilityReading",
    "VolumeReading",
    "adx_series",
    "atr_series",
    "bollinger_bands",
    "classify_regime",
    "compute_confluence",
    "compute_ema",
    "compute_momentum",
    "compute_sma",
    "compute_trend_filter",
    "compute_volatility",
    "compute_volume_filter",
    "detect_hidden_bullish_divergence",
    "extract_features",
    "macd_series",
    "minimum_candles",
    "rsi_series",
    "stochastic",
]
