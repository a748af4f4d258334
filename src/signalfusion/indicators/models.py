"""Indicator reading data models.

CRITICAL: All indicator values use Decimal. Never use float.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from signalfusion.models import Direction, MarketRegime


@dataclass(frozen=True)
class RSIReading:
    value: Decimal
    overbought: bool
    oversold: bool


@dataclass(frozen=True)
class MACDReading:
    macd: Decimal
    signal: Decimal
    histogram: Decimal
    bullish: bool  # histogram > 0
    bearish: bool  # histogram < 0


@dataclass(frozen=True)
class BollingerReading:
    upper: Decimal
    middle: Decimal
    lower: Decimal
    close_to_upper: bool
    close_to_lower: bool


@dataclass(frozen=True)
class VolatilityReading:
    atr: Decimal
    average_atr: Decimal
    is_high_volatility: bool


@dataclass(frozen=True)
class RegimeReading:
    """ADX-based trending/ranging classification."""

    adx: Decimal
    plus_di: Decimal
    minus_di: Decimal
    regime: MarketRegime
    strength: int  # 0-100, trending: 25-75 ADX mapped up, ranging: 25-0 ADX mapped up


@dataclass(frozen=True)
class VolumeReading:
    current: Decimal
    average: Decimal
    ratio: Decimal
    is_above_average: bool


@dataclass(frozen=True)
class DivergenceReading:
    """Hidden bullish divergence on one oscillator."""

    detected: bool = False
    strength: Decimal = Decimal("0")  # 0-100


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Complete indicator state for the latest candle of a window.

    Recomputed on every call from the trailing window. Never persisted.
    """

    rsi: RSIReading
    macd: MACDReading
    bollinger: BollingerReading
    volatility: VolatilityReading
    regime: RegimeReading
    volume: VolumeReading
    rsi_divergence: DivergenceReading
    macd_divergence: DivergenceReading

    @property
    def divergence_detected(self) -> bool:
        return self.rsi_divergence.detected or self.macd_divergence.detected

    @property
    def divergence_strength(self) -> Decimal:
        """Strongest detected divergence, 0 when none is detected."""
        return max(
            (d.strength for d in (self.rsi_divergence, self.macd_divergence) if d.detected),
            default=Decimal("0"),
        )


@dataclass(frozen=True)
class ConfluenceSignal:
    """Majority vote of RSI, MACD and Bollinger conditions."""

    direction: Direction
    strength: int  # 0, 40, 70 or 100
    reasons: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TrendReading:
    """EMA crossover trend with slope confirmation."""

    direction: Direction
    strength: int  # 0-100
    aligned: bool  # fast EMA slope agrees with direction
    ema_fast: Decimal
    ema_slow: Decimal


@dataclass(frozen=True)
class MomentumReading:
    """Vote of RSI, MACD histogram and stochastic."""

    direction: Direction
    score: int  # 0-100
    votes: int  # agreeing votes for direction (0-3)
    rsi: Decimal
    histogram: Decimal
    stochastic_k: Decimal
    stochastic_d: Decimal
