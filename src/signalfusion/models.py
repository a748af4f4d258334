"""Shared data models for the signal fusion core.

CRITICAL: All prices, volumes and balances use Decimal. Never use float for
prices, quantities, or P&L.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


def to_score(value: Decimal, low: int = 0, high: int = 100) -> int:
    """Round half-up to an integer score clamped to [low, high]."""
    rounded = int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(low, min(high, rounded))


class Direction(str, Enum):
    """Directional call produced by detectors and the fusion engine."""

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"

    def opposite(self) -> "Direction":
        """Return the opposing direction (NEUTRAL has none)."""
        if self is Direction.BULLISH:
            return Direction.BEARISH
        if self is Direction.BEARISH:
            return Direction.BULLISH
        return Direction.NEUTRAL

    def opposes(self, other: "Direction") -> bool:
        """True when both are directional and point opposite ways."""
        return self is not Direction.NEUTRAL and other is self.opposite()


class SignalQuality(str, Enum):
    """Qualitative rating attached to a fused signal."""

    WEAK = "WEAK"
    MODERATE = "MODERATE"
    STRONG = "STRONG"


class MarketRegime(str, Enum):
    """ADX-based market state."""

    TRENDING = "trending"
    RANGING = "ranging"


@dataclass(frozen=True)
class Candle:
    """A single OHLCV candle.

    Candles arrive ordered oldest-first with strictly increasing timestamps.
    The core never mutates them.
    """

    timestamp_ms: int
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal

    def __post_init__(self) -> None:
        if self.high < max(self.open, self.close) or self.low > min(self.open, self.close):
            raise ValueError(
                f"Inconsistent candle at {self.timestamp_ms}: "
                f"o={self.open} h={self.high} l={self.low} c={self.close}"
            )

    @classmethod
    def from_ohlcv(cls, row: Sequence) -> "Candle":
        """Build a Candle from a ccxt-style [ts, open, high, low, close, volume] row."""
        ts, o, h, l, c, v = row[:6]
        return cls(
            timestamp_ms=int(ts),
            open=Decimal(str(o)),
            high=Decimal(str(h)),
            low=Decimal(str(l)),
            close=Decimal(str(c)),
            volume=Decimal(str(v)),
        )

    @property
    def body(self) -> Decimal:
        return abs(self.close - self.open)

    @property
    def range(self) -> Decimal:
        return self.high - self.low

    @property
    def upper_wick(self) -> Decimal:
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> Decimal:
        return min(self.open, self.close) - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open


class OrderSide(str, Enum):
    """Order direction."""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def for_entry(cls, direction: Direction) -> "OrderSide":
        """Side that opens a position in ``direction``."""
        if direction is Direction.NEUTRAL:
            raise ValueError("NEUTRAL has no order side")
        return cls.BUY if direction is Direction.BULLISH else cls.SELL


@dataclass(frozen=True)
class ExecutionRequest:
    """Request sent to an execution endpoint when a trade is opened."""

    symbol: str
    side: OrderSide
    quantity: Decimal
    entry_price: Decimal
    stop_price: Decimal | None = None
    target_price: Decimal | None = None


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of an execution request.

    On success ``broker_order_id`` is set; on failure ``error`` is.
    """

    success: bool
    broker_order_id: str | None = None
    filled_price: Decimal | None = None
    error: str | None = None
    is_simulated: bool = False
