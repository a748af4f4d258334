"""Pattern detector data models.

CRITICAL: All prices and ratios use Decimal. Never use float.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from signalfusion.models import Direction


@dataclass(frozen=True)
class PatternWeight:
    """Direction and confidence weight (0-40) assigned to a candlestick pattern."""

    signal: Direction
    weight: int


@dataclass(frozen=True)
class HarmonicRatioBand:
    """Expected leg ratios and D-point completion ratios for a harmonic pattern."""

    ab_xa_min: Decimal
    ab_xa_max: Decimal
    bc_ab_min: Decimal
    bc_ab_max: Decimal
    d_projections: tuple[tuple[str, Decimal], ...]  # (label, ratio of XA from X towards A)


@dataclass(frozen=True)
class PatternMatch:
    """A candlestick pattern completing at ``index``."""

    index: int
    pattern: str


@dataclass(frozen=True)
class CandlestickSignal:
    direction: Direction = Direction.NEUTRAL
    confidence: int = 0  # 0-40, weight of the selected pattern
    pattern: str = "None"


@dataclass(frozen=True)
class FibonacciLevels:
    """Retracement/extension prices for one swing, keyed by percentage label."""

    swing_high: Decimal
    swing_low: Decimal
    range: Decimal
    levels: Mapping[str, Decimal]


@dataclass(frozen=True)
class FibLevel:
    label: str
    price: Decimal
    distance: Decimal  # absolute distance from the reference price


@dataclass(frozen=True)
class FibonacciSignal:
    levels: FibonacciLevels
    nearby: tuple[FibLevel, ...]  # sorted by distance, nearest first
    has_support: bool


@dataclass(frozen=True)
class FibonacciTargets:
    """Profit targets at 50%, 61.8% and 100% of a swing, 61.8% being primary."""

    target_50: Decimal
    target_618: Decimal
    target_100: Decimal
    primary: Decimal


class FibToleranceBasis(str, Enum):
    """What a Fibonacci proximity tolerance percentage is measured against."""

    RANGE = "range"  # percent of the swing range (scalping)
    PRICE = "price"  # percent of the current price (swing)


class SwingType(str, Enum):
    HIGH = "high"
    LOW = "low"


@dataclass(frozen=True)
class SwingPoint:
    index: int
    price: Decimal
    kind: SwingType
    timestamp_ms: int


@dataclass(frozen=True)
class HarmonicLevels:
    """Leg lengths and ratios of an X, A, B, C structure."""

    x: Decimal
    a: Decimal
    b: Decimal
    c: Decimal
    xa: Decimal
    ab: Decimal
    bc: Decimal
    ab_xa: Decimal
    bc_ab: Decimal


@dataclass(frozen=True)
class HarmonicRatioCheck:
    pattern: str
    valid: bool
    ab_xa: Decimal
    bc_ab: Decimal
    ab_xa_match: bool
    bc_ab_match: bool


@dataclass(frozen=True)
class HarmonicProjection:
    pattern: str
    direction: Direction  # BULLISH when C is above X
    projections: Mapping[str, Decimal]


@dataclass(frozen=True)
class HarmonicValidation:
    """Whether the current price sits inside a projected D zone."""

    pattern: str
    valid: bool
    direction: Direction
    nearest_level: Decimal
    distance: Decimal
    distance_pct: Decimal
    tolerance_pct: Decimal


@dataclass(frozen=True)
class HarmonicSignal:
    swing_points: tuple[SwingPoint, ...] = field(default_factory=tuple)
    pattern: str | None = None
    is_valid: bool = False
    validation: HarmonicValidation | None = None
