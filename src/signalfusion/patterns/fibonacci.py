"""Fibonacci retracement/extension levels and proximity tests.

Proximity tolerance has two meanings depending on the caller: the
high-frequency policy measures it against the swing range, the
low-frequency policy against the current price (FibToleranceBasis).
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal

from signalfusion.exceptions import InvalidRangeError
from signalfusion.models import Candle, Direction
from signalfusion.patterns.models import (
    FibLevel,
    FibonacciLevels,
    FibonacciSignal,
    FibonacciTargets,
    FibToleranceBasis,
)
from signalfusion.patterns.tables import FIBONACCI_RATIOS

_HUNDRED = Decimal("100")


def calculate_fibonacci_levels(
    swing_high: Decimal,
    swing_low: Decimal,
    ratios: Mapping[str, Decimal] = FIBONACCI_RATIOS,
) -> FibonacciLevels:
    """Compute price levels at each ratio measured up from the swing low.

    Raises:
        InvalidRangeError: If swing_high does not exceed swing_low.
    """
    if swing_high <= swing_low:
        raise InvalidRangeError(
            f"Swing high {swing_high} must be greater than swing low {swing_low}"
        )

    span = swing_high - swing_low
    levels = {label: swing_low + span * ratio for label, ratio in ratios.items()}
    return FibonacciLevels(
        swing_high=swing_high,
        swing_low=swing_low,
        range=span,
        levels=levels,
    )


def get_fib_levels_near(
    price: Decimal,
    fib: FibonacciLevels,
    tolerance_pct: Decimal,
    basis: FibToleranceBasis = FibToleranceBasis.RANGE,
) -> list[FibLevel]:
    """Levels within tolerance of ``price``, nearest first.

    Args:
        price: Reference (current) price.
        fib: Levels from calculate_fibonacci_levels.
        tolerance_pct: Tolerance in percent.
        basis: Whether the percentage applies to the swing range or to price.
    """
    base = fib.range if basis is FibToleranceBasis.RANGE else price
    tolerance = base * tolerance_pct / _HUNDRED

    nearby = [
        FibLevel(label=label, price=level, distance=abs(price - level))
        for label, level in fib.levels.items()
        if abs(price - level) <= tolerance
    ]
    nearby.sort(key=lambda lvl: lvl.distance)
    return nearby


def get_nearest_fib_level(price: Decimal, fib: FibonacciLevels) -> FibLevel:
    """The single level closest to ``price`` (first in ratio order on ties)."""
    return min(
        (FibLevel(label, level, abs(price - level)) for label, level in fib.levels.items()),
        key=lambda lvl: lvl.distance,
    )


def calculate_fibonacci_targets(
    swing_high: Decimal, swing_low: Decimal, direction: Direction
) -> FibonacciTargets:
    """Profit targets at 50/61.8/100% of the swing.

    BULLISH targets are measured up from the low, BEARISH down from the high.
    """
    span = abs(swing_high - swing_low)
    if direction is Direction.BEARISH:
        return FibonacciTargets(
            target_50=swing_high - span * Decimal("0.5"),
            target_618=swing_high - span * Decimal("0.618"),
            target_100=swing_high - span,
            primary=swing_high - span * Decimal("0.618"),
        )
    return FibonacciTargets(
        target_50=swing_low + span * Decimal("0.5"),
        target_618=swing_low + span * Decimal("0.618"),
        target_100=swing_low + span,
        primary=swing_low + span * Decimal("0.618"),
    )


def analyze_fibonacci(
    candles: Sequence[Candle],
    lookback: int,
    tolerance_pct: Decimal,
    basis: FibToleranceBasis,
    ratios: Mapping[str, Decimal] = FIBONACCI_RATIOS,
) -> FibonacciSignal:
    """Fibonacci proximity of the last close to the swing of the last ``lookback`` candles.

    Raises:
        InvalidRangeError: If the window is flat (high equals low).
    """
    window = candles[-lookback:]
    fib = calculate_fibonacci_levels(
        max(c.high for c in window), min(c.low for c in window), ratios
    )
    nearby = get_fib_levels_near(candles[-1].close, fib, tolerance_pct, basis)
    return FibonacciSignal(levels=fib, nearby=tuple(nearby), has_support=bool(nearby))
