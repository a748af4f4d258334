"""Heuristic weight and ratio tables shared by the pattern detectors.

Every table is read-only. Detectors take them as keyword arguments so tests
and alternative policies can substitute their own.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from signalfusion.models import Direction
from signalfusion.patterns.models import HarmonicRatioBand, PatternWeight

CANDLESTICK_WEIGHTS: Mapping[str, PatternWeight] = MappingProxyType({
    # Triple-candle reversals
    "morning_star": PatternWeight(Direction.BULLISH, 40),
    "three_white_soldiers": PatternWeight(Direction.BULLISH, 40),
    "evening_star": PatternWeight(Direction.BEARISH, 40),
    "three_black_crows": PatternWeight(Direction.BEARISH, 40),
    # Double-candle
    "bullish_engulfing": PatternWeight(Direction.BULLISH, 25),
    "bearish_engulfing": PatternWeight(Direction.BEARISH, 25),
    "bullish_harami": PatternWeight(Direction.BULLISH, 20),
    "bearish_harami": PatternWeight(Direction.BEARISH, 20),
    "bullish_kicker": PatternWeight(Direction.BULLISH, 30),
    "bearish_kicker": PatternWeight(Direction.BEARISH, 30),
    "piercing_line": PatternWeight(Direction.BULLISH, 25),
    # Single-candle, noisy
    "hammer": PatternWeight(Direction.BULLISH, 8),
    "inverted_hammer": PatternWeight(Direction.BULLISH, 8),
    "shooting_star": PatternWeight(Direction.BEARISH, 8),
    "hanging_man": PatternWeight(Direction.BEARISH, 8),
    "doji": PatternWeight(Direction.NEUTRAL, 0),
})

HARMONIC_RATIOS: Mapping[str, HarmonicRatioBand] = MappingProxyType({
    "gartley": HarmonicRatioBand(
        ab_xa_min=Decimal("0.618"),
        ab_xa_max=Decimal("0.618"),
        bc_ab_min=Decimal("0.382"),
        bc_ab_max=Decimal("0.886"),
        d_projections=(("d_786", Decimal("0.786")), ("d_618", Decimal("0.618"))),
    ),
    "bat": HarmonicRatioBand(
        ab_xa_min=Decimal("0.382"),
        ab_xa_max=Decimal("0.5"),
        bc_ab_min=Decimal("0.382"),
        bc_ab_max=Decimal("0.886"),
        d_projections=(("d_886", Decimal("0.886")), ("d_618", Decimal("0.618"))),
    ),
    "butterfly": HarmonicRatioBand(
        ab_xa_min=Decimal("0.786"),
        ab_xa_max=Decimal("0.786"),
        bc_ab_min=Decimal("0.382"),
        bc_ab_max=Decimal("0.886"),
        d_projections=(("d_127", Decimal("1.27")), ("d_161", Decimal("1.618"))),
    ),
})

#: Retracement/extension ratios keyed by percentage label, ascending.
FIBONACCI_RATIOS: Mapping[str, Decimal] = MappingProxyType({
    "0.0": Decimal("0"),
    "23.6": Decimal("0.236"),
    "38.2": Decimal("0.382"),
    "50.0": Decimal("0.5"),
    "61.8": Decimal("0.618"),
    "78.6": Decimal("0.786"),
    "100.0": Decimal("1"),
    "127.2": Decimal("1.272"),
    "161.8": Decimal("1.618"),
    "200.0": Decimal("2"),
})


@dataclass(frozen=True)
class PatternTables:
    """Bundle of tables injected into the signal engine."""

    candlestick_weights: Mapping[str, PatternWeight] = field(default_factory=lambda: CANDLESTICK_WEIGHTS)
    harmonic_ratios: Mapping[str, HarmonicRatioBand] = field(default_factory=lambda: HARMONIC_RATIOS)
    fibonacci_ratios: Mapping[str, Decimal] = field(default_factory=lambda: FIBONACCI_RATIOS)


DEFAULT_TABLES = PatternTables()
