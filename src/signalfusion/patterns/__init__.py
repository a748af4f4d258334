"""Pattern detectors: candlestick classifier, Fibonacci levels and harmonic validator.

The three detectors are independent of each other and read only candles or
prices. Their weight and ratio tables live in ``patterns.tables``.
"""

from signalfusion.patterns.candlestick import analyze_candlesticks, scan_candlestick_patterns
from signalfusion.patterns.fibonacci import (
    analyze_fibonacci,
    calculate_fibonacci_levels,
    calculate_fibonacci_targets,
    get_fib_levels_near,
    get_nearest_fib_level,
)
from signalfusion.patterns.harmonic import (
    calculate_harmonic_levels,
    detect_harmonic_from_swings,
    project_harmonic_d,
    validate_harmonic_pattern,
    validate_harmonic_ratios,
)
from signalfusion.patterns.models import (
    CandlestickSignal,
    FibLevel,
    FibonacciLevels,
    FibonacciSignal,
    FibonacciTargets,
    FibToleranceBasis,
    HarmonicLevels,
    HarmonicProjection,
    HarmonicRatioCheck,
    HarmonicSignal,
    HarmonicValidation,
    PatternMatch,
    SwingPoint,
    SwingType,
)
from signalfusion.patterns.swings import find_swing_points
from signalfusion.patterns.tables import (
    CANDLESTICK_WEIGHTS,
    DEFAULT_TABLES,
    FIBONACCI_RATIOS,
    HARMONIC_RATIOS,
    PatternTables,
)

__all__ = [
    "CANDLESTICK_WEIGHTS",
    "CandlestickSignal",
    "DEFAULT_TABLES",
    "FIBONACCI_RATIOS",
    "FibLevel",
    "FibToleranceBasis",
    "FibonacciLevels",
    "FibonacciSignal",
    "FibonacciTargets",
    "HARMONIC_RATIOS",
    "HarmonicLevels",
    "HarmonicProjection",
    "HarmonicRatioCheck",
    "HarmonicSignal",
    "HarmonicValidation",
    "PatternMatch",
    "PatternTables",
    "SwingPoint",
    "SwingType",
    "analyze_candlesticks",
    "analyze_fibonacci",
    "calculate_fibonacci_levels",
    "calculate_fibonacci_targets",
    "calculate_harmonic_levels",
    "detect_harmonic_from_swings",
    "find_swing_points",
    "get_fib_levels_near",
    "get_nearest_fib_level",
    "project_harmonic_d",
    "scan_candlestick_patterns",
    "validate_harmonic_pattern",
    "validate_harmonic_ratios",
]
