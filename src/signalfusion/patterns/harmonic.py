"""Harmonic (Gartley, Bat, Butterfly) ratio validation and D-point projection.

Four ordered points X, A, B, C define the legs XA, AB and BC. A pattern
matches when AB/XA sits within tolerance of the pattern's band and BC/AB
falls inside its band. The D completion zone is projected from X towards A
at the pattern's characteristic ratios.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal

from signalfusion.exceptions import InvalidRangeError, UnknownPatternError
from signalfusion.models import Candle, Direction
from signalfusion.patterns.models import (
    HarmonicLevels,
    HarmonicProjection,
    HarmonicRatioBand,
    HarmonicRatioCheck,
    HarmonicSignal,
    HarmonicValidation,
)
from signalfusion.patterns.swings import find_swing_points
from signalfusion.patterns.tables import HARMONIC_RATIOS

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

#: Patterns tried by detect_harmonic_from_swings, in priority order.
SWING_PATTERN_ORDER = ("gartley", "bat", "butterfly")


def _band(pattern: str, ratios: Mapping[str, HarmonicRatioBand]) -> HarmonicRatioBand:
    try:
        return ratios[pattern]
    except KeyError:
        raise UnknownPatternError(f"Unknown harmonic pattern: {pattern}") from None


def calculate_harmonic_levels(prices: Sequence[Decimal]) -> HarmonicLevels:
    """Leg lengths and AB/XA, BC/AB ratios for [X, A, B, C].

    BC/AB is 0 when AB is flat.

    Raises:
        InvalidRangeError: If not exactly four prices are given or XA is zero.
    """
    if len(prices) != 4:
        raise InvalidRangeError(f"Need exactly 4 price points [X, A, B, C], got {len(prices)}")

    x, a, b, c = prices
    xa = abs(a - x)
    ab = abs(b - a)
    bc = abs(c - b)
    if xa == _ZERO:
        raise InvalidRangeError("Degenerate harmonic structure: XA leg is zero")

    return HarmonicLevels(
        x=x,
        a=a,
        b=b,
        c=c,
        xa=xa,
        ab=ab,
        bc=bc,
        ab_xa=ab / xa,
        bc_ab=bc / ab if ab > _ZERO else _ZERO,
    )


def validate_harmonic_ratios(
    prices: Sequence[Decimal],
    pattern: str = "gartley",
    tolerance_pct: Decimal = Decimal("10"),
    ratios: Mapping[str, HarmonicRatioBand] = HARMONIC_RATIOS,
) -> HarmonicRatioCheck:
    """Check leg ratios against a named pattern's bands.

    AB/XA matches when its distance to the band is below tolerance_pct / 100
    (strict); BC/AB must fall inside the band (inclusive).

    Raises:
        InvalidRangeError: On a degenerate structure.
        UnknownPatternError: If ``pattern`` is not in the ratio table.
    """
    band = _band(pattern, ratios)
    levels = calculate_harmonic_levels(prices)

    if levels.ab_xa < band.ab_xa_min:
        ab_xa_distance = band.ab_xa_min - levels.ab_xa
    elif levels.ab_xa > band.ab_xa_max:
        ab_xa_distance = levels.ab_xa - band.ab_xa_max
    else:
        ab_xa_distance = _ZERO
    ab_xa_match = ab_xa_distance < tolerance_pct / _HUNDRED
    bc_ab_match = band.bc_ab_min <= levels.bc_ab <= band.bc_ab_max

    return HarmonicRatioCheck(
        pattern=pattern,
        valid=ab_xa_match and bc_ab_match,
        ab_xa=levels.ab_xa,
        bc_ab=levels.bc_ab,
        ab_xa_match=ab_xa_match,
        bc_ab_match=bc_ab_match,
    )


def project_harmonic_d(
    prices: Sequence[Decimal],
    pattern: str = "gartley",
    ratios: Mapping[str, HarmonicRatioBand] = HARMONIC_RATIOS,
) -> HarmonicProjection:
    """Project the D completion levels from X along the XA leg.

    Raises:
        InvalidRangeError: On a degenerate structure.
        UnknownPatternError: If ``pattern`` is not in the ratio table.
    """
    band = _band(pattern, ratios)
    levels = calculate_harmonic_levels(prices)

    sign = Decimal(1) if levels.a > levels.x else Decimal(-1)
    projections = {
        label: levels.x + levels.xa * ratio * sign for label, ratio in band.d_projections
    }
    direction = Direction.BULLISH if levels.c > levels.x else Direction.BEARISH
    return HarmonicProjection(pattern=pattern, direction=direction, projections=projections)


def validate_harmonic_pattern(
    price: Decimal,
    prices: Sequence[Decimal],
    pattern: str = "gartley",
    tolerance_pct: Decimal = Decimal("2"),
    ratios: Mapping[str, HarmonicRatioBand] = HARMONIC_RATIOS,
) -> HarmonicValidation:
    """Check whether ``price`` lies inside any projected D zone.

    The zone half-width is tolerance_pct percent of ``price``. Only the zone
    is tested; combine with validate_harmonic_ratios for a full match.

    Raises:
        InvalidRangeError: On a degenerate structure.
        UnknownPatternError: If ``pattern`` is not in the ratio table.
    """
    projection = project_harmonic_d(prices, pattern, ratios)
    tolerance = price * tolerance_pct / _HUNDRED

    nearest = min(projection.projections.values(), key=lambda level: abs(price - level))
    distance = abs(price - nearest)
    distance_pct = (distance / price * _HUNDRED).quantize(Decimal("0.01")) if price else _ZERO

    return HarmonicValidation(
        pattern=pattern,
        valid=distance <= tolerance,
        direction=projection.direction,
        nearest_level=nearest,
        distance=distance,
        distance_pct=distance_pct,
        tolerance_pct=tolerance_pct,
    )


def detect_harmonic_from_swings(
    candles: Sequence[Candle],
    price: Decimal,
    swing_lookback: int = 3,
    ratio_tolerance_pct: Decimal = Decimal("15"),
    zone_tolerance_pct: Decimal = Decimal("8"),
    ratios: Mapping[str, HarmonicRatioBand] = HARMONIC_RATIOS,
) -> HarmonicSignal:
    """Match the four most recent swing points against the known patterns.

    Patterns are tried in SWING_PATTERN_ORDER; the first whose ratios match
    and whose D zone contains ``price`` wins.
    """
    swings = find_swing_points(candles, swing_lookback)
    if len(swings) < 4:
        return HarmonicSignal()

    points = tuple(swings[-4:])
    prices = [p.price for p in points]

    for pattern in SWING_PATTERN_ORDER:
        if pattern not in ratios:
            continue
        if not validate_harmonic_ratios(prices, pattern, ratio_tolerance_pct, ratios).valid:
            continue
        validation = validate_harmonic_pattern(price, prices, pattern, zone_tolerance_pct, ratios)
        if validation.valid:
            return HarmonicSignal(
                swing_points=points,
                pattern=pattern,
                is_valid=True,
                validation=validation,
            )

    return HarmonicSignal(swing_points=points)
