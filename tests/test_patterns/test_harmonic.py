"""Tests for swing detection and harmonic pattern validation."""

from decimal import Decimal

import pytest

from signalfusion.exceptions import InvalidRangeError, UnknownPatternError
from signalfusion.models import Candle, Direction
from signalfusion.patterns.harmonic import (
    calculate_harmonic_levels,
    detect_harmonic_from_swings,
    project_harmonic_d,
    validate_harmonic_pattern,
    validate_harmonic_ratios,
)
from signalfusion.patterns.models import SwingType
from signalfusion.patterns.swings import find_swing_points


def _d(*values) -> list[Decimal]:
    return [Decimal(str(v)) for v in values]


def _bars(ranges: list[tuple[str, str]]) -> list[Candle]:
    """Candles from (high, low) pairs, opening at the low and closing at the high."""
    return [
        Candle(
            timestamp_ms=i * 60_000,
            open=Decimal(low),
            high=Decimal(high),
            low=Decimal(low),
            close=Decimal(high),
            volume=Decimal("1"),
        )
        for i, (high, low) in enumerate(ranges)
    ]


# X=100 (low), A=200 (high), B=138.2 (low), C=170 (high) with lookback 1
GARTLEY_BARS = [
    ("150", "140"),
    ("105", "100"),
    ("200", "190"),
    ("145", "138.2"),
    ("170", "160"),
    ("165", "150"),
]


class TestSwingPoints:
    def test_single_peak(self) -> None:
        bars = _bars([(str(h), str(h - 2)) for h in (10, 11, 12, 15, 12, 11, 10)])
        swings = find_swing_points(bars, lookback=3)
        assert len(swings) == 1
        assert swings[0].index == 3
        assert swings[0].price == Decimal("15")
        assert swings[0].kind is SwingType.HIGH
        assert swings[0].timestamp_ms == 180_000

    def test_equal_highs_disqualify(self) -> None:
        bars = _bars([(str(h), str(h - 2)) for h in (10, 11, 15, 15, 12, 11, 10, 9)])
        assert [s for s in find_swing_points(bars, lookback=3) if s.kind is SwingType.HIGH] == []

    def test_alternating_swings(self) -> None:
        swings = find_swing_points(_bars(GARTLEY_BARS), lookback=1)
        assert [(s.index, s.kind) for s in swings] == [
            (1, SwingType.LOW),
            (2, SwingType.HIGH),
            (3, SwingType.LOW),
            (4, SwingType.HIGH),
        ]

    def test_too_few_candles(self) -> None:
        assert find_swing_points(_bars(GARTLEY_BARS[:2]), lookback=3) == []


class TestHarmonicLevels:
    def test_leg_ratios(self) -> None:
        levels = calculate_harmonic_levels(_d(100, 200, 138.2, 170))
        assert levels.xa == Decimal("100")
        assert levels.ab == Decimal("61.8")
        assert levels.ab_xa == Decimal("0.618")
        assert levels.bc == Decimal("31.8")

    def test_flat_ab_gives_zero_bc_ratio(self) -> None:
        levels = calculate_harmonic_levels(_d(100, 200, 200, 170))
        assert levels.bc_ab == Decimal("0")

    def test_wrong_point_count_raises(self) -> None:
        with pytest.raises(InvalidRangeError):
            calculate_harmonic_levels(_d(100, 200, 150))

    def test_zero_xa_raises(self) -> None:
        with pytest.raises(InvalidRangeError):
            calculate_harmonic_levels(_d(100, 100, 120, 110))


class TestValidateRatios:
    def test_gartley_matches(self) -> None:
        check = validate_harmonic_ratios(_d(100, 200, 138.2, 170), "gartley")
        assert check.valid is True
        assert check.ab_xa_match is True
        assert check.bc_ab_match is True

    def test_bat_rejects_deep_ab(self) -> None:
        """AB/XA 0.618 is 0.118 above the bat band, outside a 10% tolerance."""
        check = validate_harmonic_ratios(_d(100, 200, 138.2, 170), "bat")
        assert check.valid is False
        assert check.ab_xa_match is False
        assert check.bc_ab_match is True

    def test_wider_tolerance_accepts_bat(self) -> None:
        check = validate_harmonic_ratios(_d(100, 200, 138.2, 170), "bat", Decimal("15"))
        assert check.valid is True

    def test_unknown_pattern_raises(self) -> None:
        with pytest.raises(UnknownPatternError):
            validate_harmonic_ratios(_d(100, 200, 138.2, 170), "cypher")


class TestProjection:
    def test_bullish_projection(self) -> None:
        projection = project_harmonic_d(_d(100, 200, 138.2, 170), "gartley")
        assert projection.direction is Direction.BULLISH
        assert projection.projections["d_786"] == Decimal("178.6")
        assert projection.projections["d_618"] == Decimal("161.8")

    def test_bearish_projection_runs_down_from_x(self) -> None:
        projection = project_harmonic_d(_d(200, 100, 161.8, 130), "gartley")
        assert projection.direction is Direction.BEARISH
        assert projection.projections["d_786"] == Decimal("121.4")


class TestValidatePattern:
    def test_price_inside_zone(self) -> None:
        """XA = 61.8 so d_786 = 148.5748; 150 is 1.4252 away, inside 2% of 150."""
        validation = validate_harmonic_pattern(
            Decimal("150"), _d(100, 161.8, 138.46, 150), "gartley", Decimal("2")
        )
        assert validation.valid is True
        assert validation.direction is Direction.BULLISH
        assert validation.nearest_level == Decimal("148.5748")
        assert validation.distance_pct == Decimal("0.95")

    def test_price_outside_zone(self) -> None:
        validation = validate_harmonic_pattern(
            Decimal("130"), _d(100, 161.8, 138.46, 150), "gartley", Decimal("2")
        )
        assert validation.valid is False
        assert validation.nearest_level == Decimal("138.1924")

    def test_unknown_pattern_raises(self) -> None:
        with pytest.raises(UnknownPatternError):
            validate_harmonic_pattern(Decimal("150"), _d(100, 161.8, 138.46, 150), "shark")


class TestDetectFromSwings:
    def test_gartley_detected(self) -> None:
        signal = detect_harmonic_from_swings(
            _bars(GARTLEY_BARS), Decimal("162"), swing_lookback=1
        )
        assert signal.is_valid is True
        assert signal.pattern == "gartley"
        assert signal.validation.nearest_level == Decimal("161.8")
        assert len(signal.swing_points) == 4

    def test_price_outside_every_zone(self) -> None:
        signal = detect_harmonic_from_swings(
            _bars(GARTLEY_BARS), Decimal("250"), swing_lookback=1
        )
        assert signal.is_valid is False
        assert signal.pattern is None
        assert len(signal.swing_points) == 4

    def test_not_enough_swings(self, flat_candles) -> None:
        signal = detect_harmonic_from_swings(flat_candles, Decimal("100"))
        assert signal.is_valid is False
        assert signal.swing_points == ()
