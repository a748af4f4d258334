"""Tests for the EMA trend filter and momentum scoring."""

from decimal import Decimal

import pytest

from signalfusion.exceptions import InsufficientDataError
from signalfusion.indicators.trend import compute_momentum, compute_trend_filter
from signalfusion.models import Direction


class TestTrendFilter:
    def test_uptrend_is_bullish_and_aligned(self, uptrend_candles) -> None:
        reading = compute_trend_filter(uptrend_candles)
        assert reading.direction is Direction.BULLISH
        assert reading.aligned is True
        assert reading.ema_fast > reading.ema_slow
        assert 0 < reading.strength <= 100

    def test_downtrend_is_bearish_and_aligned(self, downtrend_candles) -> None:
        reading = compute_trend_filter(downtrend_candles)
        assert reading.direction is Direction.BEARISH
        assert reading.aligned is True
        assert reading.ema_fast < reading.ema_slow

    def test_flat_is_neutral_with_zero_strength(self, flat_candles) -> None:
        reading = compute_trend_filter(flat_candles)
        assert reading.direction is Direction.NEUTRAL
        assert reading.strength == 0
        assert reading.aligned is False

    def test_strength_scales_with_spread(self, uptrend_candles) -> None:
        loose = compute_trend_filter(uptrend_candles, full_strength_spread=Decimal("1"))
        tight = compute_trend_filter(uptrend_candles, full_strength_spread=Decimal("0.02"))
        assert loose.strength < tight.strength

    def test_insufficient_data_raises(self, uptrend_candles) -> None:
        with pytest.raises(InsufficientDataError):
            compute_trend_filter(uptrend_candles[:49], slow_span=50)


class TestMomentum:
    """RSI, MACD histogram and stochastic vote; two votes set the direction."""

    def test_uptrend_bullish_two_votes(self, uptrend_candles) -> None:
        """RSI 100 and a positive histogram vote; %K equals %D on linear tape.

        score = 60 * 2/3 + 40 * min(1, 50/25) = 80
        """
        reading = compute_momentum(uptrend_candles)
        assert reading.direction is Direction.BULLISH
        assert reading.votes == 2
        assert reading.rsi == Decimal("100")
        assert reading.stochastic_k == reading.stochastic_d
        assert reading.score == 80

    def test_downtrend_bearish(self, downtrend_candles) -> None:
        reading = compute_momentum(downtrend_candles)
        assert reading.direction is Direction.BEARISH
        assert reading.score == 80

    def test_flat_is_neutral_with_zero_score(self, flat_candles) -> None:
        reading = compute_momentum(flat_candles)
        assert reading.direction is Direction.NEUTRAL
        assert reading.votes == 0
        assert reading.score == 0

    def test_insufficient_data_raises(self, uptrend_candles) -> None:
        with pytest.raises(InsufficientDataError):
            compute_momentum(uptrend_candles[:20])
