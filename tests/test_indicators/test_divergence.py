"""Tests for hidden bullish divergence detection."""

from decimal import Decimal

from signalfusion.indicators.divergence import detect_hidden_bullish_divergence


def _d(values: list) -> list[Decimal]:
    return [Decimal(str(v)) for v in values]


class TestHiddenBullishDivergence:
    """Price makes a lower low, oscillator holds above its prior low."""

    def test_detected_with_strength(self) -> None:
        """Oscillator low 30 at index 6, prior value 40; latest 55 -> (55-40)/50 = 30%."""
        closes = _d([10, 10, 10, 10, 10, 10, 10, 9, 10, 8])
        oscillator = _d([50, 50, 50, 50, 50, 40, 30, 45, 50, 55])

        reading = detect_hidden_bullish_divergence(
            closes, oscillator, scale=Decimal("50"), lookback=20, min_values=10
        )

        assert reading.detected is True
        assert reading.strength == Decimal("30.00")

    def test_not_detected_when_oscillator_confirms(self) -> None:
        closes = _d([10, 10, 10, 10, 10, 10, 10, 9, 10, 8])
        oscillator = _d([50, 50, 50, 50, 50, 40, 30, 45, 50, 35])

        reading = detect_hidden_bullish_divergence(closes, oscillator, scale=Decimal("50"))

        assert reading.detected is False
        assert reading.strength == Decimal("0")

    def test_not_detected_without_lower_low(self) -> None:
        closes = _d([8, 8, 8, 8, 8, 8, 8, 9, 10, 11])
        oscillator = _d([50, 50, 50, 50, 50, 40, 30, 45, 50, 55])

        reading = detect_hidden_bullish_divergence(closes, oscillator, scale=Decimal("50"))

        assert reading.detected is False

    def test_strength_capped_at_100(self) -> None:
        closes = _d([10, 10, 10, 10, 10, 10, 10, 9, 10, 8])
        oscillator = _d([50, 50, 50, 50, 50, 40, 30, 45, 50, 55])

        reading = detect_hidden_bullish_divergence(closes, oscillator, scale=Decimal("1"))

        assert reading.strength == Decimal("100.00")

    def test_too_few_values(self) -> None:
        closes = _d([10, 9, 8])
        reading = detect_hidden_bullish_divergence(closes, closes, scale=Decimal("50"))
        assert reading.detected is False

    def test_shorter_oscillator_aligned_by_last_element(self) -> None:
        """Two leading closes have no oscillator value; the result is unchanged."""
        closes = _d([12, 12, 10, 10, 10, 10, 10, 10, 10, 9, 10, 8])
        oscillator = _d([50, 50, 50, 50, 50, 40, 30, 45, 50, 55])

        reading = detect_hidden_bullish_divergence(closes, oscillator, scale=Decimal("50"))

        assert reading.detected is True
        assert reading.strength == Decimal("30.00")
