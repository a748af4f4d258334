"""Tests for RSI/MACD/Bollinger confluence voting."""

from decimal import Decimal

from signalfusion.indicators.confluence import compute_confluence
from signalfusion.indicators.models import (
    BollingerReading,
    DivergenceReading,
    IndicatorSnapshot,
    MACDReading,
    RegimeReading,
    RSIReading,
    VolatilityReading,
    VolumeReading,
)
from signalfusion.models import Direction, MarketRegime


def _snapshot(
    oversold: bool = False,
    overbought: bool = False,
    histogram: str = "0",
    near_lower: bool = False,
    near_upper: bool = False,
) -> IndicatorSnapshot:
    hist = Decimal(histogram)
    return IndicatorSnapshot(
        rsi=RSIReading(value=Decimal("50"), overbought=overbought, oversold=oversold),
        macd=MACDReading(
            macd=hist, signal=Decimal("0"), histogram=hist, bullish=hist > 0, bearish=hist < 0
        ),
        bollinger=BollingerReading(
            upper=Decimal("110"),
            middle=Decimal("100"),
            lower=Decimal("90"),
            close_to_upper=near_upper,
            close_to_lower=near_lower,
        ),
        volatility=VolatilityReading(Decimal("1"), Decimal("1"), False),
        regime=RegimeReading(Decimal("20"), Decimal("10"), Decimal("10"), MarketRegime.RANGING, 20),
        volume=VolumeReading(Decimal("1"), Decimal("1"), Decimal("1"), False),
        rsi_divergence=DivergenceReading(),
        macd_divergence=DivergenceReading(),
    )


class TestComputeConfluence:
    def test_three_bullish_votes(self) -> None:
        signal = compute_confluence(_snapshot(oversold=True, histogram="0.5", near_lower=True))
        assert signal.direction is Direction.BULLISH
        assert signal.strength == 100
        assert signal.reasons == ("RSI oversold", "MACD bullish", "Price at BB lower")

    def test_two_bearish_votes(self) -> None:
        signal = compute_confluence(_snapshot(overbought=True, histogram="-0.5"))
        assert signal.direction is Direction.BEARISH
        assert signal.strength == 70

    def test_single_vote(self) -> None:
        signal = compute_confluence(_snapshot(histogram="0.1"))
        assert signal.direction is Direction.BULLISH
        assert signal.strength == 40

    def test_tie_is_neutral(self) -> None:
        signal = compute_confluence(_snapshot(oversold=True, histogram="-0.1"))
        assert signal.direction is Direction.NEUTRAL
        assert signal.strength == 0
        assert len(signal.reasons) == 2

    def test_no_conditions(self) -> None:
        signal = compute_confluence(_snapshot())
        assert signal.direction is Direction.NEUTRAL
        assert signal.strength == 0
        assert signal.reasons == ()

    def test_lower_band_wins_when_both_bands_near(self) -> None:
        """Each indicator votes at most once; the lower band is checked first."""
        signal = compute_confluence(_snapshot(near_lower=True, near_upper=True))
        assert signal.direction is Direction.BULLISH
        assert signal.strength == 40
