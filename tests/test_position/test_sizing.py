"""Tests for PositionSizer fixed-allocation sizing.

Verifies:
- investment = balance * risk_per_trade, size = investment / entry
- take-profit ratio interpolates between the confidence tiers
- target sits on the profit side of entry for both directions
"""

from decimal import Decimal

import pytest

from signalfusion.config import RiskSettings
from signalfusion.models import Direction
from signalfusion.position.sizing import PositionSizer


@pytest.fixture
def sizer() -> PositionSizer:
    return PositionSizer(
        RiskSettings(
            risk_per_trade=Decimal("0.10"),
            account_balance=Decimal("10000"),
            take_profit_ratio_high=Decimal("2.5"),
            confidence_high=70,
        )
    )


class TestTakeProfitRatio:
    def test_tiers(self) -> None:
        sizer = PositionSizer(RiskSettings())
        assert sizer.take_profit_ratio(30) == Decimal("2.8")
        assert sizer.take_profit_ratio(45) == Decimal("2.8")
        assert sizer.take_profit_ratio(70) == Decimal("3.5")
        assert sizer.take_profit_ratio(95) == Decimal("3.5")

    def test_linear_between_tiers(self) -> None:
        """Confidence 50 is 20% of the way from 45 to 70: 2.8 + 0.7 * 0.2."""
        sizer = PositionSizer(RiskSettings())
        assert sizer.take_profit_ratio(50) == Decimal("2.94")


class TestCalculate:
    def test_bullish_sizing(self, sizer) -> None:
        sizing = sizer.calculate(
            Decimal("100"), Decimal("97"), Direction.BULLISH, 80, Decimal("10000")
        )
        assert sizing.investment_amount == Decimal("1000")
        assert sizing.position_size == Decimal("10")
        assert sizing.price_risk == Decimal("3")
        assert sizing.risk_amount == Decimal("30")
        assert sizing.risk_reward_ratio == Decimal("2.5")
        assert sizing.target_price == Decimal("107.5")
        assert sizing.profit_potential == Decimal("75")

    def test_bearish_target_below_entry(self, sizer) -> None:
        sizing = sizer.calculate(
            Decimal("100"), Decimal("103"), Direction.BEARISH, 80, Decimal("10000")
        )
        assert sizing.target_price == Decimal("92.5")
        assert sizing.price_risk == Decimal("3")

    def test_sized_from_current_balance(self, sizer) -> None:
        sizing = sizer.calculate(
            Decimal("50"), Decimal("49"), Direction.BULLISH, 80, Decimal("5000")
        )
        assert sizing.investment_amount == Decimal("500")
        assert sizing.position_size == Decimal("10")
