"""Fixed-allocation position sizing with confidence-scaled take-profit.

Sizing flow:
1. investment = balance * risk_per_trade (capital allocated, not capital at risk)
2. position_size = investment / entry_price
3. ratio = take-profit ratio interpolated from confidence
4. target = entry +/- |entry - stop| * ratio in the trade direction
"""

from decimal import Decimal

from signalfusion.config import RiskSettings
from signalfusion.models import Direction
from signalfusion.position.models import PositionSizing


class PositionSizer:
    """Calculates position size and target price from entry, stop and confidence.

    Args:
        settings: Risk settings with allocation fraction and take-profit tiers.
    """

    def __init__(self, settings: RiskSettings) -> None:
        self._settings = settings

    def take_profit_ratio(self, confidence: int) -> Decimal:
        """Reward/risk multiple for a confidence score.

        At or below confidence_low use the low ratio, at or above
        confidence_high the high ratio, linear in between.
        """
        s = self._settings
        if confidence >= s.confidence_high:
            return s.take_profit_ratio_high
        if confidence <= s.confidence_low:
            return s.take_profit_ratio_low

        span = Decimal(s.confidence_high - s.confidence_low)
        t = Decimal(confidence - s.confidence_low) / span
        return s.take_profit_ratio_low + (s.take_profit_ratio_high - s.take_profit_ratio_low) * t

    def calculate(
        self,
        entry_price: Decimal,
        stop_price: Decimal,
        direction: Direction,
        confidence: int,
        balance: Decimal,
    ) -> PositionSizing:
        """Size a trade. Caller guarantees entry_price > 0."""
        investment = balance * self._settings.risk_per_trade
        position_size = investment / entry_price
        price_risk = abs(entry_price - stop_price)
        ratio = self.take_profit_ratio(confidence)

        if direction is Direction.BEARISH:
            target = entry_price - price_risk * ratio
        else:
            target = entry_price + price_risk * ratio

        return PositionSizing(
            position_size=position_size,
            investment_amount=investment,
            price_risk=price_risk,
            risk_amount=position_size * price_risk,
            target_price=target,
            risk_reward_ratio=ratio,
            profit_potential=position_size * abs(target - entry_price),
        )
