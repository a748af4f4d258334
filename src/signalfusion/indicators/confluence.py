"""Indicator confluence: RSI, MACD and Bollinger conditions vote on a direction."""

from signalfusion.indicators.models import ConfluenceSignal, IndicatorSnapshot
from signalfusion.models import Direction

#: Strength by number of agreeing votes.
_STRENGTH_BY_VOTES = {0: 0, 1: 40, 2: 70, 3: 100}


def compute_confluence(snapshot: IndicatorSnapshot) -> ConfluenceSignal:
    """Majority direction of the three indicator conditions.

    Each condition votes at most once (oversold/overbought, MACD histogram
    sign, lower/upper band proximity). Ties are NEUTRAL with strength 0.
    """
    bullish = 0
    bearish = 0
    reasons: list[str] = []

    if snapshot.rsi.oversold:
        bullish += 1
        reasons.append("RSI oversold")
    elif snapshot.rsi.overbought:
        bearish += 1
        reasons.append("RSI overbought")

    if snapshot.macd.bullish:
        bullish += 1
        reasons.append("MACD bullish")
    elif snapshot.macd.bearish:
        bearish += 1
        reasons.append("MACD bearish")

    if snapshot.bollinger.close_to_lower:
        bullish += 1
        reasons.append("Price at BB lower")
    elif snapshot.bollinger.close_to_upper:
        bearish += 1
        reasons.append("Price at BB upper")

    if bullish > bearish:
        return ConfluenceSignal(Direction.BULLISH, _STRENGTH_BY_VOTES[bullish], tuple(reasons))
    if bearish > bullish:
        return ConfluenceSignal(Direction.BEARISH, _STRENGTH_BY_VOTES[bearish], tuple(reasons))
    return ConfluenceSignal(Direction.NEUTRAL, 0, tuple(reasons))
