"""Local swing high/low detection."""

from collections.abc import Sequence

from signalfusion.models import Candle
from signalfusion.patterns.models import SwingPoint, SwingType


def find_swing_points(candles: Sequence[Candle], lookback: int = 3) -> list[SwingPoint]:
    """Find local extrema with a strict ``lookback`` window on both sides.

    A candle is a swing high when its high is strictly greater than the high
    of every candle within ``lookback`` positions either side; swing lows
    mirror this on lows. Equal highs (or lows) disqualify the point. A single
    candle may be both a swing high and a swing low.

    Returns:
        Swing points in index order, a high before a low at the same index.
    """
    swings = []
    for i in range(lookback, len(candles) - lookback):
        candle = candles[i]
        neighbours = [candles[i - j] for j in range(1, lookback + 1)]
        neighbours += [candles[i + j] for j in range(1, lookback + 1)]

        if all(n.high < candle.high for n in neighbours):
            swings.append(SwingPoint(i, candle.high, SwingType.HIGH, candle.timestamp_ms))
        if all(n.low > candle.low for n in neighbours):
            swings.append(SwingPoint(i, candle.low, SwingType.LOW, candle.timestamp_ms))
    return swings
