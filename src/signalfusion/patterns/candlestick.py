"""Candlestick pattern classifier.

Recognises single, double and triple candle formations across a window and
selects the highest-weighted pattern completing on the final candle.
"""

from collections.abc import Callable, Mapping, Sequence
from decimal import Decimal

from signalfusion.models import Candle
from signalfusion.patterns.models import CandlestickSignal, PatternMatch, PatternWeight
from signalfusion.patterns.tables import CANDLESTICK_WEIGHTS

#: Fewest candles the classifier looks at.
MIN_CANDLES = 5

_TWO = Decimal("2")
_DOJI_BODY_RATIO = Decimal("0.1")  # body under 10% of range
_STAR_BODY_RATIO = Decimal("0.3")  # star body under 30% of first body


def _body_top(c: Candle) -> Decimal:
    return max(c.open, c.close)


def _body_bottom(c: Candle) -> Decimal:
    return min(c.open, c.close)


def _body_mid(c: Candle) -> Decimal:
    return (c.open + c.close) / _TWO


def _gap_up(prev: Candle, cur: Candle) -> bool:
    return _body_top(prev) < _body_bottom(cur)


def _gap_down(prev: Candle, cur: Candle) -> bool:
    return _body_bottom(prev) > _body_top(cur)


def _engulfs(outer: Candle, inner: Candle) -> bool:
    return (
        _body_top(outer) >= _body_top(inner)
        and _body_bottom(outer) <= _body_bottom(inner)
        and outer.body > inner.body
    )


def _hammer_like(c: Candle) -> bool:
    return c.body > 0 and c.lower_wick > c.body * _TWO and c.upper_wick < c.body


def _inverted_hammer_like(c: Candle) -> bool:
    return c.body > 0 and c.upper_wick > c.body * _TWO and c.lower_wick < c.body


# -- single candle ----------------------------------------------------------


def is_doji(c: Candle) -> bool:
    return c.range > 0 and c.body <= c.range * _DOJI_BODY_RATIO


def is_hammer(c: Candle) -> bool:
    return c.is_bullish and _hammer_like(c)


def is_inverted_hammer(c: Candle) -> bool:
    return c.is_bullish and _inverted_hammer_like(c)


# -- double candle ----------------------------------------------------------


def is_hanging_man(prev: Candle, cur: Candle) -> bool:
    return prev.is_bullish and cur.is_bearish and _gap_up(prev, cur) and _hammer_like(cur)


def is_shooting_star(prev: Candle, cur: Candle) -> bool:
    return (
        prev.is_bullish
        and cur.is_bearish
        and _gap_up(prev, cur)
        and _inverted_hammer_like(cur)
    )


def is_bullish_engulfing(prev: Candle, cur: Candle) -> bool:
    return prev.is_bearish and cur.is_bullish and _engulfs(cur, prev)


def is_bearish_engulfing(prev: Candle, cur: Candle) -> bool:
    return prev.is_bullish and cur.is_bearish and _engulfs(cur, prev)


def is_bullish_harami(prev: Candle, cur: Candle) -> bool:
    return prev.is_bearish and cur.is_bullish and _engulfs(prev, cur)


def is_bearish_harami(prev: Candle, cur: Candle) -> bool:
    return prev.is_bullish and cur.is_bearish and _engulfs(prev, cur)


def is_bullish_kicker(prev: Candle, cur: Candle) -> bool:
    return prev.is_bearish and cur.is_bullish and _gap_up(prev, cur)


def is_bearish_kicker(prev: Candle, cur: Candle) -> bool:
    return prev.is_bullish and cur.is_bearish and _gap_down(prev, cur)


def is_piercing_line(prev: Candle, cur: Candle) -> bool:
    return (
        prev.is_bearish
        and cur.is_bullish
        and cur.open < prev.low
        and _body_mid(prev) < cur.close < prev.open
    )


def is_dark_cloud_cover(prev: Candle, cur: Candle) -> bool:
    return (
        prev.is_bullish
        and cur.is_bearish
        and cur.open > prev.high
        and prev.open < cur.close < _body_mid(prev)
    )


# -- triple candle ----------------------------------------------------------


def is_morning_star(first: Candle, star: Candle, last: Candle) -> bool:
    return (
        first.is_bearish
        and star.body < first.body * _STAR_BODY_RATIO
        and _body_top(star) < first.close
        and last.is_bullish
        and last.close > _body_mid(first)
    )


def is_evening_star(first: Candle, star: Candle, last: Candle) -> bool:
    return (
        first.is_bullish
        and star.body < first.body * _STAR_BODY_RATIO
        and _body_bottom(star) > first.close
        and last.is_bearish
        and last.close < _body_mid(first)
    )


def is_three_white_soldiers(first: Candle, second: Candle, third: Candle) -> bool:
    return (
        first.is_bullish
        and second.is_bullish
        and third.is_bullish
        and first.close < second.close < third.close
        and first.open < second.open <= first.close
        and second.open < third.open <= second.close
    )


def is_three_black_crows(first: Candle, second: Candle, third: Candle) -> bool:
    return (
        first.is_bearish
        and second.is_bearish
        and third.is_bearish
        and first.close > second.close > third.close
        and first.open > second.open >= first.close
        and second.open > third.open >= second.close
    )


#: Pattern name -> (candles spanned, recogniser).
PATTERN_RECOGNIZERS: dict[str, tuple[int, Callable[..., bool]]] = {
    "doji": (1, is_doji),
    "hammer": (1, is_hammer),
    "inverted_hammer": (1, is_inverted_hammer),
    "hanging_man": (2, is_hanging_man),
    "shooting_star": (2, is_shooting_star),
    "bullish_engulfing": (2, is_bullish_engulfing),
    "bearish_engulfing": (2, is_bearish_engulfing),
    "bullish_harami": (2, is_bullish_harami),
    "bearish_harami": (2, is_bearish_harami),
    "bullish_kicker": (2, is_bullish_kicker),
    "bearish_kicker": (2, is_bearish_kicker),
    "piercing_line": (2, is_piercing_line),
    "dark_cloud_cover": (2, is_dark_cloud_cover),
    "morning_star": (3, is_morning_star),
    "evening_star": (3, is_evening_star),
    "three_white_soldiers": (3, is_three_white_soldiers),
    "three_black_crows": (3, is_three_black_crows),
}


def scan_candlestick_patterns(candles: Sequence[Candle]) -> list[PatternMatch]:
    """Find every known pattern in the window.

    Each match is reported at the index of the candle that completes it.
    Matches are ordered by index, then by recogniser order.
    """
    matches = []
    for end in range(len(candles)):
        for name, (span, recognizer) in PATTERN_RECOGNIZERS.items():
            start = end - span + 1
            if start < 0:
                continue
            if recognizer(*candles[start:end + 1]):
                matches.append(PatternMatch(index=end, pattern=name))
    return matches


def analyze_candlesticks(
    candles: Sequence[Candle],
    weights: Mapping[str, PatternWeight] = CANDLESTICK_WEIGHTS,
) -> CandlestickSignal:
    """Select the strongest pattern completing on the final candle.

    Patterns without a table entry are recognised but never selected, and a
    pattern only replaces the current pick when its weight is strictly higher,
    so zero-weight patterns (doji) never produce a signal.

    Returns:
        CandlestickSignal, NEUTRAL/0/"None" with fewer than 5 candles or when
        nothing completes on the last candle.
    """
    if len(candles) < MIN_CANDLES:
        return CandlestickSignal()

    last_index = len(candles) - 1
    best = CandlestickSignal()
    for match in scan_candlestick_patterns(candles):
        if match.index != last_index:
            continue
        entry = weights.get(match.pattern)
        if entry is not None and entry.weight > best.confidence:
            best = CandlestickSignal(
                direction=entry.signal,
                confidence=entry.weight,
                pattern=match.pattern,
            )
    return best
