"""Oscillator and volatility series over candle windows.

Each function returns a full series (oldest-first) so callers can align it
to candle indices by its last element. Wilder smoothing and EMA recursions
quantize intermediate results to 12 decimal places to keep Decimal
representations bounded.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from signalfusion.exceptions import InsufficientDataError
from signalfusion.models import Candle

#: Precision limit for recursive indicator values (12 decimal places).
QUANTUM = Decimal("0.000000000001")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def require_candles(what: str, required: int, actual: int) -> None:
    """Raise InsufficientDataError when a window is shorter than required."""
    if actual < required:
        raise InsufficientDataError(what, required, actual)


def require_ordered(candles: Sequence[Candle]) -> None:
    """Raise ValueError unless timestamps strictly increase oldest-first."""
    for previous, current in zip(candles, candles[1:]):
        if current.timestamp_ms <= previous.timestamp_ms:
            raise ValueError(
                f"Candles out of order: {current.timestamp_ms} follows {previous.timestamp_ms}"
            )


def compute_sma(values: Sequence[Decimal], period: int) -> Decimal:
    """Simple mean of the last ``period`` values."""
    window = values[-period:]
    return (sum(window, _ZERO) / Decimal(len(window))).quantize(QUANTUM)


def compute_ema(values: Sequence[Decimal], span: int) -> list[Decimal]:
    """Compute Exponential Moving Average over a list of Decimal values.

    Uses the standard recursive formula:
        alpha = 2 / (span + 1)
        EMA_t = alpha * value_t + (1 - alpha) * EMA_{t-1}

    First EMA value = first input value.

    Returns:
        List of EMA values, same length as input. Empty list if input is empty.
    """
    if not values:
        return []

    alpha = Decimal("2") / (Decimal(span) + Decimal("1"))
    one_minus_alpha = Decimal("1") - alpha

    ema = [values[0].quantize(QUANTUM)]
    for v in values[1:]:
        ema.append((alpha * v + one_minus_alpha * ema[-1]).quantize(QUANTUM))
    return ema


def _wilder_next(previous: Decimal, value: Decimal, period: int) -> Decimal:
    return ((previous * (period - 1) + value) / Decimal(period)).quantize(QUANTUM)


def true_ranges(candles: Sequence[Candle]) -> list[Decimal]:
    """True range for every candle after the first."""
    ranges = []
    for prev, cur in zip(candles, candles[1:]):
        ranges.append(
            max(
                cur.high - cur.low,
                abs(cur.high - prev.close),
                abs(cur.low - prev.close),
            )
        )
    return ranges


def rsi_series(closes: Sequence[Decimal], period: int = 14) -> list[Decimal]:
    """Wilder RSI. The first value corresponds to closes[period].

    Raises:
        InsufficientDataError: If fewer than period + 1 closes are given.
    """
    require_candles("RSI", period + 1, len(closes))

    changes = [cur - prev for prev, cur in zip(closes, closes[1:])]
    gains = [max(c, _ZERO) for c in changes]
    losses = [max(-c, _ZERO) for c in changes]

    avg_gain = (sum(gains[:period], _ZERO) / Decimal(period)).quantize(QUANTUM)
    avg_loss = (sum(losses[:period], _ZERO) / Decimal(period)).quantize(QUANTUM)

    values = [_rsi_value(avg_gain, avg_loss)]
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = _wilder_next(avg_gain, gain, period)
        avg_loss = _wilder_next(avg_loss, loss, period)
        values.append(_rsi_value(avg_gain, avg_loss))
    return values


def _rsi_value(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    if avg_loss == _ZERO:
        return _HUNDRED if avg_gain > _ZERO else Decimal("50")
    rs = avg_gain / avg_loss
    return (_HUNDRED - _HUNDRED / (Decimal("1") + rs)).quantize(QUANTUM)


@dataclass(frozen=True)
class MACDSeries:
    """MACD line, signal line and histogram, all aligned to the same candles."""

    macd: list[Decimal]
    signal: list[Decimal]
    histogram: list[Decimal]


def macd_series(
    closes: Sequence[Decimal],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDSeries:
    """MACD(fast, slow, signal). The first value corresponds to closes[slow - 1].

    Raises:
        InsufficientDataError: If fewer than ``slow`` closes are given.
    """
    require_candles("MACD", slow, len(closes))

    fast_ema = compute_ema(closes, fast)
    slow_ema = compute_ema(closes, slow)
    macd_line = [f - s for f, s in zip(fast_ema[slow - 1:], slow_ema[slow - 1:])]
    signal_line = compute_ema(macd_line, signal)
    histogram = [m - s for m, s in zip(macd_line, signal_line)]
    return MACDSeries(macd=macd_line, signal=signal_line, histogram=histogram)


def bollinger_bands(
    closes: Sequence[Decimal], period: int = 20, std_dev: Decimal = Decimal("2")
) -> tuple[Decimal, Decimal, Decimal]:
    """Latest (upper, middle, lower) Bollinger bands using population sigma.

    Raises:
        InsufficientDataError: If fewer than ``period`` closes are given.
    """
    require_candles("Bollinger Bands", period, len(closes))

    window = closes[-period:]
    n = Decimal(period)
    middle = sum(window, _ZERO) / n
    variance = sum(((c - middle) ** 2 for c in window), _ZERO) / n
    deviation = variance.sqrt() * std_dev
    return (
        (middle + deviation).quantize(QUANTUM),
        middle.quantize(QUANTUM),
        (middle - deviation).quantize(QUANTUM),
    )


def atr_series(candles: Sequence[Candle], period: int = 14) -> list[Decimal]:
    """Wilder ATR. The first value corresponds to candles[period].

    Raises:
        InsufficientDataError: If fewer than period + 1 candles are given.
    """
    require_candles("ATR", period + 1, len(candles))

    ranges = true_ranges(candles)
    atr = (sum(ranges[:period], _ZERO) / Decimal(period)).quantize(QUANTUM)
    values = [atr]
    for tr in ranges[period:]:
        atr = _wilder_next(atr, tr, period)
        values.append(atr)
    return values


@dataclass(frozen=True)
class ADXPoint:
    """ADX with its directional indicators for one candle."""

    adx: Decimal
    plus_di: Decimal
    minus_di: Decimal


def adx_series(candles: Sequence[Candle], period: int = 14) -> list[ADXPoint]:
    """Wilder ADX with +DI/-DI.

    The first point needs period + 1 candles. Until ``period`` DX values are
    available the ADX is the running mean of the DX values seen so far; after
    that it is Wilder-smoothed.

    Raises:
        InsufficientDataError: If fewer than period + 1 candles are given.
    """
    require_candles("ADX", period + 1, len(candles))

    plus_dm: list[Decimal] = []
    minus_dm: list[Decimal] = []
    for prev, cur in zip(candles, candles[1:]):
        up = cur.high - prev.high
        down = prev.low - cur.low
        plus_dm.append(up if up > down and up > _ZERO else _ZERO)
        minus_dm.append(down if down > up and down > _ZERO else _ZERO)
    ranges = true_ranges(candles)

    smoothed_tr = sum(ranges[:period], _ZERO)
    smoothed_plus = sum(plus_dm[:period], _ZERO)
    smoothed_minus = sum(minus_dm[:period], _ZERO)

    dx_values: list[Decimal] = []
    points: list[ADXPoint] = []
    adx = _ZERO
    index = period
    while True:
        if smoothed_tr > _ZERO:
            plus_di = (_HUNDRED * smoothed_plus / smoothed_tr).quantize(QUANTUM)
            minus_di = (_HUNDRED * smoothed_minus / smoothed_tr).quantize(QUANTUM)
        else:
            plus_di = minus_di = _ZERO
        di_sum = plus_di + minus_di
        dx = (_HUNDRED * abs(plus_di - minus_di) / di_sum).quantize(QUANTUM) if di_sum > _ZERO else _ZERO
        dx_values.append(dx)

        if len(dx_values) <= period:
            adx = (sum(dx_values, _ZERO) / Decimal(len(dx_values))).quantize(QUANTUM)
        else:
            adx = _wilder_next(adx, dx, period)
        points.append(ADXPoint(adx=adx, plus_di=plus_di, minus_di=minus_di))

        if index >= len(ranges):
            break
        smoothed_tr = (smoothed_tr - smoothed_tr / Decimal(period) + ranges[index]).quantize(QUANTUM)
        smoothed_plus = (smoothed_plus - smoothed_plus / Decimal(period) + plus_dm[index]).quantize(QUANTUM)
        smoothed_minus = (smoothed_minus - smoothed_minus / Decimal(period) + minus_dm[index]).quantize(QUANTUM)
        index += 1

    return points


def stochastic(
    candles: Sequence[Candle], k_period: int = 14, d_period: int = 3
) -> tuple[Decimal, Decimal]:
    """Latest stochastic (%K, %D), %D being the SMA of the last d_period %K values.

    Raises:
        InsufficientDataError: If fewer than k_period + d_period - 1 candles are given.
    """
    require_candles("Stochastic", k_period + d_period - 1, len(candles))

    k_values = []
    for end in range(len(candles) - d_period + 1, len(candles) + 1):
        window = candles[end - k_period:end]
        lowest = min(c.low for c in window)
        highest = max(c.high for c in window)
        span = highest - lowest
        close = window[-1].close
        k_values.append(
            (_HUNDRED * (close - lowest) / span).quantize(QUANTUM) if span > _ZERO else Decimal("50")
        )
    return k_values[-1], compute_sma(k_values, d_period)
