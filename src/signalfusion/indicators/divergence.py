"""Hidden bullish divergence detection on RSI and MACD histogram.

Hidden bullish divergence: price prints a fresh lower low while the
oscillator holds above its own prior low. Only the bullish-hidden variant is
detected; there is no bearish counterpart.
"""

from collections.abc import Sequence
from decimal import Decimal

from signalfusion.indicators.models import DivergenceReading

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def detect_hidden_bullish_divergence(
    closes: Sequence[Decimal],
    oscillator: Sequence[Decimal],
    scale: Decimal,
    lookback: int = 20,
    min_values: int = 10,
) -> DivergenceReading:
    """Detect hidden bullish divergence between closes and an oscillator series.

    The oscillator series is aligned to ``closes`` by its last element, so
    oscillator[j] belongs to closes[j + len(closes) - len(oscillator)].

    Within the last ``lookback`` candles the lowest close and the lowest
    oscillator value are tracked independently. Divergence is detected when
    the latest close is below the close preceding the price low while the
    latest oscillator value is above the value preceding the oscillator low.

    Args:
        closes: Closing prices, oldest first.
        oscillator: Oscillator values, oldest first, ending at the latest close.
        scale: Oscillator improvement that maps to strength 100.
        lookback: Number of recent candles scanned.
        min_values: Minimum candles and oscillator values required.

    Returns:
        DivergenceReading; not detected when there is too little data.
    """
    n = len(closes)
    if n < min_values or len(oscillator) < min_values or len(oscillator) > n:
        return DivergenceReading()

    offset = n - len(oscillator)

    def osc_at(index: int) -> Decimal | None:
        pos = index - offset
        return oscillator[pos] if 0 <= pos < len(oscillator) else None

    price_low_idx = n - 1
    price_low = closes[-1]
    osc_low_idx = n - 1
    osc_low = oscillator[-1]

    for i in range(n - 2, max(n - lookback, 0) - 1, -1):
        if closes[i] < price_low:
            price_low = closes[i]
            price_low_idx = i
        value = osc_at(i)
        if value is not None and value < osc_low:
            osc_low = value
            osc_low_idx = i

    prior_price = closes[price_low_idx - 1] if price_low_idx > 0 else price_low
    prior_osc = osc_at(osc_low_idx - 1)
    if prior_osc is None:
        prior_osc = osc_low

    current_osc = oscillator[-1]
    if closes[-1] < prior_price and current_osc > prior_osc:
        strength = (current_osc - prior_osc) / scale * _HUNDRED
        strength = max(_ZERO, min(_HUNDRED, strength)).quantize(Decimal("0.01"))
        return DivergenceReading(detected=True, strength=strength)

    return DivergenceReading()
