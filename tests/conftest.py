"""Shared test fixtures for the signal fusion core.

Candle factories build deterministic synthetic tape: each candle opens at
the previous close, and its high/low extend ``spread`` beyond the body.
"""

from collections.abc import Callable, Sequence
from decimal import Decimal

import pytest

from signalfusion.config import AppSettings
from signalfusion.models import Candle

CandleFactory = Callable[..., list[Candle]]

_START_MS = 1_700_000_000_000
_STEP_MS = 300_000  # 5 minutes


def build_candles(
    closes: Sequence[Decimal | int | str],
    volumes: Sequence[Decimal | int | str] | None = None,
    spread: Decimal = Decimal("0.5"),
    start_ms: int = _START_MS,
) -> list[Candle]:
    candles = []
    previous = Decimal(str(closes[0]))
    for i, raw in enumerate(closes):
        close = Decimal(str(raw))
        volume = Decimal(str(volumes[i])) if volumes is not None else Decimal("1000")
        candles.append(
            Candle(
                timestamp_ms=start_ms + i * _STEP_MS,
                open=previous,
                high=max(previous, close) + spread,
                low=min(previous, close) - spread,
                close=close,
                volume=volume,
            )
        )
        previous = close
    return candles


def linear_closes(start: Decimal, step: Decimal, count: int) -> list[Decimal]:
    return [start + step * i for i in range(count)]


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults."""
    return AppSettings(log_level="DEBUG")


@pytest.fixture
def candle_factory() -> CandleFactory:
    """Build candles from a list of closes (and optional volumes)."""
    return build_candles


@pytest.fixture
def uptrend_candles() -> list[Candle]:
    """100 candles rising 0.5 per candle from 100."""
    return build_candles(linear_closes(Decimal("100"), Decimal("0.5"), 100))


@pytest.fixture
def downtrend_candles() -> list[Candle]:
    """100 candles falling 0.5 per candle from 150."""
    return build_candles(linear_closes(Decimal("150"), Decimal("-0.5"), 100))


@pytest.fixture
def flat_candles() -> list[Candle]:
    """100 candles closing at 100 with a constant 99.5-100.5 range."""
    return build_candles([Decimal("100")] * 100)
