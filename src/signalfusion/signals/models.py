"""Fusion engine output models.

An AnalysisResult is created fresh per call and never mutated afterwards.
Its ``timestamp_ms`` is the last candle's timestamp, so analysing the same
window twice yields equal results.

CRITICAL: All prices and scores use Decimal. Never use float.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from signalfusion.indicators.models import (
    ConfluenceSignal,
    IndicatorSnapshot,
    RegimeReading,
    VolatilityReading,
    VolumeReading,
)
from signalfusion.models import Direction, SignalQuality


class AnalysisPolicy(str, Enum):
    """Which fusion policy produced a result."""

    SCALPING = "scalping"  # high-frequency
    SWING = "swing"  # low-frequency


class ComponentName(str, Enum):
    CANDLESTICKS = "candlesticks"
    INDICATORS = "indicators"
    FIBONACCI = "fibonacci"
    HARMONICS = "harmonics"
    FILTERS = "filters"
    TREND = "trend"
    MOMENTUM = "momentum"


@dataclass(frozen=True)
class IndicatorDetail:
    """Indicator component payload for the high-frequency policy."""

    snapshot: IndicatorSnapshot
    confluence: ConfluenceSignal
    indicator_score: Decimal  # confluence strength plus divergence boost, 0-100


@dataclass(frozen=True)
class FilterReadings:
    volume: VolumeReading
    volatility: VolatilityReading
    regime: RegimeReading


@dataclass(frozen=True)
class ComponentResult:
    """One component's contribution to the fused confidence.

    ``score`` is the points this component added to the total. A component
    that failed has score 0, NEUTRAL direction, no detail and an error text.
    """

    name: ComponentName
    score: Decimal
    direction: Direction = Direction.NEUTRAL
    detail: Any = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class Alignment:
    """Trend/momentum agreement summary (low-frequency policy only)."""

    trend_momentum: bool
    trend_strength: int
    momentum_score: int
    bonus: int


@dataclass(frozen=True)
class AnalysisResult:
    timestamp_ms: int
    current_price: Decimal
    policy: AnalysisPolicy
    components: tuple[ComponentResult, ...]
    final_signal: Direction
    confidence: int  # 0-100
    signal_quality: SignalQuality
    meets_threshold: bool
    alignment: Alignment | None = None

    def component(self, name: ComponentName) -> ComponentResult | None:
        """Return the named component, or None if the policy did not run it."""
        for comp in self.components:
            if comp.name is name:
                return comp
        return None

    def detail(self, name: ComponentName) -> Any:
        """Detail payload of a component that ran successfully, else None."""
        comp = self.component(name)
        return comp.detail if comp is not None and not comp.failed else None

    @property
    def scores(self) -> dict[str, Decimal]:
        return {comp.name.value: comp.score for comp in self.components}

    def to_dict(self) -> dict[str, Any]:
        """Plain structured data: Decimals as strings, enums as values."""
        return to_plain(self)


def to_plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {(k.value if isinstance(k, Enum) else str(k)): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value
