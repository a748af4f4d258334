"""Tests for the SignalEngine fusion policies.

Tests verify:
- Short windows raise InsufficientDataError, nothing else propagates
- A failing component scores zero and records its error
- The high-frequency direction state machine and threshold semantics
- The low-frequency trend/momentum alignment rules
- Analysing the same window twice gives equal results
"""

from dataclasses import replace
from decimal import Decimal
from types import SimpleNamespace

import pytest

from signalfusion.config import ScalpingSettings, SwingSettings
from signalfusion.exceptions import InsufficientDataError
from signalfusion.models import Direction, SignalQuality
from signalfusion.signals.engine import SignalEngine
from signalfusion.signals.models import AnalysisPolicy, ComponentName, ComponentResult


def _stub(name: ComponentName, direction: Direction, score: str = "0", /, **detail):
    """Replacement component method returning a fixed result."""

    def compute(*args):
        return ComponentResult(
            name=name,
            score=Decimal(score),
            direction=direction,
            detail=SimpleNamespace(**detail) if detail else None,
        )

    return compute


def _failing(*args):
    raise RuntimeError("boom")


@pytest.fixture
def engine() -> SignalEngine:
    return SignalEngine()


class TestScalpingPolicy:
    def test_short_window_raises(self, engine, uptrend_candles) -> None:
        with pytest.raises(InsufficientDataError) as exc_info:
            engine.analyze_scalping(uptrend_candles[:25])
        assert exc_info.value.required == 26

    def test_result_shape(self, engine, uptrend_candles) -> None:
        result = engine.analyze_scalping(uptrend_candles)

        assert result.policy is AnalysisPolicy.SCALPING
        assert result.timestamp_ms == uptrend_candles[-1].timestamp_ms
        assert result.current_price == uptrend_candles[-1].close
        assert [c.name for c in result.components] == [
            ComponentName.CANDLESTICKS,
            ComponentName.INDICATORS,
            ComponentName.FIBONACCI,
            ComponentName.FILTERS,
            ComponentName.HARMONICS,
        ]
        assert 0 <= result.confidence <= 100
        assert result.alignment is None

    def test_optional_components_skipped(self, uptrend_candles) -> None:
        engine = SignalEngine(
            scalping_settings=ScalpingSettings(include_fibonacci=False, include_harmonics=False)
        )
        result = engine.analyze_scalping(uptrend_candles)
        assert result.component(ComponentName.FIBONACCI) is None
        assert result.component(ComponentName.HARMONICS) is None

    def test_candlesticks_exclude_forming_candle(self, engine, uptrend_candles) -> None:
        """Every closed candle on steady tape completes three white soldiers."""
        result = engine.analyze_scalping(uptrend_candles)
        candles = result.detail(ComponentName.CANDLESTICKS)
        assert candles.pattern == "three_white_soldiers"
        assert result.component(ComponentName.CANDLESTICKS).score == Decimal("16.0")

    def test_same_window_same_result(self, engine, downtrend_candles) -> None:
        first = engine.analyze_scalping(downtrend_candles)
        second = engine.analyze_scalping(downtrend_candles)
        assert first.to_dict() == second.to_dict()

    def test_component_failure_is_absorbed(self, engine, uptrend_candles) -> None:
        engine._scalping_indicators = _failing

        result = engine.analyze_scalping(uptrend_candles)
        indicators = result.component(ComponentName.INDICATORS)

        assert indicators.failed is True
        assert indicators.score == Decimal("0")
        assert indicators.direction is Direction.NEUTRAL
        assert "RuntimeError: boom" in indicators.error
        assert result.detail(ComponentName.INDICATORS) is None

    @pytest.mark.parametrize(
        "candle_dir,indicator_dir,expected_dir,expected_quality",
        [
            (Direction.BULLISH, Direction.BULLISH, Direction.BULLISH, SignalQuality.STRONG),
            (Direction.BULLISH, Direction.BEARISH, Direction.NEUTRAL, SignalQuality.WEAK),
            (Direction.NEUTRAL, Direction.BEARISH, Direction.BEARISH, SignalQuality.MODERATE),
            (Direction.BULLISH, Direction.NEUTRAL, Direction.BULLISH, SignalQuality.MODERATE),
            (Direction.NEUTRAL, Direction.NEUTRAL, Direction.NEUTRAL, SignalQuality.WEAK),
        ],
    )
    def test_direction_state_machine(
        self, engine, uptrend_candles, candle_dir, indicator_dir, expected_dir, expected_quality
    ) -> None:
        engine._scalping_candlesticks = _stub(ComponentName.CANDLESTICKS, candle_dir, "10")
        engine._scalping_indicators = _stub(ComponentName.INDICATORS, indicator_dir, "10")

        result = engine.analyze_scalping(uptrend_candles)

        assert result.final_signal is expected_dir
        assert result.signal_quality is expected_quality

    def test_confidence_capped_at_100(self, engine, uptrend_candles) -> None:
        engine._scalping_candlesticks = _stub(ComponentName.CANDLESTICKS, Direction.BULLISH, "60")
        engine._scalping_indicators = _stub(ComponentName.INDICATORS, Direction.BULLISH, "60")

        assert engine.analyze_scalping(uptrend_candles).confidence == 100

    def test_neutral_can_meet_threshold(self, engine, uptrend_candles) -> None:
        """Threshold only looks at confidence; callers must check direction."""
        engine._scalping_candlesticks = _stub(ComponentName.CANDLESTICKS, Direction.BULLISH, "40")
        engine._scalping_indicators = _stub(ComponentName.INDICATORS, Direction.BEARISH, "40")

        result = engine.analyze_scalping(uptrend_candles)

        assert result.final_signal is Direction.NEUTRAL
        assert result.meets_threshold is True

    def test_below_threshold(self, uptrend_candles) -> None:
        engine = SignalEngine(scalping_settings=ScalpingSettings(min_confidence_threshold=100))
        engine._scalping_candlesticks = _stub(ComponentName.CANDLESTICKS, Direction.BULLISH)
        engine._scalping_indicators = _stub(ComponentName.INDICATORS, Direction.BULLISH)

        result = engine.analyze_scalping(uptrend_candles)

        assert result.confidence < 100
        assert result.meets_threshold is False


class TestSwingPolicy:
    def test_short_window_raises(self, engine, uptrend_candles) -> None:
        with pytest.raises(InsufficientDataError) as exc_info:
            engine.analyze_swing(uptrend_candles[:59])
        assert exc_info.value.required == 60

    def test_uptrend_is_strong_bullish(self, engine, uptrend_candles) -> None:
        result = engine.analyze_swing(uptrend_candles)

        assert result.policy is AnalysisPolicy.SWING
        assert result.final_signal is Direction.BULLISH
        assert result.signal_quality is SignalQuality.STRONG
        assert result.alignment.trend_momentum is True
        assert result.alignment.bonus == 20
        assert result.meets_threshold is True

    def test_downtrend_is_strong_bearish(self, engine, downtrend_candles) -> None:
        result = engine.analyze_swing(downtrend_candles)
        assert result.final_signal is Direction.BEARISH
        assert result.signal_quality is SignalQuality.STRONG

    def test_flat_is_neutral(self, engine, flat_candles) -> None:
        result = engine.analyze_swing(flat_candles)
        assert result.final_signal is Direction.NEUTRAL
        assert result.signal_quality is SignalQuality.WEAK
        assert result.meets_threshold is False

    def test_strong_trend_leads_without_momentum(self, engine, uptrend_candles) -> None:
        engine._swing_trend = _stub(ComponentName.TREND, Direction.BULLISH, "25", strength=80)
        engine._swing_momentum = _stub(ComponentName.MOMENTUM, Direction.NEUTRAL, "5", score=20)

        result = engine.analyze_swing(uptrend_candles)

        assert result.final_signal is Direction.BULLISH
        assert result.signal_quality is SignalQuality.MODERATE
        assert result.alignment.bonus == 0

    def test_momentum_leads_without_trend(self, engine, uptrend_candles) -> None:
        engine._swing_trend = _stub(ComponentName.TREND, Direction.NEUTRAL, "5", strength=0)
        engine._swing_momentum = _stub(ComponentName.MOMENTUM, Direction.BEARISH, "16", score=65)

        result = engine.analyze_swing(uptrend_candles)

        assert result.final_signal is Direction.BEARISH
        assert result.signal_quality is SignalQuality.MODERATE

    def test_momentum_against_strong_trend_is_neutral(self, engine, uptrend_candles) -> None:
        engine._swing_trend = _stub(ComponentName.TREND, Direction.BULLISH, "25", strength=90)
        engine._swing_momentum = _stub(ComponentName.MOMENTUM, Direction.BEARISH, "18", score=70)

        result = engine.analyze_swing(uptrend_candles)

        assert result.final_signal is Direction.NEUTRAL
        assert result.signal_quality is SignalQuality.WEAK
        assert result.meets_threshold is False

    def test_candle_against_alignment_costs_points(self, engine, uptrend_candles) -> None:
        engine._swing_candlesticks = _stub(ComponentName.CANDLESTICKS, Direction.BEARISH, "10")

        result = engine.analyze_swing(uptrend_candles)

        assert result.alignment.bonus == 5
        assert result.final_signal is Direction.BULLISH

    def test_failed_momentum_scores_zero(self, engine, uptrend_candles) -> None:
        engine._swing_momentum = _failing

        result = engine.analyze_swing(uptrend_candles)

        assert result.component(ComponentName.MOMENTUM).failed is True
        assert result.alignment.momentum_score == 0
        assert result.alignment.trend_momentum is False

    def test_threshold_setting(self, uptrend_candles) -> None:
        engine = SignalEngine(swing_settings=SwingSettings(min_confidence_threshold=100))
        engine._swing_candlesticks = _stub(ComponentName.CANDLESTICKS, Direction.NEUTRAL)
        engine._fibonacci = _stub(ComponentName.FIBONACCI, Direction.NEUTRAL)
        result = engine.analyze_swing(uptrend_candles)
        assert result.meets_threshold is False


class TestDispatch:
    def test_policy_selects_method(self, engine, uptrend_candles) -> None:
        assert engine.analyze(uptrend_candles, AnalysisPolicy.SWING).policy is AnalysisPolicy.SWING
        assert (
            engine.analyze(uptrend_candles, AnalysisPolicy.SCALPING).policy
            is AnalysisPolicy.SCALPING
        )

    def test_from_settings(self, mock_settings) -> None:
        engine = SignalEngine.from_settings(mock_settings)
        assert isinstance(engine, SignalEngine)

    @pytest.mark.parametrize("policy", list(AnalysisPolicy))
    def test_unordered_window_raises(self, engine, uptrend_candles, policy) -> None:
        swapped = uptrend_candles[:-2] + [uptrend_candles[-1], uptrend_candles[-2]]
        with pytest.raises(ValueError, match="out of order"):
            engine.analyze(swapped, policy)

    def test_repeated_timestamp_raises(self, engine, uptrend_candles) -> None:
        repeated = replace(uptrend_candles[-1], timestamp_ms=uptrend_candles[-2].timestamp_ms)
        with pytest.raises(ValueError):
            engine.analyze_swing(uptrend_candles[:-1] + [repeated])


class TestToDict:
    def test_plain_values(self, engine, uptrend_candles) -> None:
        data = engine.analyze_scalping(uptrend_candles).to_dict()

        assert data["policy"] == "scalping"
        assert data["current_price"] == "149.5"
        assert isinstance(data["confidence"], int)
        assert data["components"][0]["name"] == "candlesticks"
