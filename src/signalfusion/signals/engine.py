"""Signal fusion engine combining indicators and patterns into one call.

The SignalEngine offers two policies over the same building blocks:

- ``analyze_scalping`` (high-frequency): candlestick and indicator
  confluence form the base score, Fibonacci, harmonic and filter
  conditions add flat bonuses. ``meets_threshold`` only looks at confidence;
  a NEUTRAL result can still meet it, so callers must check direction.
- ``analyze_swing`` (low-frequency): additive trend, momentum, candlestick,
  Fibonacci and harmonic bands plus an alignment bonus, with a strict
  direction state machine and a strong-trend veto. ``meets_threshold``
  additionally requires a non-NEUTRAL direction.

Every component runs in its own try/except: a failing component scores zero
and records its error, it never aborts the analysis. The only exception
either policy raises is InsufficientDataError for a short window.

CRITICAL: All computations use Decimal. Never use float for scores.
"""

from collections.abc import Callable, Sequence
from decimal import Decimal

from signalfusion.config import (
    AppSettings,
    IndicatorSettings,
    ScalpingSettings,
    SwingSettings,
    TrendSettings,
)
from signalfusion.exceptions import ComponentComputationError
from signalfusion.indicators import (
    classify_regime,
    compute_confluence,
    compute_momentum,
    compute_trend_filter,
    compute_volatility,
    compute_volume_filter,
    extract_features,
)
from signalfusion.indicators.core import require_candles, require_ordered
from signalfusion.logging import get_logger
from signalfusion.models import Candle, Direction, MarketRegime, SignalQuality, to_score
from signalfusion.patterns import (
    DEFAULT_TABLES,
    FibToleranceBasis,
    HarmonicSignal,
    PatternTables,
    analyze_candlesticks,
    analyze_fibonacci,
    detect_harmonic_from_swings,
    validate_harmonic_pattern,
)
from signalfusion.signals.models import (
    Alignment,
    AnalysisPolicy,
    AnalysisResult,
    ComponentName,
    ComponentResult,
    FilterReadings,
    IndicatorDetail,
)

logger = get_logger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

#: High-frequency weight of the candlestick and indicator scores.
_SCALPING_BASE_WEIGHT = Decimal("0.4")
_DIVERGENCE_BOOST = Decimal("0.5")
_SCALPING_FIB_BONUS = Decimal("10")
_SCALPING_HARMONIC_BONUS = Decimal("10")

#: Low-frequency flat bands.
_SWING_FIB_POINTS = Decimal("15")
_SWING_HARMONIC_POINTS = Decimal("10")
_SWING_MOMENTUM_WEIGHT = Decimal("0.25")
_SWING_CANDLE_MAX = Decimal("20")
_CANDLE_WEIGHT_MAX = Decimal("40")


class SignalEngine:
    """Fuses indicator and pattern signals into an AnalysisResult.

    Args:
        indicator_settings: Indicator periods and thresholds.
        trend_settings: EMA trend filter and momentum parameters.
        scalping_settings: High-frequency policy options.
        swing_settings: Low-frequency policy options.
        tables: Candlestick weights, harmonic ratio bands and Fibonacci ratios.
    """

    def __init__(
        self,
        indicator_settings: IndicatorSettings | None = None,
        trend_settings: TrendSettings | None = None,
        scalping_settings: ScalpingSettings | None = None,
        swing_settings: SwingSettings | None = None,
        tables: PatternTables = DEFAULT_TABLES,
    ) -> None:
        self._indicators = indicator_settings or IndicatorSettings()
        self._trend = trend_settings or TrendSettings()
        self._scalping = scalping_settings or ScalpingSettings()
        self._swing = swing_settings or SwingSettings()
        self._tables = tables

    @classmethod
    def from_settings(cls, settings: AppSettings, tables: PatternTables = DEFAULT_TABLES) -> "SignalEngine":
        return cls(
            indicator_settings=settings.indicators,
            trend_settings=settings.trend,
            scalping_settings=settings.scalping,
            swing_settings=settings.swing,
            tables=tables,
        )

    def analyze(self, candles: Sequence[Candle], policy: AnalysisPolicy) -> AnalysisResult:
        """Run the given fusion policy over a candle window."""
        if policy is AnalysisPolicy.SWING:
            return self.analyze_swing(candles)
        return self.analyze_scalping(candles)

    # ------------------------------------------------------------------
    # High-frequency policy
    # ------------------------------------------------------------------

    def analyze_scalping(self, candles: Sequence[Candle]) -> AnalysisResult:
        """Run the high-frequency fusion policy over a candle window.

        Raises:
            InsufficientDataError: If fewer than ``min_candles`` candles are given.
            ValueError: If timestamps do not strictly increase.
        """
        opts = self._scalping
        require_candles("high-frequency analysis", opts.min_candles, len(candles))
        require_ordered(candles)

        candle_comp = self._guarded(
            ComponentName.CANDLESTICKS, lambda: self._scalping_candlesticks(candles)
        )
        indicator_comp = self._guarded(
            ComponentName.INDICATORS, lambda: self._scalping_indicators(candles)
        )
        components = [candle_comp, indicator_comp]
        if opts.include_fibonacci:
            components.append(
                self._guarded(
                    ComponentName.FIBONACCI,
                    lambda: self._fibonacci(
                        candles,
                        opts.fib_lookback,
                        opts.fib_tolerance_pct,
                        FibToleranceBasis.RANGE,
                        _SCALPING_FIB_BONUS,
                    ),
                )
            )
        components.append(
            self._guarded(
                ComponentName.FILTERS,
                lambda: self._filters(
                    candles,
                    high_volatility_bonus=True,
                    trending_bonus=Decimal("10"),
                    trending_min_strength=opts.trending_bonus_min_strength,
                ),
            )
        )
        if opts.include_harmonics:
            components.append(
                self._guarded(ComponentName.HARMONICS, lambda: self._scalping_harmonics(candles))
            )

        total = min(_HUNDRED, sum((c.score for c in components), _ZERO))
        confidence = to_score(total)

        candle_dir = candle_comp.direction
        indicator_dir = indicator_comp.direction
        if candle_dir.opposes(indicator_dir):
            final_signal = Direction.NEUTRAL
            quality = SignalQuality.WEAK
        elif candle_dir is not Direction.NEUTRAL and indicator_dir is not Direction.NEUTRAL:
            final_signal = candle_dir
            quality = SignalQuality.STRONG
        elif candle_dir is not Direction.NEUTRAL or indicator_dir is not Direction.NEUTRAL:
            final_signal = candle_dir if candle_dir is not Direction.NEUTRAL else indicator_dir
            quality = SignalQuality.MODERATE
        else:
            final_signal = Direction.NEUTRAL
            quality = SignalQuality.WEAK

        result = AnalysisResult(
            timestamp_ms=candles[-1].timestamp_ms,
            current_price=candles[-1].close,
            policy=AnalysisPolicy.SCALPING,
            components=tuple(components),
            final_signal=final_signal,
            confidence=confidence,
            signal_quality=quality,
            meets_threshold=confidence >= opts.min_confidence_threshold,
        )
        self._log_result(result)
        return result

    def _scalping_candlesticks(self, candles: Sequence[Candle]) -> ComponentResult:
        signal = analyze_candlesticks(candles[:-1], self._tables.candlestick_weights)
        return ComponentResult(
            name=ComponentName.CANDLESTICKS,
            score=_SCALPING_BASE_WEIGHT * Decimal(signal.confidence),
            direction=signal.direction,
            detail=signal,
        )

    def _scalping_indicators(self, candles: Sequence[Candle]) -> ComponentResult:
        snapshot = extract_features(candles, self._indicators)
        confluence = compute_confluence(snapshot)
        indicator_score = Decimal(confluence.strength)
        if snapshot.divergence_detected:
            indicator_score = min(
                _HUNDRED, indicator_score + snapshot.divergence_strength * _DIVERGENCE_BOOST
            )
        return ComponentResult(
            name=ComponentName.INDICATORS,
            score=_SCALPING_BASE_WEIGHT * indicator_score,
            direction=confluence.direction,
            detail=IndicatorDetail(
                snapshot=snapshot, confluence=confluence, indicator_score=indicator_score
            ),
        )

    def _scalping_harmonics(self, candles: Sequence[Candle]) -> ComponentResult:
        opts = self._scalping
        points = [candles[-offset].close for offset in opts.harmonic_offsets]
        validation = validate_harmonic_pattern(
            candles[-1].close,
            points,
            opts.harmonic_pattern,
            opts.harmonic_tolerance_pct,
            self._tables.harmonic_ratios,
        )
        signal = HarmonicSignal(
            pattern=opts.harmonic_pattern if validation.valid else None,
            is_valid=validation.valid,
            validation=validation,
        )
        return ComponentResult(
            name=ComponentName.HARMONICS,
            score=_SCALPING_HARMONIC_BONUS if validation.valid else _ZERO,
            direction=validation.direction if validation.valid else Direction.NEUTRAL,
            detail=signal,
        )

    # ------------------------------------------------------------------
    # Low-frequency policy
    # ------------------------------------------------------------------

    def analyze_swing(self, candles: Sequence[Candle]) -> AnalysisResult:
        """Run the low-frequency fusion policy over a candle window.

        Raises:
            InsufficientDataError: If fewer than ``min_candles`` candles are given.
            ValueError: If timestamps do not strictly increase.
        """
        opts = self._swing
        require_candles("low-frequency analysis", opts.min_candles, len(candles))
        require_ordered(candles)
        price = candles[-1].close

        trend_comp = self._guarded(ComponentName.TREND, lambda: self._swing_trend(candles))
        momentum_comp = self._guarded(ComponentName.MOMENTUM, lambda: self._swing_momentum(candles))
        candle_comp = self._guarded(
            ComponentName.CANDLESTICKS, lambda: self._swing_candlesticks(candles)
        )
        fib_comp = self._guarded(
            ComponentName.FIBONACCI,
            lambda: self._fibonacci(
                candles,
                opts.fib_lookback,
                opts.fib_tolerance_pct,
                FibToleranceBasis.PRICE,
                _SWING_FIB_POINTS,
            ),
        )
        harmonic_comp = self._guarded(
            ComponentName.HARMONICS, lambda: self._swing_harmonics(candles, price)
        )
        filter_comp = self._guarded(
            ComponentName.FILTERS,
            lambda: self._filters(
                candles,
                high_volatility_bonus=False,
                trending_bonus=Decimal("5"),
                trending_min_strength=opts.trending_bonus_min_strength,
            ),
        )
        components = (trend_comp, momentum_comp, candle_comp, fib_comp, harmonic_comp, filter_comp)
        base = to_score(sum((c.score for c in components), _ZERO))

        trend_dir = trend_comp.direction
        trend_strength = trend_comp.detail.strength if not trend_comp.failed else 0
        momentum_dir = momentum_comp.direction
        momentum_score = momentum_comp.detail.score if not momentum_comp.failed else 0
        candle_dir = candle_comp.direction

        trend_momentum = trend_dir is momentum_dir and trend_dir is not Direction.NEUTRAL
        bonus = 0
        quality = SignalQuality.WEAK
        if trend_momentum:
            bonus += 10
            if candle_dir is trend_dir:
                bonus += 10
                quality = SignalQuality.STRONG
            elif candle_dir is Direction.NEUTRAL:
                quality = SignalQuality.MODERATE
            else:
                bonus -= 5
                quality = SignalQuality.WEAK

        if trend_momentum and trend_strength >= 50:
            final_signal = trend_dir
        elif (
            trend_strength >= 75
            and trend_dir is not Direction.NEUTRAL
            and not momentum_dir.opposes(trend_dir)
        ):
            final_signal = trend_dir
            quality = SignalQuality.MODERATE
        elif (
            momentum_score >= 60
            and momentum_dir is not Direction.NEUTRAL
            and not trend_dir.opposes(momentum_dir)
        ):
            final_signal = momentum_dir
            quality = SignalQuality.MODERATE
        else:
            final_signal = Direction.NEUTRAL
            quality = SignalQuality.WEAK

        confidence = max(0, min(100, base + bonus))

        if (
            opts.require_trend_alignment
            and trend_strength >= opts.trend_veto_strength
            and final_signal.opposes(trend_dir)
        ):
            logger.debug(
                "counter_trend_veto",
                trend=trend_dir.value,
                trend_strength=trend_strength,
                vetoed=final_signal.value,
            )
            final_signal = Direction.NEUTRAL
            quality = SignalQuality.WEAK

        result = AnalysisResult(
            timestamp_ms=candles[-1].timestamp_ms,
            current_price=price,
            policy=AnalysisPolicy.SWING,
            components=components,
            final_signal=final_signal,
            confidence=confidence,
            signal_quality=quality,
            meets_threshold=(
                confidence >= opts.min_confidence_threshold
                and final_signal is not Direction.NEUTRAL
            ),
            alignment=Alignment(
                trend_momentum=trend_momentum,
                trend_strength=trend_strength,
                momentum_score=momentum_score,
                bonus=bonus,
            ),
        )
        self._log_result(result)
        return result

    def _swing_trend(self, candles: Sequence[Candle]) -> ComponentResult:
        cfg = self._trend
        trend = compute_trend_filter(
            candles, cfg.fast_span, cfg.slow_span, cfg.slope_lookback, cfg.full_strength_spread
        )
        if trend.aligned:
            points = 30
        elif trend.strength >= 75:
            points = 25
        elif trend.strength >= 50:
            points = 15
        else:
            points = 5
        return ComponentResult(
            name=ComponentName.TREND,
            score=Decimal(points),
            direction=trend.direction,
            detail=trend,
        )

    def _swing_momentum(self, candles: Sequence[Candle]) -> ComponentResult:
        momentum = compute_momentum(candles, self._indicators, self._trend.momentum_rsi_scale)
        return ComponentResult(
            name=ComponentName.MOMENTUM,
            score=Decimal(to_score(Decimal(momentum.score) * _SWING_MOMENTUM_WEIGHT)),
            direction=momentum.direction,
            detail=momentum,
        )

    def _swing_candlesticks(self, candles: Sequence[Candle]) -> ComponentResult:
        signal = analyze_candlesticks(candles[:-1], self._tables.candlestick_weights)
        points = to_score(Decimal(signal.confidence) * _SWING_CANDLE_MAX / _CANDLE_WEIGHT_MAX)
        return ComponentResult(
            name=ComponentName.CANDLESTICKS,
            score=Decimal(points),
            direction=signal.direction,
            detail=signal,
        )

    def _swing_harmonics(self, candles: Sequence[Candle], price: Decimal) -> ComponentResult:
        opts = self._swing
        signal = detect_harmonic_from_swings(
            candles[-opts.harmonic_window:],
            price,
            opts.swing_lookback,
            opts.harmonic_ratio_tolerance_pct,
            opts.harmonic_tolerance_pct,
            self._tables.harmonic_ratios,
        )
        direction = (
            signal.validation.direction
            if signal.is_valid and signal.validation is not None
            else Direction.NEUTRAL
        )
        return ComponentResult(
            name=ComponentName.HARMONICS,
            score=_SWING_HARMONIC_POINTS if signal.is_valid else _ZERO,
            direction=direction,
            detail=signal,
        )

    # ------------------------------------------------------------------
    # Shared components
    # ------------------------------------------------------------------

    def _fibonacci(
        self,
        candles: Sequence[Candle],
        lookback: int,
        tolerance_pct: Decimal,
        basis: FibToleranceBasis,
        points: Decimal,
    ) -> ComponentResult:
        signal = analyze_fibonacci(
            candles, lookback, tolerance_pct, basis, self._tables.fibonacci_ratios
        )
        return ComponentResult(
            name=ComponentName.FIBONACCI,
            score=points if signal.has_support else _ZERO,
            detail=signal,
        )

    def _filters(
        self,
        candles: Sequence[Candle],
        high_volatility_bonus: bool,
        trending_bonus: Decimal,
        trending_min_strength: int,
    ) -> ComponentResult:
        cfg = self._indicators
        readings = FilterReadings(
            volume=compute_volume_filter(candles, cfg.volume_period, cfg.volume_ratio_threshold),
            volatility=compute_volatility(
                candles, cfg.atr_period, cfg.volatility_lookback, cfg.volatility_multiplier
            ),
            regime=classify_regime(candles, cfg.adx_period, cfg.adx_trending_threshold),
        )
        bonus = _ZERO
        if readings.volume.is_above_average:
            bonus += Decimal("5")
        if high_volatility_bonus and readings.volatility.is_high_volatility:
            bonus += Decimal("5")
        if (
            readings.regime.regime is MarketRegime.TRENDING
            and readings.regime.strength > trending_min_strength
        ):
            bonus += trending_bonus
        return ComponentResult(name=ComponentName.FILTERS, score=bonus, detail=readings)

    def _guarded(
        self, name: ComponentName, compute: Callable[[], ComponentResult]
    ) -> ComponentResult:
        """Run one component, absorbing any failure into a zero-score result."""
        try:
            return compute()
        except Exception as e:
            error = ComponentComputationError(name.value, e)
            logger.debug("component_failed", component=name.value, error=str(error))
            return ComponentResult(name=name, score=_ZERO, error=str(error))

    @staticmethod
    def _log_result(result: AnalysisResult) -> None:
        logger.info(
            "analysis_complete",
            policy=result.policy.value,
            price=str(result.current_price),
            final_signal=result.final_signal.value,
            confidence=result.confidence,
            signal_quality=result.signal_quality.value,
            meets_threshold=result.meets_threshold,
            failed_components=[c.name.value for c in result.components if c.failed],
        )
