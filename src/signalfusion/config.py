"""Configuration system using pydantic-settings with environment variable loading.

Every option recognised by the analysis policies, the position manager, the
outcome analyzer and the backtest engine is declared here with its default.
Settings are validated once at construction; invalid combinations raise
pydantic.ValidationError.
"""

from decimal import Decimal
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IndicatorSettings(BaseSettings):
    """Lookback periods and thresholds for the feature extractor."""

    model_config = SettingsConfigDict(env_prefix="INDICATOR_")

    rsi_period: int = Field(default=14, ge=2)
    rsi_overbought: Decimal = Decimal("70")
    rsi_oversold: Decimal = Decimal("30")

    macd_fast: int = Field(default=12, ge=2)
    macd_slow: int = Field(default=26, ge=3)
    macd_signal: int = Field(default=9, ge=2)

    bollinger_period: int = Field(default=20, ge=2)
    bollinger_std_dev: Decimal = Decimal("2")
    bollinger_proximity: Decimal = Decimal("0.02")  # within 2% of a band

    atr_period: int = Field(default=14, ge=2)
    volatility_lookback: int = 20  # ATR values averaged for the baseline
    volatility_multiplier: Decimal = Decimal("1.2")  # 20% above average ATR

    adx_period: int = Field(default=14, ge=2)
    adx_trending_threshold: Decimal = Decimal("25")

    volume_period: int = Field(default=20, ge=2)
    volume_ratio_threshold: Decimal = Decimal("1.2")  # 20% above average

    stochastic_k_period: int = Field(default=14, ge=2)
    stochastic_d_period: int = Field(default=3, ge=1)

    divergence_lookback: int = Field(default=20, ge=3)
    divergence_min_values: int = 10
    macd_divergence_scale: Decimal = Decimal("0.002")  # typical histogram range

    @model_validator(mode="after")
    def _check_macd_periods(self) -> "IndicatorSettings":
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be shorter than macd_slow")
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError("rsi_oversold must be below rsi_overbought")
        return self


class TrendSettings(BaseSettings):
    """EMA trend filter and momentum scoring parameters."""

    model_config = SettingsConfigDict(env_prefix="TREND_")

    fast_span: int = Field(default=20, ge=2)
    slow_span: int = Field(default=50, ge=3)
    slope_lookback: int = Field(default=5, ge=1)
    full_strength_spread: Decimal = Decimal("0.02")  # 2% EMA spread = strength 100
    momentum_rsi_scale: Decimal = Decimal("25")

    @model_validator(mode="after")
    def _check_spans(self) -> "TrendSettings":
        if self.fast_span >= self.slow_span:
            raise ValueError("fast_span must be shorter than slow_span")
        return self


class ScalpingSettings(BaseSettings):
    """High-frequency fusion policy (looser consensus, indicator confluence)."""

    model_config = SettingsConfigDict(env_prefix="SCALPING_")

    min_candles: int = 26
    min_confidence_threshold: int = Field(default=50, ge=0, le=100)
    include_fibonacci: bool = True
    include_harmonics: bool = True
    fib_lookback: int = 20
    fib_tolerance_pct: Decimal = Decimal("0.5")  # percent of swing range
    harmonic_pattern: Literal["gartley", "bat", "butterfly"] = "gartley"
    harmonic_tolerance_pct: Decimal = Decimal("2")  # percent of current price
    harmonic_offsets: tuple[int, int, int, int] = (20, 15, 10, 1)  # X, A, B, C back from the end
    trending_bonus_min_strength: int = 50


class SwingSettings(BaseSettings):
    """Low-frequency fusion policy (strict trend and momentum alignment)."""

    model_config = SettingsConfigDict(env_prefix="SWING_")

    min_candles: int = 60
    min_confidence_threshold: int = Field(default=45, ge=0, le=100)
    fib_lookback: int = 60
    fib_tolerance_pct: Decimal = Decimal("2.0")  # percent of current price
    harmonic_window: int = 80
    swing_lookback: int = Field(default=3, ge=1)
    harmonic_ratio_tolerance_pct: Decimal = Decimal("15")
    harmonic_tolerance_pct: Decimal = Decimal("8")
    require_trend_alignment: bool = True
    trend_veto_strength: int = 80
    trending_bonus_min_strength: int = 30


class RiskSettings(BaseSettings):
    """Position sizing and account-level risk limits."""

    model_config = SettingsConfigDict(env_prefix="RISK_")

    max_positions: int = Field(default=3, ge=1)
    risk_per_trade: Decimal = Field(default=Decimal("0.02"), gt=0, le=1)  # allocation fraction
    take_profit_ratio_low: Decimal = Field(default=Decimal("2.8"), gt=0)
    take_profit_ratio_high: Decimal = Field(default=Decimal("3.5"), gt=0)
    confidence_low: int = Field(default=45, ge=0, le=100)
    confidence_high: int = Field(default=70, ge=0, le=100)
    max_drawdown: Decimal = Field(default=Decimal("0.05"), gt=0, le=1)
    account_balance: Decimal = Field(default=Decimal("1000"), gt=0)

    @model_validator(mode="after")
    def _check_confidence_tiers(self) -> "RiskSettings":
        if self.confidence_low > self.confidence_high:
            raise ValueError("confidence_low must not exceed confidence_high")
        return self


class TrailingStopSettings(BaseSettings):
    """Trailing stop behaviour for open trades."""

    model_config = SettingsConfigDict(env_prefix="TRAILING_")

    enabled: bool = False
    activation: Decimal = Field(default=Decimal("0.5"), gt=0)  # fraction of target distance
    distance: Decimal = Field(default=Decimal("0.3"), gt=0, lt=1)  # fraction of current gain


class AnalyzerSettings(BaseSettings):
    """Thresholds for the trade failure checklist."""

    model_config = SettingsConfigDict(env_prefix="ANALYZER_")

    weak_trend_strength: int = 50
    low_momentum_score: int = 40
    ranging_adx: Decimal = Decimal("20")
    tight_stop_pct: Decimal = Decimal("1.5")
    low_confidence: int = 55
    direction_bias_gap_pct: Decimal = Decimal("10")
    high_confidence_min_trades: int = 5
    high_confidence_win_rate_pct: Decimal = Decimal("60")


class BacktestSettings(BaseSettings):
    """Backtest engine configuration.

    Controls the candle walk, entry filters and stop placement.
    All fields configurable via BACKTEST_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="BACKTEST_")

    policy: Literal["scalping", "swing"] = "scalping"
    warmup_candles: int = Field(default=100, ge=26)
    window: int = Field(default=100, ge=26)
    stop_multiplier: Decimal = Field(default=Decimal("2.0"), gt=0)
    fib_target_lookback: int = 20
    use_fibonacci_targets: bool = False
    bullish_only: bool = False
    bearish_only: bool = False
    require_divergence: bool = False
    require_volume: bool = False
    require_trending: bool = False
    min_rr_ratio: Decimal | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_direction_filters(self) -> "BacktestSettings":
        if self.bullish_only and self.bearish_only:
            raise ValueError("bullish_only and bearish_only are mutually exclusive")
        return self


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str | None = None
    indicators: IndicatorSettings = IndicatorSettings()
    trend: TrendSettings = TrendSettings()
    scalping: ScalpingSettings = ScalpingSettings()
    swing: SwingSettings = SwingSettings()
    risk: RiskSettings = RiskSettings()
    trailing: TrailingStopSettings = TrailingStopSettings()
    analyzer: AnalyzerSettings = AnalyzerSettings()
    backtest: BacktestSettings = BacktestSettings()
