"""Data models for the backtest engine.

Defines the run configuration, equity curve points, aggregate metrics and
the complete result of a single backtest run.

CRITICAL: All monetary values use Decimal. Never use float for prices, quantities, or P&L.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from signalfusion.analytics.outcome import OutcomeReport
from signalfusion.config import AppSettings, RiskSettings, TrailingStopSettings
from signalfusion.position.models import Trade
from signalfusion.signals.models import AnalysisPolicy, to_plain


@dataclass
class BacktestConfig:
    """Configuration for a single backtest run.

    Entry filters are applied after the fused signal passes its threshold.
    ``min_confidence_threshold`` overrides the policy's own threshold.
    """

    policy: AnalysisPolicy = AnalysisPolicy.SCALPING
    warmup_candles: int = 100
    window: int = 100
    stop_multiplier: Decimal = Decimal("2.0")
    fib_target_lookback: int = 20
    use_fibonacci_targets: bool = False
    bullish_only: bool = False
    bearish_only: bool = False
    require_divergence: bool = False
    require_volume: bool = False
    require_trending: bool = False
    min_rr_ratio: Decimal | None = None
    min_confidence_threshold: int | None = None
    risk: RiskSettings = field(default_factory=RiskSettings)
    trailing: TrailingStopSettings | None = None

    def __post_init__(self) -> None:
        if self.bullish_only and self.bearish_only:
            raise ValueError("bullish_only and bearish_only are mutually exclusive")
        if self.warmup_candles < self.window:
            raise ValueError("warmup_candles must be at least the analysis window")

    @classmethod
    def from_settings(cls, settings: AppSettings) -> BacktestConfig:
        """Build a config from the BACKTEST_/RISK_/TRAILING_ settings."""
        bt = settings.backtest
        return cls(
            policy=AnalysisPolicy(bt.policy),
            warmup_candles=bt.warmup_candles,
            window=bt.window,
            stop_multiplier=bt.stop_multiplier,
            fib_target_lookback=bt.fib_target_lookback,
            use_fibonacci_targets=bt.use_fibonacci_targets,
            bullish_only=bt.bullish_only,
            bearish_only=bt.bearish_only,
            require_divergence=bt.require_divergence,
            require_volume=bt.require_volume,
            require_trending=bt.require_trending,
            min_rr_ratio=bt.min_rr_ratio,
            risk=settings.risk,
            trailing=settings.trailing if settings.trailing.enabled else None,
        )

    def with_overrides(self, **kwargs: object) -> BacktestConfig:
        """Return a new BacktestConfig with specified fields overridden."""
        return replace(self, **kwargs)

    def to_dict(self) -> dict:
        """Serialize to dict; Decimals as strings."""
        data = to_plain(self)
        data["risk"] = to_plain(self.risk.model_dump())
        data["trailing"] = to_plain(self.trailing.model_dump()) if self.trailing else None
        return data


@dataclass
class EquityPoint:
    """Account balance plus unrealised P&L of open trades at one candle."""

    timestamp_ms: int
    equity: Decimal


@dataclass
class BacktestMetrics:
    """Aggregate metrics from a completed backtest run.

    Ratios that cannot be computed (too few trades) are None.
    """

    signals_evaluated: int
    valid_signals: int
    trades_opened: int
    trades_closed: int
    winning_trades: int
    open_trades: int
    net_pnl: Decimal
    return_pct: Decimal
    final_balance: Decimal
    sharpe_ratio: Decimal | None
    max_drawdown: Decimal | None
    win_rate: Decimal | None
    skipped_filtered: int = 0
    skipped_low_rr: int = 0
    rejected: int = 0
    execution_failures: int = 0


@dataclass
class BacktestResult:
    """Complete result of a single backtest run."""

    config: BacktestConfig
    symbols: list[str]
    equity_curve: list[EquityPoint]
    metrics: BacktestMetrics
    trades: list[Trade] = field(default_factory=list)
    outcome: OutcomeReport | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for JSON output.

        Trades are reduced to their lifecycle fields; the entry analysis
        is left out.
        """
        return {
            "config": self.config.to_dict(),
            "symbols": list(self.symbols),
            "equity_curve": [
                {"timestamp_ms": ep.timestamp_ms, "equity": str(ep.equity)}
                for ep in self.equity_curve
            ],
            "metrics": to_plain(self.metrics),
            "trades": [
                {k: v for k, v in to_plain(replace(t, analysis=None)).items() if k != "analysis"}
                for t in self.trades
            ],
            "outcome": to_plain(self.outcome) if self.outcome else None,
        }
