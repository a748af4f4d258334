"""Backtest engine package.

Replays historical candles through the production fusion engine, position
manager and outcome analyzer, with an Executor standing in for the broker.
"""

from signalfusion.backtest.engine import BacktestEngine
from signalfusion.backtest.models import (
    BacktestConfig,
    BacktestMetrics,
    BacktestResult,
    EquityPoint,
)
from signalfusion.backtest.presets import STRATEGY_PRESETS, config_from_preset

__all__ = [
    "BacktestConfig",
    "BacktestEngine",
    "BacktestMetrics",
    "BacktestResult",
    "EquityPoint",
    "STRATEGY_PRESETS",
    "config_from_preset",
]
