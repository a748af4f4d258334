"""Strategy preset configurations for backtests.

Two presets mirror the two fusion policies:
- Scalping: high-frequency policy, long-only, loose filters, moderate stops
- Swing: low-frequency policy, long-only, volume and trending filters,
  trailing stop enabled

Presets only pre-fill BacktestConfig. They do not change any live settings.
Values are strings so presets can be shown or edited as plain data.
"""

from decimal import Decimal

from signalfusion.backtest.models import BacktestConfig
from signalfusion.config import RiskSettings, TrailingStopSettings
from signalfusion.signals.models import AnalysisPolicy

STRATEGY_PRESETS: dict[str, dict] = {
    "scalping": {
        "label": "Scalping",
        "description": "High-frequency policy on short candles. Long-only, no entry filters.",
        "policy": "scalping",
        "params": {
            "min_confidence_threshold": 45,
            "stop_multiplier": "1.5",
            "bullish_only": True,
            "min_rr_ratio": "0.5",
        },
        "risk": {
            "risk_per_trade": "0.08",
            "take_profit_ratio_low": "1.5",
            "take_profit_ratio_high": "1.5",
            "max_positions": 8,
        },
        "trailing": None,
    },
    "swing": {
        "label": "Swing",
        "description": "Low-frequency trend following. Long-only, requires volume and a trending market.",
        "policy": "swing",
        "params": {
            "min_confidence_threshold": 50,
            "stop_multiplier": "0.5",
            "bullish_only": True,
            "require_volume": True,
            "require_trending": True,
            "min_rr_ratio": "0.7",
        },
        "risk": {
            "risk_per_trade": "0.50",
            "take_profit_ratio_low": "1.5",
            "take_profit_ratio_high": "1.5",
            "max_positions": 10,
        },
        "trailing": {"enabled": True, "activation": "0.5", "distance": "0.3"},
    },
}

_DECIMAL_PARAMS = {"stop_multiplier", "min_rr_ratio"}


def config_from_preset(name: str, **overrides: object) -> BacktestConfig:
    """Build a BacktestConfig from a named preset.

    Args:
        name: Key in STRATEGY_PRESETS.
        **overrides: BacktestConfig fields applied on top of the preset.

    Raises:
        KeyError: If the preset does not exist.
    """
    preset = STRATEGY_PRESETS[name]
    params = {
        k: Decimal(v) if k in _DECIMAL_PARAMS else v for k, v in preset["params"].items()
    }
    trailing = preset["trailing"]
    config = BacktestConfig(
        policy=AnalysisPolicy(preset["policy"]),
        risk=RiskSettings(**preset["risk"]),
        trailing=TrailingStopSettings(**trailing) if trailing else None,
        **params,
    )
    return config.with_overrides(**overrides) if overrides else config
