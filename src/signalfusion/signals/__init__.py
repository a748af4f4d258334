"""Signal fusion: turns indicator and pattern signals into one scored direction.

Provides the result models, the SignalEngine with its high-frequency
(scalping) and low-frequency (swing) policies, and a text formatter.
"""

from signalfusion.signals.engine import SignalEngine
from signalfusion.signals.models import (
    Alignment,
    AnalysisPolicy,
    AnalysisResult,
    ComponentName,
    ComponentResult,
    FilterReadings,
    IndicatorDetail,
)
from signalfusion.signals.report import format_analysis

__all__ = [
    "Alignment",
    "AnalysisPolicy",
    "AnalysisResult",
    "ComponentName",
    "ComponentResult",
    "FilterReadings",
    "IndicatorDetail",
    "SignalEngine",
    "format_analysis",
]
