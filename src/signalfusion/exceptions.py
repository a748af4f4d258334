"""Custom exceptions for the signal fusion core.

Feature-extractor and pattern-detector failures are exceptions; the fusion
engine absorbs them per component. Position-manager business rules are NOT
exceptions: they are returned as PositionRejection values
(see signalfusion.position.models).
"""


class SignalFusionError(Exception):
    """Base exception for all signalfusion errors."""


class InsufficientDataError(SignalFusionError):
    """Raised when a candle window is shorter than an indicator's lookback."""

    def __init__(self, what: str, required: int, actual: int) -> None:
        super().__init__(
            f"Insufficient data for {what}: need {required} candles, got {actual}"
        )
        self.what = what
        self.required = required
        self.actual = actual


class InvalidRangeError(SignalFusionError):
    """Raised for a degenerate swing range (high <= low, or a zero XA leg)."""


class UnknownPatternError(SignalFusionError):
    """Raised when a harmonic pattern name is not in the ratio table."""


class ComponentComputationError(SignalFusionError):
    """Wraps a failed indicator/pattern sub-step inside the fusion engine.

    Never propagates to callers: the engine records its message on the
    component breakdown and scores the component as zero.
    """

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"{component}: {type(cause).__name__}: {cause}")
        self.component = component
        self.cause = cause
