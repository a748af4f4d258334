"""Human-readable rendering of an AnalysisResult."""

from datetime import datetime, timezone

from signalfusion.signals.models import AnalysisResult, ComponentName


def _flag(ok: bool, yes: str, no: str) -> str:
    return yes if ok else no


def format_analysis(result: AnalysisResult) -> str:
    """Render a multi-line summary of the fused analysis for logs or a terminal."""
    when = datetime.fromtimestamp(result.timestamp_ms / 1000, tz=timezone.utc)
    lines = [
        f"=== {result.policy.value.upper()} ANALYSIS [{when:%Y-%m-%d %H:%M:%S} UTC] ===",
        f"Current Price: {result.current_price}",
    ]

    for comp in result.components:
        label = comp.name.value.capitalize()
        if comp.failed:
            lines.append(f"{label}: error ({comp.error})")
            continue
        if comp.name is ComponentName.CANDLESTICKS:
            text = f"{comp.detail.pattern} {comp.direction.value}"
        elif comp.name is ComponentName.FIBONACCI:
            text = _flag(comp.detail.has_support, "at level", "no level")
        elif comp.name is ComponentName.HARMONICS:
            text = _flag(comp.detail.is_valid, f"valid {comp.detail.pattern}", "invalid")
        elif comp.name is ComponentName.FILTERS:
            regime = comp.detail.regime
            text = f"{regime.regime.value} (ADX {regime.adx:.1f})"
        elif comp.name is ComponentName.TREND:
            text = f"{comp.direction.value} strength {comp.detail.strength}"
            if comp.detail.aligned:
                text += " aligned"
        elif comp.name is ComponentName.MOMENTUM:
            text = f"{comp.direction.value} score {comp.detail.score}"
        else:
            text = comp.direction.value
        lines.append(f"{label}: {text} (+{comp.score.normalize():f})")

    if result.alignment is not None:
        lines.append(
            f"Alignment: trend/momentum {_flag(result.alignment.trend_momentum, 'agree', 'differ')}"
            f" (bonus {result.alignment.bonus:+d})"
        )

    lines += [
        "",
        f"FINAL SIGNAL: {result.final_signal.value} ({result.signal_quality.value})",
        f"Confidence: {result.confidence}% "
        + _flag(result.meets_threshold, "READY", "TOO LOW"),
    ]
    return "\n".join(lines)
