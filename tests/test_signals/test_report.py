"""Tests for the text rendering of an analysis."""

from signalfusion.signals.engine import SignalEngine
from signalfusion.signals.report import format_analysis


class TestFormatAnalysis:
    def test_scalping_report(self, uptrend_candles) -> None:
        text = format_analysis(SignalEngine().analyze_scalping(uptrend_candles))
        lines = text.splitlines()

        assert lines[0].startswith("=== SCALPING ANALYSIS [2023-11-")
        assert lines[1] == "Current Price: 149.5"
        assert any(line.startswith("Candlesticks: three_white_soldiers BULLISH (+16)") for line in lines)
        assert "FINAL SIGNAL:" in text
        assert "Alignment" not in text

    def test_swing_report_has_alignment(self, uptrend_candles) -> None:
        text = format_analysis(SignalEngine().analyze_swing(uptrend_candles))
        assert "=== SWING ANALYSIS" in text
        assert "Alignment: trend/momentum agree (bonus +20)" in text
        assert "Confidence:" in text and "READY" in text

    def test_failed_component_shows_error(self, uptrend_candles) -> None:
        engine = SignalEngine()

        def broken(*args):
            raise ValueError("bad window")

        engine._swing_harmonics = broken
        text = format_analysis(engine.analyze_swing(uptrend_candles))
        assert "Harmonics: error (harmonics: ValueError: bad window)" in text
