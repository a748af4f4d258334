"""Tests for signal/trade events and the in-memory event sink."""

from decimal import Decimal

import pytest

from signalfusion.events import (
    Command,
    CommandKind,
    InMemoryEventSink,
    SignalEvent,
    TradeEvent,
    TradeEventKind,
)
from signalfusion.models import Direction
from signalfusion.position.models import Trade
from signalfusion.signals.engine import SignalEngine


def _trade() -> Trade:
    return Trade(
        id="abc123",
        symbol="BTC/USDT",
        direction=Direction.BULLISH,
        entry_price=Decimal("100"),
        stop_price=Decimal("97"),
        target_price=Decimal("107.5"),
        position_size=Decimal("10"),
        investment_amount=Decimal("1000"),
        risk_amount=Decimal("30"),
        confidence=72,
        opened_at=1.0,
    )


class TestSignalEvent:
    def test_from_analysis(self, uptrend_candles) -> None:
        result = SignalEngine().analyze_swing(uptrend_candles)

        event = SignalEvent.from_analysis("BTC/USDT", result)

        assert event.symbol == "BTC/USDT"
        assert event.direction == "BULLISH"
        assert event.confidence == result.confidence
        assert event.timestamp_ms == uptrend_candles[-1].timestamp_ms
        assert event.component_flags["trend"] is True
        assert event.component_flags["harmonics"] is False


class TestTradeEvent:
    def test_payload_is_plain(self) -> None:
        event = TradeEvent.from_trade(TradeEventKind.OPENED, _trade())

        assert event.trade_id == "abc123"
        assert event.payload["direction"] == "BULLISH"
        assert event.payload["entry_price"] == "100"
        assert event.payload["exit_price"] is None
        assert "analysis" not in event.payload


class TestInMemoryEventSink:
    def test_append_and_read(self) -> None:
        sink = InMemoryEventSink()
        event = TradeEvent.from_trade(TradeEventKind.OPENED, _trade())

        sink.append_trade(event)

        assert sink.trades == [event]
        assert sink.signals == []

    def test_commands_drained_in_order(self) -> None:
        sink = InMemoryEventSink()
        sink.submit_command(Command(CommandKind.STOP))
        sink.submit_command(Command(CommandKind.CLOSE_TRADE, trade_id="abc123"))

        commands = sink.pending_commands()

        assert [c.kind for c in commands] == [CommandKind.STOP, CommandKind.CLOSE_TRADE]
        assert sink.pending_commands() == []

    @pytest.mark.parametrize(
        "command",
        [Command(CommandKind.CLOSE_TRADE), Command(CommandKind.SET_MODE)],
    )
    def test_incomplete_commands_rejected(self, command) -> None:
        with pytest.raises(ValueError):
            InMemoryEventSink().submit_command(command)

    def test_set_mode(self) -> None:
        sink = InMemoryEventSink()
        sink.submit_command(Command(CommandKind.SET_MODE, mode="swing"))
        assert sink.pending_commands()[0].mode == "swing"
