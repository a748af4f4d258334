"""Append-only event sink for signals and trade lifecycle events.

Callers record every fused signal and every open/close, and poll a small
queue of pending operator commands (start, stop, close a trade, switch
mode) that they apply outside the core. The core itself never reads the
sink back.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from signalfusion.logging import get_logger
from signalfusion.position.models import Trade
from signalfusion.signals.models import AnalysisResult, to_plain

logger = get_logger(__name__)


class TradeEventKind(str, Enum):
    OPENED = "opened"
    CLOSED = "closed"


class CommandKind(str, Enum):
    START = "start"
    STOP = "stop"
    CLOSE_TRADE = "close_trade"
    SET_MODE = "set_mode"


@dataclass(frozen=True)
class SignalEvent:
    symbol: str
    direction: str
    confidence: int
    component_flags: dict[str, bool]
    timestamp_ms: int

    @classmethod
    def from_analysis(cls, symbol: str, result: AnalysisResult) -> SignalEvent:
        """Summarise a fused result; a component is flagged when it contributed points."""
        return cls(
            symbol=symbol,
            direction=result.final_signal.value,
            confidence=result.confidence,
            component_flags={c.name.value: c.score > 0 for c in result.components},
            timestamp_ms=result.timestamp_ms,
        )


_TRADE_FIELDS = (
    "id",
    "symbol",
    "direction",
    "entry_price",
    "stop_price",
    "target_price",
    "position_size",
    "confidence",
    "opened_at",
    "exit_price",
    "exit_reason",
    "profit_loss",
    "profit_loss_pct",
    "closed_at",
)


@dataclass(frozen=True)
class TradeEvent:
    kind: TradeEventKind
    trade_id: str
    symbol: str
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_trade(cls, kind: TradeEventKind, trade: Trade) -> TradeEvent:
        payload = {name: to_plain(getattr(trade, name)) for name in _TRADE_FIELDS}
        return cls(kind=kind, trade_id=trade.id, symbol=trade.symbol, payload=payload)


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    trade_id: str | None = None
    mode: str | None = None


class EventSink(ABC):
    """Append-only store for signal and trade events plus a command queue."""

    @abstractmethod
    def append_signal(self, event: SignalEvent) -> None: ...

    @abstractmethod
    def append_trade(self, event: TradeEvent) -> None: ...

    @abstractmethod
    def pending_commands(self) -> list[Command]:
        """Return and clear queued commands, oldest first."""
        ...


class InMemoryEventSink(EventSink):
    """Thread-safe in-memory sink, used by backtests and tests."""

    def __init__(self) -> None:
        self._signals: list[SignalEvent] = []
        self._trades: list[TradeEvent] = []
        self._commands: list[Command] = []
        self._lock = threading.Lock()

    def append_signal(self, event: SignalEvent) -> None:
        with self._lock:
            self._signals.append(event)

    def append_trade(self, event: TradeEvent) -> None:
        with self._lock:
            self._trades.append(event)
        logger.debug("trade_event_recorded", kind=event.kind.value, trade_id=event.trade_id)

    def submit_command(self, command: Command) -> None:
        if command.kind is CommandKind.CLOSE_TRADE and not command.trade_id:
            raise ValueError("close_trade command needs a trade_id")
        if command.kind is CommandKind.SET_MODE and not command.mode:
            raise ValueError("set_mode command needs a mode")
        with self._lock:
            self._commands.append(command)

    def pending_commands(self) -> list[Command]:
        with self._lock:
            commands, self._commands = self._commands, []
        return commands

    @property
    def signals(self) -> list[SignalEvent]:
        with self._lock:
            return list(self._signals)

    @property
    def trades(self) -> list[TradeEvent]:
        with self._lock:
            return list(self._trades)
