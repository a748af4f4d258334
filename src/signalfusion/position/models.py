"""Trade lifecycle data models.

CRITICAL: All prices, sizes and balances use Decimal. Never use float for
prices, quantities, or P&L.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from signalfusion.models import Direction

if TYPE_CHECKING:
    from signalfusion.signals.models import AnalysisResult


class TradeStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ExitReason(str, Enum):
    """Why an exit signal fired."""

    STOP_HIT = "STOP_HIT"
    TRAILING_STOP = "TRAILING_STOP"
    TARGET_HIT = "TARGET_HIT"


class PositionRejection(str, Enum):
    """Business-rule failures returned (never raised) by the position manager."""

    MAX_POSITIONS_REACHED = "MAX_POSITIONS_REACHED"
    DUPLICATE_SYMBOL = "DUPLICATE_SYMBOL"
    DRAWDOWN_EXCEEDED = "DRAWDOWN_EXCEEDED"
    TRADE_NOT_FOUND = "TRADE_NOT_FOUND"
    INVALID_PRICE = "INVALID_PRICE"


@dataclass
class AccountState:
    """Account balance owned by a single PositionManager.

    ``balance`` changes only when a trade is closed.
    """

    balance: Decimal
    initial_balance: Decimal

    @property
    def drawdown(self) -> Decimal:
        """Fractional decline of balance from the initial balance."""
        if self.initial_balance <= 0:
            return Decimal("0")
        return (self.initial_balance - self.balance) / self.initial_balance


@dataclass(frozen=True)
class OpenPositionRequest:
    """Caller's request to open a trade from a fused signal.

    ``target_price`` overrides the ratio-derived target (used for
    Fibonacci targets).
    """

    symbol: str
    direction: Direction
    entry_price: Decimal
    stop_price: Decimal
    confidence: int = 0
    target_price: Decimal | None = None
    analysis: AnalysisResult | None = None

    def __post_init__(self) -> None:
        if self.direction is Direction.NEUTRAL:
            raise ValueError("Cannot open a position with NEUTRAL direction")


@dataclass(frozen=True)
class PositionSizing:
    """Fixed-allocation sizing for one trade."""

    position_size: Decimal  # units
    investment_amount: Decimal  # capital allocated (balance * risk_per_trade)
    price_risk: Decimal  # |entry - stop|
    risk_amount: Decimal  # loss if the stop is hit
    target_price: Decimal
    risk_reward_ratio: Decimal
    profit_potential: Decimal


@dataclass
class Trade:
    """A trade from open to close.

    While OPEN only ``stop_price`` and ``trailing_active`` change (trailing
    stop). Closing produces a new CLOSED record with exit fields set.
    """

    id: str
    symbol: str
    direction: Direction
    entry_price: Decimal
    stop_price: Decimal
    target_price: Decimal
    position_size: Decimal
    investment_amount: Decimal
    risk_amount: Decimal
    confidence: int
    opened_at: float
    analysis: AnalysisResult | None = None
    status: TradeStatus = TradeStatus.OPEN
    initial_stop_price: Decimal | None = None
    trailing_active: bool = False
    exit_price: Decimal | None = None
    exit_reason: ExitReason | None = None
    profit_loss: Decimal | None = None
    profit_loss_pct: Decimal | None = None
    closed_at: float | None = None

    def __post_init__(self) -> None:
        if self.initial_stop_price is None:
            self.initial_stop_price = self.stop_price

    @property
    def is_open(self) -> bool:
        return self.status is TradeStatus.OPEN

    @property
    def capital_held(self) -> Decimal:
        """Entry-valued capital tied up by this trade."""
        return self.position_size * self.entry_price

    @property
    def hold_time(self) -> float | None:
        return None if self.closed_at is None else self.closed_at - self.opened_at


@dataclass(frozen=True)
class ExitSignal:
    trade_id: str
    symbol: str
    exit_price: Decimal
    reason: ExitReason


@dataclass(frozen=True)
class OpenPositionResult:
    ok: bool
    trade: Trade | None = None
    sizing: PositionSizing | None = None
    rejection: PositionRejection | None = None
    reason: str = ""

    @classmethod
    def rejected(cls, rejection: PositionRejection, reason: str) -> OpenPositionResult:
        return cls(ok=False, rejection=rejection, reason=reason)


@dataclass(frozen=True)
class ClosePositionResult:
    ok: bool
    trade: Trade | None = None
    rejection: PositionRejection | None = None
    reason: str = ""


@dataclass(frozen=True)
class PerformanceStats:
    total_trades: int
    wins: int
    losses: int
    win_rate_pct: Decimal
    total_profit_loss: Decimal
    total_return_pct: Decimal
    current_balance: Decimal
    available_balance: Decimal
    open_positions: int
