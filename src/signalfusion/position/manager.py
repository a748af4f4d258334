"""Trade lifecycle management: open, trail, detect exits, close.

Trade flow:
1. Risk checks via RiskManager (position cap, duplicate symbol, drawdown)
2. Size via PositionSizer and derive the target price
3. Track the trade in memory while OPEN
4. check_exit_signals trails stops and reports stop/target crossings
5. close_position realises P&L into the account balance

Business-rule failures are returned as PositionRejection values and never
mutate state. All public methods share one re-entrant lock, so callers
driving several symbols from different threads see consistent state.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

from signalfusion.config import RiskSettings, TrailingStopSettings
from signalfusion.logging import get_logger
from signalfusion.models import Direction
from signalfusion.position.models import (
    AccountState,
    ClosePositionResult,
    ExitReason,
    ExitSignal,
    OpenPositionRequest,
    OpenPositionResult,
    PerformanceStats,
    PositionRejection,
    Trade,
    TradeStatus,
)
from signalfusion.position.sizing import PositionSizer
from signalfusion.risk.manager import RiskManager

logger = get_logger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class PositionManager:
    """Owns open trades, closed history and the account balance.

    Args:
        settings: Risk settings (position cap, allocation, take-profit tiers,
            drawdown ceiling, starting balance).
        trailing: Default trailing stop settings, used when
            check_exit_signals is not given its own.
        account: Existing account state; a fresh one is created from
            settings.account_balance when omitted.
        time_fn: Clock returning seconds since the epoch.
    """

    def __init__(
        self,
        settings: RiskSettings | None = None,
        trailing: TrailingStopSettings | None = None,
        account: AccountState | None = None,
        time_fn: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or RiskSettings()
        self._trailing = trailing
        self._sizer = PositionSizer(self._settings)
        self._risk = RiskManager(self._settings)
        self._account = account or AccountState(
            balance=self._settings.account_balance,
            initial_balance=self._settings.account_balance,
        )
        self._time_fn = time_fn
        self._open: dict[str, Trade] = {}
        self._closed: list[Trade] = []
        self._lock = threading.RLock()

    @property
    def sizer(self) -> PositionSizer:
        return self._sizer

    def open_position(self, request: OpenPositionRequest) -> OpenPositionResult:
        """Open a trade if risk rules allow it.

        Returns:
            OpenPositionResult with the created trade, or a rejection
            (MAX_POSITIONS_REACHED, DUPLICATE_SYMBOL, DRAWDOWN_EXCEEDED,
            INVALID_PRICE). A rejection leaves all state untouched.
        """
        with self._lock:
            allowed, rejection, reason = self._risk.check_can_open(
                request.symbol, list(self._open.values()), self._account
            )
            if not allowed:
                return self._reject_open(request, rejection, reason)

            invalid = self._invalid_prices(request)
            if invalid is not None:
                return self._reject_open(request, PositionRejection.INVALID_PRICE, invalid)

            sizing = self._sizer.calculate(
                request.entry_price,
                request.stop_price,
                request.direction,
                request.confidence,
                self._account.balance,
            )
            trade = Trade(
                id=uuid4().hex[:16],
                symbol=request.symbol,
                direction=request.direction,
                entry_price=request.entry_price,
                stop_price=request.stop_price,
                target_price=request.target_price or sizing.target_price,
                position_size=sizing.position_size,
                investment_amount=sizing.investment_amount,
                risk_amount=sizing.risk_amount,
                confidence=request.confidence,
                opened_at=self._time_fn(),
                analysis=request.analysis,
            )
            self._open[trade.id] = trade

            logger.info(
                "position_opened",
                trade_id=trade.id,
                symbol=trade.symbol,
                direction=trade.direction.value,
                entry_price=str(trade.entry_price),
                stop_price=str(trade.stop_price),
                target_price=str(trade.target_price),
                position_size=str(trade.position_size),
                confidence=trade.confidence,
            )
            return OpenPositionResult(ok=True, trade=trade, sizing=sizing)

    def check_exit_signals(
        self,
        current_price: Decimal,
        symbol: str | None = None,
        trailing: TrailingStopSettings | None = None,
    ) -> list[ExitSignal]:
        """Trail stops and report trades whose stop or target was crossed.

        For each open trade (optionally only ``symbol``) the trailing stop is
        updated first, then the stop is checked, then the target. When both
        fire at the same price the target wins.

        Args:
            current_price: Latest price, used for every trade in this pass.
            symbol: Only evaluate trades on this symbol.
            trailing: Trailing stop settings for this call; falls back to the
                manager's default. Disabled when neither is set.

        Returns:
            Exit signals; trades are NOT closed here.
        """
        cfg = trailing or self._trailing
        signals: list[ExitSignal] = []

        with self._lock:
            for trade in self._open.values():
                if symbol is not None and trade.symbol != symbol:
                    continue

                if cfg is not None and cfg.enabled:
                    self._update_trailing_stop(trade, current_price, cfg)

                reason = None
                if trade.direction is Direction.BULLISH:
                    if current_price <= trade.stop_price:
                        reason = ExitReason.TRAILING_STOP if trade.trailing_active else ExitReason.STOP_HIT
                    if current_price >= trade.target_price:
                        reason = ExitReason.TARGET_HIT
                else:
                    if current_price >= trade.stop_price:
                        reason = ExitReason.TRAILING_STOP if trade.trailing_active else ExitReason.STOP_HIT
                    if current_price <= trade.target_price:
                        reason = ExitReason.TARGET_HIT

                if reason is not None:
                    logger.info(
                        "exit_signal",
                        trade_id=trade.id,
                        symbol=trade.symbol,
                        price=str(current_price),
                        reason=reason.value,
                    )
                    signals.append(ExitSignal(trade.id, trade.symbol, current_price, reason))

        return signals

    def _update_trailing_stop(
        self, trade: Trade, price: Decimal, cfg: TrailingStopSettings
    ) -> None:
        """Move the stop behind price once the gain reaches the activation distance.

        The stop only ever moves in the trade's favour.
        """
        target_distance = abs(trade.target_price - trade.entry_price)
        activation = target_distance * cfg.activation

        if trade.direction is Direction.BULLISH:
            gain = price - trade.entry_price
            if gain <= _ZERO or gain < activation:
                return
            new_stop = price - gain * cfg.distance
            if new_stop <= trade.stop_price:
                return
        else:
            gain = trade.entry_price - price
            if gain <= _ZERO or gain < activation:
                return
            new_stop = price + gain * cfg.distance
            if new_stop >= trade.stop_price:
                return

        logger.debug(
            "trailing_stop_moved",
            trade_id=trade.id,
            old_stop=str(trade.stop_price),
            new_stop=str(new_stop),
            price=str(price),
        )
        trade.stop_price = new_stop
        trade.trailing_active = True

    def close_position(
        self,
        trade_id: str,
        exit_price: Decimal,
        reason: ExitReason | None = None,
    ) -> ClosePositionResult:
        """Close an open trade and realise its P&L into the balance.

        P&L is size * (exit - entry) for BULLISH trades and
        size * (entry - exit) for BEARISH trades.

        Returns:
            ClosePositionResult with the CLOSED trade, or TRADE_NOT_FOUND.
        """
        with self._lock:
            trade = self._open.get(trade_id)
            if trade is None:
                logger.warning("close_rejected", trade_id=trade_id, rejection="TRADE_NOT_FOUND")
                return ClosePositionResult(
                    ok=False,
                    rejection=PositionRejection.TRADE_NOT_FOUND,
                    reason=f"Trade {trade_id} not found",
                )

            move = exit_price - trade.entry_price
            if trade.direction is Direction.BEARISH:
                move = -move
            profit_loss = trade.position_size * move
            profit_loss_pct = move / trade.entry_price * _HUNDRED

            closed = replace(
                trade,
                status=TradeStatus.CLOSED,
                exit_price=exit_price,
                exit_reason=reason,
                profit_loss=profit_loss,
                profit_loss_pct=profit_loss_pct,
                closed_at=self._time_fn(),
            )
            del self._open[trade_id]
            self._closed.append(closed)
            self._account.balance += profit_loss

            logger.info(
                "position_closed",
                trade_id=trade_id,
                symbol=closed.symbol,
                exit_price=str(exit_price),
                reason=reason.value if reason else None,
                profit_loss=str(profit_loss),
                profit_loss_pct=str(profit_loss_pct),
                balance=str(self._account.balance),
            )
            return ClosePositionResult(ok=True, trade=closed)

    def rollback_position(self, trade_id: str) -> Trade | None:
        """Drop an OPEN trade whose execution failed, leaving the balance untouched.

        Returns:
            The removed trade, or None if no such open trade exists.
        """
        with self._lock:
            trade = self._open.pop(trade_id, None)
            if trade is not None:
                logger.warning("position_rolled_back", trade_id=trade_id, symbol=trade.symbol)
            return trade

    def get_available_balance(self) -> Decimal:
        """Balance minus entry-valued capital held in open trades, floored at 0."""
        with self._lock:
            held = sum((t.capital_held for t in self._open.values()), _ZERO)
            return max(_ZERO, self._account.balance - held)

    def get_open_trades(self) -> list[Trade]:
        with self._lock:
            return list(self._open.values())

    def get_trade(self, trade_id: str) -> Trade | None:
        with self._lock:
            return self._open.get(trade_id)

    def get_closed_trades(self) -> list[Trade]:
        with self._lock:
            return list(self._closed)

    @property
    def account(self) -> AccountState:
        """Copy of the current account state."""
        with self._lock:
            return replace(self._account)

    def get_performance_stats(self) -> PerformanceStats:
        """Win/loss counts, total P&L and return over closed trades."""
        with self._lock:
            closed = self._closed
            wins = sum(1 for t in closed if t.profit_loss > _ZERO)
            losses = sum(1 for t in closed if t.profit_loss < _ZERO)
            total = sum((t.profit_loss for t in closed), _ZERO)
            win_rate = Decimal(wins) / Decimal(len(closed)) * _HUNDRED if closed else _ZERO
            return PerformanceStats(
                total_trades=len(closed),
                wins=wins,
                losses=losses,
                win_rate_pct=win_rate,
                total_profit_loss=total,
                total_return_pct=total / self._account.initial_balance * _HUNDRED,
                current_balance=self._account.balance,
                available_balance=self.get_available_balance(),
                open_positions=len(self._open),
            )

    @staticmethod
    def _invalid_prices(request: OpenPositionRequest) -> str | None:
        """Stop strictly on the loss side of entry, override target strictly on the profit side."""
        entry, stop, target = request.entry_price, request.stop_price, request.target_price
        if entry <= _ZERO:
            return f"Invalid entry {entry}"

        bullish = request.direction is Direction.BULLISH
        if (stop >= entry) if bullish else (stop <= entry):
            return f"Stop {stop} is not on the loss side of entry {entry}"
        if target is not None and ((target <= entry) if bullish else (target >= entry)):
            return f"Target {target} is not on the profit side of entry {entry}"
        return None

    def _reject_open(
        self,
        request: OpenPositionRequest,
        rejection: PositionRejection | None,
        reason: str,
    ) -> OpenPositionResult:
        logger.info(
            "position_rejected",
            symbol=request.symbol,
            rejection=rejection.value if rejection else None,
            reason=reason,
        )
        return OpenPositionResult.rejected(rejection, reason)
