"""Candle-walk backtest engine.

Replays historical candles for one or more symbols in lockstep, feeding a
trailing window through the fusion engine and driving the production
PositionManager, TradeOutcomeAnalyzer and an Executor exactly as a live
caller would.

At each candle index, for each symbol:
  1. Exits are checked at the candle close (trailing stop first)
  2. The window ending at this candle is analysed
  3. Direction, volume, trending and divergence filters are applied
  4. Stop = closed candle extreme -/+ its range * stop_multiplier
  5. The trade is opened, then executed; a failed execution rolls it back

No look-ahead: only candles up to the current index are visible.

Position timestamps come from candle times, never the wall clock.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal

from signalfusion.analytics.metrics import max_drawdown, sharpe_ratio, win_rate
from signalfusion.analytics.outcome import TradeOutcomeAnalyzer
from signalfusion.backtest.models import (
    BacktestConfig,
    BacktestMetrics,
    BacktestResult,
    EquityPoint,
)
from signalfusion.config import ScalpingSettings, SwingSettings
from signalfusion.events import EventSink, SignalEvent, TradeEvent, TradeEventKind
from signalfusion.exceptions import InsufficientDataError
from signalfusion.execution.executor import Executor
from signalfusion.execution.simulated_executor import SimulatedExecutor
from signalfusion.indicators.core import require_ordered
from signalfusion.logging import get_logger
from signalfusion.models import (
    Candle,
    Direction,
    ExecutionRequest,
    MarketRegime,
    OrderSide,
)
from signalfusion.patterns.fibonacci import calculate_fibonacci_targets
from signalfusion.position.manager import PositionManager
from signalfusion.position.models import OpenPositionRequest, Trade
from signalfusion.signals.engine import SignalEngine
from signalfusion.signals.models import AnalysisResult, ComponentName

logger = get_logger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class BacktestEngine:
    """Historical replay of the fusion engine and position manager.

    Each engine owns its own PositionManager; build a new engine per run.

    Args:
        config: Backtest configuration (policy, filters, stops, risk).
        signal_engine: Fusion engine; built from defaults plus the config's
            confidence override when omitted.
        executor: Execution endpoint; a SimulatedExecutor when omitted.
        analyzer: Outcome analyzer; a fresh one when omitted.
        event_sink: Optional sink receiving signal and trade events.
    """

    def __init__(
        self,
        config: BacktestConfig,
        signal_engine: SignalEngine | None = None,
        executor: Executor | None = None,
        analyzer: TradeOutcomeAnalyzer | None = None,
        event_sink: EventSink | None = None,
    ) -> None:
        self._config = config
        self._signal_engine = signal_engine or self._default_engine(config)
        self._executor = executor or SimulatedExecutor()
        self._analyzer = analyzer or TradeOutcomeAnalyzer()
        self._event_sink = event_sink

        # Simulated time state
        self._current_time_s: float = 0.0

        self._position_manager = PositionManager(
            settings=config.risk,
            trailing=config.trailing,
            time_fn=lambda: self._current_time_s,
        )

        self._signals_evaluated = 0
        self._valid_signals = 0
        self._trades_opened = 0
        self._skipped_filtered = 0
        self._skipped_low_rr = 0
        self._rejected = 0
        self._execution_failures = 0

    @staticmethod
    def _default_engine(config: BacktestConfig) -> SignalEngine:
        threshold = config.min_confidence_threshold
        if threshold is None:
            return SignalEngine()
        return SignalEngine(
            scalping_settings=ScalpingSettings(min_confidence_threshold=threshold),
            swing_settings=SwingSettings(min_confidence_threshold=threshold),
        )

    @property
    def position_manager(self) -> PositionManager:
        return self._position_manager

    def run(self, candles_by_symbol: Mapping[str, Sequence[Candle]]) -> BacktestResult:
        """Execute the backtest and return results.

        Symbols are walked in lockstep up to the shortest series. Trades
        still open at the end stay open and are valued at the last close
        in the final equity point.

        Args:
            candles_by_symbol: Oldest-first candles per symbol.

        Returns:
            BacktestResult with equity curve, metrics, closed trades and
            the outcome report.

        Raises:
            ValueError: If any series has non-increasing timestamps.
        """
        cfg = self._config
        symbols = list(candles_by_symbol)

        if not symbols:
            logger.warning("no_symbols_for_backtest")
            return self._build_result(symbols, [])

        for symbol in symbols:
            require_ordered(candles_by_symbol[symbol])

        length = min(len(candles_by_symbol[s]) for s in symbols)
        if length <= cfg.warmup_candles:
            logger.warning(
                "insufficient_candles_for_backtest",
                candles=length,
                warmup=cfg.warmup_candles,
            )
            return self._build_result(symbols, [])

        logger.info(
            "backtest_starting",
            symbols=symbols,
            policy=cfg.policy.value,
            candle_count=length,
            warmup=cfg.warmup_candles,
        )

        equity_curve: list[EquityPoint] = []
        last_prices: dict[str, Decimal] = {}

        for index in range(cfg.warmup_candles, length):
            for symbol in symbols:
                candles = candles_by_symbol[symbol]
                candle = candles[index]
                self._current_time_s = candle.timestamp_ms / 1000.0
                last_prices[symbol] = candle.close

                self._process_exits(symbol, candle.close)
                self._process_entry(symbol, candles, index)

            equity_curve.append(
                EquityPoint(
                    timestamp_ms=candles_by_symbol[symbols[0]][index].timestamp_ms,
                    equity=self._equity(last_prices),
                )
            )

        result = self._build_result(symbols, equity_curve)
        logger.info(
            "backtest_complete",
            symbols=symbols,
            policy=cfg.policy.value,
            trades_opened=result.metrics.trades_opened,
            trades_closed=result.metrics.trades_closed,
            net_pnl=str(result.metrics.net_pnl),
            equity_points=len(equity_curve),
        )
        return result

    def _process_exits(self, symbol: str, price: Decimal) -> None:
        pm = self._position_manager
        for exit_signal in pm.check_exit_signals(price, symbol=symbol):
            closed = pm.close_position(exit_signal.trade_id, exit_signal.exit_price, exit_signal.reason)
            if not closed.ok:
                continue
            self._analyzer.record_exit(closed.trade, exit_signal.reason)
            self._emit_trade(TradeEventKind.CLOSED, closed.trade)

    def _process_entry(self, symbol: str, candles: Sequence[Candle], index: int) -> None:
        cfg = self._config
        window = candles[max(0, index - cfg.window) : index + 1]
        try:
            analysis = self._signal_engine.analyze(window, cfg.policy)
        except InsufficientDataError as e:
            logger.debug("backtest_window_too_short", symbol=symbol, error=str(e))
            return

        self._signals_evaluated += 1
        if self._event_sink is not None:
            self._event_sink.append_signal(SignalEvent.from_analysis(symbol, analysis))

        direction = analysis.final_signal
        if not analysis.meets_threshold or direction is Direction.NEUTRAL:
            return
        self._valid_signals += 1

        if not self._passes_filters(analysis):
            self._skipped_filtered += 1
            return

        entry = candles[index].close
        closed_candle = candles[index - 1]
        stop_distance = closed_candle.range * cfg.stop_multiplier
        if direction is Direction.BULLISH:
            stop = closed_candle.low - stop_distance
            wrong_side = stop >= entry
        else:
            stop = closed_candle.high + stop_distance
            wrong_side = stop <= entry
        if wrong_side:
            logger.debug("backtest_stop_wrong_side", symbol=symbol, entry=str(entry), stop=str(stop))
            self._skipped_filtered += 1
            return

        target = self._fibonacci_target(candles, index, direction) if cfg.use_fibonacci_targets else None
        if target is not None:
            reward = target - entry if direction is Direction.BULLISH else entry - target
            if reward <= 0:
                logger.debug(
                    "backtest_target_behind_entry", symbol=symbol, entry=str(entry), target=str(target)
                )
                self._skipped_low_rr += 1
                return

        if cfg.min_rr_ratio is not None:
            if target is not None:
                rr = reward / abs(entry - stop)
            else:
                rr = self._position_manager.sizer.take_profit_ratio(analysis.confidence)
            if rr < cfg.min_rr_ratio:
                self._skipped_low_rr += 1
                return

        opened = self._position_manager.open_position(
            OpenPositionRequest(
                symbol=symbol,
                direction=direction,
                entry_price=entry,
                stop_price=stop,
                confidence=analysis.confidence,
                target_price=target,
                analysis=analysis,
            )
        )
        if not opened.ok:
            self._rejected += 1
            return

        trade = opened.trade
        execution = self._executor.execute(
            ExecutionRequest(
                symbol=symbol,
                side=OrderSide.for_entry(direction),
                quantity=trade.position_size,
                entry_price=trade.entry_price,
                stop_price=trade.stop_price,
                target_price=trade.target_price,
            )
        )
        if not execution.success:
            self._position_manager.rollback_position(trade.id)
            self._execution_failures += 1
            logger.debug("backtest_execution_failed", symbol=symbol, error=execution.error)
            return

        self._trades_opened += 1
        self._analyzer.record_entry(trade)
        self._emit_trade(TradeEventKind.OPENED, trade)

    def _passes_filters(self, analysis: AnalysisResult) -> bool:
        cfg = self._config
        direction = analysis.final_signal
        if cfg.bullish_only and direction is not Direction.BULLISH:
            return False
        if cfg.bearish_only and direction is not Direction.BEARISH:
            return False

        filters = analysis.detail(ComponentName.FILTERS)
        if cfg.require_volume and (filters is None or not filters.volume.is_above_average):
            return False
        if cfg.require_trending and (
            filters is None or filters.regime.regime is not MarketRegime.TRENDING
        ):
            return False

        if cfg.require_divergence:
            indicators = analysis.detail(ComponentName.INDICATORS)
            if indicators is None or not indicators.snapshot.divergence_detected:
                return False
        return True

    def _fibonacci_target(
        self, candles: Sequence[Candle], index: int, direction: Direction
    ) -> Decimal | None:
        """61.8% target over the closed candles of the lookback, None on a flat range."""
        recent = candles[max(0, index - self._config.fib_target_lookback) : index]
        high = max(c.high for c in recent)
        low = min(c.low for c in recent)
        if high <= low:
            return None
        return calculate_fibonacci_targets(high, low, direction).target_618

    def _equity(self, last_prices: Mapping[str, Decimal]) -> Decimal:
        pm = self._position_manager
        equity = pm.account.balance
        for trade in pm.get_open_trades():
            price = last_prices.get(trade.symbol, trade.entry_price)
            move = price - trade.entry_price
            if trade.direction is Direction.BEARISH:
                move = -move
            equity += trade.position_size * move
        return equity

    def _emit_trade(self, kind: TradeEventKind, trade: Trade) -> None:
        if self._event_sink is not None:
            self._event_sink.append_trade(TradeEvent.from_trade(kind, trade))

    def _build_result(self, symbols: list[str], equity_curve: list[EquityPoint]) -> BacktestResult:
        pm = self._position_manager
        closed = pm.get_closed_trades()
        account = pm.account
        net_pnl = account.balance - account.initial_balance

        metrics = BacktestMetrics(
            signals_evaluated=self._signals_evaluated,
            valid_signals=self._valid_signals,
            trades_opened=self._trades_opened,
            trades_closed=len(closed),
            winning_trades=sum(1 for t in closed if t.profit_loss > _ZERO),
            open_trades=len(pm.get_open_trades()),
            net_pnl=net_pnl,
            return_pct=net_pnl / account.initial_balance * _HUNDRED,
            final_balance=account.balance,
            sharpe_ratio=sharpe_ratio(closed),
            max_drawdown=max_drawdown(closed),
            win_rate=win_rate(closed),
            skipped_filtered=self._skipped_filtered,
            skipped_low_rr=self._skipped_low_rr,
            rejected=self._rejected,
            execution_failures=self._execution_failures,
        )
        return BacktestResult(
            config=self._config,
            symbols=symbols,
            equity_curve=equity_curve,
            metrics=metrics,
            trades=closed,
            outcome=self._analyzer.generate_report(),
        )
