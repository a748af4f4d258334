"""Post-hoc trade outcome analysis.

Records each trade's entry context (the AnalysisResult that justified it)
and its exit, classifies losing STOP_HIT trades against an ordered checklist
of failure causes, and aggregates the results into a report with
recommendations. Purely observational: nothing here feeds back into the
fusion engine or the position manager.

CRITICAL: All prices and percentages use Decimal. Never use float.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from signalfusion.config import AnalyzerSettings
from signalfusion.logging import get_logger
from signalfusion.models import Direction, MarketRegime, SignalQuality
from signalfusion.position.models import ExitReason, Trade
from signalfusion.signals.models import AnalysisResult, ComponentName

logger = get_logger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class FailureCause(str, Enum):
    """Failure causes, declared in checklist priority order."""

    COUNTER_TREND = "COUNTER_TREND"
    WEAK_TREND = "WEAK_TREND"
    MOMENTUM_MISALIGNED = "MOMENTUM_MISALIGNED"
    LOW_MOMENTUM = "LOW_MOMENTUM"
    LOW_VOLUME = "LOW_VOLUME"
    RANGING_MARKET = "RANGING_MARKET"
    STOP_TOO_TIGHT = "STOP_TOO_TIGHT"
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    WEAK_SIGNAL = "WEAK_SIGNAL"
    NO_CANDLE_CONFIRMATION = "NO_CANDLE_CONFIRMATION"
    UNKNOWN = "UNKNOWN"


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


SEVERITIES: dict[FailureCause, Severity] = {
    FailureCause.COUNTER_TREND: Severity.CRITICAL,
    FailureCause.WEAK_TREND: Severity.HIGH,
    FailureCause.MOMENTUM_MISALIGNED: Severity.HIGH,
    FailureCause.LOW_MOMENTUM: Severity.MEDIUM,
    FailureCause.LOW_VOLUME: Severity.MEDIUM,
    FailureCause.RANGING_MARKET: Severity.HIGH,
    FailureCause.STOP_TOO_TIGHT: Severity.HIGH,
    FailureCause.LOW_CONFIDENCE: Severity.MEDIUM,
    FailureCause.WEAK_SIGNAL: Severity.HIGH,
    FailureCause.NO_CANDLE_CONFIRMATION: Severity.MEDIUM,
}

RECOMMENDATIONS: dict[FailureCause, str] = {
    FailureCause.COUNTER_TREND: "Enforce trend alignment: never trade against the trend",
    FailureCause.WEAK_TREND: "Raise minimum trend strength to 60%+",
    FailureCause.MOMENTUM_MISALIGNED: "Require momentum to match signal direction",
    FailureCause.LOW_MOMENTUM: "Set a minimum momentum score of 50+",
    FailureCause.LOW_VOLUME: "Require above-average volume for entries",
    FailureCause.RANGING_MARKET: "Only trade when ADX > 25 (trending market)",
    FailureCause.STOP_TOO_TIGHT: "Increase stop multiplier or minimum stop distance to 2%+",
    FailureCause.LOW_CONFIDENCE: "Raise minimum confidence threshold to 60%+",
    FailureCause.WEAK_SIGNAL: "Require STRONG or MODERATE signal quality",
    FailureCause.NO_CANDLE_CONFIRMATION: "Require candlestick pattern confirmation",
}

# (label, inclusive min, exclusive max); the top bucket also holds 100
CONFIDENCE_BUCKETS: tuple[tuple[str, int, int], ...] = (
    ("40-50", 40, 50),
    ("50-60", 50, 60),
    ("60-70", 60, 70),
    ("70-80", 70, 80),
    ("80+", 80, 101),
)


def recommendation_for(cause: FailureCause) -> str:
    return RECOMMENDATIONS.get(cause, "Review trade setup criteria")


def _pct(part: Decimal | int, whole: Decimal | int, places: str = "0.1") -> Decimal:
    if not whole:
        return _ZERO
    return (Decimal(part) / Decimal(whole) * _HUNDRED).quantize(
        Decimal(places), rounding=ROUND_HALF_UP
    )


@dataclass(frozen=True)
class EntrySnapshot:
    """Flattened view of the entry-time analysis.

    A field is None when the analysis did not produce it (e.g. the
    high-frequency policy has no trend or momentum component); the
    corresponding checklist item is then skipped.
    """

    trend_direction: Direction | None = None
    trend_strength: int | None = None
    momentum_direction: Direction | None = None
    momentum_score: int | None = None
    candle_signal: Direction | None = None
    candle_pattern: str | None = None
    volume_above_average: bool | None = None
    volume_ratio: Decimal | None = None
    regime: MarketRegime | None = None
    adx: Decimal | None = None
    signal_quality: SignalQuality | None = None
    fibonacci_near: bool | None = None
    harmonics_valid: bool | None = None

    @classmethod
    def from_analysis(cls, analysis: AnalysisResult | None) -> EntrySnapshot:
        if analysis is None:
            return cls()

        trend = analysis.detail(ComponentName.TREND)
        momentum = analysis.detail(ComponentName.MOMENTUM)
        candles = analysis.detail(ComponentName.CANDLESTICKS)
        filters = analysis.detail(ComponentName.FILTERS)
        fib = analysis.detail(ComponentName.FIBONACCI)
        harmonics = analysis.detail(ComponentName.HARMONICS)

        return cls(
            trend_direction=trend.direction if trend else None,
            trend_strength=trend.strength if trend else None,
            momentum_direction=momentum.direction if momentum else None,
            momentum_score=momentum.score if momentum else None,
            candle_signal=candles.direction if candles else None,
            candle_pattern=candles.pattern if candles else None,
            volume_above_average=filters.volume.is_above_average if filters else None,
            volume_ratio=filters.volume.ratio if filters else None,
            regime=filters.regime.regime if filters else None,
            adx=filters.regime.adx if filters else None,
            signal_quality=analysis.signal_quality,
            fibonacci_near=fib.has_support if fib else None,
            harmonics_valid=harmonics.is_valid if harmonics else None,
        )


@dataclass(frozen=True)
class FailureIssue:
    cause: FailureCause
    detail: str
    severity: Severity


@dataclass(frozen=True)
class FailureAnalysis:
    primary_cause: FailureCause
    issues: tuple[FailureIssue, ...]
    recommendation: str

    @property
    def causes(self) -> tuple[FailureCause, ...]:
        return tuple(issue.cause for issue in self.issues)


@dataclass(frozen=True)
class ExitRecord:
    exit_price: Decimal
    reason: ExitReason | None
    profit_loss: Decimal
    profit_loss_pct: Decimal
    is_winner: bool
    closed_at: float | None
    hold_time: float | None
    failure: FailureAnalysis | None = None


@dataclass
class TradeRecord:
    """Entry context of one trade plus its exit once closed."""

    trade_id: str
    symbol: str
    direction: Direction
    entry_price: Decimal
    stop_price: Decimal
    target_price: Decimal
    position_size: Decimal
    confidence: int
    opened_at: float
    snapshot: EntrySnapshot
    stop_distance_pct: Decimal
    target_distance_pct: Decimal
    risk_reward: Decimal | None
    exit: ExitRecord | None = None


@dataclass(frozen=True)
class ReportSummary:
    total_trades: int
    winners: int
    losers: int
    win_rate_pct: Decimal | None
    avg_win_pct: Decimal
    avg_loss_pct: Decimal
    profit_factor: Decimal | None


@dataclass(frozen=True)
class CauseCount:
    cause: FailureCause
    count: int
    percentage: Decimal  # of losing trades
    severity: Severity
    recommendation: str


@dataclass(frozen=True)
class DirectionStats:
    total: int
    wins: int
    win_rate_pct: Decimal | None


@dataclass(frozen=True)
class ConfidenceBucket:
    label: str
    trades: int
    wins: int
    win_rate_pct: Decimal


@dataclass
class SymbolStats:
    trades: int = 0
    wins: int = 0
    losses: int = 0
    pnl: Decimal = _ZERO

    @property
    def win_rate_pct(self) -> Decimal | None:
        closed = self.wins + self.losses
        return _pct(self.wins, closed) if closed else None


@dataclass(frozen=True)
class Insight:
    priority: str
    insight: str
    action: str


@dataclass(frozen=True)
class OutcomeReport:
    summary: ReportSummary
    failure_causes: tuple[CauseCount, ...]  # all issues, most frequent first
    primary_causes: dict[FailureCause, int]
    direction_stats: dict[Direction, DirectionStats]
    confidence_buckets: tuple[ConfidenceBucket, ...]
    symbol_stats: dict[str, SymbolStats]
    insights: tuple[Insight, ...] = field(default_factory=tuple)

    @property
    def top_failure_causes(self) -> tuple[CauseCount, ...]:
        return self.failure_causes[:5]

    @property
    def recommendations(self) -> list[str]:
        """Actionable recommendations, most important first, without repeats."""
        seen: list[str] = []
        for text in [i.action for i in self.insights] + [
            c.recommendation for c in self.top_failure_causes
        ]:
            if text not in seen:
                seen.append(text)
        return seen


class TradeOutcomeAnalyzer:
    """Attributes losing trades to causes and aggregates trade statistics.

    Args:
        settings: Checklist and insight thresholds.
    """

    def __init__(self, settings: AnalyzerSettings | None = None) -> None:
        self._settings = settings or AnalyzerSettings()
        self._records: dict[str, TradeRecord] = {}

    @property
    def records(self) -> list[TradeRecord]:
        return list(self._records.values())

    def reset(self) -> None:
        """Forget all recorded trades (e.g. between backtest runs)."""
        self._records.clear()

    def record_entry(
        self, trade: Trade, snapshot: EntrySnapshot | None = None
    ) -> TradeRecord:
        """Capture a trade's entry context.

        Args:
            trade: The newly opened trade.
            snapshot: Entry context; derived from ``trade.analysis`` when omitted.
        """
        stop_price = trade.initial_stop_price or trade.stop_price
        stop_distance = abs(trade.entry_price - stop_price)
        target_distance = abs(trade.target_price - trade.entry_price)

        record = TradeRecord(
            trade_id=trade.id,
            symbol=trade.symbol,
            direction=trade.direction,
            entry_price=trade.entry_price,
            stop_price=stop_price,
            target_price=trade.target_price,
            position_size=trade.position_size,
            confidence=trade.confidence,
            opened_at=trade.opened_at,
            snapshot=snapshot or EntrySnapshot.from_analysis(trade.analysis),
            stop_distance_pct=_pct(stop_distance, trade.entry_price, "0.01"),
            target_distance_pct=_pct(target_distance, trade.entry_price, "0.01"),
            risk_reward=(
                (target_distance / stop_distance).quantize(Decimal("0.01"))
                if stop_distance
                else None
            ),
        )
        self._records[trade.id] = record
        logger.debug(
            "trade_entry_recorded",
            trade_id=trade.id,
            symbol=trade.symbol,
            stop_distance_pct=str(record.stop_distance_pct),
        )
        return record

    def record_exit(
        self, trade: Trade, reason: ExitReason | None = None
    ) -> TradeRecord | None:
        """Attach a closed trade's exit and analyse it if it was a stopped-out loss.

        Returns:
            The updated record, or None if the trade's entry was never recorded.
        """
        record = self._records.get(trade.id)
        if record is None:
            logger.warning("outcome_unknown_trade", trade_id=trade.id)
            return None

        reason = reason or trade.exit_reason
        profit_loss = trade.profit_loss or _ZERO
        is_winner = profit_loss > _ZERO

        failure = None
        if not is_winner and reason is ExitReason.STOP_HIT:
            failure = self.analyze_failure(record)
            logger.info(
                "trade_failure_analyzed",
                trade_id=trade.id,
                symbol=trade.symbol,
                primary_cause=failure.primary_cause.value,
                issues=[c.value for c in failure.causes],
            )

        record.exit = ExitRecord(
            exit_price=trade.exit_price if trade.exit_price is not None else _ZERO,
            reason=reason,
            profit_loss=profit_loss,
            profit_loss_pct=trade.profit_loss_pct or _ZERO,
            is_winner=is_winner,
            closed_at=trade.closed_at,
            hold_time=trade.hold_time,
            failure=failure,
        )
        return record

    def analyze_failure(self, record: TradeRecord) -> FailureAnalysis:
        """Run the failure checklist against a trade's entry context.

        Every matched cause is recorded; the first match in checklist
        order is the primary cause.
        """
        s = self._settings
        snap = record.snapshot
        direction = record.direction
        issues: list[FailureIssue] = []

        def add(cause: FailureCause, detail: str) -> None:
            issues.append(FailureIssue(cause, detail, SEVERITIES[cause]))

        if snap.trend_direction is not None and snap.trend_direction.opposes(direction):
            add(
                FailureCause.COUNTER_TREND,
                f"Traded {direction.value} against {snap.trend_direction.value} trend",
            )
        if snap.trend_strength is not None and snap.trend_strength < s.weak_trend_strength:
            add(
                FailureCause.WEAK_TREND,
                f"Trend strength was only {snap.trend_strength}% at entry",
            )
        if snap.momentum_direction is not None and snap.momentum_direction is not direction:
            add(
                FailureCause.MOMENTUM_MISALIGNED,
                f"Momentum was {snap.momentum_direction.value} while trading {direction.value}",
            )
        if snap.momentum_score is not None and snap.momentum_score < s.low_momentum_score:
            add(FailureCause.LOW_MOMENTUM, f"Momentum score was only {snap.momentum_score}")
        if snap.volume_above_average is False:
            add(
                FailureCause.LOW_VOLUME,
                f"Volume ratio was {snap.volume_ratio}x (below average)",
            )
        if snap.regime is MarketRegime.RANGING or (
            snap.adx is not None and snap.adx < s.ranging_adx
        ):
            adx = snap.adx.quantize(Decimal("0.1")) if snap.adx is not None else None
            add(FailureCause.RANGING_MARKET, f"Market was ranging with ADX of {adx}")
        if record.stop_distance_pct < s.tight_stop_pct:
            add(
                FailureCause.STOP_TOO_TIGHT,
                f"Stop was only {record.stop_distance_pct}% away from entry",
            )
        if record.confidence < s.low_confidence:
            add(FailureCause.LOW_CONFIDENCE, f"Confidence was {record.confidence}% at entry")
        if snap.signal_quality is SignalQuality.WEAK:
            add(FailureCause.WEAK_SIGNAL, "Signal quality was rated WEAK at entry")
        if snap.candle_signal is not None and snap.candle_signal is not direction:
            add(
                FailureCause.NO_CANDLE_CONFIRMATION,
                f"Candlestick pattern was {snap.candle_signal.value}/{snap.candle_pattern}",
            )

        primary = issues[0].cause if issues else FailureCause.UNKNOWN
        return FailureAnalysis(
            primary_cause=primary,
            issues=tuple(issues),
            recommendation=recommendation_for(primary),
        )

    def generate_report(self) -> OutcomeReport:
        """Aggregate every closed trade recorded so far."""
        closed = [r for r in self._records.values() if r.exit is not None]
        winners = [r for r in closed if r.exit.is_winner]
        losers = [r for r in closed if not r.exit.is_winner]

        avg_win = (
            sum((r.exit.profit_loss_pct for r in winners), _ZERO) / len(winners)
            if winners
            else _ZERO
        )
        avg_loss = (
            sum((abs(r.exit.profit_loss_pct) for r in losers), _ZERO) / len(losers)
            if losers
            else _ZERO
        )
        summary = ReportSummary(
            total_trades=len(closed),
            winners=len(winners),
            losers=len(losers),
            win_rate_pct=_pct(len(winners), len(closed), "0.01") if closed else None,
            avg_win_pct=avg_win.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            avg_loss_pct=avg_loss.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            profit_factor=(
                (avg_win / avg_loss).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
                if avg_loss > _ZERO
                else None
            ),
        )

        all_issues: Counter[FailureCause] = Counter()
        primary: Counter[FailureCause] = Counter()
        for r in losers:
            if r.exit.failure is None:
                continue
            primary[r.exit.failure.primary_cause] += 1
            all_issues.update(r.exit.failure.causes)

        # Counter.most_common keeps insertion order for ties; sort ties by checklist order
        order = list(FailureCause)
        failure_causes = tuple(
            CauseCount(
                cause=cause,
                count=count,
                percentage=_pct(count, len(losers)),
                severity=SEVERITIES[cause],
                recommendation=recommendation_for(cause),
            )
            for cause, count in sorted(
                all_issues.items(), key=lambda kv: (-kv[1], order.index(kv[0]))
            )
        )

        symbol_stats: dict[str, SymbolStats] = defaultdict(SymbolStats)
        for r in self._records.values():
            stats = symbol_stats[r.symbol]
            stats.trades += 1
            if r.exit is None:
                continue
            if r.exit.is_winner:
                stats.wins += 1
            else:
                stats.losses += 1
            stats.pnl += r.exit.profit_loss

        direction_stats: dict[Direction, DirectionStats] = {}
        for side in (Direction.BULLISH, Direction.BEARISH):
            side_trades = [r for r in closed if r.direction is side]
            wins = sum(1 for r in side_trades if r.exit.is_winner)
            direction_stats[side] = DirectionStats(
                total=len(side_trades),
                wins=wins,
                win_rate_pct=_pct(wins, len(side_trades)) if side_trades else None,
            )

        buckets = []
        for label, low, high in CONFIDENCE_BUCKETS:
            in_bucket = [r for r in closed if low <= r.confidence < high]
            if not in_bucket:
                continue
            wins = sum(1 for r in in_bucket if r.exit.is_winner)
            buckets.append(
                ConfidenceBucket(
                    label=label,
                    trades=len(in_bucket),
                    wins=wins,
                    win_rate_pct=_pct(wins, len(in_bucket)),
                )
            )

        return OutcomeReport(
            summary=summary,
            failure_causes=failure_causes,
            primary_causes=dict(primary),
            direction_stats=direction_stats,
            confidence_buckets=tuple(buckets),
            symbol_stats=dict(symbol_stats),
            insights=self._insights(failure_causes, direction_stats, tuple(buckets)),
        )

    def _insights(
        self,
        failures: tuple[CauseCount, ...],
        directions: dict[Direction, DirectionStats],
        buckets: tuple[ConfidenceBucket, ...],
    ) -> tuple[Insight, ...]:
        s = self._settings
        insights: list[Insight] = []

        if failures:
            top = failures[0]
            insights.append(
                Insight(
                    priority="HIGH",
                    insight=f"{top.cause.value} caused {top.percentage}% of failures",
                    action=top.recommendation,
                )
            )

        bull = directions[Direction.BULLISH]
        bear = directions[Direction.BEARISH]
        if bull.win_rate_pct is not None and bear.win_rate_pct is not None:
            gap = bull.win_rate_pct - bear.win_rate_pct
            if abs(gap) > s.direction_bias_gap_pct:
                better, worse = (
                    (Direction.BULLISH, Direction.BEARISH)
                    if gap > 0
                    else (Direction.BEARISH, Direction.BULLISH)
                )
                insights.append(
                    Insight(
                        priority="MEDIUM",
                        insight=(
                            f"{better.value} trades have {abs(gap)}% higher win rate "
                            f"than {worse.value}"
                        ),
                        action=(
                            f"Consider bias toward {better.value} signals or improve "
                            f"{worse.value} entry criteria"
                        ),
                    )
                )

        high = next((b for b in buckets if b.label in ("70-80", "80+")), None)
        if (
            high is not None
            and high.trades > s.high_confidence_min_trades
            and high.win_rate_pct > s.high_confidence_win_rate_pct
        ):
            insights.append(
                Insight(
                    priority="HIGH",
                    insight=(
                        f"High confidence ({high.label}) trades have "
                        f"{high.win_rate_pct}% win rate"
                    ),
                    action="Increase minimum confidence threshold to focus on high-quality signals",
                )
            )

        return tuple(insights)
