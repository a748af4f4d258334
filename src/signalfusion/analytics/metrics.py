"""Performance analytics over closed trades.

Pure Decimal analytics: sharpe_ratio, max_drawdown, win_rate,
win_rate_by_symbol and a combined performance_summary.
All functions accept a sequence of closed Trade records.
"""

from collections import defaultdict
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from signalfusion.position.models import Trade


def _net_return(trade: Trade) -> Decimal:
    """Realised P&L of a closed trade (0 while still open)."""
    return trade.profit_loss if trade.profit_loss is not None else Decimal("0")


def sharpe_ratio(
    trades: Sequence[Trade],
    risk_free_rate: Decimal = Decimal("0"),
    annualization_factor: int = 1,
) -> Decimal | None:
    """Sharpe ratio of per-trade returns (percent P&L).

    Sharpe = ((mean_return - risk_free) / sample_std_dev) * sqrt(annualization)

    Args:
        trades: Closed trades.
        risk_free_rate: Risk-free return per trade, in percent.
        annualization_factor: Trades per year to annualise by (1 = per trade).

    Returns:
        Sharpe ratio as Decimal, or None if < 2 trades or zero std dev.
    """
    if len(trades) < 2:
        return None

    returns = [t.profit_loss_pct or Decimal("0") for t in trades]
    n = Decimal(len(returns))
    mean = sum(returns, Decimal("0")) / n

    # Sample standard deviation (N-1 denominator)
    variance = sum((r - mean) ** 2 for r in returns) / (n - Decimal("1"))
    std_dev = variance.sqrt()
    if std_dev == Decimal("0"):
        return None

    return ((mean - risk_free_rate) / std_dev) * Decimal(annualization_factor).sqrt()


def max_drawdown(trades: Sequence[Trade]) -> Decimal | None:
    """Max peak-to-trough decline of cumulative realised P&L.

    Trades are ordered by close time.

    Returns:
        Max drawdown as a positive Decimal, or None if no trades.
    """
    if not trades:
        return None

    cumulative = Decimal("0")
    peak = Decimal("0")
    max_dd = Decimal("0")
    for trade in sorted(trades, key=lambda t: t.closed_at or 0.0):
        cumulative += _net_return(trade)
        peak = max(peak, cumulative)
        max_dd = max(max_dd, peak - cumulative)
    return max_dd


def win_rate(trades: Sequence[Trade]) -> Decimal | None:
    """Fraction of trades with positive P&L, rounded to 3 places, None if empty."""
    if not trades:
        return None

    wins = sum(1 for t in trades if _net_return(t) > Decimal("0"))
    rate = Decimal(wins) / Decimal(len(trades))
    return rate.quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)


def win_rate_by_symbol(trades: Sequence[Trade]) -> dict[str, Decimal]:
    """Win rate grouped by symbol. Empty dict if no trades."""
    grouped: dict[str, list[Trade]] = defaultdict(list)
    for trade in trades:
        grouped[trade.symbol].append(trade)

    result: dict[str, Decimal] = {}
    for symbol, group in grouped.items():
        rate = win_rate(group)
        if rate is not None:
            result[symbol] = rate
    return result


def performance_summary(trades: Sequence[Trade]) -> dict[str, object]:
    """All metrics in one dict, for backtest results and logs."""
    return {
        "trades": len(trades),
        "total_pnl": sum((_net_return(t) for t in trades), Decimal("0")),
        "win_rate": win_rate(trades),
        "max_drawdown": max_drawdown(trades),
        "sharpe_ratio": sharpe_ratio(trades),
        "win_rate_by_symbol": win_rate_by_symbol(trades),
    }
