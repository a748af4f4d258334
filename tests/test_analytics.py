"""Tests for performance analytics over closed trades.

Tests cover normal operation, edge cases, and insufficient-data guards
for: sharpe_ratio, max_drawdown, win_rate, win_rate_by_symbol.
"""

from decimal import Decimal

from signalfusion.analytics.metrics import (
    max_drawdown,
    performance_summary,
    sharpe_ratio,
    win_rate,
    win_rate_by_symbol,
)
from signalfusion.models import Direction
from signalfusion.position.models import Trade, TradeStatus


# ---------------------------------------------------------------------------
# Helpers to build closed trades
# ---------------------------------------------------------------------------


def _closed_trade(
    profit_loss: Decimal,
    trade_id: str = "t",
    closed_at: float = 1.0,
    symbol: str = "BTC/USDT",
) -> Trade:
    """A closed one-unit trade entered at 100, so percent P&L equals P&L."""
    return Trade(
        id=trade_id,
        symbol=symbol,
        direction=Direction.BULLISH,
        entry_price=Decimal("100"),
        stop_price=Decimal("97"),
        target_price=Decimal("110"),
        position_size=Decimal("1"),
        investment_amount=Decimal("100"),
        risk_amount=Decimal("3"),
        confidence=60,
        opened_at=0.0,
        status=TradeStatus.CLOSED,
        exit_price=Decimal("100") + profit_loss,
        profit_loss=profit_loss,
        profit_loss_pct=profit_loss,
        closed_at=closed_at,
    )


def _trades(*pnls: str) -> list[Trade]:
    return [
        _closed_trade(Decimal(p), trade_id=f"t{i}", closed_at=float(i))
        for i, p in enumerate(pnls)
    ]


class TestSharpeRatio:
    """Sharpe of per-trade percent returns with a sample standard deviation."""

    def test_known_values(self) -> None:
        """Returns 1 and 3: mean 2, sample std sqrt(2), Sharpe sqrt(2)."""
        result = sharpe_ratio(_trades("1", "3"))
        assert result is not None
        assert abs(result - Decimal("1.41421356")) < Decimal("0.0001")

    def test_annualization(self) -> None:
        base = sharpe_ratio(_trades("1", "3"))
        annual = sharpe_ratio(_trades("1", "3"), annualization_factor=4)
        assert abs(annual - base * 2) < Decimal("0.0001")

    def test_with_risk_free_rate(self) -> None:
        """Mean 2 minus risk-free 2 leaves zero excess return."""
        result = sharpe_ratio(_trades("1", "3"), risk_free_rate=Decimal("2"))
        assert result == Decimal("0")

    def test_empty_list_returns_none(self) -> None:
        assert sharpe_ratio([]) is None

    def test_single_trade_returns_none(self) -> None:
        assert sharpe_ratio(_trades("5")) is None

    def test_identical_returns_returns_none(self) -> None:
        assert sharpe_ratio(_trades("2", "2", "2")) is None


class TestMaxDrawdown:
    """Peak-to-trough decline of cumulative P&L."""

    def test_basic_drawdown(self) -> None:
        """Cumulative 10, 5, -5, 15: peak 10, trough -5."""
        assert max_drawdown(_trades("10", "-5", "-10", "20")) == Decimal("15")

    def test_all_profitable(self) -> None:
        assert max_drawdown(_trades("1", "2", "3")) == Decimal("0")

    def test_empty_returns_none(self) -> None:
        assert max_drawdown([]) is None

    def test_single_loss(self) -> None:
        assert max_drawdown(_trades("-4")) == Decimal("4")

    def test_sorted_by_closed_at(self) -> None:
        """Close order -8, -5, +10 bottoms at -13; list order would only reach 8."""
        trades = [
            _closed_trade(Decimal("-5"), "a", closed_at=2.0),
            _closed_trade(Decimal("10"), "b", closed_at=3.0),
            _closed_trade(Decimal("-8"), "c", closed_at=1.0),
        ]
        assert max_drawdown(trades) == Decimal("13")


class TestWinRate:
    def test_two_wins_one_loss(self) -> None:
        assert win_rate(_trades("5", "3", "-2")) == Decimal("0.667")

    def test_all_losses(self) -> None:
        assert win_rate(_trades("-1", "-2")) == Decimal("0")

    def test_empty_returns_none(self) -> None:
        assert win_rate([]) is None

    def test_zero_return_is_not_a_win(self) -> None:
        assert win_rate(_trades("0", "1")) == Decimal("0.5")


class TestWinRateBySymbol:
    def test_multiple_symbols(self) -> None:
        trades = [
            _closed_trade(Decimal("5"), "a", symbol="BTC/USDT"),
            _closed_trade(Decimal("-5"), "b", symbol="BTC/USDT"),
            _closed_trade(Decimal("1"), "c", symbol="ETH/USDT"),
        ]
        assert win_rate_by_symbol(trades) == {
            "BTC/USDT": Decimal("0.5"),
            "ETH/USDT": Decimal("1"),
        }

    def test_empty_returns_empty_dict(self) -> None:
        assert win_rate_by_symbol([]) == {}


class TestPerformanceSummary:
    def test_summary_keys(self) -> None:
        summary = performance_summary(_trades("10", "-5", "-10", "20"))
        assert summary["trades"] == 4
        assert summary["total_pnl"] == Decimal("15")
        assert summary["win_rate"] == Decimal("0.5")
        assert summary["max_drawdown"] == Decimal("15")
        assert summary["sharpe_ratio"] is not None

    def test_empty(self) -> None:
        summary = performance_summary([])
        assert summary["trades"] == 0
        assert summary["sharpe_ratio"] is None
