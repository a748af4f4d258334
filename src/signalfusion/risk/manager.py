"""Pre-trade risk checks for the position manager.

Enforces, in order:
  - Max simultaneous open trades
  - One open trade per symbol
  - Account drawdown ceiling

Uses RiskSettings for all thresholds.
"""

from collections.abc import Sequence

from signalfusion.config import RiskSettings
from signalfusion.logging import get_logger
from signalfusion.position.models import AccountState, PositionRejection, Trade

logger = get_logger(__name__)


class RiskManager:
    """Pre-trade risk manager.

    Args:
        settings: Risk settings containing position cap and drawdown ceiling.
    """

    def __init__(self, settings: RiskSettings) -> None:
        self._settings = settings

    def check_can_open(
        self,
        symbol: str,
        open_trades: Sequence[Trade],
        account: AccountState,
    ) -> tuple[bool, PositionRejection | None, str]:
        """Check if a new trade can be opened.

        Args:
            symbol: Symbol of the proposed trade.
            open_trades: Currently open trades.
            account: Current account state.

        Returns:
            Tuple of (allowed, rejection, reason). If allowed is True,
            rejection is None and reason is "".
        """
        if len(open_trades) >= self._settings.max_positions:
            return False, PositionRejection.MAX_POSITIONS_REACHED, (
                f"Max positions ({self._settings.max_positions}) reached"
            )

        if any(t.symbol == symbol for t in open_trades):
            return False, PositionRejection.DUPLICATE_SYMBOL, (
                f"Already have an open position on {symbol}"
            )

        drawdown = account.drawdown
        if drawdown > self._settings.max_drawdown:
            logger.warning(
                "drawdown_ceiling_exceeded",
                drawdown=str(drawdown),
                ceiling=str(self._settings.max_drawdown),
            )
            return False, PositionRejection.DRAWDOWN_EXCEEDED, (
                f"Max drawdown ({self._settings.max_drawdown * 100}%) exceeded"
            )

        return True, None, ""
