"""Simulated executor with instant fills.

Fills at the requested entry price adjusted by a configurable slippage.
An optional failure hook lets tests and backtests exercise the rollback
path for failed executions.
"""

from collections.abc import Callable
from decimal import Decimal
from uuid import uuid4

from signalfusion.execution.executor import Executor
from signalfusion.logging import get_logger
from signalfusion.models import ExecutionRequest, ExecutionResult, OrderSide

logger = get_logger(__name__)


class SimulatedExecutor(Executor):
    """Instant-fill executor for backtests and paper runs.

    Args:
        slippage: Fractional slippage applied against the order side
            (higher for buys, lower for sells).
        failure_hook: Called with each request; a non-None return value is
            used as the error message and the request fails.
    """

    def __init__(
        self,
        slippage: Decimal = Decimal("0"),
        failure_hook: Callable[[ExecutionRequest], str | None] | None = None,
    ) -> None:
        self._slippage = slippage
        self._failure_hook = failure_hook
        self._fills: list[tuple[ExecutionRequest, ExecutionResult]] = []

    @property
    def fills(self) -> list[tuple[ExecutionRequest, ExecutionResult]]:
        """Successful (request, result) pairs in submission order."""
        return list(self._fills)

    def execute(self, request: ExecutionRequest) -> ExecutionResult:
        if request.quantity <= 0:
            return self._fail(request, f"Invalid quantity {request.quantity}")

        if self._failure_hook is not None:
            error = self._failure_hook(request)
            if error is not None:
                return self._fail(request, error)

        if request.side == OrderSide.BUY:
            fill_price = request.entry_price * (Decimal("1") + self._slippage)
        else:
            fill_price = request.entry_price * (Decimal("1") - self._slippage)

        order_id = f"sim_{uuid4().hex[:12]}"
        result = ExecutionResult(
            success=True,
            broker_order_id=order_id,
            filled_price=fill_price,
            is_simulated=True,
        )
        self._fills.append((request, result))

        logger.info(
            "simulated_order_filled",
            order_id=order_id,
            symbol=request.symbol,
            side=request.side.value,
            quantity=str(request.quantity),
            fill_price=str(fill_price),
        )
        return result

    def _fail(self, request: ExecutionRequest, error: str) -> ExecutionResult:
        logger.warning(
            "simulated_order_failed",
            symbol=request.symbol,
            side=request.side.value,
            error=error,
        )
        return ExecutionResult(success=False, error=error, is_simulated=True)
