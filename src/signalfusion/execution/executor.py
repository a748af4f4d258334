"""Abstract executor interface.

Defines the execution endpoint contract. The position manager never calls an
executor itself; callers open the in-memory trade, submit it here, and roll
the trade back when execution fails so no OPEN trade exists that is not live.
"""

from abc import ABC, abstractmethod

from signalfusion.models import ExecutionRequest, ExecutionResult


class Executor(ABC):
    """Abstract base class for order executors.

    Backtests and live callers depend ONLY on this interface; whether fills
    are simulated or real is decided by the injected implementation.
    """

    @abstractmethod
    def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Submit an entry order.

        Args:
            request: Symbol, side, quantity, entry price and optional
                stop/target prices.

        Returns:
            ExecutionResult with ``broker_order_id`` on success or ``error``
            on failure. Rejections are returned, not raised.
        """
        ...
