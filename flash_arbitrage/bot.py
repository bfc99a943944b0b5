"""
Public entry point of the flash arbitrage bot.

ArbitrageBot wires the operator-gated Configuration, Custody, the solver and
the orchestrator together. Each public call runs under one lock, so a solve
and the execution it leads to are never interleaved with another call.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from .config import Configuration
from .custody import Custody
from .exceptions import NoProfitableTrade
from .executor import ExecutionOrchestrator
from .metrics import ArbitrageMetrics
from .solver import OptimalSizeSolver
from .types import ArbitrageResult, ExecutionState, SwapDirection
from .venues import FlashLender, LiquidityVenue

logger = logging.getLogger(__name__)


class ArbitrageBot:
    """Sizes and executes flash arbitrage between two configured venues."""

    def __init__(
        self,
        operator: Any,
        metrics: Optional[ArbitrageMetrics] = None,
        solver: Optional[OptimalSizeSolver] = None,
    ):
        self.configuration = Configuration(operator)
        self.custody = Custody(self.configuration)
        self.metrics = metrics
        self.solver = solver or OptimalSizeSolver()
        self.orchestrator = ExecutionOrchestrator(self.configuration, self.custody, metrics)
        self._lock = threading.RLock()

    @property
    def state(self) -> ExecutionState:
        return self.orchestrator.state

    def configure(
        self,
        caller: Any,
        source_venue: LiquidityVenue,
        destination_venue: LiquidityVenue,
        flash_venue: FlashLender,
        reverse_source_tokens: bool = False,
        min_profit0: int = 0,
        min_profit1: int = 0,
        max_slippage_bps: Optional[int] = None,
    ) -> None:
        with self._lock:
            self.configuration.configure(
                caller,
                source_venue,
                destination_venue,
                flash_venue,
                reverse_source_tokens=reverse_source_tokens,
                min_profit0=min_profit0,
                min_profit1=min_profit1,
                max_slippage_bps=max_slippage_bps,
            )

    def add_settlement_listener(self, listener: Callable[[ArbitrageResult], None]) -> None:
        self.orchestrator.add_listener(listener)

    def _max_input_for(self, direction: SwapDirection, max_input: Optional[int]) -> int:
        asset_in = self.configuration.assets[direction.token_in]
        available = self.configuration.flash_venue.available(asset_in)
        if max_input is None:
            return available
        return min(max_input, available)

    def solve(self, max_input: Optional[int] = None) -> Optional[ArbitrageResult]:
        """
        Size the best trade against fresh venue states.

        max_input caps the borrowed amount; the lender's available balance
        of the borrowed asset always does.
        """
        with self._lock:
            config = self.configuration
            config.require_complete()
            source = config.source_venue.get_state()
            destination = config.destination_venue.get_state()
            limits = {
                direction: self._max_input_for(direction, max_input)
                for direction in SwapDirection
            }

            started = time.perf_counter()
            best = self.solver.solve(
                source,
                destination,
                limits,
                reverse_source=config.reverse_source_tokens,
                loan_premium=config.flash_venue.premium_for,
            )
            if self.metrics:
                self.metrics.record_solve_duration(time.perf_counter() - started)
            return best

    def solve_and_execute(self, max_input: Optional[int] = None) -> ArbitrageResult:
        """
        Solve for the optimal size and execute it atomically.

        Raises NoProfitableTrade without touching any state when neither
        direction is profitable, or an ExecutionAborted subclass after a
        rollback.
        """
        with self._lock:
            plan = self.solve(max_input)
            if plan is None:
                if self.metrics:
                    self.metrics.record_no_trade()
                raise NoProfitableTrade(
                    "No profitable trade between configured venues",
                    details={"max_input": max_input},
                )
            logger.info(
                f"Executing {plan.direction.value} trade of {plan.swap_amount}, "
                f"expected profit {plan.profit}"
            )
            return self.orchestrator.execute(plan)

    def simulate(self, swap_amount: int, direction: SwapDirection) -> ArbitrageResult:
        """Predict the outcome of trading swap_amount without touching any state."""
        with self._lock:
            config = self.configuration
            config.require_complete()
            return self.solver.evaluate(
                config.source_venue.get_state(),
                config.destination_venue.get_state(),
                swap_amount,
                direction,
                reverse_source=config.reverse_source_tokens,
                loan_premium=config.flash_venue.premium_for,
            )

    def execute_amount(self, swap_amount: int, direction: SwapDirection) -> ArbitrageResult:
        """Execute a fixed swap amount instead of the solved one."""
        with self._lock:
            return self.orchestrator.execute(self.simulate(swap_amount, direction))

    def retrieve(self, caller: Any, asset: str, amount: int, destination: Any) -> None:
        with self._lock:
            self.custody.retrieve(caller, asset, amount, destination)

    def balances(self) -> Dict[str, int]:
        return self.custody.balances()
