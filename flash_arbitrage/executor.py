"""
All-or-nothing execution of a sized arbitrage.

Borrow -> leg 1 on the source venue -> leg 2 on the destination venue ->
repay -> settle. Every participant is snapshotted in a journal before it is
first touched; any exception rolls all of them back before propagating, so a
failed attempt leaves no trace.
"""

import logging
from typing import Any, Callable, List, Optional, Tuple

from .config import Configuration
from .custody import Custody
from .exceptions import (
    BelowMinimumProfit,
    ExecutionAborted,
    LoanUnavailable,
    RepaymentShortfall,
    SlippageExceeded,
)
from .metrics import ArbitrageMetrics
from .types import BPS_DENOMINATOR, ArbitrageResult, ExecutionState

logger = logging.getLogger(__name__)

SettlementListener = Callable[[ArbitrageResult], None]


class ExecutionJournal:
    """Snapshots of every participant touched by the current attempt."""

    def __init__(self):
        self._entries: List[Tuple[Any, Any]] = []
        self._recorded = set()

    def record(self, participant: Any) -> None:
        if id(participant) in self._recorded:
            return
        self._recorded.add(id(participant))
        self._entries.append((participant, participant.snapshot()))

    def rollback(self) -> None:
        for participant, token in reversed(self._entries):
            participant.restore(token)
        self._clear()

    def commit(self) -> None:
        self._clear()

    def _clear(self) -> None:
        self._entries.clear()
        self._recorded.clear()

    def __len__(self) -> int:
        return len(self._entries)


class ExecutionOrchestrator:
    """Runs one arbitrage attempt through the execution state machine."""

    def __init__(
        self,
        configuration: Configuration,
        custody: Custody,
        metrics: Optional[ArbitrageMetrics] = None,
    ):
        self.configuration = configuration
        self.custody = custody
        self.metrics = metrics
        self.state = ExecutionState.IDLE
        self._listeners: List[SettlementListener] = []

    def add_listener(self, listener: SettlementListener) -> None:
        self._listeners.append(listener)

    def _advance(self, state: ExecutionState) -> None:
        logger.debug(f"Execution state {self.state.value} -> {state.value}")
        self.state = state

    def execute(self, plan: ArbitrageResult) -> ArbitrageResult:
        """
        Execute plan atomically and return the settlement record.

        plan.leg1_amount_out is the quoted leg 1 output the slippage bound is
        measured against. Raises an ExecutionAborted subclass (or whatever a
        venue raised) after rolling everything back.
        """
        config = self.configuration
        config.require_complete()

        source = config.source_venue
        destination = config.destination_venue
        lender = config.flash_venue
        assets = config.assets

        direction = plan.direction
        amount = plan.swap_amount
        asset_in = assets[direction.token_in]
        asset_out = assets[direction.token_out]
        source_direction = direction.reversed() if config.reverse_source_tokens else direction

        balances_before = [self.custody.balance_of(asset) for asset in assets]
        journal = ExecutionJournal()
        self.state = ExecutionState.IDLE
        if self.metrics:
            self.metrics.record_attempt()

        try:
            # Borrow
            available = lender.available(asset_in)
            if amount > available:
                raise LoanUnavailable(
                    f"{lender.venue_id} can lend {available} {asset_in}, {amount} requested",
                    requested=amount,
                    available=available,
                )
            journal.record(self.custody)
            journal.record(lender)
            received = lender.borrow(asset_in, amount)
            self.custody.credit(asset_in, received)
            premium = lender.premium_for(amount)
            self._advance(ExecutionState.BORROWED)

            # Leg 1
            journal.record(source)
            self.custody.debit(asset_in, amount)
            leg1_out = source.swap(amount, source_direction)
            self.custody.credit(asset_out, leg1_out)
            min_leg1_out = plan.leg1_amount_out * (BPS_DENOMINATOR - config.max_slippage_bps) // BPS_DENOMINATOR
            if leg1_out < min_leg1_out:
                raise SlippageExceeded(
                    f"Leg 1 returned {leg1_out} {asset_out}, at least {min_leg1_out} required",
                    expected=min_leg1_out,
                    actual=leg1_out,
                )
            self._advance(ExecutionState.LEG1_DONE)

            # Leg 2
            journal.record(destination)
            self.custody.debit(asset_out, leg1_out)
            leg2_out = destination.swap(leg1_out, direction.reversed())
            self.custody.credit(asset_in, leg2_out)
            self._advance(ExecutionState.LEG2_DONE)

            # Repay
            owed = amount + premium
            if leg2_out < owed:
                raise RepaymentShortfall(
                    f"Leg 2 returned {leg2_out} {asset_in}, {owed} owed to {lender.venue_id}",
                    owed=owed,
                    available=leg2_out,
                )
            self.custody.debit(asset_in, owed)
            lender.repay(asset_in, owed)
            self._advance(ExecutionState.REPAID)

            # Settle
            changes = [
                self.custody.balance_of(asset) - before
                for asset, before in zip(assets, balances_before)
            ]
            for index, change in enumerate(changes):
                threshold = config.min_profit_for(index)
                if change < threshold:
                    raise BelowMinimumProfit(
                        f"Balance change {change} {assets[index]} below minimum {threshold}",
                        asset=assets[index],
                        threshold=threshold,
                        actual=change,
                    )
        except Exception as e:
            journal.rollback()
            failed_in = self.state
            self._advance(ExecutionState.ABORTED)
            if isinstance(e, ExecutionAborted) and e.state is None:
                e.state = failed_in
            logger.warning(
                f"Arbitrage aborted after {failed_in.value}: {type(e).__name__}: {e}"
            )
            if self.metrics:
                self.metrics.record_abort(type(e).__name__)
            raise

        journal.commit()
        self._advance(ExecutionState.SETTLED)

        result = ArbitrageResult(
            swap_amount=amount,
            direction=direction,
            balance_change0=changes[0],
            balance_change1=changes[1],
            source_venue=source.venue_id,
            destination_venue=destination.venue_id,
            leg1_amount_out=leg1_out,
            leg2_amount_out=leg2_out,
            loan_premium=premium,
        )
        self._emit(result, assets)
        return result

    def _emit(self, result: ArbitrageResult, assets: Tuple[str, str]) -> None:
        logger.info(f"SETTLEMENT: {result.to_dict()}")
        if self.metrics:
            self.metrics.record_settlement(result, assets)
        for listener in self._listeners:
            listener(result)
