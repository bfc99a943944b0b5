"""
Optimal trade sizing for a two-venue flash arbitrage.

Profit as a function of the borrowed amount x is

    profit(x) = leg2_out(leg1_out(x)) - x - premium(x)

which is unimodal (concave up to integer rounding) for the curves we price:
it rises while the price gap pays for the marginal unit and falls after.
The solver runs an integer ternary search on [1, max_input] per direction,
checks the final window explicitly and then hill-climbs by single units so
that neither neighbour of the returned amount is more profitable.
"""

import logging
from typing import Callable, Dict, Mapping, Optional, Union

from . import curves
from .exceptions import InsufficientLiquidity
from .types import ArbitrageResult, SwapDirection, VenueState

logger = logging.getLogger(__name__)

NEG_INF = float("-inf")

LoanPremium = Callable[[int], int]
Profit = Union[int, float]


def _no_premium(amount: int) -> int:
    return 0


class OptimalSizeSolver:
    """Finds the profit-maximizing swap amount between two venue states."""

    def __init__(self, max_refinement_steps: int = 4096):
        self.max_refinement_steps = max_refinement_steps

    def evaluate(
        self,
        source: VenueState,
        destination: VenueState,
        amount: int,
        direction: SwapDirection,
        reverse_source: bool = False,
        loan_premium: Optional[LoanPremium] = None,
    ) -> ArbitrageResult:
        """
        Price a fixed swap amount through both legs.

        Balance changes may be negative here; this is a simulation, not a
        settlement. Raises InsufficientLiquidity if either leg cannot fill.
        """
        premium_fn = loan_premium or _no_premium
        source_direction = direction.reversed() if reverse_source else direction

        leg1 = curves.quote(source, amount, source_direction)
        leg2 = curves.quote(destination, leg1.amount_out, direction.reversed())
        premium = premium_fn(amount)
        profit = leg2.amount_out - amount - premium

        changes = [0, 0]
        changes[direction.token_in] = profit
        return ArbitrageResult(
            swap_amount=amount,
            direction=direction,
            balance_change0=changes[0],
            balance_change1=changes[1],
            source_venue=source.venue,
            destination_venue=destination.venue,
            leg1_amount_out=leg1.amount_out,
            leg2_amount_out=leg2.amount_out,
            loan_premium=premium,
        )

    def profit(
        self,
        source: VenueState,
        destination: VenueState,
        amount: int,
        direction: SwapDirection,
        reverse_source: bool = False,
        loan_premium: Optional[LoanPremium] = None,
    ) -> Profit:
        """Profit of trading amount, or -inf when a leg cannot fill."""
        try:
            return self.evaluate(
                source, destination, amount, direction, reverse_source, loan_premium
            ).profit
        except InsufficientLiquidity:
            return NEG_INF

    def solve_direction(
        self,
        source: VenueState,
        destination: VenueState,
        direction: SwapDirection,
        max_input: int,
        reverse_source: bool = False,
        loan_premium: Optional[LoanPremium] = None,
    ) -> Optional[ArbitrageResult]:
        """Best trade for one direction, or None when nothing is profitable."""
        if max_input < 1:
            return None

        cache: Dict[int, Profit] = {}

        def f(x: int) -> Profit:
            if x not in cache:
                cache[x] = self.profit(
                    source, destination, x, direction, reverse_source, loan_premium
                )
            return cache[x]

        lo, hi = 1, max_input
        while hi - lo > 2:
            third = (hi - lo) // 3
            m1 = lo + third
            m2 = hi - third
            f1, f2 = f(m1), f(m2)
            if f1 == NEG_INF:
                # Larger inputs only exhaust more liquidity
                hi = m1 - 1
            elif f1 < f2:
                lo = m1 + 1
            else:
                hi = m2 - 1

        best = lo
        for candidate in range(lo, hi + 1):
            if f(candidate) > f(best):
                best = candidate

        for _ in range(self.max_refinement_steps):
            if best < max_input and f(best + 1) > f(best):
                best += 1
            elif best > 1 and f(best - 1) > f(best):
                best -= 1
            else:
                break

        logger.debug(
            f"{direction.value}: searched {len(cache)} amounts, best {best} -> {f(best)}"
        )
        if f(best) <= 0:
            return None
        return self.evaluate(source, destination, best, direction, reverse_source, loan_premium)

    def solve(
        self,
        source: VenueState,
        destination: VenueState,
        max_input: Union[int, Mapping[SwapDirection, int]],
        reverse_source: bool = False,
        loan_premium: Optional[LoanPremium] = None,
    ) -> Optional[ArbitrageResult]:
        """
        Most profitable trade over both directions.

        Returns None (no profitable trade) when the best profit is <= 0,
        which covers equal prices and an empty destination venue. max_input
        may be given per direction, since each direction borrows a different
        asset.

        At most one direction is profitable: a round trip in either direction
        earns at most the marginal rate at zero size, and the two marginal
        rates multiply to the square of the fee factors, which is at most 1.
        Profits of the two directions are in different assets and are never
        compared: the first profitable direction is the answer.
        """
        best: Optional[ArbitrageResult] = None
        for direction in (SwapDirection.ZERO_FOR_ONE, SwapDirection.ONE_FOR_ZERO):
            limit = max_input[direction] if isinstance(max_input, Mapping) else max_input
            best = self.solve_direction(
                source, destination, direction, limit, reverse_source, loan_premium
            )
            if best is not None:
                break

        if best is None:
            logger.info(f"No profitable trade between {source.venue} and {destination.venue}")
        else:
            logger.info(
                f"Optimal trade: {best.swap_amount} {best.direction.value} "
                f"for profit {best.profit}"
            )
        return best
