"""
Concentrated-liquidity pricing.

An exact-input swap walks the initialized ticks in the swap direction,
consuming each liquidity range with one swap step and crossing into the next
range (applying its liquidity_net) until the input is spent. The walk never
leaves the liquidity the state knows about: input left over at the outermost
initialized tick, or at the edge of a scanned range, is insufficient liquidity.
"""

import logging
from bisect import bisect_right
from dataclasses import replace
from typing import List, Optional

from ..exceptions import InsufficientLiquidity, ValidationError
from ..fixed_point.swap_math import compute_swap_step, fee_bps_to_pips
from ..fixed_point.tick_math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from ..types import ConcentratedLiquidityState, SwapDirection, TradeQuote

logger = logging.getLogger(__name__)


def _past_edge(tick: int, edge: int, zero_for_one: bool) -> bool:
    return tick <= edge if zero_for_one else tick >= edge


def _next_initialized_tick(sorted_ticks: List[int], tick: int, zero_for_one: bool) -> Optional[int]:
    """Nearest initialized tick at or below `tick` (selling token0) or above it."""
    index = bisect_right(sorted_ticks, tick)
    if zero_for_one:
        return sorted_ticks[index - 1] if index > 0 else None
    return sorted_ticks[index] if index < len(sorted_ticks) else None


class ConcentratedLiquidityCurve:
    """PriceCurve for ConcentratedLiquidityState."""

    def quote(
        self, state: ConcentratedLiquidityState, amount_in: int, direction: SwapDirection
    ) -> TradeQuote:
        if amount_in < 0:
            raise ValidationError("amount_in must be non-negative", details={"amount_in": amount_in})

        zero_for_one = direction.zero_for_one
        fee_pips = fee_bps_to_pips(state.fee_bps)
        sorted_ticks = sorted(state.ticks)
        price_limit = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1
        edge = None
        if state.scanned_range is not None:
            edge = state.scanned_range[0] if zero_for_one else state.scanned_range[1]

        sqrt_price = state.sqrt_price_x96
        tick = state.tick
        liquidity = state.liquidity
        remaining = amount_in
        amount_out = 0
        fee_amount = 0
        crossed = 0

        while remaining > 0:
            next_tick = _next_initialized_tick(sorted_ticks, tick, zero_for_one)
            if edge is not None and (next_tick is None or _past_edge(next_tick, edge, zero_for_one)):
                # Ticks beyond the scanned range are unknown
                next_tick = None
                target = get_sqrt_ratio_at_tick(edge)
            elif next_tick is None:
                if sorted_ticks:
                    # Past the outermost initialized tick
                    break
                target = price_limit
            else:
                target = get_sqrt_ratio_at_tick(next_tick)

            if next_tick is None and (target >= sqrt_price if zero_for_one else target <= sqrt_price):
                break

            if liquidity > 0:
                step = compute_swap_step(sqrt_price, target, liquidity, remaining, fee_pips)
                sqrt_price = step.sqrt_price_next_x96
                remaining -= step.amount_in + step.fee_amount
                amount_out += step.amount_out
                fee_amount += step.fee_amount
            elif next_tick is not None:
                # Empty range: the price jumps to the next initialized tick
                sqrt_price = target
            else:
                break

            if sqrt_price == target:
                if next_tick is None:
                    tick = get_tick_at_sqrt_ratio(sqrt_price)
                    break
                liquidity_net = state.ticks[next_tick]
                liquidity = liquidity - liquidity_net if zero_for_one else liquidity + liquidity_net
                if liquidity < 0:
                    raise ValidationError(
                        f"{state.venue}: liquidity went negative crossing tick {next_tick}",
                        details={"tick": next_tick},
                    )
                tick = next_tick - 1 if zero_for_one else next_tick
                crossed += 1
            else:
                tick = get_tick_at_sqrt_ratio(sqrt_price)

        if remaining > 0:
            raise InsufficientLiquidity(
                f"{state.venue}: input exhausts available liquidity",
                venue=state.venue,
                amount_in=amount_in,
                details={"unfilled": remaining, "ticks_crossed": crossed},
            )

        if crossed:
            logger.debug(f"{state.venue}: quote of {amount_in} crossed {crossed} ticks")

        return TradeQuote(
            venue=state.venue,
            direction=direction,
            amount_in=amount_in,
            amount_out=amount_out,
            fee_amount=fee_amount,
            state_after=replace(state, sqrt_price_x96=sqrt_price, tick=tick, liquidity=liquidity),
        )
