"""Single exact-input swap step within one liquidity range."""

from typing import NamedTuple

from .full_math import mul_div, mul_div_rounding_up
from .sqrt_price_math import get_amount0_delta, get_amount1_delta, get_next_sqrt_price_from_input

# Fees are expressed in hundredths of a bip
FEE_DENOMINATOR = 1_000_000


class SwapStep(NamedTuple):
    sqrt_price_next_x96: int
    amount_in: int
    amount_out: int
    fee_amount: int


def fee_bps_to_pips(fee_bps: int) -> int:
    return fee_bps * 100


def compute_swap_step(
    sqrt_price_current_x96: int,
    sqrt_price_target_x96: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int,
) -> SwapStep:
    """
    Swap as much of amount_remaining as fits before the target price.

    Direction is implied by the target: a target at or below the current
    price sells token0. The returned amount_in excludes the fee, and
    amount_in + fee_amount never exceeds amount_remaining.
    """
    zero_for_one = sqrt_price_current_x96 >= sqrt_price_target_x96

    amount_remaining_less_fee = mul_div(amount_remaining, FEE_DENOMINATOR - fee_pips, FEE_DENOMINATOR)
    if zero_for_one:
        amount_in = get_amount0_delta(sqrt_price_target_x96, sqrt_price_current_x96, liquidity, True)
    else:
        amount_in = get_amount1_delta(sqrt_price_current_x96, sqrt_price_target_x96, liquidity, True)

    if amount_remaining_less_fee >= amount_in:
        sqrt_price_next = sqrt_price_target_x96
    else:
        sqrt_price_next = get_next_sqrt_price_from_input(
            sqrt_price_current_x96, liquidity, amount_remaining_less_fee, zero_for_one
        )

    reached_target = sqrt_price_next == sqrt_price_target_x96

    if zero_for_one:
        if not reached_target:
            amount_in = get_amount0_delta(sqrt_price_next, sqrt_price_current_x96, liquidity, True)
        amount_out = get_amount1_delta(sqrt_price_next, sqrt_price_current_x96, liquidity, False)
    else:
        if not reached_target:
            amount_in = get_amount1_delta(sqrt_price_current_x96, sqrt_price_next, liquidity, True)
        amount_out = get_amount0_delta(sqrt_price_current_x96, sqrt_price_next, liquidity, False)

    if not reached_target:
        # Whatever input is left over after reaching next price is fee
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = mul_div_rounding_up(amount_in, fee_pips, FEE_DENOMINATOR - fee_pips)

    return SwapStep(sqrt_price_next, amount_in, amount_out, fee_amount)
