"""Constant-product (x * y = k) pricing."""

from dataclasses import replace

from ..exceptions import InsufficientLiquidity, ValidationError
from ..fixed_point.full_math import mul_div_rounding_up
from ..types import BPS_DENOMINATOR, ConstantProductState, SwapDirection, TradeQuote


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """
    Output of an exact-input swap, floored.

    Equivalent to reserve_out - ceil(reserve_out * reserve_in / (reserve_in + amount_in * (1 - fee))),
    so the product of reserves never decreases.
    """
    if amount_in < 0:
        raise ValidationError("amount_in must be non-negative", details={"amount_in": amount_in})
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidity("constant-product venue has empty reserves", amount_in=amount_in)

    amount_in_with_fee = amount_in * (BPS_DENOMINATOR - fee_bps)
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * BPS_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


class ConstantProductCurve:
    """PriceCurve for ConstantProductState."""

    def quote(self, state: ConstantProductState, amount_in: int, direction: SwapDirection) -> TradeQuote:
        reserve_in, reserve_out = state.reserves_for(direction)
        try:
            amount_out = get_amount_out(amount_in, reserve_in, reserve_out, state.fee_bps)
        except InsufficientLiquidity as e:
            raise InsufficientLiquidity(str(e), venue=state.venue, amount_in=amount_in) from e

        fee_amount = mul_div_rounding_up(amount_in, state.fee_bps, BPS_DENOMINATOR)

        if direction.zero_for_one:
            state_after = replace(
                state, reserve0=state.reserve0 + amount_in, reserve1=state.reserve1 - amount_out
            )
        else:
            state_after = replace(
                state, reserve0=state.reserve0 - amount_out, reserve1=state.reserve1 + amount_in
            )

        return TradeQuote(
            venue=state.venue,
            direction=direction,
            amount_in=amount_in,
            amount_out=amount_out,
            fee_amount=fee_amount,
            state_after=state_after,
        )
