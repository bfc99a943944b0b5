"""Token amount deltas and next-price computation between two sqrt prices."""

from ..exceptions import ArithmeticOverflow, ValidationError
from .full_math import (
    MAX_UINT160,
    MAX_UINT256,
    Q96,
    RESOLUTION,
    div_rounding_up,
    mul_div,
    mul_div_rounding_up,
    to_uint160,
)


def get_amount0_delta(sqrt_ratio_a: int, sqrt_ratio_b: int, liquidity: int, round_up: bool) -> int:
    """
    Amount of token0 between two prices for a given liquidity.

    liquidity * (sqrt(upper) - sqrt(lower)) / (sqrt(upper) * sqrt(lower))
    """
    if sqrt_ratio_a > sqrt_ratio_b:
        sqrt_ratio_a, sqrt_ratio_b = sqrt_ratio_b, sqrt_ratio_a
    if sqrt_ratio_a <= 0:
        raise ValidationError("sqrt price must be positive")

    numerator1 = liquidity << RESOLUTION
    numerator2 = sqrt_ratio_b - sqrt_ratio_a

    if round_up:
        return div_rounding_up(
            mul_div_rounding_up(numerator1, numerator2, sqrt_ratio_b), sqrt_ratio_a
        )
    return mul_div(numerator1, numerator2, sqrt_ratio_b) // sqrt_ratio_a


def get_amount1_delta(sqrt_ratio_a: int, sqrt_ratio_b: int, liquidity: int, round_up: bool) -> int:
    """Amount of token1 between two prices: liquidity * (sqrt(upper) - sqrt(lower))."""
    if sqrt_ratio_a > sqrt_ratio_b:
        sqrt_ratio_a, sqrt_ratio_b = sqrt_ratio_b, sqrt_ratio_a

    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_ratio_b - sqrt_ratio_a, Q96)
    return mul_div(liquidity, sqrt_ratio_b - sqrt_ratio_a, Q96)


def _next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96: int, liquidity: int, amount: int) -> int:
    # Adding token0 moves the price down; result rounds up
    if amount == 0:
        return sqrt_price_x96
    numerator1 = liquidity << RESOLUTION

    product = amount * sqrt_price_x96
    denominator = numerator1 + product
    if product <= MAX_UINT256 and denominator <= MAX_UINT256:
        return to_uint160(mul_div_rounding_up(numerator1, sqrt_price_x96, denominator))

    return to_uint160(div_rounding_up(numerator1, numerator1 // sqrt_price_x96 + amount))


def _next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96: int, liquidity: int, amount: int) -> int:
    if amount <= MAX_UINT160:
        quotient = (amount << RESOLUTION) // liquidity
    else:
        quotient = mul_div(amount, Q96, liquidity)
    return to_uint160(sqrt_price_x96 + quotient)


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int, liquidity: int, amount_in: int, zero_for_one: bool
) -> int:
    """Price after adding amount_in of the input token at constant liquidity."""
    if sqrt_price_x96 <= 0:
        raise ValidationError("sqrt price must be positive")
    if liquidity <= 0:
        raise ArithmeticOverflow("next price requires positive liquidity")

    if zero_for_one:
        return _next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in)
    return _next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in)
