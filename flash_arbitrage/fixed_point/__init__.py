"""Integer fixed-point math shared by the price curves."""

from .full_math import (
    MAX_UINT256,
    Q96,
    div_rounding_up,
    mul_div,
    mul_div_rounding_up,
)
from .tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    encode_price_sqrt,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from .sqrt_price_math import get_amount0_delta, get_amount1_delta, get_next_sqrt_price_from_input
from .swap_math import FEE_DENOMINATOR, SwapStep, compute_swap_step, fee_bps_to_pips

__all__ = [
    "MAX_UINT256",
    "Q96",
    "div_rounding_up",
    "mul_div",
    "mul_div_rounding_up",
    "MAX_SQRT_RATIO",
    "MAX_TICK",
    "MIN_SQRT_RATIO",
    "MIN_TICK",
    "encode_price_sqrt",
    "get_sqrt_ratio_at_tick",
    "get_tick_at_sqrt_ratio",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_next_sqrt_price_from_input",
    "FEE_DENOMINATOR",
    "SwapStep",
    "compute_swap_step",
    "fee_bps_to_pips",
]
