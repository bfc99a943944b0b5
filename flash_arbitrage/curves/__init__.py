"""
Price curves for the supported venue variants.

Callers use `quote()`; the curve is selected from the state's kind so nothing
outside this package branches on venue type.
"""

from typing import Dict

from ..exceptions import ValidationError
from ..types import SwapDirection, TradeQuote, VenueState
from .base import PriceCurve
from .concentrated import ConcentratedLiquidityCurve
from .constant_product import ConstantProductCurve, get_amount_out

CURVES: Dict[str, PriceCurve] = {
    "constant_product": ConstantProductCurve(),
    "concentrated_liquidity": ConcentratedLiquidityCurve(),
}


def curve_for(state: VenueState) -> PriceCurve:
    try:
        return CURVES[state.kind]
    except KeyError:
        raise ValidationError(f"No price curve for venue kind {state.kind!r}")


def quote(state: VenueState, amount_in: int, direction: SwapDirection) -> TradeQuote:
    """Price an exact-input swap of amount_in against state."""
    return curve_for(state).quote(state, amount_in, direction)


__all__ = [
    "CURVES",
    "PriceCurve",
    "ConstantProductCurve",
    "ConcentratedLiquidityCurve",
    "curve_for",
    "get_amount_out",
    "quote",
]
