"""The pricing capability every venue variant provides."""

from typing import Protocol, runtime_checkable

from ..types import SwapDirection, TradeQuote, VenueState


@runtime_checkable
class PriceCurve(Protocol):
    """Prices an exact-input swap against an immutable venue state."""

    def quote(self, state: VenueState, amount_in: int, direction: SwapDirection) -> TradeQuote:
        """
        Return the output for amount_in without mutating state.

        Raises InsufficientLiquidity when the venue cannot absorb the input.
        """
        ...
