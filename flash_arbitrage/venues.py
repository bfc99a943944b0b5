"""
Venue and flash-lender capabilities, plus in-memory (paper) implementations.

The orchestrator only relies on the protocols below. Every participant can
hand out an opaque snapshot token and later restore it, which is how an
aborted attempt is undone.
"""

import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from . import curves
from .exceptions import LoanUnavailable, RepaymentShortfall, ValidationError
from .fixed_point.full_math import mul_div_rounding_up
from .types import BPS_DENOMINATOR, SwapDirection, VenueState

logger = logging.getLogger(__name__)


@runtime_checkable
class LiquidityVenue(Protocol):
    """A venue the bot can quote against and trade on."""

    venue_id: str
    asset0: str
    asset1: str

    def get_state(self) -> VenueState:
        """Return a fresh snapshot of the venue state."""
        ...

    def swap(self, amount_in: int, direction: SwapDirection) -> int:
        """Execute an exact-input swap and return the output amount."""
        ...

    def snapshot(self) -> Any:
        ...

    def restore(self, token: Any) -> None:
        ...


@runtime_checkable
class FlashLender(Protocol):
    """Source of same-transaction loans."""

    venue_id: str

    def available(self, asset: str) -> int:
        ...

    def premium_for(self, amount: int) -> int:
        """Fee owed on top of the principal for borrowing amount."""
        ...

    def borrow(self, asset: str, amount: int) -> int:
        ...

    def repay(self, asset: str, amount: int) -> None:
        ...

    def snapshot(self) -> Any:
        ...

    def restore(self, token: Any) -> None:
        ...


class PaperVenue:
    """
    In-memory venue of either curve variant.

    Swaps are priced with the same curve the solver quotes with, so a paper
    run realizes exactly the predicted amounts unless the state moved.
    """

    def __init__(self, state: VenueState, asset0: str, asset1: str):
        if asset0 == asset1:
            raise ValidationError(f"{state.venue}: venue assets must differ")
        self.venue_id = state.venue
        self.asset0 = asset0
        self.asset1 = asset1
        self._state = state

    def get_state(self) -> VenueState:
        return self._state

    def swap(self, amount_in: int, direction: SwapDirection) -> int:
        trade = curves.quote(self._state, amount_in, direction)
        self._state = trade.state_after
        logger.debug(
            f"{self.venue_id}: swapped {amount_in} {self.asset_for(direction.token_in)} "
            f"for {trade.amount_out} {self.asset_for(direction.token_out)}"
        )
        return trade.amount_out

    def asset_for(self, index: int) -> str:
        return self.asset0 if index == 0 else self.asset1

    def snapshot(self) -> VenueState:
        return self._state

    def restore(self, token: VenueState) -> None:
        self._state = token

    def __repr__(self) -> str:
        return f"PaperVenue({self.venue_id!r}, {self.asset0}/{self.asset1})"


class PaperFlashLender:
    """In-memory flash lender charging a premium of ceil(amount * fee_bps / 10000)."""

    def __init__(self, venue_id: str, balances: Optional[Dict[str, int]] = None, fee_bps: int = 1):
        if not 0 <= fee_bps < BPS_DENOMINATOR:
            raise ValidationError(f"{venue_id}: flash fee must be within [0, 10000) bps")
        self.venue_id = venue_id
        self.fee_bps = fee_bps
        self._balances: Dict[str, int] = dict(balances or {})
        self._outstanding: Dict[str, int] = {}

    def available(self, asset: str) -> int:
        return self._balances.get(asset, 0)

    def premium_for(self, amount: int) -> int:
        return mul_div_rounding_up(amount, self.fee_bps, BPS_DENOMINATOR)

    def outstanding(self, asset: str) -> int:
        return self._outstanding.get(asset, 0)

    def borrow(self, asset: str, amount: int) -> int:
        available = self.available(asset)
        if amount <= 0 or amount > available:
            raise LoanUnavailable(
                f"{self.venue_id}: cannot lend {amount} {asset}",
                requested=amount,
                available=available,
            )
        self._balances[asset] = available - amount
        self._outstanding[asset] = self.outstanding(asset) + amount
        return amount

    def repay(self, asset: str, amount: int) -> None:
        principal = self.outstanding(asset)
        owed = principal + self.premium_for(principal)
        if amount < owed:
            raise RepaymentShortfall(
                f"{self.venue_id}: repayment of {amount} {asset} below {owed} owed",
                owed=owed,
                available=amount,
            )
        self._balances[asset] = self.available(asset) + amount
        self._outstanding.pop(asset, None)

    def snapshot(self):
        return dict(self._balances), dict(self._outstanding)

    def restore(self, token) -> None:
        balances, outstanding = token
        self._balances = dict(balances)
        self._outstanding = dict(outstanding)

