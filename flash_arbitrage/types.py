"""
Shared data types for the flash arbitrage bot.

Venue states are immutable snapshots: a quote never mutates the state it was
computed from, it returns the state the venue would be in afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple, Union

from .exceptions import ValidationError
from .fixed_point.tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    get_tick_at_sqrt_ratio,
)

BPS_DENOMINATOR = 10_000

VenueKind = Literal["constant_product", "concentrated_liquidity"]


class SwapDirection(Enum):
    """Which asset goes into a swap."""

    ZERO_FOR_ONE = "zero_for_one"
    ONE_FOR_ZERO = "one_for_zero"

    @property
    def zero_for_one(self) -> bool:
        return self is SwapDirection.ZERO_FOR_ONE

    @property
    def token_in(self) -> int:
        return 0 if self.zero_for_one else 1

    @property
    def token_out(self) -> int:
        return 1 if self.zero_for_one else 0

    def reversed(self) -> "SwapDirection":
        if self.zero_for_one:
            return SwapDirection.ONE_FOR_ZERO
        return SwapDirection.ZERO_FOR_ONE

    @classmethod
    def from_bool(cls, zero_for_one: bool) -> "SwapDirection":
        return cls.ZERO_FOR_ONE if zero_for_one else cls.ONE_FOR_ZERO


class ExecutionState(Enum):
    """Lifecycle of a single arbitrage attempt."""

    IDLE = "idle"
    BORROWED = "borrowed"
    LEG1_DONE = "leg1_done"
    LEG2_DONE = "leg2_done"
    REPAID = "repaid"
    SETTLED = "settled"
    ABORTED = "aborted"


def _validate_fee(venue: str, fee_bps: int) -> None:
    if not 0 <= fee_bps < BPS_DENOMINATOR:
        raise ValidationError(
            f"{venue}: fee must be within [0, {BPS_DENOMINATOR}) bps",
            details={"fee_bps": fee_bps},
        )


@dataclass(frozen=True)
class ConstantProductState:
    """Reserves of a constant-product (x * y = k) venue."""

    venue: str
    reserve0: int
    reserve1: int
    fee_bps: int = 30
    kind: VenueKind = field(default="constant_product", init=False)

    def __post_init__(self):
        if self.reserve0 < 0 or self.reserve1 < 0:
            raise ValidationError(
                f"{self.venue}: reserves must be non-negative",
                details={"reserve0": self.reserve0, "reserve1": self.reserve1},
            )
        _validate_fee(self.venue, self.fee_bps)

    def reserves_for(self, direction: SwapDirection):
        """Return (reserve_in, reserve_out) for a swap direction."""
        if direction.zero_for_one:
            return self.reserve0, self.reserve1
        return self.reserve1, self.reserve0


@dataclass(frozen=True)
class ConcentratedLiquidityState:
    """
    Tick-based venue state.

    `ticks` maps every initialized tick to its signed liquidity_net, the
    change in active liquidity when the price crosses that tick upwards.

    `scanned_range` is the (lowest, highest) tick whose initialization is
    known, for states read from a partial tick scan. Without it, liquidity is
    known up to the outermost initialized tick in `ticks`; a state with no
    initialized ticks holds full-range liquidity.
    """

    venue: str
    sqrt_price_x96: int
    tick: int
    liquidity: int
    fee_bps: int = 5
    tick_spacing: int = 10
    ticks: Dict[int, int] = field(default_factory=dict)
    scanned_range: Optional[Tuple[int, int]] = None
    kind: VenueKind = field(default="concentrated_liquidity", init=False)

    def __post_init__(self):
        if not MIN_SQRT_RATIO <= self.sqrt_price_x96 < MAX_SQRT_RATIO:
            raise ValidationError(
                f"{self.venue}: sqrt price out of range",
                details={"sqrt_price_x96": self.sqrt_price_x96},
            )
        if self.liquidity < 0:
            raise ValidationError(f"{self.venue}: liquidity must be non-negative")
        if self.tick_spacing <= 0:
            raise ValidationError(f"{self.venue}: tick spacing must be positive")
        for tick in (self.tick, *self.ticks):
            if not MIN_TICK <= tick <= MAX_TICK:
                raise ValidationError(f"{self.venue}: tick {tick} out of range")
        if self.scanned_range is not None:
            lowest, highest = self.scanned_range
            if not MIN_TICK <= lowest <= self.tick <= highest <= MAX_TICK:
                raise ValidationError(
                    f"{self.venue}: scanned range must contain the current tick",
                    details={"scanned_range": list(self.scanned_range), "tick": self.tick},
                )
        _validate_fee(self.venue, self.fee_bps)

    @classmethod
    def at_sqrt_price(
        cls,
        venue: str,
        sqrt_price_x96: int,
        liquidity: int,
        fee_bps: int = 5,
        tick_spacing: int = 10,
        ticks: Optional[Dict[int, int]] = None,
        scanned_range: Optional[Tuple[int, int]] = None,
    ) -> "ConcentratedLiquidityState":
        """Build a state whose current tick is derived from the price."""
        return cls(
            venue=venue,
            sqrt_price_x96=sqrt_price_x96,
            tick=get_tick_at_sqrt_ratio(sqrt_price_x96),
            liquidity=liquidity,
            fee_bps=fee_bps,
            tick_spacing=tick_spacing,
            ticks=dict(ticks or {}),
            scanned_range=scanned_range,
        )


VenueState = Union[ConstantProductState, ConcentratedLiquidityState]


@dataclass(frozen=True)
class TradeQuote:
    """Result of pricing one swap against a venue state."""

    venue: str
    direction: SwapDirection
    amount_in: int
    amount_out: int
    fee_amount: int  # Portion of amount_in kept by the venue
    state_after: VenueState


@dataclass(frozen=True)
class ArbitrageResult:
    """
    A sized two-leg arbitrage.

    Produced by the solver as a prediction and by the orchestrator as the
    settlement record. Balance changes are per system asset (the destination
    venue's ordering); settled records never carry negative changes.
    """

    swap_amount: int
    direction: SwapDirection
    balance_change0: int
    balance_change1: int
    source_venue: str = ""
    destination_venue: str = ""
    leg1_amount_out: int = 0
    leg2_amount_out: int = 0
    loan_premium: int = 0

    @property
    def zero_for_one(self) -> bool:
        return self.direction.zero_for_one

    @property
    def profit(self) -> int:
        """Balance change in the borrowed asset."""
        if self.direction.zero_for_one:
            return self.balance_change0
        return self.balance_change1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "swap_amount": self.swap_amount,
            "zero_for_one": self.zero_for_one,
            "balance_change0": self.balance_change0,
            "balance_change1": self.balance_change1,
            "source_venue": self.source_venue,
            "destination_venue": self.destination_venue,
            "leg1_amount_out": self.leg1_amount_out,
            "leg2_amount_out": self.leg2_amount_out,
            "loan_premium": self.loan_premium,
        }
