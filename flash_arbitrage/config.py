"""
Operator-gated bot configuration.

A Configuration starts empty apart from its operator. Every mutation takes
the caller's identity first and is rejected with Unauthorized unless the
caller is the operator.
"""

import logging
from typing import Any, Optional, Tuple

from .exceptions import ConfigurationError, Unauthorized, ValidationError
from .types import BPS_DENOMINATOR
from .venues import FlashLender, LiquidityVenue

logger = logging.getLogger(__name__)


def _check_min_profit(min_profit0: int, min_profit1: int) -> None:
    if min_profit0 < 0 or min_profit1 < 0:
        raise ValidationError(
            "Minimum profits must be non-negative",
            details={"min_profit0": min_profit0, "min_profit1": min_profit1},
        )


def _check_max_slippage(max_slippage_bps: int) -> None:
    if not 0 <= max_slippage_bps <= BPS_DENOMINATOR:
        raise ValidationError(
            "max_slippage_bps must be within [0, 10000]",
            details={"max_slippage_bps": max_slippage_bps},
        )


class Configuration:
    """Venues, direction flag and profit thresholds the bot trades with."""

    def __init__(self, operator: Any):
        if operator is None:
            raise ConfigurationError("Configuration requires an operator")
        self.operator = operator
        self.source_venue: Optional[LiquidityVenue] = None
        self.destination_venue: Optional[LiquidityVenue] = None
        self.flash_venue: Optional[FlashLender] = None
        # Source venue lists the pair as (asset1, asset0) when set
        self.reverse_source_tokens = False
        self.min_profit0 = 0
        self.min_profit1 = 0
        self.max_slippage_bps = 0

    def require_operator(self, caller: Any) -> None:
        if caller != self.operator:
            logger.warning(f"Rejected operator-only call from {caller!r}")
            raise Unauthorized(f"{caller!r} is not the operator", caller=caller)

    def set_source_venue(self, caller: Any, venue: LiquidityVenue) -> None:
        self.require_operator(caller)
        self.source_venue = venue
        logger.info(f"Source venue set to {venue.venue_id}")

    def set_destination_venue(self, caller: Any, venue: LiquidityVenue) -> None:
        self.require_operator(caller)
        self.destination_venue = venue
        logger.info(f"Destination venue set to {venue.venue_id}")

    def set_flash_venue(self, caller: Any, lender: FlashLender) -> None:
        self.require_operator(caller)
        self.flash_venue = lender
        logger.info(f"Flash venue set to {lender.venue_id}")

    def set_reverse_source_tokens(self, caller: Any, reverse: bool) -> None:
        self.require_operator(caller)
        self.reverse_source_tokens = bool(reverse)

    def set_min_profit(self, caller: Any, min_profit0: int, min_profit1: int) -> None:
        self.require_operator(caller)
        _check_min_profit(min_profit0, min_profit1)
        self.min_profit0 = min_profit0
        self.min_profit1 = min_profit1

    def set_max_slippage_bps(self, caller: Any, max_slippage_bps: int) -> None:
        self.require_operator(caller)
        _check_max_slippage(max_slippage_bps)
        self.max_slippage_bps = max_slippage_bps

    def configure(
        self,
        caller: Any,
        source_venue: LiquidityVenue,
        destination_venue: LiquidityVenue,
        flash_venue: FlashLender,
        reverse_source_tokens: bool = False,
        min_profit0: int = 0,
        min_profit1: int = 0,
        max_slippage_bps: Optional[int] = None,
    ) -> None:
        """
        Set every field at once.

        Arguments are validated before anything is assigned, so a rejected
        call leaves the configuration unchanged.
        """
        self.require_operator(caller)
        _check_min_profit(min_profit0, min_profit1)
        if max_slippage_bps is not None:
            _check_max_slippage(max_slippage_bps)

        self.set_source_venue(caller, source_venue)
        self.set_destination_venue(caller, destination_venue)
        self.set_flash_venue(caller, flash_venue)
        self.set_reverse_source_tokens(caller, reverse_source_tokens)
        self.set_min_profit(caller, min_profit0, min_profit1)
        if max_slippage_bps is not None:
            self.set_max_slippage_bps(caller, max_slippage_bps)

    @property
    def assets(self) -> Tuple[str, str]:
        """System asset order, taken from the destination venue."""
        if self.destination_venue is None:
            raise ConfigurationError("Destination venue is not configured")
        return self.destination_venue.asset0, self.destination_venue.asset1

    def min_profit_for(self, index: int) -> int:
        return self.min_profit0 if index == 0 else self.min_profit1

    def require_complete(self) -> None:
        missing = [
            name
            for name in ("source_venue", "destination_venue", "flash_venue")
            if getattr(self, name) is None
        ]
        if missing:
            raise ConfigurationError(
                f"Configuration incomplete: {', '.join(missing)} not set",
                details={"missing": missing},
            )

        source_assets = (self.source_venue.asset0, self.source_venue.asset1)
        if self.reverse_source_tokens:
            source_assets = source_assets[::-1]
        if source_assets != self.assets:
            raise ConfigurationError(
                "Source venue assets do not match destination venue",
                details={
                    "source": list(source_assets),
                    "destination": list(self.assets),
                    "reverse_source_tokens": self.reverse_source_tokens,
                },
            )
