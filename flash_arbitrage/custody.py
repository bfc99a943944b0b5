"""
Custody of the bot's residual balances.

Settled profit stays here until the operator retrieves it.
"""

import logging
from typing import Any, Dict, Optional

from .config import Configuration
from .exceptions import InsufficientBalance, ValidationError

logger = logging.getLogger(__name__)


class Custody:
    """Per-asset integer balances held by the bot."""

    def __init__(self, configuration: Configuration, balances: Optional[Dict[str, int]] = None):
        self.configuration = configuration
        self._balances: Dict[str, int] = dict(balances or {})

    def balance_of(self, asset: str) -> int:
        return self._balances.get(asset, 0)

    def balances(self) -> Dict[str, int]:
        return dict(self._balances)

    def credit(self, asset: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError("credit amount must be non-negative", details={"amount": amount})
        self._balances[asset] = self.balance_of(asset) + amount

    def debit(self, asset: str, amount: int) -> None:
        held = self.balance_of(asset)
        if amount < 0:
            raise ValidationError("debit amount must be non-negative", details={"amount": amount})
        if amount > held:
            raise InsufficientBalance(
                f"Custody holds {held} {asset}, {amount} requested",
                asset=asset,
                requested=amount,
                held=held,
            )
        self._balances[asset] = held - amount

    def retrieve(self, caller: Any, asset: str, amount: int, destination: Any) -> None:
        """Move amount of asset to destination (anything with deposit(asset, amount))."""
        self.configuration.require_operator(caller)
        self.debit(asset, amount)
        try:
            destination.deposit(asset, amount)
        except Exception:
            self.credit(asset, amount)
            logger.error(f"Deposit of {amount} {asset} failed, balance restored")
            raise
        logger.info(f"Retrieved {amount} {asset} to {getattr(destination, 'owner', destination)}")

    def snapshot(self) -> Dict[str, int]:
        return dict(self._balances)

    def restore(self, token: Dict[str, int]) -> None:
        self._balances = dict(token)


class Wallet:
    """Plain asset holder used as a retrieval destination."""

    def __init__(self, owner: str, balances: Optional[Dict[str, int]] = None):
        self.owner = owner
        self.balances: Dict[str, int] = dict(balances or {})

    def deposit(self, asset: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError("deposit amount must be non-negative", details={"amount": amount})
        self.balances[asset] = self.balances.get(asset, 0) + amount

    def balance_of(self, asset: str) -> int:
        return self.balances.get(asset, 0)
