"""
Exception hierarchy for the flash arbitrage bot.

Every failure on the execution path derives from ExecutionAborted so callers
can tell "the attempt was rolled back" apart from configuration and math
errors.
"""

from typing import Optional, Dict, Any


class FlashArbitrageError(Exception):
    """Base exception for all flash arbitrage related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(FlashArbitrageError):
    """Raised when there are configuration-related issues."""

    pass


class ValidationError(FlashArbitrageError):
    """Raised when validation of venue state or settings fails."""

    pass


class ArithmeticOverflow(FlashArbitrageError):
    """Raised when a fixed-point result does not fit in 256 bits."""

    pass


class InsufficientLiquidity(FlashArbitrageError):
    """Raised when a venue cannot absorb the requested input."""

    def __init__(
        self,
        message: str,
        venue: Optional[str] = None,
        amount_in: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.venue = venue
        self.amount_in = amount_in


class NoProfitableTrade(FlashArbitrageError):
    """Raised when neither direction yields a positive profit."""

    pass


class VenueReadError(FlashArbitrageError):
    """Raised when venue state cannot be read from chain."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.address = address


class Unauthorized(FlashArbitrageError):
    """Raised when a non-operator calls an operator-only action."""

    def __init__(
        self,
        message: str,
        caller: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.caller = caller


class InsufficientBalance(FlashArbitrageError):
    """Raised when custody holds less of an asset than requested."""

    def __init__(
        self,
        message: str,
        asset: Optional[str] = None,
        requested: Optional[int] = None,
        held: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.asset = asset
        self.requested = requested
        self.held = held


class ExecutionAborted(FlashArbitrageError):
    """Raised when an arbitrage attempt is aborted and rolled back."""

    def __init__(
        self,
        message: str,
        state: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        # Execution state reached when the failure happened
        self.state = state


class LoanUnavailable(ExecutionAborted):
    """Raised when the flash lender cannot supply the requested amount."""

    def __init__(
        self,
        message: str,
        requested: Optional[int] = None,
        available: Optional[int] = None,
        state: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, state, details)
        self.requested = requested
        self.available = available


class SlippageExceeded(ExecutionAborted):
    """Raised when leg 1 returns less than the quoted output allows."""

    def __init__(
        self,
        message: str,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
        state: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, state, details)
        self.expected = expected
        self.actual = actual


class RepaymentShortfall(ExecutionAborted):
    """Raised when leg 2 proceeds cannot cover principal plus premium."""

    def __init__(
        self,
        message: str,
        owed: Optional[int] = None,
        available: Optional[int] = None,
        state: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, state, details)
        self.owed = owed
        self.available = available


class BelowMinimumProfit(ExecutionAborted):
    """Raised when a settled balance change is below its threshold."""

    def __init__(
        self,
        message: str,
        asset: Optional[str] = None,
        threshold: Optional[int] = None,
        actual: Optional[int] = None,
        state: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, state, details)
        self.asset = asset
        self.threshold = threshold
        self.actual = actual
