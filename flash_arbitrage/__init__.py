"""
Flash-loan arbitrage between a constant-product venue and a
concentrated-liquidity venue.

Sizes the profit-maximizing trade with integer fixed-point math and executes
it atomically: borrow, swap on the source venue, swap back on the destination
venue, repay, settle. Any failure rolls every participant back.
"""

from .bot import ArbitrageBot
from .config import Configuration
from .custody import Custody, Wallet
from .exceptions import (
    ArithmeticOverflow,
    BelowMinimumProfit,
    ConfigurationError,
    ExecutionAborted,
    FlashArbitrageError,
    InsufficientBalance,
    InsufficientLiquidity,
    LoanUnavailable,
    NoProfitableTrade,
    RepaymentShortfall,
    SlippageExceeded,
    Unauthorized,
    ValidationError,
    VenueReadError,
)
from .executor import ExecutionJournal, ExecutionOrchestrator
from .solver import OptimalSizeSolver
from .types import (
    ArbitrageResult,
    ConcentratedLiquidityState,
    ConstantProductState,
    ExecutionState,
    SwapDirection,
    TradeQuote,
)
from .venues import FlashLender, LiquidityVenue, PaperFlashLender, PaperVenue
from .version import __version__

PROJECT_NAME = "flash-arbitrage"

__all__ = [
    "ArbitrageBot",
    "Configuration",
    "Custody",
    "Wallet",
    "ArithmeticOverflow",
    "BelowMinimumProfit",
    "ConfigurationError",
    "ExecutionAborted",
    "FlashArbitrageError",
    "InsufficientBalance",
    "InsufficientLiquidity",
    "LoanUnavailable",
    "NoProfitableTrade",
    "RepaymentShortfall",
    "SlippageExceeded",
    "Unauthorized",
    "ValidationError",
    "VenueReadError",
    "ExecutionJournal",
    "ExecutionOrchestrator",
    "OptimalSizeSolver",
    "ArbitrageResult",
    "ConcentratedLiquidityState",
    "ConstantProductState",
    "ExecutionState",
    "SwapDirection",
    "TradeQuote",
    "FlashLender",
    "LiquidityVenue",
    "PaperFlashLender",
    "PaperVenue",
    "PROJECT_NAME",
    "__version__",
]
