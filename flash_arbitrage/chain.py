"""
On-chain venue state readers.

Reads Uniswap V2 style pair reserves and Uniswap V3 style pool state
(slot0, active liquidity, initialized ticks around the current price) into
the immutable venue states the curves price against.
"""

import logging
import time
from typing import Callable, Dict, Tuple, TypeVar

from web3 import Web3

from .exceptions import ValidationError, VenueReadError
from .fixed_point.tick_math import MAX_TICK, MIN_TICK
from .types import ConcentratedLiquidityState, ConstantProductState, VenueState

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Minimal ABIs for on-chain reads
UNISWAP_V2_PAIR_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "getReserves",
        "outputs": [
            {"name": "reserve0", "type": "uint112"},
            {"name": "reserve1", "type": "uint112"},
            {"name": "blockTimestampLast", "type": "uint32"},
        ],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    },
]

UNISWAP_V3_POOL_ABI = [
    {
        "inputs": [],
        "name": "slot0",
        "outputs": [
            {"name": "sqrtPriceX96", "type": "uint160"},
            {"name": "tick", "type": "int24"},
            {"name": "observationIndex", "type": "uint16"},
            {"name": "observationCardinality", "type": "uint16"},
            {"name": "observationCardinalityNext", "type": "uint16"},
            {"name": "feeProtocol", "type": "uint8"},
            {"name": "unlocked", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "liquidity",
        "outputs": [{"name": "", "type": "uint128"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "fee",
        "outputs": [{"name": "", "type": "uint24"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "tickSpacing",
        "outputs": [{"name": "", "type": "int24"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "wordPosition", "type": "int16"}],
        "name": "tickBitmap",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "tick", "type": "int24"}],
        "name": "ticks",
        "outputs": [
            {"name": "liquidityGross", "type": "uint128"},
            {"name": "liquidityNet", "type": "int128"},
            {"name": "feeGrowthOutside0X128", "type": "uint256"},
            {"name": "feeGrowthOutside1X128", "type": "uint256"},
            {"name": "tickCumulativeOutside", "type": "int56"},
            {"name": "secondsPerLiquidityOutsideX128", "type": "uint160"},
            {"name": "secondsOutside", "type": "uint32"},
            {"name": "initialized", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


def _is_rate_limit(error: Exception) -> bool:
    message = str(error)
    return (
        "429" in message
        or "Too Many Requests" in message
        or "-32005" in message  # BSC/Ethereum rate limit code
        or "limit exceeded" in message.lower()
    )


def _with_retries(address: str, read: Callable[[], T], max_retries: int) -> T:
    """Run read(), backing off on rate limits and failing fast otherwise."""
    last_error = None
    for attempt in range(max_retries):
        try:
            return read()
        except Exception as e:
            last_error = e
            if _is_rate_limit(e) and attempt < max_retries - 1:
                # Exponential backoff: 1s, 2s, 4s
                time.sleep(2**attempt)
                continue
            raise VenueReadError(f"Failed to read venue {address}: {e}", address=address) from e

    raise VenueReadError(
        f"Failed to read venue {address} after {max_retries} retries: {last_error}",
        address=address,
    ) from last_error


def _require_checksum(address: str) -> None:
    if not Web3.is_checksum_address(address):
        raise ValueError(f"Invalid venue address: {address}")


def fee_pips_to_bps(fee_pips: int) -> int:
    """Convert a pool fee in hundredths of a bip (500, 3000) to bps (5, 30)."""
    if fee_pips % 100:
        raise ValidationError(
            f"Pool fee {fee_pips} is not a whole number of bps", details={"fee": fee_pips}
        )
    return fee_pips // 100


def fetch_constant_product_state(
    web3: Web3, pair_addr: str, fee_bps: int = 30, max_retries: int = 3
) -> ConstantProductState:
    """
    Fetch reserves from a Uniswap V2 style pair.

    Args:
        web3: Web3 instance connected to the chain
        pair_addr: Checksummed address of the pair contract
        fee_bps: Swap fee of the pair (not readable on-chain for V2 forks)
        max_retries: Maximum number of attempts on rate limits

    Raises:
        VenueReadError: If RPC calls fail
        ValueError: If pair address is invalid
    """
    _require_checksum(pair_addr)
    pair = web3.eth.contract(address=pair_addr, abi=UNISWAP_V2_PAIR_ABI)

    reserves = _with_retries(pair_addr, lambda: pair.functions.getReserves().call(), max_retries)
    return ConstantProductState(
        venue=pair_addr, reserve0=int(reserves[0]), reserve1=int(reserves[1]), fee_bps=fee_bps
    )


def _tick_to_word(tick: int, tick_spacing: int) -> int:
    compressed = tick // tick_spacing
    return compressed >> 8


def _scanned_range(tick: int, tick_spacing: int, words_each_side: int) -> Tuple[int, int]:
    """Lowest and highest tick covered by the bitmap words read around tick."""
    current_word = _tick_to_word(tick, tick_spacing)
    lowest = (current_word - words_each_side) * 256 * tick_spacing
    highest = ((current_word + words_each_side + 1) * 256 - 1) * tick_spacing
    return max(lowest, MIN_TICK), min(highest, MAX_TICK)


def fetch_concentrated_liquidity_state(
    web3: Web3, pool_addr: str, words_each_side: int = 2, max_retries: int = 3
) -> ConcentratedLiquidityState:
    """
    Fetch price, liquidity and nearby initialized ticks from a Uniswap V3 style pool.

    Initialized ticks are discovered from the tick bitmap, scanning
    `words_each_side` 256-tick words below and above the current one. Swaps
    that run past the scanned ticks quote as insufficient liquidity.

    Raises:
        VenueReadError: If RPC calls fail
        ValueError: If pool address is invalid
    """
    _require_checksum(pool_addr)
    pool = web3.eth.contract(address=pool_addr, abi=UNISWAP_V3_POOL_ABI)

    def read_pool():
        slot0 = pool.functions.slot0().call()
        liquidity = pool.functions.liquidity().call()
        fee = pool.functions.fee().call()
        tick_spacing = pool.functions.tickSpacing().call()

        current_word = _tick_to_word(int(slot0[1]), tick_spacing)
        ticks: Dict[int, int] = {}
        for word in range(current_word - words_each_side, current_word + words_each_side + 1):
            bitmap = int(pool.functions.tickBitmap(word).call())
            if not bitmap:
                continue
            for bit in range(256):
                if bitmap >> bit & 1:
                    tick = (word * 256 + bit) * tick_spacing
                    ticks[tick] = int(pool.functions.ticks(tick).call()[1])
        return slot0, liquidity, fee, tick_spacing, ticks

    slot0, liquidity, fee, tick_spacing, ticks = _with_retries(pool_addr, read_pool, max_retries)
    logger.debug(f"{pool_addr}: read {len(ticks)} initialized ticks")

    return ConcentratedLiquidityState(
        venue=pool_addr,
        sqrt_price_x96=int(slot0[0]),
        tick=int(slot0[1]),
        liquidity=int(liquidity),
        fee_bps=fee_pips_to_bps(int(fee)),
        tick_spacing=int(tick_spacing),
        ticks=ticks,
        scanned_range=_scanned_range(int(slot0[1]), tick_spacing, words_each_side),
    )


class ChainVenueReader:
    """Read-only venue: get_state() re-reads the chain on every call."""

    def __init__(
        self,
        web3: Web3,
        address: str,
        kind: str,
        asset0: str,
        asset1: str,
        fee_bps: int = 30,
        words_each_side: int = 2,
    ):
        self.web3 = web3
        self.venue_id = address
        self.kind = kind
        self.asset0 = asset0
        self.asset1 = asset1
        self.fee_bps = fee_bps
        self.words_each_side = words_each_side

    def get_state(self) -> VenueState:
        if self.kind == "constant_product":
            return fetch_constant_product_state(self.web3, self.venue_id, self.fee_bps)
        return fetch_concentrated_liquidity_state(self.web3, self.venue_id, self.words_each_side)
