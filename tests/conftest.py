"""
Shared fixtures: a constant-product venue quoting WETH at 2000 USDC and a
concentrated-liquidity venue quoting it at 1800 USDC, listed in opposite
token orders, plus a flash lender holding both assets.
"""

import pytest

from flash_arbitrage import (
    ArbitrageBot,
    ConcentratedLiquidityState,
    ConstantProductState,
    PaperFlashLender,
    PaperVenue,
)
from flash_arbitrage.fixed_point import encode_price_sqrt

E18 = 10**18


@pytest.fixture
def operator():
    return "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"


@pytest.fixture
def make_cl_state():
    """Factory for a single-range concentrated-liquidity state priced at amount1/amount0."""

    def _make(
        venue="external",
        price_amount0=1800,
        price_amount1=1,
        liquidity=1000 * E18,
        lower=-80000,
        upper=-70000,
        fee_bps=5,
    ):
        ticks = {lower: liquidity, upper: -liquidity} if liquidity else {}
        return ConcentratedLiquidityState.at_sqrt_price(
            venue,
            encode_price_sqrt(price_amount1, price_amount0),
            liquidity,
            fee_bps=fee_bps,
            tick_spacing=10,
            ticks=ticks,
        )

    return _make


@pytest.fixture
def cp_state():
    # Listed as WETH/USDC: 1 WETH against 2000 USDC
    return ConstantProductState("aqueduct", reserve0=1 * E18, reserve1=2000 * E18, fee_bps=30)


@pytest.fixture
def cl_state(make_cl_state):
    # Listed as USDC/WETH: 1 WETH per 1800 USDC
    return make_cl_state()


@pytest.fixture
def cp_venue(cp_state):
    return PaperVenue(cp_state, "WETH", "USDC")


@pytest.fixture
def cl_venue(cl_state):
    return PaperVenue(cl_state, "USDC", "WETH")


@pytest.fixture
def lender():
    return PaperFlashLender("flash", {"USDC": 1000 * E18, "WETH": 1000 * E18}, fee_bps=1)


@pytest.fixture
def bot(operator, cp_venue, cl_venue, lender):
    bot = ArbitrageBot(operator)
    bot.configure(operator, cp_venue, cl_venue, lender, reverse_source_tokens=True)
    return bot
