"""
Tests for optimal trade sizing.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from flash_arbitrage.solver import NEG_INF, OptimalSizeSolver
from flash_arbitrage.types import ConstantProductState, SwapDirection

E18 = 10**18

ZFO = SwapDirection.ZERO_FOR_ONE
OFZ = SwapDirection.ONE_FOR_ZERO


@pytest.fixture
def solver():
    return OptimalSizeSolver()


@pytest.fixture
def premium(lender):
    return lender.premium_for


def _scenario_solve(solver, cp_state, cl_state, premium, max_input=1000 * E18):
    return solver.solve(cp_state, cl_state, max_input, reverse_source=True, loan_premium=premium)


class TestScenario:
    def test_finds_one_for_zero_trade(self, solver, cp_state, cl_state, premium):
        result = _scenario_solve(solver, cp_state, cl_state, premium)

        assert result is not None
        assert result.direction is OFZ
        assert not result.zero_for_one
        # Borrow WETH, sell it where it is dear, buy it back where it is cheap
        assert result.balance_change0 == 0
        assert result.balance_change1 > 10**15
        assert result.profit == result.balance_change1
        assert 4 * 10**16 < result.swap_amount < 65 * 10**15
        assert result.source_venue == "aqueduct"
        assert result.destination_venue == "external"
        assert result.loan_premium == premium(result.swap_amount)
        assert result.leg2_amount_out == result.swap_amount + result.loan_premium + result.profit

    def test_neighbours_are_not_better(self, solver, cp_state, cl_state, premium):
        result = _scenario_solve(solver, cp_state, cl_state, premium)
        best = result.swap_amount

        def profit(amount):
            return solver.profit(cp_state, cl_state, amount, OFZ, True, premium)

        assert profit(best) == result.profit
        assert profit(best - 1) <= result.profit
        assert profit(best + 1) <= result.profit
        for delta in (best // 1000, best // 100):
            assert profit(best - delta) < result.profit
            assert profit(best + delta) < result.profit

    def test_solve_is_deterministic(self, solver, cp_state, cl_state, premium):
        first = _scenario_solve(solver, cp_state, cl_state, premium)
        second = _scenario_solve(solver, cp_state, cl_state, premium)
        assert first == second

    def test_max_input_caps_size(self, solver, cp_state, cl_state, premium):
        result = _scenario_solve(solver, cp_state, cl_state, premium, max_input=10**16)
        # Profit still rises at the cap, up to rounding noise in the last units
        assert 10**16 - 1000 <= result.swap_amount <= 10**16
        assert result.profit > 0

    def test_per_direction_limits(self, solver, cp_state, cl_state, premium):
        limits = {ZFO: 1000 * E18, OFZ: 0}
        assert solver.solve(cp_state, cl_state, limits, reverse_source=True, loan_premium=premium) is None

    def test_reverse_flag_matches_reordered_source(self, solver, cp_state, cl_state, premium):
        reordered = ConstantProductState(
            "aqueduct", reserve0=cp_state.reserve1, reserve1=cp_state.reserve0, fee_bps=30
        )
        flagged = _scenario_solve(solver, cp_state, cl_state, premium)
        plain = solver.solve(reordered, cl_state, 1000 * E18, reverse_source=False, loan_premium=premium)
        assert plain == flagged

    def test_tolerates_liquidity_exhaustion(self, solver, cp_state, make_cl_state, premium):
        narrow = make_cl_state(lower=-75100, upper=-74800)

        assert solver.profit(cp_state, narrow, E18, OFZ, True, premium) == NEG_INF

        result = _scenario_solve(solver, cp_state, narrow, premium)
        assert result is not None
        assert result.direction is OFZ
        assert 3 * 10**16 < result.swap_amount < 65 * 10**15
        assert solver.profit(cp_state, narrow, result.swap_amount + 1, OFZ, True, premium) <= result.profit


class TestNoTrade:
    def test_equal_prices(self, solver, make_cl_state):
        source = ConstantProductState("flat", reserve0=1000 * E18, reserve1=1000 * E18, fee_bps=30)
        destination = make_cl_state(price_amount0=1, price_amount1=1, lower=-1000, upper=1000)
        assert solver.solve(source, destination, 1000 * E18) is None

    def test_empty_destination(self, solver, cp_state, make_cl_state, premium):
        empty = make_cl_state(liquidity=0)
        assert _scenario_solve(solver, cp_state, empty, premium) is None

    def test_zero_max_input(self, solver, cp_state, cl_state, premium):
        assert _scenario_solve(solver, cp_state, cl_state, premium, max_input=0) is None

    def test_premium_larger_than_gap(self, solver, cp_state, cl_state):
        assert solver.solve(cp_state, cl_state, 1000 * E18, True, lambda amount: amount) is None


class TestDirections:
    def test_only_one_direction_pays(self, solver, cp_state, cl_state, premium):
        assert solver.solve_direction(cp_state, cl_state, ZFO, 1000 * E18, True, premium) is None
        assert solver.solve_direction(cp_state, cl_state, OFZ, 1000 * E18, True, premium) is not None

    @given(
        reserves=st.lists(st.integers(min_value=10**6, max_value=10**12), min_size=4, max_size=4),
        fees=st.lists(st.integers(min_value=0, max_value=100), min_size=2, max_size=2),
    )
    @settings(max_examples=30, deadline=None)
    def test_directions_never_both_profitable(self, reserves, fees):
        solver = OptimalSizeSolver()
        source = ConstantProductState("a", reserve0=reserves[0], reserve1=reserves[1], fee_bps=fees[0])
        destination = ConstantProductState("b", reserve0=reserves[2], reserve1=reserves[3], fee_bps=fees[1])

        results = [solver.solve_direction(source, destination, d, 10**6) for d in (ZFO, OFZ)]

        assert None in results
        assert solver.solve(source, destination, 10**6) == next((r for r in results if r is not None), None)


class TestEvaluate:
    def test_zero_amount(self, solver, cp_state, cl_state):
        result = solver.evaluate(cp_state, cl_state, 0, OFZ, reverse_source=True)
        assert result.profit == 0
        assert result.leg1_amount_out == 0

    def test_losing_direction_is_negative(self, solver, cp_state, cl_state, premium):
        result = solver.evaluate(cp_state, cl_state, 10**21, ZFO, True, premium)
        assert result.profit < 0
        assert result.balance_change0 == result.profit
        assert result.balance_change1 == 0


class TestAgainstExhaustiveSearch:
    def test_matches_brute_force(self, solver):
        source = ConstantProductState("a", reserve0=100_000, reserve1=110_000, fee_bps=30)
        destination = ConstantProductState("b", reserve0=100_000, reserve1=100_000, fee_bps=30)
        max_input = 20_000

        result = solver.solve(source, destination, max_input)
        brute = max(solver.profit(source, destination, x, ZFO) for x in range(1, max_input + 1))

        assert result is not None
        assert result.direction is ZFO
        assert result.profit > 0
        # Integer rounding makes profit only approximately concave
        assert brute - result.profit <= 8
