"""
Tests for atomic execution: every aborted attempt must leave the venues, the
lender and custody exactly as they were.
"""

import threading
from dataclasses import replace

import pytest
from prometheus_client import CollectorRegistry

from flash_arbitrage import (
    ArbitrageBot,
    BelowMinimumProfit,
    ConfigurationError,
    ConstantProductState,
    ExecutionJournal,
    ExecutionState,
    LoanUnavailable,
    NoProfitableTrade,
    PaperFlashLender,
    PaperVenue,
    RepaymentShortfall,
    SlippageExceeded,
    SwapDirection,
)
from flash_arbitrage.metrics import ArbitrageMetrics

E18 = 10**18


class ExplodingVenue(PaperVenue):
    """Mutates its state, then fails mid-swap."""

    def swap(self, amount_in, direction):
        super().swap(amount_in, direction)
        raise RuntimeError("venue reverted")


def _snapshot(bot, *participants):
    return [p.get_state() if hasattr(p, "get_state") else p.snapshot() for p in participants] + [
        bot.balances()
    ]


class TestSettlement:
    def test_settles_predicted_trade(self, bot, cp_venue, cl_venue, lender, cp_state, cl_state):
        plan = bot.solve()
        result = bot.solve_and_execute()

        assert result == plan
        assert bot.state is ExecutionState.SETTLED
        assert bot.custody.balance_of("WETH") == result.balance_change1
        assert bot.custody.balance_of("USDC") == 0

        assert lender.available("WETH") == 1000 * E18 + result.loan_premium
        assert lender.available("USDC") == 1000 * E18
        assert lender.outstanding("WETH") == 0

        source_after = cp_venue.get_state()
        assert source_after.reserve0 == cp_state.reserve0 + result.swap_amount
        assert source_after.reserve1 == cp_state.reserve1 - result.leg1_amount_out
        assert cl_venue.get_state().sqrt_price_x96 < cl_state.sqrt_price_x96

    def test_conservation(self, bot, lender):
        result = bot.solve_and_execute()
        # Whatever leg 2 returned went to the lender or stayed in custody
        assert result.leg2_amount_out == result.swap_amount + result.loan_premium + bot.custody.balance_of("WETH")

    def test_settlement_listener_called_once(self, bot):
        received = []
        bot.add_settlement_listener(received.append)

        result = bot.solve_and_execute()

        assert received == [result]

    def test_settlement_logged(self, bot, caplog):
        with caplog.at_level("INFO", logger="flash_arbitrage"):
            bot.solve_and_execute()
        assert "SETTLEMENT:" in caplog.text

    def test_metrics_recorded(self, operator, cp_venue, cl_venue, lender):
        registry = CollectorRegistry()
        bot = ArbitrageBot(operator, metrics=ArbitrageMetrics(registry))
        bot.configure(operator, cp_venue, cl_venue, lender, reverse_source_tokens=True)

        result = bot.solve_and_execute()

        assert registry.get_sample_value("flash_arbitrage_attempts_total") == 1.0
        assert (
            registry.get_sample_value(
                "flash_arbitrage_settlements_total", {"direction": "one_for_zero"}
            )
            == 1.0
        )
        assert registry.get_sample_value(
            "flash_arbitrage_realized_profit_total", {"asset": "WETH"}
        ) == float(result.balance_change1)

    def test_concurrent_calls_conserve_balances(self, bot, lender):
        settled = []

        def worker():
            try:
                settled.append(bot.solve_and_execute())
            except NoProfitableTrade:
                pass

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert settled
        assert bot.custody.balance_of("WETH") == sum(r.balance_change1 for r in settled)
        assert lender.available("WETH") == 1000 * E18 + sum(r.loan_premium for r in settled)


class TestRollback:
    def test_loan_unavailable(self, bot, cp_venue, cl_venue, lender):
        plan = bot.solve()
        before = _snapshot(bot, cp_venue, cl_venue, lender)

        with pytest.raises(LoanUnavailable) as exc_info:
            bot.orchestrator.execute(replace(plan, swap_amount=2000 * E18))

        assert exc_info.value.state is ExecutionState.IDLE
        assert exc_info.value.requested == 2000 * E18
        assert bot.state is ExecutionState.ABORTED
        assert _snapshot(bot, cp_venue, cl_venue, lender) == before

    def test_lender_without_asset(self, bot, operator, cp_venue, cl_venue):
        plan = bot.solve()
        dry = PaperFlashLender("dry", {"USDC": 1000 * E18})
        bot.configuration.set_flash_venue(operator, dry)
        before = _snapshot(bot, cp_venue, cl_venue, dry)

        with pytest.raises(LoanUnavailable):
            bot.orchestrator.execute(plan)

        assert _snapshot(bot, cp_venue, cl_venue, dry) == before

    def test_slippage_exceeded(self, bot, cp_venue, cl_venue, lender):
        plan = bot.solve()
        # Someone else sells WETH on the source venue first
        cp_venue.swap(E18 // 100, SwapDirection.ZERO_FOR_ONE)
        before = _snapshot(bot, cp_venue, cl_venue, lender)

        with pytest.raises(SlippageExceeded) as exc_info:
            bot.orchestrator.execute(plan)

        assert exc_info.value.state is ExecutionState.BORROWED
        assert exc_info.value.expected == plan.leg1_amount_out
        assert exc_info.value.actual < plan.leg1_amount_out
        assert _snapshot(bot, cp_venue, cl_venue, lender) == before

    def test_slippage_tolerance(self, bot, operator, cp_venue):
        bot.configuration.set_max_slippage_bps(operator, 500)
        plan = bot.solve()
        cp_venue.swap(10**14, SwapDirection.ZERO_FOR_ONE)

        result = bot.orchestrator.execute(plan)

        assert result.leg1_amount_out < plan.leg1_amount_out
        assert bot.state is ExecutionState.SETTLED

    def test_repayment_shortfall(self, bot, operator, cp_venue, cl_venue, lender):
        bot.configuration.set_max_slippage_bps(operator, 10000)
        plan = bot.solve()
        # A large sale closes the gap between the venues
        cp_venue.swap(E18 // 2, SwapDirection.ZERO_FOR_ONE)
        before = _snapshot(bot, cp_venue, cl_venue, lender)

        with pytest.raises(RepaymentShortfall) as exc_info:
            bot.orchestrator.execute(plan)

        assert exc_info.value.state is ExecutionState.LEG2_DONE
        assert exc_info.value.available < exc_info.value.owed
        assert _snapshot(bot, cp_venue, cl_venue, lender) == before

    def test_below_minimum_profit(self, bot, operator, cp_venue, cl_venue, lender):
        bot.configuration.set_min_profit(operator, 0, 10**30)
        plan = bot.solve()
        before = _snapshot(bot, cp_venue, cl_venue, lender)

        with pytest.raises(BelowMinimumProfit) as exc_info:
            bot.solve_and_execute()

        error = exc_info.value
        assert error.state is ExecutionState.REPAID
        assert error.asset == "WETH"
        assert error.threshold == 10**30
        assert error.actual == plan.profit
        assert _snapshot(bot, cp_venue, cl_venue, lender) == before

    def test_minimum_applies_to_other_asset(self, bot, operator):
        bot.configuration.set_min_profit(operator, 1, 0)

        with pytest.raises(BelowMinimumProfit) as exc_info:
            bot.solve_and_execute()

        assert exc_info.value.asset == "USDC"
        assert exc_info.value.actual == 0

    def test_unexpected_venue_failure(self, operator, cp_venue, cl_state, lender):
        registry = CollectorRegistry()
        bot = ArbitrageBot(operator, metrics=ArbitrageMetrics(registry))
        destination = ExplodingVenue(cl_state, "USDC", "WETH")
        bot.configure(operator, cp_venue, destination, lender, reverse_source_tokens=True)
        before = _snapshot(bot, cp_venue, destination, lender)

        with pytest.raises(RuntimeError, match="venue reverted"):
            bot.solve_and_execute()

        assert destination.get_state() == cl_state
        assert bot.state is ExecutionState.ABORTED
        assert _snapshot(bot, cp_venue, destination, lender) == before
        assert registry.get_sample_value("flash_arbitrage_aborts_total", {"reason": "RuntimeError"}) == 1.0

    def test_listener_not_called_on_abort(self, bot, operator):
        received = []
        bot.add_settlement_listener(received.append)
        bot.configuration.set_min_profit(operator, 0, 10**30)

        with pytest.raises(BelowMinimumProfit):
            bot.solve_and_execute()

        assert received == []


class TestNoTrade:
    def test_no_profitable_trade_leaves_state_untouched(self, operator, make_cl_state, lender):
        source = PaperVenue(
            ConstantProductState("flat", reserve0=1000 * E18, reserve1=1000 * E18), "USDC", "WETH"
        )
        destination = PaperVenue(
            make_cl_state(price_amount0=1, price_amount1=1, lower=-1000, upper=1000), "USDC", "WETH"
        )
        bot = ArbitrageBot(operator)
        bot.configure(operator, source, destination, lender)
        lender_before = lender.snapshot()

        with pytest.raises(NoProfitableTrade):
            bot.solve_and_execute()

        assert bot.state is ExecutionState.IDLE
        assert lender.snapshot() == lender_before
        assert bot.balances() == {}

    def test_incomplete_configuration(self, operator):
        with pytest.raises(ConfigurationError):
            ArbitrageBot(operator).solve_and_execute()

    def test_mismatched_asset_order(self, operator, cp_venue, cl_venue, lender):
        bot = ArbitrageBot(operator)
        bot.configure(operator, cp_venue, cl_venue, lender, reverse_source_tokens=False)
        with pytest.raises(ConfigurationError):
            bot.solve_and_execute()


class TestExecutionJournal:
    class Participant:
        def __init__(self, name, log):
            self.name = name
            self.value = 0
            self.log = log

        def snapshot(self):
            return self.value

        def restore(self, token):
            self.log.append(self.name)
            self.value = token

    def test_records_each_participant_once(self):
        journal = ExecutionJournal()
        participant = self.Participant("a", [])
        journal.record(participant)
        participant.value = 5
        journal.record(participant)

        assert len(journal) == 1
        journal.rollback()
        assert participant.value == 0
        assert len(journal) == 0

    def test_rollback_in_reverse_order(self):
        log = []
        journal = ExecutionJournal()
        first, second = self.Participant("first", log), self.Participant("second", log)
        journal.record(first)
        journal.record(second)
        first.value = second.value = 7

        journal.rollback()

        assert log == ["second", "first"]
        assert first.value == second.value == 0

    def test_commit_discards_snapshots(self):
        journal = ExecutionJournal()
        participant = self.Participant("a", [])
        journal.record(participant)
        participant.value = 3

        journal.commit()
        journal.rollback()

        assert participant.value == 3
