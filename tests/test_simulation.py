"""Tests for the borrowing simulation engine.

Covers config validation, the monthly state machine (borrowing cadence,
interest modes, lump-sum mode, spending step-ups), liquidation, the
run summary and yearly snapshots.
"""

from dataclasses import replace
from datetime import date

import pytest

from curvelend.model.models import PowerLawFit, PricePoint
from curvelend.simulation.engine import BorrowingSimulator, run_simulation
from curvelend.simulation.ledger import LoanLedger
from curvelend.simulation.models import (
    MAX_YEARS,
    BorrowCadence,
    InterestMode,
    LumpSum,
    Recurring,
    Scenario,
    SimulationConfig,
    SpendingStep,
)
from curvelend.simulation.stats import summarize, yearly_snapshots

FIT = PowerLawFit(a=1e-17, b=5.8, r_squared=0.95, sigma=0.5)
START = date(2025, 1, 1)
MONTHLY_RATE = 10.0 / 100 / 12


# ── Helpers ──────────────────────────────────────────────────────────────


def _make_config(**overrides):
    fields = dict(
        holding=10.0,
        monthly_spending=5000.0,
        interest_apr_pct=10.0,
        liquidation_ltv_pct=80.0,
        mode=Recurring(BorrowCadence.MONTHLY),
        interest_mode=InterestMode.CAPITALIZE,
        years=5,
        scenario=Scenario.FAIR,
    )
    fields.update(overrides)
    return SimulationConfig(**fields)


def _run(**overrides):
    return run_simulation(_make_config(**overrides), FIT, START)


# ── Config validation ────────────────────────────────────────────────────


class TestSimulationConfig:

    def test_defaults(self):
        cfg = SimulationConfig(holding=1, monthly_spending=0, interest_apr_pct=0,
                               liquidation_ltv_pct=80)
        assert cfg.borrow_enabled
        assert cfg.mode == Recurring(BorrowCadence.MONTHLY)
        assert cfg.starting_ltv_pct is None
        assert cfg.total_months == 120

    def test_string_tags_coerced(self):
        cfg = _make_config(interest_mode="pay_monthly", scenario="minus1sigma",
                           mode=Recurring("yearly"))
        assert cfg.interest_mode is InterestMode.PAY_MONTHLY
        assert cfg.scenario is Scenario.MINUS_1_SIGMA
        assert cfg.mode.cadence is BorrowCadence.YEARLY

    @pytest.mark.parametrize("field,value", [
        ("holding", -1.0),
        ("monthly_spending", -5.0),
        ("interest_apr_pct", -0.1),
        ("liquidation_ltv_pct", 0.0),
        ("years", -1),
    ])
    def test_rejects_bad_values(self, field, value):
        with pytest.raises(ValueError, match=field):
            _make_config(**{field: value})

    def test_rejects_overlong_horizon(self):
        with pytest.raises(ValueError, match="at most 100"):
            _make_config(years=MAX_YEARS + 1)

    def test_accepts_longest_horizon(self):
        assert _make_config(years=MAX_YEARS).total_months == MAX_YEARS * 12

    def test_rejects_fractional_years(self):
        with pytest.raises(ValueError, match="years"):
            _make_config(years=2.5)

    def test_rejects_unknown_scenario(self):
        with pytest.raises(ValueError):
            _make_config(scenario="moon")

    def test_rejects_unknown_mode(self):
        with pytest.raises(ValueError, match="mode"):
            _make_config(mode="monthly")

    def test_rejects_negative_starting_ltv(self):
        with pytest.raises(ValueError, match="ltv_pct"):
            _make_config(mode=LumpSum(-5.0))

    def test_rejects_bad_step(self):
        with pytest.raises(ValueError, match="start_year"):
            _make_config(spending_steps=(SpendingStep(0, 1000.0),))
        with pytest.raises(ValueError, match="monthly_amount"):
            _make_config(spending_steps=(SpendingStep(2, -1.0),))

    def test_from_flat_rejects_both_modes(self):
        with pytest.raises(ValueError, match="mutually exclusive"):
            SimulationConfig.from_flat(
                holding=1, monthly_spending=5000, interest_apr_pct=10,
                liquidation_ltv_pct=80, starting_ltv_pct=20, borrow_enabled=True,
            )

    def test_from_flat_lump_sum(self):
        cfg = SimulationConfig.from_flat(
            holding=1, monthly_spending=5000, interest_apr_pct=10,
            liquidation_ltv_pct=80, starting_ltv_pct=20, borrow_enabled=False,
            borrow_cadence="yearly",
        )
        assert cfg.mode == LumpSum(20)
        assert not cfg.borrow_enabled
        assert cfg.starting_ltv_pct == 20

    def test_from_flat_neither_mode_borrows_nothing(self):
        cfg = SimulationConfig.from_flat(
            holding=1, monthly_spending=5000, interest_apr_pct=10,
            liquidation_ltv_pct=80, borrow_enabled=False,
        )
        assert cfg.mode == LumpSum(0.0)

    def test_from_flat_rejects_negative_holding(self):
        with pytest.raises(ValueError, match="holding"):
            SimulationConfig.from_flat(
                holding=-0.5, monthly_spending=5000, interest_apr_pct=10,
                liquidation_ltv_pct=80,
            )


class TestSpendingForYear:

    def test_base_without_steps(self):
        assert _make_config().spending_for_year(7) == 5000.0

    def test_latest_applicable_step_wins(self):
        cfg = _make_config(spending_steps=(SpendingStep(5, 9000.0), SpendingStep(2, 8000.0)))
        assert cfg.spending_for_year(1) == 5000.0
        assert cfg.spending_for_year(2) == 8000.0
        assert cfg.spending_for_year(4) == 8000.0
        assert cfg.spending_for_year(5) == 9000.0
        assert cfg.spending_for_year(30) == 9000.0

    def test_tie_resolves_to_last_listed(self):
        cfg = _make_config(spending_steps=(SpendingStep(3, 7000.0), SpendingStep(3, 7500.0)))
        assert cfg.spending_for_year(3) == 7500.0


# ── Monthly borrowing ────────────────────────────────────────────────────


class TestMonthlyBorrowing:

    def test_month_zero_untouched(self):
        step = _run().steps[0]
        assert step.loan_balance == 0.0
        assert step.borrowed == 0.0
        assert step.interest_incurred == 0.0
        assert step.ltv == 0.0

    def test_month_one_borrows_spending(self):
        step = _run().steps[1]
        assert step.borrowed == 5000.0
        # Interest on the freshly borrowed amount capitalises the same month
        assert step.loan_balance == pytest.approx(5000.0 * (1 + MONTHLY_RATE))

    def test_interest_capitalises(self):
        steps = _run().steps
        assert steps[2].loan_balance > 10_000.0
        expected = (5000.0 * (1 + MONTHLY_RATE) + 5000.0) * (1 + MONTHLY_RATE)
        assert steps[2].loan_balance == pytest.approx(expected)

    def test_full_horizon(self):
        result = _run()
        assert len(result.steps) == 61
        assert [s.month for s in result.steps] == list(range(61))
        assert result.steps[13].year == 1
        assert not result.summary.liquidated

    def test_total_borrowed(self):
        result = _run()
        assert result.summary.total_borrowed == pytest.approx(5000.0 * (len(result.steps) - 1))

    def test_net_equity(self):
        for step in _run().steps:
            assert step.net_equity == pytest.approx(step.collateral_value - step.loan_balance)

    def test_ltv_is_ratio(self):
        for step in _run().steps[1:]:
            assert step.ltv == pytest.approx(step.loan_balance / step.collateral_value)

    def test_collateral_scales_with_holding(self):
        base = _run().steps[3]
        double = _run(holding=20.0).steps[3]
        assert double.collateral_value == pytest.approx(2 * base.collateral_value)


class TestPayMonthlyInterest:

    def test_balance_not_capitalised(self):
        result = _run(interest_mode=InterestMode.PAY_MONTHLY)
        assert result.steps[2].loan_balance == 10_000.0
        assert result.summary.total_interest_paid > 0
        assert result.summary.total_interest_capitalized == 0.0

    def test_interest_paid_per_month(self):
        steps = _run(interest_mode=InterestMode.PAY_MONTHLY).steps
        assert steps[0].interest_paid == 0.0
        assert steps[1].interest_paid == pytest.approx(5000.0 * MONTHLY_RATE)
        assert steps[2].interest_paid == pytest.approx(10_000.0 * MONTHLY_RATE)

    def test_total_interest_paid_sums_steps(self):
        result = _run(interest_mode=InterestMode.PAY_MONTHLY)
        assert result.summary.total_interest_paid == pytest.approx(
            sum(s.interest_paid for s in result.steps)
        )

    def test_capitalise_mode_pays_nothing(self):
        result = _run()
        assert all(s.interest_paid == 0.0 for s in result.steps)
        assert result.summary.total_interest_paid == 0.0
        assert result.summary.total_interest_capitalized > 0


class TestYearlyBorrowing:

    def _result(self, **overrides):
        return _run(mode=Recurring(BorrowCadence.YEARLY), **overrides)

    def test_borrows_only_on_year_boundaries(self):
        for step in self._result().steps:
            if step.month > 0 and step.month % 12 == 0:
                assert step.borrowed == 60_000.0
            else:
                assert step.borrowed == 0.0

    def test_total_borrowed(self):
        assert self._result().summary.total_borrowed == 5 * 60_000.0

    def test_ltv_jumps_at_year_boundary(self):
        steps = self._result().steps
        assert steps[12].ltv > steps[11].ltv
        assert steps[11].loan_balance == 0.0

    def test_interest_still_monthly(self):
        steps = self._result().steps
        assert steps[13].loan_balance == pytest.approx(steps[12].loan_balance * (1 + MONTHLY_RATE))

    def test_step_up_scales_yearly_draw(self):
        steps = self._result(spending_steps=(SpendingStep(3, 8000.0),)).steps
        assert steps[12].borrowed == 60_000.0
        assert steps[24].borrowed == 96_000.0
        assert steps[36].borrowed == 96_000.0


class TestSpendingStepUps:

    def test_monthly_step_up(self):
        steps = _run(spending_steps=(SpendingStep(2, 8000.0),)).steps
        assert steps[11].borrowed == 5000.0
        assert steps[12].borrowed == 8000.0
        assert steps[60].borrowed == 8000.0

    def test_multiple_steps(self):
        steps = _run(spending_steps=(SpendingStep(2, 6000.0), SpendingStep(4, 7000.0))).steps
        assert steps[23].borrowed == 6000.0
        assert steps[35].borrowed == 6000.0
        assert steps[36].borrowed == 7000.0


class TestLumpSumMode:

    def test_initial_loan_at_starting_ltv(self):
        result = _run(mode=LumpSum(20.0))
        first = result.steps[0]
        assert first.ltv == pytest.approx(0.2)
        assert first.loan_balance == pytest.approx(first.collateral_value * 0.2)
        assert result.summary.total_borrowed == pytest.approx(first.loan_balance)

    def test_never_borrows_again(self):
        result = _run(mode=LumpSum(20.0))
        assert all(s.borrowed == 0.0 for s in result.steps)

    def test_cadence_field_inert(self):
        cfg = SimulationConfig.from_flat(
            holding=1, monthly_spending=5000, interest_apr_pct=10,
            liquidation_ltv_pct=80, starting_ltv_pct=20, borrow_enabled=False,
            borrow_cadence="yearly", years=3,
        )
        result = run_simulation(cfg, FIT, START)
        assert all(s.borrowed == 0.0 for s in result.steps)

    def test_interest_grows_lump_sum(self):
        steps = _run(mode=LumpSum(20.0)).steps
        assert steps[1].loan_balance == pytest.approx(steps[0].loan_balance * (1 + MONTHLY_RATE))

    def test_zero_ltv_borrows_nothing(self):
        result = _run(mode=LumpSum(0.0))
        assert all(s.loan_balance == 0.0 for s in result.steps)
        assert result.summary.total_borrowed == 0.0


# ── Liquidation ──────────────────────────────────────────────────────────


class TestLiquidation:

    def test_extreme_bear_liquidates(self):
        result = _run(scenario=Scenario.MINUS_2_SIGMA, liquidation_ltv_pct=30.0, years=20)
        assert result.summary.liquidated
        assert result.summary.liquidation_month is not None
        assert len(result.steps) < 20 * 12 + 1

    def test_liquidated_step_is_last(self):
        result = _run(scenario=Scenario.MINUS_2_SIGMA, liquidation_ltv_pct=30.0, years=20)
        flags = [s.liquidated for s in result.steps]
        assert flags[-1] is True
        assert flags.index(True) == len(flags) - 1
        assert result.steps[-1].month == result.summary.liquidation_month
        assert result.summary.months_until_liquidation == result.summary.liquidation_month

    def test_liquidation_at_threshold(self):
        result = _run(scenario=Scenario.MINUS_2_SIGMA, liquidation_ltv_pct=30.0, years=20)
        last = result.steps[-1]
        assert last.ltv >= 0.30
        assert all(s.ltv < 0.30 for s in result.steps[:-1])

    def test_final_figures_null_when_liquidated(self):
        s = _run(scenario=Scenario.MINUS_2_SIGMA, liquidation_ltv_pct=30.0, years=20).summary
        assert s.final_collateral_value is None
        assert s.final_loan_balance is None
        assert s.final_ltv is None
        assert s.final_net_equity is None

    def test_lump_sum_above_threshold_liquidates_at_month_zero(self):
        result = _run(mode=LumpSum(85.0))
        assert len(result.steps) == 1
        assert result.summary.liquidation_month == 0

    def test_worthless_collateral_never_liquidates(self):
        result = run_simulation(_make_config(), PowerLawFit.empty(), START)
        assert all(s.ltv == 0.0 for s in result.steps)
        assert not result.summary.liquidated


# ── Summary & snapshots ──────────────────────────────────────────────────


class TestSummary:

    def test_first_and_last(self):
        result = _run()
        s = result.summary
        first, last = result.steps[0], result.steps[-1]
        assert s.initial_collateral_value == first.collateral_value
        assert s.initial_loan_balance == 0.0
        assert s.initial_net_equity == first.net_equity
        assert s.final_collateral_value == last.collateral_value
        assert s.final_loan_balance == last.loan_balance
        assert s.final_ltv == last.ltv
        assert s.final_net_equity == last.net_equity
        assert s.liquidation_month is None

    def test_empty_steps_rejected(self):
        with pytest.raises(ValueError):
            summarize([], LoanLedger(10.0, InterestMode.CAPITALIZE, 80.0))


class TestYearlySnapshots:

    def test_full_run(self):
        months = [s.month for s in yearly_snapshots(_run().steps)]
        assert months == [0, 12, 24, 36, 48, 60]

    def test_early_stop_appends_last(self):
        steps = _run(scenario=Scenario.MINUS_2_SIGMA, liquidation_ltv_pct=30.0, years=20).steps
        snaps = yearly_snapshots(steps)
        assert snaps[0].month == 0
        assert snaps[-1] is steps[-1]

    def test_single_step(self):
        steps = _run(years=0).steps
        assert yearly_snapshots(steps) == steps

    def test_empty(self):
        assert yearly_snapshots([]) == []


# ── Price path wiring ────────────────────────────────────────────────────


class TestHistoricalPrices:

    def test_without_history_all_projected(self):
        assert all(s.is_projection for s in _run().steps)

    def test_history_spliced_in(self):
        history = [PricePoint.on(date(2024, m, 15), 40_000.0 + 1000 * m) for m in range(1, 13)]
        sim = BorrowingSimulator(_make_config(years=2), FIT)
        result = sim.run(date(2024, 1, 1), history, today=date(2024, 12, 20))
        assert [s.is_projection for s in result.steps[:12]] == [False] * 12
        assert all(s.is_projection for s in result.steps[12:])
        assert result.steps[0].price == 41_000.0
        assert result.steps[0].collateral_value == 410_000.0

    def test_empty_history_same_as_none(self):
        a = run_simulation(_make_config(), FIT, START, history=[])
        b = run_simulation(_make_config(), FIT, START)
        assert a.steps == b.steps

    def test_start_from_config(self):
        cfg = _make_config(start_date=date(2026, 3, 1))
        result = run_simulation(cfg, FIT)
        assert result.steps[0].date == date(2026, 3, 1)

    def test_missing_start_rejected(self):
        with pytest.raises(ValueError, match="start"):
            run_simulation(_make_config(), FIT)

    def test_deterministic(self):
        assert _run().steps == _run().steps

    def test_result_keeps_config(self):
        cfg = _make_config()
        assert run_simulation(cfg, FIT, START).config is cfg

    def test_config_not_mutated(self):
        cfg = _make_config(mode=LumpSum(20.0))
        before = replace(cfg)
        run_simulation(cfg, FIT, START)
        assert cfg == before
