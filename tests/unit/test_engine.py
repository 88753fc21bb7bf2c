"""Unit tests for scenario generation, ranking, and verdicts"""

import math
import pytest
from refi_gateway.domain.scenarios import (
    full_term_months,
    generate_scenarios,
    resolve_horizon,
    term_reset_warning,
)
from refi_gateway.domain.verdict import determine_color, rank_scenarios, run_engine


def scenario(output, scenario_id):
    return next((s for s in output.scenarios if s.id == scenario_id), None)


def test_clear_win_with_large_rate_drop(make_input):
    """$300k at 7.5% with 25 years left refinances into a green verdict"""
    output = run_engine(
        make_input(remaining_balance=300_000, current_annual_rate=0.075, years_remaining=25, closing_costs=6_000)
    )

    assert output.verdict.color == "green"
    assert output.verdict.net_savings > 2_000
    assert output.verdict.break_even_months < 24
    assert output.verdict.best_scenario_id != "stay_current"
    assert len(output.scenarios) == 4


def test_all_rates_at_or_above_current_stays_put(make_input):
    output = run_engine(
        make_input(
            remaining_balance=250_000,
            current_annual_rate=0.05,
            years_remaining=22,
            closing_costs=5_000,
            refi_rate_same_term=0.055,
            refi_rate_15yr=0.05,
            refi_rate_30yr=0.06,
        )
    )

    assert [s.id for s in output.scenarios] == ["stay_current"]
    assert output.verdict.color == "red"
    assert output.verdict.best_scenario_id == "stay_current"
    assert "Stay" in output.verdict.label
    assert output.verdict.net_savings == 0
    assert output.verdict.break_even_months is None
    assert output.scenarios[0].is_best_long_term is True


def test_fifteen_year_opportunity(make_input):
    output = run_engine(
        make_input(
            remaining_balance=400_000,
            current_annual_rate=0.07,
            years_remaining=28,
            closing_costs=8_000,
            refi_rate_same_term=0.055,
            refi_rate_15yr=0.0475,
            refi_rate_30yr=0.0575,
        )
    )

    sc15 = scenario(output, "refi_15yr")
    assert sc15 is not None
    assert sc15.remaining_balance_at_horizon == 0
    assert output.verdict.color == "green"


def test_term_reset_trap_with_ten_years_left(make_input):
    output = run_engine(
        make_input(
            remaining_balance=350_000,
            current_annual_rate=0.0675,
            years_remaining=10,
            closing_costs=7_000,
            refi_rate_same_term=0.055,
            refi_rate_15yr=0.05,
            refi_rate_30yr=0.06,
        )
    )

    sc30 = scenario(output, "refi_30yr")
    assert sc30 is not None
    assert sc30.remaining_balance_at_horizon > 200_000
    assert any(w.startswith("Term Reset Trap") for w in sc30.warnings)
    assert scenario(output, "refi_15yr") is None


def test_nearly_paid_off_loan_stays_current(make_input):
    output = run_engine(
        make_input(
            remaining_balance=50_000,
            current_annual_rate=0.06,
            years_remaining=5,
            closing_costs=3_000,
            refi_rate_same_term=0.055,
            refi_rate_15yr=0.05,
            refi_rate_30yr=0.06,
        )
    )

    assert scenario(output, "refi_15yr") is None
    assert scenario(output, "refi_30yr") is None
    assert output.verdict.color == "red"


def test_large_balance(make_input):
    output = run_engine(
        make_input(remaining_balance=900_000, current_annual_rate=0.0725, years_remaining=28, closing_costs=18_000)
    )

    assert output.verdict.color == "green"
    assert output.verdict.net_savings > 50_000
    assert len(output.scenarios) == 4


@pytest.mark.parametrize("years, expected", [(15, False), (16, True)])
def test_fifteen_year_scenario_threshold(make_input, years, expected):
    """15yr option only appears with more than 15 years remaining"""
    output = run_engine(
        make_input(
            remaining_balance=300_000,
            current_annual_rate=0.07,
            years_remaining=years,
            closing_costs=6_000,
            refi_rate_same_term=0.06,
            refi_rate_15yr=0.055,
            refi_rate_30yr=0.065,
        )
    )

    sc15 = scenario(output, "refi_15yr")
    assert (sc15 is not None) is expected
    if expected:
        assert sc15.remaining_balance_at_horizon == 0


def test_zero_closing_costs_break_even_instantly(make_input):
    output = run_engine(
        make_input(
            remaining_balance=200_000,
            current_annual_rate=0.07,
            years_remaining=20,
            closing_costs=0,
            refi_rate_same_term=0.06,
            refi_rate_15yr=0.055,
            refi_rate_30yr=0.065,
        )
    )

    winner = next(s for s in output.scenarios if s.is_best_long_term)
    assert winner.id != "stay_current"
    assert winner.interest_break_even_months == 0
    assert winner.annualized_return == math.inf
    assert output.verdict.break_even_months == 0
    assert output.verdict.color == "green"


def test_one_year_left_stays_current(make_input):
    output = run_engine(
        make_input(
            remaining_balance=20_000,
            current_annual_rate=0.06,
            years_remaining=1,
            closing_costs=2_000,
            refi_rate_same_term=0.05,
            refi_rate_15yr=0.045,
            refi_rate_30yr=0.055,
        )
    )

    assert scenario(output, "refi_15yr") is None
    assert output.verdict.color == "red"
    assert output.verdict.best_scenario_id == "stay_current"


def test_fifteen_year_loan_paid_off_before_horizon(make_input):
    output = run_engine(
        make_input(
            remaining_balance=300_000,
            current_annual_rate=0.075,
            years_remaining=25,
            closing_costs=6_000,
            refi_rate_same_term=0.06,
            refi_rate_15yr=0.0525,
            refi_rate_30yr=0.065,
        )
    )

    sc15 = scenario(output, "refi_15yr")
    assert sc15.term_months == 180
    assert sc15.remaining_balance_at_horizon == 0
    assert sc15.interest_within_horizon > 0
    assert sc15.payments_within_horizon == pytest.approx(sc15.monthly_payment * 180, abs=0.01)


def test_thirty_year_reset_balance_and_cost_identities(make_input):
    output = run_engine(
        make_input(
            remaining_balance=250_000,
            current_annual_rate=0.065,
            years_remaining=20,
            closing_costs=5_000,
            refi_rate_same_term=0.055,
            refi_rate_15yr=0.05,
            refi_rate_30yr=0.06,
        )
    )

    sc30 = scenario(output, "refi_30yr")
    assert 100_000 < sc30.remaining_balance_at_horizon < 200_000
    assert sc30.warnings[0].startswith("Term Reset Trap")

    for s in output.scenarios:
        assert s.cash_outflow_within_horizon == s.fees + s.payments_within_horizon
        assert s.net_cost_at_horizon == s.cash_outflow_within_horizon + s.remaining_balance_at_horizon


def test_large_numbers_stay_finite(make_input):
    output = run_engine(
        make_input(
            remaining_balance=2_000_000,
            current_annual_rate=0.08,
            years_remaining=30,
            closing_costs=40_000,
            refi_rate_same_term=0.065,
            refi_rate_15yr=0.06,
            refi_rate_30yr=0.07,
        )
    )

    assert len(output.scenarios) == 4
    assert output.horizon_months == 360
    for s in output.scenarios:
        assert math.isfinite(s.monthly_payment)
        assert math.isfinite(s.net_cost_at_horizon)
        assert math.isfinite(s.interest_within_horizon)


def test_baseline_has_no_fees_and_zero_balance_at_full_term(make_input):
    output = run_engine(
        make_input(remaining_balance=300_000, current_annual_rate=0.075, years_remaining=25, closing_costs=6_000)
    )

    baseline = scenario(output, "stay_current")
    assert baseline.fees == 0
    assert baseline.monthly_delta == 0
    assert baseline.remaining_balance_at_horizon == 0
    assert baseline.net_savings_at_horizon == 0
    assert baseline.annualized_return is None


def test_exactly_one_winner(make_input):
    output = run_engine(
        make_input(remaining_balance=300_000, current_annual_rate=0.075, years_remaining=25, closing_costs=6_000)
    )
    assert sum(1 for s in output.scenarios if s.is_best_long_term) == 1
    assert next(s for s in output.scenarios if s.is_best_long_term).id == output.verdict.best_scenario_id


def test_winner_with_higher_payment_gets_single_warning(make_input):
    """15yr wins here and its payment is above the current one"""
    output = run_engine(
        make_input(remaining_balance=300_000, current_annual_rate=0.075, years_remaining=25, closing_costs=6_000)
    )

    winner = scenario(output, output.verdict.best_scenario_id)
    assert winner.id == "refi_15yr"
    assert winner.monthly_delta > 0
    increase_warnings = [w for w in winner.warnings if w.startswith("Payment Increase Warning")]
    assert len(increase_warnings) == 1


def test_ranking_is_by_net_cost(make_input):
    output = run_engine(
        make_input(remaining_balance=300_000, current_annual_rate=0.075, years_remaining=25, closing_costs=6_000)
    )
    ranked = rank_scenarios(output.scenarios)
    costs = [s.net_cost_at_horizon for s in ranked]
    assert costs == sorted(costs)
    assert ranked[0].id == output.verdict.best_scenario_id


def test_short_horizon_turns_trap_into_tradeoff(make_input):
    """Selling after five years: the 30yr balance is a tradeoff, not a trap"""
    engine_input = make_input(
        remaining_balance=300_000,
        current_annual_rate=0.075,
        years_remaining=25,
        closing_costs=6_000,
        horizon_override_months=60,
    )
    output = run_engine(engine_input)

    assert output.horizon_months == 60
    sc30 = scenario(output, "refi_30yr")
    assert any(w.startswith("Term Reset Tradeoff") for w in sc30.warnings)
    assert not any(w.startswith("Term Reset Trap") for w in sc30.warnings)
    assert scenario(output, "stay_current").remaining_balance_at_horizon > 0


def test_non_positive_horizon_override_ignored(make_input):
    engine_input = make_input(
        remaining_balance=300_000,
        current_annual_rate=0.075,
        years_remaining=25,
        closing_costs=6_000,
        horizon_override_months=0,
    )
    assert resolve_horizon(engine_input) == 300


def test_full_term_rounds_fractional_years():
    assert full_term_months(25) == 300
    assert full_term_months(10.5) == 126
    assert full_term_months(1 / 24) == 1


def test_scenarios_start_with_baseline(make_input):
    scenarios = generate_scenarios(
        make_input(remaining_balance=300_000, current_annual_rate=0.075, years_remaining=25, closing_costs=6_000)
    )
    assert [s.id for s in scenarios] == ["stay_current", "refi_same_term", "refi_15yr", "refi_30yr"]


def test_term_reset_warning_wording():
    assert term_reset_warning(150_000, 240, 240).startswith("Term Reset Trap:")
    assert "$150,000.00" in term_reset_warning(150_000, 240, 240)
    assert term_reset_warning(150_000, 60, 240).startswith("Term Reset Tradeoff:")


@pytest.mark.parametrize(
    "break_even, savings, horizon, expected",
    [
        (None, 10_000, 120, "red"),
        (10, -1, 120, "red"),
        (130, 50_000, 120, "red"),
        (10, 0, 0, "red"),
        (30, 2_500, 120, "green"),      # ratio 0.25, floor $2,000
        (30, 1_500, 120, "yellow"),     # below green floor, above $500
        (60, 50_000, 120, "yellow"),    # ratio 0.5
        (90, 50_000, 120, "red"),       # ratio 0.75
        (10, 400, 120, "red"),          # below yellow floor
        (5, 650, 36, "green"),          # $600 floor at 3 years
    ],
)
def test_determine_color_thresholds(break_even, savings, horizon, expected):
    assert determine_color(break_even, savings, horizon) == expected
