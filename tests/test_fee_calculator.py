import os
import sys
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
from calc.fee_calculator import advisory_fee_schedule, fee_impact, total_advisory_fees


def test_fee_impact_lump_sum():
    impact = fee_impact(100000, 0, 10, 7, expense_ratio=0.5, advisory_fee=1.0)
    assert impact.total_fee_percent == pytest.approx(1.5)
    assert impact.without_fees.final_value == pytest.approx(100000 * 1.07 ** 10)
    assert impact.with_fees.final_value == pytest.approx(100000 * 1.055 ** 10)
    assert impact.lifetime_cost == pytest.approx(100000 * (1.07 ** 10 - 1.055 ** 10))
    assert 0 < impact.cost_percent_of_final < 100


def test_no_fees_costs_nothing():
    impact = fee_impact(50000, 6000, 30, 7)
    assert impact.lifetime_cost == 0
    assert impact.cost_percent_of_final == 0


def test_higher_fees_cost_more():
    low = fee_impact(50000, 6000, 30, 7, expense_ratio=0.05)
    high = fee_impact(50000, 6000, 30, 7, expense_ratio=0.75)
    assert high.lifetime_cost > low.lifetime_cost > 0


def test_advisory_schedule_capped_at_thirty_years():
    schedule = advisory_fee_schedule(500000, 10000, 40, 7, 1.0)
    assert len(schedule) == 30
    assert schedule[0].year == 1
    assert schedule[-1].year == 30


def test_advisory_schedule_fee_on_ending_balance():
    schedule = advisory_fee_schedule(100000, 0, 2, 7, 1.0)
    assert schedule[0].balance == pytest.approx(106000)
    assert schedule[0].fee == pytest.approx(1060)
    assert schedule[1].balance == pytest.approx(106000 * 1.06)
    assert total_advisory_fees(schedule) == pytest.approx(1060 + 1123.6)


def test_advisory_schedule_empty_horizon():
    assert advisory_fee_schedule(100000, 0, 0, 7, 1.0) == []


def test_switching_to_low_cost_funds():
    impact = fee_impact(100000, 0, 10, 7, expense_ratio=0.5, advisory_fee=1.0)
    assert impact.low_cost.final_value == pytest.approx(100000 * 1.069 ** 10)
    assert impact.savings_by_switch == pytest.approx(100000 * (1.069 ** 10 - 1.055 ** 10))


def test_already_low_cost_gains_nothing_by_switching():
    impact = fee_impact(100000, 0, 10, 7, expense_ratio=0.1)
    assert impact.savings_by_switch == pytest.approx(0)
