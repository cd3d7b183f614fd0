import os
import sys
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
from calc.hsa_calculator import hsa_projection, max_contribution
from model.errors import InvalidInput
from tax.FederalDetails import FederalDetails


@pytest.fixture(scope="module")
def limits():
    return FederalDetails().hsa_limits(2024)


def test_self_coverage(limits):
    assert max_contribution(limits, 'self', 40) == 4150


def test_family_with_catch_up(limits):
    assert max_contribution(limits, 'family', 55) == 9300
    assert max_contribution(limits, 'family', 54) == 8300


def test_unknown_coverage(limits):
    with pytest.raises(InvalidInput):
        max_contribution(limits, 'couple', 40)


def test_contributions_stop_at_medicare():
    projection = hsa_projection(0, 4150, 1000, 0, 60, 67)
    assert projection.contribution_years == 5
    assert projection.invested.periods == 7
    assert projection.invested.final_value == pytest.approx(4150 * 5)
    assert projection.invested.total_contributions == pytest.approx(4150 * 5)
    assert projection.spent_yearly.final_value == pytest.approx(3150 * 5)
    assert projection.advantage == pytest.approx(5000)
    assert projection.receipt_value == pytest.approx(5000)


def test_growth_after_contributions():
    projection = hsa_projection(10000, 0, 0, 10, 66, 68)
    assert projection.contribution_years == 0
    assert projection.invested.periods == 2
    assert projection.invested.final_value == pytest.approx(12100)


def test_investing_beats_spending():
    projection = hsa_projection(5000, 8300, 3000, 7, 35, 65)
    assert projection.advantage > projection.receipt_value
