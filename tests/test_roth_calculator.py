import os
import sys
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
from calc.roth_calculator import BACKDOOR, DIRECT, MEGA, PARTIAL, direct_contribution_allowed, pro_rata
from model.Bracket import PhaseOutRule
from tax.FederalDetails import FederalDetails


@pytest.fixture(scope="module")
def rule():
    return FederalDetails().roth_phase_out(2024, 'single')


def test_below_phase_out(rule):
    result = direct_contribution_allowed(100000, rule)
    assert result.allowed_contribution == 7000
    assert result.recommendation == DIRECT
    assert not result.in_phase_out


def test_inside_phase_out_rounds_down(rule):
    result = direct_contribution_allowed(153501, rule)
    # 7000 * (1 - 7501 / 15000) = 3499.53
    assert result.allowed_contribution == 3499
    assert result.recommendation == PARTIAL
    assert result.in_phase_out


def test_above_phase_out(rule):
    result = direct_contribution_allowed(170000, rule)
    assert result.allowed_contribution == 0
    assert result.recommendation == BACKDOOR
    assert direct_contribution_allowed(170000, rule, mega_backdoor_available=True).recommendation == MEGA


def test_custom_limit():
    result = direct_contribution_allowed(0, PhaseOutRule(146000, 161000, 8000))
    assert result.max_contribution == 8000


def test_pro_rata_clean_backdoor():
    result = pro_rata(0, 7000)
    assert result.taxable_amount == 0
    assert result.tax_free_amount == 7000
    assert result.impact == 'none'


def test_pro_rata_with_pretax_balance():
    result = pro_rata(50000, 7000, 0.24)
    assert result.taxable_percent == pytest.approx(50000 / 57000 * 100)
    assert result.taxable_amount == pytest.approx(7000 * 50000 / 57000)
    assert result.taxable_amount + result.tax_free_amount == pytest.approx(7000)
    assert result.estimated_tax == pytest.approx(result.taxable_amount * 0.24)
    assert result.impact == 'high'


@pytest.mark.parametrize("pretax,impact", [
    (500, 'low'),
    (2000, 'moderate'),
    (5000, 'significant'),
    (10000, 'high'),
])
def test_pro_rata_impact_bands(pretax, impact):
    assert pro_rata(pretax, 7000).impact == impact
