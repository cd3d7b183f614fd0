import math
import unittest
import os
import sys
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from model.errors import InvalidInput
from model.TaxRegimeInput import TaxRegimeInput
from tax.FederalDetails import FederalDetails
from tax.LiabilityComposer import (
    SLICE_PREFERENCE,
    alternative_tax,
    compute_liability,
    incremental_tax,
    ltcg_tax,
    niit,
    regular_tax,
    tentative_minimum_tax,
    withholding_gap,
)


class TestLiability2024Single(unittest.TestCase):
    def setUp(self):
        self.fed = FederalDetails()
        self.tables = self.fed.regime_tables(2024, 'single')

    def test_regular_tax(self):
        tax_input = self.fed.tax_input(2024, 'single', 400000)
        self.assertAlmostEqual(regular_tax(tax_input, self.tables), 105264.75, places=2)

    def test_iso_exercise_triggers_amt(self):
        # $400k wages plus a $100k ISO spread
        tax_input = self.fed.tax_input(2024, 'single', 400000, preference_income=100000)
        result = compute_liability(tax_input, self.tables)

        self.assertAlmostEqual(result.regular_tax, 105264.75, places=2)
        self.assertAlmostEqual(result.amt_income, 500000, places=2)
        # exemption 85700 is intact below the 609350 phase-out start
        self.assertAlmostEqual(result.tentative_minimum_tax, 232600 * 0.26 + 181700 * 0.28, places=2)
        self.assertAlmostEqual(result.alternative_tax, 111352 - 105264.75, places=2)
        self.assertTrue(result.amt_applies)
        self.assertAlmostEqual(result.total_tax, 111352, places=2)
        self.assertAlmostEqual(result.effective_rate, 111352 / 400000, places=6)

    def test_no_amt_without_preference_income(self):
        tax_input = self.fed.tax_input(2024, 'single', 400000)
        result = compute_liability(tax_input, self.tables)
        self.assertFalse(result.amt_applies)
        self.assertEqual(result.alternative_tax, 0.0)
        self.assertAlmostEqual(result.tentative_minimum_tax, 83352, places=2)

    def test_amt_is_only_the_excess(self):
        for spread in (0, 50000, 100000, 250000):
            tax_input = self.fed.tax_input(2024, 'single', 300000, preference_income=spread)
            tmt, _ = tentative_minimum_tax(tax_input, self.tables)
            regular = regular_tax(tax_input, self.tables)
            self.assertAlmostEqual(alternative_tax(tax_input, self.tables), max(0.0, tmt - regular), places=6)

    def test_ltcg_uses_remaining_room(self):
        # 30000 of taxable ordinary income leaves 17025 in the 0% bracket
        tax_input = self.fed.tax_input(2024, 'single', 44600, capital_gains=30000)
        self.assertAlmostEqual(ltcg_tax(tax_input, self.tables), (30000 - 17025) * 0.15, places=2)

    def test_more_ordinary_income_never_lowers_ltcg_tax(self):
        previous = 0.0
        for ordinary in range(0, 800001, 20000):
            tax_input = self.fed.tax_input(2024, 'single', ordinary, capital_gains=50000)
            tax = ltcg_tax(tax_input, self.tables)
            self.assertGreaterEqual(tax, previous)
            previous = tax

    def test_ltcg_all_in_zero_bracket(self):
        tax_input = self.fed.tax_input(2024, 'single', 14600, capital_gains=40000)
        self.assertEqual(ltcg_tax(tax_input, self.tables), 0.0)

    def test_ltcg_top_rate_when_ordinary_fills_lower_brackets(self):
        tax_input = self.fed.tax_input(2024, 'single', 700000, capital_gains=10000)
        self.assertAlmostEqual(ltcg_tax(tax_input, self.tables), 2000.0, places=2)

    def test_niit_on_lesser_of_gains_or_excess(self):
        tax_input = self.fed.tax_input(2024, 'single', 400000, capital_gains=20000)
        self.assertAlmostEqual(niit(tax_input, self.tables), 20000 * 0.038, places=2)

        tax_input = self.fed.tax_input(2024, 'single', 190000, capital_gains=20000)
        self.assertAlmostEqual(niit(tax_input, self.tables), 10000 * 0.038, places=2)

    def test_niit_never_exceeds_rate_times_investment_income(self):
        for ordinary in (0, 150000, 250000, 1000000):
            tax_input = self.fed.tax_input(2024, 'single', ordinary, capital_gains=50000, investment_income=60000)
            self.assertLessEqual(niit(tax_input, self.tables), 60000 * 0.038 + 1e-9)

    def test_zero_income(self):
        result = compute_liability(TaxRegimeInput(0.0), self.tables)
        self.assertEqual(result.total_tax, 0.0)
        self.assertEqual(result.effective_rate, 0.0)
        self.assertFalse(result.amt_applies)

    def test_rejects_negative_income(self):
        with self.assertRaises(InvalidInput):
            compute_liability(TaxRegimeInput(-1.0), self.tables)

    def test_rejects_infinite_income(self):
        with self.assertRaises(InvalidInput):
            compute_liability(TaxRegimeInput(math.inf), self.tables)


class TestWithholdingGap(unittest.TestCase):
    def setUp(self):
        self.fed = FederalDetails()
        self.tables = self.fed.regime_tables(2024, 'single')
        self.base = self.fed.tax_input(2024, 'single', 400000)

    def test_ordinary_slice_in_35_percent_bracket(self):
        gap = withholding_gap(self.base, 10000, 0.22, self.tables)
        self.assertAlmostEqual(gap.incremental_tax, 3500, places=2)
        self.assertAlmostEqual(gap.withheld, 2200, places=2)
        self.assertAlmostEqual(gap.gap, 1300, places=2)
        self.assertAlmostEqual(gap.set_aside, 1430, places=2)

    def test_preference_slice_is_not_withheld(self):
        gap = withholding_gap(self.base, 10000, 0.22, self.tables, SLICE_PREFERENCE)
        self.assertEqual(gap.withheld, 0.0)
        self.assertEqual(gap.incremental_tax, 0.0)
        self.assertEqual(gap.set_aside, 0.0)

    def test_over_withholding_sets_nothing_aside(self):
        low_base = self.fed.tax_input(2024, 'single', 20000)
        gap = withholding_gap(low_base, 1000, 0.22, self.tables)
        self.assertLess(gap.gap, 0)
        self.assertEqual(gap.set_aside, 0.0)

    def test_unknown_slice_kind(self):
        with self.assertRaises(InvalidInput):
            incremental_tax(self.base, 1000, self.tables, 'bonus')


@pytest.mark.parametrize("status", ['single', 'married'])
def test_total_is_sum_of_components(status):
    fed = FederalDetails()
    tables = fed.regime_tables(2025, status)
    tax_input = fed.tax_input(2025, status, 350000, preference_income=80000, capital_gains=40000)
    result = compute_liability(tax_input, tables)
    assert result.total_tax == pytest.approx(
        result.regular_tax + result.alternative_tax + result.ltcg_tax + result.niit)
