import os
import sys
import unittest
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
from calc.equity_calculator import (
    ESPP,
    ISO,
    NSO,
    RSU,
    EquityEvent,
    amt_applies_at,
    amt_safe_spread,
    compare_iso_nso,
    concentration_risk,
    events_from_spec,
    project_vest_events,
    total_set_aside,
)
from model.errors import InvalidInput, NoCrossingFound
from tax.FederalDetails import FederalDetails


class TestEventIncome(unittest.TestCase):
    def test_rsu(self):
        self.assertEqual(EquityEvent(RSU, '2024-03-01', 100, vest_price=50).event_income(), 5000)

    def test_nso(self):
        event = EquityEvent(NSO, '2024-03-01', 100, grant_price=20, vest_price=50)
        self.assertEqual(event.event_income(), 3000)

    def test_iso(self):
        event = EquityEvent(ISO, '2024-03-01', 100, grant_price=20, current_price=80)
        self.assertEqual(event.event_income(), 6000)
        self.assertEqual(event.slice_kind, 'preference')

    def test_espp_discount(self):
        event = EquityEvent(ESPP, '2024-03-01', 100, vest_price=100)
        self.assertAlmostEqual(event.event_income(), 1500)

    def test_underwater_options_add_nothing(self):
        event = EquityEvent(NSO, '2024-03-01', 100, grant_price=60, vest_price=50)
        self.assertEqual(event.event_income(), 0)

    def test_unknown_kind(self):
        with self.assertRaises(InvalidInput):
            EquityEvent('SAR', '2024-03-01', 100).event_income()

    def test_non_finite_option_prices_rejected(self):
        with self.assertRaises(InvalidInput):
            EquityEvent(ISO, '2024-03-01', 100, grant_price=20, current_price=float('nan')).event_income()
        with self.assertRaises(InvalidInput):
            EquityEvent(ISO, '2024-03-01', 100, grant_price=float('inf'), current_price=80).event_income()
        with self.assertRaises(InvalidInput):
            EquityEvent(NSO, '2024-03-01', 100, grant_price=float('nan'), vest_price=50).event_income()

    def test_negative_option_price_rejected(self):
        with self.assertRaises(InvalidInput):
            EquityEvent(NSO, '2024-03-01', 100, grant_price=-5, vest_price=50).event_income()


class TestAmtSafeSpread(unittest.TestCase):
    def setUp(self):
        self.fed = FederalDetails()
        self.tables = self.fed.regime_tables(2024, 'single')

    def test_safe_spread_at_400k_single(self):
        base = self.fed.tax_input(2024, 'single', 400000)
        # TMT = 83352 + 0.28 * spread overtakes regular tax 105264.75 at ~78259.82
        spread = amt_safe_spread(base, self.tables)
        self.assertGreater(spread, 77259.8)
        self.assertLessEqual(spread, 78259.83)
        self.assertFalse(amt_applies_at(base, spread, self.tables))
        self.assertTrue(amt_applies_at(base, spread + 1000, self.tables))

    def test_zero_when_amt_already_applies(self):
        base = self.fed.tax_input(2024, 'single', 400000, preference_income=150000)
        self.assertEqual(amt_safe_spread(base, self.tables), 0.0)

    def test_no_crossing_below_ceiling(self):
        base = self.fed.tax_input(2024, 'single', 400000)
        with self.assertRaises(NoCrossingFound):
            amt_safe_spread(base, self.tables, upper_bound=50000)


class TestVestEvents(unittest.TestCase):
    def setUp(self):
        self.fed = FederalDetails()
        self.tables = self.fed.regime_tables(2024, 'single')
        self.base = self.fed.tax_input(2024, 'single', 400000)

    def test_events_sorted_by_date(self):
        events = [
            EquityEvent(RSU, '2024-11-15', 100, vest_price=100),
            EquityEvent(RSU, '2024-02-15', 100, vest_price=100),
        ]
        projections = project_vest_events(self.base, events, self.tables, 0.22)
        self.assertEqual([p.event.date for p in projections], ['2024-02-15', '2024-11-15'])

    def test_rsu_gap_in_35_percent_bracket(self):
        events = [EquityEvent(RSU, '2024-02-15', 100, vest_price=100)]
        projections = project_vest_events(self.base, events, self.tables, 0.22)
        gap = projections[0].withholding
        self.assertAlmostEqual(gap.incremental_tax, 3500, places=2)
        self.assertAlmostEqual(gap.set_aside, 1300 * 1.1, places=2)
        self.assertAlmostEqual(total_set_aside(projections), 1430, places=2)

    def test_later_events_see_earlier_income(self):
        # the second vest crosses from the 35% bracket into 37%
        base = self.fed.tax_input(2024, 'single', 600000)
        events = [
            EquityEvent(RSU, '2024-02-15', 100, vest_price=200),
            EquityEvent(RSU, '2024-05-15', 100, vest_price=200),
        ]
        first, second = project_vest_events(base, events, self.tables, 0.22)
        self.assertGreater(second.withholding.incremental_tax, first.withholding.incremental_tax)

    def test_iso_is_not_withheld(self):
        events = [EquityEvent(ISO, '2024-06-01', 1000, grant_price=10, current_price=110)]
        projection = project_vest_events(self.base, events, self.tables, 0.22)[0]
        self.assertEqual(projection.income, 100000)
        self.assertEqual(projection.withholding.withheld, 0)
        self.assertGreater(projection.withholding.incremental_tax, 0)


class TestIsoVsNso(unittest.TestCase):
    def setUp(self):
        self.fed = FederalDetails()
        self.tables = self.fed.regime_tables(2024, 'single')
        self.base = self.fed.tax_input(2024, 'single', 400000)

    def test_iso_costs_only_the_amt_it_triggers(self):
        events = [
            EquityEvent(ISO, '2024-06-01', 1000, grant_price=10, current_price=110),
            EquityEvent(RSU, '2024-06-01', 100, vest_price=100),
        ]
        comparison = compare_iso_nso(self.base, events, self.tables)
        self.assertEqual(comparison.iso_shares, 1000)
        self.assertEqual(comparison.iso_spread, 100000)
        # 111352 total with the spread vs. 105264.75 regular tax without it
        self.assertAlmostEqual(comparison.iso_additional_tax, 6087.25, places=2)
        self.assertTrue(comparison.iso_amt_applies)
        self.assertEqual(comparison.nso_spread, 0)
        self.assertEqual(comparison.nso_tax_at_exercise, 0)

    def test_nso_taxed_as_wages_at_exercise(self):
        events = [EquityEvent(NSO, '2024-06-01', 500, grant_price=10, vest_price=110)]
        comparison = compare_iso_nso(self.base, events, self.tables)
        self.assertEqual(comparison.nso_spread, 50000)
        self.assertAlmostEqual(comparison.nso_tax_at_exercise, 17500, places=2)
        self.assertFalse(comparison.iso_amt_applies)


@pytest.mark.parametrize("stock, net_worth, level, months", [
    (50000, 1000000, 'low', 0),
    (100000, 1000000, 'low', 0),
    (150000, 1000000, 'medium', 18),
    (300000, 1000000, 'high', 9),
    (600000, 1000000, 'extreme', 6),
])
def test_concentration_risk_tiers(stock, net_worth, level, months):
    risk = concentration_risk(stock, net_worth)
    assert risk.risk_level == level
    assert risk.diversification_months == months
    assert risk.excess_value == pytest.approx(max(0, stock - 100000))


def test_concentration_without_net_worth():
    risk = concentration_risk(50000, 0)
    assert risk.concentration_percent == 0
    assert risk.risk_level == 'low'


def test_concentration_rejects_nan():
    with pytest.raises(InvalidInput):
        concentration_risk(float('nan'), 100000)


def test_events_from_spec():
    events = events_from_spec([
        {"type": "NSO", "date": "2024-08-15", "shares": 500, "grantPrice": 40.0, "vestPrice": 155.0},
        {"type": "ESPP", "date": "2024-06-30", "shares": 100, "vestPrice": 140.0, "esppDiscount": 0.10},
    ])
    assert events[0].kind == NSO
    assert events[0].event_income() == pytest.approx(500 * 115)
    assert events[1].event_income() == pytest.approx(1400)


def test_events_from_spec_empty():
    assert events_from_spec(None) == []
