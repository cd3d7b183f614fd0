import sys
import os
import json
import argparse
from typing import Optional
from tax.FederalDetails import FederalDetails
from tax.MedicareDetails import MedicareDetails
from tax.LiabilityComposer import compute_liability
from tax.BracketStack import marginal_rate
from calc.equity_calculator import (
    DEFAULT_SPREAD_CEILING,
    ISO,
    NSO,
    amt_safe_spread,
    compare_iso_nso,
    concentration_risk,
    events_from_spec,
    project_vest_events,
    total_set_aside,
)
from calc.compound_projector import project, milestone_period
from calc.fee_calculator import fee_impact, advisory_fee_schedule
from calc.homebuyer_calculator import true_monthly_cost, max_affordable_price, rent_vs_buy
from calc.roth_calculator import direct_contribution_allowed, pro_rata
from calc.hsa_calculator import max_contribution, hsa_projection
from model.errors import CalculationError, NoCrossingFound
from render.renderers import LiabilityRenderer, RENDERER_REGISTRY


def build_tax_input(spec: dict, fed: FederalDetails):
    """Build the base TaxRegimeInput described by the income block of spec.json."""
    income = spec.get('income', {})
    return fed.tax_input(
        spec.get('taxYear', 2026),
        spec.get('filingStatus', 'single'),
        ordinary_income=income.get('ordinary', 0.0),
        preference_income=income.get('isoSpread', 0.0),
        capital_gains=income.get('capitalGains', 0.0),
        investment_income=income.get('investmentIncome'),
    )


def build_liability(spec: dict, fed: FederalDetails) -> dict:
    tax_year = spec.get('taxYear', 2026)
    tables = fed.regime_tables(tax_year, spec.get('filingStatus', 'single'))
    tax_input = build_tax_input(spec, fed)
    taxable = max(0.0, tax_input.ordinary_income - tax_input.standard_deduction)
    return {
        'input': tax_input,
        'result': compute_liability(tax_input, tables),
        'marginal_rate': marginal_rate(taxable, tables.ordinary_brackets),
    }


def build_vest_calendar(spec: dict, fed: FederalDetails) -> dict:
    tax_year = spec.get('taxYear', 2026)
    tables = fed.regime_tables(tax_year, spec.get('filingStatus', 'single'))
    base = build_tax_input(spec, fed)
    equity = spec.get('equity', {})
    rate = equity.get('withholdingRate', fed.supplemental_withholding_rate(tax_year))
    events = events_from_spec(equity.get('events'))
    projections = project_vest_events(base, events, tables, rate)
    report = {'projections': projections, 'total_set_aside': total_set_aside(projections)}
    if any(e.kind in (ISO, NSO) for e in events):
        report['iso_vs_nso'] = compare_iso_nso(base, events, tables)
    if 'companyStockValue' in equity:
        report['concentration'] = concentration_risk(equity['companyStockValue'], equity.get('totalNetWorth', 0.0))
    try:
        report['amt_safe_spread'] = amt_safe_spread(
            base, tables, upper_bound=equity.get('spreadSearchCeiling', DEFAULT_SPREAD_CEILING))
    except NoCrossingFound:
        # AMT never applies below the ceiling; leave the line off the report
        pass
    return report


def build_growth(spec: dict, fed: FederalDetails) -> dict:
    inv = spec.get('investments', {})
    path = project(
        inv.get('portfolio', 0.0),
        inv.get('annualContribution', 0.0),
        inv.get('years', 30),
        inv.get('expectedReturn', 7.0),
    )
    target = inv.get('target')
    return {
        'path': path,
        'first_year': spec.get('taxYear', 2026),
        'target': target,
        'milestone_period': milestone_period(path, target) if target else None,
    }


def build_fees(spec: dict, fed: FederalDetails) -> dict:
    inv = spec.get('investments', {})
    fees = spec.get('fees', {})
    impact = fee_impact(
        inv.get('portfolio', 0.0),
        inv.get('annualContribution', 0.0),
        inv.get('years', 30),
        inv.get('expectedReturn', 7.0),
        expense_ratio=fees.get('expenseRatio', 0.0),
        advisory_fee=fees.get('advisoryFee', 0.0),
        plan_fee=fees.get('planFee', 0.0),
    )
    schedule = []
    if fees.get('advisoryFee', 0.0) > 0:
        schedule = advisory_fee_schedule(
            inv.get('portfolio', 0.0),
            inv.get('annualContribution', 0.0),
            inv.get('years', 30),
            inv.get('expectedReturn', 7.0),
            fees['advisoryFee'],
        )
    return {'impact': impact, 'advisory_schedule': schedule}


def build_homebuyer(spec: dict, fed: FederalDetails) -> dict:
    home = spec.get('home', {})
    pmi_tiers = fed.pmi_tiers()
    price = home.get('price', 0.0)
    down = home.get('downPaymentPercent', 20.0)
    rate = home.get('mortgageRate', 6.5)
    tax_rate = home.get('propertyTaxRate', 1.1)
    insurance = home.get('insuranceAnnual', 1500.0)
    term = home.get('termYears', 30)

    report = {
        'true_cost': true_monthly_cost(
            price, down, rate, tax_rate, insurance, pmi_tiers,
            hoa_monthly=home.get('hoaMonthly', 0.0),
            utilities_monthly=home.get('utilitiesMonthly', 0.0),
            maintenance_percent=home.get('maintenancePercent', 1.0),
            term_years=term,
        ),
    }
    if 'annualIncome' in home:
        report['affordability'] = max_affordable_price(
            home['annualIncome'], home.get('monthlyDebts', 0.0), down, rate, tax_rate, insurance,
            pmi_tiers, term_years=term)
    if 'monthlyRent' in home:
        report['rent_vs_buy'] = rent_vs_buy(
            price, down, rate, tax_rate, insurance,
            home.get('maintenancePercent', 1.0),
            home['monthlyRent'],
            home.get('rentGrowthPercent', 3.0),
            home.get('appreciationPercent', 3.0),
            home.get('investmentReturnPercent', 7.0),
            pmi_tiers,
            years=home.get('comparisonYears', 30),
            closing_cost_percent=home.get('closingCostPercent', 3.0),
            term_years=term,
        )
    return report


def build_medicare(spec: dict, fed: FederalDetails) -> dict:
    tax_year = spec.get('taxYear', 2026)
    medicare = MedicareDetails.for_year(fed, tax_year)
    magi = spec.get('medicare', {}).get('magi', 0.0)
    return {'magi': magi, 'irmaa': medicare.irmaa(magi, spec.get('filingStatus', 'single'))}


def build_roth(spec: dict, fed: FederalDetails) -> dict:
    tax_year = spec.get('taxYear', 2026)
    roth = spec.get('roth', {})
    rule = fed.roth_phase_out(tax_year, spec.get('filingStatus', 'single'))
    report = {
        'eligibility': direct_contribution_allowed(
            roth.get('magi', 0.0), rule, roth.get('megaBackdoorAvailable', False)),
    }
    if 'conversionAmount' in roth:
        report['pro_rata'] = pro_rata(
            roth.get('pretaxIraBalance', 0.0), roth['conversionAmount'], roth.get('marginalRate', 0.24))
    return report


def build_hsa(spec: dict, fed: FederalDetails) -> dict:
    tax_year = spec.get('taxYear', 2026)
    hsa = spec.get('hsa', {})
    limit = max_contribution(fed.hsa_limits(tax_year), hsa.get('coverage', 'self'), hsa.get('age', 40))
    contribution = hsa.get('annualContribution', limit)
    return {
        'limit': limit,
        'projection': hsa_projection(
            hsa.get('currentBalance', 0.0),
            contribution,
            hsa.get('annualMedicalExpenses', 0.0),
            hsa.get('expectedReturn', 7.0),
            hsa.get('age', 40),
            hsa.get('retirementAge', 65),
        ),
    }


REPORT_BUILDERS = {
    'Liability': build_liability,
    'VestCalendar': build_vest_calendar,
    'Growth': build_growth,
    'Fees': build_fees,
    'Homebuyer': build_homebuyer,
    'Medicare': build_medicare,
    'Roth': build_roth,
    'HSA': build_hsa,
}


def load_spec(program_name: str, base_path: Optional[str] = None) -> dict:
    if base_path is None:
        base_path = os.path.join(os.path.dirname(__file__), '..')
    spec_path = os.path.join(base_path, 'input-parameters', program_name, 'spec.json')
    if not os.path.exists(spec_path):
        raise FileNotFoundError(f"Spec file not found: {spec_path}")
    with open(spec_path, 'r') as f:
        return json.load(f)


def run(program_name: str, mode: str) -> int:
    """Build and render one report; returns the process exit code."""
    try:
        spec = load_spec(program_name)
    except FileNotFoundError as e:
        print(e)
        return 1

    fed = FederalDetails(spec.get('federalBracketInflation'), spec.get('lastPlanningYear'))
    try:
        report = REPORT_BUILDERS[mode](spec, fed)
    except CalculationError as e:
        print(f"Not enough information yet: {e}")
        return 1

    if mode == 'Liability':
        renderer = LiabilityRenderer(spec.get('taxYear', 2026))
    else:
        renderer = RENDERER_REGISTRY[mode]()
    renderer.render(report)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description='Personal finance calculation engine',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  Liability     Federal tax breakdown: regular, AMT, LTCG and NIIT (default)
  VestCalendar  Equity events in date order with the cash to set aside
  Growth        Year-by-year compounding projection and milestone
  Fees          Lifetime cost of expense ratios and advisory fees
  Homebuyer     True monthly cost, affordability and rent vs. buy
  Medicare      IRMAA surcharge tier
  Roth          Direct Roth eligibility and pro-rata conversion tax
  HSA           HSA limit and invest-vs-spend comparison

Examples:
  python src/Program.py sample
  python src/Program.py sample --mode VestCalendar
  python src/Program.py sample --mode Homebuyer
        """
    )
    parser.add_argument('program_name', help='Name of the program (folder in input-parameters)')
    parser.add_argument('--mode', '-m',
                        choices=list(RENDERER_REGISTRY.keys()),
                        default='Liability',
                        help='Output mode (default: Liability)')

    args = parser.parse_args()
    sys.exit(run(args.program_name, args.mode))


if __name__ == "__main__":
    main()
