"""Finance Engine Tools for MCP Server.

This module provides the tool implementations that wrap the finance
calculators and expose their results through MCP as plain dictionaries.
"""

import dataclasses
import math
import os
import sys
from typing import Any, Dict, List, Optional

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tax.FederalDetails import FederalDetails
from tax.MedicareDetails import MedicareDetails
from tax.LiabilityComposer import SLICE_ORDINARY, compute_liability, withholding_gap
from calc.equity_calculator import (
    DEFAULT_SPREAD_CEILING,
    amt_applies_at,
    amt_safe_spread,
    compare_iso_nso,
    concentration_risk,
    events_from_spec,
    project_vest_events,
    total_set_aside,
)
from calc.compound_projector import amortized_payment, milestone_period, project
from calc.fee_calculator import advisory_fee_schedule, fee_impact, total_advisory_fees
from calc.homebuyer_calculator import max_affordable_price, rent_vs_buy, true_monthly_cost
from calc.roth_calculator import direct_contribution_allowed, pro_rata
from calc.hsa_calculator import hsa_projection, max_contribution
from Program import REPORT_BUILDERS, load_spec


def to_json(value: Any) -> Any:
    """Convert results into JSON-friendly values: dataclasses become dicts,
    floats are rounded to cents and infinite bounds become None."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, float):
        return None if math.isinf(value) else round(value, 2)
    return value


class FinanceEngineTools:
    """Tools that wrap the finance calculators for MCP access."""

    def __init__(self, base_path: str, inflation_rate: float = 0.0, final_year: Optional[int] = None):
        """Load the federal reference tables once.

        Args:
            base_path: Path to the finance-engine root directory
            inflation_rate: Growth applied to indexed thresholds past the last specified year
            final_year: Last year to project tables for
        """
        self.base_path = base_path
        self.fed = FederalDetails(
            inflation_rate, final_year,
            reference_path=os.path.join(base_path, 'reference', 'federal-details.json'))

    def _tables(self, year: int, filing_status: str):
        return self.fed.regime_tables(year, filing_status)

    def list_tax_years(self) -> dict:
        return {
            "years": self.fed.years,
            "filing_statuses": {year: self.fed.filing_statuses(year) for year in self.fed.years},
        }

    def compute_liability(self, year: int, filing_status: str, ordinary_income: float,
                          iso_spread: float = 0.0, capital_gains: float = 0.0,
                          investment_income: Optional[float] = None) -> dict:
        tax_input = self.fed.tax_input(year, filing_status, ordinary_income, iso_spread,
                                       capital_gains, investment_income)
        result = compute_liability(tax_input, self._tables(year, filing_status))
        summary = to_json(result)
        summary["year"] = year
        summary["filing_status"] = filing_status
        summary["effective_rate"] = round(result.effective_rate * 100, 2)
        return summary

    def amt_safe_spread(self, year: int, filing_status: str, ordinary_income: float,
                        capital_gains: float = 0.0, upper_bound: Optional[float] = None) -> dict:
        base = self.fed.tax_input(year, filing_status, ordinary_income, capital_gains=capital_gains)
        tables = self._tables(year, filing_status)
        ceiling = upper_bound if upper_bound is not None else DEFAULT_SPREAD_CEILING
        spread = amt_safe_spread(base, tables, upper_bound=ceiling)
        return {
            "year": year,
            "filing_status": filing_status,
            "amt_safe_spread": round(spread, 2),
            "amt_applies_without_spread": amt_applies_at(base, 0.0, tables),
        }

    def withholding_gap(self, year: int, filing_status: str, ordinary_income: float,
                        slice_amount: float, slice_kind: str = SLICE_ORDINARY,
                        withholding_rate: Optional[float] = None) -> dict:
        base = self.fed.tax_input(year, filing_status, ordinary_income)
        rate = self.fed.supplemental_withholding_rate(year) if withholding_rate is None else withholding_rate
        return to_json(withholding_gap(base, slice_amount, rate, self._tables(year, filing_status), slice_kind))

    def vest_events(self, year: int, filing_status: str, ordinary_income: float,
                    events: List[dict], withholding_rate: Optional[float] = None) -> dict:
        base = self.fed.tax_input(year, filing_status, ordinary_income)
        rate = self.fed.supplemental_withholding_rate(year) if withholding_rate is None else withholding_rate
        projections = project_vest_events(base, events_from_spec(events), self._tables(year, filing_status), rate)
        return {
            "events": [
                {
                    "date": p.event.date,
                    "type": p.event.kind,
                    "income": round(p.income, 2),
                    "withholding": to_json(p.withholding),
                }
                for p in projections
            ],
            "total_set_aside": round(total_set_aside(projections), 2),
        }

    def iso_vs_nso(self, year: int, filing_status: str, ordinary_income: float, events: List[dict]) -> dict:
        base = self.fed.tax_input(year, filing_status, ordinary_income)
        return to_json(compare_iso_nso(base, events_from_spec(events), self._tables(year, filing_status)))

    def concentration_risk(self, company_stock_value: float, total_net_worth: float) -> dict:
        return to_json(concentration_risk(company_stock_value, total_net_worth))

    def project_growth(self, initial: float, annual_contribution: float, years: int,
                       expected_return: float, annual_fee: float = 0.0,
                       target: Optional[float] = None) -> dict:
        path = project(initial, annual_contribution, years, expected_return, annual_fee)
        result = to_json(path)
        if target is not None:
            result["target"] = target
            result["milestone_year"] = milestone_period(path, target)
        return result

    def fee_impact(self, portfolio: float, annual_contribution: float, years: int, expected_return: float,
                   expense_ratio: float = 0.0, advisory_fee: float = 0.0, plan_fee: float = 0.0) -> dict:
        impact = fee_impact(portfolio, annual_contribution, years, expected_return,
                            expense_ratio, advisory_fee, plan_fee)
        result = {
            "total_fee_percent": impact.total_fee_percent,
            "final_without_fees": round(impact.without_fees.final_value, 2),
            "final_with_fees": round(impact.with_fees.final_value, 2),
            "lifetime_cost": round(impact.lifetime_cost, 2),
            "cost_percent_of_final": round(impact.cost_percent_of_final, 2),
            "final_low_cost": round(impact.low_cost.final_value, 2),
            "savings_by_switch": round(impact.savings_by_switch, 2),
        }
        if advisory_fee > 0:
            schedule = advisory_fee_schedule(portfolio, annual_contribution, years, expected_return, advisory_fee)
            result["advisory_schedule"] = to_json(schedule)
            result["total_advisory_fees"] = round(total_advisory_fees(schedule), 2)
        return result

    def amortized_payment(self, principal: float, annual_rate: float, term_years: int = 30) -> dict:
        payment = amortized_payment(principal, annual_rate, term_years * 12)
        return {
            "monthly_payment": round(payment, 2),
            "total_paid": round(payment * term_years * 12, 2),
            "total_interest": round(max(0.0, payment * term_years * 12 - principal), 2),
        }

    def true_monthly_cost(self, home_price: float, down_payment_percent: float, mortgage_rate: float,
                          property_tax_rate: float = 1.1, insurance_annual: float = 1500.0,
                          hoa_monthly: float = 0.0, utilities_monthly: float = 0.0,
                          maintenance_percent: float = 1.0, term_years: int = 30) -> dict:
        return to_json(true_monthly_cost(
            home_price, down_payment_percent, mortgage_rate, property_tax_rate, insurance_annual,
            self.fed.pmi_tiers(), hoa_monthly, utilities_monthly, maintenance_percent, term_years))

    def affordability(self, annual_income: float, monthly_debts: float, down_payment_percent: float,
                      mortgage_rate: float, property_tax_rate: float = 1.1,
                      insurance_annual: float = 1500.0, term_years: int = 30) -> dict:
        return to_json(max_affordable_price(
            annual_income, monthly_debts, down_payment_percent, mortgage_rate, property_tax_rate,
            insurance_annual, self.fed.pmi_tiers(), term_years))

    def rent_vs_buy(self, home_price: float, down_payment_percent: float, mortgage_rate: float,
                    monthly_rent: float, property_tax_rate: float = 1.1, insurance_annual: float = 1500.0,
                    maintenance_percent: float = 1.0, rent_growth: float = 3.0, appreciation: float = 3.0,
                    investment_return: float = 7.0, years: int = 30) -> dict:
        result = rent_vs_buy(
            home_price, down_payment_percent, mortgage_rate, property_tax_rate, insurance_annual,
            maintenance_percent, monthly_rent, rent_growth, appreciation, investment_return,
            self.fed.pmi_tiers(), years=years)
        buy = result.buy_path.periodic_balances
        rent = result.rent_path.periodic_balances
        checkpoints = [y for y in (5, 10, years) if 0 < y <= len(buy)]
        return {
            "break_even_year": result.break_even.crossover_period,
            "recommendation": result.recommendation,
            "opportunity_cost_down_payment": round(result.opportunity_cost_down_payment, 2),
            "net_position": {
                y: {"buying": round(buy[y - 1], 2), "renting": round(rent[y - 1], 2)} for y in checkpoints
            },
        }

    def irmaa_tier(self, year: int, filing_status: str, magi: float) -> dict:
        medicare = MedicareDetails.for_year(self.fed, year)
        return to_json(medicare.irmaa(magi, filing_status))

    def roth_eligibility(self, year: int, filing_status: str, magi: float,
                         mega_backdoor_available: bool = False) -> dict:
        rule = self.fed.roth_phase_out(year, filing_status)
        return to_json(direct_contribution_allowed(magi, rule, mega_backdoor_available))

    def pro_rata(self, pretax_ira_balance: float, conversion_amount: float, marginal_rate: float = 0.24) -> dict:
        return to_json(pro_rata(pretax_ira_balance, conversion_amount, marginal_rate))

    def hsa(self, year: int, coverage: str, age: int, current_balance: float = 0.0,
            annual_medical_expenses: float = 0.0, expected_return: float = 7.0,
            retirement_age: int = 65, annual_contribution: Optional[float] = None) -> dict:
        limit = max_contribution(self.fed.hsa_limits(year), coverage, age)
        contribution = limit if annual_contribution is None else annual_contribution
        projection = hsa_projection(current_balance, contribution, annual_medical_expenses,
                                    expected_return, age, retirement_age)
        return {
            "contribution_limit": round(limit, 2),
            "annual_contribution": round(contribution, 2),
            "contribution_years": projection.contribution_years,
            "final_invested": round(projection.invested.final_value, 2),
            "final_spent_yearly": round(projection.spent_yearly.final_value, 2),
            "receipt_value": round(projection.receipt_value, 2),
            "advantage": round(projection.advantage, 2),
        }

    def list_programs(self) -> dict:
        """List the saved programs under input-parameters."""
        input_params_path = os.path.join(self.base_path, 'input-parameters')
        programs = []
        if os.path.exists(input_params_path):
            for name in sorted(os.listdir(input_params_path)):
                if os.path.exists(os.path.join(input_params_path, name, 'spec.json')):
                    programs.append(name)
        return {"available_programs": programs, "report_modes": list(REPORT_BUILDERS)}

    def get_program_report(self, program: str, mode: str) -> dict:
        """Run one saved program through the same report builders the CLI uses."""
        if mode not in REPORT_BUILDERS:
            raise ValueError(f"Unknown report mode {mode!r}. Available modes: {list(REPORT_BUILDERS)}")
        spec = load_spec(program, self.base_path)
        fed = FederalDetails(spec.get('federalBracketInflation'), spec.get('lastPlanningYear'),
                             reference_path=self.fed.reference_path)
        report: Dict[str, Any] = REPORT_BUILDERS[mode](spec, fed)
        return {"program": program, "mode": mode, "report": to_json(report)}
