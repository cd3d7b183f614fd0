"""Renderer classes for displaying finance engine results.

Each renderer takes the report dictionary built by Program.py for its mode
and prints it as plain-text console tables.
"""

from abc import ABC, abstractmethod
from typing import Optional


def _banner(title: str, width: int = 60) -> None:
    print()
    print("=" * width)
    print(f"{title:^{width}}")
    print("=" * width)


def _section(title: str, width: int = 60) -> None:
    print()
    print("-" * width)
    print(title)
    print("-" * width)


def _money(label: str, value: float) -> None:
    print(f"  {label:<40} ${value:>14,.2f}")


def _percent(label: str, value: float) -> None:
    print(f"  {label:<40} {value:>14.2f}%")


def _text(label: str, value) -> None:
    print(f"  {label:<40} {str(value):>15}")


def _period(period: Optional[int], unit: str = 'Year') -> str:
    return f"{unit} {period}" if period is not None else "Never"


class BaseRenderer(ABC):
    """Abstract base class for all renderers."""

    @abstractmethod
    def render(self, data: dict) -> None:
        """Render the data to output.

        Args:
            data: The report dictionary built for this renderer's mode
        """
        pass


class LiabilityRenderer(BaseRenderer):
    """Renderer for the federal liability breakdown."""

    def __init__(self, tax_year: int):
        self.tax_year = tax_year

    def render(self, data: dict) -> None:
        tax_input = data['input']
        result = data['result']

        _banner(f"FEDERAL LIABILITY FOR {self.tax_year}")

        _section("INCOME")
        _money('Ordinary Income:', tax_input.ordinary_income)
        if tax_input.preference_income > 0:
            _money('AMT Preference Income (ISO spread):', tax_input.preference_income)
        if tax_input.capital_gains > 0:
            _money('Long-Term Capital Gains:', tax_input.capital_gains)
        _money('Standard Deduction:', tax_input.standard_deduction)

        _section("TAX")
        _money('Regular Tax:', result.regular_tax)
        _money('Tentative Minimum Tax:', result.tentative_minimum_tax)
        _money('Alternative Minimum Tax:', result.alternative_tax)
        _money('Long-Term Capital Gains Tax:', result.ltcg_tax)
        _money('Net Investment Income Tax:', result.niit)
        print(f"  {'-' * 56}")
        _money('TOTAL FEDERAL TAX:', result.total_tax)
        _percent('Effective Rate:', result.effective_rate * 100)
        _text('AMT Applies:', 'Yes' if result.amt_applies else 'No')

        if data.get('marginal_rate') is not None:
            _percent('Marginal Ordinary Rate:', data['marginal_rate'] * 100)
        print("=" * 60)


class VestCalendarRenderer(BaseRenderer):
    """Renderer for equity events and the cash to set aside for each."""

    def render(self, data: dict) -> None:
        projections = data['projections']

        _banner("EQUITY VEST CALENDAR", 100)
        print(f"  {'Date':<12} {'Type':<6} {'Income':>16} {'Added Tax':>16} {'Withheld':>16} {'Set Aside':>16}")
        print(f"  {'-' * 12} {'-' * 6} {'-' * 16} {'-' * 16} {'-' * 16} {'-' * 16}")
        for p in projections:
            gap = p.withholding
            print(f"  {p.event.date:<12} {p.event.kind:<6} ${p.income:>15,.2f} ${gap.incremental_tax:>15,.2f}"
                  f" ${gap.withheld:>15,.2f} ${gap.set_aside:>15,.2f}")

        print()
        _money('Total To Set Aside:', data['total_set_aside'])
        if 'amt_safe_spread' in data:
            _money('ISO Spread Before AMT Applies:', data['amt_safe_spread'])

        comparison = data.get('iso_vs_nso')
        if comparison:
            _section("ISO VS NSO")
            _money('ISO Spread:', comparison.iso_spread)
            _money('ISO Added Tax (AMT):', comparison.iso_additional_tax)
            _text('AMT Applies After ISO Exercise:', 'Yes' if comparison.iso_amt_applies else 'No')
            _money('NSO Spread:', comparison.nso_spread)
            _money('NSO Tax At Exercise:', comparison.nso_tax_at_exercise)

        concentration = data.get('concentration')
        if concentration:
            _section("CONCENTRATION RISK")
            _percent('Company Stock Share Of Net Worth:', concentration.concentration_percent)
            _text('Risk Level:', concentration.risk_level.upper())
            _text('Diversify Within:', f"{concentration.diversification_months} months")
            _money('Above 10% Target:', concentration.excess_value)
        print("=" * 100)


class GrowthRenderer(BaseRenderer):
    """Renderer for a compounding projection and its milestone."""

    def render(self, data: dict) -> None:
        path = data['path']
        first_year = data.get('first_year', 1)

        _banner("WEALTH TIMELINE")
        print(f"  {'Year':<8} {'Balance':>20}")
        print(f"  {'-' * 8} {'-' * 20}")
        for offset, balance in enumerate(path.periodic_balances):
            print(f"  {first_year + offset:<8} ${balance:>19,.2f}")

        _section("SUMMARY")
        _money('Final Value:', path.final_value)
        _money('Total Contributions:', path.total_contributions)
        _money('Total Growth:', path.total_growth)
        if data.get('target'):
            _money('Target:', data['target'])
            _text('Target Reached:', _period(data.get('milestone_period')))
        print("=" * 60)


class FeesRenderer(BaseRenderer):
    """Renderer for the lifetime cost of fees."""

    def render(self, data: dict) -> None:
        impact = data['impact']

        _banner("FEE IMPACT")
        _percent('Total Annual Fees:', impact.total_fee_percent)
        _money('Ending Balance Without Fees:', impact.without_fees.final_value)
        _money('Ending Balance With Fees:', impact.with_fees.final_value)
        print(f"  {'-' * 56}")
        _money('LIFETIME COST OF FEES:', impact.lifetime_cost)
        _percent('Share Of Ending Balance:', impact.cost_percent_of_final)
        _money('Ending Balance In Low-Cost Funds:', impact.low_cost.final_value)
        _money('Gained By Switching:', impact.savings_by_switch)

        schedule = data.get('advisory_schedule') or []
        if schedule:
            _section("ADVISORY FEES BY YEAR")
            print(f"  {'Year':<8} {'Balance':>20} {'Fee':>16}")
            print(f"  {'-' * 8} {'-' * 20} {'-' * 16}")
            for row in schedule:
                print(f"  {row.year:<8} ${row.balance:>19,.2f} ${row.fee:>15,.2f}")
            print()
            _money('Total Advisory Fees Paid:', sum(row.fee for row in schedule))
        print("=" * 60)


class HomebuyerRenderer(BaseRenderer):
    """Renderer for true monthly cost, affordability and rent vs. buy."""

    def render(self, data: dict) -> None:
        cost = data['true_cost']

        _banner("FIRST-TIME HOMEBUYER")

        _section("TRUE MONTHLY COST")
        _money('Mortgage (P&I):', cost.mortgage_payment)
        _money('Property Taxes:', cost.property_taxes)
        _money('Insurance:', cost.insurance)
        if cost.pmi > 0:
            _money('PMI:', cost.pmi)
        if cost.hoa > 0:
            _money('HOA:', cost.hoa)
        _money('Maintenance:', cost.maintenance)
        if cost.utilities > 0:
            _money('Utilities:', cost.utilities)
        print(f"  {'-' * 56}")
        _money('TOTAL MONTHLY:', cost.total_monthly)
        _money('Total Annual:', cost.total_annual)

        affordability = data.get('affordability')
        if affordability is not None:
            _section("AFFORDABILITY (28/36 RULE)")
            _money('Max Monthly Housing Payment:', affordability.max_monthly_payment)
            _text('Limited By:', affordability.limited_by)
            _money('Max Home Price:', affordability.max_home_price)

        comparison = data.get('rent_vs_buy')
        if comparison is not None:
            _section("RENT VS. BUY")
            print(f"  {'Year':<8} {'Net Buying':>20} {'Net Renting':>20}")
            print(f"  {'-' * 8} {'-' * 20} {'-' * 20}")
            rows = zip(comparison.buy_path.periodic_balances, comparison.rent_path.periodic_balances)
            for year, (buy, rent) in enumerate(rows, start=1):
                if year in (1, 5, 10) or year % 10 == 0 or year == comparison.buy_path.periods:
                    print(f"  {year:<8} ${buy:>19,.2f} ${rent:>19,.2f}")
            print()
            _text('Buying Pulls Ahead:', _period(comparison.break_even.crossover_period))
            _text('Recommendation:', comparison.recommendation)
            _money('10-Year Cost Of Cash Up Front:', comparison.opportunity_cost_down_payment)
        print("=" * 60)


class MedicareRenderer(BaseRenderer):
    """Renderer for the IRMAA surcharge tier."""

    def render(self, data: dict) -> None:
        result = data['irmaa']

        _banner("MEDICARE PART B IRMAA")
        _money('MAGI:', data['magi'])
        _text('Tier:', result.tier)
        _money('Monthly Surcharge:', result.surcharge)
        _money('Monthly Premium:', result.monthly_premium)
        _money('Annual Surcharge:', result.annual_surcharge)
        if result.next_threshold is not None:
            _money('Previous Tier Ends At:', result.next_threshold)
            _money('Annual Savings One Tier Down:', result.savings_opportunity)
        print("=" * 60)


class RothRenderer(BaseRenderer):
    """Renderer for Roth eligibility and the pro-rata rule."""

    def render(self, data: dict) -> None:
        eligibility = data['eligibility']

        _banner("BACKDOOR ROTH")
        _money('Contribution Limit:', eligibility.max_contribution)
        _money('Direct Contribution Allowed:', eligibility.allowed_contribution)
        _text('Recommendation:', eligibility.recommendation)

        pro_rata = data.get('pro_rata')
        if pro_rata is not None:
            _section("PRO-RATA RULE")
            _percent('Taxable Share:', pro_rata.taxable_percent)
            _money('Taxable Amount:', pro_rata.taxable_amount)
            _money('Tax-Free Amount:', pro_rata.tax_free_amount)
            _money('Estimated Tax:', pro_rata.estimated_tax)
            _text('Impact:', pro_rata.impact)
        print("=" * 60)


class HsaRenderer(BaseRenderer):
    """Renderer for HSA limits and the invest-vs-spend comparison."""

    def render(self, data: dict) -> None:
        projection = data['projection']

        _banner("HSA STRATEGY")
        _money('Contribution Limit:', data['limit'])
        _text('Contribution Years:', projection.contribution_years)
        _money('Balance If Invested:', projection.invested.final_value)
        _money('Balance If Spent Yearly:', projection.spent_yearly.final_value)
        _money('Receipts Banked:', projection.receipt_value)
        print(f"  {'-' * 56}")
        _money('ADVANTAGE OF INVESTING:', projection.advantage)
        print("=" * 60)


RENDERER_REGISTRY = {
    'Liability': LiabilityRenderer,
    'VestCalendar': VestCalendarRenderer,
    'Growth': GrowthRenderer,
    'Fees': FeesRenderer,
    'Homebuyer': HomebuyerRenderer,
    'Medicare': MedicareRenderer,
    'Roth': RothRenderer,
    'HSA': HsaRenderer,
}
