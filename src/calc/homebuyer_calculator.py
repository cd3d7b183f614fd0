"""First-time homebuyer calculations: PMI, true monthly cost, affordability and rent vs. buy."""

from dataclasses import dataclass
from typing import Optional, Sequence

from calc.compound_projector import amortized_payment, break_even, remaining_balance
from calc.threshold_solver import DEFAULT_TOLERANCE, solve
from model.Bracket import PhaseOutTier
from model.ProjectionPath import BreakEvenResult, ProjectionPath
from model.errors import require_finite, require_periods
from tax.BracketStack import tier_lookup

HOUSING_RATIO_LIMIT = 0.28
DEBT_TO_INCOME_LIMIT = 0.36


@dataclass(frozen=True)
class TrueCost:
    mortgage_payment: float
    property_taxes: float
    insurance: float
    pmi: float
    hoa: float
    maintenance: float
    utilities: float
    total_monthly: float
    total_annual: float


@dataclass(frozen=True)
class Affordability:
    max_home_price: float
    max_monthly_payment: float
    housing_limit: float
    debt_limit: float
    limited_by: str  # 'housing' (28% rule) or 'debt' (36% rule)


@dataclass(frozen=True)
class RentVsBuyResult:
    buy_path: ProjectionPath  # home equity minus cumulative ownership costs, per year
    rent_path: ProjectionPath  # invested down payment minus cumulative rent, per year
    break_even: BreakEvenResult
    recommendation: str  # 'buy', 'close' or 'rent'
    opportunity_cost_down_payment: float


def pmi_monthly(loan_balance: float, home_price: float, pmi_tiers: Sequence[PhaseOutTier]) -> float:
    """Monthly PMI; the tier (annual percent of the loan) is chosen by loan-to-value."""
    loan_balance = require_finite('loan_balance', loan_balance)
    home_price = require_finite('home_price', home_price)
    if loan_balance <= 0 or home_price <= 0:
        return 0.0
    loan_to_value = loan_balance / home_price * 100
    annual_percent = tier_lookup(loan_to_value, pmi_tiers).tier.value
    return loan_balance * annual_percent / 100 / 12


def housing_payment(home_price: float,
                    down_payment_percent: float,
                    annual_rate_percent: float,
                    property_tax_rate_percent: float,
                    insurance_annual: float,
                    pmi_tiers: Sequence[PhaseOutTier],
                    term_years: int = 30) -> float:
    """Principal, interest, taxes, insurance and PMI for one month."""
    home_price = require_finite('home_price', home_price)
    term_years = require_periods('term_years', term_years)
    down_payment_percent = require_finite('down_payment_percent', down_payment_percent)
    loan = home_price * (1 - down_payment_percent / 100)
    return (amortized_payment(loan, annual_rate_percent, term_years * 12)
            + home_price * require_finite('property_tax_rate_percent', property_tax_rate_percent) / 100 / 12
            + require_finite('insurance_annual', insurance_annual) / 12
            + pmi_monthly(max(0.0, loan), home_price, pmi_tiers))


def true_monthly_cost(home_price: float,
                      down_payment_percent: float,
                      annual_rate_percent: float,
                      property_tax_rate_percent: float,
                      insurance_annual: float,
                      pmi_tiers: Sequence[PhaseOutTier],
                      hoa_monthly: float = 0.0,
                      utilities_monthly: float = 0.0,
                      maintenance_percent: float = 1.0,
                      term_years: int = 30) -> TrueCost:
    """Everything owning the home costs per month, beyond the mortgage payment."""
    home_price = require_finite('home_price', home_price)
    term_years = require_periods('term_years', term_years)
    loan = home_price * (1 - require_finite('down_payment_percent', down_payment_percent) / 100)
    mortgage = amortized_payment(loan, annual_rate_percent, term_years * 12)
    taxes = home_price * require_finite('property_tax_rate_percent', property_tax_rate_percent) / 100 / 12
    insurance = require_finite('insurance_annual', insurance_annual) / 12
    pmi = pmi_monthly(max(0.0, loan), home_price, pmi_tiers)
    hoa = require_finite('hoa_monthly', hoa_monthly)
    maintenance = home_price * require_finite('maintenance_percent', maintenance_percent) / 100 / 12
    utilities = require_finite('utilities_monthly', utilities_monthly)
    total = mortgage + taxes + insurance + pmi + hoa + maintenance + utilities
    return TrueCost(
        mortgage_payment=mortgage,
        property_taxes=taxes,
        insurance=insurance,
        pmi=pmi,
        hoa=hoa,
        maintenance=maintenance,
        utilities=utilities,
        total_monthly=total,
        total_annual=total * 12,
    )


def max_affordable_price(annual_income: float,
                         monthly_debts: float,
                         down_payment_percent: float,
                         annual_rate_percent: float,
                         property_tax_rate_percent: float,
                         insurance_annual: float,
                         pmi_tiers: Sequence[PhaseOutTier],
                         term_years: int = 30,
                         price_ceiling: Optional[float] = None,
                         tolerance: float = DEFAULT_TOLERANCE) -> Affordability:
    """Highest home price whose monthly payment fits the 28/36 rule.

    The payment cap is the lower of 28% of gross monthly income and 36% of it
    less existing debt payments. The price is found by searching the forward
    payment function, which mixes amortization, taxes and tiered PMI.
    """
    annual_income = require_finite('annual_income', annual_income)
    monthly_debts = require_finite('monthly_debts', monthly_debts)
    term_years = require_periods('term_years', term_years)
    monthly_income = annual_income / 12
    housing_limit = monthly_income * HOUSING_RATIO_LIMIT
    debt_limit = monthly_income * DEBT_TO_INCOME_LIMIT - monthly_debts
    max_payment = min(housing_limit, debt_limit)
    limited_by = 'housing' if housing_limit <= debt_limit else 'debt'

    def too_expensive(price: float) -> bool:
        return housing_payment(price, down_payment_percent, annual_rate_percent,
                               property_tax_rate_percent, insurance_annual, pmi_tiers, term_years) > max_payment

    if too_expensive(0.0):
        max_price = 0.0
    else:
        ceiling = price_ceiling if price_ceiling is not None else max(1_000_000.0, annual_income * 50)
        max_price = solve(too_expensive, 0.0, ceiling, tolerance)

    return Affordability(
        max_home_price=max_price,
        max_monthly_payment=max(0.0, max_payment),
        housing_limit=housing_limit,
        debt_limit=debt_limit,
        limited_by=limited_by,
    )


def rent_vs_buy(home_price: float,
                down_payment_percent: float,
                annual_rate_percent: float,
                property_tax_rate_percent: float,
                insurance_annual: float,
                maintenance_percent: float,
                monthly_rent: float,
                rent_growth_percent: float,
                appreciation_percent: float,
                investment_return_percent: float,
                pmi_tiers: Sequence[PhaseOutTier],
                years: int = 30,
                closing_cost_percent: float = 3.0,
                term_years: int = 30) -> RentVsBuyResult:
    """Compare buying against renting and investing the cash a purchase would tie up.

    Buying: home equity (value less the amortized loan balance) minus every
    dollar spent on the purchase and ownership so far. Renting: the down
    payment and closing costs invested, minus rent paid so far. PMI stops
    once the loan balance falls to the no-PMI loan-to-value tier.
    """
    home_price = require_finite('home_price', home_price)
    years = require_periods('years', years)
    term_years = require_periods('term_years', term_years)
    down_payment = home_price * require_finite('down_payment_percent', down_payment_percent) / 100
    loan = max(0.0, home_price - down_payment)
    closing_costs = home_price * require_finite('closing_cost_percent', closing_cost_percent) / 100
    initial_cost = down_payment + closing_costs
    months = term_years * 12

    monthly_mortgage = amortized_payment(loan, annual_rate_percent, months)
    monthly_taxes = home_price * require_finite('property_tax_rate_percent', property_tax_rate_percent) / 100 / 12
    monthly_insurance = require_finite('insurance_annual', insurance_annual) / 12
    monthly_maintenance = home_price * require_finite('maintenance_percent', maintenance_percent) / 100 / 12
    appreciation = 1 + require_finite('appreciation_percent', appreciation_percent, allow_negative=True) / 100
    rent_growth = 1 + require_finite('rent_growth_percent', rent_growth_percent, allow_negative=True) / 100
    investment_growth = 1 + require_finite('investment_return_percent', investment_return_percent,
                                           allow_negative=True) / 100

    buying_cost = initial_cost
    renting_cost = 0.0
    invested = initial_cost
    home_value = home_price
    rent = require_finite('monthly_rent', monthly_rent)
    net_buying = []
    net_renting = []
    for year in range(1, years + 1):
        start_balance = remaining_balance(loan, annual_rate_percent, months, min((year - 1) * 12, months))
        end_balance = remaining_balance(loan, annual_rate_percent, months, min(year * 12, months))
        mortgage = monthly_mortgage if year <= term_years else 0.0
        # PMI is priced on the initial loan while the current balance keeps the loan in a PMI tier
        pmi = 0.0
        if start_balance > 0 and home_price > 0:
            pmi_percent = tier_lookup(start_balance / home_price * 100, pmi_tiers).tier.value
            pmi = loan * pmi_percent / 100 / 12
        buying_cost += (mortgage + monthly_taxes + monthly_insurance + pmi + monthly_maintenance) * 12

        home_value *= appreciation
        renting_cost += rent * 12
        rent *= rent_growth
        invested *= investment_growth

        net_buying.append(home_value - end_balance - buying_cost)
        net_renting.append(invested - renting_cost)

    buy_path = ProjectionPath.from_values(net_buying, starting_value=down_payment - initial_cost)
    rent_path = ProjectionPath.from_values(net_renting, starting_value=initial_cost)
    result = break_even(buy_path, rent_path)

    if result.crossed and result.crossover_period <= 3:
        recommendation = 'buy'
    elif result.crossed and result.crossover_period <= 5:
        recommendation = 'close'
    else:
        recommendation = 'rent'

    return RentVsBuyResult(
        buy_path=buy_path,
        rent_path=rent_path,
        break_even=result,
        recommendation=recommendation,
        opportunity_cost_down_payment=initial_cost * investment_growth ** 10 - initial_cost,
    )
