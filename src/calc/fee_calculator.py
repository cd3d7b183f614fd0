"""What investment fees cost over a working lifetime."""

from dataclasses import dataclass
from typing import List

from calc.compound_projector import project
from model.ProjectionPath import ProjectionPath
from model.errors import require_finite, require_periods

ADVISORY_SCHEDULE_MAX_YEARS = 30
# typical all-in cost of a broad index fund, in percent
LOW_COST_FEE_PERCENT = 0.1


@dataclass(frozen=True)
class FeeImpact:
    total_fee_percent: float
    with_fees: ProjectionPath
    without_fees: ProjectionPath
    lifetime_cost: float
    cost_percent_of_final: float  # share of the fee-free ending balance lost to fees
    low_cost: ProjectionPath
    savings_by_switch: float  # extra ending balance from moving to low-cost funds


@dataclass(frozen=True)
class AdvisoryFeeYear:
    year: int
    balance: float
    fee: float


def fee_impact(portfolio: float,
               annual_contribution: float,
               years: int,
               expected_return: float,
               expense_ratio: float = 0.0,
               advisory_fee: float = 0.0,
               plan_fee: float = 0.0,
               low_cost_fee: float = LOW_COST_FEE_PERCENT) -> FeeImpact:
    """Project the portfolio with its combined fees, without fees and in low-cost funds (all in percent)."""
    total_fee = (require_finite('expense_ratio', expense_ratio)
                 + require_finite('advisory_fee', advisory_fee)
                 + require_finite('plan_fee', plan_fee))
    with_fees = project(portfolio, annual_contribution, years, expected_return, total_fee)
    without_fees = project(portfolio, annual_contribution, years, expected_return, 0.0)
    low_cost = project(portfolio, annual_contribution, years, expected_return,
                       require_finite('low_cost_fee', low_cost_fee))
    cost = without_fees.final_value - with_fees.final_value
    return FeeImpact(
        total_fee_percent=total_fee,
        with_fees=with_fees,
        without_fees=without_fees,
        lifetime_cost=cost,
        cost_percent_of_final=cost / without_fees.final_value * 100 if without_fees.final_value > 0 else 0.0,
        low_cost=low_cost,
        savings_by_switch=low_cost.final_value - with_fees.final_value,
    )


def advisory_fee_schedule(portfolio: float,
                          annual_contribution: float,
                          years: int,
                          expected_return: float,
                          advisory_fee: float) -> List[AdvisoryFeeYear]:
    """Year-by-year balance and the AUM fee charged on it, for at most 30 years.

    The balance grows at the return net of the fee; the fee shown for a year
    is charged on that year's ending balance.
    """
    years = min(max(0, require_periods('years', years)), ADVISORY_SCHEDULE_MAX_YEARS)
    fee_percent = require_finite('advisory_fee', advisory_fee)
    path = project(portfolio, annual_contribution, years, expected_return, fee_percent)
    return [
        AdvisoryFeeYear(year=year, balance=balance, fee=balance * fee_percent / 100)
        for year, balance in enumerate(path.periodic_balances, start=1)
    ]


def total_advisory_fees(schedule: List[AdvisoryFeeYear]) -> float:
    return sum(y.fee for y in schedule)
