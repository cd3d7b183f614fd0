"""Health savings account limits and the invest-and-save-receipts strategy."""

from dataclasses import dataclass

from calc.compound_projector import project
from model.ProjectionPath import ProjectionPath
from model.errors import InvalidInput, require_finite, require_periods

SELF = 'self'
FAMILY = 'family'
CATCH_UP_AGE = 55
MEDICARE_AGE = 65


@dataclass(frozen=True)
class HsaProjection:
    invested: ProjectionPath  # balance when contributions are invested and expenses paid out of pocket
    spent_yearly: ProjectionPath  # balance when each year's medical expenses are paid from the account
    contribution_years: int
    receipt_value: float  # reimbursable expenses banked by saving receipts
    advantage: float


def max_contribution(limits: dict, coverage: str, age: int) -> float:
    """Annual contribution limit, with the catch-up amount from age 55."""
    if coverage not in (SELF, FAMILY):
        raise InvalidInput(f"coverage must be {SELF!r} or {FAMILY!r}, got {coverage!r}")
    age = require_finite('age', age)
    base = limits[coverage]
    return base + (limits.get('catchUp', 0) if age >= CATCH_UP_AGE else 0)


def _with_growth_tail(path: ProjectionPath, initial: float, growth_years: int,
                      annual_return: float) -> ProjectionPath:
    # contributions stop at Medicare enrollment; the balance keeps compounding
    tail = project(path.final_value, 0.0, growth_years, annual_return)
    return ProjectionPath.from_values(path.periodic_balances + tail.periodic_balances,
                                      starting_value=initial,
                                      total_contributions=path.total_contributions)


def hsa_projection(current_balance: float,
                   annual_contribution: float,
                   annual_medical_expenses: float,
                   expected_return: float,
                   current_age: int,
                   retirement_age: int) -> HsaProjection:
    """Compare investing the HSA against spending it on each year's expenses.

    Contributions are allowed until the earlier of retirement and Medicare
    enrollment at 65; after that the invested balance only grows.
    """
    current_age = require_periods('current_age', current_age)
    retirement_age = require_periods('retirement_age', retirement_age)
    expenses = require_finite('annual_medical_expenses', annual_medical_expenses)
    years_to_retirement = max(0, retirement_age - current_age)
    contribution_years = min(years_to_retirement, max(0, MEDICARE_AGE - current_age))
    growth_years = years_to_retirement - contribution_years

    invested = _with_growth_tail(
        project(current_balance, annual_contribution, contribution_years, expected_return),
        current_balance, growth_years, expected_return)
    spent_yearly = _with_growth_tail(
        project(current_balance, annual_contribution - expenses, contribution_years, expected_return),
        current_balance, growth_years, expected_return)

    return HsaProjection(
        invested=invested,
        spent_yearly=spent_yearly,
        contribution_years=contribution_years,
        receipt_value=expenses * contribution_years,
        advantage=invested.final_value - spent_yearly.final_value,
    )
