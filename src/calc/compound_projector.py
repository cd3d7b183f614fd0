"""Multi-period projections: compounding, fee drag, amortization and break-even.

Balances compound once per period. Rates are annual percentages (7.0 means
7%) and are spread evenly across ``periods_per_year`` when projecting
monthly or quarterly.
"""

import math
from typing import Optional

from model.ProjectionPath import BreakEvenResult, ProjectionPath
from model.errors import InvalidInput, require_finite, require_periods


def project(initial: float,
            periodic_contribution: float,
            periods: int,
            annual_rate_percent: float,
            annual_drag_percent: float = 0.0,
            periods_per_year: int = 1) -> ProjectionPath:
    """Simulate ``periods`` rounds of growth followed by a contribution.

    Each period: balance = balance * (1 + (rate - drag) / 100 / periods_per_year) + contribution.
    A negative contribution is a withdrawal; once the balance is exhausted
    it stays at zero rather than going negative.

    Args:
        initial: Starting balance.
        periodic_contribution: Amount added (or withdrawn) at the end of each period.
        periods: Number of periods to simulate.
        annual_rate_percent: Nominal annual return in percent.
        annual_drag_percent: Combined annual fees in percent.
        periods_per_year: 1 for yearly periods, 12 for monthly.

    Returns:
        The frozen ProjectionPath.
    """
    initial = require_finite('initial', initial)
    contribution = require_finite('periodic_contribution', periodic_contribution, allow_negative=True)
    periods = require_periods('periods', periods)
    rate = require_finite('annual_rate_percent', annual_rate_percent, allow_negative=True)
    drag = require_finite('annual_drag_percent', annual_drag_percent)
    periods_per_year = require_periods('periods_per_year', periods_per_year)
    if periods_per_year < 1:
        raise InvalidInput("periods_per_year must be at least 1")

    factor = 1 + (rate - drag) / 100 / periods_per_year
    balance = initial
    contributed = 0.0
    balances = []
    for _ in range(periods):
        grown = max(0.0, balance * factor)
        balance = max(0.0, grown + contribution)
        contributed += balance - grown
        balances.append(balance)

    if not math.isfinite(balance):
        raise InvalidInput("projection overflowed; reduce the horizon or rate")

    return ProjectionPath(
        periodic_balances=tuple(balances),
        final_value=balance,
        total_contributions=contributed,
        total_growth=balance - initial - contributed,
    )


def lifetime_cost(initial: float,
                  periodic_contribution: float,
                  periods: int,
                  annual_rate_percent: float,
                  annual_drag_percent: float,
                  periods_per_year: int = 1) -> float:
    """Final-value difference between a drag-free projection and one with drag."""
    without_drag = project(initial, periodic_contribution, periods, annual_rate_percent, 0.0, periods_per_year)
    with_drag = project(initial, periodic_contribution, periods, annual_rate_percent,
                        annual_drag_percent, periods_per_year)
    return without_drag.final_value - with_drag.final_value


def _monthly_growth(r: float, months: float) -> float:
    try:
        growth = (1 + r) ** months
    except OverflowError:
        growth = math.inf
    if not math.isfinite(growth):
        raise InvalidInput(f"a {months:g} month term overflows at this rate; shorten the term")
    return growth


def amortized_payment(principal: float, annual_rate_percent: float, months: int) -> float:
    """Level monthly payment that retires ``principal`` over ``months``.

    A zero rate falls back to straight-line repayment; a non-positive
    principal or term owes nothing.
    """
    principal = require_finite('principal', principal, allow_negative=True)
    rate = require_finite('annual_rate_percent', annual_rate_percent)
    months = require_finite('months', months, allow_negative=True)
    if principal <= 0 or months <= 0:
        return 0.0
    r = rate / 100 / 12
    if r == 0:
        return principal / months
    growth = _monthly_growth(r, months)
    payment = principal * r * growth / (growth - 1)
    if not math.isfinite(payment):
        raise InvalidInput("monthly payment overflowed; reduce the principal or term")
    return payment


def remaining_balance(principal: float, annual_rate_percent: float, months: int, payments_made: int) -> float:
    """Loan balance left after ``payments_made`` level payments."""
    payment = amortized_payment(principal, annual_rate_percent, months)
    if payment == 0:
        return max(0.0, principal)
    k = min(max(0, require_periods('payments_made', payments_made)), int(months))
    r = annual_rate_percent / 100 / 12
    if r == 0:
        return max(0.0, principal - payment * k)
    growth = _monthly_growth(r, k)
    balance = principal * growth - payment * (growth - 1) / r
    if not math.isfinite(balance):
        raise InvalidInput("remaining balance overflowed; reduce the principal or term")
    return max(0.0, balance)


def amortization_path(principal: float, annual_rate_percent: float, months: int,
                      payments_per_period: int = 12) -> ProjectionPath:
    """Remaining loan balance at the end of each period (yearly by default)."""
    payments_per_period = require_periods('payments_per_period', payments_per_period)
    if payments_per_period < 1:
        raise InvalidInput("payments_per_period must be at least 1")
    months = require_periods('months', months)
    periods = math.ceil(months / payments_per_period) if months > 0 else 0
    balances = [
        remaining_balance(principal, annual_rate_percent, months, min(months, p * payments_per_period))
        for p in range(1, periods + 1)
    ]
    return ProjectionPath.from_values(balances, starting_value=max(0.0, principal))


def break_even(path_a: ProjectionPath, path_b: ProjectionPath) -> BreakEvenResult:
    """Return the first period in which path A's value exceeds path B's.

    Both paths must cover the same number of periods. When A never pulls
    ahead the result says so explicitly instead of pretending the crossover
    happens at the end of the horizon.
    """
    if path_a.periods != path_b.periods:
        raise InvalidInput(
            f"paths must have equal length to compare ({path_a.periods} vs {path_b.periods})")
    for period, (a, b) in enumerate(zip(path_a.periodic_balances, path_b.periodic_balances), start=1):
        if a > b:
            return BreakEvenResult(crossover_period=period, values_at_crossover=(a, b))
    return BreakEvenResult(crossover_period=None)


def milestone_period(path: ProjectionPath, target: float) -> Optional[int]:
    """First period whose balance reaches ``target``, or None if it never does."""
    target = require_finite('target', target, allow_negative=True)
    for period, balance in enumerate(path.periodic_balances, start=1):
        if balance >= target:
            return period
    return None
