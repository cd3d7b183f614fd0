"""Backdoor Roth helpers: direct contribution phase-out and the pro-rata rule."""

import math
from dataclasses import dataclass

from model.Bracket import PhaseOutRule
from model.errors import require_finite
from tax.BracketStack import phase_out

DIRECT = 'direct'
PARTIAL = 'partial'
BACKDOOR = 'backdoor'
MEGA = 'mega'


@dataclass(frozen=True)
class RothEligibility:
    allowed_contribution: float
    max_contribution: float
    recommendation: str
    in_phase_out: bool


@dataclass(frozen=True)
class ProRataResult:
    taxable_percent: float
    taxable_amount: float
    tax_free_amount: float
    estimated_tax: float
    impact: str


def direct_contribution_allowed(magi: float, rule: PhaseOutRule,
                                mega_backdoor_available: bool = False) -> RothEligibility:
    """How much can go straight into a Roth IRA at this MAGI.

    The allowance is the phase-out of the contribution limit, rounded down
    to whole dollars.
    """
    magi = require_finite('magi', magi)
    allowed = math.floor(phase_out(magi, rule))
    if magi < rule.start_threshold:
        recommendation = DIRECT
    elif magi < rule.full_threshold:
        recommendation = PARTIAL
    else:
        recommendation = MEGA if mega_backdoor_available else BACKDOOR
    return RothEligibility(
        allowed_contribution=float(allowed),
        max_contribution=rule.base_amount,
        recommendation=recommendation,
        in_phase_out=recommendation == PARTIAL,
    )


def pro_rata(pretax_ira_balance: float, conversion_amount: float, marginal_rate: float = 0.24) -> ProRataResult:
    """Split a conversion into taxable and tax-free parts under the pro-rata rule.

    Taxable share = pre-tax balance / (pre-tax balance + after-tax contribution).
    """
    pretax = require_finite('pretax_ira_balance', pretax_ira_balance)
    amount = require_finite('conversion_amount', conversion_amount)
    marginal_rate = require_finite('marginal_rate', marginal_rate)
    total = pretax + amount
    if pretax == 0 or total == 0:
        return ProRataResult(0.0, 0.0, amount, 0.0, 'none')

    taxable_percent = pretax / total * 100
    taxable_amount = amount * pretax / total
    if taxable_percent < 10:
        impact = 'low'
    elif taxable_percent < 30:
        impact = 'moderate'
    elif taxable_percent < 50:
        impact = 'significant'
    else:
        impact = 'high'
    return ProRataResult(
        taxable_percent=taxable_percent,
        taxable_amount=taxable_amount,
        tax_free_amount=amount - taxable_amount,
        estimated_tax=taxable_amount * marginal_rate,
        impact=impact,
    )
