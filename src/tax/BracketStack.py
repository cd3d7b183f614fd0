"""Progressive bracket stacking, tier lookup and linear phase-outs.

Every tax, surcharge and phase-out calculation in the engine goes through
these functions so that edge cases (zero income, income beyond the last
finite bound, degenerate phase-out ranges) are handled one way everywhere.

Bracket tables are never sorted here: they are declared in ascending order
in the reference data and validated on every call.
"""

import math
from typing import Sequence

from model.Bracket import Bracket, PhaseOutRule, PhaseOutTier, TierMatch
from model.errors import DegenerateBracketTable, InvalidInput, require_finite


def validate_brackets(brackets: Sequence[Bracket]) -> None:
    """Raise DegenerateBracketTable unless bounds ascend strictly and end at infinity."""
    if not brackets:
        raise DegenerateBracketTable("bracket table is empty")
    previous = None
    for b in brackets:
        if math.isnan(b.upper_bound) or b.upper_bound < 0:
            raise DegenerateBracketTable(f"bracket bound {b.upper_bound!r} must be non-negative")
        if previous is not None and b.upper_bound <= previous:
            raise DegenerateBracketTable(
                f"bracket bounds must be strictly increasing ({previous!r} then {b.upper_bound!r})")
        if not math.isfinite(b.rate) or b.rate < 0:
            raise DegenerateBracketTable(f"bracket rate {b.rate!r} must be a finite non-negative number")
        previous = b.upper_bound
    if brackets[-1].upper_bound != math.inf:
        raise DegenerateBracketTable("last bracket must be an open-ended catch-all (upper bound = inf)")


def validate_tiers(tiers: Sequence[PhaseOutTier]) -> None:
    """Raise DegenerateBracketTable unless tier thresholds ascend strictly."""
    if not tiers:
        raise DegenerateBracketTable("tier table is empty")
    for lower, upper in zip(tiers, tiers[1:]):
        if upper.threshold <= lower.threshold:
            raise DegenerateBracketTable(
                f"tier thresholds must be strictly increasing ({lower.threshold!r} then {upper.threshold!r})")


def stack(amount: float, brackets: Sequence[Bracket]) -> float:
    """Tax ``amount`` progressively across ``brackets``.

    Each bracket taxes the slice of the amount between the previous bound and
    its own bound. Anything above the last finite bound lands in the
    catch-all bracket.

    Args:
        amount: Taxable amount. Zero or negative amounts owe nothing.
        brackets: Ascending brackets ending with an infinite bound.

    Returns:
        The stacked tax.
    """
    amount = require_finite('amount', amount, allow_negative=True)
    validate_brackets(brackets)
    if amount <= 0:
        return 0.0

    tax = 0.0
    floor = 0.0
    for b in brackets:
        if amount <= floor:
            break
        taxed_here = min(amount, b.upper_bound) - floor
        tax += taxed_here * b.rate
        floor = b.upper_bound
    return tax


def marginal_rate(amount: float, brackets: Sequence[Bracket]) -> float:
    """Return the rate of the bracket holding the last dollar of ``amount``."""
    amount = require_finite('amount', amount, allow_negative=True)
    validate_brackets(brackets)
    for b in brackets:
        if amount <= b.upper_bound:
            return b.rate
    return brackets[-1].rate


def tier_lookup(value: float, tiers: Sequence[PhaseOutTier]) -> TierMatch:
    """Select the first tier whose threshold is at or above ``value``.

    When the value exceeds every threshold the last tier is returned with
    is_top_tier set, so callers can tell "highest band" apart from a match.
    """
    value = require_finite('value', value, allow_negative=True)
    validate_tiers(tiers)
    last = len(tiers) - 1
    for i, tier in enumerate(tiers):
        if value <= tier.threshold:
            return TierMatch(
                index=i,
                tier=tier,
                is_top_tier=(i == last),
                lower_threshold=tiers[i - 1].threshold if i > 0 else None,
            )
    return TierMatch(
        index=last,
        tier=tiers[last],
        is_top_tier=True,
        lower_threshold=tiers[last - 1].threshold if last > 0 else None,
    )


def phase_out(value: float, rule: PhaseOutRule) -> float:
    """Return what remains of ``rule.base_amount`` at ``value``.

    The amount falls linearly from base_amount at start_threshold to zero at
    full_threshold. A rule whose thresholds coincide is a step at that point.
    """
    value = require_finite('value', value, allow_negative=True)
    start = require_finite('start_threshold', rule.start_threshold, allow_negative=True)
    full = require_finite('full_threshold', rule.full_threshold, allow_negative=True)
    base = require_finite('base_amount', rule.base_amount)
    if full < start:
        raise InvalidInput(f"phase-out full threshold {full!r} is below start threshold {start!r}")

    if full == start:
        return base if value < start else 0.0

    fraction = min(1.0, max(0.0, (value - start) / (full - start)))
    return base - base * fraction
