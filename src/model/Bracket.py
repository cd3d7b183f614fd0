from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Bracket:
    """One slice of a progressive table.

    upper_bound is inclusive and may be math.inf for the catch-all bracket.
    """
    upper_bound: float
    rate: float


@dataclass(frozen=True)
class PhaseOutTier:
    """A band of a tiered lookup (IRMAA surcharge, PMI rate, ...).

    value is whatever the band carries: a rate, a flat amount or a percentage.
    """
    threshold: float
    value: float


@dataclass(frozen=True)
class TierMatch:
    """Result of a tier lookup."""
    index: int
    tier: PhaseOutTier
    is_top_tier: bool
    lower_threshold: Optional[float] = None  # threshold of the tier below, None for the first tier


@dataclass(frozen=True)
class PhaseOutRule:
    """Linear reduction of base_amount from start_threshold down to zero at full_threshold."""
    start_threshold: float
    full_threshold: float
    base_amount: float

    @classmethod
    def from_rate(cls, start_threshold: float, base_amount: float, rate: float) -> 'PhaseOutRule':
        """Build a rule from a reduction rate (e.g. 25 cents per dollar above start)."""
        if rate <= 0:
            return cls(start_threshold, start_threshold, base_amount)
        return cls(start_threshold, start_threshold + base_amount / rate, base_amount)
