from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from model.Bracket import PhaseOutTier
from model.errors import InvalidInput, require_finite
from tax.BracketStack import tier_lookup


@dataclass(frozen=True)
class IrmaaResult:
    tier: int
    surcharge: float  # monthly
    annual_surcharge: float
    monthly_premium: float  # base Part B premium plus surcharge
    next_threshold: Optional[float]  # MAGI to get under to drop one tier, None in the base tier
    savings_opportunity: float  # annual savings from dropping one tier
    is_top_tier: bool


class MedicareDetails:
    """Holds Medicare Part B premium details and computes IRMAA surcharges.

    Constructed with statutory values loaded from reference files. Calculation
    methods accept variable program inputs (e.g., modified adjusted gross income).
    """

    def __init__(self, part_b_premium: float, irmaa_tiers: Dict[str, Sequence[PhaseOutTier]]):
        """Initialize with statutory details.

        Args:
            part_b_premium: The standard monthly Part B premium.
            irmaa_tiers: IRMAA tiers keyed by filing status; each tier's value
                is the monthly surcharge for MAGI up to its threshold.
        """
        self.part_b_premium = part_b_premium
        self.irmaa_tiers = dict(irmaa_tiers)

    @classmethod
    def for_year(cls, fed, year: int) -> 'MedicareDetails':
        """Build from a FederalDetails instance for one year."""
        statuses = fed.filing_statuses(year)
        return cls(
            part_b_premium=fed.part_b_premium(year),
            irmaa_tiers={status: fed.irmaa_tiers(year, status) for status in statuses},
        )

    def irmaa(self, magi: float, filing_status: str) -> IrmaaResult:
        """Find the IRMAA tier for a MAGI figure.

        Args:
            magi: Modified adjusted gross income from two years prior.
            filing_status: Key into the tier tables (e.g. 'single', 'married').

        Returns:
            IrmaaResult with the surcharge and what dropping a tier would save.
        """
        magi = require_finite('magi', magi)
        if filing_status not in self.irmaa_tiers:
            raise InvalidInput(f"No IRMAA tiers for filing status {filing_status!r}")
        tiers = self.irmaa_tiers[filing_status]
        match = tier_lookup(magi, tiers)
        surcharge = match.tier.value
        if match.index > 0:
            savings = (surcharge - tiers[match.index - 1].value) * 12
        else:
            savings = 0.0
        return IrmaaResult(
            tier=match.index,
            surcharge=surcharge,
            annual_surcharge=surcharge * 12,
            monthly_premium=self.part_b_premium + surcharge,
            next_threshold=match.lower_threshold,
            savings_opportunity=savings,
            is_top_tier=match.is_top_tier,
        )
