from dataclasses import dataclass, replace
from typing import Optional


SINGLE = 'single'
MARRIED = 'married'
FILING_STATUSES = (SINGLE, MARRIED)


@dataclass(frozen=True)
class TaxRegimeInput:
    """Immutable snapshot of the facts a liability calculation needs.

    preference_income is AMT-only phantom income such as an ISO exercise spread.
    investment_income defaults to capital_gains for the NIIT surtax.
    """
    ordinary_income: float
    preference_income: float = 0.0
    capital_gains: float = 0.0
    filing_status: str = SINGLE
    standard_deduction: float = 0.0
    investment_income: Optional[float] = None

    @property
    def total_income(self) -> float:
        return self.ordinary_income + self.capital_gains

    @property
    def net_investment_income(self) -> float:
        if self.investment_income is None:
            return self.capital_gains
        return self.investment_income

    def with_additional(self, ordinary: float = 0.0, preference: float = 0.0,
                        capital_gains: float = 0.0) -> 'TaxRegimeInput':
        """Return a new snapshot with extra income layered on top."""
        return replace(
            self,
            ordinary_income=self.ordinary_income + ordinary,
            preference_income=self.preference_income + preference,
            capital_gains=self.capital_gains + capital_gains,
        )
