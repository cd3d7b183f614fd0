from dataclasses import dataclass


@dataclass(frozen=True)
class LiabilityResult:
    regular_tax: float
    alternative_tax: float  # AMT owed above regular tax, never the raw tentative tax
    ltcg_tax: float
    niit: float
    total_tax: float
    effective_rate: float
    amt_applies: bool
    tentative_minimum_tax: float = 0.0
    amt_income: float = 0.0


@dataclass(frozen=True)
class WithholdingGap:
    """Shortfall between the true incremental tax on an income slice and its flat withholding."""
    slice_amount: float
    incremental_tax: float
    withheld: float
    gap: float
    set_aside: float
