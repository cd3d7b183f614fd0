from dataclasses import dataclass
from typing import Tuple

from model.Bracket import Bracket, PhaseOutRule


@dataclass(frozen=True)
class RegimeTables:
    """Every table one liability calculation consumes, for a single year and filing status."""
    ordinary_brackets: Tuple[Bracket, ...]
    ltcg_brackets: Tuple[Bracket, ...]
    amt_brackets: Tuple[Bracket, ...]
    amt_exemption: PhaseOutRule
    niit_threshold: float
    niit_rate: float = 0.038
    standard_deduction: float = 0.0
