"""Results of multi-period projections."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class ProjectionPath:
    """Balances after each simulated period.

    periodic_balances[0] is the balance at the end of period 1; a zero-period
    projection has no entries and final_value equals the starting balance.
    """
    periodic_balances: Tuple[float, ...]
    final_value: float
    total_contributions: float
    total_growth: float

    @classmethod
    def from_values(cls, values: Sequence[float], starting_value: float = 0.0,
                    total_contributions: float = 0.0) -> 'ProjectionPath':
        """Freeze an already-computed sequence of per-period values."""
        balances = tuple(float(v) for v in values)
        final_value = balances[-1] if balances else float(starting_value)
        return cls(
            periodic_balances=balances,
            final_value=final_value,
            total_contributions=total_contributions,
            total_growth=final_value - starting_value - total_contributions,
        )

    @property
    def periods(self) -> int:
        return len(self.periodic_balances)


@dataclass(frozen=True)
class BreakEvenResult:
    """First period (1-based) where path A overtakes path B.

    crossover_period is None when no crossover happens within the horizon.
    """
    crossover_period: Optional[int]
    values_at_crossover: Optional[Tuple[float, float]] = None

    @property
    def crossed(self) -> bool:
        return self.crossover_period is not None
