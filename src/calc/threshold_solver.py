"""Bounded binary search for the breakpoint of a monotonic predicate.

Used wherever a forward calculation is easy but its inverse is not: the
largest ISO spread before AMT applies, the highest home price that still
fits a payment cap, and similar "how much can I before..." questions.
"""

from typing import Callable

from model.errors import InvalidInput, NoCrossingFound, require_finite

# Dollar thresholds are reported to the nearest thousand
DEFAULT_TOLERANCE = 1000.0


def solve(predicate: Callable[[float], bool],
          lower_bound: float,
          upper_bound: float,
          tolerance: float = DEFAULT_TOLERANCE) -> float:
    """Locate where ``predicate`` flips between ``lower_bound`` and ``upper_bound``.

    The predicate is expected to be false below some unknown breakpoint and
    true above it. The search halves the interval until it is narrower than
    ``tolerance`` and returns its lower edge, i.e. the largest probed value
    on the same side as ``lower_bound``.

    Args:
        predicate: Monotonic test over the search domain.
        lower_bound: Low end of the domain.
        upper_bound: High end of the domain.
        tolerance: Width at which the search stops.

    Returns:
        A value within ``tolerance`` below the breakpoint.

    Raises:
        NoCrossingFound: When the predicate agrees at both bounds.
        InvalidInput: For non-finite bounds, an empty range, or tolerance <= 0.
    """
    low = require_finite('lower_bound', lower_bound, allow_negative=True)
    high = require_finite('upper_bound', upper_bound, allow_negative=True)
    tolerance = require_finite('tolerance', tolerance)
    if tolerance <= 0:
        raise InvalidInput("tolerance must be positive")
    if low >= high:
        raise InvalidInput(f"lower_bound {low!r} must be below upper_bound {high!r}")

    low_side = bool(predicate(low))
    if low_side == bool(predicate(high)):
        raise NoCrossingFound(
            f"predicate is {low_side} at both {low!r} and {high!r}; no breakpoint in range")

    while high - low > tolerance:
        mid = (low + high) / 2
        if bool(predicate(mid)) == low_side:
            low = mid
        else:
            high = mid
    return low
