"""Error types raised by the calculation engine.

All errors derive from ValueError so that callers which already guard
calculations with ``except ValueError`` keep working.
"""

import math


class CalculationError(ValueError):
    """Base class for every engine failure."""


class InvalidInput(CalculationError):
    """A non-finite or out-of-domain argument was supplied."""


class NoCrossingFound(CalculationError):
    """A threshold search was run on a predicate that never changes in range."""


class DegenerateBracketTable(CalculationError):
    """A bracket or tier table is empty, unordered, or lacks a catch-all."""


def require_finite(name: str, value: float, allow_negative: bool = False) -> float:
    """Return ``value`` as a float, rejecting NaN, infinities and negatives.

    Args:
        name: Argument name used in the error message.
        value: The number to check.
        allow_negative: Whether values below zero are acceptable.

    Returns:
        The value converted to float.
    """
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise InvalidInput(f"{name} must be finite, got {value!r}")
    if not allow_negative and number < 0:
        raise InvalidInput(f"{name} must not be negative, got {value!r}")
    return number


def require_periods(name: str, value) -> int:
    """Return ``value`` as a non-negative whole number of periods."""
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a whole number, got {value!r}")
    number = require_finite(name, value)
    if number != int(number):
        raise InvalidInput(f"{name} must be a whole number, got {value!r}")
    return int(number)
