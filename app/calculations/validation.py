"""
Input Validation

Guards shared by the calculation modules. Every calculation validates its
inputs before doing any arithmetic and raises InvalidInputError on bad data.
"""

import math
from typing import Optional

# Longest loan the calculators accept
MAX_LOAN_TERM_YEARS = 50


class InvalidInputError(ValueError):
    """Raised when calculation inputs are outside their valid range."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def require_positive(value: float, field: str) -> float:
    """Reject zero or negative values."""
    if not _is_number(value) or value <= 0:
        raise InvalidInputError(f"{field} must be greater than 0", field)
    return value


def require_non_negative(value: float, field: str) -> float:
    """Reject negative values."""
    if not _is_number(value) or value < 0:
        raise InvalidInputError(f"{field} cannot be negative", field)
    return value


def require_range(value: float, low: float, high: float, field: str) -> float:
    """Reject values outside the inclusive range [low, high]."""
    if not _is_number(value) or value < low or value > high:
        raise InvalidInputError(f"{field} must be between {low} and {high}", field)
    return value


def parse_term_years(value) -> int:
    """
    Convert a loan term to whole years.

    Form layers submit the term as a string ("30"), so numeric strings are
    accepted. Fractional, non-positive or over-long terms are rejected.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid loan term: {value!r}", "loan_term")

    try:
        years = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid loan term: {value!r}", "loan_term")

    if not math.isfinite(years) or years <= 0 or years != int(years):
        raise InvalidInputError(
            "loan_term must be a positive whole number of years", "loan_term"
        )

    if years > MAX_LOAN_TERM_YEARS:
        raise InvalidInputError(
            f"loan_term cannot exceed {MAX_LOAN_TERM_YEARS} years", "loan_term"
        )

    return int(years)
