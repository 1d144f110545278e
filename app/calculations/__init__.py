"""
Financial Calculation Engine

Core calculation modules for property investment analysis.
All calculations are pure functions with no I/O.
"""

from app.calculations import (
    borrowing,
    gearing,
    mortgage,
    projections,
    retirement,
    tax,
)
from app.calculations.validation import InvalidInputError

__all__ = [
    "borrowing",
    "gearing",
    "mortgage",
    "projections",
    "retirement",
    "tax",
    "InvalidInputError",
]
