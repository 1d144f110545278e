"""
Property Growth Projections

Projects value, debt and equity for a single property and for a portfolio
that acquires new properties by refinancing the equity of those it holds.
All growth compounds annually.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from app.calculations.mortgage import LoanType, calculate_repayment
from app.calculations.validation import (
    InvalidInputError,
    require_positive,
    require_range,
)

# Longest horizon a projection covers
MAX_PROJECTION_YEARS = 100

GROWTH_RATES = {
    "low": 0.03,
    "medium": 0.05,
    "high": 0.07,
}


@dataclass(frozen=True)
class ProjectionAssumptions:
    """Purchase assumptions for a single-property projection."""

    deposit_percentage: float = 0.05
    home_guarantee_percentage: float = 0.15


@dataclass(frozen=True)
class PortfolioProperty:
    """A property in a portfolio plan."""

    id: str
    property_value: float
    growth_rate: str = "medium"
    acquired: Optional[int] = None  # Year acquired, None if not yet bought


@dataclass
class _HeldProperty:
    """Working state of a portfolio property during projection."""

    id: str
    property_value: float
    growth: float
    acquired: Optional[int]
    debt: float = 0.0


def resolve_growth_rate(growth_rate: Union[str, float]) -> float:
    """Map a growth preset name to its annual rate; numeric rates pass through."""
    if isinstance(growth_rate, str):
        try:
            return GROWTH_RATES[growth_rate]
        except KeyError:
            raise InvalidInputError(
                f"Unknown growth rate: {growth_rate!r}", "growth_rate"
            )
    return require_range(growth_rate, -1, 1, "growth_rate")


def _require_years(years: int) -> int:
    if isinstance(years, bool) or not isinstance(years, int) or years < 0:
        raise InvalidInputError("years must be a non-negative whole number", "years")
    if years > MAX_PROJECTION_YEARS:
        raise InvalidInputError(
            f"years cannot exceed {MAX_PROJECTION_YEARS}", "years"
        )
    return years


def project_property(
    property_value: float,
    growth_rate: Union[str, float],
    loan_type: Union[LoanType, str],
    interest_rate: float,
    years: int = 30,
    home_guarantee: bool = True,
    assumptions: ProjectionAssumptions = ProjectionAssumptions(),
) -> List[Dict]:
    """
    Project a single property's value, debt and equity year by year.

    The purchase is funded with a small deposit. When the home guarantee
    applies, debt falls by a share of the purchase price in year 1.
    Principal-and-interest debt falls by each year's repayments less that
    year's interest; interest-only debt is constant.

    Args:
        property_value: Purchase price
        growth_rate: Preset name ("low", "medium", "high") or annual rate
        loan_type: principal_and_interest or interest_only
        interest_rate: Annual interest rate as a percentage
        years: Projection horizon in years
        home_guarantee: Whether the home guarantee reduction applies

    Returns:
        List of yearly points, starting with year 0
    """
    require_positive(property_value, "property_value")
    require_range(interest_rate, 0, 100, "interest_rate")
    _require_years(years)
    annual_growth = resolve_growth_rate(growth_rate)
    try:
        loan_type = LoanType(loan_type)
    except ValueError:
        raise InvalidInputError(f"Unknown loan type: {loan_type!r}", "loan_type")

    values = property_value * np.power(1 + annual_growth, np.arange(years + 1))

    debt = property_value * (1 - assumptions.deposit_percentage)
    annual_rate = interest_rate / 100
    monthly_payment = 0.0
    if loan_type == LoanType.principal_and_interest:
        monthly_payment = calculate_repayment(debt, annual_rate / 12, years * 12)

    data = [
        {
            "year": 0,
            "property_value": round(property_value),
            "debt": round(debt),
            "equity": round(property_value - debt),
        }
    ]

    for year in range(1, years + 1):
        if year == 1 and home_guarantee:
            debt -= property_value * assumptions.home_guarantee_percentage

        if loan_type == LoanType.principal_and_interest:
            principal_repayment = monthly_payment * 12 - debt * annual_rate
            debt = max(0.0, debt - principal_repayment)

        value = float(values[year])
        data.append(
            {
                "year": year,
                "property_value": round(value),
                "debt": round(debt),
                "equity": round(value - debt),
            }
        )

    return data


def project_portfolio(
    properties: Sequence[PortfolioProperty],
    years: int = 30,
    deposit_percentage: float = 0.1,
    fees_percentage: float = 0.05,
    refinance_limit: float = 0.8,
) -> List[Dict]:
    """
    Project a portfolio that grows by refinancing held properties.

    The first property is bought at year 0 unless another already is. Each
    purchase borrows the price less the deposit plus fees, and debts are held
    constant (interest only). From year 1 on, whenever the usable equity of
    held properties covers the next property's deposit, that property is
    bought the following year and the deposit is drawn from held properties
    in order.

    Args:
        properties: Properties in planned purchase order
        years: Projection horizon in years
        deposit_percentage: Deposit as a share of price
        fees_percentage: Purchase costs as a share of price, added to debt
        refinance_limit: Maximum loan-to-value when refinancing

    Returns:
        List of yearly portfolio points
    """
    _require_years(years)
    require_range(deposit_percentage, 0, 1, "deposit_percentage")
    require_range(fees_percentage, 0, 1, "fees_percentage")
    require_range(refinance_limit, 0, 1, "refinance_limit")

    if not properties:
        return []

    def purchase_debt(value: float) -> float:
        return value * (1 - deposit_percentage) + value * fees_percentage

    held = []
    for prop in properties:
        require_positive(prop.property_value, "property_value")
        held.append(
            _HeldProperty(
                id=prop.id,
                property_value=prop.property_value,
                growth=resolve_growth_rate(prop.growth_rate),
                acquired=prop.acquired,
            )
        )

    if not any(prop.acquired == 0 for prop in held):
        held[0].acquired = 0

    for prop in held:
        if prop.acquired is not None:
            prop.debt = purchase_debt(prop.property_value)

    data = []

    for year in range(years + 1):
        states = []
        total_value = 0.0
        total_debt = 0.0

        for prop in held:
            if prop.acquired is not None and prop.acquired <= year:
                value = float(
                    prop.property_value * np.power(1 + prop.growth, year - prop.acquired)
                )
                states.append(
                    {
                        "id": prop.id,
                        "value": round(value, 2),
                        "debt": round(prop.debt, 2),
                        "equity": round(value - prop.debt, 2),
                    }
                )
                total_value += value
                total_debt += prop.debt
            else:
                states.append({"id": prop.id, "value": 0, "debt": 0, "equity": 0})

        data.append(
            {
                "year": year,
                "total_value": round(total_value),
                "total_debt": round(total_debt),
                "total_equity": round(total_value - total_debt),
                "properties": states,
            }
        )

        if year == 0:
            continue

        next_index = next(
            (i for i, prop in enumerate(held) if prop.acquired is None), None
        )
        if next_index is None:
            continue

        owned = [
            (prop, state)
            for i, (prop, state) in enumerate(zip(held, states))
            if i != next_index and prop.acquired is not None and prop.acquired <= year
        ]
        available_equity = sum(
            max(0.0, state["value"] * refinance_limit - prop.debt)
            for prop, state in owned
        )

        next_property = held[next_index]
        required_deposit = next_property.property_value * deposit_percentage

        if available_equity < required_deposit:
            continue

        next_property.acquired = year + 1
        next_property.debt = purchase_debt(next_property.property_value)

        remaining = required_deposit
        for prop, state in owned:
            if remaining <= 0:
                break
            drawn = min(state["value"] * refinance_limit - prop.debt, remaining)
            if drawn > 0:
                prop.debt += drawn
                remaining -= drawn

    return data
