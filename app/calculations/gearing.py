"""
Negative Gearing Analysis

Estimates how an investment property's rent and deductible costs change
the owner's taxable income and tax bill.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from app.calculations.tax import TaxBracket, calculate_tax
from app.calculations.validation import (
    InvalidInputError,
    require_non_negative,
    require_positive,
    require_range,
)

# Depreciation as a percentage of price for years 1-10 of ownership
DEPRECIATION_RATES = {
    "Apartment": (2.7, 2.2, 2.0, 1.8, 1.5, 1.4, 1.4, 1.3, 1.3, 1.4),
    "Townhouse": (2.75, 2.35, 2.1, 2.0, 1.6, 1.45, 1.45, 1.5, 1.6, 1.35),
    "House": (2.45, 2.0, 1.7, 1.45, 1.45, 1.4, 1.35, 1.35, 1.35, 1.2),
    "Dual Key": (2.45, 2.0, 1.7, 1.45, 1.45, 1.4, 1.35, 1.35, 1.35, 1.2),
}


@dataclass(frozen=True)
class GearingAssumptions:
    """Yield and cost assumptions, as shares of the purchase price."""

    rental_yield: float = 0.025
    other_expenses_rate: float = 0.015
    loan_to_value: float = 0.8
    loan_interest_rate: float = 0.055


@dataclass(frozen=True)
class GearingResult:
    """Tax position with and without the investment property."""

    annual_rent: float
    weekly_rent: float
    depreciation: float
    other_expenses: float
    interest_expense: float
    total_deductions: float
    rental_income: float  # Owner's share
    rental_deductions: float  # Owner's share
    total_income: float
    new_taxable_income: float
    current_tax: float
    new_tax: float
    tax_savings: float


def depreciation_rate(property_type: str, year: int) -> float:
    """Depreciation percentage for a property type in a year of ownership."""
    try:
        rates = DEPRECIATION_RATES[property_type]
    except KeyError:
        raise InvalidInputError(
            f"Unknown property type: {property_type!r}", "property_type"
        )

    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= len(rates):
        raise InvalidInputError(f"year must be between 1 and {len(rates)}", "year")

    return rates[year - 1]


def analyse_negative_gearing(
    property_price: float,
    property_type: str,
    taxable_income: float,
    year: int = 1,
    ownership_percentage: float = 100,
    brackets: Optional[Sequence[TaxBracket]] = None,
    assumptions: GearingAssumptions = GearingAssumptions(),
) -> GearingResult:
    """
    Compare tax payable before and after buying an investment property.

    Rent, interest and running costs are estimated from the price; the
    owner's share of rent and deductions is added to their taxable income.

    Args:
        property_price: Purchase price
        property_type: Key of DEPRECIATION_RATES
        taxable_income: Owner's taxable income before the property
        year: Year of ownership (1-10), selects the depreciation rate
        ownership_percentage: Owner's share of the property (0-100)
        brackets: Tax bracket table (defaults to DEFAULT_TAX_BRACKETS)
        assumptions: Yield and cost assumptions

    Returns:
        GearingResult; positive tax_savings means the property reduces tax
    """
    require_positive(property_price, "property_price")
    require_non_negative(taxable_income, "taxable_income")
    require_range(ownership_percentage, 0, 100, "ownership_percentage")
    rate = depreciation_rate(property_type, year)

    annual_rent = round(property_price * assumptions.rental_yield / 100) * 100
    weekly_rent = round(annual_rent / 52)
    depreciation = round(property_price * rate / 100)
    other_expenses = round(property_price * assumptions.other_expenses_rate)
    interest_expense = round(
        property_price * assumptions.loan_to_value * assumptions.loan_interest_rate
    )
    total_deductions = depreciation + other_expenses + interest_expense

    share = ownership_percentage / 100
    rental_income = annual_rent * share
    rental_deductions = total_deductions * share
    new_taxable_income = taxable_income + rental_income - rental_deductions

    current_tax = calculate_tax(taxable_income, brackets)
    new_tax = calculate_tax(new_taxable_income, brackets)

    return GearingResult(
        annual_rent=annual_rent,
        weekly_rent=weekly_rent,
        depreciation=depreciation,
        other_expenses=other_expenses,
        interest_expense=interest_expense,
        total_deductions=total_deductions,
        rental_income=rental_income,
        rental_deductions=rental_deductions,
        total_income=taxable_income + rental_income,
        new_taxable_income=new_taxable_income,
        current_tax=current_tax,
        new_tax=new_tax,
        tax_savings=current_tax - new_tax,
    )
