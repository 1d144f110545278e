"""
Income Tax Calculations

Progressive income tax driven by an ordered bracket table. The calculator
assumes no particular jurisdiction: the default table is a configuration
value and any validated table can be passed in its place.
"""

from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence, Tuple

from app.calculations.validation import InvalidInputError, require_non_negative


@dataclass(frozen=True)
class TaxBracket:
    """
    One band of a progressive tax table.

    Bands are labelled in whole dollars, so a band may start either at the
    previous band's max or one dollar above it. Income above the previous
    band's max is taxed at this band's rate.
    """

    min: float
    max: Optional[float]  # None for the top, unbounded band
    rate: float  # Decimal (e.g., 0.16 for 16%)
    label: Optional[str] = None


@dataclass(frozen=True)
class TaxResult:
    """Tax payable and what is left after tax and expenses."""

    tax_paid: float
    net_income: float
    effective_tax_rate: float  # Percentage
    marginal_rate: float  # Percentage


DEFAULT_TAX_BRACKETS: Tuple[TaxBracket, ...] = (
    TaxBracket(0, 18200, 0.0, "$0 - $18,200"),
    TaxBracket(18201, 45000, 0.16, "$18,201 - $45,000"),
    TaxBracket(45001, 135000, 0.30, "$45,001 - $135,000"),
    TaxBracket(135001, 190000, 0.37, "$135,001 - $190,000"),
    TaxBracket(190001, None, 0.45, "$190,001+"),
)


def validate_brackets(brackets: Sequence[TaxBracket]) -> None:
    """
    Check a bracket table is usable.

    The table must start at 0, ascend without gaps or overlaps, have rates
    between 0 and 1, and end with a single unbounded band.

    Raises:
        InvalidInputError: If the table is malformed
    """
    if not brackets:
        raise InvalidInputError("Tax bracket table is empty", "brackets")

    if brackets[0].min != 0:
        raise InvalidInputError("First tax bracket must start at 0", "brackets")

    previous_max = None
    for index, bracket in enumerate(brackets):
        if not 0 <= bracket.rate <= 1:
            raise InvalidInputError(
                f"Bracket {index} rate must be between 0 and 1", "brackets"
            )

        if previous_max is not None and bracket.min not in (
            previous_max,
            previous_max + 1,
        ):
            raise InvalidInputError(
                f"Bracket {index} starts at {bracket.min}, expected {previous_max} "
                f"or {previous_max + 1}",
                "brackets",
            )

        is_last = index == len(brackets) - 1
        if bracket.max is None:
            if not is_last:
                raise InvalidInputError(
                    "Only the final tax bracket may be unbounded", "brackets"
                )
        else:
            if is_last:
                raise InvalidInputError(
                    "Final tax bracket must be unbounded", "brackets"
                )
            if bracket.max <= bracket.min:
                raise InvalidInputError(
                    f"Bracket {index} max must exceed its min", "brackets"
                )
            previous_max = bracket.max


def _bands(
    brackets: Sequence[TaxBracket],
) -> Iterator[Tuple[float, Optional[float], float]]:
    """Yield (lower threshold, upper threshold, rate) for each bracket."""
    lower = brackets[0].min
    for bracket in brackets:
        yield lower, bracket.max, bracket.rate
        if bracket.max is not None:
            lower = bracket.max


def _resolve(brackets: Optional[Sequence[TaxBracket]]) -> Sequence[TaxBracket]:
    if brackets is None:
        return DEFAULT_TAX_BRACKETS
    validate_brackets(brackets)
    return brackets


def calculate_tax(
    income: float, brackets: Optional[Sequence[TaxBracket]] = None
) -> float:
    """
    Calculate income tax payable.

    Args:
        income: Taxable income
        brackets: Bracket table (defaults to DEFAULT_TAX_BRACKETS)

    Returns:
        Tax amount
    """
    brackets = _resolve(brackets)

    total_tax = 0.0
    remaining = income

    for lower, upper, rate in _bands(brackets):
        if remaining <= 0:
            break

        if upper is None:
            taxable = remaining
        else:
            taxable = min(remaining, upper - lower)

        total_tax += taxable * rate
        remaining -= taxable

    return total_tax


def get_marginal_rate(
    income: float, brackets: Optional[Sequence[TaxBracket]] = None
) -> float:
    """Rate on the next dollar earned, as a percentage (e.g., 30 for 30%)."""
    brackets = _resolve(brackets)

    for _, upper, rate in _bands(brackets):
        if upper is None or income <= upper:
            return rate * 100

    return brackets[-1].rate * 100


def get_effective_rate(
    income: float, brackets: Optional[Sequence[TaxBracket]] = None
) -> float:
    """Total tax divided by income, as a percentage. 0 when income <= 0."""
    if income <= 0:
        return 0.0
    return calculate_tax(income, brackets) / income * 100


def calculate_tax_result(
    income: float,
    expenses: float = 0.0,
    brackets: Optional[Sequence[TaxBracket]] = None,
) -> TaxResult:
    """
    Calculate tax, effective rate and net income after expenses.

    Raises:
        InvalidInputError: If income or expenses are negative, or the
            bracket table is malformed
    """
    require_non_negative(income, "income")
    require_non_negative(expenses, "expenses")

    tax_paid = calculate_tax(income, brackets)
    effective = tax_paid / income * 100 if income > 0 else 0.0

    return TaxResult(
        tax_paid=tax_paid,
        net_income=income - tax_paid - expenses,
        effective_tax_rate=effective,
        marginal_rate=get_marginal_rate(income, brackets),
    )


@dataclass(frozen=True)
class HouseholdTaxResult:
    """Tax and take-home income for a taxpayer and their partner."""

    primary_tax: float
    primary_net_income: float
    partner_tax: float
    partner_net_income: float
    total_gross_income: float
    total_non_taxable_income: float
    total_tax: float
    total_net_income: float
    effective_tax_rate: float  # Percentage of combined gross income


def calculate_household_tax(
    gross_income: float,
    partner_income: float = 0.0,
    non_taxable_income: float = 0.0,
    partner_non_taxable_income: float = 0.0,
    assess_with_partner: bool = True,
    brackets: Optional[Sequence[TaxBracket]] = None,
) -> HouseholdTaxResult:
    """
    Calculate tax across a household.

    The partner's income is only taxed when they are assessed together with
    the primary taxpayer; otherwise it counts in full towards net income.
    Non-taxable income is added to net income after tax.

    Raises:
        InvalidInputError: If any income is negative or the bracket table
            is malformed
    """
    require_non_negative(gross_income, "gross_income")
    require_non_negative(partner_income, "partner_income")
    require_non_negative(non_taxable_income, "non_taxable_income")
    require_non_negative(partner_non_taxable_income, "partner_non_taxable_income")
    brackets = _resolve(brackets)

    primary_tax = calculate_tax(gross_income, brackets)
    partner_tax = calculate_tax(partner_income, brackets) if assess_with_partner else 0.0

    primary_net = gross_income - primary_tax
    partner_net = partner_income - partner_tax

    total_gross = gross_income + partner_income
    total_non_taxable = non_taxable_income + partner_non_taxable_income
    total_tax = primary_tax + partner_tax

    return HouseholdTaxResult(
        primary_tax=primary_tax,
        primary_net_income=primary_net,
        partner_tax=partner_tax,
        partner_net_income=partner_net,
        total_gross_income=total_gross,
        total_non_taxable_income=total_non_taxable,
        total_tax=total_tax,
        total_net_income=primary_net + partner_net + total_non_taxable,
        effective_tax_rate=total_tax / total_gross * 100 if total_gross > 0 else 0.0,
    )


def with_rates(
    brackets: Sequence[TaxBracket], rates: Sequence[float]
) -> List[TaxBracket]:
    """
    Copy a bracket table with new rates, keeping the band boundaries.

    Raises:
        InvalidInputError: If the number of rates does not match the table
    """
    if len(rates) != len(brackets):
        raise InvalidInputError(
            f"Expected {len(brackets)} rates, got {len(rates)}", "rates"
        )

    updated = [replace(bracket, rate=rate) for bracket, rate in zip(brackets, rates)]
    validate_brackets(updated)
    return updated
