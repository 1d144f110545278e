"""
Borrowing Capacity Calculations

Estimates the maximum loan a lender might extend from household income,
dependants and existing debts.
"""

from dataclasses import dataclass
from typing import Optional

from app.calculations.validation import InvalidInputError, require_non_negative


@dataclass(frozen=True)
class BorrowingPolicy:
    """Lending-policy assumptions used by the capacity estimate."""

    income_multiplier: float = 6.0
    dependant_deduction: float = 5000.0


DEFAULT_BORROWING_POLICY = BorrowingPolicy()


@dataclass(frozen=True)
class BorrowingInputs:
    """Household details from the borrowing capacity form."""

    gross_income: float
    partner_income: Optional[float] = None
    dependants: int = 0
    existing_loans: float = 0.0


@dataclass(frozen=True)
class BorrowingResult:
    """Income considered and the resulting capacity."""

    total_income: float
    borrowing_capacity: float


def validate_policy(policy: BorrowingPolicy) -> None:
    """Reject negative multipliers or deductions."""
    require_non_negative(policy.income_multiplier, "income_multiplier")
    require_non_negative(policy.dependant_deduction, "dependant_deduction")


def validate_borrowing_inputs(inputs: BorrowingInputs) -> None:
    """Reject negative incomes, loans or dependant counts."""
    require_non_negative(inputs.gross_income, "gross_income")
    if inputs.partner_income is not None:
        require_non_negative(inputs.partner_income, "partner_income")
    require_non_negative(inputs.existing_loans, "existing_loans")
    if isinstance(inputs.dependants, bool) or not isinstance(inputs.dependants, int):
        raise InvalidInputError("dependants must be a whole number", "dependants")
    require_non_negative(inputs.dependants, "dependants")


def calculate_total_income(
    inputs: BorrowingInputs, policy: BorrowingPolicy = DEFAULT_BORROWING_POLICY
) -> float:
    """Combined income less the allowance for each dependant."""
    return (
        inputs.gross_income
        + (inputs.partner_income or 0)
        - policy.dependant_deduction * inputs.dependants
    )


def calculate_borrowing(
    inputs: BorrowingInputs, policy: BorrowingPolicy = DEFAULT_BORROWING_POLICY
) -> BorrowingResult:
    """
    Estimate borrowing capacity.

    capacity = max(0, total_income * multiplier - existing_loans)

    Args:
        inputs: Household income and debts
        policy: Multiplier and per-dependant deduction to apply

    Returns:
        BorrowingResult with capacity floored at 0
    """
    validate_borrowing_inputs(inputs)
    validate_policy(policy)

    total_income = calculate_total_income(inputs, policy)
    capacity = total_income * policy.income_multiplier - inputs.existing_loans

    return BorrowingResult(
        total_income=total_income,
        borrowing_capacity=max(0.0, capacity),
    )


def calculate_capacity(
    inputs: BorrowingInputs, policy: BorrowingPolicy = DEFAULT_BORROWING_POLICY
) -> float:
    """Borrowing capacity as a single amount."""
    return calculate_borrowing(inputs, policy).borrowing_capacity
