"""
Mortgage Repayment Calculations

Implements level-payment (annuity) and interest-only repayments at weekly,
fortnightly or monthly frequency, the effect of additional repayments on the
loan term, period-by-period amortization schedules, and the remaining term
of an existing loan.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Union

from dateutil.relativedelta import relativedelta

from app.calculations.validation import (
    InvalidInputError,
    parse_term_years,
    require_non_negative,
    require_positive,
    require_range,
)

logger = logging.getLogger(__name__)


class RepaymentFrequency(str, enum.Enum):
    """How often repayments are made."""

    weekly = "weekly"
    fortnightly = "fortnightly"
    monthly = "monthly"


class LoanType(str, enum.Enum):
    """Whether repayments reduce principal."""

    principal_and_interest = "principal_and_interest"
    interest_only = "interest_only"


PERIODS_PER_YEAR = {
    RepaymentFrequency.weekly: 52,
    RepaymentFrequency.fortnightly: 26,
    RepaymentFrequency.monthly: 12,
}

# Calendar distance between consecutive repayments
PERIOD_STEPS = {
    RepaymentFrequency.weekly: relativedelta(weeks=1),
    RepaymentFrequency.fortnightly: relativedelta(weeks=2),
    RepaymentFrequency.monthly: relativedelta(months=1),
}

# Remaining-term estimates stop counting after 50 years
MAX_REMAINING_MONTHS = 600


@dataclass(frozen=True)
class MortgageInputs:
    """Loan details as entered on the mortgage calculator form."""

    loan_amount: float
    interest_rate: float  # Annual rate as a percentage (e.g., 6 for 6%)
    loan_term: Union[int, str]  # Years
    repayment_frequency: RepaymentFrequency = RepaymentFrequency.monthly
    loan_type: LoanType = LoanType.principal_and_interest
    additional_repayments: float = 0.0  # Extra paid every repayment period


@dataclass(frozen=True)
class MortgageResult:
    """Calculated repayment figures for a loan."""

    repayment_amount: float
    total_repayments: float
    total_interest: float
    payoff_date: date
    principal_percentage: float
    interest_percentage: float
    number_of_payments: int
    potential_savings: Optional[float] = None
    time_saved_months: Optional[int] = None
    reduced_number_of_payments: Optional[int] = None


def periods_per_year(frequency: Union[RepaymentFrequency, str]) -> int:
    """Number of repayments made in a year at the given frequency."""
    try:
        return PERIODS_PER_YEAR[RepaymentFrequency(frequency)]
    except ValueError:
        raise InvalidInputError(
            f"Unknown repayment frequency: {frequency!r}", "repayment_frequency"
        )


def convert_to_monthly(
    amount: float, frequency: Union[RepaymentFrequency, str]
) -> float:
    """Convert a per-period amount to its monthly equivalent."""
    return amount * periods_per_year(frequency) / 12


def calculate_repayment(
    principal: float, period_rate: float, number_of_payments: int
) -> float:
    """
    Calculate the level repayment that clears a loan.

    Standard annuity formula: P * r(1+r)^n / ((1+r)^n - 1).

    Args:
        principal: Loan principal amount
        period_rate: Interest rate per repayment period as decimal
        number_of_payments: Total number of repayments

    Returns:
        Repayment per period
    """
    if principal <= 0 or number_of_payments <= 0:
        return 0.0

    if period_rate == 0:
        return principal / number_of_payments

    growth = (1 + period_rate) ** number_of_payments
    denominator = growth - 1

    if denominator <= 0:
        return principal / number_of_payments

    return principal * (period_rate * growth) / denominator


def simulate_additional_repayments(
    principal: float,
    period_rate: float,
    repayment: float,
    additional: float,
    max_periods: int,
) -> Optional[int]:
    """
    Count the repayments needed to clear a loan when paying extra each period.

    The balance accrues one period of interest and is then reduced by the
    regular plus additional repayment. The loop never runs past max_periods.

    Returns:
        Number of periods until the balance is cleared, or None if it is not
        cleared within max_periods.
    """
    balance = principal
    total_payment = repayment + additional

    for period in range(1, max_periods + 1):
        balance = balance * (1 + period_rate) - total_payment
        if balance <= 0:
            return period

    return None


def validate_mortgage_inputs(inputs: MortgageInputs) -> int:
    """
    Check mortgage inputs before calculation.

    Returns:
        Loan term in whole years
    """
    require_positive(inputs.loan_amount, "loan_amount")
    require_range(inputs.interest_rate, 0, 100, "interest_rate")
    require_non_negative(inputs.additional_repayments, "additional_repayments")
    periods_per_year(inputs.repayment_frequency)
    try:
        LoanType(inputs.loan_type)
    except ValueError:
        raise InvalidInputError(f"Unknown loan type: {inputs.loan_type!r}", "loan_type")
    return parse_term_years(inputs.loan_term)


def calculate_mortgage(
    inputs: MortgageInputs, start_date: Optional[date] = None
) -> MortgageResult:
    """
    Calculate repayments, totals and payoff date for a loan.

    Args:
        inputs: Loan details
        start_date: Date the loan starts (defaults to today)

    Returns:
        MortgageResult

    Raises:
        InvalidInputError: If any input is out of range
    """
    term_years = validate_mortgage_inputs(inputs)
    frequency = RepaymentFrequency(inputs.repayment_frequency)
    loan_type = LoanType(inputs.loan_type)

    if start_date is None:
        start_date = date.today()

    per_year = PERIODS_PER_YEAR[frequency]
    period_rate = inputs.interest_rate / 100 / per_year
    number_of_payments = term_years * per_year

    if loan_type == LoanType.interest_only:
        repayment = inputs.loan_amount * period_rate
        principal_repaid = 0.0
    else:
        repayment = calculate_repayment(
            inputs.loan_amount, period_rate, number_of_payments
        )
        principal_repaid = inputs.loan_amount

    total_repayments = repayment * number_of_payments
    total_interest = total_repayments - principal_repaid

    if total_repayments > 0:
        principal_percentage = principal_repaid / total_repayments * 100
        interest_percentage = 100 - principal_percentage
    else:
        principal_percentage = 0.0
        interest_percentage = 0.0

    payoff_date = start_date + relativedelta(years=term_years)
    potential_savings = None
    time_saved_months = None
    reduced_payments = None

    if loan_type == LoanType.principal_and_interest and inputs.additional_repayments > 0:
        reduced_payments = simulate_additional_repayments(
            inputs.loan_amount,
            period_rate,
            repayment,
            inputs.additional_repayments,
            number_of_payments,
        )

        if reduced_payments is None:
            logger.debug(
                f"Additional repayment of {inputs.additional_repayments} does not "
                f"shorten a {number_of_payments}-period loan"
            )
        else:
            savings = total_repayments - reduced_payments * (
                repayment + inputs.additional_repayments
            )
            if savings > 0:
                potential_savings = savings
                time_saved_months = round(
                    (number_of_payments - reduced_payments) * 12 / per_year
                )
                payoff_date = start_date + relativedelta(
                    months=round(reduced_payments * 12 / per_year)
                )
            else:
                reduced_payments = None

    return MortgageResult(
        repayment_amount=repayment,
        total_repayments=total_repayments,
        total_interest=total_interest,
        payoff_date=payoff_date,
        principal_percentage=principal_percentage,
        interest_percentage=interest_percentage,
        number_of_payments=number_of_payments,
        potential_savings=potential_savings,
        time_saved_months=time_saved_months,
        reduced_number_of_payments=reduced_payments,
    )


def generate_amortization_schedule(
    inputs: MortgageInputs, start_date: Optional[date] = None
) -> List[Dict]:
    """
    Generate a full amortization schedule.

    Interest-only loans pay interest each period and only reduce principal by
    any additional repayment, so the balance left at the end of the term is
    still owed. Principal-and-interest loans pay the level
    repayment plus any additional repayment until the balance is cleared.

    Args:
        inputs: Loan details
        start_date: Date of first repayment (defaults to today)

    Returns:
        List of amortization rows
    """
    term_years = validate_mortgage_inputs(inputs)
    frequency = RepaymentFrequency(inputs.repayment_frequency)
    loan_type = LoanType(inputs.loan_type)

    if start_date is None:
        start_date = date.today()

    per_year = PERIODS_PER_YEAR[frequency]
    step = PERIOD_STEPS[frequency]
    period_rate = inputs.interest_rate / 100 / per_year
    total_periods = term_years * per_year
    regular = calculate_repayment(inputs.loan_amount, period_rate, total_periods)

    schedule = []
    balance = inputs.loan_amount

    for period in range(1, total_periods + 1):
        period_date = start_date + step * (period - 1)

        interest = balance * period_rate

        if loan_type == LoanType.interest_only:
            principal_pmt = min(inputs.additional_repayments, balance)
        else:
            principal_pmt = regular + inputs.additional_repayments - interest
            principal_pmt = min(max(principal_pmt, 0.0), balance)

        payment = principal_pmt + interest
        ending_balance = balance - principal_pmt

        schedule.append(
            {
                "period": period,
                "date": period_date.isoformat(),
                "beginning_balance": round(balance, 2),
                "payment": round(payment, 2),
                "interest": round(interest, 2),
                "principal": round(principal_pmt, 2),
                "ending_balance": round(max(0, ending_balance), 2),
            }
        )

        balance = max(0.0, ending_balance)

        # Stop if balance is paid off
        if balance == 0:
            break

    return schedule


def calculate_total_interest(schedule: List[Dict]) -> float:
    """Calculate total interest paid over a schedule."""
    return sum(row["interest"] for row in schedule)


def calculate_years_remaining(
    balance: float,
    monthly_payment: float,
    interest_rate: float,
    max_months: int = MAX_REMAINING_MONTHS,
) -> float:
    """
    Estimate the years left on an existing loan.

    Each month accrues interest on the outstanding balance and the payment
    reduces what is left. Loans whose payment never clears the balance stop
    at max_months.

    Args:
        balance: Outstanding loan balance
        monthly_payment: Current monthly repayment
        interest_rate: Annual interest rate as a percentage
        max_months: Upper bound on the months counted

    Returns:
        Years remaining (fractional), 0 when there is no balance or payment
    """
    require_non_negative(balance, "balance")
    require_non_negative(monthly_payment, "monthly_payment")
    require_range(interest_rate, 0, 100, "interest_rate")

    if balance == 0 or monthly_payment == 0:
        return 0.0

    monthly_rate = interest_rate / 100 / 12
    months = 0
    while balance > 0 and months < max_months:
        balance -= monthly_payment - balance * monthly_rate
        months += 1

    return months / 12


def calculate_payoff_age(
    years_remaining: float,
    date_of_birth: Optional[date],
    today: Optional[date] = None,
) -> Optional[float]:
    """Borrower's age when the loan is paid off, None if it cannot be known."""
    if date_of_birth is None or not years_remaining:
        return None

    if today is None:
        today = date.today()

    return today.year - date_of_birth.year + years_remaining
