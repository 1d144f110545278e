"""
Retirement Planning Calculations

Estimates the savings a household needs by retirement, the yearly amount it
must put aside to get there, and the superannuation balance current
contributions are on track to reach. Returns compound annually.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from app.calculations.tax import TaxBracket, calculate_tax
from app.calculations.validation import (
    InvalidInputError,
    require_non_negative,
    require_range,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetirementAssumptions:
    """Planning assumptions shared by the retirement calculators."""

    retirement_age: int = 65
    life_expectancy: int = 85
    inflation_rate: float = 0.03
    investment_return: float = 0.07
    income_replacement: float = 0.7  # Share of current income needed in retirement
    employer_contribution_rate: float = 0.105
    withdrawal_rate: float = 0.04  # Share of the balance drawn each year


DEFAULT_RETIREMENT_ASSUMPTIONS = RetirementAssumptions()


@dataclass(frozen=True)
class RetirementPlan:
    """What retirement will cost and how far current assets go towards it."""

    years_until_retirement: int
    years_retired: int
    net_portfolio_value: float
    retirement_income_needed: float  # Per year, in today's dollars
    total_retirement_income_needed: float  # Over retirement, inflated
    annual_savings_needed: float
    total_tax_paid: float  # Until retirement
    retirement_shortfall: float  # Negative when assets already cover it


@dataclass(frozen=True)
class SuperProjection:
    """Projected superannuation balance at retirement."""

    years_until_retirement: int
    employer_contribution: float
    total_annual_contribution: float
    projected_balance: float
    annual_retirement_income: float
    monthly_retirement_income: float
    progress_percentage: Optional[float]  # None without a target balance


def validate_assumptions(assumptions: RetirementAssumptions) -> None:
    """Reject ages out of order and rates outside [0, 1]."""
    require_range(assumptions.retirement_age, 0, 120, "retirement_age")
    require_range(
        assumptions.life_expectancy,
        assumptions.retirement_age,
        120,
        "life_expectancy",
    )
    require_range(assumptions.inflation_rate, 0, 1, "inflation_rate")
    require_range(assumptions.investment_return, 0, 1, "investment_return")
    require_range(assumptions.income_replacement, 0, 1, "income_replacement")
    require_range(
        assumptions.employer_contribution_rate, 0, 1, "employer_contribution_rate"
    )
    require_range(assumptions.withdrawal_rate, 0, 1, "withdrawal_rate")


def annuity_factor(rate: float, years: int) -> float:
    """Future value of 1 paid at the end of each year for the given years."""
    if rate == 0:
        return float(years)
    return ((1 + rate) ** years - 1) / rate


def years_until_retirement(
    current_age: int,
    assumptions: RetirementAssumptions = DEFAULT_RETIREMENT_ASSUMPTIONS,
) -> int:
    """Whole years until retirement age, 0 once it is reached."""
    if isinstance(current_age, bool) or not isinstance(current_age, int):
        raise InvalidInputError("current_age must be a whole number", "current_age")
    require_range(current_age, 0, 120, "current_age")
    return max(0, assumptions.retirement_age - current_age)


def plan_retirement(
    annual_income: float,
    current_age: int,
    investment_assets: float = 0.0,
    total_debt: float = 0.0,
    assumptions: RetirementAssumptions = DEFAULT_RETIREMENT_ASSUMPTIONS,
    brackets: Optional[Sequence[TaxBracket]] = None,
) -> RetirementPlan:
    """
    Work out the savings gap to a comfortable retirement.

    Retirement needs a share of current income for every year between
    retirement age and life expectancy, inflated to retirement. Investment
    and superannuation assets less debts count towards it, and the yearly
    savings needed is the level contribution that grows them to the total
    by retirement.

    Args:
        annual_income: Current gross annual income
        current_age: Age in whole years
        investment_assets: Investment and superannuation assets
        total_debt: Outstanding loan balances
        assumptions: Planning assumptions
        brackets: Tax table used for tax paid until retirement

    Returns:
        RetirementPlan

    Raises:
        InvalidInputError: If any input is negative or out of range
    """
    require_non_negative(annual_income, "annual_income")
    require_non_negative(investment_assets, "investment_assets")
    require_non_negative(total_debt, "total_debt")
    validate_assumptions(assumptions)
    years = years_until_retirement(current_age, assumptions)

    years_retired = assumptions.life_expectancy - assumptions.retirement_age
    net_portfolio = investment_assets - total_debt

    income_needed = annual_income * assumptions.income_replacement
    total_needed = (
        income_needed * years_retired * (1 + assumptions.inflation_rate) ** years
    )

    growth = (1 + assumptions.investment_return) ** years
    if years == 0:
        annual_savings = total_needed - net_portfolio
    else:
        annual_savings = (total_needed - net_portfolio * growth) / annuity_factor(
            assumptions.investment_return, years
        )

    total_tax = calculate_tax(annual_income, brackets) * years

    logger.debug(
        f"Retirement in {years} years needs {total_needed:.0f}, "
        f"saving {annual_savings:.0f} a year"
    )

    return RetirementPlan(
        years_until_retirement=years,
        years_retired=years_retired,
        net_portfolio_value=net_portfolio,
        retirement_income_needed=income_needed,
        total_retirement_income_needed=total_needed,
        annual_savings_needed=annual_savings,
        total_tax_paid=total_tax,
        retirement_shortfall=total_needed - net_portfolio,
    )


def project_retirement_savings(
    plan: RetirementPlan,
    assumptions: RetirementAssumptions = DEFAULT_RETIREMENT_ASSUMPTIONS,
) -> List[Dict]:
    """
    Year-by-year savings path against a straight-line target.

    Each year the contribution is added and the total earns one year of
    return. The target reaches the total needed at retirement.
    """
    years = plan.years_until_retirement
    value = plan.net_portfolio_value

    data = []
    for year in range(years + 1):
        target = plan.total_retirement_income_needed
        if years > 0:
            target *= year / years

        data.append(
            {
                "year": year,
                "value": round(value, 2),
                "target": round(target, 2),
            }
        )
        value = (value + plan.annual_savings_needed) * (
            1 + assumptions.investment_return
        )

    return data


def project_super_balance(
    super_balance: float,
    gross_income: float,
    current_age: int,
    personal_contribution: float = 0.0,
    target_balance: float = 0.0,
    assumptions: RetirementAssumptions = DEFAULT_RETIREMENT_ASSUMPTIONS,
) -> SuperProjection:
    """
    Project a superannuation balance to retirement age.

    The current balance compounds at the investment return and each year
    receives the personal contribution plus the employer's share of gross
    income. Retirement income draws the withdrawal rate from the projected
    balance.

    Raises:
        InvalidInputError: If any input is negative or out of range
    """
    require_non_negative(super_balance, "super_balance")
    require_non_negative(gross_income, "gross_income")
    require_non_negative(personal_contribution, "personal_contribution")
    require_non_negative(target_balance, "target_balance")
    validate_assumptions(assumptions)
    years = years_until_retirement(current_age, assumptions)

    employer = gross_income * assumptions.employer_contribution_rate
    contribution = personal_contribution + employer

    rate = assumptions.investment_return
    projected = super_balance * (1 + rate) ** years + contribution * annuity_factor(
        rate, years
    )

    annual_income = projected * assumptions.withdrawal_rate
    progress = super_balance / target_balance * 100 if target_balance > 0 else None

    return SuperProjection(
        years_until_retirement=years,
        employer_contribution=employer,
        total_annual_contribution=contribution,
        projected_balance=projected,
        annual_retirement_income=annual_income,
        monthly_retirement_income=annual_income / 12,
        progress_percentage=progress,
    )
