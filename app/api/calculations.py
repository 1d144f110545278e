"""
Financial calculation API endpoints.

These endpoints accept inputs and return calculated results.
Used by the calculator forms and report generators.
"""

import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.calculations import (
    borrowing,
    gearing,
    mortgage,
    projections,
    retirement,
    tax,
)
from app.calculations.mortgage import LoanType, RepaymentFrequency
from app.config import TaxBracketSetting, get_borrowing_policy, get_tax_brackets

logger = logging.getLogger(__name__)

router = APIRouter()


def _bad_request(endpoint: str, error: ValueError) -> HTTPException:
    logger.warning(f"Rejected {endpoint} input: {error}")
    return HTTPException(status_code=400, detail=str(error))


class MortgageInput(BaseModel):
    """Input for mortgage repayment calculation."""

    loan_amount: float
    interest_rate: float  # Annual percentage
    loan_term: int  # Years
    repayment_frequency: RepaymentFrequency = RepaymentFrequency.monthly
    loan_type: LoanType = LoanType.principal_and_interest
    additional_repayments: float = 0.0
    start_date: Optional[date] = None

    def to_inputs(self) -> mortgage.MortgageInputs:
        return mortgage.MortgageInputs(
            loan_amount=self.loan_amount,
            interest_rate=self.interest_rate,
            loan_term=self.loan_term,
            repayment_frequency=self.repayment_frequency,
            loan_type=self.loan_type,
            additional_repayments=self.additional_repayments,
        )


class MortgageResponse(BaseModel):
    """Calculated repayment figures."""

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


@router.post("/mortgage", response_model=MortgageResponse)
async def calculate_mortgage(inputs: MortgageInput):
    """Calculate repayments, totals and payoff date for a loan."""
    try:
        result = mortgage.calculate_mortgage(inputs.to_inputs(), inputs.start_date)
    except ValueError as e:
        raise _bad_request("mortgage", e)

    return MortgageResponse(**asdict(result))


@router.post("/mortgage/schedule")
async def calculate_mortgage_schedule(inputs: MortgageInput):
    """Generate the repayment-by-repayment amortization schedule."""
    try:
        schedule = mortgage.generate_amortization_schedule(
            inputs.to_inputs(), inputs.start_date
        )
    except ValueError as e:
        raise _bad_request("schedule", e)

    return {
        "schedule": schedule,
        "total_interest": mortgage.calculate_total_interest(schedule),
        "total_principal": sum(row["principal"] for row in schedule),
    }


class RemainingTermInput(BaseModel):
    """Input for the remaining term of an existing loan."""

    balance: float
    monthly_payment: float
    interest_rate: float  # Annual percentage
    date_of_birth: Optional[date] = None


@router.post("/mortgage/remaining-term")
async def calculate_remaining_term(inputs: RemainingTermInput):
    """Estimate years left on a loan and the borrower's age at payoff."""
    try:
        years = mortgage.calculate_years_remaining(
            inputs.balance, inputs.monthly_payment, inputs.interest_rate
        )
    except ValueError as e:
        raise _bad_request("remaining term", e)

    return {
        "years_remaining": years,
        "payoff_age": mortgage.calculate_payoff_age(years, inputs.date_of_birth),
    }


class BorrowingInput(BaseModel):
    """Input for borrowing capacity calculation."""

    gross_income: float
    partner_income: Optional[float] = None
    dependants: int = 0
    existing_loans: float = 0.0


class BorrowingResponse(BaseModel):
    """Borrowing capacity and the policy it was calculated under."""

    total_income: float
    borrowing_capacity: float
    income_multiplier: float
    dependant_deduction: float


@router.post("/borrowing-capacity", response_model=BorrowingResponse)
async def calculate_borrowing_capacity(inputs: BorrowingInput):
    """Estimate how much a household could borrow."""
    policy = get_borrowing_policy()

    try:
        result = borrowing.calculate_borrowing(
            borrowing.BorrowingInputs(
                gross_income=inputs.gross_income,
                partner_income=inputs.partner_income,
                dependants=inputs.dependants,
                existing_loans=inputs.existing_loans,
            ),
            policy,
        )
    except ValueError as e:
        raise _bad_request("borrowing capacity", e)

    return BorrowingResponse(
        total_income=result.total_income,
        borrowing_capacity=result.borrowing_capacity,
        income_multiplier=policy.income_multiplier,
        dependant_deduction=policy.dependant_deduction,
    )


class TaxInput(BaseModel):
    """Input for income tax calculation."""

    income: float
    expenses: float = 0.0
    # Custom table; defaults to the configured one
    brackets: Optional[List[TaxBracketSetting]] = None
    # Replacement rates for each band of the table, as edited on the form
    rates: Optional[List[float]] = None


class TaxResponse(BaseModel):
    """Tax payable and net income."""

    tax_paid: float
    net_income: float
    effective_tax_rate: float
    marginal_rate: float
    brackets: List[TaxBracketSetting]


def _to_brackets(settings: List[TaxBracketSetting]) -> List[tax.TaxBracket]:
    return [
        tax.TaxBracket(min=b.min, max=b.max, rate=b.rate, label=b.label)
        for b in settings
    ]


def _to_settings(brackets: List[tax.TaxBracket]) -> List[TaxBracketSetting]:
    return [TaxBracketSetting(**asdict(b)) for b in brackets]


@router.get("/tax/brackets", response_model=List[TaxBracketSetting])
async def get_configured_brackets():
    """Return the configured tax bracket table."""
    return _to_settings(get_tax_brackets())


@router.post("/tax", response_model=TaxResponse)
async def calculate_income_tax(inputs: TaxInput):
    """Calculate income tax, effective and marginal rates, and net income."""
    try:
        if inputs.brackets is not None:
            brackets = _to_brackets(inputs.brackets)
            tax.validate_brackets(brackets)
        else:
            brackets = get_tax_brackets()

        if inputs.rates is not None:
            brackets = tax.with_rates(brackets, inputs.rates)

        result = tax.calculate_tax_result(inputs.income, inputs.expenses, brackets)
    except ValueError as e:
        raise _bad_request("tax", e)

    return TaxResponse(**asdict(result), brackets=_to_settings(brackets))


class HouseholdTaxInput(BaseModel):
    """Input for household tax calculation."""

    gross_income: float
    partner_income: float = 0.0
    non_taxable_income: float = 0.0
    partner_non_taxable_income: float = 0.0
    assess_with_partner: bool = True


@router.post("/tax/household")
async def calculate_household_tax(inputs: HouseholdTaxInput):
    """Calculate combined tax and take-home income for a household."""
    try:
        result = tax.calculate_household_tax(
            **inputs.model_dump(), brackets=get_tax_brackets()
        )
    except ValueError as e:
        raise _bad_request("household tax", e)

    return asdict(result)


class PropertyProjectionInput(BaseModel):
    """Input for a single property projection."""

    property_value: float
    growth_rate: str = "medium"
    loan_type: LoanType = LoanType.principal_and_interest
    interest_rate: float
    years: int = 30
    home_guarantee: bool = True


@router.post("/projections/property")
async def calculate_property_projection(inputs: PropertyProjectionInput):
    """Project value, debt and equity for one property."""
    try:
        data = projections.project_property(
            property_value=inputs.property_value,
            growth_rate=inputs.growth_rate,
            loan_type=inputs.loan_type,
            interest_rate=inputs.interest_rate,
            years=inputs.years,
            home_guarantee=inputs.home_guarantee,
        )
    except ValueError as e:
        raise _bad_request("property projection", e)

    return {"projection": data}


class PortfolioPropertyInput(BaseModel):
    """A property in a portfolio plan."""

    id: str
    property_value: float
    growth_rate: str = "medium"
    acquired: Optional[int] = None


class PortfolioProjectionInput(BaseModel):
    """Input for a portfolio projection."""

    properties: List[PortfolioPropertyInput]
    years: int = 30
    deposit_percentage: float = 0.1
    fees_percentage: float = 0.05
    refinance_limit: float = 0.8


@router.post("/projections/portfolio")
async def calculate_portfolio_projection(inputs: PortfolioProjectionInput):
    """Project a portfolio that buys properties from refinanced equity."""
    try:
        data = projections.project_portfolio(
            [projections.PortfolioProperty(**p.model_dump()) for p in inputs.properties],
            years=inputs.years,
            deposit_percentage=inputs.deposit_percentage,
            fees_percentage=inputs.fees_percentage,
            refinance_limit=inputs.refinance_limit,
        )
    except ValueError as e:
        raise _bad_request("portfolio projection", e)

    return {"projection": data}


class NegativeGearingInput(BaseModel):
    """Input for negative gearing analysis."""

    property_price: float
    property_type: str = "House"
    taxable_income: float
    year: int = 1
    ownership_percentage: float = 100


@router.post("/negative-gearing")
async def calculate_negative_gearing(inputs: NegativeGearingInput):
    """Compare tax payable with and without an investment property."""
    try:
        result = gearing.analyse_negative_gearing(
            property_price=inputs.property_price,
            property_type=inputs.property_type,
            taxable_income=inputs.taxable_income,
            year=inputs.year,
            ownership_percentage=inputs.ownership_percentage,
            brackets=get_tax_brackets(),
        )
    except ValueError as e:
        raise _bad_request("negative gearing", e)

    return asdict(result)


class RetirementInput(BaseModel):
    """Input for retirement savings planning."""

    annual_income: float
    current_age: int
    investment_assets: float = 0.0
    total_debt: float = 0.0


@router.post("/retirement")
async def calculate_retirement_plan(inputs: RetirementInput):
    """Estimate the savings needed for retirement and the path to reach it."""
    try:
        plan = retirement.plan_retirement(
            **inputs.model_dump(), brackets=get_tax_brackets()
        )
    except ValueError as e:
        raise _bad_request("retirement", e)

    return {
        **asdict(plan),
        "projection": retirement.project_retirement_savings(plan),
    }


class SuperProjectionInput(BaseModel):
    """Input for superannuation balance projection."""

    super_balance: float
    gross_income: float
    current_age: int
    personal_contribution: float = 0.0
    target_balance: float = 0.0


@router.post("/retirement/super")
async def calculate_super_projection(inputs: SuperProjectionInput):
    """Project a superannuation balance and the income it supports."""
    try:
        result = retirement.project_super_balance(**inputs.model_dump())
    except ValueError as e:
        raise _bad_request("super projection", e)

    return asdict(result)
