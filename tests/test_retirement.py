"""
Tests for retirement planning and superannuation projections.
"""

import pytest

from app.calculations import InvalidInputError
from app.calculations.retirement import (
    RetirementAssumptions,
    annuity_factor,
    plan_retirement,
    project_retirement_savings,
    project_super_balance,
    years_until_retirement,
)

GROWTH_30_YEARS = 1.07 ** 30


class TestRetirementPlan:
    """Test the savings needed to fund retirement."""

    def test_mid_career_plan(self):
        """Test $100k income at 35 with $200k invested and $50k of debt."""
        plan = plan_retirement(
            100000, 35, investment_assets=200000, total_debt=50000
        )
        total_needed = 70000 * 20 * 1.03 ** 30

        assert plan.years_until_retirement == 30
        assert plan.years_retired == 20
        assert plan.net_portfolio_value == 150000
        assert plan.retirement_income_needed == pytest.approx(70000)
        assert plan.total_retirement_income_needed == pytest.approx(total_needed)
        assert plan.annual_savings_needed == pytest.approx(
            (total_needed - 150000 * GROWTH_30_YEARS)
            / ((GROWTH_30_YEARS - 1) / 0.07)
        )
        assert plan.total_tax_paid == pytest.approx(20788 * 30)
        assert plan.retirement_shortfall == pytest.approx(total_needed - 150000)

    def test_already_retired(self):
        plan = plan_retirement(100000, 70, investment_assets=400000)
        assert plan.years_until_retirement == 0
        assert plan.total_retirement_income_needed == pytest.approx(1400000)
        assert plan.annual_savings_needed == pytest.approx(1000000)
        assert plan.total_tax_paid == 0

    def test_zero_return(self):
        assumptions = RetirementAssumptions(investment_return=0, inflation_rate=0)
        plan = plan_retirement(
            50000, 55, investment_assets=100000, assumptions=assumptions
        )
        assert plan.annual_savings_needed == pytest.approx((700000 - 100000) / 10)

    def test_assets_exceed_need(self):
        plan = plan_retirement(10000, 60, investment_assets=1000000)
        assert plan.retirement_shortfall < 0
        assert plan.annual_savings_needed < 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"annual_income": -1, "current_age": 35},
            {"annual_income": 50000, "current_age": -1},
            {"annual_income": 50000, "current_age": 121},
            {"annual_income": 50000, "current_age": 35.5},
            {"annual_income": 50000, "current_age": True},
            {"annual_income": 50000, "current_age": 35, "investment_assets": -1},
            {"annual_income": 50000, "current_age": 35, "total_debt": -1},
            {
                "annual_income": 50000,
                "current_age": 35,
                "assumptions": RetirementAssumptions(life_expectancy=60),
            },
            {
                "annual_income": 50000,
                "current_age": 35,
                "assumptions": RetirementAssumptions(investment_return=-0.1),
            },
        ],
    )
    def test_invalid_inputs_rejected(self, kwargs):
        with pytest.raises(InvalidInputError):
            plan_retirement(**kwargs)


class TestRetirementProjection:
    """Test the year-by-year savings path."""

    def test_path_covers_each_year(self):
        plan = plan_retirement(100000, 35, investment_assets=150000)
        data = project_retirement_savings(plan)

        assert len(data) == 31
        assert data[0] == {"year": 0, "value": 150000, "target": 0}
        assert data[-1]["target"] == pytest.approx(
            plan.total_retirement_income_needed, abs=0.01
        )
        assert data[1]["value"] == pytest.approx(
            (150000 + plan.annual_savings_needed) * 1.07, abs=0.01
        )

    def test_retired_has_single_point(self):
        plan = plan_retirement(100000, 65, investment_assets=400000)
        data = project_retirement_savings(plan)
        assert data == [{"year": 0, "value": 400000, "target": 1400000}]


class TestSuperProjection:
    """Test superannuation balance projections."""

    def test_projected_balance(self):
        result = project_super_balance(
            100000, 100000, 35, personal_contribution=5000, target_balance=400000
        )
        projected = 100000 * GROWTH_30_YEARS + 15500 * (GROWTH_30_YEARS - 1) / 0.07

        assert result.years_until_retirement == 30
        assert result.employer_contribution == pytest.approx(10500)
        assert result.total_annual_contribution == pytest.approx(15500)
        assert result.projected_balance == pytest.approx(projected)
        assert result.annual_retirement_income == pytest.approx(projected * 0.04)
        assert result.monthly_retirement_income == pytest.approx(projected * 0.04 / 12)
        assert result.progress_percentage == pytest.approx(25)

    def test_no_target(self):
        result = project_super_balance(100000, 80000, 40)
        assert result.progress_percentage is None

    def test_at_retirement_age(self):
        result = project_super_balance(500000, 80000, 67)
        assert result.years_until_retirement == 0
        assert result.projected_balance == pytest.approx(500000)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"super_balance": -1, "gross_income": 80000, "current_age": 40},
            {"super_balance": 0, "gross_income": -1, "current_age": 40},
            {"super_balance": 0, "gross_income": 80000, "current_age": 150},
            {
                "super_balance": 0,
                "gross_income": 80000,
                "current_age": 40,
                "personal_contribution": -1,
            },
        ],
    )
    def test_invalid_inputs_rejected(self, kwargs):
        with pytest.raises(InvalidInputError):
            project_super_balance(**kwargs)


class TestRetirementHelpers:
    """Test shared retirement helpers."""

    def test_annuity_factor(self):
        assert annuity_factor(0, 10) == 10
        assert annuity_factor(0.1, 2) == pytest.approx(2.1)

    def test_years_until_retirement(self):
        assert years_until_retirement(40) == 25
        assert years_until_retirement(80) == 0
        assumptions = RetirementAssumptions(retirement_age=60, life_expectancy=90)
        assert years_until_retirement(40, assumptions) == 20
