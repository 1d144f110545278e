"""
Tests for the calculation API endpoints.
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.config import Settings, get_borrowing_policy, get_tax_brackets
from app.calculations import InvalidInputError
from app.calculations.tax import DEFAULT_TAX_BRACKETS


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def mortgage_payload():
    return {
        "loan_amount": 500000,
        "interest_rate": 6,
        "loan_term": "30",
        "repayment_frequency": "monthly",
        "loan_type": "principal_and_interest",
        "additional_repayments": 0,
        "start_date": "2025-01-15",
    }


class TestHealth:
    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestMortgageEndpoints:
    """Test mortgage calculation endpoints."""

    def test_calculate_mortgage(self, client, mortgage_payload):
        response = client.post("/api/calculate/mortgage", json=mortgage_payload)
        assert response.status_code == 200
        data = response.json()
        assert data["repayment_amount"] == pytest.approx(2997.75, abs=0.01)
        assert data["number_of_payments"] == 360
        assert data["payoff_date"] == "2055-01-15"
        assert data["potential_savings"] is None

    def test_calculate_mortgage_with_extra(self, client, mortgage_payload):
        mortgage_payload["additional_repayments"] = 500
        response = client.post("/api/calculate/mortgage", json=mortgage_payload)
        assert response.status_code == 200
        data = response.json()
        assert data["potential_savings"] > 0
        assert data["reduced_number_of_payments"] < 360

    def test_invalid_loan_amount(self, client, mortgage_payload):
        mortgage_payload["loan_amount"] = 0
        response = client.post("/api/calculate/mortgage", json=mortgage_payload)
        assert response.status_code == 400
        assert "loan_amount" in response.json()["detail"]

    def test_loan_term_too_long(self, client, mortgage_payload):
        mortgage_payload.update(
            loan_amount=100000,
            interest_rate=100,
            loan_term=1000,
            repayment_frequency="weekly",
        )
        for path in ("/api/calculate/mortgage", "/api/calculate/mortgage/schedule"):
            response = client.post(path, json=mortgage_payload)
            assert response.status_code == 400
            assert "cannot exceed 50" in response.json()["detail"]

    def test_unknown_frequency(self, client, mortgage_payload):
        mortgage_payload["repayment_frequency"] = "daily"
        response = client.post("/api/calculate/mortgage", json=mortgage_payload)
        assert response.status_code == 422

    def test_schedule(self, client, mortgage_payload):
        mortgage_payload.update(loan_amount=100000, loan_term=5)
        response = client.post("/api/calculate/mortgage/schedule", json=mortgage_payload)
        assert response.status_code == 200
        data = response.json()
        assert len(data["schedule"]) == 60
        assert data["total_principal"] == pytest.approx(100000, abs=1)


class TestRemainingTermEndpoint:
    def test_remaining_term(self, client):
        response = client.post(
            "/api/calculate/mortgage/remaining-term",
            json={
                "balance": 12000,
                "monthly_payment": 1000,
                "interest_rate": 0,
                "date_of_birth": "1985-06-01",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["years_remaining"] == 1
        assert data["payoff_age"] == date.today().year - 1985 + 1

    def test_without_date_of_birth(self, client):
        response = client.post(
            "/api/calculate/mortgage/remaining-term",
            json={"balance": 500000, "monthly_payment": 100, "interest_rate": 6},
        )
        assert response.status_code == 200
        assert response.json() == {"years_remaining": 50, "payoff_age": None}

    def test_negative_balance_rejected(self, client):
        response = client.post(
            "/api/calculate/mortgage/remaining-term",
            json={"balance": -1, "monthly_payment": 100, "interest_rate": 6},
        )
        assert response.status_code == 400


class TestBorrowingEndpoint:
    def test_borrowing_capacity(self, client):
        response = client.post(
            "/api/calculate/borrowing-capacity",
            json={
                "gross_income": 100000,
                "partner_income": 0,
                "dependants": 2,
                "existing_loans": 20000,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total_income"] == 90000
        assert data["borrowing_capacity"] == 520000
        assert data["income_multiplier"] == 6

    def test_negative_income_rejected(self, client):
        response = client.post(
            "/api/calculate/borrowing-capacity", json={"gross_income": -1}
        )
        assert response.status_code == 400


class TestTaxEndpoints:
    def test_default_brackets(self, client):
        response = client.get("/api/calculate/tax/brackets")
        assert response.status_code == 200
        brackets = response.json()
        assert len(brackets) == 5
        assert brackets[-1]["max"] is None

    def test_calculate_tax(self, client):
        response = client.post("/api/calculate/tax", json={"income": 45000})
        assert response.status_code == 200
        data = response.json()
        assert data["tax_paid"] == pytest.approx(4288)
        assert data["net_income"] == pytest.approx(40712)
        assert data["marginal_rate"] == pytest.approx(16)

    def test_custom_rates(self, client):
        response = client.post(
            "/api/calculate/tax",
            json={"income": 45000, "rates": [0, 0.19, 0.325, 0.37, 0.45]},
        )
        assert response.status_code == 200
        assert response.json()["tax_paid"] == pytest.approx(5092)

    def test_custom_brackets(self, client):
        response = client.post(
            "/api/calculate/tax",
            json={
                "income": 20000,
                "brackets": [
                    {"min": 0, "max": 10000, "rate": 0},
                    {"min": 10000, "max": None, "rate": 0.1},
                ],
            },
        )
        assert response.status_code == 200
        assert response.json()["tax_paid"] == pytest.approx(1000)

    def test_malformed_brackets(self, client):
        response = client.post(
            "/api/calculate/tax",
            json={
                "income": 20000,
                "brackets": [
                    {"min": 0, "max": 10000, "rate": 0},
                    {"min": 10000, "max": 50000, "rate": 0.1},
                ],
            },
        )
        assert response.status_code == 400


    def test_empty_brackets_rejected(self, client):
        response = client.post(
            "/api/calculate/tax", json={"income": 45000, "brackets": []}
        )
        assert response.status_code == 400
        assert "empty" in response.json()["detail"]

    def test_household_tax(self, client):
        response = client.post(
            "/api/calculate/tax/household",
            json={
                "gross_income": 100000,
                "partner_income": 60000,
                "non_taxable_income": 5000,
                "partner_non_taxable_income": 1000,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total_tax"] == pytest.approx(29576)
        assert data["total_net_income"] == pytest.approx(136424)
        assert data["effective_tax_rate"] == pytest.approx(18.485)

    def test_household_partner_not_assessed(self, client):
        response = client.post(
            "/api/calculate/tax/household",
            json={
                "gross_income": 100000,
                "partner_income": 60000,
                "assess_with_partner": False,
            },
        )
        assert response.status_code == 200
        assert response.json()["partner_tax"] == 0

    def test_household_negative_income_rejected(self, client):
        response = client.post(
            "/api/calculate/tax/household", json={"gross_income": -1}
        )
        assert response.status_code == 400


class TestProjectionEndpoints:
    def test_property_projection(self, client):
        response = client.post(
            "/api/calculate/projections/property",
            json={"property_value": 500000, "interest_rate": 6, "years": 10},
        )
        assert response.status_code == 200
        assert len(response.json()["projection"]) == 11

    def test_portfolio_projection(self, client):
        response = client.post(
            "/api/calculate/projections/portfolio",
            json={
                "properties": [
                    {"id": "a", "property_value": 500000},
                    {"id": "b", "property_value": 400000},
                ],
                "years": 10,
            },
        )
        assert response.status_code == 200
        projection = response.json()["projection"]
        assert projection[7]["total_debt"] == 895000

    def test_unknown_growth_rate(self, client):
        response = client.post(
            "/api/calculate/projections/property",
            json={"property_value": 500000, "interest_rate": 6, "growth_rate": "wild"},
        )
        assert response.status_code == 400


class TestRetirementEndpoints:
    def test_retirement_plan(self, client):
        response = client.post(
            "/api/calculate/retirement",
            json={
                "annual_income": 100000,
                "current_age": 35,
                "investment_assets": 200000,
                "total_debt": 50000,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["years_until_retirement"] == 30
        assert data["net_portfolio_value"] == 150000
        assert data["total_tax_paid"] == pytest.approx(20788 * 30)
        assert len(data["projection"]) == 31

    def test_super_projection(self, client):
        response = client.post(
            "/api/calculate/retirement/super",
            json={
                "super_balance": 100000,
                "gross_income": 100000,
                "current_age": 35,
                "personal_contribution": 5000,
                "target_balance": 400000,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total_annual_contribution"] == pytest.approx(15500)
        assert data["progress_percentage"] == pytest.approx(25)

    def test_invalid_age_rejected(self, client):
        response = client.post(
            "/api/calculate/retirement",
            json={"annual_income": 100000, "current_age": 150},
        )
        assert response.status_code == 400


class TestNegativeGearingEndpoint:
    def test_negative_gearing(self, client):
        response = client.post(
            "/api/calculate/negative-gearing",
            json={"property_price": 600000, "taxable_income": 77000},
        )
        assert response.status_code == 200
        assert response.json()["tax_savings"] == pytest.approx(10096)

    def test_unknown_property_type(self, client):
        response = client.post(
            "/api/calculate/negative-gearing",
            json={
                "property_price": 600000,
                "taxable_income": 77000,
                "property_type": "Castle",
            },
        )
        assert response.status_code == 400


class TestSettings:
    """Test policy and tax table configuration."""

    def test_borrowing_policy_from_settings(self):
        settings = Settings(
            borrowing_income_multiplier=5, borrowing_dependant_deduction=8000
        )
        policy = get_borrowing_policy(settings)
        assert policy.income_multiplier == 5
        assert policy.dependant_deduction == 8000

    @pytest.mark.parametrize(
        "overrides",
        [
            {"borrowing_income_multiplier": -1},
            {"borrowing_dependant_deduction": -5000},
        ],
    )
    def test_negative_borrowing_policy_rejected(self, overrides):
        with pytest.raises(InvalidInputError):
            get_borrowing_policy(Settings(**overrides))

    def test_default_tax_brackets(self):
        assert get_tax_brackets(Settings()) == list(DEFAULT_TAX_BRACKETS)

    def test_malformed_configured_brackets(self):
        settings = Settings(tax_brackets=[{"min": 0, "max": 1000, "rate": 0.1}])
        with pytest.raises(InvalidInputError):
            get_tax_brackets(settings)
