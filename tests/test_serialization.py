"""Tests for reading loans from dictionaries and writing results out."""

import json
from decimal import Decimal

import pytest

from loan_engine.data_models import LoanStatus
from loan_engine.errors import InvalidLoanParameters
from loan_engine.serialization import (
    loan_from_dict,
    loans_from_json,
    schedule_to_dicts,
    simulation_to_dict,
    strategy_to_dict,
)
from loan_engine.simulation import simulate_lump_sum
from loan_engine.strategies import strategy_plan


def _entry(**overrides):
    data = {"id": "car", "principal": 12000, "rate": 10, "tenure": 12, "start_date": "2024-01-01"}
    data.update(overrides)
    return data


class TestLoanFromDict:
    def test_basic_fields(self):
        loan = loan_from_dict(_entry(label="Car loan", provider="Bank"))
        assert loan.loan_id == "car"
        assert loan.principal == Decimal("12000")
        assert loan.tenure_months == 12
        assert loan.label == "Car loan"
        assert loan.provider == "Bank"
        assert loan.status is LoanStatus.ACTIVE

    def test_camel_case_aliases(self):
        loan = loan_from_dict(
            {
                "loanId": "x",
                "principal": "5000",
                "annualInterestRate": "7.5",
                "tenureMonths": 24,
                "startDate": "2024-03-15",
            }
        )
        assert loan.loan_id == "x"
        assert loan.annual_interest_rate == Decimal("7.5")
        assert loan.schedule[0].due_date.isoformat() == "2024-04-15"

    def test_payments_made_are_replayed(self):
        loan = loan_from_dict(_entry(payments_made=3))
        assert loan.months_paid == 3
        assert loan.next_due_date.isoformat() == "2024-05-01"
        assert loan.remaining_amount < loan.total_payable

    def test_status_is_applied(self):
        assert loan_from_dict(_entry(status="overdue")).status is LoanStatus.OVERDUE

    def test_fully_paid_loan_is_closed(self):
        loan = loan_from_dict(_entry(payments_made=12, status="Active"))
        assert loan.status is LoanStatus.CLOSED
        assert loan.remaining_amount == 0

    def test_missing_field(self):
        data = _entry()
        del data["principal"]
        with pytest.raises(InvalidLoanParameters) as excinfo:
            loan_from_dict(data)
        assert excinfo.value.parameter == "principal"

    @pytest.mark.parametrize("payments_made", [-1, 13, "some"])
    def test_invalid_payments_made(self, payments_made):
        with pytest.raises(InvalidLoanParameters) as excinfo:
            loan_from_dict(_entry(payments_made=payments_made))
        assert excinfo.value.parameter == "payments_made"

    def test_invalid_start_date(self):
        with pytest.raises(InvalidLoanParameters) as excinfo:
            loan_from_dict(_entry(start_date="yesterday"))
        assert excinfo.value.parameter == "start_date"


class TestLoansFromJson:
    def test_list(self, tmp_path):
        path = tmp_path / "loans.json"
        path.write_text(json.dumps([_entry(), _entry(id="home")]))
        assert [loan.loan_id for loan in loans_from_json(path)] == ["car", "home"]

    def test_wrapped_in_object(self, tmp_path):
        path = tmp_path / "loans.json"
        path.write_text(json.dumps({"loans": [_entry()]}))
        assert len(loans_from_json(path)) == 1


def test_amounts_are_rounded_to_cents(home_loan):
    rows = schedule_to_dicts(home_loan.schedule)
    assert rows[0]["payment"] == 2051.65
    assert rows[0]["due_date"] == "2024-02-01"
    assert rows[-1]["balance"] == 0.0
    assert rows[0]["paid"] is False


def test_simulation_to_dict(home_loan):
    data = simulation_to_dict(simulate_lump_sum(home_loan, Decimal("20000"), 12))
    assert data["scenario_name"] == "Lump Sum Payment of 20000.00 in Month 12"
    assert data["schedule"][11]["extra"] == 20000.0
    assert data["lump_sum_excess"] == 0.0
    assert data["time_to_payoff"] == len(data["schedule"])
    assert "schedule" not in simulation_to_dict(simulate_lump_sum(home_loan, 1, 1), include_schedule=False)


def test_strategy_to_dict(card_and_car):
    data = strategy_to_dict(strategy_plan(card_and_car, "avalanche", 1000))
    assert data["method"] == "avalanche"
    assert data["priority"] == ["card", "car"]
    assert data["schedule"][0]["month"] == 1
    assert [p["loan_id"] for p in data["schedule"][0]["payments"]] == ["card", "car"]
    json.dumps(data)
