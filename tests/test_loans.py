"""Tests for loan creation, payment recording and status changes."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from loan_engine.data_models import LoanStatus
from loan_engine.errors import InvalidLoanParameters
from loan_engine.loans import create_loan, parse_status, record_payment, refresh_status
from loan_engine.utils import to_money


class TestCreateLoan:
    def test_derived_fields(self, home_loan):
        assert to_money(home_loan.monthly_installment) == Decimal("2051.65")
        assert home_loan.remaining_amount == home_loan.total_payable
        assert home_loan.total_payable == home_loan.principal + home_loan.total_interest
        assert len(home_loan.schedule) == 60
        assert home_loan.next_due_date == date(2024, 2, 1)
        assert home_loan.status is LoanStatus.ACTIVE
        assert home_loan.months_paid == 0
        assert home_loan.outstanding_principal == home_loan.principal

    def test_generates_an_id(self, start):
        loan = create_loan(1000, 5, 12, start)
        assert loan.loan_id

    def test_status_from_text(self, start):
        loan = create_loan(1000, 5, 12, start, status="overdue")
        assert loan.status is LoanStatus.OVERDUE

    def test_unknown_status(self):
        with pytest.raises(InvalidLoanParameters) as excinfo:
            parse_status("Pending")
        assert excinfo.value.parameter == "status"

    def test_invalid_terms(self, start):
        with pytest.raises(InvalidLoanParameters):
            create_loan(-1, 5, 12, start)

    def test_remaining_amount_cannot_exceed_total_payable(self, home_loan):
        with pytest.raises(InvalidLoanParameters) as excinfo:
            replace(home_loan, remaining_amount=home_loan.total_payable + 100)
        assert excinfo.value.parameter == "remaining_amount"

    def test_remaining_amount_cannot_be_negative(self, home_loan):
        with pytest.raises(InvalidLoanParameters):
            replace(home_loan, remaining_amount=Decimal("-1"))

    def test_schedule_must_cover_tenure(self, home_loan):
        with pytest.raises(InvalidLoanParameters):
            replace(home_loan, schedule=home_loan.schedule[:10])


class TestRecordPayment:
    def test_marks_first_installment_paid(self, home_loan):
        paid = record_payment(home_loan, home_loan.monthly_installment, date(2024, 2, 1))
        assert paid.schedule[0].paid
        assert paid.schedule[0].paid_date == date(2024, 2, 1)
        assert not paid.schedule[1].paid
        assert paid.remaining_amount == home_loan.remaining_amount - home_loan.monthly_installment
        assert paid.next_due_date == date(2024, 3, 1)
        assert paid.outstanding_principal == home_loan.schedule[0].remaining_balance

    def test_original_loan_is_untouched(self, home_loan):
        record_payment(home_loan, home_loan.monthly_installment, date(2024, 2, 1))
        assert not home_loan.schedule[0].paid
        assert home_loan.remaining_amount == home_loan.total_payable

    def test_schedule_amounts_do_not_change(self, home_loan):
        paid = record_payment(home_loan, home_loan.monthly_installment, date(2024, 2, 1))
        for before, after in zip(home_loan.schedule, paid.schedule):
            assert before.principal_payment == after.principal_payment
            assert before.remaining_balance == after.remaining_balance

    def test_paying_every_installment_closes_the_loan(self, start):
        loan = create_loan(Decimal("12000"), Decimal("10"), 12, start)
        for item in loan.schedule:
            loan = record_payment(loan, item.payment, item.due_date)
        assert loan.status is LoanStatus.CLOSED
        assert loan.remaining_amount == 0
        assert loan.next_due_date is None
        assert loan.remaining_tenure == 0

    def test_overpayment_floors_remaining_amount(self, start):
        loan = create_loan(Decimal("1000"), Decimal("0"), 10, start)
        loan = record_payment(loan, Decimal("5000"), start)
        assert loan.remaining_amount == 0
        assert loan.status is LoanStatus.CLOSED
        assert loan.next_due_date is None
        assert loan.outstanding_principal == 0

    def test_closed_loan_rejects_payments(self, start):
        loan = create_loan(Decimal("1000"), Decimal("0"), 1, start)
        loan = record_payment(loan, Decimal("1000"), start)
        with pytest.raises(InvalidLoanParameters):
            record_payment(loan, Decimal("10"), start)

    @pytest.mark.parametrize("amount", [0, -10, "ten"])
    def test_rejects_bad_amounts(self, home_loan, amount):
        with pytest.raises(InvalidLoanParameters) as excinfo:
            record_payment(home_loan, amount, date(2024, 2, 1))
        assert excinfo.value.parameter == "amount"


class TestRefreshStatus:
    def test_past_due_becomes_overdue(self, home_loan):
        assert refresh_status(home_loan, date(2024, 2, 10)).status is LoanStatus.OVERDUE

    def test_not_yet_due_stays_active(self, home_loan):
        assert refresh_status(home_loan, date(2024, 1, 20)) is home_loan

    def test_paying_clears_overdue(self, home_loan):
        overdue = refresh_status(home_loan, date(2024, 2, 10))
        paid = record_payment(overdue, home_loan.monthly_installment, date(2024, 2, 10))
        assert refresh_status(paid, date(2024, 2, 10)).status is LoanStatus.ACTIVE

    def test_closed_loan_is_left_alone(self, start):
        loan = create_loan(Decimal("1000"), Decimal("0"), 1, start)
        loan = record_payment(loan, Decimal("1000"), start)
        assert refresh_status(loan, date(2030, 1, 1)).status is LoanStatus.CLOSED
