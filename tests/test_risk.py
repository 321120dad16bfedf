"""Tests for the loan-to-income report and loan alerts."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from loan_engine.data_models import AlertType, LoanStatus, RiskLevel, Severity
from loan_engine.errors import InvalidIncome
from loan_engine.loans import create_loan, record_payment
from loan_engine.risk import (
    RECOMMENDATIONS,
    alerts_for_loan,
    classify_risk,
    loan_to_income_ratio,
    ratio_report,
)


class TestRatio:
    def test_interest_free_loan(self, start):
        loan = create_loan(Decimal("150000"), Decimal("0"), 10, start)
        report = loan_to_income_ratio([loan], Decimal("50000"))
        assert report.total_monthly_emi == Decimal("15000")
        assert report.ratio == Decimal("30")
        assert report.risk_level is RiskLevel.MEDIUM
        assert report.recommendation == RECOMMENDATIONS[RiskLevel.MEDIUM]

    @pytest.mark.parametrize(
        "ratio, level",
        [
            ("0", RiskLevel.LOW),
            ("19.99", RiskLevel.LOW),
            ("20", RiskLevel.MEDIUM),
            ("34.99", RiskLevel.MEDIUM),
            ("35", RiskLevel.HIGH),
            ("49.99", RiskLevel.HIGH),
            ("50", RiskLevel.CRITICAL),
            ("180", RiskLevel.CRITICAL),
        ],
    )
    def test_thresholds(self, ratio, level):
        assert classify_risk(Decimal(ratio)) is level

    def test_sums_every_open_loan(self, card_and_car):
        card, car = card_and_car
        report = loan_to_income_ratio(card_and_car, 10000)
        assert report.total_monthly_emi == card.monthly_installment + car.monthly_installment

    def test_closed_loans_do_not_count(self, card_and_car):
        card, car = card_and_car
        loans = [replace(card, status=LoanStatus.CLOSED), replace(car, status=LoanStatus.OVERDUE)]
        report = loan_to_income_ratio(loans, 10000)
        assert report.total_monthly_emi == car.monthly_installment

    def test_status_filter(self, card_and_car):
        card, car = card_and_car
        loans = [card, replace(car, status=LoanStatus.OVERDUE)]
        report = loan_to_income_ratio(loans, 10000, include_statuses={LoanStatus.ACTIVE})
        assert report.total_monthly_emi == card.monthly_installment

    def test_no_loans(self):
        report = loan_to_income_ratio([], 5000)
        assert report.ratio == 0
        assert report.risk_level is RiskLevel.LOW

    @pytest.mark.parametrize("income", [0, -5000, "lots"])
    def test_rejects_invalid_income(self, income):
        with pytest.raises(InvalidIncome) as excinfo:
            ratio_report(1000, income)
        assert excinfo.value.parameter == "monthly_income"


class TestAlerts:
    @pytest.mark.parametrize(
        "today, expected",
        [
            (date(2024, 2, 5), [AlertType.OVERDUE]),
            (date(2024, 1, 28), [AlertType.DUE_SOON]),
            (date(2024, 2, 1), [AlertType.DUE_SOON]),
            (date(2024, 1, 25), [AlertType.DUE_SOON]),
            (date(2024, 1, 10), []),
        ],
    )
    def test_due_date_alerts(self, home_loan, today, expected):
        alerts = alerts_for_loan(home_loan, home_loan.schedule, today)
        assert [alert.alert_type for alert in alerts] == expected
        assert all(alert.action_required for alert in alerts)
        assert all(alert.loan_id == "home" for alert in alerts)

    def test_overdue_alert(self, home_loan):
        (alert,) = alerts_for_loan(home_loan, home_loan.schedule, date(2024, 2, 5))
        assert alert.severity is Severity.HIGH
        assert alert.message == "Installment 1 is overdue by 4 days"

    def test_due_soon_alert(self, home_loan):
        (alert,) = alerts_for_loan(home_loan, home_loan.schedule, date(2024, 1, 28))
        assert alert.severity is Severity.MEDIUM
        assert alert.message == "EMI of 2051.65 due in 4 days"

    def test_paid_installments_are_skipped(self, home_loan):
        paid = record_payment(home_loan, home_loan.monthly_installment, date(2024, 2, 1))
        assert alerts_for_loan(paid, paid.schedule, date(2024, 2, 5)) == ()

    @pytest.mark.parametrize(
        "income, severity, action_required",
        [
            (Decimal("9000"), Severity.LOW, False),
            (Decimal("5000"), Severity.MEDIUM, False),
            (Decimal("3000"), Severity.HIGH, True),
        ],
    )
    def test_high_emi_ratio(self, home_loan, income, severity, action_required):
        (alert,) = alerts_for_loan(home_loan, home_loan.schedule, date(2024, 1, 10), monthly_income=income)
        assert alert.alert_type is AlertType.HIGH_EMI_RATIO
        assert alert.severity is severity
        assert alert.action_required is action_required

    def test_affordable_emi_raises_no_alert(self, home_loan):
        assert alerts_for_loan(home_loan, home_loan.schedule, date(2024, 1, 10), monthly_income=20000) == ()

    def test_ratio_of_exactly_twenty_percent_is_not_high(self, start):
        loan = create_loan(Decimal("1000"), Decimal("0"), 10, start)
        assert alerts_for_loan(loan, loan.schedule, date(2024, 1, 10), monthly_income=500) == ()

    def test_alerts_come_in_fixed_order(self, home_loan):
        alerts = alerts_for_loan(home_loan, home_loan.schedule, date(2024, 2, 5), monthly_income=3000)
        assert [alert.alert_type for alert in alerts] == [AlertType.OVERDUE, AlertType.HIGH_EMI_RATIO]

    def test_closed_loan_has_no_alerts(self, start):
        loan = create_loan(Decimal("1000"), Decimal("0"), 1, start)
        loan = record_payment(loan, Decimal("1000"), start)
        assert alerts_for_loan(loan, loan.schedule, date(2030, 1, 1), monthly_income=100) == ()

    def test_invalid_income(self, home_loan):
        with pytest.raises(InvalidIncome):
            alerts_for_loan(home_loan, home_loan.schedule, date(2024, 1, 10), monthly_income=0)
