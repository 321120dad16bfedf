"""Debt burden classification and per-loan alerts."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .config import settings
from .data_models import (
    Alert,
    AlertType,
    Loan,
    LoanStatus,
    LoanToIncomeReport,
    RiskLevel,
    ScheduleItem,
    Severity,
)
from .errors import InvalidIncome
from .utils import to_decimal, to_money

logger = logging.getLogger(__name__)

RATIO_STATUSES = frozenset({LoanStatus.ACTIVE, LoanStatus.OVERDUE})

# Upper bounds (exclusive) of each level, in percent of monthly income
RISK_THRESHOLDS: Tuple[Tuple[Decimal, RiskLevel], ...] = (
    (Decimal("20"), RiskLevel.LOW),
    (Decimal("35"), RiskLevel.MEDIUM),
    (Decimal("50"), RiskLevel.HIGH),
)

RECOMMENDATIONS: Dict[RiskLevel, str] = {
    RiskLevel.LOW: "Your debt-to-income ratio is healthy. Keep it up!",
    RiskLevel.MEDIUM: "Your debt-to-income ratio is acceptable but monitor it closely.",
    RiskLevel.HIGH: "Your debt-to-income ratio is high. Consider paying off loans faster.",
    RiskLevel.CRITICAL: "Your debt-to-income ratio is critical. Prioritize debt repayment.",
}

ALERT_SEVERITY: Dict[RiskLevel, Severity] = {
    RiskLevel.MEDIUM: Severity.LOW,
    RiskLevel.HIGH: Severity.MEDIUM,
    RiskLevel.CRITICAL: Severity.HIGH,
}


def _income(monthly_income) -> Decimal:
    try:
        income = to_decimal(monthly_income)
    except ValueError as exc:
        raise InvalidIncome("monthly_income", monthly_income, "must be a number") from exc
    if income <= 0:
        raise InvalidIncome("monthly_income", income, "must be greater than 0")
    return income


def classify_risk(ratio: Decimal) -> RiskLevel:
    for upper, level in RISK_THRESHOLDS:
        if ratio < upper:
            return level
    return RiskLevel.CRITICAL


def ratio_report(total_monthly_emi, monthly_income) -> LoanToIncomeReport:
    """Classify a total monthly installment against a monthly income."""
    income = _income(monthly_income)
    total_monthly_emi = to_decimal(total_monthly_emi)
    ratio = total_monthly_emi / income * 100
    level = classify_risk(ratio)
    return LoanToIncomeReport(
        total_monthly_emi=total_monthly_emi,
        monthly_income=income,
        ratio=ratio,
        risk_level=level,
        recommendation=RECOMMENDATIONS[level],
    )


def loan_to_income_ratio(
    loans: Iterable[Loan],
    monthly_income,
    include_statuses: Optional[Iterable[LoanStatus]] = None,
) -> LoanToIncomeReport:
    """Sum the installments of the given loans and classify the burden.

    Only loans whose status is in ``include_statuses`` count; by default
    Active and Overdue loans do and Closed loans do not.
    """
    statuses = frozenset(include_statuses) if include_statuses is not None else RATIO_STATUSES
    income = _income(monthly_income)
    total = sum((loan.monthly_installment for loan in loans if loan.status in statuses), Decimal("0"))
    return ratio_report(total, income)


def _next_unpaid(schedule: Sequence[ScheduleItem]) -> Optional[ScheduleItem]:
    for item in schedule:
        if not item.paid:
            return item
    return None


def alerts_for_loan(
    loan: Loan,
    schedule: Sequence[ScheduleItem],
    now: date,
    monthly_income=None,
) -> Tuple[Alert, ...]:
    """Derive the alerts for one loan.

    Alerts come out in a fixed order: overdue, due-soon, high-emi-ratio.
    Several may apply at once. Closed loans raise none. The EMI ratio alert
    is only evaluated when ``monthly_income`` is given.
    """
    if loan.status is LoanStatus.CLOSED:
        return ()

    alerts = []
    upcoming = _next_unpaid(schedule)
    if upcoming is not None:
        if upcoming.due_date < now:
            days_late = (now - upcoming.due_date).days
            alerts.append(
                Alert(
                    alert_type=AlertType.OVERDUE,
                    severity=Severity.HIGH,
                    loan_id=loan.loan_id,
                    action_required=True,
                    message=f"Installment {upcoming.month} is overdue by {days_late} days",
                )
            )
        elif upcoming.due_date <= now + timedelta(days=settings.DUE_SOON_DAYS):
            days_left = (upcoming.due_date - now).days
            alerts.append(
                Alert(
                    alert_type=AlertType.DUE_SOON,
                    severity=Severity.MEDIUM,
                    loan_id=loan.loan_id,
                    action_required=True,
                    message=f"EMI of {to_money(upcoming.payment)} due in {days_left} days",
                )
            )

    if monthly_income is not None:
        report = ratio_report(loan.monthly_installment, monthly_income)
        if report.ratio > settings.HIGH_EMI_RATIO_PERCENT:
            alerts.append(
                Alert(
                    alert_type=AlertType.HIGH_EMI_RATIO,
                    severity=ALERT_SEVERITY.get(report.risk_level, Severity.LOW),
                    loan_id=loan.loan_id,
                    action_required=report.risk_level is RiskLevel.CRITICAL,
                    message=f"EMI is {to_money(report.ratio)}% of monthly income",
                )
            )

    logger.debug("Loan %s: %d alerts", loan.loan_id, len(alerts))
    return tuple(alerts)
