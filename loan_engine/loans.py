"""Loan lifecycle: creation with derived fields and payment recording.

Loans are immutable. Recording a payment or refreshing the status returns a
new ``Loan``; the schedule amounts captured at creation are carried over
unchanged so they remain the reference for what-if comparisons.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from .amortization import emi_summary, validate_loan_terms
from .data_models import Loan, LoanStatus
from .errors import InvalidLoanParameters
from .schedule import build_schedule
from .utils import RESIDUAL_TOLERANCE, to_decimal

logger = logging.getLogger(__name__)


def parse_status(value) -> LoanStatus:
    if isinstance(value, LoanStatus):
        return value
    for status in LoanStatus:
        if str(value).strip().lower() == status.value.lower():
            return status
    raise InvalidLoanParameters("status", value, f"must be one of {[s.value for s in LoanStatus]}")


def create_loan(
    principal,
    annual_interest_rate,
    tenure_months: int,
    start_date: date,
    loan_id: Optional[str] = None,
    status=LoanStatus.ACTIVE,
    label: str = "",
    provider: str = "",
) -> Loan:
    """Create a loan and derive its installment, totals and schedule."""
    principal, annual_interest_rate, tenure_months = validate_loan_terms(
        principal, annual_interest_rate, tenure_months
    )
    emi = emi_summary(principal, annual_interest_rate, tenure_months)
    schedule = build_schedule(principal, annual_interest_rate, tenure_months, start_date)
    return Loan(
        loan_id=loan_id or uuid4().hex,
        principal=principal,
        annual_interest_rate=annual_interest_rate,
        tenure_months=tenure_months,
        start_date=start_date,
        status=parse_status(status),
        monthly_installment=emi.monthly_emi,
        total_interest=emi.total_interest,
        remaining_amount=emi.total_payable,
        schedule=schedule,
        next_due_date=schedule[0].due_date,
        label=label,
        provider=provider,
    )


def record_payment(loan: Loan, amount, paid_date: date) -> Loan:
    """Record one installment payment against a loan.

    The first unpaid installment is marked paid, the remaining amount is
    reduced (never below zero) and the next due date moves to the following
    installment. A loan with nothing left to pay is closed.
    """
    try:
        amount = to_decimal(amount)
    except ValueError as exc:
        raise InvalidLoanParameters("amount", amount, "must be a number") from exc
    if amount <= 0:
        raise InvalidLoanParameters("amount", amount, "must be greater than 0")
    if loan.status is LoanStatus.CLOSED:
        raise InvalidLoanParameters("status", loan.status.value, "closed loans accept no payments")

    schedule = list(loan.schedule)
    for index, item in enumerate(schedule):
        if not item.paid:
            schedule[index] = replace(item, paid=True, paid_date=paid_date)
            break

    remaining = loan.remaining_amount - amount
    if remaining < RESIDUAL_TOLERANCE:
        remaining = Decimal("0")
    unpaid = [item for item in schedule if not item.paid]
    next_due_date = unpaid[0].due_date if unpaid and remaining > 0 else None
    status = loan.status
    if remaining == 0:
        status = LoanStatus.CLOSED

    logger.debug("Recorded payment of %s on loan %s; remaining %s", amount, loan.loan_id, remaining)
    return replace(
        loan,
        schedule=tuple(schedule),
        remaining_amount=remaining,
        next_due_date=next_due_date,
        status=status,
    )


def refresh_status(loan: Loan, today: date) -> Loan:
    """Flag a loan Overdue when an installment is past due, or back to Active."""
    if loan.status is LoanStatus.CLOSED or loan.next_due_date is None:
        return loan
    status = LoanStatus.OVERDUE if loan.next_due_date < today else LoanStatus.ACTIVE
    if status is loan.status:
        return loan
    return replace(loan, status=status)
