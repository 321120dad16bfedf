"""Repayment schedule generation.

``build_schedule`` produces the contractual schedule of a loan: a fixed
number of equal installments whose last one absorbs any accumulated drift so
the balance ends at exactly zero. ``amortize`` is the open-ended variant the
simulations use: it pays a fixed installment (plus optional one-off extra
payments) until the balance is gone, however many months that takes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from .amortization import compute_emi, monthly_rate, split_payment, validate_loan_terms
from .config import settings
from .data_models import ScheduleItem
from .errors import InvalidScenario
from .utils import RESIDUAL_TOLERANCE, add_months, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class AmortizationRun:
    items: Tuple[ScheduleItem, ...]
    # Extra payments that could not be applied because the balance was
    # already cleared.
    unapplied_extra: Decimal = ZERO

    @property
    def months(self) -> int:
        return len(self.items)


def build_schedule(principal, annual_rate_percent, tenure_months: int, start_date: date) -> Tuple[ScheduleItem, ...]:
    """Build the full repayment schedule for a loan.

    Parameters
    ----------
    principal: Decimal
        Amount borrowed.
    annual_rate_percent: Decimal
        Nominal annual rate in percent.
    tenure_months: int
        Number of installments.
    start_date: date
        Disbursement date. Installment ``i`` is due ``i`` months later.

    Returns
    -------
    tuple of ScheduleItem
        Exactly ``tenure_months`` items. The final item pays the whole
        remaining balance so ``remaining_balance`` is exactly zero.
    """
    principal, annual_rate_percent, tenure_months = validate_loan_terms(
        principal, annual_rate_percent, tenure_months
    )
    emi = compute_emi(principal, annual_rate_percent, tenure_months)
    rate = monthly_rate(annual_rate_percent)

    items = []
    balance = principal
    for month in range(1, tenure_months + 1):
        split = split_payment(balance, rate, emi)
        if month == tenure_months:
            # Final installment clears whatever rounding drift is left
            principal_payment = balance
            new_balance = ZERO
            payment = split.interest_payment + principal_payment
        else:
            principal_payment = split.principal_payment
            new_balance = split.new_balance
            payment = emi
        items.append(
            ScheduleItem(
                month=month,
                due_date=add_months(start_date, month),
                payment=payment,
                principal_payment=principal_payment,
                interest_payment=split.interest_payment,
                remaining_balance=new_balance,
            )
        )
        balance = new_balance

    logger.debug("Built %d-month schedule for principal=%s at %s%%", tenure_months, principal, annual_rate_percent)
    return tuple(items)


def amortize(
    balance,
    annual_rate_percent,
    emi,
    start_date: date,
    extra_payments: Optional[Dict[int, Decimal]] = None,
) -> AmortizationRun:
    """Pay ``emi`` every month until ``balance`` reaches zero.

    ``extra_payments`` maps a month index to a one-off amount applied after
    that month's regular installment. Any part of an extra payment beyond the
    outstanding balance, or scheduled after the balance is cleared, is not
    applied and is reported in ``unapplied_extra``.

    Raises ``InvalidScenario`` if the installment does not cover the monthly
    interest or the balance is not repaid within the maximum tenure.
    """
    balance = to_decimal(balance)
    annual_rate_percent = to_decimal(annual_rate_percent)
    emi = to_decimal(emi)
    if balance <= 0:
        raise InvalidScenario("balance", balance, "must be greater than 0")
    if annual_rate_percent < 0:
        raise InvalidScenario("annual_interest_rate", annual_rate_percent, "must be 0 or greater")
    if emi <= 0:
        raise InvalidScenario("emi", emi, "must be greater than 0")
    extra_payments = {m: to_decimal(a) for m, a in (extra_payments or {}).items()}
    rate = monthly_rate(annual_rate_percent)

    items = []
    applied_extra = ZERO
    month = 0
    while balance > 0:
        month += 1
        if month > settings.MAX_TENURE_MONTHS:
            raise InvalidScenario(
                "emi", emi, f"does not repay the balance within {settings.MAX_TENURE_MONTHS} months"
            )
        interest_payment = balance * rate
        if emi <= interest_payment:
            raise InvalidScenario("emi", emi, f"must exceed the monthly interest of {interest_payment}")
        principal_payment = emi - interest_payment
        if balance - principal_payment < RESIDUAL_TOLERANCE:
            # Partial last installment
            principal_payment = balance
        balance -= principal_payment

        extra = ZERO
        requested = extra_payments.get(month, ZERO)
        if requested > 0 and balance > 0:
            extra = min(requested, balance)
            if balance - extra < RESIDUAL_TOLERANCE:
                extra = balance
            balance -= extra
            applied_extra += extra

        items.append(
            ScheduleItem(
                month=month,
                due_date=add_months(start_date, month),
                payment=interest_payment + principal_payment + extra,
                principal_payment=principal_payment + extra,
                interest_payment=interest_payment,
                remaining_balance=balance,
                extra_payment=extra,
            )
        )

    unapplied = sum(extra_payments.values(), ZERO) - applied_extra
    return AmortizationRun(items=tuple(items), unapplied_extra=unapplied)


def schedule_totals(items: Iterable[ScheduleItem]) -> Tuple[Decimal, Decimal]:
    """Return ``(total_interest, total_payable)`` for a schedule."""
    total_interest = ZERO
    total_payable = ZERO
    for item in items:
        total_interest += item.interest_payment
        total_payable += item.payment
    return total_interest, total_payable
