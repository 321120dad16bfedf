"""Closed-form amortization arithmetic.

Pure numeric routines shared by the schedule builder, the simulation engine
and the strategy optimizer: the equated monthly installment (EMI) formula,
the split of one payment into interest and principal, and the outstanding
balance after a number of payments. Everything is computed with ``Decimal``
at full working precision; rounding to cents is a presentation concern.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, getcontext
from typing import Tuple

from .config import settings
from .errors import InvalidLoanParameters
from .utils import to_decimal

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class EMIResult:
    monthly_emi: Decimal
    total_interest: Decimal
    total_payable: Decimal


@dataclass(frozen=True)
class PaymentSplit:
    interest_payment: Decimal
    principal_payment: Decimal
    new_balance: Decimal


def _as_decimal(name: str, value) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise InvalidLoanParameters(name, value, "must be a number") from exc


def validate_loan_terms(principal, annual_rate_percent, tenure_months) -> Tuple[Decimal, Decimal, int]:
    """Check loan terms and return them normalized to ``Decimal``/``int``.

    Raises ``InvalidLoanParameters`` naming the first violated constraint.
    """
    principal = _as_decimal("principal", principal)
    annual_rate_percent = _as_decimal("annual_interest_rate", annual_rate_percent)
    if principal <= 0:
        raise InvalidLoanParameters("principal", principal, "must be greater than 0")
    if annual_rate_percent < 0:
        raise InvalidLoanParameters("annual_interest_rate", annual_rate_percent, "must be 0 or greater")
    if isinstance(tenure_months, bool) or not isinstance(tenure_months, int):
        raise InvalidLoanParameters("tenure_months", tenure_months, "must be a whole number of months")
    if tenure_months < 1:
        raise InvalidLoanParameters("tenure_months", tenure_months, "must be at least 1")
    if tenure_months > settings.MAX_TENURE_MONTHS:
        raise InvalidLoanParameters(
            "tenure_months", tenure_months, f"must not exceed {settings.MAX_TENURE_MONTHS} months"
        )
    return principal, annual_rate_percent, tenure_months


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Convert a nominal annual rate in percent to a monthly decimal rate."""
    return annual_rate_percent / Decimal(12) / Decimal(100)


def compute_emi(principal, annual_rate_percent, tenure_months: int) -> Decimal:
    """Return the equated monthly installment for a loan.

    The formula is:

        EMI = P * r * (1 + r)^n / ((1 + r)^n - 1)

    where ``P`` is the principal, ``r`` the monthly rate and ``n`` the
    number of payments. When the interest rate is zero the payment
    simplifies to ``P / n``.
    """
    principal, annual_rate_percent, tenure_months = validate_loan_terms(
        principal, annual_rate_percent, tenure_months
    )
    rate = monthly_rate(annual_rate_percent)
    if rate == 0:
        return principal / Decimal(tenure_months)
    factor = (1 + rate) ** tenure_months
    return principal * (rate * factor) / (factor - 1)


def emi_summary(principal, annual_rate_percent, tenure_months: int) -> EMIResult:
    """Return the EMI together with the total interest and total payable."""
    emi = compute_emi(principal, annual_rate_percent, tenure_months)
    total_payable = emi * Decimal(tenure_months)
    total_interest = total_payable - to_decimal(principal)
    logger.debug(
        "EMI for principal=%s rate=%s%% tenure=%s: %s", principal, annual_rate_percent, tenure_months, emi
    )
    return EMIResult(monthly_emi=emi, total_interest=total_interest, total_payable=total_payable)


def split_payment(remaining_balance: Decimal, rate_per_month: Decimal, emi: Decimal) -> PaymentSplit:
    """Split one installment into its interest and principal parts.

    The new balance is floored at zero; callers that need the last payment
    to land exactly on zero adjust the principal part themselves.
    """
    interest_payment = remaining_balance * rate_per_month
    principal_payment = emi - interest_payment
    new_balance = remaining_balance - principal_payment
    if new_balance < 0:
        new_balance = ZERO
    return PaymentSplit(
        interest_payment=interest_payment,
        principal_payment=principal_payment,
        new_balance=new_balance,
    )


def remaining_balance(principal, annual_rate_percent, emi, months_elapsed: int) -> Decimal:
    """Outstanding principal after ``months_elapsed`` installments of ``emi``.

    Uses the closed form ``P(1+r)^k - EMI((1+r)^k - 1)/r`` (``P - k*EMI``
    for interest-free loans), floored at zero.
    """
    principal = _as_decimal("principal", principal)
    annual_rate_percent = _as_decimal("annual_interest_rate", annual_rate_percent)
    emi = _as_decimal("emi", emi)
    if months_elapsed < 0:
        raise InvalidLoanParameters("months_elapsed", months_elapsed, "must be 0 or greater")
    rate = monthly_rate(annual_rate_percent)
    if rate == 0:
        balance = principal - emi * Decimal(months_elapsed)
    else:
        factor = (1 + rate) ** months_elapsed
        balance = principal * factor - emi * (factor - 1) / rate
    return balance if balance > 0 else ZERO
