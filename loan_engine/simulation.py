"""What-if simulations against a loan's original schedule.

Each scenario re-runs the schedule under altered terms and compares the
result with the schedule captured when the loan was created. Simulations
never modify the loan; they return a fresh ``SimulationResult``.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal

from .amortization import compute_emi
from .data_models import Loan, LoanStatus, Savings, SimulationResult
from .errors import InvalidScenario
from .schedule import amortize, build_schedule, schedule_totals
from .utils import add_months, to_decimal, to_money

logger = logging.getLogger(__name__)


def _scenario_decimal(name: str, value) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise InvalidScenario(name, value, "must be a number") from exc


def _savings(loan: Loan, total_interest: Decimal, months: int) -> Savings:
    return Savings(
        interest_saved=loan.original_total_interest - total_interest,
        time_saved=loan.tenure_months - months,
    )


def simulate_increased_emi(loan: Loan, new_emi) -> SimulationResult:
    """Pay a larger fixed installment from the start of the loan.

    The tenure must shorten by at least one month; an increase too small
    to do so is rejected. The last installment may be smaller than
    ``new_emi``.
    """
    new_emi = _scenario_decimal("new_emi", new_emi)
    if new_emi <= loan.monthly_installment:
        raise InvalidScenario(
            "new_emi",
            new_emi,
            f"must be greater than the current EMI of {to_money(loan.monthly_installment)}",
        )
    run = amortize(loan.principal, loan.annual_interest_rate, new_emi, loan.start_date)
    if run.months >= loan.tenure_months:
        raise InvalidScenario(
            "new_emi",
            new_emi,
            f"must strictly accelerate repayment; it still takes {run.months} of {loan.tenure_months} months",
        )
    total_interest, total_payable = schedule_totals(run.items)
    logger.debug("Loan %s with EMI %s pays off in %d months", loan.loan_id, new_emi, run.months)
    return SimulationResult(
        scenario_name=f"Increased EMI to {to_money(new_emi)}",
        monthly_emi=new_emi,
        total_interest=total_interest,
        total_payable=total_payable,
        time_to_payoff=run.months,
        savings=_savings(loan, total_interest, run.months),
        schedule=run.items,
    )


def simulate_lump_sum(loan: Loan, amount, apply_at_month: int) -> SimulationResult:
    """Inject a one-off payment after the regular installment of a month.

    The loan keeps its EMI and rate, so the extra principal shortens the
    tenure. A lump sum larger than the balance outstanding at that point is
    clamped; the part that could not be applied is returned in
    ``lump_sum_excess``.
    """
    amount = _scenario_decimal("amount", amount)
    if amount <= 0:
        raise InvalidScenario("amount", amount, "must be greater than 0")
    if isinstance(apply_at_month, bool) or not isinstance(apply_at_month, int):
        raise InvalidScenario("apply_at_month", apply_at_month, "must be a whole month number")
    if not 1 <= apply_at_month <= loan.tenure_months:
        raise InvalidScenario("apply_at_month", apply_at_month, f"must be between 1 and {loan.tenure_months}")

    run = amortize(
        loan.principal,
        loan.annual_interest_rate,
        loan.monthly_installment,
        loan.start_date,
        extra_payments={apply_at_month: amount},
    )
    if run.unapplied_extra > 0:
        logger.warning(
            "Lump sum of %s on loan %s exceeds the balance at month %d; %s not applied",
            amount,
            loan.loan_id,
            apply_at_month,
            to_money(run.unapplied_extra),
        )
    total_interest, total_payable = schedule_totals(run.items)
    return SimulationResult(
        scenario_name=f"Lump Sum Payment of {to_money(amount)} in Month {apply_at_month}",
        monthly_emi=loan.monthly_installment,
        total_interest=total_interest,
        total_payable=total_payable,
        time_to_payoff=run.months,
        savings=_savings(loan, total_interest, run.months),
        schedule=run.items,
        lump_sum_excess=run.unapplied_extra,
    )


def simulate_refinance(loan: Loan, new_annual_rate) -> SimulationResult:
    """Re-amortize the outstanding principal over the remaining tenure.

    Installments already paid stay as they were; their interest is added to
    the scenario totals so both sides of the comparison cover the whole
    life of the loan.
    """
    new_annual_rate = _scenario_decimal("new_annual_rate", new_annual_rate)
    if new_annual_rate < 0:
        raise InvalidScenario("new_annual_rate", new_annual_rate, "must be 0 or greater")
    balance = loan.outstanding_principal
    months_paid = loan.months_paid
    remaining_tenure = loan.remaining_tenure
    if loan.status is LoanStatus.CLOSED or remaining_tenure == 0 or balance <= 0:
        raise InvalidScenario("loan", loan.loan_id, "has no outstanding balance to refinance")

    refinance_date = add_months(loan.start_date, months_paid)
    new_emi = compute_emi(balance, new_annual_rate, remaining_tenure)
    schedule = tuple(
        replace(item, month=item.month + months_paid)
        for item in build_schedule(balance, new_annual_rate, remaining_tenure, refinance_date)
    )
    paid_interest, paid_payable = schedule_totals(loan.schedule[:months_paid])
    new_interest, new_payable = schedule_totals(schedule)
    total_interest = paid_interest + new_interest
    months = months_paid + len(schedule)
    return SimulationResult(
        scenario_name=f"Refinance from {loan.annual_interest_rate}% to {new_annual_rate}%",
        monthly_emi=new_emi,
        total_interest=total_interest,
        total_payable=paid_payable + new_payable,
        time_to_payoff=months,
        savings=_savings(loan, total_interest, months),
        schedule=schedule,
    )
