"""Multi-loan payoff strategies.

Both strategies pay every open loan its minimum installment each month and
send whatever is left of a fixed monthly budget (the sum of the minimum
installments plus an optional extra amount) to the open loans in priority
order. When a loan is cleared its installment stays in the budget and
cascades to the next loan in line. The strategies differ only in the
priority order:

* avalanche: highest interest rate first, ties broken by the smaller
  remaining amount;
* snowball: smallest remaining amount first, ties broken by the higher
  interest rate.

Savings are measured against a baseline where every loan pays only its own
installment and nothing is redistributed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from .amortization import monthly_rate
from .config import settings
from .data_models import (
    Loan,
    LoanStatus,
    MonthlyAllocation,
    PaymentAllocation,
    StrategyMethod,
    StrategyPlan,
)
from .errors import InvalidScenario
from .schedule import amortize, schedule_totals
from .utils import RESIDUAL_TOLERANCE, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

DEFAULT_STATUSES: FrozenSet[LoanStatus] = frozenset({LoanStatus.ACTIVE})


@dataclass
class _LoanState:
    loan_id: str
    rate: Decimal
    minimum: Decimal
    balance: Decimal


def _avalanche_key(loan: Loan):
    return (-loan.annual_interest_rate, loan.remaining_amount, loan.loan_id)


def _snowball_key(loan: Loan):
    return (loan.remaining_amount, -loan.annual_interest_rate, loan.loan_id)


PRIORITY_KEYS: Dict[StrategyMethod, Callable[[Loan], tuple]] = {
    StrategyMethod.AVALANCHE: _avalanche_key,
    StrategyMethod.SNOWBALL: _snowball_key,
}


def _eligible(loans: Iterable[Loan], include_statuses: Iterable[LoanStatus]) -> List[Loan]:
    statuses = frozenset(include_statuses)
    return [
        loan
        for loan in loans
        if loan.status in statuses
        and loan.status is not LoanStatus.CLOSED
        and loan.remaining_tenure > 0
        and loan.outstanding_principal > 0
    ]


def _baseline_interest(loan: Loan) -> Decimal:
    """Interest left to pay if the loan only ever receives its own EMI."""
    run = amortize(loan.outstanding_principal, loan.annual_interest_rate, loan.monthly_installment, loan.start_date)
    total_interest, _ = schedule_totals(run.items)
    return total_interest


def strategy_plan(
    loans: Iterable[Loan],
    method,
    extra_budget=ZERO,
    include_statuses: Optional[Iterable[LoanStatus]] = None,
) -> StrategyPlan:
    """Simulate one payoff strategy month by month.

    Parameters
    ----------
    loans: iterable of Loan
        Candidate loans. Loans whose status is not in ``include_statuses``
        or that have nothing outstanding are left out. Closed loans never
        take part.
    method: StrategyMethod or str
        ``"snowball"`` or ``"avalanche"``.
    extra_budget: Decimal
        Money available each month on top of the minimum installments.
    include_statuses: iterable of LoanStatus, optional
        Statuses that take part in the plan. Defaults to Active only; pass
        ``{LoanStatus.ACTIVE, LoanStatus.OVERDUE}`` to include overdue loans.
    """
    try:
        method = StrategyMethod(method)
    except ValueError as exc:
        raise InvalidScenario("method", method, f"must be one of {[m.value for m in StrategyMethod]}") from exc
    try:
        extra_budget = to_decimal(extra_budget)
    except ValueError as exc:
        raise InvalidScenario("extra_budget", extra_budget, "must be a number") from exc
    if extra_budget < 0:
        raise InvalidScenario("extra_budget", extra_budget, "must be 0 or greater")

    eligible = _eligible(loans, include_statuses if include_statuses is not None else DEFAULT_STATUSES)
    if not eligible:
        return StrategyPlan(method=method)

    ordered = sorted(eligible, key=PRIORITY_KEYS[method])
    baseline = sum((_baseline_interest(loan) for loan in ordered), ZERO)
    states = [
        _LoanState(
            loan_id=loan.loan_id,
            rate=monthly_rate(loan.annual_interest_rate),
            minimum=loan.monthly_installment,
            balance=loan.outstanding_principal,
        )
        for loan in ordered
    ]
    budget = sum((s.minimum for s in states), ZERO) + extra_budget

    months: List[MonthlyAllocation] = []
    payoff_order: List[str] = []
    payoff_months: Dict[str, int] = {}
    total_interest = ZERO
    month = 0
    while len(payoff_order) < len(states):
        month += 1
        if month > settings.MAX_TENURE_MONTHS:
            raise InvalidScenario(
                "extra_budget", extra_budget, f"plan does not finish within {settings.MAX_TENURE_MONTHS} months"
            )
        open_states = [s for s in states if s.balance > 0]
        owed: Dict[str, Decimal] = {}
        paid: Dict[str, Decimal] = {}
        available = budget
        for s in open_states:
            interest = s.balance * s.rate
            total_interest += interest
            owed[s.loan_id] = s.balance + interest
            paid[s.loan_id] = min(s.minimum, owed[s.loan_id])
            available -= paid[s.loan_id]
        # Leftover budget, including freed installments, goes down the priority list
        for s in open_states:
            if available <= 0:
                break
            top_up = min(available, owed[s.loan_id] - paid[s.loan_id])
            paid[s.loan_id] += top_up
            available -= top_up

        for s in open_states:
            s.balance = owed[s.loan_id] - paid[s.loan_id]
            if s.balance < RESIDUAL_TOLERANCE:
                s.balance = ZERO
                payoff_order.append(s.loan_id)
                payoff_months[s.loan_id] = month
        months.append(
            MonthlyAllocation(
                month=month,
                allocations=tuple(PaymentAllocation(s.loan_id, paid[s.loan_id]) for s in open_states),
            )
        )

    logger.debug(
        "%s plan over %d loans: %d months, interest %s vs baseline %s",
        method.value,
        len(states),
        month,
        total_interest,
        baseline,
    )
    return StrategyPlan(
        method=method,
        priority=tuple(s.loan_id for s in states),
        schedule=tuple(months),
        monthly_budget=budget,
        total_interest=total_interest,
        baseline_total_interest=baseline,
        total_interest_saved=baseline - total_interest,
        time_to_payoff=month,
        payoff_order=tuple(payoff_order),
        payoff_months=tuple(payoff_months.items()),
    )


def optimize_strategies(
    loans: Iterable[Loan],
    extra_budget=ZERO,
    include_statuses: Optional[Iterable[LoanStatus]] = None,
) -> List[StrategyPlan]:
    """Return the snowball and avalanche plans, in that order.

    With no eligible loans both plans are empty rather than an error.
    """
    loans = list(loans)
    return [
        strategy_plan(loans, method, extra_budget, include_statuses)
        for method in (StrategyMethod.SNOWBALL, StrategyMethod.AVALANCHE)
    ]
