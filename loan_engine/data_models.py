"""Data models for the loan engine.

This module defines the records exchanged between the engine components:
loans and their repayment schedules, what-if simulation results, multi-loan
payoff plans, alerts and the loan-to-income report. Records are frozen
dataclasses so a computed schedule or result can be shared freely without
anyone patching it in place; a change of loan terms always produces a new
record.

All amounts are ``Decimal`` values kept at working precision. Rounding to
currency precision is left to the presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from .amortization import validate_loan_terms
from .errors import InvalidLoanParameters
from .utils import RESIDUAL_TOLERANCE


class LoanStatus(str, Enum):
    ACTIVE = "Active"
    CLOSED = "Closed"
    OVERDUE = "Overdue"


class StrategyMethod(str, Enum):
    SNOWBALL = "snowball"
    AVALANCHE = "avalanche"


class AlertType(str, Enum):
    DUE_SOON = "due-soon"
    OVERDUE = "overdue"
    HIGH_EMI_RATIO = "high-emi-ratio"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ScheduleItem:
    """One month of a repayment schedule.

    ``payment`` is the cash paid that month (interest plus principal,
    including ``extra_payment``). ``remaining_balance`` is the outstanding
    principal after the payment.
    """

    month: int
    due_date: date
    payment: Decimal
    principal_payment: Decimal
    interest_payment: Decimal
    remaining_balance: Decimal
    paid: bool = False
    paid_date: Optional[date] = None
    extra_payment: Decimal = Decimal("0")


@dataclass(frozen=True)
class Loan:
    """A loan together with its derived repayment state.

    Attributes
    ----------
    loan_id: str
        Opaque identity supplied by the caller.
    principal: Decimal
        Amount borrowed.
    annual_interest_rate: Decimal
        Nominal annual rate in percent.
    tenure_months: int
        Number of scheduled monthly payments.
    start_date: date
        Disbursement date; the first installment is due one month later.
    status: LoanStatus
        Lifecycle status supplied by the caller.
    monthly_installment, total_interest: Decimal
        Derived from the terms when the loan is created.
    remaining_amount: Decimal
        Total still payable (principal plus scheduled interest) minus the
        payments recorded so far.
    schedule: tuple of ScheduleItem
        The schedule generated at creation. Amounts never change afterwards;
        only the ``paid`` flags are updated as payments are recorded, so it
        doubles as the baseline for what-if comparisons.
    next_due_date: date or None
        Due date of the first unpaid installment.

    Use :func:`loan_engine.loans.create_loan` to build a loan; it fills the
    derived fields.
    """

    loan_id: str
    principal: Decimal
    annual_interest_rate: Decimal
    tenure_months: int
    start_date: date
    status: LoanStatus
    monthly_installment: Decimal
    total_interest: Decimal
    remaining_amount: Decimal
    schedule: Tuple[ScheduleItem, ...]
    next_due_date: Optional[date]
    label: str = ""
    provider: str = ""

    def __post_init__(self) -> None:
        validate_loan_terms(self.principal, self.annual_interest_rate, self.tenure_months)
        if not isinstance(self.status, LoanStatus):
            raise InvalidLoanParameters(
                "status", self.status, f"must be one of {[s.value for s in LoanStatus]}"
            )
        if len(self.schedule) != self.tenure_months:
            raise InvalidLoanParameters(
                "schedule", len(self.schedule), f"must hold exactly {self.tenure_months} items"
            )
        if self.remaining_amount < 0:
            raise InvalidLoanParameters("remaining_amount", self.remaining_amount, "must not be negative")
        if self.remaining_amount > self.total_payable + RESIDUAL_TOLERANCE:
            raise InvalidLoanParameters(
                "remaining_amount",
                self.remaining_amount,
                f"must not exceed principal plus interest ({self.total_payable})",
            )

    @property
    def total_payable(self) -> Decimal:
        return self.principal + self.total_interest

    @property
    def months_paid(self) -> int:
        return sum(1 for item in self.schedule if item.paid)

    @property
    def remaining_tenure(self) -> int:
        return self.tenure_months - self.months_paid

    @property
    def outstanding_principal(self) -> Decimal:
        """Principal still owed according to the schedule.

        Installments are always settled in order, so the balance after the
        last paid item is the current balance. A closed loan, or one whose
        remaining amount was paid off early, owes nothing.
        """
        if self.status is LoanStatus.CLOSED or self.remaining_amount == 0:
            return Decimal("0")
        paid = self.months_paid
        if paid == 0:
            return self.principal
        return self.schedule[paid - 1].remaining_balance

    @property
    def original_total_interest(self) -> Decimal:
        return sum((item.interest_payment for item in self.schedule), Decimal("0"))


@dataclass(frozen=True)
class Savings:
    """Difference between a baseline and a scenario.

    Negative values mean the scenario is worse than the baseline and are
    reported as-is.
    """

    interest_saved: Decimal
    time_saved: int


@dataclass(frozen=True)
class SimulationResult:
    scenario_name: str
    monthly_emi: Decimal
    total_interest: Decimal
    total_payable: Decimal
    time_to_payoff: int
    savings: Savings
    schedule: Tuple[ScheduleItem, ...] = ()
    # Part of a lump sum larger than the outstanding balance; never applied.
    lump_sum_excess: Decimal = Decimal("0")


@dataclass(frozen=True)
class PaymentAllocation:
    loan_id: str
    payment_amount: Decimal


@dataclass(frozen=True)
class MonthlyAllocation:
    """Payments made to each open loan in one month, in priority order."""

    month: int
    allocations: Tuple[PaymentAllocation, ...]

    @property
    def total(self) -> Decimal:
        return sum((a.payment_amount for a in self.allocations), Decimal("0"))


@dataclass(frozen=True)
class StrategyPlan:
    """A multi-loan payoff plan for one ordering policy."""

    method: StrategyMethod
    priority: Tuple[str, ...] = ()
    schedule: Tuple[MonthlyAllocation, ...] = ()
    monthly_budget: Decimal = Decimal("0")
    total_interest: Decimal = Decimal("0")
    baseline_total_interest: Decimal = Decimal("0")
    total_interest_saved: Decimal = Decimal("0")
    time_to_payoff: int = 0
    payoff_order: Tuple[str, ...] = ()
    # (loan_id, month cleared) pairs in payoff order
    payoff_months: Tuple[Tuple[str, int], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.schedule

    def payoff_month(self, loan_id: str) -> int:
        return dict(self.payoff_months)[loan_id]


@dataclass(frozen=True)
class Alert:
    alert_type: AlertType
    severity: Severity
    loan_id: str
    action_required: bool
    message: str = ""


@dataclass(frozen=True)
class LoanToIncomeReport:
    total_monthly_emi: Decimal
    monthly_income: Decimal
    ratio: Decimal
    risk_level: RiskLevel
    recommendation: str
