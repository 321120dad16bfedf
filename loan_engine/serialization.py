"""Conversion between engine records and plain JSON-friendly structures.

Loans are read from dictionaries (as found in a JSON loans file) and engine
results are written out as dictionaries. Amounts are rounded to currency
precision on the way out; this is the only place besides the formatter where
rounding happens.
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .amortization import EMIResult
from .data_models import (
    Alert,
    Loan,
    LoanStatus,
    LoanToIncomeReport,
    ScheduleItem,
    SimulationResult,
    StrategyPlan,
)
from .errors import InvalidLoanParameters
from .loans import create_loan, parse_status, record_payment
from .utils import parse_date, to_money

# Accepted spellings for loan fields in input files
_ALIASES = {
    "loan_id": ("id", "loan_id", "loanId"),
    "principal": ("principal",),
    "annual_interest_rate": ("annual_interest_rate", "annualInterestRate", "interest_rate", "rate"),
    "tenure_months": ("tenure_months", "tenureMonths", "tenure", "term"),
    "start_date": ("start_date", "startDate"),
}


def _money(value) -> float:
    return float(to_money(value))


def _field(data: Dict[str, Any], name: str):
    for key in _ALIASES[name]:
        if key in data and data[key] is not None:
            return data[key]
    raise InvalidLoanParameters(name, None, "is required")


def loan_from_dict(data: Dict[str, Any]) -> Loan:
    """Build a loan from a dictionary.

    ``payments_made`` (optional) replays that many installment payments so
    a loan part-way through its life can be described compactly.
    """
    raw_date = _field(data, "start_date")
    try:
        start = parse_date(str(raw_date))
    except ValueError as exc:
        raise InvalidLoanParameters("start_date", raw_date, "must be a YYYY-MM-DD date") from exc
    tenure = _field(data, "tenure_months")
    try:
        tenure = int(tenure)
    except (TypeError, ValueError) as exc:
        raise InvalidLoanParameters("tenure_months", tenure, "must be a whole number of months") from exc

    loan = create_loan(
        principal=_field(data, "principal"),
        annual_interest_rate=_field(data, "annual_interest_rate"),
        tenure_months=tenure,
        start_date=start,
        loan_id=str(_field(data, "loan_id")) if any(k in data for k in _ALIASES["loan_id"]) else None,
        status=LoanStatus.ACTIVE,
        label=data.get("label", data.get("type", "")),
        provider=data.get("provider", ""),
    )
    payments_made = data.get("payments_made", 0)
    try:
        payments_made = int(payments_made)
    except (TypeError, ValueError) as exc:
        raise InvalidLoanParameters("payments_made", payments_made, "must be a whole number") from exc
    if payments_made < 0 or payments_made > loan.tenure_months:
        raise InvalidLoanParameters("payments_made", payments_made, f"must be between 0 and {loan.tenure_months}")
    for item in loan.schedule[:payments_made]:
        loan = record_payment(loan, item.payment, item.due_date)
    if loan.status is not LoanStatus.CLOSED:
        loan = replace(loan, status=parse_status(data.get("status", "Active")))
    return loan


def loans_from_json(path: Path) -> List[Loan]:
    """Read loans from a JSON file holding a list or ``{"loans": [...]}``."""
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("loans", [])
    return [loan_from_dict(entry) for entry in data]


def emi_to_dict(result: EMIResult) -> Dict[str, Any]:
    return {
        "monthly_emi": _money(result.monthly_emi),
        "total_interest": _money(result.total_interest),
        "total_payable": _money(result.total_payable),
    }


def schedule_to_dicts(schedule: Iterable[ScheduleItem]) -> List[Dict[str, Any]]:
    return [
        {
            "month": item.month,
            "due_date": item.due_date.isoformat(),
            "payment": _money(item.payment),
            "principal": _money(item.principal_payment),
            "interest": _money(item.interest_payment),
            "extra": _money(item.extra_payment),
            "balance": _money(item.remaining_balance),
            "paid": item.paid,
            "paid_date": item.paid_date.isoformat() if item.paid_date else None,
        }
        for item in schedule
    ]


def simulation_to_dict(result: SimulationResult, include_schedule: bool = True) -> Dict[str, Any]:
    data = {
        "scenario_name": result.scenario_name,
        "monthly_emi": _money(result.monthly_emi),
        "total_interest": _money(result.total_interest),
        "total_payable": _money(result.total_payable),
        "time_to_payoff": result.time_to_payoff,
        "savings": {
            "interest_saved": _money(result.savings.interest_saved),
            "time_saved": result.savings.time_saved,
        },
        "lump_sum_excess": _money(result.lump_sum_excess),
    }
    if include_schedule:
        data["schedule"] = schedule_to_dicts(result.schedule)
    return data


def strategy_to_dict(plan: StrategyPlan) -> Dict[str, Any]:
    return {
        "method": plan.method.value,
        "priority": list(plan.priority),
        "monthly_budget": _money(plan.monthly_budget),
        "total_interest": _money(plan.total_interest),
        "baseline_total_interest": _money(plan.baseline_total_interest),
        "total_interest_saved": _money(plan.total_interest_saved),
        "time_to_payoff": plan.time_to_payoff,
        "payoff_order": list(plan.payoff_order),
        "payoff_months": dict(plan.payoff_months),
        "schedule": [
            {
                "month": m.month,
                "payments": [
                    {"loan_id": a.loan_id, "payment_amount": _money(a.payment_amount)} for a in m.allocations
                ],
            }
            for m in plan.schedule
        ],
    }


def report_to_dict(report: LoanToIncomeReport) -> Dict[str, Any]:
    return {
        "total_monthly_emi": _money(report.total_monthly_emi),
        "monthly_income": _money(report.monthly_income),
        "ratio": _money(report.ratio),
        "risk_level": report.risk_level.value,
        "recommendation": report.recommendation,
    }


def alert_to_dict(alert: Alert) -> Dict[str, Any]:
    return {
        "type": alert.alert_type.value,
        "severity": alert.severity.value,
        "loan_id": alert.loan_id,
        "action_required": alert.action_required,
        "message": alert.message,
    }
