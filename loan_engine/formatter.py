"""Output helpers for the loan engine CLI.

This module renders engine results as plain-text tables. Amounts are
rounded to cents here, at the presentation boundary, and nowhere earlier.
"""

from __future__ import annotations

from typing import Dict, Iterable, Sequence

from .amortization import EMIResult
from .data_models import Alert, LoanToIncomeReport, ScheduleItem, SimulationResult, StrategyPlan
from .utils import to_money


def print_emi_summary(result: EMIResult) -> None:
    """Print the EMI and loan totals in a human-readable format."""
    print("EMI")
    print("-" * 72)
    print(f"Monthly EMI        : {to_money(result.monthly_emi)}")
    print(f"Total interest     : {to_money(result.total_interest)}")
    print(f"Total payable      : {to_money(result.total_payable)}")
    print("-" * 72)


def print_schedule(schedule: Iterable[ScheduleItem], show_extra: bool = False) -> None:
    """Print a repayment schedule as a simple table.

    Parameters
    ----------
    schedule: Iterable[ScheduleItem]
        The schedule items to print.
    show_extra: bool
        Whether to include the ``Extra`` column. It is only meaningful for
        simulated schedules with a lump sum.
    """
    headers = ["Month", "DueDate", "Payment", "Principal", "Interest"]
    if show_extra:
        headers.append("Extra")
    headers += ["Balance", "Paid"]
    print("\t".join(headers))
    for item in schedule:
        row = [
            str(item.month),
            item.due_date.isoformat(),
            f"{to_money(item.payment)}",
            f"{to_money(item.principal_payment)}",
            f"{to_money(item.interest_payment)}",
        ]
        if show_extra:
            row.append(f"{to_money(item.extra_payment)}")
        row.append(f"{to_money(item.remaining_balance)}")
        row.append("Yes" if item.paid else "No")
        print("\t".join(row))


def print_simulation(result: SimulationResult) -> None:
    """Print a what-if result and its savings against the original schedule.

    Negative savings mean the scenario costs more than the original loan.
    """
    print(result.scenario_name)
    print("-" * 72)
    print(f"Monthly EMI        : {to_money(result.monthly_emi)}")
    print(f"Total interest     : {to_money(result.total_interest)}")
    print(f"Total payable      : {to_money(result.total_payable)}")
    print(f"Time to payoff     : {result.time_to_payoff} months")
    print(f"Interest saved     : {to_money(result.savings.interest_saved)}")
    print(f"Time saved         : {result.savings.time_saved} months")
    if result.lump_sum_excess > 0:
        print(f"Lump sum not used  : {to_money(result.lump_sum_excess)}")
    print("-" * 72)


def print_strategies(plans: Sequence[StrategyPlan], labels: Dict[str, str]) -> None:
    """Print the strategies side by side, then each payoff order."""
    if all(plan.is_empty for plan in plans):
        print("No loans eligible for a payoff strategy.")
        return
    print("Strategies")
    print("=" * 72)
    print(f"{'Metric':24s}" + "".join(f"{plan.method.value:>16s}" for plan in plans))
    rows = [
        ("Monthly budget", lambda p: f"{to_money(p.monthly_budget)}"),
        ("Total interest", lambda p: f"{to_money(p.total_interest)}"),
        ("Baseline interest", lambda p: f"{to_money(p.baseline_total_interest)}"),
        ("Interest saved", lambda p: f"{to_money(p.total_interest_saved)}"),
        ("Months to payoff", lambda p: str(p.time_to_payoff)),
    ]
    for name, value in rows:
        print(f"{name:24s}" + "".join(f"{value(plan):>16s}" for plan in plans))
    for plan in plans:
        print()
        print(f"{plan.method.value.capitalize()} payoff order")
        print("-" * 72)
        for position, loan_id in enumerate(plan.payoff_order, start=1):
            name = labels.get(loan_id) or loan_id
            print(f"{position}. {name} (cleared in month {plan.payoff_month(loan_id)})")


def print_ratio(report: LoanToIncomeReport) -> None:
    print("Loan-to-income ratio")
    print("-" * 72)
    print(f"Total monthly EMI  : {to_money(report.total_monthly_emi)}")
    print(f"Monthly income     : {to_money(report.monthly_income)}")
    print(f"Ratio              : {to_money(report.ratio)}%")
    print(f"Risk level         : {report.risk_level.value}")
    print(report.recommendation)
    print("-" * 72)


def print_alerts(alerts: Iterable[Alert]) -> None:
    alerts = list(alerts)
    if not alerts:
        print("No alerts.")
        return
    print("\t".join(["Loan", "Type", "Severity", "Action", "Message"]))
    for alert in alerts:
        print(
            "\t".join(
                [
                    alert.loan_id,
                    alert.alert_type.value,
                    alert.severity.value,
                    "Yes" if alert.action_required else "No",
                    alert.message,
                ]
            )
        )
