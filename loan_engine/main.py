"""Command‑line interface for the loan engine.

This module uses the ``click`` library to expose every engine operation as a
sub-command: EMI and schedule calculation, the three what-if simulations,
multi-loan payoff strategies, the loan-to-income ratio and loan alerts.
Results are printed as text tables or exported to JSON/CSV files. Commands
that work on several loans read them from a JSON file.
"""

from __future__ import annotations

import csv
import json
import logging
import sys
from datetime import date
from decimal import Decimal
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import click

from .amortization import emi_summary
from .config import settings
from .data_models import Loan, LoanStatus, ScheduleItem
from .errors import LoanEngineError
from .formatter import (
    print_alerts,
    print_emi_summary,
    print_ratio,
    print_schedule,
    print_simulation,
    print_strategies,
)
from .risk import alerts_for_loan, loan_to_income_ratio
from .schedule import build_schedule
from .serialization import (
    alert_to_dict,
    emi_to_dict,
    loan_from_dict,
    loans_from_json,
    report_to_dict,
    schedule_to_dicts,
    simulation_to_dict,
    strategy_to_dict,
)
from .simulation import simulate_increased_emi, simulate_lump_sum, simulate_refinance
from .strategies import optimize_strategies
from .utils import decimal_from_str, parse_date

MAX_ROWS = 120


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000).
    """
    value = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_day(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def engine_errors(func: Callable) -> Callable:
    """Report engine validation failures as click usage errors."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LoanEngineError as exc:
            raise click.BadParameter(str(exc), param_hint=exc.parameter)

    return wrapper


def loan_options(func: Callable) -> Callable:
    """Options describing a single loan."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount"),
        click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Tenure in months"),
        click.option("--start-date", "-s", "start_date", help="Disbursement date (YYYY-MM-DD); defaults to today"),
        click.option("--payments-made", "payments_made", type=int, default=0, show_default=True, help="Installments already paid"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_loan_from_options(principal: str, rate: str, term: int, start_date: Optional[str], payments_made: int) -> Loan:
    return loan_from_dict(
        {
            "id": "cli",
            "principal": parse_amount(principal),
            "rate": rate,
            "tenure": term,
            "start_date": parse_day(start_date).isoformat(),
            "payments_made": payments_made,
        }
    )


def write_json(path: Path, data: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    click.echo(f"Exported to {path}")


def export_to_csv(path: Path, schedule: List[ScheduleItem]) -> None:
    """Export a schedule to a CSV file."""
    rows = schedule_to_dicts(schedule)
    header = ["month", "due_date", "payment", "principal", "interest", "extra", "balance", "paid", "paid_date"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=header)
        writer.writeheader()
        writer.writerows(rows)
    click.echo(f"Exported to {path}")


def export_or_print(output: Optional[str], data: Dict[str, Any], printer: Callable[[], None]) -> None:
    if not output:
        printer()
        return
    path = Path(output)
    if path.suffix.lower() != ".json":
        raise click.BadParameter("Export must use .json extension", param_hint="--output")
    write_json(path, data)


def print_limited_schedule(schedule: List[ScheduleItem], show_extra: bool = False) -> None:
    # Limit schedule length printed to avoid flooding the terminal
    if len(schedule) > MAX_ROWS:
        click.echo(f"Schedule has {len(schedule)} rows; showing first {MAX_ROWS} rows.")
        schedule = schedule[:MAX_ROWS]
    print_schedule(schedule, show_extra=show_extra)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Loan amortization, what-if simulation and payoff planning."""
    configure_logging(verbose)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", required=True, type=int, help="Tenure in months")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@engine_errors
def emi(principal: str, rate: str, term: int, output: Optional[str]) -> None:
    """Compute the monthly installment and loan totals."""
    result = emi_summary(parse_amount(principal), rate, term)
    export_or_print(output, emi_to_dict(result), lambda: print_emi_summary(result))


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", required=True, type=int, help="Tenure in months")
@click.option("--start-date", "-s", "start_date", help="Disbursement date (YYYY-MM-DD); defaults to today")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@engine_errors
def schedule(principal: str, rate: str, term: int, start_date: Optional[str], output: Optional[str]) -> None:
    """Compute and print the full repayment schedule."""
    amount = parse_amount(principal)
    items = list(build_schedule(amount, rate, term, parse_day(start_date)))
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            write_json(path, {"emi": emi_to_dict(emi_summary(amount, rate, term)), "schedule": schedule_to_dicts(items)})
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, items)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv", param_hint="--output")
    else:
        print_emi_summary(emi_summary(amount, rate, term))
        print_limited_schedule(items)


@cli.command("simulate-emi")
@loan_options
@click.option("--new-emi", "new_emi", required=True, help="Higher monthly installment")
@click.option("--show-schedule", is_flag=True, help="Print the simulated schedule")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@engine_errors
def simulate_emi(principal, rate, term, start_date, payments_made, new_emi, show_schedule, output) -> None:
    """Simulate paying a higher EMI from the start of the loan."""
    loan = build_loan_from_options(principal, rate, term, start_date, payments_made)
    result = simulate_increased_emi(loan, parse_amount(new_emi))

    def show() -> None:
        print_simulation(result)
        if show_schedule:
            print_limited_schedule(list(result.schedule))

    export_or_print(output, simulation_to_dict(result), show)


@cli.command("simulate-lump-sum")
@loan_options
@click.option("--amount", "amount", required=True, help="Lump sum amount")
@click.option("--month", "month", type=int, default=1, show_default=True, help="Month in which the lump sum is paid")
@click.option("--show-schedule", is_flag=True, help="Print the simulated schedule")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@engine_errors
def simulate_lump_sum_cmd(principal, rate, term, start_date, payments_made, amount, month, show_schedule, output) -> None:
    """Simulate a one-off extra payment against principal."""
    loan = build_loan_from_options(principal, rate, term, start_date, payments_made)
    result = simulate_lump_sum(loan, parse_amount(amount), month)

    def show() -> None:
        print_simulation(result)
        if show_schedule:
            print_limited_schedule(list(result.schedule), show_extra=True)

    export_or_print(output, simulation_to_dict(result), show)


@cli.command("simulate-refinance")
@loan_options
@click.option("--new-rate", "new_rate", required=True, help="New annual interest rate (percent)")
@click.option("--show-schedule", is_flag=True, help="Print the refinanced schedule")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@engine_errors
def simulate_refinance_cmd(principal, rate, term, start_date, payments_made, new_rate, show_schedule, output) -> None:
    """Simulate refinancing the outstanding balance at a new rate."""
    loan = build_loan_from_options(principal, rate, term, start_date, payments_made)
    result = simulate_refinance(loan, new_rate)

    def show() -> None:
        print_simulation(result)
        if show_schedule:
            print_limited_schedule(list(result.schedule))

    export_or_print(output, simulation_to_dict(result), show)


@cli.command()
@click.option("--loans", "loans_file", required=True, type=click.Path(exists=True, dir_okay=False), help="JSON file with loans")
@click.option("--extra", "extra", default="0", show_default=True, help="Extra monthly budget beyond the EMIs")
@click.option("--include-overdue", is_flag=True, help="Let Overdue loans take part in the plans")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@engine_errors
def strategies(loans_file: str, extra: str, include_overdue: bool, output: Optional[str]) -> None:
    """Compare snowball and avalanche payoff plans for a set of loans."""
    loans = loans_from_json(Path(loans_file))
    statuses = {LoanStatus.ACTIVE, LoanStatus.OVERDUE} if include_overdue else {LoanStatus.ACTIVE}
    plans = optimize_strategies(loans, parse_amount(extra), include_statuses=statuses)
    labels = {loan.loan_id: loan.label for loan in loans}
    export_or_print(
        output,
        {"strategies": [strategy_to_dict(plan) for plan in plans]},
        lambda: print_strategies(plans, labels),
    )


@cli.command()
@click.option("--loans", "loans_file", required=True, type=click.Path(exists=True, dir_okay=False), help="JSON file with loans")
@click.option("--income", "income", required=True, help="Monthly income")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@engine_errors
def ratio(loans_file: str, income: str, output: Optional[str]) -> None:
    """Classify total EMIs against monthly income."""
    loans = loans_from_json(Path(loans_file))
    report = loan_to_income_ratio(loans, parse_amount(income))
    export_or_print(output, report_to_dict(report), lambda: print_ratio(report))


@cli.command()
@click.option("--loans", "loans_file", required=True, type=click.Path(exists=True, dir_okay=False), help="JSON file with loans")
@click.option("--income", "income", help="Monthly income, enables the EMI ratio alert")
@click.option("--today", "today", help="Reference date (YYYY-MM-DD); defaults to today")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@engine_errors
def alerts(loans_file: str, income: Optional[str], today: Optional[str], output: Optional[str]) -> None:
    """List due-soon, overdue and high-EMI alerts for every loan."""
    loans = loans_from_json(Path(loans_file))
    now = parse_day(today)
    monthly_income = parse_amount(income) if income else None
    found = [alert for loan in loans for alert in alerts_for_loan(loan, loan.schedule, now, monthly_income)]
    export_or_print(output, {"alerts": [alert_to_dict(a) for a in found]}, lambda: print_alerts(found))


if __name__ == "__main__":
    cli()
