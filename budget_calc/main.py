"""Command-line interface for the budget calculator.

This module uses the ``click`` library to implement a multi-command
interface over plan JSON files (the same format the app exports). Users can
print a plan's summary, warnings and reality check, project debt payoff
under the snowball and avalanche strategies, compare a scenario against a
plan and export plans to JSON or CSV.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click

from . import config
from .data_models import Plan
from .engine import (
    calculate_plan_summary,
    compute_reality_check,
    debt_budget,
    evaluate_plan_warnings,
    scenario_deltas,
    sinking_monthly,
)
from .formatter import print_comparison, print_payoff, print_reality_check, print_summary, print_warnings
from .payoff import project_debt_payoff
from .plan_io import PlanImportError, export_plan_csv, export_plan_json, load_plan
from .presets import DEFAULT_METHOD_PRESETS, find_preset, make_custom_preset
from .utils import parse_amount, parse_iso_date


def _load(path: str) -> Plan:
    try:
        return load_plan(Path(path))
    except PlanImportError as exc:
        raise click.BadParameter(str(exc))


def _parse_now(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def _parse_amount(value: str) -> float:
    try:
        return parse_amount(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def _echo_json(data: Dict[str, Any]) -> None:
    click.echo(json.dumps(data, indent=2))


now_option = click.option("--now", "now", help="Evaluate as of this date (YYYY-MM-DD); defaults to today")
json_option = click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")


@click.group()
@click.option("--log-level", "log_level", default=None, help="Logging level (DEBUG, INFO, WARNING...)")
def cli(log_level: Optional[str]) -> None:
    """A command-line budget planner: summaries, warnings and debt payoff."""
    config.configure_logging(log_level)


@cli.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False))
@now_option
@json_option
def summary(plan_file: str, now: Optional[str], as_json: bool) -> None:
    """Print the monthly income, bucket totals and leftover of a plan."""
    plan = _load(plan_file)
    result = calculate_plan_summary(plan, _parse_now(now))
    if as_json:
        _echo_json(result.to_dict())
    else:
        print_summary(result)


@cli.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False))
@now_option
@json_option
def warnings(plan_file: str, now: Optional[str], as_json: bool) -> None:
    """List the health warnings for a plan."""
    plan = _load(plan_file)
    result = evaluate_plan_warnings(plan, _parse_now(now))
    if as_json:
        _echo_json({"warnings": [w.to_dict() for w in result]})
    else:
        print_warnings(result)


@cli.command("reality-check")
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--preset", "preset_id", help="Preset id; defaults to the plan's own preset")
@click.option(
    "--split",
    "split",
    nargs=3,
    type=float,
    help="Custom NEEDS WANTS SAVINGS fractions, e.g. --split 0.5 0.3 0.2",
)
@now_option
@json_option
def reality_check(
    plan_file: str,
    preset_id: Optional[str],
    split: Optional[Tuple[float, float, float]],
    now: Optional[str],
    as_json: bool,
) -> None:
    """Compare a plan's bucket allocations with a method preset."""
    plan = _load(plan_file)
    if split:
        preset = make_custom_preset("custom", *split)
    else:
        preset = find_preset(DEFAULT_METHOD_PRESETS, preset_id or plan.method_preset_id)
    if preset is None:
        raise click.BadParameter("No active preset; pass --preset or --split")
    plan_summary = calculate_plan_summary(plan, _parse_now(now))
    result = compute_reality_check(plan_summary.income, plan_summary, preset)
    if as_json:
        _echo_json(result.to_dict())
    else:
        print_reality_check(result)


@cli.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--strategy",
    "strategy",
    type=click.Choice(["snowball", "avalanche", "both"]),
    default="both",
    help="Repayment order",
)
@click.option("--budget", "budget", help="Monthly debt budget; defaults to the plan's savings plus minimums")
@click.option("--max-months", "max_months", type=int, default=None, help="Simulation horizon in months")
@now_option
@json_option
def payoff(
    plan_file: str,
    strategy: str,
    budget: Optional[str],
    max_months: Optional[int],
    now: Optional[str],
    as_json: bool,
) -> None:
    """Project how long it takes to clear the plan's debts."""
    plan = _load(plan_file)
    if budget:
        monthly_budget = _parse_amount(budget)
    else:
        monthly_budget = debt_budget(calculate_plan_summary(plan, _parse_now(now)))
    strategies = ["snowball", "avalanche"] if strategy == "both" else [strategy]
    results = [project_debt_payoff(plan.debts, monthly_budget, s, max_months) for s in strategies]
    if as_json:
        _echo_json({"monthlyBudget": monthly_budget, "projections": [r.to_dict() for r in results]})
        return
    click.echo(f"Monthly debt budget: {monthly_budget:.2f}")
    for result in results:
        print_payoff(result)


@cli.command()
@click.option("--target", "target", required=True, help="Amount to have saved")
@click.option("--due", "due", required=True, help="Due date (YYYY-MM-DD)")
@now_option
def sinking(target: str, due: str, now: Optional[str]) -> None:
    """Monthly contribution needed for a sinking fund."""
    try:
        parse_iso_date(due)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    amount = sinking_monthly(_parse_amount(target), due, _parse_now(now))
    click.echo(f"{amount:.2f}")


@cli.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False))
@now_option
@json_option
def compare(plan_file: str, scenario_file: str, now: Optional[str], as_json: bool) -> None:
    """Compare a scenario plan against a base plan.

    Differences are scenario minus base, for example:

        budget-calc compare plan.json pay-cut.json
    """
    as_of = _parse_now(now)
    base = calculate_plan_summary(_load(plan_file), as_of)
    scenario = calculate_plan_summary(_load(scenario_file), as_of)
    deltas = scenario_deltas(base, scenario)
    if as_json:
        _echo_json(deltas.to_dict())
    else:
        print_comparison(deltas)


@cli.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "output", required=True, type=str, help="Output file path (.json or .csv)")
@now_option
def export(plan_file: str, output: str, now: Optional[str]) -> None:
    """Export a plan to JSON or CSV."""
    plan = _load(plan_file)
    path = Path(output)
    if path.suffix.lower() == ".json":
        export_plan_json(path, plan)
    elif path.suffix.lower() == ".csv":
        export_plan_csv(path, plan, _parse_now(now))
    else:
        raise click.BadParameter("Unsupported output format; use .json or .csv")
    click.echo(f"Plan exported to {path}")


if __name__ == "__main__":
    cli()
