"""Output helpers for the budget calculator.

Simple functions that render summaries, warnings, reality checks, payoff
projections and scenario comparisons as plain text tables. Numbers are
printed with two decimals; locale-aware currency formatting is left to
richer front ends.
"""

from __future__ import annotations

import math
from typing import Iterable

from .data_models import DebtPayoffSummary, PlanSummary, PlanWarning, RealityCheck, ScenarioDeltas


def _amount(value: float) -> str:
    return f"{value:.2f}" if math.isfinite(value) else "-"


def _months(value: float) -> str:
    return str(int(value)) if math.isfinite(value) else "-"


def print_summary(summary: PlanSummary) -> None:
    """Print the monthly plan summary."""
    print("Summary")
    print("-" * 48)
    print(f"Income             : {summary.income:.2f}")
    print(f"Needs              : {summary.needs:.2f}")
    print(f"Wants              : {summary.wants:.2f}")
    print(f"Savings            : {summary.savings:.2f}")
    print(f"Debt minimums      : {summary.debt:.2f}")
    print(f"Leftover           : {summary.leftover:.2f}")
    print("-" * 48)


def print_warnings(warnings: Iterable[PlanWarning]) -> None:
    warnings = list(warnings)
    if not warnings:
        print("No warnings. The plan looks healthy.")
        return
    print("Warnings")
    for warning in warnings:
        print(f"  [{warning.type}] {warning.message}")


def print_reality_check(check: RealityCheck) -> None:
    """Print deltas against the preset. Positive values are above target."""
    print("Reality check")
    print("-" * 48)
    print(f"Income             : {check.income:.2f}")
    print(f"Needs vs target    : {check.needs_delta:+.2f}")
    print(f"Wants vs target    : {check.wants_delta:+.2f}")
    print(f"Savings vs target  : {check.savings_delta:+.2f}")
    print("-" * 48)


def print_payoff(summary: DebtPayoffSummary) -> None:
    """Print a payoff projection as a table, one row per debt."""
    print(f"Strategy: {summary.strategy}")
    if summary.insufficient_budget:
        print("Monthly amount is not enough to pay off these debts. Increase your debt allocation.")
    else:
        print(f"Months to debt-free : {_months(summary.months_to_debt_free)}")
        print(f"Total interest      : {_amount(summary.total_interest)}")
    print("\t".join(["Debt", "Months", "Interest", "TotalPaid"]))
    for step in summary.steps:
        print("\t".join([step.name, _months(step.months), _amount(step.interest_paid), _amount(step.total_paid)]))


def print_comparison(deltas: ScenarioDeltas) -> None:
    """Print scenario deltas against the base plan (scenario minus base)."""
    print("Comparison")
    print("=" * 48)
    print(f"{'Metric':20s} {'Difference':>15s}")
    rows = [
        ("Income", deltas.income),
        ("Needs", deltas.needs),
        ("Wants", deltas.wants),
        ("Savings / Debt", deltas.savings_debt),
        ("Leftover", deltas.leftover),
    ]
    for label, value in rows:
        print(f"{label:20s} {value:15.2f}")
    print("=" * 48)
