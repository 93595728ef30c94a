"""Core budget calculations.

This module turns a ``Plan`` into the numbers the rest of the app displays:
monthly income, bucket totals and leftover cash, sinking fund contributions,
plan warnings, reality-check deltas against a method preset, envelope usage
and scenario comparisons. Every function is pure; ``now`` can be passed in so
results do not depend on the wall clock.

Debt payoff projections live in ``payoff``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .data_models import (
    Category,
    EnvelopeStatus,
    MethodPreset,
    Plan,
    PlanSummary,
    PlanWarning,
    RealityCheck,
    ScenarioDeltas,
)
from .presets import find_preset
from .utils import calendar_months_between, parse_iso_date, resolve_now

PERIODS_PER_YEAR: Dict[str, int] = {
    "monthly": 12,
    "bi-weekly": 26,
    "weekly": 52,
}

WARNING_MESSAGES: Dict[str, str] = {
    "overspend": "Your allocations are higher than your monthly income.",
    "negative-leftover": (
        "Your plan leaves no room for leftover cash. "
        "Adjust allocations until leftover is zero or positive."
    ),
    "underfunded-goals": "Savings goals need more monthly allocation to hit targets on time.",
}


def normalise_to_monthly(amount: float, frequency: str) -> float:
    """Convert an amount paid at ``frequency`` into a monthly equivalent."""
    return amount * PERIODS_PER_YEAR[frequency] / 12


def percent_targets(income_monthly: float, preset: MethodPreset) -> Dict[str, float]:
    """Return the target amount of each bucket under ``preset``."""
    return {
        "needs": income_monthly * preset.needs_pct,
        "wants": income_monthly * preset.wants_pct,
        "savings": income_monthly * preset.savings_pct,
    }


def months_until(iso_date: str, now: Optional[date] = None) -> int:
    """Months left until ``iso_date``, counting the current month.

    Past dates count as one month.
    """
    due = parse_iso_date(iso_date)
    return max(calendar_months_between(due, resolve_now(now)), 0) + 1


def sinking_monthly(target: float, iso_due_date: str, now: Optional[date] = None) -> float:
    """Monthly contribution needed to reach ``target`` by ``iso_due_date``.

    When the due date falls in the current month or has already passed the
    whole target is due now.
    """
    months_remaining = months_until(iso_due_date, now)
    if months_remaining <= 1:
        return target
    return target / months_remaining


def resolve_category_amount(category: Category, now: Optional[date] = None) -> float:
    """Monthly amount of a category, auto-computing unset sinking funds."""
    if category.is_sinking_fund:
        return category.amount_monthly or sinking_monthly(category.target, category.due_date, now)
    return category.amount_monthly


def calculate_income_monthly(plan: Plan) -> float:
    primary = plan.income.primary
    base = normalise_to_monthly(primary.amount, primary.frequency)
    extras = sum(
        (normalise_to_monthly(e.amount, e.frequency) for e in plan.income.extras or []),
        0.0,
    )
    return base + extras


def sum_by_bucket(plan: Plan, bucket: str, now: Optional[date] = None) -> float:
    return sum(
        (resolve_category_amount(c, now) for c in plan.categories if c.bucket == bucket),
        0.0,
    )


def calculate_plan_summary(plan: Plan, now: Optional[date] = None) -> PlanSummary:
    """Compute the monthly summary of a plan.

    Debt minimums are totalled separately from the category buckets. The
    leftover is whatever income remains after all allocations and can be
    negative.
    """
    now = resolve_now(now)
    income = calculate_income_monthly(plan)
    needs = sum_by_bucket(plan, "needs", now)
    wants = sum_by_bucket(plan, "wants", now)
    savings = sum_by_bucket(plan, "savings", now)
    debt = sum((d.minimum for d in plan.debts), 0.0)
    leftover = income - (needs + wants + savings + debt)
    return PlanSummary(
        income=income,
        needs=needs,
        wants=wants,
        savings=savings,
        debt=debt,
        leftover=leftover,
    )


def goal_monthly_need(plan: Plan, now: Optional[date] = None) -> float:
    """Total monthly saving needed to meet every dated goal on time."""
    total = 0.0
    for goal in plan.goals:
        if not goal.due_date:
            continue
        months = months_until(goal.due_date, now)
        remaining = max(goal.target - goal.current, 0)
        if months <= 0 or remaining <= 0:
            continue
        total += remaining / months
    return total


def evaluate_plan_warnings(plan: Plan, now: Optional[date] = None) -> List[PlanWarning]:
    """Return the warnings that apply to ``plan``.

    Checks run in a fixed order (overspend, negative leftover, underfunded
    goals) and each type appears at most once. Equality with income does not
    trigger a warning.
    """
    now = resolve_now(now)
    summary = calculate_plan_summary(plan, now)
    warnings: List[PlanWarning] = []

    if summary.allocated > summary.income:
        warnings.append(PlanWarning("overspend", WARNING_MESSAGES["overspend"]))

    if summary.leftover < 0:
        warnings.append(PlanWarning("negative-leftover", WARNING_MESSAGES["negative-leftover"]))

    need = goal_monthly_need(plan, now)
    if need > 0 and need > summary.savings:
        warnings.append(PlanWarning("underfunded-goals", WARNING_MESSAGES["underfunded-goals"]))

    return warnings


Allocations = Union[PlanSummary, Mapping[str, float]]


def _allocation(allocations: Allocations, bucket: str) -> float:
    if isinstance(allocations, Mapping):
        return allocations[bucket]
    return getattr(allocations, bucket)


def compute_reality_check(income: float, allocations: Allocations, preset: MethodPreset) -> RealityCheck:
    """Compare bucket allocations with the targets implied by ``preset``.

    Each delta is ``actual - target``; positive values mean the bucket is
    over its target. With zero income every target is zero and the deltas
    equal the allocations.
    """
    targets = percent_targets(income, preset)
    return RealityCheck(
        income=income,
        needs_delta=_allocation(allocations, "needs") - targets["needs"],
        wants_delta=_allocation(allocations, "wants") - targets["wants"],
        savings_delta=_allocation(allocations, "savings") - targets["savings"],
    )


def envelope_status(category: Category) -> EnvelopeStatus:
    """Usage of an envelope category against its cap.

    Without an explicit cap the monthly amount acts as the cap.
    """
    cap = category.cap_monthly if category.cap_monthly is not None else category.amount_monthly
    used = category.amount_monthly
    ratio = min(used / cap * 100, 100) if cap > 0 else 0.0
    return EnvelopeStatus(
        category_id=category.id,
        name=category.name,
        cap=cap,
        used=used,
        remaining=max(cap - used, 0),
        ratio=ratio,
    )


def envelope_statuses(plan: Plan) -> List[EnvelopeStatus]:
    return [envelope_status(c) for c in plan.categories if c.type == "envelope"]


def scenario_deltas(base: PlanSummary, summary: PlanSummary) -> ScenarioDeltas:
    """Differences between a scenario summary and its base plan summary."""
    return ScenarioDeltas(
        income=summary.income - base.income,
        needs=summary.needs - base.needs,
        wants=summary.wants - base.wants,
        savings_debt=(summary.savings + summary.debt) - (base.savings + base.debt),
        leftover=summary.leftover - base.leftover,
    )


def debt_budget(summary: PlanSummary) -> float:
    """Monthly amount available for debt repayment: savings plus minimums."""
    return max(summary.savings + summary.debt, 0)


@dataclass
class PlanMetrics:
    summary: PlanSummary
    warnings: List[PlanWarning]
    reality_check: Optional[RealityCheck]

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
            "realityCheck": self.reality_check.to_dict() if self.reality_check else None,
        }


def plan_metrics(plan: Plan, presets: Iterable[MethodPreset], now: Optional[date] = None) -> PlanMetrics:
    """Summary, warnings and reality check for ``plan`` in one call.

    The reality check is ``None`` when the plan has no preset or its preset
    no longer exists.
    """
    now = resolve_now(now)
    summary = calculate_plan_summary(plan, now)
    preset = find_preset(presets, plan.method_preset_id)
    reality_check = compute_reality_check(summary.income, summary, preset) if preset else None
    return PlanMetrics(
        summary=summary,
        warnings=evaluate_plan_warnings(plan, now),
        reality_check=reality_check,
    )
