"""Plan export and import.

Plans are exported either as JSON (the full camelCase plan document, which
can be imported again) or as a CSV report with one section each for
categories, debts and goals.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date
from pathlib import Path
from typing import Optional

from .data_models import Plan, PlanMeta
from .engine import resolve_category_amount
from .utils import now_iso


class PlanImportError(ValueError):
    """Raised when imported data is not a valid plan document."""


def plan_to_json(plan: Plan) -> str:
    return json.dumps(plan.to_dict(), indent=2)


def plan_from_json(text: str) -> Plan:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PlanImportError(f"Import failed: invalid JSON ({exc.msg})") from exc
    if not isinstance(data, dict):
        raise PlanImportError("Import failed: expected a JSON object")
    try:
        return Plan.from_dict(data)
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise PlanImportError(f"Import failed: {exc}") from exc


def plan_to_csv(plan: Plan, now: Optional[date] = None) -> str:
    """Render the plan as a sectioned CSV document.

    Category amounts are resolved, so sinking funds without a manual amount
    show their computed monthly contribution.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Section", "Name", "Type", "Bucket", "Monthly"])
    for category in plan.categories:
        writer.writerow(
            ["Category", category.name, category.type, category.bucket, resolve_category_amount(category, now)]
        )
    writer.writerow([])
    writer.writerow(["Section", "Name", "Balance", "APR", "Minimum"])
    for debt in plan.debts:
        writer.writerow(["Debt", debt.name, debt.balance, debt.apr, debt.minimum])
    writer.writerow([])
    writer.writerow(["Section", "Name", "Target", "Current", "Due"])
    for goal in plan.goals:
        writer.writerow(["Goal", goal.name, goal.target, goal.current, goal.due_date or ""])
    return buffer.getvalue()


def export_plan_json(path: Path, plan: Plan) -> None:
    with path.open("w", encoding="utf-8") as f:
        f.write(plan_to_json(plan))


def export_plan_csv(path: Path, plan: Plan, now: Optional[date] = None) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        f.write(plan_to_csv(plan, now))


def load_plan(path: Path) -> Plan:
    """Read a plan JSON file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PlanImportError(f"Cannot read {path}: {exc}") from exc
    return plan_from_json(text)


def import_into(existing: Plan, incoming: Plan) -> Plan:
    """Return ``incoming`` re-identified as ``existing``.

    The existing id and creation time are kept and ``updated_at`` is
    refreshed.
    """
    return Plan(
        id=existing.id,
        name=incoming.name,
        currency=incoming.currency,
        income=incoming.income,
        categories=list(incoming.categories),
        debts=list(incoming.debts),
        goals=list(incoming.goals),
        method_preset_id=incoming.method_preset_id,
        method_mode=incoming.method_mode,
        meta=PlanMeta(created_at=existing.meta.created_at, updated_at=now_iso()),
    )
