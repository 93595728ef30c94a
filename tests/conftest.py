"""
Pytest configuration and fixtures for budget calculator tests.
"""

import json
from datetime import date
from pathlib import Path

import pytest

from budget_calc.data_models import (
    Category,
    Debt,
    Goal,
    IncomeEntry,
    Plan,
    PlanIncome,
    PlanMeta,
)

NOW = date(2025, 1, 15)


def make_plan(
    income=1000.0,
    categories=None,
    debts=None,
    goals=None,
    extras=None,
    preset_id="50-30-20",
    plan_id="plan-test",
) -> Plan:
    """Build a plan with a monthly primary income."""
    return Plan(
        id=plan_id,
        name="Test plan",
        currency="USD",
        income=PlanIncome(
            primary=IncomeEntry(amount=income, frequency="monthly"),
            extras=list(extras or []),
        ),
        categories=list(categories or []),
        debts=list(debts or []),
        goals=list(goals or []),
        method_preset_id=preset_id,
        method_mode="preset",
        meta=PlanMeta(created_at="2025-01-01T00:00:00+00:00", updated_at="2025-01-01T00:00:00+00:00"),
    )


def category(cid, bucket, amount, type_="fixed", **extra) -> Category:
    return Category(id=cid, name=cid.title(), type=type_, bucket=bucket, amount_monthly=amount, **extra)


@pytest.fixture
def now() -> date:
    """Fixed evaluation date so month arithmetic is deterministic."""
    return NOW


@pytest.fixture
def sample_plan() -> Plan:
    """A realistic plan with every kind of category, debts and goals.

    Monthly figures as of 2025-01-15:
    income 3000 + weekly 300 (1300) = 4300
    needs 1500, wants 400, savings 200 + sinking 1200/12 = 300, debt 150
    leftover 1950
    """
    return make_plan(
        income=3000.0,
        extras=[IncomeEntry(amount=300.0, frequency="weekly")],
        categories=[
            category("rent", "needs", 1200.0),
            category("groceries", "needs", 300.0, type_="variable"),
            category("dining", "wants", 150.0, type_="envelope", cap_monthly=200.0),
            category("hobbies", "wants", 250.0),
            category("emergency", "savings", 200.0),
            category("insurance", "savings", 0.0, type_="sinking", target=1200.0, due_date="2025-12-01"),
        ],
        debts=[
            Debt(id="card", name="Credit card", balance=2500.0, apr=19.9, minimum=100.0),
            Debt(id="car", name="Car loan", balance=8000.0, apr=6.5, minimum=50.0),
        ],
        goals=[
            Goal(id="trip", name="Trip", target=2400.0, current=1200.0, due_date="2025-12-31"),
            Goal(id="someday", name="Someday", target=5000.0, current=0.0),
        ],
    )


@pytest.fixture
def plan_file(tmp_path: Path, sample_plan: Plan) -> Path:
    """The sample plan written to disk as exported JSON."""
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(sample_plan.to_dict()), encoding="utf-8")
    return path
