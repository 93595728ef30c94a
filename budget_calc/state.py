"""Application state for plans, presets, scenarios and settings.

``BudgetState`` holds everything the user edits and hands a serialised copy
to a persistence object after every change. Persistence is injected: any
object with ``load() -> dict | None`` and ``save(dict)`` works, such as
``MemoryPersistence``, ``JsonFilePersistence`` or the SQL-backed store in the
web package. Operations on ids that do not exist are ignored and return
``None``.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from . import config
from .data_models import (
    METHOD_MODES,
    Category,
    Debt,
    Goal,
    IncomeEntry,
    MethodPreset,
    Plan,
    PlanIncome,
    PlanMeta,
    Scenario,
    Settings,
)
from .presets import default_presets
from .utils import create_id, now_iso

logger = logging.getLogger(__name__)


class MemoryPersistence:
    """Keeps the last saved state in memory."""

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data = data

    def load(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self.data)

    def save(self, state: Dict[str, Any]) -> None:
        self.data = copy.deepcopy(state)


class JsonFilePersistence:
    """Stores the state as a JSON document on disk."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else config.STATE_FILE

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning(f"Ignoring unreadable state file {self.path}: {exc}")
            return None
        return data if isinstance(data, dict) else None

    def save(self, state: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(state, f, indent=2)


def clone_plan(plan: Plan) -> Plan:
    return copy.deepcopy(plan)


def new_plan(name: str = "New plan", preset_id: Optional[str] = None, currency: Optional[str] = None) -> Plan:
    """Return an empty plan with zero monthly income."""
    timestamp = now_iso()
    return Plan(
        id=create_id("plan"),
        name=name,
        currency=currency or config.DEFAULT_CURRENCY,
        income=PlanIncome(primary=IncomeEntry(amount=0.0, frequency="monthly")),
        method_preset_id=preset_id,
        method_mode="preset",
        meta=PlanMeta(created_at=timestamp, updated_at=timestamp),
    )


def _upsert(items: list, item: Any) -> list:
    result = list(items)
    for index, existing in enumerate(result):
        if existing.id == item.id:
            result[index] = item
            return result
    result.append(item)
    return result


class BudgetState:
    """Plans, presets, scenarios and settings with save-on-change persistence."""

    def __init__(self, persistence: Any = None) -> None:
        self._persistence = persistence or MemoryPersistence()
        self.plans: Dict[str, Plan] = {}
        self.presets: List[MethodPreset] = []
        self.scenarios: Dict[str, Scenario] = {}
        self.settings = Settings()

        stored = self._persistence.load()
        if stored:
            self._restore(stored)
        else:
            self._reset()

    # Persistence

    def _reset(self) -> None:
        self.presets = default_presets()
        plan = new_plan("Main plan", preset_id=self.presets[0].id)
        self.plans = {plan.id: plan}
        self.scenarios = {}
        self.settings = Settings(
            active_plan_id=plan.id,
            currency=config.DEFAULT_CURRENCY,
            locale=config.DEFAULT_LOCALE,
        )

    def _restore(self, data: Dict[str, Any]) -> None:
        try:
            self.settings = Settings.from_dict(data.get("settings") or {})
            self.plans = {p["id"]: Plan.from_dict(p) for p in (data.get("plans") or {}).values()}
            self.presets = [MethodPreset.from_dict(p) for p in data.get("presets") or []]
            self.scenarios = {s["id"]: Scenario.from_dict(s) for s in (data.get("scenarios") or {}).values()}
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning(f"Stored state is invalid, starting fresh: {exc}")
            self._reset()
            return
        if not self.plans:
            self._reset()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], persistence: Any = None) -> "BudgetState":
        """Build a state from a serialised document, then save through ``persistence``."""
        state = cls(MemoryPersistence(data))
        state._persistence = persistence or MemoryPersistence()
        return state

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settings": self.settings.to_dict(),
            "plans": {pid: p.to_dict() for pid, p in self.plans.items()},
            "presets": [p.to_dict() for p in self.presets],
            "scenarios": {sid: s.to_dict() for sid, s in self.scenarios.items()},
        }

    def _save(self) -> None:
        self._persistence.save(self.to_dict())

    # Settings

    def update_settings(self, **changes: Any) -> Settings:
        self.settings = replace(self.settings, **changes)
        self._save()
        return self.settings

    def set_active_plan(self, plan_id: str) -> None:
        if plan_id in self.plans:
            self.settings.active_plan_id = plan_id
            self._save()

    def toggle_reality_check(self) -> bool:
        self.settings.show_reality_check = not self.settings.show_reality_check
        self._save()
        return self.settings.show_reality_check

    def set_passcode(self, passcode: Optional[str] = None) -> None:
        self.settings.enable_passcode = bool(passcode)
        self.settings.passcode = passcode
        self._save()

    def delete_all_data(self) -> None:
        logger.info("Deleting all budget data")
        self._reset()
        self._save()

    # Plans

    def active_plan(self) -> Optional[Plan]:
        return self.plans.get(self.settings.active_plan_id or "")

    def create_plan(self, name: Optional[str] = None) -> str:
        preset_id = self.presets[0].id if self.presets else None
        plan = new_plan(name or "New plan", preset_id=preset_id, currency=self.settings.currency)
        self.plans[plan.id] = plan
        self.settings.active_plan_id = plan.id
        self._save()
        logger.debug(f"Created plan {plan.id}")
        return plan.id

    def update_plan(self, plan_id: str, updater: Callable[[Plan], Plan]) -> Optional[Plan]:
        """Apply ``updater`` to a copy of the plan and store the result.

        The plan id and creation time are preserved; ``updated_at`` is
        refreshed.
        """
        existing = self.plans.get(plan_id)
        if existing is None:
            return None
        updated = updater(clone_plan(existing))
        updated.id = plan_id
        updated.meta = PlanMeta(created_at=existing.meta.created_at, updated_at=now_iso())
        self.plans[plan_id] = updated
        self._save()
        return updated

    def delete_plan(self, plan_id: str) -> None:
        if plan_id not in self.plans:
            return
        del self.plans[plan_id]
        if self.settings.active_plan_id == plan_id:
            self.settings.active_plan_id = next(iter(self.plans), None)
        self._save()

    def duplicate_plan(self, plan_id: str, name: Optional[str] = None) -> Optional[str]:
        plan = self.plans.get(plan_id)
        if plan is None:
            return None
        duplicate = clone_plan(plan)
        timestamp = now_iso()
        duplicate.id = create_id("plan")
        duplicate.name = name or f"{plan.name} copy"
        duplicate.meta = PlanMeta(created_at=timestamp, updated_at=timestamp)
        self.plans[duplicate.id] = duplicate
        self._save()
        return duplicate.id

    def import_plan(self, plan_id: str, incoming: Plan) -> Optional[Plan]:
        """Replace a plan's contents with an imported plan, keeping its identity."""

        def apply(_: Plan) -> Plan:
            return clone_plan(incoming)

        return self.update_plan(plan_id, apply)

    def upsert_category(self, plan_id: str, category: Category) -> Optional[Plan]:
        return self.update_plan(plan_id, lambda p: replace(p, categories=_upsert(p.categories, category)))

    def remove_category(self, plan_id: str, category_id: str) -> Optional[Plan]:
        return self.update_plan(
            plan_id, lambda p: replace(p, categories=[c for c in p.categories if c.id != category_id])
        )

    def reorder_categories(self, plan_id: str, ordered_ids: List[str]) -> Optional[Plan]:
        """Sort categories by ``ordered_ids``; unlisted categories keep their order at the end."""
        positions = {cid: index for index, cid in enumerate(ordered_ids)}
        return self.update_plan(
            plan_id,
            lambda p: replace(
                p, categories=sorted(p.categories, key=lambda c: positions.get(c.id, len(positions)))
            ),
        )

    def upsert_debt(self, plan_id: str, debt: Debt) -> Optional[Plan]:
        return self.update_plan(plan_id, lambda p: replace(p, debts=_upsert(p.debts, debt)))

    def remove_debt(self, plan_id: str, debt_id: str) -> Optional[Plan]:
        return self.update_plan(plan_id, lambda p: replace(p, debts=[d for d in p.debts if d.id != debt_id]))

    def upsert_goal(self, plan_id: str, goal: Goal) -> Optional[Plan]:
        return self.update_plan(plan_id, lambda p: replace(p, goals=_upsert(p.goals, goal)))

    def remove_goal(self, plan_id: str, goal_id: str) -> Optional[Plan]:
        return self.update_plan(plan_id, lambda p: replace(p, goals=[g for g in p.goals if g.id != goal_id]))

    def set_method_mode(self, plan_id: str, mode: str) -> Optional[Plan]:
        if mode not in METHOD_MODES:
            raise ValueError(f"Invalid method mode: {mode!r}")
        return self.update_plan(plan_id, lambda p: replace(p, method_mode=mode))

    def set_method_preset(self, plan_id: str, preset_id: str) -> Optional[Plan]:
        return self.update_plan(plan_id, lambda p: replace(p, method_preset_id=preset_id))

    # Presets

    def add_preset(self, preset: MethodPreset) -> None:
        self.presets.append(preset)
        self._save()

    def update_preset(self, preset: MethodPreset) -> None:
        self.presets = [preset if p.id == preset.id else p for p in self.presets]
        self._save()

    def remove_preset(self, preset_id: str) -> None:
        # plans keep their preset id; lookups then resolve to no active preset
        self.presets = [p for p in self.presets if p.id != preset_id]
        self._save()

    # Scenarios

    def create_scenario(self, plan_id: str, name: Optional[str] = None) -> Optional[str]:
        plan = self.plans.get(plan_id)
        if plan is None:
            return None
        timestamp = now_iso()
        scenario = Scenario(
            id=create_id("scenario"),
            name=name or f"{plan.name} tweak",
            base_plan_id=plan_id,
            plan=clone_plan(plan),
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.scenarios[scenario.id] = scenario
        self._save()
        return scenario.id

    def update_scenario(self, scenario_id: str, updater: Callable[[Scenario], Scenario]) -> Optional[Scenario]:
        scenario = self.scenarios.get(scenario_id)
        if scenario is None:
            return None
        updated = updater(replace(scenario, plan=clone_plan(scenario.plan)))
        updated.updated_at = now_iso()
        self.scenarios[scenario_id] = updated
        self._save()
        return updated

    def sync_scenario_from_plan(self, scenario_id: str) -> Optional[Scenario]:
        """Overwrite a scenario's plan with the current state of its base plan."""
        scenario = self.scenarios.get(scenario_id)
        if scenario is None or scenario.base_plan_id not in self.plans:
            return None
        base = self.plans[scenario.base_plan_id]
        return self.update_scenario(scenario_id, lambda s: replace(s, plan=clone_plan(base)))

    def delete_scenario(self, scenario_id: str) -> None:
        if self.scenarios.pop(scenario_id, None) is not None:
            self._save()
