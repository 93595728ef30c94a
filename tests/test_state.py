"""
Application State Tests

Tests for plan, preset and scenario management and for save-on-change
persistence.
"""

import json

import pytest

from budget_calc.data_models import Category, Debt, Goal
from budget_calc.engine import calculate_plan_summary, plan_metrics
from budget_calc.state import BudgetState, JsonFilePersistence, MemoryPersistence

from conftest import NOW


class RecordingPersistence(MemoryPersistence):
    """Memory persistence that counts saves."""

    def __init__(self, data=None):
        super().__init__(data)
        self.saves = 0

    def save(self, state):
        super().save(state)
        self.saves += 1


@pytest.fixture
def persistence() -> RecordingPersistence:
    return RecordingPersistence()


@pytest.fixture
def state(persistence) -> BudgetState:
    return BudgetState(persistence)


def rent() -> Category:
    return Category(id="rent", name="Rent", type="fixed", bucket="needs", amount_monthly=900.0)


class TestInitialState:
    """Tests for a fresh state."""

    def test_fresh_state_has_main_plan(self, state):
        plan = state.active_plan()

        assert plan is not None
        assert plan.name == "Main plan"
        assert plan.method_preset_id == "50-30-20"
        assert plan.income.primary.amount == 0
        assert [p.id for p in state.presets] == ["50-30-20", "60-30-10"]
        assert state.scenarios == {}

    def test_loading_does_not_save(self, persistence):
        BudgetState(persistence)
        assert persistence.saves == 0

    def test_restores_saved_state(self, state, persistence):
        plan_id = state.create_plan("Holiday budget")
        state.upsert_category(plan_id, rent())

        restored = BudgetState(persistence)

        assert restored.to_dict() == state.to_dict()
        assert restored.settings.active_plan_id == plan_id

    def test_from_dict_saves_to_given_persistence(self, state, persistence):
        state.create_plan("Copied")
        target = RecordingPersistence()

        copied = BudgetState.from_dict(state.to_dict(), target)
        assert copied.to_dict() == state.to_dict()
        assert target.saves == 0

        copied.toggle_reality_check()
        assert target.saves == 1
        assert persistence.data["settings"]["showRealityCheck"] is True

    def test_invalid_stored_state_starts_fresh(self):
        restored = BudgetState(MemoryPersistence({"plans": {"x": {"name": "no id"}}}))

        assert restored.active_plan().name == "Main plan"


class TestPlans:
    """Tests for plan operations."""

    def test_create_plan_becomes_active(self, state, persistence):
        plan_id = state.create_plan("Second")

        assert state.settings.active_plan_id == plan_id
        assert state.plans[plan_id].name == "Second"
        assert persistence.saves == 1

    def test_update_plan_keeps_identity_and_stamps(self, state):
        plan = state.active_plan()
        plan.meta.updated_at = "2000-01-01T00:00:00+00:00"
        created_at = plan.meta.created_at

        def rename(p):
            p.name = "Renamed"
            p.id = "something-else"
            return p

        updated = state.update_plan(plan.id, rename)

        assert updated.id == plan.id
        assert updated.name == "Renamed"
        assert updated.meta.created_at == created_at
        assert updated.meta.updated_at != "2000-01-01T00:00:00+00:00"

    def test_update_unknown_plan_is_ignored(self, state, persistence):
        assert state.update_plan("missing", lambda p: p) is None
        assert persistence.saves == 0

    def test_updater_works_on_a_copy(self, state):
        plan = state.active_plan()

        def mutate_and_fail(p):
            p.categories.append(rent())
            raise RuntimeError("abort")

        with pytest.raises(RuntimeError):
            state.update_plan(plan.id, mutate_and_fail)
        assert state.active_plan().categories == []

    def test_delete_active_plan_moves_active(self, state):
        first = state.active_plan().id
        second = state.create_plan("Second")
        state.delete_plan(second)

        assert second not in state.plans
        assert state.settings.active_plan_id == first

    def test_duplicate_plan(self, state):
        plan_id = state.active_plan().id
        state.upsert_category(plan_id, rent())
        copy_id = state.duplicate_plan(plan_id)

        assert copy_id != plan_id
        assert state.plans[copy_id].name == "Main plan copy"
        assert state.plans[copy_id].categories == state.plans[plan_id].categories
        assert state.duplicate_plan("missing") is None

    def test_set_active_plan_requires_existing(self, state):
        active = state.settings.active_plan_id
        state.set_active_plan("missing")
        assert state.settings.active_plan_id == active


class TestPlanContents:
    """Tests for categories, debts, goals and method settings."""

    def test_upsert_category_inserts_then_replaces(self, state):
        plan_id = state.active_plan().id
        state.upsert_category(plan_id, rent())
        state.upsert_category(plan_id, Category(id="rent", name="Rent", type="fixed", bucket="needs", amount_monthly=950.0))

        categories = state.plans[plan_id].categories
        assert len(categories) == 1
        assert categories[0].amount_monthly == 950.0

    def test_remove_category(self, state):
        plan_id = state.active_plan().id
        state.upsert_category(plan_id, rent())
        state.remove_category(plan_id, "rent")

        assert state.plans[plan_id].categories == []

    def test_reorder_categories(self, state):
        plan_id = state.active_plan().id
        for cid in ["a", "b", "c"]:
            state.upsert_category(plan_id, Category(id=cid, name=cid, type="fixed", bucket="wants"))
        state.reorder_categories(plan_id, ["c", "a"])

        assert [c.id for c in state.plans[plan_id].categories] == ["c", "a", "b"]

    def test_debts_and_goals(self, state):
        plan_id = state.active_plan().id
        state.upsert_debt(plan_id, Debt(id="card", name="Card", balance=500.0, apr=20.0, minimum=25.0))
        state.upsert_goal(plan_id, Goal(id="trip", name="Trip", target=1000.0))

        assert [d.id for d in state.plans[plan_id].debts] == ["card"]
        assert [g.id for g in state.plans[plan_id].goals] == ["trip"]

        state.remove_debt(plan_id, "card")
        state.remove_goal(plan_id, "trip")
        assert state.plans[plan_id].debts == []
        assert state.plans[plan_id].goals == []

    def test_method_mode(self, state):
        plan_id = state.active_plan().id
        state.set_method_mode(plan_id, "zero")
        assert state.plans[plan_id].method_mode == "zero"

        with pytest.raises(ValueError):
            state.set_method_mode(plan_id, "chaos")

    def test_removed_preset_leaves_no_active_preset(self, state):
        plan = state.active_plan()
        state.remove_preset("50-30-20")

        assert state.active_plan().method_preset_id == "50-30-20"
        assert plan_metrics(plan, state.presets, NOW).reality_check is None

    def test_update_preset(self, state):
        preset = state.presets[1]
        preset.needs_pct = 0.55
        state.update_preset(preset)
        assert state.presets[1].needs_pct == 0.55


class TestScenarios:
    """Tests for what-if scenarios."""

    def test_scenario_is_independent_copy(self, state):
        plan_id = state.active_plan().id
        scenario_id = state.create_scenario(plan_id)
        state.upsert_category(plan_id, rent())

        scenario = state.scenarios[scenario_id]
        assert scenario.name == "Main plan tweak"
        assert scenario.base_plan_id == plan_id
        assert scenario.plan.categories == []

    def test_update_and_sync_scenario(self, state):
        plan_id = state.active_plan().id
        scenario_id = state.create_scenario(plan_id, "Pay cut")

        def pay_cut(s):
            s.plan.income.primary.amount = 500.0
            return s

        state.update_scenario(scenario_id, pay_cut)
        assert calculate_plan_summary(state.scenarios[scenario_id].plan, NOW).income == 500.0

        state.sync_scenario_from_plan(scenario_id)
        assert state.scenarios[scenario_id].plan.income.primary.amount == 0

    def test_delete_scenario(self, state):
        scenario_id = state.create_scenario(state.active_plan().id)
        state.delete_scenario(scenario_id)

        assert state.scenarios == {}
        assert state.create_scenario("missing") is None


class TestSettings:
    """Tests for settings and data reset."""

    def test_toggle_reality_check(self, state):
        assert state.toggle_reality_check() is False
        assert state.toggle_reality_check() is True

    def test_passcode(self, state):
        state.set_passcode("1234")
        assert state.settings.enable_passcode is True

        state.set_passcode(None)
        assert state.settings.enable_passcode is False

    def test_update_settings(self, state):
        state.update_settings(currency="USD", theme="dark")

        assert state.settings.currency == "USD"
        assert state.settings.theme == "dark"

    def test_delete_all_data(self, state):
        state.create_plan("Extra")
        state.create_scenario(state.active_plan().id)
        state.delete_all_data()

        assert len(state.plans) == 1
        assert state.scenarios == {}
        assert state.active_plan().name == "Main plan"


class TestJsonFilePersistence:
    """Tests for the on-disk state file."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        state = BudgetState(JsonFilePersistence(path))
        plan_id = state.create_plan("Saved")

        assert path.exists()
        assert BudgetState(JsonFilePersistence(path)).plans[plan_id].name == "Saved"

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")

        assert JsonFilePersistence(path).load() is None
        assert BudgetState(JsonFilePersistence(path)).active_plan() is not None

    def test_saved_document_is_json(self, tmp_path):
        path = tmp_path / "state.json"
        BudgetState(JsonFilePersistence(path)).toggle_reality_check()

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["settings"]["showRealityCheck"] is False
