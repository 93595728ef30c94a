"""
Plan Export and Import Tests

Tests for the JSON plan document, the CSV report and re-identifying an
imported plan.
"""

import csv
import io
import json

import pytest

from budget_calc.data_models import Category, Plan, Settings
from budget_calc.plan_io import (
    PlanImportError,
    export_plan_csv,
    export_plan_json,
    import_into,
    load_plan,
    plan_from_json,
    plan_to_csv,
    plan_to_json,
)

from conftest import NOW, make_plan


class TestJsonDocument:
    """Tests for the camelCase plan document."""

    def test_round_trip(self, sample_plan):
        assert plan_from_json(plan_to_json(sample_plan)) == sample_plan

    def test_uses_camel_case_keys(self, sample_plan):
        data = json.loads(plan_to_json(sample_plan))

        assert data["methodPresetId"] == "50-30-20"
        assert data["methodMode"] == "preset"
        assert data["meta"]["createdAt"] == "2025-01-01T00:00:00+00:00"
        assert data["categories"][2]["capMonthly"] == 200.0
        assert data["categories"][5]["dueDate"] == "2025-12-01"
        assert "capMonthly" not in data["categories"][0]

    def test_minimal_document_fills_defaults(self):
        plan = plan_from_json(json.dumps({"id": "p1", "name": "Bare", "income": {"primary": {"amount": 100}}}))

        assert plan.income.primary.frequency == "monthly"
        assert plan.categories == []
        assert plan.method_mode == "preset"
        assert plan.method_preset_id is None

    def test_invalid_json(self):
        with pytest.raises(PlanImportError, match="invalid JSON"):
            plan_from_json("{oops")

    def test_not_an_object(self):
        with pytest.raises(PlanImportError):
            plan_from_json("[1, 2, 3]")

    def test_missing_id(self):
        with pytest.raises(PlanImportError):
            plan_from_json(json.dumps({"name": "No id"}))

    def test_invalid_frequency(self):
        doc = {"id": "p1", "income": {"primary": {"amount": 100, "frequency": "daily"}}}
        with pytest.raises(PlanImportError, match="frequency"):
            plan_from_json(json.dumps(doc))

    def test_invalid_amount(self):
        doc = {"id": "p1", "income": {"primary": {"amount": "lots"}}}
        with pytest.raises(PlanImportError):
            plan_from_json(json.dumps(doc))

    def test_invalid_category_due_date(self, sample_plan):
        doc = sample_plan.to_dict()
        doc["categories"][5]["dueDate"] = "soon"

        with pytest.raises(PlanImportError, match="Invalid ISO date: soon"):
            plan_from_json(json.dumps(doc))

    def test_invalid_goal_due_date(self, sample_plan):
        doc = sample_plan.to_dict()
        doc["goals"][0]["dueDate"] = "2025-13-40"

        with pytest.raises(PlanImportError, match="Invalid ISO date"):
            plan_from_json(json.dumps(doc))

    def test_blank_due_date_is_unset(self, sample_plan):
        doc = sample_plan.to_dict()
        doc["goals"][0]["dueDate"] = ""

        assert plan_from_json(json.dumps(doc)).goals[0].due_date is None

    def test_import_error_is_value_error(self):
        assert issubclass(PlanImportError, ValueError)


class TestCsvReport:
    """Tests for the sectioned CSV export."""

    def test_sections_and_headers(self, sample_plan):
        rows = list(csv.reader(io.StringIO(plan_to_csv(sample_plan, NOW))))

        assert rows[0] == ["Section", "Name", "Type", "Bucket", "Monthly"]
        assert rows[7] == []
        assert rows[8] == ["Section", "Name", "Balance", "APR", "Minimum"]
        assert rows[11] == []
        assert rows[12] == ["Section", "Name", "Target", "Current", "Due"]
        assert len(rows) == 15

    def test_sinking_fund_amount_is_resolved(self, sample_plan):
        rows = list(csv.reader(io.StringIO(plan_to_csv(sample_plan, NOW))))

        insurance = rows[6]
        assert insurance[:4] == ["Category", "Insurance", "sinking", "savings"]
        assert float(insurance[4]) == 100.0

    def test_debt_and_goal_rows(self, sample_plan):
        rows = list(csv.reader(io.StringIO(plan_to_csv(sample_plan, NOW))))

        assert rows[9] == ["Debt", "Credit card", "2500.0", "19.9", "100.0"]
        assert rows[13] == ["Goal", "Trip", "2400.0", "1200.0", "2025-12-31"]
        assert rows[14] == ["Goal", "Someday", "5000.0", "0.0", ""]

    def test_names_with_commas_are_quoted(self):
        plan = make_plan(categories=[Category(id="c", name="Food, drink", type="fixed", bucket="wants", amount_monthly=10.0)])

        assert '"Food, drink"' in plan_to_csv(plan, NOW)

    def test_empty_plan_keeps_headers(self):
        lines = plan_to_csv(make_plan(), NOW).splitlines()

        assert lines == [
            "Section,Name,Type,Bucket,Monthly",
            "",
            "Section,Name,Balance,APR,Minimum",
            "",
            "Section,Name,Target,Current,Due",
        ]


class TestFiles:
    """Tests for writing and reading plan files."""

    def test_export_and_load_json(self, tmp_path, sample_plan):
        path = tmp_path / "plan.json"
        export_plan_json(path, sample_plan)

        assert load_plan(path) == sample_plan

    def test_export_csv(self, tmp_path, sample_plan):
        path = tmp_path / "plan.csv"
        export_plan_csv(path, sample_plan, NOW)

        assert path.read_text(encoding="utf-8") == plan_to_csv(sample_plan, NOW)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(PlanImportError, match="Cannot read"):
            load_plan(tmp_path / "missing.json")


class TestImportInto:
    """Tests for replacing a plan's contents with an imported plan."""

    def test_keeps_identity(self, sample_plan):
        existing = make_plan(plan_id="plan-existing")
        existing.meta.created_at = "2024-06-01T00:00:00+00:00"

        result = import_into(existing, sample_plan)

        assert result.id == "plan-existing"
        assert result.meta.created_at == "2024-06-01T00:00:00+00:00"
        assert result.meta.updated_at != sample_plan.meta.updated_at
        assert result.categories == sample_plan.categories
        assert result.debts == sample_plan.debts
        assert result.name == sample_plan.name


class TestModelDictionaries:
    """Tests for model conversion details not covered by the plan round trip."""

    def test_plan_from_dict_rejects_unknown_mode(self):
        with pytest.raises(ValueError):
            Plan.from_dict({"id": "p", "methodMode": "chaos"})

    def test_category_optional_fields(self):
        category = Category.from_dict({"id": "c", "name": "Tax", "type": "sinking", "bucket": "savings",
                                       "target": "600", "dueDate": "2025-06-01"})

        assert category.target == 600.0
        assert category.amount_monthly == 0.0
        assert category.cap_monthly is None
        assert category.is_sinking_fund

    def test_settings_defaults(self):
        settings = Settings.from_dict({})

        assert settings.show_reality_check is True
        assert settings.theme == "system"
        assert "passcode" not in settings.to_dict()
