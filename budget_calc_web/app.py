import logging
from uuid import uuid4

from flask import Flask, Response, abort, jsonify, request, session

from budget_calc import config
from budget_calc.data_models import Debt, MethodPreset, Plan
from budget_calc.engine import (
    calculate_plan_summary,
    debt_budget,
    envelope_statuses,
    evaluate_plan_warnings,
    plan_metrics,
    scenario_deltas,
)
from budget_calc.payoff import compare_strategies, project_debt_payoff
from budget_calc.plan_io import PlanImportError, plan_to_csv
from budget_calc.state import BudgetState
from budget_calc.utils import parse_iso_date
from budget_calc_web.state_store import StateStore, UserStatePersistence, create_store_from_env

logger = logging.getLogger(__name__)


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _state(store: StateStore) -> BudgetState:
    persistence = UserStatePersistence(store, _ensure_user_token())
    fresh = persistence.load() is None
    state = BudgetState(persistence)
    if fresh:
        # a new session's default plan must keep its id across requests
        persistence.save(state.to_dict())
    return state


def _now_arg():
    value = request.args.get("now")
    return parse_iso_date(value) if value else None


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _float_arg(name: str):
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Invalid numeric value for {name}: {value}") from exc


def _payoff_payload(debts, monthly_budget: float, strategy: str | None, max_months=None) -> dict:
    if strategy not in (None, "", "snowball", "avalanche"):
        raise ValueError(f"Unknown payoff strategy: {strategy}")
    if strategy:
        projections = [project_debt_payoff(debts, monthly_budget, strategy, max_months)]
    else:
        projections = list(compare_strategies(debts, monthly_budget, max_months))
    return {"monthlyBudget": monthly_budget, "projections": [p.to_dict() for p in projections]}


def create_app(database_url: str | None = None) -> Flask:
    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    store = create_store_from_env(database_url)

    def _plan_or_404(state: BudgetState, plan_id: str) -> Plan:
        plan = state.plans.get(plan_id)
        if plan is None:
            abort(404, description=f"Unknown plan: {plan_id}")
        return plan

    @app.errorhandler(ValueError)
    def handle_bad_input(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(404)
    def handle_not_found(exc):
        return jsonify({"error": exc.description}), 404

    @app.get("/api/state")
    def get_state():
        return jsonify(_state(store).to_dict())

    @app.delete("/api/state")
    def delete_state():
        state = _state(store)
        state.delete_all_data()
        return jsonify(state.to_dict())

    @app.post("/api/plans")
    def create_plan():
        data = request.get_json(silent=True) or {}
        state = _state(store)
        plan_id = state.create_plan(data.get("name"))
        return jsonify(state.plans[plan_id].to_dict()), 201

    @app.get("/api/plans/<plan_id>")
    def get_plan(plan_id: str):
        return jsonify(_plan_or_404(_state(store), plan_id).to_dict())

    @app.put("/api/plans/<plan_id>")
    def replace_plan(plan_id: str):
        state = _state(store)
        _plan_or_404(state, plan_id)
        data = _json_body()
        data.setdefault("id", plan_id)
        try:
            incoming = Plan.from_dict(data)
        except (KeyError, TypeError) as exc:
            raise PlanImportError(f"Import failed: {exc}") from exc
        updated = state.import_plan(plan_id, incoming)
        return jsonify(updated.to_dict())

    @app.put("/api/plans/<plan_id>/preset")
    def set_plan_preset(plan_id: str):
        state = _state(store)
        _plan_or_404(state, plan_id)
        preset_id = _json_body().get("presetId")
        if not preset_id:
            raise ValueError("presetId is required")
        return jsonify(state.set_method_preset(plan_id, preset_id).to_dict())

    @app.get("/api/plans/<plan_id>/metrics")
    def get_metrics(plan_id: str):
        state = _state(store)
        plan = _plan_or_404(state, plan_id)
        metrics = plan_metrics(plan, state.presets, _now_arg())
        payload = metrics.to_dict()
        payload["envelopes"] = [e.to_dict() for e in envelope_statuses(plan)]
        return jsonify(payload)

    @app.get("/api/plans/<plan_id>/payoff")
    def get_payoff(plan_id: str):
        state = _state(store)
        plan = _plan_or_404(state, plan_id)
        monthly_budget = _float_arg("budget")
        if monthly_budget is None:
            monthly_budget = debt_budget(calculate_plan_summary(plan, _now_arg()))
        strategy = request.args.get("strategy")
        max_months = _float_arg("maxMonths")
        if max_months is not None:
            max_months = int(max_months)
        return jsonify(_payoff_payload(plan.debts, monthly_budget, strategy, max_months))

    @app.get("/api/plans/<plan_id>/export.csv")
    def export_csv(plan_id: str):
        plan = _plan_or_404(_state(store), plan_id)
        filename = f"{plan.name.replace(' ', '-') or 'plan'}.csv"
        return Response(
            plan_to_csv(plan, _now_arg()),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.post("/api/plans/<plan_id>/scenarios")
    def create_scenario(plan_id: str):
        state = _state(store)
        _plan_or_404(state, plan_id)
        data = request.get_json(silent=True) or {}
        scenario_id = state.create_scenario(plan_id, data.get("name"))
        return jsonify(state.scenarios[scenario_id].to_dict()), 201

    @app.get("/api/scenarios/<scenario_id>/deltas")
    def get_scenario_deltas(scenario_id: str):
        state = _state(store)
        scenario = state.scenarios.get(scenario_id)
        if scenario is None:
            abort(404, description=f"Unknown scenario: {scenario_id}")
        base_plan = _plan_or_404(state, scenario.base_plan_id)
        now = _now_arg()
        deltas = scenario_deltas(calculate_plan_summary(base_plan, now), calculate_plan_summary(scenario.plan, now))
        return jsonify(deltas.to_dict())

    @app.delete("/api/scenarios/<scenario_id>")
    def delete_scenario(scenario_id: str):
        _state(store).delete_scenario(scenario_id)
        return "", 204

    @app.post("/api/presets")
    def add_preset():
        state = _state(store)
        try:
            preset = MethodPreset.from_dict(_json_body())
        except KeyError as exc:
            raise ValueError(f"Missing field: {exc}") from exc
        state.add_preset(preset)
        return jsonify(preset.to_dict()), 201

    @app.post("/api/calculate/summary")
    def calculate_summary():
        data = _json_body()
        try:
            plan = Plan.from_dict(data)
        except (KeyError, TypeError) as exc:
            raise PlanImportError(f"Invalid plan: {exc}") from exc
        now = _now_arg()
        return jsonify(
            {
                "summary": calculate_plan_summary(plan, now).to_dict(),
                "warnings": [w.to_dict() for w in evaluate_plan_warnings(plan, now)],
            }
        )

    @app.post("/api/calculate/payoff")
    def calculate_payoff():
        data = _json_body()
        try:
            debts = [Debt.from_dict(d) for d in data.get("debts") or []]
            monthly_budget = float(data["monthlyBudget"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Invalid payoff request: {exc}") from exc
        strategy = data.get("strategy")
        return jsonify(_payoff_payload(debts, monthly_budget, strategy, data.get("maxMonths")))

    logger.info("Budget API ready")
    return app


if __name__ == "__main__":
    config.configure_logging()
    print("Starting Budget Calculator API...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
