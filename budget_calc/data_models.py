"""Data models for the budget calculator.

This module defines dataclasses for the entities a budget plan is made of
(income entries, categories, debts, goals, method presets, the plan itself and
scenarios built from it) and for the results the engine returns. Each class
converts to and from the camelCase dictionaries used by the JSON export
format, so plans exported by the app can be loaded back unchanged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .utils import parse_iso_date

FREQUENCIES = ("monthly", "bi-weekly", "weekly")
CATEGORY_TYPES = ("fixed", "variable", "sinking", "envelope")
BUCKETS = ("needs", "wants", "savings")
METHOD_MODES = ("preset", "zero", "envelope")
STRATEGIES = ("snowball", "avalanche")


def _choice(value: Any, allowed: tuple, field_name: str) -> str:
    if value not in allowed:
        raise ValueError(f"Invalid {field_name}: {value!r}; expected one of {', '.join(allowed)}")
    return value


def _number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if value is None:
        raise ValueError(f"Missing numeric field: {key}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid numeric value for {key}: {value!r}") from exc


def _optional_number(data: Dict[str, Any], key: str) -> Optional[float]:
    if data.get(key) is None:
        return None
    return _number(data, key)


def _optional_date(data: Dict[str, Any], key: str) -> Optional[str]:
    """Return the ISO date string under ``key`` after checking it parses."""
    value = data.get(key)
    if not value:
        return None
    parse_iso_date(str(value))
    return str(value)


def _finite_or_none(value: float) -> Optional[float]:
    """Map the infinite sentinel to ``None`` so results stay strict JSON."""
    return value if math.isfinite(value) else None


@dataclass
class IncomeEntry:
    """A single income stream.

    Attributes
    ----------
    amount: float
        The amount received each period.
    frequency: str
        ``"monthly"``, ``"bi-weekly"`` or ``"weekly"``.
    """

    amount: float
    frequency: str = "monthly"

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "frequency": self.frequency}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IncomeEntry":
        return cls(
            amount=_number(data, "amount", 0),
            frequency=_choice(data.get("frequency", "monthly"), FREQUENCIES, "frequency"),
        )


@dataclass
class PlanIncome:
    primary: IncomeEntry
    extras: List[IncomeEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"primary": self.primary.to_dict()}
        if self.extras:
            data["extras"] = [e.to_dict() for e in self.extras]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanIncome":
        return cls(
            primary=IncomeEntry.from_dict(data.get("primary") or {}),
            extras=[IncomeEntry.from_dict(e) for e in data.get("extras") or []],
        )


@dataclass
class Category:
    """A spending category.

    Sinking funds (``type == "sinking"``) also carry a ``target`` and a
    ``due_date``; when their ``amount_monthly`` is zero the engine works out
    the monthly contribution itself. ``cap_monthly`` is only meaningful for
    envelopes.
    """

    id: str
    name: str
    type: str  # fixed, variable, sinking or envelope
    bucket: str  # needs, wants or savings
    amount_monthly: float = 0.0
    cap_monthly: Optional[float] = None
    target: Optional[float] = None
    due_date: Optional[str] = None  # ISO date, sinking funds only

    @property
    def is_sinking_fund(self) -> bool:
        return self.type == "sinking" and self.target is not None and self.due_date is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "bucket": self.bucket,
            "amountMonthly": self.amount_monthly,
        }
        if self.cap_monthly is not None:
            data["capMonthly"] = self.cap_monthly
        if self.target is not None:
            data["target"] = self.target
        if self.due_date is not None:
            data["dueDate"] = self.due_date
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            type=_choice(data.get("type", "fixed"), CATEGORY_TYPES, "category type"),
            bucket=_choice(data.get("bucket", "needs"), BUCKETS, "bucket"),
            amount_monthly=_number(data, "amountMonthly", 0),
            cap_monthly=_optional_number(data, "capMonthly"),
            target=_optional_number(data, "target"),
            due_date=_optional_date(data, "dueDate"),
        )


@dataclass
class Debt:
    """A debt with its current balance, annual percentage rate and minimum payment."""

    id: str
    name: str
    balance: float
    apr: float  # annual rate in percent, e.g. 19.9
    minimum: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "balance": self.balance,
            "apr": self.apr,
            "minimum": self.minimum,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Debt":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            balance=_number(data, "balance", 0),
            apr=_number(data, "apr", 0),
            minimum=_number(data, "minimum", 0),
        )


@dataclass
class Goal:
    id: str
    name: str
    target: float
    current: float = 0.0
    due_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "target": self.target,
            "current": self.current,
        }
        if self.due_date is not None:
            data["dueDate"] = self.due_date
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            target=_number(data, "target", 0),
            current=_number(data, "current", 0),
            due_date=_optional_date(data, "dueDate"),
        )


@dataclass
class MethodPreset:
    """A budgeting method expressed as fractions of income per bucket.

    The three fractions nominally sum to 1.0. Nothing here enforces that;
    see ``presets.normalise_preset`` for the renormalisation used by editors.
    """

    id: str
    name: str
    needs_pct: float
    wants_pct: float
    savings_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "needsPct": self.needs_pct,
            "wantsPct": self.wants_pct,
            "savingsPct": self.savings_pct,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MethodPreset":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            needs_pct=_number(data, "needsPct", 0),
            wants_pct=_number(data, "wantsPct", 0),
            savings_pct=_number(data, "savingsPct", 0),
        )


@dataclass
class PlanMeta:
    created_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {"createdAt": self.created_at, "updatedAt": self.updated_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanMeta":
        created = data.get("createdAt", "")
        return cls(created_at=created, updated_at=data.get("updatedAt", created))


@dataclass
class Plan:
    """A complete budget plan.

    ``method_preset_id`` refers to a ``MethodPreset`` by id only; the preset
    may have been deleted, in which case lookups return no active preset.
    ``method_mode`` records the budgeting discipline chosen in the UI and is
    ignored by the calculations.
    """

    id: str
    name: str
    income: PlanIncome
    currency: str = "LKR"
    categories: List[Category] = field(default_factory=list)
    debts: List[Debt] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    method_preset_id: Optional[str] = None
    method_mode: str = "preset"  # preset, zero or envelope
    meta: PlanMeta = field(default_factory=lambda: PlanMeta("", ""))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "currency": self.currency,
            "income": self.income.to_dict(),
            "categories": [c.to_dict() for c in self.categories],
            "debts": [d.to_dict() for d in self.debts],
            "goals": [g.to_dict() for g in self.goals],
            "methodMode": self.method_mode,
            "meta": self.meta.to_dict(),
        }
        if self.method_preset_id is not None:
            data["methodPresetId"] = self.method_preset_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Plan":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            currency=str(data.get("currency", "LKR")),
            income=PlanIncome.from_dict(data.get("income") or {}),
            categories=[Category.from_dict(c) for c in data.get("categories") or []],
            debts=[Debt.from_dict(d) for d in data.get("debts") or []],
            goals=[Goal.from_dict(g) for g in data.get("goals") or []],
            method_preset_id=data.get("methodPresetId"),
            method_mode=_choice(data.get("methodMode", "preset"), METHOD_MODES, "method mode"),
            meta=PlanMeta.from_dict(data.get("meta") or {}),
        )


@dataclass
class Scenario:
    """A what-if copy of a plan, compared against its base plan."""

    id: str
    name: str
    base_plan_id: str
    plan: Plan
    created_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "basePlanId": self.base_plan_id,
            "plan": self.plan.to_dict(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Scenario":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            base_plan_id=str(data.get("basePlanId", "")),
            plan=Plan.from_dict(data["plan"]),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", data.get("createdAt", "")),
        )


@dataclass
class Settings:
    active_plan_id: Optional[str] = None
    currency: str = "LKR"
    locale: str = "en-LK"
    theme: str = "system"  # light, dark or system
    enable_passcode: bool = False
    passcode: Optional[str] = None
    show_reality_check: bool = True

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "activePlanId": self.active_plan_id,
            "currency": self.currency,
            "locale": self.locale,
            "theme": self.theme,
            "enablePasscode": self.enable_passcode,
            "showRealityCheck": self.show_reality_check,
        }
        if self.passcode is not None:
            data["passcode"] = self.passcode
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        return cls(
            active_plan_id=data.get("activePlanId"),
            currency=data.get("currency", "LKR"),
            locale=data.get("locale", "en-LK"),
            theme=data.get("theme", "system"),
            enable_passcode=bool(data.get("enablePasscode", False)),
            passcode=data.get("passcode"),
            show_reality_check=bool(data.get("showRealityCheck", True)),
        )


# Calculation results


@dataclass
class PlanSummary:
    """Monthly totals derived from a plan."""

    income: float
    needs: float
    wants: float
    savings: float
    debt: float
    leftover: float

    @property
    def allocated(self) -> float:
        return self.needs + self.wants + self.savings + self.debt

    def to_dict(self) -> Dict[str, Any]:
        return {
            "income": self.income,
            "needs": self.needs,
            "wants": self.wants,
            "savings": self.savings,
            "debt": self.debt,
            "leftover": self.leftover,
        }


@dataclass
class PlanWarning:
    type: str  # overspend, negative-leftover or underfunded-goals
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message}


@dataclass
class RealityCheck:
    """Differences between actual bucket allocations and a preset's targets.

    A positive delta means the bucket is above its target.
    """

    income: float
    needs_delta: float
    wants_delta: float
    savings_delta: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "income": self.income,
            "needsDelta": self.needs_delta,
            "wantsDelta": self.wants_delta,
            "savingsDelta": self.savings_delta,
        }


@dataclass
class EnvelopeStatus:
    category_id: str
    name: str
    cap: float
    used: float
    remaining: float
    ratio: float  # percent of the cap in use, 0-100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categoryId": self.category_id,
            "name": self.name,
            "cap": self.cap,
            "used": self.used,
            "remaining": self.remaining,
            "ratio": self.ratio,
        }


@dataclass
class ScenarioDeltas:
    """Scenario summary minus base plan summary, savings and debt combined."""

    income: float
    needs: float
    wants: float
    savings_debt: float
    leftover: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "income": self.income,
            "needs": self.needs,
            "wants": self.wants,
            "savingsDebt": self.savings_debt,
            "leftover": self.leftover,
        }


@dataclass
class DebtPayoffStep:
    """Payoff outcome for one debt.

    ``months``, ``interest_paid`` and ``total_paid`` are ``math.inf`` when the
    debt never clears.
    """

    debt_id: str
    name: str
    months: float
    interest_paid: float
    total_paid: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "debtId": self.debt_id,
            "name": self.name,
            "months": _finite_or_none(self.months),
            "interestPaid": _finite_or_none(self.interest_paid),
            "totalPaid": _finite_or_none(self.total_paid),
        }


@dataclass
class DebtPayoffSummary:
    strategy: str  # snowball or avalanche
    steps: List[DebtPayoffStep]
    total_interest: float
    months_to_debt_free: float
    insufficient_budget: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "steps": [s.to_dict() for s in self.steps],
            "totalInterest": _finite_or_none(self.total_interest),
            "monthsToDebtFree": _finite_or_none(self.months_to_debt_free),
            "insufficientBudget": self.insufficient_budget,
        }
