"""Debt payoff projections.

Simulates month-by-month repayment of a list of debts under the snowball
(smallest balance first) or avalanche (highest APR first) strategy. All
minimums are paid every month and whatever the budget has left over goes to
the first unpaid debt in strategy order. Results are returned as a
``DebtPayoffSummary``; budgets that cannot cover the minimums, or that never
clear the debts within the simulation horizon, are reported through
``insufficient_budget`` and infinite values rather than exceptions.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from . import config
from .data_models import Debt, DebtPayoffStep, DebtPayoffSummary

logger = logging.getLogger(__name__)

INFINITE = math.inf


@dataclass
class _LedgerEntry:
    """Working copy of a debt during the simulation."""

    debt: Debt
    balance: float
    interest_paid: float = 0.0
    total_paid: float = 0.0


def _sort_debts(debts: Iterable[Debt], strategy: str) -> List[Debt]:
    # sorted() is stable, so debts with equal keys keep their input order
    if strategy == "snowball":
        return sorted(debts, key=lambda d: d.balance)
    if strategy == "avalanche":
        return sorted(debts, key=lambda d: d.apr, reverse=True)
    raise ValueError(f"Unknown payoff strategy: {strategy}")


def _bounded_months(max_months: Optional[int]) -> int:
    if max_months is None:
        max_months = config.MAX_PAYOFF_MONTHS
    return min(max(int(max_months), 1), config.PAYOFF_MONTHS_CEILING)


def project_debt_payoff(
    debts: Sequence[Debt],
    monthly_budget: float,
    strategy: str,
    max_months: Optional[int] = None,
) -> DebtPayoffSummary:
    """Project how long ``monthly_budget`` takes to clear ``debts``.

    Parameters
    ----------
    debts: Sequence[Debt]
        The debts to repay. They are copied; the caller's objects are not
        modified.
    monthly_budget: float
        Total amount available for debt repayment each month, minimums
        included.
    strategy: str
        ``"snowball"`` or ``"avalanche"``.
    max_months: int, optional
        Simulation horizon. Defaults to ``config.MAX_PAYOFF_MONTHS`` and is
        clamped to ``[1, config.PAYOFF_MONTHS_CEILING]``.

    Returns
    -------
    DebtPayoffSummary
        Steps are listed in strategy order. A debt's ``months`` is estimated
        as ``ceil(total_paid / minimum)`` rather than the month it actually
        reached zero, so it can differ from ``months_to_debt_free`` for debts
        that received extra payments.
    """
    minimums = sum((d.minimum for d in debts), 0.0)
    if not debts:
        return DebtPayoffSummary(
            strategy=strategy,
            steps=[],
            total_interest=0.0,
            months_to_debt_free=0,
            insufficient_budget=False,
        )

    if monthly_budget < minimums:
        return DebtPayoffSummary(
            strategy=strategy,
            steps=[
                DebtPayoffStep(
                    debt_id=d.id,
                    name=d.name,
                    months=INFINITE,
                    interest_paid=INFINITE,
                    total_paid=INFINITE,
                )
                for d in debts
            ],
            total_interest=INFINITE,
            months_to_debt_free=INFINITE,
            insufficient_budget=True,
        )

    ledger = [_LedgerEntry(debt=d, balance=d.balance) for d in _sort_debts(debts, strategy)]
    cap = _bounded_months(max_months)
    months = 0
    total_interest = 0.0

    while any(entry.balance > 0 for entry in ledger) and months < cap:
        months += 1
        extra_pool = monthly_budget - minimums

        for index, entry in enumerate(ledger):
            if entry.balance <= 0:
                continue
            interest = entry.balance * entry.debt.apr / 100 / 12
            entry.balance += interest
            entry.interest_paid += interest
            total_interest += interest

            payment = entry.debt.minimum
            focused = all(prior.balance <= 0 for prior in ledger[:index])
            if focused and extra_pool > 0:
                payment += extra_pool

            entry.balance -= payment
            entry.total_paid += payment
            if entry.balance < 0:
                # credit back the overpayment
                entry.total_paid += entry.balance
                entry.balance = 0.0

    steps: List[DebtPayoffStep] = []
    for entry in ledger:
        months_to_clear = max(math.ceil(entry.total_paid / max(entry.debt.minimum, 1)), 1)
        steps.append(
            DebtPayoffStep(
                debt_id=entry.debt.id,
                name=entry.debt.name,
                months=months_to_clear if entry.balance == 0 else INFINITE,
                interest_paid=round(entry.interest_paid, 2),
                total_paid=round(entry.total_paid, 2),
            )
        )

    all_cleared = all(entry.balance == 0 for entry in ledger)
    if not all_cleared:
        logger.debug("Debts not cleared within %d months using %s", cap, strategy)

    return DebtPayoffSummary(
        strategy=strategy,
        steps=steps,
        total_interest=round(total_interest, 2),
        months_to_debt_free=months if all_cleared else INFINITE,
        insufficient_budget=not all_cleared,
    )


def snowball(debts: Sequence[Debt], monthly_budget: float) -> DebtPayoffSummary:
    return project_debt_payoff(debts, monthly_budget, "snowball")


def avalanche(debts: Sequence[Debt], monthly_budget: float) -> DebtPayoffSummary:
    return project_debt_payoff(debts, monthly_budget, "avalanche")


def compare_strategies(
    debts: Sequence[Debt], monthly_budget: float, max_months: Optional[int] = None
) -> Tuple[DebtPayoffSummary, DebtPayoffSummary]:
    """Snowball and avalanche projections for the same debts and budget."""
    return (
        project_debt_payoff(debts, monthly_budget, "snowball", max_months),
        project_debt_payoff(debts, monthly_budget, "avalanche", max_months),
    )
