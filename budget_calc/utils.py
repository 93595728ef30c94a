"""Utility functions for the budget calculator.

Helpers for parsing user input (ISO dates, amounts with ``k``/``m``
suffixes), counting calendar months between dates and generating ids.
"""

from __future__ import annotations

import math
import random
import string
import time
from datetime import date, datetime, timezone
from typing import Optional

_BASE36 = string.digits + string.ascii_lowercase


def parse_iso_date(value: str) -> date:
    """Parse an ISO-8601 date string into a ``date``.

    Only the calendar date is used: ``"2025-06-01"`` and
    ``"2025-06-01T12:30:00Z"`` both yield June 1st 2025.

    Raises
    ------
    ValueError
        If the string does not start with a valid ``YYYY-MM-DD`` date.
    """
    try:
        return date.fromisoformat(value.strip()[:10])
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid ISO date: {value}") from exc


def calendar_months_between(later: date, earlier: date) -> int:
    """Return the number of calendar months from ``earlier`` to ``later``.

    Days are ignored, so Jan 31 to Feb 1 counts as one month and Jan 1 to
    Jan 31 as zero. The result is negative when ``later`` precedes
    ``earlier``.
    """
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def resolve_now(now: Optional[date]) -> date:
    """Return ``now`` as a date, defaulting to today."""
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


_AMOUNT_SUFFIXES = {"k": 1_000.0, "m": 1_000_000.0}


def parse_amount(value: str) -> float:
    """Parse a money amount typed on the command line.

    Grouping separators (commas, underscores, spaces) are dropped and a
    trailing ``k`` or ``m`` scales the figure, so a monthly budget of
    ``"1,250"``, ``"1.25k"`` or ``"1 250"`` all read as 1250. Amounts are
    never negative.

    Raises
    ------
    ValueError
        If the text is not a finite, non-negative number.
    """
    text = "".join(value.lower().replace(",", "").replace("_", "").split())
    multiplier = _AMOUNT_SUFFIXES.get(text[-1:], 1.0)
    if multiplier != 1.0:
        text = text[:-1]
    try:
        amount = float(text) * multiplier
    except ValueError as exc:
        raise ValueError(f"Invalid amount: {value}") from exc
    if amount < 0 or not math.isfinite(amount):
        raise ValueError(f"Amount must be a non-negative number: {value}")
    return amount


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def create_id(prefix: str = "id") -> str:
    """Return a short unique id such as ``plan-k3x9qa-lq2w8h1c``."""
    suffix = "".join(random.choice(_BASE36) for _ in range(6))
    return f"{prefix}-{suffix}-{_to_base36(int(time.time() * 1000))}"


def now_iso() -> str:
    """Current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()
