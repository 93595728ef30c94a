"""Budgeting method presets.

A preset splits income between the needs, wants and savings buckets. Plans
refer to presets by id only, so lookups tolerate presets that have since been
removed.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Iterable, List, Optional

from .data_models import BUCKETS, MethodPreset

DEFAULT_METHOD_PRESETS: List[MethodPreset] = [
    MethodPreset(id="50-30-20", name="50 / 30 / 20", needs_pct=0.5, wants_pct=0.3, savings_pct=0.2),
    MethodPreset(id="60-30-10", name="60 / 30 / 10", needs_pct=0.6, wants_pct=0.3, savings_pct=0.1),
]


def default_presets() -> List[MethodPreset]:
    """Fresh copies of the built-in presets."""
    return [replace(p) for p in DEFAULT_METHOD_PRESETS]


def make_custom_preset(name: str, needs_pct: float, wants_pct: float, savings_pct: float) -> MethodPreset:
    return MethodPreset(
        id=re.sub(r"\s+", "-", name.lower()),
        name=name,
        needs_pct=needs_pct,
        wants_pct=wants_pct,
        savings_pct=savings_pct,
    )


def find_preset(presets: Iterable[MethodPreset], preset_id: Optional[str]) -> Optional[MethodPreset]:
    """Resolve ``preset_id`` against ``presets``; ``None`` when it is unset or gone."""
    if not preset_id:
        return None
    for preset in presets:
        if preset.id == preset_id:
            return preset
    return None


def normalise_preset(preset: MethodPreset, bucket: str, value: float) -> MethodPreset:
    """Return a copy of ``preset`` with ``bucket`` set to ``value``.

    The edited bucket is clamped to ``[0, 1]`` and the other two buckets are
    rescaled so that the three fractions sum to one, keeping their relative
    sizes. If both other buckets are zero they share the remainder equally.
    Fractions are rounded to four decimal places.
    """
    if bucket not in BUCKETS:
        raise ValueError(f"Invalid bucket: {bucket!r}")
    buckets = {
        "needs": preset.needs_pct,
        "wants": preset.wants_pct,
        "savings": preset.savings_pct,
    }
    new_value = min(max(value, 0.0), 1.0)
    buckets[bucket] = new_value

    others = [b for b in BUCKETS if b != bucket]
    current_others = sum(buckets[b] for b in others)
    remaining = max(1 - new_value, 0.0)
    if current_others == 0:
        for b in others:
            buckets[b] = remaining / len(others)
    else:
        scale = remaining / current_others
        for b in others:
            buckets[b] = buckets[b] * scale

    return replace(
        preset,
        needs_pct=round(buckets["needs"], 4),
        wants_pct=round(buckets["wants"], 4),
        savings_pct=round(buckets["savings"], 4),
    )
