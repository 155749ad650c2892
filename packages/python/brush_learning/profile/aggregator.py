from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable

from brush_core.config import DECAY_DAYS
from brush_core.types import LearningSignal, PreferenceCategory
from brush_learning.signals.decay import tdecay
from brush_learning.signals.dispatch import rules_for

RawPreferences = dict[str, dict[str, float]]


def _ordered(signals: Iterable[LearningSignal]) -> list[LearningSignal]:
    # fixed summation order keeps repeated runs bit-for-bit equal
    return sorted(signals, key=lambda s: (s.timestamp, s.signal_type, s.entity_id))


def aggregate_signals(
    signals: Iterable[LearningSignal],
    now: datetime,
    *,
    decay_days: float = DECAY_DAYS,
) -> RawPreferences:
    """
    Sum decayed, weighted contributions per (category, value).

    contribution = weight * exp(-age_days / decay_days), scaled by the
    rule multiplier of every category the signal kind dispatches into.
    Values may be negative (dislike / unfollow).
    """
    acc: dict[str, defaultdict[str, float]] = {
        c.value: defaultdict(float) for c in PreferenceCategory
    }
    for sig in _ordered(signals):
        rules = rules_for(sig.signal_type)
        if not rules:
            continue
        contribution = sig.weight * tdecay(sig.timestamp, now, decay_days)
        for rule in rules:
            for value in rule.extract(sig):
                acc[rule.category.value][value] += rule.multiplier * contribution
    return {category: dict(values) for category, values in acc.items()}
