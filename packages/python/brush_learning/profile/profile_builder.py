from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from brush_core.config import DECAY_DAYS
from brush_core.types import LearnedPreferences, LearningSignal, UserId, ensure_utc

from .aggregator import aggregate_signals
from .confidence import confidence_for
from .normalizer import normalize_preferences


def build_learned_preferences(
    user_id: UserId,
    signals: Sequence[LearningSignal],
    *,
    now: datetime | None = None,
    decay_days: float = DECAY_DAYS,
) -> LearnedPreferences:
    """
    Build a full profile from one user's lookback window:

    - decay-weighted sums per category
    - within-category normalization
    - confidence from the window's signal count
    """
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    raw = aggregate_signals(signals, now, decay_days=decay_days)
    return LearnedPreferences(
        user_id=user_id,
        preferences=normalize_preferences(raw),
        last_updated=now,
        confidence=confidence_for(len(signals)),
        signal_count=len(signals),
    )
