from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from brush_core.errors import InvalidSignal
from brush_core.types import EntityKind, LearningSignal, PreferenceCategory, SignalKind

Extractor = Callable[[LearningSignal], list[str]]

MIN_TOKEN_LEN = 3


@dataclass(frozen=True)
class CategoryRule:
    """Route a signal's contribution into one preference category."""

    category: PreferenceCategory
    extract: Extractor
    multiplier: float = 1.0


# ---- metadata extractors ----

def _bad(signal: LearningSignal, key: str, value: Any) -> InvalidSignal:
    return InvalidSignal(
        f"malformed metadata '{key}' on {signal.signal_type} signal "
        f"for {signal.entity_type.value}:{signal.entity_id}: {value!r}"
    )


def scalar(key: str) -> Extractor:
    def _extract(signal: LearningSignal) -> list[str]:
        value = signal.metadata.get(key)
        if value is None or value == "":
            return []
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            return [str(value)]
        raise _bad(signal, key, value)

    return _extract


def listed(key: str) -> Extractor:
    """A list of strings; a bare string counts as a one-element list."""

    def _extract(signal: LearningSignal) -> list[str]:
        value = signal.metadata.get(key)
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value else []
        if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            return [v for v in value if v]
        raise _bad(signal, key, value)

    return _extract


def artist(signal: LearningSignal) -> list[str]:
    found = scalar("artist_id")(signal)
    if not found and signal.entity_type == EntityKind.ARTIST:
        return [signal.entity_id]
    return found


def tokenize_query(query: str) -> list[str]:
    return [t for t in query.lower().split() if len(t) >= MIN_TOKEN_LEN]


def search_terms(signal: LearningSignal) -> list[str]:
    tokens: list[str] = []
    for q in scalar("search_query")(signal):
        tokens.extend(tokenize_query(q))
    return tokens


# ---- dispatch table ----

ATTRIBUTE_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(PreferenceCategory.MEDIUMS, scalar("medium")),
    CategoryRule(PreferenceCategory.STYLES, scalar("style")),
    CategoryRule(PreferenceCategory.GENRES, scalar("genre")),
    CategoryRule(PreferenceCategory.COLORS, listed("colors")),
)

AFFINITY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(PreferenceCategory.ARTISTS, artist, 2.0),
    CategoryRule(PreferenceCategory.SUBJECTS, scalar("subject"), 1.5),
)

SEARCH_RULE = CategoryRule(PreferenceCategory.SEARCH_TERMS, search_terms, 0.5)
PRICE_RULE = CategoryRule(PreferenceCategory.PRICE_RANGES, scalar("price_range"), 1.5)

DISPATCH: Mapping[str, tuple[CategoryRule, ...]] = {
    SignalKind.VIEW.value: ATTRIBUTE_RULES + (SEARCH_RULE,),
    SignalKind.SHARE.value: ATTRIBUTE_RULES,
    SignalKind.PURCHASE.value: ATTRIBUTE_RULES,
    SignalKind.INQUIRY.value: ATTRIBUTE_RULES + (PRICE_RULE,),
    SignalKind.LIKE.value: AFFINITY_RULES,
    SignalKind.DISLIKE.value: AFFINITY_RULES,
    SignalKind.FOLLOW.value: AFFINITY_RULES,
    SignalKind.UNFOLLOW.value: AFFINITY_RULES,
}


def rules_for(signal_type: str) -> tuple[CategoryRule, ...]:
    """Kinds missing from the table feed no category."""
    return DISPATCH.get(signal_type, ())
