from brush_core.types import Preferences, PreferenceCategory


def normalize_category(values: dict[str, float]) -> dict[str, float]:
    total = sum(values.values())
    # net-negative or empty mass is not represented
    if total <= 0:
        return {}
    return {k: v / total for k, v in values.items()}


def normalize_preferences(raw: Preferences) -> Preferences:
    return {c.value: normalize_category(raw.get(c.value, {})) for c in PreferenceCategory}
