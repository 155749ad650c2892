from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, Field, field_validator

UserId = str
Preferences = Dict[str, Dict[str, float]]


class SignalKind(str, Enum):
    VIEW = "view"
    LIKE = "like"
    DISLIKE = "dislike"
    SHARE = "share"
    INQUIRY = "inquiry"
    PURCHASE = "purchase"
    FOLLOW = "follow"
    UNFOLLOW = "unfollow"


class EntityKind(str, Enum):
    ARTWORK = "artwork"
    ARTIST = "artist"
    CATALOGUE = "catalogue"


class PreferenceCategory(str, Enum):
    MEDIUMS = "mediums"
    STYLES = "styles"
    COLORS = "colors"
    PRICE_RANGES = "price_ranges"
    ARTISTS = "artists"
    SUBJECTS = "subjects"
    GENRES = "genres"
    SEARCH_TERMS = "search_terms"


class CatalogAttribute(str, Enum):
    MEDIUM = "medium"
    STYLE = "style"
    COLOR = "color"


def ensure_utc(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def empty_preferences() -> Preferences:
    return {c.value: {} for c in PreferenceCategory}


class SignalCreate(BaseModel):
    """A behavioral event as reported by a caller, before it has a weight."""

    user_id: UserId
    signal_type: str
    entity_type: str
    entity_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = Field(default_factory=dict)


class LearningSignal(BaseModel):
    # weight is fixed at ingestion; records are never updated
    model_config = ConfigDict(frozen=True)

    user_id: UserId
    signal_type: str
    entity_type: EntityKind
    entity_id: str
    timestamp: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)
    weight: float

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class LearnedPreferences(BaseModel):
    user_id: UserId
    preferences: Preferences = Field(default_factory=empty_preferences)
    last_updated: datetime
    confidence: float = Field(ge=0.0, le=1.0)
    signal_count: int = 0

    @field_validator("preferences")
    @classmethod
    def _all_categories(cls, v: Preferences) -> Preferences:
        # zero-mass categories are empty mappings, never missing keys
        out = empty_preferences()
        for category, values in v.items():
            out[category] = dict(values)
        return out

    def scores(self, category: PreferenceCategory | str) -> Dict[str, float]:
        key = category.value if isinstance(category, PreferenceCategory) else category
        return self.preferences.get(key, {})
