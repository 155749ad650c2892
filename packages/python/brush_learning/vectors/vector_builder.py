from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from brush_core.errors import CatalogError
from brush_core.types import CatalogAttribute, LearnedPreferences, PreferenceCategory, UserId
from brush_learning.profile.preferences_repo import PreferencesStore

from .catalog_repo import CatalogService

# projection order: [mediums..., styles..., colors...]
PROJECTED: tuple[tuple[CatalogAttribute, PreferenceCategory], ...] = (
    (CatalogAttribute.MEDIUM, PreferenceCategory.MEDIUMS),
    (CatalogAttribute.STYLE, PreferenceCategory.STYLES),
    (CatalogAttribute.COLOR, PreferenceCategory.COLORS),
)

Dimension = tuple[PreferenceCategory, str]


@dataclass(frozen=True)
class VectorLayout:
    """
    Positional meaning of a preference vector, fixed from one catalog snapshot.

    Vectors are only comparable when their layouts are equal; the
    fingerprint lets callers that persist vectors detect a new epoch.
    """

    dimensions: tuple[Dimension, ...]

    @classmethod
    def from_catalog(
        cls, values: Mapping[CatalogAttribute, Sequence[str]]
    ) -> "VectorLayout":
        dims: list[Dimension] = []
        for attribute, category in PROJECTED:
            for v in dict.fromkeys(values.get(attribute, ())):
                dims.append((category, v))
        return cls(dimensions=tuple(dims))

    @property
    def size(self) -> int:
        return len(self.dimensions)

    @property
    def fingerprint(self) -> str:
        raw = json.dumps([[c.value, v] for c, v in self.dimensions], ensure_ascii=False)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class PreferenceVector:
    values: NDArray[np.float64]
    layout: VectorLayout

    def __len__(self) -> int:
        return int(self.values.shape[0])

    def tolist(self) -> list[float]:
        return [float(v) for v in self.values]


def project_preferences(
    prefs: LearnedPreferences, layout: VectorLayout
) -> PreferenceVector:
    values = np.asarray(
        [prefs.scores(category).get(value, 0.0) for category, value in layout.dimensions],
        dtype=np.float64,
    )
    return PreferenceVector(values=values, layout=layout)


class VectorBuilder:
    def __init__(self, catalog: CatalogService, profiles: PreferencesStore | None = None):
        self.catalog = catalog
        self.profiles = profiles

    async def layout(self) -> VectorLayout:
        """Snapshot the catalog's distinct values; any failure aborts the build."""
        snapshot: dict[CatalogAttribute, Sequence[str]] = {}
        for attribute, _ in PROJECTED:
            try:
                values = await self.catalog.distinct_values(attribute)
            except CatalogError:
                raise
            except Exception as e:
                raise CatalogError(f"catalog {attribute.value} lookup failed: {e}") from e
            if not all(isinstance(v, str) for v in values):
                raise CatalogError(f"catalog returned non-string {attribute.value} values")
            snapshot[attribute] = list(values)
        return VectorLayout.from_catalog(snapshot)

    async def build(self, prefs: LearnedPreferences) -> PreferenceVector:
        return project_preferences(prefs, await self.layout())

    async def build_for_user(self, user_id: UserId) -> Optional[PreferenceVector]:
        if self.profiles is None:
            raise RuntimeError("VectorBuilder was created without a profile store")
        prefs = await self.profiles.get(user_id)
        if prefs is None:
            return None
        return await self.build(prefs)
