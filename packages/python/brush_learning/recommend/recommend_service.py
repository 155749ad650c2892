from __future__ import annotations

import logging

from brush_core.config import MATCH_COUNT, MATCH_THRESHOLD
from brush_core.types import EntityKind, UserId
from brush_learning.profile.preferences_repo import PreferencesStore
from brush_learning.vectors.vector_builder import VectorBuilder

from .similarity_search import SimilaritySearch

logger = logging.getLogger(__name__)


class RecommendationService:
    def __init__(
        self,
        profiles: PreferencesStore,
        vectors: VectorBuilder,
        search: SimilaritySearch,
        *,
        match_threshold: float = MATCH_THRESHOLD,
    ):
        self.profiles = profiles
        self.vectors = vectors
        self.search = search
        self.match_threshold = match_threshold

    async def recommend(
        self,
        user_id: UserId,
        entity_kind: EntityKind,
        *,
        limit: int = MATCH_COUNT,
    ) -> list[str]:
        """Ranked entity ids for a user; empty when there is nothing to match on."""
        prefs = await self.profiles.get(user_id)
        if prefs is None:
            return []

        vector = await self.vectors.build(prefs)
        # an all-zero vector has no direction to search along
        if len(vector) == 0 or not vector.values.any():
            logger.info(
                "No projectable preferences for user=%s (dims=%d)", user_id, len(vector)
            )
            return []

        return await self.search.query(
            user_id, entity_kind, vector.tolist(), self.match_threshold, limit
        )
