from __future__ import annotations

from typing import Protocol, Sequence

from anyio import to_thread
from qdrant_client import QdrantClient
from qdrant_client.models import FieldCondition, Filter as QFilter, MatchValue
from brush_core.config import (
    QDRANT_ARTIST_COLLECTION_NAME,
    QDRANT_ARTWORK_COLLECTION_NAME,
    QDRANT_CATALOGUE_COLLECTION_NAME,
)
from brush_core.types import EntityKind, UserId


class SimilaritySearch(Protocol):
    async def query(
        self,
        user_id: UserId,
        entity_kind: EntityKind,
        vector: Sequence[float],
        threshold: float,
        limit: int,
    ) -> list[str]: ...


class QdrantSimilaritySearch:
    def __init__(
        self,
        client: QdrantClient,
        *,
        artwork_collection: str = QDRANT_ARTWORK_COLLECTION_NAME,
        artist_collection: str = QDRANT_ARTIST_COLLECTION_NAME,
        catalogue_collection: str = QDRANT_CATALOGUE_COLLECTION_NAME,
        owner_key: str = "owner_id",
    ):
        self.client = client
        self.collections = {
            EntityKind.ARTWORK: artwork_collection,
            EntityKind.ARTIST: artist_collection,
            EntityKind.CATALOGUE: catalogue_collection,
        }
        self.owner_key = owner_key

    async def query(
        self,
        user_id: UserId,
        entity_kind: EntityKind,
        vector: Sequence[float],
        threshold: float,
        limit: int,
    ) -> list[str]:
        return await to_thread.run_sync(
            self._query_sync, user_id, entity_kind, list(vector), threshold, limit
        )

    def _query_sync(
        self,
        user_id: UserId,
        entity_kind: EntityKind,
        vector: list[float],
        threshold: float,
        limit: int,
    ) -> list[str]:
        # never recommend the user's own entities back to them
        qfilter = QFilter(
            must_not=[FieldCondition(key=self.owner_key, match=MatchValue(value=user_id))]
        )
        res = self.client.query_points(
            collection_name=self.collections[EntityKind(entity_kind)],
            query=vector,
            query_filter=qfilter,
            score_threshold=threshold,
            limit=limit,
            with_payload=["entity_id"],
            with_vectors=False,
        )
        points = sorted(res.points, key=lambda p: p.score, reverse=True)
        out: list[str] = []
        for p in points:
            payload = p.payload or {}
            out.append(str(payload.get("entity_id") or p.id))
        return out
