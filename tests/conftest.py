from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta, timezone

import pytest

from brush_core.errors import CatalogError, StoreError
from brush_core.types import CatalogAttribute, EntityKind, LearnedPreferences, LearningSignal
from brush_learning.signals.weights import signal_weight

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_signal(
    kind: str = "view",
    *,
    user_id: str = "u1",
    days_ago: float = 0.0,
    entity_type: str = "artwork",
    entity_id: str = "art-1",
    now: datetime = NOW,
    **metadata: Any,
) -> LearningSignal:
    return LearningSignal(
        user_id=user_id,
        signal_type=kind,
        entity_type=EntityKind(entity_type),
        entity_id=entity_id,
        timestamp=now - timedelta(days=days_ago),
        metadata=metadata,
        weight=signal_weight(kind),
    )


# ---------- In-memory collaborators ----------
class FakeSignalStore:
    def __init__(self, signals: Optional[List[LearningSignal]] = None):
        self.signals: List[LearningSignal] = list(signals or [])
        self.fail_users: set[str] = set()
        self.fail_append = False
        self.queries: List[tuple[str, datetime]] = []

    async def append(self, signal: LearningSignal) -> None:
        if self.fail_append:
            raise StoreError("event store unreachable")
        self.signals.append(signal)

    async def query_by_user_since(self, user_id: str, since: datetime):
        self.queries.append((user_id, since))
        if user_id in self.fail_users:
            raise StoreError(f"signal fetch failed for {user_id}")
        return [s for s in self.signals if s.user_id == user_id and s.timestamp >= since]


class FakePreferencesStore:
    def __init__(self, enabled_users: Optional[List[str]] = None):
        self.rows: Dict[str, LearnedPreferences] = {}
        self.enabled_users = list(enabled_users or [])
        self.upserts: List[str] = []
        self.fail_registry = False
        self.fail_upserts: set[str] = set()

    async def upsert(self, user_id: str, prefs: LearnedPreferences) -> None:
        if user_id in self.fail_upserts:
            raise StoreError(f"profile write rejected for {user_id}")
        self.upserts.append(user_id)
        self.rows[user_id] = prefs

    async def get(self, user_id: str) -> Optional[LearnedPreferences]:
        return self.rows.get(user_id)

    async def list_learning_enabled_users(self) -> List[str]:
        if self.fail_registry:
            raise StoreError("registry unreachable")
        return list(self.enabled_users)


class FakeCatalog:
    def __init__(self, values: Optional[Dict[CatalogAttribute, List[str]]] = None):
        self.values = values or {
            CatalogAttribute.MEDIUM: ["oil", "watercolor", "acrylic"],
            CatalogAttribute.STYLE: ["abstract", "realist"],
            CatalogAttribute.COLOR: ["blue", "red"],
        }
        self.fail_on: Optional[CatalogAttribute] = None
        self.calls: List[CatalogAttribute] = []

    async def distinct_values(self, attribute: CatalogAttribute) -> List[str]:
        self.calls.append(attribute)
        if attribute == self.fail_on:
            raise CatalogError(f"{attribute.value} lookup failed")
        return list(self.values.get(attribute, []))


class FakeSimilaritySearch:
    def __init__(self, results: Optional[List[str]] = None):
        self.results = results or ["art-9", "art-3"]
        self.calls: List[Dict[str, Any]] = []

    async def query(self, user_id, entity_kind, vector, threshold, limit):
        self.calls.append(
            {
                "user_id": user_id,
                "entity_kind": entity_kind,
                "vector": list(vector),
                "threshold": threshold,
                "limit": limit,
            }
        )
        return self.results[:limit]


# ---------- Fake Supabase client ----------
class _Resp:
    def __init__(self, data):
        self.data = data


class _FakeQuery:
    def __init__(self, client: "FakeSupabaseClient", table: str):
        self._client = client
        self._table = table
        self._written: Optional[List[Dict[str, Any]]] = None
        self._range: Optional[tuple[int, int]] = None

    def _record(self, op: str, *args, **kwargs):
        self._client.calls.append((self._table, op, args, kwargs))
        return self

    # Write chains
    def insert(self, rows, **kwargs):
        self._written = rows if isinstance(rows, list) else [rows]
        return self._record("insert", rows, **kwargs)

    def upsert(self, rows, **kwargs):
        self._written = rows if isinstance(rows, list) else [rows]
        return self._record("upsert", rows, **kwargs)

    # Read chains
    def select(self, cols: str = "*"):
        return self._record("select", cols)

    def eq(self, col, value):
        return self._record("eq", col, value)

    def gte(self, col, value):
        return self._record("gte", col, value)

    def order(self, col, desc: bool = False):
        return self._record("order", col, desc=desc)

    def range(self, start: int, end: int):
        self._range = (start, end)
        return self._record("range", start, end)

    def limit(self, n):
        return self._record("limit", n)

    def execute(self):
        if self._client.error is not None:
            raise self._client.error
        if self._written is not None:
            self._client.writes.setdefault(self._table, []).extend(self._written)
            return _Resp(self._written)
        rows = list(self._client.rows.get(self._table, []))
        if self._range is not None:
            start, end = self._range
            rows = rows[start : end + 1]
        # PostgREST truncates every response at its max-rows setting
        if self._client.max_rows is not None:
            rows = rows[: self._client.max_rows]
        return _Resp(rows)


class FakeSupabaseClient:
    def __init__(self, rows: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.rows = rows or {}
        self.writes: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None
        self.max_rows: Optional[int] = None

    def table(self, name: str):
        return _FakeQuery(self, name)

    def ops(self, table: str, op: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == table and c[1] == op]
