from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from anyio import to_thread
from brush_core.config import TABLE_SIGNALS
from brush_core.pgrest import PAGE_SIZE, PGREST_ERRORS, ensure_ts, fetch_all, map_pgrest
from brush_core.types import LearningSignal, UserId


class SignalStore(Protocol):
    async def append(self, signal: LearningSignal) -> None: ...
    async def query_by_user_since(
        self, user_id: UserId, since: datetime
    ) -> Sequence[LearningSignal]: ...


def _row_to_signal(row: dict) -> LearningSignal:
    return LearningSignal(
        user_id=str(row["user_id"]),
        signal_type=row["signal_type"],
        entity_type=row["entity_type"],
        entity_id=str(row["entity_id"]),
        timestamp=ensure_ts(row["timestamp"]),
        metadata=row.get("metadata") or {},
        weight=float(row["weight"]),
    )


class SupabaseSignalRepo:
    def __init__(self, client, *, page_size: int = PAGE_SIZE):
        self.client = client
        self.page_size = page_size

    # ---------- Async facade ----------
    async def append(self, signal: LearningSignal) -> None:
        await to_thread.run_sync(self._append_sync, signal)

    async def query_by_user_since(
        self, user_id: UserId, since: datetime
    ) -> list[LearningSignal]:
        return await to_thread.run_sync(self._query_by_user_since_sync, user_id, since)

    # ---------- Private sync impls ----------
    def _append_sync(self, signal: LearningSignal) -> None:
        payload = signal.model_dump(mode="json")
        try:
            self.client.table(TABLE_SIGNALS).insert(payload).execute()
        except PGREST_ERRORS as e:
            raise map_pgrest(e, "signal append") from e

    def _query_by_user_since_sync(
        self, user_id: UserId, since: datetime
    ) -> list[LearningSignal]:
        def _window():
            return (
                self.client.table(TABLE_SIGNALS)
                .select("user_id, signal_type, entity_type, entity_id, timestamp, metadata, weight")
                .eq("user_id", user_id)
                .gte("timestamp", since.isoformat())
                .order("timestamp")
                .order("entity_id")
            )

        # the whole window, however many signals it holds
        try:
            rows = fetch_all(_window, page_size=self.page_size)
        except PGREST_ERRORS as e:
            raise map_pgrest(e, "signal query") from e
        return [_row_to_signal(r) for r in rows]
