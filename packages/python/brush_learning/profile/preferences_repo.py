from __future__ import annotations

from typing import Any, Optional, Protocol

from anyio import to_thread
from brush_core.config import TABLE_PREFS
from brush_core.pgrest import PGREST_ERRORS, ensure_ts, map_pgrest
from brush_core.types import LearnedPreferences, UserId


class PreferencesStore(Protocol):
    async def upsert(self, user_id: UserId, prefs: LearnedPreferences) -> None: ...
    async def get(self, user_id: UserId) -> Optional[LearnedPreferences]: ...


class OptInRegistry(Protocol):
    async def list_learning_enabled_users(self) -> list[UserId]: ...


def _row_to_prefs(user_id: UserId, row: dict[str, Any]) -> Optional[LearnedPreferences]:
    learned = row.get("learned_preferences")
    updated = ensure_ts(row.get("learned_updated_at"))
    if not isinstance(learned, dict) or updated is None:
        return None
    return LearnedPreferences(
        user_id=user_id,
        preferences=learned,
        last_updated=updated,
        confidence=float(row.get("learned_confidence") or 0.1),
        signal_count=int(row.get("learned_signal_count") or 0),
    )


class SupabasePreferencesRepo:
    """Profile store and opt-in registry, both backed by `user_preferences`."""

    def __init__(self, client):
        self.client = client

    # ---------- Async facade ----------
    async def upsert(self, user_id: UserId, prefs: LearnedPreferences) -> None:
        await to_thread.run_sync(self._upsert_sync, user_id, prefs)

    async def get(self, user_id: UserId) -> Optional[LearnedPreferences]:
        return await to_thread.run_sync(self._get_sync, user_id)

    async def list_learning_enabled_users(self) -> list[UserId]:
        return await to_thread.run_sync(self._list_learning_enabled_users_sync)

    # ---------- Private sync impls ----------
    def _upsert_sync(self, user_id: UserId, prefs: LearnedPreferences) -> None:
        payload = {
            "user_id": user_id,
            "learned_preferences": prefs.preferences,
            "learned_confidence": prefs.confidence,
            "learned_signal_count": prefs.signal_count,
            "learned_updated_at": prefs.last_updated.isoformat(),
        }
        try:
            self.client.table(TABLE_PREFS).upsert(payload, on_conflict="user_id").execute()
        except PGREST_ERRORS as e:
            raise map_pgrest(e, "profile upsert") from e

    def _get_sync(self, user_id: UserId) -> Optional[LearnedPreferences]:
        try:
            res = (
                self.client.table(TABLE_PREFS)
                .select(
                    "learned_preferences, learned_confidence, "
                    "learned_signal_count, learned_updated_at"
                )
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except PGREST_ERRORS as e:
            raise map_pgrest(e, "profile fetch") from e
        rows = getattr(res, "data", None) or []
        if not rows:
            return None
        return _row_to_prefs(user_id, rows[0])

    def _list_learning_enabled_users_sync(self) -> list[UserId]:
        try:
            res = (
                self.client.table(TABLE_PREFS)
                .select("user_id")
                .eq("learning_enabled", True)
                .execute()
            )
        except PGREST_ERRORS as e:
            raise map_pgrest(e, "opt-in registry") from e
        rows = getattr(res, "data", None) or []
        return [str(r["user_id"]) for r in rows if r.get("user_id")]
