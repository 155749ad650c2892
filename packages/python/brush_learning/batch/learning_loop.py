from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import anyio
from brush_core.config import DECAY_DAYS, LOOKBACK_DAYS
from brush_core.types import LearnedPreferences, UserId, ensure_utc
from brush_learning.ingest.learning_signals_repo import SignalStore
from brush_learning.profile.preferences_repo import OptInRegistry, PreferencesStore
from brush_learning.profile.profile_builder import build_learned_preferences

logger = logging.getLogger(__name__)


@dataclass
class UserFailure:
    user_id: UserId
    error_type: str
    error: str


@dataclass
class LearningRunReport:
    started_at: datetime  # wall clock, independent of the run's `now`
    finished_at: datetime | None = None
    succeeded: int = 0
    failures: list[UserFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_user_ids(self) -> list[UserId]:
        return [f.user_id for f in self.failures]


class LearningLoop:
    """
    Nightly (or on-demand) recomputation of every opted-in user's profile.

    Users are independent: each one reads its own signal window and writes
    its own profile row. A failure for one user is recorded in the run
    report and never stops the others. Profiles written before an
    interruption are kept; there is no batch-wide commit.
    """

    def __init__(
        self,
        signals: SignalStore,
        profiles: PreferencesStore,
        registry: OptInRegistry,
        *,
        lookback_days: int = LOOKBACK_DAYS,
        decay_days: float = DECAY_DAYS,
        concurrency: int = 1,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.signals = signals
        self.profiles = profiles
        self.registry = registry
        self.lookback_days = lookback_days
        self.decay_days = decay_days
        self.concurrency = concurrency

    async def recompute_user(
        self, user_id: UserId, *, now: datetime | None = None
    ) -> LearnedPreferences:
        now = ensure_utc(now) if now else datetime.now(timezone.utc)
        since = now - timedelta(days=self.lookback_days)
        fetched = await self.signals.query_by_user_since(user_id, since)
        window = [s for s in fetched if s.timestamp >= since]
        prefs = build_learned_preferences(
            user_id, window, now=now, decay_days=self.decay_days
        )
        await self.profiles.upsert(user_id, prefs)
        return prefs

    async def run(self, *, now: datetime | None = None) -> LearningRunReport:
        now = ensure_utc(now) if now else datetime.now(timezone.utc)
        report = LearningRunReport(started_at=datetime.now(timezone.utc))

        # a registry failure aborts the whole run
        user_ids = list(dict.fromkeys(await self.registry.list_learning_enabled_users()))
        logger.info(
            "Starting learning loop: %d users, concurrency=%d",
            len(user_ids),
            self.concurrency,
        )

        limiter = anyio.CapacityLimiter(self.concurrency)

        async def _recompute_one(user_id: UserId) -> None:
            async with limiter:
                try:
                    await self.recompute_user(user_id, now=now)
                except Exception as e:
                    logger.exception("Recompute failed for user=%s", user_id)
                    report.failures.append(
                        UserFailure(user_id=user_id, error_type=type(e).__name__, error=str(e))
                    )
                else:
                    report.succeeded += 1

        async with anyio.create_task_group() as tg:
            for user_id in user_ids:
                tg.start_soon(_recompute_one, user_id)

        report.finished_at = datetime.now(timezone.utc)
        logger.info(
            "Learning loop complete: %d succeeded, %d failed",
            report.succeeded,
            report.failed,
        )
        if report.failures:
            logger.warning("Failed users: %s", ", ".join(report.failed_user_ids))
        return report
