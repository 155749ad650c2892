from __future__ import annotations

import logging

from brush_core.errors import InvalidSignal
from brush_core.types import EntityKind, LearningSignal, SignalCreate, ensure_utc
from brush_learning.signals.weights import signal_weight

from .learning_signals_repo import SignalStore

logger = logging.getLogger(__name__)

_ENTITY_KINDS = {e.value for e in EntityKind}


class SignalIngestService:
    def __init__(self, store: SignalStore):
        self.store = store

    async def record_signal(self, signal: SignalCreate) -> LearningSignal:
        """
        Weigh a signal by its kind and append it to the event store.

        Store failures propagate as-is; callers retry the whole call and
        own event uniqueness.
        """
        self._validate(signal)
        record = LearningSignal(
            user_id=signal.user_id,
            signal_type=signal.signal_type,
            entity_type=EntityKind(signal.entity_type),
            entity_id=signal.entity_id,
            timestamp=ensure_utc(signal.timestamp),
            metadata=dict(signal.metadata),
            weight=signal_weight(signal.signal_type),
        )
        await self.store.append(record)
        logger.debug(
            "recorded %s signal for user=%s entity=%s:%s weight=%.2f",
            record.signal_type,
            record.user_id,
            record.entity_type.value,
            record.entity_id,
            record.weight,
        )
        return record

    def _validate(self, signal: SignalCreate) -> None:
        if not signal.user_id:
            raise InvalidSignal("user_id is required")
        if not signal.entity_id:
            raise InvalidSignal("entity_id is required")
        if not signal.signal_type:
            raise InvalidSignal("signal_type is required")
        if signal.entity_type not in _ENTITY_KINDS:
            raise InvalidSignal(
                f"unknown entity_type {signal.entity_type!r}; expected one of {sorted(_ENTITY_KINDS)}"
            )
