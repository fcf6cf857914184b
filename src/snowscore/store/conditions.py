"""
Latest-conditions store.

One current record per destination: `upsert` replaces whatever was there (no
field-level merge), and reads hide records older than the freshness window
instead of serving them as "last known good". Records stamped in the future
(beyond a small clock-skew allowance) are hidden too: their age cannot be known.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from snowscore.core.locks import KeyedLocks
from snowscore.domain.models import ConditionRecord

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS = timedelta(hours=24)
MAX_CLOCK_SKEW = timedelta(minutes=5)


class ConditionStore:
    """In-memory identity -> ConditionRecord map with age-based expiry on read."""

    def __init__(self, freshness: timedelta = DEFAULT_FRESHNESS):
        if freshness <= timedelta(0):
            raise ValueError("freshness window must be positive")
        self._freshness = freshness
        self._records: dict[str, ConditionRecord] = {}
        self._locks = KeyedLocks()

    @property
    def freshness(self) -> timedelta:
        return self._freshness

    def upsert(self, record: ConditionRecord) -> None:
        with self._locks.hold(record.destination_id):
            self._records[record.destination_id] = record

    def _is_fresh(self, record: ConditionRecord, now: datetime) -> bool:
        age = now - record.observed_at
        return -MAX_CLOCK_SKEW <= age <= self._freshness

    def latest(self, identity: str, *, now: datetime | None = None) -> ConditionRecord | None:
        record = self._records.get(identity)
        if record is None:
            return None
        now = now or datetime.now(timezone.utc)
        if not self._is_fresh(record, now):
            logger.debug("Conditions for %s are stale (observed %s)", identity, record.observed_at.isoformat())
            return None
        return record

    def latest_all(self, *, now: datetime | None = None) -> dict[str, ConditionRecord]:
        now = now or datetime.now(timezone.utc)
        return {
            identity: record
            for identity, record in sorted(self._records.items())
            if self._is_fresh(record, now)
        }

    def __len__(self) -> int:
        return len(self._records)
