"""
Destination registry.

An explicit service around the static catalog. Entries are immutable Pydantic
models; the only runtime mutation is season-status feedback from the collector,
which swaps in an updated copy under a per-identity lock.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from snowscore.core.locks import KeyedLocks
from snowscore.domain.models import Destination, SeasonStatus

logger = logging.getLogger(__name__)


class DestinationRegistry:
    """In-memory identity -> Destination map (catalog order preserved)."""

    def __init__(self, destinations: Iterable[Destination]):
        self._by_id: dict[str, Destination] = {}
        for d in destinations:
            if d.id in self._by_id:
                raise ValueError(f"Duplicate destination id '{d.id}'.")
            self._by_id[d.id] = d
        self._locks = KeyedLocks()

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, identity: object) -> bool:
        return identity in self._by_id

    def get(self, identity: str) -> Destination | None:
        return self._by_id.get(identity)

    def list(self) -> list[Destination]:
        return list(self._by_id.values())

    def is_mapped(self, identity: str) -> bool:
        return identity in self._by_id

    def priority(self, min_priority: int = 6) -> list[Destination]:
        """Destinations worth checking first (priority >= `min_priority`)."""
        return [d for d in self._by_id.values() if d.priority >= min_priority]

    def open_destinations(self) -> list[Destination]:
        return [d for d in self._by_id.values() if d.season_status == "OPEN"]

    def closed_destinations(self) -> list[Destination]:
        return [d for d in self._by_id.values() if d.season_status == "CLOSED"]

    def update_season_status(
        self,
        identity: str,
        status: SeasonStatus,
        opening_date: date | None = None,
    ) -> Destination | None:
        """Apply collector feedback; returns the updated entry, or None for unknown ids.

        An existing opening date is kept when the feedback does not carry one.
        """
        with self._locks.hold(identity):
            current = self._by_id.get(identity)
            if current is None:
                return None
            update: dict[str, object] = {"season_status": status}
            if opening_date is not None:
                update["opening_date"] = opening_date
            updated = current.model_copy(update=update)
            self._by_id[identity] = updated
        if updated.season_status != current.season_status:
            logger.info(
                "Season status for %s: %s -> %s", identity, current.season_status, updated.season_status
            )
        return updated
