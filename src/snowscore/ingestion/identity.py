"""
Mapping from collector resort names to registry identities.

Collectors name resorts however the source website does ("Davos Klosters Parsenn",
"Andermatt - Gemsstock"). Resolution order:
1. case-insensitive exact match on a display name or alias,
2. case-insensitive containment in either direction (first catalog entry wins),
3. otherwise a slug of the raw name, flagged as unmapped.

Unmapped names still get a provisional `Destination` so their collected data is
never dropped just because nobody curated an entry for them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from snowscore.catalog.registry import DestinationRegistry
from snowscore.config.settings import UnmappedSettings
from snowscore.domain.models import ConditionRecord, Destination, GeoPoint, SeasonStatus

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """`"Lauchernalp - Lötschental"` -> `"lauchernalp-l-tschental"`."""
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def display_name_from_slug(identity: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in identity.split("-") if part)


def season_status_from_lifts(lifts_open: int | None) -> SeasonStatus:
    return "OPEN" if lifts_open else "CLOSED"


@dataclass(frozen=True)
class Resolution:
    identity: str
    mapped: bool


class IdentityResolver:
    """Pure name -> identity lookup over a lowercase index built once from the registry."""

    def __init__(self, registry: DestinationRegistry, unmapped: UnmappedSettings | None = None):
        self._registry = registry
        self._unmapped = unmapped or UnmappedSettings()
        self._index: list[tuple[str, str]] = []
        self._exact: dict[str, str] = {}
        for d in registry.list():
            for name in [d.name, *d.aliases]:
                key = name.strip().lower()
                if not key:
                    continue
                self._index.append((key, d.id))
                self._exact.setdefault(key, d.id)

    def lookup(self, raw_name: str) -> Resolution:
        normalized = raw_name.strip().lower()
        if not normalized:
            raise ValueError("Cannot resolve a blank destination name.")

        exact = self._exact.get(normalized)
        if exact:
            return Resolution(identity=exact, mapped=True)

        for key, identity in self._index:
            if key in normalized or normalized in key:
                return Resolution(identity=identity, mapped=True)

        slug = slugify(normalized)
        if not slug:
            raise ValueError(f"Destination name {raw_name!r} has no usable characters.")
        return Resolution(identity=slug, mapped=False)

    def resolve(self, raw_name: str) -> str:
        """Return the internal identity for a free-text collector name."""
        return self.lookup(raw_name).identity

    def synthesize(self, identity: str, conditions: ConditionRecord | None = None) -> Destination:
        """Provisional entry for an identity the registry does not know."""
        display = (conditions.source_name if conditions and conditions.source_name else None) or (
            display_name_from_slug(identity)
        )
        lifts_open = conditions.lifts_open if conditions else None
        return Destination(
            id=identity,
            name=display,
            location=GeoPoint(lat=self._unmapped.lat, lon=self._unmapped.lon),
            season_status=season_status_from_lifts(lifts_open),
            priority=self._unmapped.priority,
            difficulty=self._unmapped.difficulty,
        )

    def destination_for(
        self, identity: str, conditions: ConditionRecord | None = None
    ) -> tuple[Destination, bool]:
        """Registry entry if mapped, else a synthesized one; second item is `mapped`."""
        known = self._registry.get(identity)
        if known is not None:
            return known, True
        return self.synthesize(identity, conditions), False
