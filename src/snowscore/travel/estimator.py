"""
Travel-cost estimator.

Resolution order for one destination:
1. a non-expired cached estimate (`FileCache` namespace `travel`, key `<identity>:<origin>`),
2. a live routing call,
3. the deterministic geometric fallback.

Live and fallback results are persisted the same way, so an outage does not
cause the fallback to be recomputed on every run. Routing failures of any kind
are logged and never reach the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Sequence

from pydantic import ValidationError

from snowscore.config.settings import Settings
from snowscore.core.cache import FileCache
from snowscore.core.rate_limit import BatchedWorkerPool
from snowscore.domain.models import Destination, GeoPoint, TravelEstimate
from snowscore.ingestion.routes_client import RoutesClient
from snowscore.travel.fallback import fallback_estimate

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "travel"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TravelEstimator:
    """Cached travel estimates from the configured origin."""

    def __init__(
        self,
        settings: Settings,
        cache: FileCache,
        *,
        routes_client: RoutesClient | None = None,
        pool: BatchedWorkerPool | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._settings = settings
        self._cache = cache
        self._routes = routes_client
        self._pool = pool or BatchedWorkerPool(
            max_workers=settings.travel.max_workers,
            batch_pause_seconds=settings.travel.batch_pause_seconds,
            spacer=routes_client.spacer if routes_client else None,
        )
        self._clock = clock or _utcnow
        travel = settings.travel
        self._origin = GeoPoint(lat=travel.origin.lat, lon=travel.origin.lon)
        self._origin_label = travel.origin.label

    @property
    def origin_label(self) -> str:
        return self._origin_label

    def cache_key(self, destination_id: str) -> str:
        return f"{destination_id}:{self._origin_label}"

    def cached(self, destination_id: str) -> TravelEstimate | None:
        """Return the cached estimate if present and not expired."""
        raw = self._cache.get(
            CACHE_NAMESPACE,
            self.cache_key(destination_id),
            ttl_seconds=self._settings.travel.cache_ttl_seconds,
        )
        if not isinstance(raw, dict):
            return None
        try:
            return TravelEstimate.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed cached travel estimate for %s", destination_id)
            return None

    def _live(self, destination: Destination) -> tuple[float, int] | None:
        if self._routes is None:
            return None
        try:
            return self._routes.compute_route(self._origin, destination.location)
        except Exception as e:
            logger.warning("Routing failed for %s; using fallback estimate: %s", destination.id, e)
            return None

    def estimate(self, destination: Destination, *, refresh: bool = False) -> TravelEstimate:
        """Return a travel estimate for `destination` (never raises on routing failure)."""
        if not refresh:
            hit = self.cached(destination.id)
            if hit is not None:
                logger.debug("Travel cache hit for %s", destination.id)
                return hit

        live = self._live(destination)
        if live is not None:
            distance_km, minutes = live
            source = "live"
        else:
            distance_km, minutes = fallback_estimate(
                destination.id, self._origin, destination.location, self._settings.travel.fallback
            )
            source = "fallback"

        estimate = TravelEstimate(
            destination_id=destination.id,
            origin=self._origin_label,
            distance_km=distance_km,
            duration_minutes=minutes,
            cached_at=self._clock(),
            source=source,
        )
        self._cache.set(
            CACHE_NAMESPACE,
            self.cache_key(destination.id),
            estimate.model_dump(mode="json"),
            ttl_seconds=self._settings.travel.cache_ttl_seconds,
        )
        logger.info(
            "Travel estimate for %s: %d min, %.1f km (%s)", destination.id, minutes, distance_km, source
        )
        return estimate

    def estimate_many(self, destinations: Sequence[Destination], *, refresh: bool = False) -> list[TravelEstimate]:
        """Estimate several destinations on the bounded worker pool (input order kept)."""
        return self._pool.map(lambda d: self.estimate(d, refresh=refresh), list(destinations))

    @property
    def live_routing(self) -> bool:
        """True when a routing client with credentials is wired in."""
        return self._routes is not None and self._routes.configured

    def cached_count(self) -> int:
        return self._cache.count(CACHE_NAMESPACE)

    def clear(self) -> int:
        """Drop every cached estimate (live and fallback); returns how many were removed."""
        removed = self._cache.clear(CACHE_NAMESPACE)
        logger.info("Cleared %d cached travel estimates", removed)
        return removed

    def warm(self, destinations: Sequence[Destination], *, force: bool = False) -> list[TravelEstimate]:
        """Precompute estimates for every destination.

        Skipped (returns []) when the cache already holds estimates, unless `force`.
        """
        if not force and self.cached_count() > 0:
            logger.info("Travel cache already populated (%d entries); skipping warm-up", self.cached_count())
            return []
        logger.info("Warming travel cache for %d destinations", len(destinations))
        return self.estimate_many(destinations, refresh=force)
