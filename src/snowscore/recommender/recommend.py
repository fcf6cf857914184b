from __future__ import annotations

# This module is the "orchestrator" for the recommendation pipeline.
# It wires together:
# - the destination registry (static catalog + season-status feedback)
# - the condition store (latest record per destination, stale = absent)
# - the travel estimator (cache -> live routing -> geometric fallback)
# - the scoring function and the filter/sort/limit funnel
#
# Design goal:
# - Keep each layer focused (ingestion parses, the store keeps, scoring does math; this file orchestrates).
# - Fail open when external data is missing (a partial ranking beats no ranking).

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Iterable

from snowscore.catalog.loader import load_destinations
from snowscore.catalog.registry import DestinationRegistry
from snowscore.config.settings import Settings, get_settings
from snowscore.core.cache import FileCache, record_cache_stats
from snowscore.core.env import resolve_project_path
from snowscore.core.time import ensure_tz, now_in
from snowscore.domain.models import (
    DestinationState,
    FunnelCounts,
    RecommendationItem,
    RecommendationQuery,
    RecommendationResult,
    TravelEstimate,
)
from snowscore.ingestion.conditions import IngestionSummary, RawConditionRecord, ingest_records
from snowscore.ingestion.identity import IdentityResolver
from snowscore.ingestion.routes_client import RoutesClient
from snowscore.scoring.score import score_destination
from snowscore.store.conditions import ConditionStore
from snowscore.travel.estimator import TravelEstimator

logger = logging.getLogger(__name__)


def build_cache(settings: Settings) -> FileCache:
    # Relative cache dirs resolve against the project root so CLI and API share one cache.
    cache_dir = resolve_project_path(settings.cache.dir)
    return FileCache(
        cache_dir,
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )


def _sort_key(item: RecommendationItem) -> tuple[float, int, str]:
    # Score desc, then priority desc, then identity asc (deterministic total order).
    return (-item.result.score, -item.destination.priority, item.destination.id)


class RecommendationEngine:
    """The recommendation core: ingestion, ranking, details and closed-resort listing."""

    def __init__(
        self,
        settings: Settings,
        *,
        registry: DestinationRegistry,
        store: ConditionStore,
        estimator: TravelEstimator,
        resolver: IdentityResolver | None = None,
    ):
        self.settings = settings
        self.registry = registry
        self.store = store
        self.estimator = estimator
        self.resolver = resolver or IdentityResolver(registry, settings.unmapped)

    def _now(self, now: datetime | None) -> datetime:
        if now is None:
            return now_in(self.settings.app.timezone)
        return ensure_tz(now, self.settings.app.timezone)

    # ---- Collector boundary ----

    def ingest(
        self,
        records: Iterable[RawConditionRecord | dict[str, Any]],
        *,
        now: datetime | None = None,
    ) -> IngestionSummary:
        """Resolve and store raw collector records (season status fed back into the registry)."""
        return ingest_records(
            records,
            resolver=self.resolver,
            store=self.store,
            registry=self.registry,
            now=self._now(now),
            timezone=self.settings.app.timezone,
        )

    # ---- Ranking ----

    def _states(self, now: datetime) -> list[DestinationState]:
        states: list[DestinationState] = []
        for identity, record in self.store.latest_all(now=now).items():
            destination, mapped = self.resolver.destination_for(identity, record)
            states.append(DestinationState(destination=destination, conditions=record, mapped=mapped))
        return states

    def recommend(
        self,
        *,
        max_travel_minutes: int | None = None,
        min_score: float | None = None,
        limit: int | None = None,
        include_closed: bool | None = None,
        now: datetime | None = None,
    ) -> RecommendationResult:
        t0 = time.monotonic()
        defaults = self.settings.recommend

        # ---- Step 1: Resolve the effective query (explicit argument -> config default) ----
        # Pydantic validation errors here are ValueErrors; the API turns them into 400s.
        query = RecommendationQuery(
            max_travel_minutes=defaults.max_travel_minutes if max_travel_minutes is None else max_travel_minutes,
            min_score=defaults.min_score if min_score is None else min_score,
            limit=defaults.limit if limit is None else limit,
            include_closed=defaults.include_closed if include_closed is None else include_closed,
        )
        now = self._now(now)
        funnel = FunnelCounts()

        # ---- Step 2: Candidates = destinations with a current (fresh) condition record ----
        states = self._states(now)
        funnel.total_considered = len(states)

        with record_cache_stats() as cache_stats:
            # ---- Step 3: Travel filter (the only network-bound stage; runs on the bounded pool) ----
            estimates = self.estimator.estimate_many([s.destination for s in states])
        candidates = [
            (state, travel)
            for state, travel in zip(states, estimates)
            if travel.duration_minutes <= query.max_travel_minutes
        ]
        funnel.passed_travel = len(candidates)

        # ---- Step 4: Season filter (anything not OPEN is dropped unless include_closed) ----
        if not query.include_closed:
            candidates = [(s, t) for s, t in candidates if s.destination.season_status == "OPEN"]
        funnel.passed_season = len(candidates)

        # ---- Step 5: Score filter ----
        items: list[RecommendationItem] = []
        for state, travel in candidates:
            result = score_destination(state, now=now, settings=self.settings.scoring)
            if result.score < query.min_score:
                continue
            items.append(
                RecommendationItem(
                    destination=state.destination,
                    conditions=state.conditions,
                    result=result,
                    travel=travel,
                    mapped=state.mapped,
                )
            )
        funnel.passed_score = len(items)

        # ---- Step 6: Sort + limit ----
        items.sort(key=_sort_key)
        items = items[: query.limit]
        funnel.final = len(items)

        logger.info(
            "Recommendation funnel: considered=%d travel=%d season=%d score=%d final=%d",
            funnel.total_considered,
            funnel.passed_travel,
            funnel.passed_season,
            funnel.passed_score,
            funnel.final,
        )

        meta = {
            "origin": self.estimator.origin_label,
            "unmapped_considered": sum(1 for s in states if not s.mapped),
            "travel_sources": {
                source: sum(1 for t in estimates if t.source == source) for source in ("live", "fallback")
            },
            "cache": cache_stats.as_dict(),
            "timings_ms": {"total": int((time.monotonic() - t0) * 1000)},
        }
        return RecommendationResult(generated_at=now, query=query, items=items, funnel=funnel, meta=meta)

    # ---- Single resort / closed listing ----

    def _item(self, state: DestinationState, travel: TravelEstimate, now: datetime) -> RecommendationItem:
        return RecommendationItem(
            destination=state.destination,
            conditions=state.conditions,
            result=score_destination(state, now=now, settings=self.settings.scoring),
            travel=travel,
            mapped=state.mapped,
        )

    def resort_details(self, name_or_identity: str, *, now: datetime | None = None) -> RecommendationItem | None:
        """Score and travel for one destination; None when nothing is known about it.

        Accepts an identity or a free-text name (resolved like collector names).
        Raises ValueError for a blank name.
        """
        now = self._now(now)
        identity = name_or_identity.strip()
        if identity not in self.registry and self.store.latest(identity, now=now) is None:
            identity = self.resolver.resolve(name_or_identity)

        conditions = self.store.latest(identity, now=now)
        if identity not in self.registry and conditions is None:
            return None
        destination, mapped = self.resolver.destination_for(identity, conditions)
        state = DestinationState(destination=destination, conditions=conditions, mapped=mapped)
        return self._item(state, self.estimator.estimate(destination), now)

    def closed_destinations(self, *, now: datetime | None = None) -> list[RecommendationItem]:
        """Every registry entry currently CLOSED for the season, soonest opening first."""
        now = self._now(now)
        closed = self.registry.closed_destinations()
        estimates = self.estimator.estimate_many(closed)
        items = [
            self._item(
                DestinationState(destination=d, conditions=self.store.latest(d.id, now=now)),
                travel,
                now,
            )
            for d, travel in zip(closed, estimates)
        ]
        # Unknown opening dates sort last.
        items.sort(
            key=lambda i: (
                i.destination.opening_date is None,
                i.destination.opening_date or now.date(),
                i.destination.id,
            )
        )
        return items

    # ---- Maintenance ----

    def warm_travel_cache(self, *, force: bool = False) -> list[TravelEstimate]:
        return self.estimator.warm(self.registry.list(), force=force)

    def clear_travel_cache(self) -> int:
        return self.estimator.clear()

    def stats(self, *, now: datetime | None = None) -> dict[str, Any]:
        now = self._now(now)
        current = self.store.latest_all(now=now)
        return {
            "destinations": len(self.registry),
            "open_destinations": len(self.registry.open_destinations()),
            "closed_destinations": len(self.registry.closed_destinations()),
            "condition_records": len(self.store),
            "current_condition_records": len(current),
            "unmapped_condition_records": sum(1 for identity in current if not self.registry.is_mapped(identity)),
            "condition_freshness_hours": self.store.freshness.total_seconds() / 3600,
            "cached_travel_estimates": self.estimator.cached_count(),
            "live_routing": self.estimator.live_routing,
        }


def build_engine(
    settings: Settings | None = None,
    *,
    cache: FileCache | None = None,
    routes_client: RoutesClient | None = None,
) -> RecommendationEngine:
    """Wire a production engine from settings (tests inject `cache`/`routes_client`)."""
    settings = settings or get_settings()
    registry = DestinationRegistry(load_destinations(settings.catalog.path))
    store = ConditionStore(freshness=timedelta(seconds=settings.conditions.freshness_seconds))
    cache = cache or build_cache(settings)
    routes_client = routes_client or RoutesClient(settings)
    estimator = TravelEstimator(settings, cache, routes_client=routes_client)
    logger.info("Loaded %d destinations; origin %s", len(registry), settings.travel.origin.label)
    if not routes_client.configured:
        logger.warning("No routing API key configured; travel times use the geometric fallback")
    return RecommendationEngine(settings, registry=registry, store=store, estimator=estimator)
