"""Shared builders for the test suite (plain module; fixtures live in conftest.py)."""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from snowscore.catalog.registry import DestinationRegistry
from snowscore.config.settings import Settings
from snowscore.core.cache import FileCache
from snowscore.core.rate_limit import BatchedWorkerPool
from snowscore.domain.models import ConditionRecord, Destination, GeoPoint
from snowscore.ingestion.identity import IdentityResolver
from snowscore.recommender.recommend import RecommendationEngine
from snowscore.store.conditions import ConditionStore
from snowscore.travel.estimator import TravelEstimator

TZ = ZoneInfo("Europe/Zurich")

# Wednesday, mid-morning: a weekday, inside every catalog operating-hours window.
WEDNESDAY = datetime(2025, 11, 19, 10, 30, tzinfo=TZ)
SATURDAY = datetime(2025, 11, 22, 10, 30, tzinfo=TZ)


def make_destination(identity: str = "test-resort", **kwargs) -> Destination:
    data = {
        "id": identity,
        "name": identity.replace("-", " ").title(),
        "location": GeoPoint(lat=47.0, lon=8.5),
        "difficulty": "advanced",
    }
    data.update(kwargs)
    return Destination(**data)


def make_record(
    identity: str, now: datetime = WEDNESDAY, *, age: timedelta = timedelta(hours=1), **kwargs
) -> ConditionRecord:
    data = {
        "destination_id": identity,
        "observed_at": now - age,
        "mountain_depth": 60,
        "lifts_open": 5,
        "lifts_total": 10,
    }
    data.update(kwargs)
    return ConditionRecord(**data)


class StubRoutesClient:
    """Stands in for `RoutesClient`; fixed minutes keyed by destination latitude, or raises."""

    def __init__(
        self, minutes: dict[float, int] | None = None, *, error: Exception | None = None, default: int = 60
    ):
        self.minutes = minutes or {}
        self.error = error
        self.default = default
        self.calls: list[GeoPoint] = []
        self.spacer = None
        self.configured = True

    def compute_route(self, origin: GeoPoint, destination: GeoPoint) -> tuple[float, int]:
        self.calls.append(destination)
        if self.error is not None:
            raise self.error
        minutes = self.minutes.get(destination.lat, self.default)
        return round(minutes * 1.2, 1), minutes


def build_test_engine(
    settings: Settings,
    cache: FileCache,
    destinations: list[Destination],
    routes_client=None,
) -> RecommendationEngine:
    registry = DestinationRegistry(destinations)
    estimator = TravelEstimator(
        settings,
        cache,
        routes_client=routes_client,
        pool=BatchedWorkerPool(max_workers=3, batch_pause_seconds=0.0),
    )
    return RecommendationEngine(
        settings,
        registry=registry,
        store=ConditionStore(),
        estimator=estimator,
        resolver=IdentityResolver(registry, settings.unmapped),
    )
