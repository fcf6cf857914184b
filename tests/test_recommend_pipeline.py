from datetime import date, timedelta

import pytest

from snowscore.catalog.loader import load_destinations
from snowscore.domain.models import GeoPoint
from tests.helpers import WEDNESDAY, StubRoutesClient, build_test_engine, make_destination, make_record


def _lat(i: int) -> float:
    return 46.0 + i / 100


def test_funnel_counts_for_mixed_candidates(settings, cache):
    # (identity, drive minutes, season, conditions)
    layout = [
        ("a", 60, "OPEN", {"mountain_depth": 80, "lifts_open": 8}),
        ("b", 60, "OPEN", {"mountain_depth": 60}),
        ("c", 90, "OPEN", {"mountain_depth": 40}),
        ("d", 120, "OPEN", {"mountain_depth": 100}),
        ("e", 150, "OPEN", {"mountain_depth": 0, "lifts_open": 0}),
        ("f", 170, "CLOSED", {}),
        ("g", 180, "CLOSED", {}),
        ("h", 181, "OPEN", {}),
        ("i", 240, "OPEN", {}),
        ("j", 300, "OPEN", {}),
    ]
    destinations = [
        make_destination(identity, location=GeoPoint(lat=_lat(n), lon=8.5), season_status=season)
        for n, (identity, _, season, _) in enumerate(layout)
    ]
    routes = StubRoutesClient({_lat(n): minutes for n, (_, minutes, _, _) in enumerate(layout)})
    engine = build_test_engine(settings, cache, destinations, routes)
    for identity, _, _, conditions in layout:
        engine.store.upsert(make_record(identity, **conditions))

    result = engine.recommend(max_travel_minutes=180, min_score=10, limit=5, now=WEDNESDAY)

    assert result.funnel.model_dump() == {
        "total_considered": 10,
        "passed_travel": 7,
        "passed_season": 5,
        "passed_score": 4,
        "final": 4,
    }
    assert [i.destination.id for i in result.items] == ["a", "d", "b", "c"]
    scores = [i.result.score for i in result.items]
    assert scores == sorted(scores, reverse=True)
    assert result.meta["travel_sources"] == {"live": 10, "fallback": 0}
    # Cache stats are recorded from the worker threads too.
    assert result.meta["cache"]["sets"] > 0


def test_limit_truncates_after_sorting(settings, cache):
    destinations = [make_destination(f"r{n}", location=GeoPoint(lat=_lat(n), lon=8.5)) for n in range(6)]
    engine = build_test_engine(settings, cache, destinations, StubRoutesClient(default=30))
    for n in range(6):
        engine.store.upsert(make_record(f"r{n}", mountain_depth=20 + n * 10))

    result = engine.recommend(max_travel_minutes=180, min_score=0, limit=2, now=WEDNESDAY)

    assert [i.destination.id for i in result.items] == ["r5", "r4"]
    assert (result.funnel.passed_score, result.funnel.final) == (6, 2)


def test_ties_break_by_priority_then_identity(settings, cache):
    destinations = [
        make_destination("charlie", priority=5),
        make_destination("alpha", priority=5),
        make_destination("bravo", priority=9),
    ]
    engine = build_test_engine(settings, cache, destinations, StubRoutesClient(default=30))
    for d in destinations:
        engine.store.upsert(make_record(d.id))

    result = engine.recommend(max_travel_minutes=180, min_score=0, limit=5, now=WEDNESDAY)

    assert len({i.result.score for i in result.items}) == 1
    assert [i.destination.id for i in result.items] == ["bravo", "alpha", "charlie"]


def test_destinations_without_current_conditions_are_not_considered(settings, cache):
    destinations = [make_destination("fresh"), make_destination("stale"), make_destination("never")]
    engine = build_test_engine(settings, cache, destinations, StubRoutesClient(default=30))
    engine.store.upsert(make_record("fresh"))
    engine.store.upsert(make_record("stale", age=timedelta(hours=30)))

    result = engine.recommend(max_travel_minutes=180, min_score=0, limit=5, now=WEDNESDAY)

    assert result.funnel.total_considered == 1
    assert [i.destination.id for i in result.items] == ["fresh"]


def test_include_closed_keeps_closed_resorts_past_the_season_filter(settings, cache):
    destinations = [
        make_destination("open"),
        make_destination("shut", season_status="CLOSED", opening_date=date(2025, 12, 7)),
        make_destination("ending", season_status="CLOSING_SOON"),
    ]
    engine = build_test_engine(settings, cache, destinations, StubRoutesClient(default=30))
    for d in destinations:
        engine.store.upsert(make_record(d.id))

    default = engine.recommend(max_travel_minutes=180, min_score=0, limit=5, now=WEDNESDAY)
    assert [i.destination.id for i in default.items] == ["open"]

    with_closed = engine.recommend(
        max_travel_minutes=180, min_score=0, limit=5, include_closed=True, now=WEDNESDAY
    )
    assert with_closed.funnel.passed_season == 3
    by_id = {i.destination.id: i.result for i in with_closed.items}
    assert by_id["shut"].status == "CLOSED"
    assert by_id["shut"].score == 0
    assert by_id["ending"].status == "OPEN"


def test_unmapped_collector_names_are_ranked(settings, cache):
    engine = build_test_engine(settings, cache, [make_destination("known")], StubRoutesClient(default=30))

    summary = engine.ingest(
        [
            {"name": "Obergoms - Goms", "mountain_depth": 70, "lifts_open": 3, "lifts_total": 6},
            {"name": "Realp", "mountain_depth": 50, "lifts_open": 0, "lifts_total": 2},
        ],
        now=WEDNESDAY,
    )
    assert summary.unmapped == 2

    result = engine.recommend(max_travel_minutes=180, min_score=0, limit=5, now=WEDNESDAY)

    # Realp has no running lift, so its synthesized season status is CLOSED.
    assert result.funnel.model_dump()["passed_season"] == 1
    (item,) = result.items
    assert item.destination.id == "obergoms-goms"
    assert item.destination.name == "Obergoms - Goms"
    assert item.mapped is False
    assert result.meta["unmapped_considered"] == 2


def test_routing_outage_still_produces_a_ranking(settings, cache):
    destinations = [make_destination("near", location=GeoPoint(lat=47.35, lon=8.45))]
    routes = StubRoutesClient(error=RuntimeError("quota exceeded"))
    engine = build_test_engine(settings, cache, destinations, routes)
    engine.store.upsert(make_record("near"))

    result = engine.recommend(max_travel_minutes=180, min_score=0, limit=5, now=WEDNESDAY)

    assert [i.travel.source for i in result.items] == ["fallback"]


def test_query_defaults_come_from_settings(settings, cache):
    engine = build_test_engine(settings, cache, [make_destination("x")], StubRoutesClient(default=30))

    result = engine.recommend(now=WEDNESDAY)

    assert result.query.model_dump() == {
        "max_travel_minutes": 90,
        "min_score": 10,
        "limit": 5,
        "include_closed": False,
    }
    assert result.items == []

    with pytest.raises(ValueError):
        engine.recommend(limit=0, now=WEDNESDAY)


def test_details_closed_listing_and_stats(settings, cache):
    engine = build_test_engine(settings, cache, load_destinations(), StubRoutesClient(default=45))
    engine.store.upsert(make_record("davos-parsenn", mountain_depth=55, lifts_open=4, lifts_total=20))

    details = engine.resort_details("Davos Klosters Parsenn", now=WEDNESDAY)
    assert details.destination.id == "davos-parsenn"
    assert details.conditions.mountain_depth == 55
    assert details.result.status == "OPEN"
    assert details.travel.duration_minutes == 45

    closed = engine.resort_details("hoch-ybrig", now=WEDNESDAY)
    assert closed.conditions is None
    assert closed.result.status == "CLOSED"

    assert engine.resort_details("Nowhere Peak", now=WEDNESDAY) is None
    with pytest.raises(ValueError):
        engine.resort_details("  ", now=WEDNESDAY)

    listing = engine.closed_destinations(now=WEDNESDAY)
    assert [(i.destination.id, i.destination.opening_date) for i in listing] == [
        ("hoch-ybrig", date(2025, 12, 7)),
        ("flumserberg", date(2025, 12, 15)),
    ]
    assert all(i.result.score == 0 for i in listing)

    stats = engine.stats(now=WEDNESDAY)
    assert stats["destinations"] == 15
    assert stats["closed_destinations"] == 2
    assert stats["current_condition_records"] == 1
    assert stats["cached_travel_estimates"] == 3
    assert stats["live_routing"] is True
