import pytest

from snowscore.config.settings import FallbackSettings
from snowscore.core.geo import haversine_km
from snowscore.domain.models import GeoPoint
from snowscore.travel.fallback import fallback_estimate, select_tier

ORIGIN = GeoPoint(lat=47.2981, lon=8.4483)
FALLBACK = FallbackSettings(pass_route_ids=["zermatt"])


def _expected_minutes(point: GeoPoint, speed_kmh: float, delay: float) -> int:
    return round(haversine_km(ORIGIN, point) / speed_kmh * 60 + delay)


def test_haversine_known_distance():
    # Hedingen -> Engelberg is about 53 km as the crow flies.
    assert haversine_km(ORIGIN, GeoPoint(lat=46.8217, lon=8.4017)) == pytest.approx(53.1, abs=1.0)
    assert haversine_km(ORIGIN, ORIGIN) == 0


@pytest.mark.parametrize(
    ("identity", "point", "tier", "speed", "delay"),
    [
        # Pass routes ignore distance, even when close by.
        ("zermatt", GeoPoint(lat=47.35, lon=8.45), "pass_route", 45, 45),
        ("near", GeoPoint(lat=47.50, lon=8.45), "highway", 100, 10),
        ("middle", GeoPoint(lat=46.50, lon=8.45), "default", 80, 15),
        ("far", GeoPoint(lat=45.80, lon=8.45), "long_mountain", 60, 20),
    ],
)
def test_tiers_are_selected_in_order(identity, point, tier, speed, delay):
    distance = haversine_km(ORIGIN, point)
    name, _ = select_tier(identity, distance, FALLBACK)
    assert name == tier

    distance_km, minutes = fallback_estimate(identity, ORIGIN, point, FALLBACK)

    assert distance_km == round(distance, 1)
    assert minutes == _expected_minutes(point, speed, delay)


def test_tier_boundaries():
    assert select_tier("x", 50.0, FALLBACK)[0] == "highway"
    assert select_tier("x", 50.01, FALLBACK)[0] == "default"
    assert select_tier("x", 150.0, FALLBACK)[0] == "default"
    assert select_tier("x", 150.01, FALLBACK)[0] == "long_mountain"


def test_fallback_is_deterministic():
    point = GeoPoint(lat=46.47, lon=7.2831)
    first = fallback_estimate("gstaad", ORIGIN, point, FALLBACK)
    assert all(fallback_estimate("gstaad", ORIGIN, point, FALLBACK) == first for _ in range(5))
