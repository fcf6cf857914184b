"""
Deterministic travel fallback.

Great-circle distance turned into a driving time with a piecewise speed model.
Tier order matters: curated mountain-pass destinations short-circuit the
distance tiers because their drive time does not follow straight-line distance.
"""

from __future__ import annotations

import math

from snowscore.config.settings import FallbackSettings, SpeedTier
from snowscore.core.geo import haversine_km
from snowscore.domain.models import GeoPoint


def select_tier(destination_id: str, distance_km: float, settings: FallbackSettings) -> tuple[str, SpeedTier]:
    """Return (tier name, tier) for a destination at `distance_km`."""
    if destination_id in settings.pass_route_ids:
        return "pass_route", settings.pass_route
    if distance_km <= settings.highway.max_distance_km:
        return "highway", settings.highway
    if distance_km > settings.long_mountain.min_distance_km:
        return "long_mountain", settings.long_mountain
    return "default", settings.default


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fallback_estimate(
    destination_id: str,
    origin: GeoPoint,
    destination: GeoPoint,
    settings: FallbackSettings,
) -> tuple[float, int]:
    """Return (distance_km rounded to 0.1, duration minutes rounded to nearest)."""
    distance_km = haversine_km(origin, destination)
    _, tier = select_tier(destination_id, distance_km, settings)
    minutes = distance_km / tier.speed_kmh * 60 + tier.base_delay_minutes
    return round(distance_km, 1), _round_half_up(minutes)
