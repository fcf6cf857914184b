"""
Routing client (Google Routes API `computeRoutes`).

This module is responsible only for:
- building the driving-route request between two coordinates,
- spacing live calls (one `CallSpacer` shared by all worker threads),
- parsing distance/duration out of the response.

It does not cache or fall back; see `snowscore.travel.estimator` for that.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from snowscore.config.settings import Settings
from snowscore.core.http import post_json
from snowscore.core.rate_limit import CallSpacer
from snowscore.domain.models import GeoPoint

logger = logging.getLogger(__name__)

_SECONDS = re.compile(r"^(\d+(?:\.\d+)?)s$")
_ISO_DURATION = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?$")


class RoutingError(RuntimeError):
    """The routing service could not be used (no credentials, unusable payload)."""


def parse_duration_minutes(value: Any) -> int:
    """`"5400s"` or `"PT1H30M"` -> 90 (whole minutes, rounded)."""
    text = str(value or "").strip()
    match = _SECONDS.match(text)
    if match:
        seconds = float(match.group(1))
    else:
        iso = _ISO_DURATION.match(text)
        if not iso or not any(iso.groups()):
            raise RoutingError(f"Unrecognized route duration {value!r}.")
        hours, minutes, secs = iso.groups()
        seconds = int(hours or 0) * 3600 + int(minutes or 0) * 60 + float(secs or 0)
    return int(round(seconds / 60))


def _location(point: GeoPoint) -> dict[str, Any]:
    return {"location": {"latLng": {"latitude": point.lat, "longitude": point.lon}}}


class RoutesClient:
    """Computes one driving route per call."""

    def __init__(self, settings: Settings, spacer: CallSpacer | None = None):
        self._settings = settings
        self._spacer = spacer or CallSpacer(settings.travel.call_spacing_seconds)

    @property
    def spacer(self) -> CallSpacer:
        return self._spacer

    @property
    def configured(self) -> bool:
        return bool(self._settings.travel.api_key)

    def _require_api_key(self) -> str:
        api_key = self._settings.travel.api_key
        if not api_key:
            raise RoutingError("Routing API key is not configured. Set GOOGLE_MAPS_API_KEY.")
        return api_key

    def compute_route(self, origin: GeoPoint, destination: GeoPoint) -> tuple[float, int]:
        """Return (distance_km rounded to 0.1, duration in whole minutes).

        Raises:
            RoutingError: Missing credentials or a response without a usable route.
            httpx.HTTPError: Transport failures, timeouts and non-2xx responses.
        """
        api_key = self._require_api_key()
        travel = self._settings.travel
        payload = {
            "origin": _location(origin),
            "destination": _location(destination),
            "travelMode": "DRIVE",
            "routingPreference": "TRAFFIC_UNAWARE",
            "computeAlternativeRoutes": False,
            "languageCode": "en-US",
            "units": "METRIC",
        }
        headers = {"X-Goog-Api-Key": api_key, "X-Goog-FieldMask": travel.field_mask}

        self._spacer.wait()
        data = post_json(
            travel.routes_url,
            payload=payload,
            headers=headers,
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )

        routes = data.get("routes") if isinstance(data, dict) else None
        if not routes or not isinstance(routes[0], dict):
            raise RoutingError("Routing response contained no routes.")
        route = routes[0]
        try:
            distance_km = round(float(route["distanceMeters"]) / 1000, 1)
        except (KeyError, TypeError, ValueError) as e:
            raise RoutingError("Routing response is missing distanceMeters.") from e
        minutes = parse_duration_minutes(route.get("duration"))
        logger.debug("Route %s -> %s: %.1f km, %d min", origin, destination, distance_km, minutes)
        return distance_km, minutes
