# src/snowscore/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/snowscore/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `GOOGLE_MAPS_API_KEY`, `SNOWSCORE_CACHE_DIR`)
- an external YAML file via `SNOWSCORE_CONFIG_PATH`

Design rule:
- Tuning knobs live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal
from snowscore.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `snowscore.config`."""
    text = resources.files("snowscore.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "SnowScore"
    timezone: str = "Europe/Zurich"
    http_timeout_seconds: float = 10
    log_level: str = "INFO"


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/snowscore"
    default_ttl_seconds: int = 60 * 60 * 24


class CatalogSettings(BaseModel):
    path: str | None = None


class ConditionSettings(BaseModel):
    freshness_seconds: int = Field(60 * 60 * 24, gt=0)


class OriginSettings(BaseModel):
    label: str = "Hedingen"
    lat: float = Field(47.2981, ge=-90, le=90)
    lon: float = Field(8.4483, ge=-180, le=180)


class SpeedTier(BaseModel):
    speed_kmh: float = Field(..., gt=0)
    base_delay_minutes: float = Field(..., ge=0)


class HighwayTier(SpeedTier):
    max_distance_km: float = 50


class LongMountainTier(SpeedTier):
    min_distance_km: float = 150


class FallbackSettings(BaseModel):
    pass_route_ids: list[str] = Field(default_factory=list)
    pass_route: SpeedTier = Field(default_factory=lambda: SpeedTier(speed_kmh=45, base_delay_minutes=45))
    highway: HighwayTier = Field(default_factory=lambda: HighwayTier(speed_kmh=100, base_delay_minutes=10))
    long_mountain: LongMountainTier = Field(
        default_factory=lambda: LongMountainTier(speed_kmh=60, base_delay_minutes=20)
    )
    default: SpeedTier = Field(default_factory=lambda: SpeedTier(speed_kmh=80, base_delay_minutes=15))


class TravelSettings(BaseModel):
    origin: OriginSettings = Field(default_factory=OriginSettings)
    cache_ttl_seconds: int = 60 * 60 * 24 * 365
    routes_url: str = "https://routes.googleapis.com/directions/v2:computeRoutes"
    field_mask: str = "routes.distanceMeters,routes.duration"
    api_key: str | None = None
    max_workers: int = Field(3, ge=1, le=5)
    call_spacing_seconds: float = Field(0.2, ge=0)
    batch_pause_seconds: float = Field(2.0, ge=0)
    fallback: FallbackSettings = Field(default_factory=FallbackSettings)


class ScoreBands(BaseModel):
    excellent: float = 70
    good: float = 50
    decent: float = 30


class ScoringSettings(BaseModel):
    snow_weight: float = 0.5
    new_snow_points_per_cm: float = 5
    new_snow_cap: float = 20
    lift_ratio_points: float = 20
    park_bonus: float = 5
    night_riding_bonus: float = 3
    mixed_difficulty_bonus: float = 2
    no_lifts_penalty: float = 10
    weekday_bonus: float = 5
    bands: ScoreBands = Field(default_factory=ScoreBands)


class RecommendSettings(BaseModel):
    max_travel_minutes: int = Field(90, ge=0)
    min_score: float = Field(10, ge=0, le=100)
    limit: int = Field(5, ge=1, le=50)
    include_closed: bool = False


class UnmappedSettings(BaseModel):
    lat: float = 46.8
    lon: float = 8.2
    priority: int = Field(3, ge=1, le=10)
    difficulty: Literal["beginner", "intermediate", "advanced", "mixed"] = "mixed"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    conditions: ConditionSettings = Field(default_factory=ConditionSettings)
    travel: TravelSettings = Field(default_factory=TravelSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    recommend: RecommendSettings = Field(default_factory=RecommendSettings)
    unmapped: UnmappedSettings = Field(default_factory=UnmappedSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)
    cache_dir = os.getenv("SNOWSCORE_CACHE_DIR")
    if cache_dir:
        data.setdefault("cache", {})["dir"] = cache_dir

    log_level = os.getenv("SNOWSCORE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    catalog_path = os.getenv("SNOWSCORE_CATALOG_PATH")
    if catalog_path:
        data.setdefault("catalog", {})["path"] = catalog_path

    api_key = os.getenv("GOOGLE_MAPS_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if api_key:
        data.setdefault("travel", {})["api_key"] = api_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("SNOWSCORE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
