"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- catalog entities (`Destination`) and collector output (`ConditionRecord`)
- cached travel cost (`TravelEstimate`)
- explainable scoring output (`ScoreResult`, `RecommendationResult`)

Keeping these models in one place helps:
- validation (reject bad catalog entries early),
- typed refactors,
- consistent JSON output across CLI/API.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SeasonStatus = Literal["OPEN", "CLOSED", "CLOSING_SOON"]
ScoreStatus = Literal["OPEN", "CLOSED", "CLOSED_TODAY"]
Difficulty = Literal["beginner", "intermediate", "advanced", "mixed"]
TravelSource = Literal["live", "fallback"]


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class OperatingHours(BaseModel):
    """Daily lift hours as `"HH:MM-HH:MM"` templates per day-of-week category."""

    model_config = ConfigDict(frozen=True)

    weekdays: str | None = None
    weekends: str | None = None
    notes: str | None = None


class Destination(BaseModel):
    """A ski resort: static catalog metadata plus its runtime season status."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    aliases: list[str] = Field(default_factory=list)
    location: GeoPoint

    season_status: SeasonStatus = "OPEN"
    opening_date: date | None = None
    closing_date: date | None = None
    operating_hours: OperatingHours | None = None

    priority: int = Field(5, ge=1, le=10)
    difficulty: Difficulty = "mixed"
    has_park: bool = False
    has_night_riding: bool = False

    @field_validator("id")
    @classmethod
    def _non_blank_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("destination id must not be blank")
        return value


class ConditionRecord(BaseModel):
    """A timestamped snapshot of perishable measurements for one destination."""

    model_config = ConfigDict(frozen=True)

    destination_id: str
    observed_at: datetime
    mountain_depth: float | None = Field(default=None, ge=0)
    valley_depth: float | None = Field(default=None, ge=0)
    new_snow: float | None = Field(default=None, ge=0)
    lifts_open: int | None = Field(default=None, ge=0)
    lifts_total: int | None = Field(default=None, ge=0)
    source_name: str | None = None

    @field_validator("observed_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        # Naive collector times are localized to `app.timezone` at ingestion, never here.
        if value.tzinfo is None:
            raise ValueError("observed_at must be timezone-aware")
        return value


class DestinationState(BaseModel):
    """Registry entry joined with its current condition record (if any)."""

    destination: Destination
    conditions: ConditionRecord | None = None
    mapped: bool = True

    @property
    def mountain_depth(self) -> float:
        return float(self.conditions.mountain_depth or 0) if self.conditions else 0.0

    @property
    def new_snow(self) -> float:
        return float(self.conditions.new_snow or 0) if self.conditions else 0.0

    @property
    def lifts_open(self) -> int:
        return int(self.conditions.lifts_open or 0) if self.conditions else 0

    @property
    def lifts_total(self) -> int:
        return int(self.conditions.lifts_total or 0) if self.conditions else 0


class TravelEstimate(BaseModel):
    """Distance/duration from the fixed origin to one destination."""

    destination_id: str
    origin: str
    distance_km: float = Field(..., ge=0)
    duration_minutes: int = Field(..., ge=0)
    cached_at: datetime
    source: TravelSource


class ScoreResult(BaseModel):
    """Bounded score, status and a human-readable justification."""

    status: ScoreStatus
    score: float = Field(..., ge=0, le=100)
    reason: str
    opening_date: date | None = None
    components: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _zero_unless_open(self) -> "ScoreResult":
        if self.status != "OPEN" and self.score != 0:
            raise ValueError("score must be 0 unless status is OPEN")
        return self


class RecommendationQuery(BaseModel):
    """Effective filter knobs for one recommendation run."""

    max_travel_minutes: int = Field(..., ge=0)
    min_score: float = Field(..., ge=0, le=100)
    limit: int = Field(..., ge=1, le=50)
    include_closed: bool = False


class RecommendationItem(BaseModel):
    """One ranked output item: destination, conditions, score and travel cost."""

    destination: Destination
    conditions: ConditionRecord | None = None
    result: ScoreResult
    travel: TravelEstimate
    mapped: bool = True


class FunnelCounts(BaseModel):
    """Survivor counts after each filtering stage."""

    total_considered: int = 0
    passed_travel: int = 0
    passed_season: int = 0
    passed_score: int = 0
    final: int = 0


class RecommendationResult(BaseModel):
    """Top-N recommendations plus the query and the filtering funnel."""

    generated_at: datetime
    query: RecommendationQuery
    items: list[RecommendationItem]
    funnel: FunnelCounts
    meta: dict[str, Any] = Field(default_factory=dict)
