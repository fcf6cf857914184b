"""
Composite score terms.

The open-resort score is a flat sum of point terms, clamped to 0..100:
- snow depth, normalized to 0..100 and weighted,
- new snow (points per cm, capped),
- share of lifts running,
- feature bonuses (park, night riding, mixed terrain),
- a flat penalty when no lift runs and a flat weekday bonus.

The penalty and weekday bonus are added after the weighted terms, so their
relative influence depends on the other terms. That is the formula users know;
keep it as is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from snowscore.config.settings import ScoringSettings
from snowscore.core.time import is_weekend
from snowscore.domain.models import DestinationState

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def clamp(x: float, lo: float = SCORE_MIN, hi: float = SCORE_MAX) -> float:
    """Clamp a number into the [lo, hi] range."""
    return max(lo, min(hi, float(x)))


def normalize_snow_depth(depth: float) -> float:
    """Map a snow depth in cm to 0..100 (piecewise linear, non-decreasing).

    0-20 cm -> 0-20, 20-50 cm -> 20-60, 50-100 cm -> 60-90, above 100 cm -> 90-100.
    """
    depth = max(0.0, float(depth))
    if depth <= 20:
        return depth
    if depth <= 50:
        return 20 + (depth - 20) * (60 - 20) / (50 - 20)
    if depth <= 100:
        return 60 + (depth - 50) * (90 - 60) / (100 - 50)
    return 90 + min(10.0, (depth - 100) / 10)


@dataclass(frozen=True)
class CompositeTerms:
    """Point contributions of one open destination (before clamping)."""

    snow: float
    new_snow: float
    lift_ratio: float
    features: float
    no_lifts_penalty: float
    weekday_bonus: float

    @property
    def raw_total(self) -> float:
        return (
            self.snow
            + self.new_snow
            + self.lift_ratio
            + self.features
            - self.no_lifts_penalty
            + self.weekday_bonus
        )

    @property
    def total(self) -> float:
        return clamp(self.raw_total)

    def as_dict(self) -> dict[str, float]:
        return {
            "snow": round(self.snow, 3),
            "new_snow": round(self.new_snow, 3),
            "lift_ratio": round(self.lift_ratio, 3),
            "features": round(self.features, 3),
            "no_lifts_penalty": round(-self.no_lifts_penalty, 3),
            "weekday_bonus": round(self.weekday_bonus, 3),
        }


def composite_terms(state: DestinationState, *, now: datetime, settings: ScoringSettings) -> CompositeTerms:
    destination = state.destination
    lifts_open = state.lifts_open

    features = 0.0
    if destination.has_park:
        features += settings.park_bonus
    if destination.has_night_riding:
        features += settings.night_riding_bonus
    if destination.difficulty == "mixed":
        features += settings.mixed_difficulty_bonus

    return CompositeTerms(
        snow=normalize_snow_depth(state.mountain_depth) * settings.snow_weight,
        new_snow=min(state.new_snow * settings.new_snow_points_per_cm, settings.new_snow_cap),
        lift_ratio=lifts_open / max(state.lifts_total, 1) * settings.lift_ratio_points,
        features=features,
        no_lifts_penalty=settings.no_lifts_penalty if lifts_open < 1 else 0.0,
        weekday_bonus=0.0 if is_weekend(now) else settings.weekday_bonus,
    )
