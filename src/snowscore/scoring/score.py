"""
Scoring function: merged destination state -> `ScoreResult`.

Pure: no I/O, the clock is an argument. Rules, first match wins:
1. season CLOSED -> 0 / CLOSED (whatever the conditions say),
2. no lift running and outside today's operating hours -> 0 / CLOSED_TODAY,
3. otherwise the clamped composite (see `snowscore.scoring.composite`).

Missing measurements count as zero here; excluding destinations without data is
the pipeline's job.
"""

from __future__ import annotations

from datetime import datetime

from snowscore.config.settings import ScoringSettings
from snowscore.core.time import is_weekend, parse_time_range
from snowscore.domain.models import Destination, DestinationState, ScoreResult
from snowscore.scoring.composite import composite_terms


def is_within_operating_hours(destination: Destination, now: datetime) -> bool:
    """True when `now` falls inside today's hours (no usable hours configured counts as open)."""
    hours = destination.operating_hours
    if hours is None:
        return True
    template = hours.weekends if is_weekend(now) else hours.weekdays
    window = parse_time_range(template)
    if window is None:
        return True
    opens, closes = window
    current = now.time().replace(second=0, microsecond=0, tzinfo=None)
    return opens <= current <= closes


def _fmt_cm(value: float) -> str:
    return f"{value:g}"


def closed_reason(destination: Destination) -> str:
    if destination.opening_date is None:
        return "Closed for the season (opening date not announced)"
    return f"Closed until {destination.opening_date.isoformat()}"


def open_reason(state: DestinationState, score: float, settings: ScoringSettings) -> str:
    """Pick the band sentence for `score`; lower bands also name the lift ratio."""
    depth = _fmt_cm(state.mountain_depth)
    lifts = f"{state.lifts_open}/{state.lifts_total}"
    bands = settings.bands
    if score >= bands.excellent:
        return f"Excellent conditions with {depth}cm of snow!"
    if score >= bands.good:
        return f"Good conditions with {depth}cm base - worth the trip."
    if score >= bands.decent:
        return f"Decent conditions with {depth}cm snow. {lifts} lifts operational."
    return f"Early season conditions with {depth}cm snow. Limited lift operations ({lifts})."


def score_destination(state: DestinationState, *, now: datetime, settings: ScoringSettings) -> ScoreResult:
    """Score one destination (total function; always returns a result)."""
    destination = state.destination

    if destination.season_status == "CLOSED":
        return ScoreResult(
            status="CLOSED",
            score=0,
            reason=closed_reason(destination),
            opening_date=destination.opening_date,
        )

    if state.lifts_open == 0 and not is_within_operating_hours(destination, now):
        return ScoreResult(status="CLOSED_TODAY", score=0, reason="Closed today (check operating hours)")

    terms = composite_terms(state, now=now, settings=settings)
    score = terms.total
    return ScoreResult(
        status="OPEN",
        score=score,
        reason=open_reason(state, score, settings),
        components=terms.as_dict(),
    )
