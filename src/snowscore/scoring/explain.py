"""
Small explainability formatting helpers.

Used by the CLI to print compact summaries of recommendation results.
"""

from __future__ import annotations

from snowscore.domain.models import FunnelCounts, RecommendationItem


def one_line_summary(item: RecommendationItem) -> str:
    """Render a compact single-line summary for one ranked item."""
    travel = item.travel
    parts = [
        f"{item.destination.name}",
        f"score={item.result.score:.1f} ({item.result.status})",
        f"{travel.duration_minutes} min / {travel.distance_km:.1f} km [{travel.source}]",
        item.result.reason,
    ]
    if not item.mapped:
        parts.append("unmapped")
    return " | ".join(parts)


def funnel_summary(funnel: FunnelCounts) -> str:
    return (
        f"considered={funnel.total_considered} -> travel={funnel.passed_travel}"
        f" -> season={funnel.passed_season} -> score={funnel.passed_score} -> final={funnel.final}"
    )
