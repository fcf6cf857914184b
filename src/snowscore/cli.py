"""
SnowScore CLI entrypoint.

This CLI is intended for quick local runs and debugging without the HTTP API.
Condition records live in memory, so commands that rank resorts take the
collector output as a JSON file (`--conditions`) and ingest it first.
"""

from __future__ import annotations

import argparse
import json
from datetime import datetime
from pathlib import Path
from typing import Any

from snowscore.config.settings import get_settings
from snowscore.core.logging import configure_logging
from snowscore.core.time import parse_datetime
from snowscore.recommender.recommend import RecommendationEngine, build_engine
from snowscore.scoring.explain import funnel_summary, one_line_summary


def _read_records(path: str) -> list[dict[str, Any]]:
    """Read collector output: a JSON list of records, or `{"records": [...]}`."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("records")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of condition records.")
    return data


def _engine(args: argparse.Namespace) -> RecommendationEngine:
    engine = build_engine(get_settings())
    conditions = getattr(args, "conditions", None)
    if conditions:
        summary = engine.ingest(_read_records(conditions), now=_now(args))
        print(f"Ingested {summary.stored}/{summary.received} records ({summary.unmapped} unmapped)")
    return engine


def _now(args: argparse.Namespace) -> datetime | None:
    if getattr(args, "now", None):
        return parse_datetime(args.now, get_settings().app.timezone)
    return None


def _dump(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _print_recommendations(engine: RecommendationEngine, args: argparse.Namespace) -> None:
    result = engine.recommend(
        max_travel_minutes=args.max_travel,
        min_score=args.min_score,
        limit=args.limit,
        include_closed=args.include_closed or None,
        now=_now(args),
    )
    if args.json:
        _dump(result.model_dump(mode="json"))
        return

    print(f"Generated at: {result.generated_at.isoformat()}")
    print(f"Funnel: {funnel_summary(result.funnel)}")
    if not result.items:
        print("No resorts match these filters today.")
        return
    print("Top results:")
    for i, item in enumerate(result.items, start=1):
        print(f"{i:>2}. {one_line_summary(item)}")


def _cmd_recommend(args: argparse.Namespace) -> int:
    """Handle the `recommend` subcommand."""
    _print_recommendations(_engine(args), args)
    return 0


def _cmd_ingest(args: argparse.Namespace) -> int:
    engine = build_engine(get_settings())
    summary = engine.ingest(_read_records(args.path), now=_now(args))
    if args.json and not args.recommend:
        _dump(summary.as_dict())
        return 0
    print(
        f"Ingested {summary.stored}/{summary.received} records: "
        f"{summary.mapped} mapped, {summary.unmapped} unmapped, {summary.skipped} skipped"
    )
    if summary.unmapped_ids:
        print(f"Unmapped: {', '.join(summary.unmapped_ids)}")
    if args.recommend:
        _print_recommendations(engine, args)
    return 0


def _cmd_details(args: argparse.Namespace) -> int:
    engine = _engine(args)
    item = engine.resort_details(args.name, now=_now(args))
    if item is None:
        print(f"Unknown resort: {args.name}")
        return 1
    if args.json:
        _dump(item.model_dump(mode="json"))
        return 0
    print(one_line_summary(item))
    if item.conditions:
        c = item.conditions
        print(f"    observed: {c.observed_at.isoformat()}")
        print(f"    mountain={c.mountain_depth} valley={c.valley_depth} new={c.new_snow} lifts={c.lifts_open}/{c.lifts_total}")
    else:
        print("    no current conditions")
    for name, points in item.result.components.items():
        print(f"    - {name}: {points:+.2f}")
    return 0


def _cmd_closed(args: argparse.Namespace) -> int:
    engine = _engine(args)
    items = engine.closed_destinations(now=_now(args))
    if args.json:
        _dump([i.model_dump(mode="json") for i in items])
        return 0
    if not items:
        print("No resorts are closed for the season.")
    for item in items:
        opening = item.destination.opening_date.isoformat() if item.destination.opening_date else "unknown"
        print(f"{item.destination.name}: opens {opening} ({item.travel.duration_minutes} min away)")
    return 0


def _cmd_warm_travel_cache(args: argparse.Namespace) -> int:
    engine = build_engine(get_settings())
    estimates = engine.warm_travel_cache(force=args.force)
    if not estimates:
        print(f"Travel cache already holds {engine.estimator.cached_count()} estimates (use --force to refresh).")
        return 0
    for e in estimates:
        print(f"{e.destination_id}: {e.duration_minutes} min, {e.distance_km:.1f} km [{e.source}]")
    return 0


def _cmd_clear_travel_cache(args: argparse.Namespace) -> int:
    engine = build_engine(get_settings())
    removed = engine.clear_travel_cache()
    print(f"Removed {removed} cached travel estimates.")
    return 0


def _cmd_stats(args: argparse.Namespace) -> int:
    engine = _engine(args)
    _dump(engine.stats(now=_now(args)))
    return 0


def _add_query_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--max-travel", type=int, default=None, help="Maximum drive time in minutes")
    p.add_argument("--min-score", type=float, default=None, help="0..100")
    p.add_argument("--limit", type=int, default=None)
    p.add_argument("--include-closed", action="store_true", help="Keep resorts closed for the season")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the SnowScore CLI."""
    parser = argparse.ArgumentParser(prog="snowscore")
    parser.add_argument("--log-level", default=None, help="Override SNOWSCORE_LOG_LEVEL")
    parser.add_argument("--now", default=None, help="ISO datetime used as the current time (testing)")
    sub = parser.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("recommend", help="Rank resorts worth visiting today.")
    rec.add_argument("--conditions", help="JSON file with collector records to ingest first")
    _add_query_args(rec)
    rec.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    rec.set_defaults(func=_cmd_recommend)

    ing = sub.add_parser("ingest", help="Ingest collector records and print a summary.")
    ing.add_argument("path", help="JSON file with collector records")
    ing.add_argument("--recommend", action="store_true", help="Run a recommendation afterwards")
    _add_query_args(ing)
    ing.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    ing.set_defaults(func=_cmd_ingest)

    det = sub.add_parser("details", help="Score, conditions and travel for one resort.")
    det.add_argument("name", help="Resort identity or name")
    det.add_argument("--conditions", help="JSON file with collector records to ingest first")
    det.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    det.set_defaults(func=_cmd_details)

    closed = sub.add_parser("closed", help="Resorts closed for the season and their opening dates.")
    closed.add_argument("--conditions", help="JSON file with collector records to ingest first")
    closed.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    closed.set_defaults(func=_cmd_closed)

    warm = sub.add_parser("warm-travel-cache", help="Precompute travel estimates for every resort.")
    warm.add_argument("--force", action="store_true", help="Recompute even when estimates are cached")
    warm.set_defaults(func=_cmd_warm_travel_cache)

    clear = sub.add_parser("clear-travel-cache", help="Delete every cached travel estimate.")
    clear.set_defaults(func=_cmd_clear_travel_cache)

    st = sub.add_parser("stats", help="Registry, condition and travel-cache counts.")
    st.add_argument("--conditions", help="JSON file with collector records to ingest first")
    st.set_defaults(func=_cmd_stats)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m snowscore.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
