"""
Collector boundary: raw condition records -> resolved, stored `ConditionRecord`s.

The collector (HTML scraping of the snow-report site) lives outside this package and
hands us flat rows. We are deliberately forgiving here:
- numeric cells may be numbers or strings like `"83 cm"`; `"-"`/empty means "no data",
- an unparseable numeric cell becomes `None` and the rest of the record is still kept,
- a record whose name cannot be keyed at all is skipped (and logged).

Collector-reported season status is fed back into the registry for mapped resorts.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable

from pydantic import BaseModel, Field

from snowscore.catalog.registry import DestinationRegistry
from snowscore.core.time import ensure_tz
from snowscore.domain.models import ConditionRecord, SeasonStatus
from snowscore.ingestion.identity import IdentityResolver
from snowscore.store.conditions import ConditionStore

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"(\d+(?:[.,]\d+)?)")
_LIFTS = re.compile(r"(\d+)\s*/\s*(\d+)")
_CLOCK = re.compile(r"(\d{1,2}):(\d{2})")
_DMY = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_DM_SHORT = re.compile(r"(\d{1,2})\.(\d{1,2})\.")
_NO_DATA = {"", "-", "--", "n/a", "none", "null"}


class RawConditionRecord(BaseModel):
    """One row as produced by the collector (loosely typed on purpose)."""

    name: str
    mountain_depth: Any = None
    valley_depth: Any = None
    new_snow: Any = None
    lifts_open: Any = None
    lifts_total: Any = None
    lifts: str | None = Field(default=None, description='Combined "open/total" text, e.g. "1/13".')
    observed_at: datetime | str | None = None
    season_status: SeasonStatus | None = None
    opening_date: date | None = None


def parse_number(value: Any) -> float | None:
    """Parse a depth/count cell; None for the no-data sentinel or garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) and value >= 0 else None
    text = str(value).strip().lower()
    if text in _NO_DATA:
        return None
    match = _NUMBER.search(text)
    if not match:
        logger.debug("Unparseable numeric cell %r treated as missing", value)
        return None
    number = float(match.group(1).replace(",", "."))
    return number if math.isfinite(number) else None


def _as_int(value: float | None) -> int | None:
    return int(value) if value is not None else None


def parse_lifts(text: str | None) -> tuple[int | None, int | None]:
    """`"8/23"` -> (8, 23); `"3"` -> (3, None); empty -> (None, None)."""
    if not text or not text.strip():
        return None, None
    match = _LIFTS.search(text)
    if match:
        return int(match.group(1)), int(match.group(2))
    single = _NUMBER.search(text)
    if single:
        return _as_int(float(single.group(1).replace(",", "."))), None
    return None, None


def _parse_report_date(text: str, *, now: datetime, timezone: str) -> datetime | None:
    # Raises ValueError for impossible dates or clock times (31/02, 25:10).
    lower = text.lower()
    clock = _CLOCK.search(text)
    if "today" in lower or "yesterday" in lower:
        day = now if "today" in lower else now - timedelta(days=1)
        if clock:
            return day.replace(hour=int(clock.group(1)), minute=int(clock.group(2)), second=0, microsecond=0)
        return day

    dmy = _DMY.search(text)
    if dmy:
        day, month, year = (int(g) for g in dmy.groups())
        return ensure_tz(datetime(year, month, day), timezone)

    short = _DM_SHORT.search(text)
    if short:
        day, month = (int(g) for g in short.groups())
        observed = ensure_tz(datetime(now.year, month, day), timezone)
        if observed > now:
            observed = ensure_tz(datetime(now.year - 1, month, day), timezone)
        return observed
    return None


def parse_observation_time(value: datetime | str | None, *, now: datetime, timezone: str) -> datetime:
    """Turn the collector's date cell into an aware datetime.

    Accepts ISO strings and the report site's "Today, 08:15" / "Yesterday" /
    `DD/MM/YYYY` / `DD.MM.` forms. A year-less `DD.MM.` date later than `now` belongs to
    the previous year. Anything else, impossible dates included, counts as observed at
    ingestion time.
    """
    if value is None:
        return now
    if isinstance(value, datetime):
        return ensure_tz(value, timezone)

    text = value.strip()
    if not text:
        return now
    try:
        iso = text[:-1] + "+00:00" if text.endswith("Z") else text
        return ensure_tz(datetime.fromisoformat(iso), timezone)
    except ValueError:
        pass

    try:
        parsed = _parse_report_date(text, now=now, timezone=timezone)
    except ValueError as e:
        logger.warning("Invalid observation date %r (%s); using ingestion time", value, e)
        return now
    if parsed is not None:
        return parsed

    logger.warning("Could not parse observation date %r; using ingestion time", value)
    return now


def to_condition_record(
    raw: RawConditionRecord, identity: str, *, now: datetime, timezone: str
) -> ConditionRecord:
    lifts_open = _as_int(parse_number(raw.lifts_open))
    lifts_total = _as_int(parse_number(raw.lifts_total))
    if raw.lifts and lifts_open is None and lifts_total is None:
        lifts_open, lifts_total = parse_lifts(raw.lifts)
    return ConditionRecord(
        destination_id=identity,
        observed_at=parse_observation_time(raw.observed_at, now=now, timezone=timezone),
        mountain_depth=parse_number(raw.mountain_depth),
        valley_depth=parse_number(raw.valley_depth),
        new_snow=parse_number(raw.new_snow),
        lifts_open=lifts_open,
        lifts_total=lifts_total,
        source_name=raw.name.strip(),
    )


@dataclass
class IngestionSummary:
    received: int = 0
    stored: int = 0
    mapped: int = 0
    unmapped: int = 0
    skipped: int = 0
    season_updates: int = 0
    unmapped_ids: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "received": self.received,
            "stored": self.stored,
            "mapped": self.mapped,
            "unmapped": self.unmapped,
            "skipped": self.skipped,
            "season_updates": self.season_updates,
            "unmapped_ids": list(self.unmapped_ids),
        }


def ingest_records(
    records: Iterable[RawConditionRecord | dict[str, Any]],
    *,
    resolver: IdentityResolver,
    store: ConditionStore,
    registry: DestinationRegistry,
    now: datetime,
    timezone: str,
) -> IngestionSummary:
    """Resolve and upsert every raw record; returns per-run counts."""
    summary = IngestionSummary()
    for item in records:
        summary.received += 1
        try:
            raw = item if isinstance(item, RawConditionRecord) else RawConditionRecord.model_validate(item)
            resolution = resolver.lookup(raw.name)
            record = to_condition_record(raw, resolution.identity, now=now, timezone=timezone)
        except (ValueError, OverflowError) as e:
            summary.skipped += 1
            logger.warning("Skipping collector record %d: %s", summary.received, e)
            continue

        store.upsert(record)
        summary.stored += 1

        if resolution.mapped:
            summary.mapped += 1
            if raw.season_status is not None:
                registry.update_season_status(resolution.identity, raw.season_status, raw.opening_date)
                summary.season_updates += 1
            logger.debug("Stored conditions for %s (%s) - mapped", raw.name, resolution.identity)
        else:
            summary.unmapped += 1
            summary.unmapped_ids.append(resolution.identity)
            logger.debug("Stored conditions for %s (%s) - new resort", raw.name, resolution.identity)

    logger.info(
        "Ingested %d/%d collector records (%d mapped, %d unmapped, %d skipped)",
        summary.stored,
        summary.received,
        summary.mapped,
        summary.unmapped,
        summary.skipped,
    )
    return summary
