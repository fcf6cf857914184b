"""
Destination catalog loader.

The catalog is a JSON list of resorts with coordinates, season window, hours and
feature flags. By default we read the copy packaged next to this module; a custom
file can be configured via `catalog.path` / `SNOWSCORE_CATALOG_PATH`. Entries are
validated into typed Pydantic models so downstream code can assume a consistent shape.
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path

from pydantic import TypeAdapter

from snowscore.core.env import resolve_project_path
from snowscore.domain.models import Destination


_DESTINATIONS_ADAPTER = TypeAdapter(list[Destination])


def load_destinations(path: str | Path | None = None) -> list[Destination]:
    """Load and validate a destination catalog JSON file (packaged catalog if `path` is None)."""
    if path is None:
        text = resources.files("snowscore.catalog").joinpath("destinations.json").read_text(encoding="utf-8")
    else:
        text = resolve_project_path(path).read_text(encoding="utf-8")
    destinations = _DESTINATIONS_ADAPTER.validate_python(json.loads(text))

    seen: set[str] = set()
    for d in destinations:
        if d.id in seen:
            raise ValueError(f"Duplicate destination id '{d.id}' in catalog.")
        seen.add(d.id)
    return destinations
