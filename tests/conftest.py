from __future__ import annotations

import pytest

from snowscore.catalog.loader import load_destinations
from snowscore.catalog.registry import DestinationRegistry
from snowscore.config.settings import Settings, get_settings
from snowscore.core.cache import FileCache


@pytest.fixture
def settings() -> Settings:
    """Default settings without credentials and without any sleeping."""
    base = get_settings()
    travel = base.travel.model_copy(
        update={"api_key": None, "call_spacing_seconds": 0.0, "batch_pause_seconds": 0.0}
    )
    return base.model_copy(update={"travel": travel})


@pytest.fixture
def cache(tmp_path) -> FileCache:
    return FileCache(tmp_path / "cache", default_ttl_seconds=3600)


@pytest.fixture
def registry() -> DestinationRegistry:
    return DestinationRegistry(load_destinations())
