"""
Logging setup for the CLI and the API process.

The packaged `logging.yaml` is a `dictConfig` payload; the level comes from
settings (`SNOWSCORE_LOG_LEVEL`) unless the caller passes one (CLI `--log-level`).
Library modules only ever call `logging.getLogger(__name__)`.
"""

from __future__ import annotations

import copy
import logging.config

from snowscore.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> str:
    """Apply the packaged logging config; returns the effective level name."""
    # Deep copy: the loaded config is cached and dictConfig must not see our edits twice.
    config = copy.deepcopy(get_logging_config())
    effective = (level or get_settings().app.log_level).upper()

    config.setdefault("root", {})["level"] = effective
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict):
            handler["level"] = effective

    logging.config.dictConfig(config)
    return effective
