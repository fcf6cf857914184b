from __future__ import annotations

import contextvars
import json
import time
from contextlib import contextmanager
from dataclasses import dataclass
from hashlib import sha256
from pathlib import Path
from typing import Any

from snowscore.core.locks import KeyedLocks

"""
Simple on-disk JSON cache.

This cache is intentionally lightweight:
- It stores JSON-serializable values on disk under `.cache/snowscore/` by default.
- Keys are hashed (SHA-256) to avoid filesystem path issues.
- TTL is enforced on read; an expired entry reads as a miss, never as a value.
- Writes to the same key are serialized (one writer per key).

It backs the travel-estimate cache, so a routing call made once is reused
across processes until the estimate expires.
"""


@dataclass(frozen=True)
class CacheEntry:
    """Serialized cache envelope stored on disk."""

    created_at_unix: int
    ttl_seconds: int
    value: Any


@dataclass
class CacheStats:
    """Per-request cache usage stats (best-effort)."""

    hits: int = 0
    misses: int = 0
    expired: int = 0
    sets: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "hits": int(self.hits),
            "misses": int(self.misses),
            "expired": int(self.expired),
            "sets": int(self.sets),
        }


_cache_stats_var: contextvars.ContextVar[CacheStats | None] = contextvars.ContextVar(
    "snowscore_cache_stats", default=None
)


def _stats() -> CacheStats | None:
    return _cache_stats_var.get()


@contextmanager
def record_cache_stats() -> CacheStats:
    """Capture cache stats within the current context (thread/task-safe)."""

    stats = CacheStats()
    token = _cache_stats_var.set(stats)
    try:
        yield stats
    finally:
        _cache_stats_var.reset(token)


class FileCache:
    """A filesystem-backed cache keyed by (namespace, key)."""

    def __init__(
        self, base_dir: Path, enabled: bool = True, default_ttl_seconds: int = 86400
    ):
        self._base_dir = base_dir
        self._enabled = enabled
        self._default_ttl_seconds = default_ttl_seconds
        self._locks = KeyedLocks()

    def _key_path(self, namespace: str, key: str) -> Path:
        """Return the file path for a cache entry (hash-based)."""
        digest = sha256(f"{namespace}:{key}".encode("utf-8")).hexdigest()
        return self._base_dir / namespace / f"{digest}.json"

    def get(
        self, namespace: str, key: str, ttl_seconds: int | None = None
    ) -> Any | None:
        """Read a cached value if present and not expired; otherwise return None."""
        if not self._enabled:
            return None

        path = self._key_path(namespace, key)
        if not path.exists():
            st = _stats()
            if st:
                st.misses += 1
            return None

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            entry = CacheEntry(
                created_at_unix=int(raw["created_at_unix"]),
                ttl_seconds=int(raw["ttl_seconds"]),
                value=raw["value"],
            )
        except (OSError, ValueError, KeyError, TypeError):
            st = _stats()
            if st:
                st.misses += 1
            return None

        now = int(time.time())
        effective_ttl = ttl_seconds if ttl_seconds is not None else entry.ttl_seconds
        if now - entry.created_at_unix > effective_ttl:
            st = _stats()
            if st:
                st.misses += 1
                st.expired += 1
            return None

        st = _stats()
        if st:
            st.hits += 1
        return entry.value

    def set(
        self, namespace: str, key: str, value: Any, ttl_seconds: int | None = None
    ) -> None:
        """Write a JSON-serializable value to disk.

        Notes:
        - Writes via a temporary file + atomic replace to avoid partial/corrupt cache files.
        """
        if not self._enabled:
            return None

        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl_seconds
        path = self._key_path(namespace, key)

        payload = {
            "created_at_unix": int(time.time()),
            "ttl_seconds": int(ttl),
            "key": key,
            "value": value,
        }
        with self._locks.hold(f"{namespace}:{key}"):
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
            tmp.replace(path)
        st = _stats()
        if st:
            st.sets += 1

    def count(self, namespace: str) -> int:
        """Number of entries on disk for a namespace (expired ones included)."""
        if not self._enabled:
            return 0
        folder = self._base_dir / namespace
        if not folder.is_dir():
            return 0
        return sum(1 for _ in folder.glob("*.json"))

    def clear(self, namespace: str) -> int:
        """Delete every entry of a namespace; returns how many were removed."""
        if not self._enabled:
            return 0
        folder = self._base_dir / namespace
        if not folder.is_dir():
            return 0
        removed = 0
        for path in folder.glob("*.json"):
            path.unlink(missing_ok=True)
            removed += 1
        return removed
