"""
Simple in-process rate limiting utilities.

The routing API is the only network call in a recommendation run. We keep its
traffic polite with two knobs:
- `CallSpacer`: a minimum interval between live calls issued by the same worker thread.
- `BatchedWorkerPool`: a small bounded thread pool that processes items in batches and
  pauses between batches that actually went to the network.
"""

from __future__ import annotations

import contextvars
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class CallSpacer:
    """Per-thread minimum spacing between live calls (best-effort)."""

    min_interval_seconds: float = 0.2
    _local: threading.local = field(default_factory=threading.local, init=False, repr=False)
    _count_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _calls: int = field(default=0, init=False)

    @property
    def calls(self) -> int:
        return self._calls

    def wait(self) -> None:
        """Block until this thread may issue its next live call, then record it."""
        interval = float(self.min_interval_seconds)
        now = time.monotonic()
        last = getattr(self._local, "last", None)
        if interval > 0 and last is not None:
            remaining = interval - (now - last)
            if remaining > 0:
                time.sleep(remaining)
                now = time.monotonic()
        self._local.last = now
        with self._count_lock:
            self._calls += 1


class BatchedWorkerPool:
    """Map a function over items with bounded concurrency and inter-batch pauses."""

    def __init__(
        self,
        *,
        max_workers: int = 3,
        batch_pause_seconds: float = 2.0,
        spacer: CallSpacer | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._max_workers = int(max_workers)
        self._batch_pause_seconds = float(batch_pause_seconds)
        self._spacer = spacer

    def map(self, fn: Callable[[T], R], items: Sequence[T]) -> list[R]:
        """Return `[fn(item) for item in items]`, order preserved."""
        if not items:
            return []
        results: list[R] = []
        batch_size = self._max_workers
        batches = [items[i : i + batch_size] for i in range(0, len(items), batch_size)]
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            for index, batch in enumerate(batches):
                mark = self._spacer.calls if self._spacer else 0
                # Workers inherit the caller's context (cache stats are recorded per request).
                contexts = [contextvars.copy_context() for _ in batch]
                results.extend(executor.map(lambda ctx, item: ctx.run(fn, item), contexts, batch))
                went_live = bool(self._spacer and self._spacer.calls > mark)
                if went_live and index < len(batches) - 1 and self._batch_pause_seconds > 0:
                    logger.debug(
                        "Batch %d/%d issued live calls; pausing %.1fs",
                        index + 1,
                        len(batches),
                        self._batch_pause_seconds,
                    )
                    time.sleep(self._batch_pause_seconds)
        return results
