"""Short-lived, size-bounded cache in front of the store.

One bucket per entity type (character, location, inventory), keyed by id.
An entry is served only while ``now - inserted_at < ttl``; older entries are
dropped and count as a miss. Writes through the repository invalidate the
entry straight away, whatever its age.

Eviction is first-in-first-out: when a bucket is over capacity the entry that
was inserted earliest goes, however often it has been read since. Re-putting
a key counts as a fresh insertion. Misses are never cached.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

BUCKETS: tuple[str, ...] = ("character", "location", "inventory")


@dataclass
class CacheEntry:
    data: Any
    inserted_at: float


class StateCache:
    """Per-type TTL cache.

    Args:
        ttl:      Seconds an entry stays valid.
        max_size: Capacity of each bucket.
        enabled:  When False every lookup misses and nothing is stored.
        clock:    Time source in seconds; injectable for tests.
    """

    def __init__(
        self,
        ttl: float = 60.0,
        max_size: int = 100,
        *,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self.ttl = ttl
        self.max_size = max_size
        self.enabled = enabled
        self._clock = clock
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._buckets: dict[str, OrderedDict[str, CacheEntry]] = {b: OrderedDict() for b in BUCKETS}
        self._hits = 0
        self._misses = 0

    def _bucket(self, kind: str) -> OrderedDict[str, CacheEntry]:
        try:
            return self._buckets[kind]
        except KeyError:
            raise ValueError(f"Unknown cache bucket: {kind!r}") from None

    def get(self, kind: str, key: str) -> Any | None:
        bucket = self._bucket(kind)
        entry = bucket.get(key) if self.enabled else None
        if entry is None:
            self._misses += 1
            return None
        if self._clock() - entry.inserted_at >= self.ttl:
            del bucket[key]
            self._misses += 1
            return None
        self._hits += 1
        self._log.debug("cache hit %s/%s", kind, key)
        return entry.data

    def put(self, kind: str, key: str, data: Any) -> None:
        if not self.enabled:
            return
        bucket = self._bucket(kind)
        bucket.pop(key, None)
        bucket[key] = CacheEntry(data=data, inserted_at=self._clock())
        while len(bucket) > self.max_size:
            evicted, _ = bucket.popitem(last=False)
            self._log.debug("cache evicted %s/%s", kind, evicted)

    def invalidate(self, kind: str, key: str) -> None:
        self._bucket(kind).pop(key, None)

    def clear(self) -> None:
        for bucket in self._buckets.values():
            bucket.clear()
        self._log.info("Cache cleared")

    def __len__(self) -> int:
        return sum(len(b) for b in self._buckets.values())

    def stats(self) -> dict[str, Any]:
        return {
            **{kind: len(bucket) for kind, bucket in self._buckets.items()},
            "hits": self._hits,
            "misses": self._misses,
        }
