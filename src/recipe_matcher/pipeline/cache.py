"""Time-bounded cache of search outcomes.

Keys are derived from the normalized request (sorted ingredient tokens, filter,
count), so "Rice, chicken" and "chicken,rice" share an entry. Entries expire
after a fixed TTL measured on an injectable monotonic clock.
"""

import hashlib
import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

from recipe_matcher.models.models import CanonicalRecipe, FilterKind
from recipe_matcher.utils.errors import InternalInconsistency
from recipe_matcher.utils.logger import logger


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


def make_key(tokens: Iterable[str], filter_kind: Optional[FilterKind], count: int) -> str:
    """Stable cache key for a search request."""
    payload = {
        "ingredients": sorted(set(tokens)),
        "filter": filter_kind.value if filter_kind else None,
        "count": count,
    }
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()


class ResultCache:
    """In-memory TTL cache with lazy expiry.

    Expired entries are evicted when looked up, and all at once by sweep(),
    which also runs whenever a write pushes the cache past max_entries.
    Concurrent writers for the same key: the last one wins.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 256,
        enabled: bool = True,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.max_entries = max_entries
        self.enabled = enabled
        self._entries: dict[str, Any] = {}
        self._hits = 0
        self._misses = 0

    def _entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not isinstance(entry, CacheEntry):
            raise InternalInconsistency(f"Cache entry for {key[:12]} is {type(entry).__name__}, not CacheEntry")
        return entry

    def get(self, key: str) -> Optional[Any]:
        """Cached value for key, or None on a miss (absent, expired or corrupt)."""
        if not self.enabled:
            return None
        try:
            entry = self._entry(key)
        except InternalInconsistency as e:
            logger.error(f"Discarding cache entry: {e}")
            self._entries.pop(key, None)
            entry = None

        if entry is not None and entry.expires_at <= self.clock():
            del self._entries[key]
            entry = None

        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any) -> None:
        if not self.enabled:
            return
        self._entries[key] = CacheEntry(value=value, expires_at=self.clock() + self.ttl_seconds)
        if len(self._entries) > self.max_entries:
            self.sweep()

    async def get_or_compute(self, key: str, compute: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for key, computing and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key[:12]}")
            return cached
        value = await compute()
        self.set(key, value)
        return value

    def sweep(self) -> int:
        """Evict every expired or corrupt entry. Returns the number evicted."""
        now = self.clock()
        stale = [
            key
            for key, entry in self._entries.items()
            if not isinstance(entry, CacheEntry) or entry.expires_at <= now
        ]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Swept {len(stale)} cache entr{'y' if len(stale) == 1 else 'ies'}")
        return len(stale)

    def stats(self) -> dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "enabled": self.enabled,
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups, 3) if lookups else 0.0,
            "ttl_seconds": self.ttl_seconds,
        }

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0


class DetailCache:
    """Detailed records from past searches, by recipe id, least recently used first out.

    Holds curated, generated and emergency records so get_by_id can serve them
    without a source round trip. Once max_entries is reached, each new record
    evicts the one that was stored or read longest ago.
    """

    def __init__(self, max_entries: int = 512) -> None:
        self.max_entries = max_entries
        self._records: "OrderedDict[int, CanonicalRecipe]" = OrderedDict()

    def get(self, recipe_id: int) -> Optional[CanonicalRecipe]:
        record = self._records.get(recipe_id)
        if record is not None:
            self._records.move_to_end(recipe_id)
        return record

    def put(self, record: CanonicalRecipe) -> None:
        self._records[record.id] = record
        self._records.move_to_end(record.id)
        while len(self._records) > self.max_entries:
            evicted, _ = self._records.popitem(last=False)
            logger.debug(f"Evicted recipe {evicted} from detail cache")

    def __contains__(self, recipe_id: object) -> bool:
        return recipe_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records.clear()
