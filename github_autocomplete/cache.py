"""TTL cache for merged search results, persisted in Storage."""

import json
import logging
import time
from collections.abc import Callable
from datetime import timedelta

from .errors import CacheCorrupt, StorageUnavailable
from .models import CACHE_TTL, ResultItem
from .storage import Storage

logger = logging.getLogger(__name__)

CACHE_PREFIX = "github-search-"


def normalize_query(query: str) -> str:
    return query.strip().lower()


class ResultCache:
    """Query -> results store with a fixed time-to-live.

    Caching is an optimization: any storage failure turns ``get`` into a miss
    and ``put``/``clear`` into no-ops.
    """

    def __init__(
        self,
        storage: Storage,
        ttl: timedelta = CACHE_TTL,
        clock: Callable[[], float] = time.time,
        skip_cache: bool = False,
    ):
        self.storage = storage
        self.ttl = ttl
        self.clock = clock
        self.skip_cache = skip_cache
        self.hits = 0

    def _key(self, query: str) -> str:
        return f"{CACHE_PREFIX}{normalize_query(query)}"

    def _decode(self, raw: str) -> tuple[float, list[ResultItem]]:
        try:
            entry = json.loads(raw)
            return float(entry["timestamp"]), [ResultItem.from_dict(r) for r in entry["results"]]
        except (ValueError, KeyError, TypeError) as e:
            raise CacheCorrupt(str(e)) from e

    def get(self, query: str) -> list[ResultItem] | None:
        """Return cached results, or None on a miss, an expired entry or a storage error."""
        if self.skip_cache:
            return None
        key = self._key(query)
        try:
            raw = self.storage.read(key)
            if raw is None:
                return None
            timestamp, results = self._decode(raw)
            if self.clock() - timestamp >= self.ttl.total_seconds():
                self.storage.remove(key)
                return None
        except CacheCorrupt:
            logger.debug("Discarding corrupt cache entry for %r", query)
            self._discard(key)
            return None
        except StorageUnavailable as e:
            logger.warning("Error retrieving cached results: %s", e)
            return None
        self.hits += 1
        return results

    def put(self, query: str, results: list[ResultItem]) -> None:
        entry = {"timestamp": self.clock(), "results": [r.to_dict() for r in results]}
        try:
            self.storage.write(self._key(query), json.dumps(entry))
        except StorageUnavailable as e:
            logger.warning("Error caching results: %s", e)

    def clear(self) -> int:
        """Remove every cached query. Returns how many entries were dropped."""
        removed = 0
        try:
            for key in self.storage.keys(CACHE_PREFIX):
                self.storage.remove(key)
                removed += 1
        except StorageUnavailable as e:
            logger.warning("Error clearing cache: %s", e)
        return removed

    def _discard(self, key: str) -> None:
        try:
            self.storage.remove(key)
        except StorageUnavailable as e:
            logger.debug("Could not discard %s: %s", key, e)
