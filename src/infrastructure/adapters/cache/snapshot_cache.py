"""Snapshot cache adapter for document-store reads.

Wraps an OrderSnapshotSource and keeps fetched collections for a TTL,
keyed by collection and constraints. The clock is injected so expiry is
deterministic in tests. Writes routed through the cache drop the
collection they touch.
"""

import copy
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from src.application.ports import Clock, OrderDocumentWriter, OrderSnapshotSource
from src.shared.logging import get_logger
from src.shared.logging.context import get_correlation_id


class SnapshotCache(OrderSnapshotSource, OrderDocumentWriter):
    """
    TTL cache in front of a snapshot source.

    Entries are invalidated explicitly after writes, or expire after
    ``ttl_seconds``. A TTL of 0 disables caching.
    """

    def __init__(
        self,
        source: OrderSnapshotSource,
        clock: Clock,
        ttl_seconds: int = 60,
        writer: Optional[OrderDocumentWriter] = None,
    ):
        """
        Initialize snapshot cache.

        Args:
            source: Underlying snapshot source
            clock: Clock used to stamp and expire entries
            ttl_seconds: Time-to-live for cached entries
            writer: Writer that receives batches passed to ``write_batch``
        """
        self._logger = get_logger("infrastructure.snapshot_cache")
        self._source = source
        self._clock = clock
        self._ttl_seconds = ttl_seconds
        self._writer = writer
        self._entries: Dict[str, Tuple[float, List[Dict[str, Any]]]] = {}
        self.hits = 0
        self.misses = 0

    def fetch(
        self, collection: str, constraints: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Fetch from cache when fresh, otherwise from the source."""
        cache_key = self._build_cache_key(collection, constraints)
        now = self._clock.now().timestamp()

        entry = self._entries.get(cache_key)
        if entry is not None and now - entry[0] < self._ttl_seconds:
            self.hits += 1
            self._logger.debug(
                "snapshot_cache_hit",
                collection=collection,
                cache_key=cache_key,
                correlation_id=get_correlation_id(),
            )
            return copy.deepcopy(entry[1])

        self.misses += 1
        documents = self._source.fetch(collection, constraints)
        if self._ttl_seconds > 0:
            self._entries[cache_key] = (now, copy.deepcopy(documents))

        self._logger.debug(
            "snapshot_cache_miss",
            collection=collection,
            cache_key=cache_key,
            expired=entry is not None,
            result_count=len(documents),
            correlation_id=get_correlation_id(),
        )
        return documents

    def write_batch(self, collection: str, documents: Sequence[Mapping[str, Any]]) -> None:
        """Delegate the batch to the wrapped writer, then drop the collection."""
        if self._writer is None:
            raise RuntimeError("SnapshotCache has no writer configured")
        self._writer.write_batch(collection, documents)
        self.invalidate(collection)

    def invalidate(self, collection: Optional[str] = None) -> int:
        """
        Drop cached entries.

        Args:
            collection: Only drop entries of this collection (all when None)

        Returns:
            Number of entries removed
        """
        if collection is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            prefix = f"{collection}:"
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            removed = len(keys)

        self._logger.info(
            "snapshot_cache_invalidated",
            collection=collection or "*",
            removed=removed,
            correlation_id=get_correlation_id(),
        )
        return removed

    def _build_cache_key(self, collection: str, constraints: Optional[Mapping[str, Any]]) -> str:
        """Build cache key from collection and constraints."""
        encoded = json.dumps(constraints or {}, sort_keys=True, default=str)
        return f"{collection}:{encoded}"
