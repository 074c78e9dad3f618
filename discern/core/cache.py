"""
Threshold Cache
===============

Memoizes optimizer results per entity, keyed by a fingerprint of the
entity's chunk data. A miss is always safe; a hit saves one search.

Locking is per entity: lookups and inserts for different entities never
contend. The hit/miss counters are shared and updated under the
guard lock. The optimizer runs outside the lock, so two threads racing on
the same (entity, fingerprint) may both compute; the first insert wins
and both return the stored value.

Entries are never evicted and live as long as the cache instance.
"""

import logging
import threading
from typing import Callable, Dict, Optional

from discern.core.threshold import FINGERPRINT_CHUNKS, find_optimal_thresholds, get_cache_key
from discern.core.types import NumericStats, Threshold

logger = logging.getLogger(__name__)

Optimizer = Callable[[NumericStats], Threshold]


class ThresholdCache:
    """Per-entity map of fingerprint -> Threshold."""

    def __init__(
        self,
        optimizer: Optional[Optimizer] = None,
        fingerprint_chunks: int = FINGERPRINT_CHUNKS,
    ):
        self._optimizer = optimizer or find_optimal_thresholds
        self._fingerprint_chunks = fingerprint_chunks
        self._entries: Dict[str, Dict[str, Threshold]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _lock_for(self, entity_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(entity_id)
            if lock is None:
                lock = self._locks[entity_id] = threading.Lock()
            return lock

    def fingerprint(self, stats: NumericStats) -> str:
        return get_cache_key(stats, self._fingerprint_chunks)

    def get(self, entity_id: str, stats: NumericStats) -> Optional[Threshold]:
        key = self.fingerprint(stats)
        with self._lock_for(entity_id):
            return self._entries.get(entity_id, {}).get(key)

    def get_or_calculate(self, entity_id: str, stats: NumericStats) -> Threshold:
        key = self.fingerprint(stats)
        lock = self._lock_for(entity_id)

        with lock:
            cached = self._entries.get(entity_id, {}).get(key)
        if cached is not None:
            with self._guard:
                self.hits += 1
            logger.debug("Threshold cache hit: %s [%s]", entity_id, key)
            return cached

        thresholds = self._optimizer(stats)

        with lock:
            stored = self._entries.setdefault(entity_id, {}).setdefault(key, thresholds)
        with self._guard:
            self.misses += 1
        logger.debug("Threshold cache miss: %s -> %s", entity_id, stored.describe())
        return stored

    def entity_size(self, entity_id: str) -> int:
        with self._lock_for(entity_id):
            return len(self._entries.get(entity_id, {}))

    def __len__(self) -> int:
        with self._guard:
            entity_ids = list(self._entries)
        return sum(self.entity_size(entity_id) for entity_id in entity_ids)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._entries
