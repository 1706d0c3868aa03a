import threading
from typing import Dict, Iterable, Optional, Set, Tuple
from .model import EntityKind

CacheKey = Tuple[EntityKind, int, str]  # (entity kind, entity id, username)
EntityRef = Tuple[EntityKind, int]

class DedupCache:
    """Concurrent-safe record of (entity, player) pairs that were already handled.

    Each key remembers when it was first added. With a ``horizon_ms`` the
    cache drops keys older than the horizon on ``sweep``; without one, keys
    live until their entity is forgotten.
    """

    def __init__(self, horizon_ms: Optional[int] = None):
        self.horizon_ms = horizon_ms
        self._seen: Dict[CacheKey, int] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._seen

    def add_if_absent(self, key: CacheKey, now_ms: int) -> bool:
        """Insert key; return False if it was already present."""
        with self._lock:
            if key in self._seen:
                return False
            self._seen[key] = now_ms
            return True

    def first_seen(self, key: CacheKey) -> Optional[int]:
        with self._lock:
            return self._seen.get(key)

    def discard(self, key: CacheKey) -> None:
        with self._lock:
            self._seen.pop(key, None)

    def forget_entity(self, kind: EntityKind, entity_id: int) -> int:
        """Drop every key for one entity; return how many were removed."""
        with self._lock:
            stale = [k for k in self._seen if k[0] == kind and k[1] == entity_id]
            for k in stale:
                del self._seen[k]
            return len(stale)

    def retain_entities(self, live: Iterable[EntityRef]) -> int:
        """Drop keys whose entity is not in ``live``."""
        live_set: Set[EntityRef] = set(live)
        with self._lock:
            stale = [k for k in self._seen if (k[0], k[1]) not in live_set]
            for k in stale:
                del self._seen[k]
            return len(stale)

    def sweep(self, now_ms: int) -> int:
        """Evict keys older than the horizon."""
        if self.horizon_ms is None:
            return 0
        cutoff = now_ms - self.horizon_ms
        with self._lock:
            stale = [k for k, ts in self._seen.items() if ts < cutoff]
            for k in stale:
                del self._seen[k]
            return len(stale)
