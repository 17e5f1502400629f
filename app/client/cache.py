"""
Client-side query cache.

Entries are keyed by (entity, id, params). A mutation names the request it
touched and only the keys that can observe that request are dropped: the
request itself, request listings, the pending views and statistics.
"""
import time
from typing import Any, Dict, Hashable, Iterable, Optional, Tuple

CacheKey = Tuple[str, Optional[Hashable], Tuple[Tuple[str, Hashable], ...]]

# Views whose contents depend on any request's state
REQUEST_DERIVED_ENTITIES = ("requests", "user_requests", "pending", "pending_count", "statistics")


def _freeze(params: Optional[Dict[str, Any]]) -> Tuple[Tuple[str, Hashable], ...]:
    if not params:
        return ()
    return tuple(sorted((k, v if isinstance(v, Hashable) else repr(v))
                        for k, v in params.items() if v is not None))


def make_key(entity: str, entity_id: Optional[Hashable] = None,
             params: Optional[Dict[str, Any]] = None) -> CacheKey:
    return (entity, entity_id, _freeze(params))


class QueryCache:
    def __init__(self, ttl_seconds: Optional[float] = 30.0, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return self._lookup(key) is not None

    def _lookup(self, key: CacheKey) -> Optional[Tuple[float, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, _ = entry
        if self.ttl_seconds is not None and self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return entry

    def get(self, key: CacheKey, default: Any = None) -> Any:
        entry = self._lookup(key)
        return default if entry is None else entry[1]

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def invalidate(self, entity: str, entity_id: Optional[Hashable] = None) -> int:
        """Drop every key for `entity` (only `entity_id`'s when given)"""
        doomed = [
            key for key in self._entries
            if key[0] == entity and (entity_id is None or key[1] == entity_id)
        ]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def invalidate_many(self, entities: Iterable[str]) -> int:
        return sum(self.invalidate(entity) for entity in entities)

    def invalidate_request(self, request_id: Optional[str] = None) -> int:
        """Forget what a change to one request can have made stale"""
        dropped = self.invalidate_many(REQUEST_DERIVED_ENTITIES)
        if request_id is not None:
            dropped += self.invalidate("request", request_id)
        return dropped

    def clear(self) -> None:
        self._entries.clear()
