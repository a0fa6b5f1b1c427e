"""Read-through cache for active catalog prices."""

from threading import RLock

from cachetools import TTLCache


class PricingCache:
    """Holds the credits of active pricing entries keyed by service code.

    Only active prices are stored, so a deactivated entry disappears as soon
    as it is invalidated. Writers in the catalog invalidate on every change.
    """

    def __init__(self, maxsize: int = 256, ttl: float = 300):
        self._cache: TTLCache[str, int] = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = RLock()

    def get(self, service_code: str) -> int | None:
        with self._lock:
            return self._cache.get(service_code)

    def set(self, service_code: str, credits: int) -> None:
        with self._lock:
            self._cache[service_code] = credits

    def invalidate(self, service_code: str) -> None:
        with self._lock:
            self._cache.pop(service_code, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __contains__(self, service_code: str) -> bool:
        with self._lock:
            return service_code in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
