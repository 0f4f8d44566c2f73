"""
TTL cache for weather lookups.

Owned state: one WeatherCache instance is injected into a
CachedWeatherProvider rather than living in a module-level dict. Expired
entries are dropped on every write and the entry count is capped.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple
import logging
import threading

from app.models.verification import WeatherConditions
from app.utils.clock import Clock, utc_now
from .base import GeoPoint, WeatherProvider

logger = logging.getLogger(__name__)

CacheKey = Tuple[float, float]


class WeatherCache:
    COORDINATE_PRECISION = 3  # ~100 m
    MAX_ENTRIES = 1024

    def __init__(self, ttl_seconds: int = 600, clock: Clock = utc_now, max_entries: Optional[int] = None):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_entries = max_entries if max_entries is not None else self.MAX_ENTRIES
        self.clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[CacheKey, Tuple[datetime, WeatherConditions]] = {}

    def key(self, latitude: float, longitude: float) -> CacheKey:
        return (round(latitude, self.COORDINATE_PRECISION), round(longitude, self.COORDINATE_PRECISION))

    def get(self, latitude: float, longitude: float) -> Optional[WeatherConditions]:
        key = self.key(latitude, longitude)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, conditions = entry
            if self.clock() - stored_at > self.ttl:
                del self._entries[key]
                return None
            return conditions

    def set(self, latitude: float, longitude: float, conditions: WeatherConditions) -> None:
        key = self.key(latitude, longitude)
        now = self.clock()
        with self._lock:
            self._evict_expired(now)
            if key not in self._entries and len(self._entries) >= self.max_entries:
                oldest = min(self._entries, key=lambda entry_key: self._entries[entry_key][0])
                del self._entries[oldest]
            self._entries[key] = (now, conditions)

    def _evict_expired(self, now: datetime) -> int:
        expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at > self.ttl]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CachedWeatherProvider(WeatherProvider):
    """Caches successful current-conditions lookups; failures are never cached."""

    def __init__(self, inner: WeatherProvider, cache: WeatherCache):
        self.inner = inner
        self.cache = cache
        self.name = inner.name

    def current_conditions(self, latitude: float, longitude: float) -> WeatherConditions:
        cached = self.cache.get(latitude, longitude)
        if cached is not None:
            logger.debug(f"Weather cache hit for {self.cache.key(latitude, longitude)}")
            return cached

        conditions = self.inner.current_conditions(latitude, longitude)
        self.cache.set(latitude, longitude, conditions)
        return conditions

    def geocode_city(self, city: str) -> GeoPoint:
        return self.inner.geocode_city(city)
